"""Tests for permission risk policy, self-filtering and missing-field defaults."""
import pytest

from exocore_console.domain.extensions import RISK_MAX, RISK_MIN
from exocore_console.providers.fallback import FALLBACK_EXTENSIONS, FALLBACK_TABS
from exocore_console.services.normalizer import (
    CATEGORY_EXTENSION,
    CATEGORY_THEME,
    DEFAULT_RISK,
    MISSING_DESCRIPTION,
    MISSING_TITLE,
    RISK_POLICY,
    classify_permission,
    is_self_extension,
    normalize_extensions,
    normalize_tabs,
)


def _raw_extension(**overrides):
    raw = {
        "id": "ext-a",
        "name": "Alpha",
        "version": "1.0.0",
        "description": "Alpha extension",
        "permissions": ["storage"],
        "enabled": True,
        "type": "extension",
    }
    raw.update(overrides)
    return raw


class TestClassifyPermission:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("webRequest", 5),
            ("webRequestBlocking", 4),
            ("cookies", 4),
            ("storage", 2),
            ("tabs", 2),
            ("", 2),
        ],
    )
    def test_policy_table(self, name, expected):
        assert classify_permission(name) == expected

    def test_same_name_same_risk(self):
        results = {classify_permission("webRequest") for _ in range(20)}
        assert results == {5}

    def test_all_policy_risks_within_bounds(self):
        for rule in RISK_POLICY:
            assert RISK_MIN <= classify_permission(rule.pattern) <= RISK_MAX
        assert RISK_MIN <= DEFAULT_RISK <= RISK_MAX


class TestSelfFiltering:
    def test_console_name_is_excluded(self):
        raw = [_raw_extension(id="self", name="ExoCore Console"), _raw_extension()]
        records = normalize_extensions(raw)
        assert [r.id for r in records] == ["ext-a"]

    def test_match_is_case_insensitive_substring(self):
        assert is_self_extension("my ROICHI helper")
        assert is_self_extension("exocore")
        assert not is_self_extension("Spectre Privacy Shield")

    def test_fallback_dataset_has_no_self_match(self):
        assert len(normalize_extensions(FALLBACK_EXTENSIONS)) == 5


class TestNormalizeExtensions:
    def test_host_declared_risk_is_ignored(self):
        raw = _raw_extension(permissions=[{"name": "webRequest", "risk": 1}, "storage"])
        record = normalize_extensions([raw])[0]
        assert [(p.name, p.risk) for p in record.permissions] == [("webRequest", 5), ("storage", 2)]

    def test_missing_description_gets_placeholder(self):
        raw = _raw_extension()
        del raw["description"]
        assert normalize_extensions([raw])[0].description == MISSING_DESCRIPTION

    def test_category_and_icon(self):
        theme = _raw_extension(type="theme", icons=[{"size": 16, "url": "https://x/icon.png"}])
        record = normalize_extensions([theme])[0]
        assert record.category == CATEGORY_THEME
        assert record.icon == "https://x/icon.png"
        plain = normalize_extensions([_raw_extension()])[0]
        assert plain.category == CATEGORY_EXTENSION
        assert plain.icon is None

    def test_explicit_category_kept(self):
        record = normalize_extensions([_raw_extension(category="Privacy")])[0]
        assert record.category == "Privacy"

    def test_permission_order_preserved(self):
        record = normalize_extensions([_raw_extension(permissions=["tabs", "cookies", "webRequest"])])[0]
        assert record.permission_names == ("tabs", "cookies", "webRequest")


class TestNormalizeTabs:
    def test_missing_title_and_url(self):
        tab = normalize_tabs([{"id": 7}])[0]
        assert tab.title == MISSING_TITLE
        assert tab.url == ""
        assert tab.audible is False
        assert tab.fav_icon_url is None

    def test_missing_id_defaults_to_zero(self):
        assert normalize_tabs([{"title": "x"}])[0].id == 0

    def test_fallback_tabs(self):
        tabs = normalize_tabs(FALLBACK_TABS)
        assert [t.id for t in tabs] == [101, 102, 103, 104]
        assert tabs[1].audible is True
        assert all(t.cpu == 0 and t.memory == 0 for t in tabs)
