"""Normalize raw host records into the console data model.

Risk policy
-----------
Permission risk is always derived from the permission name; any severity
the host might declare is ignored. Rules are checked top to bottom and the
first substring match wins:

    ===================== ==== =========================================
    pattern               risk meaning
    ===================== ==== =========================================
    ``webRequestBlocking``   4 blocking variant of request interception
    ``cookies``              4 cookie read/write access
    ``webRequest``           5 network request interception
    (anything else)          2 storage, tab enumeration, ...
    ===================== ==== =========================================

This table is the only input to threat scoring downstream.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from exocore_console.domain.extensions import RISK_MAX, RISK_MIN, ExtensionRecord, PermissionRecord
from exocore_console.domain.tabs import TabRecord

logger = logging.getLogger(__name__)

MISSING_DESCRIPTION = "No description available."
MISSING_TITLE = "Untitled tab"
MISSING_URL = ""

# Display-name tokens that identify this console itself.
SELF_IDENTIFIERS: Tuple[str, ...] = ("exocore", "roichi")

CATEGORY_THEME = "Theme"
CATEGORY_EXTENSION = "Extension"


@dataclass(frozen=True)
class RiskRule:
    pattern: str
    risk: int
    reason: str


RISK_POLICY: Tuple[RiskRule, ...] = (
    RiskRule("webRequestBlocking", 4, "blocking request interception"),
    RiskRule("cookies", 4, "cookie access"),
    RiskRule("webRequest", 5, "network request interception"),
)
DEFAULT_RISK = 2


def _clamp_risk(value: int) -> int:
    return max(RISK_MIN, min(RISK_MAX, int(value)))


def classify_permission(name: str) -> int:
    value = str(name or "")
    for rule in RISK_POLICY:
        if rule.pattern in value:
            return _clamp_risk(rule.risk)
    return _clamp_risk(DEFAULT_RISK)


def is_self_extension(name: str, identifiers: Sequence[str] = SELF_IDENTIFIERS) -> bool:
    lowered = str(name or "").lower()
    return any(token.lower() in lowered for token in identifiers)


def _first_icon(raw: Mapping[str, Any]) -> Optional[str]:
    icons = raw.get("icons") or []
    for icon in icons:
        url = icon.get("url") if isinstance(icon, Mapping) else None
        if url:
            return str(url)
    return None


def _category(raw: Mapping[str, Any]) -> str:
    explicit = str(raw.get("category") or "").strip()
    if explicit:
        return explicit
    return CATEGORY_THEME if raw.get("type") == "theme" else CATEGORY_EXTENSION


def _permission_names(raw: Mapping[str, Any]) -> List[str]:
    names: List[str] = []
    for item in raw.get("permissions") or []:
        # Some hosts hand back {"name": ..., "risk": ...}; only the name is trusted.
        name = item.get("name") if isinstance(item, Mapping) else item
        name = str(name or "").strip()
        if name:
            names.append(name)
    return names


def normalize_extension(raw: Mapping[str, Any]) -> ExtensionRecord:
    permissions = tuple(
        PermissionRecord(name=name, risk=classify_permission(name)) for name in _permission_names(raw)
    )
    return ExtensionRecord(
        id=str(raw.get("id") or ""),
        name=str(raw.get("name") or ""),
        version=str(raw.get("version") or ""),
        description=str(raw.get("description") or "") or MISSING_DESCRIPTION,
        category=_category(raw),
        enabled=bool(raw.get("enabled")),
        permissions=permissions,
        icon=_first_icon(raw),
    )


def normalize_extensions(
    raw_items: Iterable[Mapping[str, Any]],
    self_identifiers: Sequence[str] = SELF_IDENTIFIERS,
) -> Tuple[ExtensionRecord, ...]:
    records: List[ExtensionRecord] = []
    for raw in raw_items or []:
        record = normalize_extension(raw)
        if is_self_extension(record.name, self_identifiers):
            logger.debug("normalizer: excluding self entry %s (%s)", record.id, record.name)
            continue
        records.append(record)
    return tuple(records)


def normalize_tab(raw: Mapping[str, Any]) -> TabRecord:
    try:
        tab_id = int(raw.get("id") or 0)
    except (TypeError, ValueError):
        tab_id = 0
    fav_icon = raw.get("favIconUrl") or raw.get("fav_icon_url")
    return TabRecord(
        id=tab_id,
        title=str(raw.get("title") or "") or MISSING_TITLE,
        url=str(raw.get("url") or MISSING_URL),
        audible=bool(raw.get("audible")),
        fav_icon_url=str(fav_icon) if fav_icon else None,
    )


def normalize_tabs(raw_items: Iterable[Mapping[str, Any]]) -> Tuple[TabRecord, ...]:
    return tuple(normalize_tab(raw) for raw in raw_items or [])
