import unittest
from typing import List, Sequence

from exocore_console.domain.extensions import ExtensionRecord, PermissionRecord
from exocore_console.domain.tabs import TabRecord
from exocore_console.providers.fallback import FALLBACK_EXTENSIONS
from exocore_console.services.metrics import (
    IMPACT_CPU_RANGE,
    IMPACT_RAM_RANGE,
    TAB_CPU_RANGE,
    TAB_MEMORY_RANGE,
    heaviest_first,
    resource_impact,
    round_half_up,
    tab_heuristics,
    threat_index,
    total_memory_estimate,
)
from exocore_console.services.normalizer import normalize_extensions
from exocore_console.services.sampling import UniformSampler


class _LowSampler:
    """Always picks the lower bound and the first k items."""

    def uniform_int(self, low: int, high: int) -> int:
        return low

    def choose(self, population: Sequence, k: int) -> List:
        return list(population)[:k]


class _HighSampler:
    def uniform_int(self, low: int, high: int) -> int:
        return high

    def choose(self, population: Sequence, k: int) -> List:
        return list(population)[-k:]


def _ext(ext_id: str, risks, enabled: bool = True) -> ExtensionRecord:
    return ExtensionRecord(
        id=ext_id,
        name=ext_id,
        version="1",
        description="",
        category="Extension",
        enabled=enabled,
        permissions=tuple(PermissionRecord(name=f"p{i}", risk=r) for i, r in enumerate(risks)),
    )


def _tabs(n: int) -> List[TabRecord]:
    return [TabRecord(id=i, title=f"tab {i}", url=f"https://t{i}") for i in range(1, n + 1)]


class TestThreatIndex(unittest.TestCase):
    def test_empty_is_zero(self):
        self.assertEqual(threat_index([]), 0)

    def test_rounded_mean_of_sums(self):
        self.assertEqual(threat_index([_ext("a", [2, 2]), _ext("b", [5])]), 5)  # 4.5 rounds up
        self.assertEqual(threat_index([_ext("a", [2]), _ext("b", [2, 2, 2])]), 4)

    def test_clamped_to_ten(self):
        self.assertEqual(threat_index([_ext("a", [5, 5, 5])]), 10)

    def test_extension_without_permissions(self):
        self.assertEqual(threat_index([_ext("a", [])]), 0)

    def test_fallback_dataset(self):
        extensions = normalize_extensions(FALLBACK_EXTENSIONS)
        sums = [e.permission_risk_total for e in extensions]
        self.assertEqual(sums, [11, 4, 9, 6, 4])
        self.assertEqual(threat_index(extensions), round_half_up(sum(sums) / len(sums)))
        self.assertEqual(threat_index(extensions), 7)


class TestMemoryEstimate(unittest.TestCase):
    def test_enabled_weigh_more(self):
        self.assertEqual(total_memory_estimate([_ext("a", [], True), _ext("b", [], False)]), 160)
        self.assertEqual(total_memory_estimate([]), 0)

    def test_fallback_dataset(self):
        self.assertEqual(total_memory_estimate(normalize_extensions(FALLBACK_EXTENSIONS)), 520)


class TestResourceImpact(unittest.TestCase):
    def test_ranges_with_uniform_sampler(self):
        extensions = [_ext(f"e{i}", [2]) for i in range(6)]
        tabs = _tabs(4)
        for _ in range(25):
            entries = resource_impact(extensions, tabs, UniformSampler())
            self.assertEqual([e.extension_id for e in entries], [e.id for e in extensions])
            for entry in entries:
                self.assertGreaterEqual(len(entry.tabs), 1)
                self.assertLessEqual(len(entry.tabs), 3)
                self.assertEqual(len({t.tab_id for t in entry.tabs}), len(entry.tabs))
                for tab in entry.tabs:
                    self.assertGreaterEqual(tab.cpu, IMPACT_CPU_RANGE[0])
                    self.assertLessEqual(tab.cpu, IMPACT_CPU_RANGE[1])
                    self.assertGreaterEqual(tab.ram, IMPACT_RAM_RANGE[0])
                    self.assertLessEqual(tab.ram, IMPACT_RAM_RANGE[1])

    def test_bounded_by_available_tabs(self):
        entries = resource_impact([_ext("a", [2])], _tabs(1), _HighSampler())
        self.assertEqual(len(entries[0].tabs), 1)

    def test_no_tabs_gives_empty_subsets(self):
        entries = resource_impact([_ext("a", [2])], [], UniformSampler())
        self.assertEqual(entries[0].tabs, ())

    def test_deterministic_sampler_exact_values(self):
        entries = resource_impact([_ext("a", [2])], _tabs(4), _LowSampler())
        self.assertEqual(len(entries[0].tabs), 1)
        impacted = entries[0].tabs[0]
        self.assertEqual((impacted.tab_id, impacted.tab_title), (1, "tab 1"))
        self.assertEqual((impacted.cpu, impacted.ram), (5, 40))

        entries = resource_impact([_ext("a", [2])], _tabs(4), _HighSampler())
        self.assertEqual([t.tab_id for t in entries[0].tabs], [2, 3, 4])
        self.assertTrue(all(t.cpu == 40 and t.ram == 300 for t in entries[0].tabs))


class TestTabHeuristics(unittest.TestCase):
    def test_ranges_and_identity_preserved(self):
        tabs = _tabs(4)
        sampled = tab_heuristics(tabs, UniformSampler())
        self.assertEqual([(t.id, t.title, t.url) for t in sampled], [(t.id, t.title, t.url) for t in tabs])
        for tab in sampled:
            self.assertTrue(TAB_CPU_RANGE[0] <= tab.cpu <= TAB_CPU_RANGE[1])
            self.assertTrue(TAB_MEMORY_RANGE[0] <= tab.memory <= TAB_MEMORY_RANGE[1])

    def test_heaviest_first_orders_by_memory(self):
        tabs = [
            TabRecord(id=1, title="a", url="", memory=100),
            TabRecord(id=2, title="b", url="", memory=400),
            TabRecord(id=3, title="c", url="", memory=100),
            TabRecord(id=4, title="d", url="", memory=250),
        ]
        ordered = heaviest_first(tabs)
        self.assertEqual([t.id for t in ordered[:2]], [2, 4])
        # Equal-memory tabs may come in either order.
        self.assertEqual({t.id for t in ordered[2:]}, {1, 3})

    def test_load_percent(self):
        self.assertEqual(TabRecord(id=1, title="", url="", memory=250).load_percent, 50)
        self.assertEqual(TabRecord(id=1, title="", url="", memory=900).load_percent, 100)


if __name__ == "__main__":
    unittest.main()
