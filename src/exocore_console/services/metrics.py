"""Heuristic metrics computed from the normalized model.

The host exposes no per-extension CPU or memory accounting, so everything
here is an estimate. ``threat_index`` and ``total_memory_estimate`` are
deterministic. ``resource_impact`` and ``tab_heuristics`` are illustrative
simulations driven by a :class:`Sampler`: calling them twice with the same
inputs is not expected to give the same figures unless a deterministic
sampler is injected.
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from exocore_console.domain.extensions import ExtensionRecord
from exocore_console.domain.metrics import ImpactedTab, ResourceImpactEntry
from exocore_console.domain.tabs import TabRecord
from exocore_console.services.sampling import Sampler, UniformSampler

THREAT_INDEX_MIN = 0
THREAT_INDEX_MAX = 10

ENABLED_MEMORY_WEIGHT = 120
DISABLED_MEMORY_WEIGHT = 40

IMPACT_TABS_MIN = 1
IMPACT_TABS_MAX = 3
IMPACT_CPU_RANGE = (5, 40)
IMPACT_RAM_RANGE = (40, 300)

TAB_CPU_RANGE = (3, 58)
TAB_MEMORY_RANGE = (50, 500)

_default_sampler: Sampler = UniformSampler()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def threat_index(extensions: Sequence[ExtensionRecord]) -> int:
    if not extensions:
        return THREAT_INDEX_MIN
    total = sum(extension.permission_risk_total for extension in extensions)
    score = round_half_up(total / len(extensions))
    return max(THREAT_INDEX_MIN, min(THREAT_INDEX_MAX, score))


def total_memory_estimate(extensions: Iterable[ExtensionRecord]) -> int:
    return sum(
        ENABLED_MEMORY_WEIGHT if extension.enabled else DISABLED_MEMORY_WEIGHT
        for extension in extensions
    )


def active_extension_count(extensions: Iterable[ExtensionRecord]) -> int:
    return sum(1 for extension in extensions if extension.enabled)


def resource_impact(
    extensions: Sequence[ExtensionRecord],
    tabs: Sequence[TabRecord],
    sampler: Optional[Sampler] = None,
) -> Tuple[ResourceImpactEntry, ...]:
    rng = sampler or _default_sampler
    entries: List[ResourceImpactEntry] = []
    upper = min(IMPACT_TABS_MAX, len(tabs))
    for extension in extensions:
        impacted: Tuple[ImpactedTab, ...] = ()
        if upper >= IMPACT_TABS_MIN:
            count = rng.uniform_int(IMPACT_TABS_MIN, upper)
            impacted = tuple(
                ImpactedTab(
                    tab_id=tab.id,
                    tab_title=tab.title,
                    cpu=rng.uniform_int(*IMPACT_CPU_RANGE),
                    ram=rng.uniform_int(*IMPACT_RAM_RANGE),
                )
                for tab in rng.choose(tabs, count)
            )
        entries.append(
            ResourceImpactEntry(
                extension_id=extension.id,
                extension_name=extension.name,
                tabs=impacted,
            )
        )
    return tuple(entries)


def tab_heuristics(tabs: Iterable[TabRecord], sampler: Optional[Sampler] = None) -> Tuple[TabRecord, ...]:
    rng = sampler or _default_sampler
    return tuple(
        replace(
            tab,
            cpu=rng.uniform_int(*TAB_CPU_RANGE),
            memory=rng.uniform_int(*TAB_MEMORY_RANGE),
        )
        for tab in tabs
    )


def heaviest_first(tabs: Iterable[TabRecord]) -> List[TabRecord]:
    # Tie order between equal memory values is not part of the contract.
    return sorted(tabs, key=lambda tab: tab.memory, reverse=True)
