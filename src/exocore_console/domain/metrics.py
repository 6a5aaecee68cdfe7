from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ImpactedTab:
    tab_id: int
    tab_title: str
    cpu: int
    ram: int


@dataclass(frozen=True)
class ResourceImpactEntry:
    """Simulated attribution of tab load to one extension (not a measurement)."""

    extension_id: str
    extension_name: str
    tabs: Tuple[ImpactedTab, ...]
