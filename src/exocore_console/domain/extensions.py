from dataclasses import dataclass
from typing import Optional, Tuple


RISK_MIN = 1
RISK_MAX = 5


@dataclass(frozen=True)
class PermissionRecord:
    name: str
    risk: int


@dataclass(frozen=True)
class ExtensionRecord:
    id: str
    name: str
    version: str
    description: str
    category: str
    enabled: bool
    permissions: Tuple[PermissionRecord, ...] = ()
    icon: Optional[str] = None

    @property
    def permission_risk_total(self) -> int:
        return sum(p.risk for p in self.permissions)

    @property
    def permission_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.permissions)
