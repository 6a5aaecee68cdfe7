from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from exocore_console.domain.extensions import ExtensionRecord
from exocore_console.domain.tabs import TabRecord


VIEW_DASHBOARD = "dashboard"
VIEW_SECURITY = "security"
VIEW_TABS = "tabs"
VIEW_RESOURCES = "resources"
VIEWS = (VIEW_DASHBOARD, VIEW_SECURITY, VIEW_TABS, VIEW_RESOURCES)

# Views that need tab telemetry kept fresh while they are shown.
LIVE_TAB_VIEWS = frozenset({VIEW_TABS})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TelemetrySnapshot:
    extensions: Tuple[ExtensionRecord, ...] = ()
    tabs: Tuple[TabRecord, ...] = ()
    captured_at: datetime = field(default_factory=_utcnow)

    def find_extension(self, extension_id: str) -> Optional[ExtensionRecord]:
        for extension in self.extensions:
            if extension.id == extension_id:
                return extension
        return None

    def with_extensions(self, extensions: Tuple[ExtensionRecord, ...]) -> "TelemetrySnapshot":
        return replace(self, extensions=tuple(extensions), captured_at=_utcnow())

    def with_tabs(self, tabs: Tuple[TabRecord, ...]) -> "TelemetrySnapshot":
        return replace(self, tabs=tuple(tabs), captured_at=_utcnow())


@dataclass(frozen=True)
class ConsoleState:
    view: str = VIEW_DASHBOARD
    selected_extension_id: Optional[str] = None
    audit_in_flight: bool = False
    snapshot: TelemetrySnapshot = field(default_factory=TelemetrySnapshot)

    @property
    def needs_live_tabs(self) -> bool:
        return self.view in LIVE_TAB_VIEWS

    def with_view(self, view: str) -> "ConsoleState":
        if view not in VIEWS:
            raise ValueError(f"Unknown view '{view}'. Expected one of: {', '.join(VIEWS)}")
        return replace(self, view=view)

    def with_selection(self, extension_id: Optional[str]) -> "ConsoleState":
        return replace(self, selected_extension_id=extension_id)

    def with_snapshot(self, snapshot: TelemetrySnapshot) -> "ConsoleState":
        return replace(self, snapshot=snapshot)

    def with_audit_flag(self, in_flight: bool) -> "ConsoleState":
        return replace(self, audit_in_flight=in_flight)
