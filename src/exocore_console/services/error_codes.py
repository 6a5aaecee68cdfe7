from dataclasses import dataclass
from typing import List

from exocore_console.errors import CapabilityUnavailable, HostRejected, NotFound


@dataclass(frozen=True)
class RecoveryAction:
    action_id: str
    label: str
    description: str


@dataclass(frozen=True)
class ErrorCatalogEntry:
    code: str
    title: str
    user_message: str
    http_status: int
    actions: List[RecoveryAction]


ERROR_CATALOG: List[ErrorCatalogEntry] = [
    ErrorCatalogEntry(
        code="ERR_CAPABILITY_UNAVAILABLE",
        title="Host integration unavailable",
        user_message="No browser automation surface was found; showing the bundled dataset.",
        http_status=503,
        actions=[
            RecoveryAction("grant_permissions", "Grant permissions", "Allow management and tabs access in the host."),
            RecoveryAction("refresh_snapshot", "Refresh", "Re-probe the host on the next read."),
        ],
    ),
    ErrorCatalogEntry(
        code="ERR_NOT_FOUND",
        title="Target not found",
        user_message="The extension or tab no longer exists in the current snapshot.",
        http_status=404,
        actions=[
            RecoveryAction("refresh_snapshot", "Refresh", "Fetch a new snapshot and pick the target again."),
        ],
    ),
    ErrorCatalogEntry(
        code="ERR_HOST_REJECTED",
        title="Host rejected the command",
        user_message="The browser refused or failed the request. Nothing was changed.",
        http_status=502,
        actions=[
            RecoveryAction("retry_command", "Retry", "Issue the same command again."),
            RecoveryAction("refresh_snapshot", "Refresh", "Check the current state before retrying."),
        ],
    ),
    ErrorCatalogEntry(
        code="ERR_UNKNOWN",
        title="Unknown error",
        user_message="An unknown error occurred.",
        http_status=500,
        actions=[
            RecoveryAction("retry_command", "Retry", "Retry once to confirm reproducibility."),
        ],
    ),
]


def detect_error_code(exc: BaseException) -> str:
    if isinstance(exc, NotFound):
        return "ERR_NOT_FOUND"
    if isinstance(exc, HostRejected):
        return "ERR_HOST_REJECTED"
    if isinstance(exc, CapabilityUnavailable):
        return "ERR_CAPABILITY_UNAVAILABLE"
    return "ERR_UNKNOWN"


def get_catalog_entry(code: str) -> ErrorCatalogEntry:
    for entry in ERROR_CATALOG:
        if entry.code == code:
            return entry
    return next(entry for entry in ERROR_CATALOG if entry.code == "ERR_UNKNOWN")
