class ConsoleError(Exception):
    """Base class for conditions surfaced by the telemetry core."""


class CapabilityUnavailable(ConsoleError):
    """No host integration surface was found; callers fall back to the bundled dataset."""


class NotFound(ConsoleError, LookupError):
    """A command referenced an id the host does not currently know about."""

    def __init__(self, kind: str, ident: object) -> None:
        super().__init__(f"{kind} '{ident}' not found")
        self.kind = kind
        self.ident = ident


class HostRejected(ConsoleError):
    """The host capability call failed or was denied."""

    def __init__(self, operation: str, reason: str = "") -> None:
        message = f"host rejected {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.operation = operation
        self.reason = reason
