from dataclasses import dataclass


@dataclass(frozen=True)
class AuditState:
    extension_id: str
    content: str
    complete: bool
