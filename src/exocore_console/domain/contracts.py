from typing import Any, Dict, List, Mapping, Protocol

RawExtension = Mapping[str, Any]
RawTab = Mapping[str, Any]


class HostCapability(Protocol):
    name: str

    async def list_extensions(self) -> List[RawExtension]:
        ...

    async def set_enabled(self, extension_id: str, enabled: bool) -> None:
        ...

    async def list_tabs(self) -> List[RawTab]:
        ...

    async def close_tab(self, tab_id: int) -> None:
        ...

    async def focus_tab(self, tab_id: int) -> None:
        ...

    def capabilities(self) -> Dict[str, Any]:
        ...
