from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TabRecord:
    """One open tab.

    ``id`` is only unique within the current session: the host may reuse it
    after a tab closes, so it must not be used as a key across fetch cycles.
    ``cpu`` (percent) and ``memory`` (MB-equivalent) are heuristic figures
    sampled per read, zero until the metrics engine fills them in.
    """

    id: int
    title: str
    url: str
    audible: bool = False
    fav_icon_url: Optional[str] = None
    cpu: int = 0
    memory: int = 0

    @property
    def load_percent(self) -> int:
        return min(100, int(self.memory / 5 + 0.5))
