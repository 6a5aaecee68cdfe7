import copy
import logging
from typing import Any, Dict, List

from exocore_console.domain.contracts import RawExtension, RawTab

logger = logging.getLogger(__name__)

# Raw records in the host's own shape. Permission risk is not stored here:
# it is always derived by the normalizer.
FALLBACK_EXTENSIONS: List[Dict[str, Any]] = [
    {
        "id": "ext-privacy",
        "name": "Spectre Privacy Shield",
        "version": "3.4.1",
        "description": "Advanced tracker blocker with AI filters and automatic reports.",
        "permissions": ["tabs", "cookies", "webRequest"],
        "enabled": True,
        "icons": [{"size": 128, "url": "https://cdn-icons-png.flaticon.com/512/3064/3064197.png"}],
        "type": "extension",
        "category": "Privacy",
    },
    {
        "id": "ext-dev",
        "name": "Neon DevKit",
        "version": "1.9.8",
        "description": "Full-stack debugging tools, network capture and DOM analysis.",
        "permissions": ["tabs", "storage"],
        "enabled": True,
        "icons": [{"size": 128, "url": "https://cdn-icons-png.flaticon.com/512/4248/4248443.png"}],
        "type": "extension",
        "category": "Development",
    },
    {
        "id": "ext-shopping",
        "name": "Shadow Deals",
        "version": "2.1.0",
        "description": "Automatic coupon search and real-time price alerts.",
        "permissions": ["webRequest", "cookies"],
        "enabled": False,
        "icons": [{"size": 128, "url": "https://cdn-icons-png.flaticon.com/512/3081/3081559.png"}],
        "type": "extension",
        "category": "Shopping",
    },
    {
        "id": "ext-security",
        "name": "Firewall Sentinel",
        "version": "4.0.2",
        "description": "Smart web firewall with behavioural rules.",
        "permissions": ["webRequestBlocking", "storage"],
        "enabled": True,
        "icons": [{"size": 128, "url": "https://cdn-icons-png.flaticon.com/512/10473/10473422.png"}],
        "type": "extension",
        "category": "Security",
    },
    {
        "id": "ext-productivity",
        "name": "Focus Rail",
        "version": "0.9.3",
        "description": "Session manager, focus timer and distraction blocking.",
        "permissions": ["tabs", "storage"],
        "enabled": True,
        "icons": [{"size": 128, "url": "https://cdn-icons-png.flaticon.com/512/1802/1802333.png"}],
        "type": "extension",
        "category": "Productivity",
    },
]

FALLBACK_TABS: List[Dict[str, Any]] = [
    {
        "id": 101,
        "title": "ExoCore Console",
        "url": "https://exocore.local/dashboard",
        "audible": False,
        "favIconUrl": "https://cdn-icons-png.flaticon.com/512/1998/1998610.png",
    },
    {
        "id": 102,
        "title": "Cyber threat radar feed",
        "url": "https://cyber-feed.example.com",
        "audible": True,
        "favIconUrl": "https://cdn-icons-png.flaticon.com/512/124/124037.png",
    },
    {
        "id": 103,
        "title": "Gemini API docs",
        "url": "https://ai.google.dev",
        "audible": False,
        "favIconUrl": "https://cdn-icons-png.flaticon.com/512/2703/2703985.png",
    },
    {
        "id": 104,
        "title": "Extension RAM analysis",
        "url": "https://monitoring.exocore",
        "audible": False,
        "favIconUrl": "https://cdn-icons-png.flaticon.com/512/4329/4329444.png",
    },
]


class FallbackDataset:
    """Static stand-in used when no host surface is present.

    Reads return copies of the bundled records; writes resolve without doing
    anything so preview contexts never fail.
    """

    name = "fallback_dataset"

    async def list_extensions(self) -> List[RawExtension]:
        return copy.deepcopy(FALLBACK_EXTENSIONS)

    async def set_enabled(self, extension_id: str, enabled: bool) -> None:
        logger.debug("fallback: ignoring set_enabled(%s, %s)", extension_id, enabled)

    async def list_tabs(self) -> List[RawTab]:
        return copy.deepcopy(FALLBACK_TABS)

    async def close_tab(self, tab_id: int) -> None:
        logger.debug("fallback: ignoring close_tab(%s)", tab_id)

    async def focus_tab(self, tab_id: int) -> None:
        logger.debug("fallback: ignoring focus_tab(%s)", tab_id)

    def capabilities(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "live": False,
            "supports_writes": False,
            "reliability_tier": "degraded",
        }
