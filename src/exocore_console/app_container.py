import logging
from pathlib import Path
from typing import Optional

from exocore_console.config import DEFAULT_CONFIG_DIR, ConsoleConfig, load_config
from exocore_console.events.event_bus import EventBus
from exocore_console.providers.capability import CapabilityProvider, HostScopeFactory
from exocore_console.services.console import TelemetryConsole
from exocore_console.services.sampling import Sampler, UniformSampler

logger = logging.getLogger(__name__)


def build_console(
    config: Optional[ConsoleConfig] = None,
    config_dir: Optional[Path] = None,
    scope_factory: Optional[HostScopeFactory] = None,
    sampler: Optional[Sampler] = None,
    event_bus: Optional[EventBus] = None,
) -> TelemetryConsole:
    cfg = config or load_config(config_dir or DEFAULT_CONFIG_DIR)
    provider = CapabilityProvider(scope_factory=scope_factory)
    if not provider.is_live:
        logger.info("No host surface detected; console will serve the bundled dataset.")
    return TelemetryConsole(
        provider=provider,
        event_bus=event_bus or EventBus(),
        sampler=sampler or UniformSampler(cfg.sampler_seed),
        poll_interval_sec=cfg.poll_interval_sec,
        reveal_interval_sec=cfg.reveal_interval_sec,
        reveal_chunk_chars=cfg.reveal_chunk_chars,
    )
