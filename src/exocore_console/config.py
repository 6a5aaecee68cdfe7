import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

POLL_INTERVAL_KEY = "EXOCORE_POLL_INTERVAL_SEC"
REVEAL_INTERVAL_KEY = "EXOCORE_REVEAL_INTERVAL_MS"
REVEAL_CHUNK_KEY = "EXOCORE_REVEAL_CHUNK_CHARS"
SAMPLER_SEED_KEY = "EXOCORE_SAMPLER_SEED"
LOG_LEVEL_KEY = "LOG_LEVEL"

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "exocore-console"

DEFAULT_POLL_INTERVAL_SEC = 5.0
DEFAULT_REVEAL_INTERVAL_MS = 35
DEFAULT_REVEAL_CHUNK_CHARS = 6


@dataclass
class ConsoleConfig:
    poll_interval_sec: float
    reveal_interval_sec: float
    reveal_chunk_chars: int
    sampler_seed: Optional[int]
    log_level: str
    config_dir: Path
    env_path: Path


def load_env_file(path: Path) -> Dict[str, str]:
    data: Dict[str, str] = {}
    if not path.exists():
        return data
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            data[k.strip()] = v.strip()
    except OSError as exc:
        logger.warning("Failed to read %s: %s", path, exc)
    return data


def get_env_path(config_dir: Path) -> Path:
    return config_dir / ".env"


def get_env_value(key: str, env_file: Mapping[str, str], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    source = environ if environ is not None else os.environ
    return source.get(key) or env_file.get(key)


def _read_float(raw: Optional[str], default: float, key: str, minimum: float) -> float:
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", key, raw, default)
        return default
    return max(minimum, value)


def _read_int(raw: Optional[str], default: int, key: str, minimum: int) -> int:
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", key, raw, default)
        return default
    return max(minimum, value)


def parse_seed(raw: Optional[str]) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, sampling stays unseeded", SAMPLER_SEED_KEY, raw)
        return None


def load_config(config_dir: Path = DEFAULT_CONFIG_DIR, environ: Optional[Mapping[str, str]] = None) -> ConsoleConfig:
    env_path = get_env_path(config_dir)
    env_file = load_env_file(env_path)

    def _value(key: str) -> Optional[str]:
        return get_env_value(key, env_file, environ)

    reveal_ms = _read_float(_value(REVEAL_INTERVAL_KEY), DEFAULT_REVEAL_INTERVAL_MS, REVEAL_INTERVAL_KEY, 0.0)
    return ConsoleConfig(
        poll_interval_sec=_read_float(_value(POLL_INTERVAL_KEY), DEFAULT_POLL_INTERVAL_SEC, POLL_INTERVAL_KEY, 0.05),
        reveal_interval_sec=reveal_ms / 1000.0,
        reveal_chunk_chars=_read_int(_value(REVEAL_CHUNK_KEY), DEFAULT_REVEAL_CHUNK_CHARS, REVEAL_CHUNK_KEY, 1),
        sampler_seed=parse_seed(_value(SAMPLER_SEED_KEY)),
        log_level=(_value(LOG_LEVEL_KEY) or "INFO").upper(),
        config_dir=config_dir,
        env_path=env_path,
    )
