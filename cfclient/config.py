"""
User configuration file support.

Reads/writes ``~/.cf-speedtest/config.json``.  Missing keys fall back to
``DEFAULTS``; a missing or corrupt file yields the defaults unchanged.

Supported keys::

    hostname = "speed.cloudflare.com"
    latency_count = 100
    latency_bytes = 200
    download_presets = [[101000, 2]]     # [bytes, iterations] pairs
    upload_presets = [[11000, 2]]
    request_timeout = null               # seconds; null waits forever
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .constants import (
    DEFAULT_HOSTNAME,
    DEFAULT_LATENCY_BYTES,
    DEFAULT_LATENCY_COUNT,
    DOWNLOAD_PRESETS,
    UPLOAD_PRESETS,
)

logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(Path.home(), ".cf-speedtest")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "hostname": DEFAULT_HOSTNAME,
    "latency_count": DEFAULT_LATENCY_COUNT,
    "latency_bytes": DEFAULT_LATENCY_BYTES,
    "download_presets": [list(p) for p in DOWNLOAD_PRESETS],
    "upload_presets": [list(p) for p in UPLOAD_PRESETS],
    "request_timeout": None,
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, IOError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single config value and persist.  Returns file path."""
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()


def parse_presets(raw: Any) -> List[Tuple[int, int]]:
    """Validate a ``[[bytes, iterations], ...]`` value into tuples."""
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValueError(f"presets must be a non-empty list, got {raw!r}")

    presets: List[Tuple[int, int]] = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ValueError(f"preset must be a [bytes, iterations] pair, got {item!r}")
        try:
            num_bytes, iterations = int(item[0]), int(item[1])
        except (TypeError, ValueError):
            raise ValueError(f"preset values must be integers, got {item!r}") from None
        if num_bytes <= 0 or iterations <= 0:
            raise ValueError(f"preset values must be positive, got {item!r}")
        presets.append((num_bytes, iterations))
    return presets
