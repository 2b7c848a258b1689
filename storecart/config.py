"""
Configuration - environment-driven settings.

Storage backend selection:
- file   (default) JSON files under STORECART_STORAGE_DIR
- redis  Upstash Redis via UPSTASH_REDIS_REST_URL / UPSTASH_REDIS_REST_TOKEN
- memory process-local, lost on exit
"""

import os
from dataclasses import dataclass
from pathlib import Path

STORAGE_FILE = "file"
STORAGE_REDIS = "redis"
STORAGE_MEMORY = "memory"

STORAGE_BACKENDS = (STORAGE_FILE, STORAGE_REDIS, STORAGE_MEMORY)


def _get_int(key: str, default: int) -> int:
    value = os.environ.get(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Settings:
    storage_backend: str
    storage_dir: str
    redis_url: str
    redis_token: str
    redis_prefix: str
    redis_ttl: int  # seconds, 0 = no expiry


def load_settings() -> Settings:
    """Read settings from the environment."""
    backend = os.environ.get("STORECART_STORAGE", STORAGE_FILE).strip().lower() or STORAGE_FILE
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"STORECART_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}"
        )

    return Settings(
        storage_backend=backend,
        storage_dir=os.environ.get(
            "STORECART_STORAGE_DIR", str(Path.home() / ".storecart")
        ),
        # Upstash uses REST_URL and REST_TOKEN
        redis_url=os.environ.get("UPSTASH_REDIS_REST_URL", ""),
        redis_token=os.environ.get("UPSTASH_REDIS_REST_TOKEN", ""),
        redis_prefix=os.environ.get("STORECART_REDIS_PREFIX", "storecart:"),
        redis_ttl=_get_int("STORECART_REDIS_TTL", 0),
    )
