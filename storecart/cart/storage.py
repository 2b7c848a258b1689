"""
Cart persistence gateways.

Each logical key ("cart", "savedItems") holds a JSON array of item dicts.
Gateways never raise to callers: read failures load as an empty list and
write failures are logged.
"""
import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from storecart.config import STORAGE_FILE, STORAGE_MEMORY, STORAGE_REDIS, Settings
from storecart.errors import ErrorKind
from storecart.logging import get_logger

logger = get_logger(__name__)


class StorageKeys:
    """Logical keys for persisted item lists."""
    CART = "cart"
    SAVED_ITEMS = "savedItems"

    ALL = (CART, SAVED_ITEMS)


class PersistenceGateway(ABC):
    """Durable key-value storage for serialized item lists."""

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """Return the raw stored value, or None if the key is absent."""

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Store the raw value under key."""

    async def load(self, key: str) -> list[dict]:
        """Load an item list. Missing or corrupt data loads as []."""
        try:
            raw = await self.read(key)
        except Exception as e:
            logger.error(f"{ErrorKind.PERSISTENCE_READ_FAILURE.value}: cannot read {key!r}: {e}")
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"{ErrorKind.PERSISTENCE_READ_FAILURE.value}: corrupted {key!r} data: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(
                f"{ErrorKind.PERSISTENCE_READ_FAILURE.value}: {key!r} is {type(data).__name__}, expected list"
            )
            return []

        return [entry for entry in data if isinstance(entry, dict)]

    async def save(self, key: str, items: list[dict]) -> bool:
        """Save an item list. Returns False (and logs) on failure."""
        try:
            await self.write(key, json.dumps(items))
            return True
        except Exception as e:
            logger.error(f"{ErrorKind.PERSISTENCE_WRITE_FAILURE.value}: cannot write {key!r}: {e}")
            return False


class MemoryGateway(PersistenceGateway):
    """Process-local storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def write(self, key: str, value: str) -> None:
        self.data[key] = value


class FileGateway(PersistenceGateway):
    """One JSON file per key under a directory, replaced atomically."""

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read_sync(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_sync(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self.path_for(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)


class RedisGateway(PersistenceGateway):
    """Upstash Redis storage with optional key prefix and TTL."""

    def __init__(self, url: str = "", token: str = "", prefix: str = "", ttl: int = 0, client=None):
        self.prefix = prefix
        self.ttl = ttl
        self._url = url
        self._token = token
        self._redis = client  # Lazy initialization

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            if not self._url or not self._token:
                raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
            self._redis = AsyncRedis(url=self._url, token=self._token)
        return self._redis

    def redis_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def read(self, key: str) -> Optional[str]:
        return await self.redis.get(self.redis_key(key))

    async def write(self, key: str, value: str) -> None:
        if self.ttl > 0:
            await self.redis.set(self.redis_key(key), value, ex=self.ttl)
        else:
            await self.redis.set(self.redis_key(key), value)


def create_gateway(settings: Settings) -> PersistenceGateway:
    """Build the gateway selected by configuration."""
    if settings.storage_backend == STORAGE_REDIS:
        return RedisGateway(
            url=settings.redis_url,
            token=settings.redis_token,
            prefix=settings.redis_prefix,
            ttl=settings.redis_ttl,
        )
    if settings.storage_backend == STORAGE_MEMORY:
        return MemoryGateway()
    if settings.storage_backend == STORAGE_FILE:
        return FileGateway(settings.storage_dir)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
