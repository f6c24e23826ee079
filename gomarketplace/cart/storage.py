"""Key-value stores holding the serialized cart snapshot."""
import asyncio
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from gomarketplace.db import CART_STORE_BACKEND, CART_STORE_PATH, TTL, RedisKeys, get_redis
from gomarketplace.errors import (
    ERROR_STORAGE_NOT_CONFIGURED,
    ERROR_STORAGE_UNAVAILABLE,
    StorageUnavailable,
)
from gomarketplace.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


@runtime_checkable
class CartStore(Protocol):
    """Async string key-value store. Both methods raise StorageUnavailable on failure."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class MemoryCartStore:
    """Process-local store for tests and local runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class RedisCartStore:
    """
    Cart snapshots in Upstash Redis.

    The client is resolved lazily so the store can be built before
    credentials are checked.
    """

    def __init__(self, redis=None, ttl: int = TTL.CART):
        self._redis = redis
        self.ttl = ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise StorageUnavailable(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        try:
            data = await self.redis.get(key)
        except StorageUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to read cart {sanitize_id_for_logging(key)} from Redis: {e}")
            raise StorageUnavailable(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        if data is None:
            return None
        return data.decode("utf-8") if isinstance(data, bytes) else str(data)

    async def set(self, key: str, value: str) -> None:
        try:
            if self.ttl > 0:
                await self.redis.set(key, value, ex=self.ttl)
            else:
                await self.redis.set(key, value)
        except StorageUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to save cart {sanitize_id_for_logging(key)} to Redis: {e}")
            raise StorageUnavailable(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e


class FileCartStore:
    """
    Cart snapshots in a local JSON file ({key: value}).

    File I/O runs in a worker thread under a per-store lock; writes
    replace the file atomically so a crash mid-write leaves the previous
    snapshot intact. A corrupted file is overwritten by the next write.
    """

    def __init__(self, path: Path = CART_STORE_PATH):
        self.path = Path(path)
        # Serializes read-modify-write of the shared file across worker threads
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _write_value(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except ValueError as e:
                # Unreadable file: start over so later writes can re-sync
                logger.warning(f"Discarding corrupted cart file {self.path}: {e}")
                data = {}
            data[key] = value
            self._replace_file(data)

    def _replace_file(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".cart-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def get(self, key: str) -> Optional[str]:
        try:
            data = await asyncio.to_thread(self._read_all)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read cart file {self.path}: {e}")
            raise StorageUnavailable(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        value = data.get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write_value, key, value)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write cart file {self.path}: {e}")
            raise StorageUnavailable(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e


# Singleton instance
_cart_store: Optional[CartStore] = None


def get_cart_store() -> CartStore:
    """Get the configured CartStore singleton (CART_STORE_BACKEND)."""
    global _cart_store
    if _cart_store is None:
        if CART_STORE_BACKEND == "redis":
            _cart_store = RedisCartStore()
        elif CART_STORE_BACKEND == "file":
            _cart_store = FileCartStore(CART_STORE_PATH)
        elif CART_STORE_BACKEND == "memory":
            _cart_store = MemoryCartStore()
        else:
            raise ValueError(f"{ERROR_STORAGE_NOT_CONFIGURED}: {CART_STORE_BACKEND!r}")
        logger.info(f"Cart store backend: {CART_STORE_BACKEND}")
    return _cart_store


__all__ = [
    "CartStore",
    "MemoryCartStore",
    "RedisCartStore",
    "FileCartStore",
    "get_cart_store",
    "RedisKeys",
]
