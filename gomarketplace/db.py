"""
Database Module - Redis Client and Cart Store Settings

Provides:
- Singleton async Upstash Redis client used by the Redis cart store
- Redis key constants and TTL settings
- Cart storage configuration read from the environment
"""

import os
from pathlib import Path
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart store selection: "redis", "file" or "memory"
CART_STORE_BACKEND = os.environ.get(
    "CART_STORE_BACKEND",
    "redis" if UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN else "file",
).lower()
CART_STORE_PATH = Path(
    os.environ.get("CART_STORE_PATH", str(Path.home() / ".gomarketplace" / "cart.json"))
).expanduser()

CART_REFRESH_ON_ADD = os.environ.get("CART_REFRESH_ON_ADD", "").lower() in ("1", "true", "yes")


# Singleton instance
_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class RedisKeys:
    """Storage keys for cart data."""

    # Whole cart snapshot; key name kept from the mobile client, prices stored as strings
    CART = os.environ.get("CART_STORAGE_KEY", "@GoMarketplace:product")


class TTL:
    """Time-to-live constants for Redis keys (seconds, 0 = no expiry)."""

    CART = int(os.environ.get("CART_TTL_SECONDS", "0") or 0)
