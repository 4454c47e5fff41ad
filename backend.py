import json
import re
from typing import Any, List, Optional, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB
from errors import StorageUnavailable
from logging_config import get_logger

logger = get_logger(__name__)

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


class KeyValueStore(Protocol):
    """Single-key get/put plus list-by-prefix. No transactions, no compare-and-swap."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def put(self, key: str, value: Any) -> None:
        ...

    async def list_keys(self, prefix: str) -> List[str]:
        ...


def escape_glob(prefix: str) -> str:
    """Escape a literal prefix so it can be used in a Redis MATCH pattern."""
    return _GLOB_SPECIAL.sub(r"\\\1", prefix)


class RedisBackend:
    def __init__(self, redis_client: redis.Redis, scan_count: int = 500):
        self.redis_client = redis_client
        self.scan_count = scan_count

    @classmethod
    def from_env(cls) -> "RedisBackend":
        logger.info(f"Initializing RedisBackend with connection to {REDIS_HOST}:{REDIS_PORT}")
        client = redis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            db=REDIS_DB,
            decode_responses=True,
        )
        return cls(client)

    async def ping(self) -> bool:
        try:
            await self.redis_client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
            raise StorageUnavailable() from e
        logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
        return True

    async def get(self, key: str) -> Optional[Any]:
        logger.debug(f"GET {key}")
        try:
            raw = await self.redis_client.get(key)
        except RedisError as e:
            logger.error(f"Redis GET failed: {e}", exc_info=True)
            raise StorageUnavailable() from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Stored value is not valid JSON: {e}")
            raise StorageUnavailable() from e

    async def put(self, key: str, value: Any) -> None:
        logger.debug(f"PUT {key}")
        try:
            await self.redis_client.set(key, json.dumps(value))
        except RedisError as e:
            logger.error(f"Redis SET failed: {e}", exc_info=True)
            raise StorageUnavailable() from e

    async def list_keys(self, prefix: str) -> List[str]:
        """All keys starting with prefix, in byte-lexicographic order.

        SCAN hands keys back in hash order, so the result is sorted here.
        """
        pattern = escape_glob(prefix) + "*"
        keys = []
        try:
            async for key in self.redis_client.scan_iter(match=pattern, count=self.scan_count):
                keys.append(key)
        except RedisError as e:
            logger.error(f"Redis SCAN failed: {e}", exc_info=True)
            raise StorageUnavailable() from e
        keys.sort(key=lambda k: k.encode("utf-8"))
        logger.debug(f"SCAN {pattern} returned {len(keys)} keys")
        return keys

    async def close(self):
        try:
            await self.redis_client.aclose()
        except RedisError as e:
            logger.error(f"Error closing Redis client: {e}")
