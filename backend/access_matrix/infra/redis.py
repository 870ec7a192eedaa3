import logging
import os

from redis import Redis, RedisError

from ..errors import StorageError

logger = logging.getLogger(__name__)


def get_redis_client(redis_url: str | None = None) -> Redis:
    """Create a synchronous Redis client, from the argument or the environment."""
    redis_url = redis_url or os.getenv("REDIS_URL")
    if not redis_url:
        raise ValueError("REDIS_URL environment variable must be set")
    return Redis.from_url(redis_url, decode_responses=True)


class RedisKeyValueStorage:
    """
    Key-value storage port backed by Redis string keys.
    Values are stored as-is with no expiry; every failure surfaces as StorageError.
    """

    def __init__(self, redis_client: Redis):
        """
        Args:
            redis_client: Synchronous Redis client created with decode_responses=True
        """
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisKeyValueStorage":
        return cls(get_redis_client(redis_url))

    def get(self, key: str) -> str | None:
        try:
            value = self._redis.get(key)
        except RedisError as exc:
            logger.error(
                "Redis operation failed operation=GET key=%s error=%s",
                key,
                exc,
            )
            raise StorageError(details={"operation": "GET", "key": key}) from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.set(key, value)
        except RedisError as exc:
            logger.error(
                "Redis operation failed operation=SET key=%s error=%s",
                key,
                exc,
            )
            raise StorageError(details={"operation": "SET", "key": key}) from exc
        logger.debug("Stored key=%s bytes=%d", key, len(value))

    def close(self) -> None:
        self._redis.close()
