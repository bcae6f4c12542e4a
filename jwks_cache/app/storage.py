"""
Key-value stores used to persist realm key sets between runs.
"""

from typing import Dict, Optional, Protocol, Union

import redis

from shared.errors import StorageError
from shared.logging import get_logger


class KeyValueStore(Protocol):
    """String/number store the JWKS manager persists to."""

    def get_string(self, key: str) -> Optional[str]:
        ...

    def get_double(self, key: str) -> Optional[float]:
        ...

    def set_string(self, key: str, value: str) -> None:
        ...

    def set_double(self, key: str, value: float) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store, mainly for tests and short-lived tools."""

    def __init__(self, initial: Optional[Dict[str, Union[str, float]]] = None):
        self._data: Dict[str, Union[str, float]] = dict(initial or {})

    def get_string(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def get_double(self, key: str) -> Optional[float]:
        value = self._data.get(key)
        if isinstance(value, (int, float)):
            return float(value)
        return None

    def set_string(self, key: str, value: str) -> None:
        self._data[key] = value

    def set_double(self, key: str, value: float) -> None:
        self._data[key] = float(value)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class RedisKeyValueStore:
    """Durable store backed by Redis."""

    def __init__(self, redis_url: str, prefix: str = "jwks:", client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.prefix = prefix
        self.logger = get_logger("jwks.storage.redis")
        self.redis = client or redis.Redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30
        )

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get_string(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._key(key))
        except redis.RedisError as e:
            self.logger.error("Error reading from Redis", key=key, error=str(e))
            raise StorageError(str(e), {"key": key}) from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def get_double(self, key: str) -> Optional[float]:
        value = self.get_string(key)
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            self.logger.warning("Ignoring non-numeric value", key=key, value=value)
            return None

    def set_string(self, key: str, value: str) -> None:
        try:
            self.redis.set(self._key(key), value)
        except redis.RedisError as e:
            self.logger.error("Error writing to Redis", key=key, error=str(e))
            raise StorageError(str(e), {"key": key}) from e

    def set_double(self, key: str, value: float) -> None:
        self.set_string(key, repr(float(value)))

    def close(self) -> None:
        self.redis.close()
