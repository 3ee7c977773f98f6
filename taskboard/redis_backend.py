# taskboard/redis_backend.py
"""Redis key-value backend."""

import logging
from typing import Any, Optional, Sequence

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from taskboard.backends import BATCH_COMMANDS, Command, KeyValueStore

logger = logging.getLogger(__name__)

# Contract command name -> redis-py pipeline method.
REDIS_COMMANDS = {
    "get": "get",
    "set": "set",
    "delete": "delete",
    "add_to_set": "sadd",
    "remove_from_set": "srem",
    "members_of": "smembers",
}


class RedisKeyValueStore(KeyValueStore):
    """Backend over a ``redis.Redis`` client created with ``decode_responses=True``."""

    name = "redis"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, host: str, port: int, db: int = 0, max_retries: int = 3) -> "RedisKeyValueStore":
        client = redis.Redis(
            host=host,
            port=port,
            db=db,
            decode_responses=True,
            retry=Retry(ExponentialBackoff(), max_retries),
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str) -> None:
        self._client.set(key, value)

    def delete(self, key: str) -> bool:
        return self._client.delete(key) > 0

    def add_to_set(self, set_key: str, member: str) -> None:
        self._client.sadd(set_key, member)

    def remove_from_set(self, set_key: str, member: str) -> None:
        self._client.srem(set_key, member)

    def members_of(self, set_key: str) -> list[str]:
        return list(self._client.smembers(set_key))

    def execute(self, commands: Sequence[Command]) -> list[Any]:
        pipe = self._client.pipeline(transaction=False)
        names = []
        for name, *args in commands:
            if name not in BATCH_COMMANDS:
                raise ValueError(f"Unsupported batch command: {name}")
            getattr(pipe, REDIS_COMMANDS[name])(*args)
            names.append(name)
        raw = pipe.execute(raise_on_error=False)
        return [_normalize(name, value) for name, value in zip(names, raw)]

    def ping(self) -> bool:
        return bool(self._client.ping())

    def close(self) -> None:
        self._client.close()
        logger.info("Closed Redis connection")


def _normalize(name: str, value: Any) -> Any:
    """Convert a raw pipeline reply into the contract's result shape."""
    if isinstance(value, Exception):
        return value
    if name == "delete":
        return value > 0
    if name == "members_of":
        return list(value)
    if name in ("set", "add_to_set", "remove_from_set"):
        return None
    return value
