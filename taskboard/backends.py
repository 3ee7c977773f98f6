# taskboard/backends.py
"""Key-value store contract and the in-process backend.

The task store only talks to a backend through this contract: string keys,
string-set keys, and a batched ``execute`` that runs several commands as one
round trip. Concrete backends live here (memory), in ``database.py``
(SQLite via SQLModel) and in ``redis_backend.py``.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from fastapi import Request

logger = logging.getLogger(__name__)

# A command is (name, *args), e.g. ("get", "task:1") or ("add_to_set", "tasks:index", "1").
Command = tuple
BATCH_COMMANDS = frozenset(
    {"get", "set", "delete", "add_to_set", "remove_from_set", "members_of"}
)


class KeyValueStore(ABC):
    """Abstract key-value backend."""

    name = "abstract"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the string stored at ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key`` (string or set). Returns True if it existed."""

    @abstractmethod
    def add_to_set(self, set_key: str, member: str) -> None:
        """Add ``member`` to the set at ``set_key``."""

    @abstractmethod
    def remove_from_set(self, set_key: str, member: str) -> None:
        """Remove ``member`` from the set at ``set_key`` if present."""

    @abstractmethod
    def members_of(self, set_key: str) -> list[str]:
        """Return every member of the set at ``set_key``."""

    def execute(self, commands: Sequence[Command]) -> list[Any]:
        """Run ``commands`` in order and return one result per command.

        A command that raises leaves its exception instance in its result
        slot; the remaining commands still run.
        """
        results: list[Any] = []
        for command in commands:
            try:
                results.append(self._dispatch(command))
            except Exception as exc:
                logger.warning("Batched %s failed: %s", command[0], exc)
                results.append(exc)
        return results

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass

    def _dispatch(self, command: Command) -> Any:
        name, *args = command
        if name not in BATCH_COMMANDS:
            raise ValueError(f"Unsupported batch command: {name}")
        return getattr(self, name)(*args)


class MemoryKeyValueStore(KeyValueStore):
    """In-process backend. A single mutex serializes each primitive and each batch."""

    name = "memory"

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            had_value = self._values.pop(key, None) is not None
            had_set = self._sets.pop(key, None) is not None
            return had_value or had_set

    def add_to_set(self, set_key: str, member: str) -> None:
        with self._lock:
            self._sets.setdefault(set_key, set()).add(member)

    def remove_from_set(self, set_key: str, member: str) -> None:
        with self._lock:
            members = self._sets.get(set_key)
            if members is None:
                return
            members.discard(member)
            if not members:
                del self._sets[set_key]

    def members_of(self, set_key: str) -> list[str]:
        with self._lock:
            return list(self._sets.get(set_key, ()))

    def execute(self, commands: Sequence[Command]) -> list[Any]:
        with self._lock:
            return super().execute(commands)


def open_store(kind: str) -> KeyValueStore:
    """Build the backend named by ``kind`` from the environment settings."""
    from taskboard import config

    if kind == "memory":
        store: KeyValueStore = MemoryKeyValueStore()
    elif kind == "sqlite":
        from taskboard.database import SqlKeyValueStore

        store = SqlKeyValueStore.from_url(config.DATABASE_URL)
    elif kind == "redis":
        from taskboard.redis_backend import RedisKeyValueStore

        store = RedisKeyValueStore.from_settings(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            db=config.REDIS_DB,
            max_retries=config.REDIS_MAX_RETRIES,
        )
        store.ping()
    else:
        raise ValueError(f"Unknown store backend '{kind}' (expected memory, sqlite or redis)")

    logger.info("Opened %s key-value store", store.name)
    return store


def get_kv_store(request: Request) -> KeyValueStore:
    """Return the store opened at startup, for FastAPI dependency injection."""
    return request.app.state.kv_store
