# taskboard/database.py
"""SQLite key-value backend built on SQLModel.

Two tables hold the data: ``kv_entry`` for string keys and ``kv_set_member``
for set keys (one row per member). A batch runs inside one session and is
committed once, so a failing batch rolls back as a whole.
"""

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import Engine, text
from sqlmodel import Field, Session, SQLModel, create_engine, select

from taskboard.backends import BATCH_COMMANDS, Command, KeyValueStore

logger = logging.getLogger(__name__)


class KvEntry(SQLModel, table=True):
    """A string value stored under a key."""
    __tablename__ = "kv_entry"

    key: str = Field(primary_key=True)
    value: str


class KvSetMember(SQLModel, table=True):
    """One member of a string set."""
    __tablename__ = "kv_set_member"

    set_key: str = Field(primary_key=True)
    member: str = Field(primary_key=True)


class SqlKeyValueStore(KeyValueStore):
    """Key-value backend over any SQLAlchemy engine (SQLite in practice)."""

    name = "sqlite"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        SQLModel.metadata.create_all(engine, tables=[KvEntry.__table__, KvSetMember.__table__])

    @classmethod
    def from_url(cls, url: str) -> "SqlKeyValueStore":
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        return cls(create_engine(url, echo=False, connect_args=connect_args))

    # -- primitives ------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        with Session(self._engine) as session:
            return self._get(session, key)

    def set(self, key: str, value: str) -> None:
        self._run(self._set, key, value)

    def delete(self, key: str) -> bool:
        return self._run(self._delete, key)

    def add_to_set(self, set_key: str, member: str) -> None:
        self._run(self._add_to_set, set_key, member)

    def remove_from_set(self, set_key: str, member: str) -> None:
        self._run(self._remove_from_set, set_key, member)

    def members_of(self, set_key: str) -> list[str]:
        with Session(self._engine) as session:
            return self._members_of(session, set_key)

    def execute(self, commands: Sequence[Command]) -> list[Any]:
        results: list[Any] = []
        with Session(self._engine) as session:
            for name, *args in commands:
                if name not in BATCH_COMMANDS:
                    raise ValueError(f"Unsupported batch command: {name}")
                handler = getattr(self, f"_{name}")
                results.append(handler(session, *args))
            session.commit()
        return results

    def ping(self) -> bool:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self._engine.dispose()
        logger.info("Disposed SQL engine")

    # -- session-scoped implementations --------------------------------------

    def _run(self, handler, *args) -> Any:
        with Session(self._engine) as session:
            result = handler(session, *args)
            session.commit()
            return result

    @staticmethod
    def _get(session: Session, key: str) -> Optional[str]:
        entry = session.get(KvEntry, key)
        return entry.value if entry is not None else None

    @staticmethod
    def _set(session: Session, key: str, value: str) -> None:
        entry = session.get(KvEntry, key)
        if entry is None:
            session.add(KvEntry(key=key, value=value))
        else:
            entry.value = value
            session.add(entry)
        session.flush()

    @staticmethod
    def _delete(session: Session, key: str) -> bool:
        existed = False
        entry = session.get(KvEntry, key)
        if entry is not None:
            session.delete(entry)
            existed = True
        members = session.exec(
            select(KvSetMember).where(KvSetMember.set_key == key)
        ).all()
        for row in members:
            session.delete(row)
            existed = True
        session.flush()
        return existed

    @staticmethod
    def _add_to_set(session: Session, set_key: str, member: str) -> None:
        if session.get(KvSetMember, (set_key, member)) is None:
            session.add(KvSetMember(set_key=set_key, member=member))
            session.flush()

    @staticmethod
    def _remove_from_set(session: Session, set_key: str, member: str) -> None:
        row = session.get(KvSetMember, (set_key, member))
        if row is not None:
            session.delete(row)
            session.flush()

    @staticmethod
    def _members_of(session: Session, set_key: str) -> list[str]:
        statement = select(KvSetMember.member).where(KvSetMember.set_key == set_key)
        return list(session.exec(statement).all())
