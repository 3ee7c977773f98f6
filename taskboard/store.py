# taskboard/store.py
"""Task persistence on top of a key-value backend.

Each task is a JSON document at ``task:<id>``; the set ``tasks:index`` holds
every known id. No validation happens here: payloads arrive already checked.
"""

import logging
import time
import uuid
from typing import Any, Optional

from pydantic import ValidationError as RecordError

from taskboard.backends import KeyValueStore
from taskboard.errors import InternalError
from taskboard.models import Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate, utc_now_iso

logger = logging.getLogger(__name__)

TASK_PREFIX = "task:"
TASK_INDEX = "tasks:index"


def generate_task_id() -> str:
    """Return ``<unix-millis>-<12 hex chars>``, unique without coordination."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def task_key(task_id: str) -> str:
    return f"{TASK_PREFIX}{task_id}"


class TaskStore:
    """Reads and writes task records and the id index."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def get_all(self) -> list[Task]:
        """Return every indexed task, skipping ids whose record is missing or unreadable."""
        ids = self._kv.members_of(TASK_INDEX)
        if not ids:
            return []

        results = self._kv.execute([("get", task_key(task_id)) for task_id in ids])
        tasks: list[Task] = []
        for task_id, raw in zip(ids, results):
            if isinstance(raw, Exception):
                logger.warning("Skipping task %s: read failed (%s)", task_id, raw)
                continue
            if not isinstance(raw, str):
                continue
            try:
                tasks.append(Task.from_json(raw))
            except RecordError:
                logger.warning("Skipping task %s: stored record is not a valid task", task_id)
        return tasks

    def get_by_id(self, task_id: str) -> Optional[Task]:
        raw = self._kv.get(task_key(task_id))
        if raw is None:
            return None
        return Task.from_json(raw)

    def create(self, payload: TaskCreate) -> Task:
        now = utc_now_iso()
        task = Task(
            id=generate_task_id(),
            title=payload.title,
            description=payload.description,
            status=TaskStatus.pending,
            priority=payload.priority or TaskPriority.medium,
            due_date=payload.due_date,
            created_at=now,
            updated_at=now,
        )
        results = self._kv.execute([
            ("set", task_key(task.id), task.to_json()),
            ("add_to_set", TASK_INDEX, task.id),
        ])
        _raise_on_failure(results, "create")
        return task

    def update(self, task_id: str, payload: TaskUpdate) -> Optional[Task]:
        """Apply the fields set on ``payload`` and bump ``updatedAt``.

        Not atomic against concurrent writers: the last write wins.
        """
        existing = self.get_by_id(task_id)
        if existing is None:
            return None

        changes = payload.model_dump(exclude_unset=True)
        updated = existing.model_copy(update={**changes, "updated_at": utc_now_iso()})
        self._kv.set(task_key(task_id), updated.to_json())
        return updated

    def delete(self, task_id: str) -> bool:
        if not self._kv.delete(task_key(task_id)):
            return False
        self._kv.remove_from_set(TASK_INDEX, task_id)
        return True

    def delete_all(self) -> int:
        """Remove every indexed record and the index in one batch.

        Returns the number of index entries processed, which counts ids whose
        record was already gone.
        """
        ids = self._kv.members_of(TASK_INDEX)
        if not ids:
            return 0

        commands: list[tuple] = [("delete", task_key(task_id)) for task_id in ids]
        commands.append(("delete", TASK_INDEX))
        _raise_on_failure(self._kv.execute(commands), "delete_all")
        return len(ids)


def _raise_on_failure(results: list[Any], operation: str) -> None:
    for result in results:
        if isinstance(result, Exception):
            raise InternalError(f"Store batch failed during {operation}: {result}") from result
