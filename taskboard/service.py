# taskboard/service.py
"""Task service: orchestrates the store and the query engine."""

import logging
from typing import Optional

from taskboard.errors import NotFoundError
from taskboard.models import Task, TaskCreate, TaskPage, TaskUpdate
from taskboard.query import DEFAULT_LIMIT, DEFAULT_PAGE, TaskFilters, query_tasks
from taskboard.store import TaskStore

logger = logging.getLogger(__name__)


def _not_found(task_id: str) -> NotFoundError:
    return NotFoundError(f"Task with id '{task_id}' not found")


class TaskService:
    """One method per API operation. Payloads are validated before they get here."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def get_all(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        filters: Optional[TaskFilters] = None,
    ) -> TaskPage:
        result = query_tasks(self._store.get_all(), page, limit, filters)
        logger.info(
            "Tasks retrieved: total=%d page=%d limit=%d",
            result.pagination.total, result.pagination.page, result.pagination.limit,
        )
        return result

    def get_by_id(self, task_id: str) -> Task:
        task = self._store.get_by_id(task_id)
        if task is None:
            raise _not_found(task_id)
        logger.debug("Task retrieved: %s", task_id)
        return task

    def create(self, payload: TaskCreate) -> Task:
        task = self._store.create(payload)
        logger.info("Task created: %s", task.id)
        return task

    def update(self, task_id: str, payload: TaskUpdate) -> Task:
        task = self._store.update(task_id, payload)
        if task is None:
            raise _not_found(task_id)
        logger.info("Task updated: %s (%s)", task_id, ", ".join(sorted(payload.model_fields_set)))
        return task

    def delete(self, task_id: str) -> None:
        if not self._store.delete(task_id):
            raise _not_found(task_id)
        logger.info("Task deleted: %s", task_id)

    def delete_all(self) -> int:
        count = self._store.delete_all()
        logger.info("All tasks deleted: %d", count)
        return count
