# taskboard/query.py
"""Filtering, sorting and pagination over a list of tasks."""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from taskboard.models import Pagination, Task, TaskPage, TaskStatus, parse_iso_datetime

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"
SORT_ORDERS = ("asc", "desc")

# Wire name -> Task attribute.
SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "dueDate": "due_date",
}
DATE_SORT_FIELDS = frozenset({"createdAt", "updatedAt", "dueDate"})


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


def clamp_limit(limit: int) -> int:
    return min(max(limit, 1), MAX_LIMIT)


def filter_tasks(tasks: list[Task], status: Optional[TaskStatus]) -> list[Task]:
    if status is None:
        return list(tasks)
    return [task for task in tasks if task.status == status]


def sort_tasks(tasks: list[Task], sort_by: Optional[str] = None, sort_order: Optional[str] = None) -> list[Task]:
    """Sort tasks by a wire field name.

    Date fields compare as timestamps and tasks without a (parseable) value
    always go last, in their original order, whatever the direction. Titles
    compare case-insensitively.
    """
    sort_by = sort_by or DEFAULT_SORT_BY
    descending = (sort_order or DEFAULT_SORT_ORDER) == "desc"
    attr = SORT_FIELDS[sort_by]

    if sort_by in DATE_SORT_FIELDS:
        dated: list[tuple[datetime, Task]] = []
        undated: list[Task] = []
        for task in tasks:
            moment = parse_iso_datetime(getattr(task, attr))
            if moment is None:
                undated.append(task)
            else:
                dated.append((moment, task))
        dated.sort(key=lambda pair: pair[0], reverse=descending)
        return [task for _, task in dated] + undated

    return sorted(
        tasks,
        key=lambda task: (getattr(task, attr) or "").casefold(),
        reverse=descending,
    )


def paginate(tasks: list[Task], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> TaskPage:
    """Slice one page out of ``tasks``. Pages past the end are empty."""
    page = max(page, 1)
    limit = clamp_limit(limit)
    total = len(tasks)
    start = (page - 1) * limit
    return TaskPage(
        data=tasks[start:start + limit],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


def query_tasks(
    tasks: list[Task],
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    filters: Optional[TaskFilters] = None,
) -> TaskPage:
    """Filter, sort, then paginate ``tasks``."""
    filters = filters or TaskFilters()
    selected = filter_tasks(tasks, filters.status)
    ordered = sort_tasks(selected, filters.sort_by, filters.sort_order)
    return paginate(ordered, page, limit)
