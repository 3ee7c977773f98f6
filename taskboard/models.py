# taskboard/models.py
"""Task model and payload schemas for the task manager API."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: object) -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time string into an aware datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    """A stored task record."""
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[str] = None
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> "Task":
        return cls.model_validate_json(raw)


class TaskCreate(CamelModel):
    """Validated payload for creating a task. Status is never client-supplied."""
    title: str
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None


class TaskUpdate(CamelModel):
    """Validated partial update. Only fields that were sent are set."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TaskPage(CamelModel):
    """One page of query results plus pagination metadata."""
    data: list[Task]
    pagination: Pagination

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
