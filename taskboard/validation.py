# taskboard/validation.py
"""Declarative validation for task payloads and list queries.

A ``Schema`` is an ordered tuple of ``FieldSpec`` entries plus cross-field
rules. ``Schema.validate`` checks every field, collects every failure, and
raises one ``ValidationError`` carrying all messages. Each field reports at
most one message (its first failing rule). Cross-field rules run after the
per-field rules and are skipped when a field they depend on already failed.

Body schemas are strict (unknown properties are rejected); the list-query
schema ignores unknown parameters.
"""

import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional

from taskboard.errors import ValidationError
from taskboard.models import TaskCreate, TaskPriority, TaskStatus, TaskUpdate, parse_iso_datetime
from taskboard.query import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    SORT_FIELDS,
    SORT_ORDERS,
    TaskFilters,
    clamp_limit,
)

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000
HIGH_PRIORITY_WINDOW = timedelta(days=7)

_TAG_RE = re.compile(r"<[^>]*>")
_NUMBER_RE = re.compile(r"^[+-]?([0-9]*\.)?[0-9]+$")

# A rule returns an error message, or None when the value passes.
Rule = Callable[[Any], Optional[str]]


def strip_html(value: str) -> str:
    """Remove anything that looks like an HTML tag, then trim whitespace."""
    return _TAG_RE.sub("", value).strip()


# -- rules -----------------------------------------------------------------------

def is_string(message: str) -> Rule:
    def rule(value: Any) -> Optional[str]:
        return None if isinstance(value, str) else message
    return rule


def not_empty(message: str) -> Rule:
    def rule(value: Any) -> Optional[str]:
        return None if value else message
    return rule


def max_length(limit: int, message: str) -> Rule:
    def rule(value: Any) -> Optional[str]:
        return None if len(value) <= limit else message
    return rule


def one_of(label: str, choices: Iterable[str]) -> Rule:
    allowed = tuple(choices)
    message = f"{label} must be one of: {', '.join(allowed)}"

    def rule(value: Any) -> Optional[str]:
        return None if isinstance(value, str) and value in allowed else message
    return rule


def iso_datetime(message: str) -> Rule:
    def rule(value: Any) -> Optional[str]:
        return None if parse_iso_datetime(value) is not None else message
    return rule


def numeric_string(message: str) -> Rule:
    def rule(value: Any) -> Optional[str]:
        return None if isinstance(value, str) and _NUMBER_RE.match(value) else message
    return rule


# -- schema ------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    name: str
    rules: tuple[Rule, ...] = ()
    missing_message: Optional[str] = None  # set for required fields
    sanitize: Optional[Callable[[str], str]] = None

    def check(self, value: Any) -> tuple[Any, Optional[str]]:
        if self.sanitize is not None and isinstance(value, str):
            value = self.sanitize(value)
        for rule in self.rules:
            message = rule(value)
            if message:
                return value, message
        return value, None


@dataclass(frozen=True)
class CrossFieldRule:
    fields: tuple[str, ...]
    check: Callable[[dict[str, Any], datetime], Optional[str]]


@dataclass(frozen=True)
class Schema:
    fields: tuple[FieldSpec, ...]
    rules: tuple[CrossFieldRule, ...] = ()
    strict: bool = True

    @property
    def known(self) -> frozenset:
        return frozenset(spec.name for spec in self.fields)

    def validate(self, data: Mapping[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
        """Return the cleaned values for fields present in ``data``.

        Raises:
            ValidationError: with every collected message, in schema order.
        """
        now = now or datetime.now(timezone.utc)
        errors: list[str] = []
        failed: set[str] = set()
        cleaned: dict[str, Any] = {}

        for spec in self.fields:
            if spec.name not in data:
                if spec.missing_message:
                    errors.append(spec.missing_message)
                    failed.add(spec.name)
                continue
            value, message = spec.check(data[spec.name])
            if message:
                errors.append(message)
                failed.add(spec.name)
            else:
                cleaned[spec.name] = value

        for rule in self.rules:
            if failed.intersection(rule.fields):
                continue
            message = rule.check(cleaned, now)
            if message:
                errors.append(message)

        if self.strict:
            errors.extend(
                f"property {name} should not exist" for name in data if name not in self.known
            )

        if errors:
            raise ValidationError(errors)
        return cleaned


def high_priority_due_date(data: dict[str, Any], now: datetime) -> Optional[str]:
    """High priority tasks need a due date between now and seven days from now."""
    if data.get("priority") != TaskPriority.high.value:
        return None
    due = parse_iso_datetime(data.get("dueDate"))
    if due is None or not (now <= due <= now + HIGH_PRIORITY_WINDOW):
        return "High priority tasks must have a due date within the next 7 days"
    return None


STATUS_VALUES = [status.value for status in TaskStatus]
PRIORITY_VALUES = [priority.value for priority in TaskPriority]

_TITLE_REQUIRED = "Title is required and must not be empty"
_TITLE_TOO_LONG = f"Title must not exceed {TITLE_MAX_LENGTH} characters"

DESCRIPTION_FIELD = FieldSpec(
    "description",
    rules=(
        is_string("Description must be a string"),
        max_length(DESCRIPTION_MAX_LENGTH, f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"),
    ),
    sanitize=strip_html,
)
PRIORITY_FIELD = FieldSpec("priority", rules=(one_of("Priority", PRIORITY_VALUES),))
DUE_DATE_FIELD = FieldSpec(
    "dueDate",
    rules=(iso_datetime("Due date must be a valid ISO 8601 date string (e.g. 2026-03-01T00:00:00.000Z)"),),
)
HIGH_PRIORITY_RULE = CrossFieldRule(fields=("priority", "dueDate"), check=high_priority_due_date)

CREATE_TASK_SCHEMA = Schema(
    fields=(
        FieldSpec(
            "title",
            rules=(
                is_string("Title must be a string"),
                not_empty(_TITLE_REQUIRED),
                max_length(TITLE_MAX_LENGTH, _TITLE_TOO_LONG),
            ),
            missing_message=_TITLE_REQUIRED,
            sanitize=strip_html,
        ),
        DESCRIPTION_FIELD,
        PRIORITY_FIELD,
        DUE_DATE_FIELD,
    ),
    rules=(HIGH_PRIORITY_RULE,),
)

UPDATE_TASK_SCHEMA = Schema(
    fields=(
        FieldSpec(
            "title",
            rules=(
                is_string("Title must be a string"),
                not_empty("Title, if provided, must not be empty"),
                max_length(TITLE_MAX_LENGTH, _TITLE_TOO_LONG),
            ),
            sanitize=strip_html,
        ),
        DESCRIPTION_FIELD,
        FieldSpec("status", rules=(one_of("Status", STATUS_VALUES),)),
        PRIORITY_FIELD,
        DUE_DATE_FIELD,
    ),
    rules=(HIGH_PRIORITY_RULE,),
)

LIST_TASKS_QUERY_SCHEMA = Schema(
    fields=(
        FieldSpec("page", rules=(numeric_string("Page must be a number"),)),
        FieldSpec("limit", rules=(numeric_string("Limit must be a number"),)),
        FieldSpec("status", rules=(one_of("Status filter", STATUS_VALUES),)),
        FieldSpec("sortBy", rules=(one_of("sortBy", SORT_FIELDS),)),
        FieldSpec("sortOrder", rules=(one_of("sortOrder", SORT_ORDERS),)),
    ),
    strict=False,
)


# -- entry points --------------------------------------------------------------

@dataclass(frozen=True)
class ListQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    filters: TaskFilters = field(default_factory=TaskFilters)


def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError(["Request body must be a JSON object"])
    return body


def validate_create_task(body: Any, now: Optional[datetime] = None) -> TaskCreate:
    cleaned = CREATE_TASK_SCHEMA.validate(_require_object(body), now)
    return TaskCreate.model_validate(cleaned)


def validate_update_task(body: Any, now: Optional[datetime] = None) -> TaskUpdate:
    cleaned = UPDATE_TASK_SCHEMA.validate(_require_object(body), now)
    return TaskUpdate.model_validate(cleaned)


def _to_int(raw: Optional[str], default: int) -> int:
    """Numeric strings truncate to int; absent or zero falls back to ``default``.

    ``Decimal`` keeps long digit strings exact; the result saturates at
    ``sys.maxsize``.
    """
    if raw is None:
        return default
    return min(int(Decimal(raw)), sys.maxsize) or default


def validate_list_query(params: Mapping[str, str]) -> ListQuery:
    """Validate list-query parameters and normalize page/limit/filters."""
    cleaned = LIST_TASKS_QUERY_SCHEMA.validate(params)
    status = cleaned.get("status")
    return ListQuery(
        page=max(_to_int(cleaned.get("page"), DEFAULT_PAGE), 1),
        limit=clamp_limit(_to_int(cleaned.get("limit"), DEFAULT_LIMIT)),
        filters=TaskFilters(
            status=TaskStatus(status) if status else None,
            sort_by=cleaned.get("sortBy"),
            sort_order=cleaned.get("sortOrder"),
        ),
    )
