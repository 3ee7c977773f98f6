from datetime import datetime, timedelta, timezone

import pytest

from taskboard.errors import ValidationError
from taskboard.models import TaskPriority, TaskStatus
from taskboard.validation import (
    strip_html,
    validate_create_task,
    validate_list_query,
    validate_update_task,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def messages_for(validate, body) -> list[str]:
    with pytest.raises(ValidationError) as excinfo:
        validate(body, now=NOW)
    return excinfo.value.messages


class TestStripHtml:
    def test_removes_tags_and_trims(self):
        assert strip_html("  <b>Hi</b>  ") == "Hi"

    def test_keeps_plain_text(self):
        assert strip_html("a < b") == "a < b"


class TestCreatePayload:
    def test_title_is_sanitized(self):
        payload = validate_create_task({"title": "  <b>Hi</b>  "}, now=NOW)
        assert payload.title == "Hi"
        assert payload.priority is None
        assert payload.due_date is None

    def test_markup_only_title_is_empty(self):
        assert messages_for(validate_create_task, {"title": "<br/>"}) == [
            "Title is required and must not be empty"
        ]

    def test_title_must_be_string(self):
        assert messages_for(validate_create_task, {"title": None}) == ["Title must be a string"]

    def test_title_length_counts_text_after_stripping(self):
        assert validate_create_task({"title": "<em>" + "x" * 255 + "</em>"}, now=NOW).title == "x" * 255
        assert messages_for(validate_create_task, {"title": "x" * 256}) == [
            "Title must not exceed 255 characters"
        ]

    def test_description_limit(self):
        assert messages_for(validate_create_task, {"title": "t", "description": "d" * 1001}) == [
            "Description must not exceed 1000 characters"
        ]

    def test_low_priority_needs_no_due_date(self):
        payload = validate_create_task({"title": "t", "priority": "low"}, now=NOW)
        assert payload.priority == TaskPriority.low

    def test_non_high_priority_ignores_due_date_window(self):
        payload = validate_create_task(
            {"title": "t", "priority": "medium", "dueDate": iso(NOW - timedelta(days=30))}, now=NOW
        )
        assert payload.due_date == iso(NOW - timedelta(days=30))

    @pytest.mark.parametrize(
        "due",
        [None, NOW - timedelta(minutes=1), NOW + timedelta(days=7, seconds=1), NOW + timedelta(days=30)],
    )
    def test_high_priority_due_date_outside_window_fails(self, due):
        body = {"title": "t", "priority": "high"}
        if due is not None:
            body["dueDate"] = iso(due)
        assert messages_for(validate_create_task, body) == [
            "High priority tasks must have a due date within the next 7 days"
        ]

    @pytest.mark.parametrize("due", [NOW, NOW + timedelta(days=3), NOW + timedelta(days=7)])
    def test_high_priority_due_date_inside_window_passes(self, due):
        payload = validate_create_task({"title": "t", "priority": "high", "dueDate": iso(due)}, now=NOW)
        assert payload.priority == TaskPriority.high

    def test_invalid_due_date_reports_format_only(self):
        assert messages_for(validate_create_task, {"title": "t", "priority": "high", "dueDate": "soon"}) == [
            "Due date must be a valid ISO 8601 date string (e.g. 2026-03-01T00:00:00.000Z)"
        ]

    def test_date_only_due_date_is_accepted(self):
        assert validate_create_task({"title": "t", "dueDate": "2026-01-01"}, now=NOW).due_date == "2026-01-01"

    def test_collects_every_failure(self):
        messages = messages_for(
            validate_create_task, {"title": "", "priority": "urgent", "owner": "me"}
        )
        assert messages == [
            "Title is required and must not be empty",
            "Priority must be one of: low, medium, high",
            "property owner should not exist",
        ]

    def test_error_message_joins_messages(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_create_task({"priority": "urgent"}, now=NOW)
        assert excinfo.value.message == (
            "Title is required and must not be empty; Priority must be one of: low, medium, high"
        )

    @pytest.mark.parametrize("body", [None, [], "title", 3])
    def test_body_must_be_object(self, body):
        assert messages_for(validate_create_task, body) == ["Request body must be a JSON object"]


class TestUpdatePayload:
    def test_only_sent_fields_are_set(self):
        payload = validate_update_task({"status": "completed"}, now=NOW)
        assert payload.status == TaskStatus.completed
        assert payload.model_fields_set == {"status"}

    def test_empty_update_is_allowed(self):
        assert validate_update_task({}, now=NOW).model_dump(exclude_unset=True) == {}

    def test_unknown_status_names_allowed_values(self):
        assert messages_for(validate_update_task, {"status": "archived"}) == [
            "Status must be one of: pending, in-progress, completed"
        ]

    def test_blank_title_fails(self):
        assert messages_for(validate_update_task, {"title": "   "}) == [
            "Title, if provided, must not be empty"
        ]

    def test_raising_priority_to_high_needs_due_date(self):
        assert messages_for(validate_update_task, {"priority": "high"}) == [
            "High priority tasks must have a due date within the next 7 days"
        ]

    def test_immutable_fields_are_rejected(self):
        assert messages_for(validate_update_task, {"id": "x", "createdAt": "2026-01-01"}) == [
            "property id should not exist",
            "property createdAt should not exist",
        ]


class TestListQuery:
    def test_defaults(self):
        query = validate_list_query({})
        assert (query.page, query.limit) == (1, 10)
        assert query.filters.status is None
        assert query.filters.sort_by is None

    def test_normalizes_values(self):
        query = validate_list_query(
            {"page": "3", "limit": "500", "status": "in-progress", "sortBy": "dueDate", "sortOrder": "asc"}
        )
        assert (query.page, query.limit) == (3, 100)
        assert query.filters.status == TaskStatus.in_progress
        assert query.filters.sort_by == "dueDate"
        assert query.filters.sort_order == "asc"

    @pytest.mark.parametrize(
        "params, expected",
        [({"page": "0"}, (1, 10)), ({"page": "-2"}, (1, 10)), ({"limit": "0"}, (1, 10)), ({"limit": "-5"}, (1, 1))],
    )
    def test_out_of_range_numbers_are_clamped(self, params, expected):
        query = validate_list_query(params)
        assert (query.page, query.limit) == expected

    def test_long_digit_strings_are_clamped(self):
        assert validate_list_query({"limit": "9" * 400}).limit == 100
        assert validate_list_query({"limit": "-" + "9" * 400}).limit == 1

        query = validate_list_query({"page": "1" + "0" * 400})
        assert query.page >= 1
        assert validate_list_query({"page": "-" + "1" * 400}).page == 1

    def test_large_page_is_exact(self):
        assert validate_list_query({"page": "12345678901234567"}).page == 12345678901234567
        assert validate_list_query({"page": "12345678901234567.9"}).page == 12345678901234567

    def test_only_ascii_digits_are_numbers(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_list_query({"page": "٣", "limit": "５"})
        assert excinfo.value.messages == ["Page must be a number", "Limit must be a number"]

    def test_unknown_params_are_ignored(self):
        assert validate_list_query({"search": "x"}).page == 1

    def test_invalid_params_are_collected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_list_query({"limit": "ten", "status": "done", "sortOrder": "up"})
        assert excinfo.value.messages == [
            "Limit must be a number",
            "Status filter must be one of: pending, in-progress, completed",
            "sortOrder must be one of: asc, desc",
        ]
