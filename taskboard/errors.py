# taskboard/errors.py
"""Error types raised by the task service and mapped to responses in main.py."""

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"


class TaskboardError(Exception):
    """Base exception for the task API.

    ``is_operational`` errors are expected outcomes and are reported to the
    caller verbatim. Anything else is answered with a generic message.
    """

    status_code = 500
    error_code = ErrorCode.INTERNAL_ERROR
    is_operational = True

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return error_body(self.message, self.error_code, self.status_code)


class ValidationError(TaskboardError):
    """Bad, missing or malformed input. Carries every collected message."""

    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class NotFoundError(TaskboardError):
    """Referenced task id does not exist."""

    status_code = 404
    error_code = ErrorCode.NOT_FOUND


class InternalError(TaskboardError):
    """Unclassified fault, e.g. the store failed part of a batch."""

    status_code = 500
    error_code = ErrorCode.INTERNAL_ERROR
    is_operational = False

    def __init__(self, message: str = "Internal Server Error") -> None:
        super().__init__(message)


def error_body(message: str, error_code: ErrorCode, status_code: int) -> dict:
    """Build the JSON error envelope shared by every error response."""
    return {
        "error": {
            "message": message,
            "errorCode": error_code.value,
            "statusCode": status_code,
        }
    }
