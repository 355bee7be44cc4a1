"""Classification of Cosmos DB status codes.

Only two remote outcomes are ever translated into something other than an
error: "not found" (404) and "already exists" (409). Everything else is fatal
and must reach the caller untouched.
"""

from __future__ import annotations

from enum import StrEnum
from http import HTTPStatus


class StatusOutcome(StrEnum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    FATAL = "fatal"


def classify_status(status_code: int | None) -> StatusOutcome:
    """Map a transport status code onto a :class:`StatusOutcome`."""
    if status_code == HTTPStatus.NOT_FOUND:
        return StatusOutcome.NOT_FOUND
    if status_code == HTTPStatus.CONFLICT:
        return StatusOutcome.ALREADY_EXISTS
    return StatusOutcome.FATAL


def classify_error(exc: BaseException) -> StatusOutcome:
    """Classify an exception raised by the Cosmos SDK.

    Exceptions without an integer ``status_code`` (network errors, bugs) are
    always fatal.
    """
    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        return StatusOutcome.FATAL
    return classify_status(status_code)


def is_not_found(exc: BaseException) -> bool:
    return classify_error(exc) is StatusOutcome.NOT_FOUND


def is_already_exists(exc: BaseException) -> bool:
    return classify_error(exc) is StatusOutcome.ALREADY_EXISTS
