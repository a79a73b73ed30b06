"""Errors, the authenticated user and date-time helpers shared by the services."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

WIRE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_DATETIME_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?P<sep>[Tt ])"
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:?\d{2})?$"
)


class ApiError(Exception):
    """An error that maps onto an HTTP error response."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Return the JSON body sent to the client."""
        return {"error": {"code": self.code, "message": self.message}}


class BadRequestError(ApiError):
    """The request was malformed or failed validation."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "BAD_REQUEST"


class NotFoundError(ApiError):
    """The requested resource does not exist for this user."""

    status_code = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"


class InternalError(ApiError):
    """An unexpected failure, usually in the database layer."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"


@dataclass(frozen=True)
class AuthenticatedUser:
    """The user on whose behalf a request is made."""

    user_id: str


def parse_datetime(text: str) -> datetime:
    """Parse an ISO 8601 timestamp into a naive UTC datetime.

    A timestamp with an offset (or ``Z``) is converted to UTC; one without an
    offset must use the ``T`` separator and is taken as UTC already.
    """
    match = _DATETIME_RE.match(text) if isinstance(text, str) else None
    if match is None:
        raise BadRequestError(f"Invalid datetime: {text}")
    tz = match["tz"]
    if tz is None and match["sep"] != "T":
        raise BadRequestError(f"Invalid datetime: {text}")
    fraction = (match["fraction"] or "")[:6].ljust(6, "0")
    try:
        value = datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
            int(fraction),
        )
    except ValueError as exc:
        raise BadRequestError(f"Invalid datetime: {text}") from exc
    if tz and tz not in ("Z", "z"):
        digits = tz[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        value = value - offset if tz[0] == "+" else value + offset
    return value


def format_datetime(value: datetime) -> str:
    """Format a naive UTC datetime the way responses carry it."""
    return value.strftime(WIRE_FORMAT)


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)