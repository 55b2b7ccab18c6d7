"""Application error model.

Every failure that reaches an API client is an ``AppError`` with a closed
``ErrorKind``. ``describe_error`` turns anything that was caught (exceptions,
provider error payloads, ``None``) into a readable sentence so a serialized
object never ends up in front of a user.
"""

import json
from enum import Enum

FALLBACK_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

NETWORK_ERROR_MESSAGE = (
    "Network error: the service could not reach its data store. "
    "Check connectivity and try again."
)


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to clients."""

    NETWORK = "network"
    AUTH_EXISTS = "auth_exists"
    AUTH_INVALID = "auth_invalid"
    RATE_LIMITED = "rate_limited"
    VALIDATION = "validation"
    ORACLE = "oracle"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


# HTTP status used when an AppError escapes a route
STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NETWORK: 503,
    ErrorKind.AUTH_EXISTS: 409,
    ErrorKind.AUTH_INVALID: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.VALIDATION: 422,
    ErrorKind.ORACLE: 502,
    ErrorKind.CONFIGURATION: 503,
    ErrorKind.UNKNOWN: 500,
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: NETWORK_ERROR_MESSAGE,
    ErrorKind.AUTH_EXISTS: "This email is already registered. Please sign in instead.",
    ErrorKind.AUTH_INVALID: "Invalid email or password.",
    ErrorKind.RATE_LIMITED: "Too many attempts. Please wait a few minutes.",
    ErrorKind.VALIDATION: "Some fields are missing or invalid.",
    ErrorKind.ORACLE: "Verification service is unavailable.",
    ErrorKind.CONFIGURATION: "The service is not configured. Contact an administrator.",
    ErrorKind.UNKNOWN: FALLBACK_ERROR_MESSAGE,
}


class AppError(Exception):
    """Failure with a category and a human-readable message."""

    def __init__(self, kind: ErrorKind, message: str | None = None, field: str | None = None):
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.field = field
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "kind": self.kind.value}
        if self.field:
            payload["field"] = self.field
        return payload

    @classmethod
    def validation(cls, message: str, field: str | None = None) -> "AppError":
        return cls(ErrorKind.VALIDATION, message, field=field)


class SyncFailure(AppError):
    """A profile or submission read/write against the store failed."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.NETWORK, message)


def describe_error(error) -> str:
    """Normalize any caught error to a display string.

    Order: ``message`` -> ``error_description`` -> ``detail`` -> JSON dump
    -> fixed fallback. Never returns an empty string.
    """
    if error is None:
        return FALLBACK_ERROR_MESSAGE
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, str):
        return error.strip() or FALLBACK_ERROR_MESSAGE
    if isinstance(error, BaseException):
        text = str(error).strip()
        return text or type(error).__name__

    for attr in ("message", "error_description", "detail"):
        value = error.get(attr) if isinstance(error, dict) else getattr(error, attr, None)
        if isinstance(value, str) and value.strip():
            return value.strip()

    try:
        dumped = json.dumps(error)
    except (TypeError, ValueError):
        return FALLBACK_ERROR_MESSAGE
    if dumped in ("{}", "[]", "null", '""'):
        return FALLBACK_ERROR_MESSAGE
    return dumped
