"""Error taxonomy shared by the token codec, the endpoint and the batch sender."""

from __future__ import annotations


class UnsubscribeError(Exception):
    """Base class. Carries the HTTP status and a stable code for the API layer."""

    status_code = 500
    code = "internal_error"
    default_message = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class MissingToken(UnsubscribeError):
    status_code = 400
    code = "missing_token"
    default_message = "Missing token parameter"


class InvalidToken(UnsubscribeError):
    """Signature or payload check failed. Callers can't tell which."""

    status_code = 400
    code = "invalid_token"
    default_message = "Invalid or expired token"


class BadRequest(UnsubscribeError):
    status_code = 400
    code = "bad_request"
    default_message = "Invalid request body"


class Unauthorized(UnsubscribeError):
    status_code = 401
    code = "unauthorized"
    default_message = "Not authenticated"


class StoreFailure(UnsubscribeError):
    code = "store_failure"
    default_message = "Store operation failed"


class SendFailure(UnsubscribeError):
    """A single message could not be dispatched. Collected per batch, not raised to HTTP."""

    code = "send_failure"
    default_message = "Send failed"


class InternalError(UnsubscribeError):
    pass


class ConfigError(Exception):
    """A required setting is missing or malformed."""
