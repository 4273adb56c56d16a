"""Domain errors raised by services and mapped to HTTP responses in main.py.

Every error carries the user-facing ``msg`` that ends up in the
``{"msg": ...}`` response body, so clients can show it verbatim.
"""


class MyCircleError(Exception):
    """Base class for errors with a client-facing message."""

    status_code = 500

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


class NotFound(MyCircleError):
    """Missing entity, or one the caller has no rights on (never distinguished)."""

    status_code = 404


class InvalidOperation(MyCircleError):
    status_code = 400


class ContentViolation(InvalidOperation):
    """Text rejected by the profanity filter or the AI moderator."""


class Conflict(MyCircleError):
    status_code = 400


class Forbidden(MyCircleError):
    status_code = 403


class Unauthorized(MyCircleError):
    status_code = 401


class UpstreamFailure(MyCircleError):
    """A third-party call failed or timed out."""

    status_code = 502
