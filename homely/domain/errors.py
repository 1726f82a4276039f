# homely/domain/errors.py
from __future__ import annotations


class DomainError(Exception):
    """Base for every failure a service reports back to its caller."""

    code = "error"
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.code.replace("_", " ")
        super().__init__(self.message)


class Unauthorized(DomainError):
    """No caller identity, or one that could not be verified."""

    code = "unauthorized"
    status_code = 401


class Forbidden(DomainError):
    """Caller is known but the policy denies the action."""

    code = "forbidden"
    status_code = 403


class NotFound(DomainError):
    code = "not_found"
    status_code = 404


class InvalidArgument(DomainError):
    code = "invalid_argument"
    status_code = 400


class InvalidTransition(DomainError):
    """Status change is not an edge of the state graph."""

    code = "invalid_transition"
    status_code = 400


class InvalidState(DomainError):
    """A precondition on the current status is not met."""

    code = "invalid_state"
    status_code = 400
