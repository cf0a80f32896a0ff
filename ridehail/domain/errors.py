"""
Domain error taxonomy.

Every business-rule failure raises one of these; the API layer maps
``status_code`` onto the HTTP response and renders ``message`` as the
``detail`` field.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DomainError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(DomainError):
    """Entity absent, or a state / ownership precondition failed."""

    status_code = 404


class ConflictError(DomainError):
    """Duplicate registration or a lost race."""

    status_code = 409


class AuthError(DomainError):
    """Bad credentials, banned account, expired or revoked token.

    401 by default; pass ``status_code=403`` for authenticated callers
    that are not allowed through.
    """

    status_code = 401


class ConfigurationError(DomainError):
    """A system invariant is violated (e.g. an account without a wallet)."""

    status_code = 500


class InvalidStateTransition(ValidationError):
    """Raised when a trip status change violates the state machine."""
