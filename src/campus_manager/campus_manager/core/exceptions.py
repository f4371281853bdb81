from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    `errors` carries per-field messages when the failure came from payload
    validation; plain rule violations leave it empty.
    """

    def __init__(self, message: str, errors: Sequence[FieldError] = ()):
        super().__init__(message)
        self.errors = list(errors)


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a record does not exist or is outside the caller's branch."""

    status_code = 404
