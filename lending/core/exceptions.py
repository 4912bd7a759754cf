from __future__ import annotations

from typing import Any


class LendingError(Exception):
    """Base class for domain errors surfaced to API callers."""

    status_code = 400
    code = "bad_request"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(LendingError):
    status_code = 404
    code = "not_found"


class ConflictError(LendingError):
    status_code = 409
    code = "conflict"


class DomainValidationError(LendingError):
    status_code = 400
    code = "validation_error"


class DependencyFailure(Exception):
    """A follow-up write failed after the primary record was persisted.

    Never surfaced to API callers; the caller logs it and keeps the primary
    record.
    """
