from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = "NOT_FOUND"


class ConflictError(DomainError):
    """Raised on a uniqueness violation."""

    code = "CONFLICT"


class ValidationError(DomainError):
    """Raised when input data is malformed or out of range."""

    code = "VALIDATION_ERROR"


class BusinessLogicError(DomainError):
    """Raised when a domain rule blocks an otherwise well-formed operation."""

    code = "BUSINESS_LOGIC_ERROR"
