"""Repository-level exceptions.

Store-level failures raised by SQLAlchemy (connectivity, constraint
violations at commit time) are not part of this hierarchy; they reach the
caller unchanged after the transaction boundary has rolled back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repokit.models.validation import FieldError, ValidationResult


class RepositoryError(Exception):
    """Base class for repository-related errors."""


class EntityValidationError(RepositoryError):
    """Raised when an entity fails validation before add or update."""

    def __init__(self, result: ValidationResult):
        self.result = result
        summary = "; ".join(f"{error.field}: {error.message}" for error in result.errors)
        super().__init__(f"Entity validation failed: {summary}")

    @property
    def errors(self) -> list[FieldError]:
        """All field errors, in the order the validator reported them."""
        return list(self.result.errors)


class NotFoundError(RepositoryError):
    """Raised when an entity's identity does not exist in the store."""

    def __init__(self, entity_type: type, identity: tuple):
        self.entity_type = entity_type
        self.identity = identity
        super().__init__(f"{entity_type.__name__} not found: {identity!r}")


class MultipleResultsError(RepositoryError):
    """Raised when a single-result lookup matches more than one entity."""

    def __init__(self, entity_type: type):
        self.entity_type = entity_type
        super().__init__(
            f"More than one {entity_type.__name__} matched a key lookup; "
            "the predicate must be selective"
        )


class TransactionError(RepositoryError):
    """Raised when a transaction scope is misused."""


class RepositoryConfigurationError(RepositoryError):
    """Raised when a repository or store handle cannot be set up."""


__all__ = [
    "RepositoryError",
    "EntityValidationError",
    "NotFoundError",
    "MultipleResultsError",
    "TransactionError",
    "RepositoryConfigurationError",
]
