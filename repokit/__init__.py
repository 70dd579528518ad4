"""repokit - generic validated, transactional repository over SQLAlchemy."""

from repokit.errors import (
    EntityValidationError,
    MultipleResultsError,
    NotFoundError,
    RepositoryConfigurationError,
    RepositoryError,
    TransactionError,
)
from repokit.models import EntityState, FieldError, ValidationResult
from repokit.services.entity_validation import Validator
from repokit.storage import Base, Database, LazyQuery, Repository, StoreHandle

__all__ = [
    "Base",
    "Database",
    "EntityState",
    "EntityValidationError",
    "FieldError",
    "LazyQuery",
    "MultipleResultsError",
    "NotFoundError",
    "Repository",
    "RepositoryConfigurationError",
    "RepositoryError",
    "StoreHandle",
    "TransactionError",
    "ValidationResult",
    "Validator",
]
