"""Models package - entity state and validation models."""

from .entity_state import EntityState
from .validation import FieldError, ValidationResult

__all__ = [
    "EntityState",
    "FieldError",
    "ValidationResult",
]
