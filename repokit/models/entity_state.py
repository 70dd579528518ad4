"""Entity lifecycle states."""

from enum import Enum


class EntityState(str, Enum):
    """Lifecycle state a store handle associates with an entity instance."""

    UNCHANGED = "UNCHANGED"
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    DETACHED = "DETACHED"

    @property
    def is_mutating(self) -> bool:
        """Check if the state results in a write on save."""
        return self in (EntityState.ADDED, EntityState.MODIFIED, EntityState.DELETED)
