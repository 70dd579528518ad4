"""Generic repository for any mapped entity type."""

from itertools import islice
from typing import Optional, TypeVar

from sqlalchemy import ColumnElement

from repokit.errors import (
    EntityValidationError,
    MultipleResultsError,
    RepositoryConfigurationError,
)
from repokit.logging import get_logger
from repokit.models.entity_state import EntityState
from repokit.models.validation import FieldError, ValidationResult
from repokit.storage.query import LazyQuery
from repokit.storage.repository_base import Predicate, RepositoryBase, StoreHandleProvider
from repokit.storage.store_handle import StoreHandle

logger = get_logger(__name__)

T = TypeVar("T")


class Repository(RepositoryBase[T]):
    """
    CRUD repository for one entity type.

    Reads return detached snapshots and never open a transaction. Writes are
    validated first; only admissible entities reach a transaction, and add
    and update hand the entity back detached so later saves on the same
    handle cannot pick it up.

    Example:
        repo = Repository(Widget, provider=database)
        widget = repo.add(Widget(id=1, name="A"))
        repo.find_with_key(Widget.id == 1)
    """

    def __init__(
        self,
        entity_type: type[T],
        handle: Optional[StoreHandle] = None,
        provider: Optional[StoreHandleProvider] = None,
    ):
        """
        Initialize repository.

        Args:
            entity_type: Mapped, default-constructible entity class
            handle: Store handle to use, e.g. one shared with other repositories
            provider: Asked once for a handle when none is given
        """
        self.entity_type = entity_type

        if handle is None:
            if provider is None:
                raise RepositoryConfigurationError(
                    f"Repository[{entity_type.__name__}] needs a store handle or a handle provider"
                )
            handle = provider.get_handle(entity_type())

        self.handle = handle

    def all(self) -> LazyQuery[T]:
        """Retrieve every entity, untracked."""
        return self.handle.read(self.entity_type)

    def query(self, predicate: Predicate) -> LazyQuery[T]:
        """
        Retrieve entities matching a predicate, untracked.

        A callable is applied in memory to each entity of ``all()``; a SQL
        clause is sent to the store as a filter.
        """
        if isinstance(predicate, ColumnElement):
            return self.handle.read(self.entity_type, predicate)
        return self.all().where(predicate)

    def find_with_key(self, predicate: Predicate) -> Optional[T]:
        """
        Retrieve the single entity matching a selective predicate.

        Returns:
            The matching entity, or None if nothing matches

        Raises:
            MultipleResultsError: More than one entity matched
        """
        if isinstance(predicate, ColumnElement):
            return self.handle.find_one(self.entity_type, predicate)

        matches = list(islice(self.all().where(predicate), 2))
        if len(matches) > 1:
            raise MultipleResultsError(self.entity_type)
        return matches[0] if matches else None

    def add(self, entity: T) -> T:
        """
        Validate and insert entity.

        Returns:
            The same entity, detached

        Raises:
            EntityValidationError: The entity broke one or more rules
        """
        validation_result = self._get_validation_errors(entity)
        if not validation_result.is_valid:
            self._raise_validation_error(entity, "add", validation_result)

        with self.handle.transaction() as transaction:
            self._change_entity_state(entity, EntityState.ADDED)
            self.handle.save_changes()
            transaction.complete()
            self._change_entity_state(entity, EntityState.DETACHED)

        logger.info(
            "entity_added",
            entity_type=self.entity_type.__name__,
            identity=self._identity(entity),
        )

        return entity

    def update(self, entity: T) -> T:
        """
        Validate entity and write it over its stored counterpart.

        Returns:
            The same entity, detached

        Raises:
            EntityValidationError: The entity broke one or more rules
            NotFoundError: No stored entity has this identity
        """
        validation_result = self._get_validation_errors(entity)
        if not validation_result.is_valid:
            self._raise_validation_error(entity, "update", validation_result)

        with self.handle.transaction() as transaction:
            self.handle.attach(entity)
            self._change_entity_state(entity, EntityState.MODIFIED)
            self.handle.save_changes()
            transaction.complete()
            self._change_entity_state(entity, EntityState.DETACHED)

        logger.info(
            "entity_updated",
            entity_type=self.entity_type.__name__,
            identity=self._identity(entity),
        )

        return entity

    def delete(self, entity: T) -> None:
        """
        Delete entity by its identity. No validation.

        Raises:
            NotFoundError: No stored entity has this identity
        """
        with self.handle.transaction() as transaction:
            self.handle.attach(entity)
            self._change_entity_state(entity, EntityState.DELETED)
            self.handle.save_changes()
            transaction.complete()

        logger.info(
            "entity_deleted",
            entity_type=self.entity_type.__name__,
            identity=self._identity(entity),
        )

    def validate(self, entity: T) -> list[FieldError]:
        """Validate entity without touching the store. Empty means valid."""
        return list(self._get_validation_errors(entity).errors)

    def entity_state(self, entity: T) -> EntityState:
        """Lifecycle state the handle associates with the entity."""
        return self.handle.entity_state(entity)

    def _change_entity_state(self, entity: T, state: EntityState) -> None:
        self.handle.change_entity_state(entity, state)

    def _get_validation_errors(self, entity: T) -> ValidationResult:
        return self.handle.get_validation_result(entity)

    def _raise_validation_error(self, entity: T, operation: str, result: ValidationResult) -> None:
        logger.warning(
            "entity_validation_failed",
            entity_type=self.entity_type.__name__,
            operation=operation,
            fields=result.fields,
        )
        raise EntityValidationError(result)

    def _identity(self, entity: T) -> list:
        return list(self.handle.identity_of(entity))
