"""Store handle: the session-like object a repository talks to.

Lifecycle state is kept by the handle itself as an ordered queue of tagged
``(entity, state)`` changes. The SQLAlchemy session only sees those changes
when ``save_changes()`` applies them, and reads never go through it.
"""

from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from sqlalchemy import ColumnElement, inspect, select
from sqlalchemy.orm import Mapper, Session, make_transient, sessionmaker

from repokit.errors import (
    MultipleResultsError,
    NotFoundError,
    RepositoryConfigurationError,
    TransactionError,
)
from repokit.logging import get_logger
from repokit.models.entity_state import EntityState
from repokit.models.validation import ValidationResult
from repokit.services.entity_validation import Validator, column_value
from repokit.storage.query import LazyQuery
from repokit.storage.transaction import TransactionScope

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(eq=False)
class PendingChange:
    """A lifecycle state submitted for one entity instance."""

    entity: Any
    state: EntityState
    # Session-owned instance the change is written through
    counterpart: Any = None


class StoreHandle:
    """Store handle wrapping a SQLAlchemy session.

    Not thread-safe; use one handle per unit of work.
    """

    def __init__(self, session_factory: sessionmaker, validator: Optional[Validator] = None):
        """
        Initialize store handle.

        Args:
            session_factory: Factory for sessions bound to the store's engine
            validator: Rule engine used for per-entity validation queries
        """
        self._session_factory = session_factory
        self.session: Session = session_factory()
        self.validator = validator or Validator()
        self.active_transaction: Optional[TransactionScope] = None
        self._changes: dict[int, PendingChange] = {}

    def __enter__(self) -> "StoreHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # Reads

    def read(self, entity_type: type[T], clause: Optional[ColumnElement[bool]] = None) -> LazyQuery[T]:
        """
        Untracked read view of all entities of a type.

        Each iteration loads in a short-lived session and detaches the rows
        before yielding them.

        Args:
            entity_type: Mapped entity class
            clause: Optional SQL filter applied by the store
        """
        self.mapper_for(entity_type)

        def load() -> list[T]:
            stmt = select(entity_type)
            if clause is not None:
                stmt = stmt.where(clause)
            with self._session_factory() as session:
                entities = list(session.scalars(stmt).all())
                session.expunge_all()
            return entities

        return LazyQuery(load)

    def find_one(self, entity_type: type[T], clause: ColumnElement[bool]) -> Optional[T]:
        """Single entity matching a SQL clause, evaluated by the store."""
        self.mapper_for(entity_type)
        # Two rows are enough to tell a selective predicate from a broad one
        stmt = select(entity_type).where(clause).limit(2)
        with self._session_factory() as session:
            entities = list(session.scalars(stmt).all())
            session.expunge_all()

        if len(entities) > 1:
            raise MultipleResultsError(entity_type)
        return entities[0] if entities else None

    # Lifecycle state

    def attach(self, entity: Any) -> Any:
        """
        Bind an entity to its persisted counterpart by identity.

        Only allowed inside a transaction scope, so the lookup never leaves
        a transaction open on the session.

        Raises:
            TransactionError: No transaction scope is active
            NotFoundError: No stored row has the entity's identity
        """
        if self.active_transaction is None:
            raise TransactionError("Entities can only be attached inside a transaction scope")

        entity_type = type(entity)
        identity = self.identity_of(entity)

        counterpart = None
        if None not in identity:
            counterpart = self.session.get(entity_type, identity, populate_existing=True)
        if counterpart is None:
            raise NotFoundError(entity_type, identity)

        self._changes[id(entity)] = PendingChange(entity, EntityState.UNCHANGED, counterpart)
        return entity

    def change_entity_state(self, entity: Any, state: EntityState) -> None:
        """
        Associate a lifecycle state with an entity instance.

        MODIFIED and DELETED attach the entity first if it is not tracked.
        MODIFIED writes every column on save, unset ones included.
        DETACHED stops tracking it and removes it from the session.
        """
        key = id(entity)

        if state is EntityState.DETACHED:
            change = self._changes.pop(key, None)
            target = change.counterpart if change is not None else entity
            if target is not None and target in self.session:
                self.session.expunge(target)
            if entity is not target and entity in self.session:
                self.session.expunge(entity)
            return

        if state is EntityState.ADDED:
            change = PendingChange(entity, state, counterpart=entity)
        else:
            if key not in self._changes or self._changes[key].counterpart is None:
                self.attach(entity)
            change = self._changes[key]
            change.state = state

        # Resubmitting moves the change to the back of the queue
        self._changes.pop(key, None)
        self._changes[key] = change

    def entity_state(self, entity: Any) -> EntityState:
        """Lifecycle state of an entity instance; DETACHED when untracked."""
        change = self._changes.get(id(entity))
        return change.state if change is not None else EntityState.DETACHED

    def save_changes(self) -> int:
        """
        Write all pending changes, in submission order.

        Returns:
            Number of entities written
        """
        written = 0

        for change in list(self._changes.values()):
            if not change.state.is_mutating:
                continue

            if change.state is EntityState.ADDED:
                if inspect(change.entity).detached:
                    make_transient(change.entity)
                self.session.add(change.entity)
            elif change.state is EntityState.MODIFIED:
                self._write_columns(change.entity, change.counterpart)
            else:
                self.session.delete(change.counterpart)
            written += 1

        self.session.flush()

        for key, change in list(self._changes.items()):
            if change.state is EntityState.DELETED:
                del self._changes[key]
            else:
                change.state = EntityState.UNCHANGED

        logger.debug("changes_saved", written=written)

        return written

    def _write_columns(self, entity: Any, counterpart: Any) -> None:
        """Copy every non-key column of the entity onto its stored counterpart."""
        mapper = self.mapper_for(type(entity))
        loaded = inspect(entity).dict
        for prop in mapper.column_attrs:
            column = prop.columns[0]
            if column.primary_key:
                continue
            # The store owns unset server-side defaults
            if prop.key not in loaded and getattr(column, "server_default", None) is not None:
                continue
            setattr(counterpart, prop.key, column_value(entity, prop))

    def discard_pending(self) -> None:
        """Forget every tracked entity and empty the session."""
        self._changes.clear()
        self.session.expunge_all()

    @property
    def pending_changes(self) -> list[PendingChange]:
        """Tracked entities in submission order."""
        return list(self._changes.values())

    # Transactions and validation

    def transaction(self) -> TransactionScope:
        """Create a transaction scope bound to this handle."""
        return TransactionScope(self)

    def get_validation_result(self, entity: Any) -> ValidationResult:
        """Validation result for an entity under its declarative rules."""
        return self.validator.get_validation_errors(entity)

    # Mapping helpers

    def mapper_for(self, entity_type: type) -> Mapper:
        """Mapper of an entity type.

        Raises:
            RepositoryConfigurationError: The type is not mapped
        """
        mapper = inspect(entity_type, raiseerr=False)
        if not isinstance(mapper, Mapper):
            raise RepositoryConfigurationError(
                f"{entity_type.__name__} is not a mapped entity type"
            )
        return mapper

    def identity_of(self, entity: Any) -> tuple:
        """Primary key values of an entity, without loading anything."""
        mapper = self.mapper_for(type(entity))
        values = inspect(entity).dict
        return tuple(
            values.get(mapper.get_property_by_column(column).key)
            for column in mapper.primary_key
        )

    def close(self) -> None:
        """Discard pending changes and close the session."""
        self._changes.clear()
        self.session.close()
