"""Repository base interface."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Generic, Optional, Protocol, TypeVar, Union

from sqlalchemy import ColumnElement

from repokit.models.validation import FieldError
from repokit.storage.query import LazyQuery
from repokit.storage.store_handle import StoreHandle

T = TypeVar("T")

# A Python callable is evaluated in memory; a SQL clause is evaluated by the store
Predicate = Union[Callable[[T], bool], ColumnElement[bool]]


class StoreHandleProvider(Protocol):
    """Supplies store handles scoped to an entity type."""

    def get_handle(self, sample: Any) -> StoreHandle:
        """Return a handle for the sample entity's type."""
        ...


class RepositoryBase(ABC, Generic[T]):
    """Base repository interface for CRUD operations."""

    @abstractmethod
    def all(self) -> LazyQuery[T]:
        """Retrieve every entity, untracked."""
        pass

    @abstractmethod
    def query(self, predicate: Predicate) -> LazyQuery[T]:
        """Retrieve entities matching a predicate, untracked."""
        pass

    @abstractmethod
    def find_with_key(self, predicate: Predicate) -> Optional[T]:
        """Retrieve the single entity matching a selective predicate."""
        pass

    @abstractmethod
    def add(self, entity: T) -> T:
        """Validate and insert entity."""
        pass

    @abstractmethod
    def update(self, entity: T) -> T:
        """Validate and update existing entity."""
        pass

    @abstractmethod
    def delete(self, entity: T) -> None:
        """Delete existing entity."""
        pass

    @abstractmethod
    def validate(self, entity: T) -> list[FieldError]:
        """Validate entity without touching the store."""
        pass
