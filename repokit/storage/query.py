"""Lazy, restartable entity sequences."""

from collections.abc import Callable, Iterable, Iterator
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class LazyQuery(Generic[T]):
    """
    Deferred sequence of entities.

    Nothing is loaded until iteration starts, and every iteration asks the
    source again, so a query can be iterated any number of times. Filters
    added with ``where`` run in memory, one entity at a time.
    """

    def __init__(
        self,
        source: Callable[[], Iterable[T]],
        predicates: tuple[Callable[[T], bool], ...] = (),
    ):
        self._source = source
        self._predicates = predicates

    def __iter__(self) -> Iterator[T]:
        for entity in self._source():
            if all(predicate(entity) for predicate in self._predicates):
                yield entity

    def where(self, predicate: Callable[[T], bool]) -> "LazyQuery[T]":
        """Return a new query that also filters on ``predicate``."""
        return LazyQuery(self._source, self._predicates + (predicate,))

    def first(self) -> Optional[T]:
        """First matching entity, or None."""
        return next(iter(self), None)

    def to_list(self) -> list[T]:
        """Materialize every matching entity."""
        return list(self)

    def count(self) -> int:
        """Number of matching entities."""
        return sum(1 for _ in self)
