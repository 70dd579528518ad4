"""Transaction boundary around a single store mutation."""

from __future__ import annotations

from types import TracebackType
from typing import TYPE_CHECKING, Optional

from repokit.errors import TransactionError
from repokit.logging import get_logger

if TYPE_CHECKING:
    from repokit.storage.store_handle import StoreHandle

logger = get_logger(__name__)


class TransactionScope:
    """
    All-or-nothing unit of work on a store handle.

    Commits only when ``complete()`` is reached. Leaving the ``with`` block
    any other way, including through an exception, rolls back every write
    made inside it and drops the handle's pending changes.

    Example:
        with handle.transaction() as transaction:
            handle.change_entity_state(entity, EntityState.ADDED)
            handle.save_changes()
            transaction.complete()
    """

    def __init__(self, handle: StoreHandle):
        self._handle = handle
        self._entered = False
        self._completed = False

    @property
    def completed(self) -> bool:
        """Check if the transaction was committed."""
        return self._completed

    def __enter__(self) -> TransactionScope:
        if self._entered:
            raise TransactionError("Transaction scope cannot be entered twice")
        if self._handle.active_transaction is not None:
            raise TransactionError("A transaction is already active on this store handle")

        session = self._handle.session
        if session.in_transaction():
            raise TransactionError("Store handle session has a transaction in progress")

        session.begin()
        self._entered = True
        self._handle.active_transaction = self
        return self

    def complete(self) -> None:
        """Commit all writes made inside the scope."""
        if not self._entered or self._handle.active_transaction is not self:
            raise TransactionError("Transaction scope is not active")
        if self._completed:
            raise TransactionError("Transaction already completed")

        self._handle.session.commit()
        self._completed = True

        logger.debug("transaction_committed")

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        self._handle.active_transaction = None

        if not self._completed:
            self._handle.session.rollback()
            self._handle.discard_pending()

            logger.warning(
                "transaction_rolled_back",
                error=repr(exc) if exc is not None else None,
            )

        return False
