"""Storage package - store handles, transactions and repositories."""

from .database import Database, get_database
from .db_models import Base
from .query import LazyQuery
from .repository import Repository
from .repository_base import Predicate, RepositoryBase, StoreHandleProvider
from .store_handle import PendingChange, StoreHandle
from .transaction import TransactionScope

__all__ = [
    "Base",
    "Database",
    "get_database",
    "LazyQuery",
    "PendingChange",
    "Predicate",
    "Repository",
    "RepositoryBase",
    "StoreHandle",
    "StoreHandleProvider",
    "TransactionScope",
]
