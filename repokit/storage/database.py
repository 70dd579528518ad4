"""Database connection management and store handle provider."""

from typing import Any, Optional

from sqlalchemy import Engine, MetaData, create_engine, inspect, make_url
from sqlalchemy.orm import Mapper, sessionmaker
from sqlalchemy.pool import StaticPool

from repokit.config.settings import Settings, load_settings
from repokit.errors import RepositoryConfigurationError
from repokit.logging import get_logger
from repokit.services.entity_validation import Validator
from repokit.storage.db_models import Base
from repokit.storage.store_handle import StoreHandle

logger = get_logger(__name__)


class Database:
    """Database connection manager.

    Also serves as a store handle provider: ``get_handle`` returns a new
    handle bound to this database for the sample entity's type.
    """

    def __init__(self, settings: Settings, validator: Optional[Validator] = None):
        """
        Initialize database connection.

        Args:
            settings: Settings with database URL
            validator: Rule engine shared by every handle from this database
        """
        self.settings = settings
        self.validator = validator or Validator()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        """Connected engine."""
        if self._engine is None:
            raise RepositoryConfigurationError("Database not connected. Call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create database engine and session factory."""
        if self._engine is not None:
            return

        url = make_url(self.settings.database_url)
        engine_options: dict[str, Any] = {"echo": self.settings.database_echo}

        if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
            # Every session must share the one in-memory database
            engine_options["poolclass"] = StaticPool
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            engine_options["pool_pre_ping"] = True

        self._engine = create_engine(url, **engine_options)

        self._session_factory = sessionmaker(
            self._engine,
            expire_on_commit=False,
        )

        logger.info("database_connected", url=url.render_as_string(hide_password=True))

    def disconnect(self) -> None:
        """Close database connections."""
        if self._engine is None:
            return

        self._engine.dispose()
        self._engine = None
        self._session_factory = None

        logger.info("database_disconnected")

    def create_tables(self, metadata: Optional[MetaData] = None) -> None:
        """Create all entity tables. Use migrations in production."""
        (metadata or Base.metadata).create_all(self.engine)

        logger.info("database_tables_created")

    def get_handle(self, sample: Any) -> StoreHandle:
        """
        Get a store handle for the sample entity's type.

        Args:
            sample: Representative entity instance, used only to resolve its table

        Returns:
            New store handle with its own session

        Raises:
            RepositoryConfigurationError: Not connected, or the sample is not mapped
        """
        if self._session_factory is None:
            raise RepositoryConfigurationError("Database not connected. Call connect() first.")

        mapper = inspect(type(sample), raiseerr=False)
        if not isinstance(mapper, Mapper):
            raise RepositoryConfigurationError(
                f"{type(sample).__name__} is not a mapped entity type"
            )

        logger.debug(
            "store_handle_created",
            entity_type=type(sample).__name__,
            table=getattr(mapper.local_table, "name", None),
        )

        return StoreHandle(self._session_factory, validator=self.validator)


# Global database instance
_db_instance: Database | None = None


def get_database() -> Database:
    """Get or create global database instance."""
    global _db_instance
    if _db_instance is None:
        settings = load_settings()
        _db_instance = Database(settings)
    return _db_instance
