"""
Data source providers.

A provider turns a DataSourceConfig into a SQLAlchemy engine and reports the
DB-API paramstyle its driver expects, so statements written with ``?``
placeholders can be rewritten for the driver.
"""

from typing import Dict, Optional, Type

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config_schema import DataSourceConfig, ProviderType

logger = structlog.get_logger()


class DataSourceProvider:
    """Base provider: builds an engine for one configured data source."""

    provider_type: ProviderType

    def __init__(self, config: DataSourceConfig, name: Optional[str] = None):
        if config.provider_type != self.provider_type:
            raise ValueError(
                f"{type(self).__name__} cannot serve {config.provider_type.value} data sources"
            )
        self.config = config
        self.name = name or config.provider_type.value
        self._engine: Optional[Engine] = None

    def _engine_kwargs(self) -> Dict:
        return {"echo": self.config.echo}

    def create_engine(self) -> Engine:
        """Create (once) and return the engine for this data source."""
        if self._engine is None:
            self._engine = create_engine(self.config.url(), **self._engine_kwargs())
            logger.debug("Engine created", provider=self.name, url=str(self._engine.url))
        return self._engine

    @property
    def paramstyle(self) -> str:
        return self.create_engine().dialect.loaded_dbapi.paramstyle

    def dispose(self):
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class SQLiteDataSourceProvider(DataSourceProvider):
    """SQLite via the standard library pysqlite driver."""

    provider_type = ProviderType.SQLITE

    def _engine_kwargs(self) -> Dict:
        kwargs = super()._engine_kwargs()
        if self.config.path is None:
            # In-memory databases exist per connection: share a single one so
            # the schema and the borrowed connection see the same tables.
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs

    def create_engine(self) -> Engine:
        created = self._engine is None
        engine = super().create_engine()
        if created:
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class PostgreSQLDataSourceProvider(DataSourceProvider):
    """PostgreSQL via psycopg 3."""

    provider_type = ProviderType.POSTGRESQL

    def _engine_kwargs(self) -> Dict:
        kwargs = super()._engine_kwargs()
        kwargs["pool_pre_ping"] = True
        kwargs["connect_args"] = {"connect_timeout": 10}
        return kwargs


PROVIDERS: Dict[ProviderType, Type[DataSourceProvider]] = {
    ProviderType.SQLITE: SQLiteDataSourceProvider,
    ProviderType.POSTGRESQL: PostgreSQLDataSourceProvider,
}


def get_provider(config: DataSourceConfig, name: Optional[str] = None) -> DataSourceProvider:
    """
    Select the provider class for a data source configuration.

    Args:
        config: Validated data source configuration
        name: Display name used in logs and reports (defaults to the provider type)

    Returns:
        DataSourceProvider instance
    """
    return PROVIDERS[config.provider_type](config, name=name)
