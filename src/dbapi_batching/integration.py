"""
Connection scope and schema lifecycle for a data source.

The harness never opens connections itself: it borrows a raw DB-API
connection from ``do_in_connection`` and the transaction boundary
(commit on success, rollback on error) is owned here.
"""

from typing import Any, Callable, Optional, TypeVar

import structlog
from sqlalchemy.engine import Engine

from .entities import BatchEntityProvider
from .providers import DataSourceProvider

logger = structlog.get_logger()

T = TypeVar("T")


class DataSourceProviderIntegration:
    """
    Schema setup plus transactional connection borrowing for one provider.

    Usage:
        with DataSourceProviderIntegration(provider) as integration:
            integration.do_in_connection(lambda connection: ...)
    """

    def __init__(
        self,
        provider: DataSourceProvider,
        entity_provider: Optional[BatchEntityProvider] = None
    ):
        self.provider = provider
        self.entity_provider = entity_provider or BatchEntityProvider()
        self.engine: Optional[Engine] = None

    @property
    def paramstyle(self) -> str:
        return self.provider.paramstyle

    def init(self):
        """Create the engine and a fresh schema."""
        self.engine = self.provider.create_engine()
        self.reset_schema()

    def reset_schema(self):
        """Drop and re-create every entity table."""
        engine = self._require_engine()
        metadata = self.entity_provider.metadata
        metadata.drop_all(engine)
        metadata.create_all(engine)
        logger.debug("Schema ready", provider=self.provider.name,
                     tables=[table.name for table in metadata.sorted_tables])

    def destroy(self):
        """Drop the schema and dispose of the engine."""
        if self.engine is None:
            return
        try:
            self.entity_provider.metadata.drop_all(self.engine)
        finally:
            self.provider.dispose()
            self.engine = None

    def do_in_connection(self, callback: Callable[[Any], T]) -> T:
        """
        Run callback with a borrowed DB-API connection inside one transaction.

        Args:
            callback: Function receiving the raw DB-API connection

        Returns:
            Whatever the callback returns

        Raises:
            Exception: Any error raised by the callback, after rollback
        """
        connection = self._require_engine().raw_connection()
        try:
            result = callback(connection)
            connection.commit()
            return result
        except Exception:
            logger.warning("Rolling back borrowed connection", provider=self.provider.name)
            connection.rollback()
            raise
        finally:
            connection.close()

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("DataSourceProviderIntegration.init() has not been called")
        return self.engine

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()
