"""
Pytest configuration for the batching benchmark tests.

Unit tests drive the harness against mocked DB-API objects. Integration
tests run against a real in-memory SQLite database, and against PostgreSQL
when POSTGRES_HOST points at a reachable server.
"""

import os
import socket
import time
from unittest.mock import MagicMock

import pytest
import structlog

from dbapi_batching.config_schema import DataSourceConfig, ProviderType
from dbapi_batching.integration import DataSourceProviderIntegration
from dbapi_batching.providers import PostgreSQLDataSourceProvider, SQLiteDataSourceProvider

logger = structlog.get_logger()


def wait_for_port(host: str, port: int, timeout: int = 5) -> bool:
    """Wait for a port to become available"""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            with socket.create_connection((host, port), timeout=1):
                return True
        except OSError:
            time.sleep(0.1)
    return False


@pytest.fixture
def mock_connection():
    """
    DB-API connection double.

    Every cursor() call returns the same cursor mock so tests can count
    execute()/executemany() calls across statements.
    """
    connection = MagicMock(name="connection")
    cursor = MagicMock(name="cursor")
    cursor.rowcount = 1
    connection.cursor.return_value = cursor
    return connection


@pytest.fixture
def mock_integration(mock_connection):
    """Integration double that hands mock_connection to the callback."""
    integration = MagicMock(name="integration")
    integration.paramstyle = "qmark"
    integration.provider.name = "mock"
    integration.do_in_connection.side_effect = lambda callback: callback(mock_connection)
    return integration


@pytest.fixture
def sqlite_integration():
    """Fresh in-memory SQLite schema per test."""
    provider = SQLiteDataSourceProvider(DataSourceConfig(provider_type=ProviderType.SQLITE))
    integration = DataSourceProviderIntegration(provider)
    integration.init()
    yield integration
    integration.destroy()


@pytest.fixture
def postgres_config():
    """
    PostgreSQL data source from the environment.

    Skips unless POSTGRES_HOST is set and the server accepts connections.
    """
    if "POSTGRES_HOST" not in os.environ:
        pytest.skip("POSTGRES_HOST not set")

    config = DataSourceConfig.from_env(ProviderType.POSTGRESQL)
    if not wait_for_port(config.host, config.port):
        pytest.skip(f"PostgreSQL not reachable at {config.host}:{config.port}")

    logger.info("PostgreSQL available for testing", host=config.host, port=config.port)
    return config


@pytest.fixture
def postgres_integration(postgres_config):
    integration = DataSourceProviderIntegration(PostgreSQLDataSourceProvider(postgres_config))
    integration.init()
    yield integration
    integration.destroy()
