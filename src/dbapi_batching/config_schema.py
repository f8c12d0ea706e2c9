"""
Connection settings for benchmark data sources.

Validated with pydantic so that a bad port or a PostgreSQL source without a
host fails at construction time, before any engine is created.
"""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.engine import URL


class ProviderType(str, Enum):
    """Supported database backends"""
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DataSourceConfig(BaseModel):
    """
    Connection parameters for one data source.

    SQLite sources use ``path`` (None means an in-memory database); PostgreSQL
    sources use host/port/database/credentials and connect through psycopg 3.
    """

    provider_type: ProviderType = ProviderType.SQLITE
    host: Optional[str] = None
    port: int = Field(default=5432)
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    path: Optional[str] = None
    echo: bool = False

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not (1 <= value <= 65535):
            raise ValueError(f"Port must be 1-65535, got {value}")
        return value

    @model_validator(mode="after")
    def validate_postgresql_endpoint(self) -> "DataSourceConfig":
        if self.provider_type == ProviderType.POSTGRESQL:
            if not self.host:
                raise ValueError("PostgreSQL data source requires a host")
            if not self.database:
                raise ValueError("PostgreSQL data source requires a database")
        return self

    def url(self) -> URL:
        """
        Build the SQLAlchemy URL for this data source.

        Returns:
            sqlalchemy.engine.URL for the configured driver
        """
        if self.provider_type == ProviderType.SQLITE:
            return URL.create("sqlite+pysqlite", database=self.path)

        return URL.create(
            "postgresql+psycopg",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @classmethod
    def from_env(cls, provider_type: ProviderType) -> "DataSourceConfig":
        """
        Build a data source from environment variables (Docker/CI compatible).

        PostgreSQL reads POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB,
        POSTGRES_USER and POSTGRES_PASSWORD; SQLite reads SQLITE_PATH.
        """
        provider_type = ProviderType(provider_type)

        if provider_type == ProviderType.SQLITE:
            return cls(provider_type=provider_type, path=os.environ.get("SQLITE_PATH"))

        return cls(
            provider_type=provider_type,
            host=os.environ.get("POSTGRES_HOST", "localhost"),
            port=int(os.environ.get("POSTGRES_PORT", "5432")),
            database=os.environ.get("POSTGRES_DB", "benchmark"),
            username=os.environ.get("POSTGRES_USER", "postgres"),
            password=os.environ.get("POSTGRES_PASSWORD", "postgres"),
        )
