"""
DB-API Prepared Statement Batching Benchmark

Measures insert/update/delete throughput of parameterised statements against a
Post/PostComment schema, comparing statement-at-a-time execution with batched
executemany() submission across SQLite and PostgreSQL.
"""

__version__ = "0.1.0"
__author__ = "dbapi-batching Team"

# Keep the package import free of driver imports; modules pull in SQLAlchemy
# and psycopg only when used.

__all__ = ["__version__", "__author__"]
