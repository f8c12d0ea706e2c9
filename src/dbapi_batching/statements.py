"""
Prepared statement wrappers over DB-API cursors.

DB-API has no statement handle with addBatch/executeBatch, so
PreparedStatement keeps positional bindings and a pending batch of parameter
tuples next to one cursor. A batch is submitted with a single executemany()
call, which drivers such as psycopg 3 pipeline into one round trip.
"""

import re
from typing import Any, Dict, List, Tuple

import structlog

logger = structlog.get_logger()

INSERT_POST = "insert into post (title, version, id) values (?, ?, ?)"
INSERT_POST_COMMENT = "insert into post_comment (post_id, review, version, id) values (?, ?, ?, ?)"
UPDATE_POST = "update post set version = ? where id = ?"
UPDATE_POST_COMMENT = "update post_comment set version = ? where id = ?"
DELETE_POST = "delete from post where id = ?"
DELETE_POST_COMMENT = "delete from post_comment where id = ?"

BULK_UPDATE_POST = "update post set version = version + 1"
BULK_UPDATE_POST_COMMENT = "update post_comment set version = version + 1"
BULK_DELETE_POST_COMMENT = "delete from post_comment where version > 0"
BULK_DELETE_POST = "delete from post where version > 0"

_PLACEHOLDER = re.compile(r"\?")


def adapt_placeholders(sql: str, paramstyle: str) -> str:
    """
    Rewrite ``?`` placeholders for a driver's DB-API paramstyle.

    Args:
        sql: Statement with positional ``?`` placeholders
        paramstyle: DB-API paramstyle of the target driver

    Returns:
        Statement text for the driver

    Raises:
        ValueError: If the paramstyle is not positional-compatible
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle in ("format", "pyformat"):
        return _PLACEHOLDER.sub("%s", sql)
    if paramstyle == "numeric":
        counter = iter(range(1, sql.count("?") + 1))
        return _PLACEHOLDER.sub(lambda _: f":{next(counter)}", sql)
    raise ValueError(f"Unsupported paramstyle: {paramstyle}")


class PreparedStatement:
    """
    Parameterised statement bound to one cursor.

    Parameters are 1-based and stay bound until re-bound or cleared, so a
    loop only needs to set what changes between executions.
    """

    def __init__(self, connection, sql: str, paramstyle: str = "qmark"):
        self.connection = connection
        self.source_sql = sql
        self.sql = adapt_placeholders(sql, paramstyle)
        self.parameter_count = sql.count("?")
        self._cursor = connection.cursor()
        self._parameters: Dict[int, Any] = {}
        self._batch: List[Tuple] = []
        self.executions = 0

    @property
    def pending(self) -> int:
        """Parameter sets added to the batch and not yet submitted."""
        return len(self._batch)

    def set_parameter(self, index: int, value: Any):
        if index < 1:
            raise ValueError(f"Parameter index is 1-based, got {index}")
        if index > self.parameter_count:
            raise ValueError(
                f"Parameter index {index} out of range for {self.parameter_count} placeholders"
            )
        self._parameters[index] = value

    def clear_parameters(self):
        self._parameters.clear()

    def _bound_parameters(self) -> Tuple:
        missing = [
            index for index in range(1, self.parameter_count + 1)
            if index not in self._parameters
        ]
        if missing:
            raise ValueError(f"Parameters not bound: {missing} for statement: {self.source_sql}")
        return tuple(self._parameters[index] for index in range(1, self.parameter_count + 1))

    def execute_update(self) -> int:
        """Execute once with the current bindings and return the row count."""
        parameters = self._bound_parameters()
        self._cursor.execute(self.sql, parameters)
        self.executions += 1
        return self._cursor.rowcount

    def add_batch(self):
        self._batch.append(self._bound_parameters())

    def execute_batch(self) -> int:
        """
        Submit every pending parameter set with one executemany() call.

        Returns:
            Number of parameter sets submitted (0 when nothing was pending)
        """
        if not self._batch:
            return 0

        batch, self._batch = self._batch, []
        self._cursor.executemany(self.sql, batch)
        self.executions += 1
        return len(batch)

    def close(self):
        if self._batch:
            logger.debug("Discarding unsubmitted batch", statement=self.source_sql,
                         pending=len(self._batch))
            self._batch = []
        self._cursor.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class Statement:
    """Plain statement for unparameterised bulk SQL."""

    def __init__(self, connection):
        self.connection = connection
        self._cursor = connection.cursor()
        self.executions = 0

    def execute_update(self, sql: str) -> int:
        self._cursor.execute(sql)
        self.executions += 1
        return self._cursor.rowcount

    def close(self):
        self._cursor.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

