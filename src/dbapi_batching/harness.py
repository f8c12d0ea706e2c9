"""
Prepared statement batching harness.

Drives batched insert, update and delete phases over the Post/PostComment
schema on one borrowed connection. Subclasses decide what "executing" a bound
statement means (immediate execution, adding to a batch, ...) through three
hooks:

- on_statement: called after every parameter binding
- on_flush: called whenever a statement's counter reaches a multiple of the batch size
- on_end: called once after each statement's loop
"""

import itertools
import time
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

import structlog

from . import statements as sql
from .config import BatchConfiguration, PhaseTiming
from .integration import DataSourceProviderIntegration
from .statements import PreparedStatement, Statement

logger = structlog.get_logger()


class AbstractBatchPreparedStatementHarness(ABC):
    """Base class for measuring DB-API prepared statement batching."""

    strategy_name = "abstract"

    def __init__(
        self,
        integration: DataSourceProviderIntegration,
        config: Optional[BatchConfiguration] = None
    ):
        config = config or BatchConfiguration()
        errors = config.validate()
        if errors:
            raise ValueError("Invalid batch configuration:\n" + "\n".join(errors))

        self.integration = integration
        self.config = config
        self.timings: List[PhaseTiming] = []

    @property
    def post_count(self) -> int:
        return self.config.post_count

    @property
    def post_comment_count(self) -> int:
        return self.config.post_comment_count

    @property
    def batch_size(self) -> int:
        return self.config.batch_size

    @abstractmethod
    def on_statement(self, statement: PreparedStatement):
        ...

    @abstractmethod
    def on_flush(self, statement: PreparedStatement):
        ...

    @abstractmethod
    def on_end(self, statement: PreparedStatement):
        ...

    def execute_statement(self, statement: PreparedStatement, counter: Iterator[int]):
        """Hand a bound statement to the strategy, flushing every batch_size statements."""
        self.on_statement(statement)
        count = next(counter)
        if count % self.batch_size == 0:
            self.on_flush(statement)

    def run(self) -> List[PhaseTiming]:
        """
        Run insert, update and delete phases in one connection scope.

        Returns:
            PhaseTiming measurements of this run, in execution order
        """
        self.timings = []

        def batch(connection):
            self.batch_insert(connection)
            self.batch_update(connection)
            self.batch_delete(connection)

        self.integration.do_in_connection(batch)
        return list(self.timings)

    def batch_insert(self, connection):
        post_counter = itertools.count(1)
        post_comment_counter = itertools.count(1)

        with self._prepare(connection, sql.INSERT_POST) as post_statement, \
                self._prepare(connection, sql.INSERT_POST_COMMENT) as post_comment_statement:
            logger.info("Test batch insert", harness=self.name, provider=self.provider_name)
            start = time.perf_counter()

            for i in range(self.post_count):
                post_statement.set_parameter(1, f"Post no. {i}")
                post_statement.set_parameter(2, 0)
                post_statement.set_parameter(3, i)
                self.execute_statement(post_statement, post_counter)
            self.on_end(post_statement)

            for i in range(self.post_count):
                for j in range(self.post_comment_count):
                    post_comment_statement.set_parameter(1, i)
                    post_comment_statement.set_parameter(2, f"Post comment {j}")
                    post_comment_statement.set_parameter(3, 0)
                    post_comment_statement.set_parameter(4, self._post_comment_id(i, j))
                    self.execute_statement(post_comment_statement, post_comment_counter)
            self.on_end(post_comment_statement)

            self._record("insert", self._row_statement_count(), start)

    def batch_update(self, connection):
        post_counter = itertools.count(1)
        post_comment_counter = itertools.count(1)

        with self._prepare(connection, sql.UPDATE_POST) as post_statement, \
                self._prepare(connection, sql.UPDATE_POST_COMMENT) as post_comment_statement, \
                Statement(connection) as bulk_update_statement:
            logger.info("Test batch update", harness=self.name, provider=self.provider_name)
            start = time.perf_counter()

            for i in range(self.post_count):
                post_statement.set_parameter(1, 1)
                post_statement.set_parameter(2, i)
                self.execute_statement(post_statement, post_counter)
            self.on_end(post_statement)

            for i in range(self.post_count):
                for j in range(self.post_comment_count):
                    post_comment_statement.set_parameter(1, 1)
                    post_comment_statement.set_parameter(2, self._post_comment_id(i, j))
                    self.execute_statement(post_comment_statement, post_comment_counter)
            self.on_end(post_comment_statement)

            self._record("update", self._row_statement_count(), start)

            logger.info("Test bulk update", harness=self.name, provider=self.provider_name)
            start = time.perf_counter()
            bulk_update_statement.execute_update(sql.BULK_UPDATE_POST)
            bulk_update_statement.execute_update(sql.BULK_UPDATE_POST_COMMENT)
            self._record("bulk_update", 2, start)

    def batch_delete(self, connection):
        post_counter = itertools.count(1)
        post_comment_counter = itertools.count(1)

        with self._prepare(connection, sql.DELETE_POST) as post_statement, \
                self._prepare(connection, sql.DELETE_POST_COMMENT) as post_comment_statement, \
                Statement(connection) as bulk_delete_statement:
            logger.info("Test batch delete", harness=self.name, provider=self.provider_name)
            start = time.perf_counter()

            # Children first: comments reference their post
            for i in range(self.post_count):
                for j in range(self.post_comment_count):
                    post_comment_statement.set_parameter(1, self._post_comment_id(i, j))
                    self.execute_statement(post_comment_statement, post_comment_counter)
            self.on_end(post_comment_statement)

            for i in range(self.post_count):
                post_statement.set_parameter(1, i)
                self.execute_statement(post_statement, post_counter)
            self.on_end(post_statement)

            self._record("delete", self._row_statement_count(), start)

            self.batch_insert(connection)

            # Re-inserted rows are still at version 0 and stay in place
            logger.info("Test bulk delete", harness=self.name, provider=self.provider_name)
            start = time.perf_counter()
            bulk_delete_statement.execute_update(sql.BULK_DELETE_POST_COMMENT)
            bulk_delete_statement.execute_update(sql.BULK_DELETE_POST)
            self._record("bulk_delete", 2, start)

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def provider_name(self) -> str:
        return self.integration.provider.name

    def _prepare(self, connection, statement_sql: str) -> PreparedStatement:
        return PreparedStatement(connection, statement_sql, self.integration.paramstyle)

    def _post_comment_id(self, post_index: int, comment_index: int) -> int:
        return self.post_comment_count * post_index + comment_index

    def _row_statement_count(self) -> int:
        return self.post_count + self.post_count * self.post_comment_count

    def _record(self, phase: str, statement_count: int, start: float):
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        timing = PhaseTiming(
            harness=self.name,
            provider=self.provider_name,
            phase=phase,
            batch_size=self.batch_size,
            statement_count=statement_count,
            elapsed_ms=elapsed_ms,
        )
        self.timings.append(timing)
        logger.info(f"{self.name}.{phase} complete", provider=self.provider_name,
                    batch_size=self.batch_size, statements=statement_count,
                    elapsed_ms=round(elapsed_ms, 3))
