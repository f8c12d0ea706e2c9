"""
Concrete execution strategies for the batching harness.

- no_batch:      every bound statement is executed immediately
- batch:         statements accumulate and are submitted every batch_size statements
- batch_commit:  as batch, and every flush also commits the borrowed connection
"""

from typing import Dict, Type

from .harness import AbstractBatchPreparedStatementHarness
from .statements import PreparedStatement


class NoBatchPreparedStatementHarness(AbstractBatchPreparedStatementHarness):
    """One driver round trip per statement; batch size has no effect."""

    strategy_name = "no_batch"

    def on_statement(self, statement: PreparedStatement):
        statement.execute_update()

    def on_flush(self, statement: PreparedStatement):
        pass

    def on_end(self, statement: PreparedStatement):
        pass


class BatchPreparedStatementHarness(AbstractBatchPreparedStatementHarness):
    """Accumulate parameter sets and submit them with executemany()."""

    strategy_name = "batch"

    def on_statement(self, statement: PreparedStatement):
        statement.add_batch()

    def on_flush(self, statement: PreparedStatement):
        statement.execute_batch()

    def on_end(self, statement: PreparedStatement):
        statement.execute_batch()


class BatchCommitPreparedStatementHarness(BatchPreparedStatementHarness):
    """Submit each batch and commit it, bounding transaction size to one batch."""

    strategy_name = "batch_commit"

    def on_flush(self, statement: PreparedStatement):
        statement.execute_batch()
        statement.connection.commit()


STRATEGIES: Dict[str, Type[AbstractBatchPreparedStatementHarness]] = {
    harness.strategy_name: harness
    for harness in (
        NoBatchPreparedStatementHarness,
        BatchPreparedStatementHarness,
        BatchCommitPreparedStatementHarness,
    )
}


def get_strategy(name: str) -> Type[AbstractBatchPreparedStatementHarness]:
    """
    Look up a harness class by strategy name.

    Raises:
        ValueError: If the strategy is unknown
    """
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown strategy: {name} (choose from {sorted(STRATEGIES)})") from None
