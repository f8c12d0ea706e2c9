"""
Unit Tests: Batching harness flush policy and strategies

The harness runs against mocked DB-API objects; the shared cursor mock
records every execute()/executemany() the strategies issue.
"""

from unittest.mock import call

import pytest

from dbapi_batching import statements as sql
from dbapi_batching.config import BatchConfiguration
from dbapi_batching.harness import AbstractBatchPreparedStatementHarness
from dbapi_batching.strategies import (
    STRATEGIES,
    BatchCommitPreparedStatementHarness,
    BatchPreparedStatementHarness,
    NoBatchPreparedStatementHarness,
    get_strategy,
)

PHASE_ORDER = ["insert", "update", "bulk_update", "delete", "insert", "bulk_delete"]


class RecordingHarness(AbstractBatchPreparedStatementHarness):
    """Counts hook invocations without touching the statements"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = {"statement": 0, "flush": 0, "end": 0}
        self.flush_points = []

    def on_statement(self, statement):
        self.calls["statement"] += 1

    def on_flush(self, statement):
        self.calls["flush"] += 1
        self.flush_points.append(self.calls["statement"])

    def on_end(self, statement):
        self.calls["end"] += 1


@pytest.mark.unit
class TestFlushPolicy:
    """Counter-driven flush rule"""

    def test_flush_every_batch_size_statements(self, mock_integration):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=3)
        harness = RecordingHarness(mock_integration, config)

        harness.run()

        # insert runs twice; 50 row statements per phase
        assert harness.calls["statement"] == 4 * 50
        # per phase: posts flush at 3,6,9 and comments 13 times
        assert harness.calls["flush"] == 4 * (3 + 13)
        assert harness.calls["end"] == 4 * 2

    def test_counter_is_per_statement(self, mock_integration):
        """Post and comment counters are independent: comments restart at 1"""
        config = BatchConfiguration(post_count=4, post_comment_count=1, batch_size=3)
        harness = RecordingHarness(mock_integration, config)

        harness.integration.do_in_connection(harness.batch_insert)

        # posts flush at their 3rd statement; comments at their own 3rd (7th overall)
        assert harness.flush_points == [3, 7]

    def test_batch_size_one_flushes_every_statement(self, mock_integration):
        config = BatchConfiguration(post_count=5, post_comment_count=2, batch_size=1)
        harness = RecordingHarness(mock_integration, config)

        harness.run()

        assert harness.calls["flush"] == harness.calls["statement"]

    def test_invalid_batch_size_rejected(self, mock_integration):
        with pytest.raises(ValueError, match="batch_size must be >= 1"):
            RecordingHarness(mock_integration, BatchConfiguration(batch_size=0))

    def test_defaults(self, mock_integration):
        harness = RecordingHarness(mock_integration)

        assert harness.post_count == 1000
        assert harness.post_comment_count == 4
        assert harness.batch_size == 1

    def test_phase_timings(self, mock_integration):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=3)
        harness = RecordingHarness(mock_integration, config)

        timings = harness.run()

        assert [t.phase for t in timings] == PHASE_ORDER
        assert [t.statement_count for t in timings] == [50, 50, 2, 50, 50, 2]
        assert all(t.elapsed_ms >= 0 for t in timings)
        assert all(t.provider == "mock" and t.harness == "RecordingHarness" for t in timings)
        assert all(t.batch_size == 3 for t in timings)

    def test_empty_workload(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=0, post_comment_count=4, batch_size=3)
        harness = BatchPreparedStatementHarness(mock_integration, config)

        timings = harness.run()

        assert [t.phase for t in timings] == PHASE_ORDER
        mock_connection.cursor.return_value.executemany.assert_not_called()


@pytest.mark.unit
class TestStrategies:
    """Concrete strategies issue the expected driver calls"""

    def test_no_batch_executes_each_statement(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=3)
        NoBatchPreparedStatementHarness(mock_integration, config).run()

        cursor = mock_connection.cursor.return_value
        # 200 row statements plus 4 bulk statements
        assert cursor.execute.call_count == 204
        cursor.executemany.assert_not_called()

    def test_batch_submits_per_flush_and_remainder(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=3)
        BatchPreparedStatementHarness(mock_integration, config).run()

        cursor = mock_connection.cursor.return_value
        # per phase: posts 3 flushes + remainder, comments 13 flushes + remainder
        assert cursor.executemany.call_count == 4 * (4 + 14)
        assert cursor.execute.call_count == 4

    def test_batch_exact_multiple_has_no_remainder(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=5)
        BatchPreparedStatementHarness(mock_integration, config).run()

        cursor = mock_connection.cursor.return_value
        assert cursor.executemany.call_count == 4 * (2 + 8)
        assert all(len(c.args[1]) == 5 for c in cursor.executemany.call_args_list)

    def test_batch_statement_order_and_parameters(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=3, post_comment_count=2, batch_size=1000)
        BatchPreparedStatementHarness(mock_integration, config).run()

        cursor = mock_connection.cursor.return_value
        executed = [c.args[0] for c in cursor.executemany.call_args_list]
        assert executed == [
            sql.INSERT_POST, sql.INSERT_POST_COMMENT,
            sql.UPDATE_POST, sql.UPDATE_POST_COMMENT,
            sql.DELETE_POST_COMMENT, sql.DELETE_POST,
            sql.INSERT_POST, sql.INSERT_POST_COMMENT,
        ]

        calls = cursor.executemany.call_args_list
        assert calls[0] == call(sql.INSERT_POST, [
            ("Post no. 0", 0, 0), ("Post no. 1", 0, 1), ("Post no. 2", 0, 2),
        ])
        assert calls[1] == call(sql.INSERT_POST_COMMENT, [
            (0, "Post comment 0", 0, 0), (0, "Post comment 1", 0, 1),
            (1, "Post comment 0", 0, 2), (1, "Post comment 1", 0, 3),
            (2, "Post comment 0", 0, 4), (2, "Post comment 1", 0, 5),
        ])
        assert calls[2] == call(sql.UPDATE_POST, [(1, 0), (1, 1), (1, 2)])
        assert calls[4] == call(sql.DELETE_POST_COMMENT, [(i,) for i in range(6)])

        assert cursor.execute.call_args_list == [
            call(sql.BULK_UPDATE_POST),
            call(sql.BULK_UPDATE_POST_COMMENT),
            call(sql.BULK_DELETE_POST_COMMENT),
            call(sql.BULK_DELETE_POST),
        ]

    def test_batch_commit_commits_every_flush(self, mock_integration, mock_connection):
        config = BatchConfiguration(post_count=10, post_comment_count=4, batch_size=5)
        BatchCommitPreparedStatementHarness(mock_integration, config).run()

        assert mock_connection.commit.call_count == 4 * (2 + 8)

    def test_statement_error_propagates(self, mock_integration, mock_connection):
        mock_connection.cursor.return_value.executemany.side_effect = RuntimeError("boom")
        harness = BatchPreparedStatementHarness(mock_integration, BatchConfiguration(post_count=2))

        with pytest.raises(RuntimeError, match="boom"):
            harness.run()

    def test_registry(self):
        assert set(STRATEGIES) == {"no_batch", "batch", "batch_commit"}
        assert get_strategy("batch") is BatchPreparedStatementHarness

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            get_strategy("jdbc")
