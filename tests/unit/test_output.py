"""
Unit Tests: report export (JSON and console table)
"""

import json
from datetime import datetime
from pathlib import Path

import pytest

from dbapi_batching.config import (
    BenchmarkConfiguration,
    BenchmarkReport,
    BenchmarkState,
    PhaseMetrics,
    RunResults,
)
from dbapi_batching.output import export_json, export_table, format_table


def _phase(name: str, p50: float) -> PhaseMetrics:
    return PhaseMetrics(
        phase=name, count=3, statement_count=5000, mean_ms=p50, p50_ms=p50,
        p95_ms=p50 * 1.1, p99_ms=p50 * 1.2, statements_per_second=5000 / (p50 / 1000),
    )


@pytest.fixture
def report():
    config = BenchmarkConfiguration(batch_sizes=[10], iterations=3)
    return BenchmarkReport(
        report_id="test_report_001",
        config=config,
        start_time=datetime(2026, 1, 3, 12, 0, 0),
        end_time=datetime(2026, 1, 3, 12, 0, 5),
        total_duration_seconds=5.0,
        results=[
            RunResults("sqlite", "no_batch", 10, 3, {"insert": _phase("insert", 40.0)}),
            RunResults("sqlite", "batch", 10, 3, {"insert": _phase("insert", 10.0)}),
        ],
        raw_timings=[],
        failures=["postgresql: connection refused"],
        state=BenchmarkState.COMPLETED,
    )


@pytest.mark.unit
class TestReportExport:

    def test_json_structure(self, report):
        data = report.to_json()

        assert data["report_id"] == "test_report_001"
        assert data["timestamp"] == "2026-01-03T12:00:00"
        assert data["config"]["batch_sizes"] == [10]
        assert data["config"]["data_sources"] == ["sqlite"]
        assert len(data["results"]) == 2
        insert = data["results"][1]["phases"]["insert"]
        assert insert["p50_ms"] == 10.0
        assert insert["statement_count"] == 5000
        assert data["failures"] == ["postgresql: connection refused"]

        # Serialisable as-is
        json.dumps(data)

    def test_table_rows(self, report):
        rows = report.to_table_rows()
        assert rows[0] == ["sqlite", "no_batch", 10, "insert", "40.00", "44.00", "125000.0"]

    def test_bulk_phase_rows_omit_statement_rate(self, report):
        report.results[1].phases["bulk_update"] = _phase("bulk_update", 2.0)

        rows = report.to_table_rows()

        assert rows[-1][3] == "bulk_update"
        assert rows[-1][6] == "-"
        assert rows[1][6] == "500000.0"

    def test_find(self, report):
        assert report.find("sqlite", "batch", 10).strategy == "batch"
        assert report.find("sqlite", "batch", 99) is None

    def test_export_json_writes_file(self, report, tmp_path):
        path = Path(export_json(report, str(tmp_path / "json")))

        assert path.exists()
        assert path.name.startswith("benchmark_")
        data = json.loads(path.read_text())
        assert data["report_id"] == "test_report_001"
        assert report.state == BenchmarkState.EXPORTED
        assert data["state"] == "exported", "File and in-memory report disagree on state"

    def test_failed_report_stays_failed(self, report, tmp_path):
        report.state = BenchmarkState.FAILED
        path = Path(export_json(report, str(tmp_path / "json")))

        assert json.loads(path.read_text())["state"] == "failed"
        assert report.state == BenchmarkState.FAILED

    def test_report_states(self):
        assert [state.value for state in BenchmarkState] == ["completed", "failed", "exported"]

    def test_table_includes_speedup_and_failures(self, report):
        table = format_table(report)

        assert "Prepared Statement Batching Benchmark" in table
        assert "4.00x" in table
        assert "postgresql: connection refused" in table

    def test_export_table_writes_file(self, report, tmp_path):
        table = export_table(report, str(tmp_path / "tables"))

        files = list((tmp_path / "tables").glob("benchmark_*.txt"))
        assert len(files) == 1
        assert files[0].read_text() == table
