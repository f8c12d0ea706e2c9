"""
Console table export for benchmark results.

Formats benchmark reports with tabulate and saves a copy as a text file.
"""

from pathlib import Path
from datetime import datetime
from typing import List

from tabulate import tabulate

from ..config import BenchmarkReport
from ..metrics import calculate_speedup

HEADERS = ["Data Source", "Strategy", "Batch", "Phase", "P50 (ms)", "P95 (ms)",
           "Stmts/s", "vs no_batch"]


def _speedup_column(report: BenchmarkReport) -> List[str]:
    # Compared against the no_batch run of the same data source, batch size and phase
    column = []
    for run in report.results:
        baseline = report.find(run.provider, "no_batch", run.batch_size)
        for phase, metrics in run.phases.items():
            if baseline is None or run.strategy == "no_batch" or phase not in baseline.phases:
                column.append("-")
                continue
            speedup = calculate_speedup(baseline.phases[phase].p50_ms, metrics.p50_ms)
            column.append(f"{speedup:.2f}x")
    return column


def format_table(report: BenchmarkReport) -> str:
    """
    Format a benchmark report for console display.

    Example:
        Data Source    Strategy      Batch  Phase      P50 (ms)    P95 (ms)    Stmts/s  vs no_batch
        -------------  ----------  -------  -------  ----------  ----------  ---------  -------------
        sqlite         no_batch         10  insert        41.20       44.03   121359.2  -
        sqlite         batch            10  insert        12.87       13.50   388500.1  3.20x
    """
    rows = [row + [speedup] for row, speedup in zip(report.to_table_rows(), _speedup_column(report))]
    table_str = tabulate(rows, headers=HEADERS, tablefmt="simple", floatfmt=".2f")

    output = []
    output.append("=" * 70)
    output.append("Prepared Statement Batching Benchmark")
    output.append("=" * 70)
    output.append(f"Report ID: {report.report_id}")
    output.append(f"Timestamp: {report.start_time.isoformat()}")
    output.append("")
    output.append("Configuration:")
    output.append(f"  Posts:              {report.config.post_count:,}")
    output.append(f"  Comments per post:  {report.config.post_comment_count}")
    output.append(f"  Iterations:         {report.config.iterations}")
    output.append(f"  Warmup iterations:  {report.config.warmup_iterations}")
    output.append("")
    output.append("Results:")
    output.append(table_str)
    if report.failures:
        output.append("")
        output.append("Failures:")
        output.extend(f"  {failure}" for failure in report.failures)
    output.append("")
    output.append(f"Benchmark completed in {report.total_duration_seconds:.2f} seconds.")
    output.append("=" * 70)

    return "\n".join(output)


def export_table(report: BenchmarkReport, output_dir: str = "results/tables") -> str:
    """
    Export benchmark report as formatted table.

    Args:
        report: BenchmarkReport to export
        output_dir: Directory for table output (also saves to file)

    Returns:
        Formatted table string
    """
    full_output = format_table(report)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filepath = output_path / f"benchmark_{timestamp}.txt"

    with open(filepath, 'w') as f:
        f.write(full_output)

    return full_output
