"""
JSON export for benchmark results.

Exports benchmark reports as timestamped JSON files.
"""

import json
from pathlib import Path
from datetime import datetime

from ..config import BenchmarkReport, BenchmarkState


def export_json(report: BenchmarkReport, output_dir: str = "results/json") -> str:
    """
    Export benchmark report as JSON file.

    Args:
        report: BenchmarkReport to export
        output_dir: Directory for JSON output

    Returns:
        Path to created JSON file

    Example:
        >>> filepath = export_json(report)
        >>> # Creates: results/json/benchmark_TIMESTAMP.json
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filepath = output_path / f"benchmark_{timestamp}.json"

    # The written file carries the state the report has after export
    if report.state == BenchmarkState.COMPLETED:
        report.state = BenchmarkState.EXPORTED

    with open(filepath, 'w') as f:
        json.dump(report.to_json(), f, indent=2)

    return str(filepath)
