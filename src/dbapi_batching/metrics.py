"""
Metrics calculation utilities for the batching benchmark.

Per phase:
- Latency percentiles (P50, P95, P99) across iterations
- Statements per second
"""

import numpy as np
from typing import Dict, List


def calculate_metrics(timings: List[float], statement_count: int = 1) -> Dict[str, float]:
    """
    Calculate performance metrics from timing measurements.

    Args:
        timings: Phase execution times in milliseconds, one per iteration
        statement_count: Statements executed by the phase in one iteration

    Returns:
        Dictionary with metrics:
        - mean_ms: Mean phase duration
        - p50_ms: Median phase duration (50th percentile)
        - p95_ms: 95th percentile phase duration
        - p99_ms: 99th percentile phase duration
        - statements_per_second: Statements executed per second of phase time
        - count: Number of measurements

    Example:
        >>> metrics = calculate_metrics([10.0, 12.0, 14.0], statement_count=100)
        >>> metrics['p50_ms']
        12.0
        >>> round(metrics['statements_per_second'])
        8333
    """
    if not timings:
        return {
            'mean_ms': 0.0,
            'p50_ms': 0.0,
            'p95_ms': 0.0,
            'p99_ms': 0.0,
            'statements_per_second': 0.0,
            'count': 0
        }

    timings_array = np.array(timings, dtype=float)

    p50 = float(np.percentile(timings_array, 50))
    p95 = float(np.percentile(timings_array, 95))
    p99 = float(np.percentile(timings_array, 99))

    total_time_s = float(timings_array.sum()) / 1000.0
    total_statements = statement_count * len(timings)
    statements_per_second = total_statements / total_time_s if total_time_s > 0 else 0.0

    return {
        'mean_ms': float(timings_array.mean()),
        'p50_ms': p50,
        'p95_ms': p95,
        'p99_ms': p99,
        'statements_per_second': statements_per_second,
        'count': len(timings)
    }


def calculate_speedup(baseline_ms: float, candidate_ms: float) -> float:
    """
    Ratio of baseline to candidate duration (>1 means the candidate is faster).

    Returns 0.0 when the candidate has no measurable duration.
    """
    if candidate_ms <= 0:
        return 0.0
    return baseline_ms / candidate_ms
