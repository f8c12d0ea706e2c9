"""
Configuration and result models for the batching benchmark.

Dataclasses validate themselves through ``validate()`` returning a list of
error messages (empty if valid); the runner refuses to start on any error.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from .config_schema import DataSourceConfig, ProviderType

DEFAULT_STRATEGIES = ["no_batch", "batch"]

# Phases of two set-based statements; the table shows no statement rate for them
BULK_PHASES = ("bulk_update", "bulk_delete")


class BenchmarkState(Enum):
    """Benchmark report states"""
    COMPLETED = "completed"
    FAILED = "failed"
    EXPORTED = "exported"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class BatchConfiguration:
    """Workload shape for one harness run"""
    post_count: int = 1000
    post_comment_count: int = 4
    batch_size: int = 1

    def validate(self) -> List[str]:
        errors = []

        if self.post_count < 0:
            errors.append(f"post_count must be >= 0, got {self.post_count}")

        if self.post_comment_count < 0:
            errors.append(f"post_comment_count must be >= 0, got {self.post_comment_count}")

        if self.batch_size < 1:
            errors.append(f"batch_size must be >= 1, got {self.batch_size}")

        return errors


@dataclass
class BenchmarkConfiguration:
    """Configuration for a benchmark run across data sources, strategies and batch sizes"""
    batch_sizes: List[int] = field(default_factory=lambda: [1, 10, 50])
    strategies: List[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    iterations: int = 3
    warmup_iterations: int = 1
    post_count: int = 1000
    post_comment_count: int = 4
    data_sources: Dict[str, DataSourceConfig] = field(
        default_factory=lambda: {"sqlite": DataSourceConfig(provider_type=ProviderType.SQLITE)}
    )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        # Local import: strategies imports the harness, which imports this module
        from .strategies import STRATEGIES

        errors = self._type_errors()
        if errors:
            return errors

        if not self.batch_sizes:
            errors.append("batch_sizes cannot be empty")

        if not self.strategies:
            errors.append("strategies cannot be empty")

        unknown = [name for name in self.strategies if name not in STRATEGIES]
        if unknown:
            errors.append(f"Unknown strategies: {unknown} (choose from {sorted(STRATEGIES)})")

        if self.iterations <= 0:
            errors.append(f"iterations must be > 0, got {self.iterations}")

        if self.warmup_iterations < 0:
            errors.append(f"warmup_iterations must be >= 0, got {self.warmup_iterations}")

        if not self.data_sources:
            errors.append("data_sources cannot be empty")

        for batch_config in self.batch_configurations():
            errors.extend(batch_config.validate())

        # Same message repeated per batch size is noise
        return list(dict.fromkeys(errors))

    def _type_errors(self) -> List[str]:
        # Values from YAML files arrive unchecked; range checks assume these types
        errors = []

        if not isinstance(self.batch_sizes, list) or not all(_is_int(b) for b in self.batch_sizes):
            errors.append(f"batch_sizes must be a list of integers, got {self.batch_sizes!r}")

        if not isinstance(self.strategies, list) or not all(isinstance(s, str) for s in self.strategies):
            errors.append(f"strategies must be a list of names, got {self.strategies!r}")

        for name in ("iterations", "warmup_iterations", "post_count", "post_comment_count"):
            value = getattr(self, name)
            if not _is_int(value):
                errors.append(f"{name} must be an integer, got {value!r}")

        if not isinstance(self.data_sources, dict) or not all(
            isinstance(source, DataSourceConfig) for source in self.data_sources.values()
        ):
            errors.append("data_sources must map names to data source configurations")

        return errors

    def batch_configurations(self) -> List[BatchConfiguration]:
        return [
            BatchConfiguration(
                post_count=self.post_count,
                post_comment_count=self.post_comment_count,
                batch_size=batch_size,
            )
            for batch_size in self.batch_sizes
        ]


def load_yaml_config(path: Union[str, Path]) -> Dict:
    """
    Read benchmark settings from a YAML file.

    Recognised keys mirror BenchmarkConfiguration; ``data_sources`` maps a
    display name to DataSourceConfig fields.

    Example:
        batch_sizes: [1, 25, 100]
        strategies: [no_batch, batch]
        iterations: 5
        data_sources:
          sqlite: {provider_type: sqlite}
          postgres: {provider_type: postgresql, host: localhost, database: benchmark}

    Returns:
        Dict of BenchmarkConfiguration keyword arguments
    """
    with open(path) as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Configuration file {path} is not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    allowed = {
        "batch_sizes", "strategies", "iterations", "warmup_iterations",
        "post_count", "post_comment_count", "data_sources",
    }
    unknown = set(raw) - allowed
    if unknown:
        raise ValueError(f"Unknown configuration keys in {path}: {sorted(unknown)}")

    settings = dict(raw)
    if "data_sources" in settings:
        sources = settings["data_sources"]
        if not isinstance(sources, dict):
            raise ValueError(f"data_sources in {path} must be a mapping of name to settings")
        data_sources = {}
        for name, source in sources.items():
            source = source or {}
            if not isinstance(source, dict):
                raise ValueError(f"Data source {name!r} in {path} must be a mapping, got {source!r}")
            data_sources[name] = DataSourceConfig(**source)
        settings["data_sources"] = data_sources
    return settings


@dataclass
class PhaseTiming:
    """Single timed phase of one harness run"""
    harness: str
    provider: str
    phase: str
    batch_size: int
    statement_count: int
    elapsed_ms: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class PhaseMetrics:
    """Aggregated timings of one phase across iterations"""
    phase: str
    count: int
    statement_count: int
    mean_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float
    statements_per_second: float


@dataclass
class RunResults:
    """Aggregated results for one (data source, strategy, batch size) combination"""
    provider: str
    strategy: str
    batch_size: int
    iterations: int
    phases: Dict[str, PhaseMetrics]


@dataclass
class BenchmarkReport:
    """Complete benchmark results"""
    report_id: str
    config: BenchmarkConfiguration
    start_time: datetime
    end_time: datetime
    total_duration_seconds: float
    results: List[RunResults]
    raw_timings: List[PhaseTiming]
    failures: List[str]
    state: BenchmarkState = BenchmarkState.COMPLETED

    def to_json(self) -> Dict:
        """
        Export report as JSON.

        Returns:
            Dict suitable for json.dumps()
        """
        return {
            "report_id": self.report_id,
            "timestamp": self.start_time.isoformat(),
            "state": self.state.value,
            "config": {
                "post_count": self.config.post_count,
                "post_comment_count": self.config.post_comment_count,
                "batch_sizes": list(self.config.batch_sizes),
                "strategies": list(self.config.strategies),
                "iterations": self.config.iterations,
                "warmup_iterations": self.config.warmup_iterations,
                "data_sources": sorted(self.config.data_sources),
            },
            "duration_seconds": self.total_duration_seconds,
            "results": [
                {
                    "provider": run.provider,
                    "strategy": run.strategy,
                    "batch_size": run.batch_size,
                    "iterations": run.iterations,
                    "phases": {
                        name: {
                            "count": metrics.count,
                            "statement_count": metrics.statement_count,
                            "mean_ms": metrics.mean_ms,
                            "p50_ms": metrics.p50_ms,
                            "p95_ms": metrics.p95_ms,
                            "p99_ms": metrics.p99_ms,
                            "statements_per_second": metrics.statements_per_second,
                        }
                        for name, metrics in run.phases.items()
                    },
                }
                for run in self.results
            ],
            "failures": list(self.failures),
        }

    def to_table_rows(self) -> List[List]:
        """
        Export report as table rows for console display.

        Returns:
            List of rows [provider, strategy, batch_size, phase, p50, p95, statements/s]
            (statements/s is "-" for bulk phases)
        """
        return [
            [
                run.provider,
                run.strategy,
                run.batch_size,
                metrics.phase,
                f"{metrics.p50_ms:.2f}",
                f"{metrics.p95_ms:.2f}",
                "-" if metrics.phase in BULK_PHASES else f"{metrics.statements_per_second:.1f}",
            ]
            for run in self.results
            for metrics in run.phases.values()
        ]

    def find(self, provider: str, strategy: str, batch_size: int) -> Optional[RunResults]:
        for run in self.results:
            if (run.provider, run.strategy, run.batch_size) == (provider, strategy, batch_size):
                return run
        return None
