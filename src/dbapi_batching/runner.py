"""
Benchmark runner.

Runs every (data source, strategy, batch size) combination against a fresh
schema, discards warmup iterations, and aggregates phase timings.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

import structlog

from .config import (
    BatchConfiguration,
    BenchmarkConfiguration,
    BenchmarkReport,
    BenchmarkState,
    PhaseMetrics,
    PhaseTiming,
    RunResults,
)
from .config_schema import DataSourceConfig
from .integration import DataSourceProviderIntegration
from .metrics import calculate_metrics
from .providers import get_provider
from .strategies import get_strategy

logger = structlog.get_logger()


class BenchmarkRunner:
    """
    Main benchmark runner.

    - Resets the schema before every iteration (a harness run leaves rows behind)
    - Performs warmup runs before measurements
    - A failing combination is recorded and the remaining combinations still run
    """

    def __init__(self, config: BenchmarkConfiguration):
        """
        Initialize benchmark runner.

        Args:
            config: Benchmark configuration

        Raises:
            ValueError: If configuration validation fails
        """
        errors = config.validate()
        if errors:
            raise ValueError("Invalid configuration:\n" + "\n".join(errors))

        self.config = config
        self.raw_timings: List[PhaseTiming] = []

    def run_iterations(
        self,
        integration: DataSourceProviderIntegration,
        strategy: str,
        batch_config: BatchConfiguration,
        iterations: int,
    ) -> List[PhaseTiming]:
        """
        Run a harness repeatedly, each time on a fresh schema.

        Returns:
            Timings of every iteration, in execution order
        """
        harness_class = get_strategy(strategy)
        timings = []

        for _ in range(iterations):
            integration.reset_schema()
            harness = harness_class(integration, batch_config)
            timings.extend(harness.run())

        return timings

    def aggregate_results(
        self,
        provider: str,
        strategy: str,
        batch_size: int,
        timings: List[PhaseTiming],
    ) -> RunResults:
        """
        Aggregate timings per phase.

        The insert phase runs twice per iteration (once more before the bulk
        delete); both runs count as measurements.
        """
        by_phase: Dict[str, List[PhaseTiming]] = defaultdict(list)
        for timing in timings:
            by_phase[timing.phase].append(timing)

        phases = {}
        for phase, phase_timings in by_phase.items():
            statement_count = phase_timings[0].statement_count
            metrics = calculate_metrics([t.elapsed_ms for t in phase_timings], statement_count)
            phases[phase] = PhaseMetrics(
                phase=phase,
                count=metrics['count'],
                statement_count=statement_count,
                mean_ms=metrics['mean_ms'],
                p50_ms=metrics['p50_ms'],
                p95_ms=metrics['p95_ms'],
                p99_ms=metrics['p99_ms'],
                statements_per_second=metrics['statements_per_second'],
            )

        return RunResults(
            provider=provider,
            strategy=strategy,
            batch_size=batch_size,
            iterations=self.config.iterations,
            phases=phases,
        )

    def run_data_source(
        self,
        name: str,
        source: DataSourceConfig,
        failures: List[str],
    ) -> List[RunResults]:
        """Benchmark every strategy and batch size against one data source."""
        results = []
        integration = DataSourceProviderIntegration(get_provider(source, name=name))

        try:
            integration.init()
        except Exception as e:
            logger.error("Data source unavailable", provider=name, error=str(e))
            failures.append(f"{name}: {e}")
            integration.provider.dispose()
            return results

        try:
            for strategy in self.config.strategies:
                for batch_config in self.config.batch_configurations():
                    run = self._run_combination(integration, strategy, batch_config, failures)
                    if run is not None:
                        results.append(run)
        finally:
            integration.destroy()

        return results

    def _run_combination(
        self,
        integration: DataSourceProviderIntegration,
        strategy: str,
        batch_config: BatchConfiguration,
        failures: List[str],
    ) -> Optional[RunResults]:
        name = integration.provider.name
        log = logger.bind(provider=name, strategy=strategy, batch_size=batch_config.batch_size)

        try:
            if self.config.warmup_iterations:
                log.debug("Warming up", iterations=self.config.warmup_iterations)
                self.run_iterations(integration, strategy, batch_config,
                                    self.config.warmup_iterations)

            timings = self.run_iterations(integration, strategy, batch_config,
                                          self.config.iterations)
        except Exception as e:
            log.error("Benchmark combination failed", error=str(e))
            failures.append(f"{name}/{strategy}/batch_size={batch_config.batch_size}: {e}")
            return None

        self.raw_timings.extend(timings)
        run = self.aggregate_results(name, strategy, batch_config.batch_size, timings)

        insert = run.phases.get("insert")
        if insert is not None:
            log.info("Combination complete", insert_p50_ms=round(insert.p50_ms, 2),
                     insert_statements_per_second=round(insert.statements_per_second, 1))
        return run

    def run(self) -> BenchmarkReport:
        """
        Execute the complete benchmark.

        Returns:
            BenchmarkReport with results for every successful combination
        """
        report_id = f"benchmark_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        start_time = datetime.now()
        self.raw_timings = []

        logger.info(
            "Starting batching benchmark",
            report_id=report_id,
            data_sources=list(self.config.data_sources),
            strategies=self.config.strategies,
            batch_sizes=self.config.batch_sizes,
            post_count=self.config.post_count,
            post_comment_count=self.config.post_comment_count,
            iterations=self.config.iterations,
        )

        results: List[RunResults] = []
        failures: List[str] = []

        for name, source in self.config.data_sources.items():
            results.extend(self.run_data_source(name, source, failures))

        end_time = datetime.now()
        total_duration = (end_time - start_time).total_seconds()

        state = BenchmarkState.COMPLETED if results or not failures else BenchmarkState.FAILED
        logger.info("Benchmark complete", report_id=report_id,
                    duration_seconds=round(total_duration, 2), failures=len(failures))

        return BenchmarkReport(
            report_id=report_id,
            config=self.config,
            start_time=start_time,
            end_time=end_time,
            total_duration_seconds=total_duration,
            results=results,
            raw_timings=list(self.raw_timings),
            failures=failures,
            state=state,
        )
