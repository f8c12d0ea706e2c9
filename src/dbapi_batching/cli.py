#!/usr/bin/env python3
"""
Prepared statement batching benchmark CLI.

Outputs results in JSON and console table formats. Settings come from
(lowest to highest precedence) built-in defaults, an optional YAML file and
command line arguments; PostgreSQL endpoints come from POSTGRES_* environment
variables.
"""

import argparse
import logging
import sys
from typing import List, Optional

import structlog

from .config import BenchmarkConfiguration, load_yaml_config
from .config_schema import DataSourceConfig, ProviderType
from .output.json_exporter import export_json
from .output.table_exporter import export_table
from .runner import BenchmarkRunner
from .strategies import STRATEGIES

logger = structlog.get_logger()


def configure_logging(verbose: bool = False):
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
    )


def _int_list(value: str) -> List[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma separated integers, got {value!r}")


def _name_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbapi-batching",
        description="Prepared statement batching benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # SQLite in memory, default strategies and batch sizes
  dbapi-batching

  # Compare strategies on PostgreSQL (POSTGRES_HOST etc. from the environment)
  dbapi-batching --providers postgresql --batch-sizes 1,10,50,100

  # Run with configuration file
  dbapi-batching --config benchmark.yaml
        """
    )

    parser.add_argument(
        '--providers',
        type=_name_list,
        help='Comma separated data sources: sqlite, postgresql (default: sqlite)'
    )
    parser.add_argument(
        '--strategies',
        type=_name_list,
        help=f'Comma separated strategies from {sorted(STRATEGIES)} (default: no_batch,batch)'
    )
    parser.add_argument(
        '--batch-sizes',
        type=_int_list,
        help='Comma separated batch sizes (default: 1,10,50)'
    )
    parser.add_argument(
        '--post-count',
        type=int,
        help='Posts per run (default: 1000)'
    )
    parser.add_argument(
        '--post-comment-count',
        type=int,
        help='Comments per post (default: 4)'
    )
    parser.add_argument(
        '--iterations',
        type=int,
        help='Measured iterations per combination (default: 3)'
    )
    parser.add_argument(
        '--warmup-iterations',
        type=int,
        help='Warmup iterations per combination (default: 1)'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='Path to YAML configuration file'
    )
    parser.add_argument(
        '--output-json',
        type=str,
        default='results/json',
        help='JSON output directory (default: results/json)'
    )
    parser.add_argument(
        '--output-table',
        type=str,
        default='results/tables',
        help='Table output directory (default: results/tables)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )
    return parser


def build_configuration(args: argparse.Namespace) -> BenchmarkConfiguration:
    """
    Merge YAML settings and command line overrides.

    Raises:
        ValueError: On unreadable configuration or unknown providers
    """
    settings = load_yaml_config(args.config) if args.config else {}

    if args.providers:
        settings["data_sources"] = {
            name: DataSourceConfig.from_env(ProviderType(name))
            for name in args.providers
        }

    overrides = {
        "strategies": args.strategies,
        "batch_sizes": args.batch_sizes,
        "post_count": args.post_count,
        "post_comment_count": args.post_comment_count,
        "iterations": args.iterations,
        "warmup_iterations": args.warmup_iterations,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    return BenchmarkConfiguration(**settings)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = build_configuration(args)
        runner = BenchmarkRunner(config)
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration", error=str(e))
        return 1

    report = runner.run()

    json_path = export_json(report, args.output_json)
    logger.info("JSON report written", path=json_path)

    table_output = export_table(report, args.output_table)
    print()
    print(table_output)

    if report.failures:
        for failure in report.failures:
            logger.error("Benchmark failure", detail=failure)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
