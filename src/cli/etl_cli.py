"""
Command-line interface for the customer analytics ETL.

Usage:
    python -m src.cli.etl_cli run --input <file_path> [options]
    python -m src.cli.etl_cli init-db [--reset]
    python -m src.cli.etl_cli validate
    python -m src.cli.etl_cli report
"""

import argparse
import json
import os
import sys
from pathlib import Path

import psycopg
from pyspark.sql import SparkSession

from src.batch.pipeline import RetailETLPipeline
from src.batch.readers import SUPPORTED_FORMATS
from src.core.errors import PipelineError, StorageError
from src.core.models import ChunkSizes, PipelineSettings
from src.core.rules import PipelineConfigLoader
from src.observability.logger import configure_all, get_logger
from src.observability.metrics import errors_total, generate_metrics, increment_counter, start_metrics_server
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.reconciliation import ValidationReporter
from src.warehouse.reporting import ReportingService
from src.warehouse.schema_mgmt import SchemaManager

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config/pipeline.yaml"


def create_spark_session(app_name: str = "RetailETL") -> SparkSession:
    """
    Create Spark session for reading extracts.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    return SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()


def create_pool(args) -> DatabaseConnectionPool:
    """
    Open a connection pool from CLI flags, falling back to DB_* variables.

    Raises:
        StorageError: If no password is configured or the database is unreachable
    """
    try:
        pool = DatabaseConnectionPool(
            host=args.db_host,
            port=args.db_port,
            database=args.db_name,
            user=args.db_user,
            password=args.db_password
        )
        pool.open()
    except (ValueError, psycopg.Error) as e:
        increment_counter(errors_total, stage="load", error_type=StorageError.__name__)
        raise StorageError("load", "connect", str(e)) from e
    return pool


def load_settings(args) -> PipelineSettings:
    """
    Build run settings from the YAML file and CLI overrides.

    A missing file is an error only when --config was given explicitly.
    """
    config_path = args.config or DEFAULT_CONFIG_PATH
    if Path(config_path).exists():
        settings = PipelineConfigLoader(config_path).load()
        logger.info("Loaded pipeline configuration", extra={"config_path": config_path})
    elif args.config:
        raise FileNotFoundError(f"Pipeline configuration file not found: {args.config}")
    else:
        settings = PipelineSettings()

    chunk_overrides = {
        entity: getattr(args, f"chunk_{entity}", None)
        for entity in ("customers", "products", "orders", "order_lines")
    }
    chunk_overrides = {entity: size for entity, size in chunk_overrides.items() if size is not None}
    if chunk_overrides:
        settings.chunk_sizes = ChunkSizes.model_validate({**settings.chunk_sizes.model_dump(), **chunk_overrides})

    if getattr(args, "append", False):
        settings.truncate_before_load = False

    return settings


def write_metrics(path: str) -> None:
    """Write the run's metrics in Prometheus text format (textfile collector)."""
    Path(path).write_bytes(generate_metrics())
    logger.info("Metrics written", extra={"metrics_file": path})


def emit(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def fail(error: PipelineError) -> None:
    """Log a fatal error with its stage label and exit non-zero."""
    logger.error(str(error), extra={"stage": error.stage}, exc_info=True)
    print(f"ERROR {error}", file=sys.stderr)
    sys.exit(1)


def run_command(args):
    """
    Execute a full pipeline run.

    Args:
        args: Command-line arguments
    """
    input_path = args.input or os.getenv("DATA_FILE_PATH")
    if not input_path:
        logger.error("No input file given; pass --input or set DATA_FILE_PATH")
        sys.exit(1)

    settings = load_settings(args)
    if args.metrics_port:
        start_metrics_server(args.metrics_port)
    spark = create_spark_session()
    pool = None

    try:
        if not args.dry_run:
            pool = create_pool(args)
        pipeline = RetailETLPipeline(settings=settings, pool=pool, spark=spark)
        summary = pipeline.process_file(input_path, file_format=args.format, dry_run=args.dry_run)
    except PipelineError as e:
        fail(e)
    finally:
        if pool is not None:
            pool.close()
        spark.stop()
        if args.metrics_file:
            write_metrics(args.metrics_file)

    emit({
        "summary": summary.model_dump(mode="json"),
        "warnings": summary.validation.warnings if summary.validation else [],
    })


def init_db_command(args):
    """Create tables, indexes and reporting views."""
    settings = load_settings(args)
    pool = None
    try:
        pool = create_pool(args)
        manager = SchemaManager(pool, settings.segments, settings.reporting)
        if args.reset:
            manager.drop_all()
        manager.initialize()
    except psycopg.Error as e:
        fail(StorageError("load", "schema setup", str(e)))
    except PipelineError as e:
        fail(e)
    finally:
        if pool is not None:
            pool.close()
    logger.info("Database initialized", extra={"reset": args.reset})


def validate_command(args):
    """Run the post-load checks against current storage."""
    settings = load_settings(args)
    pool = None
    try:
        pool = create_pool(args)
        report = ValidationReporter(pool, settings.business_rules.max_line_revenue).validate()
    except psycopg.Error as e:
        fail(StorageError("validate", "validation queries", str(e)))
    except PipelineError as e:
        fail(e)
    finally:
        if pool is not None:
            pool.close()

    emit({
        "passed": report.passed,
        "checks": [check.model_dump() for check in report.checks],
        "warnings": report.warnings,
    })


def report_command(args):
    """Print the reporting datasets as JSON."""
    settings = load_settings(args)
    pool = None
    try:
        pool = create_pool(args)
        datasets = ReportingService(pool, settings.segments, settings.reporting).build_all()
    except psycopg.Error as e:
        fail(StorageError("report", "reporting queries", str(e)))
    except PipelineError as e:
        fail(e)
    finally:
        if pool is not None:
            pool.close()

    emit(datasets)


def _add_db_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--db-host", default=None, help="Database host (default: $DB_HOST or localhost)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (default: $DB_PORT or 5432)")
    parser.add_argument("--db-name", default=None, help="Database name (default: $DB_NAME or customer_analytics)")
    parser.add_argument("--db-user", default=None, help="Database user (default: $DB_USER or etl)")
    parser.add_argument("--db-password", default=None, help="Database password (default: $DB_PASSWORD)")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to pipeline settings YAML (default: {DEFAULT_CONFIG_PATH} when present)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Customer analytics ETL pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the schema
  python -m src.cli.etl_cli init-db

  # Load the retail extract
  python -m src.cli.etl_cli run --input data/online_retail.csv

  # Clean and normalize without touching the database
  python -m src.cli.etl_cli run --input data/online_retail.csv --dry-run

  # Append to existing tables with smaller order line chunks
  python -m src.cli.etl_cli run --input data/online_retail.csv --append --chunk-order-lines 1000

  # Print the dashboard datasets
  python -m src.cli.etl_cli report
        """
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    parser.add_argument("--log-format", default=None, choices=["json", "text"], help="Log output format")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the full pipeline on an extract")
    run_parser.add_argument("--input", default=None, help="Path to input file (default: $DATA_FILE_PATH)")
    run_parser.add_argument(
        "--format",
        default="csv",
        choices=list(SUPPORTED_FORMATS),
        help="Input file format (default: csv)"
    )
    run_parser.add_argument("--dry-run", action="store_true", help="Clean and normalize without loading")
    run_parser.add_argument("--append", action="store_true", help="Do not truncate target tables before loading")
    run_parser.add_argument("--metrics-port", type=int, default=None, help="Serve Prometheus metrics on this port during the run")
    run_parser.add_argument("--metrics-file", default=None, help="Write Prometheus metrics to this file when the run ends")
    for entity in ("customers", "products", "orders", "order-lines"):
        run_parser.add_argument(
            f"--chunk-{entity}",
            dest=f"chunk_{entity.replace('-', '_')}",
            type=int,
            default=None,
            help=f"Rows per write transaction for {entity.replace('-', ' ')}"
        )
    _add_db_arguments(run_parser)

    init_parser = subparsers.add_parser("init-db", help="Create tables and reporting views")
    init_parser.add_argument("--reset", action="store_true", help="Drop existing tables and views first")
    _add_db_arguments(init_parser)

    validate_parser = subparsers.add_parser("validate", help="Check persisted data consistency")
    _add_db_arguments(validate_parser)

    report_parser = subparsers.add_parser("report", help="Print reporting datasets as JSON")
    _add_db_arguments(report_parser)

    return parser


COMMANDS = {
    "run": run_command,
    "init-db": init_db_command,
    "validate": validate_command,
    "report": report_command,
}


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_all(args.log_level, args.log_format)
    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
