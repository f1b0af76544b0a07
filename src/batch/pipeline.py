"""
Batch processing pipeline orchestration.

Coordinates the flow: read → clean → normalize → load → validate
"""

import time
from collections.abc import Sequence
from typing import Optional

import psycopg
from pyspark.sql import SparkSession

from src.batch.readers import FileReader
from src.batch.writers import BatchLoader
from src.core.dimensions import DimensionalNormalizer
from src.core.errors import LoadError, PipelineError, StorageError
from src.core.models import (
    CleanLineRecord,
    EntitySets,
    FilterReport,
    PipelineSettings,
    RawRecord,
    RunSummary,
    ValidationReport,
)
from src.core.rules import RecordFilter
from src.observability.logger import get_logger, log_operation
from src.observability.metrics import (
    errors_total,
    increment_counter,
    observe_histogram,
    pipeline_duration_seconds,
    record_entity_counts,
    record_filter_report,
)
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.reconciliation import ValidationReporter
from src.warehouse.schema_mgmt import SchemaManager
from src.warehouse.table_writer import EntityTableWriter

logger = get_logger(__name__)


class RetailETLPipeline:
    """
    Orchestrates one batch run of the customer analytics pipeline.

    Flow:
    1. Read the extract (CSV/JSON/Parquet) into raw records
    2. Clean: required fields, type coercion, business rules, outlier bounds
    3. Normalize into customers, products, orders and order lines
    4. Load the sets in dependency order, chunk by chunk
    5. Validate persisted state against the in-memory sets

    Steps 4 and 5 need a connection pool and are skipped on dry runs.
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        pool: Optional[DatabaseConnectionPool] = None,
        spark: Optional[SparkSession] = None
    ):
        """
        Initialize batch pipeline.

        Args:
            settings: Thresholds, chunk sizes and load mode
            pool: Database connection pool (required unless dry-running)
            spark: Active Spark session (required for process_file)
        """
        self.settings = settings or PipelineSettings()
        self.pool = pool
        self.spark = spark

        self.record_filter = RecordFilter(self.settings.business_rules)
        self.normalizer = DimensionalNormalizer(self.settings.business_rules)
        self.file_reader = FileReader(spark) if spark is not None else None

        if pool is not None:
            self.schema_manager = SchemaManager(pool, self.settings.segments, self.settings.reporting)
            self.loader = BatchLoader(EntityTableWriter(pool), self.settings.chunk_sizes)
            self.reporter = ValidationReporter(pool, self.settings.business_rules.max_line_revenue)

    def clean(self, records: Sequence[RawRecord]) -> tuple[list[CleanLineRecord], FilterReport]:
        """
        Run the record filter and report its drops.

        Returns:
            Tuple of (clean records, filter report)
        """
        with log_operation("Cleaning records", logger=logger, records_in=len(records)):
            clean, report = self.record_filter.apply(records)

        for stage, dropped in report.dropped_by_stage.items():
            logger.info("Filter stage", extra={"stage": stage, "dropped": dropped})
        if report.dropped_by_rule:
            logger.info("Drops by rule", extra={"dropped_by_rule": report.dropped_by_rule})

        record_filter_report(report.dropped_by_stage, report.records_kept)
        return clean, report

    def normalize(self, records: Sequence[CleanLineRecord]) -> EntitySets:
        """Decompose clean records into entity sets and log their sizes."""
        entity_sets = self.normalizer.normalize(records)
        counts = entity_sets.counts()
        logger.info("Normalization complete", extra=counts)
        record_entity_counts(counts)
        return entity_sets

    def load(self, entity_sets: EntitySets) -> dict[str, int]:
        """
        Ensure the schema, optionally empty the tables, and load every set.

        Returns:
            Rows written per entity set

        Raises:
            StorageError: If the schema cannot be created or emptied
            LoadOrderError, LoadError: On any failed chunk
        """
        self._require_pool()
        try:
            self.schema_manager.initialize()
        except psycopg.Error as e:
            raise StorageError("load", "schema setup", str(e)) from e

        if self.settings.truncate_before_load:
            try:
                self.schema_manager.truncate_all()
            except psycopg.Error as e:
                raise StorageError("load", "truncate", str(e)) from e

        self.loader.reset()
        try:
            return self.loader.load_all(entity_sets)
        except LoadError:
            logger.error("Load aborted, partial load committed", extra={"rows_loaded": dict(self.loader.rows_loaded)})
            raise

    def validate(self, entity_sets: EntitySets | None = None) -> ValidationReport:
        self._require_pool()
        try:
            return self.reporter.validate(entity_sets)
        except psycopg.Error as e:
            raise StorageError("validate", "validation queries", str(e)) from e

    def process_records(self, records: Sequence[RawRecord], dry_run: bool = False) -> RunSummary:
        """
        Process already-read raw records through the pipeline.

        Args:
            records: Raw records in extract order
            dry_run: Stop after normalization

        Returns:
            RunSummary of the run

        Raises:
            PipelineError: On a fatal load error
        """
        start = time.perf_counter()
        mode = "dry_run" if dry_run else "load"

        try:
            clean, filter_report = self.clean(records)
            entity_sets = self.normalize(clean)

            rows_loaded: dict[str, int] = {}
            validation = None
            if not dry_run:
                rows_loaded = self.load(entity_sets)
                validation = self.validate(entity_sets)
        except PipelineError as e:
            increment_counter(errors_total, stage=e.stage, error_type=type(e).__name__)
            raise

        duration = time.perf_counter() - start
        observe_histogram(pipeline_duration_seconds, duration, mode=mode)

        summary = RunSummary(
            records_read=len(records),
            filter_report=filter_report,
            entity_counts=entity_sets.counts(),
            customer_conflicts=entity_sets.customer_conflicts,
            order_conflicts=entity_sets.order_conflicts,
            rows_loaded=rows_loaded,
            validation=validation,
            dry_run=dry_run,
            duration_seconds=round(duration, 3),
        )
        logger.info(
            "Pipeline run complete",
            extra={
                "records_read": summary.records_read,
                "records_kept": filter_report.records_kept,
                "dry_run": dry_run,
                "duration_seconds": summary.duration_seconds,
            }
        )
        return summary

    def process_file(
        self,
        file_path: str,
        file_format: str = "csv",
        dry_run: bool = False,
        **read_options
    ) -> RunSummary:
        """
        Read an extract and process it through the pipeline.

        Args:
            file_path: Path to input file
            file_format: File format (csv, json, parquet)
            dry_run: Stop after normalization
            **read_options: Additional read options

        Returns:
            RunSummary of the run

        Raises:
            SourceReadError: If the extract cannot be read
            PipelineError: On a fatal load error
        """
        if self.file_reader is None:
            raise ValueError("A Spark session is required to read files")

        try:
            records = self.file_reader.read_records(file_path, file_format, **read_options)
        except PipelineError as e:
            increment_counter(errors_total, stage=e.stage, error_type=type(e).__name__)
            raise

        return self.process_records(records, dry_run=dry_run)

    def _require_pool(self) -> None:
        if self.pool is None:
            raise ValueError("A database connection pool is required to load and validate")
