"""
Prometheus metrics collection for the retail ETL pipeline

Counters and histograms for extract, cleaning, loading and post-load
validation, registered on a private registry.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# EXTRACT AND CLEANING METRICS
# =======================

records_read_total = Counter(
    name="etl_records_read_total",
    documentation="Total number of raw records read from the extract",
    labelnames=["source_format"],
    registry=REGISTRY,
)

records_dropped_total = Counter(
    name="etl_records_dropped_total",
    documentation="Total number of raw records dropped by the cleaning filter",
    labelnames=["stage"],  # stage: required_fields, type_coercion, business_rules, outlier_bounds
    registry=REGISTRY,
)

records_kept_total = Counter(
    name="etl_records_kept_total",
    documentation="Total number of records that survived cleaning",
    registry=REGISTRY,
)

entity_rows = Gauge(
    name="etl_entity_rows",
    documentation="Rows in each normalized entity set of the last run",
    labelnames=["entity"],
    registry=REGISTRY,
)

# =======================
# LOAD METRICS
# =======================

rows_loaded_total = Counter(
    name="etl_rows_loaded_total",
    documentation="Total number of rows written to storage",
    labelnames=["entity"],
    registry=REGISTRY,
)

chunks_written_total = Counter(
    name="etl_chunks_written_total",
    documentation="Total number of chunk write transactions",
    labelnames=["entity", "status"],  # status: success, failure
    registry=REGISTRY,
)

chunk_write_duration_seconds = Histogram(
    name="etl_chunk_write_duration_seconds",
    documentation="Time spent writing one chunk in seconds",
    labelnames=["entity"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
    registry=REGISTRY,
)

# =======================
# VALIDATION METRICS
# =======================

validation_mismatches_total = Counter(
    name="etl_validation_mismatches_total",
    documentation="Total number of post-load checks that did not match",
    labelnames=["check"],
    registry=REGISTRY,
)

# =======================
# RUN METRICS
# =======================

pipeline_duration_seconds = Histogram(
    name="etl_pipeline_duration_seconds",
    documentation="Wall-clock duration of a pipeline run in seconds",
    labelnames=["mode"],  # mode: load, dry_run
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
    registry=REGISTRY,
)

errors_total = Counter(
    name="etl_errors_total",
    documentation="Total number of fatal pipeline errors",
    labelnames=["stage", "error_type"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Imported lazily so importing this module never binds a port
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(chunk_write_duration_seconds, entity="orders"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


def record_filter_report(dropped_by_stage: dict[str, int], records_kept: int) -> None:
    """
    Record cleaning outcome metrics.

    Args:
        dropped_by_stage: Stage name -> records dropped at that stage
        records_kept: Records that survived every stage
    """
    for stage, dropped in dropped_by_stage.items():
        if dropped > 0:
            increment_counter(records_dropped_total, dropped, stage=stage)
    increment_counter(records_kept_total, records_kept)


def record_entity_counts(counts: dict[str, int]) -> None:
    for entity, count in counts.items():
        set_gauge(entity_rows, count, entity=entity)
