"""
Pytest configuration and fixtures for the retail ETL tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import math
import os
import re
import shutil
from collections import Counter
from collections.abc import Generator, Sequence
from datetime import datetime

import psycopg
import pytest

from src.core.models import LOAD_ORDER, RawRecord, line_revenue
from src.warehouse import reconciliation


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session():
    """
    Create a Spark session for testing with local mode

    Skipped when no Java runtime is available.

    Yields:
        SparkSession configured for local testing
    """
    if shutil.which("java") is None and not os.getenv("JAVA_HOME"):
        pytest.skip("Spark tests require a Java runtime")

    from pyspark.sql import SparkSession

    spark = (
        SparkSession.builder
        .appName("retail-etl-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    if not (os.path.exists("/var/run/docker.sock") or os.getenv("DOCKER_HOST")):
        pytest.skip("Integration tests require Docker")

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_etl",
        password="test_password",
        dbname="test_customer_analytics"
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def pg_pool(postgres_container):
    """
    Connection pool against the test container

    Yields:
        Open DatabaseConnectionPool
    """
    from src.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_customer_analytics",
        user="test_etl",
        password="test_password",
    )
    pool.open()
    yield pool
    pool.close()


@pytest.fixture(scope="function")
def clean_db(pg_pool):
    """
    Provide a freshly created schema before each test

    Yields:
        DatabaseConnectionPool with empty tables and views
    """
    from src.warehouse.schema_mgmt import SchemaManager

    manager = SchemaManager(pg_pool)
    manager.drop_all()
    manager.initialize()
    yield pg_pool


# =======================
# IN-MEMORY STORAGE
# =======================

class InMemoryPool:
    """
    Stand-in for DatabaseConnectionPool that keeps inserted rows per table.

    Answers the validation reporter's queries from the stored rows. Set
    `fail_on[table] = n` to make the n-th batch insert into that table fail.
    """

    def __init__(self):
        self.tables: dict[str, list[tuple]] = {table: [] for table in LOAD_ORDER}
        self.batches: list[tuple[str, int]] = []
        self.transactions: list[list] = []
        self.fail_on: dict[str, int] = {}
        self.views_created = False
        self._insert_calls: Counter = Counter()

    def execute_batch(self, command: str, params_list: Sequence[tuple]) -> int:
        table = re.search(r"INSERT INTO (\w+)", command).group(1)
        self._insert_calls[table] += 1
        if self.fail_on.get(table) == self._insert_calls[table]:
            raise psycopg.OperationalError(f"simulated failure writing {table}")
        self.tables[table].extend(params_list)
        self.batches.append((table, len(params_list)))
        return len(params_list)

    def execute_transaction(self, commands: Sequence) -> None:
        self.transactions.append(list(commands))
        for command in commands:
            if not isinstance(command, str):
                self.views_created = True
            elif command.startswith("TRUNCATE"):
                for rows in self.tables.values():
                    rows.clear()
            elif command.startswith("DROP VIEW"):
                self.views_created = False

    def execute_query(self, query: str, params=None) -> list[dict]:
        return [{"value": self._answer(query, params)}]

    def rows(self, table: str) -> list[tuple]:
        return self.tables[table]

    def _answer(self, query: str, params):
        for entity, count_query in reconciliation.ROW_COUNT_QUERIES.items():
            if query == count_query:
                return len(self.tables[entity])

        lines = self.tables["order_lines"]
        order_ids = {row[0] for row in self.tables["orders"]}
        product_codes = {row[0] for row in self.tables["products"]}
        customer_ids = {row[0] for row in self.tables["customers"]}

        if query == reconciliation.REVENUE_QUERY:
            return math.fsum(q * p for _, _, q, p in lines)
        if query == reconciliation.ORPHAN_QUERIES["order_lines_without_order"]:
            return sum(1 for line in lines if line[0] not in order_ids)
        if query == reconciliation.ORPHAN_QUERIES["order_lines_without_product"]:
            return sum(1 for line in lines if line[1] not in product_codes)
        if query == reconciliation.ORPHAN_QUERIES["orders_without_customer"]:
            return sum(1 for order in self.tables["orders"] if order[2] not in customer_ids)
        for entity, duplicate_query in reconciliation.DUPLICATE_QUERIES.items():
            if query == duplicate_query:
                keys = Counter(row[0] for row in self.tables[entity])
                return sum(1 for count in keys.values() if count > 1)
        if query == reconciliation.OVER_BOUND_QUERY:
            return sum(1 for _, _, q, p in lines if line_revenue(q, p) > params[0])
        if query == reconciliation.SUMMARY_VIEW_EXISTS_QUERY:
            return self.views_created
        if query in (reconciliation.SUMMARY_VIEW_ROWS_QUERY, reconciliation.CUSTOMERS_WITH_ORDERS_QUERY):
            ordered = {row[0] for row in lines}
            return len({order[2] for order in self.tables["orders"] if order[0] in ordered})

        raise AssertionError(f"Unexpected query: {query}")


@pytest.fixture(scope="function")
def memory_pool() -> InMemoryPool:
    """Fresh in-memory storage for a single test"""
    return InMemoryPool()


# =======================
# RECORD FIXTURES
# =======================

SCENARIO_ONE = {
    "transaction_id": "536365",
    "product_code": "85123A",
    "description": "WHITE HANGING HEART",
    "quantity": 6,
    "unit_price": 2.55,
    "timestamp": "12/1/2010 8:26",
    "customer_id": 17850,
    "country": "United Kingdom",
}


@pytest.fixture
def make_raw():
    """
    Factory for RawRecords, defaulting every field to the first sample line

    Usage:
        make_raw(quantity=0, row_number=3)
    """
    def _make(row_number: int | None = 1, **overrides) -> RawRecord:
        return RawRecord(row_number=row_number, **{**SCENARIO_ONE, **overrides})

    return _make


@pytest.fixture
def make_clean():
    """Factory for CleanLineRecords with sample defaults"""
    from src.core.models import CleanLineRecord

    def _make(**overrides):
        values = {
            **SCENARIO_ONE,
            "timestamp": datetime(2010, 12, 1, 8, 26),
            **overrides,
        }
        return CleanLineRecord(**values)

    return _make


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def sample_extract_path(test_data_dir) -> str:
    return os.path.join(test_data_dir, "online_retail_sample.csv")


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session", autouse=True)
def test_env_vars() -> Generator[None, None, None]:
    """
    Load config/test.env when present so CLI tests see DB_* variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
    yield
