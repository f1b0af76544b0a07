"""
Schema management operations for the analytics store.

Owns the DDL of the four normalized tables and the two reporting views.
"""

from psycopg import sql

from src.core.models import LOAD_ORDER, ReportingSettings, SegmentThresholds
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

TABLE_DDL = (
    """
    CREATE TABLE IF NOT EXISTS customers (
        customer_id INTEGER PRIMARY KEY,
        country VARCHAR(100) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        product_code VARCHAR(20) PRIMARY KEY,
        description TEXT NOT NULL,
        unit_price NUMERIC(10, 2) NOT NULL CHECK (unit_price >= 0)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        transaction_id VARCHAR(20) PRIMARY KEY,
        order_timestamp TIMESTAMP NOT NULL,
        customer_id INTEGER NOT NULL REFERENCES customers (customer_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_lines (
        order_line_id BIGSERIAL PRIMARY KEY,
        transaction_id VARCHAR(20) NOT NULL REFERENCES orders (transaction_id),
        product_code VARCHAR(20) NOT NULL REFERENCES products (product_code),
        quantity INTEGER NOT NULL CHECK (quantity > 0),
        unit_price NUMERIC(10, 3) NOT NULL CHECK (unit_price >= 0),
        revenue NUMERIC(12, 2) GENERATED ALWAYS AS (ROUND(quantity * unit_price, 2)) STORED
    )
    """,
)

INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_customers_country ON customers (country)",
    "CREATE INDEX IF NOT EXISTS idx_orders_timestamp ON orders (order_timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders (customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_order_lines_transaction ON order_lines (transaction_id)",
    "CREATE INDEX IF NOT EXISTS idx_order_lines_product ON order_lines (product_code)",
)

VIEW_NAMES = ("v_customer_dashboard", "v_customer_summary")

CUSTOMER_SUMMARY_VIEW = """
    CREATE VIEW v_customer_summary AS
    SELECT
        c.customer_id,
        c.country,
        COUNT(DISTINCT o.transaction_id) AS total_orders,
        COUNT(*) AS total_transactions,
        SUM(ol.quantity * ol.unit_price) AS total_revenue,
        AVG(ol.quantity * ol.unit_price) AS avg_transaction_value,
        MIN(o.order_timestamp) AS first_order,
        MAX(o.order_timestamp) AS last_order,
        MAX(o.order_timestamp)::date - MIN(o.order_timestamp)::date AS customer_lifetime_days,
        COUNT(DISTINCT ol.product_code) AS unique_products_purchased,
        CASE
            WHEN SUM(ol.quantity * ol.unit_price) >= {top_tier} THEN {top_label}
            WHEN SUM(ol.quantity * ol.unit_price) >= {second_tier} THEN {second_label}
            WHEN SUM(ol.quantity * ol.unit_price) >= {third_tier} THEN {third_label}
            ELSE {bottom_label}
        END AS customer_segment
    FROM customers c
    JOIN orders o ON c.customer_id = o.customer_id
    JOIN order_lines ol ON o.transaction_id = ol.transaction_id
    WHERE ol.quantity > 0 AND ol.unit_price > 0
    GROUP BY c.customer_id, c.country
"""

CUSTOMER_DASHBOARD_VIEW = """
    CREATE VIEW v_customer_dashboard AS
    SELECT
        o.transaction_id,
        o.order_timestamp,
        o.order_timestamp::date AS order_date,
        EXTRACT(YEAR FROM o.order_timestamp)::int AS sales_year,
        EXTRACT(MONTH FROM o.order_timestamp)::int AS sales_month,
        TRIM(TO_CHAR(o.order_timestamp, 'Month')) AS month_name,
        TRIM(TO_CHAR(o.order_timestamp, 'Day')) AS day_of_week,
        c.customer_id,
        c.country,
        p.product_code,
        p.description AS product_description,
        ol.quantity,
        ol.unit_price,
        ol.revenue,
        CASE
            WHEN ol.revenue > {premium_line_revenue} THEN 'Premium Transaction'
            WHEN ol.revenue > {high_line_revenue} THEN 'High Value Transaction'
            WHEN ol.revenue > {medium_line_revenue} THEN 'Medium Value Transaction'
            ELSE 'Low Value Transaction'
        END AS transaction_category,
        CASE
            WHEN ol.quantity > {bulk_quantity} THEN 'Bulk Purchase'
            WHEN ol.quantity > {large_quantity} THEN 'Large Order'
            WHEN ol.quantity > {medium_quantity} THEN 'Medium Order'
            ELSE 'Small Order'
        END AS order_size
    FROM orders o
    JOIN customers c ON o.customer_id = c.customer_id
    JOIN order_lines ol ON o.transaction_id = ol.transaction_id
    JOIN products p ON ol.product_code = p.product_code
    WHERE ol.quantity > 0 AND ol.unit_price > 0
"""


class SchemaManager:
    """
    Manages the analytics schema.

    Handles:
    - Creating tables, constraints and indexes
    - (Re)creating the reporting views with configured thresholds
    - Emptying the tables before a full reload
    """

    def __init__(
        self,
        pool: DatabaseConnectionPool,
        segments: SegmentThresholds | None = None,
        reporting: ReportingSettings | None = None
    ):
        """
        Initialize schema manager.

        Args:
            pool: Database connection pool
            segments: Customer value segment cutoffs for v_customer_summary
            reporting: Line categories for v_customer_dashboard
        """
        self.pool = pool
        self.segments = segments or SegmentThresholds()
        self.reporting = reporting or ReportingSettings()

    def create_schema(self) -> None:
        """Create tables and indexes; existing objects are left untouched."""
        self.pool.execute_transaction([*TABLE_DDL, *INDEX_DDL])
        logger.info("Schema tables ensured", extra={"tables": list(LOAD_ORDER)})

    def create_views(self) -> None:
        """Drop and recreate the reporting views."""
        self.pool.execute_transaction([
            *(f"DROP VIEW IF EXISTS {name}" for name in VIEW_NAMES),
            self.customer_summary_view(),
            self.customer_dashboard_view(),
        ])
        logger.info("Reporting views created", extra={"views": list(VIEW_NAMES)})

    def customer_summary_view(self) -> sql.Composed:
        """DDL of v_customer_summary with segment cutoffs and labels bound as literals."""
        segments = self.segments
        return sql.SQL(CUSTOMER_SUMMARY_VIEW).format(
            top_tier=sql.Literal(segments.top_tier),
            second_tier=sql.Literal(segments.second_tier),
            third_tier=sql.Literal(segments.third_tier),
            top_label=sql.Literal(segments.top_label),
            second_label=sql.Literal(segments.second_label),
            third_label=sql.Literal(segments.third_label),
            bottom_label=sql.Literal(segments.bottom_label),
        )

    def customer_dashboard_view(self) -> sql.Composed:
        reporting = self.reporting
        return sql.SQL(CUSTOMER_DASHBOARD_VIEW).format(
            premium_line_revenue=sql.Literal(reporting.premium_line_revenue),
            high_line_revenue=sql.Literal(reporting.high_line_revenue),
            medium_line_revenue=sql.Literal(reporting.medium_line_revenue),
            bulk_quantity=sql.Literal(reporting.bulk_quantity),
            large_quantity=sql.Literal(reporting.large_quantity),
            medium_quantity=sql.Literal(reporting.medium_quantity),
        )

    def initialize(self) -> None:
        """Create tables, indexes and views."""
        self.create_schema()
        self.create_views()

    def truncate_all(self) -> None:
        """Empty the four tables, children first, in one transaction."""
        tables = ", ".join(reversed(LOAD_ORDER))
        self.pool.execute_transaction([f"TRUNCATE TABLE {tables} RESTART IDENTITY"])
        logger.info("Target tables truncated", extra={"tables": list(reversed(LOAD_ORDER))})

    def drop_all(self) -> None:
        """Drop views and tables."""
        self.pool.execute_transaction([
            *(f"DROP VIEW IF EXISTS {name}" for name in VIEW_NAMES),
            *(f"DROP TABLE IF EXISTS {table}" for table in reversed(LOAD_ORDER)),
        ])
        logger.warning("Schema dropped", extra={"tables": list(reversed(LOAD_ORDER))})
