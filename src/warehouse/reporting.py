"""
Reporting datasets derived from the customer summary view.

Every dataset is produced by exactly one SQL query over v_customer_summary.
"""

from decimal import Decimal
from typing import Any

from src.core.models import ReportingSettings, SegmentThresholds
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

EXECUTIVE_SUMMARY_QUERY = """
    SELECT
        COUNT(*) AS total_customers,
        ROUND(COALESCE(SUM(total_revenue), 0), 2) AS total_revenue,
        ROUND(COALESCE(AVG(total_revenue), 0), 2) AS average_customer_value,
        COUNT(DISTINCT country) AS countries_served,
        ROUND(COALESCE(COUNT(*) FILTER (WHERE total_orders > 1) * 100.0 / NULLIF(COUNT(*), 0), 0), 1)
            AS repeat_customer_rate
    FROM v_customer_summary
"""

SEGMENT_DISTRIBUTION_QUERY = """
    SELECT
        customer_segment,
        COUNT(*) AS customer_count,
        ROUND(COUNT(*) * 100.0 / SUM(COUNT(*)) OVER (), 1) AS customer_percentage,
        ROUND(AVG(total_revenue), 2) AS avg_customer_value,
        ROUND(SUM(total_revenue), 2) AS segment_revenue,
        ROUND(SUM(total_revenue) * 100.0 / NULLIF(SUM(SUM(total_revenue)) OVER (), 0), 1) AS revenue_percentage,
        ROUND(AVG(total_orders), 1) AS avg_orders_per_customer,
        ROUND(AVG(avg_transaction_value), 2) AS avg_transaction_value
    FROM v_customer_summary
    GROUP BY customer_segment
    ORDER BY avg_customer_value DESC
"""

GEOGRAPHIC_PERFORMANCE_QUERY = """
    SELECT
        country,
        COUNT(*) AS total_customers,
        ROUND(AVG(total_orders), 1) AS avg_orders_per_customer,
        ROUND(AVG(total_revenue), 2) AS avg_revenue_per_customer,
        ROUND(SUM(total_revenue), 2) AS country_total_revenue,
        ROUND(AVG(customer_lifetime_days), 0) AS avg_customer_lifetime_days,
        ROUND(AVG(unique_products_purchased), 1) AS avg_products_per_customer,
        CASE
            WHEN SUM(total_revenue) >= %(major)s THEN 'Major Market'
            WHEN SUM(total_revenue) >= %(significant)s THEN 'Significant Market'
            WHEN SUM(total_revenue) >= %(emerging)s THEN 'Emerging Market'
            ELSE 'Small Market'
        END AS market_size,
        ROUND(COUNT(*) FILTER (WHERE customer_segment = %(top_label)s) * 100.0 / COUNT(*), 1)
            AS top_tier_customer_percentage
    FROM v_customer_summary
    GROUP BY country
    HAVING COUNT(*) >= %(min_customers)s
    ORDER BY country_total_revenue DESC
"""

CUSTOMER_BEHAVIOR_QUERY = """
    SELECT
        CASE
            WHEN total_orders = 1 THEN 'One-time Buyer'
            WHEN total_orders <= 3 THEN 'Occasional (2-3 orders)'
            WHEN total_orders <= 10 THEN 'Regular (4-10 orders)'
            ELSE 'Frequent (10+ orders)'
        END AS behavior_type,
        COUNT(*) AS customer_count,
        ROUND(COUNT(*) * 100.0 / SUM(COUNT(*)) OVER (), 1) AS customer_percentage,
        ROUND(AVG(total_revenue), 2) AS avg_customer_value,
        ROUND(SUM(total_revenue), 2) AS type_revenue,
        ROUND(AVG(avg_transaction_value), 2) AS avg_transaction_value,
        ROUND(AVG(total_orders), 1) AS avg_orders_per_customer
    FROM v_customer_summary
    GROUP BY behavior_type
    ORDER BY avg_customer_value DESC
"""

TOP_CUSTOMERS_QUERY = """
    SELECT
        customer_id,
        country,
        total_orders,
        ROUND(total_revenue, 2) AS total_revenue,
        ROUND(avg_transaction_value, 2) AS avg_transaction_value,
        customer_segment,
        unique_products_purchased,
        customer_lifetime_days,
        CASE
            WHEN customer_lifetime_days = 0 THEN 'Single Day'
            WHEN customer_lifetime_days <= 30 THEN 'Short Term (30 days or less)'
            WHEN customer_lifetime_days <= 90 THEN 'Medium Term (31-90 days)'
            ELSE 'Long Term (90+ days)'
        END AS customer_lifecycle,
        first_order,
        last_order
    FROM v_customer_summary
    ORDER BY total_revenue DESC, customer_id
    LIMIT %(limit)s
"""


def _plain(row: dict[str, Any]) -> dict[str, Any]:
    """Convert NUMERIC values to floats."""
    return {key: float(value) if isinstance(value, Decimal) else value for key, value in row.items()}


class ReportingService:
    """
    Produces the dashboard datasets from persisted data.
    """

    def __init__(
        self,
        pool: DatabaseConnectionPool,
        segments: SegmentThresholds | None = None,
        reporting: ReportingSettings | None = None
    ):
        self.pool = pool
        self.segments = segments or SegmentThresholds()
        self.reporting = reporting or ReportingSettings()

    def executive_summary(self) -> dict[str, Any]:
        rows = self.pool.execute_query(EXECUTIVE_SUMMARY_QUERY)
        return _plain(rows[0]) if rows else {}

    def segment_distribution(self) -> list[dict[str, Any]]:
        return [_plain(row) for row in self.pool.execute_query(SEGMENT_DISTRIBUTION_QUERY)]

    def geographic_performance(self) -> list[dict[str, Any]]:
        """
        Per-country performance for countries with enough customers.

        One grouped query; market size and top-tier share are computed in SQL.
        """
        params = {
            "major": self.reporting.major_market_revenue,
            "significant": self.reporting.significant_market_revenue,
            "emerging": self.reporting.emerging_market_revenue,
            "top_label": self.segments.top_label,
            "min_customers": self.reporting.min_country_customers,
        }
        return [_plain(row) for row in self.pool.execute_query(GEOGRAPHIC_PERFORMANCE_QUERY, params)]

    def customer_behavior(self) -> list[dict[str, Any]]:
        return [_plain(row) for row in self.pool.execute_query(CUSTOMER_BEHAVIOR_QUERY)]

    def top_customers(self, limit: int | None = None) -> list[dict[str, Any]]:
        params = {"limit": limit or self.reporting.top_customers_limit}
        return [_plain(row) for row in self.pool.execute_query(TOP_CUSTOMERS_QUERY, params)]

    def build_all(self) -> dict[str, Any]:
        """
        Build every dataset.

        Returns:
            Dataset name -> rows (the executive summary is a single mapping)
        """
        datasets = {
            "executive_summary": self.executive_summary(),
            "segment_distribution": self.segment_distribution(),
            "geographic_performance": self.geographic_performance(),
            "customer_behavior": self.customer_behavior(),
            "top_customers": self.top_customers(),
        }
        logger.info(
            "Reporting datasets built",
            extra={name: len(rows) for name, rows in datasets.items() if isinstance(rows, list)}
        )
        return datasets
