"""
Post-load validation: compares persisted state with the in-memory entity sets.

Every check is reported; a mismatch is logged as a warning with its delta and
never aborts the run.
"""

from decimal import Decimal

from src.core.models import LOAD_ORDER, CheckResult, EntitySets, ValidationReport
from src.observability.logger import get_logger
from src.observability.metrics import increment_counter, validation_mismatches_total

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

REVENUE_TOLERANCE = 0.01

ROW_COUNT_QUERIES = {
    entity: f"SELECT COUNT(*) AS value FROM {entity}" for entity in LOAD_ORDER
}

REVENUE_QUERY = "SELECT COALESCE(SUM(quantity * unit_price), 0) AS value FROM order_lines"

ORPHAN_QUERIES = {
    "order_lines_without_order": """
        SELECT COUNT(*) AS value
        FROM order_lines ol
        LEFT JOIN orders o ON ol.transaction_id = o.transaction_id
        WHERE o.transaction_id IS NULL
    """,
    "order_lines_without_product": """
        SELECT COUNT(*) AS value
        FROM order_lines ol
        LEFT JOIN products p ON ol.product_code = p.product_code
        WHERE p.product_code IS NULL
    """,
    "orders_without_customer": """
        SELECT COUNT(*) AS value
        FROM orders o
        LEFT JOIN customers c ON o.customer_id = c.customer_id
        WHERE c.customer_id IS NULL
    """,
}

DUPLICATE_QUERIES = {
    entity: f"""
        SELECT COUNT(*) AS value
        FROM (SELECT {key} FROM {entity} GROUP BY {key} HAVING COUNT(*) > 1) duplicated
    """
    for entity, key in (
        ("customers", "customer_id"),
        ("products", "product_code"),
        ("orders", "transaction_id"),
    )
}

OVER_BOUND_QUERY = "SELECT COUNT(*) AS value FROM order_lines WHERE revenue > %s"

SUMMARY_VIEW_EXISTS_QUERY = "SELECT to_regclass('v_customer_summary') IS NOT NULL AS value"

SUMMARY_VIEW_ROWS_QUERY = "SELECT COUNT(*) AS value FROM v_customer_summary"

CUSTOMERS_WITH_ORDERS_QUERY = """
    SELECT COUNT(DISTINCT o.customer_id) AS value
    FROM orders o
    JOIN order_lines ol ON o.transaction_id = ol.transaction_id
"""


class ValidationReporter:
    """
    Runs consistency checks against the analytics tables.

    Checks:
    - row_count.<entity>: persisted rows per set
    - total_revenue: sum of quantity x unit price over persisted lines
    - orphans.<relation>: lines without order or product, orders without customer
    - duplicates.<entity>: repeated keys in customers, products, orders
    - lines_over_revenue_bound: persisted lines above the revenue bound
    - customer_summary_rows: one summary view row per customer with orders
    """

    def __init__(self, pool: DatabaseConnectionPool, max_line_revenue: float = 50_000.0):
        """
        Initialize validation reporter.

        Args:
            pool: Database connection pool
            max_line_revenue: Revenue bound that no persisted line may exceed
        """
        self.pool = pool
        self.max_line_revenue = max_line_revenue

    def validate(self, entity_sets: EntitySets | None = None) -> ValidationReport:
        """
        Run every check.

        Args:
            entity_sets: Sets that were loaded; without them counts and revenue
                         are reported as observed values only

        Returns:
            ValidationReport with one CheckResult per check
        """
        checks = [
            *self.check_row_counts(entity_sets),
            self.check_total_revenue(entity_sets),
            *self.check_orphans(),
            *self.check_duplicates(),
            self.check_revenue_bound(),
            self.check_summary_view(),
        ]
        report = ValidationReport(checks=checks)

        for mismatch in report.mismatches:
            increment_counter(validation_mismatches_total, check=mismatch.name)
            logger.warning(
                "Validation mismatch",
                extra={
                    "check": mismatch.name,
                    "expected": mismatch.expected,
                    "observed": mismatch.observed,
                    "delta": mismatch.delta,
                }
            )

        logger.info(
            "Validation completed",
            extra={"checks": len(report.checks), "mismatches": len(report.mismatches)}
        )
        return report

    def check_row_counts(self, entity_sets: EntitySets | None = None) -> list[CheckResult]:
        expected = entity_sets.counts() if entity_sets is not None else {}
        checks = []
        for entity in LOAD_ORDER:
            observed = self._scalar(ROW_COUNT_QUERIES[entity])
            checks.append(CheckResult(
                name=f"row_count.{entity}",
                expected=expected.get(entity),
                observed=observed,
                passed=entity not in expected or observed == expected[entity],
            ))
        return checks

    def check_total_revenue(self, entity_sets: EntitySets | None = None) -> CheckResult:
        observed = round(self._scalar(REVENUE_QUERY), 2)
        if entity_sets is None:
            return CheckResult(name="total_revenue", observed=observed, passed=True)

        expected = entity_sets.total_revenue()
        return CheckResult(
            name="total_revenue",
            expected=expected,
            observed=observed,
            passed=abs(observed - expected) <= REVENUE_TOLERANCE + 1e-9,
        )

    def check_orphans(self) -> list[CheckResult]:
        return [
            self._expect_zero(f"orphans.{relation}", query)
            for relation, query in ORPHAN_QUERIES.items()
        ]

    def check_duplicates(self) -> list[CheckResult]:
        return [
            self._expect_zero(f"duplicates.{entity}", query)
            for entity, query in DUPLICATE_QUERIES.items()
        ]

    def check_revenue_bound(self) -> CheckResult:
        return self._expect_zero("lines_over_revenue_bound", OVER_BOUND_QUERY, (self.max_line_revenue,))

    def check_summary_view(self) -> CheckResult:
        expected = self._scalar(CUSTOMERS_WITH_ORDERS_QUERY)
        view_exists = self.pool.execute_query(SUMMARY_VIEW_EXISTS_QUERY)[0]["value"]
        if not view_exists:
            logger.warning("Customer summary view is missing, run init-db")
            return CheckResult(name="customer_summary_rows", expected=expected, observed=None, passed=False)

        observed = self._scalar(SUMMARY_VIEW_ROWS_QUERY)
        return CheckResult(
            name="customer_summary_rows",
            expected=expected,
            observed=observed,
            passed=observed == expected,
        )

    def _expect_zero(self, name: str, query: str, params: tuple | None = None) -> CheckResult:
        observed = self._scalar(query, params)
        return CheckResult(name=name, expected=0, observed=observed, passed=observed == 0)

    def _scalar(self, query: str, params: tuple | None = None) -> float:
        result = self.pool.execute_query(query, params)
        value = result[0]["value"] if result else 0
        if isinstance(value, Decimal):
            return float(value)
        return value or 0
