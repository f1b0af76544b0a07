"""
Dimensional normalizer: splits the flat clean record stream into the
customer, product, order and order line entity sets.

Pure and deterministic: the same input sequence always yields equal sets.
"""

import math
from collections.abc import Sequence
from datetime import datetime

from src.core.models import (
    BusinessRules,
    CleanLineRecord,
    Customer,
    EntitySets,
    Order,
    OrderLine,
    Product,
)
from src.observability.logger import get_logger

logger = get_logger(__name__)


class DimensionalNormalizer:
    """
    Derives the four entity sets from clean line records.

    Tie-breaks follow encounter order:
    - a customer's country is the first one observed for its id
    - an order's timestamp and customer are the first ones observed for its id
    - a product's description is the first one that is not the
      unknown-product sentinel
    """

    def __init__(self, rules: BusinessRules | None = None):
        self.rules = rules or BusinessRules()

    def normalize(self, records: Sequence[CleanLineRecord]) -> EntitySets:
        """
        Decompose clean records into entity sets.

        Args:
            records: Clean line records in extract order

        Returns:
            EntitySets with conflict counts
        """
        customers, customer_conflicts = self.build_customers(records)
        orders, order_conflicts = self.build_orders(records)

        if customer_conflicts:
            logger.warning(
                "Customers observed with conflicting countries, first country kept",
                extra={"conflicts": customer_conflicts}
            )
        if order_conflicts:
            logger.warning(
                "Orders observed with conflicting headers, first header kept",
                extra={"conflicts": order_conflicts}
            )

        return EntitySets(
            customers=customers,
            products=self.build_products(records),
            orders=orders,
            order_lines=self.build_order_lines(records),
            customer_conflicts=customer_conflicts,
            order_conflicts=order_conflicts,
        )

    def build_customers(self, records: Sequence[CleanLineRecord]) -> tuple[tuple[Customer, ...], int]:
        countries: dict[int, str] = {}
        conflicted: set[int] = set()

        for record in records:
            seen = countries.setdefault(record.customer_id, record.country)
            if seen != record.country:
                conflicted.add(record.customer_id)

        customers = tuple(
            Customer(customer_id=customer_id, country=countries[customer_id])
            for customer_id in sorted(countries)
        )
        return customers, len(conflicted)

    def build_products(self, records: Sequence[CleanLineRecord]) -> tuple[Product, ...]:
        sentinel = self.rules.unknown_description
        descriptions: dict[str, str] = {}
        prices: dict[str, list[float]] = {}

        for record in records:
            prices.setdefault(record.product_code, []).append(record.unit_price)
            current = descriptions.get(record.product_code)
            if current is None or (current == sentinel and record.description != sentinel):
                descriptions[record.product_code] = record.description

        return tuple(
            Product(
                product_code=code,
                description=descriptions[code],
                unit_price=round(math.fsum(prices[code]) / len(prices[code]), 2),
            )
            for code in sorted(prices)
        )

    def build_orders(self, records: Sequence[CleanLineRecord]) -> tuple[tuple[Order, ...], int]:
        headers: dict[str, tuple[datetime, int]] = {}
        conflicted: set[str] = set()

        for record in records:
            header = (record.timestamp, record.customer_id)
            seen = headers.setdefault(record.transaction_id, header)
            if seen != header:
                conflicted.add(record.transaction_id)

        orders = sorted(
            (
                Order(transaction_id=transaction_id, timestamp=timestamp, customer_id=customer_id)
                for transaction_id, (timestamp, customer_id) in headers.items()
            ),
            key=lambda order: (order.timestamp, order.transaction_id),
        )
        return tuple(orders), len(conflicted)

    def build_order_lines(self, records: Sequence[CleanLineRecord]) -> tuple[OrderLine, ...]:
        lines = (
            OrderLine(
                transaction_id=record.transaction_id,
                product_code=record.product_code,
                quantity=record.quantity,
                unit_price=record.unit_price,
            )
            for record in records
        )
        # sorted() is stable, duplicate lines keep extract order
        return tuple(sorted(lines, key=lambda line: (line.transaction_id, line.product_code)))
