"""
EntitySets model bundling the four normalized entity sets of a run.
"""

import math

from pydantic import BaseModel, Field

from .customer import Customer
from .order import Order
from .order_line import OrderLine
from .product import Product

# Parents before children; loading and truncation both follow this order
LOAD_ORDER = ("customers", "products", "orders", "order_lines")


class EntitySets(BaseModel):
    """
    The relational decomposition of a cleaned extract.

    Immutable once built; the loader and the validation reporter both read
    from the same instance.

    Attributes:
        customers: Sorted by customer_id
        products: Sorted by product_code
        orders: Sorted by (timestamp, transaction_id)
        order_lines: Sorted by (transaction_id, product_code)
        customer_conflicts: Customer ids seen with more than one country
        order_conflicts: Transaction ids seen with more than one timestamp or customer
    """

    customers: tuple[Customer, ...] = ()
    products: tuple[Product, ...] = ()
    orders: tuple[Order, ...] = ()
    order_lines: tuple[OrderLine, ...] = ()
    customer_conflicts: int = Field(0, ge=0)
    order_conflicts: int = Field(0, ge=0)

    class Config:
        frozen = True

    def rows_for(self, entity: str) -> tuple:
        return getattr(self, entity)

    def counts(self) -> dict[str, int]:
        return {entity: len(self.rows_for(entity)) for entity in LOAD_ORDER}

    def total_revenue(self) -> float:
        """Sum of quantity x unit price over all lines, rounded to cents."""
        return round(math.fsum(line.quantity * line.unit_price for line in self.order_lines), 2)
