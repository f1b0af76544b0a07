"""
CleanLineRecord model representing a raw row that survived cleaning.
"""

from datetime import datetime

from pydantic import BaseModel, Field


def line_revenue(quantity: int, unit_price: float) -> float:
    """Line revenue, rounded to cents."""
    return round(quantity * unit_price, 2)


class CleanLineRecord(BaseModel):
    """
    A transaction line with canonical types.

    Positivity constraints are enforced here; the upper outlier bounds are
    configurable and applied by the record filter.

    Attributes:
        transaction_id: Trimmed invoice number, never a cancellation
        product_code: Trimmed stock code
        description: Trimmed description or the unknown-product sentinel
        quantity: Units sold (> 0)
        unit_price: Price per unit (> 0)
        timestamp: Resolved invoice date-time
        customer_id: Customer identifier (> 0)
        country: Title-cased, alias-mapped country name
    """

    transaction_id: str = Field(..., min_length=1)
    product_code: str = Field(..., min_length=1)
    description: str
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., gt=0)
    timestamp: datetime
    customer_id: int = Field(..., gt=0)
    country: str = Field(..., min_length=1)

    class Config:
        frozen = True

    @property
    def revenue(self) -> float:
        return line_revenue(self.quantity, self.unit_price)
