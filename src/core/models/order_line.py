"""
OrderLine model: one row per surviving source line.
"""

from pydantic import BaseModel, Field

from .clean_line_record import line_revenue


class OrderLine(BaseModel):
    """
    Transaction line item.

    The unit price is the line's own, not the catalog price. Identical lines
    are kept as separate rows.

    Attributes:
        transaction_id: Parent order (FK to Order)
        product_code: Product sold (FK to Product)
        quantity: Units sold
        unit_price: Price charged on this line
    """

    transaction_id: str = Field(..., min_length=1, max_length=20)
    product_code: str = Field(..., min_length=1, max_length=20)
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., gt=0)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "transaction_id": "536365",
                "product_code": "85123A",
                "quantity": 6,
                "unit_price": 2.55
            }
        }

    @property
    def revenue(self) -> float:
        return line_revenue(self.quantity, self.unit_price)

    def as_row(self) -> tuple:
        return (self.transaction_id, self.product_code, self.quantity, self.unit_price)
