"""
Order model: one row per distinct transaction id.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Order(BaseModel):
    """
    Transaction header row.

    Attributes:
        transaction_id: Invoice number (PK)
        timestamp: Invoice date-time
        customer_id: Purchasing customer (FK to Customer)
    """

    transaction_id: str = Field(..., min_length=1, max_length=20)
    timestamp: datetime
    customer_id: int = Field(..., gt=0)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "transaction_id": "536365",
                "timestamp": "2010-12-01T08:26:00",
                "customer_id": 17850
            }
        }

    def as_row(self) -> tuple:
        return (self.transaction_id, self.timestamp, self.customer_id)
