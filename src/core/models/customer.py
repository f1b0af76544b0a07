"""
Customer model: one row per distinct customer id.
"""

from pydantic import BaseModel, Field


class Customer(BaseModel):
    """
    Customer dimension row.

    Attributes:
        customer_id: Customer identifier (PK)
        country: Normalized country name
    """

    customer_id: int = Field(..., gt=0)
    country: str = Field(..., min_length=1, max_length=100)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "customer_id": 17850,
                "country": "United Kingdom"
            }
        }

    def as_row(self) -> tuple:
        return (self.customer_id, self.country)
