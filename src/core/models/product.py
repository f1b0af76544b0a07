"""
Product model: one row per distinct stock code.
"""

from pydantic import BaseModel, Field


class Product(BaseModel):
    """
    Product catalog row.

    Products are priced inconsistently across transactions, so the catalog
    price is the mean of every surviving line price for the code.

    Attributes:
        product_code: Stock code (PK)
        description: First real description observed for the code
        unit_price: Mean line price, rounded to 2 decimals
    """

    product_code: str = Field(..., min_length=1, max_length=20)
    description: str
    unit_price: float = Field(..., ge=0)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "product_code": "85123A",
                "description": "WHITE HANGING HEART T-LIGHT HOLDER",
                "unit_price": 2.86
            }
        }

    def as_row(self) -> tuple:
        return (self.product_code, self.description, self.unit_price)
