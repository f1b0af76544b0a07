"""
RawRecord model representing one row of the transaction extract (ephemeral).
"""

import math
from typing import Any

from pydantic import BaseModel

# Header names used by the Online Retail export -> canonical field names
SOURCE_COLUMNS = {
    "InvoiceNo": "transaction_id",
    "StockCode": "product_code",
    "Description": "description",
    "Quantity": "quantity",
    "InvoiceDate": "timestamp",
    "UnitPrice": "unit_price",
    "CustomerID": "customer_id",
    "Country": "country",
}

RAW_FIELDS = tuple(SOURCE_COLUMNS.values())


class RawRecord(BaseModel):
    """
    One row of the source extract, exactly as read.

    No invariants hold: any field may be missing, blank, or carry a value of
    an unexpected type. Discarded once the record filter has run.

    Attributes:
        row_number: 1-based position in the extract
        transaction_id: Invoice number (cancellations carry a "C" prefix)
        product_code: Stock code
        description: Free-text product description
        quantity: Units sold
        unit_price: Price per unit
        timestamp: Invoice date-time in one of several encodings
        customer_id: Customer identifier
        country: Free-text country name
    """

    row_number: int | None = None
    transaction_id: Any = None
    product_code: Any = None
    description: Any = None
    quantity: Any = None
    unit_price: Any = None
    timestamp: Any = None
    customer_id: Any = None
    country: Any = None

    class Config:
        extra = "ignore"
        frozen = True
        json_schema_extra = {
            "example": {
                "row_number": 1,
                "transaction_id": "536365",
                "product_code": "85123A",
                "description": "WHITE HANGING HEART T-LIGHT HOLDER",
                "quantity": 6,
                "unit_price": 2.55,
                "timestamp": "12/1/2010 8:26",
                "customer_id": 17850.0,
                "country": "United Kingdom"
            }
        }

    @classmethod
    def from_source_row(cls, row: dict[str, Any], row_number: int | None = None) -> "RawRecord":
        """
        Build a RawRecord from a row keyed by export headers or field names.

        Float NaN cells (missing numerics in some readers) become None.
        """
        values: dict[str, Any] = {}
        for key, value in row.items():
            field_name = SOURCE_COLUMNS.get(key, key)
            if field_name not in RAW_FIELDS:
                continue
            if isinstance(value, float) and math.isnan(value):
                value = None
            values[field_name] = value
        return cls(row_number=row_number, **values)

    def as_payload(self) -> dict[str, Any]:
        """Field values keyed by canonical name, for validators."""
        return {name: getattr(self, name) for name in RAW_FIELDS}
