"""
Field normalizer: turns a raw extract row into canonical typed values.
"""

from typing import Any

from src.core.errors import UnrecoverableRecordError
from src.core.models import BusinessRules, RawRecord, line_revenue

from .numbers import to_int, to_number
from .text import clean_text, normalize_country, normalize_description
from .timestamps import resolve_timestamp


class FieldNormalizer:
    """
    Coerces every field of a RawRecord to its canonical type.

    A record whose numbers or timestamp cannot be coerced is unrecoverable:
    normalize() raises UnrecoverableRecordError and the record filter drops
    it. Nothing is repaired.
    """

    def __init__(self, rules: BusinessRules | None = None):
        """
        Initialize field normalizer.

        Args:
            rules: Business rules supplying the country alias table and
                   the unknown-description sentinel
        """
        self.rules = rules or BusinessRules()

    def normalize(self, raw: RawRecord) -> dict[str, Any]:
        """
        Normalize one raw record.

        Args:
            raw: Record that passed the required-field check

        Returns:
            Payload with canonical values and the computed line revenue

        Raises:
            UnrecoverableRecordError: If a field cannot be coerced
        """
        customer_id = to_int(raw.customer_id)
        if customer_id is None:
            raise UnrecoverableRecordError("customer_id", f"not an integer: {raw.customer_id!r}")

        quantity = to_int(raw.quantity)
        if quantity is None:
            raise UnrecoverableRecordError("quantity", f"not an integer: {raw.quantity!r}")

        unit_price = to_number(raw.unit_price)
        if unit_price is None:
            raise UnrecoverableRecordError("unit_price", f"not a number: {raw.unit_price!r}")

        transaction_id = clean_text(raw.transaction_id)
        product_code = clean_text(raw.product_code)
        country = normalize_country(raw.country, self.rules.country_aliases)
        for field_name, value in (
            ("transaction_id", transaction_id),
            ("product_code", product_code),
            ("country", country),
        ):
            if value is None:
                raise UnrecoverableRecordError(field_name, "empty after trimming")

        timestamp = resolve_timestamp(raw.timestamp)
        if timestamp is None:
            raise UnrecoverableRecordError("timestamp", f"unrecognized date encoding: {raw.timestamp!r}")

        return {
            "transaction_id": transaction_id,
            "product_code": product_code,
            "description": normalize_description(raw.description, self.rules.unknown_description),
            "quantity": quantity,
            "unit_price": unit_price,
            "timestamp": timestamp,
            "customer_id": customer_id,
            "country": country,
            "revenue": line_revenue(quantity, unit_price),
        }
