"""
ValidationResult model representing the outcome of one filter stage on one record (ephemeral).
"""

from pydantic import BaseModel, Field, field_validator


class ValidationResult(BaseModel):
    """
    Outcome of checking a record against the rules of one filter stage.

    Note: ValidationResult is ephemeral, not persisted to database
    (used in-memory during cleaning).

    Attributes:
        row_number: Position of the record in the extract, if known
        stage: Filter stage the rules belong to
        passed: Whether every rule of the stage passed
        passed_rules: Rules that succeeded
        failed_rules: Rules that failed
        error_messages: Messages of the failed rules, same order
    """

    row_number: int | None = None
    stage: str
    passed: bool
    passed_rules: list[str] = Field(default_factory=list)
    failed_rules: list[str] = Field(default_factory=list)
    error_messages: list[str] = Field(default_factory=list)

    @field_validator('failed_rules')
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failed_rules is empty."""
        if info.data.get('passed') and len(v) > 0:
            raise ValueError("passed=True but failed_rules is not empty")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "row_number": 42,
                "stage": "business_rules",
                "passed": False,
                "passed_rules": ["quantity_positive", "unit_price_positive"],
                "failed_rules": ["transaction_not_cancelled"],
                "error_messages": [
                    "Value 'C536379' does not match pattern '^(?!C)'"
                ]
            }
        }
