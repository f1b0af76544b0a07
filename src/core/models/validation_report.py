"""
ValidationReport model representing the post-load consistency checks.
"""

from pydantic import BaseModel, Field


class CheckResult(BaseModel):
    """
    One post-load check comparing an expected value with persisted state.

    Attributes:
        name: Check identifier (e.g. "row_count.orders", "orphans.order_lines_without_order")
        expected: Value derived in memory before load (None if unknown)
        observed: Value read back from storage
        passed: Whether observed matches expected within tolerance
    """

    name: str
    expected: float | None = None
    observed: float | None = None
    passed: bool

    @property
    def delta(self) -> float | None:
        if self.expected is None or self.observed is None:
            return None
        return round(self.observed - self.expected, 2)

    def describe(self) -> str:
        if self.expected is None:
            return f"{self.name}: observed {self.observed}"
        return f"{self.name}: expected {self.expected}, observed {self.observed} (delta {self.delta})"


class ValidationReport(BaseModel):
    """
    Outcome of the validation reporter. Mismatches are warnings, never fatal.
    """

    checks: list[CheckResult] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def mismatches(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.passed]

    @property
    def warnings(self) -> list[str]:
        return [check.describe() for check in self.mismatches]

    def get(self, name: str) -> CheckResult | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None
