"""
Error taxonomy for the retail ETL pipeline.

Fatal errors derive from PipelineError and carry the stage label used in
operator diagnostics. Record-level errors never abort a run: the record
filter catches them and counts the drop.
"""


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"[{stage}] {message}")


class SourceReadError(PipelineError):
    """Raised when the transaction extract is missing or unreadable."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__("extract", f"{path}: {message}")


class LoadError(PipelineError):
    """
    Raised when writing a chunk of an entity set fails.

    Attributes:
        entity: Entity set being loaded (customers, products, ...)
        chunk_index: 1-based index of the failed chunk
        rows_loaded: Rows of this set committed before the failure
    """

    def __init__(self, entity: str, chunk_index: int, rows_loaded: int, message: str):
        self.entity = entity
        self.chunk_index = chunk_index
        self.rows_loaded = rows_loaded
        super().__init__(
            "load",
            f"{entity} chunk {chunk_index} failed after {rows_loaded} rows committed: {message}"
        )


class LoadOrderError(PipelineError):
    """Raised when an entity set is loaded before a set it references."""

    def __init__(self, entity: str, missing: list[str]):
        self.entity = entity
        self.missing = missing
        super().__init__(
            "load",
            f"{entity} cannot be loaded before {', '.join(missing)}"
        )


class StorageError(PipelineError):
    """
    Raised when storage is unreachable or rejects a schema-level command.

    Attributes:
        operation: What was being attempted (connect, schema setup, truncate, ...)
    """

    def __init__(self, stage: str, operation: str, message: str):
        self.operation = operation
        super().__init__(stage, f"{operation} failed: {message}")


class UnrecoverableRecordError(Exception):
    """Raised by field normalization when a raw value cannot be coerced."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"{field_name}: {reason}")
