"""
Extract reader for multiple formats (CSV, JSON, Parquet).

Reads the whole extract and materializes it as RawRecord models before
any cleaning starts.
"""

from pathlib import Path

from pyspark.errors import AnalysisException
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType

from src.core.errors import SourceReadError
from src.core.models import RawRecord
from src.observability.logger import get_logger
from src.observability.metrics import increment_counter, records_read_total

from .csv_reader import CSVReader

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("csv", "json", "parquet")


class FileReader:
    """
    Generic extract reader supporting multiple formats.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize file reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(
        self,
        file_path: str,
        file_format: str = "csv",
        schema: StructType | None = None,
        **options
    ) -> DataFrame:
        """
        Read file into Spark DataFrame.

        Args:
            file_path: Path to file
            file_format: Format (csv, json, parquet)
            schema: Optional explicit schema
            **options: Format-specific options

        Returns:
            Spark DataFrame

        Raises:
            ValueError: If file format is unsupported
        """
        file_format = file_format.lower()
        if file_format == "csv":
            return self.csv_reader.read(file_path, schema=schema, **options)
        elif file_format == "json":
            reader = self.spark.read
            if schema:
                reader = reader.schema(schema)
            return reader.json(file_path)
        elif file_format == "parquet":
            return self.spark.read.parquet(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

    def read_records(self, file_path: str, file_format: str = "csv", **options) -> list[RawRecord]:
        """
        Read the extract into RawRecords, numbered from 1 in file order.

        Args:
            file_path: Path to the extract
            file_format: Format (csv, json, parquet)
            **options: Format-specific options

        Returns:
            Every row of the extract as a RawRecord

        Raises:
            SourceReadError: If the extract is missing, unreadable or of an unsupported format
        """
        if file_format.lower() not in SUPPORTED_FORMATS:
            raise SourceReadError(file_path, f"unsupported format '{file_format}'")

        if not Path(file_path).exists():
            raise SourceReadError(file_path, "file not found")

        try:
            rows = self.read(file_path, file_format, **options).collect()
        except AnalysisException as e:
            raise SourceReadError(file_path, str(e)) from e

        records = [
            RawRecord.from_source_row(row.asDict(), row_number=index)
            for index, row in enumerate(rows, start=1)
        ]

        increment_counter(records_read_total, len(records), source_format=file_format.lower())
        logger.info(
            "Extract read",
            extra={"file_path": file_path, "format": file_format, "records": len(records)}
        )
        return records
