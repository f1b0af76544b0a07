"""
CSV reader using Spark for batch extracts.
"""

from typing import Optional

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType


class CSVReader:
    """
    Reads CSV extracts using Spark with schema inference or explicit schema.

    With inference on, InvoiceDate cells arrive as strings or timestamps and
    CustomerID as doubles; the field normalizer resolves both.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def read(
        self,
        file_path: str,
        schema: Optional[StructType] = None,
        header: bool = True,
        delimiter: str = ",",
        infer_schema: bool = True,
        encoding: str = "UTF-8"
    ) -> DataFrame:
        """
        Read CSV file into Spark DataFrame.

        Args:
            file_path: Path to CSV file
            schema: Optional explicit schema
            header: Whether CSV has header row
            delimiter: Field delimiter
            infer_schema: Whether to infer schema if not provided
            encoding: Source file encoding (the retail export is often ISO-8859-1)

        Returns:
            Spark DataFrame
        """
        reader = self.spark.read

        if schema:
            reader = reader.schema(schema)
        elif infer_schema:
            reader = reader.option("inferSchema", "true")

        return reader \
            .option("header", str(header).lower()) \
            .option("delimiter", delimiter) \
            .option("encoding", encoding) \
            .option("mode", "PERMISSIVE") \
            .option("columnNameOfCorruptRecord", "_corrupt_record") \
            .csv(file_path)
