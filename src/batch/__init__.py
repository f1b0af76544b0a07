"""
Spark batch processing module.
"""

from .pipeline import RetailETLPipeline
from .readers import CSVReader, FileReader
from .writers import BatchLoader

__all__ = [
    "RetailETLPipeline",
    "CSVReader",
    "FileReader",
    "BatchLoader",
]
