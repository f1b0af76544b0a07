"""
Batch extract readers.
"""

from .csv_reader import CSVReader
from .file_reader import SUPPORTED_FORMATS, FileReader

__all__ = [
    "CSVReader",
    "FileReader",
    "SUPPORTED_FORMATS",
]
