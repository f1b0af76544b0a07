"""
Writers persisting normalized entity sets.
"""

from .batch_loader import DEPENDENCIES, BatchLoader, chunked

__all__ = ["BatchLoader", "DEPENDENCIES", "chunked"]
