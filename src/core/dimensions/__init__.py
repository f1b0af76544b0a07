"""
Dimensional decomposition of clean line records into entity sets.
"""

from .normalizer import DimensionalNormalizer

__all__ = ["DimensionalNormalizer"]
