"""
Batch loader for normalized entity sets.

Writes each set in fixed-size chunks, parents before children, one
transaction per chunk.
"""

from collections.abc import Iterator, Sequence
from typing import Any

import psycopg

from src.core.errors import LoadError, LoadOrderError
from src.core.models import LOAD_ORDER, ChunkSizes, EntitySets
from src.observability.logger import get_logger, log_operation
from src.observability.metrics import (
    chunk_write_duration_seconds,
    chunks_written_total,
    increment_counter,
    rows_loaded_total,
    track_duration,
)
from src.warehouse.table_writer import EntityTableWriter

logger = get_logger(__name__)

# Entity set -> sets whose rows it references
DEPENDENCIES = {
    "customers": (),
    "products": (),
    "orders": ("customers",),
    "order_lines": ("orders", "products"),
}


def chunked(rows: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most `size` rows."""
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class BatchLoader:
    """
    Loads entity sets into storage in dependency order.

    A failed chunk aborts the run: earlier chunks stay committed, nothing is
    retried or skipped, and LoadError reports how far the set got.
    """

    def __init__(self, writer: EntityTableWriter, chunk_sizes: ChunkSizes | None = None):
        """
        Initialize batch loader.

        Args:
            writer: Table writer executing one transaction per chunk
            chunk_sizes: Rows per chunk for each entity set
        """
        self.writer = writer
        self.chunk_sizes = chunk_sizes or ChunkSizes()
        self.rows_loaded: dict[str, int] = {}
        self._completed: set[str] = set()

    def load_set(self, entity: str, rows: Sequence[Any]) -> int:
        """
        Load one entity set.

        Args:
            entity: Entity set name
            rows: Entity models exposing as_row()

        Returns:
            Number of rows written

        Raises:
            LoadOrderError: If a referenced set has not been loaded yet
            LoadError: If a chunk write fails
        """
        if entity not in DEPENDENCIES:
            raise ValueError(f"Unknown entity set: {entity}")

        missing = [parent for parent in DEPENDENCIES[entity] if parent not in self._completed]
        if missing:
            raise LoadOrderError(entity, missing)

        chunk_size = self.chunk_sizes.for_entity(entity)
        loaded = 0
        self.rows_loaded[entity] = 0

        with log_operation(f"Loading {entity}", logger=logger, entity=entity, rows=len(rows)):
            for chunk_index, chunk in enumerate(chunked(rows, chunk_size), start=1):
                try:
                    with track_duration(chunk_write_duration_seconds, entity=entity):
                        written = self.writer.write_rows(entity, [row.as_row() for row in chunk])
                except psycopg.Error as e:
                    increment_counter(chunks_written_total, entity=entity, status="failure")
                    raise LoadError(entity, chunk_index, loaded, str(e)) from e

                loaded += written
                self.rows_loaded[entity] = loaded
                increment_counter(chunks_written_total, entity=entity, status="success")
                increment_counter(rows_loaded_total, written, entity=entity)
                logger.debug(
                    "Chunk committed",
                    extra={"entity": entity, "chunk_index": chunk_index, "rows": written, "rows_loaded": loaded}
                )

        self._completed.add(entity)
        return loaded

    def load_all(self, entity_sets: EntitySets) -> dict[str, int]:
        """
        Load every entity set in dependency order.

        Returns:
            Rows written per entity set
        """
        for entity in LOAD_ORDER:
            self.load_set(entity, entity_sets.rows_for(entity))
        return dict(self.rows_loaded)

    def reset(self) -> None:
        """Forget completed sets before loading into emptied tables."""
        self._completed.clear()
        self.rows_loaded.clear()
