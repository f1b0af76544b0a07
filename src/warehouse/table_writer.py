"""
Append-only writes of entity rows to the analytics tables.
"""

from collections.abc import Sequence

from .connection import DatabaseConnectionPool

INSERT_SQL = {
    "customers": """
        INSERT INTO customers (customer_id, country)
        VALUES (%s, %s)
    """,
    "products": """
        INSERT INTO products (product_code, description, unit_price)
        VALUES (%s, %s, %s)
    """,
    "orders": """
        INSERT INTO orders (transaction_id, order_timestamp, customer_id)
        VALUES (%s, %s, %s)
    """,
    "order_lines": """
        INSERT INTO order_lines (transaction_id, product_code, quantity, unit_price)
        VALUES (%s, %s, %s, %s)
    """,
}


class EntityTableWriter:
    """
    Writes rows of one entity set to its table.

    Each call is a single transaction: either every row of the chunk is
    committed or none is. Revenue and the order line surrogate key are
    generated by the database.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize table writer.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    def write_rows(self, entity: str, rows: Sequence[tuple]) -> int:
        """
        Insert rows into the table of an entity set.

        Args:
            entity: Entity set name (customers, products, orders, order_lines)
            rows: Row tuples in column order of the INSERT

        Returns:
            Number of rows written

        Raises:
            ValueError: If the entity set is unknown
            psycopg.Error: If the database rejects the chunk
        """
        command = INSERT_SQL.get(entity)
        if command is None:
            raise ValueError(f"Unknown entity set: {entity}")

        if not rows:
            return 0

        return self.pool.execute_batch(command, rows)

    def count_rows(self, entity: str) -> int:
        if entity not in INSERT_SQL:
            raise ValueError(f"Unknown entity set: {entity}")
        result = self.pool.execute_query(f"SELECT COUNT(*) AS row_count FROM {entity}")
        return result[0]["row_count"] if result else 0
