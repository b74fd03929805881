import sqlite3
from contextlib import contextmanager


class LinkRepository:
    """Key-value store for issued links, one row per key."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS links (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    def put(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO links(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM links WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM links WHERE key = ?", (key,))

    def list_by_prefix(self, prefix: str, *, with_values: bool = False) -> list:
        """Return keys starting with ``prefix`` in key order.

        With ``with_values`` the result is a list of ``(key, value)`` pairs.
        Each call is a single snapshot read; concurrent writers may land
        before or after it.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT key, value
                FROM links
                WHERE substr(key, 1, length(?)) = ?
                ORDER BY key
                """,
                (prefix, prefix),
            ).fetchall()
        if with_values:
            return [(row["key"], row["value"]) for row in rows]
        return [row["key"] for row in rows]
