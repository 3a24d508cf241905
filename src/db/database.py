import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.catalog.sorting import DEFAULT_SORT, RATING, RECENCY, TITLE
from src.config import build_dsn

logger = logging.getLogger(__name__)

BOOK_COLUMNS = ("title", "author", "isbn", "cover_url", "rating", "finished_on", "review", "notes")

SELECT_COLUMNS = "id, " + ", ".join(BOOK_COLUMNS) + ", created_at, updated_at"

# Whitelisted ORDER BY clauses; sort keys never reach SQL as text.
ORDER_BY = {
    RECENCY: "finished_on DESC NULLS LAST, created_at DESC, id DESC",
    TITLE: "NULLIF(title, '') ASC NULLS LAST, id DESC",
    RATING: "rating DESC NULLS LAST, finished_on DESC NULLS LAST, id DESC",
}


# --- Sqlite Adapter Classes ---
class SqliteCursorAdapter:
    def __init__(self, cursor):
        self.cursor = cursor

    def execute(self, query, params=None):
        query = query.replace("NOW()", "CURRENT_TIMESTAMP")
        query = query.replace("%s", "?")
        if params is None:
            self.cursor.execute(query)
        else:
            new_params = []
            for p in params:
                if isinstance(p, (date, datetime)):
                    new_params.append(p.isoformat())
                elif isinstance(p, (dict, list)):
                    new_params.append(json.dumps(p))
                else:
                    new_params.append(p)
            self.cursor.execute(query, new_params)
        return self

    def fetchone(self):
        row = self.cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    def fetchall(self):
        rows = self.cursor.fetchall()
        return [dict(row) for row in rows]

    def __getattr__(self, name):
        return getattr(self.cursor, name)


class SqliteConnectionAdapter:
    def __init__(self, conn):
        self.conn = conn

    def execute(self, query, params=None):
        return self.cursor().execute(query, params)

    def commit(self):
        self.conn.commit()

    def cursor(self):
        return SqliteCursorAdapter(self.conn.cursor())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type:
                self.conn.rollback()
            else:
                self.conn.commit()
        finally:
            self.conn.close()


class SqlitePoolAdapter:
    def __init__(self, db_path):
        self.db_path = db_path

    def connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return SqliteConnectionAdapter(conn)

    def close(self):
        pass


class PostgresRepository:
    """Storage for the ``books`` table, PostgreSQL or SQLite behind one API."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        use_sqlite: bool = False,
        sqlite_path: str = "data/library.db",
    ):
        self.use_sqlite = use_sqlite
        if self.use_sqlite:
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
            self.pool = SqlitePoolAdapter(sqlite_path)
            self._init_sqlite_db()
            logger.info("Using SQLite database at %s", sqlite_path)
        else:
            self.dsn = dsn or build_dsn()
            self.pool = ConnectionPool(self.dsn, kwargs={"row_factory": dict_row, "autocommit": True})
            self._init_postgres_db()
            logger.info("Using PostgreSQL database")

    def _init_sqlite_db(self) -> None:
        with self.pool.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS books (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL DEFAULT '',
                    author TEXT,
                    isbn TEXT,
                    cover_url TEXT,
                    rating REAL,
                    finished_on TEXT,
                    review TEXT,
                    notes TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS books_finished_on_idx ON books (finished_on)")

    def _init_postgres_db(self) -> None:
        with self.pool.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS books (
                    id BIGSERIAL PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    author TEXT,
                    isbn TEXT,
                    cover_url TEXT,
                    rating DOUBLE PRECISION,
                    finished_on DATE,
                    review TEXT,
                    notes TEXT,
                    created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS books_finished_on_idx ON books (finished_on DESC)")

    @staticmethod
    def _values(fields: Dict) -> tuple:
        return tuple(fields.get(column) for column in BOOK_COLUMNS)

    def list_books(self, sort: str = DEFAULT_SORT) -> List[Dict]:
        order_by = ORDER_BY.get(sort, ORDER_BY[DEFAULT_SORT])
        with self.pool.connection() as conn:
            rows = conn.execute(
                f"SELECT {SELECT_COLUMNS} FROM books ORDER BY {order_by}"
            ).fetchall()
        return [dict(row) for row in rows]

    def get_book(self, book_id: int) -> Optional[Dict]:
        with self.pool.connection() as conn:
            row = conn.execute(
                f"SELECT {SELECT_COLUMNS} FROM books WHERE id = %s",
                (book_id,),
            ).fetchone()
        if not row:
            return None
        return dict(row)

    def insert_book(self, fields: Dict) -> int:
        placeholders = ", ".join(["%s"] * len(BOOK_COLUMNS))
        query = f"INSERT INTO books ({', '.join(BOOK_COLUMNS)}) VALUES ({placeholders})"
        with self.pool.connection() as conn:
            if self.use_sqlite:
                return int(conn.execute(query, self._values(fields)).lastrowid)
            row = conn.execute(query + " RETURNING id", self._values(fields)).fetchone()
        return int(row["id"])

    def update_book(self, book_id: int, fields: Dict) -> bool:
        assignments = ", ".join(f"{column} = %s" for column in BOOK_COLUMNS)
        with self.pool.connection() as conn:
            cur = conn.execute(
                f"UPDATE books SET {assignments}, updated_at = NOW() WHERE id = %s",
                self._values(fields) + (book_id,),
            )
            return cur.rowcount > 0

    def delete_book(self, book_id: int) -> bool:
        with self.pool.connection() as conn:
            cur = conn.execute("DELETE FROM books WHERE id = %s", (book_id,))
            return cur.rowcount > 0

    def close(self) -> None:
        self.pool.close()
