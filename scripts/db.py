#!/usr/bin/env python3
import argparse
import os
import sys

import psycopg

sys.path.append(".")

from src.config import build_dsn


def migrate():
    with psycopg.connect(build_dsn()) as conn:
        conn.execute("""
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
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS books_finished_on_idx ON books (finished_on DESC)")
        conn.commit()
    print("Migration complete")


def test():
    try:
        with psycopg.connect(build_dsn()) as conn:
            row = conn.execute("SELECT 1 as ok").fetchone()
            assert row[0] == 1
            count = conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]
            latest = conn.execute("SELECT MAX(updated_at) FROM books").fetchone()[0]
            print("Connection: OK")
            print(f"  books: {count} rows, last update {latest or '-'}")
    except Exception as e:
        print(f"Connection FAILED: {e}")
        sys.exit(1)


def clear():
    with psycopg.connect(build_dsn()) as conn:
        conn.execute("TRUNCATE books RESTART IDENTITY")
        conn.commit()
    print("All books cleared")


def drop():
    with psycopg.connect(build_dsn()) as conn:
        conn.execute("DROP TABLE IF EXISTS books CASCADE")
        conn.commit()
    print("Books table dropped")


def main():
    parser = argparse.ArgumentParser(description="Database management")
    parser.add_argument("command", choices=["migrate", "test", "clear", "drop"])
    args = parser.parse_args()

    if os.getenv("USE_SQLITE", "0") == "1":
        print("scripts/db.py only manages PostgreSQL; the SQLite file is created on startup")
        sys.exit(1)

    commands = {
        "migrate": migrate,
        "test": test,
        "clear": clear,
        "drop": drop,
    }
    commands[args.command]()


if __name__ == "__main__":
    main()
