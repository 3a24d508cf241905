from src.db.database import PostgresRepository

__all__ = ["PostgresRepository"]
