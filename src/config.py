"""Configuration management."""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def build_dsn() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "password")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    database = os.getenv("POSTGRES_DB", "library")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup and never mutated."""
    dsn: str
    use_sqlite: bool = False
    sqlite_path: str = "data/library.db"
    host: str = "0.0.0.0"
    port: int = 3000
    admin_password: Optional[str] = None
    environment: str = "development"
    require_admin_for_writes: bool = False
    search_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            dsn=build_dsn(),
            use_sqlite=_bool_env("USE_SQLITE"),
            sqlite_path=os.getenv("SQLITE_DB_PATH", "data/library.db"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", 3000),
            admin_password=os.getenv("ADMIN_PASSWORD") or None,
            environment=os.getenv("ENVIRONMENT", "development"),
            require_admin_for_writes=_bool_env("REQUIRE_ADMIN_FOR_WRITES"),
            search_timeout=_float_env("SEARCH_TIMEOUT", 10.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level_name: str = "INFO") -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
