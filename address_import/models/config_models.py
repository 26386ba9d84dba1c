from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the address import tool.

Built by address_import.config.loader from config/import.yml. Environment
variables (DATABASE_URL, PGHOST, ...) take precedence over DatabaseConfig when
the CLI opens a connection.
"""

DEFAULT_CHUNK_SIZE = 100
DEFAULT_ERROR_LOG_DIR = "./logs"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback used when environment variables are not set."""
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    database: DatabaseConfig
    chunk_size: int = DEFAULT_CHUNK_SIZE  # 1トランザクションあたりの行数
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
