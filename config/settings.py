"""
Configuration Management

Loads environment variables and provides settings for the online.db generator.
Uses python-dotenv for local development and environment variables for production.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()


def _get_int(name: str, default: Optional[str]) -> Optional[int]:
    """
    Read an integer environment variable.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset

    Returns:
        Parsed integer, or None if unset and no default

    Raises:
        ValueError: If the value is not an integer
    """
    raw = os.getenv(name, default)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")


class Settings:
    """
    Generator settings loaded from environment variables.

    Populated once at process start and passed explicitly into the
    generator; nothing reads the environment mid-run.
    """

    def __init__(self):
        """Read and validate settings from the environment."""
        # Source database (osu! MySQL)
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: int = _get_int("DB_PORT", "3306")
        self.DB_NAME: str = os.getenv("DB_NAME", "osu")
        self.DB_USER: str = os.getenv("DB_USER", "root")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_CONNECT_TIMEOUT: int = _get_int("DB_CONNECT_TIMEOUT", "5")

        # Destination
        self.SQLITE_PATH: str = os.getenv("SQLITE_PATH", "sqlite/online.db")
        self.SCHEMA_VERSION: int = _get_int("SCHEMA_VERSION", "3")
        self.BATCH_SIZE: Optional[int] = _get_int("BATCH_SIZE", None)

        # Publishing (all optional)
        self.S3_KEY: Optional[str] = os.getenv("S3_KEY") or None
        self.S3_SECRET: Optional[str] = os.getenv("S3_SECRET") or None
        self.S3_PROXY_CACHE_PURGE_KEY: Optional[str] = os.getenv("S3_PROXY_CACHE_PURGE_KEY") or None

        # Logging Configuration
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FILE: str = os.getenv("LOG_FILE", "logs/onlinedb.log")

        self._validate_settings()

    def _validate_settings(self) -> None:
        """
        Validate setting values.

        Raises:
            ValueError: If a setting is out of range or inconsistent
        """
        # Imported here so config stays importable without the pipeline package
        from onlinedb.schema import SchemaVersion

        try:
            SchemaVersion(self.SCHEMA_VERSION)
        except ValueError:
            known = ", ".join(str(v.value) for v in SchemaVersion)
            raise ValueError(
                f"Unknown SCHEMA_VERSION {self.SCHEMA_VERSION}. Expected one of: {known}"
            )

        if self.BATCH_SIZE is not None and self.BATCH_SIZE < 0:
            raise ValueError(f"BATCH_SIZE must be >= 0, got: {self.BATCH_SIZE}")

        if self.S3_KEY and not self.S3_SECRET:
            raise ValueError(
                "S3_KEY is set but S3_SECRET is missing. "
                "Please check your .env file."
            )

    @property
    def bz2_path(self) -> str:
        """Path of the compressed artifact next to the SQLite file."""
        return f"{self.SQLITE_PATH}.bz2"

    @property
    def publish_enabled(self) -> bool:
        return self.S3_KEY is not None

    def __repr__(self) -> str:
        """Return string representation (excluding sensitive data)."""
        return (
            f"Settings("
            f"DB_HOST={self.DB_HOST}, "
            f"DB_NAME={self.DB_NAME}, "
            f"DB_USER={self.DB_USER}, "
            f"SQLITE_PATH={self.SQLITE_PATH}, "
            f"SCHEMA_VERSION={self.SCHEMA_VERSION}, "
            f"BATCH_SIZE={self.BATCH_SIZE}, "
            f"publish={self.publish_enabled}"
            f")"
        )
