"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables so the data-access layer has no dependency on a
settings framework.  Defaults are provided for all fields.  Override
them via environment variables in a real deployment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Politirate API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite database.  Relative paths are resolved against
    # the package root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "politirate.db")

    # Static bearer token that elevates a request to administrator.  When
    # empty, no request is treated as an administrator.
    admin_token: str = os.getenv("ADMIN_TOKEN", "")

    # Non-open support tickets untouched for this many days are purged
    # before tickets are listed.
    ticket_retention_days: int = int(os.getenv("TICKET_RETENTION_DAYS", "30"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
