"""Application configuration.

AppConfig is a frozen dataclass and cannot change after creation.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from perch.data.database import DatabaseConfig


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(
            secret_key="s3cr3t",
            database={"driver": "sqlite", "database": "notes.db"},
        )
    """

    debug: bool = False

    # Where a guard or a redirect-back lands when nothing better is known
    home_path: str = "/"

    # Sessions (signed cookie); empty key means no session persistence
    secret_key: str = ""
    session_cookie: str = "perch_session"
    session_max_age: int = 86400  # 24 hours
    session_secure: bool = False

    # Templates
    template_dir: str | Path = "templates"
    autoescape: bool = True

    # Database: a URL, a settings mapping, or a DatabaseConfig
    database: DatabaseConfig | Mapping[str, Any] | str | None = None
