from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the site map cache + menu key resolver.

    Values are loaded from environment variables and `.env`.

    Notes:
    - The site map table is read-only from our side; SITEMAP_DB_PATH points at
      the search index database that already carries it.
    - SITEMAP_HIGHLIGHT_ENABLED stands in for the host's two-pane/embedding check.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    SITEMAP_DB_PATH: Path = Field(default=Path("data/sitemap.db"))
    SITEMAP_DB_TIMEOUT_SEC: float = Field(default=5.0)

    # Menu highlighting
    SITEMAP_HIGHLIGHT_ENABLED: bool = Field(default=True)

    # Logging (diagnostic). A relative log dir is resolved against the working directory.
    SITEMAP_LOG_DIR: Path = Field(default=Path("_logs"))
    SITEMAP_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    SITEMAP_LOG_BACKUP_COUNT: int = Field(default=14)
    # Per-lookup menu key diagnostics (DEBUG) without lowering the package level.
    SITEMAP_LOG_MENU_DIAGNOSTICS: bool = Field(default=False)

    # Import sources
    SITEMAP_CSV_SITE_MAP: str | None = Field(default=None)
    SITEMAP_CSV_INDEX: str | None = Field(default=None)


def load_settings() -> Settings:
    s = Settings()
    # Ensure parent dir exists
    s.SITEMAP_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return s
