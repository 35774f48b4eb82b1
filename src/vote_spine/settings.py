"""Configuration management using Pydantic Settings.

Every field can be set through a ``VOTE_SPINE_``-prefixed environment
variable or a ``.env`` file, e.g. ``VOTE_SPINE_DATABASE_PATH=votes.db``.
Dict fields take JSON: ``VOTE_SPINE_PIVOT_CORRECTIONS='{"Temps": "Attribution"}'``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vote_spine.fetch import DEFAULT_FEED_URL
from vote_spine.render import DEFAULT_BILL_URL_TEMPLATE, DEFAULT_SITE_URL
from vote_spine.splitter import DEFAULT_CORRECTIONS
from vote_spine.translate import DEFAULT_TRANSLATOR_ENDPOINT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOTE_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_path: Path = Path("votes.db")

    # ── Feed ─────────────────────────────────────────────────────
    feed_url: str = DEFAULT_FEED_URL
    fetch_timeout: float = 30.0
    batch_limit: int | None = Field(default=None, ge=0)

    # ── Output ───────────────────────────────────────────────────
    output_dir: Path = Path("public")
    template_dir: Path | None = None
    latest_count: int = Field(default=10, ge=1)
    site_url: str = DEFAULT_SITE_URL
    bill_url_template: str = DEFAULT_BILL_URL_TEMPLATE
    feed_title: str = "Today's Vote"
    feed_description: str = (
        "Stay up to date with what Canada's House of Commons is voting on each day."
    )

    # ── Translation ──────────────────────────────────────────────
    translator_key: str | None = None
    translator_region: str | None = None
    translator_endpoint: str = DEFAULT_TRANSLATOR_ENDPOINT
    target_language: str = "fr"
    pivot_corrections: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CORRECTIONS))

    # ── Social ───────────────────────────────────────────────────
    buffer_access_token: str | None = None
    buffer_profile_id: str | None = None

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console", "auto"] = "auto"

    # ── Static server ────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8080


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
