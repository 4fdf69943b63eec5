"""AdPulse — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Google Sheets ──
    sheets_base_url: str = "https://docs.google.com"
    sheets_timeout: float = 30.0
    sheets_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )

    # ── Database ──
    database_url: str = ""

    # ── Sync ──
    default_sync_mode: str = "csv"  # csv | query
    scheduler_enabled: bool = True
    sync_hour: int = 3  # Daily sync at 3 AM UTC

    # ── App ──
    log_level: str = "INFO"
    app_version: str = "1.0.0"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adpulse.db"
        return "sqlite:///./adpulse.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
