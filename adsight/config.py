"""AdSight — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    alert_evaluation_minutes: int = 60  # Periodic alert rule evaluation

    # ── Presentation ──
    currency: str = "THB"
    locale: str = "en"  # en | th

    # ── Analysis ──
    anomaly_threshold_pct: float = 20.0
    insight_period_days: int = 30

    @property
    def effective_database_url(self) -> str:
        """Return the configured database URL, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Serverless hosts have a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adsight.db"
        return "sqlite:///./adsight.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
