"""
Configuration management for the Liga standings service.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Application configuration."""

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Supabase Configuration
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    supabase_service_key: Optional[str] = os.getenv("SUPABASE_SERVICE_KEY", None)

    # API-Football Configuration
    api_football_base_url: str = os.getenv("API_FOOTBALL_BASE_URL", "https://v3.football.api-sports.io")
    api_football_key: str = os.getenv("API_FOOTBALL_KEY", "")

    # Rate Limiting (free API-Football plan allows 10 req/min)
    max_requests_per_minute: int = int(os.getenv("MAX_REQUESTS_PER_MINUTE", "10"))
    min_request_interval: float = float(os.getenv("MIN_REQUEST_INTERVAL", "1.0"))

    # Retry Configuration
    max_retries: int = int(os.getenv("MAX_RETRIES", "3"))
    retry_backoff_base: float = float(os.getenv("RETRY_BACKOFF_BASE", "1.0"))
    max_retry_delay: int = int(os.getenv("MAX_RETRY_DELAY", "60"))

    # Realtime feed: first resubscribe delay after a channel error (doubles up to max_retry_delay)
    feed_reconnect_delay: float = float(os.getenv("FEED_RECONNECT_DELAY", "5"))

    # Livescore sync cadence (seconds)
    livescore_interval_live: int = int(os.getenv("LIVESCORE_INTERVAL_LIVE", "60"))
    livescore_interval_idle: int = int(os.getenv("LIVESCORE_INTERVAL_IDLE", "600"))
    # Candidate window around kickoff: NS fixtures kicking off in [now - before, now + after]
    livescore_window_before_hours: int = int(os.getenv("LIVESCORE_WINDOW_BEFORE_HOURS", "2"))
    livescore_window_after_hours: int = int(os.getenv("LIVESCORE_WINDOW_AFTER_HOURS", "6"))

    # Tournament codes: the bundled schedule covers the first one (Apertura)
    baseline_tournament: str = os.getenv("LEAGUE_BASELINE_TOURNAMENT", "A")
    second_tournament: str = os.getenv("LEAGUE_SECOND_TOURNAMENT", "C")

    # Shared secret for the cron-triggered sync endpoint (unset = open)
    cron_secret: Optional[str] = os.getenv("CRON_SECRET", None)

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")  # json or text

    def validate(self):
        """Validate configuration."""
        errors = []

        if not self.supabase_url:
            errors.append("SUPABASE_URL is required")
        if not self.supabase_key:
            errors.append("SUPABASE_KEY is required")
        if self.baseline_tournament == self.second_tournament:
            errors.append("LEAGUE_BASELINE_TOURNAMENT and LEAGUE_SECOND_TOURNAMENT must differ")

        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

        return True

    def __post_init__(self):
        """Validate after initialization."""
        self.baseline_tournament = self.baseline_tournament.strip().upper()
        self.second_tournament = self.second_tournament.strip().upper()
        self.validate()
