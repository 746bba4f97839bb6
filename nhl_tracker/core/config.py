"""
Application configuration with environment-specific secrets management.

Supported environment files (loaded in order of precedence):
1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
2. .env (fallback)

Required secrets for production:
- CRON_SECRET (bearer credential for /api/update-data)
- S3_BUCKET (when CACHE_BACKEND=s3)
"""
import os
import logging
from pathlib import Path
from typing import Optional, Literal
from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import ConfigDict

# Get the project root directory (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent

logger = logging.getLogger(__name__)

ODDS_API_KEY_PLACEHOLDER = "YOUR_ODDS_API_KEY_HERE"


class Settings(BaseSettings):
    """Application settings with environment-specific configuration."""

    # Environment
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    model_config = ConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Allow extra fields from .env
    )

    # Application
    APP_NAME: str = "NHL Player Tracker Data API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8001

    # Security secrets
    CRON_SECRET: str = ""

    # Season
    NHL_SEASON: str = "20252026"
    NHL_GAME_TYPE: int = 2  # 2 = regular season

    # Upstream APIs
    NHL_STATS_API_BASE: str = "https://api.nhle.com/stats/rest/en"
    NHL_WEB_API_BASE: str = "https://api-web.nhle.com"
    ODDS_API_BASE: str = "https://api.the-odds-api.com/v4"
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0
    UPSTREAM_RETRY_ATTEMPTS: int = 3

    # Fetching
    STATS_PAGE_SIZE: int = 100
    GAME_LOG_BATCH_SIZE: int = 100
    BATCH_DELAY_SECONDS: float = 0.1
    # Wall-clock budget for one update run; batches not started by then are
    # recorded as errors instead of being requested
    UPDATE_TIME_BUDGET_SECONDS: float = 270.0

    # The Odds API
    ODDS_API_KEY: str = ""
    ODDS_SPORT_KEY: str = "icehockey_nhl"
    ODDS_REGIONS: str = "us"
    ODDS_FORMAT: str = "american"
    ODDS_MARKETS: str = (
        "player_points,player_goal_scorer_anytime,player_assists,"
        "player_shots_on_goal,player_total_saves"
    )
    ODDS_BATCH_SIZE: int = 10
    # Upcoming-games window: "start_of_day" + 24h = today's games only,
    # "start_of_day" + 48h = today and tomorrow, "now" + 48h = next 48 hours
    ODDS_WINDOW_ANCHOR: Literal["start_of_day", "now"] = "start_of_day"
    ODDS_WINDOW_HOURS: int = 24
    ODDS_TIMEZONE: str = "America/New_York"
    NAME_MATCH_THRESHOLD: float = 90.0

    # Cache
    CACHE_BACKEND: Literal["s3", "filesystem", "memory"] = "filesystem"
    CACHE_KEY: str = "nhl-cache.json"
    CACHE_DIR: str = str(PROJECT_ROOT / "data" / "cache")
    S3_BUCKET: Optional[str] = None
    S3_REGION: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None
    CACHE_FRESHNESS_SECONDS: int = 86400  # 24 hours
    READ_FALLBACK: Literal["fetch", "unavailable"] = "fetch"

    # CORS - comma-separated string for env var parsing
    CORS_ORIGINS_STR: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Get CORS origins parsed from CORS_ORIGINS_STR."""
        origins = [o.strip() for o in self.CORS_ORIGINS_STR.split(",") if o.strip()]
        return origins or ["*"]

    @property
    def odds_markets(self) -> list[str]:
        """Odds API market keys requested per game."""
        return [m.strip() for m in self.ODDS_MARKETS.split(",") if m.strip()]

    def has_odds_api_key(self) -> bool:
        """Check whether a real Odds API key is configured."""
        return bool(self.ODDS_API_KEY) and self.ODDS_API_KEY != ODDS_API_KEY_PLACEHOLDER

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    def validate_required_secrets(self) -> list[str]:
        """
        Validate that required secrets are set for the current environment.

        Returns:
            List of missing secret names (empty if all present)
        """
        missing = []

        if self.is_production() and not self.CRON_SECRET:
            missing.append("CRON_SECRET")

        if self.CACHE_BACKEND == "s3" and not self.S3_BUCKET:
            missing.append("S3_BUCKET")

        return missing


def _load_env_file() -> Path:
    """
    Load the appropriate environment file based on ENVIRONMENT variable.

    ENVIRONMENT itself may come from the process environment or from .env.

    Loads in order of precedence:
    1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
    2. .env (fallback)
    """
    load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False)
    environment = os.getenv("ENVIRONMENT", "development")

    env_file = PROJECT_ROOT / f".env.{environment}"
    if env_file.exists():
        logger.info(f"Loading environment from {env_file.name}")
        return env_file

    default_env = PROJECT_ROOT / ".env"
    if default_env.exists():
        logger.info(f"Loading environment from .env (environment: {environment})")
        return default_env

    logger.warning(f"No environment file found for '{environment}' (checked .env.{environment}, .env)")
    return default_env


# Auto-detect and load environment file
_env_file = _load_env_file()


class _SettingsWithEnvFile(Settings):
    model_config = ConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


settings = _SettingsWithEnvFile()

# Validate secrets on startup
missing_secrets = settings.validate_required_secrets()
if missing_secrets:
    logger.warning(f"Missing required secrets for {settings.ENVIRONMENT}: {', '.join(missing_secrets)}")
    if settings.is_production():
        raise ValueError(
            f"Cannot start in production with missing secrets: {', '.join(missing_secrets)}. "
            f"Please set these environment variables in .env.production"
        )
