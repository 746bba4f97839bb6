"""Unit tests for settings helpers and backend selection."""
import json
import logging

from nhl_tracker.core.config import Settings
from nhl_tracker.core.logging import JSONFormatter, clear_correlation_id, set_correlation_id
from nhl_tracker.services.cache import FileSystemBackend, MemoryBackend, S3BlobBackend, create_backend


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self):
        settings = make_settings()

        assert settings.CACHE_KEY == "nhl-cache.json"
        assert settings.CACHE_FRESHNESS_SECONDS == 86400
        assert settings.STATS_PAGE_SIZE == 100
        assert settings.GAME_LOG_BATCH_SIZE == 100
        assert settings.READ_FALLBACK == "fetch"
        assert settings.odds_markets == [
            "player_points",
            "player_goal_scorer_anytime",
            "player_assists",
            "player_shots_on_goal",
            "player_total_saves",
        ]

    def test_placeholder_odds_key_counts_as_missing(self):
        assert make_settings(ODDS_API_KEY="YOUR_ODDS_API_KEY_HERE").has_odds_api_key() is False
        assert make_settings(ODDS_API_KEY="").has_odds_api_key() is False
        assert make_settings(ODDS_API_KEY="abc123").has_odds_api_key() is True

    def test_required_secrets(self):
        """Should require CRON_SECRET in production and S3_BUCKET for the s3 backend."""
        assert make_settings(ENVIRONMENT="development").validate_required_secrets() == []
        assert make_settings(ENVIRONMENT="production").validate_required_secrets() == ["CRON_SECRET"]
        assert make_settings(CACHE_BACKEND="s3").validate_required_secrets() == ["S3_BUCKET"]

    def test_cors_origins(self):
        assert make_settings(CORS_ORIGINS_STR="https://a.example, https://b.example").CORS_ORIGINS == [
            "https://a.example",
            "https://b.example",
        ]
        assert make_settings(CORS_ORIGINS_STR="").CORS_ORIGINS == ["*"]


class TestCreateBackend:

    def test_selects_backend(self, tmp_path):
        assert isinstance(create_backend(make_settings(CACHE_BACKEND="memory")), MemoryBackend)

        fs = create_backend(make_settings(CACHE_BACKEND="filesystem", CACHE_DIR=str(tmp_path)))
        assert isinstance(fs, FileSystemBackend)
        assert fs.root == tmp_path

        s3 = create_backend(make_settings(CACHE_BACKEND="s3", S3_BUCKET="nhl-bucket", S3_REGION="us-east-1"))
        assert isinstance(s3, S3BlobBackend)
        assert s3.bucket == "nhl-bucket"


class TestJSONFormatter:

    def test_includes_correlation_id_and_extras(self):
        token = set_correlation_id("run-42")
        try:
            record = logging.LogRecord("nhl_tracker.test", logging.INFO, __file__, 1, "Processed 3/3 players", None, None)
            record.batch = 1
            payload = json.loads(JSONFormatter().format(record))
        finally:
            clear_correlation_id(token)

        assert payload["message"] == "Processed 3/3 players"
        assert payload["correlation_id"] == "run-42"
        assert payload["extra"]["batch"] == 1
