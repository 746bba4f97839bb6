"""
Core services that are not NHL-specific.

- pagination: offset/limit collection fetching with UpstreamError on failure
- batch_fetcher: bounded concurrent per-item fetching with tagged results
- odds_api_service: The Odds API client with quota tracking
"""
from nhl_tracker.services.core.pagination import fetch_all_pages, get_json
from nhl_tracker.services.core.batch_fetcher import (
    BatchResult,
    FetchFailure,
    FetchSuccess,
    fetch_batched,
)
from nhl_tracker.services.core.odds_api_service import OddsApiService

__all__ = [
    "fetch_all_pages",
    "get_json",
    "BatchResult",
    "FetchFailure",
    "FetchSuccess",
    "fetch_batched",
    "OddsApiService",
]
