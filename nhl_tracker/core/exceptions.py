"""
Exception types for the NHL tracker data service.

Fatal errors (AuthError, UpstreamError) propagate to the route handlers and
become HTTP error responses. Enrichment errors (PartialFetchError,
ConfigError) are recorded in the snapshot stats block instead of being raised
out of the pipeline.
"""
from typing import Any, Optional


class NHLTrackerError(Exception):
    """Base exception for NHL tracker errors."""
    pass


class AuthError(NHLTrackerError):
    """Missing or invalid bearer credential on the update endpoint."""
    pass


class UpstreamError(NHLTrackerError):
    """
    A required upstream REST call failed.

    Raised by the mandatory stats stage (skaters, goalies, team summary).
    Aborts the whole update.
    """

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PartialFetchError(NHLTrackerError):
    """
    A single per-item fetch (game log, per-game odds) failed.

    Never raised out of the batch fetcher; carried inside FetchFailure so the
    counters can be derived from the result list.
    """

    def __init__(self, key: Any, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


class CacheMissError(NHLTrackerError):
    """No snapshot exists in the front cache or the durable backend."""
    pass


class ConfigError(NHLTrackerError):
    """A required configuration value (e.g. the odds API key) is missing."""
    pass
