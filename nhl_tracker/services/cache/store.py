"""
Snapshot cache store with an in-process front cache.

Read policy:
1. Serve the front cache when it holds a blob younger than the freshness window
2. Otherwise read the durable backend, refresh the front cache and serve
   (unless a write replaced the front cache during that read, in which case
   the written blob is served and kept)
3. If the durable backend has nothing, raise CacheMissError

The freshness window only decides where a read is served from; a stale
front-cache entry is always re-read from the durable backend, which stays
authoritative.

Write policy: unconditional overwrite of the durable entry, then refresh the
front cache. No merge with the previous snapshot, no version check.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

from nhl_tracker.core import metrics
from nhl_tracker.core.exceptions import CacheMissError
from nhl_tracker.core.logging import get_logger
from nhl_tracker.services.cache.backends import BlobBackend

logger = get_logger(__name__)


class CacheState:
    """
    In-process front cache holding the most recent snapshot blob.

    Lifecycle: created once at application start (attached to app.state),
    populated by the first read or write, replaced by later ones, never
    cleared implicitly.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._blob: Optional[bytes] = None
        self._stored_at: Optional[float] = None
        self._generation = 0

    @property
    def blob(self) -> Optional[bytes]:
        return self._blob

    @property
    def generation(self) -> int:
        """Number of times the front cache has been replaced."""
        return self._generation

    def age_seconds(self) -> Optional[float]:
        if self._stored_at is None:
            return None
        return self._clock() - self._stored_at

    def is_fresh(self, window_seconds: float) -> bool:
        age = self.age_seconds()
        return self._blob is not None and age is not None and age < window_seconds

    def store(self, blob: bytes):
        self._blob = blob
        self._stored_at = self._clock()
        self._generation += 1


@dataclass(frozen=True)
class CacheRead:
    """A snapshot blob and where it was served from ("memory" or "durable")."""
    blob: bytes
    source: str


class CacheStore:
    """
    Snapshot persistence over a durable backend with a front cache.

    Args:
        backend: Durable blob backend
        state: Shared front-cache state
        key: Fixed blob key, e.g. "nhl-cache.json"
        freshness_seconds: Maximum front-cache age before re-reading the backend
    """

    def __init__(self, backend: BlobBackend, state: CacheState, key: str, freshness_seconds: float):
        self.backend = backend
        self.state = state
        self.key = key
        self.freshness_seconds = freshness_seconds

    async def read(self) -> CacheRead:
        """
        Return the current snapshot blob.

        Raises:
            CacheMissError: If no snapshot has ever been written
        """
        if self.state.is_fresh(self.freshness_seconds):
            age_minutes = round(self.state.age_seconds() / 60)
            logger.info(f"Serving from memory cache, age: {age_minutes} minutes")
            metrics.record_cache_read("memory")
            return CacheRead(blob=self.state.blob, source="memory")

        generation = self.state.generation
        blob = await self.backend.read(self.key)

        if self.state.generation != generation:
            # A write landed while the backend read was in flight; its blob is
            # at least as new as what was just read
            metrics.record_cache_read("memory")
            return CacheRead(blob=self.state.blob, source="memory")

        if blob is None:
            metrics.record_cache_read("miss")
            raise CacheMissError(f"No snapshot stored at '{self.key}' ({self.backend.name})")

        self.state.store(blob)
        logger.info(f"Serving from {self.backend.name} cache ({len(blob)} bytes)")
        metrics.record_cache_read("durable")
        return CacheRead(blob=blob, source="durable")

    async def write(self, blob: bytes) -> str:
        """
        Replace the stored snapshot.

        Returns:
            Location of the written blob (URL or URI)
        """
        location = await self.backend.write(self.key, blob)
        self.state.store(blob)
        logger.info(f"Snapshot written to {location} ({len(blob)} bytes)")
        return location

    async def exists(self) -> bool:
        """Whether the durable backend holds a snapshot at the fixed key."""
        return self.key in await self.backend.list(self.key)
