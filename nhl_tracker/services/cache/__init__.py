"""
Snapshot cache: durable blob backends plus an in-process front cache.
"""
from nhl_tracker.core.config import Settings
from nhl_tracker.services.cache.backends import (
    BlobBackend,
    MemoryBackend,
    FileSystemBackend,
    S3BlobBackend,
)
from nhl_tracker.services.cache.store import CacheState, CacheStore, CacheRead


def create_backend(settings: Settings) -> BlobBackend:
    """Build the durable backend selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "s3":
        return S3BlobBackend(
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            public_base_url=settings.S3_PUBLIC_BASE_URL,
        )
    if settings.CACHE_BACKEND == "filesystem":
        return FileSystemBackend(settings.CACHE_DIR)
    return MemoryBackend()


__all__ = [
    "BlobBackend",
    "MemoryBackend",
    "FileSystemBackend",
    "S3BlobBackend",
    "CacheState",
    "CacheStore",
    "CacheRead",
    "create_backend",
]
