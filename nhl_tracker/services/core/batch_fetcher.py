"""
Bounded batch fetching for per-entity upstream requests.

Items are fetched in consecutive groups of at most ``batch_size``. Every
request in a group runs concurrently and the group is joined (all settled)
before the next one starts, so at most ``batch_size`` requests are ever in
flight. A short pause between groups keeps the run under upstream rate
limits.

Each item settles into a tagged result, FetchSuccess or FetchFailure. The
success and error counters are derived from the result list, and a failing
item never affects its siblings.
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, List, Optional, Sequence, TypeVar, Union

from nhl_tracker.core.exceptions import PartialFetchError
from nhl_tracker.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
V = TypeVar("V")

TIME_BUDGET_EXHAUSTED = "time budget exhausted"


@dataclass(frozen=True)
class FetchSuccess(Generic[V]):
    """Item fetched with a non-empty payload."""
    key: Hashable
    value: V


@dataclass(frozen=True)
class FetchFailure:
    """Item that failed, returned an empty payload, or was never attempted."""
    key: Hashable
    error: PartialFetchError

    @property
    def reason(self) -> str:
        return self.error.reason


FetchResult = Union[FetchSuccess[V], FetchFailure]


@dataclass
class BatchResult(Generic[V]):
    """Ordered per-item outcomes of one fetch_batched call."""
    results: List[FetchResult] = field(default_factory=list)

    @property
    def values(self) -> Dict[Hashable, V]:
        """Successful payloads keyed by item key."""
        return {r.key: r.value for r in self.results if isinstance(r, FetchSuccess)}

    @property
    def failures(self) -> List[FetchFailure]:
        return [r for r in self.results if isinstance(r, FetchFailure)]

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, FetchSuccess))

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, FetchFailure))


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False


async def _settle(
    item: T,
    item_key: Hashable,
    per_item_fetch: Callable[[T], Awaitable[Any]],
) -> FetchResult:
    """Run one per-item fetch and turn its outcome into a tagged result."""
    try:
        value = await per_item_fetch(item)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return FetchFailure(item_key, PartialFetchError(item_key, f"{type(e).__name__}: {e}"))

    if _is_empty(value):
        return FetchFailure(item_key, PartialFetchError(item_key, "empty payload"))
    return FetchSuccess(item_key, value)


async def fetch_batched(
    items: Sequence[T],
    batch_size: int,
    per_item_fetch: Callable[[T], Awaitable[Any]],
    *,
    key: Callable[[T], Hashable] = lambda item: item,
    delay: float = 0.1,
    deadline: Optional[float] = None,
    label: str = "items",
) -> BatchResult:
    """
    Fetch items in sequential, internally concurrent batches.

    Args:
        items: Items to fetch (e.g. player records)
        batch_size: Maximum concurrent requests per batch
        per_item_fetch: Coroutine function returning the payload for one item;
            raising or returning an empty payload counts as a failure
        key: Extracts the result key (e.g. player ID) from an item
        delay: Seconds to pause between batches (not after the last one)
        deadline: Optional ``time.monotonic()`` value; batches not started
            by then are recorded as failures without being requested
        label: Name used in progress logs

    Returns:
        BatchResult with one outcome per distinct key, in input order (the
        first item wins when several share a key)

    Raises:
        ValueError: If batch_size < 1 or an item has no key
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    keys = [key(item) for item in items]
    if any(k is None for k in keys):
        raise ValueError(f"Every {label} item must have a key")

    # Later items that repeat a key are dropped so counters match the values map
    unique = {}
    for item, k in zip(items, keys):
        unique.setdefault(k, item)
    if len(unique) < len(keys):
        logger.warning(f"Skipping {len(keys) - len(unique)} {label} with duplicate keys")
        items = list(unique.values())
        keys = list(unique)

    total = len(items)
    result: BatchResult = BatchResult()

    for start in range(0, total, batch_size):
        batch = items[start:start + batch_size]
        batch_keys = keys[start:start + batch_size]

        if deadline is not None and time.monotonic() >= deadline:
            skipped = total - start
            logger.warning(f"Time budget exhausted - skipping {skipped}/{total} {label}")
            result.results.extend(
                FetchFailure(k, PartialFetchError(k, TIME_BUDGET_EXHAUSTED)) for k in keys[start:]
            )
            break

        outcomes = await asyncio.gather(
            *(_settle(item, k, per_item_fetch) for item, k in zip(batch, batch_keys))
        )
        result.results.extend(outcomes)

        done = min(start + batch_size, total)
        logger.info(f"Processed {done}/{total} {label}")

        if done < total and delay > 0:
            await asyncio.sleep(delay)

    return result
