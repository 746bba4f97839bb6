"""
Paginated fetching for offset/limit REST collections.

The NHL stats REST API returns ``{"data": [...]}`` pages addressed by
``start`` and ``limit``. A collection is complete when a page comes back
empty or shorter than the page size; a full page is always followed by one
more request.

Any failed page aborts the whole fetch with UpstreamError. A partial player
list would silently corrupt the downstream rankings and odds matching, so no
partial result is ever returned.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nhl_tracker.core.exceptions import UpstreamError
from nhl_tracker.core.logging import get_logger

logger = get_logger(__name__)

# (start, limit) -> (url, query params)
QueryBuilder = Callable[[int, int], Tuple[str, Dict[str, Any]]]


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    retry_attempts: int = 3,
) -> Any:
    """
    GET a JSON document, retrying transport errors only.

    Non-2xx statuses are not retried; they raise immediately.

    Raises:
        UpstreamError: On transport failure (after retries), non-2xx status
            or an unparseable body
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(retry_attempts, 1)),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                response = await client.get(url, params=params)
    except httpx.TransportError as e:
        raise UpstreamError(f"Request to {url} failed: {e!r}", url=url) from e

    if not response.is_success:
        raise UpstreamError(
            f"{url} returned status {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(f"{url} returned an unparseable body", url=url) from e


async def fetch_all_pages(
    client: httpx.AsyncClient,
    page_size: int,
    query_builder: QueryBuilder,
    retry_attempts: int = 3,
) -> List[Dict[str, Any]]:
    """
    Fetch every item of a paginated collection.

    Args:
        client: HTTP client
        page_size: Items requested per page (the ``limit``)
        query_builder: Builds (url, params) for a given (start, limit)
        retry_attempts: Attempts per page for transport errors

    Returns:
        All items, in page order

    Raises:
        UpstreamError: If any page fails or lacks a ``data`` list
        ValueError: If page_size is not positive
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    items: List[Dict[str, Any]] = []
    start = 0

    while True:
        url, params = query_builder(start, page_size)
        body = await get_json(client, url, params=params, retry_attempts=retry_attempts)

        page = body.get("data") if isinstance(body, dict) else None
        if not isinstance(page, list):
            raise UpstreamError(f"{url} response has no 'data' list (start={start})", url=url)

        if not page:
            break

        items.extend(page)
        start += page_size

        if len(page) < page_size:
            break

    logger.debug(f"Fetched {len(items)} items in pages of {page_size}")
    return items
