import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

_log = logging.getLogger(__name__)

RETRY_STATUSES = {429, 502, 503, 504}


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


async def send_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 4,
    base_delay: float = 0.5,
) -> httpx.Response:
    """Await ``send()`` with exponential backoff on transient failures.

    Retries on 429/502/503/504 responses and httpx transport errors.
    Waits 0.5, 1, 2 seconds between attempts (or Retry-After on 429).
    The last response is returned as-is, the last transport error re-raised.
    """
    for attempt in range(max_attempts):
        last = attempt == max_attempts - 1
        try:
            response = await send()
        except httpx.TransportError as exc:
            if last:
                raise
            wait = base_delay * (2 ** attempt)
            _log.warning("transport error (%s), retrying in %.1fs", exc, wait)
        else:
            if response.status_code not in RETRY_STATUSES or last:
                return response
            wait = _retry_after(response) or base_delay * (2 ** attempt)
            _log.warning("HTTP %d from %s, retrying in %.1fs", response.status_code, response.request.url, wait)
        await asyncio.sleep(wait)
    raise AssertionError("unreachable")


async def call_with_retry(fn: Callable[..., Awaitable[httpx.Response]], *args: Any, **kwargs: Any) -> httpx.Response:
    return await send_with_retry(lambda: fn(*args, **kwargs))
