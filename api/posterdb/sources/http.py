from __future__ import annotations

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from posterdb.sources.errors import HttpStatusError, TransportError

RETRY_WAIT = wait_exponential_jitter(initial=1, max=8)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, HttpStatusError) and exc.status_code >= 500


async def fetch_text(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict | None = None,
    timeout: float = 15.0,
    attempts: int = 3,
) -> str:
    """GET a URL and return its body, retrying transport failures and 5xx answers."""
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=RETRY_WAIT,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url, headers=headers, params=params)
                if not response.is_success:
                    raise HttpStatusError(response.status_code)
                return response.text
    except httpx.HTTPError as exc:
        raise TransportError(str(exc) or exc.__class__.__name__) from exc
    raise TransportError("Unreachable")
