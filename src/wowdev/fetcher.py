"""HTTP fetching with fixed-interval retry under a hard deadline.

Every fetch is bounded by ``asyncio.timeout``; inside that window transient
failures (network errors, 429, 5xx) are retried by tenacity with a fixed
wait. Anything else fails on the first attempt. All failures leave this
module as ``WowDevError``.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, wait_fixed

from wowdev.config import FetcherSettings
from wowdev.errors import ErrorCode, WowDevError

log = structlog.get_logger()

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared AsyncClient used by every fetch."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        headers={"User-Agent": settings.user_agent},
        timeout=httpx.Timeout(settings.request_timeout_seconds),
        follow_redirects=True,
    )


def _is_recoverable(exc: BaseException) -> bool:
    return isinstance(exc, WowDevError) and exc.recoverable


def _check_status(response: httpx.Response, url: str) -> None:
    status = response.status_code
    if response.is_success:
        return
    if status == 404:
        raise WowDevError(ErrorCode.PAGE_NOT_FOUND, f"Not found: {url}", recoverable=False)
    if status == 429 or status >= 500:
        raise WowDevError(
            ErrorCode.FETCH_FAILED, f"HTTP {status} fetching {url}", recoverable=True
        )
    raise WowDevError(ErrorCode.FETCH_FAILED, f"HTTP {status} fetching {url}", recoverable=False)


class Fetcher:
    """Fetches remote text through a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, settings: FetcherSettings | None = None) -> None:
        self._client = client
        self._settings = settings or FetcherSettings()

    async def fetch(self, url: str, *, timeout: float | None = None) -> str:
        """GET ``url`` and return the body text."""
        return await self._request("GET", url, timeout=timeout)

    async def post_form(self, url: str, body: str, *, timeout: float | None = None) -> str:
        """POST an already-encoded form body and return the response text."""
        return await self._request(
            "POST",
            url,
            timeout=timeout,
            content=body,
            headers={"Content-Type": _FORM_CONTENT_TYPE},
        )

    async def _request(
        self, method: str, url: str, *, timeout: float | None, **kwargs: Any
    ) -> str:
        deadline = timeout if timeout is not None else self._settings.request_timeout_seconds

        def _log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            log.warning(
                "fetch_retry",
                method=method,
                url=url,
                attempt=retry_state.attempt_number,
                error=str(exc),
            )

        text = ""
        last_error: WowDevError | None = None
        try:
            async with asyncio.timeout(deadline):
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception(_is_recoverable),
                    wait=wait_fixed(self._settings.retry_wait_seconds),
                    before_sleep=_log_retry,
                    reraise=True,
                ):
                    with attempt:
                        try:
                            text = await self._send(method, url, **kwargs)
                        except WowDevError as exc:
                            last_error = exc
                            raise
        except TimeoutError as exc:
            detail = f"; last error: {last_error.message}" if last_error else ""
            raise WowDevError(
                ErrorCode.FETCH_TIMEOUT,
                f"Timed out after {deadline}s fetching {url}{detail}",
                recoverable=True,
            ) from exc
        return text

    async def _send(self, method: str, url: str, **kwargs: Any) -> str:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise WowDevError(
                ErrorCode.FETCH_FAILED,
                f"Network error fetching {url}: {exc.__class__.__name__}",
                recoverable=True,
            ) from exc
        _check_status(response, url)
        log.debug("fetch_complete", method=method, url=url, status=response.status_code)
        return response.text
