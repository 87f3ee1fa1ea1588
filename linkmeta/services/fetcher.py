"""Outbound HTTP fetching and transport-error classification.

A fresh ``httpx.AsyncClient`` is opened for every request, so nothing is
shared between unfurls. Every redirect hop goes back through
``validate_url`` before it is sent.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field

import httpx

from linkmeta.config import settings
from linkmeta.core.exceptions import ErrorKind, UnfurlError
from linkmeta.core.metrics import manifest_fetch_total, upstream_fetch_duration_seconds
from linkmeta.services.url_guard import FetchTarget, validate_url

logger = logging.getLogger(__name__)

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}

_DNS_ERROR_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "temporary failure in name resolution",
    "no address associated",
    "name resolution",
    "dns",
)


class ResponseTooLarge(Exception):
    pass


@dataclass
class FetchedPage:
    """Body and selected transport details of a completed fetch."""

    text: str
    status_code: int
    reason_phrase: str = ""
    final_url: str = ""
    headers: dict[str, str] = field(default_factory=dict)


def clamp_timeout(timeout: int | None) -> int:
    """Caller timeout in ms, defaulted and bounded by configuration."""
    if timeout is None or timeout <= 0:
        return settings.DEFAULT_TIMEOUT
    return min(int(timeout), settings.MAX_TIMEOUT)


async def _check_redirect_target(request: httpx.Request) -> None:
    # Runs for the first request and every redirect hop.
    validate_url(str(request.url))


def _build_client(
    timeout_ms: int, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    headers = {"User-Agent": settings.USER_AGENT, **_BROWSER_HEADERS}
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=settings.MAX_REDIRECTS,
        timeout=timeout_ms / 1000,
        headers=headers,
        transport=transport,
        event_hooks={"request": [_check_redirect_target]},
    )


def _decode(body: bytes, encoding: str | None) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


def classify_error(exc: Exception) -> UnfurlError:
    """Map a transport failure onto the error taxonomy.

    Classification happens once, here; the request is never retried.
    """
    if isinstance(exc, UnfurlError):
        return exc

    detail = str(exc) or exc.__class__.__name__
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return UnfurlError(ErrorKind.UPSTREAM_TIMEOUT, details=detail)
    if isinstance(exc, httpx.ConnectError):
        if any(marker in detail.lower() for marker in _DNS_ERROR_MARKERS):
            return UnfurlError(ErrorKind.DOMAIN_NOT_FOUND, details=detail)
        return UnfurlError(ErrorKind.CONNECTION_REFUSED, details=detail)
    if isinstance(exc, httpx.TooManyRedirects):
        return UnfurlError(
            ErrorKind.UPSTREAM_BAD_RESPONSE,
            "The website redirected too many times",
            details=detail,
        )
    if isinstance(exc, ResponseTooLarge):
        return UnfurlError(
            ErrorKind.UPSTREAM_BAD_RESPONSE,
            "The website response is too large",
            details=detail,
        )
    if isinstance(exc, httpx.HTTPError):
        # Protocol, decoding and read errors, unsupported redirect schemes.
        return UnfurlError(ErrorKind.UPSTREAM_BAD_RESPONSE, details=detail)
    return UnfurlError(ErrorKind.INTERNAL_ERROR, details=detail)


async def _download(
    client: httpx.AsyncClient, url: str
) -> tuple[httpx.Response, bytes, int]:
    async with client.stream("GET", url) as response:
        chunks = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > settings.MAX_CONTENT_BYTES:
                raise ResponseTooLarge(f"body exceeds {settings.MAX_CONTENT_BYTES} bytes")
            chunks.append(chunk)
    return response, b"".join(chunks), size


async def fetch_page(
    target: FetchTarget,
    timeout: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchedPage:
    """Fetch ``target`` once; raises ``UnfurlError`` on any failure.

    Origin responses with status >= 400 are reported as upstream HTTP errors
    carrying the origin's status.
    """
    timeout_ms = clamp_timeout(timeout)
    start = time.perf_counter()
    try:
        async with _build_client(timeout_ms, transport) as client:
            # httpx timeouts are per phase; this bounds the whole fetch.
            response, body, size = await asyncio.wait_for(
                _download(client, target.href), timeout=timeout_ms / 1000
            )
        encoding = response.charset_encoding
    except Exception as e:
        err = classify_error(e)
        logger.warning(
            "Fetch failed for %s: %s (%s)", target.href, err.kind.value, err.details
        )
        raise err from e
    finally:
        upstream_fetch_duration_seconds.observe(time.perf_counter() - start)

    if response.status_code >= 400:
        logger.warning("Upstream %s answered %d", target.href, response.status_code)
        raise UnfurlError.upstream_status(response.status_code, response.reason_phrase)

    page = FetchedPage(
        text=_decode(body, encoding),
        status_code=response.status_code,
        reason_phrase=response.reason_phrase,
        final_url=str(response.url),
        headers={k.lower(): v for k, v in response.headers.items()},
    )
    logger.info(
        "Fetched %s -> %d (%d bytes, %.0f ms)",
        target.href,
        page.status_code,
        size,
        (time.perf_counter() - start) * 1000,
    )
    return page


async def fetch_manifest(
    manifest_url: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict | None:
    """Best-effort web-app manifest download.

    Every failure (rejected URL, transport error, bad status, invalid JSON,
    timeout) yields ``None``; this never fails the surrounding request.
    """
    timeout_ms = settings.MANIFEST_TIMEOUT
    try:
        validate_url(manifest_url)
        async with _build_client(timeout_ms, transport) as client:
            response = await asyncio.wait_for(
                client.get(manifest_url, headers={"Accept": "application/manifest+json, application/json"}),
                timeout=timeout_ms / 1000,
            )
        if response.status_code >= 400:
            manifest_fetch_total.labels(status="http_error").inc()
            logger.debug("Manifest %s answered %d", manifest_url, response.status_code)
            return None
        data = json.loads(response.text)
    except (UnfurlError, httpx.HTTPError, asyncio.TimeoutError, ValueError) as e:
        manifest_fetch_total.labels(status="failed").inc()
        logger.debug("Manifest fetch failed for %s: %s", manifest_url, e)
        return None

    manifest_fetch_total.labels(status="success").inc()
    return data if isinstance(data, dict) else None
