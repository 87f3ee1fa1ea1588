import asyncio
import contextvars
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import httpx

from linkmeta.config import settings
from linkmeta.core.exceptions import ErrorKind, UnfurlError
from linkmeta.schemas.unfurl import MetadataRecord
from linkmeta.services.assembler import assemble_record
from linkmeta.services.candidates import Candidate
from linkmeta.services.document import DocumentView
from linkmeta.services.extractors import extract_manifest_icons, find_manifest_url
from linkmeta.services.fetcher import fetch_manifest, fetch_page
from linkmeta.services.url_guard import FetchTarget, validate_url

logger = logging.getLogger(__name__)

# Parsing and assembly are CPU-bound; keep them off the event loop.
_extraction_executor = ThreadPoolExecutor(max_workers=4)


async def _run_in_executor(func, *args, **kwargs):
    """Run ``func`` on the extraction pool inside a copy of the caller's context."""
    ctx = contextvars.copy_context()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _extraction_executor, functools.partial(ctx.run, func, *args, **kwargs)
    )


async def _manifest_icons(
    doc: DocumentView,
    target: FetchTarget,
    transport: httpx.AsyncBaseTransport | None,
) -> list[Candidate]:
    manifest_url = find_manifest_url(doc, target)
    if not manifest_url:
        return []
    manifest = await fetch_manifest(manifest_url, transport=transport)
    if manifest is None:
        return []
    return extract_manifest_icons(manifest, manifest_url)


async def unfurl_url(
    url: str,
    timeout: int | None = None,
    extended: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MetadataRecord:
    """Validate, fetch and extract metadata for a single URL.

    Raises ``UnfurlError`` for every failure; rejected URLs never reach the
    network.
    """
    target = validate_url(url)
    page = await fetch_page(target, timeout=timeout, transport=transport)
    fetched_at = datetime.now(timezone.utc).isoformat()

    try:
        doc = await _run_in_executor(DocumentView, page.text)
    except Exception as e:
        logger.exception("Failed to parse %s", target.href)
        raise UnfurlError(ErrorKind.INTERNAL_ERROR, details=str(e)) from e

    manifest_icons: list[Candidate] = []
    if settings.MANIFEST_ICONS_ENABLED:
        manifest_icons = await _manifest_icons(doc, target, transport)

    try:
        return await _run_in_executor(
            assemble_record,
            doc,
            target,
            response=page,
            manifest_icons=manifest_icons,
            extended=extended,
            fetched_at=fetched_at,
        )
    except Exception as e:
        logger.exception("Failed to assemble metadata for %s", target.href)
        raise UnfurlError(ErrorKind.INTERNAL_ERROR, details=str(e)) from e
