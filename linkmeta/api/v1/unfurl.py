import logging

import httpx
from fastapi import APIRouter, Depends, Query, Response

from linkmeta.core.exceptions import BadRequestError, ErrorKind, UnfurlError
from linkmeta.core.metrics import unfurl_requests_total
from linkmeta.schemas.unfurl import ErrorResponse, MetadataRecord
from linkmeta.services.pipeline import unfurl_url

logger = logging.getLogger(__name__)

router = APIRouter()


def get_transport() -> httpx.AsyncBaseTransport | None:
    """Outbound transport for page fetches; None means httpx's default."""
    return None


def parse_extended_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("true", "1")


@router.get(
    "",
    response_model=MetadataRecord,
    response_model_exclude_none=True,
    summary="Unfurl a URL",
    description="Fetch a web page and return its link-preview metadata: title, description, site name, preview image, favicon, social-card fields and page-structure signals. Private and local addresses are rejected before any request is made.",
    response_description="Normalized metadata record",
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        408: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def unfurl(
    url: str | None = Query(None, description="Absolute http(s) URL to unfurl"),
    timeout: int | None = Query(None, description="Fetch timeout in milliseconds"),
    extended: str | None = Query(None, description='"true" or "1" adds extended fields'),
    transport: httpx.AsyncBaseTransport | None = Depends(get_transport),
):
    """Unfurl a single URL."""
    if not url:
        unfurl_requests_total.labels(outcome="BadRequest").inc()
        raise BadRequestError("Missing ?url= parameter")

    try:
        record = await unfurl_url(
            url,
            timeout=timeout,
            extended=parse_extended_flag(extended),
            transport=transport,
        )
    except UnfurlError as e:
        unfurl_requests_total.labels(outcome=e.kind.value).inc()
        raise
    except Exception as e:
        # Handled here, inside the CORS and request-ID middleware.
        logger.exception("Unexpected failure unfurling %s", url)
        unfurl_requests_total.labels(outcome=ErrorKind.INTERNAL_ERROR.value).inc()
        raise UnfurlError(ErrorKind.INTERNAL_ERROR, details=str(e)) from e

    unfurl_requests_total.labels(outcome="success").inc()
    return record


@router.options("", include_in_schema=False)
async def unfurl_preflight():
    return Response(status_code=200)
