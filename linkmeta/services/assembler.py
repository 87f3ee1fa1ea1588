"""Merge facet extractions into the final ``MetadataRecord``.

Each field is computed in isolation; a failure while computing one field is
logged and that field is left empty instead of failing the whole record.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

from linkmeta.schemas.unfurl import (
    AppearanceInfo,
    BasicInfo,
    DateInfo,
    IconEntry,
    IconFacet,
    ImageFacet,
    ImageSample,
    MetadataRecord,
    PageMetadata,
    ResponseInfo,
    SocialInfo,
    StructureInfo,
)
from linkmeta.services import extractors
from linkmeta.services.candidates import Candidate
from linkmeta.services.document import DocumentView
from linkmeta.services.fetcher import FetchedPage
from linkmeta.services.ranking import (
    ICON_LIST_LIMIT,
    IMAGE_SAMPLE_LIMIT,
    dedupe_images,
    pick_primary_icon,
    pick_primary_image,
    rank_icons,
    rank_meta_images,
    resolve_candidates,
)
from linkmeta.services.url_guard import FetchTarget, resolve_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _safe(name: str, compute: Callable[[], T], default: T) -> T:
    try:
        return compute()
    except Exception as e:
        logger.debug("Field %s failed: %s", name, e)
        return default


def strip_www(hostname: str) -> str:
    """Drop exactly one leading ``www.``."""
    return hostname[4:] if hostname.startswith("www.") else hostname


def derive_site_name(doc: DocumentView, hostname: str) -> str:
    domain = strip_www(hostname)
    return extractors.extract_site_name(doc) or domain.split(".")[0] or hostname


def build_basic_info(doc: DocumentView, content_type: str | None) -> BasicInfo:
    """Each basic field is guarded on its own."""
    return BasicInfo(
        title=_safe("title", lambda: extractors.extract_title(doc), None),
        description=_safe(
            "description", lambda: extractors.extract_description(doc), None
        ),
        keywords=_safe("keywords", lambda: extractors.extract_keywords(doc), None),
        author=_safe("author", lambda: extractors.extract_author(doc), None),
        publisher=_safe("publisher", lambda: extractors.extract_publisher(doc), None),
        content_type=_safe(
            "content_type",
            lambda: extractors.extract_content_type(doc, content_type),
            None,
        ),
        locale=_safe("locale", lambda: extractors.extract_locale(doc), None),
    )


def _image_sample(c: Candidate) -> ImageSample:
    return ImageSample(
        url=c.url,
        kind=c.kind.value,
        width=c.width,
        height=c.height,
        sizes=c.sizes,
        alt=c.alt,
    )


def build_image_facet(doc: DocumentView, target: FetchTarget) -> ImageFacet:
    candidates = dedupe_images(
        resolve_candidates(extractors.extract_image_candidates(doc), target)
    )
    meta_images = dedupe_images(
        rank_meta_images(
            resolve_candidates(extractors.extract_meta_image_candidates(doc), target)
        )
    )
    content = resolve_candidates(
        filter(None, [extractors.extract_content_image(doc)]), target
    )
    return ImageFacet(
        primary=pick_primary_image(candidates),
        count=len(candidates),
        samples=[_image_sample(c) for c in candidates[:IMAGE_SAMPLE_LIMIT]],
        meta_images=[_image_sample(c) for c in meta_images],
        content_image=_image_sample(content[0]) if content else None,
    )


def build_icon_facet(
    doc: DocumentView,
    target: FetchTarget,
    manifest_icons: Iterable[Candidate] = (),
) -> IconFacet:
    found = extractors.extract_icon_candidates(doc) + list(manifest_icons)
    ranked = rank_icons(resolve_candidates(found, target))
    return IconFacet(
        primary=pick_primary_icon(ranked, target),
        count=len(ranked),
        all=[
            IconEntry(
                url=c.url,
                kind=c.kind.value,
                sizes=c.sizes,
                type=c.type,
                purpose=c.purpose,
            )
            for c in ranked[:ICON_LIST_LIMIT]
        ],
    )


def build_response_info(page: FetchedPage) -> ResponseInfo:
    return ResponseInfo(
        status=page.status_code,
        status_text=page.reason_phrase or None,
        content_type=page.headers.get("content-type"),
        server=page.headers.get("server"),
        powered_by=page.headers.get("x-powered-by"),
        final_url=page.final_url or None,
    )


def assemble_record(
    doc: DocumentView,
    target: FetchTarget,
    *,
    response: FetchedPage | None = None,
    manifest_icons: Iterable[Candidate] = (),
    extended: bool = False,
    fetched_at: str | None = None,
) -> MetadataRecord:
    """Build the record for one page. Deterministic for identical inputs."""
    headers = response.headers if response else {}
    hostname = target.hostname

    basic = build_basic_info(doc, headers.get("content-type"))
    metadata = PageMetadata(
        basic=basic,
        dates=_safe("dates", lambda: extractors.extract_dates(doc, fetched_at), DateInfo()),
        social=_safe("social", lambda: extractors.extract_social(doc), SocialInfo()),
        appearance=_safe(
            "appearance", lambda: extractors.extract_appearance(doc), AppearanceInfo()
        ),
        structure=_safe(
            "structure", lambda: extractors.extract_structure(doc), StructureInfo()
        ),
    )

    canonical = _safe(
        "canonical",
        lambda: resolve_url(extractors.extract_canonical(doc), target),
        None,
    )
    fallback_icon = resolve_url("/favicon.ico", target)

    return MetadataRecord(
        url=target.href,
        canonical=canonical or target.href,
        title=basic.title,
        description=basic.description,
        site_name=_safe("site_name", lambda: derive_site_name(doc, hostname), hostname),
        hostname=hostname,
        domain=strip_www(hostname),
        protocol=target.scheme,
        metadata=metadata,
        images=_safe("images", lambda: build_image_facet(doc, target), ImageFacet()),
        icons=_safe(
            "icons",
            lambda: build_icon_facet(doc, target, manifest_icons),
            IconFacet(primary=fallback_icon),
        ),
        response_info=build_response_info(response) if response else None,
        extended=(
            _safe(
                "extended",
                lambda: extractors.extract_extended(doc, headers.get("x-powered-by")),
                None,
            )
            if extended
            else None
        ),
    )
