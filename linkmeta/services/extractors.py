"""Facet extractors.

Each extractor reads a ``DocumentView`` and returns either a scalar (first
non-empty value of an ordered fallback chain) or a list of unresolved
``Candidate`` objects (union of every source, in discovery order). None of
them mutate the document or depend on one another.
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup

from linkmeta.schemas.unfurl import (
    AppearanceInfo,
    BasicInfo,
    DateInfo,
    ExtendedInfo,
    FacebookInfo,
    Headings,
    SocialInfo,
    StructureInfo,
    Technologies,
    TwitterInfo,
)
from linkmeta.services.candidates import Candidate, CandidateKind, parse_dimension
from linkmeta.services.document import DocumentView
from linkmeta.services.url_guard import FetchTarget, resolve_url

logger = logging.getLogger(__name__)

# <img> elements must declare a width above this to count as a preview image.
CONTENT_IMAGE_MIN_WIDTH = 100

FIRST_PARAGRAPH_CHARS = 200

_APPLE_TOUCH_RELS = ("apple-touch-icon", "apple-touch-icon-precomposed")
_ICON_RELS = ("icon", "shortcut icon")


def clean_text(value: str | None) -> str | None:
    """Trim, collapse whitespace and drop any markup; empty becomes None."""
    if not value:
        return None
    if "<" in value and ">" in value:
        value = BeautifulSoup(value, "lxml").get_text(" ")
    value = " ".join(value.split())
    return value or None


def first_non_empty(*values: str | None) -> str | None:
    for value in values:
        cleaned = clean_text(value)
        if cleaned:
            return cleaned
    return None


def _is_data_uri(value: str) -> bool:
    return value.strip().lower().startswith("data:")


# ---------------------------------------------------------------------------
# Scalar facets
# ---------------------------------------------------------------------------


def extract_title(doc: DocumentView) -> str | None:
    return first_non_empty(
        doc.meta_content(property="og:title"),
        doc.meta_content(name="twitter:title"),
        doc.first_text("title"),
        doc.first_text("h1"),
        doc.first_text("h2"),
        doc.meta_content(property="og:site_name"),
    )


def extract_description(doc: DocumentView) -> str | None:
    return first_non_empty(
        doc.meta_content(property="og:description"),
        doc.meta_content(name="twitter:description"),
        doc.meta_content(name="description"),
    )


def extract_site_name(doc: DocumentView) -> str | None:
    """Site name declared by the page itself (og:site_name, application-name)."""
    return first_non_empty(
        doc.meta_content(property="og:site_name"),
        doc.meta_content(name="application-name"),
    )


def extract_canonical(doc: DocumentView) -> str | None:
    for link in doc.links_with_rel("canonical"):
        href = doc.attribute(link, "href")
        if href and href.strip():
            return href.strip()
    return None


def extract_keywords(doc: DocumentView) -> list[str] | None:
    raw = doc.meta_content(name="keywords") or ""
    return [k.strip() for k in raw.split(",") if k.strip()] or None


def extract_author(doc: DocumentView) -> str | None:
    creator = doc.meta_content(name="twitter:creator")
    return first_non_empty(
        doc.meta_content(name="author"),
        doc.meta_content(property="article:author"),
        creator.replace("@", "", 1) if creator else None,
    )


def extract_publisher(doc: DocumentView) -> str | None:
    return first_non_empty(
        doc.meta_content(property="article:publisher"),
        doc.meta_content(name="publisher"),
    )


def extract_content_type(
    doc: DocumentView, response_content_type: str | None = None
) -> str:
    """og:type, else the response MIME type, else "website"."""
    mime = None
    if response_content_type:
        mime = response_content_type.split(";")[0].strip()
    return first_non_empty(doc.meta_content(property="og:type"), mime) or "website"


def extract_locale(doc: DocumentView) -> str:
    return (
        first_non_empty(doc.meta_content(property="og:locale"), doc.html_attribute("lang"))
        or "en_US"
    )


def extract_basic(
    doc: DocumentView, response_content_type: str | None = None
) -> BasicInfo:
    return BasicInfo(
        title=extract_title(doc),
        description=extract_description(doc),
        keywords=extract_keywords(doc),
        author=extract_author(doc),
        publisher=extract_publisher(doc),
        content_type=extract_content_type(doc, response_content_type),
        locale=extract_locale(doc),
    )


def extract_dates(doc: DocumentView, fetched_at: str | None = None) -> DateInfo:
    # Passed through verbatim; no date parsing.
    return DateInfo(
        published=first_non_empty(
            doc.meta_content(property="article:published_time"),
            doc.meta_content(name="published"),
        ),
        modified=first_non_empty(
            doc.meta_content(property="article:modified_time"),
            doc.meta_content(name="modified"),
        ),
        fetched=fetched_at,
    )


def extract_social(doc: DocumentView) -> SocialInfo:
    return SocialInfo(
        twitter=TwitterInfo(
            card=clean_text(doc.meta_content(name="twitter:card")),
            site=clean_text(doc.meta_content(name="twitter:site")),
            creator=clean_text(doc.meta_content(name="twitter:creator")),
        ),
        facebook=FacebookInfo(
            app_id=clean_text(doc.meta_content(property="fb:app_id")),
            admins=clean_text(doc.meta_content(property="fb:admins")),
        ),
    )


def extract_appearance(doc: DocumentView) -> AppearanceInfo:
    theme_color = first_non_empty(
        doc.meta_content(name="theme-color"),
        doc.meta_content(name="msapplication-TileColor"),
        doc.meta_content(name="apple-mobile-web-app-status-bar-style"),
    )
    dark = doc.count(
        'meta[name="color-scheme"][content*="dark"], '
        'meta[name="theme-color"][media*="dark"]'
    )
    return AppearanceInfo(theme_color=theme_color, has_dark_mode=dark > 0)


def extract_structure(doc: DocumentView) -> StructureInfo:
    page_bytes = len(doc.raw.encode("utf-8"))
    return StructureInfo(
        has_javascript=doc.count("script") > 0,
        has_forms=doc.count("form") > 0,
        has_video=doc.count(
            'video, [data-video], iframe[src*="youtube"], iframe[src*="vimeo"]'
        )
        > 0,
        dom_elements=doc.count("*"),
        image_count=doc.count("img"),
        page_size=f"{page_bytes / 1024:.2f} KB",
        generator=clean_text(doc.meta_content(name="generator")),
        language=clean_text(doc.html_attribute("lang")),
    )


def _detect_technologies(doc: DocumentView, powered_by: str | None) -> Technologies:
    raw = doc.raw
    return Technologies(
        react=doc.count("div#root, div#app") > 0 or "react" in raw,
        nextjs=powered_by == "Next.js" or "__NEXT_DATA__" in raw,
        vue=doc.count("div#app") > 0 or "vue" in raw,
        angular=doc.count("[ng-app], [ng-controller]") > 0,
        wordpress=doc.count('meta[name="generator"][content*="WordPress"]') > 0
        or "wp-content" in raw
        or "wp-includes" in raw,
    )


def extract_extended(doc: DocumentView, powered_by: str | None = None) -> ExtendedInfo:
    """Supplementary fields returned only when the caller asks for them."""
    first_paragraph = clean_text(doc.first_text("p"))
    if first_paragraph:
        first_paragraph = first_paragraph[:FIRST_PARAGRAPH_CHARS] + "..."

    headings = Headings(
        **{
            level: [t for t in (clean_text(doc.text(el)) for el in doc.select(level)) if t]
            for level in ("h1", "h2", "h3")
        }
    )

    charset = doc.attr("meta[charset]", "charset")
    if not charset:
        content_type = doc.attr('meta[http-equiv="Content-Type" i]', "content") or ""
        if "charset=" in content_type:
            charset = content_type.split("charset=", 1)[1]

    return ExtendedInfo(
        first_paragraph=first_paragraph,
        headings=headings,
        technologies=_detect_technologies(doc, powered_by),
        language=clean_text(doc.html_attribute("lang")),
        charset=clean_text(charset),
        viewport=clean_text(doc.meta_content(name="viewport")),
        robots=clean_text(doc.meta_content(name="robots")),
    )


# ---------------------------------------------------------------------------
# Multi-valued facets
# ---------------------------------------------------------------------------


def _og_image_candidates(doc: DocumentView) -> list[Candidate]:
    """og:image / og:image:url tags with their structured width/height.

    A width or height property belongs to the most recent image tag before
    it, as in the Open Graph structured-property model.
    """
    groups: list[dict[str, Any]] = []
    for el in doc.select('meta[property^="og:image"]'):
        prop = (doc.attribute(el, "property") or "").lower()
        content = (doc.attribute(el, "content") or "").strip()
        if not content:
            continue
        if prop in ("og:image", "og:image:url"):
            groups.append({"reference": content})
        elif prop in ("og:image:width", "og:image:height") and groups:
            groups[-1][prop.rsplit(":", 1)[1]] = parse_dimension(content)
        elif prop == "og:image:alt" and groups:
            groups[-1]["alt"] = clean_text(content)

    return [
        Candidate(kind=CandidateKind.OG, **g)
        for g in groups
        if not _is_data_uri(g["reference"])
    ]


def extract_meta_image_candidates(doc: DocumentView) -> list[Candidate]:
    """og images that declare a width."""
    return [c for c in _og_image_candidates(doc) if c.width]


def _apple_touch_candidates(doc: DocumentView, default_sizes: str | None) -> list[Candidate]:
    out = []
    for link in doc.links_with_rel(*_APPLE_TOUCH_RELS):
        href = (doc.attribute(link, "href") or "").strip()
        if not href or _is_data_uri(href):
            continue
        out.append(
            Candidate(
                kind=CandidateKind.APPLE_TOUCH_ICON,
                reference=href,
                sizes=doc.attribute(link, "sizes") or default_sizes,
                type=doc.attribute(link, "type"),
            )
        )
    return out


def extract_content_image(doc: DocumentView) -> Candidate | None:
    for img in doc.select("img"):
        src = (doc.attribute(img, "src") or "").strip()
        width = parse_dimension(doc.attribute(img, "width"))
        if not src or _is_data_uri(src) or not width:
            continue
        if width > CONTENT_IMAGE_MIN_WIDTH:
            return Candidate(
                kind=CandidateKind.CONTENT_IMAGE,
                reference=src,
                width=width,
                height=parse_dimension(doc.attribute(img, "height")),
                alt=clean_text(doc.attribute(img, "alt")) or "",
            )
    return None


def extract_image_candidates(doc: DocumentView) -> list[Candidate]:
    candidates = _og_image_candidates(doc)

    for name in ("twitter:image", "twitter:image:src"):
        for content in doc.meta_contents(name=name):
            if not _is_data_uri(content):
                candidates.append(
                    Candidate(kind=CandidateKind.TWITTER, reference=content.strip())
                )

    candidates.extend(_apple_touch_candidates(doc, default_sizes=None))

    content_image = extract_content_image(doc)
    if content_image:
        candidates.append(content_image)
    return candidates


def extract_icon_candidates(doc: DocumentView) -> list[Candidate]:
    icons = []
    for link in doc.links_with_rel(*_ICON_RELS):
        href = (doc.attribute(link, "href") or "").strip()
        if not href or _is_data_uri(href):
            continue
        icons.append(
            Candidate(
                kind=CandidateKind.LINK_ICON,
                reference=href,
                sizes=doc.attribute(link, "sizes") or "16x16",
                type=doc.attribute(link, "type"),
            )
        )
    icons.extend(_apple_touch_candidates(doc, default_sizes="180x180"))
    return icons


def find_manifest_url(doc: DocumentView, base: FetchTarget) -> str | None:
    for link in doc.links_with_rel("manifest"):
        resolved = resolve_url(doc.attribute(link, "href"), base)
        if resolved:
            return resolved
    return None


def _manifest_str(entry: dict, key: str, default: str) -> str:
    value = entry.get(key)
    return value.strip() if isinstance(value, str) and value.strip() else default


def extract_manifest_icons(manifest: Any, manifest_url: str) -> list[Candidate]:
    """Icons declared in a web-app manifest, resolved against the manifest URL."""
    if not isinstance(manifest, dict):
        return []
    entries = manifest.get("icons")
    if not isinstance(entries, list):
        return []

    icons = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("src"), str):
            continue
        resolved = resolve_url(entry["src"], manifest_url)
        if not resolved:
            continue
        icons.append(
            Candidate(
                kind=CandidateKind.MANIFEST,
                reference=resolved,
                sizes=_manifest_str(entry, "sizes", "192x192"),
                type=_manifest_str(entry, "type", "image/png"),
                purpose=_manifest_str(entry, "purpose", "any"),
            )
        )
    logger.debug("Manifest %s declared %d icons", manifest_url, len(icons))
    return icons
