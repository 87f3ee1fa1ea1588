"""Resolve, deduplicate and rank image/icon candidates."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from linkmeta.services.candidates import Candidate, CandidateKind
from linkmeta.services.url_guard import FetchTarget, resolve_url

IMAGE_SAMPLE_LIMIT = 3
ICON_LIST_LIMIT = 5

# Icon tiers, highest first. Standard icons are further ordered by area.
_ICON_TIERS = {
    CandidateKind.APPLE_TOUCH_ICON: 3,
    CandidateKind.MANIFEST: 2,
    CandidateKind.LINK_ICON: 1,
}


def resolve_candidates(
    candidates: Iterable[Candidate], base: FetchTarget
) -> list[Candidate]:
    """Attach absolute URLs; candidates that cannot be resolved are dropped."""
    resolved = []
    for c in candidates:
        url = resolve_url(c.reference, base)
        if url:
            resolved.append(replace(c, url=url))
    return resolved


def dedupe_images(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Keep the first candidate seen for each resolved URL."""
    seen: set[str] = set()
    unique = []
    for c in candidates:
        if c.url in seen:
            continue
        seen.add(c.url)
        unique.append(c)
    return unique


def _icon_score(c: Candidate) -> tuple[int, int]:
    tier = _ICON_TIERS.get(c.kind, 0)
    if c.kind == CandidateKind.LINK_ICON:
        area = c.area
        # An icon without a parseable size drops below every sized one.
        return (tier, area) if area else (0, 0)
    return (tier, 0)


def rank_icons(candidates: Iterable[Candidate]) -> list[Candidate]:
    # sorted() is stable, so ties keep discovery order.
    return sorted(candidates, key=_icon_score, reverse=True)


def rank_meta_images(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Largest declared width x height first; ties keep discovery order."""
    return sorted(
        candidates, key=lambda c: (c.width or 0) * (c.height or 0), reverse=True
    )


def pick_primary_image(candidates: list[Candidate]) -> str | None:
    for c in candidates:
        if c.kind == CandidateKind.OG:
            return c.url
    return candidates[0].url if candidates else None


def pick_primary_icon(ranked: list[Candidate], base: FetchTarget) -> str:
    if ranked:
        return ranked[0].url
    return resolve_url("/favicon.ico", base)
