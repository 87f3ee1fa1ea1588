"""Image and icon candidates collected before ranking."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_SIZES_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


class CandidateKind(str, Enum):
    OG = "og"
    TWITTER = "twitter"
    APPLE_TOUCH_ICON = "apple-touch-icon"
    LINK_ICON = "link-icon"
    CONTENT_IMAGE = "content-image"
    MANIFEST = "manifest"


@dataclass(frozen=True)
class Candidate:
    kind: CandidateKind
    reference: str
    url: str | None = None  # set once resolved
    width: int | None = None
    height: int | None = None
    sizes: str | None = None
    alt: str | None = None
    type: str | None = None
    purpose: str | None = None

    @property
    def area(self) -> int:
        """Declared pixel area from ``sizes`` ("WxH"), else 0."""
        dims = parse_sizes(self.sizes)
        if dims is None:
            return 0
        return dims[0] * dims[1]


def parse_sizes(sizes: str | None) -> tuple[int, int] | None:
    """Parse the first "WxH" token of a sizes attribute."""
    if not sizes:
        return None
    m = _SIZES_RE.match(sizes)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def parse_dimension(value: str | None) -> int | None:
    """Leading integer of an HTML dimension ("300", "300px")."""
    if not value:
        return None
    m = _LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None
