"""URL validation and resolution.

``validate_url`` is the gate in front of every outbound fetch: it accepts
only absolute http(s) URLs whose host is not an obvious local or private
address. The check is purely static. No DNS lookup happens here, so a public
name that resolves to a private address (DNS rebinding) is not caught.
"""

import ipaddress
import re
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit, urlunsplit

from linkmeta.core.exceptions import ErrorKind, UrlRejected

ALLOWED_SCHEMES = ("http", "https")

_BLOCKED_HOSTS = {"localhost", "0.0.0.0", "::", "::1", "127.0.0.1"}
_BLOCKED_HOST_SUBSTRINGS = ("internal", "private")
_PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
]
_INVALID_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`]")


@dataclass(frozen=True)
class FetchTarget:
    """A validated absolute URL that is safe to hand to the fetcher."""

    scheme: str
    hostname: str
    path: str  # path + query
    original: str
    href: str

    def __str__(self) -> str:
        return self.href


def _is_blocked_host(hostname: str) -> bool:
    if hostname in _BLOCKED_HOSTS:
        return True
    if any(s in hostname for s in _BLOCKED_HOST_SUBSTRINGS):
        return True
    try:
        addr = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    if addr.is_loopback or addr.is_unspecified:
        return True
    if addr.version == 4:
        return any(addr in net for net in _PRIVATE_NETWORKS)
    return False


def _normalize_netloc(netloc: str) -> str:
    # Host and port are case-insensitive; userinfo is not.
    userinfo, at, hostport = netloc.rpartition("@")
    return f"{userinfo}{at}{hostport.lower()}"


def validate_url(raw: str) -> FetchTarget:
    """Classify ``raw`` as a fetchable target or raise ``UrlRejected``."""
    if not raw or not isinstance(raw, str) or not raw.strip():
        raise UrlRejected(ErrorKind.INVALID_URL, details="empty URL")

    candidate = raw.strip()
    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise UrlRejected(ErrorKind.INVALID_URL, details=str(e)) from e

    scheme = parts.scheme.lower()
    if not scheme:
        raise UrlRejected(ErrorKind.INVALID_URL, details="URL has no scheme")
    if scheme not in ALLOWED_SCHEMES:
        raise UrlRejected(
            ErrorKind.DISALLOWED_SCHEME, details=f"scheme {scheme!r} not allowed"
        )
    if not hostname or _INVALID_HOST_CHARS.search(parts.netloc):
        raise UrlRejected(ErrorKind.INVALID_URL, details="URL has no valid host")

    hostname = hostname.rstrip(".")
    if _is_blocked_host(hostname):
        raise UrlRejected(
            ErrorKind.PRIVATE_ADDRESS_BLOCKED, details=f"host {hostname!r} is blocked"
        )

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"
    href = urlunsplit(
        (scheme, _normalize_netloc(parts.netloc), parts.path or "/", parts.query, parts.fragment)
    )
    return FetchTarget(
        scheme=scheme,
        hostname=hostname,
        path=path,
        original=raw,
        href=href,
    )


def resolve_url(reference: str | None, base: FetchTarget | str) -> str | None:
    """Resolve ``reference`` against ``base``; ``None`` when unusable.

    ``data:`` URIs are never returned.
    """
    if not reference:
        return None
    reference = reference.strip()
    if not reference or reference.lower().startswith("data:"):
        return None

    base_href = base.href if isinstance(base, FetchTarget) else base
    try:
        resolved = urljoin(base_href, reference)
    except ValueError:
        return reference if reference.startswith("http") else None
    return resolved or None
