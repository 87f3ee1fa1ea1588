"""Error taxonomy for unfurl requests.

Every failure that ends a request is raised as an ``UnfurlError`` carrying a
stable label and HTTP status. The API layer renders it into the JSON error
envelope; the core never builds responses itself.
"""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_URL = "InvalidUrl"
    DISALLOWED_SCHEME = "DisallowedScheme"
    PRIVATE_ADDRESS_BLOCKED = "PrivateAddressBlocked"
    DOMAIN_NOT_FOUND = "DomainNotFound"
    CONNECTION_REFUSED = "ConnectionRefused"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"
    UPSTREAM_HTTP_ERROR = "UpstreamHttpError"
    UPSTREAM_BAD_RESPONSE = "UpstreamBadResponse"
    INTERNAL_ERROR = "InternalError"


# kind -> (status, label, default message)
_ERROR_TABLE: dict[ErrorKind, tuple[int, str, str]] = {
    ErrorKind.INVALID_URL: (400, "Invalid URL", "Invalid URL format"),
    ErrorKind.DISALLOWED_SCHEME: (
        400,
        "Disallowed Scheme",
        "Only HTTP and HTTPS protocols are allowed",
    ),
    ErrorKind.PRIVATE_ADDRESS_BLOCKED: (
        403,
        "Forbidden",
        "Access to local/internal resources is blocked",
    ),
    ErrorKind.DOMAIN_NOT_FOUND: (
        404,
        "Domain Not Found",
        "The domain could not be resolved",
    ),
    ErrorKind.CONNECTION_REFUSED: (
        502,
        "Connection Refused",
        "Unable to connect to the website",
    ),
    ErrorKind.UPSTREAM_TIMEOUT: (
        408,
        "Request Timeout",
        "The website took too long to respond",
    ),
    ErrorKind.UPSTREAM_HTTP_ERROR: (502, "Bad Gateway", "The website returned an error"),
    ErrorKind.UPSTREAM_BAD_RESPONSE: (
        502,
        "Bad Gateway",
        "The website returned an invalid response",
    ),
    ErrorKind.INTERNAL_ERROR: (
        500,
        "Internal Server Error",
        "Failed to process request",
    ),
}


class UnfurlError(Exception):
    """A request-terminating failure with a stable label and status code."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        details: str | None = None,
        status_code: int | None = None,
        label: str | None = None,
    ):
        default_status, default_label, default_message = _ERROR_TABLE[kind]
        self.kind = kind
        self.status_code = status_code or default_status
        self.label = label or default_label
        self.message = message or default_message
        self.details = details
        super().__init__(self.message)

    @classmethod
    def upstream_status(cls, status: int, reason: str = "") -> "UnfurlError":
        """The origin answered, but with an error status; pass it through."""
        return cls(
            ErrorKind.UPSTREAM_HTTP_ERROR,
            f"Website returned {status} {reason}".rstrip(),
            status_code=status,
            label=f"HTTP {status}",
        )


class UrlRejected(UnfurlError):
    """Raised by the URL validator; no network call has been made."""


class BadRequestError(UnfurlError):
    """Malformed request to this service (missing or invalid parameters)."""

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(
            ErrorKind.INVALID_URL,
            message,
            details=details,
            status_code=400,
            label="Bad Request",
        )
