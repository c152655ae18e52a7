"""URL validation run before any request is dispatched."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit


@dataclass
class UrlValidationResult:
    """Result of URL validation."""

    is_valid: bool
    rejection_reason: str | None = None

    @staticmethod
    def valid() -> UrlValidationResult:
        """Create a valid result."""
        return UrlValidationResult(is_valid=True)

    @staticmethod
    def invalid(reason: str) -> UrlValidationResult:
        """Create an invalid result with reason."""
        return UrlValidationResult(is_valid=False, rejection_reason=reason)


class UrlValidator:
    """
    Checks that a URL string is well formed enough to dispatch.

    Rejects:
    - Empty strings
    - Whitespace and control characters (query values are not percent-encoded)
    - Unparseable URLs and non-numeric ports
    - Schemes outside the allowed set
    - URLs without a host

    Example:
        validator = UrlValidator()
        result = validator.validate("https://example.com/items?id=1")
        if not result.is_valid:
            print(f"Rejected: {result.rejection_reason}")
    """

    DEFAULT_ALLOWED_SCHEMES = frozenset({"http", "https"})

    def __init__(
        self,
        allowed_schemes: set[str] | frozenset[str] | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the URL validator.

        Args:
            allowed_schemes: Set of allowed URL schemes (default: http, https)
            logger: Optional logger for validation messages
        """
        self.allowed_schemes = frozenset(s.lower() for s in (allowed_schemes or self.DEFAULT_ALLOWED_SCHEMES))
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, url: str) -> UrlValidationResult:
        """
        Validate a URL string.

        Args:
            url: The URL to validate

        Returns:
            UrlValidationResult with is_valid and optional rejection_reason
        """
        if not url:
            return UrlValidationResult.invalid("URL is empty")

        if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in url):
            return UrlValidationResult.invalid("URL contains whitespace or control characters")

        try:
            parsed = urlsplit(url)
            parsed.port  # raises ValueError for a non-numeric port
        except ValueError as e:
            self.logger.debug(f"Failed to parse URL {url!r}: {e}")
            return UrlValidationResult.invalid(f"Invalid URL format: {e}")

        if parsed.scheme.lower() not in self.allowed_schemes:
            return UrlValidationResult.invalid(
                f"Scheme '{parsed.scheme}' not allowed (allowed: {sorted(self.allowed_schemes)})"
            )

        if not parsed.hostname:
            return UrlValidationResult.invalid("URL has no host")

        return UrlValidationResult.valid()
