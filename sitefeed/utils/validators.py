"""
SiteFeed Input Validators
=========================

Validation for the values that flow from the feed document into file paths
and absolute URLs: post slugs and the site base URL.
"""

from urllib.parse import urlparse, unquote

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = {'http', 'https'}

    @classmethod
    def normalize_base_url(cls, url: str) -> str:
        """Validate the site base URL and drop its trailing slash.

        Args:
            url: Channel link of the feed

        Returns:
            Base URL without trailing slash, e.g. ``https://example.com``

        Raises:
            ValidationError: If URL is missing or not http(s)
        """
        if not url or not isinstance(url, str) or not url.strip():
            raise ValidationError(
                "Base URL is required",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="base_url"
            )

        url = url.strip()
        parsed = urlparse(url)

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(sorted(cls.ALLOWED_SCHEMES))}",
                field_name="base_url"
            )

        if not parsed.netloc:
            raise ValidationError("URL must include a hostname", field_name="base_url")

        return url.rstrip('/')


class SlugValidator:
    """Post slug derivation and validation."""

    FORBIDDEN_SLUGS = {'.', '..'}

    @classmethod
    def slug_from_link(cls, link: str) -> str:
        """Derive a post slug from its link.

        The slug is the last non-empty path segment, percent-decoded, so
        ``https://example.com/posts/caf%C3%A9/`` yields ``café``.

        Raises:
            ValidationError: If no usable slug can be derived
        """
        if not link or not link.strip():
            raise ValidationError(
                "Item link is empty",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="link"
            )

        path = urlparse(link.strip()).path
        segments = [segment for segment in path.split('/') if segment]
        if not segments:
            raise ValidationError(f"No slug in link {link!r}", field_name="link")

        return cls.validate_slug(unquote(segments[-1]))

    @classmethod
    def validate_slug(cls, slug: str) -> str:
        """Ensure a slug is safe to use as a single path segment."""
        if not slug or slug in cls.FORBIDDEN_SLUGS or '/' in slug or '\\' in slug or '\x00' in slug:
            raise ValidationError(f"Unsafe slug {slug!r}", field_name="slug")
        return slug
