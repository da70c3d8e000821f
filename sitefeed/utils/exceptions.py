"""
SiteFeed Custom Exceptions
==========================

Custom exception hierarchy for SiteFeed with error codes, context information,
and user-friendly error messages for build logs.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"

    # Feed document errors (F001-F099)
    FEED_NOT_FOUND = "F001"
    FEED_PARSE_ERROR = "F002"
    FEED_INVALID_DOCUMENT = "F003"
    FEED_WRITE_ERROR = "F004"

    # Post content errors (P001-P099)
    CONTENT_INVALID = "P001"
    CONTENT_SOURCE_MISSING = "P002"
    CONTENT_EXTRACTION_FAILED = "P003"

    # Cache errors (K001-K099)
    CACHE_IO_ERROR = "K001"
    CACHE_LOCKED = "K002"

    # Rendering errors (R001-R099)
    RENDER_INVALID_PROPS = "R001"
    RENDER_TEMPLATE_ERROR = "R002"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # System errors (S001-S099)
    SYSTEM_PERMISSION_DENIED = "S001"
    SYSTEM_UNEXPECTED = "S003"


class SiteFeedError(Exception):
    """Base exception for all SiteFeed errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize SiteFeed error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether processing can continue past the error
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _passthrough(kwargs: Dict[str, Any], *consumed: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in consumed}


class ConfigurationError(SiteFeedError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for SiteFeedError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_passthrough(kwargs, "context", "error_code", "user_message"),
        )


class FeedError(SiteFeedError):
    """Feed document loading, parsing and writing errors."""

    def __init__(self, message: str, feed_path: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_path: Path of the feed document
            **kwargs: Additional arguments for SiteFeedError
        """
        context = kwargs.get("context", {})
        if feed_path:
            context["feed_path"] = str(feed_path)

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_PARSE_ERROR),
            context=context,
            user_message=kwargs.get("user_message", f"Feed processing failed: {message}"),
            **_passthrough(kwargs, "context", "error_code", "user_message"),
        )


class PostContentError(SiteFeedError):
    """Errors reading or extracting a rendered post page."""

    def __init__(self, message: str, slug: Optional[str] = None, **kwargs):
        """Initialize post content error.

        Args:
            message: Error message
            slug: Slug of the post that caused the error
            **kwargs: Additional arguments for SiteFeedError
        """
        context = kwargs.get("context", {})
        if slug:
            context["slug"] = slug

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONTENT_INVALID),
            context=context,
            user_message=kwargs.get("user_message", "Post content could not be processed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class CacheError(SiteFeedError):
    """Sanitized-content cache errors."""

    def __init__(self, message: str, cache_path: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if cache_path:
            context["cache_path"] = str(cache_path)

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CACHE_IO_ERROR),
            context=context,
            user_message=kwargs.get("user_message", "Content cache operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class ComponentError(SiteFeedError):
    """Presentational component rendering errors."""

    def __init__(self, message: str, component: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if component:
            context["component"] = component

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.RENDER_INVALID_PROPS),
            context=context,
            user_message=kwargs.get("user_message", f"Component rendering failed: {message}"),
            **_passthrough(kwargs, "context", "error_code", "user_message"),
        )


class ValidationError(SiteFeedError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for SiteFeedError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


# Exception handling utilities


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> SiteFeedError:
    """Convert generic exceptions to SiteFeed exceptions with proper logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        SiteFeed exception with proper categorization
    """
    context = context or {}
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    if isinstance(exception, SiteFeedError):
        logger.error(f"Operation '{operation}' failed: {exception}", extra=exception.to_dict())
        return exception

    elif isinstance(exception, PermissionError):
        error = SiteFeedError(
            message=f"Permission denied during {operation}: {exception}",
            error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            context=context,
            user_message="Access denied",
            recoverable=False,
        )

    elif isinstance(exception, FileNotFoundError):
        error = PostContentError(
            message=f"Required file not found during {operation}: {exception}",
            error_code=ErrorCode.CONTENT_SOURCE_MISSING,
            context=context,
        )

    elif isinstance(exception, UnicodeDecodeError):
        error = PostContentError(
            message=f"Undecodable content during {operation}: {exception}",
            error_code=ErrorCode.CONTENT_INVALID,
            context=context,
        )

    else:
        error = SiteFeedError(
            message=f"Unexpected error during {operation}: {exception}",
            error_code=ErrorCode.SYSTEM_UNEXPECTED,
            context=context,
            user_message="An unexpected error occurred",
            recoverable=True,
        )

    logger.error(f"Operation '{operation}' failed: {error}", extra=error.to_dict())
    return error


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception."""
    if isinstance(exception, SiteFeedError):
        return exception.user_message

    return "An unexpected error occurred. Check the build log for details."
