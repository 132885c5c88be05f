"""Exception classes for wikimark.

The parser and the toggle command never raise; these exceptions come from
the post client and editor configuration. They are grouped as:
1. Base exceptions (base class for all wikimark exceptions)
2. Configuration exceptions (missing or invalid settings)
3. Backend exceptions (errors returned by the posts backend)
"""

from typing import Optional


# -----------------------------------------------------------------------------
# Base Exceptions
# -----------------------------------------------------------------------------
class WikimarkError(Exception):
    """Base class for all wikimark exceptions."""

    pass


class RequestTimeoutError(WikimarkError):
    """Raised when a request keeps timing out after all retries."""

    pass


# -----------------------------------------------------------------------------
# Configuration Exceptions
# -----------------------------------------------------------------------------
class ConfigurationError(WikimarkError):
    """Base class for all configuration-related exceptions."""

    pass


class ApiKeyError(ConfigurationError):
    """Raised when the WIKIMARK_API_KEY is missing."""

    pass


# -----------------------------------------------------------------------------
# Backend Exceptions
# -----------------------------------------------------------------------------
class BackendError(WikimarkError):
    """Base class for errors reported by the posts backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(BackendError):
    """Raised when the backend rate limit is still exceeded after retrying."""

    pass


class AuthenticationError(BackendError):
    """Raised when the API key is rejected."""

    pass


class NotFoundError(BackendError):
    """Raised when a requested post does not exist."""

    pass
