"""
Error taxonomy.

Every error a request handler can surface carries the HTTP status it maps to,
so routes and the application-level exception handler can turn it into the
generic ``{"success": false, "error": ...}`` response shape.
"""

from typing import Optional


class ConfigError(Exception):
    """Raised when configuration is missing or malformed."""


class CacheError(Exception):
    """Raised when the Redis cache cannot be read or written."""


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, character_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.character_id = character_id


class ValidationError(AppError):
    """Request is missing required input or carries invalid input."""

    status_code = 400


class InsufficientCreditsError(AppError):
    """Identity has no credits left on a metered plan."""

    status_code = 402


class NotFoundError(AppError):
    """Referenced character or short URL does not exist."""

    status_code = 404


class UploadFailedError(AppError):
    """Object storage rejected or failed the upload."""


class PersistenceError(AppError):
    """Database read or write failed."""


class AnalysisError(AppError):
    """Vision analysis failed or returned an unusable payload."""


class GenerationError(AppError):
    """Image generation failed."""


class RetryFailedError(AppError):
    """A user-triggered regeneration did not produce an image."""
