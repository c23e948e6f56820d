"""
Custom exceptions for PDF Bot Studio.

Domain services raise these; the HTTP layer maps each one to a status code
so that, for example, a revoked API key is reported differently from a
generic generation failure.
"""

from typing import Any, Dict, Optional


class PDFBotError(Exception):
    """Base exception for all PDF Bot Studio errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class NotFoundError(PDFBotError):
    """A bot, document or user record does not exist."""


class DocumentValidationError(PDFBotError):
    """An uploaded file was rejected before extraction (type, size, empty)."""


class PDFExtractionError(PDFBotError):
    """An uploaded file could not be parsed or contained no extractable text."""


class MissingCredentialError(PDFBotError):
    """The caller did not supply an API key for the generation service."""


class GenerationError(PDFBotError):
    """
    The external generation call failed.

    Subclasses narrow the cause so callers can react differently; this base
    class covers transient and unknown failures.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        api_details = {"status_code": status_code}
        if details:
            api_details.update(details)
        super().__init__(message, details=api_details)
        self.status_code = status_code


class InvalidCredentialError(GenerationError):
    """The supplied API key was rejected as invalid or revoked."""


class QuotaExceededError(GenerationError):
    """The supplied API key hit its quota or rate limit."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details)
        self.retry_after = retry_after
        self.details["retry_after"] = retry_after
