"""Custom exception hierarchy."""

from typing import Any, Optional, Sequence


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(AppError):
    """Raised when a required credential or setting is missing."""
    pass


class PipelineError(AppError):
    """Base exception for question-extraction pipeline errors."""
    pass


class DocumentUnavailableError(PipelineError):
    """The source document could not be fetched from storage."""
    pass


class UpstreamServiceError(PipelineError):
    """The generation API returned a non-success status or the call failed in transport."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class ExtractionFormatError(PipelineError):
    """No JSON object could be recovered from the model response.

    ``preview`` holds at most the first 600 characters of the cleaned
    response text, never the whole payload.
    """

    def __init__(
        self,
        message: str,
        preview: str = "",
        attempts: Optional[Sequence[Any]] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.preview = preview
        self.attempts = list(attempts or [])


class PersistenceError(PipelineError):
    """The relational store rejected a write issued by the pipeline."""
    pass
