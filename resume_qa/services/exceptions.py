"""
Error taxonomy shared by the services and request handlers.

Each error carries the HTTP status it maps to; the application turns any
``ResumeQAError`` into a ``{"error": message}`` response.
"""


class ResumeQAError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500


class InvalidRequestError(ResumeQAError):
    """Raised when a required input is missing or malformed."""

    status_code = 400


class NotFoundError(ResumeQAError):
    """Raised when a resume reference cannot be resolved."""

    status_code = 404


class ExtractionError(ResumeQAError):
    """Raised when text extraction fails or yields no text."""

    pass


class StorageError(ResumeQAError):
    """Raised when the resume store cannot complete an operation."""

    pass


class UnconfiguredError(ResumeQAError):
    """Raised when a required secret or setting is absent."""

    pass


class AllModelsUnavailableError(ResumeQAError):
    """Raised when every model candidate failed to produce an answer."""

    status_code = 503

    def __init__(self, message: str, last_error: str | None = None, attempts: int = 0):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts
