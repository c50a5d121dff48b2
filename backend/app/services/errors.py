"""Domain errors raised by the service layer and translated to HTTP by routers."""

from typing import Optional


class ServiceError(ValueError):
    """Base class for expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def as_detail(self):
        """HTTPException detail; extra fields ride along in the error envelope."""
        return {"error": self.message, **self.extra} if self.extra else self.message


class ValidationError(ServiceError):
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class AnalysisRequiredError(ServiceError):
    """A previous theory session must be analyzed before a new one may start."""

    status_code = 423


class VoiceApiError(ServiceError):
    """Non-retryable error response from the voice-conversation API."""

    def __init__(self, status: int, body: str, message: Optional[str] = None):
        super().__init__(message or f"Voice API error: HTTP {status}", details=body)
        self.status = status
        self.body = body
        self.status_code = status if status >= 400 else 502


class TranscriptUnavailableError(ServiceError):
    """The transcript could not be fetched after all retries; callers may try again later."""

    status_code = 503

    def __init__(self, message: str = "Conversation transcript not available yet. Please try again in a few minutes."):
        super().__init__(message, retryable=True)
