from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class UpstreamError(AppError):
    """Raised when an external service call fails or answers with a non-2xx status."""
    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(f"{service} error: {message}", original_error=original_error)
        self.service = service
        self.status_code = status_code
        self.body = body


class ConfigurationError(AppError):
    """Raised when a required integration is not configured."""
    pass
