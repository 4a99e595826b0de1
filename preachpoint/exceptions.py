"""
Preach Point Backend — Custom Exception Hierarchy
===================================================

What:  Defines application-specific exceptions for the sermon pipeline.
Why:   Each failure class maps to one HTTP status and one user-facing message.
How:   Each exception carries a message and optional context dict.
       SermonProcessor catches these at its single boundary and turns them
       into JSON error responses.
Who:   Raised by SermonProcessor, SermonService and the LLM services.

Exception Hierarchy:
    PreachPointError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ConfigurationError       → 500 (never names the missing setting)
    └── LLMServiceError          → mapped by UpstreamFailure
                                   RATE_LIMITED → 429, UNAUTHORIZED → 500,
                                   OTHER → 500

JSON parse failures of the AI output are NOT exceptions at this level; they
are absorbed by the fallback document in SermonService.
"""

import enum
from typing import Any, Dict, Optional


class PreachPointError(Exception):
    """
    Base exception for all Preach Point application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PreachPointError):
    """
    Raised when client input fails validation.

    When:    Missing transcription, oversized transcription, malformed body.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class RateLimitExceededError(PreachPointError):
    """
    Raised when a client exceeds the per-client request rate limit.

    HTTP:    429 Too Many Requests, with `retryAfter` in the body and a
             Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Too many requests. Please wait a minute before trying again."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ConfigurationError(PreachPointError):
    """
    Raised when the server is missing required configuration.

    When:    The active LLM provider has no credential, or the provider name
             is unknown.
    HTTP:    500 with a generic message. The name of the missing setting goes
             into `context` for the server log only.
    """

    def __init__(
        self,
        message: str = "Server configuration error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamFailure(enum.Enum):
    """Classification of an upstream LLM fault by its carried status code."""

    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    OTHER = "other"

    @classmethod
    def from_status(cls, status_code: Optional[int]) -> "UpstreamFailure":
        if status_code == 429:
            return cls.RATE_LIMITED
        if status_code == 401:
            return cls.UNAUTHORIZED
        return cls.OTHER


class LLMServiceError(PreachPointError):
    """
    Raised when the upstream LLM call fails.

    What:    The provider returned an error status, or the transport failed
             after all retries.
    How:     Provider adapters translate SDK exceptions into this single type,
             carrying the HTTP status (None for transport failures). The
             `failure` attribute is the tagged classification the processor
             matches on.

    Security:
        `message` may contain raw provider text. It is only ever echoed to
        the caller as `details` on the generic 500 path in development.
    """

    def __init__(
        self,
        message: str = "AI service request failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
        self.failure = UpstreamFailure.from_status(status_code)
