"""
Preach Point Backend — Sermon Processor (Request Policy)
==========================================================

What:  Full request policy for /process-sermon, independent of the web framework.
Why:   Every branch (preflight, 405, 429, 500, 400, 200) is decided here and
       can be unit-tested without an HTTP server.
How:   process() takes the method, headers, raw body and peer address and
       returns a ProcessedResponse; the route only converts it.
Who:   Called by the /process-sermon route for every method.

Request State Machine:
    Start → CORS headers applied
      ├── OPTIONS            → 200, empty body (no rate-limit slot used)
      ├── not POST           → 405 {"error": "Method not allowed"}
      └── POST
           ├── rate limited  → 429 {"error", "retryAfter": 60}
           ├── no credential → 500 {"error": "Server configuration error"}
           ├── invalid input → 400 {"error"}
           └── LLM call
                ├── fault    → 429 busy | 500 auth | 500 generic (+details in dev)
                └── ok       → parse or fallback → augment → 200

Error Boundary:
    All exceptions from the configuration check onward are caught in
    process(). Nothing escapes to the framework.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from preachpoint.config import settings
from preachpoint.exceptions import (
    ConfigurationError,
    LLMServiceError,
    RateLimitExceededError,
    UpstreamFailure,
    ValidationError,
)
from preachpoint.schemas.sermon import SermonRequest
from preachpoint.services.rate_limiter import RateLimiter
from preachpoint.services.sermon_service import SermonService

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

UNKNOWN_CLIENT = "unknown"

MSG_METHOD_NOT_ALLOWED = "Method not allowed"
MSG_TRANSCRIPTION_REQUIRED = "Transcription is required"
MSG_INVALID_BODY = "Invalid request body"
MSG_UPSTREAM_BUSY = "AI service is currently busy. Please try again in a few moments."
MSG_UPSTREAM_AUTH = "Server authentication error. Please contact support."
MSG_GENERIC_FAILURE = "Failed to process sermon. Please try again later."


@dataclass
class ProcessedResponse:
    """Framework-neutral response: status, JSON body (None = empty) and headers."""

    status_code: int
    content: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


def resolve_client_id(headers: Mapping[str, str], peer_address: Optional[str]) -> str:
    """
    Identify the caller for rate limiting.

    Uses the raw X-Forwarded-For value, then the connection's peer address,
    then the literal "unknown". Callers without either share one bucket.
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    forwarded = (lowered.get("x-forwarded-for") or "").strip()
    if forwarded:
        return forwarded
    if peer_address:
        return peer_address
    return UNKNOWN_CLIENT


class SermonProcessor:
    """
    Orchestrates one /process-sermon request.

    Args:
        rate_limiter:   Shared per-process limiter. Built from settings if omitted.
        sermon_service: Business logic layer. Built with the configured
                        provider if omitted.
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        sermon_service: Optional[SermonService] = None,
    ):
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=settings.max_requests_per_minute,
            window_seconds=settings.rate_limit_window,
            max_clients=settings.rate_limit_max_clients,
        )
        self.sermon_service = sermon_service or SermonService()

    async def process(
        self,
        method: str,
        headers: Mapping[str, str],
        body: bytes,
        peer_address: Optional[str] = None,
    ) -> ProcessedResponse:
        method = method.upper()

        if method == "OPTIONS":
            return self._respond(200)

        if method != "POST":
            return self._respond(405, {"error": MSG_METHOD_NOT_ALLOWED})

        client_id = resolve_client_id(headers, peer_address)

        try:
            if not self.rate_limiter.admit(client_id):
                raise RateLimitExceededError(
                    retry_after=int(self.rate_limiter.window_seconds),
                    context={"client_id": client_id},
                )

            if not settings.llm_api_key:
                raise ConfigurationError(context={"missing": settings.llm_api_key_name})

            request = self._parse_request(body)

            result = await self.sermon_service.analyze(
                transcription=request.transcription,
                bible_version=request.resolved_bible_version,
            )
            logger.info(
                "Processed sermon for client %s: %d words, version=%s",
                client_id,
                result["wordCount"],
                result["bibleVersion"],
            )
            return self._respond(200, result)

        except RateLimitExceededError as exc:
            return self._respond(
                429,
                {"error": exc.message, "retryAfter": exc.retry_after},
                extra_headers={"Retry-After": str(exc.retry_after)},
            )
        except ValidationError as exc:
            logger.warning("Rejected request from %s: %s", client_id, exc.message)
            return self._respond(400, {"error": exc.message})
        except ConfigurationError as exc:
            logger.error("Server configuration error: %s", exc.context)
            return self._respond(500, {"error": exc.message})
        except LLMServiceError as exc:
            return self._upstream_error_response(exc)
        except Exception as exc:
            logger.error("Error processing sermon: %s", str(exc), exc_info=True)
            return self._generic_error_response(str(exc))

    def _parse_request(self, body: bytes) -> SermonRequest:
        """
        Decode and validate the JSON body.

        A body that isn't a JSON object is treated as empty, which surfaces
        as "Transcription is required".
        """
        try:
            payload = json.loads(body) if body else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        try:
            request = SermonRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(MSG_INVALID_BODY, context={"errors": e.error_count()})

        if not request.transcription:
            raise ValidationError(MSG_TRANSCRIPTION_REQUIRED, field="transcription")

        limit = settings.max_transcription_length
        if len(request.transcription) > limit:
            raise ValidationError(
                f"Transcription too long. Maximum {limit} characters allowed.",
                field="transcription",
                context={"length": len(request.transcription)},
            )

        return request

    def _upstream_error_response(self, exc: LLMServiceError) -> ProcessedResponse:
        logger.error(
            "Error processing sermon: upstream %s (status=%s)",
            exc.failure.value,
            exc.status_code,
        )
        if exc.failure is UpstreamFailure.RATE_LIMITED:
            return self._respond(429, {"error": MSG_UPSTREAM_BUSY})
        if exc.failure is UpstreamFailure.UNAUTHORIZED:
            return self._respond(500, {"error": MSG_UPSTREAM_AUTH})
        return self._generic_error_response(exc.message)

    def _generic_error_response(self, detail: str) -> ProcessedResponse:
        content: Dict[str, Any] = {"error": MSG_GENERIC_FAILURE}
        if settings.is_development:
            content["details"] = detail
        return self._respond(500, content)

    @staticmethod
    def _respond(
        status_code: int,
        content: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> ProcessedResponse:
        headers = dict(CORS_HEADERS)
        if extra_headers:
            headers.update(extra_headers)
        return ProcessedResponse(status_code=status_code, content=content, headers=headers)


# Why singleton: the rate limiter state must be shared across all requests
# handled by this process.
sermon_processor = SermonProcessor()
