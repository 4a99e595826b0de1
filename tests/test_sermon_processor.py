"""
Preach Point Backend — Sermon Processor Unit Tests
====================================================

What:  Exercises every branch of the /process-sermon policy without HTTP.

What we test:
    ✅ Preflight short-circuits with CORS headers and no rate-limit slot
    ✅ Non-POST methods get 405
    ✅ Rate limiting: 429 with retryAfter once the window is used up
    ✅ Missing credential: 500 on every POST, LLM never called
    ✅ Input validation: required, length boundary, malformed bodies
    ✅ Fallback document on non-JSON model output
    ✅ Upstream fault mapping: 429 busy, 401 auth, generic 500 (+details in dev)
"""

import json

import pytest

from preachpoint.config import settings
from preachpoint.exceptions import LLMServiceError
from preachpoint.services.rate_limiter import RateLimiter
from preachpoint.services.sermon_processor import (
    CORS_HEADERS,
    SermonProcessor,
    resolve_client_id,
)
from preachpoint.services.sermon_service import FALLBACK_KEY_TAKEAWAYS, SermonService

from tests.fakes import FakeLLMService, VALID_ANALYSIS


def body(**fields) -> bytes:
    return json.dumps(fields).encode()


async def post(processor, payload: bytes, headers=None, peer="203.0.113.7"):
    return await processor.process("POST", headers or {}, payload, peer)


def processor_with(llm, **limiter_kwargs) -> SermonProcessor:
    return SermonProcessor(
        rate_limiter=RateLimiter(**limiter_kwargs),
        sermon_service=SermonService(llm_service=llm),
    )


class TestPreflightAndMethods:

    @pytest.mark.asyncio
    async def test_options_returns_empty_200_with_cors(self, processor):
        result = await processor.process("OPTIONS", {}, b"", "203.0.113.7")

        assert result.status_code == 200
        assert result.content is None
        assert result.headers["Access-Control-Allow-Origin"] == "*"
        assert result.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
        assert result.headers["Access-Control-Allow-Headers"] == "Content-Type"

    @pytest.mark.asyncio
    async def test_options_does_not_consume_rate_limit(self, fake_llm):
        processor = processor_with(fake_llm, max_requests=1)
        for _ in range(5):
            await processor.process("OPTIONS", {}, b"", "203.0.113.7")

        assert processor.rate_limiter.tracked_clients == 0
        result = await post(processor, body(transcription="Grace and peace"))
        assert result.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH", "TRACE", "PROPFIND"])
    async def test_other_methods_rejected(self, processor, fake_llm, method):
        result = await processor.process(method, {}, b"", "203.0.113.7")

        assert result.status_code == 405
        assert result.content == {"error": "Method not allowed"}
        assert result.headers["Access-Control-Allow-Origin"] == "*"
        assert processor.rate_limiter.tracked_clients == 0
        assert fake_llm.calls == []


class TestClientIdentification:

    def test_prefers_forwarded_header(self):
        assert resolve_client_id({"X-Forwarded-For": "198.51.100.1"}, "10.0.0.1") == "198.51.100.1"

    def test_forwarded_header_used_raw(self):
        headers = {"x-forwarded-for": "198.51.100.1, 10.0.0.2"}
        assert resolve_client_id(headers, "10.0.0.1") == "198.51.100.1, 10.0.0.2"

    def test_falls_back_to_peer_address(self):
        assert resolve_client_id({}, "10.0.0.1") == "10.0.0.1"

    def test_unknown_when_no_signal(self):
        assert resolve_client_id({}, None) == "unknown"


class TestRateLimiting:

    @pytest.mark.asyncio
    async def test_request_over_limit_is_rejected(self, processor, fake_llm):
        for _ in range(10):
            result = await post(processor, body(transcription="Grace and peace"))
            assert result.status_code == 200

        result = await post(processor, body(transcription="Grace and peace"))

        assert result.status_code == 429
        assert result.content == {
            "error": "Too many requests. Please wait a minute before trying again.",
            "retryAfter": 60,
        }
        assert result.headers["Retry-After"] == "60"
        assert result.headers["Access-Control-Allow-Origin"] == "*"
        assert len(fake_llm.calls) == 10

    @pytest.mark.asyncio
    async def test_admitted_again_after_window(self, processor, clock):
        for _ in range(11):
            await post(processor, body(transcription="x"))

        clock.advance(61)
        result = await post(processor, body(transcription="x"))

        assert result.status_code == 200
        assert processor.rate_limiter.state_for("203.0.113.7").count == 1

    @pytest.mark.asyncio
    async def test_invalid_requests_still_count(self, fake_llm):
        processor = processor_with(fake_llm, max_requests=1)
        await post(processor, body())
        result = await post(processor, body(transcription="x"))
        assert result.status_code == 429

    @pytest.mark.asyncio
    async def test_unidentified_clients_share_a_bucket(self, fake_llm):
        processor = processor_with(fake_llm, max_requests=1)
        first = await post(processor, body(transcription="x"), peer=None)
        second = await post(processor, body(transcription="x"), peer=None)
        assert first.status_code == 200
        assert second.status_code == 429


class TestConfiguration:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [body(transcription="Grace and peace"), body(), b"not json", body(transcription="x" * 20000)],
    )
    async def test_missing_credential_is_500_for_any_input(
        self, processor, fake_llm, monkeypatch, payload
    ):
        monkeypatch.setattr(settings, "openai_api_key", "")

        result = await post(processor, payload)

        assert result.status_code == 500
        assert result.content == {"error": "Server configuration error"}
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_gemini_provider_checks_gemini_credential(self, processor, fake_llm, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "gemini")
        monkeypatch.setattr(settings, "gemini_api_key", "")

        result = await post(processor, body(transcription="Grace and peace"))

        assert result.status_code == 500
        assert "GEMINI" not in json.dumps(result.content)
        assert fake_llm.calls == []


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [body(), body(transcription=""), body(transcription=None)])
    async def test_transcription_required(self, processor, fake_llm, payload):
        result = await post(processor, payload)

        assert result.status_code == 400
        assert result.content == {"error": "Transcription is required"}
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [b"", b"not json", b"[1, 2]"])
    async def test_non_object_body_treated_as_empty(self, processor, payload):
        result = await post(processor, payload)
        assert result.status_code == 400
        assert result.content == {"error": "Transcription is required"}

    @pytest.mark.asyncio
    async def test_non_string_transcription_rejected(self, processor, fake_llm):
        result = await post(processor, body(transcription=12345))

        assert result.status_code == 400
        assert result.content == {"error": "Invalid request body"}
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_exactly_max_length_accepted(self, processor):
        result = await post(processor, body(transcription="a" * 10000))
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_over_max_length_rejected_with_limit(self, processor, fake_llm):
        result = await post(processor, body(transcription="a" * 10001))

        assert result.status_code == 400
        assert result.content == {
            "error": "Transcription too long. Maximum 10000 characters allowed."
        }
        assert fake_llm.calls == []


class TestSuccess:

    @pytest.mark.asyncio
    async def test_returns_augmented_analysis(self, processor):
        result = await post(processor, body(transcription="Grace and peace"))

        assert result.status_code == 200
        for key, value in VALID_ANALYSIS.items():
            assert result.content[key] == value
        assert result.content["wordCount"] == 3
        assert result.content["bibleVersion"] == "NKJV"
        assert "processedAt" in result.content
        assert result.headers == CORS_HEADERS

    @pytest.mark.asyncio
    async def test_bible_version_echoed(self, processor, fake_llm):
        result = await post(processor, body(transcription="x", bibleVersion="ESV"))

        assert result.content["bibleVersion"] == "ESV"
        assert "use ESV translation" in fake_llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_null_bible_version_uses_default(self, processor):
        result = await post(processor, body(transcription="x", bibleVersion=None))
        assert result.content["bibleVersion"] == "NKJV"

    @pytest.mark.asyncio
    async def test_prose_reply_yields_fallback_document(self):
        raw = "I'm sorry, here is a plain summary instead. " * 30
        processor = processor_with(FakeLLMService(response=raw))

        result = await post(processor, body(transcription="Grace and peace"))

        assert result.status_code == 200
        assert result.content["summary"] == raw[:500]
        assert result.content["keyTakeaways"] == FALLBACK_KEY_TAKEAWAYS
        assert result.content["scriptureReferences"] == []
        assert len(result.content["discussionQuestions"]) == 5
        assert len(result.content["actionSteps"]) == 3
        assert result.content["wordCount"] == 3


class TestUpstreamFaults:

    @pytest.mark.asyncio
    async def test_upstream_429_maps_to_busy(self):
        processor = processor_with(
            FakeLLMService(error=LLMServiceError("Rate limit reached", status_code=429))
        )
        result = await post(processor, body(transcription="x"))

        assert result.status_code == 429
        assert result.content == {
            "error": "AI service is currently busy. Please try again in a few moments."
        }

    @pytest.mark.asyncio
    async def test_upstream_401_maps_to_auth_error_without_leaking(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")
        processor = processor_with(
            FakeLLMService(
                error=LLMServiceError(
                    "Incorrect API key provided: test-key-not-real", status_code=401
                )
            )
        )
        result = await post(processor, body(transcription="x"))

        assert result.status_code == 500
        assert result.content == {"error": "Server authentication error. Please contact support."}
        assert "test-key" not in json.dumps(result.content)

    @pytest.mark.asyncio
    async def test_other_upstream_fault_is_generic_500(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        processor = processor_with(
            FakeLLMService(error=LLMServiceError("upstream exploded", status_code=500))
        )
        result = await post(processor, body(transcription="x"))

        assert result.status_code == 500
        assert result.content == {"error": "Failed to process sermon. Please try again later."}

    @pytest.mark.asyncio
    async def test_development_includes_details(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")
        processor = processor_with(
            FakeLLMService(error=LLMServiceError("connection reset", status_code=None))
        )
        result = await post(processor, body(transcription="x"))

        assert result.status_code == 500
        assert result.content["details"] == "connection reset"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        processor = processor_with(FakeLLMService(error=RuntimeError("boom")))

        result = await post(processor, body(transcription="x"))

        assert result.status_code == 500
        assert result.content == {"error": "Failed to process sermon. Please try again later."}
        assert result.headers["Access-Control-Allow-Origin"] == "*"
