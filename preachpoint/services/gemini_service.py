"""
Preach Point Backend — Google Gemini Service Implementation
=============================================================

What:  Concrete LLM service using Google Gemini for sermon summarization.
Why:   Alternative provider with a free tier; selected with LLM_PROVIDER=gemini.
How:   Sends the sermon prompt to a GenerativeModel configured with the system
       instruction and a JSON response MIME type, with tenacity retries on
       transport failures.
Who:   Selected by create_llm_service() when LLM_PROVIDER=gemini.

Error Translation:
    google.api_core GoogleAPICallError carries an HTTP status in `.code`:
        ResourceExhausted (429), Unauthenticated (401), PermissionDenied (403),
        InvalidArgument (400), ...
    These become LLMServiceError(status_code=code) and are not retried.
    ServiceUnavailable / DeadlineExceeded / ConnectionError are transient and
    retried before being reported with their status (or None).
"""

import logging
import time
import uuid
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
)

from preachpoint.config import settings
from preachpoint.exceptions import LLMServiceError
from preachpoint.services.llm_base import LLMService

logger = logging.getLogger(__name__)

# Transport-level failures worth retrying
_TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
)


class GeminiService(LLMService):
    """
    Google Gemini implementation of LLMService.

    The model object is built per system instruction and cached; Gemini binds
    the system instruction at model construction rather than per call.
    """

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        key = api_key or settings.gemini_api_key
        if key:
            # The SDK uses module-level state for auth
            genai.configure(api_key=key)
        self.model_name = model or settings.gemini_model
        self._models = {}

        logger.info("GeminiService initialized with model=%s", self.model_name)

    def _model_for(self, system_prompt: str) -> "genai.GenerativeModel":
        model = self._models.get(system_prompt)
        if model is None:
            model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)
            self._models[system_prompt] = model
        return model

    async def generate(self, prompt: str, system_prompt: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        logger.info(
            "[%s] Starting Gemini completion (model=%s, prompt=%d chars)",
            request_id,
            self.model_name,
            len(prompt),
        )

        try:
            return await self._call_gemini_with_retry(prompt, system_prompt, request_id)
        except google_exceptions.GoogleAPICallError as e:
            status_code = int(e.code) if e.code is not None else None
            logger.error(
                "[%s] Gemini returned status %s: %s", request_id, status_code, e.message
            )
            raise LLMServiceError(
                message=str(e.message),
                status_code=status_code,
                context={"request_id": request_id, "provider": self.name},
            ) from e
        except Exception as e:
            logger.error("[%s] Unexpected Gemini error: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message=str(e),
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(
        self, prompt: str, system_prompt: str, request_id: str
    ) -> str:
        start_time = time.time()

        response = await self._model_for(system_prompt).generate_content_async(
            prompt,
            generation_config=genai.GenerationConfig(
                temperature=settings.llm_temperature,
                max_output_tokens=settings.llm_max_tokens,
                response_mime_type="application/json",
            ),
        )

        duration_ms = (time.time() - start_time) * 1000
        text = response.text or ""

        logger.info(
            "[%s] Gemini completion finished in %.0fms, returned %d chars",
            request_id,
            duration_ms,
            len(text),
        )
        return text
