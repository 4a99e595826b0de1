"""
Preach Point Backend — OpenAI Service Implementation
======================================================

What:  Concrete LLM service using OpenAI chat completions in JSON mode.
Why:   Default provider for sermon summarization; JSON mode makes a parseable
       study-guide object the common case.
How:   Sends a system instruction plus the sermon prompt to
       chat.completions.create, with tenacity retries on transport failures
       only, and translates SDK errors into LLMServiceError.
Who:   Selected by create_llm_service() when LLM_PROVIDER=openai.

Error Translation:
    openai.APIStatusError (401, 429, 500, ...) → LLMServiceError(status_code)
        Never retried: a 401 won't fix itself, and a 429 is reported to the
        caller as "service busy" rather than absorbed here.
    openai.APIConnectionError / APITimeoutError → retried with backoff,
        then LLMServiceError(status_code=None)
"""

import logging
import time
import uuid
from typing import Optional

import openai
from openai import AsyncOpenAI
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


class OpenAIService(LLMService):
    """
    OpenAI chat completions implementation.

    The AsyncOpenAI client is created lazily on first use so that a missing
    key never breaks import; SermonProcessor rejects requests before this
    point when the key is empty.
    """

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self.model = model or settings.openai_model
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            # Retries are handled by tenacity below, not the SDK
            self._client = AsyncOpenAI(
                api_key=self._api_key or settings.openai_api_key,
                max_retries=0,
            )
            logger.info("OpenAIService client initialized with model=%s", self.model)
        return self._client

    async def generate(self, prompt: str, system_prompt: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        logger.info(
            "[%s] Starting OpenAI completion (model=%s, prompt=%d chars)",
            request_id,
            self.model,
            len(prompt),
        )

        try:
            return await self._call_openai_with_retry(prompt, system_prompt, request_id)
        except openai.APIStatusError as e:
            logger.error(
                "[%s] OpenAI returned status %d: %s",
                request_id,
                e.status_code,
                e.message,
            )
            raise LLMServiceError(
                message=e.message,
                status_code=e.status_code,
                context={"request_id": request_id, "provider": self.name},
            ) from e
        except openai.APIConnectionError as e:
            logger.error("[%s] OpenAI unreachable after retries: %s", request_id, str(e))
            raise LLMServiceError(
                message=f"OpenAI connection failed: {e}",
                context={
                    "request_id": request_id,
                    "provider": self.name,
                    "attempts": settings.retry_max_attempts,
                },
            ) from e
        except openai.OpenAIError as e:
            logger.error("[%s] Unexpected OpenAI error: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message=str(e),
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

    @retry(
        retry=retry_if_exception_type(openai.APIConnectionError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_openai_with_retry(
        self, prompt: str, system_prompt: str, request_id: str
    ) -> str:
        start_time = time.time()

        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            response_format={"type": "json_object"},
        )

        duration_ms = (time.time() - start_time) * 1000
        content = completion.choices[0].message.content or ""

        logger.info(
            "[%s] OpenAI completion finished in %.0fms, returned %d chars",
            request_id,
            duration_ms,
            len(content),
        )
        return content
