"""
Preach Point Backend — Sermon Service (Business Logic)
========================================================

What:  Turns a sermon transcription into a structured study guide.
Why:   Keeps prompting and output interpretation independent of HTTP concerns.
How:   Builds one instruction prompt, calls the configured LLMService, parses
       the reply as JSON, falls back to a fixed document when parsing fails,
       and augments the result with processing metadata.
Who:   Called by SermonProcessor after rate limiting and validation.

Flow:
    ┌────────────┐    ┌─────────────┐    ┌──────────────┐    ┌───────────┐
    │  Build     │───▶│  LLM call   │───▶│  Parse JSON  │───▶│  Augment  │
    │  prompt    │    │ (LLMService)│    │  or fallback │    │  metadata │
    └────────────┘    └─────────────┘    └──────────────┘    └───────────┘

Fallback Policy:
    If the model returns anything that isn't a JSON object, the caller still
    gets a usable document: the first 500 characters of the raw text as the
    summary plus canned takeaways, questions, action steps and prayer. Parse
    failures are logged, never surfaced.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from preachpoint.config import settings
from preachpoint.exceptions import ConfigurationError
from preachpoint.schemas.sermon import SermonAnalysis
from preachpoint.services.llm_base import LLMService
from preachpoint.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes church sermons and creates "
    "study materials. Always format responses as valid JSON."
)

PROMPT_TEMPLATE = """Please analyze this church sermon transcription and provide:
1. A comprehensive summary (2-3 paragraphs)
2. 5 key takeaways (as an array of strings)
3. 5 small group discussion questions (as an array of strings)
4. Detailed sermon notes with scripture references (use {bible_version} translation when referencing)
5. Detected scripture references (as an array of objects with {{reference, text}} format)
6. 3 action steps for the week (as an array of strings)
7. A prayer based on the sermon message

Transcription: {transcription}

Return as JSON with keys: summary, keyTakeaways, discussionQuestions, sermonNotes, scriptureReferences, actionSteps, prayer"""

FALLBACK_SUMMARY_LENGTH = 500

FALLBACK_KEY_TAKEAWAYS = [
    "Key point from the sermon",
    "Another important insight",
    "Spiritual application",
    "Biblical truth discussed",
    "Call to action",
]

FALLBACK_DISCUSSION_QUESTIONS = [
    "How does this message apply to your life?",
    "What challenged you the most?",
    "How can we support each other in this?",
    "What scripture stood out to you?",
    "What will you do differently this week?",
]

FALLBACK_SERMON_NOTES = "Sermon notes will appear here"

FALLBACK_ACTION_STEPS = [
    "Pray about the message daily",
    "Read the referenced scriptures",
    "Apply one principle this week",
]

FALLBACK_PRAYER = "Lord, help us apply the truths from this message to our lives. Amen."


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens in `text`."""
    return len(text.split())


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be rendered back out.
    raise ValueError(f"Non-finite number {name} in model output")


def build_fallback_analysis(raw_text: str) -> Dict[str, Any]:
    """The fixed study guide used when the model output can't be parsed."""
    analysis = SermonAnalysis(
        summary=raw_text[:FALLBACK_SUMMARY_LENGTH],
        key_takeaways=list(FALLBACK_KEY_TAKEAWAYS),
        discussion_questions=list(FALLBACK_DISCUSSION_QUESTIONS),
        sermon_notes=FALLBACK_SERMON_NOTES,
        scripture_references=[],
        action_steps=list(FALLBACK_ACTION_STEPS),
        prayer=FALLBACK_PRAYER,
    )
    return analysis.model_dump(by_alias=True)


def create_llm_service(provider: str) -> LLMService:
    """
    Instantiate the LLMService for a provider name.

    Raises:
        ConfigurationError: Unknown provider.
    """
    if provider == "openai":
        from preachpoint.services.openai_service import OpenAIService
        return OpenAIService()
    if provider == "gemini":
        from preachpoint.services.gemini_service import GeminiService
        return GeminiService()
    raise ConfigurationError(context={"llm_provider": provider})


class SermonService:
    """
    Business logic for sermon analysis.

    The LLMService is resolved lazily from settings on first use, so that a
    processor can be constructed (and reject unconfigured requests) without
    ever touching a provider SDK.
    """

    def __init__(self, llm_service: Optional[LLMService] = None):
        self._llm_service = llm_service

    @property
    def llm_service(self) -> LLMService:
        if self._llm_service is None:
            self._llm_service = create_llm_service(settings.llm_provider)
        return self._llm_service

    def build_prompt(self, transcription: str, bible_version: str) -> str:
        return PROMPT_TEMPLATE.format(
            bible_version=bible_version,
            transcription=transcription,
        )

    def interpret(self, raw_text: str) -> Dict[str, Any]:
        """
        Parse model output into a study-guide dict, or fall back.

        Any JSON object is accepted as-is unless strict validation is enabled,
        in which case it must also match SermonAnalysis. Arrays, scalars,
        non-JSON prose and NaN/Infinity tokens always fall back.
        """
        try:
            parsed = json.loads(raw_text, parse_constant=_reject_constant)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning("Failed to parse AI response as JSON, using fallback: %s", str(e))
            return build_fallback_analysis(raw_text or "")

        if not isinstance(parsed, dict):
            logger.warning(
                "AI response was JSON %s, not an object; using fallback",
                type(parsed).__name__,
            )
            return build_fallback_analysis(raw_text)

        if settings.strict_analysis_validation:
            try:
                return SermonAnalysis.model_validate(parsed).model_dump(by_alias=True)
            except PydanticValidationError as e:
                logger.warning(
                    "AI response did not match the study guide shape (%d errors); using fallback",
                    e.error_count(),
                )
                return build_fallback_analysis(raw_text)

        return parsed

    async def analyze(self, transcription: str, bible_version: str) -> Dict[str, Any]:
        """
        Produce the augmented study guide for one transcription.

        Returns:
            The analysis dict plus `processedAt`, `bibleVersion` and `wordCount`.

        Raises:
            LLMServiceError: The upstream call failed.
            ConfigurationError: The configured provider is unknown.
        """
        prompt = self.build_prompt(transcription, bible_version)
        raw_text = await self.llm_service.generate(prompt, SYSTEM_PROMPT)

        analysis = self.interpret(raw_text)

        return {
            **analysis,
            "processedAt": utc_now_iso(),
            "bibleVersion": bible_version,
            "wordCount": count_words(transcription),
        }
