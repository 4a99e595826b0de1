"""
Preach Point Backend — Abstract LLM Service Interface
=======================================================

What:  Abstract base class defining the contract for AI summarization services.
Why:   Lets the provider (OpenAI, Gemini) be selected from configuration
       without changing SermonService. This is the Strategy design pattern.
How:   Concrete implementations inherit from LLMService and implement generate().
Who:   Called by SermonService for every admitted, validated request.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Abstract interface for single-turn, JSON-mode text generation.

    Contract:
        - generate() sends one system instruction plus one user prompt and
          returns the model's raw text (expected, not guaranteed, to be JSON)
        - Implementations handle their own transport retries
        - All provider-specific errors are wrapped in LLMServiceError carrying
          the upstream HTTP status when one exists
        - Temperature, output token cap and JSON mode come from settings

    Implementations:
        - OpenAIService: chat.completions with response_format=json_object
        - GeminiService: generate_content with response_mime_type=application/json
    """

    #: Short provider name used in logs and by create_llm_service()
    name: str = "llm"

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: str) -> str:
        """
        Run one completion and return the raw response text.

        Args:
            prompt:        The user-turn instruction, transcription embedded.
            system_prompt: The fixed system instruction.

        Returns:
            str: The model output. Empty string if the provider returned no
                 content; never None.

        Raises:
            LLMServiceError: The provider returned an error status, or the
                transport failed after all retries. `status_code` carries the
                upstream HTTP status (None for transport failures).
        """
        ...
