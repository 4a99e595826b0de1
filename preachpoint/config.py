"""
Preach Point Backend — Application Configuration
==================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Credentials are read at request time (not cached by consumers) so that a
missing key surfaces as a 500 on every processing request rather than a
crash at import.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development, except the LLM
    credential, which has no usable default and must be supplied.
    """

    # ── LLM Provider ──────────────────────────────────────────────────────
    # What: Which upstream summarization provider to call
    # Valid: "openai" (default, chat completions with JSON mode) or "gemini"
    llm_provider: str = Field(default="openai")

    openai_api_key: str = Field(
        default="",
        description="OpenAI API key used for sermon summarization"
    )
    openai_model: str = Field(default="gpt-4-turbo-preview")

    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key (only used when llm_provider=gemini)"
    )
    gemini_model: str = Field(default="gemini-1.5-flash")

    # What: Sampling parameters sent with every completion request
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=2000, ge=1, le=32000)

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Normalizes and checks the provider name."""
        valid = {"openai", "gemini"}
        lower = v.strip().lower()
        if lower not in valid:
            raise ValueError(f"Invalid llm_provider '{v}'. Must be one of: {valid}")
        return lower

    # ── Request Limits ────────────────────────────────────────────────────
    # What: Per-client fixed window rate limit for /process-sermon
    # Why: Each admitted request costs one paid LLM call
    max_requests_per_minute: int = Field(default=10, ge=0)
    rate_limit_window: int = Field(default=60, ge=1)  # seconds
    # What: Upper bound on distinct clients tracked in memory
    rate_limit_max_clients: int = Field(default=1000, ge=1)

    # What: Longest transcription accepted, in characters
    max_transcription_length: int = Field(default=10_000, ge=1)

    # What: Reject parsed AI output that doesn't match the SermonAnalysis shape
    # Default off: any JSON object the model returns is passed through as-is
    strict_analysis_validation: bool = Field(default=False)

    # ── Retry Configuration ───────────────────────────────────────────────
    # What: Tenacity retry settings for transport failures on the LLM call
    # Status errors (401, 429, ...) are never retried
    retry_max_attempts: int = Field(default=2, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=0, le=30)
    retry_max_wait: int = Field(default=10, ge=1, le=120)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # What: Deployment environment; "development" echoes fault details in 500s
    environment: str = Field(default="production")

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # OPENAI_API_KEY and openai_api_key both work
    }

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def llm_api_key(self) -> str:
        """The credential belonging to the active provider."""
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key

    @property
    def llm_api_key_name(self) -> str:
        """Environment variable name of the active credential (for server logs only)."""
        return "GEMINI_API_KEY" if self.llm_provider == "gemini" else "OPENAI_API_KEY"

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        Why:   Surfaces a missing credential in the logs at boot instead of
               only on the first processing request.
        """
        errors = []
        if not self.llm_api_key:
            errors.append(
                f"{self.llm_api_key_name} is not set. "
                f"Every /process-sermon request will fail with a configuration error."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
