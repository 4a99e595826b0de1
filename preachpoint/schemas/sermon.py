"""
Preach Point Backend — Pydantic Request/Response Schemas
=========================================================

What:  Pydantic models defining the API contract with the mobile client.
Why:   One place for field names, defaults and the study-guide shape.
How:   Python attributes are snake_case; the wire format is camelCase via
       `alias_generator=to_camel`. Dump with `by_alias=True`.

Note on SermonAnalysis:
    The endpoint passes parsed model output through without checking it
    against this schema unless STRICT_ANALYSIS_VALIDATION is enabled. The
    model is always used to build the fallback document.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BIBLE_VERSION = "NKJV"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SermonRequest(_CamelModel):
    """
    What:  Body of POST /process-sermon.

    `transcription` is Optional here so that a missing field produces our own
    "Transcription is required" error instead of a pydantic 422.
    A null `bibleVersion` is treated the same as an absent one.
    """
    transcription: Optional[str] = Field(default=None, description="Sermon transcription text")
    bible_version: Optional[str] = Field(
        default=DEFAULT_BIBLE_VERSION,
        description="Translation used when quoting scripture (e.g. NKJV, ESV)",
    )

    @property
    def resolved_bible_version(self) -> str:
        return self.bible_version or DEFAULT_BIBLE_VERSION


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ScriptureReference(_CamelModel):
    reference: str = Field(description="Book, chapter and verse, e.g. 'John 3:16'")
    text: str = Field(description="Verse text in the requested translation")


class SermonAnalysis(_CamelModel):
    """
    What:  The structured study guide produced from one sermon.

    Intended list lengths: 5 key takeaways, 5 discussion questions,
    3 action steps. Not enforced; the model's output is trusted.
    """
    summary: str
    key_takeaways: List[str]
    discussion_questions: List[str]
    sermon_notes: str
    scripture_references: List[ScriptureReference]
    action_steps: List[str]
    prayer: str


class HealthResponse(BaseModel):
    """Static liveness document for GET /health."""
    status: str = Field(description="Always 'healthy' while the process serves requests")
    service: str = Field(description="Service name")
    timestamp: str = Field(description="Current time (UTC ISO 8601)")
