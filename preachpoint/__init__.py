"""
Preach Point Backend — Application Package Initializer
=======================================================

What: Marks the `preachpoint` directory as a Python package.
Why:  Enables module imports like `from preachpoint.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend follows a thin layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   SermonProcessor (Request Policy)  │  ← CORS, method gate, rate limit,
    │                                     │    validation, error mapping
    ├─────────────────────────────────────┤
    │     SermonService (Business Logic)  │  ← Prompting, parse/fallback
    ├─────────────────────────────────────┤
    │        LLM Services (Upstream)      │  ← OpenAI / Gemini adapters
    └─────────────────────────────────────┘

    There is no persistence layer. All state (rate-limit windows) lives in
    process memory and is lost on restart.
"""

__version__ = "1.0.0"
