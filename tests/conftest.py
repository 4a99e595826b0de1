"""
Preach Point Backend — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides a fake LLM, deterministic clocks and an HTTP client so no
       test touches a real provider or waits on wall-clock windows.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_llm: In-memory LLMService recording every call
    ├── clock: Manually advanced time source for RateLimiter
    ├── processor: SermonProcessor wired to fake_llm and clock
    └── test_client: HTTPX AsyncClient against the app, using `processor`
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["OPENAI_API_KEY"] = "test-key-not-real"
os.environ["LLM_PROVIDER"] = "openai"
os.environ["ENVIRONMENT"] = "production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from preachpoint.services.rate_limiter import RateLimiter
from preachpoint.services.sermon_processor import SermonProcessor
from preachpoint.services.sermon_service import SermonService

from tests.fakes import FakeClock, FakeLLMService


@pytest.fixture
def fake_llm():
    return FakeLLMService()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def processor(fake_llm, clock):
    """SermonProcessor with default limits, the fake LLM and the fake clock."""
    limiter = RateLimiter(max_requests=10, window_seconds=60, max_clients=1000, clock=clock)
    return SermonProcessor(
        rate_limiter=limiter,
        sermon_service=SermonService(llm_service=fake_llm),
    )


@pytest_asyncio.fixture
async def test_client(processor, monkeypatch):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    The route's module-level processor is swapped for the `processor` fixture
    so rate-limit state never leaks between tests.
    """
    monkeypatch.setattr("preachpoint.routes.sermon.sermon_processor", processor)

    from preachpoint.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
