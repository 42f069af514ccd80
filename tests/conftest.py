"""Pytest configuration and fixtures for memo-triage tests."""

import os
from typing import List

import pytest

# Set environment variables before any imports that might use them
os.environ["ENVIRONMENT"] = "development"
os.environ["GROQ_API_KEY"] = "test-groq-key"
os.environ.pop("LLM_MODEL_NAME", None)

import memo_triage.config as config_module
from memo_triage.config import Settings
from memo_triage.utils.retry import RetryPolicy


@pytest.fixture(autouse=True)
def mock_settings():
    """Fresh settings for every test so environment changes never leak between tests."""
    settings = Settings()
    config_module._settings = settings
    yield settings
    config_module._settings = None


class RecordingSleep:
    """Async sleep replacement that records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fast_retry(recording_sleep):
    """Retry policy with the default schedule that never actually waits."""
    return RetryPolicy(max_attempts=3, initial_delay=1.0, max_delay=30.0, sleep=recording_sleep)


class FakeLLMClient:
    """LLM client double returning scripted responses (or raising scripted errors) in order."""

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []

    async def complete(self, messages, temperature=None, json_mode=False):
        self.calls.append({"messages": messages, "json_mode": json_mode})
        if self.handler is not None:
            result = self.handler(messages)
        else:
            result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_llm_factory():
    return FakeLLMClient
