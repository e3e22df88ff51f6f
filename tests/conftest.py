"""
Shared fixtures: fake Gemini models and in-memory components.

No test talks to the real Gemini API.
"""

from types import SimpleNamespace

import pytest

from visionboard.audit import AuditLogger
from visionboard.config import ApiKeyResolver


def text_response(text):
    return SimpleNamespace(
        text=text,
        prompt_feedback=SimpleNamespace(block_reason=None),
        candidates=[SimpleNamespace(finish_reason="STOP", content=SimpleNamespace(parts=[]))],
    )


def image_response(data, mime_type="image/png", finish_reason="STOP", block_reason=None):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
        candidates=[
            SimpleNamespace(
                finish_reason=finish_reason,
                content=SimpleNamespace(parts=[SimpleNamespace(inline_data=None), part]),
            )
        ],
    )


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, gemini, model_name):
        self._gemini = gemini
        self.model_name = model_name

    async def generate_content_async(self, prompt, **kwargs):
        self._gemini.calls.append((self.model_name, prompt))
        result = self._gemini.responses.get(self.model_name)
        if isinstance(result, Exception):
            raise result
        return result


class FakeGemini:
    """
    Model factory with canned responses per model name.

    A response that is an Exception instance is raised instead.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.factory_kwargs = []

    def __call__(self, **kwargs):
        self.factory_kwargs.append(kwargs)
        return FakeModel(self, kwargs["model_name"])

    def prompts_for(self, model_name):
        return [prompt for name, prompt in self.calls if name == model_name]


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def online_resolver():
    return ApiKeyResolver(sources=[lambda: "test-key-1234"])


@pytest.fixture
def offline_resolver():
    return ApiKeyResolver(sources=[lambda: None])


@pytest.fixture
def audit_logger():
    return AuditLogger()
