"""Shared test fixtures for the ssml_converter test suite.

WHY: Converter, CLI, server, and tracing tests all need a completion
service that answers without touching the Gemini API, and several of
them need to script per-chunk answers, delays, or failures.

HOW: FakeCompletionService implements the CompletionService protocol.
Its answer for a call is derived from the last prompt part (the chunk
text) through a user-supplied function. It records every call and the
order in which calls finished, and can also act as the async context
manager GeminiClient is used as.

RULES:
- The Gemini API is never called from unit tests
- Default answer wraps the chunk in <speak><p>...</p></speak>
- calls records prompt parts in call order; completed records chunk
  texts in completion order
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Sequence

import pytest

from ssml_converter.api.models import CompletionResult, CompletionUsage


def _default_answer(text: str) -> str:
    return f"<speak><p>{text}</p></speak>"


class FakeCompletionService:
    """Scripted stand-in for GeminiClient."""

    def __init__(
        self,
        respond: Callable[[str], str] = _default_answer,
        delay: Optional[Callable[[str], float]] = None,
        error: Optional[BaseException] = None,
        fail_when: Optional[Callable[[str], bool]] = None,
        usage: Optional[CompletionUsage] = None,
        model: str = "fake-gemini",
    ) -> None:
        self.respond = respond
        self.delay = delay
        self.error = error
        self.fail_when = fail_when
        self.usage = usage
        self.model = model
        self.calls: List[List[str]] = []
        self.completed: List[str] = []
        self.active = 0
        self.max_active = 0

    async def __aenter__(self) -> FakeCompletionService:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None

    async def generate(self, prompt_parts: Sequence[str]) -> CompletionResult:
        self.calls.append(list(prompt_parts))
        text = prompt_parts[-1]

        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay is not None:
                await asyncio.sleep(self.delay(text))
            else:
                await asyncio.sleep(0)
            if self.error is not None and (self.fail_when is None or self.fail_when(text)):
                raise self.error
        finally:
            self.active -= 1

        self.completed.append(text)
        return CompletionResult(text=self.respond(text), usage=self.usage)


@pytest.fixture
def fake_service():
    """A FakeCompletionService with the default answer."""
    return FakeCompletionService()


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

THREE_PARAGRAPHS = (
    "First paragraph text."
    "\n\n"
    "Second paragraph text."
    "\n\n"
    "Third paragraph text."
)
"""68 characters; three chunks at max_chunk_size=30."""


@pytest.fixture
def three_paragraphs():
    return THREE_PARAGRAPHS


@pytest.fixture
def make_service():
    """Factory for FakeCompletionService with scripted behaviour."""
    return FakeCompletionService
