"""Gemini generateContent request and response dataclasses.

WHY: The Gemini REST API returns deeply nested JSON (candidates →
content → parts → text). The converter only needs the generated text
and the token usage, but it must notice when the response is not shaped
as expected instead of failing later with a KeyError.

HOW: build_generate_content_request() produces the request body.
GenerateContentResponse.from_dict() validates the raw response against
GENERATE_CONTENT_RESPONSE_SCHEMA with jsonschema and extracts the text
of the first candidate plus usageMetadata.

RULES:
- The prompt is sent as one user turn; each prompt part is one text part
- Only the first candidate is used; its text parts are concatenated
- usageMetadata is optional; CompletionUsage is None when absent
- Schema violations raise jsonschema.ValidationError (wrapped by the client)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import jsonschema

GENERATE_CONTENT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "candidates": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {
                        "type": "object",
                        "properties": {
                            "role": {"type": "string"},
                            "parts": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "properties": {"text": {"type": "string"}},
                                },
                            },
                        },
                    },
                    "finishReason": {"type": "string"},
                },
            },
        },
        "usageMetadata": {
            "type": "object",
            "properties": {
                "promptTokenCount": {"type": "integer"},
                "candidatesTokenCount": {"type": "integer"},
                "totalTokenCount": {"type": "integer"},
            },
        },
        "promptFeedback": {
            "type": "object",
            "properties": {"blockReason": {"type": "string"}},
        },
    },
}


def build_generate_content_request(prompt_parts: Sequence[str]) -> Dict[str, Any]:
    """Build the generateContent request body for ``prompt_parts``."""
    return {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": part} for part in prompt_parts],
            }
        ]
    }


@dataclass
class CompletionUsage:
    """Token usage reported for one completion call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompletionUsage:
        prompt = data.get("promptTokenCount", 0)
        completion = data.get("candidatesTokenCount", 0)
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=data.get("totalTokenCount", prompt + completion),
        )

    def __add__(self, other: CompletionUsage) -> CompletionUsage:
        return CompletionUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass
class CompletionResult:
    """Generated text plus optional usage, as returned by a completion service."""

    text: str
    usage: Optional[CompletionUsage] = None


@dataclass
class GenerateContentResponse:
    """Parsed generateContent response.

    RULES:
    - text is "" when there is no candidate or no text part
    - block_reason is set when Gemini refused the prompt
    """

    text: str
    finish_reason: Optional[str] = None
    block_reason: Optional[str] = None
    usage: Optional[CompletionUsage] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GenerateContentResponse:
        jsonschema.validate(instance=data, schema=GENERATE_CONTENT_RESPONSE_SCHEMA)

        candidates: List[Dict[str, Any]] = data.get("candidates") or []
        text = ""
        finish_reason = None
        if candidates:
            first = candidates[0]
            parts = (first.get("content") or {}).get("parts") or []
            text = "".join(part.get("text", "") for part in parts)
            finish_reason = first.get("finishReason")

        usage_data = data.get("usageMetadata")
        return cls(
            text=text,
            finish_reason=finish_reason,
            block_reason=(data.get("promptFeedback") or {}).get("blockReason"),
            usage=CompletionUsage.from_dict(usage_data) if usage_data else None,
        )

    def to_result(self) -> CompletionResult:
        return CompletionResult(text=self.text, usage=self.usage)
