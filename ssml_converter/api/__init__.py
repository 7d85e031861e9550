"""Gemini API client package: async HTTP interface to the completion service.

WHY: The converter needs one operation from Gemini: turn an instruction
prompt plus a chunk of markdown into SSML text. This package keeps all
HTTP and response-shape knowledge out of the core pipeline.

HOW: GeminiClient wraps httpx.AsyncClient; models.py holds the request
builder and the schema-validated response dataclasses.

RULES:
- All HTTP calls go through GeminiClient (no direct httpx usage elsewhere)
- The core only depends on CompletionService.generate() and CompletionResult
"""

from ssml_converter.api.client import CompletionService, GeminiAPIError, GeminiClient
from ssml_converter.api.models import CompletionResult, CompletionUsage

__all__ = [
    "CompletionResult",
    "CompletionService",
    "CompletionUsage",
    "GeminiAPIError",
    "GeminiClient",
]
