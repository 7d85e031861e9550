"""Async HTTP client for the Gemini generateContent API.

WHY: Every chunk of markdown is converted to SSML by a Gemini call.
This module encapsulates the HTTP details behind a single client class
so the converter, CLI, server, and tests only deal with prompt parts in
and generated text out.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. The GeminiClient is
an async context manager. Enter it to get an authenticated client, exit
to close the connection pool. generate() posts the prompt parts to
/models/{model}:generateContent and parses the response with
GenerateContentResponse (schema-validated with jsonschema).

RULES:
- Always use the async context manager (async with GeminiClient(...) as client:)
- Authentication is the x-goog-api-key header, key from config
- Non-2xx responses, malformed bodies, and blocked/empty answers raise
  GeminiAPIError; every GeminiAPIError message starts with "Gemini API error"
- No retries here; a failed call fails the conversion
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

import httpx
import jsonschema

from ssml_converter.api.models import (
    CompletionResult,
    GenerateContentResponse,
    build_generate_content_request,
)
from ssml_converter.config import COMPLETION_ERROR_PREFIX, GEMINI_BASE_URL, GEMINI_MODEL, load_api_key
from ssml_converter.errors import SSMLConverterError

_REQUEST_TIMEOUT_S = 300.0
_CONNECT_TIMEOUT_S = 30.0


class GeminiAPIError(SSMLConverterError):
    """Raised when the Gemini API call fails or returns no usable text.

    RULES:
    - Always include status_code and message
    - status_code is the HTTP status (200 for well-formed but unusable answers)
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{COMPLETION_ERROR_PREFIX} {status_code}: {message}")


class CompletionService(Protocol):
    """Anything that turns prompt parts into generated text."""

    async def generate(self, prompt_parts: Sequence[str]) -> CompletionResult:
        ...


class GeminiClient:
    """Async client for the Gemini generateContent endpoint.

    RULES:
    - Use as: async with GeminiClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url / model default to GEMINI_BASE_URL / GEMINI_MODEL from config
    - transport is only meant for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or GEMINI_BASE_URL).rstrip("/")
        self.model = model or GEMINI_MODEL
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> GeminiClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"x-goog-api-key": self._api_key},
            timeout=httpx.Timeout(_REQUEST_TIMEOUT_S, connect=_CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "GeminiClient must be used as an async context manager: "
                "async with GeminiClient() as client: ..."
            )
        return self._client

    async def generate(self, prompt_parts: Sequence[str]) -> CompletionResult:
        """Generate text for ``prompt_parts`` (instructions first, then content).

        Returns:
            CompletionResult with the generated text and token usage.

        Raises:
            GeminiAPIError: On non-2xx responses, malformed bodies, or when
                the answer contains no text.
        """
        client = self._ensure_client()

        resp = await client.post(
            f"/models/{self.model}:generateContent",
            json=build_generate_content_request(prompt_parts),
        )

        if resp.status_code != 200:
            raise GeminiAPIError(resp.status_code, resp.text)

        try:
            parsed = GenerateContentResponse.from_dict(resp.json())
        except ValueError as exc:
            raise GeminiAPIError(resp.status_code, f"Response is not JSON: {exc}") from exc
        except jsonschema.ValidationError as exc:
            raise GeminiAPIError(
                resp.status_code, f"Unexpected response shape: {exc.message}"
            ) from exc

        if parsed.block_reason:
            raise GeminiAPIError(resp.status_code, f"Prompt blocked: {parsed.block_reason}")
        if not parsed.text:
            raise GeminiAPIError(
                resp.status_code,
                f"Empty completion (finish reason: {parsed.finish_reason or 'unknown'})",
            )

        return parsed.to_result()
