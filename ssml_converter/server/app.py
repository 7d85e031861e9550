"""FastAPI application exposing the converter over HTTP.

WHY: Other services (the audio generation worker, curl, automation
tools) need to convert markdown without shelling out to the CLI.
FastAPI provides request validation and automatic OpenAPI docs.

HOW: POST /ssml accepts JSON with the markdown, an optional language
hint, and tracing identity fields, runs the converter, and returns the
SSML. The converter is built per request by the get_converter
dependency, which owns the Gemini client's connection pool.

RULES:
- Error responses use the ErrorResponse schema
- Missing Gemini configuration → 503; completion failure → 502
- Tests replace get_converter through app.dependency_overrides
"""

from __future__ import annotations

import logging
from typing import Annotated, AsyncIterator

from fastapi import Depends, FastAPI, HTTPException

from ssml_converter import __version__
from ssml_converter.api.client import GeminiClient
from ssml_converter.config import LOG_LEVEL, MAX_CONCURRENCY, TRACING_ENABLED
from ssml_converter.core.converter import SSMLConverter
from ssml_converter.core.ir import TraceIdentity
from ssml_converter.errors import CompletionError
from ssml_converter.server.models import (
    ErrorResponse,
    HealthResponse,
    SSMLRequest,
    SSMLResponse,
)
from ssml_converter.tracing.harness import Tracer, build_harness

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SSML Converter API",
    description=(
        "Convert markdown documents to SSML (Speech Synthesis Markup Language) "
        "using Gemini. Long documents are chunked, converted, repaired, and "
        "reassembled into a single <speak> document."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


async def get_converter() -> AsyncIterator[SSMLConverter]:
    """Yield a converter backed by a fresh Gemini client."""
    try:
        client = GeminiClient()
    except ValueError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    async with client:
        yield SSMLConverter(
            client,
            harness=build_harness(MAX_CONCURRENCY, Tracer(enabled=TRACING_ENABLED)),
        )


# ---------------------------------------------------------------------------
# Endpoints: SSML
# ---------------------------------------------------------------------------


@app.post(
    "/ssml",
    response_model=SSMLResponse,
    tags=["ssml"],
    summary="Convert markdown to SSML",
    description=(
        "Convert the given markdown to a single SSML document. The language "
        "hint, when given, is passed to the model verbatim; the content is "
        "never translated."
    ),
    responses={
        502: {"model": ErrorResponse, "description": "Gemini call failed"},
        503: {"model": ErrorResponse, "description": "Gemini API key not configured"},
    },
)
async def create_ssml(
    request: SSMLRequest,
    converter: Annotated[SSMLConverter, Depends(get_converter)],
) -> SSMLResponse:
    identity = TraceIdentity(
        user_id=request.user_id,
        document_id=request.document_id,
        membership_tier=request.membership_tier,
    )
    try:
        ssml = await converter.convert(
            request.markdown,
            language=request.language,
            identity=identity,
        )
    except CompletionError as exc:
        logger.exception("SSML generation failed for document %s", request.document_id)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return SSMLResponse(
        ssml=ssml,
        chunk_count=len(converter.chunker.chunk(request.markdown)),
        characters=len(request.markdown),
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the ssml-api console script."""
    import uvicorn
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
