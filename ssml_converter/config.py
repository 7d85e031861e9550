"""Configuration constants, tag vocabulary, and .env loading.

WHY: The tag vocabulary, the chunk size limit, and the Gemini endpoint
are tuned independently of the code that uses them. Keeping them here as
plain values lets the chunker, balancer, and converter receive them as
constructor arguments and lets deployments override them from .env.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples and strings. The load_api_key() function provides
a clear error when the key is missing.

RULES:
- RECOGNIZED_TAGS are the only tags the balancer repairs
- ROOT_TAG wraps every produced document
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# SSML vocabulary
# ---------------------------------------------------------------------------

ROOT_TAG = "speak"
"""Name of the single outermost SSML element."""

RECOGNIZED_TAGS: tuple[str, ...] = ("p", "s", "emphasis", "say-as", "prosody")
"""Tags eligible for automatic balancing, in the order they are balanced."""

ALLOWED_SSML_TAGS: tuple[str, ...] = (
    "speak", "break", "emphasis", "say-as", "p", "s", "prosody",
)
"""The basic vocabulary the model is instructed to use."""

# ---------------------------------------------------------------------------
# Conversion defaults
# ---------------------------------------------------------------------------

COMPLETION_ERROR_PREFIX = "Gemini API error"
"""Marker that identifies errors originating from the completion service."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


MAX_CHUNK_SIZE_CHARS = _env_int("SSML_MAX_CHUNK_CHARS", 5000)
MAX_CONCURRENCY = _env_int("SSML_MAX_CONCURRENCY", 1)
TRACING_ENABLED = os.getenv("SSML_TRACING_ENABLED", "true").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")


def load_api_key() -> str:
    """Load the Gemini API key from the environment.

    WHY: The API key is required for every completion call. Loading it
    from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("GEMINI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Gemini API key not configured. "
            "Add GEMINI_API_KEY to the .env file in the app folder."
        )
    return key
