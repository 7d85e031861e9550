"""Exception hierarchy for the SSML converter.

WHY: Callers (CLI, HTTP API, tests) need to tell a failed completion
call apart from internal best-effort repair imprecision. Only
CompletionError is meant to reach callers; everything else is absorbed
inside the pipeline.

RULES:
- Every package exception derives from SSMLConverterError
- CompletionError is fatal to a whole conversion (no partial output)
- ExtractionMiss is internal and never escapes the combiner
"""

from __future__ import annotations


class SSMLConverterError(Exception):
    """Base error for the SSML converter package."""


class CompletionError(SSMLConverterError):
    """Raised when the completion service fails for any chunk.

    The message always contains the completion error marker
    (``"Gemini API error"``) so log readers can tell where it came from.
    """


class ExtractionMiss(SSMLConverterError):
    """Raised when no root element content can be located in a fragment."""
