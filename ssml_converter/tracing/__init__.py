"""Tracing harness package: traced model calls and chunk dispatch.

WHY: Keeps observability and dispatch policy (sequential vs. parallel)
out of the conversion core, which only relies on ordered results.

RULES:
- The converter receives a harness; it never creates threads or tasks itself
"""

from ssml_converter.tracing.harness import (
    ChunkedResult,
    ChunkItem,
    ConcurrentHarness,
    SequentialHarness,
    Trace,
    TracedResult,
    Tracer,
    build_harness,
    traced_generate,
)

__all__ = [
    "ChunkItem",
    "ChunkedResult",
    "ConcurrentHarness",
    "SequentialHarness",
    "Trace",
    "TracedResult",
    "Tracer",
    "build_harness",
    "traced_generate",
]
