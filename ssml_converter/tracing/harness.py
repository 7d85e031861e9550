"""LLM call tracing and chunk dispatch.

WHY: A long document produces many Gemini calls. Their cost and latency
must be attributed to one logical conversion (one parent trace), and the
orchestrator must not care whether those calls run one after another or
in parallel.

HOW: Tracer creates Trace objects that record generations (one per model
call) and spans (errors, warnings). traced_generate() wraps a single
completion call in a generation. The harnesses dispatch a per-chunk
coroutine over a list of ChunkItems under one parent trace:
  SequentialHarness — awaits the chunks one by one
  ConcurrentHarness — runs them with asyncio.gather, bounded by a semaphore
Finished traces are handed to the tracer's sink on flush (logged at DEBUG
by default).

RULES:
- run_many() returns results in input order, whatever the completion order
- A disabled tracer creates no traces; calls still run
- traced_generate() flushes only when it created the trace itself
- Errors are recorded as "ai_generation_error" spans and re-raised
- Flush problems are logged, never raised
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from ssml_converter.api.client import CompletionService
from ssml_converter.api.models import CompletionUsage
from ssml_converter.config import MAX_CONCURRENCY, TRACING_ENABLED
from ssml_converter.core.ir import TraceIdentity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Trace records
# ---------------------------------------------------------------------------


@dataclass
class Span:
    """A point-in-time event attached to a trace."""

    name: str
    level: str = "DEFAULT"
    status_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Generation:
    """One model call recorded inside a trace."""

    name: str
    model: Optional[str] = None
    input: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    status: str = "running"
    output: Optional[str] = None
    usage: Optional[CompletionUsage] = None
    error: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)
    ended_at: Optional[float] = None

    def end(
        self,
        output: Optional[str] = None,
        usage: Optional[CompletionUsage] = None,
        error: Optional[str] = None,
    ) -> None:
        self.output = output
        self.usage = usage
        self.error = error
        self.status = "error" if error is not None else "completed"
        self.ended_at = time.monotonic()

    @property
    def duration_s(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at


@dataclass
class Trace:
    """A logical unit of work (one conversion) and everything it recorded."""

    name: str
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    spans: List[Span] = field(default_factory=list)
    generations: List[Generation] = field(default_factory=list)

    def span(
        self,
        name: str,
        level: str = "DEFAULT",
        status_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Span:
        span = Span(name=name, level=level, status_message=status_message, metadata=dict(metadata or {}))
        self.spans.append(span)
        return span

    def generation(
        self,
        name: str,
        model: Optional[str] = None,
        input: Optional[Sequence[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Generation:
        generation = Generation(
            name=name, model=model, input=list(input or []), metadata=dict(metadata or {})
        )
        self.generations.append(generation)
        return generation


def _log_trace(trace: Trace) -> None:
    failed = sum(1 for g in trace.generations if g.status == "error")
    logger.debug(
        "Trace %s (%s): %d generation(s), %d failed, %d span(s)",
        trace.id, trace.name, len(trace.generations), failed, len(trace.spans),
    )


class Tracer:
    """Creates traces and hands them to a sink on flush.

    Args:
        enabled: When False, create_trace() returns None.
        sink: Called with every trace on flush. Defaults to a DEBUG log line.
    """

    def __init__(
        self,
        enabled: bool = TRACING_ENABLED,
        sink: Optional[Callable[[Trace], None]] = None,
    ) -> None:
        self.enabled = enabled
        self.sink = sink or _log_trace
        self.traces: List[Trace] = []

    def create_trace(
        self,
        name: str,
        identity: Optional[TraceIdentity] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Trace]:
        if not self.enabled:
            return None
        identity = identity or TraceIdentity()
        trace = Trace(
            name=name,
            user_id=identity.user_id,
            metadata={**identity.as_metadata(), **(metadata or {})},
        )
        self.traces.append(trace)
        return trace

    def flush(self) -> None:
        """Send pending traces to the sink and clear the buffer."""
        pending, self.traces = self.traces, []
        for trace in pending:
            try:
                self.sink(trace)
            except Exception:
                logger.warning("Error flushing trace %s", trace.id, exc_info=True)


# ---------------------------------------------------------------------------
# Traced completion call
# ---------------------------------------------------------------------------


@dataclass
class TracedResult:
    """Generated text, usage, and the id of the trace it was recorded in."""

    text: str
    usage: Optional[CompletionUsage] = None
    trace_id: Optional[str] = None


async def traced_generate(
    service: CompletionService,
    prompt_parts: Sequence[str],
    *,
    function_name: str,
    tracer: Tracer,
    identity: Optional[TraceIdentity] = None,
    metadata: Optional[Dict[str, Any]] = None,
    parent_trace: Optional[Trace] = None,
) -> TracedResult:
    """Run one completion call, recording it as a generation.

    RULES:
    - parent_trace given → generation "{function_name}.chunk.generate" in it
    - no parent_trace → new trace, generation "{function_name}.generate",
      flushed when the call ends
    - errors are recorded and re-raised unchanged
    """
    metadata = dict(metadata or {})
    trace = parent_trace or tracer.create_trace(function_name, identity, metadata)

    if trace is None:
        result = await service.generate(prompt_parts)
        return TracedResult(text=result.text, usage=result.usage)

    suffix = "chunk.generate" if parent_trace is not None else "generate"
    generation = trace.generation(
        f"{function_name}.{suffix}",
        model=getattr(service, "model", None),
        input=prompt_parts,
        metadata=metadata,
    )

    try:
        result = await service.generate(prompt_parts)
    except Exception as exc:
        trace.span(
            "ai_generation_error",
            level="ERROR",
            status_message=str(exc),
            metadata={
                "error_type": type(exc).__name__,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        generation.end(error=str(exc))
        if parent_trace is None:
            tracer.flush()
        raise
    except BaseException as exc:
        # Cancelled by a failing sibling chunk or the caller
        generation.end(
            error="cancelled" if isinstance(exc, asyncio.CancelledError) else type(exc).__name__
        )
        if parent_trace is None:
            tracer.flush()
        raise

    generation.end(output=result.text, usage=result.usage)
    if parent_trace is None:
        tracer.flush()

    return TracedResult(text=result.text, usage=result.usage, trace_id=trace.id)


# ---------------------------------------------------------------------------
# Harnesses
# ---------------------------------------------------------------------------


@dataclass
class ChunkItem:
    """One payload dispatched by a harness, with its per-item trace metadata."""

    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChunkedResult:
    """Results of run_many(), in input order."""

    results: List[Any]
    trace_id: Optional[str] = None
    combined_usage: Optional[CompletionUsage] = None


ChunkFunction = Callable[[ChunkItem, int, Optional[Trace]], Awaitable[Any]]


class TracingHarness(Protocol):
    """Interface the converter uses to dispatch completion work."""

    tracer: Tracer

    async def run_single(
        self,
        item: ChunkItem,
        fn: ChunkFunction,
    ) -> Any:
        ...

    async def run_many(
        self,
        items: Sequence[ChunkItem],
        fn: ChunkFunction,
        *,
        function_name: str,
        identity: Optional[TraceIdentity] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChunkedResult:
        ...


class SequentialHarness:
    """Dispatch chunks one at a time under one parent trace."""

    def __init__(self, tracer: Optional[Tracer] = None) -> None:
        self.tracer = tracer or Tracer()

    async def run_single(self, item: ChunkItem, fn: ChunkFunction) -> Any:
        """Document-level path: ``fn`` runs without a parent trace."""
        return await fn(item, 0, None)

    async def run_many(
        self,
        items: Sequence[ChunkItem],
        fn: ChunkFunction,
        *,
        function_name: str,
        identity: Optional[TraceIdentity] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChunkedResult:
        parent = self.tracer.create_trace(
            function_name,
            identity,
            {
                **(metadata or {}),
                "chunk_count": len(items),
                "total_content_length": sum(len(item.text) for item in items),
            },
        )

        try:
            results = await self._dispatch(items, fn, parent)
        except Exception as exc:
            if parent is not None:
                parent.span(
                    "chunk_processing_error",
                    level="ERROR",
                    status_message=str(exc),
                    metadata={"error_type": type(exc).__name__},
                )
            raise
        finally:
            self.tracer.flush()

        return ChunkedResult(
            results=results,
            trace_id=parent.id if parent is not None else None,
            combined_usage=_sum_usage(results),
        )

    async def _dispatch(
        self,
        items: Sequence[ChunkItem],
        fn: ChunkFunction,
        parent: Optional[Trace],
    ) -> List[Any]:
        results = []
        for index, item in enumerate(items):
            results.append(await fn(item, index, parent))
        return results


class ConcurrentHarness(SequentialHarness):
    """Dispatch chunks concurrently, at most ``max_concurrency`` at a time."""

    def __init__(self, tracer: Optional[Tracer] = None, max_concurrency: int = 4) -> None:
        super().__init__(tracer)
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency

    async def _dispatch(
        self,
        items: Sequence[ChunkItem],
        fn: ChunkFunction,
        parent: Optional[Trace],
    ) -> List[Any]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _run(index: int, item: ChunkItem) -> Any:
            async with semaphore:
                return await fn(item, index, parent)

        tasks = [asyncio.ensure_future(_run(i, item)) for i, item in enumerate(items)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


def build_harness(
    max_concurrency: int = MAX_CONCURRENCY,
    tracer: Optional[Tracer] = None,
) -> SequentialHarness:
    """Return a sequential harness for 1, a concurrent one above."""
    if max_concurrency > 1:
        return ConcurrentHarness(tracer, max_concurrency=max_concurrency)
    return SequentialHarness(tracer)


def _sum_usage(results: Sequence[Any]) -> Optional[CompletionUsage]:
    usages = [r.usage for r in results if getattr(r, "usage", None) is not None]
    if not usages:
        return None
    total = CompletionUsage()
    for usage in usages:
        total = total + usage
    return total
