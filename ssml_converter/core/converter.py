"""Markdown → SSML conversion orchestrator.

WHY: This is the single entry point callers (CLI, HTTP API) use. It ties
together chunking, one Gemini call per chunk, and SSML repair and
reassembly, and it is the only place where completion failures are
turned into the CompletionError callers handle.

HOW: The markdown is split into segments. A single segment is sent on
the document-level path (its own trace) and the answer is normalized.
Several segments are dispatched through the harness under one parent
trace; each answer becomes a GeneratedFragment keyed by its segment
index and the combiner joins them in that order.

RULES:
- Every call sends [prompt, chunk text]; the prompt is the same for all chunks
- Chunk calls are independent of each other's results
- Fragments are combined by segment_index, never by completion order
- Any completion failure → CompletionError mentioning "Gemini API error";
  no retries at this layer, no partial output
- Repair imprecision never fails a conversion
"""

from __future__ import annotations

import logging
from typing import Optional

from ssml_converter.api.client import CompletionService
from ssml_converter.config import COMPLETION_ERROR_PREFIX, MAX_CHUNK_SIZE_CHARS
from ssml_converter.core.chunker import MarkdownChunker
from ssml_converter.core.combiner import ChunkCombiner
from ssml_converter.core.ir import GeneratedFragment, TraceIdentity
from ssml_converter.core.normalizer import SSMLNormalizer
from ssml_converter.core.prompt import PromptBuilder, build_ssml_prompt
from ssml_converter.errors import CompletionError
from ssml_converter.tracing.harness import (
    ChunkItem,
    SequentialHarness,
    Trace,
    TracingHarness,
    traced_generate,
)

logger = logging.getLogger(__name__)

FUNCTION_NAME = "generateSSML"


def completion_error_message(exc: BaseException) -> str:
    """Return ``exc``'s message, prefixed so it reads as a Gemini failure."""
    message = str(exc) or type(exc).__name__
    if COMPLETION_ERROR_PREFIX in message:
        return message
    return f"{COMPLETION_ERROR_PREFIX} during SSML generation: {message}"


class SSMLConverter:
    """Convert markdown to one balanced SSML document.

    Args:
        service: Completion service (usually an entered GeminiClient).
        harness: Dispatch/tracing harness. Defaults to a SequentialHarness.
        max_chunk_size: Chunk size limit, also the no-split threshold.
        prompt_builder: Builds the instruction prompt from the language hint.
        normalizer: SSML normalizer shared by the single-chunk path and
            the combiner.
    """

    def __init__(
        self,
        service: CompletionService,
        harness: Optional[TracingHarness] = None,
        max_chunk_size: int = MAX_CHUNK_SIZE_CHARS,
        prompt_builder: PromptBuilder = build_ssml_prompt,
        normalizer: Optional[SSMLNormalizer] = None,
    ) -> None:
        self.service = service
        self.harness = harness or SequentialHarness()
        self.chunker = MarkdownChunker(max_chunk_size)
        self.prompt_builder = prompt_builder
        self.normalizer = normalizer or SSMLNormalizer()
        self.combiner = ChunkCombiner(self.normalizer)

    async def convert(
        self,
        markdown: str,
        language: Optional[str] = None,
        identity: Optional[TraceIdentity] = None,
    ) -> str:
        """Convert ``markdown`` to SSML.

        Args:
            markdown: Source text.
            language: Document language if known; embedded in the prompt.
            identity: Tracing correlation fields.

        Returns:
            SSML starting with "<speak" and ending with "</speak>".

        Raises:
            CompletionError: If any completion call fails.
        """
        identity = identity or TraceIdentity()
        segments = self.chunker.segments(markdown)
        if not segments:
            logger.info("No content to convert, returning an empty document")
            return self.combiner.combine([])

        prompt = self.prompt_builder(language)
        total = len(segments)

        async def process_chunk(
            item: ChunkItem, index: int, parent_trace: Optional[Trace]
        ) -> GeneratedFragment:
            result = await traced_generate(
                self.service,
                [prompt, item.text],
                function_name=FUNCTION_NAME,
                tracer=self.harness.tracer,
                identity=identity,
                metadata={
                    "document_language": language,
                    "text_length": len(item.text),
                    **item.metadata,
                },
                parent_trace=parent_trace,
            )
            return GeneratedFragment(segment_index=index, markup=result.text, usage=result.usage)

        try:
            if total == 1:
                logger.info("Processing SSML as a single chunk.")
                fragment = await self.harness.run_single(
                    ChunkItem(text=segments[0].text, metadata={"chunk_count": 1}),
                    process_chunk,
                )
                fragments = [fragment]
            else:
                logger.info("Processing SSML in %d chunks with hierarchical tracing.", total)
                items = [
                    ChunkItem(
                        text=segment.text,
                        metadata={
                            "chunk_index": segment.index + 1,
                            "total_chunks": segment.total_segments,
                            "chunk_length": len(segment.text),
                        },
                    )
                    for segment in segments
                ]
                chunked = await self.harness.run_many(
                    items,
                    process_chunk,
                    function_name=FUNCTION_NAME,
                    identity=identity,
                    metadata={
                        "document_language": language,
                        "total_text_length": len(markdown),
                    },
                )
                fragments = chunked.results
                logger.debug(
                    "Chunked SSML generation finished (trace %s), combined usage: %s",
                    chunked.trace_id,
                    chunked.combined_usage,
                )
        except Exception as exc:
            message = completion_error_message(exc)
            logger.error("Error generating SSML: %s", message)
            raise CompletionError(message) from exc

        if total == 1:
            return self.normalizer.normalize(fragments[0].markup)
        return self.combiner.combine_fragments(fragments)
