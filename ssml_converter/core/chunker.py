"""Paragraph-aware markdown chunking.

WHY: The completion service works best (and stays within its output
limits) on moderately sized inputs. Long documents are split before
conversion, but splitting inside a paragraph would break sentences that
the model needs to read naturally.

HOW: Text at or below the limit is returned as-is. Longer text is split
on blank-line paragraph boundaries and the paragraphs are greedily packed
into chunks joined with a blank line.

RULES:
- len(text) <= max_chunk_size → exactly one chunk, equal to text
- A chunk is emitted when the next paragraph (plus its "\\n\\n" separator)
  would push it past max_chunk_size and the chunk is non-empty
- A single paragraph longer than max_chunk_size is emitted whole,
  never split further
- Whitespace-only paragraphs are dropped; no empty trailing chunk
"""

from __future__ import annotations

import re

from ssml_converter.config import MAX_CHUNK_SIZE_CHARS
from ssml_converter.core.ir import Segment

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")

PARAGRAPH_SEPARATOR = "\n\n"


class MarkdownChunker:
    """Split markdown into an ordered list of size-bounded chunks.

    Args:
        max_chunk_size: Maximum chunk length in characters. Also the
            threshold below which text is not split at all.
    """

    def __init__(self, max_chunk_size: int = MAX_CHUNK_SIZE_CHARS) -> None:
        if max_chunk_size <= 0:
            raise ValueError(
                f"max_chunk_size must be positive, got {max_chunk_size}"
            )
        self.max_chunk_size = max_chunk_size

    def chunk(self, text: str) -> list[str]:
        """Return the chunks of ``text`` in document order."""
        if len(text) <= self.max_chunk_size:
            return [text]

        chunks: list[str] = []
        current = ""

        for paragraph in _PARAGRAPH_BREAK_RE.split(text):
            if not paragraph.strip():
                continue

            separator = PARAGRAPH_SEPARATOR if current else ""
            if current and len(current) + len(separator) + len(paragraph) > self.max_chunk_size:
                chunks.append(current)
                current = paragraph
            else:
                current += separator + paragraph

        if current:
            chunks.append(current)

        return chunks

    def segments(self, text: str) -> list[Segment]:
        """Return the chunks of ``text`` as indexed Segment objects."""
        chunks = self.chunk(text)
        return [
            Segment(index=i, text=chunk, total_segments=len(chunks))
            for i, chunk in enumerate(chunks)
        ]


def chunk_markdown(text: str, max_chunk_size: int = MAX_CHUNK_SIZE_CHARS) -> list[str]:
    """Convenience wrapper around MarkdownChunker.chunk."""
    return MarkdownChunker(max_chunk_size).chunk(text)
