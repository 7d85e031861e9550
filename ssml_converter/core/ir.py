"""Intermediate representation dataclasses for the conversion pipeline.

WHY: The chunker, the orchestrator, and the combiner exchange small
pieces of state: a chunk of markdown, the raw model output for that
chunk, and the tracing identity of the conversion. Typed dataclasses make
the hand-offs explicit and keep the ordering key visible.

HOW: Three dataclasses:
  Segment           — one bounded slice of the source markdown
  GeneratedFragment — the raw SSML generated for one segment
  TraceIdentity     — correlation fields attached to every trace

RULES:
- Segment.index equals emission order and is the only reassembly key
- GeneratedFragment.segment_index refers back to Segment.index
- Fragments are ordered by segment_index, never by completion time
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ssml_converter.api.models import CompletionUsage


@dataclass(frozen=True)
class Segment:
    """A bounded-size slice of the source markdown.

    RULES:
    - index: 0-based position in the chunker output
    - total_segments: number of segments produced for the same document
    """

    index: int
    text: str
    total_segments: int


@dataclass(frozen=True)
class GeneratedFragment:
    """Raw completion output for one segment."""

    segment_index: int
    markup: str
    usage: CompletionUsage | None = None


@dataclass(frozen=True)
class TraceIdentity:
    """Correlation fields attached to traces of one conversion."""

    user_id: str | None = None
    document_id: str | None = None
    membership_tier: str | None = None

    def as_metadata(self) -> dict:
        """Return the non-user fields as trace metadata."""
        return {
            "document_id": self.document_id,
            "membership_tier": self.membership_tier,
        }
