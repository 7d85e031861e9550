"""Reassembly of per-chunk SSML into one document.

WHY: Long documents are converted chunk by chunk, and every chunk comes
back as its own <speak> document. The final result must be a single
<speak> element whose content follows the original chunk order.

HOW: Each fragment is normalized, its root element content extracted,
and the non-empty contents are joined with newlines, wrapped in one root
element, and normalized again so imbalance that survives per-fragment
cleanup is still repaired by the final balancing pass.

RULES:
- No fragments → "<speak></speak>"
- Fragments are joined in segment_index order, never completion order
- A fragment whose content cannot be extracted counts as empty; it never
  aborts the combine
- Empty contents are dropped before joining with "\\n"
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from ssml_converter.config import ROOT_TAG
from ssml_converter.core.ir import GeneratedFragment
from ssml_converter.core.normalizer import SSMLNormalizer
from ssml_converter.errors import ExtractionMiss

logger = logging.getLogger(__name__)


def extract_root_content(document: str, root_tag: str = ROOT_TAG) -> str:
    """Return the stripped text between the first root open tag and the
    last root close tag of ``document``.

    Raises:
        ExtractionMiss: If no such pair exists.
    """
    root = re.escape(root_tag)
    match = re.search(
        rf"<{root}\b[^>]*>([\s\S]*)</{root}>", document, re.IGNORECASE
    )
    if match is None:
        raise ExtractionMiss(f"No <{root_tag}> element found in fragment")
    return match.group(1).strip()


class ChunkCombiner:
    """Combine per-chunk SSML answers into a single document."""

    def __init__(self, normalizer: Optional[SSMLNormalizer] = None) -> None:
        self.normalizer = normalizer or SSMLNormalizer()

    def combine(self, fragments: Sequence[str]) -> str:
        """Combine raw SSML strings given in document order."""
        root_tag = self.normalizer.root_tag
        if not fragments:
            return self.normalizer.empty_document

        contents = []
        for position, fragment in enumerate(fragments):
            cleaned = self.normalizer.normalize(fragment)
            try:
                contents.append(extract_root_content(cleaned, root_tag))
            except ExtractionMiss:
                logger.debug("Fragment %d has no root element, treating as empty", position)
                contents.append("")

        combined = "\n".join(content for content in contents if content)
        return self.normalizer.normalize(f"<{root_tag}>{combined}</{root_tag}>")

    def combine_fragments(self, fragments: Iterable[GeneratedFragment]) -> str:
        """Combine GeneratedFragment objects in segment_index order."""
        ordered = sorted(fragments, key=lambda fragment: fragment.segment_index)
        return self.combine([fragment.markup for fragment in ordered])


def combine_ssml_chunks(fragments: Sequence[str]) -> str:
    """Combine ``fragments`` with the default normalizer."""
    return ChunkCombiner().combine(fragments)
