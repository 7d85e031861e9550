"""Cleanup of raw model output into a single-rooted SSML document.

WHY: Gemini wraps its answers in markdown code fences, forgets the root
<speak> element, writes "< p >" or "<p/>", mangles "</say-as>" and adds
xmlns / xml:lang attributes it was told not to add. Every generated
string goes through this module before it is combined or returned.

HOW: A fixed sequence of whole-string steps, with steps 1-8 repeated
until the text stops changing:
  1. trim, drop an outer ```xml / ``` fence
  2. make sure the text starts with <speak ...> and ends with </speak>
  3. drop fences that leaked inside the root element
  4. collapse whitespace inside angle brackets
  5. expand self-closing <p/> and <s/> into open/close pairs
  6. repair malformed </say-as...> closers
  7. strip xmlns and xml:lang attributes
  8. balance recognized tags (balancer.py)
  9. validate; a malformed result is logged and returned anyway

RULES:
- normalize() never raises on any input string
- normalize(normalize(x)) == normalize(x)
- The result always starts with "<speak" and ends with "</speak>"
- Language and namespace attributes are owned downstream, never kept here
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ssml_converter.config import ROOT_TAG
from ssml_converter.core.balancer import TagBalancer
from ssml_converter.core.validator import StructuralValidator, XMLStructureValidator

logger = logging.getLogger(__name__)

_OUTER_OPEN_FENCE_RE = re.compile(r"^```(?:xml|ssml)?\s*", re.IGNORECASE)
_OUTER_CLOSE_FENCE_RE = re.compile(r"\s*```$")

_INNER_OPEN_FENCE_RE = re.compile(r"^\s*(?:```(?:xml|ssml)?\.?\s*)+", re.IGNORECASE)
_INNER_CLOSE_FENCE_RE = re.compile(r"(?:\s*```)+\s*$")

_SPACE_AFTER_LT_RE = re.compile(r"<\s+")
_SPACE_AFTER_SLASH_RE = re.compile(r"</\s+")
_SPACE_BEFORE_GT_RE = re.compile(r"\s+>")

_SELF_CLOSING_BLOCK_RE = re.compile(r"<(p|s)((?:\s[^<>]*?)?)\s*/>", re.IGNORECASE)

_MALFORMED_SAY_AS_CLOSE_RE = re.compile(r"</say-as(?![\w-])[^>]*>", re.IGNORECASE)

_OWNED_ATTRIBUTE_RE = re.compile(
    r"\s*\b(?:xmlns(?::[\w.-]+)?|xml:lang)\s*=\s*(?:\"[^\"]*\"|'[^']*')"
)

# Balancing can expose text an earlier step cleans (a fence behind a
# removed closer, a spliced "<p/>"); steps 1-8 repeat until stable.
_MAX_PASSES = 8


class SSMLNormalizer:
    """Turn one raw model answer into a balanced SSML document.

    Args:
        balancer: Tag balancer applied in step 8.
        validator: Structural validator applied in step 9.
        root_tag: Name of the root element.
    """

    def __init__(
        self,
        balancer: Optional[TagBalancer] = None,
        validator: Optional[StructuralValidator] = None,
        root_tag: str = ROOT_TAG,
    ) -> None:
        self.root_tag = root_tag
        self.balancer = balancer or TagBalancer(root_tag=root_tag)
        self.validator = validator or XMLStructureValidator()

        root = re.escape(root_tag)
        self._root_open_re = re.compile(rf"^<\s*{root}\b[^>]*(?<!/)>", re.IGNORECASE)
        self._root_close_re = re.compile(rf"<\s*/\s*{root}\s*>$", re.IGNORECASE)
        self._document_re = re.compile(
            rf"^<\s*{root}\b([^>]*)>([\s\S]*)<\s*/\s*{root}\s*>$", re.IGNORECASE
        )

    @property
    def empty_document(self) -> str:
        return f"<{self.root_tag}></{self.root_tag}>"

    def normalize(self, raw: str) -> str:
        cleaned = raw
        for _ in range(_MAX_PASSES):
            before = cleaned
            cleaned = self._cleanup_pass(cleaned)
            if cleaned == before:
                break
        else:
            logger.debug("SSML cleanup did not settle after %d passes", _MAX_PASSES)

        # 9. Advisory validation
        warning = self.validator.validate(cleaned)
        if warning is not None:
            logger.warning(
                "SSML is not well-formed after cleanup, proceeding anyway: %s",
                warning,
            )

        return cleaned

    def _cleanup_pass(self, raw: str) -> str:
        """Apply steps 1-8 once."""
        cleaned = raw.strip()

        # 1. Outer code fence
        cleaned = _OUTER_OPEN_FENCE_RE.sub("", cleaned)
        cleaned = _OUTER_CLOSE_FENCE_RE.sub("", cleaned)

        # 2. Root element
        if not self._root_open_re.match(cleaned):
            cleaned = f"<{self.root_tag}>" + cleaned
        if not self._root_close_re.search(cleaned):
            cleaned = cleaned + f"</{self.root_tag}>"

        # 3. Fences inside the root element
        match = self._document_re.match(cleaned)
        if match:
            attributes, inner = match.groups()
            inner = _INNER_OPEN_FENCE_RE.sub("", inner)
            inner = _INNER_CLOSE_FENCE_RE.sub("", inner)
            cleaned = f"<{self.root_tag}{attributes}>{inner}</{self.root_tag}>"

        # 4. Whitespace inside brackets
        cleaned = _SPACE_AFTER_LT_RE.sub("<", cleaned)
        cleaned = _SPACE_AFTER_SLASH_RE.sub("</", cleaned)
        cleaned = _SPACE_BEFORE_GT_RE.sub(">", cleaned)

        # 5. <p/> and <s/> are not accepted by SSML engines
        cleaned = _SELF_CLOSING_BLOCK_RE.sub(_expand_self_closing, cleaned)

        # 6. "</say-as." / "</say-as," and similar
        cleaned = _MALFORMED_SAY_AS_CLOSE_RE.sub("</say-as>", cleaned)

        # 7. Namespace and language attributes
        cleaned = _OWNED_ATTRIBUTE_RE.sub("", cleaned)

        # 8. Recognized tag counts
        return self.balancer.balance(cleaned)


def _expand_self_closing(match: re.Match) -> str:
    name = match.group(1)
    attributes = match.group(2).rstrip()
    return f"<{name}{attributes}></{name}>"


def clean_ssml_output(raw: str) -> str:
    """Normalize ``raw`` with the default configuration."""
    return SSMLNormalizer().normalize(raw)
