"""Best-effort balancing of recognized SSML start/end tags.

WHY: Generative models regularly drop closing tags near the end of their
output and occasionally duplicate closers early on. Downstream SSML
consumers reject such documents outright, so the converter repairs the
tag counts of the small vocabulary it asks the model to use.

HOW: For each recognized tag, in vocabulary order, the document is
scanned into tokens (see tokens.py) and open/close tokens are counted.
Missing closers are appended just before the root close tag; excess
closers are removed starting from the leftmost one.

RULES:
- Only recognized tags are touched; every other tag passes through
- Self-closing tags are never counted
- opens > closes → (opens - closes) "</tag>" inserted before the last root close
  tag (at the end when there is none)
- closes > opens → the first (closes - opens) close tags are deleted
- Tags are balanced independently; nesting order is NOT tracked, so a
  repaired document can nest differently than the model intended
"""

from __future__ import annotations

from typing import Sequence

from ssml_converter.config import RECOGNIZED_TAGS, ROOT_TAG
from ssml_converter.core.tokens import CLOSE, OPEN, TagToken, scan_tags

# Removing a closer can splice its neighbours into a new tag; passes
# repeat until the document stops changing.
_MAX_PASSES = 5


class TagBalancer:
    """Repair open/close counts for a fixed set of tag names.

    Args:
        recognized_tags: Tag names eligible for balancing.
        root_tag: Name of the root element whose close tag receives
            the synthetic closers.
    """

    def __init__(
        self,
        recognized_tags: Sequence[str] = RECOGNIZED_TAGS,
        root_tag: str = ROOT_TAG,
    ) -> None:
        self.recognized_tags = tuple(tag.lower() for tag in recognized_tags)
        self.root_tag = root_tag.lower()

    def count(self, markup: str, tag: str) -> tuple[int, int]:
        """Return ``(opens, closes)`` for ``tag`` in ``markup``."""
        tag = tag.lower()
        opens = closes = 0
        for token in scan_tags(markup):
            if token.name != tag:
                continue
            if token.kind == OPEN:
                opens += 1
            elif token.kind == CLOSE:
                closes += 1
        return opens, closes

    def is_balanced(self, markup: str) -> bool:
        """True when every recognized tag has as many closers as openers."""
        return all(
            opens == closes
            for opens, closes in (self.count(markup, tag) for tag in self.recognized_tags)
        )

    def balance(self, markup: str) -> str:
        """Return ``markup`` with every recognized tag count-balanced."""
        fixed = markup
        for _ in range(_MAX_PASSES):
            before = fixed
            for tag in self.recognized_tags:
                fixed = self._balance_tag(fixed, tag)
            if fixed == before:
                break
        return fixed

    def _balance_tag(self, markup: str, tag: str) -> str:
        tokens = [t for t in scan_tags(markup) if t.name == tag]
        closes = [t for t in tokens if t.kind == CLOSE]
        diff = sum(1 for t in tokens if t.kind == OPEN) - len(closes)

        if diff > 0:
            return self._insert_before_root_close(markup, f"</{tag}>" * diff)
        if diff < 0:
            return _remove_tokens(markup, closes[:-diff])
        return markup

    def _insert_before_root_close(self, markup: str, closers: str) -> str:
        root_closes = [
            t for t in scan_tags(markup)
            if t.name == self.root_tag and t.kind == CLOSE
        ]
        if not root_closes:
            return markup + closers
        at = root_closes[-1].start
        return markup[:at] + closers + markup[at:]


def _remove_tokens(markup: str, tokens: list[TagToken]) -> str:
    """Cut the given (non-overlapping, ordered) token spans out of markup."""
    parts = []
    pos = 0
    for token in tokens:
        parts.append(markup[pos:token.start])
        pos = token.end
    parts.append(markup[pos:])
    return "".join(parts)


def balance_tags(markup: str) -> str:
    """Balance ``markup`` with the default SSML vocabulary."""
    return TagBalancer().balance(markup)
