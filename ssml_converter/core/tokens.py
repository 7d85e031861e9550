"""Tag scanner producing a flat open/close/self-closing token stream.

WHY: Counting tags with a single regex per tag name breaks on attribute
values containing ">" or quotes, and on tags mentioned inside comments or
CDATA sections. The balancer needs exact token positions so that its
"remove the leftmost excess closers" rule can be applied and tested in
isolation.

HOW: A single left-to-right pass finds each "<", skips markup
declarations (comments, CDATA, processing instructions, doctype), and
reads a tag name followed by attributes until the closing ">", honouring
single- and double-quoted attribute values. Anything that does not form
a complete tag is treated as text.

RULES:
- Tag names are lower-cased in tokens; positions refer to the input
- A tag name must directly follow "<" or "</" (no whitespace)
- A tag is self-closing when its last non-space character before ">" is "/"
- "</name .../>" is still a close tag
- Unterminated tags, quotes, and declarations are plain text
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

OPEN = "open"
CLOSE = "close"
SELF_CLOSING = "self_closing"

_NAME_RE = re.compile(r"[A-Za-z_][\w.:-]*")

# (prefix, terminator) pairs for constructs that are never tags.
_DECLARATIONS = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<?", "?>"),
    ("<!", ">"),
)


@dataclass(frozen=True)
class TagToken:
    """One tag found in a markup string.

    Attributes:
        kind: OPEN, CLOSE, or SELF_CLOSING.
        name: Lower-cased tag name.
        start: Index of the opening "<".
        end: Index just past the closing ">".
    """

    kind: str
    name: str
    start: int
    end: int


def iter_tags(markup: str) -> Iterator[TagToken]:
    """Yield the tags of ``markup`` from left to right."""
    pos = 0
    while True:
        lt = markup.find("<", pos)
        if lt == -1:
            return

        skipped_to = _skip_declaration(markup, lt)
        if skipped_to is not None:
            pos = skipped_to
            continue

        token = _read_tag(markup, lt)
        if token is None:
            pos = lt + 1
            continue

        yield token
        pos = token.end


def scan_tags(markup: str) -> list[TagToken]:
    """Return all tags of ``markup`` as a list."""
    return list(iter_tags(markup))


def _skip_declaration(markup: str, lt: int) -> int | None:
    """Return the index after a declaration starting at ``lt``, if any."""
    for prefix, terminator in _DECLARATIONS:
        if markup.startswith(prefix, lt):
            end = markup.find(terminator, lt + len(prefix))
            if end == -1:
                return None
            return end + len(terminator)
    return None


def _read_tag(markup: str, lt: int) -> TagToken | None:
    i = lt + 1
    closing = markup.startswith("/", i)
    if closing:
        i += 1

    match = _NAME_RE.match(markup, i)
    if match is None:
        return None
    name = match.group().lower()
    i = match.end()

    if i < len(markup) and not (markup[i].isspace() or markup[i] in "/>"):
        return None

    while i < len(markup):
        char = markup[i]
        if char in "\"'":
            quote_end = markup.find(char, i + 1)
            if quote_end == -1:
                return None
            i = quote_end + 1
        elif char == "<":
            return None
        elif char == ">":
            if closing:
                kind = CLOSE
            elif markup[lt:i].rstrip().endswith("/"):
                kind = SELF_CLOSING
            else:
                kind = OPEN
            return TagToken(kind=kind, name=name, start=lt, end=i + 1)
        else:
            i += 1

    return None
