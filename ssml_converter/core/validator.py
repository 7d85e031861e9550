"""Structural (well-formedness) check for generated SSML.

WHY: After cleaning and balancing, the converter wants to know whether
the document is still malformed. It never rejects the document; it
only leaves a trace in the logs. Validity is advisory.

HOW: XMLStructureValidator parses the markup with the standard library's
ElementTree. A parse error becomes a StructuralWarning carrying the
parser message and position. Other validators only need to implement
the StructuralValidator protocol.

RULES:
- validate() returns None for well-formed markup
- validate() never raises for malformed markup
"""

from __future__ import annotations

import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class StructuralWarning:
    """A non-fatal finding: the document is not well-formed XML."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line}, column {self.column})"


class StructuralValidator(Protocol):
    """Anything that can report whether a markup string is well-formed."""

    def validate(self, markup: str) -> Optional[StructuralWarning]:
        ...


class XMLStructureValidator:
    """Well-formedness check backed by xml.etree.ElementTree."""

    def validate(self, markup: str) -> Optional[StructuralWarning]:
        try:
            ElementTree.fromstring(markup)
        except ElementTree.ParseError as exc:
            line, column = getattr(exc, "position", (None, None))
            return StructuralWarning(message=str(exc), line=line, column=column)
        return None
