"""SSML Converter: markdown to speech markup through Gemini.

WHY: Text-to-speech engines read SSML, not markdown. Asking a generative
model for SSML works, but its answers arrive fenced, unrooted, or with
unbalanced tags, and long documents exceed what one call should carry.
This package turns arbitrary-length markdown into one balanced <speak>
document.

HOW: Three-stage pipeline: chunk (paragraph-bounded slices), generate
(one traced Gemini call per slice), repair and combine (normalize each
answer, join in order, normalize again). Each stage is independently
testable.

RULES:
- Only CompletionError escapes a conversion; markup repair is best-effort
- Chunk order is preserved regardless of how calls are scheduled
- The produced SSML carries no xmlns or xml:lang attributes
"""

__version__ = "0.1.0"
