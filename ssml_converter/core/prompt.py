"""Instruction prompt sent with every chunk.

WHY: The quality of the SSML depends almost entirely on the instructions
given to the model: keep the source language, strip every trace of
markdown, and stay inside the small tag vocabulary the balancer knows
how to repair.

HOW: build_ssml_prompt() assembles a fixed instruction text and appends
the document language when it is known. The same prompt is sent with
every chunk of a document.

RULES:
- The model must not translate the content
- No xml:lang or xmlns attributes (added later, downstream)
- Only the tags in ALLOWED_SSML_TAGS may be used
- The language hint is embedded verbatim when given
"""

from __future__ import annotations

from typing import Callable, Optional

from ssml_converter.config import ALLOWED_SSML_TAGS

PromptBuilder = Callable[[Optional[str]], str]

_LANGUAGE_REQUIREMENTS = (
    "CRITICAL LANGUAGE REQUIREMENT:\n"
    "1. ***IMPORTANT*** - FIRST DETECT THE LANGUAGE OF THE DOCUMENT (English, Italian, etc.)\n"
    "2. GENERATE THE SSML ENTIRELY IN THE SAME LANGUAGE AS THE SOURCE DOCUMENT\n"
    "3. DO NOT translate the content - preserve the original language\n"
    "4. DO NOT add xml:lang attributes to any tags - we will handle language identification separately\n"
    "5. DO NOT include xmlns attributes in your output\n"
    "6. If the document is in a non-English language, use appropriate SSML tags for that language\n\n"
)

_CORE_REQUIREMENTS = (
    "CORE REQUIREMENTS:\n"
    "1. First, completely remove ALL markdown formatting (*, #, -, >, backticks, etc.) from the input text\n"
    "2. Wrap the entire content in <speak> tags\n"
    "3. Use <p> tags for paragraphs and <s> tags for sentences to create natural speech patterns\n"
    "4. Add simple <break> tags between sections (1s) and after important points (0.5s)\n"
    "5. Use <emphasis> tags sparingly, only for the most important concepts\n"
    "6. Use <say-as> tags only when necessary for numbers, dates, and abbreviations\n\n"
)

_SIMPLIFICATION = (
    "CONTENT SIMPLIFICATION:\n"
    "1. Convert all headings to simple sentences with appropriate <break> tags before them\n"
    "2. For mathematical formulas and variables:\n"
    '   a. Use <say-as interpret-as="spell-out">X</say-as> for single letter variables (like L, Q, r, etc.)\n'
    '   b. For example, say "eight per eta per <say-as interpret-as="spell-out">L</say-as> '
    'per <say-as interpret-as="spell-out">Q</say-as>"\n'
    "3. Convert list items to sentences with appropriate pauses\n"
    "4. Convert image descriptions ([Media: ...]) to simple sentences\n"
    "5. Use <prosody> only when absolutely necessary to slow down complex concepts\n\n"
)


def build_ssml_prompt(language: Optional[str] = None) -> str:
    """Return the SSML conversion instructions.

    Args:
        language: Document language (e.g. "Italian" or "it") if known.

    Returns:
        The full instruction text, ending with the lead-in for the
        markdown that follows it in the request.
    """
    tags = ", ".join(ALLOWED_SSML_TAGS)
    guidelines = (
        "IMPORTANT GUIDELINES:\n"
        "1. DO NOT overuse SSML tags - prioritize natural reading flow\n"
        "2. COMPLETELY remove all markdown syntax from the input text\n"
        "3. Focus on content readability rather than complex SSML structure\n"
        f"4. Use only the basic tags: {tags}\n"
        "5. Avoid nested tags when possible to maintain simplicity\n\n"
    )
    language_line = f"SPECIFIED DOCUMENT LANGUAGE: {language}\n\n" if language else ""

    return (
        "Convert this educational markdown text to simple, well-structured Speech "
        "Synthesis Markup Language (SSML) optimized for student learning. "
        "Follow these guidelines:\n\n"
        + _LANGUAGE_REQUIREMENTS
        + _CORE_REQUIREMENTS
        + _SIMPLIFICATION
        + guidelines
        + language_line
        + "Here's the markdown text to convert:"
    )
