"""Tests for raw model output cleanup.

WHY: Every answer the model gives passes through SSMLNormalizer before
it is combined or returned. Each cleanup step targets a failure mode
observed in real Gemini output: code fences, a missing root, spaced or
self-closing tags, mangled </say-as> closers, and namespace attributes.

HOW: One test class per cleanup step with exact expected output,
followed by the document-level guarantees: the result is always a single
<speak> document, normalizing twice changes nothing, and malformed
results are logged rather than rejected.

RULES:
- normalize() must never raise
- Output never carries xmlns or xml:lang attributes
"""

import logging
import random

import pytest

from ssml_converter.core.normalizer import SSMLNormalizer, clean_ssml_output
from ssml_converter.core.validator import StructuralWarning


SAMPLES = [
    "",
    "   ",
    "Hello world",
    "```xml\n<speak><p>Hi</p></speak>\n```",
    "```\n<speak>\n<p>Hi</p>\n</speak>\n```",
    "<speak>```xml\n<p>Hi</p>\n```</speak>",
    "<p>No root</p>",
    "<SPEAK><p>x</p></SPEAK>",
    "<speak>< p >spaced< /p ></speak>",
    "<speak><p/><s /><p class='a' /></speak>",
    '<speak><say-as interpret-as="characters">AI</say-as.></speak>',
    '<speak xmlns="http://www.w3.org/2001/10/synthesis" xml:lang="en-US"><p>x</p></speak>',
    "<speak><p>The <emphasis>key idea</p></speak>",
    "<speak></s><p>extra</p></p></speak>",
    "<speak version='1.1'><p>attrs</p></speak>",
    "<speak/>",
    "<speak",
    "```",
    "<<<>>>",
    "</speak>",
    "<speak><break time='1s'>unclosed break</speak>",
]


class TestCodeFences:

    def test_outer_xml_fence_removed(self):
        assert clean_ssml_output("```xml\n<speak><p>Hi</p></speak>\n```") == "<speak><p>Hi</p></speak>"

    def test_outer_plain_fence_removed(self):
        assert clean_ssml_output("```\n<speak><p>Hi</p></speak>\n```") == "<speak><p>Hi</p></speak>"

    def test_fence_inside_root_removed(self):
        assert clean_ssml_output("<speak>```xml\n<p>Hi</p>\n```</speak>") == "<speak><p>Hi</p></speak>"

    def test_fence_with_trailing_period_inside_root(self):
        assert clean_ssml_output("<speak>```xml. <p>Hi</p></speak>") == "<speak><p>Hi</p></speak>"


class TestRootElement:

    def test_missing_root_is_added(self):
        assert clean_ssml_output("<p>Hi</p>") == "<speak><p>Hi</p></speak>"

    def test_plain_text_is_wrapped(self):
        assert clean_ssml_output("Hello world") == "<speak>Hello world</speak>"

    def test_missing_close_only(self):
        assert clean_ssml_output("<speak><p>Hi</p>") == "<speak><p>Hi</p></speak>"

    def test_root_attributes_other_than_namespace_kept(self):
        markup = '<speak version="1.1"><p>Hi</p></speak>'
        assert clean_ssml_output(markup) == markup

    def test_upper_case_root_is_canonicalized(self):
        assert clean_ssml_output("<SPEAK><p>x</p></SPEAK>") == "<speak><p>x</p></speak>"

    @pytest.mark.parametrize("raw", ["", "   \n "])
    def test_empty_input_gives_empty_document(self, raw):
        assert clean_ssml_output(raw) == "<speak></speak>"


class TestTagSyntax:

    def test_whitespace_inside_brackets_collapsed(self):
        assert clean_ssml_output("<speak>< p >Hi< /p ></speak>") == "<speak><p>Hi</p></speak>"

    def test_self_closing_paragraph_and_sentence_expanded(self):
        assert clean_ssml_output("<speak><p/><s /></speak>") == "<speak><p></p><s></s></speak>"

    def test_self_closing_with_attributes_expanded(self):
        assert clean_ssml_output("<speak><p class='a' /></speak>") == "<speak><p class='a'></p></speak>"

    def test_other_self_closing_tags_kept(self):
        markup = "<speak><p>A<break time='500ms'/>B</p></speak>"
        assert clean_ssml_output(markup) == markup

    @pytest.mark.parametrize("closer", ["</say-as.>", "</say-as,>", "</say-as >"])
    def test_malformed_say_as_closer_repaired(self, closer):
        raw = '<speak><say-as interpret-as="characters">AI' + closer + "</speak>"
        assert clean_ssml_output(raw) == '<speak><say-as interpret-as="characters">AI</say-as></speak>'


class TestOwnedAttributes:

    def test_xmlns_and_xml_lang_stripped_everywhere(self):
        raw = (
            '<speak xmlns="http://www.w3.org/2001/10/synthesis" xml:lang="en-US">'
            "<p xml:lang='it'>Ciao</p></speak>"
        )
        assert clean_ssml_output(raw) == "<speak><p>Ciao</p></speak>"

    def test_prefixed_namespace_stripped(self):
        raw = '<speak xmlns:mstts="https://example.com/mstts"><p>x</p></speak>'
        assert clean_ssml_output(raw) == "<speak><p>x</p></speak>"


class TestBalancingStep:

    def test_unterminated_emphasis_closed_before_root(self):
        raw = "<speak><p>The <emphasis>key idea</p></speak>"
        assert clean_ssml_output(raw) == "<speak><p>The <emphasis>key idea</p></emphasis></speak>"

    def test_excess_closer_removed(self):
        assert clean_ssml_output("<speak><p>A</p></p></speak>") == "<speak><p>A</p></speak>"


class TestValidation:

    def test_malformed_result_is_logged_and_returned(self, caplog):
        raw = "<speak><break time='1s'>unclosed break</speak>"
        with caplog.at_level(logging.WARNING, logger="ssml_converter.core.normalizer"):
            result = clean_ssml_output(raw)

        assert result == raw
        assert "not well-formed" in caplog.text

    def test_well_formed_result_logs_nothing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ssml_converter.core.normalizer"):
            clean_ssml_output("<speak><p>Fine</p></speak>")
        assert caplog.records == []

    def test_custom_validator_is_used(self, caplog):
        class _AlwaysWarn:
            def __init__(self):
                self.seen = []

            def validate(self, markup):
                self.seen.append(markup)
                return StructuralWarning("custom complaint")

        validator = _AlwaysWarn()
        normalizer = SSMLNormalizer(validator=validator)
        with caplog.at_level(logging.WARNING, logger="ssml_converter.core.normalizer"):
            result = normalizer.normalize("<p>x</p>")

        assert validator.seen == [result]
        assert "custom complaint" in caplog.text


class TestDocumentGuarantees:

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_result_is_single_rooted_document(self, raw):
        result = clean_ssml_output(raw)
        assert result.startswith("<speak")
        assert result.endswith("</speak>")

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_normalize_is_idempotent(self, raw):
        once = clean_ssml_output(raw)
        assert clean_ssml_output(once) == once

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_no_namespace_or_language_attributes(self, raw):
        result = clean_ssml_output(raw)
        assert "xmlns" not in result
        assert "xml:lang" not in result

    def test_empty_document_property(self):
        assert SSMLNormalizer().empty_document == "<speak></speak>"


class TestCleanupAfterBalancing:
    """Text exposed by removing a stray closer is still cleaned."""

    def test_fence_behind_stray_closer_is_removed(self):
        raw = "<speak></p>\n```xml\n<p>Hi</p></speak>"
        assert clean_ssml_output(raw) == "<speak><p>Hi</p></speak>"

    def test_self_closing_spliced_by_removed_closer_is_expanded(self):
        assert clean_ssml_output("<speak><p</p>/></speak>") == "<speak><p></p></speak>"


_PIECES = [
    "<speak>", "</speak>", "<p>", "</p>", "<s>", "</s>", "<emphasis>",
    "</emphasis>", "<p/>", "<s />", "```xml", "```", "\n", " ", "< ", "/>",
    "<", ">", "text", "</say-as.>", '<say-as interpret-as="x">', ' xmlns="a"',
    " xml:lang='it'",
]


def _random_markup(rng):
    return "".join(rng.choice(_PIECES) for _ in range(rng.randint(1, 6)))


class TestRandomizedIdempotence:
    """normalize() reaches a fixed point on arbitrary tag/fence soup."""

    @pytest.mark.parametrize("seed", range(5))
    def test_normalize_twice_changes_nothing(self, seed):
        rng = random.Random(seed)
        normalizer = SSMLNormalizer()
        for _ in range(300):
            raw = _random_markup(rng)
            once = normalizer.normalize(raw)
            assert normalizer.normalize(once) == once, "not idempotent for {!r}".format(raw)
            assert once.startswith("<speak")
            assert once.endswith("</speak>")
