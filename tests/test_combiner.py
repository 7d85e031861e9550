"""Tests for per-chunk SSML reassembly and the structural validator.

WHY: A multi-chunk conversion is only correct if every chunk's content
lands in the final document exactly once, in source order, under one
<speak> root, no matter how sloppy each individual answer was.

HOW: ChunkCombiner is fed raw answers (fenced, rootless, empty,
unbalanced) and the exact combined document is compared.
combine_fragments() is given out-of-order GeneratedFragments to prove
ordering comes from segment_index.
"""

import pytest

from ssml_converter.core.combiner import (
    ChunkCombiner,
    combine_ssml_chunks,
    extract_root_content,
)
from ssml_converter.core.ir import GeneratedFragment
from ssml_converter.core.normalizer import SSMLNormalizer
from ssml_converter.core.validator import StructuralWarning, XMLStructureValidator
from ssml_converter.errors import ExtractionMiss


class TestCombine:

    def test_no_fragments_gives_empty_document(self):
        assert combine_ssml_chunks([]) == "<speak></speak>"

    def test_two_fragments_joined_with_newline(self):
        result = combine_ssml_chunks(["<speak>A</speak>", "<speak>B</speak>"])
        assert result == "<speak>A\nB</speak>"

    def test_sloppy_fragments_are_cleaned_first(self):
        result = combine_ssml_chunks([
            "```xml\n<speak><p>One</p></speak>\n```",
            "<p>Two</p>",
            "<speak></speak>",
        ])
        assert result == "<speak><p>One</p>\n<p>Two</p></speak>"

    def test_unbalanced_fragment_repaired_in_place(self):
        result = combine_ssml_chunks([
            "<speak><p>One</speak>",
            "<speak><p>Two</p></speak>",
        ])
        assert result == "<speak><p>One</p>\n<p>Two</p></speak>"

    def test_namespace_attributes_dropped(self):
        result = combine_ssml_chunks([
            '<speak xmlns="http://www.w3.org/2001/10/synthesis"><p>One</p></speak>',
            '<speak xml:lang="en-US"><p>Two</p></speak>',
        ])
        assert result == "<speak><p>One</p>\n<p>Two</p></speak>"

    def test_single_root_in_output(self):
        result = combine_ssml_chunks(["<speak>A</speak>"] * 4)
        assert result.count("<speak") == 1
        assert result.count("</speak>") == 1

    def test_fragment_without_extractable_root_counts_as_empty(self):
        class _PassThroughGarbage(SSMLNormalizer):
            def normalize(self, raw):
                if raw == "garbage":
                    return raw
                return super().normalize(raw)

        combiner = ChunkCombiner(_PassThroughGarbage())
        result = combiner.combine(["<speak>A</speak>", "garbage", "<speak>C</speak>"])
        assert result == "<speak>A\nC</speak>"


class TestCombineFragments:

    def test_fragments_ordered_by_segment_index(self):
        fragments = [
            GeneratedFragment(segment_index=2, markup="<speak>third</speak>"),
            GeneratedFragment(segment_index=0, markup="<speak>first</speak>"),
            GeneratedFragment(segment_index=1, markup="<speak>second</speak>"),
        ]
        result = ChunkCombiner().combine_fragments(fragments)
        assert result == "<speak>first\nsecond\nthird</speak>"

    def test_no_fragment_objects(self):
        assert ChunkCombiner().combine_fragments([]) == "<speak></speak>"


class TestExtractRootContent:

    def test_content_is_stripped(self):
        assert extract_root_content("<speak>\n  <p>x</p>\n</speak>") == "<p>x</p>"

    def test_root_with_attributes(self):
        assert extract_root_content("<speak version='1.1'>x</speak>") == "x"

    def test_spans_first_open_to_last_close(self):
        assert extract_root_content("<speak>a</speak><speak>b</speak>") == "a</speak><speak>b"

    def test_missing_root_raises(self):
        with pytest.raises(ExtractionMiss):
            extract_root_content("<p>x</p>")


class TestStructureValidator:

    def test_well_formed_document(self):
        assert XMLStructureValidator().validate("<speak><p>x</p></speak>") is None

    def test_malformed_document_returns_warning(self):
        warning = XMLStructureValidator().validate("<speak><p>x</speak>")
        assert isinstance(warning, StructuralWarning)
        assert warning.line == 1
        assert "line 1" in str(warning)

    def test_warning_without_position(self):
        assert str(StructuralWarning("bad")) == "bad"
