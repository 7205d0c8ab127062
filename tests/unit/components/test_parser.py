"""
Unit tests for the Markdown document parser, the boundary resolver and the
frontmatter block editor.
"""

import pytest
from mdsurgeon.dom import Section
from mdsurgeon.errors import MdError
from mdsurgeon.ids import section_hash
from mdsurgeon.parser import (
    find_section,
    find_section_at_line,
    get_frontmatter_content,
    parse_document,
    require_section,
    section_content,
    section_end_line,
    serialize_document,
    set_frontmatter,
    starts_with_header,
)

NESTED = "# A\nx\n\n## B\ny\n\n# C"


def titles(doc):
    return [s.title for s in doc.sections]


class TestParseDocument:
    def test_parse_empty(self):
        """Empty input yields no sections and a single empty line."""
        doc = parse_document("")
        assert doc.sections == []
        assert doc.lines == [""]
        assert doc.frontmatter is None

    def test_parse_simple(self):
        doc = parse_document("# Title\nContent here")
        assert len(doc.sections) == 1
        section = doc.sections[0]
        assert section.level == 1
        assert section.title == "Title"
        assert section.line == 1
        assert len(doc.lines) == 2

    def test_parse_all_levels(self):
        doc = parse_document("# H1\n## H2\n### H3\n#### H4\n##### H5\n###### H6")
        assert [s.level for s in doc.sections] == [1, 2, 3, 4, 5, 6]

    def test_no_headers(self):
        doc = parse_document("just\nsome\ntext")
        assert doc.sections == []
        assert len(doc.lines) == 3

    def test_title_is_trimmed(self):
        doc = parse_document("##   Spaced out   ")
        assert doc.sections[0].title == "Spaced out"

    @pytest.mark.parametrize("line", [
        "#NoSpace",
        "####### Seven hashes",
        "#   ",
        "  # Indented",
        "text # not at start",
    ])
    def test_not_a_header(self, line):
        doc = parse_document(f"{line}\n# Real")
        assert titles(doc) == ["Real"]
        assert doc.sections[0].line == 2

    def test_header_ids_follow_occurrence(self):
        doc = parse_document("# Title\n## Title\n# Title")
        assert [s.id for s in doc.sections] == [
            section_hash(1, "Title", 0),
            section_hash(2, "Title", 0),
            section_hash(1, "Title", 1),
        ]
        assert len({s.id for s in doc.sections}) == 3

    def test_duplicate_titles_case_insensitive(self):
        doc = parse_document("# Notes\ntext\n# notes")
        assert doc.sections[1].id == section_hash(1, "notes", 1)
        assert doc.sections[0].id != doc.sections[1].id

    def test_ids_stable_across_unrelated_edits(self):
        before = parse_document("# Log\nentry one\n## Today\n")
        after = parse_document("# Log\nentry one\nentry two\n\n## Today\nmore")
        assert [s.id for s in before.sections] == [s.id for s in after.sections]


class TestCodeFences:
    def test_backtick_fence_hides_headers(self):
        doc = parse_document("# A\n```\n# not a header\n```\n## B")
        assert titles(doc) == ["A", "B"]

    def test_tilde_fence_hides_headers(self):
        doc = parse_document("# A\n~~~\n# nope\n~~~\n# B")
        assert titles(doc) == ["A", "B"]

    def test_fence_with_language(self):
        doc = parse_document("# A\n```python\n# comment\n```\n# B")
        assert titles(doc) == ["A", "B"]

    def test_indented_fence(self):
        doc = parse_document("# A\n  ```\n# inside\n  ```\n# B")
        assert titles(doc) == ["A", "B"]

    def test_unterminated_fence_swallows_rest(self):
        doc = parse_document("# A\n```\n# hidden\n# also hidden")
        assert titles(doc) == ["A"]
        assert doc.sections[0].line_end == 4

    def test_fence_does_not_shift_occurrence(self):
        with_fence = parse_document("# A\n```\n# A\n```\n# A")
        assert with_fence.sections[1].id == section_hash(1, "A", 1)


class TestFrontmatterDetection:
    def test_frontmatter(self):
        doc = parse_document("---\ntitle: Test\nauthor: John\n---\n\n# Title\nContent")
        assert doc.frontmatter == "---\ntitle: Test\nauthor: John\n---"
        assert doc.frontmatter_end_line == 4
        assert doc.sections[0].line == 6

    def test_headers_inside_frontmatter_ignored(self):
        doc = parse_document("---\n# comment: x\n---\n# Real")
        assert titles(doc) == ["Real"]
        assert doc.sections[0].line == 4

    def test_unterminated_frontmatter_is_content(self):
        doc = parse_document("---\ntitle: x\n# Heading\ntext")
        assert doc.frontmatter is None
        assert doc.frontmatter_end_line == 0
        assert titles(doc) == ["Heading"]

    def test_delimiter_with_whitespace(self):
        doc = parse_document("--- \ntitle: x\n ---\n# H")
        assert doc.frontmatter_end_line == 3

    def test_frontmatter_without_headers(self):
        doc = parse_document("---\na: 1\n---\nplain text")
        assert doc.frontmatter is not None
        assert doc.sections == []

    def test_delimiter_later_in_file_is_not_frontmatter(self):
        doc = parse_document("# Title\n---\nkey: v\n---")
        assert doc.frontmatter is None


class TestLineEnd:
    def test_line_end_before_next_header(self):
        doc = parse_document("# First\nContent 1\n\n# Second\nContent 2")
        assert [s.line_end for s in doc.sections] == [3, 5]

    def test_last_section_trims_trailing_blanks(self):
        doc = parse_document("# Title\nContent\n\n\n")
        assert doc.sections[0].line_end == 2

    def test_header_only_last_section(self):
        doc = parse_document("# Only\n\n\n")
        assert doc.sections[0].line_end == 1

    def test_shallow_stops_at_any_level(self):
        doc = parse_document(NESTED)
        assert [s.line_end for s in doc.sections] == [3, 6, 7]


class TestSectionEndLine:
    def test_shallow_is_precomputed_line_end(self):
        doc = parse_document(NESTED)
        a = doc.sections[0]
        assert section_end_line(doc, a, deep=False) == a.line_end == 3

    def test_deep_includes_descendants(self):
        doc = parse_document(NESTED)
        assert section_end_line(doc, doc.sections[0], deep=True) == 6

    def test_deep_stops_at_same_level(self):
        doc = parse_document("# A\n## B\n### C\nz\n## D\ntext")
        b = doc.sections[1]
        assert section_end_line(doc, b, deep=True) == 4

    def test_deep_without_following_peer_trims_eof(self):
        doc = parse_document("# A\nx\n## B\ny\n\n")
        assert section_end_line(doc, doc.sections[0], deep=True) == 4

    def test_deep_leaf_equals_shallow(self):
        doc = parse_document(NESTED)
        b = doc.sections[1]
        assert section_end_line(doc, b, deep=True) == section_end_line(doc, b, deep=False)

    def test_unknown_section_raises(self):
        doc = parse_document(NESTED)
        stranger = Section(id="00000000", level=1, title="X", line=99, line_end=99)
        with pytest.raises(MdError) as exc:
            section_end_line(doc, stranger, deep=True)
        assert exc.value.code == "section_not_found"


class TestSectionContent:
    def test_shallow_content(self):
        doc = parse_document("# First\nContent 1\n\n## Nested\nNested content")
        assert section_content(doc, doc.sections[0], deep=False) == "Content 1\n"

    def test_deep_content(self):
        doc = parse_document(NESTED)
        assert section_content(doc, doc.sections[0], deep=True) == "x\n\n## B\ny\n"

    def test_header_only(self):
        doc = parse_document("# A\n# B")
        assert section_content(doc, doc.sections[0], deep=False) == ""


class TestLookup:
    def test_find_section(self):
        doc = parse_document("# Title\nContent")
        found = find_section(doc, doc.sections[0].id)
        assert found is doc.sections[0]

    def test_find_section_uppercase_id(self):
        doc = parse_document("# Title\nContent")
        assert find_section(doc, doc.sections[0].id.upper()) is doc.sections[0]

    def test_find_section_missing(self):
        assert find_section(parse_document("# Title"), "nonexistent") is None

    def test_require_section_invalid_id(self):
        with pytest.raises(MdError) as exc:
            require_section(parse_document("# Title"), "nope")
        assert exc.value.code == "invalid_id"
        assert exc.value.id == "nope"

    def test_require_section_not_found(self):
        doc = parse_document("# Title")
        missing = "00000000" if doc.sections[0].id != "00000000" else "11111111"
        with pytest.raises(MdError) as exc:
            require_section(doc, missing, file="notes.md")
        assert exc.value.code == "section_not_found"
        assert "notes.md" in exc.value.message

    def test_section_at_line(self):
        doc = parse_document("# First\nContent 1\nContent 2\n\n# Second\nContent 3")
        assert find_section_at_line(doc, 2).title == "First"
        assert find_section_at_line(doc, 5).title == "Second"
        assert find_section_at_line(doc, 6).title == "Second"

    def test_section_at_line_innermost(self):
        doc = parse_document(NESTED)
        assert find_section_at_line(doc, 5).title == "B"

    def test_section_at_line_before_first_header(self):
        doc = parse_document("Some content\n\n# Title")
        assert find_section_at_line(doc, 1) is None

    def test_section_at_line_in_frontmatter(self):
        doc = parse_document("---\ntitle: Test\n---\n\n# Title")
        assert find_section_at_line(doc, 2) is None
        assert find_section_at_line(doc, 5).title == "Title"


class TestSerialize:
    def test_round_trip(self):
        text = "# Title\nContent"
        assert serialize_document(parse_document(text)) == text

    def test_round_trip_with_frontmatter_and_trailing_newline(self):
        text = "---\ntitle: Test\n---\n\n# Title\n"
        assert serialize_document(parse_document(text)) == text


class TestFrontmatterEditor:
    def test_get_content(self):
        doc = parse_document("---\ntitle: Test\nauthor: John\n---\n\n# Title")
        assert get_frontmatter_content(doc) == "title: Test\nauthor: John"

    def test_get_content_without_frontmatter(self):
        assert get_frontmatter_content(parse_document("# Title\nContent")) == ""

    def test_insert_new_block(self):
        doc = parse_document("# Title\nContent")
        updated = set_frontmatter(doc, "title: Test")
        assert updated.frontmatter == "---\ntitle: Test\n---"
        assert updated.frontmatter_end_line == 3
        assert updated.lines == ["---", "title: Test", "---", "", "# Title", "Content"]

    def test_insert_leaves_original_untouched(self):
        doc = parse_document("# Title\nContent")
        set_frontmatter(doc, "title: Test")
        assert doc.lines == ["# Title", "Content"]
        assert doc.frontmatter is None

    def test_section_lines_are_not_adjusted(self):
        doc = parse_document("# Title\nContent")
        updated = set_frontmatter(doc, "title: Test")
        assert updated.sections[0].line == 1
        reparsed = parse_document(serialize_document(updated))
        assert reparsed.sections[0].line == 5

    def test_replace_existing_block(self):
        doc = parse_document("---\ntitle: Old\n---\n\n# Title")
        updated = set_frontmatter(doc, "title: New\nauthor: John")
        assert updated.lines == ["---", "title: New", "author: John", "---", "", "# Title"]
        assert updated.frontmatter_end_line == 4

    def test_yaml_text_is_trimmed(self):
        doc = parse_document("# Title")
        updated = set_frontmatter(doc, "\n  title: x  \n\n")
        assert updated.lines[:3] == ["---", "title: x", "---"]

    def test_remove_block(self):
        doc = parse_document("---\ntitle: Test\n---\n\n# Title")
        updated = set_frontmatter(doc, "")
        assert updated.frontmatter is None
        assert updated.frontmatter_end_line == 0
        assert updated.lines == ["", "# Title"]

    def test_remove_with_whitespace_only(self):
        doc = parse_document("---\ntitle: Test\n---\n# Title")
        assert set_frontmatter(doc, "  \n ").lines == ["# Title"]

    def test_empty_on_document_without_block_is_noop(self):
        doc = parse_document("# Title\nContent")
        assert set_frontmatter(doc, "").lines == doc.lines


class TestStartsWithHeader:
    def test_detects_header(self):
        assert starts_with_header("# Title\nContent") == (1, "Title")

    def test_levels(self):
        assert starts_with_header("## Title") == (2, "Title")
        assert starts_with_header("### Title") == (3, "Title")

    def test_non_header(self):
        assert starts_with_header("Regular content\n# Title") is None

    def test_trims_title(self):
        assert starts_with_header("#   Title   ") == (1, "Title")
