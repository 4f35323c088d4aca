"""
Unit tests for perkdown tag recognition and the document opt-in gate.
"""

import pytest
from perkdown.evaluator import evaluate_perkdown
from perkdown.grammar import (
    get_dialect_version,
    is_perkdown,
    is_supported_version,
    is_tag_line,
    parse_tag,
    split_lines,
)


class TestTagParsing:
    """Test cases for the whole-line tag grammar."""

    def test_meta_tag_with_value(self):
        """Test parsing a META tag carrying a value."""
        tag = parse_tag("<!-- META:TITLE=Hi -->")

        assert tag is not None
        assert tag.namespace == "META"
        assert tag.key == "TITLE"
        assert tag.value == "Hi"

    def test_tag_without_value(self):
        """Test that a missing =VALUE yields an empty value."""
        tag = parse_tag("<!-- USE:PRKMD -->")

        assert tag is not None
        assert tag.namespace == "USE"
        assert tag.key == "PRKMD"
        assert tag.value == ""

    def test_empty_value_after_equals(self):
        """Test an explicit but empty value."""
        tag = parse_tag("<!-- BEGIN:SECTION= -->")

        assert tag is not None
        assert tag.key == "SECTION"
        assert tag.value == ""

    def test_value_with_spaces_and_punctuation(self):
        """Test values may contain arbitrary characters."""
        tag = parse_tag("<!-- META:TITLE=Hello, world: a = b! -->")

        assert tag is not None
        assert tag.value == "Hello, world: a = b!"

    def test_value_is_trimmed(self):
        """Test surrounding whitespace of the value is dropped."""
        tag = parse_tag("<!-- META:AUTHOR=   Ada Lovelace   -->")

        assert tag is not None
        assert tag.value == "Ada Lovelace"

    def test_underscores_in_namespace_and_key(self):
        """Test underscores are part of the token alphabet."""
        tag = parse_tag("<!-- BEGIN:LONG_KEY_NAME=x -->")

        assert tag is not None
        assert tag.key == "LONG_KEY_NAME"

    def test_whitespace_handling(self):
        """Test surrounding and inner optional whitespace."""
        tag = parse_tag("   <!--BEGIN:SECTION=A-->   ")

        assert tag is not None
        assert tag.namespace == "BEGIN"
        assert tag.key == "SECTION"
        assert tag.value == "A"

    def test_tabs_and_carriage_return(self):
        """Test tabs and a CRLF leftover around the tag."""
        tag = parse_tag("\t<!-- END:SECTION=A -->\r")

        assert tag is not None
        assert tag.namespace == "END"
        assert tag.value == "A"

    def test_unknown_namespace_is_still_a_tag(self):
        """Test the recognizer does not restrict namespace values."""
        tag = parse_tag("<!-- CUSTOM:THING=1 -->")

        assert tag is not None
        assert tag.namespace == "CUSTOM"

    def test_plain_line(self):
        """Test that lines without the comment marker are not tags."""
        assert parse_tag("This is just regular text") is None
        assert parse_tag("") is None

    def test_is_tag_line_utility(self):
        """Test the boolean helper."""
        assert is_tag_line("<!-- META:A=b -->") is True
        assert is_tag_line("<!-- a regular comment -->") is False
        assert is_tag_line("text") is False


class TestMalformedTags:
    """Lines that look tag-like but do not match the grammar are content."""

    @pytest.mark.parametrize(
        "line",
        [
            "<!-- META:title=Hi -->",
            "<!-- meta:TITLE=Hi -->",
            "<!-- META:TITLEx -->",
            "<!-- META:TITLE=Hi",
            "<!-- META TITLE=Hi -->",
            "META:TITLE=Hi -->",
            "text <!-- META:TITLE=Hi -->",
            "<!-- META:TITLE=Hi --> trailing text",
            "<!-- META:TITLE1=Hi -->",
        ],
    )
    def test_not_a_tag(self, line):
        assert parse_tag(line) is None

    def test_regular_html_comment(self):
        """Test ordinary comments are left alone."""
        assert parse_tag("<!-- TODO: fix this -->") is None

    def test_value_cannot_contain_closing_marker(self):
        """Test the value stops at the first closing marker."""
        line = "<!-- META:K=a --> b -->"

        assert parse_tag(line) is None
        result = evaluate_perkdown(f"<!-- USE:PRKMD -->\n{line}\n", {})
        assert result.markdown == line + "\n"
        assert result.meta == {}


class TestSplitLines:
    """Test line splitting used by the evaluator."""

    def test_trailing_newline_does_not_add_a_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_no_trailing_newline(self):
        assert split_lines("a\nb") == ["a", "b"]

    def test_blank_lines_are_kept(self):
        assert split_lines("a\n\nb\n\n") == ["a", "", "b", ""]

    def test_empty_document(self):
        assert split_lines("") == [""]


class TestDocumentGate:
    """Test cases for the first-line opt-in check."""

    def test_opted_in(self):
        assert is_perkdown("<!-- USE:PRKMD -->\n# Title\n") is True

    def test_opted_in_single_line(self):
        assert is_perkdown("<!-- USE:PRKMD -->") is True

    def test_opted_in_with_version(self):
        assert is_perkdown("<!-- USE:PRKMD=1.0 -->\ntext") is True

    def test_empty_document(self):
        assert is_perkdown("") is False

    def test_plain_markdown(self):
        assert is_perkdown("# Title\n<!-- USE:PRKMD -->\n") is False

    def test_other_dialect(self):
        assert is_perkdown("<!-- USE:OTHER -->\ntext") is False

    def test_wrong_namespace(self):
        assert is_perkdown("<!-- META:PRKMD -->\ntext") is False

    def test_malformed_opt_in(self):
        assert is_perkdown("<!-- USE:prkmd -->\ntext") is False


class TestDialectVersion:
    """Test reading the version declared by the opt-in tag."""

    def test_declared_version(self):
        assert get_dialect_version("<!-- USE:PRKMD=1.0 -->\n") == "1.0"

    def test_undeclared_version(self):
        assert get_dialect_version("<!-- USE:PRKMD -->\n") == ""

    def test_not_opted_in(self):
        assert get_dialect_version("# Title\n") is None

    def test_supported_versions(self):
        assert is_supported_version("1.0") is True
        assert is_supported_version("") is True
        assert is_supported_version(None) is True
        assert is_supported_version("2.0") is False
