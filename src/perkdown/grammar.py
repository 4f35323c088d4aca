import re
from typing import List, Optional

from perkdown.config import ParserConfig, get_supported_versions
from perkdown.schema import Namespace, Tag

COMMENT_OPEN = "<!--"

# Whole-line tag: <!-- NAMESPACE:KEY[=VALUE] -->, VALUE never contains -->
TAG_RE = re.compile(
    r"^\s*<!--\s*(?P<namespace>[A-Z_]*):(?P<key>[A-Z_]*)(?:=(?P<value>(?:(?!-->).)*?))?\s*-->\s*$"
)


def parse_tag(line: str) -> Optional[Tag]:
    r"""
    Parse a single line as a perkdown tag.

    Grammar:
    <TagLine>   ::= WS* "<!--" WS* <Namespace> ":" <Key> ("=" <Value>)? WS* "-->" WS*
    <Namespace> ::= [A-Z_]*
    <Key>       ::= [A-Z_]*
    <Value>     ::= any chars except "-->", shortest match, whitespace trimmed

    Args:
        line: One line of the document, without its newline

    Returns:
        The parsed Tag, or None when the line is not a tag. Lines that look
        like tags but do not match the grammar are content, never an error.
    """
    if COMMENT_OPEN not in line:
        return None

    m = TAG_RE.match(line)
    if not m:
        return None

    return Tag(
        namespace=m.group("namespace"),
        key=m.group("key"),
        value=(m.group("value") or "").strip(),
    )


def is_tag_line(line: str) -> bool:
    """Quick check if a line is a perkdown tag."""
    return parse_tag(line) is not None


def split_lines(document: str) -> List[str]:
    """
    Split a document into lines.

    A final newline terminates the last line instead of starting an empty
    one, so every content line is emitted exactly once with its newline.
    """
    lines = document.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def _opt_in_tag(document: str) -> Optional[Tag]:
    first_line = document.split("\n", 1)[0]
    tag = parse_tag(first_line)
    if tag is None:
        return None
    if tag.is_a(Namespace.USE) and tag.key == ParserConfig.DIALECT_ID:
        return tag
    return None


def is_perkdown(document: str) -> bool:
    """True if the first line is the `<!-- USE:PRKMD -->` opt-in tag."""
    return _opt_in_tag(document) is not None


def get_dialect_version(document: str) -> Optional[str]:
    """
    Get the version declared by the opt-in tag.

    Returns None when the document does not opt in, and "" when the tag
    carries no value.
    """
    tag = _opt_in_tag(document)
    return tag.value if tag is not None else None


def is_supported_version(version: Optional[str]) -> bool:
    """An undeclared version means the current one."""
    if not version:
        return True
    return version in get_supported_versions()
