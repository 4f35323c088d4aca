from typing import Dict, List, Mapping, Optional, Union

from loguru import logger

from perkdown.diagnostics import (
    BlockDiagnostic,
    DiagnosticKind,
    DiagnosticObserver,
    log_diagnostic,
)
from perkdown.errors import NestingDepthError
from perkdown.grammar import (
    get_dialect_version,
    is_perkdown,
    is_supported_version,
    parse_tag,
    split_lines,
)
from perkdown.schema import (
    BlockIdentity,
    EvaluatedBlock,
    EvaluatedPerkdown,
    Namespace,
    ParserSettings,
)

SettingsLike = Union[ParserSettings, Mapping]


class LineCursor:
    """Forward-only position over the lines of one document, shared by all blocks."""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.pos = 0

    @classmethod
    def from_text(cls, text: str) -> "LineCursor":
        return cls(split_lines(text))

    def at_end(self) -> bool:
        return self.pos >= len(self.lines)

    def advance(self) -> str:
        line = self.lines[self.pos]
        self.pos += 1
        return line


def should_render(block: BlockIdentity, settings: ParserSettings) -> bool:
    """Decide whether a block's markdown and metadata reach its parent."""
    if block.is_root:
        return True
    return block.value in settings.accepted_values(block.key)


def evaluate_block(
    cursor: LineCursor,
    settings: ParserSettings,
    block: BlockIdentity,
    depth: int = 0,
    observer: Optional[DiagnosticObserver] = None,
) -> EvaluatedBlock:
    """
    Evaluate one block, consuming lines from the cursor up to and including
    its matching END tag.

    Nested BEGIN tags recurse on the same cursor, so when a child returns
    the cursor already sits after the child's closing tag. A block that
    reaches the end of the document without its END tag keeps what it
    collected, reports a diagnostic and sets the error flag. The root
    block has no closing tag and ends at end-of-input.

    Raises:
        NestingDepthError: if nesting exceeds settings.max_depth
    """
    if observer is None:
        observer = log_diagnostic
    if settings.max_depth is not None and depth > settings.max_depth:
        raise NestingDepthError(settings.max_depth, block.key, block.value)

    # cursor.pos is the line after BEGIN, which is the BEGIN line 1-based
    opened_on = cursor.pos if not block.is_root else None
    body: List[str] = []
    meta: Dict[str, str] = {}
    errors = False

    while True:
        if cursor.at_end():
            if not block.is_root:
                errors = True
                observer(
                    BlockDiagnostic(
                        kind=DiagnosticKind.MISSING_CLOSING_TAG,
                        key=block.key,
                        value=block.value,
                        line=opened_on,
                        depth=depth,
                    )
                )
            break

        line = cursor.advance()
        tag = parse_tag(line)

        if tag is None:
            body.append(line + "\n")
            continue

        if block.closed_by(tag):
            break

        if tag.is_a(Namespace.META):
            meta[tag.key] = tag.value
        elif tag.is_a(Namespace.BEGIN):
            child = BlockIdentity(key=tag.key, value=tag.value)
            logger.debug(f"Entering block {child} at depth {depth + 1}")
            res = evaluate_block(cursor, settings, child, depth + 1, observer)
            body.append(res.markdown)
            meta.update(res.meta)
            if res.errors:
                errors = True
        elif tag.is_a(Namespace.END) and settings.keep_unmatched_end:
            body.append(line + "\n")
        # USE, unknown namespaces and unmatched END tags produce no output

    render = should_render(block, settings)
    if not block.is_root:
        logger.debug(
            f"Closed block {block} ({'rendered' if render else 'excluded'}, errors={errors})"
        )
    return EvaluatedBlock(
        markdown="".join(body) if render else "",
        meta=meta if render else {},
        errors=errors,
        lines=cursor.lines,
        next_line=cursor.pos,
    )


def coerce_settings(settings: Optional[SettingsLike]) -> ParserSettings:
    """Accept a ParserSettings, a plain mapping (camelCase keys allowed) or None."""
    if settings is None:
        return ParserSettings()
    if isinstance(settings, ParserSettings):
        return settings
    return ParserSettings.model_validate(dict(settings))


def evaluate_document(
    document: str,
    settings: SettingsLike,
    observer: Optional[DiagnosticObserver] = None,
) -> EvaluatedBlock:
    """Run the block evaluator over a whole document as the root block."""
    settings = coerce_settings(settings)
    version = get_dialect_version(document)
    if not is_supported_version(version):
        logger.warning(f"Unsupported perkdown version {version!r}, parsing anyway")
    cursor = LineCursor.from_text(document)
    return evaluate_block(cursor, settings, BlockIdentity.root(), observer=observer)


def evaluate_perkdown(
    perkdown: str,
    settings: SettingsLike,
    observer: Optional[DiagnosticObserver] = None,
) -> EvaluatedPerkdown:
    """
    Evaluate a perkdown document, working around structural errors.

    Documents that do not opt in are returned unchanged. Unclosed blocks
    keep their content up to the end of the document. A document nested
    too deeply to evaluate yields empty markdown, never the unfiltered
    text, so excluded blocks cannot leak.
    """
    if not is_perkdown(perkdown):
        return EvaluatedPerkdown(markdown=perkdown, meta={})
    try:
        out = evaluate_document(perkdown, settings, observer)
    except (NestingDepthError, RecursionError) as e:
        logger.warning(f"Cannot evaluate document ({e}), returning empty markdown")
        return EvaluatedPerkdown(markdown="", meta={})
    return EvaluatedPerkdown(markdown=out.markdown, meta=out.meta)


def evaluate_perkdown_strict(
    perkdown: str,
    settings: SettingsLike,
    observer: Optional[DiagnosticObserver] = None,
) -> Optional[EvaluatedPerkdown]:
    """Same as `evaluate_perkdown` but returns None upon any error instead of working around it."""
    if not is_perkdown(perkdown):
        return None
    try:
        out = evaluate_document(perkdown, settings, observer)
    except (NestingDepthError, RecursionError) as e:
        logger.warning(f"Cannot evaluate document ({e})")
        return None
    if out.errors:
        return None
    return EvaluatedPerkdown(markdown=out.markdown, meta=out.meta)
