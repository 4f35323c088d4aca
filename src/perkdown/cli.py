import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from perkdown.config import get_log_level
from perkdown.diagnostics import DiagnosticCollector
from perkdown.display import ConsoleDisplay
from perkdown.errors import NestingDepthError, PerkdownError, SettingsError
from perkdown.evaluator import (
    evaluate_document,
    evaluate_perkdown,
    evaluate_perkdown_strict,
)
from perkdown.grammar import get_dialect_version, is_perkdown, parse_tag, split_lines
from perkdown.schema import ParserSettings


def read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def load_settings_file(path: Path) -> Dict:
    """Load a JSON settings file of the form {"renderBlocks": {...}}."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}")
    except json.JSONDecodeError as e:
        raise SettingsError(f"Settings file {path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")
    return data


def parse_block_flags(flags: List[str]) -> Dict[str, List[str]]:
    """Turn repeated --block KEY=VALUE flags into {KEY: [VALUE, ...]}."""
    blocks: Dict[str, List[str]] = {}
    for flag in flags:
        if "=" not in flag:
            raise SettingsError(f"--block expects KEY=VALUE, got {flag!r}")
        key, value = flag.split("=", 1)
        blocks.setdefault(key, []).append(value)
    return blocks


def build_settings(args: argparse.Namespace) -> ParserSettings:
    data: Dict = {}
    if args.settings:
        data = load_settings_file(Path(args.settings))

    if "renderBlocks" in data and "render_blocks" in data:
        raise SettingsError("Settings must use either renderBlocks or render_blocks, not both")
    raw_blocks = data.pop("renderBlocks", None)
    if raw_blocks is None:
        raw_blocks = data.pop("render_blocks", None)
    raw_blocks = raw_blocks or {}
    if not isinstance(raw_blocks, dict):
        raise SettingsError("renderBlocks must be a JSON object")
    render_blocks: Dict[str, List[str]] = {}
    for key, values in raw_blocks.items():
        render_blocks[key] = [values] if isinstance(values, str) else list(values)
    for key, values in parse_block_flags(args.block).items():
        render_blocks.setdefault(key, []).extend(values)

    data["render_blocks"] = render_blocks
    if args.keep_unmatched_end:
        data["keep_unmatched_end"] = True
    if args.max_depth is not None:
        data["max_depth"] = args.max_depth or None

    try:
        return ParserSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}")


def cmd_render(args: argparse.Namespace) -> int:
    text = read_source(args.file)
    settings = build_settings(args)

    if args.strict:
        result = evaluate_perkdown_strict(text, settings)
        if result is None:
            logger.error(f"{args.file}: not a valid perkdown document")
            return 1
    else:
        result = evaluate_perkdown(text, settings)

    sys.stdout.write(result.markdown)
    if args.meta:
        ConsoleDisplay.display_meta(result.meta)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    text = read_source(args.file)
    opted_in = is_perkdown(text)

    tag_counts = Counter()
    for line in split_lines(text):
        tag = parse_tag(line)
        if tag is not None:
            tag_counts[tag.namespace or "<empty>"] += 1

    collector = DiagnosticCollector()
    if opted_in:
        try:
            evaluate_document(text, ParserSettings(), observer=collector)
        except NestingDepthError as e:
            logger.error(str(e))
            return 1

    ConsoleDisplay.display_check(
        args.file, opted_in, get_dialect_version(text), tag_counts, collector.diagnostics
    )
    return 1 if collector.diagnostics else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perkdown", description="Evaluate perkdown annotated Markdown."
    )
    parser.add_argument(
        "--log-level", type=str, default=None, help="loguru level for stderr output"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Print the evaluated markdown")
    render.add_argument("file", type=str, help="Markdown file, or - for stdin")
    render.add_argument(
        "--block",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Render blocks opened with BEGIN:KEY=VALUE (repeatable)",
    )
    render.add_argument("--settings", type=str, help="JSON settings file")
    render.add_argument(
        "--strict", action="store_true", help="Fail instead of working around errors"
    )
    render.add_argument(
        "--meta", action="store_true", help="Show collected metadata on stderr"
    )
    render.add_argument(
        "--keep-unmatched-end",
        action="store_true",
        help="Emit END tags that close no open block as content",
    )
    render.add_argument(
        "--max-depth", type=int, default=None, help="Maximum nesting depth, 0 for none"
    )
    render.set_defaults(func=cmd_render)

    check = subparsers.add_parser("check", help="Report tags and unclosed blocks")
    check.add_argument("file", type=str, help="Markdown file, or - for stdin")
    check.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=(args.log_level or get_log_level()).upper())

    try:
        return args.func(args)
    except (OSError, PerkdownError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
