"""
perkdown: conditional blocks and metadata for Markdown.

Documents opt in with a first line of `<!-- USE:PRKMD -->`. BEGIN/END
tags delimit blocks that are kept or dropped according to the caller's
render rules, and META tags attach key/value metadata.
"""

from .config import ParserConfig
from .diagnostics import BlockDiagnostic, DiagnosticCollector, emit_diagnostic_event
from .errors import NestingDepthError, PerkdownError, SettingsError
from .evaluator import (
    evaluate_block,
    evaluate_perkdown,
    evaluate_perkdown_strict,
    should_render,
)
from .grammar import get_dialect_version, is_perkdown, parse_tag
from .schema import (
    BlockIdentity,
    EvaluatedPerkdown,
    Namespace,
    ParserSettings,
    Tag,
)

__version__ = "1.0.0"

SUPPORTED_VERSIONS = ParserConfig.SUPPORTED_VERSIONS

__all__ = [
    "evaluate_perkdown",
    "evaluate_perkdown_strict",
    "is_perkdown",
    "get_dialect_version",
    "parse_tag",
    "evaluate_block",
    "should_render",
    "Tag",
    "Namespace",
    "BlockIdentity",
    "ParserSettings",
    "EvaluatedPerkdown",
    "BlockDiagnostic",
    "DiagnosticCollector",
    "emit_diagnostic_event",
    "PerkdownError",
    "NestingDepthError",
    "SettingsError",
    "SUPPORTED_VERSIONS",
]
