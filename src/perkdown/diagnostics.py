from enum import Enum
from typing import Any, Callable, Dict, Optional

from loguru import logger
from pydantic import BaseModel


class DiagnosticKind(str, Enum):
    MISSING_CLOSING_TAG = "MISSING_CLOSING_TAG"


class BlockDiagnostic(BaseModel):
    """A recoverable structural problem found while evaluating a block."""

    kind: DiagnosticKind
    key: str
    value: str
    line: Optional[int] = None  # 1-based line of the BEGIN tag
    depth: int = 0

    @property
    def message(self) -> str:
        if self.kind == DiagnosticKind.MISSING_CLOSING_TAG:
            text = f"Missing closing tag for block: {self.key}:{self.value}"
        else:
            text = f"{self.kind.value} in block: {self.key}:{self.value}"
        if self.line is not None:
            text += f" (opened on line {self.line})"
        return text


DiagnosticObserver = Callable[[BlockDiagnostic], None]


def log_diagnostic(diagnostic: BlockDiagnostic) -> None:
    """Default observer: report the diagnostic as a loguru warning."""
    logger.warning(diagnostic.message)


def emit_diagnostic_event(diagnostic: BlockDiagnostic) -> Dict[str, Any]:
    """
    Emit a structured diagnostic event, e.g. for JSON logs.

    Args:
        diagnostic: The diagnostic reported by the evaluator

    Returns:
        Structured event dictionary ready for logging
    """
    return {
        "kind": diagnostic.kind.value,
        "block": f"{diagnostic.key}:{diagnostic.value}",
        "line": diagnostic.line,
        "depth": diagnostic.depth,
        "message": diagnostic.message,
    }


class DiagnosticCollector:
    """Observer that keeps every diagnostic it receives."""

    def __init__(self, forward: Optional[DiagnosticObserver] = None):
        self.diagnostics = []
        self.forward = forward

    def __call__(self, diagnostic: BlockDiagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if self.forward is not None:
            self.forward(diagnostic)

    def __len__(self) -> int:
        return len(self.diagnostics)
