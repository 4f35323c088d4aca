from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from perkdown.config import get_max_depth, get_root_identity


class Namespace(str, Enum):
    """Tag namespaces interpreted by the block evaluator."""

    USE = "USE"
    BEGIN = "BEGIN"
    END = "END"
    META = "META"


class Tag(BaseModel):
    """One parsed `<!-- NAMESPACE:KEY=VALUE -->` annotation."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    key: str
    value: str = ""

    def is_a(self, namespace: Namespace) -> bool:
        return self.namespace == namespace.value


class BlockIdentity(BaseModel):
    """Scope opened by a BEGIN tag, closed only by an END with the same key and value."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str

    @classmethod
    def root(cls) -> "BlockIdentity":
        key, value = get_root_identity()
        return cls(key=key, value=value)

    @property
    def is_root(self) -> bool:
        return (self.key, self.value) == get_root_identity()

    def closed_by(self, tag: Tag) -> bool:
        return (
            tag.is_a(Namespace.END) and tag.key == self.key and tag.value == self.value
        )

    def __str__(self) -> str:
        return f"{self.key}:{self.value}"


class ParserSettings(BaseModel):
    """
    Caller-supplied rendering rules.

    render_blocks maps a block key to the values whose blocks are kept.
    Both a single string and a list of strings are accepted and stored as
    a frozenset, so the render policy only ever sees sets.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    render_blocks: Dict[str, FrozenSet[str]] = Field(
        default_factory=dict, alias="renderBlocks"
    )
    keep_unmatched_end: bool = False
    max_depth: Optional[int] = Field(default_factory=get_max_depth)

    @field_validator("render_blocks", mode="before")
    @classmethod
    def normalize_render_blocks(cls, v):
        """Collapse single values and lists into sets of accepted values."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("render_blocks must be a mapping of block key to value(s)")
        normalized = {}
        for key, values in v.items():
            if isinstance(values, str):
                normalized[key] = frozenset([values])
            elif isinstance(values, (list, tuple, set, frozenset)):
                for item in values:
                    if not isinstance(item, str):
                        raise ValueError(
                            f"render_blocks[{key!r}] values must be strings, got {item!r}"
                        )
                normalized[key] = frozenset(values)
            else:
                raise ValueError(
                    f"render_blocks[{key!r}] must be a string or a list of strings"
                )
        return normalized

    @field_validator("max_depth")
    @classmethod
    def depth_pos(cls, v):
        if v is not None and v < 1:
            raise ValueError("max_depth must be >= 1")
        return v

    def accepted_values(self, key: str) -> FrozenSet[str]:
        return self.render_blocks.get(key, frozenset())


class EvaluatedPerkdown(BaseModel):
    """Public result: the filtered markdown and the merged metadata."""

    markdown: str
    meta: Dict[str, str] = Field(default_factory=dict)


@dataclass
class EvaluatedBlock:
    """Result of evaluating one block."""

    markdown: str
    meta: Dict[str, str]
    errors: bool
    lines: List[str] = field(repr=False)
    next_line: int  # cursor position right after the closing tag

    @property
    def remaining(self) -> str:
        """The unconsumed part of the document, from just after this block."""
        return "\n".join(self.lines[self.next_line :])
