"""Lexical segmentation of .bui text into blocks.

A .bui buffer is a sequence of blocks separated by lines consisting of
exactly ``---``. Each block starts with a keyword followed by a colon; the
keyword decides the block kind.

Segmentation is a pure function of its input: no lookahead into block
bodies, no I/O.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

SEPARATOR = "---"
SEPARATOR_PATTERN = re.compile(r"^---$", re.MULTILINE)


class BlockKind(str, Enum):
    """Kind of a block, taken from the keyword before its first colon."""

    VERSION = "version"
    PROFILE = "profile"
    BPOD = "b-pod"
    FILES = "files"
    UNKNOWN = "unknown"


_KEYWORDS: dict[str, BlockKind] = {
    kind.value: kind for kind in BlockKind if kind is not BlockKind.UNKNOWN
}


class RawBlock(NamedTuple):
    """A trimmed block and the 1-based line and column it starts at."""

    text: str
    line: int
    column: int = 1


class Block(BaseModel):
    """A classified block of source text.

    Attributes:
        text: Trimmed block text.
        kind: Block kind from the leading keyword.
        line: 1-based line of the first character within the scanned text.
        column: 1-based column of the first character on that line.
        source: File the block originated from.
        has_colon: False when the block has no ``keyword:`` at all.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str = Field(..., min_length=1)
    kind: BlockKind
    line: int = Field(..., ge=1)
    column: int = Field(default=1, ge=1)
    source: str
    has_colon: bool = True

    @property
    def keyword(self) -> str:
        """Text before the first colon (the whole first line if there is none)."""
        head = self.text.split(":", 1)[0] if self.has_colon else self.text
        return head.split("\n", 1)[0].strip()


def split_blocks(text: str) -> list[RawBlock]:
    """Split text on separator lines into trimmed, non-empty blocks.

    Example:
        >>> blocks = split_blocks('version: "1.0.0"\\n---\\n  profile: {}')
        >>> [(block.text, block.line, block.column) for block in blocks]
        [('version: "1.0.0"', 1, 1), ('profile: {}', 3, 3)]
    """
    blocks: list[RawBlock] = []
    start = 0
    for match in SEPARATOR_PATTERN.finditer(text):
        _collect(text, start, match.start(), blocks)
        start = match.end()
    _collect(text, start, len(text), blocks)
    return blocks


def _collect(text: str, start: int, end: int, blocks: list[RawBlock]) -> None:
    raw = text[start:end]
    stripped = raw.strip()
    if not stripped:
        return
    first = start + len(raw) - len(raw.lstrip())
    line = text.count("\n", 0, first) + 1
    column = first - (text.rfind("\n", 0, first) + 1) + 1
    blocks.append(RawBlock(stripped, line, column))


def classify_block(text: str) -> BlockKind:
    """Classify a block by the keyword preceding its first colon."""
    if ":" not in text:
        return BlockKind.UNKNOWN
    keyword = text.split(":", 1)[0].strip()
    return _KEYWORDS.get(keyword, BlockKind.UNKNOWN)


def segment(text: str, source: str) -> list[Block]:
    """Split and classify ``text`` into blocks attributed to ``source``."""
    return [
        Block(
            text=raw.text,
            kind=classify_block(raw.text),
            line=raw.line,
            column=raw.column,
            source=source,
            has_colon=":" in raw.text,
        )
        for raw in split_blocks(text)
    ]
