"""Block parser: turns a merged buffer into a Document.

Parsing is a fold over the block list. ``reduce_block`` takes the current
ParserState and one Block and returns the next state plus the diagnostics the
block produced; it never mutates anything. ``parse_merged_content`` drives
the fold section by section, switching ``current_file`` and ``line_offset``
at every provenance marker written by the merger.

Grammar is two-phase: blocks are found line-wise by the segmenter, then each
``profile:`` / ``b-pod:`` body is handed to a strict JSON decoder.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from bui_core.config import ENTRY_FILE_NAME
from bui_core.diagnostics import (
    Diagnostic,
    ErrorCode,
    ParseContext,
    WarningCode,
    create_diagnostic,
    create_error,
    create_parse_context,
    create_warning,
    locate_line_column,
)
from bui_core.errors import FilesBlockError
from bui_core.merger import PROVENANCE_PATTERN
from bui_core.schemas import FORMAT_VERSION, Document, Profile, Service
from bui_core.segmenter import Block, BlockKind, segment
from bui_core.validator import (
    ValidationIssue,
    validate_body_template,
    validate_file_extensions,
    validate_profile,
    validate_service,
)

logger = structlog.get_logger(__name__)

SERVICE_NAME_PATTERN = re.compile(r'^b-pod\s*:\s*"([^"]*)"')

_DECODER = json.JSONDecoder()


class Section(NamedTuple):
    """A slice of the merged buffer belonging to one file."""

    file: str
    text: str
    line_offset: int


@dataclass(frozen=True)
class ParserState:
    """Immutable state threaded through the block fold.

    Attributes:
        entry_file: Path of ``index.bui``; only it may declare version/profile.
        current_file: File the blocks being reduced came from.
        content: Text of the current section, used for source snippets.
        line_offset: Section line to file line offset.
        version: Declared version literal, if any was seen.
        profile: Validated profile, if one was accepted.
        profile_declared: True once a profile block was seen, valid or not.
        services: Accepted services in encounter order.
        service_files: Service name to originating file.
    """

    entry_file: str
    current_file: str
    content: str = ""
    line_offset: int = 0
    version: str | None = None
    profile: Profile | None = None
    profile_declared: bool = False
    services: tuple[Service, ...] = ()
    service_files: dict[str, str] = field(default_factory=dict)

    @property
    def in_entry(self) -> bool:
        return self.current_file == self.entry_file

    def context(self, line: int, column: int = 1) -> ParseContext:
        """Position context for a line of the current section."""
        return create_parse_context(self.current_file, self.content, self.line_offset).at(
            line, column
        )

    def has_service(self, name: str) -> bool:
        return name in self.service_files

    def with_service(self, service: Service) -> ParserState:
        return replace(
            self,
            services=(*self.services, service),
            service_files={**self.service_files, service.name: self.current_file},
        )

    def enter(self, section: Section) -> ParserState:
        return replace(
            self,
            current_file=section.file,
            content=section.text,
            line_offset=section.line_offset,
        )

    def to_document(self) -> Document:
        return Document(version=FORMAT_VERSION, profile=self.profile, services=list(self.services))


class ParseOutcome(BaseModel):
    """Result of parse_merged_content()."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    document: Document
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    service_files: dict[str, str] = Field(default_factory=dict)


def split_sections(content: str, included_files: Sequence[str]) -> list[Section]:
    """Split the merged buffer on provenance markers.

    A marker only counts when the project has more than one file and its path
    is one of ``included_files``. Text after a marker starts with the newline
    that ended the marker line, hence the ``-1`` offset for included files.
    """
    entry = included_files[0] if included_files else ENTRY_FILE_NAME
    if len(included_files) <= 1:
        return [Section(entry, content, 0)]

    known = set(included_files)
    sections: list[Section] = []
    current, start, offset = entry, 0, 0
    for match in PROVENANCE_PATTERN.finditer(content):
        path = match.group(1).strip()
        if path not in known:
            continue
        sections.append(Section(current, content[start : match.start()], offset))
        current, start, offset = path, match.end(), -1
    sections.append(Section(current, content[start:], offset))
    return sections


def parse_merged_content(content: str, included_files: Sequence[str]) -> ParseOutcome:
    """Parse a merged buffer into a Document.

    Args:
        content: Buffer produced by the merger (or a single file's text).
        included_files: Absolute paths in merge order, entry first.

    Returns:
        ParseOutcome with the document and every diagnostic, in block order.
    """
    entry = included_files[0] if included_files else ENTRY_FILE_NAME
    state = ParserState(entry_file=entry, current_file=entry)
    diagnostics: list[Diagnostic] = []

    for section in split_sections(content, included_files):
        state = state.enter(section)
        for block in segment(section.text, section.file):
            state, produced = reduce_block(state, block)
            diagnostics.extend(produced)

    errors = [d for d in diagnostics if d.is_error]
    warnings = [d for d in diagnostics if not d.is_error]
    logger.debug(
        "parse_completed",
        entry=entry,
        services=len(state.services),
        errors=len(errors),
        warnings=len(warnings),
    )
    return ParseOutcome(
        document=state.to_document(),
        errors=errors,
        warnings=warnings,
        service_files=dict(state.service_files),
    )


def reduce_block(state: ParserState, block: Block) -> tuple[ParserState, list[Diagnostic]]:
    """Apply one block to the parser state."""
    if not block.has_colon:
        error = create_error(
            ErrorCode.MISSING_COLON,
            f"Missing colon in declaration: {block.keyword[:40]}",
            state.context(block.line, block.column),
        )
        return state, [error]

    if block.kind is BlockKind.VERSION:
        return _reduce_version(state, block)
    if block.kind is BlockKind.PROFILE:
        return _reduce_profile(state, block)
    if block.kind is BlockKind.BPOD:
        return _reduce_service(state, block)
    if block.kind is BlockKind.FILES:
        # Consumed by the compiler before merging
        return state, []

    warning = create_warning(
        WarningCode.UNKNOWN_BLOCK,
        f"Unknown block type: {block.keyword}",
        state.context(block.line, block.column),
    )
    return state, [warning]


def _misplaced(state: ParserState, block: Block) -> list[Diagnostic]:
    return [
        create_error(
            ErrorCode.INVALID_SYNTAX,
            f"{block.kind.value} declaration is only allowed in {ENTRY_FILE_NAME}",
            state.context(block.line, block.column),
        )
    ]


def parse_version_value(text: str) -> str:
    """Extract the version literal from a ``version:`` block."""
    value = text.split(":", 1)[1].strip()
    return value.strip("\"'").strip()


def _reduce_version(state: ParserState, block: Block) -> tuple[ParserState, list[Diagnostic]]:
    if not state.in_entry:
        return state, _misplaced(state, block)

    context = state.context(block.line, block.column)
    if state.version is not None:
        warning = create_warning(
            WarningCode.DUPLICATE_DECLARATION,
            "Version is already declared; this declaration is ignored",
            context,
        )
        return state, [warning]

    value = parse_version_value(block.text)
    state = replace(state, version=value)
    if value != FORMAT_VERSION:
        error = create_error(
            ErrorCode.INVALID_VERSION,
            f'Invalid version: {value}, expected "{FORMAT_VERSION}"',
            context,
            f'Use version: "{FORMAT_VERSION}"',
        )
        return state, [error]
    return state, []


def _reduce_profile(state: ParserState, block: Block) -> tuple[ParserState, list[Diagnostic]]:
    if not state.in_entry:
        return state, _misplaced(state, block)

    context = state.context(block.line, block.column)
    if state.profile_declared:
        error = create_error(
            ErrorCode.DUPLICATE_DECLARATION,
            "Profile is already declared; only one profile is allowed",
            context,
        )
        return state, [error]

    state = replace(state, profile_declared=True)
    body_start = block.text.index(":") + 1
    data, diagnostics = _decode_body(state, block, body_start, ErrorCode.INVALID_PROFILE_JSON)
    if data is None:
        return state, diagnostics

    result = validate_profile(data)
    diagnostics.extend(_issue_diagnostics(result.issues, context))
    if result.success and result.data is not None:
        state = replace(state, profile=result.data)
    return state, diagnostics


def extract_service_name(text: str) -> tuple[str | None, int]:
    """Return the quoted service name and the index where the body starts.

    The name is None when no quoted literal follows the keyword.
    """
    match = SERVICE_NAME_PATTERN.match(text)
    if match is None:
        return None, text.index(":") + 1
    return match.group(1).strip(), match.end()


def _reduce_service(state: ParserState, block: Block) -> tuple[ParserState, list[Diagnostic]]:
    context = state.context(block.line, block.column)
    name, body_start = extract_service_name(block.text)
    if not name:
        error = create_error(ErrorCode.MISSING_BPOD_NAME, None, context)
        return state, [error]

    if state.has_service(name):
        error = create_error(
            ErrorCode.DUPLICATE_BPOD_NAME,
            f"Duplicate b-pod name: {name}",
            context,
            f"Rename the b-pod; '{name}' is declared in {state.service_files[name]}",
        )
        return state, [error]

    data, diagnostics = _decode_body(state, block, body_start, ErrorCode.INVALID_BPOD_JSON)
    if data is None:
        return state, diagnostics

    result = validate_service({**data, "name": name})
    diagnostics.extend(_issue_diagnostics(result.issues, context))
    if not result.success or result.data is None:
        return state, diagnostics

    service = result.data
    extensions = validate_file_extensions(service.accepts)
    template = validate_body_template(
        service.api.body_template,
        service.api.file_params,
        service.api.method,
    )
    diagnostics.extend(_issue_diagnostics(extensions.issues, context))
    diagnostics.extend(_issue_diagnostics(template.issues, context))
    if not (extensions.success and template.success):
        return state, diagnostics

    return state.with_service(service), diagnostics


def _decode_body(
    state: ParserState,
    block: Block,
    start: int,
    code: ErrorCode,
) -> tuple[dict[str, Any] | None, list[Diagnostic]]:
    """Decode the JSON object starting at ``start`` in the block text.

    JSON errors are positioned at the offending character; text after the
    object yields an UNEXPECTED_TRAILER warning.
    """
    text = block.text
    index = start
    while index < len(text) and text[index].isspace():
        index += 1

    def at(position: int) -> ParseContext:
        line, column = locate_line_column(text, position)
        if line == 1:
            column += block.column - 1
        return state.context(block.line + line - 1, column)

    if index >= len(text):
        missing = create_error(code, "Block body is missing; expected a JSON object", at(start))
        return None, [missing]

    try:
        value, end = _DECODER.raw_decode(text, index)
    except json.JSONDecodeError as e:
        return None, [create_error(code, f"Invalid JSON: {e.msg}", at(e.pos))]

    if not isinstance(value, dict):
        message = f"Block body must be a JSON object, got {type(value).__name__}"
        return None, [create_error(code, message, at(index))]

    diagnostics: list[Diagnostic] = []
    trailer = text[end:].strip()
    if trailer:
        diagnostics.append(
            create_warning(
                WarningCode.UNEXPECTED_TRAILER,
                f"Unexpected content after block body: {trailer[:40]}",
                at(end),
            )
        )
    return value, diagnostics


def _issue_diagnostics(issues: list[ValidationIssue], context: ParseContext) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for issue in issues:
        suggestion = None
        if issue.is_error and issue.expected is not None:
            suggestion = f"Expected: {issue.expected}"
        diagnostics.append(
            create_diagnostic(issue.code, issue.message, context, issue.severity, suggestion)
        )
    return diagnostics


def parse_files_block(text: str) -> list[str]:
    """Parse a ``files:`` block into its list of relative paths.

    Raises:
        FilesBlockError: If the body is not a non-empty JSON array of
            non-empty strings.

    Example:
        >>> parse_files_block('files: ["pods/a.bui", "pods/b.bui"]')
        ['pods/a.bui', 'pods/b.bui']
    """
    body = text.split(":", 1)[1].strip() if ":" in text else ""
    try:
        value = json.loads(body)
    except json.JSONDecodeError as e:
        raise FilesBlockError(
            f"Invalid JSON format for files block: {e.msg}",
            internal_details=f"position={e.pos} body={body[:200]!r}",
        ) from e

    if not isinstance(value, list):
        raise FilesBlockError("files must be a JSON array")
    if not value:
        raise FilesBlockError("files array cannot be empty")
    if not all(isinstance(item, str) and item.strip() for item in value):
        raise FilesBlockError("files array must contain only non-empty strings")
    return [item.strip() for item in value]
