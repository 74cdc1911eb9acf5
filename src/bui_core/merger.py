"""File resolution and merging for multi-file projects.

The entry file (``index.bui``) may list further ``.bui`` files in a
``files:`` block. This module resolves those paths against the entry
directory, enforces the size, count and path-safety limits, and concatenates
everything into one buffer for the parser.

Layout of the merged buffer::

    <entry content, files: block blanked>
    ---FILE:/abs/path/pods/a.bui
    <a.bui content, non b-pod blocks blanked>
    ---FILE:/abs/path/pods/b.bui
    ...

Blanking replaces a block with its newlines only, so every remaining line
keeps its original line number within its file. The parser relies on that to
attribute diagnostics without any source map.

Failures are returned as diagnostics on the MergeResult; nothing raises.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import NamedTuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from bui_core.config import BUI_EXTENSION, CompileOptions
from bui_core.diagnostics import (
    Diagnostic,
    DiagnosticSink,
    ErrorCode,
    WarningCode,
    create_parse_context,
)
from bui_core.segmenter import SEPARATOR, SEPARATOR_PATTERN, BlockKind, classify_block

logger = structlog.get_logger(__name__)

PROVENANCE_PREFIX = "---FILE:"
PROVENANCE_PATTERN = re.compile(r"^---FILE:(.+)$", re.MULTILINE)


class SourceFile(BaseModel):
    """A resolved, size-checked source file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., description="Absolute path")
    size: int = Field(..., ge=0, description="Size in bytes")
    directory: str = Field(..., description="Directory containing the file")


class MergeStats(BaseModel):
    """Totals over the files that made it into the merged buffer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_files: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)
    file_sizes: dict[str, int] = Field(default_factory=dict)


class MergeResult(BaseModel):
    """Outcome of merging a project.

    Attributes:
        merged_content: Concatenated buffer with provenance markers.
        included_files: Absolute paths in merge order, entry first.
        errors: Error diagnostics raised while resolving files.
        warnings: Warning diagnostics (re-included files).
        stats: Size totals of the included files.
        aborted: True when a project-wide failure stopped the merge.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    merged_content: str = ""
    included_files: list[str] = Field(default_factory=list)
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    stats: MergeStats = Field(default_factory=MergeStats)
    aborted: bool = False


class PathCheck(NamedTuple):
    """Result of validate_file_path()."""

    valid: bool
    resolved: Path | None
    reason: str | None


def validate_file_path(path: str, base_dir: Path) -> PathCheck:
    """Resolve ``path`` against ``base_dir`` and check it is safe to include.

    The path must stay inside ``base_dir`` once symlinks and ``..`` segments
    are resolved, and must carry the ``.bui`` extension.

    Example:
        >>> validate_file_path("../secret.bui", Path("/project")).valid
        False
    """
    base = base_dir.resolve()
    resolved = (base / path).resolve()
    if resolved == base or not resolved.is_relative_to(base):
        return PathCheck(False, None, f"Path traversal detected: {path}")
    if Path(path).suffix.lower() != BUI_EXTENSION:
        return PathCheck(False, None, f"Invalid file extension: {path} (expected {BUI_EXTENSION})")
    return PathCheck(True, resolved, None)


def _blank(text: str) -> str:
    return "\n" * text.count("\n")


def _blank_blocks(content: str, keep: Callable[[BlockKind], bool]) -> str:
    parts = SEPARATOR_PATTERN.split(content)
    kept = [
        part if not part.strip() or keep(classify_block(part.strip())) else _blank(part)
        for part in parts
    ]
    return SEPARATOR.join(kept)


def strip_files_block(content: str) -> str:
    """Blank out ``files:`` blocks, keeping line numbers intact."""
    return _blank_blocks(content, lambda kind: kind is not BlockKind.FILES)


def extract_service_blocks(content: str) -> str:
    """Blank out every block that is not a ``b-pod:``, keeping line numbers intact."""
    return _blank_blocks(content, lambda kind: kind is BlockKind.BPOD)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def provenance_marker(path: str) -> str:
    """Marker preceding an included file in the merged buffer."""
    return f"\n{PROVENANCE_PREFIX}{path}\n"


class _Loaded(NamedTuple):
    source: SourceFile
    content: str


def _load(
    path: Path,
    options: CompileOptions,
    sink: DiagnosticSink,
    reporter: str,
) -> _Loaded | None:
    """Stat, size-check and read one file, reporting failures against ``reporter``."""
    context = create_parse_context(reporter)

    if not path.is_file():
        sink.error(ErrorCode.FILE_NOT_FOUND, f"File not found: {path}", context)
        return None

    size = path.stat().st_size
    if size > options.max_file_size:
        sink.error(
            ErrorCode.FILE_TOO_LARGE,
            f"File too large: {path} ({size} bytes, limit {options.max_file_size})",
            context,
        )
        return None

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        sink.error(ErrorCode.FILE_READ_ERROR, f"Failed to read file {path}: {e}", context)
        return None

    source = SourceFile(path=str(path), size=size, directory=str(path.parent))
    return _Loaded(source, normalize_newlines(content))


def merge_files(
    entry_path: Path | str,
    file_list: Sequence[str],
    options: CompileOptions | None = None,
) -> MergeResult:
    """Merge the entry file and the files it lists into one buffer.

    Project-wide failures (entry missing, too large or unreadable, too many
    files, any unsafe path) abort the merge. Problems with a single included
    file only skip that file.

    Args:
        entry_path: Path to ``index.bui``.
        file_list: Paths from the ``files:`` block, relative to the entry.
        options: Limits; defaults apply when omitted.

    Returns:
        MergeResult. Never raises for file-system problems.
    """
    options = options or CompileOptions()
    entry = Path(entry_path).resolve()
    base_dir = entry.parent
    entry_str = str(entry)
    entry_context = create_parse_context(entry_str)
    sink = DiagnosticSink()
    log = logger.bind(entry=entry_str)

    log.debug("merge_started", declared_files=len(file_list))

    def aborted(reason: str) -> MergeResult:
        log.info("merge_aborted", reason=reason, errors=len(sink.errors))
        return MergeResult(errors=sink.errors, warnings=sink.warnings, aborted=True)

    if not entry.is_file():
        sink.error(ErrorCode.FILE_NOT_FOUND, f"Entry file not found: {entry}", entry_context)
        return aborted("entry_not_found")

    entry_size = entry.stat().st_size
    if entry_size > options.max_file_size:
        sink.error(
            ErrorCode.FILE_TOO_LARGE,
            f"Entry file too large: {entry_size} bytes (limit {options.max_file_size})",
            entry_context,
        )
        return aborted("entry_too_large")

    if len(file_list) > options.max_files:
        sink.error(
            ErrorCode.TOO_MANY_FILES,
            f"Too many files: {len(file_list)} (limit {options.max_files})",
            entry_context,
        )
        return aborted("too_many_files")

    resolved: list[tuple[str, Path]] = []
    for declared in file_list:
        check = validate_file_path(declared, base_dir)
        if not check.valid or check.resolved is None:
            sink.error(ErrorCode.INVALID_FILE_PATH, check.reason, entry_context)
        else:
            resolved.append((declared, check.resolved))
    if sink.has_errors:
        return aborted("invalid_file_path")

    loaded_entry = _load(entry, options, sink, entry_str)
    if loaded_entry is None:
        return aborted("entry_unreadable")

    sources = [loaded_entry.source]
    chunks = [strip_files_block(loaded_entry.content)]
    included = {entry_str}

    for declared, path in resolved:
        path_str = str(path)
        if path_str in included:
            sink.warning(
                WarningCode.CIRCULAR_DEPENDENCY,
                f"File already included: {declared}",
                entry_context,
            )
            log.debug("file_skipped", file=path_str, reason="already_included")
            continue

        loaded = _load(path, options, sink, entry_str)
        if loaded is None:
            log.debug("file_skipped", file=path_str, reason="unavailable")
            continue

        included.add(path_str)
        sources.append(loaded.source)
        chunks.append(provenance_marker(path_str) + extract_service_blocks(loaded.content))

    stats = MergeStats(
        total_files=len(sources),
        total_size=sum(source.size for source in sources),
        file_sizes={source.path: source.size for source in sources},
    )
    log.info(
        "merge_completed",
        files=stats.total_files,
        total_size=stats.total_size,
        errors=len(sink.errors),
        warnings=len(sink.warnings),
    )
    return MergeResult(
        merged_content="".join(chunks),
        included_files=[source.path for source in sources],
        errors=sink.errors,
        warnings=sink.warnings,
        stats=stats,
    )
