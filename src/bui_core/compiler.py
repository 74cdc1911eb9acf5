"""Compiler class for bui-core.

Drives the pipeline for one project:

    index.bui -> files: block -> merger -> segmenter -> parser -> validator

and folds every diagnostic into a CompileResult. The compiler never raises
for bad input; unexpected failures become an UNKNOWN_ERROR diagnostic.
"""

from __future__ import annotations

import hashlib
import time
from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, computed_field

from bui_core.config import ENTRY_FILE_NAME, CompileOptions
from bui_core.diagnostics import (
    Diagnostic,
    DiagnosticSink,
    ErrorCode,
    create_error,
    create_parse_context,
)
from bui_core.errors import CompilationError, FilesBlockError
from bui_core.merger import merge_files, normalize_newlines
from bui_core.parser import ParseOutcome, parse_files_block, parse_merged_content
from bui_core.probe import probe_service_urls
from bui_core.schemas import Document
from bui_core.segmenter import BlockKind, segment

logger = structlog.get_logger(__name__)

# Package version - kept in sync with pyproject.toml
COMPILER_VERSION = "0.1.0"


class BuildMetadata(BaseModel):
    """Provenance of a compilation.

    Attributes:
        included_files: Files that made it into the build, entry first.
        service_files: Service name to the file declaring it.
        elapsed_ms: Wall-clock compile time in milliseconds.
        total_size: Sum of included file sizes in bytes.
        file_sizes: Size of each included file in bytes.
        compiled_at: Timestamp when compilation occurred (UTC).
        source_hash: SHA-256 of the merged buffer.
        compiler_version: Version of bui-core that compiled the project.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    included_files: list[str] = Field(default_factory=list)
    service_files: dict[str, str] = Field(default_factory=dict)
    elapsed_ms: float = Field(..., ge=0)
    total_size: int = Field(default=0, ge=0)
    file_sizes: dict[str, int] = Field(default_factory=dict)
    compiled_at: datetime = Field(..., description="Timestamp when compilation occurred (UTC)")
    source_hash: str = Field(..., min_length=1, description="SHA-256 of the merged buffer")
    compiler_version: str = Field(default=COMPILER_VERSION, min_length=1)


class CompileResult(BaseModel):
    """Outcome of one compilation.

    ``document`` is always present; it only contains what compiled cleanly.
    ``success`` is True when no error-severity diagnostic was produced.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    document: Document = Field(default_factory=Document)
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    metadata: BuildMetadata | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not any(error.is_error for error in self.errors)

    def raise_for_errors(self) -> CompileResult:
        """Return self, or raise CompilationError if the compilation failed.

        Raises:
            CompilationError: Carrying the error diagnostics.
        """
        if not self.success:
            raise CompilationError(
                f"Compilation failed with {len(self.errors)} error(s)",
                list(self.errors),
            )
        return self


class Compiler:
    """Compile a .bui project into a Document.

    Example:
        >>> compiler = Compiler(CompileOptions(with_metadata=True))
        >>> result = compiler.compile("project/index.bui")
        >>> result.success, len(result.document.services)
        (True, 2)
    """

    def __init__(self, options: CompileOptions | None = None) -> None:
        """Initialize the Compiler.

        Args:
            options: Limits and switches; defaults apply when omitted.
        """
        self.options = options or CompileOptions()

    def compile(self, entry_path: Path | str) -> CompileResult:
        """Compile the project rooted at ``entry_path``.

        Args:
            entry_path: Path to the project's ``index.bui``.

        Returns:
            CompileResult with the document and every diagnostic. Never raises.
        """
        started = time.perf_counter()
        entry = Path(entry_path)
        log = logger.bind(entry=str(entry))
        log.info("compile_started")

        try:
            result = self._compile_project(entry, started)
        except Exception as e:
            log.exception("compile_failed_unexpectedly", error_type=e.__class__.__name__)
            return _unexpected_failure(str(entry), e)

        log.info(
            "compile_completed",
            success=result.success,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

    def compile_source(self, content: str, entry_name: str = ENTRY_FILE_NAME) -> CompileResult:
        """Compile an in-memory buffer as a single-file project.

        ``files:`` blocks need a project directory and are rejected here.

        Args:
            content: Text of an ``index.bui``.
            entry_name: Name used to attribute diagnostics.

        Returns:
            CompileResult. Never raises.
        """
        started = time.perf_counter()
        log = logger.bind(entry=entry_name, source="memory")
        log.info("compile_started")

        try:
            result = self._compile_buffer(normalize_newlines(content), entry_name, started)
        except Exception as e:
            log.exception("compile_failed_unexpectedly", error_type=e.__class__.__name__)
            return _unexpected_failure(entry_name, e)

        log.info(
            "compile_completed",
            success=result.success,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

    def _compile_project(self, entry: Path, started: float) -> CompileResult:
        sink = DiagnosticSink()
        context = create_parse_context(str(entry))

        if not entry.is_file():
            sink.error(ErrorCode.FILE_NOT_FOUND, f"Entry file not found: {entry}", context)
            return CompileResult(errors=sink.errors)
        if entry.name != ENTRY_FILE_NAME:
            sink.error(
                ErrorCode.INVALID_FILE_PATH,
                f"Entry file must be named {ENTRY_FILE_NAME}, got {entry.name}",
                context,
            )
            return CompileResult(errors=sink.errors)

        file_list = self._read_file_list(entry.resolve(), sink)
        if file_list is None:
            return CompileResult(errors=sink.errors, warnings=sink.warnings)

        merged = merge_files(entry, file_list, self.options)
        sink.extend(merged.errors)
        sink.extend(merged.warnings)
        if merged.aborted:
            return CompileResult(errors=sink.errors, warnings=sink.warnings)

        outcome = parse_merged_content(merged.merged_content, merged.included_files)
        metadata = None
        if self.options.with_metadata:
            metadata = BuildMetadata(
                included_files=merged.included_files,
                service_files=outcome.service_files,
                elapsed_ms=_elapsed_ms(started),
                total_size=merged.stats.total_size,
                file_sizes=merged.stats.file_sizes,
                compiled_at=datetime.now(timezone.utc),
                source_hash=_compute_hash(merged.merged_content),
            )
        return self._finish(sink, outcome, metadata)

    def _compile_buffer(self, content: str, entry_name: str, started: float) -> CompileResult:
        sink = DiagnosticSink()
        context = create_parse_context(entry_name, content)

        size = len(content.encode("utf-8"))
        if size > self.options.max_file_size:
            sink.error(
                ErrorCode.FILE_TOO_LARGE,
                f"Source too large: {size} bytes (limit {self.options.max_file_size})",
                context,
            )
            return CompileResult(errors=sink.errors)

        for block in segment(content, entry_name):
            if block.kind is BlockKind.FILES:
                sink.error(
                    ErrorCode.INVALID_SYNTAX,
                    "files block is not supported when compiling a single buffer",
                    context.at(block.line),
                    "Compile the project from disk to include other files.",
                )

        outcome = parse_merged_content(content, [entry_name])
        metadata = None
        if self.options.with_metadata:
            metadata = BuildMetadata(
                included_files=[entry_name],
                service_files=outcome.service_files,
                elapsed_ms=_elapsed_ms(started),
                total_size=size,
                file_sizes={entry_name: size},
                compiled_at=datetime.now(timezone.utc),
                source_hash=_compute_hash(content),
            )
        return self._finish(sink, outcome, metadata)

    def _read_file_list(self, entry: Path, sink: DiagnosticSink) -> list[str] | None:
        """Find and decode the entry's ``files:`` block.

        Returns:
            Declared paths, an empty list when there is no files block, or
            None when the block is malformed (diagnostic recorded). Size and
            read failures are left to the merger, which reports them.
        """
        if entry.stat().st_size > self.options.max_file_size:
            return []
        try:
            content = normalize_newlines(entry.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            return []

        context = create_parse_context(str(entry), content)
        blocks = [block for block in segment(content, str(entry)) if block.kind is BlockKind.FILES]
        if not blocks:
            return []
        if len(blocks) > 1:
            sink.error(
                ErrorCode.INVALID_FILES_BLOCK,
                f"Only one files block is allowed, found {len(blocks)}",
                context.at(blocks[1].line),
            )
            return None

        try:
            return parse_files_block(blocks[0].text)
        except FilesBlockError as e:
            sink.error(ErrorCode.INVALID_FILES_BLOCK, e.user_message, context.at(blocks[0].line))
            return None

    def _finish(
        self,
        sink: DiagnosticSink,
        outcome: ParseOutcome,
        metadata: BuildMetadata | None,
    ) -> CompileResult:
        sink.extend(outcome.errors)
        sink.extend(outcome.warnings)
        if self.options.validate_urls:
            sink.extend(
                probe_service_urls(
                    outcome.document.services,
                    outcome.service_files,
                    self.options.url_timeout_seconds,
                )
            )
        return CompileResult(
            document=outcome.document,
            errors=sink.errors,
            warnings=sink.warnings,
            metadata=metadata,
        )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def _compute_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _unexpected_failure(file_path: str, error: Exception) -> CompileResult:
    diagnostic = create_error(
        ErrorCode.UNKNOWN_ERROR,
        f"Unexpected compiler error ({error.__class__.__name__})",
        create_parse_context(file_path),
    )
    return CompileResult(errors=[diagnostic])


def compile_project(entry_path: Path | str, options: CompileOptions | None = None) -> CompileResult:
    """Compile the project rooted at ``entry_path`` with ``options``."""
    return Compiler(options).compile(entry_path)


def compile_source(
    content: str,
    options: CompileOptions | None = None,
    entry_name: str = ENTRY_FILE_NAME,
) -> CompileResult:
    """Compile an in-memory ``index.bui`` buffer."""
    return Compiler(options).compile_source(content, entry_name)
