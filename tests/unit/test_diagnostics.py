"""Unit tests for the diagnostic engine."""

from __future__ import annotations

import pytest

from bui_core.diagnostics import (
    CRITICAL_CODES,
    MESSAGE_CATALOG,
    DiagnosticSink,
    ErrorCode,
    ParseContext,
    Severity,
    WarningCode,
    create_diagnostic,
    create_error,
    create_parse_context,
    create_warning,
    describe,
    diagnostic_stats,
    format_diagnostic,
    group_by_file,
    locate_line_column,
    render_context,
)

SOURCE = "line one\nline two\nline three\nline four\nline five\nline six"


class TestMessageCatalog:
    """Tests for code descriptions."""

    @pytest.mark.parametrize("code", [*ErrorCode, *WarningCode])
    def test_every_code_is_described(self, code: ErrorCode | WarningCode) -> None:
        """Every code has a message, explanation and fix."""
        info = MESSAGE_CATALOG[code.value]
        assert info.message
        assert info.explanation
        assert info.fix

    def test_unknown_error_code_falls_back(self) -> None:
        """Unknown error codes get a generic triple."""
        assert describe("E999").message == "Unknown error"

    def test_unknown_warning_code_falls_back(self) -> None:
        """Unknown warning codes get a generic warning triple."""
        assert describe("W999", Severity.WARNING).message == "Unknown warning"

    def test_critical_codes_are_file_and_system_errors(self) -> None:
        """Critical codes cover file handling and system errors only."""
        assert ErrorCode.FILE_NOT_FOUND.value in CRITICAL_CODES
        assert ErrorCode.INVALID_VERSION.value not in CRITICAL_CODES


class TestParseContext:
    """Tests for ParseContext."""

    def test_at_returns_new_context(self) -> None:
        """at() rebinds the position without touching the original."""
        context = create_parse_context("/p/index.bui", SOURCE)
        moved = context.at(3, 5)

        assert moved.current_line == 3
        assert moved.current_column == 5
        assert context.current_line == 0

    def test_context_is_frozen(self) -> None:
        """ParseContext cannot be mutated."""
        context = create_parse_context("/p/index.bui")
        with pytest.raises(Exception):
            context.current_line = 4  # type: ignore[misc]

    def test_negative_positions_clamp_to_zero(self) -> None:
        """Negative positions are clamped."""
        context = ParseContext(file_path="f").at(-3, -1)
        assert (context.current_line, context.current_column) == (0, 0)


class TestCreateDiagnostic:
    """Tests for create_diagnostic()."""

    def test_position_and_snippet(self) -> None:
        """Line, column and snippet come from the context."""
        context = create_parse_context("/p/index.bui", SOURCE).at(3, 2)
        diagnostic = create_error(ErrorCode.INVALID_VERSION, "bad version", context)

        assert diagnostic.line == 3
        assert diagnostic.column == 2
        assert diagnostic.code == "E003"
        assert diagnostic.file == "/p/index.bui"
        assert "> 3 | line three" in diagnostic.context
        assert "  1 | line one" in diagnostic.context
        assert "line six" not in diagnostic.context

    def test_line_offset_is_applied(self) -> None:
        """Section lines are translated to file lines."""
        context = create_parse_context("/p/a.bui", "\nfirst\nsecond", line_offset=-1).at(3)
        diagnostic = create_error(ErrorCode.INVALID_BPOD_JSON, None, context)

        assert diagnostic.line == 2
        assert "> 2 | second" in diagnostic.context
        assert "0 |" not in diagnostic.context

    def test_catalog_text_is_used_by_default(self) -> None:
        """Missing message and suggestion come from the catalog."""
        context = create_parse_context("/p/index.bui", SOURCE).at(1)
        diagnostic = create_error(ErrorCode.MISSING_COLON, None, context)

        info = MESSAGE_CATALOG["E002"]
        assert diagnostic.message == info.message
        assert diagnostic.suggestion == info.fix
        assert diagnostic.explanation == info.explanation

    def test_unpositioned_context(self) -> None:
        """A context without position yields a file-level diagnostic."""
        diagnostic = create_error(
            ErrorCode.FILE_NOT_FOUND,
            "missing",
            create_parse_context("/p/index.bui"),
        )
        assert (diagnostic.line, diagnostic.column) == (0, 0)
        assert diagnostic.context == ""

    def test_warning_severity(self) -> None:
        """create_warning sets warning severity."""
        diagnostic = create_warning(
            WarningCode.UNKNOWN_BLOCK,
            None,
            create_parse_context("f", SOURCE).at(1),
        )
        assert diagnostic.severity is Severity.WARNING
        assert not diagnostic.is_error

    def test_unknown_code_never_raises(self) -> None:
        """Unknown codes still produce a diagnostic."""
        diagnostic = create_diagnostic("E777", None, create_parse_context("f"))
        assert diagnostic.message == "Unknown error"
        assert diagnostic.code == "E777"


class TestHelpers:
    """Tests for position and rendering helpers."""

    def test_locate_line_column(self) -> None:
        """Indices map to 1-based line and column."""
        assert locate_line_column("ab\ncd", 0) == (1, 1)
        assert locate_line_column("ab\ncd", 4) == (2, 2)

    def test_render_context_out_of_range(self) -> None:
        """Lines outside the content render nothing."""
        assert render_context(SOURCE, 42) == ""
        assert render_context(SOURCE, 0) == ""

    def test_format_diagnostic(self) -> None:
        """Formatted text carries severity, code, location and fix."""
        context = create_parse_context("/p/index.bui", 'version: "2.0.0"').at(1)
        diagnostic = create_error(ErrorCode.INVALID_VERSION, "Invalid version: 2.0.0", context)
        text = format_diagnostic(diagnostic)

        assert text.startswith("error[E003]: Invalid version: 2.0.0")
        assert "--> /p/index.bui:1:1" in text
        assert "fix:" in text

    def test_group_by_file_keeps_order(self) -> None:
        """Diagnostics are grouped per file in first-seen order."""
        first = create_error(ErrorCode.INVALID_SYNTAX, None, create_parse_context("b.bui"))
        second = create_error(ErrorCode.INVALID_SYNTAX, None, create_parse_context("a.bui"))
        third = create_error(ErrorCode.MISSING_COLON, None, create_parse_context("b.bui"))

        grouped = group_by_file([first, second, third])

        assert list(grouped) == ["b.bui", "a.bui"]
        assert grouped["b.bui"] == [first, third]

    def test_diagnostic_stats(self) -> None:
        """Stats count totals and critical errors."""
        context = create_parse_context("index.bui")
        errors = [
            create_error(ErrorCode.FILE_NOT_FOUND, None, context),
            create_error(ErrorCode.INVALID_VERSION, None, context),
        ]
        warnings = [create_warning(WarningCode.BPOD_MISSING_TAGS, None, context)]

        assert diagnostic_stats(errors, warnings) == {
            "total": 3,
            "errors": 2,
            "warnings": 1,
            "critical": 1,
        }


class TestDiagnosticSink:
    """Tests for DiagnosticSink."""

    def test_routes_by_severity(self) -> None:
        """add() routes diagnostics to errors or warnings."""
        context = create_parse_context("index.bui")
        sink = DiagnosticSink()
        sink.add(create_warning(WarningCode.UNKNOWN_BLOCK, None, context))
        sink.error(ErrorCode.MISSING_COLON, None, context)

        assert len(sink.errors) == 1
        assert len(sink.warnings) == 1
        assert sink.has_errors

    def test_lists_are_copies(self) -> None:
        """Mutating a returned list does not affect the sink."""
        sink = DiagnosticSink()
        sink.warning(WarningCode.UNKNOWN_BLOCK, None, create_parse_context("f"))
        sink.warnings.clear()

        assert len(sink.warnings) == 1
        assert not sink.has_errors
