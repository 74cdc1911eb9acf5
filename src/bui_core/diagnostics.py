"""Diagnostic engine for bui-core.

Every problem the compiler finds is reported as a Diagnostic: a coded,
positioned message with an explanation and a suggested fix. This module owns:

- ErrorCode / WarningCode: the stable code taxonomy
- MESSAGE_CATALOG: code -> (message, explanation, fix)
- ParseContext: immutable position context used to place a diagnostic
- create_diagnostic(): the single constructor used by every component
- DiagnosticSink: explicit accumulator threaded through the pipeline
- Formatting helpers for human display (format_diagnostic, group_by_file,
  diagnostic_stats)

Nothing in this module raises for unknown codes or odd positions; the worst
case is a generic message and a diagnostic without a source snippet.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

# Lines shown above and below the offending line in a rendered snippet
CONTEXT_RADIUS = 2


class Severity(str, Enum):
    """Diagnostic severity. Only errors block a successful compilation."""

    ERROR = "error"
    WARNING = "warning"


class ErrorCode(str, Enum):
    """Stable error codes.

    Groups:
        E0xx: parsing and block structure
        E1xx: profile fields
        E2xx: service (b-pod) fields
        E3xx: file handling
        E9xx: system
    """

    UNKNOWN_ERROR = "E000"
    INVALID_SYNTAX = "E001"
    MISSING_COLON = "E002"
    INVALID_VERSION = "E003"
    INVALID_PROFILE_JSON = "E004"
    INVALID_BPOD_JSON = "E005"
    MISSING_BPOD_NAME = "E006"
    DUPLICATE_BPOD_NAME = "E007"
    INVALID_FILES_BLOCK = "E008"
    DUPLICATE_DECLARATION = "E009"

    PROFILE_NAME_REQUIRED = "E101"
    PROFILE_DESCRIPTION_TOO_LONG = "E102"
    INVALID_LOGO_URL = "E103"
    INVALID_WEBSITE_URL = "E104"

    BPOD_NAME_REQUIRED = "E201"
    BPOD_ACCEPTS_EMPTY = "E202"
    BPOD_ACCEPTS_INVALID_FORMAT = "E203"
    BPOD_SUBMIT_INVALID = "E204"
    BPOD_API_URL_INVALID = "E205"
    BPOD_API_METHOD_INVALID = "E206"
    BPOD_API_RESPONSE_TYPE_INVALID = "E207"
    BPOD_API_FILE_PARAMS_EMPTY = "E208"
    BPOD_API_BODY_TEMPLATE_MISSING_WEBHOOK = "E209"
    BPOD_API_BODY_TEMPLATE_INCOMPLETE = "E210"
    BPOD_API_GET_WITH_BODY = "E211"
    BPOD_API_TIMEOUT_INVALID = "E212"
    BPOD_API_RETRIES_OUT_OF_RANGE = "E213"
    INPUT_TYPE_INVALID = "E214"
    INPUT_OPTIONS_REQUIRED = "E215"
    INPUT_VALIDATION_RANGE_INVALID = "E216"
    INPUT_VALIDATION_PATTERN_INVALID = "E217"
    DUPLICATE_INPUT_NAME = "E218"
    MISSING_REQUIRED_FIELD = "E219"
    INVALID_FIELD_TYPE = "E220"
    INVALID_FIELD_VALUE = "E221"
    UNKNOWN_FIELD = "E222"

    FILE_NOT_FOUND = "E301"
    FILE_TOO_LARGE = "E302"
    TOO_MANY_FILES = "E303"
    FILE_READ_ERROR = "E304"
    INVALID_FILE_PATH = "E305"

    TIMEOUT = "E901"


class WarningCode(str, Enum):
    """Stable warning codes. Warnings never block a compilation."""

    CIRCULAR_DEPENDENCY = "W004"
    UNKNOWN_BLOCK = "W005"
    UNEXPECTED_TRAILER = "W006"
    DUPLICATE_DECLARATION = "W007"

    PROFILE_MISSING_LOGO = "W101"
    PROFILE_MISSING_WEBSITE = "W102"
    PROFILE_MISSING_DESCRIPTION = "W103"

    BPOD_MISSING_DESCRIPTION = "W201"
    BPOD_MISSING_TAGS = "W202"
    API_MISSING_HEADERS = "W203"
    API_MISSING_TIMEOUT = "W204"
    API_URL_UNREACHABLE = "W205"


# Codes whose errors concern the project as a whole rather than one block
CRITICAL_CODES = frozenset(
    {
        ErrorCode.UNKNOWN_ERROR.value,
        ErrorCode.FILE_NOT_FOUND.value,
        ErrorCode.FILE_TOO_LARGE.value,
        ErrorCode.TOO_MANY_FILES.value,
        ErrorCode.FILE_READ_ERROR.value,
        ErrorCode.INVALID_FILE_PATH.value,
        ErrorCode.TIMEOUT.value,
    }
)


class MessageInfo(NamedTuple):
    """Human-facing text attached to a diagnostic code."""

    message: str
    explanation: str
    fix: str


MESSAGE_CATALOG: dict[str, MessageInfo] = {
    ErrorCode.UNKNOWN_ERROR.value: MessageInfo(
        "Unexpected compiler error",
        "The compiler hit a condition it did not anticipate.",
        "Check the logs for details and report the input that triggered it.",
    ),
    ErrorCode.INVALID_SYNTAX.value: MessageInfo(
        "Invalid syntax",
        "The block is not allowed here or its structure is not recognised.",
        "Move version and profile declarations to index.bui only.",
    ),
    ErrorCode.MISSING_COLON.value: MessageInfo(
        "Missing colon in declaration",
        "Every block starts with its type followed by a colon.",
        "Each declaration should follow the format: 'type: value'.",
    ),
    ErrorCode.INVALID_VERSION.value: MessageInfo(
        "Invalid version",
        'Only version "1.0.0" of the format is supported.',
        'Use version: "1.0.0".',
    ),
    ErrorCode.INVALID_PROFILE_JSON.value: MessageInfo(
        "Invalid profile JSON",
        "The profile body must be a JSON object with double-quoted keys.",
        "Ensure the profile block contains valid JSON.",
    ),
    ErrorCode.INVALID_BPOD_JSON.value: MessageInfo(
        "Invalid b-pod JSON",
        "The b-pod body must be a JSON object following the quoted name.",
        'Use format: b-pod: "Name" { ... }',
    ),
    ErrorCode.MISSING_BPOD_NAME.value: MessageInfo(
        "B-pod name is required",
        "A b-pod declaration must carry a non-empty quoted name.",
        'Use format: b-pod: "Name" { ... }',
    ),
    ErrorCode.DUPLICATE_BPOD_NAME.value: MessageInfo(
        "Duplicate b-pod name",
        "B-pod names must be unique across every file of the project.",
        "Ensure each b-pod has a unique name.",
    ),
    ErrorCode.INVALID_FILES_BLOCK.value: MessageInfo(
        "Invalid files block",
        "The files block must be a non-empty JSON array of relative paths.",
        'Use format: files: ["pods/convert.bui"]',
    ),
    ErrorCode.DUPLICATE_DECLARATION.value: MessageInfo(
        "Duplicate declaration",
        "This block may only be declared once per project.",
        "Remove the repeated declaration.",
    ),
    ErrorCode.PROFILE_NAME_REQUIRED.value: MessageInfo(
        "Profile name is required",
        "The profile must carry a non-empty name.",
        'Add "name": "Your Company" to the profile.',
    ),
    ErrorCode.PROFILE_DESCRIPTION_TOO_LONG.value: MessageInfo(
        "Profile description is too long",
        "Profile descriptions are limited to 500 characters.",
        "Shorten the description.",
    ),
    ErrorCode.INVALID_LOGO_URL.value: MessageInfo(
        "Invalid logo URL",
        "The logo must be an absolute HTTPS URL.",
        "Use an https:// URL for the logo.",
    ),
    ErrorCode.INVALID_WEBSITE_URL.value: MessageInfo(
        "Invalid website URL",
        "The website must be an absolute HTTPS URL.",
        "Use an https:// URL for the website.",
    ),
    ErrorCode.BPOD_NAME_REQUIRED.value: MessageInfo(
        "B-pod name is required",
        "A b-pod must have a non-empty name.",
        'Use format: b-pod: "Name" { ... }',
    ),
    ErrorCode.BPOD_ACCEPTS_EMPTY.value: MessageInfo(
        "B-pod accepts no file types",
        "At least one accepted file extension is required.",
        'Add "accepts": ["pdf"] to the b-pod.',
    ),
    ErrorCode.BPOD_ACCEPTS_INVALID_FORMAT.value: MessageInfo(
        "Invalid accepted file extension",
        "Extensions are lowercase letters and digits, without a leading dot.",
        'Write extensions as "pdf", not ".PDF".',
    ),
    ErrorCode.BPOD_SUBMIT_INVALID.value: MessageInfo(
        "Invalid submit configuration",
        "The submit object needs a non-empty label and action.",
        'Use "submit": {"label": "Send", "action": "upload"}',
    ),
    ErrorCode.BPOD_API_URL_INVALID.value: MessageInfo(
        "Invalid API URL",
        "The API URL must be an absolute HTTPS URL.",
        "Use an https:// URL for the API.",
    ),
    ErrorCode.BPOD_API_METHOD_INVALID.value: MessageInfo(
        "Invalid HTTP method",
        "Only GET and POST are supported.",
        'Use "method": "POST".',
    ),
    ErrorCode.BPOD_API_RESPONSE_TYPE_INVALID.value: MessageInfo(
        "Invalid response type",
        'The response type must be "file" or "json".',
        'Use "responseType": "file".',
    ),
    ErrorCode.BPOD_API_FILE_PARAMS_EMPTY.value: MessageInfo(
        "No file parameters",
        "At least one file parameter is required.",
        'Add "fileParams": ["file"] to the api object.',
    ),
    ErrorCode.BPOD_API_BODY_TEMPLATE_MISSING_WEBHOOK.value: MessageInfo(
        "Body template is missing {webhook_url}",
        "The service reports results to the webhook URL, so the body must carry it.",
        'Add an entry such as "callback": "{webhook_url}" to bodyTemplate.',
    ),
    ErrorCode.BPOD_API_BODY_TEMPLATE_INCOMPLETE.value: MessageInfo(
        "Body template is incomplete",
        "Every file parameter and {webhook_url} must be referenced by the body template.",
        "Reference each missing placeholder in a bodyTemplate value.",
    ),
    ErrorCode.BPOD_API_GET_WITH_BODY.value: MessageInfo(
        "GET requests cannot have a body template",
        "GET requests carry no body.",
        "Switch the method to POST or remove bodyTemplate.",
    ),
    ErrorCode.BPOD_API_TIMEOUT_INVALID.value: MessageInfo(
        "Invalid API timeout",
        "The timeout must be a positive number of milliseconds.",
        'Use "timeout": 30000.',
    ),
    ErrorCode.BPOD_API_RETRIES_OUT_OF_RANGE.value: MessageInfo(
        "Retries out of range",
        "Retries must be an integer between 0 and 5.",
        'Use "retries": 3.',
    ),
    ErrorCode.INPUT_TYPE_INVALID.value: MessageInfo(
        "Invalid input type",
        "Input types are text, textarea, number, checkbox, radio, dropdown, toggle and hidden.",
        "Pick one of the supported input types.",
    ),
    ErrorCode.INPUT_OPTIONS_REQUIRED.value: MessageInfo(
        "Input options are required",
        "Radio and dropdown inputs need a non-empty options list.",
        'Add "options": ["a", "b"] to the input.',
    ),
    ErrorCode.INPUT_VALIDATION_RANGE_INVALID.value: MessageInfo(
        "Invalid validation range",
        "The minimum cannot be greater than the maximum.",
        "Swap or correct the min and max values.",
    ),
    ErrorCode.INPUT_VALIDATION_PATTERN_INVALID.value: MessageInfo(
        "Invalid validation pattern",
        "The validation pattern is not a valid regular expression.",
        "Fix the regular expression syntax.",
    ),
    ErrorCode.DUPLICATE_INPUT_NAME.value: MessageInfo(
        "Duplicate input name",
        "Input names must be unique within a b-pod.",
        "Rename one of the inputs.",
    ),
    ErrorCode.MISSING_REQUIRED_FIELD.value: MessageInfo(
        "Missing required field",
        "A required field was not provided.",
        "Add the missing field.",
    ),
    ErrorCode.INVALID_FIELD_TYPE.value: MessageInfo(
        "Invalid field type",
        "The field has the wrong JSON type.",
        "Check the expected type of the field.",
    ),
    ErrorCode.INVALID_FIELD_VALUE.value: MessageInfo(
        "Invalid field value",
        "The field value is not allowed.",
        "Check the allowed values of the field.",
    ),
    ErrorCode.UNKNOWN_FIELD.value: MessageInfo(
        "Unknown field",
        "The field is not part of the format.",
        "Remove the field or check its spelling.",
    ),
    ErrorCode.FILE_NOT_FOUND.value: MessageInfo(
        "File not found",
        "The file does not exist at the resolved location.",
        "Check the path relative to index.bui.",
    ),
    ErrorCode.FILE_TOO_LARGE.value: MessageInfo(
        "File too large",
        "The file exceeds the configured maximum file size.",
        "Split the file or raise max_file_size.",
    ),
    ErrorCode.TOO_MANY_FILES.value: MessageInfo(
        "Too many files",
        "The files block lists more files than allowed.",
        "Merge some files or raise max_files.",
    ),
    ErrorCode.FILE_READ_ERROR.value: MessageInfo(
        "File could not be read",
        "The file exists but could not be read as UTF-8 text.",
        "Check the file permissions and encoding.",
    ),
    ErrorCode.INVALID_FILE_PATH.value: MessageInfo(
        "Invalid file path",
        "Included files must be .bui files inside the project directory.",
        "Use a relative path to a .bui file below index.bui.",
    ),
    ErrorCode.TIMEOUT.value: MessageInfo(
        "Operation timed out",
        "An operation did not finish within its time limit.",
        "Retry or raise the timeout.",
    ),
    WarningCode.CIRCULAR_DEPENDENCY.value: MessageInfo(
        "Circular or duplicate dependency",
        "The file is already part of the project and is skipped.",
        "Remove duplicate file references.",
    ),
    WarningCode.UNKNOWN_BLOCK.value: MessageInfo(
        "Unknown block type",
        "Only version, profile, b-pod and files blocks are recognised; the block is ignored.",
        "Check the block keyword for typos.",
    ),
    WarningCode.UNEXPECTED_TRAILER.value: MessageInfo(
        "Unexpected content after block body",
        "Text following the JSON body is ignored.",
        "Remove the trailing text.",
    ),
    WarningCode.DUPLICATE_DECLARATION.value: MessageInfo(
        "Repeated declaration",
        "The block repeats an earlier declaration and is ignored.",
        "Remove the repeated declaration.",
    ),
    WarningCode.PROFILE_MISSING_LOGO.value: MessageInfo(
        "Profile is missing a custom logo",
        "A default logo is used.",
        "Consider adding: Custom logo URL",
    ),
    WarningCode.PROFILE_MISSING_WEBSITE.value: MessageInfo(
        "Profile is missing a website URL",
        "Users cannot follow a link to the publisher.",
        "Consider adding: Website URL",
    ),
    WarningCode.PROFILE_MISSING_DESCRIPTION.value: MessageInfo(
        "Profile is missing a description",
        "The profile is shown without any description.",
        "Consider adding: Description string",
    ),
    WarningCode.BPOD_MISSING_DESCRIPTION.value: MessageInfo(
        "B-pod is missing a description",
        "The b-pod is shown without any description.",
        "Consider adding: Description string",
    ),
    WarningCode.BPOD_MISSING_TAGS.value: MessageInfo(
        "B-pod is missing tags",
        "Tags help users find the b-pod.",
        "Consider adding: Array of tag strings",
    ),
    WarningCode.API_MISSING_HEADERS.value: MessageInfo(
        "API is missing custom headers",
        "Requests are sent with default headers only.",
        "Consider adding: Custom headers object",
    ),
    WarningCode.API_MISSING_TIMEOUT.value: MessageInfo(
        "API is missing timeout configuration",
        "Requests use the runtime default timeout.",
        "Consider adding: Timeout in milliseconds",
    ),
    WarningCode.API_URL_UNREACHABLE.value: MessageInfo(
        "API URL is unreachable",
        "A HEAD request to the API URL failed or returned an error status.",
        "Check that the API is deployed and publicly reachable.",
    ),
}

_UNKNOWN_ERROR_INFO = MessageInfo(
    "Unknown error",
    "No description is registered for this error code.",
    "Check the compiler documentation for this code.",
)
_UNKNOWN_WARNING_INFO = MessageInfo(
    "Unknown warning",
    "No description is registered for this warning code.",
    "Check the compiler documentation for this code.",
)


def code_value(code: ErrorCode | WarningCode | str) -> str:
    """Return the string form ("E003") of a code or enum member."""
    if isinstance(code, Enum):
        return str(code.value)
    return code


def describe(
    code: ErrorCode | WarningCode | str,
    severity: Severity = Severity.ERROR,
) -> MessageInfo:
    """Look up the message triple for a code.

    Unknown codes fall back to a generic triple matching the severity.
    """
    info = MESSAGE_CATALOG.get(code_value(code))
    if info is not None:
        return info
    return _UNKNOWN_WARNING_INFO if severity is Severity.WARNING else _UNKNOWN_ERROR_INFO


class ParseContext(BaseModel):
    """Immutable position context for a diagnostic.

    Attributes:
        file_path: File the scanned content came from.
        content: Text being scanned (a file or a section of the merged buffer).
        line_offset: Added to lines of ``content`` to obtain lines of ``file_path``.
        current_line: 1-based line within ``content``; 0 means no position.
        current_column: 1-based column; 0 means no position.

    Example:
        >>> ctx = ParseContext(file_path="/p/index.bui", content=text)
        >>> ctx.at(12, 3).current_line
        12
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file_path: str = Field(..., description="Originating file path")
    content: str = Field(default="", description="Scanned text")
    line_offset: int = Field(default=0, description="Content line to file line offset")
    current_line: int = Field(default=0, ge=0, description="1-based line in content")
    current_column: int = Field(default=0, ge=0, description="1-based column")

    def at(self, line: int, column: int = 1) -> ParseContext:
        """Return a new context positioned at ``line``/``column``."""
        return self.model_copy(
            update={"current_line": max(line, 0), "current_column": max(column, 0)}
        )


def create_parse_context(file_path: str, content: str = "", line_offset: int = 0) -> ParseContext:
    """Create an unpositioned context for a file."""
    return ParseContext(file_path=file_path, content=content, line_offset=line_offset)


class Diagnostic(BaseModel):
    """A positioned, coded compile-time error or warning.

    Errors and warnings share this schema; only ``severity`` differs.
    ``line``/``column`` are 0 for diagnostics about a file as a whole.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(..., description="What went wrong")
    line: int = Field(default=0, ge=0, description="1-based line in file, 0 if none")
    column: int = Field(default=0, ge=0, description="1-based column, 0 if none")
    severity: Severity = Field(..., description="error or warning")
    code: str = Field(..., description="Stable diagnostic code")
    file: str = Field(..., description="Originating file")
    context: str = Field(default="", description="Rendered source snippet")
    suggestion: str | None = Field(default=None, description="Suggested fix")
    explanation: str | None = Field(default=None, description="Why this is a problem")

    @property
    def is_error(self) -> bool:
        """True for error-severity diagnostics."""
        return self.severity is Severity.ERROR


def locate_line_column(text: str, index: int) -> tuple[int, int]:
    """Convert a character index in ``text`` to a 1-based (line, column)."""
    index = min(max(index, 0), len(text))
    lines = text[:index].split("\n")
    return len(lines), len(lines[-1]) + 1


def render_context(
    content: str,
    line: int,
    line_offset: int = 0,
    radius: int = CONTEXT_RADIUS,
) -> str:
    """Render a window of ``content`` around ``line`` for display.

    Line numbers in the output are file lines (``line + line_offset``); the
    offending line is marked with ``>``.

    Returns:
        The rendered snippet, or an empty string if ``line`` is outside
        ``content``.
    """
    lines = content.split("\n")
    index = line - 1
    if index < 0 or index >= len(lines):
        return ""

    start = max(0, index - radius, -line_offset)
    end = min(len(lines), index + radius + 1)
    width = len(str(end + line_offset))
    rendered: list[str] = []
    for position in range(start, end):
        marker = ">" if position == index else " "
        number = str(position + 1 + line_offset).rjust(width)
        rendered.append(f"{marker} {number} | {lines[position]}")
    return "\n".join(rendered)


def create_diagnostic(
    code: ErrorCode | WarningCode | str,
    message: str | None,
    context: ParseContext,
    severity: Severity = Severity.ERROR,
    suggestion: str | None = None,
) -> Diagnostic:
    """Build a diagnostic positioned by ``context``.

    Args:
        code: Diagnostic code (enum member or raw code string).
        message: Specific message; the catalog message is used when empty.
        context: Position context.
        severity: Error or warning.
        suggestion: Specific fix; the catalog fix is used when omitted.

    Returns:
        The diagnostic. Never raises.
    """
    info = describe(code, severity)

    if context.current_line > 0:
        line = max(1, context.current_line + context.line_offset)
        column = max(1, context.current_column)
        snippet = render_context(context.content, context.current_line, context.line_offset)
    else:
        line = 0
        column = 0
        snippet = ""

    return Diagnostic(
        message=message or info.message,
        line=line,
        column=column,
        severity=severity,
        code=code_value(code),
        file=context.file_path,
        context=snippet,
        suggestion=suggestion or info.fix,
        explanation=info.explanation,
    )


def create_error(
    code: ErrorCode | str,
    message: str | None,
    context: ParseContext,
    suggestion: str | None = None,
) -> Diagnostic:
    """Build an error-severity diagnostic."""
    return create_diagnostic(code, message, context, Severity.ERROR, suggestion)


def create_warning(
    code: WarningCode | str,
    message: str | None,
    context: ParseContext,
    suggestion: str | None = None,
) -> Diagnostic:
    """Build a warning-severity diagnostic."""
    return create_diagnostic(code, message, context, Severity.WARNING, suggestion)


class DiagnosticSink:
    """Accumulates diagnostics for one compilation.

    One sink is created per compilation and passed explicitly to whatever
    needs to report; there is no shared state between compilations.

    Example:
        >>> sink = DiagnosticSink()
        >>> sink.error(ErrorCode.FILE_NOT_FOUND, "Entry file not found", ctx)
        >>> sink.has_errors
        True
    """

    def __init__(self) -> None:
        self._errors: list[Diagnostic] = []
        self._warnings: list[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        """Route a diagnostic to the error or warning list by severity."""
        if diagnostic.is_error:
            self._errors.append(diagnostic)
        else:
            self._warnings.append(diagnostic)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def error(
        self,
        code: ErrorCode | str,
        message: str | None,
        context: ParseContext,
        suggestion: str | None = None,
    ) -> Diagnostic:
        diagnostic = create_error(code, message, context, suggestion)
        self._errors.append(diagnostic)
        return diagnostic

    def warning(
        self,
        code: WarningCode | str,
        message: str | None,
        context: ParseContext,
        suggestion: str | None = None,
    ) -> Diagnostic:
        diagnostic = create_warning(code, message, context, suggestion)
        self._warnings.append(diagnostic)
        return diagnostic

    @property
    def errors(self) -> list[Diagnostic]:
        return list(self._errors)

    @property
    def warnings(self) -> list[Diagnostic]:
        return list(self._warnings)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Format a diagnostic for terminal display.

    Example:
        >>> print(format_diagnostic(d))
        error[E003]: Invalid version: 2.0.0, expected "1.0.0"
          --> /project/index.bui:1:1
        > 1 | version: "2.0.0"
          explanation: Only version "1.0.0" of the format is supported.
          fix: Use version: "1.0.0".
    """
    lines = [f"{diagnostic.severity.value}[{diagnostic.code}]: {diagnostic.message}"]
    location = diagnostic.file
    if diagnostic.line:
        location = f"{location}:{diagnostic.line}:{diagnostic.column}"
    lines.append(f"  --> {location}")
    if diagnostic.context:
        lines.append(diagnostic.context)
    if diagnostic.explanation:
        lines.append(f"  explanation: {diagnostic.explanation}")
    if diagnostic.suggestion:
        lines.append(f"  fix: {diagnostic.suggestion}")
    return "\n".join(lines)


def group_by_file(diagnostics: list[Diagnostic]) -> dict[str, list[Diagnostic]]:
    """Group diagnostics by originating file, keeping first-seen order."""
    grouped: dict[str, list[Diagnostic]] = {}
    for diagnostic in diagnostics:
        grouped.setdefault(diagnostic.file, []).append(diagnostic)
    return grouped


def diagnostic_stats(errors: list[Diagnostic], warnings: list[Diagnostic]) -> dict[str, int]:
    """Summarise diagnostic counts.

    Returns:
        Dict with ``total``, ``errors``, ``warnings`` and ``critical`` counts,
        where critical errors are file-handling and system failures.
    """
    return {
        "total": len(errors) + len(warnings),
        "errors": len(errors),
        "warnings": len(warnings),
        "critical": sum(1 for e in errors if e.code in CRITICAL_CODES),
    }
