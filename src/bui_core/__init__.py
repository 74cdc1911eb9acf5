"""bui-core: compiler for .bui UI-definition projects.

This package provides:
- Compiler: index.bui (+ included files) -> Document and diagnostics
- Document, Profile, Service: Pydantic models of the compiled output
- Diagnostic: positioned, coded errors and warnings
- JSON rendering and JSON Schema export utilities
"""

from __future__ import annotations

__version__ = "0.1.0"

# Compiler and results
from bui_core.compiler import (
    BuildMetadata,
    CompileResult,
    Compiler,
    compile_project,
    compile_source,
)

# Configuration
from bui_core.config import CompileOptions

# Diagnostics
from bui_core.diagnostics import (
    Diagnostic,
    ErrorCode,
    Severity,
    WarningCode,
    diagnostic_stats,
    format_diagnostic,
    group_by_file,
)

# Error types
from bui_core.errors import BuiError, CompilationError, FilesBlockError

# JSON rendering and schema export
from bui_core.export import export_document_schema, load_document, render_json

# Schema models
from bui_core.schemas import (
    ApiConfig,
    Document,
    Input,
    InputValidation,
    Profile,
    Service,
    Submit,
)

__all__ = [
    "__version__",
    # Compiler
    "Compiler",
    "CompileResult",
    "BuildMetadata",
    "compile_project",
    "compile_source",
    # Configuration
    "CompileOptions",
    # Diagnostics
    "Diagnostic",
    "ErrorCode",
    "WarningCode",
    "Severity",
    "format_diagnostic",
    "group_by_file",
    "diagnostic_stats",
    # Errors
    "BuiError",
    "FilesBlockError",
    "CompilationError",
    # JSON rendering and schema export
    "render_json",
    "load_document",
    "export_document_schema",
    # Schema models
    "Document",
    "Profile",
    "Service",
    "Input",
    "InputValidation",
    "Submit",
    "ApiConfig",
]
