"""Exception hierarchy for bui-core.

The compiler itself reports problems as diagnostics and never raises for bad
input. Exceptions exist for the few seams where a caller asked for one:

- BuiError: Base exception for all bui-related errors
- FilesBlockError: Raised when a ``files:`` block cannot be decoded
- CompilationError: Raised by ``CompileResult.raise_for_errors()``

User-facing messages are safe to display. Technical details are logged
internally via structlog and never exposed to the user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from bui_core.diagnostics import Diagnostic

logger = structlog.get_logger(__name__)


class BuiError(Exception):
    """Base exception for bui-core.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. Logged
            internally but never exposed to the user.

    Example:
        >>> raise BuiError(
        ...     "Project could not be compiled",
        ...     internal_details="index.bui: unexpected EOF at offset 412",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "bui_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class FilesBlockError(BuiError):
    """Raised when a ``files:`` block is not a non-empty JSON array of paths.

    Example:
        >>> raise FilesBlockError("files must be a JSON array")
    """

    pass


class CompilationError(BuiError):
    """Raised when a caller demands a successful compilation and it failed.

    Attributes:
        diagnostics: The error diagnostics that made the compilation fail.

    Example:
        >>> result = compile_project("project/index.bui")
        >>> result.raise_for_errors()
        Traceback (most recent call last):
        ...
        CompilationError: Compilation failed with 2 error(s)
    """

    def __init__(
        self,
        user_message: str,
        diagnostics: list[Diagnostic],
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.diagnostics = diagnostics
