"""Compile options for bui-core.

Limits and switches consumed by the compiler. Defaults match what a typical
project needs; every field can be overridden per call or through ``BUI_*``
environment variables.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Reserved extension and entry point name for projects
BUI_EXTENSION = ".bui"
ENTRY_FILE_NAME = "index.bui"

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_MAX_FILES = 100
DEFAULT_URL_TIMEOUT_SECONDS = 5.0

# Environment variable -> CompileOptions field
ENV_OVERRIDES: dict[str, str] = {
    "BUI_MAX_FILE_SIZE": "max_file_size",
    "BUI_MAX_FILES": "max_files",
    "BUI_VALIDATE_URLS": "validate_urls",
    "BUI_URL_TIMEOUT": "url_timeout_seconds",
    "BUI_WITH_METADATA": "with_metadata",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_BOOL_FIELDS = frozenset({"validate_urls", "with_metadata"})


class CompileOptions(BaseModel):
    """Configuration for one compilation.

    Attributes:
        max_file_size: Largest accepted file in bytes (entry and included).
        max_files: Largest number of entries in a ``files:`` block.
        validate_urls: Probe every service API URL after compiling.
        url_timeout_seconds: Per-request timeout of the URL probe.
        with_metadata: Attach build metadata to the result.

    Example:
        >>> options = CompileOptions(max_files=10, with_metadata=True)
        >>> options.max_file_size
        1048576
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_file_size: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        ge=1,
        description="Maximum size of a single file in bytes",
    )
    max_files: int = Field(
        default=DEFAULT_MAX_FILES,
        ge=0,
        description="Maximum number of files listed in a files block",
    )
    validate_urls: bool = Field(
        default=False,
        description="Probe service API URLs for reachability",
    )
    url_timeout_seconds: float = Field(
        default=DEFAULT_URL_TIMEOUT_SECONDS,
        gt=0,
        le=60,
        description="Timeout in seconds for each URL probe",
    )
    with_metadata: bool = Field(
        default=False,
        description="Include build metadata in the compile result",
    )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> CompileOptions:
        """Build options from ``BUI_*`` environment variables.

        Explicit keyword overrides win over the environment.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            **overrides: Field values that take precedence.

        Returns:
            Validated CompileOptions.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        source = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for env_var, field_name in ENV_OVERRIDES.items():
            raw = source.get(env_var)
            if raw is None or raw == "":
                continue
            if field_name in _BOOL_FIELDS:
                values[field_name] = raw.strip().lower() in _TRUE_VALUES
            else:
                values[field_name] = raw
        values.update(overrides)
        return cls.model_validate(values)
