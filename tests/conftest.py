"""Shared pytest fixtures for bui-core tests.

This module provides common fixtures used across unit and integration
tests: structlog configuration, sample profile/service bodies and helpers
that render .bui text and write projects to ``tmp_path``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture.

    This fixture ensures structlog outputs to stdout so that capsys
    can capture the output in tests.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


def _render_bui(
    version: str | None = "1.0.0",
    profile: dict[str, Any] | None = None,
    services: Sequence[tuple[str, dict[str, Any]]] = (),
    files: list[str] | None = None,
) -> str:
    blocks: list[str] = []
    if version is not None:
        blocks.append(f'version: "{version}"')
    if files is not None:
        blocks.append(f"files: {json.dumps(files)}")
    if profile is not None:
        blocks.append(f"profile: {json.dumps(profile, indent=2)}")
    for name, body in services:
        blocks.append(f'b-pod: "{name}" {json.dumps(body, indent=2)}')
    return "\n---\n".join(blocks) + "\n"


@pytest.fixture
def render_bui() -> Callable[..., str]:
    """Return a helper rendering version/files/profile/b-pod blocks as .bui text.

    Arguments: ``version`` (None to omit), ``profile`` dict, ``services`` as
    ``(name, body)`` pairs and ``files`` list.
    """
    return _render_bui


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper writing ``{relative path: content}`` under tmp_path.

    The helper returns the path of ``index.bui``.
    """

    def _write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path / "index.bui"

    return _write


@pytest.fixture
def profile_body() -> dict[str, Any]:
    """Return a profile body that produces no warnings."""
    return {
        "name": "Test Profile",
        "logo": "https://cdn.example.com/logo.png",
        "description": "Document conversion services",
        "website": "https://example.com",
        "contact": "support@example.com",
    }


@pytest.fixture
def service_body() -> dict[str, Any]:
    """Return a service body (without name) that produces no warnings."""
    return {
        "accepts": ["txt", "md"],
        "description": "Convert text documents",
        "tags": ["text", "convert"],
        "inputs": [
            {
                "name": "format",
                "type": "dropdown",
                "label": "Output format",
                "options": ["pdf", "docx"],
                "required": True,
            },
            {
                "name": "pages",
                "type": "number",
                "validation": {"min": 1, "max": 100},
            },
        ],
        "submit": {"label": "Convert", "action": "convert"},
        "api": {
            "url": "https://api.example.com/convert",
            "method": "POST",
            "fileParams": ["file"],
            "bodyTemplate": {"file": "{file}", "callback": "{webhook_url}"},
            "responseType": "file",
            "headers": {"X-Api-Key": "demo"},
            "timeout": 30000,
            "retries": 2,
        },
    }


@pytest.fixture
def minimal_service_body() -> dict[str, Any]:
    """Return the smallest valid service body (without name)."""
    return {
        "accepts": ["txt"],
        "submit": {"label": "Send", "action": "send"},
        "api": {
            "url": "https://api.example.com/send",
            "method": "POST",
            "fileParams": ["file"],
            "bodyTemplate": {"file": "{file}", "webhook": "{webhook_url}"},
            "responseType": "json",
        },
    }
