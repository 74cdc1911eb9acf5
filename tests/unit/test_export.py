"""Unit tests for JSON rendering and schema export."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from bui_core.compiler import compile_source
from bui_core.export import (
    DOCUMENT_SCHEMA_ID,
    SCHEMA_DIALECT,
    export_document_schema,
    load_document,
    render_json,
)
from bui_core.schemas import Document


class TestRenderJson:
    """Tests for render_json()."""

    def test_wire_names(
        self,
        render_bui: Callable[..., str],
        profile_body: dict[str, Any],
        service_body: dict[str, Any],
    ) -> None:
        """Rendered JSON uses the wire field names."""
        result = compile_source(
            render_bui(profile=profile_body, services=[("Convert", service_body)])
        )
        data = json.loads(render_json(result))

        assert data["version"] == "1.0.0"
        assert data["profile"]["name"] == "Test Profile"
        api = data["bPods"][0]["api"]
        assert api["fileParams"] == ["file"]
        assert api["bodyTemplate"]["callback"] == "{webhook_url}"
        assert api["responseType"] == "file"

    def test_unset_fields_omitted(
        self,
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """Optional fields that were not set are left out."""
        result = compile_source(render_bui(services=[("Send", minimal_service_body)]))
        data = json.loads(render_json(result.document))

        assert "profile" not in data
        assert "description" not in data["bPods"][0]
        assert "timeout" not in data["bPods"][0]["api"]

    def test_indent(self) -> None:
        """indent=None renders compact JSON."""
        assert "\n" not in render_json(Document(), indent=None)


class TestLoadDocument:
    """Tests for load_document()."""

    def test_round_trip(
        self,
        render_bui: Callable[..., str],
        profile_body: dict[str, Any],
        service_body: dict[str, Any],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """Rendering then loading reproduces the document."""
        result = compile_source(
            render_bui(
                profile=profile_body,
                services=[("Convert", service_body), ("Send", minimal_service_body)],
            )
        )
        assert result.success

        reloaded = load_document(render_json(result))

        assert reloaded == result.document
        assert reloaded.profile == result.document.profile
        assert reloaded.services == result.document.services

    def test_invalid_json_document(self) -> None:
        """Documents violating the schema are rejected."""
        with pytest.raises(ValidationError):
            load_document('{"version": "2.0.0", "bPods": []}')


class TestExportDocumentSchema:
    """Tests for export_document_schema()."""

    def test_schema_metadata(self) -> None:
        """The schema declares its dialect and id."""
        schema = export_document_schema()

        assert schema["$schema"] == SCHEMA_DIALECT
        assert schema["$id"] == DOCUMENT_SCHEMA_ID
        assert schema["title"] == "Document"
        assert "bPods" in schema["properties"]
        assert schema["additionalProperties"] is False

    def test_writes_file(self, tmp_path: Path) -> None:
        """The schema is written to disk when a path is given."""
        output = tmp_path / "schemas" / "document.schema.json"
        schema = export_document_schema(output)

        assert json.loads(output.read_text()) == schema
