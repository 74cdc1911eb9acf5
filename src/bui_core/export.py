"""JSON rendering and JSON Schema export for compiled documents.

Rendered JSON uses the wire field names (``bPods``, ``fileParams``,
``bodyTemplate``, ``responseType``) so it can be re-loaded with
``load_document`` without losing fields.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bui_core.schemas import Document

if TYPE_CHECKING:
    from bui_core.compiler import CompileResult

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"
DOCUMENT_SCHEMA_ID = "https://bui.dev/schemas/document.schema.json"


def render_json(source: CompileResult | Document, indent: int | None = 2) -> str:
    """Render a document (or the document of a compile result) as JSON.

    Args:
        source: Document or CompileResult.
        indent: Indentation passed to the serializer; None for compact output.

    Returns:
        JSON text with wire field names and unset optional fields omitted.

    Example:
        >>> result = compile_project("project/index.bui")
        >>> print(render_json(result))
        {
          "version": "1.0.0",
          ...
    """
    document = source if isinstance(source, Document) else source.document
    return document.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def load_document(text: str | bytes) -> Document:
    """Re-load JSON produced by ``render_json``.

    Raises:
        pydantic.ValidationError: If the JSON does not describe a valid document.
    """
    return Document.model_validate_json(text)


def export_document_schema(
    output_path: Path | str | None = None,
) -> dict[str, Any]:
    """Export the Document JSON Schema (Draft 2020-12).

    Args:
        output_path: Optional path to write the schema file. Parent
            directories are created as needed.

    Returns:
        Dictionary containing the JSON Schema.

    Example:
        >>> schema = export_document_schema()
        >>> schema["$schema"]
        'https://json-schema.org/draft/2020-12/schema'
    """
    schema = Document.model_json_schema(by_alias=True)

    schema["$schema"] = SCHEMA_DIALECT
    schema["$id"] = DOCUMENT_SCHEMA_ID

    if "additionalProperties" not in schema:
        schema["additionalProperties"] = False

    if output_path is not None:
        _write_schema_file(schema, output_path)

    return schema


def _write_schema_file(schema: dict[str, Any], path: Path | str) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(schema, indent=2))
