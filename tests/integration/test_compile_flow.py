"""Integration tests compiling multi-file projects on disk.

These tests run the whole pipeline (files block, merger, parser,
validator) against real directories under ``tmp_path``.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from bui_core import (
    CompileOptions,
    Compiler,
    compile_project,
    diagnostic_stats,
    format_diagnostic,
    group_by_file,
    load_document,
    render_json,
)

pytestmark = pytest.mark.integration


def _codes(diagnostics: list) -> list[str]:
    return [d.code for d in diagnostics]


class TestExampleProject:
    """The reference single-file example."""

    def test_test_profile_and_service(
        self,
        write_project: Callable[[dict[str, str]], Path],
    ) -> None:
        """Test Profile with one Test Service compiles cleanly."""
        content = (
            'version: "1.0.0"\n'
            "---\n"
            'profile: {"name": "Test Profile"}\n'
            "---\n"
            'b-pod: "Test Service" {\n'
            '  "accepts": ["txt"],\n'
            '  "submit": {"label": "Go", "action": "go"},\n'
            '  "api": {\n'
            '    "url": "https://api.example.com/run",\n'
            '    "method": "POST",\n'
            '    "fileParams": ["file"],\n'
            '    "bodyTemplate": {"file": "{file}", "hook": "{webhook_url}"},\n'
            '    "responseType": "json"\n'
            "  }\n"
            "}\n"
        )
        result = compile_project(write_project({"index.bui": content}))

        assert result.success
        assert result.errors == []
        assert len(result.document.services) == 1
        assert result.document.services[0].name == "Test Service"
        assert result.document.profile is not None
        assert result.document.profile.name == "Test Profile"


class TestMultiFileProject:
    """Projects spread over several files."""

    @pytest.fixture
    def project(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        profile_body: dict[str, Any],
        service_body: dict[str, Any],
        minimal_service_body: dict[str, Any],
    ) -> Path:
        """Write an entry plus two pod files."""
        return write_project(
            {
                "index.bui": render_bui(
                    profile=profile_body,
                    services=[("Convert", service_body)],
                    files=["pods/send.bui", "pods/more/fetch.bui"],
                ),
                "pods/send.bui": render_bui(version=None, services=[("Send", service_body)]),
                "pods/more/fetch.bui": render_bui(
                    version=None,
                    services=[("Fetch", minimal_service_body)],
                ),
            }
        )

    def test_services_in_merge_order(self, project: Path) -> None:
        """Services appear entry first, then files in declared order."""
        result = Compiler(CompileOptions(with_metadata=True)).compile(project)

        assert result.success
        assert [s.name for s in result.document.services] == ["Convert", "Send", "Fetch"]
        assert result.metadata is not None
        assert result.metadata.service_files["Fetch"].endswith("fetch.bui")
        assert len(result.metadata.included_files) == 3

    def test_warnings_attributed_to_files(self, project: Path) -> None:
        """Advisory warnings point at the file and line of their block."""
        result = compile_project(project)

        grouped = group_by_file(result.warnings)
        fetch = str((project.parent / "pods" / "more" / "fetch.bui").resolve())
        assert list(grouped) == [fetch]
        assert {w.line for w in grouped[fetch]} == {1}

    def test_round_trip(self, project: Path) -> None:
        """Rendered JSON re-loads into an equivalent document."""
        result = compile_project(project)
        reloaded = load_document(render_json(result))

        assert reloaded.profile == result.document.profile
        assert reloaded.services == result.document.services


class TestErrorsInIncludedFiles:
    """Diagnostics for problems inside included files."""

    def test_error_line_in_included_file(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """An invalid b-pod deep in an included file is reported at its own line."""
        bad = {**minimal_service_body, "accepts": []}
        pod = (
            'b-pod: "Good" '
            + json.dumps(minimal_service_body)
            + "\n---\n"
            + "theme: ignored\n"
            + "---\n"
            + 'b-pod: "Bad" '
            + json.dumps(bad)
            + "\n"
        )
        entry = write_project(
            {"index.bui": render_bui(files=["pods/a.bui"]), "pods/a.bui": pod}
        )
        result = compile_project(entry)

        pod_path = str((entry.parent / "pods" / "a.bui").resolve())
        assert _codes(result.errors) == ["E202"]
        assert result.errors[0].file == pod_path
        assert result.errors[0].line == 5
        assert '> 5 | b-pod: "Bad"' in result.errors[0].context
        assert [s.name for s in result.document.services] == ["Good"]

    def test_duplicate_names_across_files(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """A name reused in another file is one error; the first wins."""
        entry = write_project(
            {
                "index.bui": render_bui(
                    files=["pods/a.bui"],
                    services=[("Send", minimal_service_body)],
                ),
                "pods/a.bui": render_bui(version=None, services=[("Send", minimal_service_body)]),
            }
        )
        result = compile_project(entry)

        assert _codes(result.errors) == ["E007"]
        assert result.errors[0].file.endswith("a.bui")
        assert len(result.document.services) == 1

    def test_declarations_in_included_file_are_ignored(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """version and profile blocks of included files never reach the document."""
        entry = write_project(
            {
                "index.bui": render_bui(files=["pods/a.bui"]),
                "pods/a.bui": render_bui(
                    version="2.0.0",
                    profile={"name": "Intruder"},
                    services=[("Send", minimal_service_body)],
                ),
            }
        )
        result = compile_project(entry)

        assert result.success
        assert result.document.profile is None
        assert [s.name for s in result.document.services] == ["Send"]

    def test_missing_file_keeps_going(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """A missing included file fails the build but other files still compile."""
        entry = write_project(
            {
                "index.bui": render_bui(files=["pods/missing.bui", "pods/a.bui"]),
                "pods/a.bui": render_bui(version=None, services=[("Send", minimal_service_body)]),
            }
        )
        result = compile_project(entry)

        assert not result.success
        assert _codes(result.errors) == ["E301"]
        assert [s.name for s in result.document.services] == ["Send"]
        assert diagnostic_stats(result.errors, result.warnings)["critical"] == 1


class TestPathSafety:
    """Unsafe files blocks."""

    @pytest.mark.parametrize("path", ["../outside.bui", "pods/notes.txt"])
    def test_unsafe_path_excluded(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
        path: str,
    ) -> None:
        """Traversal and foreign extensions abort with a path error."""
        service = render_bui(version=None, services=[("Leak", minimal_service_body)])
        entry = write_project(
            {
                "project/index.bui": render_bui(files=[path]),
                "outside.bui": service,
                "project/pods/notes.txt": service,
            }
        ).parent / "project" / "index.bui"
        result = Compiler(CompileOptions(with_metadata=True)).compile(entry)

        assert _codes(result.errors) == ["E305"]
        assert result.document.services == []
        assert result.metadata is None
        assert "E305" in format_diagnostic(result.errors[0])

    def test_too_many_files(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
    ) -> None:
        """The file count limit is enforced."""
        entry = write_project({"index.bui": render_bui(files=["a.bui", "b.bui", "c.bui"])})
        result = Compiler(CompileOptions(max_files=2)).compile(entry)

        assert _codes(result.errors) == ["E303"]


class TestReinclusion:
    """Files listed more than once."""

    def test_listed_twice(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """A file listed twice yields one warning and its services once."""
        entry = write_project(
            {
                "index.bui": render_bui(files=["pods/a.bui", "pods/a.bui"]),
                "pods/a.bui": render_bui(version=None, services=[("Send", minimal_service_body)]),
            }
        )
        result = compile_project(entry)

        assert result.success
        assert _codes(result.warnings).count("W004") == 1
        assert [s.name for s in result.document.services] == ["Send"]


class TestApiContract:
    """API body rules checked across the pipeline."""

    def test_get_with_body_rejected(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """GET services cannot carry a body template."""
        body = {**minimal_service_body, "api": {**minimal_service_body["api"], "method": "GET"}}
        result = compile_project(write_project({"index.bui": render_bui(services=[("Get", body)])}))

        assert _codes(result.errors) == ["E211"]
        assert result.document.services == []

    def test_incomplete_template_rejected(
        self,
        write_project: Callable[[dict[str, str]], Path],
        render_bui: Callable[..., str],
        minimal_service_body: dict[str, Any],
    ) -> None:
        """Every file parameter must appear in the body template."""
        api = {**minimal_service_body["api"], "fileParams": ["file", "meta"]}
        body = {**minimal_service_body, "api": api}
        result = compile_project(
            write_project({"index.bui": render_bui(services=[("Send", body)])})
        )

        assert _codes(result.errors) == ["E210"]
        assert "meta" in result.errors[0].message
