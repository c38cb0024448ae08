"""Tests for output routing and writing."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from openapi_to_protocol_generator.model_types import CodeKind, GeneratedCode, InvocationContext
from openapi_to_protocol_generator.router import (
    CONTRACTS_FILENAME,
    INTERFACES_FILENAME,
    WriteError,
    format_written_files,
    route,
    write_outputs,
)

from .fixture_helpers import make_configuration

_COMBINED = GeneratedCode(filename="output.py", content="x = 1\n", kind=CodeKind.COMBINED)
_INTERFACES = GeneratedCode(
    filename=INTERFACES_FILENAME, content="i = 1\n", kind=CodeKind.INTERFACES
)
_CONTRACTS = GeneratedCode(filename=CONTRACTS_FILENAME, content="c = 1\n", kind=CodeKind.CONTRACTS)


def _paths(routes: list[tuple[Path, GeneratedCode]]) -> list[Path]:
    return [path for path, _unit in routes]


@pytest.mark.parametrize(
    ("cli_output", "overrides", "expected"),
    [
        ("client.py", {}, Path("client.py")),
        ("output.py", {"output_filename": "api.py"}, Path("api.py")),
        (None, {}, Path("output.py")),
        ("  ", {"output_filename": "api.py"}, Path("api.py")),
        ("client.py", {"output_folder": "src/gen"}, Path("src/gen/client.py")),
        ("client.py", {"output_folder": "./generated"}, Path("client.py")),
    ],
    ids=["cli", "default-cli", "fallback", "blank-cli", "folder", "default-folder"],
)
def test_combined_mode_routes_single_file(
    cli_output: str | None,
    overrides: dict[str, str],
    expected: Path,
) -> None:
    routes = route(
        [_COMBINED],
        make_configuration(**overrides),
        InvocationContext(output_path=cli_output),
    )

    assert _paths(routes) == [expected]


def test_split_mode_treats_cli_output_as_folder() -> None:
    routes = route(
        [_INTERFACES, _CONTRACTS],
        make_configuration(generate_multiple_files=True),
        InvocationContext(output_path="out"),
    )

    assert _paths(routes) == [Path("out/interfaces.py"), Path("out/contracts.py")]


def test_split_mode_without_any_folder_uses_bare_filenames() -> None:
    routes = route(
        [_INTERFACES, _CONTRACTS],
        make_configuration(generate_multiple_files=True),
        InvocationContext(),
    )

    assert _paths(routes) == [Path(INTERFACES_FILENAME), Path(CONTRACTS_FILENAME)]


def test_split_mode_roots_folders_at_settings_file(tmp_path: Path) -> None:
    configuration = make_configuration(
        output_folder="./client",
        contracts_output_folder="./contracts",
    )
    context = InvocationContext(
        output_path="ignored",
        settings_file_path=tmp_path / "settings.json",
    )

    routes = route([_INTERFACES, _CONTRACTS], configuration, context)

    assert _paths(routes) == [
        tmp_path / "client" / INTERFACES_FILENAME,
        tmp_path / "contracts" / CONTRACTS_FILENAME,
    ]


def test_default_contracts_folder_places_contracts_next_to_interfaces() -> None:
    configuration = make_configuration(
        generate_multiple_files=True,
        contracts_output_folder="./generated",
    )

    routes = route([_INTERFACES, _CONTRACTS], configuration, InvocationContext(output_path="out"))

    assert _paths(routes) == [Path("out/interfaces.py"), Path("out/contracts.py")]


def test_write_outputs_creates_directories_and_overwrites(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    target = tmp_path / "nested" / "deeper" / "output.py"
    target.parent.mkdir(parents=True)
    target.write_text("stale content that is longer\n", encoding="utf-8")

    with caplog.at_level(logging.INFO, logger="openapi_to_protocol"):
        written = write_outputs([(target, _COMBINED)])

    assert target.read_text(encoding="utf-8") == "x = 1\n"
    assert written[0].path == target
    assert written[0].length == len(b"x = 1\n")
    assert f"Output: {target.resolve()}" in caplog.text
    assert "Length: 6 bytes" in caplog.text


def test_write_outputs_reports_failing_path(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    target = blocker / "output.py"

    with pytest.raises(WriteError, match="blocker"):
        write_outputs([(target, _COMBINED)])


def test_format_written_files_runs_ruff(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, tuple[str, ...]] = {}

    def _fake_run_ruff(*, args: tuple[str, ...]) -> None:
        captured["args"] = args

    monkeypatch.setattr("openapi_to_protocol_generator.router._run_ruff", _fake_run_ruff)
    target = tmp_path / "output.py"
    written = write_outputs([(target, _COMBINED)])

    format_written_files(written)

    assert captured["args"] == ("format", str(target))
