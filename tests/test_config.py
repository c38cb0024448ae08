"""Tests for configuration resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from openapi_to_protocol_generator.config import (
    DEFAULT_NAMESPACE,
    CLIOptions,
    ConfigError,
    ConfigParseError,
    Configuration,
    OperationNameGenerator,
    load_settings_file,
    resolve_configuration,
)


def test_defaults_without_settings_file() -> None:
    configuration = resolve_configuration(CLIOptions(openapi_path="petstore.yaml"))

    assert configuration.openapi_path == "petstore.yaml"
    assert configuration.namespace == DEFAULT_NAMESPACE
    assert configuration.generate_deprecated_operations is True
    assert configuration.include_tags == []
    assert configuration.split_output is False
    assert configuration.contracts_module == f"{DEFAULT_NAMESPACE}.contracts"


def test_cli_overrides_apply_without_settings_file() -> None:
    configuration = resolve_configuration(
        CLIOptions(
            openapi_path="petstore.yaml",
            overrides={"namespace": "petstore", "include_tags": ["Pets"], "async_methods": True},
        )
    )

    assert configuration.namespace == "petstore"
    assert configuration.include_tags == ["Pets"]
    assert configuration.async_methods is True


def test_settings_file_replaces_cli_overrides_but_keeps_openapi_path(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps({"openapiPath": "ignored.yaml", "namespace": "from_file"}),
        encoding="utf-8",
    )

    configuration = resolve_configuration(
        CLIOptions(
            openapi_path="cli.yaml",
            overrides={"namespace": "from_cli", "multiple_interfaces": True},
        ),
        settings_path,
    )

    assert configuration.openapi_path == "cli.yaml"
    assert configuration.namespace == "from_file"
    assert configuration.multiple_interfaces is False


def test_settings_file_accepts_camel_case_and_yaml(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text(
        "\n".join(
            [
                "includeTags: [Pets]",
                "generate_deprecated_operations: false",
                "operationNameGenerator: path_segments",
            ]
        ),
        encoding="utf-8",
    )

    configuration = load_settings_file(settings_path)

    assert configuration.include_tags == ["Pets"]
    assert configuration.generate_deprecated_operations is False
    assert configuration.operation_name_generator is OperationNameGenerator.PATH_SEGMENTS


def test_contracts_output_folder_forces_split_output(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps({"contractsOutputFolder": "./contracts", "generateMultipleFiles": False}),
        encoding="utf-8",
    )

    configuration = resolve_configuration(CLIOptions(openapi_path="api.yaml"), settings_path)

    assert configuration.generate_multiple_files is True
    assert configuration.split_output is True


def test_blank_contracts_output_folder_keeps_combined_output() -> None:
    configuration = resolve_configuration(
        CLIOptions(openapi_path="api.yaml", overrides={"contracts_output_folder": "  "})
    )

    assert configuration.split_output is False


def test_contracts_namespace_overrides_contracts_module() -> None:
    configuration = Configuration(namespace="api", contracts_namespace="shared.models")

    assert configuration.contracts_module == "shared.models"


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2, 3]", json.dumps({"includeTags": "not-a-list"})],
    ids=["syntax", "non-mapping", "schema"],
)
def test_malformed_settings_file_raises(tmp_path: Path, content: str) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigParseError):
        resolve_configuration(CLIOptions(openapi_path="api.yaml"), settings_path)


def test_missing_settings_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigParseError):
        load_settings_file(tmp_path / "absent.json")


def test_blank_openapi_path_is_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_configuration(CLIOptions(openapi_path="   "))


def test_configuration_is_frozen() -> None:
    configuration = Configuration()

    with pytest.raises(ValidationError):
        configuration.namespace = "other"  # type: ignore[misc]
