"""Generator configuration and its resolution from CLI options and settings files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .logs import get_logger

DEFAULT_NAMESPACE = "generated_code"
DEFAULT_OUTPUT_FOLDER = "./generated"
DEFAULT_OUTPUT_PATH = "output.py"

_YAML_SUFFIXES = (".yaml", ".yml")

logger = get_logger(__name__)


class ConfigError(RuntimeError):
    """Raised when the generator configuration is unusable."""


class ConfigParseError(ConfigError):
    """Raised when a persisted settings document cannot be parsed."""


class OperationNameGenerator(str, Enum):
    """Strategies for naming interface methods."""

    DEFAULT = "default"
    OPERATION_ID = "operation_id"
    METHOD_AND_PATH = "method_and_path"
    PATH_SEGMENTS = "path_segments"


class Configuration(BaseModel):
    """Resolved options for one generation run.

    Persisted settings documents may spell keys in snake_case or camelCase.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    openapi_path: str = ""
    namespace: str = DEFAULT_NAMESPACE
    contracts_namespace: Optional[str] = None
    output_folder: str = DEFAULT_OUTPUT_FOLDER
    output_filename: Optional[str] = None
    contracts_output_folder: Optional[str] = None
    generate_multiple_files: bool = False
    multiple_interfaces: bool = False
    interface_name: Optional[str] = None
    include_tags: list[str] = []
    include_path_matches: list[str] = []
    generate_deprecated_operations: bool = True
    operation_name_template: Optional[str] = None
    operation_name_generator: OperationNameGenerator = OperationNameGenerator.DEFAULT
    generate_contracts: bool = True
    generate_clients: bool = True
    add_auto_generated_header: bool = True
    add_accept_headers: bool = True
    generate_operation_headers: bool = True
    optional_parameters: bool = False
    async_methods: bool = False
    generate_docstrings: bool = True
    trim_unused_schema: bool = False
    keep_schema_patterns: list[str] = []
    additional_namespaces: list[str] = []
    exclude_namespaces: list[str] = []
    immutable_records: bool = False
    generate_default_additional_properties: bool = True
    format_with_ruff: bool = False

    @field_validator(
        "include_tags",
        "include_path_matches",
        "keep_schema_patterns",
        "additional_namespaces",
        "exclude_namespaces",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def split_output(self) -> bool:
        """Whether interfaces and contracts are written to separate files."""
        return self.generate_multiple_files or _is_set(self.contracts_output_folder)

    @property
    def contracts_module(self) -> str:
        """Dotted module path that holds the generated contracts."""
        if _is_set(self.contracts_namespace):
            return str(self.contracts_namespace).strip()
        return f"{self.namespace}.contracts"


@dataclass(frozen=True)
class CLIOptions:
    """Options supplied on the command line.

    ``overrides`` only holds options the user actually passed.
    """

    openapi_path: Optional[str]
    overrides: Mapping[str, Any] = field(default_factory=dict)


def resolve_configuration(
    cli_options: CLIOptions,
    settings_path: Optional[Path] = None,
) -> Configuration:
    """Merge CLI options with an optional persisted settings document.

    A settings document replaces the defaults and every CLI override, except the
    API description path, which always comes from the command line. A configured
    contracts output folder forces split output.

    Args:
        cli_options (CLIOptions): Values from the command line.
        settings_path (Optional[Path]): Persisted settings document, if any.

    Returns:
        Configuration: The configuration for this run.
    """
    openapi_path = (cli_options.openapi_path or "").strip()
    if not openapi_path:
        raise ConfigError("An OpenAPI description path or URL is required")

    if settings_path is not None:
        configuration = load_settings_file(settings_path)
        logger.debug("Loaded settings from %s", settings_path)
    else:
        configuration = _from_overrides(cli_options.overrides)

    update: dict[str, Any] = {"openapi_path": openapi_path}
    if _is_set(configuration.contracts_output_folder):
        update["generate_multiple_files"] = True
    return configuration.model_copy(update=update)


def load_settings_file(path: Path) -> Configuration:
    """Parse a JSON or YAML settings document into a configuration."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigParseError(f"Failed to read settings file {path}: {exc}") from exc

    payload: Any
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigParseError(f"Failed to parse settings file {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigParseError(
            f"Settings file {path} must deserialize to a mapping, got {type(payload)!r}"
        )

    try:
        return Configuration.model_validate(payload)
    except ValidationError as exc:
        raise ConfigParseError(f"Invalid settings in {path}: {exc}") from exc


def _from_overrides(overrides: Mapping[str, Any]) -> Configuration:
    try:
        return Configuration.model_validate(dict(overrides))
    except ValidationError as exc:
        raise ConfigError(f"Invalid command line options: {exc}") from exc


def _is_set(value: Optional[str]) -> bool:
    return value is not None and bool(value.strip())
