"""Naming helpers for operations, interfaces and Python identifiers."""

from __future__ import annotations

import keyword
import re
from collections.abc import Iterable
from typing import Optional

from .config import ConfigError, Configuration, OperationNameGenerator
from .model_types import JSONObject, OperationSpec

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "patch",
    "head",
    "options",
    "trace",
)

DEFAULT_INTERFACE_NAME = "ApiClient"

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_MULTIPLE_UNDERSCORES_RE = re.compile(r"_+")
_PATH_PARAM_RE = re.compile(r"^\{(?P<name>[^{}]+)\}$")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_WORD_RE = re.compile(r"[0-9a-zA-Z]+")


def sanitize_identifier(raw: str, *, lowercase: bool = True) -> str:
    """Convert arbitrary text into a valid Python identifier."""
    text = raw.lower() if lowercase else raw
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")
    if not text:
        text = "root"
    if text[0].isdigit():
        text = f"x_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def snake_case(raw: str) -> str:
    """Convert camelCase, PascalCase or free text to a snake_case identifier."""
    return sanitize_identifier(_CAMEL_BOUNDARY_RE.sub("_", raw))


def class_name(raw: str) -> str:
    """Convert a name to a PascalCase class name, keeping inner capitals."""
    words = _WORD_RE.findall(_CAMEL_BOUNDARY_RE.sub(" ", raw))
    name = "".join(word[0].upper() + word[1:] for word in words)
    if not name:
        return "Model"
    if name[0].isdigit():
        name = f"X{name}"
    return name


def tag_suffix(tag: str) -> str:
    """Capitalize each word of a tag and strip non-alphanumeric characters."""
    return "".join(word[0].upper() + word[1:] for word in _WORD_RE.findall(tag))


def path_to_endpoint_name(path: str) -> str:
    """Create an identifier from path segments, using ``by_<param>`` for templates."""
    segments = [segment for segment in path.split("/") if segment]
    normalized_segments: list[str] = []
    for segment in segments:
        match = _PATH_PARAM_RE.match(segment)
        if match:
            param_name = snake_case(match.group("name"))
            normalized_segments.append(f"by_{param_name}")
            continue
        normalized_segments.append(snake_case(segment))

    endpoint_name = "_".join(segment for segment in normalized_segments if segment)
    endpoint_name = endpoint_name or "root"
    if endpoint_name[0].isdigit():
        endpoint_name = f"x_{endpoint_name}"
    return endpoint_name


def interface_base_name(configuration: Configuration, document: JSONObject) -> str:
    """Return the configured interface name, else one derived from the API title."""
    if configuration.interface_name and configuration.interface_name.strip():
        return class_name(configuration.interface_name)
    info = document.get("info")
    if isinstance(info, dict):
        title = info.get("title")
        if isinstance(title, str) and _WORD_RE.search(title):
            return class_name(title)
    return DEFAULT_INTERFACE_NAME


def collect_operations(document: JSONObject) -> list[OperationSpec]:
    """Extract operations in document order: paths first, then their methods."""
    raw_paths = document.get("paths")
    if not isinstance(raw_paths, dict):
        return []

    operations: list[OperationSpec] = []
    for path, path_item in raw_paths.items():
        if not isinstance(path, str) or not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            operations.append(
                OperationSpec(
                    path=path,
                    method=method,
                    operation_id=_normalize_operation_id(operation.get("operationId")),
                    tags=_string_tuple(operation.get("tags")),
                    deprecated=operation.get("deprecated") is True,
                    operation=operation,
                    path_item=path_item,
                )
            )
    return operations


def default_method_name(operation: OperationSpec) -> str:
    """Translator naming: snake-cased operationId, else verb plus path segments."""
    if operation.operation_id is not None:
        return snake_case(operation.operation_id)
    return f"{operation.method}_{path_to_endpoint_name(operation.path)}"


def custom_method_name(
    operation: OperationSpec,
    configuration: Configuration,
) -> Optional[str]:
    """Return the method name a template or naming strategy dictates, if configured.

    Template placeholders are ``{operation_id}``, ``{verb}`` and ``{path}``.
    """
    template = configuration.operation_name_template
    if template and template.strip():
        try:
            rendered = template.format(
                operation_id=default_method_name(operation),
                verb=operation.method,
                path=path_to_endpoint_name(operation.path),
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigError(f"Invalid operation name template {template!r}: {exc}") from exc
        return snake_case(rendered)

    generator = configuration.operation_name_generator
    if generator is OperationNameGenerator.OPERATION_ID and operation.operation_id:
        return snake_case(operation.operation_id)
    if generator is OperationNameGenerator.METHOD_AND_PATH:
        return f"{operation.method}_{path_to_endpoint_name(operation.path)}"
    if generator is OperationNameGenerator.PATH_SEGMENTS:
        return path_to_endpoint_name(operation.path)
    return None


def unique_name(base_name: str, used_names: set[str], *, separator: str = "") -> str:
    """Return ``base_name`` or the first free numbered variant, and reserve it."""
    if base_name not in used_names:
        used_names.add(base_name)
        return base_name
    suffix = 2
    while f"{base_name}{separator}{suffix}" in used_names:
        suffix += 1
    name = f"{base_name}{separator}{suffix}"
    used_names.add(name)
    return name


def _normalize_operation_id(operation_id_raw: object) -> Optional[str]:
    if isinstance(operation_id_raw, str) and operation_id_raw.strip():
        return operation_id_raw.strip()
    return None


def _string_tuple(raw: object) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(_dedupe(item for item in raw if isinstance(item, str) and item))


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
