"""Structural validation of OpenAPI documents before generation."""

from __future__ import annotations

from collections import Counter
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.validators import Draft4Validator, Draft202012Validator, validator_for
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .logs import get_logger
from .model_types import JSONObject, ValidationResult
from .naming import HTTP_METHODS

logger = get_logger(__name__)

STATISTIC_KEYS: tuple[str, ...] = (
    "paths",
    "operations",
    "parameters",
    "request_bodies",
    "responses",
    "schemas",
    "tags",
)


class ValidationFailedError(RuntimeError):
    """Raised when a document fails validation and validation is not skipped."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__(f"OpenAPI validation failed with {len(result.errors)} error(s)")


def validate_document(document: JSONObject) -> ValidationResult:
    """Validate an OpenAPI document and collect usage statistics.

    Errors come from the ``openapi-python-client`` document model, from
    meta-schema checks of component schemas and from duplicate operation ids.
    Warnings flag operations that generate poorly named or untyped methods.

    Args:
        document (JSONObject): Loaded OpenAPI document.

    Returns:
        ValidationResult: Verdict with ordered errors, warnings and statistics.
    """
    errors: list[str] = []
    warnings: list[str] = []

    try:
        OpenAPI.model_validate(document)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or "<document>"
            errors.append(f"{location}: {error['msg']}")

    errors.extend(_check_component_schemas(document))

    operation_ids: Counter[str] = Counter()
    for path, method, operation in _iter_operations(document):
        operation_id = operation.get("operationId")
        if isinstance(operation_id, str) and operation_id:
            operation_ids[operation_id] += 1
        else:
            warnings.append(f"{method.upper()} {path} has no operationId")
        responses = operation.get("responses")
        if not isinstance(responses, dict) or not any(
            str(status).startswith("2") for status in responses
        ):
            warnings.append(f"{method.upper()} {path} declares no success response")

    for operation_id, count in operation_ids.items():
        if count > 1:
            errors.append(f"operationId {operation_id!r} is used by {count} operations")

    result = ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
        statistics=collect_statistics(document),
    )
    logger.debug(
        "Validation finished with %d error(s) and %d warning(s)",
        len(result.errors),
        len(result.warnings),
    )
    return result


def collect_statistics(document: JSONObject) -> dict[str, int]:
    """Count the main elements of a document."""
    statistics = dict.fromkeys(STATISTIC_KEYS, 0)
    paths = document.get("paths")
    statistics["paths"] = len(paths) if isinstance(paths, dict) else 0

    tags: set[str] = set()
    for _path, _method, operation in _iter_operations(document):
        statistics["operations"] += 1
        parameters = operation.get("parameters")
        if isinstance(parameters, list):
            statistics["parameters"] += len(parameters)
        if isinstance(operation.get("requestBody"), dict):
            statistics["request_bodies"] += 1
        responses = operation.get("responses")
        if isinstance(responses, dict):
            statistics["responses"] += len(responses)
        operation_tags = operation.get("tags")
        if isinstance(operation_tags, list):
            tags.update(tag for tag in operation_tags if isinstance(tag, str))

    declared_tags = document.get("tags")
    if isinstance(declared_tags, list):
        tags.update(
            tag["name"]
            for tag in declared_tags
            if isinstance(tag, dict) and isinstance(tag.get("name"), str)
        )
    statistics["tags"] = len(tags)

    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    statistics["schemas"] = len(schemas) if isinstance(schemas, dict) else 0
    return statistics


def format_report(result: ValidationResult) -> str:
    """Render validation statistics as CLI output text."""
    lines = ["OpenAPI statistics:"]
    for key in STATISTIC_KEYS:
        label = key.replace("_", " ").capitalize()
        lines.append(f"  {label}: {result.statistics.get(key, 0)}")
    return "\n".join(lines)


def _check_component_schemas(document: JSONObject) -> list[str]:
    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    if not isinstance(schemas, dict):
        return []

    version = str(document.get("openapi", ""))
    # OpenAPI 3.0 schema objects follow draft 4 keyword forms.
    default_validator = Draft4Validator if version.startswith("3.0") else Draft202012Validator
    errors: list[str] = []
    for name, schema in schemas.items():
        if not isinstance(schema, dict):
            errors.append(f"components.schemas.{name}: schema must be an object")
            continue
        try:
            validator_for(schema, default=default_validator).check_schema(schema)
        except SchemaError as exc:
            errors.append(f"components.schemas.{name}: {exc.message}")
    return errors


def _iter_operations(document: JSONObject) -> list[tuple[str, str, dict[str, Any]]]:
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return []
    operations: list[tuple[str, str, dict[str, Any]]] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method in HTTP_METHODS and isinstance(operation, dict):
                operations.append((str(path), method, operation))
    return operations
