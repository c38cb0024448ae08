"""Reference resolution for parameters, request bodies and responses."""

from __future__ import annotations

from collections.abc import Iterable
from copy import deepcopy
from typing import Any, Optional

from .model_types import OperationSpec


class ResolveError(RuntimeError):
    """Raised when resolving OpenAPI references fails."""


SCHEMA_REF_PREFIX = "#/components/schemas/"

_HTTP_SUCCESS_PREFIX = "2"
_PREFERRED_MEDIA_TYPES: tuple[str, ...] = (
    "application/json",
    "application/*+json",
    "application/problem+json",
    "application/x-www-form-urlencoded",
    "multipart/form-data",
)


def schema_name_from_ref(ref: str) -> Optional[str]:
    """Return the component schema name a ``$ref`` points at, if any."""
    if not ref.startswith(SCHEMA_REF_PREFIX):
        return None
    name = ref[len(SCHEMA_REF_PREFIX) :].replace("~1", "/").replace("~0", "~")
    return name or None


class Resolver:
    """Resolve local references, keeping component schema references intact.

    Schema references survive resolution because the translator renders them as
    references to named contract classes.
    """

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = deepcopy(document)
        self._cache: dict[str, Any] = {}

    @property
    def component_schemas(self) -> dict[str, Any]:
        """Return ``components.schemas`` of the document."""
        components = self._document.get("components")
        if not isinstance(components, dict):
            return {}
        schemas = components.get("schemas")
        return schemas if isinstance(schemas, dict) else {}

    def resolve_node(self, node: Any) -> Any:
        """Recursively inline non-schema references in a node."""
        return self._resolve(node, stack=())

    def _resolve(self, node: Any, stack: tuple[str, ...]) -> Any:
        if isinstance(node, list):
            return [self._resolve(item, stack) for item in node]
        if not isinstance(node, dict):
            return node

        ref_value = node.get("$ref")
        if isinstance(ref_value, str) and schema_name_from_ref(ref_value) is None:
            resolved_ref = self._resolve_ref(ref_value, stack)
            siblings = {key: value for key, value in node.items() if key != "$ref"}
            if siblings and isinstance(resolved_ref, dict):
                merged = deepcopy(resolved_ref)
                for key, value in siblings.items():
                    merged[key] = self._resolve(value, stack)
                return merged
            return deepcopy(resolved_ref)

        return {key: self._resolve(value, stack) for key, value in node.items()}

    def _resolve_ref(self, ref: str, stack: tuple[str, ...]) -> Any:
        if ref in stack:
            raise ResolveError(f"Circular reference outside component schemas: {ref}")

        if ref in self._cache:
            return deepcopy(self._cache[ref])

        if not ref.startswith("#/"):
            raise ResolveError(f"Only local references are currently supported: {ref}")

        current: Any = self._document
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, dict) or token not in current:
                raise ResolveError(f"Unresolvable reference: {ref}")
            current = current[token]

        resolved = self._resolve(deepcopy(current), (*stack, ref))
        self._cache[ref] = deepcopy(resolved)
        return resolved

    def parameters(self, operation_spec: OperationSpec) -> list[dict[str, Any]]:
        """Merge path-level and operation-level parameters.

        Operation parameters replace path-level ones with the same name and location.
        """
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for node in (operation_spec.path_item, operation_spec.operation):
            for parameter in self._collect_parameters(node):
                name = parameter.get("name")
                location = parameter.get("in")
                if isinstance(name, str) and name and isinstance(location, str):
                    merged[(location, name)] = parameter
        return list(merged.values())

    def request_body(self, operation_spec: OperationSpec) -> Optional[tuple[dict[str, Any], bool]]:
        """Return the request body schema and whether the body is required."""
        request_body = operation_spec.operation.get("requestBody")
        if not isinstance(request_body, dict):
            return None
        resolved_body = self.resolve_node(request_body)
        if not isinstance(resolved_body, dict):
            return None
        schema = self._content_schema(resolved_body.get("content"))
        if schema is None:
            return None
        return schema, resolved_body.get("required") is True

    def response_schema(self, operation_spec: OperationSpec) -> Optional[dict[str, Any]]:
        """Return the schema of the lowest 2xx response that declares content."""
        responses_raw = operation_spec.operation.get("responses")
        if not isinstance(responses_raw, dict):
            return None
        # YAML documents may use integer status keys.
        for status_code, response_node in sorted(
            responses_raw.items(), key=lambda item: str(item[0])
        ):
            if not str(status_code).startswith(_HTTP_SUCCESS_PREFIX):
                continue
            resolved_response = self.resolve_node(response_node)
            if not isinstance(resolved_response, dict):
                continue
            schema = self._content_schema(resolved_response.get("content"))
            if schema is not None:
                return schema
        return None

    def response_media_types(self, operation_spec: OperationSpec) -> list[str]:
        """Return media types declared by 2xx responses, de-duplicated in order."""
        responses_raw = operation_spec.operation.get("responses")
        if not isinstance(responses_raw, dict):
            return []
        media_types: list[str] = []
        for status_code, response_node in sorted(
            responses_raw.items(), key=lambda item: str(item[0])
        ):
            if not str(status_code).startswith(_HTTP_SUCCESS_PREFIX):
                continue
            resolved_response = self.resolve_node(response_node)
            content = (
                resolved_response.get("content") if isinstance(resolved_response, dict) else None
            )
            if not isinstance(content, dict):
                continue
            for media_type in content:
                if isinstance(media_type, str) and media_type not in media_types:
                    media_types.append(media_type)
        return media_types

    def reachable_schemas(self, operations: Iterable[OperationSpec]) -> set[str]:
        """Return component schema names reachable from the given operations."""
        pending: list[Any] = []
        for operation in operations:
            pending.extend(self.parameters(operation))
            body = self.request_body(operation)
            if body is not None:
                pending.append(body[0])
            response = self.response_schema(operation)
            if response is not None:
                pending.append(response)
        return self.schema_closure(pending)

    def schema_closure(self, nodes: Iterable[Any]) -> set[str]:
        """Return schema names referenced by nodes, following references transitively."""
        schemas = self.component_schemas
        found: set[str] = set()
        pending = list(nodes)
        while pending:
            for name in _iter_schema_refs(pending.pop()):
                if name in found:
                    continue
                found.add(name)
                if name in schemas:
                    pending.append(schemas[name])
        return found

    def _collect_parameters(self, node: Any) -> list[dict[str, Any]]:
        raw = node.get("parameters") if isinstance(node, dict) else None
        if not isinstance(raw, list):
            return []
        parameters: list[dict[str, Any]] = []
        for parameter in raw:
            if not isinstance(parameter, dict):
                continue
            resolved = self.resolve_node(parameter)
            if isinstance(resolved, dict):
                parameters.append(resolved)
        return parameters

    def _content_schema(self, content: Any) -> Optional[dict[str, Any]]:
        if not isinstance(content, dict):
            return None

        candidates: list[dict[str, Any]] = []
        for media_type in _PREFERRED_MEDIA_TYPES:
            media = content.get(media_type)
            if isinstance(media, dict):
                candidates.append(media)
        for media in content.values():
            if isinstance(media, dict) and media not in candidates:
                candidates.append(media)

        for media in candidates:
            schema_node = media.get("schema")
            if isinstance(schema_node, dict):
                resolved_schema = self.resolve_node(schema_node)
                if isinstance(resolved_schema, dict):
                    return resolved_schema
        return None


def _iter_schema_refs(node: Any) -> Iterable[str]:
    if isinstance(node, list):
        for item in node:
            yield from _iter_schema_refs(item)
        return
    if not isinstance(node, dict):
        return
    ref_value = node.get("$ref")
    if isinstance(ref_value, str):
        name = schema_name_from_ref(ref_value)
        if name is not None:
            yield name
    for key, value in node.items():
        if key != "$ref":
            yield from _iter_schema_refs(value)
