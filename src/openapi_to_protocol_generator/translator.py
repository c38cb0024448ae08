"""Translation of operations and schemas into Protocol and pydantic declarations.

The orchestration layer only depends on the ``Translator`` protocol, so any
renderer with the same two methods can be injected in its place.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .codegen_ast import render_contract_classes, render_protocol_class
from .config import ConfigError, Configuration
from .loader import get_openapi_version
from .logs import get_logger
from .model_types import InterfaceGroup, JSONObject, MethodDef, OperationSpec, ParameterDef
from .naming import class_name, default_method_name, snake_case, unique_name
from .resolver import SCHEMA_REF_PREFIX, Resolver
from .schema_to_models import ContractConverter, optional_annotation

type NamingPolicy = Callable[[OperationSpec], Optional[str]]

_PARAMETER_ORDER: tuple[str, ...] = ("path", "body", "query", "header")

logger = get_logger(__name__)


class TranslationError(RuntimeError):
    """Raised when an operation or schema cannot be rendered as Python code."""


class Translator(Protocol):
    """Renders client interface and contract declarations, unflattened."""

    def render_interfaces(
        self,
        groups: Sequence[InterfaceGroup],
        naming: NamingPolicy,
    ) -> list[str]:
        """Return one interface declaration per group, in group order."""
        ...

    def render_contracts(self, operations: Sequence[OperationSpec]) -> str:
        """Return the contract declarations the operations need."""
        ...


@dataclass(frozen=True)
class _OperationShape:
    parameters: tuple[ParameterDef, ...]
    return_annotation: str
    docstring: Optional[str]


class PydanticTranslator:
    """Render interfaces as ``typing.Protocol`` classes and contracts as pydantic models.

    Operation signatures are computed once per operation, so operations that
    appear in several interfaces share their inline contract classes.
    """

    def __init__(
        self,
        document: JSONObject,
        configuration: Configuration,
        *,
        reserved_names: Iterable[str] = (),
    ) -> None:
        self._document = document
        self._configuration = configuration
        self._resolver = Resolver(dict(document))
        self._converter = ContractConverter(
            openapi_version=get_openapi_version(document),
            contracts_module=configuration.contracts_module,
            component_schemas=self._resolver.component_schemas,
            frozen=configuration.immutable_records,
            allow_extra=configuration.generate_default_additional_properties,
            docstrings=configuration.generate_docstrings,
            reserved_names=reserved_names,
        )
        self._shapes: dict[tuple[str, str], _OperationShape] = {}

    def render_interfaces(
        self,
        groups: Sequence[InterfaceGroup],
        naming: NamingPolicy,
    ) -> list[str]:
        """Render each interface group as a Protocol class.

        Args:
            groups (Sequence[InterfaceGroup]): Interface groups in emission order.
            naming (NamingPolicy): Returns a custom method name, or ``None`` to
                use the default name derived from the operation.

        Returns:
            list[str]: One class declaration per group.
        """
        declarations: list[str] = []
        for group in groups:
            used_names: set[str] = set()
            methods: list[MethodDef] = []
            for operation in group.operations:
                name = naming(operation) or default_method_name(operation)
                shape = self._shape(operation)
                methods.append(
                    MethodDef(
                        name=unique_name(name, used_names, separator="_"),
                        method=operation.method,
                        path=operation.path,
                        parameters=shape.parameters,
                        return_annotation=shape.return_annotation,
                        docstring=shape.docstring,
                        is_async=self._configuration.async_methods,
                    )
                )
            try:
                declarations.append(
                    render_protocol_class(
                        name=group.name,
                        docstring=self._interface_docstring(group),
                        methods=methods,
                    )
                )
            except (SyntaxError, ValueError) as exc:
                raise TranslationError(f"Failed to render interface {group.name}: {exc}") from exc
            logger.debug("Rendered interface %s with %d method(s)", group.name, len(methods))
        return declarations

    def render_contracts(self, operations: Sequence[OperationSpec]) -> str:
        """Render component and inline contracts for the given operations.

        When unused schema trimming is enabled, only component schemas reachable
        from the operations, or matching a keep pattern, are rendered.
        """
        for operation in operations:
            self._shape(operation)

        keep: Optional[set[str]] = None
        if self._configuration.trim_unused_schema:
            keep = self._kept_schemas(operations)
            logger.debug("Keeping %d component schema(s) after trimming", len(keep))
        self._converter.build_components(keep=keep)

        try:
            return render_contract_classes(self._converter.models)
        except (SyntaxError, ValueError) as exc:
            raise TranslationError(f"Failed to render contracts: {exc}") from exc

    def _kept_schemas(self, operations: Sequence[OperationSpec]) -> set[str]:
        try:
            patterns = [re.compile(pattern) for pattern in self._configuration.keep_schema_patterns]
        except re.error as exc:
            raise ConfigError(f"Invalid keep-schema pattern: {exc}") from exc
        schemas = self._resolver.component_schemas
        pinned = [
            {"$ref": SCHEMA_REF_PREFIX + name.replace("~", "~0").replace("/", "~1")}
            for name in schemas
            if any(pattern.search(name) for pattern in patterns)
        ]
        return self._resolver.reachable_schemas(operations) | self._resolver.schema_closure(pinned)

    def _shape(self, operation: OperationSpec) -> _OperationShape:
        key = (operation.path, operation.method)
        if key not in self._shapes:
            self._shapes[key] = self._build_shape(operation)
        return self._shapes[key]

    def _build_shape(self, operation: OperationSpec) -> _OperationShape:
        hint = class_name(default_method_name(operation))
        optional_defaults = self._configuration.optional_parameters
        used_names = {"self"}
        parameters: list[ParameterDef] = []

        resolved = self._resolver.parameters(operation)
        by_location: dict[str, list[dict[str, Any]]] = {}
        for parameter in resolved:
            by_location.setdefault(str(parameter.get("in")), []).append(parameter)

        for location in _PARAMETER_ORDER:
            if location == "body":
                body = self._resolver.request_body(operation)
                if body is not None:
                    schema, required = body
                    annotation = self._converter.annotation_for(schema, hint=f"{hint}Request")
                    parameters.append(
                        self._parameter(
                            source_name="body",
                            location="body",
                            annotation=annotation,
                            required=required,
                            used_names=used_names,
                        )
                    )
                continue
            if location == "header" and not self._configuration.generate_operation_headers:
                continue
            for parameter in by_location.get(location, []):
                source_name = str(parameter["name"])
                schema = parameter.get("schema")
                annotation = self._converter.annotation_for(
                    schema if isinstance(schema, dict) else {},
                    hint=f"{hint}_{source_name}",
                )
                parameters.append(
                    self._parameter(
                        source_name=source_name,
                        location=location,
                        annotation=annotation,
                        required=location == "path" or parameter.get("required") is True,
                        used_names=used_names,
                    )
                )

        # Required parameters first so defaults only trail the signature.
        ordered = [parameter for parameter in parameters if parameter.required]
        ordered.extend(
            ParameterDef(
                name=parameter.name,
                source_name=parameter.source_name,
                location=parameter.location,
                annotation=parameter.annotation,
                required=False,
                has_default=optional_defaults,
            )
            for parameter in parameters
            if not parameter.required
        )

        response = self._resolver.response_schema(operation)
        return_annotation = (
            self._converter.annotation_for(response, hint=f"{hint}Response")
            if response is not None
            else "None"
        )
        return _OperationShape(
            parameters=tuple(ordered),
            return_annotation=return_annotation,
            docstring=self._method_docstring(operation),
        )

    @staticmethod
    def _parameter(
        *,
        source_name: str,
        location: str,
        annotation: str,
        required: bool,
        used_names: set[str],
    ) -> ParameterDef:
        if not required:
            annotation = optional_annotation(annotation)
        return ParameterDef(
            name=unique_name(snake_case(source_name), used_names, separator="_"),
            source_name=source_name,
            location=location,
            annotation=annotation,
            required=required,
        )

    def _method_docstring(self, operation: OperationSpec) -> str:
        lines: list[str] = []
        if self._configuration.generate_docstrings:
            for key in ("summary", "description"):
                value = operation.operation.get(key)
                if isinstance(value, str) and value.strip() and value.strip() not in lines:
                    lines.append(value.strip())
            if operation.deprecated:
                lines.append("Deprecated.")
            if lines:
                lines.append("")

        lines.append(f"{operation.method.upper()} {operation.path}")
        if self._configuration.add_accept_headers:
            media_types = self._resolver.response_media_types(operation)
            if media_types:
                lines.append(f"Accept: {', '.join(media_types)}")
        return "\n".join(lines)

    def _interface_docstring(self, group: InterfaceGroup) -> Optional[str]:
        if not self._configuration.generate_docstrings:
            return None
        if group.tag is not None:
            return f"Client operations tagged {group.tag!r}."
        info = self._document.get("info")
        title = info.get("title") if isinstance(info, dict) else None
        if isinstance(title, str) and title.strip():
            return f"Client interface for {title.strip()}."
        return "Client interface."
