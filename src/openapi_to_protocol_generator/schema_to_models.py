"""Convert OpenAPI schemas into contract model definitions and annotations.

Every annotation is rendered fully qualified (``typing.Optional[...]``,
``datetime.datetime``, ``<contracts module>.Pet``); short names are produced
later by namespace flattening.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel, RootModel

from .model_types import FieldDef, ModelDef
from .naming import class_name, snake_case, unique_name
from .resolver import schema_name_from_ref

ANY_ANNOTATION = "typing.Any"

# Short names that become visible in generated modules after flattening.
IMPORTED_SHORT_NAMES = {
    "Any",
    "BaseModel",
    "ConfigDict",
    "Field",
    "Literal",
    "Optional",
    "Protocol",
    "RootModel",
    "UUID",
    "Union",
    "date",
    "datetime",
    "time",
}

_MODEL_RESERVED = set(dir(BaseModel)) | set(dir(RootModel))
_BUILTIN_IDENTIFIER_RESERVED = {
    "bool",
    "bytes",
    "dict",
    "float",
    "int",
    "list",
    "self",
    "str",
    "type",
}
_STRING_FORMATS = {
    "date-time": "datetime.datetime",
    "date": "datetime.date",
    "time": "datetime.time",
    "uuid": "uuid.UUID",
    "binary": "bytes",
}
_PRIMITIVES = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "null": "None",
}


class ContractConverter:
    """Create contract model definitions from component and inline schemas."""

    def __init__(
        self,
        *,
        openapi_version: str,
        contracts_module: str,
        component_schemas: Optional[Mapping[str, Any]] = None,
        frozen: bool = False,
        allow_extra: bool = True,
        docstrings: bool = True,
        reserved_names: Iterable[str] = (),
    ) -> None:
        self._openapi_version = openapi_version
        self._contracts_module = contracts_module
        self._frozen = frozen
        self._allow_extra = allow_extra
        self._docstrings = docstrings
        # Interface class names share the generated module namespace.
        self._used_names: set[str] = {*IMPORTED_SHORT_NAMES, *reserved_names}
        self._component_names: dict[str, str] = {}
        self._component_models: list[ModelDef] = []
        self._inline_models: list[ModelDef] = []
        self._building: Optional[list[ModelDef]] = None
        self._component_schemas: Mapping[str, Any] = component_schemas or {}
        self.register_components(self._component_schemas)

    @property
    def models(self) -> tuple[ModelDef, ...]:
        """Component models in document order, then inline operation models."""
        return (*self._component_models, *self._inline_models)

    def register_components(self, schema_names: Iterable[str]) -> None:
        """Reserve class names for component schemas before any conversion."""
        for schema_name in schema_names:
            if schema_name not in self._component_names:
                self._component_names[schema_name] = unique_name(
                    class_name(schema_name), self._used_names
                )

    def build_components(self, *, keep: Optional[set[str]] = None) -> None:
        """Build one contract class per component schema, in document order.

        Args:
            keep (Optional[set[str]]): Schema names to build; ``None`` builds all.
        """
        for schema_name, raw_schema in self._component_schemas.items():
            if keep is not None and schema_name not in keep:
                continue
            if not isinstance(raw_schema, dict):
                continue
            model_name = self._component_names[schema_name]
            self._building = self._component_models
            try:
                self._build_named_model(model_name=model_name, schema=raw_schema)
            finally:
                self._building = None

    def annotation_for(self, schema: Mapping[str, Any], *, hint: str) -> str:
        """Return an annotation for an operation-level schema.

        Inline object schemas become new contract classes named after ``hint``.
        """
        self._building = self._inline_models
        try:
            return self._schema_to_annotation(
                schema=self._normalize_nullable(dict(schema)),
                hint=hint,
            )
        finally:
            self._building = None

    def _target(self) -> list[ModelDef]:
        return self._building if self._building is not None else self._inline_models

    def _build_named_model(self, *, model_name: str, schema: dict[str, Any]) -> None:
        normalized = self._normalize_nullable(dict(schema))
        merged = self._merge_all_of(normalized)
        is_map = not isinstance(merged.get("properties"), dict) and isinstance(
            merged.get("additionalProperties"), dict
        )
        if self._is_object_schema(merged) and "allOf" not in merged and not is_map:
            self._build_object_model(model_name=model_name, schema=merged)
            return

        annotation = self._schema_to_annotation(schema=normalized, hint=f"{model_name}Item")
        self._target().append(
            ModelDef(
                name=model_name,
                is_root=True,
                root_annotation=annotation,
                fields=(),
                docstring=self._docstring(normalized),
                extra_behavior=None,
                frozen=self._frozen,
            )
        )

    def _build_object_model(self, *, model_name: str, schema: dict[str, Any]) -> str:
        merged = self._merge_all_of(schema)
        properties = merged.get("properties")
        required_names = (
            set(merged.get("required", [])) if isinstance(merged.get("required"), list) else set()
        )
        if not isinstance(properties, dict):
            properties = {}

        fields: list[FieldDef] = []
        used_field_names: set[str] = set()
        for source_name, raw_prop in properties.items():
            if not isinstance(source_name, str) or not isinstance(raw_prop, dict):
                continue
            prop_schema = self._normalize_nullable(dict(raw_prop))
            field_name = self._field_name(source_name, used_field_names)
            annotation = self._schema_to_annotation(
                schema=prop_schema,
                hint=f"{model_name}_{source_name}",
            )
            required = source_name in required_names
            if not required:
                annotation = optional_annotation(annotation)
            default = None if required else prop_schema.get("default")
            fields.append(
                FieldDef(
                    name=field_name,
                    source_name=source_name,
                    annotation=annotation,
                    required=required,
                    default=default,
                    description=self._docstring(prop_schema),
                )
            )

        additional_properties = merged.get("additionalProperties")
        extra_behavior: Optional[str]
        if additional_properties is False:
            extra_behavior = "forbid"
        elif self._allow_extra:
            extra_behavior = "allow"
        else:
            extra_behavior = None

        self._target().append(
            ModelDef(
                name=model_name,
                is_root=False,
                root_annotation=None,
                fields=tuple(fields),
                docstring=self._docstring(merged),
                extra_behavior=extra_behavior,
                frozen=self._frozen,
            )
        )
        return model_name

    def _field_name(self, source_name: str, used_names: set[str]) -> str:
        candidate = snake_case(source_name)
        if (
            candidate in _MODEL_RESERVED
            or candidate in _BUILTIN_IDENTIFIER_RESERVED
            or candidate in IMPORTED_SHORT_NAMES
        ):
            candidate = f"{candidate}_field"
        return unique_name(candidate, used_names, separator="_")

    def _schema_to_annotation(self, *, schema: dict[str, Any], hint: str) -> str:
        ref_value = schema.get("$ref")
        if isinstance(ref_value, str):
            return self._ref_annotation(ref_value)

        if "const" in schema:
            return f"typing.Literal[{schema['const']!r}]"

        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            values = [value for value in enum if value is not None]
            if not values:
                return "None"
            literal = f"typing.Literal[{', '.join(repr(value) for value in values)}]"
            return optional_annotation(literal) if None in enum else literal

        for keyword in ("oneOf", "anyOf"):
            options = schema.get(keyword)
            if isinstance(options, list) and options:
                return self._make_union(
                    [
                        self._schema_to_annotation(
                            schema=self._normalize_nullable(dict(item))
                            if isinstance(item, dict)
                            else {},
                            hint=f"{hint}Option{index + 1}",
                        )
                        for index, item in enumerate(options)
                    ]
                )

        all_of = schema.get("allOf")
        if isinstance(all_of, list) and all_of:
            if len(all_of) == 1 and isinstance(all_of[0], dict):
                return self._schema_to_annotation(
                    schema=self._normalize_nullable(dict(all_of[0])), hint=hint
                )
            merged = self._merge_all_of(schema)
            if self._is_object_schema(merged) and "allOf" not in merged:
                nested_name = unique_name(class_name(hint), self._used_names)
                return self._qualified(self._build_object_model(model_name=nested_name, schema=merged))
            return ANY_ANNOTATION

        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            members = [
                self._schema_to_annotation(schema={**schema, "type": member}, hint=hint)
                for member in schema_type
            ]
            return self._make_union(members)

        if schema_type == "array":
            items = schema.get("items")
            item_schema = items if isinstance(items, dict) else {}
            item_annotation = self._schema_to_annotation(
                schema=self._normalize_nullable(dict(item_schema)),
                hint=f"{hint}Item",
            )
            return f"list[{item_annotation}]"

        if schema_type == "object" or self._is_object_schema(schema):
            if isinstance(schema.get("properties"), dict):
                nested_name = unique_name(class_name(hint), self._used_names)
                return self._qualified(self._build_object_model(model_name=nested_name, schema=schema))
            additional = schema.get("additionalProperties")
            if isinstance(additional, dict):
                value_annotation = self._schema_to_annotation(
                    schema=self._normalize_nullable(dict(additional)),
                    hint=f"{hint}Value",
                )
                return f"dict[str, {value_annotation}]"
            return f"dict[str, {ANY_ANNOTATION}]"

        if schema_type == "string":
            string_format = schema.get("format")
            if isinstance(string_format, str) and string_format in _STRING_FORMATS:
                return _STRING_FORMATS[string_format]
        if isinstance(schema_type, str) and schema_type in _PRIMITIVES:
            return _PRIMITIVES[schema_type]
        return ANY_ANNOTATION

    def _ref_annotation(self, ref: str) -> str:
        schema_name = schema_name_from_ref(ref)
        if schema_name is None:
            return ANY_ANNOTATION
        model_name = self._component_names.get(schema_name)
        if model_name is None:
            return ANY_ANNOTATION
        return self._qualified(model_name)

    def _qualified(self, model_name: str) -> str:
        return f"{self._contracts_module}.{model_name}"

    def _make_union(self, annotations: list[str]) -> str:
        deduped: list[str] = []
        for annotation in annotations:
            if annotation not in deduped:
                deduped.append(annotation)
        if not deduped:
            return ANY_ANNOTATION
        if len(deduped) == 1:
            return deduped[0]
        nullable = "None" in deduped
        members = [annotation for annotation in deduped if annotation != "None"]
        if nullable and len(members) == 1:
            return f"typing.Optional[{members[0]}]"
        if nullable:
            return f"typing.Optional[typing.Union[{', '.join(members)}]]"
        return f"typing.Union[{', '.join(deduped)}]"

    def _merge_all_of(self, schema: dict[str, Any]) -> dict[str, Any]:
        all_of = schema.get("allOf")
        if not isinstance(all_of, list) or not all_of:
            return schema

        merged = {key: value for key, value in schema.items() if key != "allOf"}
        merged_properties: dict[str, Any] = dict(merged.get("properties") or {})
        merged_required: set[str] = set(merged.get("required") or [])
        additional_properties: Any = merged.get("additionalProperties")

        for item in all_of:
            if not isinstance(item, dict):
                return schema
            child = self._merge_all_of(self._dereference(self._normalize_nullable(dict(item))))
            if not self._is_object_schema(child):
                return schema
            child_properties = child.get("properties")
            if isinstance(child_properties, dict):
                merged_properties.update(child_properties)
            child_required = child.get("required")
            if isinstance(child_required, list):
                merged_required.update(name for name in child_required if isinstance(name, str))
            if child.get("additionalProperties") is False:
                additional_properties = False

        merged["type"] = "object"
        merged["properties"] = merged_properties
        if merged_required:
            merged["required"] = sorted(merged_required)
        if additional_properties is not None:
            merged["additionalProperties"] = additional_properties
        return merged

    def _dereference(self, schema: dict[str, Any]) -> dict[str, Any]:
        # allOf members that reference components contribute their properties.
        ref_value = schema.get("$ref")
        if isinstance(ref_value, str):
            target = self._component_schemas.get(schema_name_from_ref(ref_value) or "")
            if isinstance(target, dict):
                return dict(target)
        return schema

    @staticmethod
    def _is_object_schema(schema: Mapping[str, Any]) -> bool:
        if schema.get("type") == "object":
            return True
        if isinstance(schema.get("properties"), dict):
            return True
        return "additionalProperties" in schema and "type" not in schema

    def _normalize_nullable(self, schema: dict[str, Any]) -> dict[str, Any]:
        if self._openapi_version.startswith("3.0") and schema.get("nullable") is True:
            schema = dict(schema)
            schema.pop("nullable", None)
            schema_type = schema.get("type")
            if isinstance(schema_type, str):
                schema["type"] = [schema_type, "null"]
            elif isinstance(schema_type, list):
                if "null" not in schema_type:
                    schema["type"] = [*schema_type, "null"]
            else:
                schema = {"anyOf": [schema, {"type": "null"}]}
        return schema

    def _docstring(self, schema: Mapping[str, Any]) -> Optional[str]:
        if not self._docstrings:
            return None
        for key in ("description", "title"):
            value = schema.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None


def optional_annotation(annotation: str) -> str:
    """Wrap an annotation in ``typing.Optional`` unless it already admits ``None``."""
    if annotation in ("None", ANY_ANNOTATION) or annotation.startswith("typing.Optional["):
        return annotation
    return f"typing.Optional[{annotation}]"
