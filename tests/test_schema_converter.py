"""Unit tests for schema conversion behavior."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, RootModel

from openapi_to_protocol_generator.model_types import ModelDef
from openapi_to_protocol_generator.schema_to_models import ContractConverter, optional_annotation

from .fixture_helpers import load_fixture


def _converter(
    schemas: dict[str, Any],
    *,
    openapi_version: str = "3.1.0",
    **options: Any,
) -> ContractConverter:
    return ContractConverter(
        openapi_version=openapi_version,
        contracts_module="api.contracts",
        component_schemas=schemas,
        **options,
    )


def _model(converter: ContractConverter, name: str) -> ModelDef:
    return next(model for model in converter.models if model.name == name)


def test_reserved_pydantic_member_names_are_rewritten() -> None:
    """Field names must not shadow BaseModel attributes or imported short names."""
    converter = _converter(
        {
            "Body": {
                "type": "object",
                "properties": {
                    "model_dump": {"type": "string"},
                    "model_fields": {"type": "integer"},
                    "date": {"type": "string", "format": "date"},
                },
                "required": ["model_dump", "model_fields", "date"],
            }
        }
    )
    converter.build_components()

    body = _model(converter, "Body")
    reserved = set(dir(BaseModel)) | set(dir(RootModel))
    assert not {field.name for field in body.fields} & reserved
    assert {field.source_name: field.name for field in body.fields} == {
        "model_dump": "model_dump_field",
        "model_fields": "model_fields_field",
        "date": "date_field",
    }


def test_all_of_merges_referenced_component_properties() -> None:
    document = load_fixture("petstore.yaml")
    converter = _converter(document["components"]["schemas"], openapi_version="3.0.3")
    converter.build_components()

    pet = _model(converter, "Pet")

    assert not pet.is_root
    assert [(field.name, field.annotation, field.required) for field in pet.fields] == [
        ("name", "str", True),
        ("tag", "typing.Optional[str]", False),
        ("birth_date", "typing.Optional[datetime.date]", False),
        ("id", "int", True),
    ]
    assert pet.fields[2].source_name == "birthDate"


def test_components_are_built_in_document_order() -> None:
    document = load_fixture("petstore.yaml")
    converter = _converter(document["components"]["schemas"], openapi_version="3.0.3")
    converter.build_components()

    assert [model.name for model in converter.models] == ["NewPet", "Pet", "PetStatus", "Error"]


def test_enum_schema_becomes_literal_root_model() -> None:
    converter = _converter({"Status": {"type": "string", "enum": ["on", "off"]}})
    converter.build_components()

    status = _model(converter, "Status")

    assert status.is_root
    assert status.root_annotation == "typing.Literal['on', 'off']"


def test_map_schema_becomes_dict_root_model() -> None:
    converter = _converter(
        {"Counts": {"type": "object", "additionalProperties": {"type": "integer"}}}
    )
    converter.build_components()

    assert _model(converter, "Counts").root_annotation == "dict[str, int]"


def test_references_render_qualified_class_names() -> None:
    converter = _converter(
        {
            "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
            "Pet": {
                "type": "object",
                "required": ["owner"],
                "properties": {
                    "owner": {"$ref": "#/components/schemas/Owner"},
                    "friends": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                },
            },
        }
    )
    converter.build_components()

    annotations = {field.name: field.annotation for field in _model(converter, "Pet").fields}
    assert annotations == {
        "owner": "api.contracts.Owner",
        "friends": "typing.Optional[list[api.contracts.Pet]]",
    }


def test_nullable_in_openapi_30_and_type_lists_in_31() -> None:
    legacy = _converter(
        {"Legacy": {"type": "string", "format": "date-time", "nullable": True}},
        openapi_version="3.0.3",
    )
    legacy.build_components()
    modern = _converter({"Modern": {"type": ["string", "null"], "format": "date-time"}})
    modern.build_components()

    expected = "typing.Optional[datetime.datetime]"
    assert _model(legacy, "Legacy").root_annotation == expected
    assert _model(modern, "Modern").root_annotation == expected


def test_one_of_and_any_of_render_unions() -> None:
    converter = _converter({})

    assert (
        converter.annotation_for(
            {"oneOf": [{"type": "string"}, {"type": "integer"}]}, hint="Choice"
        )
        == "typing.Union[str, int]"
    )
    assert (
        converter.annotation_for({"anyOf": [{"type": "string"}, {"type": "null"}]}, hint="Maybe")
        == "typing.Optional[str]"
    )


def test_inline_object_becomes_named_contract() -> None:
    converter = _converter({"Pet": {"type": "object", "properties": {"id": {"type": "integer"}}}})

    annotation = converter.annotation_for(
        {"type": "object", "properties": {"total": {"type": "integer"}}},
        hint="ListPetsResponse",
    )
    converter.build_components()

    assert annotation == "api.contracts.ListPetsResponse"
    assert [model.name for model in converter.models] == ["Pet", "ListPetsResponse"]


def test_inline_names_never_collide_with_components() -> None:
    converter = _converter({"ListPetsResponse": {"type": "string"}})

    annotation = converter.annotation_for(
        {"type": "object", "properties": {"total": {"type": "integer"}}},
        hint="ListPetsResponse",
    )

    assert annotation == "api.contracts.ListPetsResponse2"


def test_additional_properties_and_frozen_options() -> None:
    schemas = {
        "Closed": {"type": "object", "additionalProperties": False, "properties": {}},
        "Open": {"type": "object", "properties": {"a": {"type": "string"}}},
    }
    permissive = _converter(schemas)
    permissive.build_components()
    strict = _converter(schemas, allow_extra=False, frozen=True)
    strict.build_components()

    assert _model(permissive, "Closed").extra_behavior == "forbid"
    assert _model(permissive, "Open").extra_behavior == "allow"
    assert _model(strict, "Open").extra_behavior is None
    assert _model(strict, "Open").frozen is True


def test_build_components_honors_keep_set() -> None:
    converter = _converter({"A": {"type": "string"}, "B": {"type": "integer"}})
    converter.build_components(keep={"B"})

    assert [model.name for model in converter.models] == ["B"]


def test_docstrings_can_be_disabled() -> None:
    schemas = {"Doc": {"type": "object", "description": "Documented.", "properties": {}}}
    documented = _converter(schemas)
    documented.build_components()
    silent = _converter(schemas, docstrings=False)
    silent.build_components()

    assert _model(documented, "Doc").docstring == "Documented."
    assert _model(silent, "Doc").docstring is None


def test_optional_annotation_does_not_double_wrap() -> None:
    assert optional_annotation("str") == "typing.Optional[str]"
    assert optional_annotation("typing.Optional[str]") == "typing.Optional[str]"
    assert optional_annotation("typing.Any") == "typing.Any"


def test_reserved_names_push_component_classes_aside() -> None:
    converter = ContractConverter(
        openapi_version="3.1.0",
        contracts_module="api.contracts",
        component_schemas={"PetStore": {"type": "object", "properties": {}}},
        reserved_names=["PetStore"],
    )
    converter.build_components()

    assert [model.name for model in converter.models] == ["PetStore2"]
