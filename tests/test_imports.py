"""Tests for namespace imports and flattening."""

from __future__ import annotations

import pytest

from openapi_to_protocol_generator.imports import (
    DEFAULT_NAMESPACES,
    NamespaceOverlapError,
    flatten,
    flatten_namespaces,
    imported_namespaces,
    referenced_names,
    render_import_block,
)

from .fixture_helpers import make_configuration

_RENDERED = '''class Client(typing.Protocol):
    """Mentions typing.Never only in prose."""

    def get(self, when: datetime.date, key: uuid.UUID) -> typing.Optional[api.contracts.Pet]:
        ...
'''


def test_imported_namespaces_order() -> None:
    configuration = make_configuration(
        namespace="api",
        exclude_namespaces=["uuid"],
        additional_namespaces=["decimal"],
    )

    assert imported_namespaces(configuration) == (
        "typing",
        "datetime",
        "pydantic",
        "api.contracts",
        "decimal",
    )


def test_flatten_strips_each_namespace() -> None:
    configuration = make_configuration(namespace="api")

    flattened = flatten(_RENDERED, configuration)

    assert "def get(self, when: date, key: UUID) -> Optional[Pet]:" in flattened
    assert "class Client(Protocol):" in flattened


@pytest.mark.parametrize(
    "namespaces",
    [DEFAULT_NAMESPACES, ("typing", "api.contracts"), ("decimal",)],
)
def test_flatten_is_idempotent(namespaces: tuple[str, ...]) -> None:
    once = flatten_namespaces(_RENDERED, namespaces)

    assert flatten_namespaces(once, namespaces) == once


def test_excluded_namespace_is_left_qualified() -> None:
    configuration = make_configuration(namespace="api", exclude_namespaces=["datetime"])

    flattened = flatten(_RENDERED, configuration)

    assert "when: datetime.date" in flattened


def test_overlapping_namespaces_are_rejected() -> None:
    configuration = make_configuration(namespace="api", additional_namespaces=["api"])

    with pytest.raises(NamespaceOverlapError):
        imported_namespaces(configuration)


def test_referenced_names_ignore_docstrings() -> None:
    assert referenced_names(_RENDERED, "typing") == ["Optional", "Protocol"]


def test_render_import_block() -> None:
    configuration = make_configuration(
        namespace="api",
        exclude_namespaces=["uuid"],
        additional_namespaces=["decimal"],
    )

    lines = render_import_block(_RENDERED, configuration)

    assert lines == [
        "from __future__ import annotations",
        "",
        "import uuid",
        "from typing import Optional, Protocol",
        "from datetime import date",
        "from api.contracts import Pet",
        "import decimal",
    ]


def test_render_import_block_skips_local_modules() -> None:
    configuration = make_configuration(namespace="api")

    lines = render_import_block(_RENDERED, configuration, local_modules=["api.contracts"])

    assert "from api.contracts import Pet" not in lines


def test_render_import_block_for_empty_code() -> None:
    assert render_import_block("", make_configuration()) == ["from __future__ import annotations"]
