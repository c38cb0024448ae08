"""Tests for OpenAPI document loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from openapi_to_protocol_generator import loader
from openapi_to_protocol_generator.loader import (
    OpenAPILoadError,
    UnsupportedVersionError,
    get_openapi_version,
    is_http,
    is_yaml,
    load_openapi_document,
)

from .fixture_helpers import fixture_path

_MINIMAL = {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": {}}


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("https://example.com/openapi.yaml", "_load_yaml_from_url"),
        ("http://example.com/openapi.json", "_load_json_from_url"),
        ("specs/openapi.yml", "_load_yaml_from_file"),
        ("specs/openapi.json", "_load_json_from_file"),
    ],
)
def test_loader_variant_selection(source: str, expected: str) -> None:
    """The source location and suffix pick one of four loaders."""
    assert loader._select_loader(source).__name__ == expected


def test_is_yaml_ignores_url_query() -> None:
    assert is_yaml("https://example.com/api.yaml?version=2")
    assert not is_yaml("https://example.com/api?format=yaml")
    assert is_http("HTTPS://example.com/api.json")
    assert not is_http("./http-specs/api.json")


def test_loads_yaml_and_json_fixtures() -> None:
    yaml_document = load_openapi_document(str(fixture_path("petstore.yaml")))
    json_document = load_openapi_document(str(fixture_path("bookstore.json")))

    assert yaml_document["info"]["title"] == "Swagger Petstore"
    assert json_document["openapi"] == "3.1.0"


def test_loads_document_from_url(monkeypatch: pytest.MonkeyPatch) -> None:
    requested: dict[str, Any] = {}

    def _fake_get(url: str, **kwargs: Any) -> httpx.Response:
        requested["url"] = url
        return httpx.Response(200, text=json.dumps(_MINIMAL), request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", _fake_get)

    document = load_openapi_document("https://example.com/openapi.json")

    assert requested["url"] == "https://example.com/openapi.json"
    assert document["openapi"] == "3.0.3"


def test_http_failure_raises_load_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_get(url: str, **kwargs: Any) -> httpx.Response:
        return httpx.Response(404, text="missing", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", _fake_get)

    with pytest.raises(OpenAPILoadError, match="HTTP 404"):
        load_openapi_document("https://example.com/openapi.yaml")


def test_missing_file_raises_load_error(tmp_path: Path) -> None:
    with pytest.raises(OpenAPILoadError):
        load_openapi_document(str(tmp_path / "absent.yaml"))


def test_malformed_json_raises_load_error(tmp_path: Path) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{", encoding="utf-8")

    with pytest.raises(OpenAPILoadError):
        load_openapi_document(str(source))


def test_non_mapping_document_raises_load_error(tmp_path: Path) -> None:
    source = tmp_path / "list.yaml"
    source.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(OpenAPILoadError, match="mapping"):
        load_openapi_document(str(source))


def test_swagger_two_is_unsupported(tmp_path: Path) -> None:
    source = tmp_path / "swagger.json"
    source.write_text(json.dumps({"swagger": "2.0", "info": {}, "paths": {}}), encoding="utf-8")

    with pytest.raises(UnsupportedVersionError) as exc_info:
        load_openapi_document(str(source))

    assert exc_info.value.version == "2.0"


def test_missing_version_field() -> None:
    with pytest.raises(OpenAPILoadError):
        get_openapi_version({"info": {}})
