"""OpenAPI document loading from local files and network locations."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import httpx
import yaml

from .logs import get_logger
from .model_types import JSONObject

_YAML_SUFFIXES = (".yaml", ".yml")
_HTTP_SCHEMES = ("http://", "https://")

logger = get_logger(__name__)


class OpenAPILoadError(RuntimeError):
    """Raised when a source OpenAPI document cannot be loaded."""


class UnsupportedVersionError(OpenAPILoadError):
    """Raised when a document declares an OpenAPI version older than 3."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"Unsupported OpenAPI version {version}; only v3+ is supported")


def is_http(source: str) -> bool:
    """Return whether the source is an ``http`` or ``https`` URL."""
    return source.strip().lower().startswith(_HTTP_SCHEMES)


def is_yaml(source: str) -> bool:
    """Return whether the source names a YAML document by its suffix.

    Query strings and fragments of URLs are ignored.
    """
    path = urlsplit(source).path if is_http(source) else source
    return path.strip().lower().endswith(_YAML_SUFFIXES)


def load_openapi_document(source: str) -> JSONObject:
    """Load an OpenAPI v3 document from a file path or URL.

    Args:
        source (str): File path or ``http(s)`` URL. The suffix selects YAML or
            JSON parsing.

    Returns:
        JSONObject: The parsed document.
    """
    payload = _select_loader(source)(source)
    if not isinstance(payload, dict):
        raise OpenAPILoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload)!r}"
        )
    ensure_supported_version(get_openapi_version(payload))
    return payload


def _select_loader(source: str) -> Callable[[str], Any]:
    if is_http(source):
        return _load_yaml_from_url if is_yaml(source) else _load_json_from_url
    return _load_yaml_from_file if is_yaml(source) else _load_json_from_file


def _load_yaml_from_url(url: str) -> Any:
    return _parse_yaml(_fetch(url), url)


def _load_json_from_url(url: str) -> Any:
    return _parse_json(_fetch(url), url)


def _load_yaml_from_file(path: str) -> Any:
    return _parse_yaml(_read(path), path)


def _load_json_from_file(path: str) -> Any:
    return _parse_json(_read(path), path)


def _fetch(url: str) -> str:
    logger.debug("Fetching OpenAPI document from %s", url)
    try:
        response = httpx.get(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise OpenAPILoadError(
            f"HTTP {exc.response.status_code} fetching OpenAPI document from {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise OpenAPILoadError(f"Failed to fetch OpenAPI document from {url}: {exc}") from exc
    return response.text


def _read(path: str) -> str:
    logger.debug("Reading OpenAPI document from %s", path)
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise OpenAPILoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc


def _parse_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise OpenAPILoadError(f"Failed to parse YAML in {source}: {exc}") from exc


def _parse_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise OpenAPILoadError(f"Failed to parse JSON in {source}: {exc}") from exc


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string.

    Swagger 2 documents carry a ``swagger`` field instead of ``openapi`` and are
    reported as unsupported.
    """
    version = document.get("openapi")
    if version is None and "swagger" in document:
        raise UnsupportedVersionError(str(document["swagger"]))
    if isinstance(version, (int, float)):
        version = str(version)
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise UnsupportedVersionError(version)
