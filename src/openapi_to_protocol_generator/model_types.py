"""Internal datatypes for generation, validation and output routing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

type JSONPrimitive = Union[str, int, float, bool, None]
type JSONValue = JSONPrimitive | list[JSONValue] | Mapping[str, JSONValue]
type JSONObject = Mapping[str, JSONValue]


@dataclass(frozen=True)
class FieldDef:
    """Represents a single pydantic contract field."""

    name: str
    source_name: str
    annotation: str
    required: bool
    default: Optional[JSONValue]
    description: Optional[str] = None


@dataclass(frozen=True)
class ModelDef:
    """Represents a generated pydantic contract class."""

    name: str
    is_root: bool
    root_annotation: Optional[str]
    fields: tuple[FieldDef, ...]
    docstring: Optional[str]
    extra_behavior: Optional[str]
    frozen: bool = False


@dataclass(frozen=True)
class ParameterDef:
    """One argument of a generated interface method."""

    name: str
    source_name: str
    location: str
    annotation: str
    required: bool
    has_default: bool = False


@dataclass(frozen=True)
class MethodDef:
    """A generated interface method stub."""

    name: str
    method: str
    path: str
    parameters: tuple[ParameterDef, ...]
    return_annotation: str
    docstring: Optional[str]
    is_async: bool


@dataclass(frozen=True)
class OperationSpec:
    """Normalized operation metadata extracted from OpenAPI paths."""

    path: str
    method: str
    operation_id: Optional[str]
    tags: tuple[str, ...]
    deprecated: bool
    operation: JSONObject
    path_item: JSONObject


@dataclass(frozen=True)
class InterfaceGroup:
    """Operations emitted together as one client interface."""

    name: str
    tag: Optional[str]
    operations: tuple[OperationSpec, ...]


class CodeKind(str, Enum):
    """Logical kind of a generated code unit."""

    COMBINED = "combined"
    INTERFACES = "interfaces"
    CONTRACTS = "contracts"


@dataclass(frozen=True)
class GeneratedCode:
    """One named, fully rendered output artifact."""

    filename: str
    content: str
    kind: CodeKind


@dataclass(frozen=True)
class InvocationContext:
    """Command line values the output router needs besides the configuration."""

    output_path: Optional[str] = None
    settings_file_path: Optional[Path] = None


@dataclass(frozen=True)
class WrittenFile:
    """A generated unit materialized on disk."""

    path: Path
    length: int


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of the OpenAPI validator."""

    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    statistics: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    units: tuple[GeneratedCode, ...]
    interface_names: tuple[str, ...]
    warnings: tuple[str, ...]
