"""Namespace imports of generated modules and flattening of qualified references.

The translator renders every type reference fully qualified (``typing.Optional``,
``datetime.datetime``, ``<contracts module>.Pet``). Each generated file imports
the names it uses from its imported namespaces, and ``flatten`` then rewrites the
qualified references to their short form by plain textual replacement.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable, Sequence
from typing import Optional

from .config import ConfigError, Configuration

DEFAULT_NAMESPACES: tuple[str, ...] = (
    "typing",
    "datetime",
    "uuid",
    "pydantic",
)


class NamespaceOverlapError(ConfigError):
    """Raised when one imported namespace would corrupt references to another."""


def imported_namespaces(configuration: Configuration) -> tuple[str, ...]:
    """Return the namespaces generated files import, in declaration order.

    Args:
        configuration (Configuration): Active configuration.

    Returns:
        tuple[str, ...]: Default namespaces minus excluded ones, then the
        contracts module, then additional namespaces.
    """
    excluded = {namespace.strip() for namespace in configuration.exclude_namespaces}
    namespaces: list[str] = []
    candidates = [
        *(namespace for namespace in DEFAULT_NAMESPACES if namespace not in excluded),
        configuration.contracts_module,
        *(namespace.strip() for namespace in configuration.additional_namespaces),
    ]
    for namespace in candidates:
        if namespace and namespace not in namespaces:
            namespaces.append(namespace)
    ensure_non_overlapping(namespaces)
    return tuple(namespaces)


def ensure_non_overlapping(namespaces: Sequence[str]) -> None:
    """Reject namespace sets where replacing one prefix would rewrite another."""
    for namespace in namespaces:
        for other in namespaces:
            if namespace != other and f"{namespace}." in f"{other}.":
                raise NamespaceOverlapError(
                    f"Imported namespace {namespace!r} overlaps {other!r}; "
                    "flattening would corrupt references to the latter"
                )


def flatten(rendered: str, configuration: Configuration) -> str:
    """Strip qualified references for every namespace the output imports."""
    return flatten_namespaces(rendered, imported_namespaces(configuration))


def flatten_namespaces(rendered: str, namespaces: Iterable[str]) -> str:
    """Replace ``"{namespace}."`` with nothing, namespace by namespace, in order."""
    for namespace in namespaces:
        rendered = rendered.replace(f"{namespace}.", "")
    return rendered


def referenced_names(rendered: str, namespace: str) -> list[str]:
    """Return names referenced as ``namespace.Name`` in unflattened code, sorted.

    Only attribute expressions count, so docstrings and comments never add imports.
    """
    return _names_in(_qualified_references(ast.parse(rendered)), namespace)


def _names_in(references: set[tuple[str, str]], namespace: str) -> list[str]:
    return sorted({name for prefix, name in references if prefix == namespace})


def _qualified_references(tree: ast.AST) -> set[tuple[str, str]]:
    references: set[tuple[str, str]] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            prefix = _dotted_name(node.value)
            if prefix is not None:
                references.add((prefix, node.attr))
    return references


def _dotted_name(node: ast.expr) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        prefix = _dotted_name(node.value)
        return None if prefix is None else f"{prefix}.{node.attr}"
    return None


def render_import_block(
    rendered: str,
    configuration: Configuration,
    *,
    local_modules: Iterable[str] = (),
) -> list[str]:
    """Render import statements for unflattened generated text.

    Args:
        rendered (str): Generated code before flattening.
        configuration (Configuration): Active configuration.
        local_modules (Iterable[str]): Namespaces whose names are defined in the
            same file and must not be imported.

    Returns:
        list[str]: Import lines, ``from __future__`` first.
    """
    skipped = set(local_modules)
    additional = {namespace.strip() for namespace in configuration.additional_namespaces}
    namespaces = imported_namespaces(configuration)
    references = _qualified_references(ast.parse(rendered))

    lines = ["from __future__ import annotations", ""]
    for namespace in DEFAULT_NAMESPACES:
        if namespace in namespaces:
            continue
        if _names_in(references, namespace):
            lines.append(f"import {namespace}")
    for namespace in namespaces:
        if namespace in skipped:
            continue
        names = _names_in(references, namespace)
        if names:
            lines.append(f"from {namespace} import {', '.join(names)}")
        elif namespace in additional:
            lines.append(f"import {namespace}")
    if len(lines) == 2:
        lines.pop()
    return lines
