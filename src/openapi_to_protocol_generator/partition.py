"""Grouping of operations into named client interfaces."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

from .config import Configuration
from .model_types import InterfaceGroup, OperationSpec
from .naming import DEFAULT_INTERFACE_NAME, class_name, tag_suffix, unique_name

type Partitioner = Callable[[Sequence[OperationSpec], str], list[InterfaceGroup]]


def single_interface(operations: Sequence[OperationSpec], base_name: str) -> list[InterfaceGroup]:
    """Place every operation in one interface named after the base name."""
    return [InterfaceGroup(name=base_name, tag=None, operations=tuple(operations))]


def multiple_interfaces(
    operations: Sequence[OperationSpec],
    base_name: str,
) -> list[InterfaceGroup]:
    """Create one interface per tag in first-seen order.

    Operations with several tags appear in every matching interface. Untagged
    operations share an interface named after the base name.
    """
    grouped: dict[Optional[str], list[OperationSpec]] = {}
    for operation in operations:
        keys: tuple[Optional[str], ...] = operation.tags or (None,)
        for key in keys:
            grouped.setdefault(key, []).append(operation)

    if not grouped:
        return single_interface((), base_name)

    used_names: set[str] = set()
    groups: list[InterfaceGroup] = []
    for tag, members in grouped.items():
        name = base_name if tag is None else f"{base_name}{tag_suffix(tag)}"
        groups.append(
            InterfaceGroup(
                name=unique_name(name, used_names),
                tag=tag,
                operations=tuple(members),
            )
        )
    return groups


def select_partitioner(configuration: Configuration) -> Partitioner:
    """Pick the partitioning strategy for a configuration."""
    if configuration.multiple_interfaces:
        return multiple_interfaces
    return single_interface


def partition(
    operations: Sequence[OperationSpec],
    configuration: Configuration,
    *,
    base_name: Optional[str] = None,
) -> list[InterfaceGroup]:
    """Group filtered operations into interface declarations.

    Args:
        operations (Sequence[OperationSpec]): Operations that passed filtering.
        configuration (Configuration): Active configuration.
        base_name (Optional[str]): Interface base name; defaults to the configured
            ``interface_name`` or ``ApiClient``.

    Returns:
        list[InterfaceGroup]: Groups in emission order, never empty.
    """
    if base_name is None:
        configured = configuration.interface_name
        base_name = class_name(configured) if configured else DEFAULT_INTERFACE_NAME
    return select_partitioner(configuration)(operations, base_name)
