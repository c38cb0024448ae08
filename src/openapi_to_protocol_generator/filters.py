"""Operation inclusion rules: path globs, tags and deprecation."""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase

from .config import Configuration
from .model_types import OperationSpec


def include(operation: OperationSpec, configuration: Configuration) -> bool:
    """Return whether an operation takes part in generation.

    All configured rules must pass. An empty path-match or tag list does not
    exclude anything.

    Args:
        operation (OperationSpec): Operation to evaluate.
        configuration (Configuration): Active configuration.

    Returns:
        bool: ``True`` when the operation is generated.
    """
    path_matches = configuration.include_path_matches
    if path_matches and not any(fnmatchcase(operation.path, pattern) for pattern in path_matches):
        return False

    tags = configuration.include_tags
    if tags and not any(tag in operation.tags for tag in tags):
        return False

    if operation.deprecated and not configuration.generate_deprecated_operations:
        return False

    return True


def filter_operations(
    operations: Iterable[OperationSpec],
    configuration: Configuration,
) -> list[OperationSpec]:
    """Keep included operations in their original order."""
    return [operation for operation in operations if include(operation, configuration)]
