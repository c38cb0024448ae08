"""Output routing of generated code units to filesystem paths."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from .config import DEFAULT_OUTPUT_FOLDER, DEFAULT_OUTPUT_PATH, Configuration
from .logs import get_logger
from .model_types import CodeKind, GeneratedCode, InvocationContext, WrittenFile

INTERFACES_FILENAME = "interfaces.py"
CONTRACTS_FILENAME = "contracts.py"

logger = get_logger(__name__)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def route(
    units: Sequence[GeneratedCode],
    configuration: Configuration,
    context: InvocationContext,
) -> list[tuple[Path, GeneratedCode]]:
    """Compute the destination path of every generated unit.

    Args:
        units (Sequence[GeneratedCode]): Units produced by generation.
        configuration (Configuration): Active configuration.
        context (InvocationContext): CLI output path and settings file location.

    Returns:
        list[tuple[Path, GeneratedCode]]: Destination and unit, in unit order.
    """
    if not configuration.split_output:
        return [(combined_output_path(configuration, context), unit) for unit in units]

    interfaces_dir = _interfaces_directory(configuration, context)
    contracts_dir = _contracts_directory(configuration, context, interfaces_dir)
    return [
        (
            (contracts_dir if unit.kind is CodeKind.CONTRACTS else interfaces_dir) / unit.filename,
            unit,
        )
        for unit in units
    ]


def combined_output_path(configuration: Configuration, context: InvocationContext) -> Path:
    """Return the single-file destination.

    The CLI output path wins unless it is blank or the default file name. A
    configured, non-default output folder prefixes the result.
    """
    cli_output = context.output_path
    if _is_set(cli_output) and cli_output != DEFAULT_OUTPUT_PATH:
        output_path = Path(str(cli_output))
    else:
        output_path = Path(configuration.output_filename or DEFAULT_OUTPUT_PATH)

    if _is_custom_folder(configuration.output_folder):
        output_path = Path(configuration.output_folder) / output_path
    return output_path


def _settings_root(context: InvocationContext) -> Path:
    if context.settings_file_path is None:
        return Path()
    return context.settings_file_path.parent


def _interfaces_directory(configuration: Configuration, context: InvocationContext) -> Path:
    root = _settings_root(context)
    if _is_custom_folder(configuration.output_folder):
        return root / configuration.output_folder
    if _is_set(context.output_path):
        # In split mode the CLI output path names a folder.
        return root / str(context.output_path)
    return Path()


def _contracts_directory(
    configuration: Configuration,
    context: InvocationContext,
    interfaces_dir: Path,
) -> Path:
    folder = configuration.contracts_output_folder
    if _is_custom_folder(folder):
        return _settings_root(context) / str(folder)
    return interfaces_dir


def write_outputs(routes: Sequence[tuple[Path, GeneratedCode]]) -> list[WrittenFile]:
    """Write routed units, creating parent directories and overwriting files.

    Args:
        routes (Sequence[tuple[Path, GeneratedCode]]): Output of ``route``.

    Returns:
        list[WrittenFile]: Written paths with their byte lengths.
    """
    written: list[WrittenFile] = []
    for path, unit in routes:
        data = unit.content.encode("utf-8")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise WriteError(f"Failed to write file {path}: {exc}") from exc
        logger.info("Output: %s", path.resolve())
        logger.info("Length: %d bytes", len(data))
        written.append(WrittenFile(path=path, length=len(data)))
    return written


def format_written_files(written: Sequence[WrittenFile]) -> None:
    """Run ``ruff format`` over written files."""
    if not written:
        return
    paths = [str(item.path) for item in written]
    _run_ruff(args=("format", *paths))


def _run_ruff(*, args: tuple[str, ...]) -> None:
    command = [sys.executable, "-m", "ruff", *args]
    command_desc = " ".join(args)
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {command_desc}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {command_desc} failed: {error_text}") from exc


def _is_custom_folder(folder: Optional[str]) -> bool:
    return _is_set(folder) and folder != DEFAULT_OUTPUT_FOLDER


def _is_set(value: Optional[str]) -> bool:
    return value is not None and bool(value.strip())
