"""High-level generator orchestration."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import Optional

from .codegen_ast import render_module_docstring
from .config import DEFAULT_OUTPUT_PATH, Configuration
from .filters import filter_operations
from .imports import flatten_namespaces, imported_namespaces, render_import_block
from .loader import load_openapi_document
from .logs import get_logger
from .model_types import (
    CodeKind,
    GeneratedCode,
    GenerationResult,
    InvocationContext,
    JSONObject,
    ValidationResult,
    WrittenFile,
)
from .naming import collect_operations, custom_method_name, interface_base_name
from .partition import partition
from .router import (
    CONTRACTS_FILENAME,
    INTERFACES_FILENAME,
    format_written_files,
    route,
    write_outputs,
)
from .translator import PydanticTranslator, Translator
from .validator import ValidationFailedError, validate_document

GENERATOR_NAME = "openapi-to-protocol-generator"

logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with the validation verdict and written files."""

    result: GenerationResult
    validation: Optional[ValidationResult]
    written: tuple[WrittenFile, ...]


def run_generation(
    configuration: Configuration,
    context: InvocationContext,
    *,
    skip_validation: bool = False,
    validator: Callable[[JSONObject], ValidationResult] = validate_document,
) -> GenerationRun:
    """Load, validate, generate and write client interfaces and contracts.

    Nothing is written unless every stage before writing succeeds.

    Args:
        configuration (Configuration): Resolved configuration.
        context (InvocationContext): CLI output path and settings file location.
        skip_validation (bool): Skip document validation.
        validator (Callable[[JSONObject], ValidationResult]): Validation step.

    Returns:
        GenerationRun: Generation metadata, validation verdict and written files.
    """
    document = load_openapi_document(configuration.openapi_path)

    validation: Optional[ValidationResult] = None
    if not skip_validation:
        validation = validator(document)
        if not validation.is_valid:
            raise ValidationFailedError(validation)

    result = generate_code(document, configuration)
    written = write_outputs(route(result.units, configuration, context))
    if configuration.format_with_ruff:
        format_written_files(written)
    return GenerationRun(result=result, validation=validation, written=tuple(written))


def generate_code(
    document: JSONObject,
    configuration: Configuration,
    *,
    translator: Optional[Translator] = None,
) -> GenerationResult:
    """Generate code units for a loaded document without touching the filesystem.

    Args:
        document (JSONObject): Loaded OpenAPI document.
        configuration (Configuration): Resolved configuration.
        translator (Optional[Translator]): Renderer for declarations; defaults to
            ``PydanticTranslator``.

    Returns:
        GenerationResult: One combined unit, or an interfaces and a contracts
        unit in split mode.
    """
    namespaces = imported_namespaces(configuration)
    warnings: list[str] = []

    operations = filter_operations(collect_operations(document), configuration)
    if not operations:
        warnings.append("No operations matched the configured filters; the interface is empty")
    logger.debug("Generating %d operation(s)", len(operations))

    groups = partition(
        operations,
        configuration,
        base_name=interface_base_name(configuration, document),
    )
    if translator is None:
        reserved = [group.name for group in groups] if configuration.generate_clients else []
        translator = PydanticTranslator(document, configuration, reserved_names=reserved)

    interfaces = ""
    if configuration.generate_clients:
        naming = partial(custom_method_name, configuration=configuration)
        interfaces = "\n\n\n".join(translator.render_interfaces(groups, naming))
    contracts = ""
    if configuration.generate_contracts:
        contracts = translator.render_contracts(operations)

    header = _header(document, configuration)
    contracts_module = configuration.contracts_module
    units: list[GeneratedCode] = []
    if not configuration.split_output:
        body = _join_sections(interfaces, contracts)
        local = (contracts_module,) if configuration.generate_contracts else ()
        units.append(
            GeneratedCode(
                filename=configuration.output_filename or DEFAULT_OUTPUT_PATH,
                content=_compose(header, body, configuration, namespaces, local_modules=local),
                kind=CodeKind.COMBINED,
            )
        )
    else:
        if configuration.generate_clients:
            units.append(
                GeneratedCode(
                    filename=INTERFACES_FILENAME,
                    content=_compose(header, interfaces, configuration, namespaces),
                    kind=CodeKind.INTERFACES,
                )
            )
        if configuration.generate_contracts:
            units.append(
                GeneratedCode(
                    filename=CONTRACTS_FILENAME,
                    content=_compose(
                        header,
                        contracts,
                        configuration,
                        namespaces,
                        local_modules=(contracts_module,),
                    ),
                    kind=CodeKind.CONTRACTS,
                )
            )

    interface_names = [group.name for group in groups] if configuration.generate_clients else []
    return GenerationResult(
        units=tuple(units),
        interface_names=tuple(interface_names),
        warnings=tuple(warnings),
    )


def _compose(
    header: Optional[str],
    body: str,
    configuration: Configuration,
    namespaces: tuple[str, ...],
    *,
    local_modules: Iterable[str] = (),
) -> str:
    sections: list[str] = []
    if header:
        sections.append(header)
    sections.append("\n".join(render_import_block(body, configuration, local_modules=local_modules)))
    if body:
        sections.append(flatten_namespaces(body, namespaces))
    return "\n\n\n".join(sections) + "\n"


def _join_sections(*sections: str) -> str:
    return "\n\n\n".join(section for section in sections if section)


def _header(document: JSONObject, configuration: Configuration) -> Optional[str]:
    if not configuration.add_auto_generated_header:
        return None
    info = document.get("info")
    title = info.get("title") if isinstance(info, dict) else None
    version = info.get("version") if isinstance(info, dict) else None
    lines = [f"Auto-generated by {GENERATOR_NAME}."]
    if isinstance(title, str) and title.strip():
        api = title.strip()
        if version is not None:
            api = f"{api} {version}"
        lines.extend(["", f"API: {api}"])
    lines.extend(["", "Changes to this file are overwritten when the code is regenerated."])
    return render_module_docstring("\n".join(lines))
