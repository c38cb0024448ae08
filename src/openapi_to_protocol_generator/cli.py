"""Command line interface for OpenAPI to Protocol generation."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Optional

from .config import CLIOptions, OperationNameGenerator, resolve_configuration
from .generator import GENERATOR_NAME, run_generation
from .logs import configure_logging
from .model_types import InvocationContext, ValidationResult
from .validator import ValidationFailedError, format_report

# argparse destination -> configuration field, for options copied verbatim.
_OVERRIDE_FIELDS: dict[str, str] = {
    "namespace": "namespace",
    "contracts_namespace": "contracts_namespace",
    "contracts_output": "contracts_output_folder",
    "interface_name": "interface_name",
    "multiple_interfaces": "multiple_interfaces",
    "multiple_files": "generate_multiple_files",
    "tags": "include_tags",
    "path_matches": "include_path_matches",
    "deprecated_operations": "generate_deprecated_operations",
    "operation_name_template": "operation_name_template",
    "operation_name_generator": "operation_name_generator",
    "auto_generated_header": "add_auto_generated_header",
    "accept_headers": "add_accept_headers",
    "operation_headers": "generate_operation_headers",
    "optional_parameters": "optional_parameters",
    "async_methods": "async_methods",
    "docstrings": "generate_docstrings",
    "trim_unused_schema": "trim_unused_schema",
    "keep_schemas": "keep_schema_patterns",
    "additional_namespaces": "additional_namespaces",
    "exclude_namespaces": "exclude_namespaces",
    "immutable_records": "immutable_records",
    "default_additional_properties": "generate_default_additional_properties",
    "ruff_format": "format_with_ruff",
}


class CLIError(RuntimeError):
    """Raised when CLI execution fails."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog=GENERATOR_NAME,
        description="Generate typing.Protocol client interfaces and pydantic contracts from OpenAPI",
    )
    parser.add_argument("openapi_path", help="Path or URL of an OpenAPI v3 JSON or YAML document")
    parser.add_argument(
        "--settings-file",
        help="JSON or YAML settings file; replaces every other generation option",
    )
    parser.add_argument("--namespace", help="Package the generated interfaces belong to")
    parser.add_argument("--contracts-namespace", help="Module path of the generated contracts")
    parser.add_argument(
        "--output",
        help="Output file, or output folder when interfaces and contracts are split",
    )
    parser.add_argument(
        "--contracts-output",
        help="Folder for the contracts file; implies --multiple-files",
    )
    parser.add_argument("--interface-name", help="Base name of the generated interface")
    parser.add_argument(
        "--multiple-interfaces",
        action="store_true",
        default=None,
        help="Generate one interface per OpenAPI tag",
    )
    parser.add_argument(
        "--multiple-files",
        action="store_true",
        default=None,
        help="Write interfaces and contracts to separate files",
    )
    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        help="Only generate operations with this tag (repeatable)",
    )
    parser.add_argument(
        "--match-path",
        dest="path_matches",
        action="append",
        help="Only generate operations whose path matches this glob (repeatable)",
    )
    parser.add_argument(
        "--no-deprecated-operations",
        dest="deprecated_operations",
        action="store_false",
        default=None,
        help="Skip operations marked as deprecated",
    )
    parser.add_argument(
        "--operation-name-template",
        help="Method name template with {operation_id}, {verb} and {path} placeholders",
    )
    parser.add_argument(
        "--operation-name-generator",
        choices=[generator.value for generator in OperationNameGenerator],
        help="Strategy for naming interface methods",
    )
    parser.add_argument(
        "--interface-only",
        action="store_true",
        help="Only generate client interfaces",
    )
    parser.add_argument(
        "--contract-only",
        action="store_true",
        help="Only generate contracts",
    )
    parser.add_argument(
        "--no-auto-generated-header",
        dest="auto_generated_header",
        action="store_false",
        default=None,
        help="Omit the auto-generated header",
    )
    parser.add_argument(
        "--no-accept-headers",
        dest="accept_headers",
        action="store_false",
        default=None,
        help="Omit Accept lines from method docstrings",
    )
    parser.add_argument(
        "--no-operation-headers",
        dest="operation_headers",
        action="store_false",
        default=None,
        help="Omit header parameters from method signatures",
    )
    parser.add_argument(
        "--optional-parameters",
        action="store_true",
        default=None,
        help="Give optional parameters a default of None",
    )
    parser.add_argument(
        "--async-methods",
        action="store_true",
        default=None,
        help="Generate async method stubs",
    )
    parser.add_argument(
        "--no-docstrings",
        dest="docstrings",
        action="store_false",
        default=None,
        help="Omit summaries and descriptions from generated docstrings",
    )
    parser.add_argument(
        "--trim-unused-schema",
        action="store_true",
        default=None,
        help="Drop contracts that no generated operation uses",
    )
    parser.add_argument(
        "--keep-schema",
        dest="keep_schemas",
        action="append",
        help="Regex of schema names kept when trimming (repeatable)",
    )
    parser.add_argument(
        "--additional-namespace",
        dest="additional_namespaces",
        action="append",
        help="Extra module imported by generated files (repeatable)",
    )
    parser.add_argument(
        "--exclude-namespace",
        dest="exclude_namespaces",
        action="append",
        help="Default module not imported by generated files (repeatable)",
    )
    parser.add_argument(
        "--immutable-records",
        action="store_true",
        default=None,
        help="Generate frozen contracts",
    )
    parser.add_argument(
        "--skip-default-additional-properties",
        dest="default_additional_properties",
        action="store_false",
        default=None,
        help="Do not allow undeclared fields on contracts",
    )
    parser.add_argument(
        "--ruff-format",
        action="store_true",
        default=None,
        help="Format written files with ruff",
    )
    parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip OpenAPI validation before generation",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Log debug details")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings")
    return parser


def collect_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Return configuration overrides for the options the user passed."""
    overrides: dict[str, Any] = {}
    for dest, field_name in _OVERRIDE_FIELDS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    if args.interface_only:
        overrides["generate_contracts"] = False
    if args.contract_only:
        overrides["generate_clients"] = False
    return overrides


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.interface_only and args.contract_only:
        parser.error("--interface-only and --contract-only cannot be combined")

    configure_logging(verbose=args.verbose, quiet=args.quiet)
    settings_path = Path(args.settings_file) if args.settings_file else None
    started = time.perf_counter()

    try:
        if settings_path is not None and not settings_path.is_file():
            raise CLIError(f"Settings file not found: {settings_path}")
        configuration = resolve_configuration(
            CLIOptions(openapi_path=args.openapi_path, overrides=collect_overrides(args)),
            settings_path,
        )
        run = run_generation(
            configuration,
            InvocationContext(output_path=args.output, settings_file_path=settings_path),
            skip_validation=bool(args.skip_validation),
        )
    except ValidationFailedError as exc:
        _print_diagnostics(exc.result)
        _print_failure(exc, skip_validation=bool(args.skip_validation))
        return 1
    except RuntimeError as exc:
        _print_failure(exc, skip_validation=bool(args.skip_validation))
        return 1

    if run.validation is not None:
        _print_diagnostics(run.validation)
        print(format_report(run.validation))
    for warning in run.result.warnings:
        print(f"Warning: {warning}")
    print(f"Duration: {time.perf_counter() - started:.2f}s")
    return 0


def _print_diagnostics(result: ValidationResult) -> None:
    for error in result.errors:
        print(f"Error: {error}")
    for warning in result.warnings:
        print(f"Warning: {warning}")


def _print_failure(exc: Exception, *, skip_validation: bool) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if not skip_validation:
        print(
            "Try --skip-validation if the OpenAPI document is known to generate correctly",
            file=sys.stderr,
        )


if __name__ == "__main__":
    raise SystemExit(main())
