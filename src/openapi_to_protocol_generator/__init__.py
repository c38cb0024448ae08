"""OpenAPI to typing.Protocol client interface generator package."""

from __future__ import annotations

from .cli import main
from .config import Configuration, resolve_configuration
from .generator import GenerationRun, generate_code, run_generation

__all__ = [
    "Configuration",
    "GenerationRun",
    "generate_code",
    "main",
    "resolve_configuration",
    "run_generation",
]
