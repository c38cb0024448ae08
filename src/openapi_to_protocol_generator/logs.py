"""Logger hierarchy for the generation pipeline.

Modules obtain a child logger with ``get_logger(__name__)``. The command line
calls ``configure_logging`` once to attach a stream handler; library callers
keep full control over handlers and levels.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

_LOGGER_NAME = "openapi_to_protocol"
_HANDLER_MARKER = "_openapi_to_protocol_handler"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a child logger under the ``openapi_to_protocol`` hierarchy."""
    if name is None or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    short = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{_LOGGER_NAME}.{short}")


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure the generator logger hierarchy for command line use.

    Args:
        verbose (bool): Enable DEBUG records.
        quiet (bool): Only emit WARNING and above.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger(_LOGGER_NAME)
    root_logger.setLevel(level)

    # Rebind on every call so the handler follows the current sys.stdout.
    for existing in list(root_logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    setattr(handler, _HANDLER_MARKER, True)
    root_logger.addHandler(handler)
