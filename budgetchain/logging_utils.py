"""Mini README: Application-wide logging helpers for budgetchain.

Structure:
    * configure_root_logger - one-time root logger setup accepting level names.
    * get_logger - factory returning module loggers with baseline configuration.
    * get_audit_logger - dedicated channel for approval and income audit lines.

Usage:
    Modules import ``get_logger`` for diagnostics. Workflow code writes one line
    per state change to ``get_audit_logger()`` so operators can filter the audit
    trail (``budgetchain.audit``) from ordinary debugging output.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

AUDIT_LOGGER_NAME = "budgetchain.audit"

_LOGGER_INITIALISED = False


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Configure the root logger once; later calls only adjust the level."""

    global _LOGGER_INITIALISED
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    if _LOGGER_INITIALISED:
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    if not _LOGGER_INITIALISED:
        configure_root_logger()
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Return the audit trail logger shared by the workflows."""

    return get_logger(AUDIT_LOGGER_NAME)
