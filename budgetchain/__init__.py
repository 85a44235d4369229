"""Mini README: Core package initializer for the budgetchain platform.

budgetchain tracks barangay finances: income, budget allocations, spending
proposals and expenditures. Every approval is hashed and anchored on an
append-only ledger. This module only re-exports the logging helpers so that
importing the package stays free of web or ledger dependencies.
"""

from .logging_utils import get_audit_logger, get_logger

__all__ = ["get_audit_logger", "get_logger"]
