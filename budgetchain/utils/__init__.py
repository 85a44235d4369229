"""Mini README: Utility helper functions for budgetchain.

Currently exports the entry point loader used by the ledger gateway registry
to discover third-party adapters at runtime.
"""

from .plugin_loader import load_entry_point_plugins

__all__ = ["load_entry_point_plugins"]
