"""Mini README: Interactive interfaces (HTTP) for budgetchain.

Exports the FastAPI application factory that exposes balances and the
approval workflow. The CLI entry point lives in ``main_treasury.py`` at the
repository root.
"""

from .web_app import create_application

__all__ = ["create_application"]
