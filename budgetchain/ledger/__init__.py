"""Mini README: Ledger anchoring subsystem package initialiser.

Re-exports the gateway abstractions. ``base`` holds the never-raising
``LedgerGateway`` contract, ``registry`` maps identifiers to adapters, and
``providers`` contains the built-in implementations.
"""

from .base import LedgerGateway, LedgerReceipt, LedgerRejected
from .registry import GatewayRegistry, REGISTRY
from . import providers  # noqa: F401  # ensure built-in gateways register on import

__all__ = [
    "GatewayRegistry",
    "LedgerGateway",
    "LedgerReceipt",
    "LedgerRejected",
    "REGISTRY",
]
