"""Mini README: Concrete ledger gateway implementations.

Importing this package registers the built-in adapters with ``REGISTRY``:
``simulated`` (in-process append-only log) and ``web3`` (deployed contracts
over JSON-RPC). New adapters subclass ``LedgerGateway`` and call
``REGISTRY.register`` at import time.
"""

from .simulated import LedgerEntry, SimulatedLedgerGateway
from .web3_gateway import Web3LedgerGateway

__all__ = ["LedgerEntry", "SimulatedLedgerGateway", "Web3LedgerGateway"]
