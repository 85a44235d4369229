"""Mini README: Gateway registry enabling swappable ledger integrations.

Structure:
    * GatewayRegistry - maps identifiers to ``LedgerGateway`` classes and
      builds them from settings.

Built-in adapters register on import of ``budgetchain.ledger.providers``;
third-party packages can expose classes under the
``budgetchain.ledger_gateways`` entry point group.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Type

from ..logging_utils import get_logger
from ..utils.plugin_loader import load_entry_point_plugins
from .base import LedgerGateway

if TYPE_CHECKING:
    from ..configuration import BudgetchainSettings

LOGGER = get_logger(__name__)

PLUGIN_GROUP = "budgetchain.ledger_gateways"


class GatewayRegistry:
    """Simple registry for mapping gateway identifiers to classes."""

    def __init__(self) -> None:
        self._gateways: Dict[str, Type[LedgerGateway]] = {}

    def register(self, gateway: Type[LedgerGateway]) -> None:
        """Register a new gateway class with the registry."""

        identifier = gateway.gateway_name.lower()
        LOGGER.debug("Registering ledger gateway '%s'", identifier)
        self._gateways[identifier] = gateway

    def available_gateways(self) -> Iterable[str]:
        """Return iterable of gateway identifiers for display."""

        return sorted(self._gateways.keys())

    def discover_plugins(self, group: str = PLUGIN_GROUP) -> int:
        """Register gateway classes published through entry points."""

        registered = 0
        for plugin in load_entry_point_plugins(group):
            if isinstance(plugin, type) and issubclass(plugin, LedgerGateway):
                self.register(plugin)
                registered += 1
            else:
                LOGGER.warning("Ignoring entry point %r: not a LedgerGateway subclass", plugin)
        return registered

    def create(self, identifier: str, settings: "BudgetchainSettings") -> LedgerGateway:
        """Instantiate the gateway matching ``identifier`` from settings."""

        gateway_cls = self._gateways.get(identifier.lower())
        if not gateway_cls:
            raise KeyError(f"Unknown ledger gateway '{identifier}'")
        LOGGER.info("Creating ledger gateway '%s'", identifier)
        return gateway_cls.from_settings(settings)


REGISTRY = GatewayRegistry()
