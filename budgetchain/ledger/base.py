"""Mini README: Abstract ledger gateway anchoring document digests.

Structure:
    * LedgerReceipt - ``{ref, committed}`` outcome of one ledger write.
    * LedgerRejected - raised inside adapters when a write cannot proceed.
    * LedgerGateway - base class; ``record`` wraps the adapter's ``submit``.

``record`` never raises. Network faults, gas estimation errors, reverted
transactions and missing contract artifacts all come back as
``LedgerReceipt(ref=None, committed=False)`` and a warning in the log, which
the workflows store as ``anchored=False``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from ..finance.categories import RecordKind
from ..logging_utils import get_logger

if TYPE_CHECKING:
    from ..configuration import BudgetchainSettings

LOGGER = get_logger(__name__)

_PARTIES = ("document_digest", "treasurer_address")

REQUIRED_FIELDS: Dict[RecordKind, Tuple[str, ...]] = {
    RecordKind.INCOME: ("amount", "revenue_source") + _PARTIES,
    RecordKind.ALLOCATION: ("amount", "category", "fund_source", "chairman_address") + _PARTIES,
    RecordKind.PROPOSAL: (
        "amount",
        "purpose",
        "fund_source",
        "expense_type",
        "proposer",
        "chairman_address",
    )
    + _PARTIES,
    RecordKind.EXPENDITURE: ("amount", "purpose", "fund_source", "chairman_address") + _PARTIES,
}


class LedgerRejected(Exception):
    """A ledger write was refused before or after submission."""


@dataclass(frozen=True, slots=True)
class LedgerReceipt:
    """Transaction reference and whether the write was committed."""

    ref: Optional[str]
    committed: bool

    @classmethod
    def failed(cls) -> "LedgerReceipt":
        return cls(ref=None, committed=False)


class LedgerGateway(ABC):
    """Base interface for append-only ledger integrations."""

    gateway_name: str = "generic"

    def __init__(self, endpoint: Optional[str] = None) -> None:
        self.endpoint = endpoint
        LOGGER.debug("Initialising %s ledger gateway with endpoint '%s'", self.gateway_name, endpoint)

    @classmethod
    def from_settings(cls, settings: "BudgetchainSettings") -> "LedgerGateway":
        return cls(endpoint=settings.ledger_provider_url)

    def record(
        self, kind: RecordKind, fields: Mapping[str, object], signer_address: str
    ) -> LedgerReceipt:
        """Anchor ``fields`` for ``kind`` signed by ``signer_address``; never raises."""

        kind = RecordKind.from_str(kind)
        try:
            self._validate(kind, fields, signer_address)
            receipt = self.submit(kind, dict(fields), signer_address)
        except Exception as error:  # ledger faults must not reach the workflow
            LOGGER.warning(
                "Ledger write failed (%s via %s): %s", kind.value, self.gateway_name, error
            )
            return LedgerReceipt.failed()
        if receipt.committed:
            LOGGER.info("Anchored %s on ledger tx=%s", kind.value, receipt.ref)
        else:
            LOGGER.warning("Ledger write for %s was not committed", kind.value)
        return receipt

    @staticmethod
    def _validate(kind: RecordKind, fields: Mapping[str, object], signer_address: str) -> None:
        missing = [name for name in REQUIRED_FIELDS[kind] if not fields.get(name)]
        if missing:
            raise LedgerRejected(f"Missing ledger fields: {', '.join(missing)}")
        if Decimal(str(fields["amount"])) <= 0:
            raise LedgerRejected("Ledger amounts must be positive")
        if not signer_address:
            raise LedgerRejected("A signer address is required")

    @abstractmethod
    def submit(self, kind: RecordKind, fields: Dict[str, object], signer_address: str) -> LedgerReceipt:
        """Send the write; adapters may raise, ``record`` absorbs the failure."""

    def entry_counts(self) -> Dict[RecordKind, int]:
        """Number of anchored writes per record kind; empty when the adapter cannot count."""

        return {}

    def close(self) -> None:
        """Release connections held by the adapter."""

    def metadata(self) -> Dict[str, str]:
        """Return diagnostic metadata for status displays."""

        return {
            "gateway": self.gateway_name,
            "endpoint": self.endpoint or "not configured",
        }
