"""Mini README: Ethereum-compatible ledger gateway built on web3.py.

Structure:
    * CONTRACT_CALLS - record kind to (contract artifact, method) mapping.
    * COUNT_FUNCTIONS - per-contract counters read for the public summary.
    * Web3LedgerGateway - loads Truffle artifacts, bounds gas, sends and waits.

Each record kind has its own contract (``IncomeContract``,
``AllocationContract``, ``ExpenditureContract``, ``ProposalContract``) whose
ABI and deployed address come from the compiled artifact JSON. Amounts are
scaled from pesos to the ledger's integer unit (18 decimals by default).
Gas is estimated first; writes whose estimate exceeds the ceiling are refused,
otherwise ``min(estimate + headroom, ceiling)`` is attached. Every failure is
raised as an exception and absorbed by ``LedgerGateway.record``.
"""

from __future__ import annotations

import json
import threading
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from web3 import Web3

from ...finance.categories import RecordKind
from ...finance.money import to_ledger_units
from ...logging_utils import get_logger
from ..base import LedgerGateway, LedgerReceipt, LedgerRejected
from ..registry import REGISTRY

if TYPE_CHECKING:
    from ...configuration import BudgetchainSettings

LOGGER = get_logger(__name__)

CONTRACT_CALLS: Dict[RecordKind, Tuple[str, str]] = {
    RecordKind.INCOME: ("IncomeContract", "recordIncome"),
    RecordKind.ALLOCATION: ("AllocationContract", "recordAllocation"),
    RecordKind.EXPENDITURE: ("ExpenditureContract", "recordExpenditure"),
    RecordKind.PROPOSAL: ("ProposalContract", "recordProposal"),
}

COUNT_FUNCTIONS: Dict[RecordKind, str] = {
    RecordKind.INCOME: "incomeCount",
    RecordKind.ALLOCATION: "allocationCount",
    RecordKind.EXPENDITURE: "expenditureCount",
    RecordKind.PROPOSAL: "proposalCount",
}


def _text(value: object) -> str:
    return str(getattr(value, "value", value))


class Web3LedgerGateway(LedgerGateway):
    """Send ledger writes to deployed contracts over JSON-RPC."""

    gateway_name = "web3"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        artifacts_directory: Path = Path("blockchain/build/contracts"),
        gas_headroom: int = 100_000,
        gas_ceiling: int = 6_000_000,
        timeout_seconds: float = 30.0,
        amount_decimals: int = 18,
        web3: Optional[Any] = None,
    ) -> None:
        super().__init__(endpoint or "http://127.0.0.1:7545")
        self.artifacts_directory = Path(artifacts_directory)
        self.gas_headroom = gas_headroom
        self.gas_ceiling = gas_ceiling
        self.timeout_seconds = timeout_seconds
        self.amount_decimals = amount_decimals
        self._web3 = web3 or Web3(
            Web3.HTTPProvider(self.endpoint, request_kwargs={"timeout": timeout_seconds})
        )
        self._contracts: Dict[str, Any] = {}
        self._abis: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: "BudgetchainSettings") -> "Web3LedgerGateway":
        return cls(
            endpoint=settings.ledger_provider_url,
            artifacts_directory=settings.contract_artifacts_directory,
            gas_headroom=settings.ledger_gas_headroom,
            gas_ceiling=settings.ledger_gas_ceiling,
            timeout_seconds=settings.ledger_timeout_seconds,
            amount_decimals=settings.ledger_amount_decimals,
        )

    def _contract(self, name: str) -> Any:
        """Load and cache the contract described by ``<name>.json``."""

        with self._lock:
            if name in self._contracts:
                return self._contracts[name]
            path = self.artifacts_directory / f"{name}.json"
            if not path.exists():
                raise LedgerRejected(f"{name} artifact not found at {path}")
            artifact = json.loads(path.read_text(encoding="utf-8"))
            networks = artifact.get("networks") or {}
            address = next(
                (network.get("address") for network in networks.values() if network.get("address")),
                None,
            )
            if not address:
                raise LedgerRejected(f"{name} is not deployed (no network address in artifact)")
            abi = artifact.get("abi") or []
            contract = self._web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
            self._contracts[name] = contract
            self._abis[name] = abi
            LOGGER.debug("Loaded contract %s at %s", name, address)
            return contract

    def _arguments(self, kind: RecordKind, fields: Dict[str, object]) -> List[object]:
        amount = to_ledger_units(Decimal(str(fields["amount"])), self.amount_decimals)
        treasurer = Web3.to_checksum_address(str(fields["treasurer_address"]))
        digest = str(fields["document_digest"])
        if kind is RecordKind.INCOME:
            return [amount, _text(fields["revenue_source"]), digest, treasurer]
        chairman = Web3.to_checksum_address(str(fields["chairman_address"]))
        if kind is RecordKind.ALLOCATION:
            return [
                amount,
                _text(fields["category"]),
                _text(fields["fund_source"]),
                digest,
                treasurer,
                chairman,
            ]
        if kind is RecordKind.PROPOSAL:
            return [
                amount,
                _text(fields["purpose"]),
                _text(fields["fund_source"]),
                _text(fields["expense_type"]),
                _text(fields["proposer"]),
                digest,
                treasurer,
                chairman,
            ]
        proposal_index = self._proposal_index(fields.get("proposal_digest"))
        return [
            amount,
            _text(fields["purpose"]),
            _text(fields["fund_source"]),
            digest,
            proposal_index,
            treasurer,
            chairman,
        ]

    def _proposal_index(self, proposal_digest: object) -> int:
        """On-ledger id of the proposal anchored with ``proposal_digest``; 0 if unknown."""

        if not proposal_digest:
            return 0
        try:
            contract = self._contract(CONTRACT_CALLS[RecordKind.PROPOSAL][0])
            output_names = self._output_names(CONTRACT_CALLS[RecordKind.PROPOSAL][0], "getProposal")
            count = int(contract.functions.proposalCount().call())
            for index in range(1, count + 1):
                result = contract.functions.getProposal(index).call()
                values = result if isinstance(result, (list, tuple)) else [result]
                entry = dict(zip(output_names, values))
                if entry.get("documentHash") == proposal_digest:
                    return int(entry.get("id", index))
        except Exception as error:  # lookup is best effort; 0 means "unlinked"
            LOGGER.warning("Could not resolve ledger proposal id: %s", error)
            return 0
        LOGGER.warning("No ledger proposal found with digest %s", proposal_digest)
        return 0

    def _output_names(self, contract_name: str, function_name: str) -> List[str]:
        for entry in self._abis.get(contract_name, []):
            if entry.get("type") == "function" and entry.get("name") == function_name:
                outputs = entry.get("outputs") or []
                if len(outputs) == 1 and outputs[0].get("components"):
                    return [component["name"] for component in outputs[0]["components"]]
                return [output.get("name", "") for output in outputs]
        return []

    def submit(self, kind: RecordKind, fields: Dict[str, object], signer_address: str) -> LedgerReceipt:
        contract_name, method = CONTRACT_CALLS[kind]
        contract = self._contract(contract_name)
        call = getattr(contract.functions, method)(*self._arguments(kind, fields))
        sender = Web3.to_checksum_address(signer_address)

        estimate = int(call.estimate_gas({"from": sender}))
        if estimate > self.gas_ceiling:
            raise LedgerRejected(f"gas estimate {estimate} exceeds ceiling {self.gas_ceiling}")
        gas_limit = min(estimate + self.gas_headroom, self.gas_ceiling)

        tx_hash = call.transact({"from": sender, "gas": gas_limit})
        receipt = self._web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout_seconds)
        if receipt["status"] != 1:
            raise LedgerRejected(f"transaction {Web3.to_hex(tx_hash)} reverted")
        return LedgerReceipt(ref=Web3.to_hex(receipt["transactionHash"]), committed=True)

    def entry_counts(self) -> Dict[RecordKind, int]:
        """Read each contract's counter; kinds whose contract cannot be read are omitted."""

        counts: Dict[RecordKind, int] = {}
        for kind, function_name in COUNT_FUNCTIONS.items():
            try:
                contract = self._contract(CONTRACT_CALLS[kind][0])
                counts[kind] = int(getattr(contract.functions, function_name)().call())
            except Exception as error:  # transparency view only
                LOGGER.warning("Could not read %s from the ledger: %s", function_name, error)
        return counts

    def metadata(self) -> Dict[str, str]:
        details = super().metadata()
        try:
            connected = bool(self._web3.is_connected())
        except Exception as error:  # status display only
            LOGGER.debug("Connectivity check failed: %s", error)
            connected = False
        details.update(
            connected=str(connected),
            artifacts=str(self.artifacts_directory),
            gas_ceiling=str(self.gas_ceiling),
        )
        return details


REGISTRY.register(Web3LedgerGateway)
