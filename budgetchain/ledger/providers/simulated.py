"""Mini README: In-process ledger gateway for development and tests.

Structure:
    * LedgerEntry - one appended write.
    * SimulatedLedgerGateway - append-only list with deterministic references.

The simulation keeps the same contract as a real chain adapter: writes are
append-only, references look like transaction hashes, and taking the gateway
offline makes every write come back unanchored.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...finance.categories import RecordKind
from ...logging_utils import get_logger
from ..base import LedgerGateway, LedgerReceipt, LedgerRejected
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    index: int
    kind: RecordKind
    ref: str
    signer_address: str
    fields: Dict[str, object] = field(default_factory=dict)


class SimulatedLedgerGateway(LedgerGateway):
    """Deterministic append-only ledger kept in memory."""

    gateway_name = "simulated"

    def __init__(self, endpoint: Optional[str] = None, *, online: bool = True) -> None:
        super().__init__(endpoint or "memory://ledger")
        self.online = online
        self._entries: List[LedgerEntry] = []
        self._lock = threading.Lock()

    def set_online(self, online: bool) -> None:
        LOGGER.info("Simulated ledger is now %s", "online" if online else "offline")
        self.online = online

    def submit(self, kind: RecordKind, fields: Dict[str, object], signer_address: str) -> LedgerReceipt:
        if not self.online:
            raise LedgerRejected("simulated ledger is offline")
        with self._lock:
            index = len(self._entries) + 1
            seed = f"{index}:{kind.value}:{fields['document_digest']}:{signer_address}"
            ref = "0x" + hashlib.sha256(seed.encode("utf-8")).hexdigest()
            self._entries.append(
                LedgerEntry(
                    index=index,
                    kind=kind,
                    ref=ref,
                    signer_address=signer_address,
                    fields=dict(fields),
                )
            )
        return LedgerReceipt(ref=ref, committed=True)

    @property
    def entries(self) -> List[LedgerEntry]:
        with self._lock:
            return list(self._entries)

    def entry_counts(self) -> Dict[RecordKind, int]:
        counts = {kind: 0 for kind in RecordKind}
        for entry in self.entries:
            counts[entry.kind] += 1
        return counts

    def find_by_digest(self, document_digest: str) -> Optional[LedgerEntry]:
        for entry in self.entries:
            if entry.fields.get("document_digest") == document_digest:
                return entry
        return None

    def metadata(self) -> Dict[str, str]:
        details = super().metadata()
        details.update(online=str(self.online), entries=str(len(self.entries)))
        return details


REGISTRY.register(SimulatedLedgerGateway)
