"""Mini README: Abstract record store used by the finance workflows.

Structure:
    * RecordStore - create/get/find/update contract, no business rules.

Stores raise ``RecordNotFound`` for unknown identifiers and ``StoreFailure``
when the backend is unavailable. ``update`` accepts ``expected_status`` so
implementations can apply a state transition as a single compare-and-set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional

from ..finance.categories import RecordKind, RecordStatus
from ..finance.records import LedgerRecord


class RecordStore(ABC):
    """Keyed collections of finance records, one per ``RecordKind``."""

    store_name: str = "generic"

    @abstractmethod
    def create(self, kind: RecordKind, fields: Mapping[str, object]) -> LedgerRecord:
        """Persist a new record built from ``fields`` and return it with its id."""

    @abstractmethod
    def get(self, kind: RecordKind, record_id: str) -> LedgerRecord:
        """Return a record or raise ``RecordNotFound``."""

    @abstractmethod
    def find(self, kind: RecordKind, **filters: object) -> List[LedgerRecord]:
        """Return records whose attributes equal every filter value.

        ``created_by_id`` matches the creator's official identifier.
        """

    @abstractmethod
    def update(
        self,
        kind: RecordKind,
        record_id: str,
        patch: Mapping[str, object],
        *,
        expected_status: Optional[RecordStatus] = None,
    ) -> LedgerRecord:
        """Apply ``patch`` and return the stored result.

        Raises ``InvalidStateTransition`` when ``expected_status`` is given and
        the stored record no longer has it.
        """

    def find_one(self, kind: RecordKind, **filters: object) -> Optional[LedgerRecord]:
        matches = self.find(kind, **filters)
        return matches[0] if matches else None

    def metadata(self) -> Dict[str, str]:
        """Return diagnostic metadata for status displays."""

        return {"store": self.store_name}
