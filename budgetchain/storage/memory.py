"""Mini README: In-memory record store.

Structure:
    * InMemoryRecordStore - thread-safe dictionaries keyed by record kind.

Identifiers are deterministic (``allocation_0001``) in the same spirit as the
demo ledgers elsewhere in the project. Records are frozen dataclasses, so
updates swap in a ``dataclasses.replace`` copy; fields that may only be written
once (digest, approval and rejection details) are refused if already set.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from ..finance.categories import RecordKind, RecordStatus
from ..finance.errors import InvalidStateTransition, RecordNotFound
from ..finance.records import RECORD_TYPES, LedgerRecord
from ..logging_utils import get_logger
from .base import RecordStore

LOGGER = get_logger(__name__)

WRITE_ONCE_FIELDS = (
    "document_digest",
    "approved_by",
    "approved_at",
    "rejected_by",
    "rejected_at",
    "rejection_reason",
)


class InMemoryRecordStore(RecordStore):
    """Process-local store; suitable for tests and single-process deployments."""

    store_name = "memory"

    def __init__(self) -> None:
        self._records: Dict[RecordKind, Dict[str, LedgerRecord]] = {kind: {} for kind in RecordKind}
        self._sequences: Dict[RecordKind, int] = {kind: 0 for kind in RecordKind}
        self._lock = threading.Lock()

    def _next_id(self, kind: RecordKind) -> str:
        self._sequences[kind] += 1
        return f"{kind.value}_{self._sequences[kind]:04d}"

    def create(self, kind: RecordKind, fields: Mapping[str, object]) -> LedgerRecord:
        kind = RecordKind.from_str(kind)
        record_cls = RECORD_TYPES[kind]
        with self._lock:
            record_id = self._next_id(kind)
            try:
                record = record_cls(record_id=record_id, **fields)
            except TypeError as error:
                self._sequences[kind] -= 1
                raise ValueError(f"Cannot build {kind.value} record: {error}") from error
            self._records[kind][record_id] = record
        LOGGER.debug("Stored %s %s", kind.value, record_id)
        return record

    def get(self, kind: RecordKind, record_id: str) -> LedgerRecord:
        kind = RecordKind.from_str(kind)
        with self._lock:
            record = self._records[kind].get(record_id)
        if record is None:
            raise RecordNotFound(kind.value, record_id)
        return record

    def find(self, kind: RecordKind, **filters: object) -> List[LedgerRecord]:
        kind = RecordKind.from_str(kind)
        with self._lock:
            records = list(self._records[kind].values())
        return [record for record in records if _matches(record, filters)]

    def update(
        self,
        kind: RecordKind,
        record_id: str,
        patch: Mapping[str, object],
        *,
        expected_status: Optional[RecordStatus] = None,
    ) -> LedgerRecord:
        kind = RecordKind.from_str(kind)
        with self._lock:
            current = self._records[kind].get(record_id)
            if current is None:
                raise RecordNotFound(kind.value, record_id)
            if expected_status is not None:
                status = getattr(current, "status", None)
                if status is not expected_status:
                    raise InvalidStateTransition(
                        record_id, getattr(status, "value", str(status)), "update"
                    )
            for name in WRITE_ONCE_FIELDS:
                if name in patch and getattr(current, name, None) is not None:
                    raise ValueError(f"Field '{name}' of {record_id} is already set.")
            try:
                updated = replace(current, **patch)
            except TypeError as error:
                raise ValueError(f"Cannot update {record_id}: {error}") from error
            self._records[kind][record_id] = updated
        LOGGER.debug("Updated %s %s fields=%s", kind.value, record_id, sorted(patch))
        return updated


def _matches(record: LedgerRecord, filters: Mapping[str, object]) -> bool:
    for name, expected in filters.items():
        if name == "created_by_id":
            actual = record.created_by.official_id
        else:
            actual = getattr(record, name, None)
        if actual != expected:
            return False
    return True
