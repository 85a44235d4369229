"""Mini README: One-shot income recording.

Structure:
    * IncomeRecorder - validate, hash, anchor and persist revenue entries.

Income has no approval step: the treasurer's entry is hashed and sent to the
ledger straight away and stored whatever the ledger answers. Only entries with
``ledger.anchored`` set count towards the General Fund, so an outage delays
spending power without losing the record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Mapping, Optional, Union

from ..logging_utils import get_audit_logger, get_logger
from .categories import RecordKind, Role
from .drafts import parse_draft
from .errors import StoreFailure
from .hashing import DocumentHasher, income_document
from .officials import Official, require_role
from .records import IncomeRecord, LedgerRef, newest_first
from .workflow import Clock, utcnow

if TYPE_CHECKING:
    from pydantic import BaseModel

    from ..ledger.base import LedgerGateway
    from ..storage.base import RecordStore

LOGGER = get_logger(__name__)
AUDIT = get_audit_logger()


class IncomeRecorder:
    """Record revenue and anchor its digest immediately."""

    def __init__(
        self,
        store: "RecordStore",
        ledger: "LedgerGateway",
        *,
        hasher: Optional[DocumentHasher] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._hasher = hasher or DocumentHasher()
        self._clock = clock

    def record(self, draft: Union[Mapping[str, object], "BaseModel"], actor: Official) -> IncomeRecord:
        require_role(actor, Role.TREASURER)
        fields = parse_draft(RecordKind.INCOME, draft).record_fields()
        recorder = actor.summary()
        recorded_at = self._clock()

        digest = self._hasher.digest(
            RecordKind.INCOME, income_document(fields, recorder, recorded_at)
        )
        receipt = self._ledger.record(
            RecordKind.INCOME,
            {
                "amount": fields["amount"],
                "revenue_source": fields["revenue_source"],
                "document_digest": digest,
                "treasurer_address": actor.wallet_address,
            },
            actor.wallet_address,
        )

        fields.update(
            created_by=recorder,
            created_by_role=actor.role,
            created_at=recorded_at,
            document_digest=digest,
            ledger=LedgerRef(ref=receipt.ref, anchored=receipt.committed),
        )
        try:
            record = self._store.create(RecordKind.INCOME, fields)
        except StoreFailure:
            if receipt.committed:
                LOGGER.error("Ledger write %s for new income is orphaned: store create failed", receipt.ref)
            raise
        AUDIT.info(
            "income %s recorded by %s amount=%s source=%s anchored=%s tx=%s",
            record.record_id,
            actor.official_id,
            record.amount,
            fields["revenue_source"].value,
            receipt.committed,
            receipt.ref,
        )
        return record  # type: ignore[return-value]

    def list_income(self) -> List[IncomeRecord]:
        """Income entries, newest first."""

        records = self._store.find(RecordKind.INCOME)
        return newest_first(records)  # type: ignore[return-value]
