"""Mini README: Approval workflow for allocations, expenditures and proposals.

Structure:
    * FundGuard - process-wide lock around admission checks and the transition
      they protect.
    * ApprovalWorkflow - submit / approve / reject / list operations.

State machine: PROPOSED -> APPROVED or PROPOSED -> REJECTED, both terminal.
Treasurers submit and Chairmen decide. Admission control runs at submission
and again at approval, because several PROPOSED records may compete for the
same money. Approval hashes the canonical document, attempts the ledger write
and then commits the record, whatever the ledger outcome; an unanchored
approval keeps ``ledger.anchored`` false for later reconciliation.

The General Fund is shared by every category, so a single guard serialises
all admission decisions. The store update is additionally conditional on the
record still being PROPOSED.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Union

from ..logging_utils import get_audit_logger, get_logger
from .balance import BalanceEngine
from .categories import BudgetCategory, RecordKind, RecordStatus, Role
from .drafts import ExpenditureDraft, parse_draft
from .errors import (
    InsufficientCategoryBudget,
    InsufficientGeneralFund,
    InvalidStateTransition,
    NoIncomeRecorded,
    ProposalAlreadySpent,
    StoreFailure,
    UnbudgetedCategory,
    ValidationError,
)
from .hashing import DocumentHasher, approval_document
from .officials import Official, require_role
from .records import ApprovableRecord, ExpenditureRecord, LedgerRef, newest_first

if TYPE_CHECKING:
    from pydantic import BaseModel

    from ..ledger.base import LedgerGateway, LedgerReceipt
    from ..storage.base import RecordStore

LOGGER = get_logger(__name__)
AUDIT = get_audit_logger()

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _approvable_kind(kind: Union[RecordKind, str]) -> RecordKind:
    kind = RecordKind.from_str(kind)
    if not kind.requires_approval:
        raise ValidationError(f"{kind.value} records have no approval workflow.", ["kind"])
    return kind


def _require_proposed(record: ApprovableRecord, action: str) -> None:
    if record.status.is_terminal:
        raise InvalidStateTransition(record.record_id, record.status.value, action)


class FundGuard:
    """Re-entrant lock shared by every admission decision in the process."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def __enter__(self) -> "FundGuard":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()


class ApprovalWorkflow:
    """Govern PROPOSED -> APPROVED/REJECTED transitions with admission control."""

    def __init__(
        self,
        store: "RecordStore",
        ledger: "LedgerGateway",
        *,
        hasher: Optional[DocumentHasher] = None,
        balances: Optional[BalanceEngine] = None,
        guard: Optional[FundGuard] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._hasher = hasher or DocumentHasher()
        self._balances = balances or BalanceEngine(store)
        self._guard = guard or FundGuard()
        self._clock = clock

    # -- admission control -------------------------------------------------

    def _admit(
        self, kind: RecordKind, amount: Decimal, category: Optional[BudgetCategory] = None
    ) -> None:
        """Raise an ``AdmissionDenied`` subclass if ``amount`` cannot be committed."""

        summary = self._balances.general_fund_summary()
        if summary.total_income <= 0:
            raise NoIncomeRecorded(kind.value)
        if kind is RecordKind.PROPOSAL:
            budget = self._balances.category_budgets().get(category)  # type: ignore[arg-type]
            if budget is None:
                raise UnbudgetedCategory(category.value if category else "")
            if amount > budget.remaining:
                raise InsufficientCategoryBudget(category.value, budget.remaining, amount)
        if amount > summary.available_balance:
            raise InsufficientGeneralFund(summary.available_balance, amount)

    def _ensure_unspent(self, proposal_id: str, exclude: Optional[str] = None) -> None:
        for expenditure in self._store.find(RecordKind.EXPENDITURE, proposal_id=proposal_id):
            if expenditure.record_id == exclude:
                continue
            if expenditure.status is not RecordStatus.REJECTED:
                raise ProposalAlreadySpent(proposal_id, expenditure.record_id)

    # -- submission ----------------------------------------------------------

    def _record_fields(self, kind: RecordKind, draft: "BaseModel") -> Dict[str, object]:
        if not isinstance(draft, ExpenditureDraft):
            return draft.record_fields()  # type: ignore[attr-defined]
        if draft.proposal_id is None:
            missing = draft.missing_standalone_fields()
            if missing:
                raise ValidationError(
                    f"Missing required fields: {', '.join(missing)} (or a proposal_id)", missing
                )
            return draft.record_fields()

        proposal = self._store.get(RecordKind.PROPOSAL, draft.proposal_id)
        if proposal.status is not RecordStatus.APPROVED:
            raise ValidationError(
                "Can only create expenditure for APPROVED proposals. "
                f"Proposal {proposal.record_id} is currently {proposal.status.value}.",
                ["proposal_id"],
            )
        self._ensure_unspent(proposal.record_id)
        return {
            "amount": proposal.amount,
            "purpose": proposal.purpose,
            "fund_source": proposal.fund_source,
            "proposal_id": proposal.record_id,
            "supporting_document_ref": draft.supporting_document_ref,
        }

    def submit(
        self,
        kind: Union[RecordKind, str],
        draft: Union[Mapping[str, object], "BaseModel"],
        actor: Official,
    ) -> ApprovableRecord:
        """Validate, admit and persist a new PROPOSED record."""

        kind = _approvable_kind(kind)
        require_role(actor, Role.TREASURER)
        parsed = parse_draft(kind, draft)
        with self._guard:
            fields = self._record_fields(kind, parsed)
            category = fields.get("fund_source") if kind is RecordKind.PROPOSAL else None
            self._admit(kind, fields["amount"], category)  # type: ignore[arg-type]
            fields.update(
                created_by=actor.summary(),
                created_by_role=actor.role,
                created_at=self._clock(),
                status=RecordStatus.PROPOSED,
                ledger=LedgerRef(),
            )
            record = self._store.create(kind, fields)
        AUDIT.info(
            "%s %s submitted by %s amount=%s",
            kind.value,
            record.record_id,
            actor.official_id,
            record.amount,
        )
        return record  # type: ignore[return-value]

    # -- decisions -----------------------------------------------------------

    def _ledger_fields(
        self, record: ApprovableRecord, digest: str, approver: Official
    ) -> Dict[str, object]:
        fields: Dict[str, object] = {"amount": record.amount}
        fields.update(record.business_fields())
        fields.update(
            document_digest=digest,
            treasurer_address=record.created_by.wallet_address,
            chairman_address=approver.wallet_address,
        )
        if isinstance(record, ExpenditureRecord) and record.proposal_id:
            proposal = self._store.get(RecordKind.PROPOSAL, record.proposal_id)
            fields["proposal_digest"] = proposal.document_digest
        return fields

    def _commit(
        self,
        kind: RecordKind,
        record_id: str,
        patch: Dict[str, object],
        receipt: Optional["LedgerReceipt"] = None,
    ) -> ApprovableRecord:
        try:
            return self._store.update(  # type: ignore[return-value]
                kind, record_id, patch, expected_status=RecordStatus.PROPOSED
            )
        except StoreFailure:
            if receipt is not None and receipt.committed:
                LOGGER.error(
                    "Ledger write %s for %s %s is orphaned: record update failed",
                    receipt.ref,
                    kind.value,
                    record_id,
                )
            raise

    def approve(self, kind: Union[RecordKind, str], record_id: str, actor: Official) -> ApprovableRecord:
        """Approve a PROPOSED record, hash it and attempt to anchor it."""

        kind = _approvable_kind(kind)
        require_role(actor, Role.CHAIRMAN)
        with self._guard:
            record: ApprovableRecord = self._store.get(kind, record_id)  # type: ignore[assignment]
            _require_proposed(record, "approve")
            if isinstance(record, ExpenditureRecord) and record.proposal_id:
                self._ensure_unspent(record.proposal_id, exclude=record.record_id)
            self._admit(kind, record.amount, record.budget_category)

            approver = actor.summary()
            approved_at = self._clock()
            digest = self._hasher.digest(kind, approval_document(record, approver, approved_at))
            receipt = self._ledger.record(
                kind, self._ledger_fields(record, digest, actor), actor.wallet_address
            )
            updated = self._commit(
                kind,
                record_id,
                {
                    "status": RecordStatus.APPROVED,
                    "approved_by": approver,
                    "approved_at": approved_at,
                    "document_digest": digest,
                    "ledger": LedgerRef(ref=receipt.ref, anchored=receipt.committed),
                },
                receipt,
            )
        AUDIT.info(
            "%s %s approved by %s digest=%s anchored=%s tx=%s",
            kind.value,
            record_id,
            actor.official_id,
            digest,
            receipt.committed,
            receipt.ref,
        )
        return updated

    def reject(
        self, kind: Union[RecordKind, str], record_id: str, actor: Official, reason: str
    ) -> ApprovableRecord:
        """Reject a PROPOSED record; no digest and no ledger interaction."""

        kind = _approvable_kind(kind)
        require_role(actor, Role.CHAIRMAN)
        reason = (reason or "").strip()
        with self._guard:
            record: ApprovableRecord = self._store.get(kind, record_id)  # type: ignore[assignment]
            _require_proposed(record, "reject")
            if not reason:
                raise ValidationError("A rejection reason is required.", ["rejection_reason"])
            updated = self._commit(
                kind,
                record_id,
                {
                    "status": RecordStatus.REJECTED,
                    "rejected_by": actor.summary(),
                    "rejected_at": self._clock(),
                    "rejection_reason": reason,
                },
            )
        AUDIT.info("%s %s rejected by %s: %s", kind.value, record_id, actor.official_id, reason)
        return updated

    # -- queries -------------------------------------------------------------

    def get_record(self, kind: Union[RecordKind, str], record_id: str) -> ApprovableRecord:
        return self._store.get(_approvable_kind(kind), record_id)  # type: ignore[return-value]

    def list_records(self, kind: Union[RecordKind, str], actor: Official) -> List[ApprovableRecord]:
        """Chairmen see every record; treasurers see their own submissions."""

        kind = _approvable_kind(kind)
        require_role(actor)
        if actor.role is Role.CHAIRMAN:
            records = self._store.find(kind)
        else:
            records = self._store.find(kind, created_by_id=actor.official_id)
        return newest_first(records)  # type: ignore[return-value]
