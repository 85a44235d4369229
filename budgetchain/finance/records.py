"""Mini README: Immutable record types for the four finance collections.

Structure:
    * LedgerRef - ledger transaction reference plus the ``anchored`` flag.
    * LedgerRecord - fields shared by every record kind.
    * IncomeRecord - revenue anchored at creation, no approval step.
    * ApprovableRecord - adds the PROPOSED/APPROVED/REJECTED state fields.
    * AllocationRecord / ExpenditureRecord / ProposalRecord - concrete kinds.
    * RECORD_TYPES - lookup used by stores to build records per kind.
    * newest_first - listing order: creation time, then numeric id sequence.

Records are frozen; stores produce updated copies with ``dataclasses.replace``
so a digest or ledger reference, once written, cannot be edited in place.
``created_by`` holds an ``OfficialSummary`` captured at creation, which is what
``as_dict`` returns to clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Dict, Iterable, List, Optional, Tuple, Type

from .categories import BudgetCategory, RecordKind, RecordStatus, RevenueSource, Role
from .officials import OfficialSummary


@dataclass(frozen=True, slots=True)
class LedgerRef:
    """Outcome of the ledger write; independent of approval status."""

    ref: Optional[str] = None
    anchored: bool = False

    def as_dict(self) -> Dict[str, object]:
        return {"ref": self.ref, "anchored": self.anchored}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True, slots=True, kw_only=True)
class LedgerRecord:
    """Fields common to every finance record."""

    kind: ClassVar[RecordKind]

    record_id: str
    amount: Decimal
    supporting_document_ref: str
    created_by: OfficialSummary
    created_by_role: Role
    created_at: datetime
    document_digest: Optional[str] = None
    ledger: LedgerRef = field(default_factory=LedgerRef)

    def business_fields(self) -> Dict[str, object]:
        """Kind-specific fields, in the order they appear in documents."""

        return {}

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "record_id": self.record_id,
            "kind": self.kind.value,
            "amount": str(self.amount),
        }
        payload.update(
            {
                key: value.value if isinstance(value, (BudgetCategory, RevenueSource)) else value
                for key, value in self.business_fields().items()
            }
        )
        payload.update(
            {
                "supporting_document_ref": self.supporting_document_ref,
                "document_digest": self.document_digest,
                "created_by": self.created_by.as_dict(),
                "created_by_role": self.created_by_role.value,
                "created_at": _iso(self.created_at),
                "ledger": self.ledger.as_dict(),
            }
        )
        return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class IncomeRecord(LedgerRecord):
    """Revenue entry; hashed and anchored the moment it is recorded."""

    kind: ClassVar[RecordKind] = RecordKind.INCOME

    revenue_source: RevenueSource

    def business_fields(self) -> Dict[str, object]:
        return {"revenue_source": self.revenue_source}


@dataclass(frozen=True, slots=True, kw_only=True)
class ApprovableRecord(LedgerRecord):
    """Record that moves PROPOSED -> APPROVED or PROPOSED -> REJECTED once."""

    status: RecordStatus = RecordStatus.PROPOSED
    approved_by: Optional[OfficialSummary] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[OfficialSummary] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def budget_category(self) -> Optional[BudgetCategory]:
        """Budget line this record funds or draws from, when it has one."""

        return None

    def as_dict(self) -> Dict[str, object]:
        payload = LedgerRecord.as_dict(self)
        payload.update(
            {
                "status": self.status.value,
                "approved_by": self.approved_by.as_dict() if self.approved_by else None,
                "approved_at": _iso(self.approved_at),
                "rejected_by": self.rejected_by.as_dict() if self.rejected_by else None,
                "rejected_at": _iso(self.rejected_at),
                "rejection_reason": self.rejection_reason,
            }
        )
        return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class AllocationRecord(ApprovableRecord):
    """Moves General Fund money into a budget category."""

    kind: ClassVar[RecordKind] = RecordKind.ALLOCATION

    category: BudgetCategory
    fund_source: str

    @property
    def budget_category(self) -> BudgetCategory:
        return self.category

    def business_fields(self) -> Dict[str, object]:
        return {"category": self.category, "fund_source": self.fund_source}


@dataclass(frozen=True, slots=True, kw_only=True)
class ProposalRecord(ApprovableRecord):
    """Spending plan drawn against an allocated budget category."""

    kind: ClassVar[RecordKind] = RecordKind.PROPOSAL

    purpose: str
    fund_source: BudgetCategory
    expense_type: str
    proposer: str

    @property
    def budget_category(self) -> BudgetCategory:
        return self.fund_source

    def business_fields(self) -> Dict[str, object]:
        return {
            "purpose": self.purpose,
            "fund_source": self.fund_source,
            "expense_type": self.expense_type,
            "proposer": self.proposer,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class ExpenditureRecord(ApprovableRecord):
    """Actual spending, optionally executing an approved proposal."""

    kind: ClassVar[RecordKind] = RecordKind.EXPENDITURE

    purpose: str
    fund_source: BudgetCategory
    proposal_id: Optional[str] = None

    @property
    def budget_category(self) -> BudgetCategory:
        return self.fund_source

    def business_fields(self) -> Dict[str, object]:
        return {
            "purpose": self.purpose,
            "fund_source": self.fund_source,
            "proposal_id": self.proposal_id,
        }


RECORD_TYPES: Dict[RecordKind, Type[LedgerRecord]] = {
    RecordKind.INCOME: IncomeRecord,
    RecordKind.ALLOCATION: AllocationRecord,
    RecordKind.EXPENDITURE: ExpenditureRecord,
    RecordKind.PROPOSAL: ProposalRecord,
}


def _id_sequence(record_id: str) -> Tuple[str, int]:
    prefix, _, number = record_id.rpartition("_")
    if number.isdigit():
        return prefix, int(number)
    return record_id, -1


def newest_first(records: Iterable[LedgerRecord]) -> List[LedgerRecord]:
    """Sort by creation time, breaking ties on the numeric id sequence."""

    return sorted(
        records,
        key=lambda record: (record.created_at, _id_sequence(record.record_id)),
        reverse=True,
    )
