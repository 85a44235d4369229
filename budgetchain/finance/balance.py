"""Mini README: Balance computations over the four record collections.

Structure:
    * GeneralFundSummary - income versus approved commitments.
    * CategoryBudget - allocated, spent and remaining money per budget line.
    * BalanceEngine - stateless calculator re-reading the store on every call;
      also counts records per status for the public summary.

Only anchored income counts towards the General Fund, and only APPROVED
allocations, expenditures and proposals count against it. Categories appear in
``category_budgets`` once they have approved allocation money; a category with
proposals but no allocation is unbudgeted and therefore absent. Nothing here is
cached, so results always reflect the store at call time.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional

from ..logging_utils import get_logger
from .categories import BudgetCategory, RecordKind, RecordStatus, RevenueSource
from .money import ZERO, total

if TYPE_CHECKING:
    from ..storage.base import RecordStore

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GeneralFundSummary:
    """Totals behind the General Fund invariant."""

    total_income: Decimal = ZERO
    total_allocations: Decimal = ZERO
    total_expenditures: Decimal = ZERO
    total_proposals: Decimal = ZERO

    @property
    def total_committed(self) -> Decimal:
        return self.total_allocations + self.total_expenditures + self.total_proposals

    @property
    def available_balance(self) -> Decimal:
        return self.total_income - self.total_committed

    def as_dict(self) -> Dict[str, str]:
        return {
            "total_income": str(self.total_income),
            "total_allocations": str(self.total_allocations),
            "total_expenditures": str(self.total_expenditures),
            "total_proposals": str(self.total_proposals),
            "available_balance": str(self.available_balance),
        }


@dataclass(frozen=True, slots=True)
class CategoryBudget:
    """Approved allocation money for one budget line and what proposals drew."""

    category: BudgetCategory
    allocated: Decimal = ZERO
    spent: Decimal = ZERO

    @property
    def remaining(self) -> Decimal:
        return self.allocated - self.spent

    def as_dict(self) -> Dict[str, str]:
        return {
            "category": self.category.value,
            "allocated": str(self.allocated),
            "spent": str(self.spent),
            "remaining": str(self.remaining),
        }


class BalanceEngine:
    """Derive money totals from the record store on demand."""

    def __init__(self, store: "RecordStore") -> None:
        self._store = store

    def _approved_amounts(self, kind: RecordKind) -> List[Decimal]:
        return [record.amount for record in self._store.find(kind, status=RecordStatus.APPROVED)]

    def _anchored_income(self) -> list:
        return [record for record in self._store.find(RecordKind.INCOME) if record.ledger.anchored]

    def general_fund_summary(self) -> GeneralFundSummary:
        """Anchored income minus approved allocations, expenditures and proposals."""

        summary = GeneralFundSummary(
            total_income=total(record.amount for record in self._anchored_income()),
            total_allocations=total(self._approved_amounts(RecordKind.ALLOCATION)),
            total_expenditures=total(self._approved_amounts(RecordKind.EXPENDITURE)),
            total_proposals=total(self._approved_amounts(RecordKind.PROPOSAL)),
        )
        LOGGER.debug(
            "General fund -> income: %s committed: %s available: %s",
            summary.total_income,
            summary.total_committed,
            summary.available_balance,
        )
        return summary

    def category_budgets(self) -> Dict[BudgetCategory, CategoryBudget]:
        """Budget per category that has approved allocation money."""

        allocated: Dict[BudgetCategory, Decimal] = defaultdict(lambda: ZERO)
        for record in self._store.find(RecordKind.ALLOCATION, status=RecordStatus.APPROVED):
            allocated[record.category] += record.amount

        spent: Dict[BudgetCategory, Decimal] = defaultdict(lambda: ZERO)
        for record in self._store.find(RecordKind.PROPOSAL, status=RecordStatus.APPROVED):
            spent[record.fund_source] += record.amount

        return {
            category: CategoryBudget(category=category, allocated=amount, spent=spent[category])
            for category, amount in allocated.items()
            if amount > 0
        }

    def category_budget(self, category: BudgetCategory) -> Optional[CategoryBudget]:
        """Budget for ``category`` or ``None`` when it is unbudgeted."""

        return self.category_budgets().get(BudgetCategory.from_str(category))

    def income_by_source(self) -> Dict[RevenueSource, Decimal]:
        """Anchored income broken down by revenue source."""

        breakdown: Dict[RevenueSource, Decimal] = defaultdict(lambda: ZERO)
        for record in self._anchored_income():
            breakdown[record.revenue_source] += record.amount
        return dict(breakdown)

    def status_counts(self, kind: RecordKind) -> Dict[RecordStatus, int]:
        """Records of an approvable ``kind`` per status, zero-filled."""

        counts = {status: 0 for status in RecordStatus}
        for record in self._store.find(RecordKind.from_str(kind)):
            counts[record.status] += 1
        return counts
