"""Mini README: Exception taxonomy for the finance workflows.

Structure:
    * BudgetchainError - root of every domain error.
    * ValidationError / PermissionDenied / RecordNotFound - request problems.
    * AdmissionDenied and subclasses - balance rules refusing a submission or approval.
    * InvalidStateTransition - acting on a record that already left PROPOSED.
    * StoreFailure - persistence layer could not complete the operation.

Admission errors keep the numbers that caused the denial as attributes so the
interface can render "Available: X, Requested: Y" without re-deriving them.
Ledger failures have no exception here: gateways absorb them and report an
unanchored receipt instead.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional

from .money import CURRENCY, format_money


class BudgetchainError(Exception):
    """Base class for domain errors surfaced to callers."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_dict(self) -> Dict[str, object]:
        return {"code": self.code, "message": self.message}


class ValidationError(BudgetchainError):
    """Missing or malformed fields; nothing was changed."""

    code = "validation_error"

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])

    def as_dict(self) -> Dict[str, object]:
        payload = super().as_dict()
        payload["fields"] = self.fields
        return payload


class PermissionDenied(BudgetchainError):
    code = "permission_denied"


class RecordNotFound(BudgetchainError):
    code = "not_found"

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class AdmissionDenied(BudgetchainError):
    """A balance rule refused the operation."""

    code = "admission_denied"


class NoIncomeRecorded(AdmissionDenied):
    code = "no_income_recorded"

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"Cannot create {kind}: No income has been recorded yet. Please record income first."
        )


class InsufficientGeneralFund(AdmissionDenied):
    code = "insufficient_general_fund"

    def __init__(self, available: Decimal, requested: Decimal) -> None:
        super().__init__(
            "Insufficient balance. "
            f"Available: {format_money(available)}, Requested: {format_money(requested)} ({CURRENCY})"
        )
        self.available = available
        self.requested = requested

    def as_dict(self) -> Dict[str, object]:
        payload = super().as_dict()
        payload.update(available=str(self.available), requested=str(self.requested))
        return payload


class UnbudgetedCategory(AdmissionDenied):
    code = "unbudgeted_category"

    def __init__(self, category: str) -> None:
        super().__init__(f"No approved allocation exists for fund source '{category}'.")
        self.category = category

    def as_dict(self) -> Dict[str, object]:
        payload = super().as_dict()
        payload["category"] = self.category
        return payload


class InsufficientCategoryBudget(AdmissionDenied):
    code = "insufficient_category_budget"

    def __init__(self, category: str, remaining: Decimal, requested: Decimal) -> None:
        super().__init__(
            f"Insufficient budget in '{category}'. "
            f"Available: {format_money(remaining)}, Requested: {format_money(requested)} ({CURRENCY})"
        )
        self.category = category
        self.remaining = remaining
        self.requested = requested

    def as_dict(self) -> Dict[str, object]:
        payload = super().as_dict()
        payload.update(
            category=self.category,
            remaining=str(self.remaining),
            requested=str(self.requested),
        )
        return payload


class ProposalAlreadySpent(AdmissionDenied):
    code = "proposal_already_spent"

    def __init__(self, proposal_id: str, expenditure_id: str) -> None:
        super().__init__(
            f"An expenditure record ({expenditure_id}) already exists for proposal {proposal_id}."
        )
        self.proposal_id = proposal_id
        self.expenditure_id = expenditure_id


class InvalidStateTransition(BudgetchainError):
    code = "invalid_state_transition"

    def __init__(self, record_id: str, status: str, action: str) -> None:
        super().__init__(f"Can only {action} PROPOSED records; {record_id} is {status}.")
        self.record_id = record_id
        self.status = status
        self.action = action


class StoreFailure(BudgetchainError):
    code = "store_failure"
