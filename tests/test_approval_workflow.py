"""Mini README: Tests for the approval workflow and admission control.

Structure:
    * Scenario tests - income, allocation, proposal and expenditure flows from
      an empty treasury through approval and rejection.
    * Admission tests - general fund, category budget and double-spend checks
      at both submission and approval time.
    * Role and listing tests - who may act and who sees which records.
    * Failure tests - ledger outages and store failures after the ledger write.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from decimal import Decimal

import pytest

from budgetchain.finance import (
    ApprovalWorkflow,
    BalanceEngine,
    BudgetCategory,
    DocumentHasher,
    IncomeRecorder,
    InsufficientCategoryBudget,
    InsufficientGeneralFund,
    InvalidStateTransition,
    NoIncomeRecorded,
    PermissionDenied,
    ProposalAlreadySpent,
    RecordKind,
    RecordStatus,
    StoreFailure,
    UnbudgetedCategory,
    ValidationError,
)
from budgetchain.finance.hashing import approval_document
from budgetchain.ledger.providers import SimulatedLedgerGateway
from budgetchain.storage import InMemoryRecordStore

DEVELOPMENT = BudgetCategory.DEVELOPMENT_FUND


def _allocation(amount: str, category: BudgetCategory = DEVELOPMENT) -> dict:
    return {
        "amount": amount,
        "category": category.name,
        "fund_source": "General Fund",
        "supporting_document_ref": "uploads/appropriation-ordinance.pdf",
    }


def _proposal(amount: str, category: BudgetCategory = DEVELOPMENT) -> dict:
    return {
        "amount": amount,
        "purpose": "Barangay hall roof repair",
        "fund_source": category.value,
        "expense_type": "Capital Outlay",
        "proposer": "Kagawad Santos",
        "supporting_document_ref": "uploads/roof-quotation.pdf",
    }


def _expenditure(amount: str) -> dict:
    return {
        "amount": amount,
        "purpose": "Relief goods",
        "fund_source": "CALAMITY_FUND",
        "supporting_document_ref": "uploads/official-receipt.pdf",
    }


def _approved_allocation(workflow, treasurer, chairman, amount: str = "40000"):
    record = workflow.submit(RecordKind.ALLOCATION, _allocation(amount), treasurer)
    return workflow.approve(RecordKind.ALLOCATION, record.record_id, chairman)


def test_income_makes_balance_available(funded, store) -> None:
    """Anchored income is immediately available to the General Fund."""

    funded("100000")

    summary = BalanceEngine(store).general_fund_summary()
    assert summary.total_income == Decimal("100000.00")
    assert summary.available_balance == Decimal("100000.00")


def test_approved_allocation_funds_category(funded, workflow, store, treasurer, chairman) -> None:
    funded("100000")

    approved = _approved_allocation(workflow, treasurer, chairman)

    balances = BalanceEngine(store)
    budget = balances.category_budgets()[DEVELOPMENT]
    assert approved.status is RecordStatus.APPROVED
    assert (budget.allocated, budget.spent, budget.remaining) == (
        Decimal("40000.00"),
        Decimal("0.00"),
        Decimal("40000.00"),
    )
    assert balances.general_fund_summary().available_balance == Decimal("60000.00")


def test_proposal_limited_by_category_budget(funded, workflow, store, treasurer, chairman) -> None:
    """Proposals cannot exceed the remaining allocation for their category."""

    funded("100000")
    _approved_allocation(workflow, treasurer, chairman)

    with pytest.raises(InsufficientCategoryBudget) as excinfo:
        workflow.submit(RecordKind.PROPOSAL, _proposal("45000"), treasurer)
    assert excinfo.value.remaining == Decimal("40000.00")
    assert excinfo.value.requested == Decimal("45000.00")

    proposal = workflow.submit(RecordKind.PROPOSAL, _proposal("40000"), treasurer)
    workflow.approve(RecordKind.PROPOSAL, proposal.record_id, chairman)

    assert BalanceEngine(store).category_budget(DEVELOPMENT).remaining == Decimal("0.00")


def test_expenditure_limited_by_general_fund(funded, workflow, treasurer, chairman) -> None:
    funded("100000")
    _approved_allocation(workflow, treasurer, chairman)

    with pytest.raises(InsufficientGeneralFund) as excinfo:
        workflow.submit(RecordKind.EXPENDITURE, _expenditure("70000"), treasurer)

    assert "Available: 60000, Requested: 70000" in str(excinfo.value)
    assert excinfo.value.available == Decimal("60000.00")


def test_ledger_outage_still_approves_unanchored(funded, workflow, ledger, treasurer, chairman) -> None:
    """A failed ledger write leaves an APPROVED record with its digest but no reference."""

    funded("100000")
    record = workflow.submit(RecordKind.ALLOCATION, _allocation("40000"), treasurer)
    ledger.set_online(False)

    approved = workflow.approve(RecordKind.ALLOCATION, record.record_id, chairman)

    assert approved.status is RecordStatus.APPROVED
    assert approved.ledger.anchored is False
    assert approved.ledger.ref is None
    assert approved.document_digest is not None and len(approved.document_digest) == 64


def test_reject_twice_is_invalid(funded, workflow, treasurer, chairman) -> None:
    funded("100000")
    _approved_allocation(workflow, treasurer, chairman)
    proposal = workflow.submit(RecordKind.PROPOSAL, _proposal("1000"), treasurer)

    rejected = workflow.reject(RecordKind.PROPOSAL, proposal.record_id, chairman, "Duplicate request")
    assert rejected.status is RecordStatus.REJECTED
    assert rejected.rejection_reason == "Duplicate request"
    assert rejected.document_digest is None

    with pytest.raises(InvalidStateTransition):
        workflow.reject(RecordKind.PROPOSAL, proposal.record_id, chairman, "Again")


def test_approve_after_terminal_state_is_invalid(funded, workflow, treasurer, chairman) -> None:
    funded("100000")
    approved = _approved_allocation(workflow, treasurer, chairman)

    with pytest.raises(InvalidStateTransition):
        workflow.approve(RecordKind.ALLOCATION, approved.record_id, chairman)
    with pytest.raises(InvalidStateTransition):
        workflow.reject(RecordKind.ALLOCATION, approved.record_id, chairman, "Too late")


def test_submission_requires_income(workflow, treasurer) -> None:
    with pytest.raises(NoIncomeRecorded):
        workflow.submit(RecordKind.ALLOCATION, _allocation("100"), treasurer)


def test_proposal_against_unallocated_category(funded, workflow, treasurer) -> None:
    funded("100000")

    with pytest.raises(UnbudgetedCategory) as excinfo:
        workflow.submit(RecordKind.PROPOSAL, _proposal("100", BudgetCategory.CALAMITY_FUND), treasurer)
    assert excinfo.value.category == BudgetCategory.CALAMITY_FUND.value


def test_approval_rechecks_admission(funded, workflow, store, treasurer, chairman) -> None:
    """Two pending allocations that together exceed the fund cannot both be approved."""

    funded("100000")
    first = workflow.submit(RecordKind.ALLOCATION, _allocation("60000"), treasurer)
    second = workflow.submit(RecordKind.ALLOCATION, _allocation("50000"), treasurer)

    workflow.approve(RecordKind.ALLOCATION, first.record_id, chairman)
    with pytest.raises(InsufficientGeneralFund):
        workflow.approve(RecordKind.ALLOCATION, second.record_id, chairman)

    assert store.get(RecordKind.ALLOCATION, second.record_id).status is RecordStatus.PROPOSED
    assert BalanceEngine(store).general_fund_summary().available_balance == Decimal("40000.00")


def test_expenditure_copies_approved_proposal(funded, workflow, treasurer, chairman) -> None:
    """Executing a proposal copies its figures; a second execution is refused."""

    funded("100000")
    _approved_allocation(workflow, treasurer, chairman)
    proposal = workflow.submit(RecordKind.PROPOSAL, _proposal("30000"), treasurer)
    workflow.approve(RecordKind.PROPOSAL, proposal.record_id, chairman)

    draft = {"proposal_id": proposal.record_id, "supporting_document_ref": "uploads/or-123.pdf"}
    expenditure = workflow.submit(RecordKind.EXPENDITURE, draft, treasurer)

    assert expenditure.amount == Decimal("30000.00")
    assert expenditure.purpose == "Barangay hall roof repair"
    assert expenditure.fund_source is DEVELOPMENT
    assert expenditure.proposal_id == proposal.record_id

    with pytest.raises(ProposalAlreadySpent):
        workflow.submit(RecordKind.EXPENDITURE, draft, treasurer)


def test_expenditure_requires_approved_proposal(funded, workflow, treasurer, chairman) -> None:
    funded("100000")
    _approved_allocation(workflow, treasurer, chairman)
    proposal = workflow.submit(RecordKind.PROPOSAL, _proposal("1000"), treasurer)

    with pytest.raises(ValidationError) as excinfo:
        workflow.submit(
            RecordKind.EXPENDITURE,
            {"proposal_id": proposal.record_id, "supporting_document_ref": "uploads/or.pdf"},
            treasurer,
        )
    assert excinfo.value.fields == ["proposal_id"]


def test_standalone_expenditure_needs_its_own_fields(funded, workflow, treasurer) -> None:
    funded("100000")

    with pytest.raises(ValidationError) as excinfo:
        workflow.submit(RecordKind.EXPENDITURE, {"supporting_document_ref": "uploads/or.pdf"}, treasurer)
    assert excinfo.value.fields == ["amount", "purpose", "fund_source"]


def test_draft_validation_reports_fields(funded, workflow, treasurer) -> None:
    funded("100000")
    draft = _allocation("10.001")
    del draft["fund_source"]

    with pytest.raises(ValidationError) as excinfo:
        workflow.submit(RecordKind.ALLOCATION, draft, treasurer)

    assert "fund_source" in excinfo.value.fields
    assert "amount" in excinfo.value.fields
    assert "Missing required fields: fund_source" in excinfo.value.message


def test_roles_are_enforced(funded, workflow, treasurer, chairman) -> None:
    funded("100000")

    with pytest.raises(PermissionDenied):
        workflow.submit(RecordKind.ALLOCATION, _allocation("100"), chairman)

    record = workflow.submit(RecordKind.ALLOCATION, _allocation("100"), treasurer)
    with pytest.raises(PermissionDenied):
        workflow.approve(RecordKind.ALLOCATION, record.record_id, treasurer)
    with pytest.raises(PermissionDenied):
        workflow.reject(RecordKind.ALLOCATION, record.record_id, treasurer, "No")


def test_inactive_official_cannot_act(funded, workflow, treasurer) -> None:
    funded("100000")
    retired = replace(treasurer, is_active=False)

    with pytest.raises(PermissionDenied):
        workflow.submit(RecordKind.ALLOCATION, _allocation("100"), retired)


def test_reject_requires_reason(funded, workflow, store, treasurer, chairman) -> None:
    funded("100000")
    record = workflow.submit(RecordKind.ALLOCATION, _allocation("100"), treasurer)

    with pytest.raises(ValidationError):
        workflow.reject(RecordKind.ALLOCATION, record.record_id, chairman, "   ")
    assert store.get(RecordKind.ALLOCATION, record.record_id).status is RecordStatus.PROPOSED


def test_approval_digest_is_anchored_and_verifiable(funded, workflow, ledger, treasurer, chairman) -> None:
    """The stored digest matches the approval document and the ledger entry."""

    funded("100000")
    approved = _approved_allocation(workflow, treasurer, chairman)

    document = approval_document(approved, approved.approved_by, approved.approved_at)
    assert DocumentHasher().verify(RecordKind.ALLOCATION, document, approved.document_digest)

    entry = ledger.find_by_digest(approved.document_digest)
    assert entry is not None
    assert entry.ref == approved.ledger.ref
    assert entry.signer_address == chairman.wallet_address
    assert entry.fields["treasurer_address"] == treasurer.wallet_address
    assert approved.ledger.anchored is True


def test_listing_respects_roles(funded, workflow, treasurer, other_treasurer, chairman) -> None:
    """Treasurers only see their own submissions; the chairman sees all, newest first."""

    funded("100000")
    mine = workflow.submit(RecordKind.ALLOCATION, _allocation("100"), treasurer)
    theirs = workflow.submit(RecordKind.ALLOCATION, _allocation("200"), other_treasurer)

    assert [record.record_id for record in workflow.list_records("allocation", treasurer)] == [
        mine.record_id
    ]
    assert [record.record_id for record in workflow.list_records("allocation", chairman)] == [
        theirs.record_id,
        mine.record_id,
    ]


def test_public_records_hide_credentials(funded, workflow, treasurer) -> None:
    funded("100000")
    record = workflow.submit(RecordKind.ALLOCATION, _allocation("100"), treasurer)

    creator = record.as_dict()["created_by"]
    assert creator["official_id"] == treasurer.official_id
    assert "password_hash" not in creator
    assert "email" not in creator


def test_income_has_no_approval_workflow(workflow, chairman) -> None:
    with pytest.raises(ValidationError):
        workflow.approve(RecordKind.INCOME, "income_0001", chairman)


class FailingUpdateStore(InMemoryRecordStore):
    """Store whose updates fail once ``fail_updates`` is set."""

    fail_updates = False

    def update(self, kind, record_id, patch, *, expected_status=None):
        if self.fail_updates:
            raise StoreFailure("database unavailable")
        return super().update(kind, record_id, patch, expected_status=expected_status)


def test_store_failure_after_ledger_write_is_logged(
    ledger, clock, treasurer, chairman, caplog
) -> None:
    store = FailingUpdateStore()
    workflow = ApprovalWorkflow(store, ledger, clock=clock)
    IncomeRecorder(store, ledger, clock=clock).record(
        {"amount": "5000", "revenue_source": "FEES_AND_CHARGES", "supporting_document_ref": "or.pdf"},
        treasurer,
    )
    record = workflow.submit(RecordKind.ALLOCATION, _allocation("1000"), treasurer)
    store.fail_updates = True

    with caplog.at_level(logging.ERROR):
        with pytest.raises(StoreFailure):
            workflow.approve(RecordKind.ALLOCATION, record.record_id, chairman)

    assert any("orphaned" in message for message in caplog.messages)
    assert len(ledger.entries) == 2
    assert store.get(RecordKind.ALLOCATION, record.record_id).status is RecordStatus.PROPOSED


@pytest.mark.parametrize("amount", ["1e30", "12345678901234567890123456789"])
def test_out_of_range_amount_is_a_validation_error(funded, workflow, treasurer, amount) -> None:
    """Amounts beyond decimal precision are reported as invalid fields."""

    funded("100000")

    with pytest.raises(ValidationError) as excinfo:
        workflow.submit(RecordKind.ALLOCATION, _allocation(amount), treasurer)
    assert excinfo.value.fields == ["amount"]


def test_kind_and_status_flags() -> None:
    assert not RecordKind.INCOME.requires_approval
    assert all(kind.requires_approval for kind in RecordKind if kind is not RecordKind.INCOME)
    assert not RecordStatus.PROPOSED.is_terminal
    assert RecordStatus.APPROVED.is_terminal and RecordStatus.REJECTED.is_terminal


class SlowLedger(SimulatedLedgerGateway):
    """Simulated ledger that holds each write long enough for approvals to overlap."""

    def submit(self, kind, fields, signer_address):
        time.sleep(0.05)
        return super().submit(kind, fields, signer_address)


def test_concurrent_approvals_cannot_overspend(store, clock, treasurer, chairman) -> None:
    """Two simultaneous approvals that together exceed the fund: exactly one wins."""

    ledger = SlowLedger()
    workflow = ApprovalWorkflow(store, ledger, clock=clock)
    IncomeRecorder(store, ledger, clock=clock).record(
        {"amount": "100000", "revenue_source": "NATIONAL_TAX_ALLOTMENT", "supporting_document_ref": "nta.pdf"},
        treasurer,
    )
    pending = [
        workflow.submit(RecordKind.ALLOCATION, _allocation("60000"), treasurer),
        workflow.submit(RecordKind.ALLOCATION, _allocation("60000", BudgetCategory.CALAMITY_FUND), treasurer),
    ]
    barrier = threading.Barrier(len(pending))
    outcomes: list = []

    def approve(record_id: str) -> None:
        barrier.wait()
        try:
            outcomes.append(workflow.approve(RecordKind.ALLOCATION, record_id, chairman))
        except InsufficientGeneralFund as error:
            outcomes.append(error)

    threads = [threading.Thread(target=approve, args=(record.record_id,)) for record in pending]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert len(outcomes) == 2
    assert sum(isinstance(outcome, InsufficientGeneralFund) for outcome in outcomes) == 1
    available = BalanceEngine(store).general_fund_summary().available_balance
    assert available == Decimal("40000.00")
    assert available >= 0
