"""Mini README: Shared fixtures for the budgetchain test-suite.

Provides a deterministic clock, a seeded official directory, an in-memory
store, a simulated ledger and the workflows wired together over them, plus a
``funded`` helper that records anchored income.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable

import pytest

from budgetchain.finance import (
    ApprovalWorkflow,
    IncomeRecorder,
    Official,
    OfficialDirectory,
    Role,
)
from budgetchain.ledger.providers import SimulatedLedgerGateway
from budgetchain.storage import InMemoryRecordStore


class StepClock:
    """Clock advancing one second per call so orderings are stable."""

    def __init__(self) -> None:
        self.current = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_official(official_id: str, role: Role, wallet: str, *, is_active: bool = True) -> Official:
    return Official(
        official_id=official_id,
        full_name=official_id.replace("_", " ").title(),
        role=role,
        wallet_address=wallet,
        term_start=date(2023, 11, 30),
        term_end=date(2026, 11, 30),
        is_active=is_active,
        email=f"{official_id}@barangay.example",
        password_hash="$2b$10$notarealhash",
    )


@pytest.fixture
def chairman() -> Official:
    return make_official("chair_1", Role.CHAIRMAN, "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1")


@pytest.fixture
def treasurer() -> Official:
    return make_official("treasurer_1", Role.TREASURER, "0xFFcf8FDEE72ac11b5c542428B35EEF5769C409f0")


@pytest.fixture
def other_treasurer() -> Official:
    return make_official("treasurer_2", Role.TREASURER, "0x22d491Bde2303f2f43325b2108D26f1eAbA1e32b")


@pytest.fixture
def directory(chairman: Official, treasurer: Official, other_treasurer: Official) -> OfficialDirectory:
    return OfficialDirectory([chairman, treasurer, other_treasurer])


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def ledger() -> SimulatedLedgerGateway:
    return SimulatedLedgerGateway()


@pytest.fixture
def workflow(store, ledger, clock) -> ApprovalWorkflow:
    return ApprovalWorkflow(store, ledger, clock=clock)


@pytest.fixture
def income_recorder(store, ledger, clock) -> IncomeRecorder:
    return IncomeRecorder(store, ledger, clock=clock)


@pytest.fixture
def funded(income_recorder: IncomeRecorder, treasurer: Official) -> Callable[[str], object]:
    """Record anchored income of ``amount`` from the national tax allotment."""

    def _fund(amount: str = "100000"):
        return income_recorder.record(
            {
                "amount": amount,
                "revenue_source": "NATIONAL_TAX_ALLOTMENT",
                "supporting_document_ref": "uploads/nta-2024.pdf",
            },
            treasurer,
        )

    return _fund
