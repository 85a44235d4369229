"""Mini README: HTTP tests for the FastAPI treasury surface.

Uses FastAPI's ``TestClient`` against an application wired with an in-memory
store, a simulated ledger and a test roster of officials. Verifies status
codes for the domain error taxonomy as well as the happy path.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from budgetchain.configuration import BudgetchainSettings
from budgetchain.interface import create_application
from budgetchain.ledger.providers import SimulatedLedgerGateway
from budgetchain.storage import InMemoryRecordStore

TREASURER = {"X-Official-Id": "treasurer_1"}
CHAIRMAN = {"X-Official-Id": "chair_1"}


@pytest.fixture
def client(directory) -> TestClient:
    app = create_application(
        BudgetchainSettings(),
        store=InMemoryRecordStore(),
        ledger=SimulatedLedgerGateway(),
        directory=directory,
    )
    return TestClient(app)


def _fund(client: TestClient, amount: str = "100000") -> dict:
    response = client.post(
        "/income",
        data={
            "amount": amount,
            "revenue_source": "National Tax Allotment (NTA)",
            "supporting_document_ref": "uploads/nta.pdf",
        },
        headers=TREASURER,
    )
    assert response.status_code == 201
    return response.json()["record"]


def _allocate(client: TestClient, amount: str = "40000") -> dict:
    response = client.post(
        "/allocations",
        data={
            "amount": amount,
            "category": "DEVELOPMENT_FUND",
            "fund_source": "General Fund",
            "supporting_document_ref": "uploads/ordinance.pdf",
        },
        headers=TREASURER,
    )
    assert response.status_code == 201
    return response.json()["record"]


def test_income_and_general_fund(client: TestClient) -> None:
    record = _fund(client)

    assert record["ledger"]["anchored"] is True
    assert record["revenue_source"] == "National Tax Allotment (NTA)"
    assert "password_hash" not in record["created_by"]

    summary = client.get("/general-fund").json()["general_fund"]
    assert summary["available_balance"] == "100000.00"
    by_source = client.get("/income/by-source").json()["income_by_source"]
    assert by_source == {"National Tax Allotment (NTA)": "100000.00"}


def test_allocation_approval_flow(client: TestClient) -> None:
    """Submit as treasurer, approve as chairman, then read the category budget."""

    _fund(client)
    allocation = _allocate(client)
    assert allocation["status"] == "PROPOSED"

    response = client.post(f"/allocations/{allocation['record_id']}/approve", headers=CHAIRMAN)
    assert response.status_code == 200
    approved = response.json()["record"]
    assert approved["status"] == "APPROVED"
    assert approved["approved_by"]["official_id"] == "chair_1"
    assert len(approved["document_digest"]) == 64

    budgets = client.get("/category-budgets").json()["category_budgets"]
    assert budgets == [
        {
            "category": "Barangay Development Fund (BDP)",
            "allocated": "40000.00",
            "spent": "0.00",
            "remaining": "40000.00",
        }
    ]
    fetched = client.get(f"/allocations/{allocation['record_id']}", headers=TREASURER).json()
    assert fetched["record"]["status"] == "APPROVED"


def test_admission_denial_reports_numbers(client: TestClient) -> None:
    _fund(client)
    allocation = _allocate(client)
    client.post(f"/allocations/{allocation['record_id']}/approve", headers=CHAIRMAN)

    response = client.post(
        "/expenditures",
        data={
            "amount": "70000",
            "purpose": "Relief goods",
            "fund_source": "CALAMITY_FUND",
            "supporting_document_ref": "uploads/or.pdf",
        },
        headers=TREASURER,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "insufficient_general_fund"
    assert body["available"] == "60000.00"
    assert "Available: 60000, Requested: 70000" in body["message"]


def test_error_status_codes(client: TestClient) -> None:
    _fund(client)
    allocation = _allocate(client, "100")
    path = f"/allocations/{allocation['record_id']}"

    assert client.post(f"{path}/approve", headers=TREASURER).status_code == 403
    assert client.post(f"{path}/reject", data={"rejection_reason": ""}, headers=CHAIRMAN).status_code == 400
    assert client.post(f"{path}/reject", data={"rejection_reason": "Duplicate"}, headers=CHAIRMAN).status_code == 200
    assert client.post(f"{path}/reject", data={"rejection_reason": "Again"}, headers=CHAIRMAN).status_code == 409
    assert client.get("/allocations/allocation_0099", headers=CHAIRMAN).status_code == 404
    assert client.get("/widgets", headers=CHAIRMAN).status_code == 404


def test_missing_fields_are_validation_errors(client: TestClient) -> None:
    _fund(client)

    response = client.post("/proposals", data={"amount": "100"}, headers=TREASURER)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert {"purpose", "fund_source", "expense_type", "proposer", "supporting_document_ref"} <= set(
        body["fields"]
    )


def test_actor_header_is_required(client: TestClient) -> None:
    assert client.get("/allocations").status_code == 401
    assert client.get("/allocations", headers={"X-Official-Id": "nobody"}).status_code == 401


def test_listing_is_scoped_to_treasurer(client: TestClient) -> None:
    _fund(client)
    _allocate(client, "100")
    client.post(
        "/allocations",
        data={
            "amount": "200",
            "category": "PERSONAL_SERVICES",
            "fund_source": "General Fund",
            "supporting_document_ref": "uploads/ps.pdf",
        },
        headers={"X-Official-Id": "treasurer_2"},
    )

    mine = client.get("/allocations", headers=TREASURER).json()["records"]
    everyone = client.get("/allocations", headers=CHAIRMAN).json()["records"]
    assert [record["amount"] for record in mine] == ["100.00"]
    assert len(everyone) == 2


def test_vocabularies_and_ledger_status(client: TestClient) -> None:
    categories = client.get("/categories").json()
    assert len(categories["budget_categories"]) == 8
    assert len(categories["revenue_sources"]) == 7

    status = client.get("/ledger").json()
    assert status["ledger"]["gateway"] == "simulated"
    assert status["store"] == {"store": "memory"}


def test_out_of_range_amount_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/income",
        data={
            "amount": "1e30",
            "revenue_source": "FEES_AND_CHARGES",
            "supporting_document_ref": "uploads/fees.pdf",
        },
        headers=TREASURER,
    )

    assert response.status_code == 400
    assert response.json()["fields"] == ["amount"]


def test_public_summary(client: TestClient) -> None:
    """Ledger write counts and proposal outcomes for the transparency page."""

    _fund(client)
    allocation = _allocate(client)
    client.post(f"/allocations/{allocation['record_id']}/approve", headers=CHAIRMAN)
    proposal_form = {
        "amount": "1000",
        "purpose": "Streetlights",
        "fund_source": "DEVELOPMENT_FUND",
        "expense_type": "Capital Outlay",
        "proposer": "Kagawad Cruz",
        "supporting_document_ref": "uploads/lights.pdf",
    }
    first = client.post("/proposals", data=proposal_form, headers=TREASURER).json()["record"]
    client.post("/proposals", data=proposal_form, headers=TREASURER)
    client.post(
        f"/proposals/{first['record_id']}/reject", data={"rejection_reason": "Over quote"}, headers=CHAIRMAN
    )

    summary = client.get("/public/summary").json()

    assert summary["ledger_counts"] == {"income": 1, "allocation": 1, "expenditure": 0, "proposal": 0}
    assert summary["proposals"] == {"total": 2, "approved": 0, "pending": 1, "rejected": 1}
    assert summary["general_fund"]["available_balance"] == "60000.00"
    assert summary["income_by_source"] == {"National Tax Allotment (NTA)": "100000.00"}
