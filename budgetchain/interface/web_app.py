"""Mini README: FastAPI surface for the budgetchain treasury service.

Structure:
    * create_application - application factory wiring store, ledger, officials
      and the finance workflows into routes.
    * current_official - resolves the acting official from ``X-Official-Id``.
    * Error handlers - translate domain exceptions into JSON responses.

Routes carry no business rules; they parse form fields, call the workflow and
serialise the resulting records with ``as_dict`` (creator identity is already
the redacted public summary). Handlers are plain ``def`` functions so ledger
I/O runs in the worker thread pool rather than on the event loop.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Dict, Optional, Tuple, Type

from fastapi import Depends, FastAPI, Form, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from ..configuration import BudgetchainSettings, get_settings
from ..finance import (
    AdmissionDenied,
    ApprovalWorkflow,
    BalanceEngine,
    BudgetCategory,
    BudgetchainError,
    IncomeRecorder,
    InvalidStateTransition,
    Official,
    OfficialDirectory,
    PermissionDenied,
    RecordKind,
    RecordNotFound,
    RecordStatus,
    RevenueSource,
    StoreFailure,
    ValidationError,
)
from ..ledger import REGISTRY, LedgerGateway
from ..logging_utils import get_logger
from ..storage import InMemoryRecordStore, RecordStore

LOGGER = get_logger(__name__)

KIND_PATHS: Dict[str, RecordKind] = {
    "allocations": RecordKind.ALLOCATION,
    "expenditures": RecordKind.EXPENDITURE,
    "proposals": RecordKind.PROPOSAL,
}

ERROR_STATUS: Tuple[Tuple[Type[BudgetchainError], int], ...] = (
    (ValidationError, 400),
    (AdmissionDenied, 400),
    (PermissionDenied, 403),
    (RecordNotFound, 404),
    (InvalidStateTransition, 409),
    (StoreFailure, 503),
)


def _status_for(error: BudgetchainError) -> int:
    for error_cls, status_code in ERROR_STATUS:
        if isinstance(error, error_cls):
            return status_code
    return 400


def _kind_for(kind_path: str) -> RecordKind:
    if kind_path not in KIND_PATHS:
        raise HTTPException(status_code=404, detail=f"Unknown record collection '{kind_path}'")
    return KIND_PATHS[kind_path]


def _build_ledger(settings: BudgetchainSettings) -> LedgerGateway:
    REGISTRY.discover_plugins()
    return REGISTRY.create(settings.ledger_gateway, settings)


def _build_directory(settings: BudgetchainSettings) -> OfficialDirectory:
    if settings.officials_file:
        return OfficialDirectory.from_file(settings.officials_file)
    LOGGER.warning("No officials file configured; using the demo roster")
    return OfficialDirectory()


def create_application(
    settings: Optional[BudgetchainSettings] = None,
    *,
    store: Optional[RecordStore] = None,
    ledger: Optional[LedgerGateway] = None,
    directory: Optional[OfficialDirectory] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and explicit dependencies."""

    if settings is None:
        settings = get_settings()
    if store is None:
        store = InMemoryRecordStore()
    if ledger is None:
        ledger = _build_ledger(settings)
    if directory is None:
        directory = _build_directory(settings)

    balances = BalanceEngine(store)
    workflow = ApprovalWorkflow(store, ledger, balances=balances)
    income_recorder = IncomeRecorder(store, ledger)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        LOGGER.info(
            "Treasury service ready (store=%s, ledger=%s)", store.store_name, ledger.gateway_name
        )
        yield
        ledger.close()

    app = FastAPI(title="budgetchain Treasury", version="0.1.0", lifespan=lifespan)
    app.state.store = store
    app.state.ledger = ledger
    app.state.workflow = workflow
    app.state.income_recorder = income_recorder

    @app.exception_handler(BudgetchainError)
    async def handle_domain_error(request: Request, error: BudgetchainError) -> JSONResponse:
        status_code = _status_for(error)
        LOGGER.info("%s %s -> %s %s", request.method, request.url.path, status_code, error.code)
        return JSONResponse({"status": "error", **error.as_dict()}, status_code=status_code)

    def current_official(x_official_id: Optional[str] = Header(None)) -> Official:
        if not x_official_id:
            raise HTTPException(status_code=401, detail="X-Official-Id header is required")
        try:
            return directory.get(x_official_id)
        except KeyError as error:
            raise HTTPException(status_code=401, detail=str(error)) from error

    @app.get("/general-fund")
    def general_fund() -> JSONResponse:
        """General Fund totals and available balance."""

        return JSONResponse({"general_fund": balances.general_fund_summary().as_dict()})

    @app.get("/category-budgets")
    def category_budgets() -> JSONResponse:
        budgets = sorted(balances.category_budgets().values(), key=lambda budget: budget.category.value)
        return JSONResponse({"category_budgets": [budget.as_dict() for budget in budgets]})

    @app.get("/income/by-source")
    def income_by_source() -> JSONResponse:
        breakdown = balances.income_by_source()
        return JSONResponse(
            {"income_by_source": {source.value: str(amount) for source, amount in breakdown.items()}}
        )

    @app.get("/categories")
    def categories() -> JSONResponse:
        """Closed vocabularies for form drop-downs."""

        return JSONResponse(
            {
                "budget_categories": [category.value for category in BudgetCategory],
                "revenue_sources": [source.value for source in RevenueSource],
            }
        )

    @app.get("/ledger")
    def ledger_status() -> JSONResponse:
        return JSONResponse({"ledger": ledger.metadata(), "store": store.metadata()})

    @app.get("/public/summary")
    def public_summary() -> JSONResponse:
        """Transparency view: fund totals, on-ledger write counts and proposal outcomes."""

        proposals = balances.status_counts(RecordKind.PROPOSAL)
        return JSONResponse(
            {
                "general_fund": balances.general_fund_summary().as_dict(),
                "ledger_counts": {kind.value: count for kind, count in ledger.entry_counts().items()},
                "proposals": {
                    "total": sum(proposals.values()),
                    "approved": proposals[RecordStatus.APPROVED],
                    "pending": proposals[RecordStatus.PROPOSED],
                    "rejected": proposals[RecordStatus.REJECTED],
                },
                "income_by_source": {
                    source.value: str(amount) for source, amount in balances.income_by_source().items()
                },
            }
        )

    @app.post("/income", status_code=201)
    def record_income(
        amount: Optional[str] = Form(None),
        revenue_source: Optional[str] = Form(None),
        supporting_document_ref: Optional[str] = Form(None),
        official: Official = Depends(current_official),
    ) -> JSONResponse:
        record = income_recorder.record(
            {
                "amount": amount,
                "revenue_source": revenue_source,
                "supporting_document_ref": supporting_document_ref,
            },
            official,
        )
        return JSONResponse({"status": "success", "record": record.as_dict()}, status_code=201)

    @app.get("/income")
    def list_income(official: Official = Depends(current_official)) -> JSONResponse:
        return JSONResponse({"records": [record.as_dict() for record in income_recorder.list_income()]})

    def _submitted(kind: RecordKind, draft: Dict[str, Optional[str]], official: Official) -> JSONResponse:
        cleaned = {key: value for key, value in draft.items() if value is not None}
        record = workflow.submit(kind, cleaned, official)
        LOGGER.info("Submitted %s %s", kind.value, record.record_id)
        return JSONResponse({"status": "success", "record": record.as_dict()}, status_code=201)

    @app.post("/allocations", status_code=201)
    def submit_allocation(
        amount: Optional[str] = Form(None),
        category: Optional[str] = Form(None),
        fund_source: Optional[str] = Form(None),
        supporting_document_ref: Optional[str] = Form(None),
        official: Official = Depends(current_official),
    ) -> JSONResponse:
        return _submitted(
            RecordKind.ALLOCATION,
            {
                "amount": amount,
                "category": category,
                "fund_source": fund_source,
                "supporting_document_ref": supporting_document_ref,
            },
            official,
        )

    @app.post("/proposals", status_code=201)
    def submit_proposal(
        amount: Optional[str] = Form(None),
        purpose: Optional[str] = Form(None),
        fund_source: Optional[str] = Form(None),
        expense_type: Optional[str] = Form(None),
        proposer: Optional[str] = Form(None),
        supporting_document_ref: Optional[str] = Form(None),
        official: Official = Depends(current_official),
    ) -> JSONResponse:
        return _submitted(
            RecordKind.PROPOSAL,
            {
                "amount": amount,
                "purpose": purpose,
                "fund_source": fund_source,
                "expense_type": expense_type,
                "proposer": proposer,
                "supporting_document_ref": supporting_document_ref,
            },
            official,
        )

    @app.post("/expenditures", status_code=201)
    def submit_expenditure(
        proposal_id: Optional[str] = Form(None),
        amount: Optional[str] = Form(None),
        purpose: Optional[str] = Form(None),
        fund_source: Optional[str] = Form(None),
        supporting_document_ref: Optional[str] = Form(None),
        official: Official = Depends(current_official),
    ) -> JSONResponse:
        return _submitted(
            RecordKind.EXPENDITURE,
            {
                "proposal_id": proposal_id,
                "amount": amount,
                "purpose": purpose,
                "fund_source": fund_source,
                "supporting_document_ref": supporting_document_ref,
            },
            official,
        )

    @app.get("/{kind_path}")
    def list_records(kind_path: str, official: Official = Depends(current_official)) -> JSONResponse:
        records = workflow.list_records(_kind_for(kind_path), official)
        return JSONResponse({"records": [record.as_dict() for record in records]})

    @app.get("/{kind_path}/{record_id}")
    def get_record(
        kind_path: str, record_id: str, official: Official = Depends(current_official)
    ) -> JSONResponse:
        record = workflow.get_record(_kind_for(kind_path), record_id)
        return JSONResponse({"record": record.as_dict()})

    @app.post("/{kind_path}/{record_id}/approve")
    def approve_record(
        kind_path: str, record_id: str, official: Official = Depends(current_official)
    ) -> JSONResponse:
        record = workflow.approve(_kind_for(kind_path), record_id, official)
        return JSONResponse({"status": "success", "record": record.as_dict()})

    @app.post("/{kind_path}/{record_id}/reject")
    def reject_record(
        kind_path: str,
        record_id: str,
        rejection_reason: Optional[str] = Form(None),
        official: Official = Depends(current_official),
    ) -> JSONResponse:
        record = workflow.reject(_kind_for(kind_path), record_id, official, rejection_reason or "")
        return JSONResponse({"status": "success", "record": record.as_dict()})

    return app
