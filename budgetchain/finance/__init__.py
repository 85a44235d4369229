"""Mini README: Budget conservation and approval engine for budgetchain.

This package holds the business rules: money arithmetic, record types,
validated drafts, the error taxonomy, document hashing, balance computation,
the approval workflow and income recording. Persistence and ledger access are
injected (see ``budgetchain.storage`` and ``budgetchain.ledger``) so the rules
run unchanged against the in-memory store, a database, or a test double.
"""

from .balance import BalanceEngine, CategoryBudget, GeneralFundSummary
from .categories import BudgetCategory, RecordKind, RecordStatus, RevenueSource, Role
from .errors import (
    AdmissionDenied,
    BudgetchainError,
    InsufficientCategoryBudget,
    InsufficientGeneralFund,
    InvalidStateTransition,
    NoIncomeRecorded,
    PermissionDenied,
    ProposalAlreadySpent,
    RecordNotFound,
    StoreFailure,
    UnbudgetedCategory,
    ValidationError,
)
from .hashing import DocumentHasher
from .income import IncomeRecorder
from .officials import Official, OfficialDirectory, OfficialSummary
from .records import (
    AllocationRecord,
    ExpenditureRecord,
    IncomeRecord,
    LedgerRef,
    ProposalRecord,
)
from .workflow import ApprovalWorkflow, FundGuard

__all__ = [
    "AdmissionDenied",
    "AllocationRecord",
    "ApprovalWorkflow",
    "BalanceEngine",
    "BudgetCategory",
    "BudgetchainError",
    "CategoryBudget",
    "DocumentHasher",
    "ExpenditureRecord",
    "FundGuard",
    "GeneralFundSummary",
    "IncomeRecord",
    "IncomeRecorder",
    "InsufficientCategoryBudget",
    "InsufficientGeneralFund",
    "InvalidStateTransition",
    "LedgerRef",
    "NoIncomeRecorded",
    "Official",
    "OfficialDirectory",
    "OfficialSummary",
    "PermissionDenied",
    "ProposalAlreadySpent",
    "ProposalRecord",
    "RecordKind",
    "RecordNotFound",
    "RecordStatus",
    "RevenueSource",
    "Role",
    "StoreFailure",
    "UnbudgetedCategory",
    "ValidationError",
]
