"""Mini README: Validated submission payloads for the finance workflows.

Structure:
    * IncomeDraft / AllocationDraft / ExpenditureDraft / ProposalDraft - Pydantic
      models describing what a treasurer may submit per record kind.
    * DRAFT_TYPES - record kind to draft model lookup.
    * parse_draft - turn a mapping (or ready model) into a draft, raising the
      domain ``ValidationError`` with the offending field names.

Amounts go through ``to_money`` so they are exact centavo Decimals and must be
strictly positive. Enum fields accept either the display value or the member
name, which keeps form posts and JSON clients equally simple.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Mapping, Optional, Type, Union

import pydantic
from pydantic import BaseModel, Field, validator

from .categories import BudgetCategory, RecordKind, RevenueSource
from .errors import ValidationError
from .money import to_money

_MISSING_TYPES = {"missing", "string_too_short"}


def _positive_money(value: object) -> Decimal:
    amount = to_money(value)  # type: ignore[arg-type]
    if amount <= 0:
        raise ValueError("Amount must be greater than zero.")
    return amount


class _Draft(BaseModel):
    supporting_document_ref: str = Field(..., min_length=1)

    class Config:
        extra = "ignore"
        str_strip_whitespace = True

    def record_fields(self) -> Dict[str, object]:
        """Fields copied verbatim onto the stored record."""

        return self.model_dump()


class IncomeDraft(_Draft):
    amount: Decimal
    revenue_source: RevenueSource

    @validator("amount", pre=True)
    def check_amount(cls, value: object) -> Decimal:
        return _positive_money(value)

    @validator("revenue_source", pre=True)
    def coerce_source(cls, value: object) -> RevenueSource:
        return RevenueSource.from_str(value)


class AllocationDraft(_Draft):
    amount: Decimal
    category: BudgetCategory
    fund_source: str = Field(..., min_length=1)

    @validator("amount", pre=True)
    def check_amount(cls, value: object) -> Decimal:
        return _positive_money(value)

    @validator("category", pre=True)
    def coerce_category(cls, value: object) -> BudgetCategory:
        return BudgetCategory.from_str(value)


class ProposalDraft(_Draft):
    amount: Decimal
    purpose: str = Field(..., min_length=1)
    fund_source: BudgetCategory
    expense_type: str = Field(..., min_length=1)
    proposer: str = Field(..., min_length=1)

    @validator("amount", pre=True)
    def check_amount(cls, value: object) -> Decimal:
        return _positive_money(value)

    @validator("fund_source", pre=True)
    def coerce_fund_source(cls, value: object) -> BudgetCategory:
        return BudgetCategory.from_str(value)


class ExpenditureDraft(_Draft):
    """Either references an approved proposal or states its own figures."""

    proposal_id: Optional[str] = None
    amount: Optional[Decimal] = None
    purpose: Optional[str] = None
    fund_source: Optional[BudgetCategory] = None

    @validator("amount", pre=True)
    def coerce_amount(cls, value: object) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        return _positive_money(value)

    @validator("fund_source", pre=True)
    def coerce_fund_source(cls, value: object) -> Optional[BudgetCategory]:
        if value is None or value == "":
            return None
        return BudgetCategory.from_str(value)

    @validator("proposal_id", "purpose", pre=True)
    def blank_to_none(cls, value: object) -> Optional[str]:
        if value is None or str(value).strip() == "":
            return None
        return str(value)

    def missing_standalone_fields(self) -> list:
        """Fields required when no proposal supplies them."""

        return [name for name in ("amount", "purpose", "fund_source") if getattr(self, name) is None]


DraftModel = Union[IncomeDraft, AllocationDraft, ExpenditureDraft, ProposalDraft]

DRAFT_TYPES: Dict[RecordKind, Type[_Draft]] = {
    RecordKind.INCOME: IncomeDraft,
    RecordKind.ALLOCATION: AllocationDraft,
    RecordKind.EXPENDITURE: ExpenditureDraft,
    RecordKind.PROPOSAL: ProposalDraft,
}


def parse_draft(kind: RecordKind, draft: Union[Mapping[str, object], BaseModel]) -> DraftModel:
    """Validate ``draft`` for ``kind`` or raise ``ValidationError``."""

    model_cls = DRAFT_TYPES[kind]
    if isinstance(draft, model_cls):
        return draft  # type: ignore[return-value]
    if isinstance(draft, BaseModel):
        draft = draft.model_dump()
    try:
        return model_cls(**dict(draft))  # type: ignore[return-value]
    except pydantic.ValidationError as error:
        missing = []
        invalid = []
        for detail in error.errors():
            name = ".".join(str(part) for part in detail["loc"]) or "__root__"
            (missing if detail["type"] in _MISSING_TYPES else invalid).append(name)
        parts = []
        if missing:
            parts.append(f"Missing required fields: {', '.join(missing)}")
        if invalid:
            parts.append(f"Invalid fields: {', '.join(invalid)}")
        raise ValidationError("; ".join(parts), fields=missing + invalid) from error
