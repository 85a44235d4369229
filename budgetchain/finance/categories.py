"""Mini README: Closed vocabularies shared by the finance workflows.

Structure:
    * RecordKind - the four record collections (income and the approvable kinds).
    * RecordStatus - approval state machine values.
    * Role - official roles that gate each operation.
    * BudgetCategory - budget lines shared by allocations, proposals and expenditures.
    * RevenueSource - income categories.

All enums subclass ``str`` so values serialise directly into JSON payloads and
document digests. ``from_str`` helpers accept either the value or the member
name in any casing, mirroring how form posts arrive from the interface.
"""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: Type[_E], value: object, label: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text == member.value or text.upper() == member.name:
            return member
    lowered = text.lower()
    for member in enum_cls:
        if lowered == str(member.value).lower():
            return member
    raise ValueError(f"Unsupported {label}: {value}")


class RecordKind(str, Enum):
    """Record collections kept by the store."""

    INCOME = "income"
    ALLOCATION = "allocation"
    EXPENDITURE = "expenditure"
    PROPOSAL = "proposal"

    @classmethod
    def from_str(cls, value: object) -> "RecordKind":
        return _coerce(cls, value, "record kind")

    @property
    def requires_approval(self) -> bool:
        return self is not RecordKind.INCOME


class RecordStatus(str, Enum):
    """Approval states; APPROVED and REJECTED are terminal."""

    PROPOSED = "PROPOSED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not RecordStatus.PROPOSED


class Role(str, Enum):
    """Roles held by barangay officials."""

    CHAIRMAN = "Chairman"
    TREASURER = "Treasurer"

    @classmethod
    def from_str(cls, value: object) -> "Role":
        return _coerce(cls, value, "role")


class BudgetCategory(str, Enum):
    """Budget lines; allocations fund them and proposals draw against them."""

    DEVELOPMENT_FUND = "Barangay Development Fund (BDP)"
    YOUTH_COUNCIL_FUND = "Sangguniang Kabataan (SK) Fund"
    CALAMITY_FUND = "Calamity Fund (LDRRMF)"
    GENDER_AND_DEVELOPMENT_FUND = "Gender and Development (GAD) Fund"
    SENIOR_CITIZENS_PWD_FUND = "Senior Citizens & Persons with Disability (PWD) Fund"
    CHILD_PROTECTION_FUND = "Local Council for the Protection of Children (LCPC) Fund"
    PERSONAL_SERVICES = "Personal Services (PS)"
    MAINTENANCE_AND_OPERATIONS = "Maintenance and Other Operating Expenses (MOOE)"

    @classmethod
    def from_str(cls, value: object) -> "BudgetCategory":
        return _coerce(cls, value, "budget category")


class RevenueSource(str, Enum):
    """Income categories recognised by the treasurer's books."""

    NATIONAL_TAX_ALLOTMENT = "National Tax Allotment (NTA)"
    REAL_PROPERTY_TAX_SHARE = "Share of Real Property Tax (RPT)"
    COMMUNITY_TAX_SHARE = "Share of Community Tax"
    STORE_AND_RETAILER_TAXES = "Taxes on Stores/Retailers"
    FEES_AND_CHARGES = "Barangay Fees & Charges"
    OPERATIONS_REVENUE = "Revenue from Operations"
    GRANTS_AND_DONATIONS = "Grants, Aid, & Donations"

    @classmethod
    def from_str(cls, value: object) -> "RevenueSource":
        return _coerce(cls, value, "revenue source")
