"""Mini README: Canonical document digests anchored on the ledger.

Structure:
    * DOCUMENT_SCHEMAS - explicit field order per record kind.
    * income_document / approval_document - build the logical documents.
    * DocumentHasher - canonical encoding plus SHA-256 digest and verification.

Canonical encoding, scheme 1
----------------------------
The document is serialised as compact JSON with sorted keys::

    {"document": "<kind>", "fields": [["<name>", <value>], ...], "scheme": 1}

``fields`` follows ``DOCUMENT_SCHEMAS[kind]`` exactly, whatever order the
caller's mapping uses. Values are normalised before encoding: money as a
two-decimal string, datetimes converted to UTC ISO-8601 (naive values are
taken as UTC), dates as ISO-8601, enums by value, ``None`` as ``null``. The
digest is the lowercase hex SHA-256 of the UTF-8 bytes. Any change to this
encoding must bump ``SCHEME_VERSION``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Mapping, Tuple, Union

from .categories import RecordKind
from .errors import ValidationError
from .officials import OfficialSummary
from .records import ApprovableRecord

SCHEME_VERSION = 1

_APPROVAL_TAIL: Tuple[str, ...] = (
    "supporting_document_ref",
    "created_by",
    "created_by_role",
    "term_start",
    "term_end",
    "created_at",
    "approved_by",
    "approved_at",
)

DOCUMENT_SCHEMAS: Dict[RecordKind, Tuple[str, ...]] = {
    RecordKind.INCOME: (
        "amount",
        "revenue_source",
        "supporting_document_ref",
        "recorded_by",
        "recorded_by_role",
        "recorded_at",
    ),
    RecordKind.ALLOCATION: ("amount", "category", "fund_source") + _APPROVAL_TAIL,
    RecordKind.PROPOSAL: ("amount", "purpose", "fund_source", "expense_type", "proposer")
    + _APPROVAL_TAIL,
    RecordKind.EXPENDITURE: ("amount", "purpose", "fund_source", "proposal_id") + _APPROVAL_TAIL,
}

Scalar = Union[str, int, bool, None]


def income_document(
    fields: Mapping[str, object], recorder: OfficialSummary, recorded_at: datetime
) -> Dict[str, object]:
    """Logical income document from draft fields and the recording official."""

    return {
        "amount": fields["amount"],
        "revenue_source": fields["revenue_source"],
        "supporting_document_ref": fields["supporting_document_ref"],
        "recorded_by": recorder.official_id,
        "recorded_by_role": recorder.role,
        "recorded_at": recorded_at,
    }


def approval_document(
    record: ApprovableRecord, approver: OfficialSummary, approved_at: datetime
) -> Dict[str, object]:
    """Logical approval document: record fields, creator term window, approver."""

    document: Dict[str, object] = {"amount": record.amount}
    document.update(record.business_fields())
    document.update(
        {
            "supporting_document_ref": record.supporting_document_ref,
            "created_by": record.created_by.official_id,
            "created_by_role": record.created_by_role,
            "term_start": record.created_by.term_start,
            "term_end": record.created_by.term_end,
            "created_at": record.created_at,
            "approved_by": approver.official_id,
            "approved_at": approved_at,
        }
    )
    return document


def _canonical_value(name: str, value: object) -> Scalar:
    if value is None or isinstance(value, (bool, int)):
        return value  # type: ignore[return-value]
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    raise ValidationError(f"Field '{name}' has unsupported type {type(value).__name__}", [name])


class DocumentHasher:
    """Pure function object turning logical documents into digests."""

    algorithm = "sha256"
    scheme_version = SCHEME_VERSION

    def canonical_fields(self, kind: RecordKind, fields: Mapping[str, object]) -> List[List[object]]:
        schema = DOCUMENT_SCHEMAS[RecordKind.from_str(kind)]
        missing = [name for name in schema if name not in fields]
        unknown = sorted(set(fields) - set(schema))
        if missing or unknown:
            raise ValidationError(
                f"Document fields do not match the {kind} schema "
                f"(missing: {missing or 'none'}, unknown: {unknown or 'none'})",
                missing + unknown,
            )
        return [[name, _canonical_value(name, fields[name])] for name in schema]

    def canonical_bytes(self, kind: RecordKind, fields: Mapping[str, object]) -> bytes:
        kind = RecordKind.from_str(kind)
        payload = {
            "document": kind.value,
            "fields": self.canonical_fields(kind, fields),
            "scheme": self.scheme_version,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
            "utf-8"
        )

    def digest(self, kind: RecordKind, fields: Mapping[str, object]) -> str:
        """Return the 64-character hex SHA-256 digest of the document."""

        return hashlib.sha256(self.canonical_bytes(kind, fields)).hexdigest()

    def verify(self, kind: RecordKind, fields: Mapping[str, object], expected: str) -> bool:
        """Constant-time comparison of a recomputed digest with ``expected``."""

        candidate = expected.strip().lower().encode("utf-8")
        return hmac.compare_digest(self.digest(kind, fields).encode("ascii"), candidate)
