"""Mini README: Officials acting on the books and their public projection.

Structure:
    * Official - authenticated actor handed over by the identity layer.
    * OfficialSummary - public subset stored on records and returned to clients.
    * OfficialDirectory - in-memory roster used to resolve request actors.
    * require_role - authorization guard used by every workflow entry point.

Credentials (``email``, ``password_hash``) live only on ``Official``. Records
capture an ``OfficialSummary`` snapshot at creation, so nothing credential-like
can leak through a workflow result.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..logging_utils import get_logger
from .categories import Role
from .errors import PermissionDenied

LOGGER = get_logger(__name__)


def _parse_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError("Term dates must be ISO strings or date instances.")


@dataclass(frozen=True, slots=True)
class OfficialSummary:
    """Identity fields that may safely leave the workflow boundary."""

    official_id: str
    full_name: str
    role: Role
    wallet_address: str
    term_start: date
    term_end: date
    is_active: bool = True

    def as_dict(self) -> Dict[str, object]:
        return {
            "official_id": self.official_id,
            "full_name": self.full_name,
            "role": self.role.value,
            "wallet_address": self.wallet_address,
            "term_start": self.term_start.isoformat(),
            "term_end": self.term_end.isoformat(),
            "is_active": self.is_active,
        }


@dataclass(frozen=True, slots=True)
class Official:
    """Authenticated official as supplied by the identity layer."""

    official_id: str
    full_name: str
    role: Role
    wallet_address: str
    term_start: date
    term_end: date
    is_active: bool = True
    email: str = ""
    password_hash: str = ""

    def summary(self) -> OfficialSummary:
        return OfficialSummary(
            official_id=self.official_id,
            full_name=self.full_name,
            role=self.role,
            wallet_address=self.wallet_address,
            term_start=self.term_start,
            term_end=self.term_end,
            is_active=self.is_active,
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, object]) -> "Official":
        try:
            return cls(
                official_id=str(payload["official_id"]),
                full_name=str(payload["full_name"]),
                role=Role.from_str(payload["role"]),
                wallet_address=str(payload["wallet_address"]),
                term_start=_parse_date(payload["term_start"]),
                term_end=_parse_date(payload["term_end"]),
                is_active=bool(payload.get("is_active", True)),
                email=str(payload.get("email", "")),
                password_hash=str(payload.get("password_hash", "")),
            )
        except KeyError as error:
            raise ValueError(f"Official entry missing field {error.args[0]!r}") from error


def require_role(actor: Official, *roles: Role) -> None:
    """Raise ``PermissionDenied`` unless ``actor`` is active and holds one of ``roles``.

    Authorization always uses the live actor; roles snapshotted on records are
    for display and audit only.
    """

    if not actor.is_active:
        raise PermissionDenied(f"Official {actor.official_id} is not active.")
    if roles and actor.role not in roles:
        allowed = " or ".join(role.value for role in roles)
        raise PermissionDenied(
            f"Only the {allowed} may perform this action (actor role: {actor.role.value})."
        )


class OfficialDirectory:
    """Resolve officials by identifier for the interface layer."""

    def __init__(self, officials: Optional[Iterable[Official]] = None) -> None:
        self._officials: Dict[str, Official] = {}
        if officials is None:
            officials = self._demo_roster()
        for official in officials:
            self.add(official)
        LOGGER.debug("Official directory initialised with %s entries", len(self._officials))

    @staticmethod
    def _demo_roster() -> List[Official]:
        """Deterministic roster for local development against a test chain."""

        return [
            Official(
                official_id="official_chairman",
                full_name="Demo Chairman",
                role=Role.CHAIRMAN,
                wallet_address="0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1",
                term_start=date(2023, 11, 30),
                term_end=date(2026, 11, 30),
            ),
            Official(
                official_id="official_treasurer",
                full_name="Demo Treasurer",
                role=Role.TREASURER,
                wallet_address="0xFFcf8FDEE72ac11b5c542428B35EEF5769C409f0",
                term_start=date(2023, 11, 30),
                term_end=date(2026, 11, 30),
            ),
        ]

    @classmethod
    def from_file(cls, path: Path) -> "OfficialDirectory":
        """Load a JSON list of official entries."""

        entries = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(entries, list):
            raise ValueError("Officials file must contain a JSON list.")
        LOGGER.info("Loading %s officials from %s", len(entries), path)
        return cls(Official.from_dict(entry) for entry in entries)

    def add(self, official: Official) -> None:
        if official.official_id in self._officials:
            raise ValueError(f"Official {official.official_id} already registered.")
        self._officials[official.official_id] = official

    def get(self, official_id: str) -> Official:
        if official_id not in self._officials:
            raise KeyError(f"Official {official_id} not found")
        return self._officials[official_id]

    def list_officials(self) -> List[Official]:
        return sorted(self._officials.values(), key=lambda official: official.official_id)
