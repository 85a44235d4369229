"""Mini README: Fixed-point money helpers for Philippine peso amounts.

Structure:
    * to_money - coerce user input into a centavo-quantised ``Decimal``.
    * total - exact sum of amounts.
    * format_money - compact human rendering used in denial messages.
    * to_minor_units / to_ledger_units - integer scaling for storage and ledger.

Amounts never pass through binary floating point: floats are converted via
their shortest ``repr`` and anything finer than one centavo is rejected rather
than rounded.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Union

CURRENCY = "PHP"
CENTAVO = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyInput = Union[Decimal, int, float, str]


def to_money(value: MoneyInput) -> Decimal:
    """Return ``value`` as a non-negative Decimal with exactly two places."""

    if isinstance(value, bool):
        raise ValueError("Amounts must be numeric, not boolean.")
    try:
        if isinstance(value, float):
            amount = Decimal(repr(value))
        else:
            amount = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError) as error:
        raise ValueError(f"Invalid amount: {value!r}") from error
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError("Amounts cannot be negative.")
    try:
        quantised = amount.quantize(CENTAVO)
    except InvalidOperation as error:
        raise ValueError(f"Invalid amount: {value!r}") from error
    if quantised != amount:
        raise ValueError(f"Amounts are limited to centavo precision: {value!r}")
    return quantised


def total(amounts: Iterable[Decimal]) -> Decimal:
    """Exact sum of money amounts; zero for an empty iterable."""

    return sum(amounts, ZERO)


def format_money(amount: Decimal) -> str:
    """Render whole amounts without decimals and others with two places."""

    if amount == amount.to_integral_value():
        return f"{amount:.0f}"
    return f"{amount:.2f}"


def to_minor_units(amount: Decimal) -> int:
    """Amount in centavos."""

    return int(amount.quantize(CENTAVO) * 100)


def to_ledger_units(amount: Decimal, decimals: int = 18) -> int:
    """Scale pesos to the ledger's integer unit (1 PHP = 10**decimals units)."""

    return to_minor_units(amount) * 10 ** decimals // 100
