from __future__ import annotations

"""Debt snapshots and input validation.

Debts arrive from an external store as dictionaries or ``Debt`` objects. They
are validated up front and copied; simulation code only ever mutates its own
working copies.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from funding import parse_date

ACTIVE = "active"
PAID_OFF = "paid_off"
STATUSES = {ACTIVE, PAID_OFF}

MAX_RATE = Decimal("100")


class InvalidDebtError(ValueError):
    """Raised when a debt snapshot cannot be simulated."""


@dataclass
class Debt:
    """A named, currency-denominated liability.

    Gold loans are secured loans repaid in full at ``final_payment_date``;
    every strategy ranks them ahead of regular debts.
    """

    id: str
    name: str
    balance: Decimal
    interest_rate: Decimal  # annual percentage, e.g. 19.99
    minimum_payment: Decimal
    currency: str = "USD"
    status: str = ACTIVE
    is_gold_loan: bool = False
    final_payment_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE and self.balance > 0

    def copy(self) -> "Debt":
        return replace(self)


def _decimal(value, field: str, debt_id: str) -> Decimal:
    if value is None:
        raise InvalidDebtError(f"Debt {debt_id!r}: {field} is required")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise InvalidDebtError(f"Debt {debt_id!r}: {field} is not a number: {value!r}")
    if not number.is_finite():
        raise InvalidDebtError(f"Debt {debt_id!r}: {field} is not a number: {value!r}")
    return number


def _maturity(value, debt_id: str) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        raise InvalidDebtError(f"Debt {debt_id!r}: final payment date is not an ISO date: {value!r}")


def validate_debt(debt: Debt) -> Debt:
    """Return ``debt`` unchanged or raise ``InvalidDebtError``."""

    if not str(debt.id).strip():
        raise InvalidDebtError("Debt identifier must not be empty")
    if debt.balance < 0:
        raise InvalidDebtError(f"Debt {debt.id!r}: balance must not be negative")
    if debt.minimum_payment < 0:
        raise InvalidDebtError(f"Debt {debt.id!r}: minimum payment must not be negative")
    if not Decimal("0") <= debt.interest_rate <= MAX_RATE:
        raise InvalidDebtError(
            f"Debt {debt.id!r}: interest rate {debt.interest_rate} outside [0, 100]"
        )
    if debt.status not in STATUSES:
        raise InvalidDebtError(f"Debt {debt.id!r}: unknown status {debt.status!r}")
    return debt


def to_debt(value: Debt | dict) -> Debt:
    """Build a validated ``Debt`` from a ``Debt`` or a dictionary.

    Dictionaries use the keys ``id``, ``name``, ``balance``, ``interest_rate``,
    ``minimum_payment``, ``currency``, ``status``, ``is_gold_loan`` and
    ``final_payment_date``. ``name`` doubles as the identifier when ``id`` is
    absent, and ``apr`` is accepted for the rate. Gold loans may omit the
    minimum payment, which then defaults to zero.
    """

    if isinstance(value, Debt):
        debt = Debt(
            id=str(value.id),
            name=value.name,
            balance=_decimal(value.balance, "balance", value.id),
            interest_rate=_decimal(value.interest_rate, "interest rate", value.id),
            minimum_payment=_decimal(value.minimum_payment, "minimum payment", value.id),
            currency=value.currency,
            status=value.status,
            is_gold_loan=bool(value.is_gold_loan),
            final_payment_date=_maturity(value.final_payment_date, value.id),
        )
        return validate_debt(debt)

    debt_id = str(value.get("id") or value.get("name") or "")
    rate = value.get("interest_rate", value.get("apr"))
    gold = bool(value.get("is_gold_loan"))
    minimum = value.get("minimum_payment")
    if minimum is None and gold:
        minimum = 0
    debt = Debt(
        id=debt_id,
        name=value.get("name") or debt_id,
        balance=_decimal(value.get("balance"), "balance", debt_id),
        interest_rate=_decimal(rate, "interest rate", debt_id),
        minimum_payment=_decimal(minimum, "minimum payment", debt_id),
        currency=value.get("currency") or "USD",
        status=value.get("status") or ACTIVE,
        is_gold_loan=gold,
        final_payment_date=_maturity(value.get("final_payment_date"), debt_id),
    )
    return validate_debt(debt)


def load_debts(items: Iterable[Debt | dict]) -> List[Debt]:
    """Validate every snapshot and return independent copies."""

    debts = [to_debt(item) for item in items]
    seen = set()
    for debt in debts:
        if debt.id in seen:
            raise InvalidDebtError(f"Duplicate debt identifier {debt.id!r}")
        seen.add(debt.id)
    return debts
