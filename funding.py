from __future__ import annotations

"""One-time lump-sum contributions.

Fundings are keyed by calendar month: a funding dated on any day of a month
applies once, while that month is simulated. Fundings outside the simulated
months are never applied.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class OneTimeFunding:
    amount: Decimal
    payment_date: date
    currency: Optional[str] = None


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def to_funding(value: OneTimeFunding | dict) -> OneTimeFunding:
    """Build a validated ``OneTimeFunding`` from a dataclass or a dictionary.

    Dictionaries use ``amount``, ``payment_date`` (or ``date``) and an
    optional ``currency``.
    """

    if isinstance(value, OneTimeFunding):
        amount, when, currency = value.amount, value.payment_date, value.currency
    else:
        amount = value.get("amount")
        when = value.get("payment_date", value.get("date"))
        currency = value.get("currency")

    try:
        parsed = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Funding amount is not a number: {amount!r}")
    if not parsed.is_finite():
        raise ValueError(f"Funding amount is not a number: {amount!r}")
    amount = parsed
    if amount < 0:
        raise ValueError(f"Funding amount must not be negative: {amount}")
    if when is None:
        raise ValueError("Funding date is required")
    try:
        when = parse_date(when)
    except (TypeError, ValueError):
        raise ValueError(f"Funding date is not an ISO date: {when!r}")
    return OneTimeFunding(amount=amount, payment_date=when, currency=currency)


def fundings_for_month(
    fundings: Iterable[OneTimeFunding], current_month: date
) -> List[OneTimeFunding]:
    """Return the fundings dated in the same month and year as ``current_month``."""

    return [
        f
        for f in fundings
        if f.payment_date.year == current_month.year
        and f.payment_date.month == current_month.month
    ]


def total_of(fundings: Iterable[OneTimeFunding]) -> Decimal:
    return sum((f.amount for f in fundings), Decimal("0"))


def sort_by_date(fundings: Iterable[OneTimeFunding]) -> List[OneTimeFunding]:
    return sorted(fundings, key=lambda f: f.payment_date)
