from __future__ import annotations

"""Split one month's budget across debts.

Minimum payments are funded first, in strategy order. Whatever is left goes
to the single highest-priority debt as an extra payment, capped at what that
debt still owes. When the budget cannot cover every minimum, debts later in
the order receive a partial payment or nothing at all.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from currency import CurrencyNormalizer
from debt import Debt
from strategies import Strategy, get_strategy

_NORMALIZER = CurrencyNormalizer()


@dataclass(frozen=True)
class PaymentAllocation:
    debt_id: str
    amount: Decimal
    is_minimum_payment: bool


def _in_budget_currency(
    amount: Decimal,
    debt: Debt,
    preferred_currency: Optional[str],
    normalizer: CurrencyNormalizer,
) -> Decimal:
    if not preferred_currency:
        return amount
    return normalizer.convert(amount, debt.currency, preferred_currency)


def total_minimum_payments(
    debts: Iterable[Debt],
    preferred_currency: Optional[str] = None,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> Decimal:
    """Sum of minimum payments of active debts, in ``preferred_currency`` if given."""

    normalizer = normalizer or _NORMALIZER
    return sum(
        (
            _in_budget_currency(d.minimum_payment, d, preferred_currency, normalizer)
            for d in debts
            if d.is_active
        ),
        Decimal("0"),
    )


def allocate(
    debts: Iterable[Debt],
    total_budget,
    strategy: Strategy | str | None,
    preferred_currency: Optional[str] = None,
    normalizer: Optional[CurrencyNormalizer] = None,
    allow_extra: bool = True,
) -> List[PaymentAllocation]:
    """Return the payment allocations for one month.

    Amounts are expressed in ``preferred_currency`` when one is given and in
    each debt's own currency otherwise. ``allow_extra=False`` pays minimums
    only, which is how the baseline scenario runs.
    """

    normalizer = normalizer or _NORMALIZER
    strategy = get_strategy(strategy)
    try:
        remaining = Decimal(str(total_budget))
    except InvalidOperation:
        raise ValueError(f"Monthly budget is not a number: {total_budget!r}")
    if not remaining.is_finite():
        raise ValueError(f"Monthly budget is not a number: {total_budget!r}")
    if remaining < 0:
        raise ValueError(f"Monthly budget must not be negative: {remaining}")

    ordered = strategy.order(d for d in debts if d.is_active)
    allocations: List[PaymentAllocation] = []
    owed = {}

    for debt in ordered:
        balance = _in_budget_currency(debt.balance, debt, preferred_currency, normalizer)
        minimum = _in_budget_currency(
            min(debt.minimum_payment, debt.balance), debt, preferred_currency, normalizer
        )
        payment = max(Decimal("0"), min(minimum, remaining, balance))
        owed[debt.id] = balance - payment
        if payment > 0:
            allocations.append(PaymentAllocation(debt.id, payment, True))
            remaining -= payment

    if allow_extra and remaining > 0 and ordered:
        target = ordered[0]
        extra = min(remaining, owed[target.id])
        if extra > 0:
            allocations.append(PaymentAllocation(target.id, extra, False))

    return allocations


def allocated_total(allocations: Iterable[PaymentAllocation]) -> Decimal:
    return sum((a.amount for a in allocations), Decimal("0"))


def by_debt(allocations: Iterable[PaymentAllocation]) -> dict:
    """Combine minimum and extra portions into one amount per debt."""

    totals: dict = {}
    for a in allocations:
        totals[a.debt_id] = totals.get(a.debt_id, Decimal("0")) + a.amount
    return totals
