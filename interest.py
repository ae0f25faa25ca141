from __future__ import annotations

"""Monthly interest accrual.

Interest is simple monthly accrual on the outstanding balance:
``balance * rate / 100 / 12`` rounded to cents. Paid-off debts and
non-positive balances accrue nothing.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

from debt import Debt

CENT = Decimal("0.01")
MONTHS_PER_YEAR = Decimal("12")


def monthly_interest(balance, annual_rate_percent) -> Decimal:
    """Return one month's interest on ``balance`` at ``annual_rate_percent``."""

    balance = Decimal(str(balance))
    rate = Decimal(str(annual_rate_percent))
    if balance <= 0 or rate <= 0:
        return Decimal("0")
    interest = balance * (rate / Decimal("100")) / MONTHS_PER_YEAR
    return interest.quantize(CENT, rounding=ROUND_HALF_UP)


def debt_interest(debt: Debt) -> Decimal:
    if not debt.is_active:
        return Decimal("0")
    return monthly_interest(debt.balance, debt.interest_rate)


def total_interest(balance, annual_rate_percent, months: int) -> Decimal:
    """Interest accumulated over ``months`` with no payments made."""

    if months <= 0:
        return Decimal("0")
    remaining = Decimal(str(balance))
    total = Decimal("0")
    for _ in range(months):
        interest = monthly_interest(remaining, annual_rate_percent)
        total += interest
        remaining += interest
    return total


def is_debt_payable(debt: Debt) -> bool:
    """True when the minimum payment outpaces the first month's interest."""

    return debt.minimum_payment > monthly_interest(debt.balance, debt.interest_rate)


def minimum_viable_payment(debt: Debt) -> Decimal:
    """Smallest whole payment that still reduces principal each month."""

    interest = monthly_interest(debt.balance, debt.interest_rate)
    return (interest + 1).quantize(Decimal("1"), rounding=ROUND_CEILING)
