from __future__ import annotations

"""Debt prioritization strategies.

Each strategy is a pure, stable sort: debts with equal keys keep their input
order, and the input sequence is never modified. Gold loans always come
before regular debts; each group is ranked with its own key. Strategies are
registered in ``STRATEGIES`` and looked up through ``get_strategy``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from debt import Debt
from interest import monthly_interest
from logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_STRATEGY = "avalanche"
MAX_PAYOFF_MONTHS = 1200


@dataclass(frozen=True)
class Strategy:
    id: str
    name: str
    description: str
    key: Callable[[Debt], object]
    gold_key: Optional[Callable[[Debt], object]] = None

    def _rank(self, debt: Debt):
        if debt.is_gold_loan:
            return (0, (self.gold_key or self.key)(debt))
        return (1, self.key(debt))

    def order(self, debts: Iterable[Debt]) -> List[Debt]:
        return sorted(debts, key=self._rank)


def _avalanche_key(debt: Debt):
    return -debt.interest_rate


def _snowball_key(debt: Debt):
    return debt.balance


def _balance_ratio_key(debt: Debt):
    # Zero balances have no ratio and sort behind every real candidate.
    if debt.balance <= 0:
        return (1, Decimal("0"))
    return (0, -(debt.interest_rate / debt.balance))


def _gold_ratio_key(debt: Debt):
    # Interest weighted by how many minimum payments the balance represents.
    if debt.minimum_payment <= 0:
        return (1, Decimal("0"))
    return (0, -(debt.interest_rate * debt.balance / debt.minimum_payment))


AVALANCHE = Strategy(
    id="avalanche",
    name="Avalanche Method",
    description="Pay off debts with the highest interest rate first",
    key=_avalanche_key,
)

SNOWBALL = Strategy(
    id="snowball",
    name="Snowball Method",
    description="Pay off the smallest balances first",
    key=_snowball_key,
)

BALANCE_RATIO = Strategy(
    id="balance-ratio",
    name="Balance Ratio",
    description="Weigh interest rate against debt size",
    key=_balance_ratio_key,
    gold_key=_gold_ratio_key,
)

STRATEGIES: Dict[str, Strategy] = {
    s.id: s for s in (AVALANCHE, SNOWBALL, BALANCE_RATIO)
}


def get_strategy(strategy_id: str | Strategy | None, default: str = DEFAULT_STRATEGY) -> Strategy:
    """Return the registered strategy for ``strategy_id``.

    Unknown identifiers fall back to ``default`` so a plan can always be
    produced; the fallback is logged.
    """

    if isinstance(strategy_id, Strategy):
        return strategy_id
    try:
        return STRATEGIES[strategy_id]
    except KeyError:
        logger.warning(
            "Unknown strategy %r, falling back to %r", strategy_id, default,
            extra={"strategy": strategy_id},
        )
        return STRATEGIES.get(default, AVALANCHE)


def order(debts: Iterable[Debt], strategy_id: str | Strategy | None) -> List[Debt]:
    return get_strategy(strategy_id).order(debts)


def calculate_payoff_time(debt: Debt, monthly_payment, today: Optional[date] = None) -> Optional[int]:
    """Months needed to clear ``debt`` paying ``monthly_payment`` every month.

    Gold loans with a maturity date report the whole months left until that
    date, never less than zero. Returns ``None`` when the payment never
    clears the balance: it is not positive, it does not cover a month's
    interest, or payoff would take longer than ``MAX_PAYOFF_MONTHS``.
    """

    payment = Decimal(str(monthly_payment))
    if payment <= 0:
        return None

    if debt.is_gold_loan and debt.final_payment_date is not None:
        today = today or date.today()
        maturity = debt.final_payment_date
        months = (maturity.year - today.year) * 12 + (maturity.month - today.month)
        return max(0, months)

    balance = Decimal(str(debt.balance))
    months = 0
    while balance > 0:
        if months >= MAX_PAYOFF_MONTHS:
            return None
        interest = monthly_interest(balance, debt.interest_rate)
        if payment <= interest:
            logger.debug(
                "Payment %s cannot cover interest %s on %s", payment, interest, debt.id,
                extra={"debt": debt.id},
            )
            return None
        balance = max(Decimal("0"), balance + interest - payment)
        months += 1
    return months
