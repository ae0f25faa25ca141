from __future__ import annotations

"""Month-by-month payoff simulation comparing two scenarios.

The *baseline* scenario pays only the minimum on every debt. The
*accelerated* scenario spends the full monthly budget, plus any lump sums
dated in the simulated month, under the chosen strategy. Each month:

1. interest accrues on every active debt and is added to its balance;
2. the month's lump sums (accelerated only) are added to the budget;
3. the allocator splits the budget and payments are subtracted, clamping
   balances at zero;
4. debts reaching zero are marked paid off and their payoff month recorded;
5. the month's interest is added to the running total.

A scenario ends ``completed`` when every balance is zero, or ``stalled`` when
the iteration cap is reached first. Stalling is reported in the result rather
than raised.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from allocator import (
    PaymentAllocation,
    allocate,
    allocated_total,
    total_minimum_payments,
)
from currency import CurrencyNormalizer
from debt import PAID_OFF, Debt, load_debts
from funding import OneTimeFunding, fundings_for_month, to_funding, total_of
from interest import debt_interest
from logging_config import get_logger
from strategies import DEFAULT_STRATEGY, Strategy, get_strategy

logger = get_logger(__name__)

RUNNING = "running"
COMPLETED = "completed"
STALLED = "stalled"

MAX_MONTHS = 1200


@dataclass
class ScenarioResult:
    """Outcome of simulating one scenario to completion or to the cap."""

    status: str
    months: int
    total_interest: Decimal
    payoff_months: Dict[str, int] = field(default_factory=dict)
    payoff_dates: Dict[str, date] = field(default_factory=dict)
    first_month_payments: List[PaymentAllocation] = field(default_factory=list)
    final_month_payments: List[PaymentAllocation] = field(default_factory=list)
    unallocated: Decimal = Decimal("0")

    @property
    def stalled(self) -> bool:
        return self.status == STALLED


@dataclass(frozen=True)
class TimelineResult:
    baseline_months: int
    accelerated_months: int
    baseline_interest: Decimal
    accelerated_interest: Decimal
    months_saved: int
    interest_saved: Decimal
    payoff_date: date
    monthly_payments: List[PaymentAllocation]
    next_month_payments: List[PaymentAllocation]
    strategy_id: str
    currency: Optional[str]
    baseline: ScenarioResult
    accelerated: ScenarioResult

    @property
    def stalled(self) -> bool:
        """True when the accelerated plan never pays everything off."""

        return self.accelerated.stalled


def _month_start(d: date) -> date:
    return d.replace(day=1)


def simulate_scenario(
    debts: Iterable[Debt],
    monthly_budget: Decimal,
    strategy: Strategy,
    fundings: Iterable[OneTimeFunding] = (),
    start: Optional[date] = None,
    max_months: int = MAX_MONTHS,
    allow_extra: bool = True,
    scenario: str = "accelerated",
    debt_log: Optional[List[dict]] = None,
) -> ScenarioResult:
    """Run one scenario on private copies of ``debts``.

    All amounts must already share one currency. When ``debt_log`` is given a
    snapshot of every simulated month is appended to it.
    """

    working = [d.copy() for d in debts]
    lookup = {d.id: d for d in working}
    fundings = list(fundings)
    first_month = _month_start(start or date.today())

    result = ScenarioResult(status=RUNNING, months=0, total_interest=Decimal("0"))
    month = 0
    while True:
        active = [d for d in working if d.is_active]
        if not active:
            result.status = COMPLETED
            break
        if month >= max_months:
            result.status = STALLED
            break

        current = first_month + relativedelta(months=month)

        month_interest = Decimal("0")
        for debt in active:
            accrued = debt_interest(debt)
            debt.balance += accrued
            month_interest += accrued

        lump_sum = total_of(fundings_for_month(fundings, current)) if fundings else Decimal("0")
        if lump_sum > 0:
            logger.debug(
                "Applying lump sum in %s", current.strftime("%Y-%m"),
                extra={"scenario": scenario, "amount": str(lump_sum)},
            )
        available = monthly_budget + lump_sum

        allocations = allocate(working, available, strategy, allow_extra=allow_extra)
        for allocation in allocations:
            debt = lookup[allocation.debt_id]
            debt.balance = max(Decimal("0"), debt.balance - allocation.amount)

        for debt in active:
            if debt.balance <= 0:
                debt.balance = Decimal("0")
                debt.status = PAID_OFF
                result.payoff_months.setdefault(debt.id, month + 1)
                result.payoff_dates.setdefault(debt.id, current)

        result.total_interest += month_interest
        result.unallocated += available - allocated_total(allocations)
        if month == 0:
            result.first_month_payments = allocations
        result.final_month_payments = allocations

        if debt_log is not None:
            debt_log.append(
                {
                    "scenario": scenario,
                    "month": month,
                    "date": current,
                    "balances": {d.id: d.balance for d in working},
                    "interest": month_interest,
                    "lump_sum": lump_sum,
                    "allocations": allocations,
                }
            )

        month += 1

    result.months = month
    if result.stalled:
        logger.warning(
            "%s scenario did not pay off within %d months", scenario, max_months,
            extra={
                "scenario": scenario,
                "remaining": str(sum((d.balance for d in working), Decimal("0"))),
            },
        )
    return result


def _normalize(
    debts: List[Debt],
    fundings: List[OneTimeFunding],
    preferred_currency: str,
    normalizer: CurrencyNormalizer,
) -> tuple[List[Debt], List[OneTimeFunding]]:
    converted_debts = []
    for debt in debts:
        copy = debt.copy()
        copy.balance, copy.minimum_payment = normalizer.convert_batch(
            [debt.balance, debt.minimum_payment], debt.currency, preferred_currency
        )
        copy.currency = preferred_currency
        converted_debts.append(copy)

    converted_fundings = [
        OneTimeFunding(
            amount=normalizer.convert(
                f.amount, f.currency or preferred_currency, preferred_currency
            ),
            payment_date=f.payment_date,
            currency=preferred_currency,
        )
        for f in fundings
    ]
    return converted_debts, converted_fundings


def calculate_timeline(
    debts: Iterable[Debt | dict],
    monthly_budget,
    strategy: str | Strategy | None = DEFAULT_STRATEGY,
    fundings: Iterable[OneTimeFunding | dict] = (),
    preferred_currency: Optional[str] = None,
    start: Optional[date] = None,
    max_months: int = MAX_MONTHS,
    normalizer: Optional[CurrencyNormalizer] = None,
    default_strategy: str = DEFAULT_STRATEGY,
    debt_log: Optional[List[dict]] = None,
) -> TimelineResult:
    """Simulate baseline and accelerated repayment and compare them.

    Parameters
    ----------
    debts:
        Debt snapshots (``Debt`` objects or dictionaries). They are validated
        and copied; the caller's objects are never modified.
    monthly_budget:
        Total amount available for debt payments each month.
    strategy:
        Strategy identifier or ``Strategy``. Unknown identifiers fall back to
        ``default_strategy``.
    fundings:
        One-time lump sums, applied in the calendar month they are dated.
    preferred_currency:
        When given, debts and fundings are converted to it before simulating
        and every amount in the result is expressed in it.
    start:
        First simulated month; defaults to today. Pass it explicitly for
        reproducible results.
    max_months:
        Iteration cap after which a scenario is reported as stalled.
    debt_log:
        Optional list receiving a snapshot of every simulated month of both
        scenarios.

    Raises
    ------
    ValueError
        If any debt, funding, the budget or the cap is invalid. Nothing is
        simulated in that case.
    """

    working = load_debts(debts)
    fundings = [to_funding(f) for f in fundings]
    try:
        budget = Decimal(str(monthly_budget))
    except InvalidOperation:
        raise ValueError(f"Monthly budget is not a number: {monthly_budget!r}")
    if not budget.is_finite():
        raise ValueError(f"Monthly budget is not a number: {monthly_budget!r}")
    if budget < 0:
        raise ValueError(f"Monthly budget must not be negative: {budget}")
    if max_months <= 0:
        raise ValueError(f"Iteration cap must be positive: {max_months}")

    start = start or date.today()
    chosen = get_strategy(strategy, default=default_strategy)
    normalizer = normalizer or CurrencyNormalizer()
    if preferred_currency:
        working, fundings = _normalize(working, fundings, preferred_currency, normalizer)

    logger.info(
        "Calculating timeline",
        extra={
            "debts": len(working),
            "budget": str(budget),
            "strategy": chosen.id,
            "fundings": len(fundings),
            "currency": preferred_currency,
        },
    )

    baseline = simulate_scenario(
        working,
        total_minimum_payments(working),
        chosen,
        start=start,
        max_months=max_months,
        allow_extra=False,
        scenario="baseline",
        debt_log=debt_log,
    )
    accelerated = simulate_scenario(
        working,
        budget,
        chosen,
        fundings=fundings,
        start=start,
        max_months=max_months,
        scenario="accelerated",
        debt_log=debt_log,
    )

    result = TimelineResult(
        baseline_months=baseline.months,
        accelerated_months=accelerated.months,
        baseline_interest=baseline.total_interest,
        accelerated_interest=accelerated.total_interest,
        months_saved=max(0, baseline.months - accelerated.months),
        interest_saved=max(Decimal("0"), baseline.total_interest - accelerated.total_interest),
        payoff_date=start + relativedelta(months=accelerated.months),
        monthly_payments=accelerated.final_month_payments,
        next_month_payments=accelerated.first_month_payments,
        strategy_id=chosen.id,
        currency=preferred_currency,
        baseline=baseline,
        accelerated=accelerated,
    )

    logger.info(
        "Timeline calculation complete",
        extra={
            "baseline_months": result.baseline_months,
            "accelerated_months": result.accelerated_months,
            "interest_saved": str(result.interest_saved),
            "stalled": result.stalled,
        },
    )
    return result
