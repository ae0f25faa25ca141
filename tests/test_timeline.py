import logging
import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(Path(__file__).resolve().parent, "..")))

from debt import ACTIVE, Debt
from timeline import COMPLETED, STALLED, calculate_timeline

START = date(2025, 1, 1)


def _two_debts():
    return [
        {"id": "A", "name": "Card", "balance": 1000, "interest_rate": 20, "minimum_payment": 50},
        {"id": "B", "name": "Loan", "balance": 500, "interest_rate": 5, "minimum_payment": 25},
    ]


def _entries(log, scenario):
    return [e for e in log if e["scenario"] == scenario]


def test_single_debt_minimum_only():
    debts = [{"id": "card", "balance": 1200, "interest_rate": 12, "minimum_payment": 100}]
    result = calculate_timeline(debts, 100, "avalanche", start=START)

    # Interest capitalizes first, so twelve payments leave a final partial one.
    assert result.baseline_months == 13
    assert result.accelerated_months == 13
    assert result.baseline_interest > 0
    assert result.months_saved == 0
    assert result.interest_saved == 0
    assert result.baseline.status == COMPLETED
    assert result.payoff_date == date(2026, 2, 1)

    final = result.monthly_payments
    assert len(final) == 1 and final[0].is_minimum_payment
    assert final[0].amount < 100


def test_avalanche_extra_flows_to_highest_rate_then_next():
    log = []
    result = calculate_timeline(_two_debts(), 100, "avalanche", start=START, debt_log=log)
    payoff = result.accelerated.payoff_months
    assert payoff["A"] < payoff["B"]

    for entry in _entries(log, "accelerated"):
        extras = [a for a in entry["allocations"] if not a.is_minimum_payment]
        if entry["month"] < payoff["A"] - 1:
            assert [(a.debt_id, a.amount) for a in extras] == [("A", Decimal("25"))]
        elif entry["month"] >= payoff["A"]:
            assert all(a.debt_id == "B" for a in extras)

    assert result.accelerated_months < result.baseline_months
    assert result.interest_saved > 0
    assert [(a.debt_id, a.amount, a.is_minimum_payment) for a in result.next_month_payments] == [
        ("A", Decimal("50"), True),
        ("B", Decimal("25"), True),
        ("A", Decimal("25"), False),
    ]


def test_snowball_pays_smallest_first():
    result = calculate_timeline(_two_debts(), 100, "snowball", start=START)
    payoff = result.accelerated.payoff_months
    assert payoff["B"] < payoff["A"]
    assert result.strategy_id == "snowball"


def test_lump_sum_reduces_balance_in_its_month():
    debts = [{"id": "loan", "balance": 10000, "interest_rate": 12, "minimum_payment": 200}]
    fundings = [{"amount": 500, "payment_date": "2025-03-15"}]

    plain_log, funded_log = [], []
    plain = calculate_timeline(debts, 300, "avalanche", start=START, debt_log=plain_log)
    funded = calculate_timeline(
        debts, 300, "avalanche", fundings=fundings, start=START, debt_log=funded_log
    )

    plain_acc = _entries(plain_log, "accelerated")
    funded_acc = _entries(funded_log, "accelerated")
    for month in (0, 1):
        assert plain_acc[month]["balances"] == funded_acc[month]["balances"]
    assert funded_acc[2]["lump_sum"] == Decimal("500")
    assert (
        plain_acc[2]["balances"]["loan"] - funded_acc[2]["balances"]["loan"]
        == Decimal("500")
    )

    assert funded.accelerated_months < plain.accelerated_months
    assert funded.baseline_months == plain.baseline_months
    assert funded.interest_saved > plain.interest_saved


def test_several_fundings_in_one_month_all_apply():
    debts = [{"id": "loan", "balance": 10000, "interest_rate": 12, "minimum_payment": 200}]
    fundings = [
        {"amount": 200, "payment_date": "2025-03-01"},
        {"amount": 300, "payment_date": "2025-03-28"},
    ]
    log = []
    calculate_timeline(debts, 300, "avalanche", fundings=fundings, start=START, debt_log=log)
    assert _entries(log, "accelerated")[2]["lump_sum"] == Decimal("500")


def test_fundings_outside_the_horizon_are_ignored():
    debts = [{"id": "loan", "balance": 2000, "interest_rate": 12, "minimum_payment": 200}]
    plain = calculate_timeline(debts, 300, "avalanche", start=START)
    outside = calculate_timeline(
        debts,
        300,
        "avalanche",
        fundings=[
            {"amount": 500, "payment_date": "2024-12-31"},
            {"amount": 500, "payment_date": "2090-01-01"},
        ],
        start=START,
    )
    assert outside == plain


def test_underfunded_budget_stalls_without_raising(caplog):
    debts = [{"id": "loan", "balance": 10000, "interest_rate": 24, "minimum_payment": 300}]
    with caplog.at_level(logging.WARNING):
        result = calculate_timeline(debts, 100, "avalanche", start=START, max_months=120)
    assert result.stalled
    assert result.accelerated.status == STALLED
    assert result.accelerated_months == 120
    assert result.baseline.status == COMPLETED
    assert any("did not pay off" in r.getMessage() for r in caplog.records)


def test_budget_below_minimums_is_no_better_than_baseline():
    result = calculate_timeline(_two_debts(), 60, "avalanche", start=START)
    assert result.accelerated.stalled or result.accelerated_months >= result.baseline_months


def test_balances_never_increase_or_go_negative():
    log = []
    calculate_timeline(
        _two_debts(),
        150,
        "balance-ratio",
        fundings=[{"amount": 300, "payment_date": "2025-06-10"}],
        start=START,
        debt_log=log,
    )
    for scenario in ("baseline", "accelerated"):
        previous = {"A": Decimal("1000"), "B": Decimal("500")}
        for entry in _entries(log, scenario):
            for debt_id, balance in entry["balances"].items():
                assert balance >= 0
                assert balance <= previous[debt_id]
                previous[debt_id] = balance


@pytest.mark.parametrize("strategy", ["avalanche", "snowball", "balance-ratio"])
@pytest.mark.parametrize("budget", [75, 76, 100, 250, 2000])
def test_accelerated_never_slower_than_baseline(strategy, budget):
    result = calculate_timeline(_two_debts(), budget, strategy, start=START)
    assert result.accelerated_months <= result.baseline_months
    assert result.months_saved >= 0
    assert result.interest_saved >= 0


def test_identical_inputs_give_identical_results():
    fundings = [{"amount": 250, "payment_date": "2025-04-02"}]
    first = calculate_timeline(_two_debts(), 120, "snowball", fundings=fundings, start=START)
    second = calculate_timeline(_two_debts(), 120, "snowball", fundings=fundings, start=START)
    assert first == second


def test_caller_snapshots_are_not_mutated():
    debts = [Debt("A", "Card", Decimal("1000"), Decimal("20"), Decimal("50"))]
    calculate_timeline(debts, 500, "avalanche", start=START)
    assert debts[0].balance == Decimal("1000")
    assert debts[0].status == ACTIVE


@pytest.mark.parametrize(
    "debts, budget",
    [
        ([{"id": "x", "balance": -5, "interest_rate": 5, "minimum_payment": 10}], 100),
        ([{"id": "x", "balance": 5, "interest_rate": 101, "minimum_payment": 10}], 100),
        ([{"id": "x", "balance": 5, "interest_rate": 5}], 100),
        ([{"id": "x", "balance": 5, "interest_rate": 5, "minimum_payment": 10}], -1),
        ([{"id": "x", "balance": "nan", "interest_rate": 5, "minimum_payment": 10}], 100),
        ([{"id": "x", "balance": "Infinity", "interest_rate": 5, "minimum_payment": 10}], 100),
        ([{"id": "x", "balance": 5, "interest_rate": "nan", "minimum_payment": 10}], 100),
        ([{"id": "x", "balance": 5, "interest_rate": 5, "minimum_payment": 10}], "abc"),
        ([{"id": "x", "balance": 5, "interest_rate": 5, "minimum_payment": 10}], float("nan")),
    ],
)
def test_invalid_input_rejected_before_simulating(debts, budget):
    log = []
    with pytest.raises(ValueError):
        calculate_timeline(debts, budget, "avalanche", start=START, debt_log=log)
    assert log == []


@pytest.mark.parametrize("amount", ["nan", "Infinity"])
def test_non_numeric_funding_rejected_before_simulating(amount):
    log = []
    fundings = [{"amount": amount, "payment_date": "2025-02-01"}]
    with pytest.raises(ValueError):
        calculate_timeline(_two_debts(), 100, "avalanche", fundings=fundings, start=START, debt_log=log)
    assert log == []


def test_unknown_strategy_uses_default():
    result = calculate_timeline(_two_debts(), 100, "mystery", start=START)
    assert result.strategy_id == "avalanche"
    fallback = calculate_timeline(
        _two_debts(), 100, "mystery", start=START, default_strategy="snowball"
    )
    assert fallback.strategy_id == "snowball"


def test_preferred_currency_normalizes_debts_and_fundings():
    debts = [
        {"id": "uk", "balance": 780, "interest_rate": 0, "minimum_payment": 78, "currency": "GBP"}
    ]
    result = calculate_timeline(debts, 100, "avalanche", preferred_currency="USD", start=START)
    assert result.currency == "USD"
    assert result.baseline_months == 10
    assert result.next_month_payments[0].amount == Decimal("100.00")

    funded = calculate_timeline(
        debts,
        100,
        "avalanche",
        fundings=[{"amount": 78, "payment_date": "2025-01-20", "currency": "GBP"}],
        preferred_currency="USD",
        start=START,
    )
    assert funded.accelerated_months == 9


def test_paid_off_debts_complete_immediately():
    debts = [
        {"id": "done", "balance": 0, "interest_rate": 10, "minimum_payment": 25},
        {"id": "closed", "balance": 300, "interest_rate": 10, "minimum_payment": 25, "status": "paid_off"},
    ]
    result = calculate_timeline(debts, 100, "avalanche", start=START)
    assert result.baseline_months == 0
    assert result.accelerated_months == 0
    assert result.accelerated.status == COMPLETED
    assert result.payoff_date == START
