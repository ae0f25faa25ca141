"""Command-line interface for managing debts and running payoff simulations."""

from datetime import date
from pathlib import Path
import json
from typing import Dict, List, Optional

from allocator import by_debt
from config import Config
from currency import CurrencyNormalizer, display_symbol, format_currency
from logging_config import get_logger, setup_logging
from strategies import STRATEGIES
from timeline import calculate_timeline

logger = get_logger(__name__)


def load_data(path: Path) -> Dict:
    """Load debts, fundings and plan settings from ``path``."""
    if path.exists():
        with path.open() as f:
            return json.load(f)
    return {
        "debts": [],
        "fundings": [],
        "monthly_payment": 0.0,
        "strategy": "avalanche",
        "preferred_currency": None,
    }


def save_data(data: Dict, path: Path) -> None:
    with path.open("w") as f:
        json.dump(data, f, indent=2)


# ---------------------------------------------------------------------------
# Editing helpers


def _delete_item(items: List[dict]) -> None:
    idx = input("Number to delete: ").strip()
    if idx.isdigit() and 1 <= int(idx) <= len(items):
        del items[int(idx) - 1]


def _pick_item(items: List[dict]) -> Optional[dict]:
    idx = input("Number to edit: ").strip()
    if idx.isdigit() and 1 <= int(idx) <= len(items):
        return items[int(idx) - 1]
    return None


def _prompt(label: str, current, cast=str):
    """Prompt for a value, keeping ``current`` when the answer is blank."""
    raw = input(f"{label} [{current}]: ").strip()
    if not raw:
        return current
    return cast(raw)


def edit_debts(data: Dict, save) -> None:
    """Add, edit or remove debt entries."""
    debts = data.setdefault("debts", [])
    while True:
        print("\nCurrent debts:")
        for i, d in enumerate(debts, 1):
            print(
                f"{i}. {d['name']} balance {d['balance']} {d.get('currency', 'USD')} "
                f"min {d['minimum_payment']} rate {d['interest_rate']}%"
            )
        action = input("A)dd, E)dit, D)elete, B)ack: ").strip().lower()
        if action == "a":
            name = input("Name: ").strip() or "Debt"
            balance = float(input("Balance: ").strip())
            minimum = float(input("Minimum payment: ").strip())
            rate = float(input("Interest rate (%): ").strip())
            currency = input("Currency [USD]: ").strip() or "USD"
            debts.append(
                {
                    "id": name,
                    "name": name,
                    "balance": balance,
                    "minimum_payment": minimum,
                    "interest_rate": rate,
                    "currency": currency,
                }
            )
            save(data)
        elif action == "e":
            d = _pick_item(debts)
            if d is not None:
                d["name"] = _prompt("Name", d["name"])
                d["balance"] = _prompt("Balance", d["balance"], float)
                d["minimum_payment"] = _prompt("Minimum payment", d["minimum_payment"], float)
                d["interest_rate"] = _prompt("Interest rate (%)", d["interest_rate"], float)
                d["currency"] = _prompt("Currency", d.get("currency", "USD"))
                save(data)
        elif action == "d":
            _delete_item(debts)
            save(data)
        elif action == "b":
            break


def edit_fundings(data: Dict, save) -> None:
    """Add, edit or remove one-time lump-sum payments."""
    fundings = data.setdefault("fundings", [])
    while True:
        print("\nOne-time fundings:")
        for i, f in enumerate(fundings, 1):
            cur = f" {f['currency']}" if f.get("currency") else ""
            print(f"{i}. {f['amount']}{cur} on {f['payment_date']}")
        action = input("A)dd, E)dit, D)elete, B)ack: ").strip().lower()
        if action == "a":
            amount = float(input("Amount: ").strip())
            when = input("Date (YYYY-MM-DD): ").strip()
            currency = input("Currency [plan currency]: ").strip() or None
            funding = {"amount": amount, "payment_date": when}
            if currency:
                funding["currency"] = currency
            fundings.append(funding)
            save(data)
        elif action == "e":
            f = _pick_item(fundings)
            if f is not None:
                f["amount"] = _prompt("Amount", f["amount"], float)
                f["payment_date"] = _prompt("Date", f["payment_date"])
                save(data)
        elif action == "d":
            _delete_item(fundings)
            save(data)
        elif action == "b":
            break


def edit_plan(data: Dict, save) -> None:
    """Change the monthly budget, strategy and display currency."""
    data["monthly_payment"] = _prompt(
        "Monthly payment", data.get("monthly_payment", 0.0), float
    )
    print("Strategies: " + ", ".join(STRATEGIES))
    data["strategy"] = _prompt("Strategy", data.get("strategy", "avalanche"))
    currency = input(
        f"Preferred currency [{data.get('preferred_currency') or 'none'}]: "
    ).strip()
    if currency:
        data["preferred_currency"] = None if currency.lower() == "none" else currency
    save(data)


# ---------------------------------------------------------------------------
# Simulation


def run_simulation(data: Dict, config: Optional[Config] = None, start: Optional[date] = None) -> None:
    """Run the payoff comparison and print a summary."""
    config = config or Config()
    print("---  Debt Payoff Planner ---")

    currency = data.get("preferred_currency")
    symbol = display_symbol(currency)
    try:
        result = calculate_timeline(
            data.get("debts", []),
            data.get("monthly_payment", 0),
            data.get("strategy"),
            fundings=data.get("fundings", []),
            preferred_currency=currency,
            start=start,
            max_months=config.MAX_MONTHS,
            normalizer=CurrencyNormalizer(config.rate_table()),
            default_strategy=config.DEFAULT_STRATEGY,
        )
    except ValueError as exc:
        logger.error("Simulation rejected input: %s", exc)
        print(f"Warning: {exc}")
        return

    names = {d.get("id") or d.get("name"): d.get("name") for d in data.get("debts", [])}

    if result.stalled:
        print(
            f"Warning: this plan does not pay everything off within "
            f"{result.accelerated_months} months."
        )

    print(f"Strategy: {STRATEGIES[result.strategy_id].name}")
    print(
        f"Minimum payments only: {result.baseline_months} months, "
        f"interest {format_currency(result.baseline_interest, symbol)}"
    )
    print(
        f"With your plan:        {result.accelerated_months} months, "
        f"interest {format_currency(result.accelerated_interest, symbol)}"
    )
    print(
        f"You save {result.months_saved} months and "
        f"{format_currency(result.interest_saved, symbol)} in interest."
    )
    if not result.stalled:
        print(f"Debt free by {result.payoff_date.strftime('%B %Y')}")

    if result.accelerated.payoff_months:
        print("\nPayoff order:")
        ordered = sorted(result.accelerated.payoff_months.items(), key=lambda kv: kv[1])
        for debt_id, months in ordered:
            paid = result.accelerated.payoff_dates[debt_id]
            print(f"  {names.get(debt_id, debt_id)}: month {months} ({paid.strftime('%b %Y')})")

    if result.next_month_payments:
        print("\nNext month's payments:")
        for debt_id, amount in by_debt(result.next_month_payments).items():
            print(f"  {names.get(debt_id, debt_id)}: {format_currency(amount, symbol)}")


# ---------------------------------------------------------------------------
# Menu


def main() -> None:
    """Display the main menu and handle user selections."""
    config = Config()
    setup_logging(config)
    data = load_data(config.DATA_FILE)

    def save(d: Dict) -> None:
        save_data(d, config.DATA_FILE)

    while True:
        print("\n--- Debt Menu ---")
        print("1. Edit debts")
        print("2. Edit one-time fundings")
        print("3. Edit plan")
        print("4. Run simulation")
        print("5. Quit")
        choice = input("Select an option: ").strip()
        if choice == "1":
            edit_debts(data, save)
        elif choice == "2":
            edit_fundings(data, save)
        elif choice == "3":
            edit_plan(data, save)
        elif choice == "4":
            run_simulation(data, config)
        elif choice == "5":
            break
        else:
            print("Invalid option.")


if __name__ == "__main__":
    main()
