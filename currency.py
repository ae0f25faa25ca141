from __future__ import annotations

"""Currency conversion against a fixed rate table.

Rates are expressed relative to a single reference currency (USD). Codes
missing from the table are treated as the reference currency so a conversion
degrades to a no-op instead of failing; a warning is logged each time that
happens.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional

from logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
REFERENCE_CURRENCY = "USD"

DEFAULT_RATES: Dict[str, Decimal] = {
    "USD": Decimal("1.00"),
    "GBP": Decimal("0.78"),
    "EUR": Decimal("0.92"),
    "JPY": Decimal("150.51"),
    "AUD": Decimal("1.52"),
    "CAD": Decimal("1.36"),
    "CHF": Decimal("0.89"),
    "CNY": Decimal("7.15"),
    "INR": Decimal("83.10"),
    "BRL": Decimal("5.45"),
    "KRW": Decimal("1350.25"),
    "RUB": Decimal("91.50"),
    "ZAR": Decimal("18.70"),
    "SGD": Decimal("1.35"),
}

SYMBOLS: Dict[str, str] = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "JP¥": "JPY",
    "A$": "AUD",
    "C$": "CAD",
    "Fr": "CHF",
    "¥": "CNY",
    "₹": "INR",
    "R$": "BRL",
    "₩": "KRW",
    "₽": "RUB",
    "R": "ZAR",
    "S$": "SGD",
}


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def canonical_code(currency: Optional[str]) -> Optional[str]:
    """Return the ISO code for ``currency``, accepting display symbols."""

    if currency is None:
        return None
    code = currency.strip()
    return SYMBOLS.get(code) or SYMBOLS.get(code.upper()) or code.upper()


_DISPLAY_SYMBOLS: Dict[str, str] = {code: symbol for symbol, code in SYMBOLS.items()}


def display_symbol(currency: Optional[str]) -> str:
    """Return the symbol used to print amounts in ``currency``.

    No currency means dollars. Codes without a known symbol are printed as the
    code followed by a space.
    """

    if not currency:
        return "$"
    code = canonical_code(currency)
    return _DISPLAY_SYMBOLS.get(code, f"{code} ")


class CurrencyNormalizer:
    """Convert amounts using a static ``{code: rate}`` table."""

    def __init__(self, rates: Optional[Mapping[str, object]] = None):
        table = DEFAULT_RATES if rates is None else rates
        self.rates: Dict[str, Decimal] = {
            canonical_code(code): _to_decimal(rate) for code, rate in table.items()
        }

    def is_known(self, currency: Optional[str]) -> bool:
        return canonical_code(currency) in self.rates

    def rate(self, currency: str) -> Decimal:
        code = canonical_code(currency)
        try:
            return self.rates[code]
        except KeyError:
            logger.warning(
                "Unknown currency %r, using identity rate", currency,
                extra={"currency": currency},
            )
            return Decimal("1")

    def convert(self, amount, from_currency: str, to_currency: str) -> Decimal:
        """Return ``amount`` expressed in ``to_currency`` rounded to cents.

        Identical currencies return the amount untouched.
        """

        amount = _to_decimal(amount)
        if canonical_code(from_currency) == canonical_code(to_currency):
            return amount
        factor = self.rate(to_currency) / self.rate(from_currency)
        return (amount * factor).quantize(CENT, rounding=ROUND_HALF_UP)

    def convert_batch(
        self, amounts: Iterable, from_currency: str, to_currency: str
    ) -> List[Decimal]:
        """Convert every amount with the same pair, looking the rates up once."""

        values = [_to_decimal(a) for a in amounts]
        if canonical_code(from_currency) == canonical_code(to_currency):
            return values
        factor = self.rate(to_currency) / self.rate(from_currency)
        return [(v * factor).quantize(CENT, rounding=ROUND_HALF_UP) for v in values]


_default = CurrencyNormalizer()


def convert(amount, from_currency: str, to_currency: str) -> Decimal:
    """Convert using the built-in rate table."""

    return _default.convert(amount, from_currency, to_currency)


def convert_batch(amounts: Iterable, from_currency: str, to_currency: str) -> List[Decimal]:
    return _default.convert_batch(amounts, from_currency, to_currency)


def format_currency(amount, symbol: str = "$") -> str:
    """Return ``amount`` as a display string such as ``£1,234.50``."""

    value = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{symbol}{value:,.2f}"
