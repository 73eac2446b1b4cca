# Overview: Dual-currency arithmetic (Congolese franc / US dollar) and display formatting.

"""
Currency helpers.

Local-currency (FC) amounts are authoritative. USD amounts are always derived
from an FC amount and an exchange rate expressed as FC per USD:

    usd = round(fc / rate, 2)

Rounding is half away from zero, which for the non-negative amounts handled
here is ROUND_HALF_UP.

All arithmetic uses Decimal. Floats are accepted at the boundary (JSON) and
converted through their string form so 0.1 stays 0.1.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import current_app, has_app_context


DEFAULT_EXCHANGE_RATE = Decimal("2500")
CENT = Decimal("0.01")
ZERO = Decimal("0")

CURRENCY_FC = "FC"
CURRENCY_USD = "USD"


class CurrencyError(ValueError):
    """Raised for unparseable amounts or unusable exchange rates."""


def to_decimal(value, *, field: str = "amount") -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise CurrencyError(f"{field} must be a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise CurrencyError(f"{field} must be a number")
        if not parsed.is_finite():
            raise CurrencyError(f"{field} must be a finite number")
        return parsed
    raise CurrencyError(f"{field} must be a number")


def quantize_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _require_rate(rate) -> Decimal:
    rate = to_decimal(rate, field="exchange_rate")
    if rate <= 0:
        raise CurrencyError("exchange_rate must be > 0")
    return rate


def fc_to_usd(amount_fc, rate=DEFAULT_EXCHANGE_RATE) -> Decimal:
    """Convert an FC amount to USD at `rate` FC per USD, rounded to cents."""
    rate = _require_rate(rate)
    return (to_decimal(amount_fc) / rate).quantize(CENT, rounding=ROUND_HALF_UP)


def usd_to_fc(amount_usd, rate=DEFAULT_EXCHANGE_RATE) -> Decimal:
    rate = _require_rate(rate)
    return (to_decimal(amount_usd) * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def current_rate() -> Decimal:
    """Configured exchange rate, or the built-in default outside an app context."""
    if not has_app_context():
        return DEFAULT_EXCHANGE_RATE
    raw = current_app.config.get("EXCHANGE_RATE")
    if raw in (None, ""):
        return DEFAULT_EXCHANGE_RATE
    return _require_rate(raw)


def money_str(value) -> str | None:
    """JSON representation of a money column: 2-place string, None passthrough."""
    if value is None:
        return None
    return f"{quantize_money(value):.2f}"


def rate_str(value) -> str | None:
    if value is None:
        return None
    return f"{to_decimal(value).quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP):.4f}"


def format_fc(amount) -> str:
    """48000 -> '48 000 FC' (no decimals, space as thousands separator)."""
    whole = to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole:,.0f}".replace(",", " ") + " FC"


def format_usd(amount) -> str:
    """1234.5 -> '$1,234.50'."""
    return f"${quantize_money(amount):,.2f}"
