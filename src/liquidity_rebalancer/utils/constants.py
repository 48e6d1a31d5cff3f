"""Shared constants and numeric helpers for the decision engine."""

from datetime import datetime, timezone
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


STABLE_SYMBOLS: frozenset[str] = frozenset({"USDC", "USDT", "DAI", "FRAX"})
BLUECHIP_SYMBOLS: frozenset[str] = frozenset({"ETH", "WETH", "BTC", "WBTC"})

# Largest integer a float holds exactly; native-unit capital is capped here.
MAX_SAFE_INTEGER = 2**53 - 1

DAYS_PER_YEAR = 365

_TWO_PLACES = Decimal("0.01")
_FOUR_PLACES = Decimal("0.0001")


def round2(value: float) -> float:
    """Round half away from zero to two decimals."""
    return float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def round4(value: float) -> float:
    """Round half away from zero to four decimals."""
    return float(Decimal(repr(value)).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP))


def floor_cents(value: float | Decimal) -> Decimal:
    """Exact decimal amount rounded down to whole cents."""
    amount = value if isinstance(value, Decimal) else Decimal(repr(float(value)))
    return amount.quantize(_TWO_PLACES, rounding=ROUND_FLOOR)


__all__ = [
    "BLUECHIP_SYMBOLS",
    "DAYS_PER_YEAR",
    "MAX_SAFE_INTEGER",
    "STABLE_SYMBOLS",
    "floor_cents",
    "round2",
    "round4",
    "utc_now",
]
