"""
Module: ohada_kernel.db.types
Responsibility: Annotated column types, rounding and tolerance constants shared
    by models, services and reports.
Architecture position: Kernel > DB.  MUST NOT import from models/ or services/.

Invariants enforced:
    - No floats: all amounts are Decimal with explicit precision.
    - round_money() is the only rounding function used for financial values.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Exchange rates keep 18 decimal places
Rate = Annotated[Decimal, Numeric(38, 18)]

Currency = Annotated[str, String(3)]


MONEY_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")

# Debit/credit equality tolerance for a single entry
BALANCE_TOLERANCE = Decimal("0.01")


def money(value: Decimal | int | str | None) -> Decimal:
    """Coerce a value to Decimal, treating None as zero.

    Floats are rejected: they cannot represent most decimal amounts exactly.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def to_local(amount: Decimal, exchange_rate: Decimal) -> Decimal:
    """Convert a transaction-currency amount to local currency."""
    return round_money(money(amount) * money(exchange_rate), MONEY_DECIMAL_PLACES)
