"""Fixed-point column type and rounding helpers for money and token amounts"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator

USD_PLACES = 2
TOKEN_PLACES = 8
PRICE_PLACES = 12


def quantize(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=rounding)


def quantize_usd(value: Decimal) -> Decimal:
    return quantize(value, USD_PLACES)


def quantize_tokens(value: Decimal) -> Decimal:
    # never credit a fraction of a token unit that was not paid for
    return quantize(value, TOKEN_PLACES, rounding=ROUND_DOWN)


def quantize_price(value: Decimal) -> Decimal:
    return quantize(value, PRICE_PLACES)


class FixedDecimal(TypeDecorator):
    """Decimal column rounded to a fixed number of places when written.

    SQLite has no decimal storage, so there the value is kept as text and
    never passes through a binary float.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, places: int, precision: int = 28):
        super().__init__()
        self.places = places
        self.precision = precision

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(
            Numeric(precision=self.precision, scale=self.places, asdecimal=True)
        )

    def process_bind_param(self, value: Any, dialect: Dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = quantize(value, self.places)
        if dialect.name == "sqlite":
            return format(value, "f")
        return value

    def process_result_value(self, value: Any, dialect: Dialect):
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))
