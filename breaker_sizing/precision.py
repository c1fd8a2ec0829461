"""Decimal helpers for the sizing arithmetic.

All intermediate values are ``Decimal`` built from the string form of the
input so that e.g. ``0.1 + 0.2`` compares equal to ``0.3``. Each calculation
runs inside its own local context, which keeps the arithmetic thread-confined.
"""
from contextlib import contextmanager
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterator, Union

Number = Union[int, float, str, Decimal]

DEFAULT_PRECISION = 34


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@contextmanager
def decimal_context(precision: int = DEFAULT_PRECISION) -> Iterator[None]:
    with localcontext() as ctx:
        ctx.prec = precision
        ctx.rounding = ROUND_HALF_UP
        yield


def sqrt3() -> Decimal:
    """√3 at the active context precision."""
    return Decimal(3).sqrt()


def to_float(value: Decimal) -> float:
    return float(value)


def round_to(value: Number, places: int) -> float:
    """Rounds half-up to a fixed number of decimals and returns a float."""
    quantum = Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
