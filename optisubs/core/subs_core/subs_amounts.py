"""Decimal <-> fixed-point conversion for on-chain token amounts."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union

from .subs_errors import InvalidAmount

DEFAULT_DECIMALS = 18
ROUND_DIGITS = 5

Number = Union[int, float, str, Decimal]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount("Amount must be numeric", {"value": value})
    try:
        # floats go through their shortest repr so 0.1 stays 0.1
        return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmount("Amount is not a decimal number", {"value": value}) from e


def encode(amount: Number, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Round *amount* to ROUND_DIGITS fractional digits, then scale by 10**decimals.

    encode(1.0) == 10**18, encode(0.123456) == 123460000000000000.
    Raises InvalidAmount for negative, NaN/inf or unparsable input.

    Floats are taken at their shortest repr, not their exact binary value, so
    encode(1.000005) rounds up to 1.00001. Rounding the exact double (as
    JavaScript toFixed does) would give 1.00000. Pass a str or Decimal to
    control the digits precisely.
    """
    if decimals < 0:
        raise InvalidAmount("decimals must be >= 0", {"decimals": decimals})
    d = _to_decimal(amount)
    if not d.is_finite():
        raise InvalidAmount("Amount must be finite", {"value": amount})
    if d < 0:
        raise InvalidAmount("Amount must be non-negative", {"value": amount})
    with localcontext() as ctx:
        ctx.prec = 96
        try:
            rounded = d.quantize(Decimal(1).scaleb(-ROUND_DIGITS), rounding=ROUND_HALF_UP)
            return int(rounded.scaleb(decimals))
        except InvalidOperation as e:
            raise InvalidAmount("Amount is not representable", {"value": amount}) from e


def decode(raw: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Display helper: fixed-point integer back to a Decimal."""
    return Decimal(int(raw)).scaleb(-decimals)
