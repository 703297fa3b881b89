"""Overflow-checked integer arithmetic for the pool engine.

Every function is stateless and operates on plain Python ints, but each one
enforces an explicit unsigned width so that results match what a fixed-width
implementation would accept:

- token amounts, reserves and share quantities are u64,
- intermediate products are u128,
- ``mul_div_floor`` widens its product to 256 bits before dividing.

Rounding is always floor (Python ``//`` on non-negative operands). Nothing here
wraps: a value outside its width raises ``ArithmeticOverflowError``.
"""

from __future__ import annotations

import math

from ..errors import ArithmeticOverflowError, DivisionByZeroError

U64_BITS: int = 64
U128_BITS: int = 128
WIDE_BITS: int = 256

U64_MAX: int = (1 << U64_BITS) - 1
U128_MAX: int = (1 << U128_BITS) - 1
WIDE_MAX: int = (1 << WIDE_BITS) - 1

BPS_DENOMINATOR: int = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_unsigned(name: str, value: int, bits: int) -> None:
    _require_int(name, value)
    if value < 0:
        raise ArithmeticOverflowError(f"{name} must be non-negative: {value}")
    if value >> bits:
        raise ArithmeticOverflowError(f"{name} does not fit u{bits}: {value}")


# -- Width checks ------------------------------------------------------------

def fits(value: int, bits: int = U64_BITS) -> bool:
    """True when *value* is representable as an unsigned ``bits``-wide int."""
    return 0 <= value and not (value >> bits)


def to_u64(value: int, *, name: str = "value") -> int:
    """Narrow *value* to u64 or raise."""
    _require_unsigned(name, value, U64_BITS)
    return value


# -- Checked operations ------------------------------------------------------

def checked_add(a: int, b: int, *, bits: int = U64_BITS) -> int:
    _require_unsigned("a", a, bits)
    _require_unsigned("b", b, bits)
    total = a + b
    if total >> bits:
        raise ArithmeticOverflowError(f"{a} + {b} overflows u{bits}")
    return total


def checked_sub(a: int, b: int, *, bits: int = U64_BITS) -> int:
    _require_unsigned("a", a, bits)
    _require_unsigned("b", b, bits)
    if b > a:
        raise ArithmeticOverflowError(f"{a} - {b} underflows u{bits}")
    return a - b


def checked_mul(a: int, b: int, *, bits: int = U128_BITS) -> int:
    """Product of two operands that must each fit ``bits``; result must fit too."""
    _require_unsigned("a", a, bits)
    _require_unsigned("b", b, bits)
    product = a * b
    if product >> bits:
        raise ArithmeticOverflowError(f"{a} * {b} overflows u{bits}")
    return product


# -- Core helpers ------------------------------------------------------------

def mul_div_floor(a: int, b: int, c: int) -> int:
    """``floor(a * b / c)`` with a 256-bit intermediate product.

    Operands and the quotient are u128. Raises ``DivisionByZeroError`` when
    ``c == 0`` and ``ArithmeticOverflowError`` when the product does not fit the
    widened form or the quotient does not fit u128.
    """
    _require_unsigned("a", a, U128_BITS)
    _require_unsigned("b", b, U128_BITS)
    _require_unsigned("c", c, U128_BITS)
    if c == 0:
        raise DivisionByZeroError(f"mul_div_floor({a}, {b}, 0)")
    product = a * b
    if product > WIDE_MAX:
        raise ArithmeticOverflowError(f"{a} * {b} overflows u{WIDE_BITS}")
    quotient = product // c
    if quotient > U128_MAX:
        raise ArithmeticOverflowError(f"floor({a} * {b} / {c}) overflows u{U128_BITS}")
    return quotient


def integer_sqrt(n: int) -> int:
    """Largest ``r`` with ``r * r <= n``. ``integer_sqrt(0) == 0``."""
    _require_int("n", n)
    if n < 0:
        raise ArithmeticOverflowError(f"integer_sqrt of negative value: {n}")
    # math.isqrt is exact for arbitrary-size ints; float sqrt is not.
    return math.isqrt(n)
