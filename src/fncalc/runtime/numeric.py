"""
Fixed-precision decimal arithmetic for the calculator runtime.

Values are ``decimal.Decimal`` instances evaluated in CONTEXT: 28 significant
digits, banker's rounding and a bounded exponent range. Every operation is
checked; a domain violation or overflow raises ArithmeticFailure carrying the
ErrorKind to report, never a NaN or an infinity.

Forward trigonometry is computed with mpmath at a higher working precision and
rounded back into CONTEXT. Inverse trigonometry has no exact decimal
counterpart and goes through binary floating point.
"""

import math
from contextlib import contextmanager
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
)
from typing import Callable

import mpmath as mpm

from ..errors import ErrorKind


PRECISION = 28

CONTEXT = Context(
    prec=PRECISION,
    rounding=ROUND_HALF_EVEN,
    Emax=PRECISION,
    Emin=-PRECISION,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

# Working precision (decimal digits) for mpmath evaluations
WORK_DIGITS = 50

ZERO = Decimal(0)
ONE = Decimal(1)
NEGATIVE_ONE = Decimal(-1)

PI = CONTEXT.create_decimal("3.14159265358979323846264338327950288")
HALF_PI = CONTEXT.divide(PI, 2)

_NINETY = Decimal(90)
_ONE_EIGHTY = Decimal(180)
_DEGREES_TO_RADIANS = CONTEXT.divide(PI, _ONE_EIGHTY)
_RADIANS_TO_DEGREES = CONTEXT.divide(_ONE_EIGHTY, PI)

# Wide enough for any integer quotient of two CONTEXT values
_WIDE = Context(
    prec=4 * PRECISION,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

# n*pi/2 rounded to PRECISION digits lands a few ulps off n*HALF_PI
_POLE_TOLERANCE = Decimal("1E-26")
_POLE_SLACK_LIMIT = Decimal("1E-12")


class ArithmeticFailure(Exception):
    """A checked operation failed; `kind` names the error to report."""

    def __init__(self, kind: ErrorKind):
        self.kind = kind
        super().__init__(kind.message)


@contextmanager
def _checked(kind: ErrorKind):
    try:
        yield
    except DecimalException as exc:
        raise ArithmeticFailure(kind) from exc


def parse_literal(text: str) -> Decimal:
    """Convert a number literal, rounding excess digits to PRECISION."""
    with _checked(ErrorKind.INVALID_NUMBER_LITERAL):
        return CONTEXT.create_decimal(text)


def from_bool(flag: bool) -> Decimal:
    return ONE if flag else ZERO


def is_true(value: Decimal) -> bool:
    """Any non-zero value is true."""
    return not value.is_zero()


# --- Arithmetic ---

def add(lhs: Decimal, rhs: Decimal) -> Decimal:
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.add(lhs, rhs)


def subtract(lhs: Decimal, rhs: Decimal) -> Decimal:
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.subtract(lhs, rhs)


def multiply(lhs: Decimal, rhs: Decimal) -> Decimal:
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.multiply(lhs, rhs)


def divide(lhs: Decimal, rhs: Decimal) -> Decimal:
    if rhs.is_zero():
        raise ArithmeticFailure(ErrorKind.ZERO_DIVISION)
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.divide(lhs, rhs)


def remainder(lhs: Decimal, rhs: Decimal) -> Decimal:
    """Truncated remainder; the result takes the sign of the dividend."""
    if rhs.is_zero():
        raise ArithmeticFailure(ErrorKind.ZERO_DIVISION)
    with _checked(ErrorKind.MATH_ERROR):
        try:
            return CONTEXT.remainder(lhs, rhs)
        except InvalidOperation:
            # integer quotient needs more than PRECISION digits
            return CONTEXT.plus(_WIDE.remainder(lhs, rhs))


def power(base: Decimal, exponent: Decimal) -> Decimal:
    """
    Raise base to exponent.

    Fails with INVALID_EXPONENT for a negative base with a fractional
    exponent, a zero base with a negative exponent, and results that
    overflow the decimal range.
    """
    integral = exponent == exponent.to_integral_value()
    if base.is_zero():
        if exponent.is_zero():
            return ONE
        if exponent < ZERO:
            raise ArithmeticFailure(ErrorKind.INVALID_EXPONENT)
        return ZERO
    if base < ZERO and not integral:
        raise ArithmeticFailure(ErrorKind.INVALID_EXPONENT)
    with _checked(ErrorKind.INVALID_EXPONENT):
        return CONTEXT.power(base, exponent)


def negate(value: Decimal) -> Decimal:
    return multiply(value, NEGATIVE_ONE)


def absolute(value: Decimal) -> Decimal:
    return value.copy_abs()


# --- Logic and comparison (results are canonical 1 or 0) ---

def logical_and(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(is_true(lhs) and is_true(rhs))


def logical_or(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(is_true(lhs) or is_true(rhs))


def logical_not(value: Decimal) -> Decimal:
    return from_bool(value.is_zero())


def less_than(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(lhs < rhs)


def greater_than(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(lhs > rhs)


def equal(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(lhs == rhs)


def not_equal(lhs: Decimal, rhs: Decimal) -> Decimal:
    return from_bool(lhs != rhs)


# --- Angles ---

def to_radians(degrees: Decimal) -> Decimal:
    return multiply(degrees, _DEGREES_TO_RADIANS)


def to_degrees(radians: Decimal) -> Decimal:
    return multiply(radians, _RADIANS_TO_DEGREES)


def _is_odd_multiple(value: Decimal, unit: Decimal, tolerance: Decimal = ZERO) -> bool:
    """
    True when `value` lies within `tolerance` (relative to its magnitude) of
    an odd multiple of `unit`.
    """
    magnitude = value.copy_abs()
    try:
        quotient = CONTEXT.divide(magnitude, unit).to_integral_value(rounding=ROUND_HALF_EVEN)
        rest = CONTEXT.subtract(magnitude, CONTEXT.multiply(quotient, unit)).copy_abs()
        slack = min(CONTEXT.multiply(magnitude, tolerance),
                    CONTEXT.multiply(unit, _POLE_SLACK_LIMIT))
        odd = CONTEXT.remainder(quotient, 2) == ONE
    except DecimalException:
        # quotient out of range
        return False
    return odd and rest <= slack


# --- Forward trigonometry (mpmath) ---

def _to_mpf(value: Decimal):
    return mpm.mpf(str(value))


def _from_mpf(value) -> Decimal:
    if not mpm.isfinite(value):
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.create_decimal(mpm.nstr(value, WORK_DIGITS))


def _evaluate_mp(function: Callable, value: Decimal) -> Decimal:
    with mpm.workdps(WORK_DIGITS):
        return _from_mpf(function(_to_mpf(value)))


def sine(radians: Decimal) -> Decimal:
    return _evaluate_mp(mpm.sin, radians)


def cosine(radians: Decimal) -> Decimal:
    return _evaluate_mp(mpm.cos, radians)


def tangent(radians: Decimal) -> Decimal:
    """Tangent; undefined at odd multiples of pi/2."""
    if _is_odd_multiple(radians, HALF_PI, _POLE_TOLERANCE):
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    return _evaluate_mp(mpm.tan, radians)


def sine_degrees(degrees: Decimal) -> Decimal:
    return sine(to_radians(degrees))


def cosine_degrees(degrees: Decimal) -> Decimal:
    return cosine(to_radians(degrees))


def tangent_degrees(degrees: Decimal) -> Decimal:
    """Tangent of an angle in degrees; undefined at odd multiples of 90."""
    if _is_odd_multiple(degrees, _NINETY):
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    return _evaluate_mp(mpm.tan, to_radians(degrees))


# --- Inverse trigonometry (binary floating point round trip) ---

def _via_float(function: Callable[[float], float], value: Decimal) -> Decimal:
    try:
        result = function(float(value))
    except ValueError as exc:
        raise ArithmeticFailure(ErrorKind.MATH_ERROR) from exc
    if not math.isfinite(result):
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.create_decimal_from_float(result)


def arcsine(value: Decimal) -> Decimal:
    return _via_float(math.asin, value)


def arccosine(value: Decimal) -> Decimal:
    return _via_float(math.acos, value)


def arctangent(value: Decimal) -> Decimal:
    return _via_float(math.atan, value)


def arcsine_degrees(value: Decimal) -> Decimal:
    return to_degrees(arcsine(value))


def arccosine_degrees(value: Decimal) -> Decimal:
    return to_degrees(arccosine(value))


def arctangent_degrees(value: Decimal) -> Decimal:
    return to_degrees(arctangent(value))


# --- Logarithms ---

def natural_log(value: Decimal) -> Decimal:
    if value <= ZERO:
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.ln(value)


def log10(value: Decimal) -> Decimal:
    if value <= ZERO:
        raise ArithmeticFailure(ErrorKind.MATH_ERROR)
    with _checked(ErrorKind.MATH_ERROR):
        return CONTEXT.log10(value)


# --- Display ---

def format_value(value: Decimal, places: int = 6) -> str:
    """
    Round to `places` fractional digits (half-even), then drop trailing zeros
    and a dangling decimal point. Never uses exponent notation.
    """
    wide = Context(prec=2 * PRECISION + places, rounding=ROUND_HALF_EVEN)
    rounded = value.quantize(ONE.scaleb(-places), context=wide)
    if rounded.is_zero():
        return "0"
    return format(rounded.normalize(wide), "f")
