"""Integers in blood are signed 64-bit. Python ints are unbounded, so every result is range-checked here instead: a
literal that does not fit is a syntax error, and an arithmetic result that does not fit is a runtime error. There is no
wraparound or saturation.

Division truncates toward zero and the remainder takes the sign of the dividend (machine semantics, not Python's floor
semantics): -7 / 2 == -3 and -7 % 2 == -1.
"""

from blood.lang.error import RuntimeException, SyntaxException

INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1


def fits(num):
    """Whether or not num is representable as a signed 64-bit integer."""
    return INT_MIN <= num <= INT_MAX


def checked(num):
    """Returns num, or raises a RuntimeException if it overflowed."""
    if not fits(num):
        raise RuntimeException("integer overflow")
    return num


def parse_literal(digits):
    """Returns the int value of a run of decimal digits."""
    num = int(digits)
    if not fits(num):
        raise SyntaxException("integer literal '{}' out of range", digits)
    return num


def add(a, b):
    return checked(a + b)


def sub(a, b):
    return checked(a - b)


def mul(a, b):
    return checked(a * b)


def div(a, b):
    """Truncating division."""
    if b == 0:
        raise RuntimeException("division by zero")

    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return checked(quotient)


def mod(a, b):
    """Remainder of truncating division: sign follows a."""
    if b == 0:
        raise RuntimeException("modulo by zero")

    remainder = abs(a) % abs(b)
    return -remainder if a < 0 else remainder


def neg(a):
    return checked(-a)
