"""Lending error hierarchy and small input validators."""

from __future__ import annotations


class LendingError(Exception):
    """Base class for every error raised by the lending utilities."""


class InvalidFlagError(LendingError, ValueError):
    """A numerical flag held something other than 0 or 1."""


class MathOverflowError(LendingError, ArithmeticError):
    """An arithmetic result does not fit in its representation."""


class IntegerOverflowError(LendingError, ArithmeticError):
    """A wide integer could not be narrowed without losing bits."""


class InvalidBorrowRateCurvePointError(LendingError, ValueError):
    """A borrow rate curve has points that break its invariants."""


class InvalidUtilizationRateError(LendingError, ValueError):
    """A utilization rate lies outside the segment it is evaluated on."""


class PriceError(LendingError):
    """A price could not be obtained or failed validation."""


def validate_numerical_bool(value: int) -> bool:
    """Check that ``value`` is a 0/1 flag and return it as a bool."""
    if value not in (0, 1):
        raise InvalidFlagError(f"expected 0 or 1, got {value!r}")
    return value == 1