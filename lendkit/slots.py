"""Conversions between slot counts and wall-clock durations."""

from __future__ import annotations

from .consts import SLOTS_PER_DAY, SLOTS_PER_HOUR, SLOTS_PER_MINUTE, SLOTS_PER_SECOND
from .fraction import Fraction
from .validation import MathOverflowError

_U64_MAX = (1 << 64) - 1


def _u64(value: int) -> int:
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"expected an unsigned 64-bit value, got {value}")
    return value


def _checked_u64_mul(value: int, factor: int) -> int:
    result = _u64(value) * factor
    if result > _U64_MAX:
        raise MathOverflowError(f"{value} * {factor} overflows 64 bits")
    return result


def to_minutes(slots: int) -> int:
    return _u64(slots) // SLOTS_PER_MINUTE


def to_secs(slots: int) -> int:
    return _u64(slots) // SLOTS_PER_SECOND


def to_hours(slots: int) -> int:
    return _u64(slots) // SLOTS_PER_HOUR


def to_days_fractional(slots: int) -> Fraction:
    return Fraction.from_num(_u64(slots)) / SLOTS_PER_DAY


def from_secs(seconds: int) -> int:
    return _checked_u64_mul(seconds, SLOTS_PER_SECOND)


def from_hours(hours: int) -> int:
    return _checked_u64_mul(hours, SLOTS_PER_HOUR)


def from_days(days: int) -> int:
    return _checked_u64_mul(days, SLOTS_PER_DAY)