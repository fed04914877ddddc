"""Unsigned fixed-point numbers with 68 integer and 60 fractional bits."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction as _Rational
from typing import ClassVar, Optional, Sequence, Tuple, Union

from .validation import IntegerOverflowError, MathOverflowError

FRAC_NBITS = 60
_ONE_BITS = 1 << FRAC_NBITS
_HALF_BITS = 1 << (FRAC_NBITS - 1)
_FRAC_MASK = _ONE_BITS - 1
_U128_MAX = (1 << 128) - 1
_U256_MAX = (1 << 256) - 1
_U64_MASK = (1 << 64) - 1

FRACTION_ONE_SCALED = _ONE_BITS

Number = Union[int, float, str, Decimal, _Rational, "Fraction"]


@dataclass(frozen=True, order=True)
class Fraction:
    """A non-negative fixed-point value stored as 128 raw bits."""

    bits: int

    FRAC_NBITS: ClassVar[int] = FRAC_NBITS
    ONE: ClassVar["Fraction"]
    ZERO: ClassVar["Fraction"]
    MAX: ClassVar["Fraction"]

    def __post_init__(self) -> None:
        if not isinstance(self.bits, int):
            raise TypeError(f"fraction bits must be an int, got {type(self.bits).__name__}")
        if not 0 <= self.bits <= _U128_MAX:
            raise MathOverflowError(f"value out of range for a fraction: {self.bits}")

    @classmethod
    def from_bits(cls, bits: int) -> "Fraction":
        return cls(bits)

    @classmethod
    def from_num(cls, value: Number) -> "Fraction":
        """Convert a number, rounding to the nearest representable value."""
        if isinstance(value, Fraction):
            return value
        if isinstance(value, int):
            if value < 0:
                raise ValueError(f"fractions cannot be negative: {value}")
            return cls(value << FRAC_NBITS)
        exact = _Rational(value)
        if exact < 0:
            raise ValueError(f"fractions cannot be negative: {value}")
        return cls(round(exact * _ONE_BITS))

    @classmethod
    def from_bps(cls, bps: Number) -> "Fraction":
        return cls.from_num(bps) / 10_000

    @classmethod
    def from_percent(cls, percent: Number) -> "Fraction":
        return cls.from_num(percent) / 100

    def to_bits(self) -> int:
        return self.bits

    def to_sf(self) -> int:
        return self.bits

    @classmethod
    def from_sf(cls, sf: int) -> "Fraction":
        return cls(sf)

    def to_bps(self) -> int:
        return (self * 10_000).to_round()

    def to_percent(self) -> int:
        return (self * 100).to_round()

    def to_floor(self) -> int:
        return self.bits >> FRAC_NBITS

    def to_ceil(self) -> int:
        if self.bits + _FRAC_MASK > _U128_MAX and self.bits & _FRAC_MASK:
            raise MathOverflowError("ceiling does not fit in a fraction")
        return (self.bits + _FRAC_MASK) >> FRAC_NBITS

    def to_round(self) -> int:
        """Round to the nearest integer, ties away from zero."""
        if self.bits + _HALF_BITS > _U128_MAX and self.bits & _FRAC_MASK >= _HALF_BITS:
            raise MathOverflowError("rounded value does not fit in a fraction")
        return (self.bits + _HALF_BITS) >> FRAC_NBITS

    def __add__(self, other: object) -> "Fraction":
        if isinstance(other, Fraction):
            return Fraction(self.bits + other.bits)
        return NotImplemented

    def __sub__(self, other: object) -> "Fraction":
        if isinstance(other, Fraction):
            return Fraction(self.bits - other.bits)
        return NotImplemented

    def __mul__(self, other: object) -> "Fraction":
        if isinstance(other, Fraction):
            return Fraction((self.bits * other.bits) >> FRAC_NBITS)
        if isinstance(other, int):
            return Fraction(self.bits * other)
        return NotImplemented

    def __rmul__(self, other: object) -> "Fraction":
        if isinstance(other, int):
            return Fraction(self.bits * other)
        return NotImplemented

    def __truediv__(self, other: object) -> "Fraction":
        if isinstance(other, Fraction):
            return Fraction((self.bits << FRAC_NBITS) // other.bits)
        if isinstance(other, int):
            return Fraction(self.bits // other)
        return NotImplemented

    def __float__(self) -> float:
        return self.bits / _ONE_BITS

    def __str__(self) -> str:
        return self.to_display()

    def checked_add(self, other: "Fraction") -> Optional["Fraction"]:
        try:
            return self + other
        except MathOverflowError:
            return None

    def checked_mul(self, other: "Fraction") -> Optional["Fraction"]:
        try:
            return self * other
        except MathOverflowError:
            return None

    def checked_sub(self, other: "Fraction") -> Optional["Fraction"]:
        try:
            return self - other
        except MathOverflowError:
            return None

    def abs_diff(self, other: "Fraction") -> "Fraction":
        return Fraction(abs(self.bits - other.bits))

    def checked_pow(self, power: int) -> Optional["Fraction"]:
        return pow_fraction(self, power)

    def mul_int_ratio(self, numerator: int, denominator: int) -> "Fraction":
        """Multiply by ``numerator`` then divide by ``denominator``."""
        return self * numerator / denominator

    def full_mul_int_ratio(self, numerator: int, denominator: int) -> "Fraction":
        """Like :meth:`mul_int_ratio` but with a 256-bit intermediate."""
        product = self.bits * numerator
        if product > _U256_MAX:
            raise MathOverflowError("intermediate product does not fit in 256 bits")
        result = product // denominator
        if result > _U128_MAX:
            raise MathOverflowError(
                "Denominator is not big enough, the result doesn't fit in a Fraction."
            )
        return Fraction(result)

    def to_display(self) -> str:
        """Render with four decimals, rounded to the nearest."""
        sf = self.bits + _ONE_BITS // 20_000
        integer = sf >> FRAC_NBITS
        frac = sf & _FRAC_MASK
        frac = ((frac >> 30) * 10_000) >> 30
        return f"{integer}.{frac:04d}"


Fraction.ONE = Fraction(_ONE_BITS)
Fraction.ZERO = Fraction(0)
Fraction.MAX = Fraction(_U128_MAX)


def pow_fraction(fraction: Fraction, power: int) -> Optional[Fraction]:
    """Raise ``fraction`` to an integer power, or None on overflow."""
    if power == 0:
        return Fraction.ONE
    x = fraction
    y = Fraction.ONE
    n = power
    while n > 1:
        if n % 2 == 1:
            y = x.checked_mul(y)
            if y is None:
                return None
        x = x.checked_mul(x)
        if x is None:
            return None
        n //= 2
    return x.checked_mul(y)


def bps_u128_to_fraction(bps: int) -> Fraction:
    if bps == 10_000:
        return Fraction.ONE
    return Fraction.from_num(bps) / 10_000


def pct_u128_to_fraction(percent: int) -> Fraction:
    if percent == 100:
        return Fraction.ONE
    return Fraction.from_num(percent) / 100


def to_sf(src: Number) -> int:
    """Return the raw scaled bits of ``src`` as a fraction."""
    return Fraction.from_num(src).to_bits()


@dataclass(frozen=True, order=True)
class BigFraction:
    """A 256-bit fixed-point value with the same scale as :class:`Fraction`."""

    value: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.value, int):
            raise TypeError(f"big fraction value must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= _U256_MAX:
            raise MathOverflowError(f"value out of range for a big fraction: {self.value}")

    @classmethod
    def from_fraction(cls, fraction: Number) -> "BigFraction":
        return cls(Fraction.from_num(fraction).to_bits())

    def to_fraction(self) -> Fraction:
        if self.value > _U128_MAX:
            raise IntegerOverflowError("big fraction does not fit in a fraction")
        return Fraction(self.value)

    @classmethod
    def from_num(cls, num: int) -> "BigFraction":
        if not 0 <= num <= _U256_MAX:
            raise MathOverflowError(f"integer out of range: {num}")
        return cls((num << FRAC_NBITS) & _U256_MAX)

    def to_u128_sf(self) -> int:
        return self.value & _U128_MAX

    def to_bits(self) -> Tuple[int, int, int, int]:
        """Return the four 64-bit limbs, least significant first."""
        return tuple((self.value >> (64 * i)) & _U64_MASK for i in range(4))  # type: ignore[return-value]

    @classmethod
    def from_bits(cls, bits: Sequence[int]) -> "BigFraction":
        if len(bits) != 4:
            raise ValueError(f"expected 4 limbs, got {len(bits)}")
        if any(not 0 <= limb <= _U64_MASK for limb in bits):
            raise ValueError("each limb must fit in 64 bits")
        return cls(sum(limb << (64 * i) for i, limb in enumerate(bits)))

    def __add__(self, other: object) -> "BigFraction":
        if isinstance(other, BigFraction):
            return BigFraction(self.value + other.value)
        return NotImplemented

    def __sub__(self, other: object) -> "BigFraction":
        if isinstance(other, BigFraction):
            return BigFraction(self.value - other.value)
        return NotImplemented

    def __mul__(self, other: object) -> "BigFraction":
        if isinstance(other, BigFraction):
            product = self.value * other.value
            if product > _U256_MAX:
                raise MathOverflowError("big fraction multiplication overflow")
            return BigFraction(product >> FRAC_NBITS)
        if isinstance(other, int):
            return BigFraction(self.value * other)
        return NotImplemented

    def __rmul__(self, other: object) -> "BigFraction":
        if isinstance(other, int):
            return BigFraction(self.value * other)
        return NotImplemented

    def __truediv__(self, other: object) -> "BigFraction":
        if isinstance(other, BigFraction):
            return BigFraction(((self.value << FRAC_NBITS) & _U256_MAX) // other.value)
        if isinstance(other, int):
            return BigFraction(self.value // other)
        return NotImplemented