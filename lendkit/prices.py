"""Decimal prices with an integer mantissa and a base-10 exponent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .fraction import BigFraction, Fraction

_ALLOWED_BITS = (64, 128, 256)
_U256_MAX = (1 << 256) - 1
_MAX_EXPONENT = 36


def price_ten_pow(exponent: int) -> int:
    """Return 10**exponent for an exponent between 0 and 36."""
    if not 0 <= exponent <= _MAX_EXPONENT:
        raise ValueError(f"no support for exponent: {exponent}")
    return 10**exponent


@dataclass(frozen=True)
class Price:
    """``value / 10**exp``, with ``value`` held in an unsigned integer of ``bits`` bits."""

    value: int
    exp: int
    bits: int = 64

    def __post_init__(self) -> None:
        if self.bits not in _ALLOWED_BITS:
            raise ValueError(f"unsupported value width: {self.bits}")
        if not isinstance(self.value, int) or not 0 <= self.value < (1 << self.bits):
            raise ValueError(f"price value {self.value!r} does not fit in {self.bits} bits")
        if not isinstance(self.exp, int) or not 0 <= self.exp < (1 << 32):
            raise ValueError(f"price exponent must be an unsigned 32-bit integer: {self.exp!r}")

    def to_adjusted_exp(self, target_exp: int) -> Optional["Price"]:
        """Rescale to ``target_exp``; None if the value no longer fits."""
        if target_exp == self.exp:
            return self
        if self.exp > target_exp:
            value = self.value // price_ten_pow(self.exp - target_exp)
        else:
            value = self.value * price_ten_pow(target_exp - self.exp)
            if value > _U256_MAX:
                return None
        if value >= 1 << self.bits:
            return None
        return Price(value, target_exp, self.bits)

    def reduce_exp_lossy(self, target_exp: int) -> Optional["Price"]:
        """Drop precision down to ``target_exp``; never raises the exponent."""
        if self.exp <= target_exp:
            return self
        return self.to_adjusted_exp(target_exp)

    def size_up(self, bits: int) -> "Price":
        """Return the same price held in a wider integer."""
        if bits < self.bits:
            raise ValueError(f"cannot narrow a {self.bits}-bit price to {bits} bits")
        return Price(self.value, self.exp, bits)


def price_to_fraction(price: Price) -> Fraction:
    """Convert a price to a fixed-point fraction, truncating extra decimals."""
    value_bf = BigFraction.from_num(price.value)
    price_bf = value_bf / price_ten_pow(price.exp)
    return price_bf.to_fraction()