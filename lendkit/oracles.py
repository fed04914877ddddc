"""Oracle price selection and validation: confidence, age, TWAP and heuristics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from itertools import takewhile
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .consts import FULL_BPS, MAX_PRICE_DECIMALS_U256, TARGET_PRICE_DECIMALS
from .fraction import Fraction
from .prices import Price, price_to_fraction
from .validation import MathOverflowError, PriceError

logger = logging.getLogger(__name__)

MAX_CONFIDENCE_PERCENTAGE = 2
CONFIDENCE_FACTOR = 100 // MAX_CONFIDENCE_PERCENTAGE

_I128_MIN = -(1 << 127)
_I128_MAX = (1 << 127) - 1
_U256_MAX = (1 << 256) - 1

ScopeEntry = Tuple[Price, int]


@dataclass(frozen=True)
class TimestampedPrice:
    """A price that is computed on demand, with the time it was published."""

    price_load: Callable[[], Fraction]
    timestamp: int

    def load(self) -> Fraction:
        """Compute the price; raises if the oracle data turns out to be unusable."""
        return self.price_load()


@dataclass(frozen=True)
class TimestampedPriceWithTwap:
    """A spot price and, where the oracle offers one, its time-weighted average."""

    price: TimestampedPrice
    twap: Optional[TimestampedPrice] = None


def _fits_i128(value: int) -> bool:
    return _I128_MIN <= value <= _I128_MAX


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def validate_pyth_confidence(price: int, conf: int, oracle_confidence_factor: int) -> None:
    """Reject a zero price or one whose confidence interval is too wide."""
    if price < 0:
        raise ValueError(f"pyth price cannot be negative: {price}")
    if price == 0:
        raise PriceError("price is zero")
    scaled_conf = conf * oracle_confidence_factor
    if scaled_conf > price:
        logger.info(
            "Confidence interval check failed on pyth account %d %d %d",
            conf,
            price,
            oracle_confidence_factor,
        )
        raise PriceError(
            f"price confidence too wide: conf={conf} price={price} "
            f"factor={oracle_confidence_factor}"
        )


def validate_switchboard_confidence(
    price_mantissa: int,
    price_scale: int,
    stdev_mantissa: int,
    stdev_scale: int,
    oracle_confidence_factor: int,
) -> None:
    """Reject a feed whose scaled standard deviation reaches the price."""
    if price_scale >= stdev_scale:
        scale_diff = price_scale - stdev_scale
        scale_op = lambda a, b: a * b  # noqa: E731
    else:
        scale_diff = stdev_scale - price_scale
        scale_op = _trunc_div

    scaling_factor = 10**scale_diff
    if not _fits_i128(scaling_factor):
        raise MathOverflowError(f"10**{scale_diff} does not fit in 128 bits")

    scaled = stdev_mantissa * oracle_confidence_factor
    if not _fits_i128(scaled):
        raise MathOverflowError("standard deviation times confidence factor overflows")
    scaled = scale_op(scaled, scaling_factor)
    if not _fits_i128(scaled):
        raise MathOverflowError("scaled standard deviation overflows")

    if scaled >= price_mantissa:
        logger.info(
            "Validation of confidence interval for switchboard feed failed. "
            "Price mantissa: %d, Price scale: %d, stdev mantissa: %d, stdev scale: %d",
            price_mantissa,
            price_scale,
            stdev_mantissa,
            stdev_scale,
        )
        raise PriceError("price confidence too wide")


def _base_price(prices: Sequence[ScopeEntry], token_id: int) -> Optional[ScopeEntry]:
    if 0 <= token_id < len(prices):
        return prices[token_id]
    return None


def _multiply_prices(acc: Optional[Price], link: Price) -> Optional[Price]:
    if acc is None:
        return None
    link = link.size_up(256)
    if acc.exp + link.exp > MAX_PRICE_DECIMALS_U256:
        acc = acc.reduce_exp_lossy(TARGET_PRICE_DECIMALS)
        link = link.reduce_exp_lossy(TARGET_PRICE_DECIMALS)
        if acc is None or link is None:
            return None
    value = acc.value * link.value
    if value > _U256_MAX:
        return None
    return Price(value, acc.exp + link.exp, 256)


def chain_price(prices: Sequence[ScopeEntry], chain: Sequence[int]) -> TimestampedPrice:
    """Combine the prices named by ``chain`` into a single conversion price.

    ``prices`` holds ``(price, unix_timestamp)`` entries indexed by price id. The
    chain stops at the first id without an entry; the resulting timestamp is the
    oldest of the prices used.
    """
    chain = tuple(chain)
    if all(token_id == 0 for token_id in chain):
        logger.info("Scope chain is not initialized properly")
        raise PriceError("scope chain is not initialized")

    links = list(
        takewhile(
            lambda entry: entry is not None,
            (_base_price(prices, token_id) for token_id in chain),
        )
    )
    if not links:
        logger.info("Scope chain is empty")
        raise PriceError("no price found for the scope chain")

    if len(links) == 1:
        price, timestamp = links[0]
        return TimestampedPrice(lambda: price_to_fraction(price), timestamp)

    oldest_timestamp = min(timestamp for _, timestamp in links)
    chain_prices = [price for price, _ in links]

    def load() -> Fraction:
        combined = reduce(_multiply_prices, chain_prices, Price(1, 0, 256))
        if combined is None:
            raise MathOverflowError("scope price chain overflows 256 bits")
        return price_to_fraction(combined)

    return TimestampedPrice(load, oldest_timestamp)


def most_recent_price(
    candidates: Iterable[Optional[TimestampedPriceWithTwap]],
) -> TimestampedPriceWithTwap:
    """Pick the candidate with the newest price; earlier ones win ties."""
    best: Optional[TimestampedPriceWithTwap] = None
    for candidate in candidates:
        if candidate is None:
            continue
        if best is None or candidate.price.timestamp > best.price.timestamp:
            best = candidate
    if best is None:
        logger.info("No price feed available")
        raise PriceError("no price feed available")
    return best


def check_price_age(price_timestamp: int, max_age_seconds: int, current_timestamp: int) -> int:
    """Return the price's age in seconds, raising if it exceeds the maximum."""
    age_seconds = max(current_timestamp - price_timestamp, 0)
    if age_seconds > max_age_seconds:
        logger.info("Price is too old age=%d max_age=%d", age_seconds, max_age_seconds)
        raise PriceError(f"price is too old: age={age_seconds} max_age={max_age_seconds}")
    return age_seconds


def is_within_tolerance(price: Fraction, twap: Fraction, acceptable_tolerance_bps: int) -> bool:
    """True when ``price`` and ``twap`` differ by strictly less than the tolerance."""
    diff_bps_scaled = price.abs_diff(twap) * FULL_BPS
    tolerance_scaled = price * acceptable_tolerance_bps
    return diff_bps_scaled < tolerance_scaled


def check_twap_in_tolerance(price: Fraction, twap: Fraction, tolerance_bps: int) -> None:
    """Raise if the price has drifted too far from its TWAP."""
    if not is_within_tolerance(price, twap, tolerance_bps):
        logger.info(
            "Price is too far from TWAP price=%s twap=%s tolerance_bps=%d",
            price,
            twap,
            tolerance_bps,
        )
        raise PriceError(
            f"price {price} too divergent from twap {twap} (tolerance {tolerance_bps} bps)"
        )


def check_price_heuristics(token_price: Fraction, lower: int, upper: int, exp: int) -> None:
    """Raise if the price lies outside the configured bounds; a zero bound is unset."""
    if lower > 0:
        lower_bound = price_to_fraction(Price(lower, exp))
        if token_price < lower_bound:
            raise PriceError(f"price {token_price} is lower than heuristic {lower_bound}")
    if upper > 0:
        upper_bound = price_to_fraction(Price(upper, exp))
        if upper_bound < token_price:
            raise PriceError(f"price {token_price} is bigger than heuristic {upper_bound}")