# lendkit

Building blocks for the numerical side of a lending market. The package has
no dependencies beyond the standard library.

- `lendkit.fraction` — `Fraction`, an unsigned fixed-point number held in 128
  bits with 60 fractional bits, and `BigFraction`, a 256-bit value on the same
  scale for intermediate results. Conversions from and to basis points and
  percentages (`from_bps`, `to_bps`, `from_percent`, `to_percent`), rounding
  (`to_floor`, `to_ceil`, `to_round`), checked operations (`checked_mul`,
  `checked_sub`, `checked_pow`), `mul_int_ratio` and `full_mul_int_ratio`, and
  `to_display`, a four-decimal string form. Module-level helpers:
  `pow_fraction`, `bps_u128_to_fraction`, `pct_u128_to_fraction`, `to_sf`.
- `lendkit.borrow_rate_curve` — `BorrowRateCurve`, a piecewise-linear curve of
  eleven `CurvePoint`s (built from 2 to 11 points, padded with the last one)
  that maps utilization to a borrow rate; `CurveSegment` for a single piece.
  Curves can also be built with `new_flat`, `default` and
  `from_legacy_parameters`; `to_points` returns the meaningful points.
- `lendkit.prices` — `Price`, an integer value with a decimal exponent,
  `price_to_fraction` to turn it into a `Fraction`, and `price_ten_pow`.
- `lendkit.oracles` — `validate_pyth_confidence` and
  `validate_switchboard_confidence` for confidence intervals, `chain_price`
  for combining a chain of conversion prices, `most_recent_price` for picking
  the freshest candidate, and `check_price_age`, `is_within_tolerance`,
  `check_twap_in_tolerance` and `check_price_heuristics`. Prices are wrapped in
  `TimestampedPrice` (computed on demand with `load()`) and
  `TimestampedPriceWithTwap`.
- `lendkit.slots` — converting between slot counts and seconds, minutes,
  hours and days.
- `lendkit.consts` — market constants, the whitelisted program ids
  (`CPI_WHITELISTED_ACCOUNTS` of `CpiWhitelistedAccount`), `ten_pow` and
  `maybe_null_pk`.
- `lendkit.validation` — the `LendingError` hierarchy and
  `validate_numerical_bool`.

## Install

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Example

```python
from lendkit.borrow_rate_curve import BorrowRateCurve, CurvePoint
from lendkit.fraction import Fraction

curve = BorrowRateCurve.from_points([
    CurvePoint(0, 100),
    CurvePoint(8000, 1000),
    CurvePoint(10000, 5000),
])

rate = curve.get_borrow_rate(Fraction.from_percent(50))
print(rate.to_display())  # the rate as a decimal with four places
print(rate.to_bps())      # the rate rounded to basis points
```

Utilization above 100% is capped at 100% and logged as a warning. An invalid
curve, such as one whose utilization rates do not grow, raises
`InvalidBorrowRateCurvePointError`. Every error the package raises for a
lending rule derives from `lendkit.validation.LendingError`.

## What it does not do

lendkit works on values that are already decoded. It does not read or write
on-chain accounts, does not parse oracle account data, does not check
instruction ordering or token extensions, and has no command-line tool.