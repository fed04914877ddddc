import pytest
from hypothesis import given
from hypothesis import strategies as st

from lendkit.borrow_rate_curve import (
    MAX_UTILIZATION_RATE_BPS,
    BorrowRateCurve,
    CurvePoint,
    CurveSegment,
)
from lendkit.fraction import Fraction
from lendkit.validation import (
    InvalidBorrowRateCurvePointError,
    InvalidUtilizationRateError,
)

MULTI_POINT = [
    CurvePoint(0, 100),
    CurvePoint(2000, 500),
    CurvePoint(8000, 2000),
    CurvePoint(9000, 2000),
    CurvePoint(MAX_UTILIZATION_RATE_BPS, 30000),
]

utilizations = st.integers(min_value=0, max_value=Fraction.ONE.to_bits()).map(
    Fraction.from_bits
)


def test_flat_curve_ends_at_full_bps():
    curve = BorrowRateCurve.new_flat(0)
    assert curve.points[0].utilization_rate_bps == 0
    assert curve.points[-1].utilization_rate_bps == 10_000


def test_flat_curve_is_constant():
    curve = BorrowRateCurve.new_flat(500)
    expected = Fraction.from_bps(500)
    assert curve.get_borrow_rate(Fraction.ZERO) == expected
    assert curve.get_borrow_rate(Fraction.from_percent(37)) == expected
    assert curve.get_borrow_rate(Fraction.ONE) == expected


def test_default_is_flat_zero():
    assert BorrowRateCurve.default() == BorrowRateCurve.new_flat(0)
    assert BorrowRateCurve.default().get_borrow_rate(Fraction.ONE) == Fraction.ZERO


def test_from_points_pads_with_last_point():
    curve = BorrowRateCurve.from_points(MULTI_POINT)
    assert len(curve.points) == 11
    assert curve.points[len(MULTI_POINT):] == (MULTI_POINT[-1],) * (11 - len(MULTI_POINT))


def test_to_points_round_trip():
    curve = BorrowRateCurve.from_points(MULTI_POINT)
    assert curve.to_points() == MULTI_POINT
    assert BorrowRateCurve.from_points(curve.to_points()) == curve


@pytest.mark.parametrize(
    "points",
    [
        [CurvePoint(0, 0)],
        [CurvePoint(0, 0)] + [CurvePoint(i, 0) for i in range(1, 11)]
        + [CurvePoint(MAX_UTILIZATION_RATE_BPS, 0)],
        [CurvePoint(0, 0), CurvePoint(9000, 100)],
        [CurvePoint(10, 0), CurvePoint(MAX_UTILIZATION_RATE_BPS, 100)],
        [CurvePoint(0, 0), CurvePoint(5000, 100), CurvePoint(4000, 200),
         CurvePoint(MAX_UTILIZATION_RATE_BPS, 300)],
        [CurvePoint(0, 500), CurvePoint(5000, 100), CurvePoint(MAX_UTILIZATION_RATE_BPS, 300)],
        [CurvePoint(0, 0), CurvePoint(5000, 100), CurvePoint(5000, 200),
         CurvePoint(MAX_UTILIZATION_RATE_BPS, 300)],
    ],
)
def test_from_points_rejects_invalid(points):
    with pytest.raises(InvalidBorrowRateCurvePointError):
        BorrowRateCurve.from_points(points)


def test_validate_rejects_lower_point_after_end():
    points = (
        CurvePoint(0, 0),
        CurvePoint(MAX_UTILIZATION_RATE_BPS, 100),
    ) + (CurvePoint(5000, 100),) * 8 + (CurvePoint(MAX_UTILIZATION_RATE_BPS, 100),)
    with pytest.raises(InvalidBorrowRateCurvePointError):
        BorrowRateCurve(points).validate()


def test_curve_requires_eleven_points():
    with pytest.raises(InvalidBorrowRateCurvePointError):
        BorrowRateCurve((CurvePoint(0, 0), CurvePoint(MAX_UTILIZATION_RATE_BPS, 0)))


def test_curve_point_rejects_out_of_range():
    with pytest.raises(ValueError):
        CurvePoint(-1, 0)
    with pytest.raises(ValueError):
        CurvePoint(0, 1 << 32)


def test_legacy_zero_optimal_utilization():
    curve = BorrowRateCurve.from_legacy_parameters(0, 1, 5, 9)
    assert curve.to_points() == [
        CurvePoint(0, 5 * 100),
        CurvePoint(MAX_UTILIZATION_RATE_BPS, 9 * 100),
    ]


def test_legacy_full_optimal_utilization():
    curve = BorrowRateCurve.from_legacy_parameters(100, 1, 5, 9)
    assert curve.to_points() == [
        CurvePoint(0, 1 * 100),
        CurvePoint(MAX_UTILIZATION_RATE_BPS, 5 * 100),
    ]


def test_legacy_three_points():
    curve = BorrowRateCurve.from_legacy_parameters(80, 1, 5, 9)
    assert curve.to_points() == [
        CurvePoint(0, 1 * 100),
        CurvePoint(80 * 100, 5 * 100),
        CurvePoint(MAX_UTILIZATION_RATE_BPS, 9 * 100),
    ]


def test_legacy_decreasing_rates_rejected():
    with pytest.raises(InvalidBorrowRateCurvePointError):
        BorrowRateCurve.from_legacy_parameters(50, 10, 5, 9)


def test_rate_at_curve_points_is_exact():
    curve = BorrowRateCurve.from_points(MULTI_POINT)
    for point in MULTI_POINT:
        utilization = Fraction.from_bps(point.utilization_rate_bps)
        assert curve.get_borrow_rate(utilization) == Fraction.from_bps(point.borrow_rate_bps)


def test_utilization_above_one_is_capped():
    curve = BorrowRateCurve.from_points(MULTI_POINT)
    assert curve.get_borrow_rate(Fraction.from_num(3)) == curve.get_borrow_rate(Fraction.ONE)


@given(utilizations)
def test_identity_curve_returns_utilization(utilization):
    curve = BorrowRateCurve.from_points(
        [CurvePoint(0, 0), CurvePoint(MAX_UTILIZATION_RATE_BPS, MAX_UTILIZATION_RATE_BPS)]
    )
    rate = curve.get_borrow_rate(utilization)
    assert rate.abs_diff(utilization) <= Fraction.from_bps(1)


@given(utilizations, utilizations)
def test_rate_is_monotonic_and_bounded(first, second):
    curve = BorrowRateCurve.from_points(MULTI_POINT)
    low, high = sorted((first, second))
    low_rate = curve.get_borrow_rate(low)
    high_rate = curve.get_borrow_rate(high)
    assert low_rate <= high_rate
    assert Fraction.from_bps(MULTI_POINT[0].borrow_rate_bps) <= low_rate
    assert high_rate <= Fraction.from_bps(MULTI_POINT[-1].borrow_rate_bps)


def test_segment_from_points_slope():
    segment = CurveSegment.from_points(CurvePoint(1000, 200), CurvePoint(3000, 700))
    assert (segment.slope_nom, segment.slope_denom) == (700 - 200, 3000 - 1000)
    assert segment.start_point == CurvePoint(1000, 200)


def test_segment_rejects_decreasing_borrow_rate():
    with pytest.raises(InvalidBorrowRateCurvePointError):
        CurveSegment.from_points(CurvePoint(0, 500), CurvePoint(1000, 100))


def test_segment_rejects_non_increasing_utilization():
    with pytest.raises(InvalidBorrowRateCurvePointError):
        CurveSegment.from_points(CurvePoint(1000, 100), CurvePoint(1000, 200))


def test_segment_start_gives_start_rate():
    segment = CurveSegment.from_points(CurvePoint(1000, 200), CurvePoint(3000, 700))
    assert segment.get_borrow_rate(Fraction.from_bps(1000)) == Fraction.from_bps(200)


def test_segment_below_start_raises():
    segment = CurveSegment.from_points(CurvePoint(1000, 200), CurvePoint(3000, 700))
    with pytest.raises(InvalidUtilizationRateError):
        segment.get_borrow_rate(Fraction.from_bps(500))