"""Piecewise-linear curves that map utilization to a borrow rate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from .consts import FULL_BPS
from .fraction import Fraction
from .validation import InvalidBorrowRateCurvePointError, InvalidUtilizationRateError

logger = logging.getLogger(__name__)

MAX_UTILIZATION_RATE_BPS = FULL_BPS
CURVE_POINTS = 11

_U32_MAX = (1 << 32) - 1


def _invalid(message: str) -> InvalidBorrowRateCurvePointError:
    return InvalidBorrowRateCurvePointError(message)


@dataclass(frozen=True)
class CurvePoint:
    """A utilization rate and the borrow rate reached there, both in bps."""

    utilization_rate_bps: int = 0
    borrow_rate_bps: int = 0

    def __post_init__(self) -> None:
        for name in ("utilization_rate_bps", "borrow_rate_bps"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= _U32_MAX:
                raise ValueError(f"{name} must be an unsigned 32-bit integer, got {value!r}")


@dataclass(frozen=True)
class CurveSegment:
    """A straight piece of a curve: a start point and a slope."""

    slope_nom: int = 0
    slope_denom: int = 0
    start_point: CurvePoint = field(default_factory=CurvePoint)

    @classmethod
    def from_points(cls, start: CurvePoint, end: CurvePoint) -> "CurveSegment":
        if end.borrow_rate_bps < start.borrow_rate_bps:
            raise _invalid("Borrow rate must be ever growing in the curve")
        if end.utilization_rate_bps <= start.utilization_rate_bps:
            raise _invalid("Utilization rate must be ever growing in the curve")
        return cls(
            slope_nom=end.borrow_rate_bps - start.borrow_rate_bps,
            slope_denom=end.utilization_rate_bps - start.utilization_rate_bps,
            start_point=start,
        )

    def get_borrow_rate(self, utilization_rate: Fraction) -> Fraction:
        """Evaluate the segment at ``utilization_rate``."""
        start_utilization_rate = Fraction.from_bps(self.start_point.utilization_rate_bps)
        coef = utilization_rate.checked_sub(start_utilization_rate)
        if coef is None:
            raise InvalidUtilizationRateError(
                "utilization rate is below the start of the segment"
            )
        base_rate = coef * self.slope_nom / self.slope_denom
        offset = Fraction.from_bps(self.start_point.borrow_rate_bps)
        return base_rate + offset


@dataclass(frozen=True)
class BorrowRateCurve:
    """Eleven points; unused trailing points repeat the last one."""

    points: Tuple[CurvePoint, ...]

    def __post_init__(self) -> None:
        points = tuple(self.points)
        if len(points) != CURVE_POINTS:
            raise _invalid(f"a borrow rate curve holds exactly {CURVE_POINTS} points")
        object.__setattr__(self, "points", points)

    def validate(self) -> None:
        """Raise if the points do not form a valid curve."""
        pts = self.points
        if pts[0].utilization_rate_bps != 0:
            raise _invalid(
                "First point of borrowing rate curve must have an utilization rate of 0"
            )
        if pts[-1].utilization_rate_bps != MAX_UTILIZATION_RATE_BPS:
            raise _invalid(
                "Last point of borrowing rate curve must have an utilization rate of 1"
            )
        for last_pt, pt in zip(pts, pts[1:]):
            if last_pt.utilization_rate_bps == MAX_UTILIZATION_RATE_BPS:
                if pt.utilization_rate_bps != MAX_UTILIZATION_RATE_BPS:
                    raise _invalid(
                        "Last point of borrowing rate curve must have an utilization rate "
                        "of 1 but lower utilization rate found after last point"
                    )
            elif pt.utilization_rate_bps <= last_pt.utilization_rate_bps:
                raise _invalid("Borrowing rate curve points must be sorted by utilization rate")
            if pt.borrow_rate_bps < last_pt.borrow_rate_bps:
                raise _invalid("Borrowing rate must growing in the curve")

    @classmethod
    def from_points(cls, points: Iterable[CurvePoint]) -> "BorrowRateCurve":
        """Build a curve from 2 to 11 points, padding with the last one."""
        pts = list(points)
        if len(pts) < 2:
            raise _invalid("Borrowing rate curve must have at least 2 points")
        if len(pts) > CURVE_POINTS:
            raise _invalid(f"Borrowing rate curve must have at most {CURVE_POINTS} points")
        last = pts[-1]
        if last.utilization_rate_bps != MAX_UTILIZATION_RATE_BPS:
            raise _invalid(
                "Last point of borrowing rate curve must have an utilization rate of 1"
            )
        curve = cls(tuple(pts) + (last,) * (CURVE_POINTS - len(pts)))
        curve.validate()
        return curve

    @classmethod
    def new_flat(cls, borrow_rate_bps: int) -> "BorrowRateCurve":
        return cls.from_points(
            [
                CurvePoint(0, borrow_rate_bps),
                CurvePoint(MAX_UTILIZATION_RATE_BPS, borrow_rate_bps),
            ]
        )

    @classmethod
    def default(cls) -> "BorrowRateCurve":
        return cls.new_flat(0)

    @classmethod
    def from_legacy_parameters(
        cls,
        optimal_utilization_rate_pct: int,
        base_rate_pct: int,
        optimal_rate_pct: int,
        max_rate_pct: int,
    ) -> "BorrowRateCurve":
        """Build a curve from the older base/optimal/max percentage parameters."""
        optimal_utilization_rate = optimal_utilization_rate_pct * 100
        base_rate = base_rate_pct * 100
        optimal_rate = optimal_rate_pct * 100
        max_rate = max_rate_pct * 100

        if optimal_utilization_rate == 0:
            points = [
                CurvePoint(0, optimal_rate),
                CurvePoint(MAX_UTILIZATION_RATE_BPS, max_rate),
            ]
        elif optimal_utilization_rate == MAX_UTILIZATION_RATE_BPS:
            points = [
                CurvePoint(0, base_rate),
                CurvePoint(MAX_UTILIZATION_RATE_BPS, optimal_rate),
            ]
        else:
            points = [
                CurvePoint(0, base_rate),
                CurvePoint(optimal_utilization_rate, optimal_rate),
                CurvePoint(MAX_UTILIZATION_RATE_BPS, max_rate),
            ]
        return cls.from_points(points)

    def to_points(self) -> list[CurvePoint]:
        """Return the meaningful points, up to the first one at full utilization."""
        result = []
        for point in self.points:
            result.append(point)
            if point.utilization_rate_bps == MAX_UTILIZATION_RATE_BPS:
                break
        return result

    def get_borrow_rate(self, utilization_rate: Fraction) -> Fraction:
        """Return the borrow rate at ``utilization_rate``, capped at 100%."""
        if utilization_rate > Fraction.ONE:
            logger.warning(
                "utilization rate is greater than 100%% (scaled): %d",
                utilization_rate.to_bits(),
            )
            utilization_rate = Fraction.ONE

        utilization_rate_bps = utilization_rate.to_bps()

        window = next(
            (
                (first, second)
                for first, second in zip(self.points, self.points[1:])
                if first.utilization_rate_bps
                <= utilization_rate_bps
                <= second.utilization_rate_bps
            ),
            None,
        )
        if window is None:
            raise _invalid(f"no curve segment covers utilization {utilization_rate_bps} bps")
        start_pt, end_pt = window

        if utilization_rate_bps == start_pt.utilization_rate_bps:
            return Fraction.from_bps(start_pt.borrow_rate_bps)
        if utilization_rate_bps == end_pt.utilization_rate_bps:
            return Fraction.from_bps(end_pt.borrow_rate_bps)

        return CurveSegment.from_points(start_pt, end_pt).get_borrow_rate(utilization_rate)