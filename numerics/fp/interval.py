"""
Acceptance intervals over the extended reals.

`Interval` is a closed range `[lo, hi]` optionally accepting NaN. `ANY` is the
unconstrained interval used when inputs make a result implementation-defined.
`IntervalUnion` keeps disjoint alternatives apart, so a value is accepted when
any member contains it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple, Union

from numerics.fp.kinds import NumericConfigError


__all__ = ["Interval", "IntervalUnion", "Acceptance", "ANY", "hull", "union", "interval_from_json"]


@dataclass(frozen=True)
class Interval:
    lo: float
    hi: float
    nan_ok: bool = False

    def __post_init__(self) -> None:
        if math.isnan(self.lo) or math.isnan(self.hi):
            raise NumericConfigError("interval bounds must not be NaN")
        if self.lo > self.hi:
            raise NumericConfigError(f"invalid interval: lo={self.lo!r} > hi={self.hi!r}")

    @classmethod
    def point(cls, x: float) -> "Interval":
        return cls(x, x)

    def is_any(self) -> bool:
        return self.nan_ok and self.lo == -math.inf and self.hi == math.inf

    def is_finite(self) -> bool:
        return math.isfinite(self.lo) and math.isfinite(self.hi)

    def is_point(self) -> bool:
        return self.lo == self.hi

    def contains(self, x: float) -> bool:
        if math.isnan(x):
            return self.nan_ok
        return self.lo <= x <= self.hi

    def overlaps(self, other: "Interval") -> bool:
        return self.lo <= other.hi and other.lo <= self.hi

    def to_json(self) -> List[Any]:
        return [self.lo, self.hi, self.nan_ok]

    def __str__(self) -> str:
        if self.is_any():
            return "any"
        if self.is_point():
            return f"[{self.lo!r}]"
        return f"[{self.lo!r}, {self.hi!r}]"


ANY = Interval(-math.inf, math.inf, nan_ok=True)


@dataclass(frozen=True)
class IntervalUnion:
    members: Tuple[Interval, ...]

    def __post_init__(self) -> None:
        if len(self.members) < 2:
            raise NumericConfigError("an interval union needs at least two disjoint members")

    @property
    def lo(self) -> float:
        return min(m.lo for m in self.members)

    @property
    def hi(self) -> float:
        return max(m.hi for m in self.members)

    @property
    def nan_ok(self) -> bool:
        return any(m.nan_ok for m in self.members)

    def is_any(self) -> bool:
        return False

    def is_finite(self) -> bool:
        return all(m.is_finite() for m in self.members)

    def contains(self, x: float) -> bool:
        return any(m.contains(x) for m in self.members)

    def to_json(self) -> List[Any]:
        return [m.to_json() for m in self.members]

    def __str__(self) -> str:
        return " | ".join(str(m) for m in self.members)


Acceptance = Union[Interval, IntervalUnion]


def hull(*intervals: Interval) -> Interval:
    """Smallest single interval covering all inputs."""
    if not intervals:
        raise NumericConfigError("hull() of no intervals")
    return Interval(
        min(i.lo for i in intervals),
        max(i.hi for i in intervals),
        nan_ok=any(i.nan_ok for i in intervals),
    )


def union(*intervals: Interval) -> Acceptance:
    """
    Union of alternatives. Overlapping members are merged; the result is a
    plain Interval when everything merges into one range.
    """
    if not intervals:
        raise NumericConfigError("union() of no intervals")
    ordered = sorted(intervals, key=lambda i: (i.lo, i.hi))
    merged: List[Interval] = [ordered[0]]
    for cur in ordered[1:]:
        last = merged[-1]
        if cur.overlaps(last):
            merged[-1] = hull(last, cur)
        else:
            merged.append(cur)
    if len(merged) == 1:
        return merged[0]
    return IntervalUnion(tuple(merged))


def interval_from_json(data: Iterable[Any]) -> Acceptance:
    items = list(data)
    if items and isinstance(items[0], list):
        return IntervalUnion(tuple(Interval(float(a), float(b), bool(n)) for a, b, n in items))
    lo, hi, nan_ok = items
    return Interval(float(lo), float(hi), bool(nan_ok))
