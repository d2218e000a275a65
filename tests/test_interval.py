import math

import pytest

from numerics.fp import ANY, Interval, IntervalUnion, NumericConfigError, hull, interval_from_json, union


def test_interval_validation():
    with pytest.raises(NumericConfigError):
        Interval(2.0, 1.0)
    with pytest.raises(NumericConfigError):
        Interval(math.nan, 1.0)
    assert Interval.point(3.0).is_point()


def test_any_accepts_everything():
    assert ANY.is_any()
    assert ANY.contains(math.nan)
    assert ANY.contains(math.inf)
    assert ANY.contains(-1.0e300)
    assert not ANY.is_finite()


def test_contains_and_nan():
    iv = Interval(0.0, 1.0)
    assert iv.contains(0.0) and iv.contains(1.0)
    assert not iv.contains(1.5)
    assert not iv.contains(math.nan)
    assert Interval(0.0, 1.0, nan_ok=True).contains(math.nan)


def test_hull_covers_inputs():
    h = hull(Interval(1.0, 2.0), Interval(-3.0, -1.0), Interval(0.0, 0.0, nan_ok=True))
    assert h == Interval(-3.0, 2.0, nan_ok=True)


def test_union_merges_overlapping_members():
    assert union(Interval(0.0, 2.0), Interval(1.0, 3.0)) == Interval(0.0, 3.0)
    assert union(Interval(1.0, 1.0)) == Interval(1.0, 1.0)


def test_union_keeps_disjoint_members_apart():
    u = union(Interval.point(3.0), Interval.point(1.0))
    assert isinstance(u, IntervalUnion)
    assert u.members == (Interval.point(1.0), Interval.point(3.0))
    assert u.lo == 1.0 and u.hi == 3.0
    assert u.contains(1.0) and u.contains(3.0)
    assert not u.contains(2.0)
    assert u.is_finite()
    assert not u.is_any()


def test_interval_json():
    assert interval_from_json(Interval(1.0, 2.0).to_json()) == Interval(1.0, 2.0)
    assert interval_from_json(ANY.to_json()) == ANY
    u = union(Interval.point(1.0), Interval.point(3.0))
    assert interval_from_json(u.to_json()) == u
