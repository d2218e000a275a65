import math

import pytest

from numerics.fp import NumericConfigError, NumericKind
from verify.sampling import _sparse_scalar_range, integer_range, scalar_range, sparse_scalar_range, sparse_vector_range


F16 = NumericKind.F16


def test_integer_samples_are_ascending_and_cover_extremes():
    for kind in (NumericKind.U32, NumericKind.I32, NumericKind.ABSTRACT_INT):
        values = integer_range(kind)
        assert list(values) == sorted(values)
        assert kind.min_value() in values
        assert kind.max_value() in values
        assert 0x70000000 in values
    assert scalar_range(NumericKind.I32) == integer_range(NumericKind.I32)


def test_float_sample_has_special_values():
    values = sparse_scalar_range(F16)
    for x in (0.0, 1.0, -1.0, 2.0**-24, 2.0**-14, 65504.0, -65504.0, math.inf, -math.inf):
        assert x in values
    assert not any(math.isnan(x) for x in values)
    signs = [math.copysign(1.0, x) for x in values if x == 0]
    assert signs == [-1.0, 1.0]


def test_float_sample_is_ascending():
    values = sparse_scalar_range(NumericKind.F32)
    assert list(values) == sorted(values)
    assert values[0] == -math.inf and values[-1] == math.inf


def test_abstract_float_sample_has_no_infinities():
    values = sparse_scalar_range(NumericKind.ABSTRACT_FLOAT)
    assert all(math.isfinite(x) for x in values)
    assert NumericKind.ABSTRACT_FLOAT.max_value() in values


def test_float_sample_values_are_representable():
    for x in sparse_scalar_range(F16):
        assert F16.round_to_representable(x) == x


def test_sample_is_deterministic_for_a_seed():
    a = sparse_scalar_range(F16, seed=3, spread_count=4)
    _sparse_scalar_range.cache_clear()
    b = sparse_scalar_range(F16, seed=3, spread_count=4)
    assert a == b
    assert len(sparse_scalar_range(F16, seed=3, spread_count=0)) < len(a)


def test_float_kind_required_for_sparse_range():
    with pytest.raises(NumericConfigError):
        sparse_scalar_range(NumericKind.I32)
    with pytest.raises(NumericConfigError):
        integer_range(F16)


def test_vector_range_walks_the_scalar_sample():
    scalars = sparse_scalar_range(F16)
    vectors = sparse_vector_range(F16, 3)
    assert len(vectors) == len(scalars)
    assert [v[0] for v in vectors] == list(scalars)
    for v in vectors:
        assert len(v) == 3
        assert all(c in scalars for c in v)


def test_vector_range_count_and_width():
    assert len(sparse_vector_range(NumericKind.I32, 2, count=5)) == 5
    assert sparse_vector_range(NumericKind.I32, 4, seed=1) == sparse_vector_range(NumericKind.I32, 4, seed=1)
    with pytest.raises(NumericConfigError):
        sparse_vector_range(F16, 5)
