import pytest

from numerics.fp import NumericConfigError, NumericKind
from numerics.ops.opset import BuiltinOp
from verify.tolerances import EXACT, ErrorBound, error_bound


def test_every_op_has_a_bound_for_every_kind():
    for op in BuiltinOp:
        for kind in NumericKind:
            assert error_bound(op, kind).ulps >= 0


def test_selection_ops_and_remainder_are_exact():
    assert error_bound(BuiltinOp.CLAMP, NumericKind.F32) == EXACT
    assert error_bound(BuiltinOp.REMAINDER, NumericKind.F16).ulps == 0


def test_integer_kinds_never_get_slack():
    for op in BuiltinOp:
        assert error_bound(op, NumericKind.I32) is EXACT


def test_negative_bound_rejected():
    with pytest.raises(NumericConfigError):
        ErrorBound(-1.0)
    assert ErrorBound(2.0).to_dict() == {"ulps": 2.0}
