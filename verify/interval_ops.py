"""
Acceptance-interval engine for builtin operations.

Float kinds: for each legal definition of an op, compute the exact real result
on float64 operands, round it onto the kind's grid and widen by the op's ULP
slack. Ops with several legal definitions (clamp) accept the union of the
per-definition intervals. Kinds a runtime may flush (f16/f32) also accept
results computed from flushed subnormal operands, and a subnormal result
also accepts zero.

Integer kinds: exact result, no slack.

Both dispatch tables are keyed by `BuiltinOp` and must cover every member.
"""

from __future__ import annotations

import itertools
import math
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from numerics.fp import (
    ANY,
    Acceptance,
    Interval,
    NumericConfigError,
    NumericKind,
    hull,
    lift_to_vector,
    union,
)
from numerics.ops.opset import OP_ARITY, BuiltinOp, require_all_ops
from verify.tolerances import error_bound


Operand = Union[float, int, Tuple[Any, ...]]
FloatExpectation = Union[Acceptance, Tuple[Acceptance, ...]]


# ---------------------------------------------------------------------------
# Exact real-valued definitions (float64). NaN means "undefined".
# ---------------------------------------------------------------------------


def _min_max_clamp(e: float, low: float, high: float) -> float:
    return min(max(e, low), high)


def _median_clamp(e: float, low: float, high: float) -> float:
    return sorted((e, low, high))[1]


def _fmod(x: float, y: float) -> float:
    if y == 0:
        return math.nan
    # Truncated remainder; exact for representable operands.
    return math.fmod(x, y)


_FLOAT_DEFINITIONS: Dict[BuiltinOp, Tuple[Callable[..., float], ...]] = {
    BuiltinOp.CLAMP: (_min_max_clamp, _median_clamp),
    BuiltinOp.REMAINDER: (_fmod,),
    BuiltinOp.MIN: (min,),
    BuiltinOp.MAX: (max,),
}


# ---------------------------------------------------------------------------
# Integer definitions. Runtime semantics for otherwise-undefined inputs.
# ---------------------------------------------------------------------------


def _int_remainder(kind: NumericKind, x: int, y: int) -> int:
    # A zero divisor behaves as 1.
    if y == 0:
        return 0
    if kind.traits.is_signed and x == kind.min_value() and y == -1:
        return 0
    r = abs(x) % abs(y)
    return -r if x < 0 else r


_INTEGER_DEFINITIONS: Dict[BuiltinOp, Callable[..., int]] = {
    BuiltinOp.CLAMP: lambda kind, e, low, high: min(max(e, low), high),
    BuiltinOp.REMAINDER: _int_remainder,
    BuiltinOp.MIN: lambda kind, x, y: min(x, y),
    BuiltinOp.MAX: lambda kind, x, y: max(x, y),
}


# ---------------------------------------------------------------------------
# Operand combinations that are a compile error when constant-folded.
# ---------------------------------------------------------------------------


def _clamp_const_legal(kind: NumericKind, e: Any, low: Any, high: Any) -> bool:
    return not low > high


def _remainder_const_legal(kind: NumericKind, x: Any, y: Any) -> bool:
    if kind.is_float:
        return True
    if y == 0:
        return False
    return not (kind.traits.is_signed and x == kind.min_value() and y == -1)


def _always_legal(kind: NumericKind, *operands: Any) -> bool:
    return True


_CONST_LEGALITY: Dict[BuiltinOp, Callable[..., bool]] = {
    BuiltinOp.CLAMP: _clamp_const_legal,
    BuiltinOp.REMAINDER: _remainder_const_legal,
    BuiltinOp.MIN: _always_legal,
    BuiltinOp.MAX: _always_legal,
}


require_all_ops(_FLOAT_DEFINITIONS, "float interval definition")
require_all_ops(_INTEGER_DEFINITIONS, "integer definition")
require_all_ops(_CONST_LEGALITY, "const-stage legality rule")


# ---------------------------------------------------------------------------
# Interval construction.
# ---------------------------------------------------------------------------


def correctly_rounded_interval(kind: NumericKind, r: float, ulps: float = 0.0) -> Interval:
    """
    `[r' - k*ulp(r'), r' + k*ulp(r')]` with `r'` the nearest representable
    value. Bounds past the finite range become infinite; an undefined or
    overflowing result accepts anything.
    """
    if math.isnan(r):
        return ANY
    rr = kind.round_to_representable(r)
    # WGSL: a runtime result that overflows is indeterminate, so no bound applies.
    if math.isinf(rr):
        return ANY
    if ulps:
        err = ulps * kind.ulp(rr)
        lo, hi = rr - err, rr + err
    else:
        lo = hi = rr
    top = kind.max_value()
    if hi > top:
        hi = math.inf
    if lo < -top:
        lo = -math.inf
    result = Interval(lo, hi)
    if kind.traits.flushes_subnormals and kind.is_subnormal(rr):
        result = hull(result, Interval.point(0.0))
    return result


def _flush_variants(kind: NumericKind, operands: Sequence[float]) -> List[Tuple[float, ...]]:
    if not kind.traits.flushes_subnormals:
        return [tuple(operands)]
    choices = [(x, kind.flush_subnormal(x)) if kind.is_subnormal(x) else (x,) for x in operands]
    return list(itertools.product(*choices))


def _scalar_interval(op: BuiltinOp, kind: NumericKind, operands: Sequence[float], ulps: float) -> Acceptance:
    if any(math.isnan(x) or math.isinf(x) for x in operands):
        return ANY
    per_definition: List[Interval] = []
    variants = _flush_variants(kind, operands)
    for fn in _FLOAT_DEFINITIONS[op]:
        intervals = [correctly_rounded_interval(kind, fn(*variant), ulps) for variant in variants]
        if any(iv.is_any() for iv in intervals):
            return ANY
        per_definition.append(hull(*intervals))
    return union(*per_definition)


def _vector_width(operands: Sequence[Operand]) -> int | None:
    widths = {len(x) for x in operands if isinstance(x, tuple)}
    if len(widths) > 1:
        raise NumericConfigError(f"vector operands disagree on width: {sorted(widths)}")
    return widths.pop() if widths else None


def _check_call(op: BuiltinOp, kind: NumericKind, operands: Sequence[Operand]) -> None:
    if not isinstance(op, BuiltinOp):
        raise NumericConfigError(f"unknown builtin op: {op!r}")
    if len(operands) != OP_ARITY[op]:
        raise NumericConfigError(f"{op.value} takes {OP_ARITY[op]} operands, got {len(operands)}")


def interval_for(op: BuiltinOp, kind: NumericKind, *operands: Operand, ulps: float | None = None) -> FloatExpectation:
    """
    Acceptance interval(s) for `op` applied to float operands of `kind`.

    Vector operands produce one acceptance per component; scalar operands
    broadcast. `ulps` overrides the op's error bound.
    """
    _check_call(op, kind, operands)
    if not kind.is_float:
        raise NumericConfigError(f"{kind.value} is an integer kind; use exact_for()")
    k = error_bound(op, kind).ulps if ulps is None else float(ulps)
    if k < 0:
        raise NumericConfigError(f"ulps must be non-negative, got {k}")

    def scalar(*xs: float) -> Acceptance:
        return _scalar_interval(op, kind, [kind.round_to_representable(float(x)) for x in xs], k)

    width = _vector_width(operands)
    if width is None:
        return scalar(*operands)
    return kind.lift_to_vector(scalar, width)(*operands)


def exact_for(op: BuiltinOp, kind: NumericKind, *operands: Operand) -> int | Tuple[int, ...]:
    """Exact result of `op` over integer operands (runtime semantics)."""
    _check_call(op, kind, operands)
    if not kind.is_integer:
        raise NumericConfigError(f"{kind.value} is a float kind; use interval_for()")
    fn = _INTEGER_DEFINITIONS[op]

    def scalar(*xs: int) -> int:
        return kind.round_to_representable(fn(kind, *xs))

    width = _vector_width(operands)
    if width is None:
        return scalar(*operands)
    return lift_to_vector(scalar, width)(*operands)


def is_const_legal(op: BuiltinOp, kind: NumericKind, *operands: Operand) -> bool:
    """
    False when constant-folding these operands is a compile error. Vector
    operands are illegal when any component is.
    """
    _check_call(op, kind, operands)
    rule = _CONST_LEGALITY[op]
    width = _vector_width(operands)
    if width is None:
        return rule(kind, *operands)
    return all(lift_to_vector(lambda *xs: rule(kind, *xs), width)(*operands))


def expectation_is_finite(expected: FloatExpectation) -> bool:
    if isinstance(expected, tuple):
        return all(e.is_finite() for e in expected)
    return expected.is_finite()


__all__ = [
    "correctly_rounded_interval",
    "interval_for",
    "exact_for",
    "is_const_legal",
    "expectation_is_finite",
    "FloatExpectation",
]
