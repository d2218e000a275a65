"""
Permitted error bounds for builtin results.

Each float builtin gets an error bound expressed as a multiple `k` of
`ulp(r')`, where `r'` is the correctly rounded exact result. The constants
follow the WGSL builtin accuracy table:

  - clamp / min / max return one of their operands, so they are exact.
  - remainder is exact whenever the result is representable. The truncated
    remainder `x - y * trunc(x / y)` of two representable operands always is.

Integer kinds never get slack. Per-kind entries override the per-op default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from numerics.fp.kinds import NumericConfigError, NumericKind
from numerics.ops.opset import BuiltinOp, require_all_ops


@dataclass(frozen=True)
class ErrorBound:
    ulps: float

    def __post_init__(self) -> None:
        if self.ulps < 0:
            raise NumericConfigError(f"error bound must be non-negative, got {self.ulps}")

    def to_dict(self) -> Dict[str, float]:
        return {"ulps": float(self.ulps)}


EXACT = ErrorBound(0.0)

_OP_BOUND: Dict[BuiltinOp, ErrorBound] = {
    BuiltinOp.CLAMP: EXACT,
    BuiltinOp.MIN: EXACT,
    BuiltinOp.MAX: EXACT,
    BuiltinOp.REMAINDER: EXACT,
}

# (op, kind) -> bound, for kinds whose accuracy differs from the op default.
_KIND_OVERRIDES: Dict[Tuple[BuiltinOp, NumericKind], ErrorBound] = {}


def error_bound(op: BuiltinOp, kind: NumericKind) -> ErrorBound:
    if kind.is_integer:
        return EXACT
    override = _KIND_OVERRIDES.get((op, kind))
    if override is not None:
        return override
    return _OP_BOUND[op]


require_all_ops(_OP_BOUND, "error bound")


__all__ = ["ErrorBound", "EXACT", "error_bound"]
