"""
Numeric type descriptors for the representations exercised by the builtin
execution tests.

Every kind exposes the same small surface: finite range, special-value support,
`ulp(x)`, `round_to_representable(x)` and component-wise vector lifting. Float
kinds use the matching numpy dtype as their representation grid; abstract float
is evaluated on the f64 grid and abstract int on the i64 range.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple

import numpy as np


__all__ = [
    "NumericConfigError",
    "KindTraits",
    "NumericKind",
    "VECTOR_WIDTHS",
    "lift_to_vector",
    "parse_kind",
]


VECTOR_WIDTHS: Tuple[int, ...] = (2, 3, 4)


class NumericConfigError(ValueError):
    """Raised for invalid kinds, widths, values or configuration."""


@dataclass(frozen=True)
class KindTraits:
    bits: int
    dtype: Any
    is_float: bool
    min_value: float | int
    max_value: float | int
    has_nan: bool = False
    has_infinity: bool = False
    has_subnormals: bool = False
    # Runtime backends may flush subnormal inputs/results to zero.
    flushes_subnormals: bool = False
    min_subnormal: float = 0.0
    min_normal: float = 0.0
    max_exponent: int = 0
    is_signed: bool = True


class NumericKind(str, Enum):
    F16 = "f16"
    F32 = "f32"
    F64 = "f64"
    ABSTRACT_FLOAT = "abstract-float"
    I32 = "i32"
    U32 = "u32"
    ABSTRACT_INT = "abstract-int"

    def __str__(self) -> str:
        return self.value

    @property
    def traits(self) -> KindTraits:
        return _TRAITS[self]

    @property
    def is_float(self) -> bool:
        return self.traits.is_float

    @property
    def is_integer(self) -> bool:
        return not self.traits.is_float

    @property
    def is_abstract(self) -> bool:
        return self in (NumericKind.ABSTRACT_FLOAT, NumericKind.ABSTRACT_INT)

    def min_value(self) -> float | int:
        """Smallest (most negative) finite value."""
        return self.traits.min_value

    def max_value(self) -> float | int:
        """Largest finite value."""
        return self.traits.max_value

    def is_finite(self, x: float | int) -> bool:
        t = self.traits
        if t.is_float:
            return math.isfinite(x) and abs(x) <= t.max_value
        return t.min_value <= x <= t.max_value

    def is_subnormal(self, x: float | int) -> bool:
        t = self.traits
        if not t.has_subnormals or not math.isfinite(x):
            return False
        return x != 0 and abs(x) < t.min_normal

    def flush_subnormal(self, x: float) -> float:
        if self.is_subnormal(x):
            return math.copysign(0.0, x)
        return x

    def ulp(self, x: float | int) -> float | int:
        """
        Distance to the adjacent representable value at the magnitude of `x`.

        - integer kinds: always 1
        - NaN: NaN
        - at or beyond the largest finite value (incl. infinities): the gap
          between the two largest finite values
        - zero / subnormal region: the smallest positive subnormal
        """
        t = self.traits
        if not t.is_float:
            return 1
        if math.isnan(x):
            return math.nan
        ax = abs(float(x))
        if math.isinf(ax) or ax >= t.max_value:
            top = t.dtype(t.max_value)
            return float(top) - float(np.nextafter(top, t.dtype(0)))
        if ax < t.min_normal:
            return t.min_subnormal
        v = t.dtype(ax)
        if float(v) > ax:
            v = np.nextafter(v, t.dtype(0))
        return float(np.spacing(v))

    def round_to_representable(self, x: float | int) -> float | int:
        """Round-to-nearest-even onto the grid; integers saturate to the range."""
        t = self.traits
        if not t.is_float:
            if isinstance(x, float):
                if math.isnan(x):
                    raise NumericConfigError(f"NaN is not representable as {self.value}")
                if math.isinf(x):
                    return t.max_value if x > 0 else t.min_value
                x = round(x)
            return int(min(max(int(x), t.min_value), t.max_value))
        if math.isnan(x):
            return math.nan
        with np.errstate(over="ignore"):
            return float(t.dtype(x))

    def lift_to_vector(self, fn: Callable[..., Any], dim: int) -> Callable[..., Tuple[Any, ...]]:
        return lift_to_vector(fn, dim)


def lift_to_vector(fn: Callable[..., Any], dim: int) -> Callable[..., Tuple[Any, ...]]:
    """
    Apply a scalar function component-wise over vectors of length `dim`.

    Tuple arguments must have exactly `dim` components; scalar arguments are
    broadcast to every component.
    """
    if dim not in VECTOR_WIDTHS:
        raise NumericConfigError(f"invalid vector width {dim}; expected one of {VECTOR_WIDTHS}")

    def lifted(*args: Any) -> Tuple[Any, ...]:
        for a in args:
            if isinstance(a, tuple) and len(a) != dim:
                raise NumericConfigError(f"vector operand has {len(a)} components, expected {dim}")
        return tuple(fn(*(a[i] if isinstance(a, tuple) else a for a in args)) for i in range(dim))

    return lifted


_F64_MAX = float(np.finfo(np.float64).max)

_TRAITS: Dict[NumericKind, KindTraits] = {
    NumericKind.F16: KindTraits(
        bits=16,
        dtype=np.float16,
        is_float=True,
        min_value=-65504.0,
        max_value=65504.0,
        has_nan=True,
        has_infinity=True,
        has_subnormals=True,
        flushes_subnormals=True,
        min_subnormal=2.0**-24,
        min_normal=2.0**-14,
        max_exponent=15,
    ),
    NumericKind.F32: KindTraits(
        bits=32,
        dtype=np.float32,
        is_float=True,
        min_value=-float(np.finfo(np.float32).max),
        max_value=float(np.finfo(np.float32).max),
        has_nan=True,
        has_infinity=True,
        has_subnormals=True,
        flushes_subnormals=True,
        min_subnormal=2.0**-149,
        min_normal=2.0**-126,
        max_exponent=127,
    ),
    NumericKind.F64: KindTraits(
        bits=64,
        dtype=np.float64,
        is_float=True,
        min_value=-_F64_MAX,
        max_value=_F64_MAX,
        has_nan=True,
        has_infinity=True,
        has_subnormals=True,
        min_subnormal=2.0**-1074,
        min_normal=2.0**-1022,
        max_exponent=1023,
    ),
    # Compile-time only: no NaN or infinity, never flushed.
    NumericKind.ABSTRACT_FLOAT: KindTraits(
        bits=64,
        dtype=np.float64,
        is_float=True,
        min_value=-_F64_MAX,
        max_value=_F64_MAX,
        has_subnormals=True,
        min_subnormal=2.0**-1074,
        min_normal=2.0**-1022,
        max_exponent=1023,
    ),
    NumericKind.I32: KindTraits(bits=32, dtype=np.int32, is_float=False, min_value=-(2**31), max_value=2**31 - 1),
    NumericKind.U32: KindTraits(bits=32, dtype=np.uint32, is_float=False, min_value=0, max_value=2**32 - 1, is_signed=False),
    NumericKind.ABSTRACT_INT: KindTraits(bits=64, dtype=np.int64, is_float=False, min_value=-(2**63), max_value=2**63 - 1),
}


_ALIASES: Dict[str, NumericKind] = {
    "abstract_float": NumericKind.ABSTRACT_FLOAT,
    "abstractfloat": NumericKind.ABSTRACT_FLOAT,
    "abstract_int": NumericKind.ABSTRACT_INT,
    "abstractint": NumericKind.ABSTRACT_INT,
}


def parse_kind(name: str | NumericKind) -> NumericKind:
    if isinstance(name, NumericKind):
        return name
    s = str(name).strip().lower()
    if s in _ALIASES:
        return _ALIASES[s]
    try:
        return NumericKind(s)
    except ValueError:
        raise NumericConfigError(f"unknown numeric kind: {name!r}") from None
