"""
Representative operand samples per numeric kind.

Integer kinds use short explicit ascending lists (extremes, small values
around zero, and values crossing the high bit patterns). Float kinds use a
sparse range: special and boundary values plus a small seeded pseudo-random
spread of normal magnitudes. Enumerating every f16/f32 value is intractable
once operands are combined pairwise or three-wise.

Vector samples draw each component independently from the scalar sample so
the count stays fixed regardless of width.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

import numpy as np

from numerics.config import get_config
from numerics.fp import VECTOR_WIDTHS, NumericConfigError, NumericKind


_INTEGER_VALUES: Dict[NumericKind, Tuple[int, ...]] = {
    NumericKind.U32: (0, 1, 2, 0x70000000, 0x80000000, 0xFFFFFFFF),
    NumericKind.I32: (-0x80000000, -2, -1, 0, 1, 2, 0x70000000, 0x7FFFFFFF),
    NumericKind.ABSTRACT_INT: (-(2**63), -2, -1, 0, 1, 2, 0x70000000, 0x80000000, 2**63 - 1),
}

# Separate random streams per kind so adding a kind never shifts another's sample.
_STREAM: Dict[NumericKind, int] = {kind: i for i, kind in enumerate(NumericKind)}


def integer_range(kind: NumericKind) -> Tuple[int, ...]:
    if kind not in _INTEGER_VALUES:
        raise NumericConfigError(f"no integer sample for {kind.value}")
    return _INTEGER_VALUES[kind]


def _sort_key(x: float) -> Tuple[float, float]:
    # -0.0 sorts before 0.0
    return (x, math.copysign(1.0, x))


def _spread(kind: NumericKind, rng: np.random.Generator, count: int) -> List[float]:
    t = kind.traits
    lo_exp = math.log2(t.min_normal)
    mags = np.exp2(rng.uniform(lo_exp, t.max_exponent, size=count))
    return [kind.round_to_representable(float(m)) for m in mags]


@lru_cache(maxsize=None)
def _sparse_scalar_range(kind: NumericKind, seed: int, spread_count: int) -> Tuple[float, ...]:
    t = kind.traits
    rng = np.random.default_rng([seed, _STREAM[kind]])
    largest_subnormal = t.min_normal - t.min_subnormal
    base = [
        0.0,
        -0.0,
        1.0,
        -1.0,
        t.min_subnormal,
        -t.min_subnormal,
        largest_subnormal,
        -largest_subnormal,
        t.min_normal,
        -t.min_normal,
        float(t.max_value),
        float(t.min_value),
    ]
    if t.has_infinity:
        base += [math.inf, -math.inf]
    base += _spread(kind, rng, spread_count)
    base += [-x for x in _spread(kind, rng, spread_count)]

    seen = set()
    values: List[float] = []
    for x in base:
        q = kind.round_to_representable(x)
        key = _sort_key(q)
        if key in seen:
            continue
        seen.add(key)
        values.append(q)
    return tuple(sorted(values, key=_sort_key))


def sparse_scalar_range(kind: NumericKind, *, seed: Optional[int] = None, spread_count: Optional[int] = None) -> Tuple[float, ...]:
    """Ascending, NaN-free sparse sample of a float kind."""
    if not kind.is_float:
        raise NumericConfigError(f"{kind.value} is not a float kind; use integer_range()")
    cfg = get_config()
    return _sparse_scalar_range(
        kind,
        cfg.sampling_seed if seed is None else int(seed),
        cfg.spread_count if spread_count is None else int(spread_count),
    )


def scalar_range(kind: NumericKind, *, seed: Optional[int] = None, spread_count: Optional[int] = None) -> Tuple[float | int, ...]:
    if kind.is_integer:
        return integer_range(kind)
    return sparse_scalar_range(kind, seed=seed, spread_count=spread_count)


@lru_cache(maxsize=None)
def _vector_range(kind: NumericKind, dim: int, seed: int, count: int, scalars: Tuple[float | int, ...]) -> Tuple[Tuple[float | int, ...], ...]:
    rng = np.random.default_rng([seed, _STREAM[kind], dim])
    n = count or len(scalars)
    out = []
    for i in range(n):
        # Component 0 walks the scalar sample so every value shows up.
        rest = rng.integers(0, len(scalars), size=dim - 1)
        out.append((scalars[i % len(scalars)],) + tuple(scalars[int(j)] for j in rest))
    return tuple(out)


def sparse_vector_range(
    kind: NumericKind,
    dim: int,
    *,
    seed: Optional[int] = None,
    count: Optional[int] = None,
    spread_count: Optional[int] = None,
) -> Tuple[Tuple[float | int, ...], ...]:
    if dim not in VECTOR_WIDTHS:
        raise NumericConfigError(f"invalid vector width {dim}; expected one of {VECTOR_WIDTHS}")
    cfg = get_config()
    seed = cfg.sampling_seed if seed is None else int(seed)
    count = cfg.vector_count if count is None else int(count)
    return _vector_range(kind, dim, seed, count, scalar_range(kind, seed=seed, spread_count=spread_count))


__all__ = ["integer_range", "sparse_scalar_range", "scalar_range", "sparse_vector_range"]
