"""
Canonical set of builtin operations, evaluation stages and input sources.

Adding a new builtin starts here: the op name, its arity and the kinds it is
defined for live in one place. Interval / exact implementations and case-set
builders are keyed by `BuiltinOp` and check at import that every member is
covered.

This module only defines names and tables. It does not import `verify/`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Tuple

from numerics.fp.kinds import NumericKind


class BuiltinOp(str, Enum):
    CLAMP = "clamp"
    REMAINDER = "remainder"
    MIN = "min"
    MAX = "max"

    def __str__(self) -> str:
        return self.value


class EvaluationStage(str, Enum):
    # Constant-folded at shader creation: operands must be finite, results defined.
    CONST = "const"
    # Evaluated by the backend: full domain, implementation-defined results allowed.
    RUNTIME = "non_const"

    def __str__(self) -> str:
        return self.value


class InputSource(str, Enum):
    """How the harness delivers operands to the backend under test."""

    CONST = "const"
    UNIFORM = "uniform"
    STORAGE_R = "storage_r"
    STORAGE_RW = "storage_rw"

    @property
    def stage(self) -> EvaluationStage:
        return EvaluationStage.CONST if self is InputSource.CONST else EvaluationStage.RUNTIME

    def __str__(self) -> str:
        return self.value


ALL_INPUT_SOURCES: Tuple[InputSource, ...] = tuple(InputSource)

OP_ARITY: Dict[BuiltinOp, int] = {
    BuiltinOp.CLAMP: 3,
    BuiltinOp.REMAINDER: 2,
    BuiltinOp.MIN: 2,
    BuiltinOp.MAX: 2,
}

_ALL_KINDS: FrozenSet[NumericKind] = frozenset(NumericKind)

OP_KINDS: Dict[BuiltinOp, FrozenSet[NumericKind]] = {
    BuiltinOp.CLAMP: _ALL_KINDS,
    BuiltinOp.REMAINDER: _ALL_KINDS,
    BuiltinOp.MIN: _ALL_KINDS,
    BuiltinOp.MAX: _ALL_KINDS,
}

# Ops whose operands may mix one vector with scalars (e.g. `vec3<f16> % f16`).
MIXED_ARITY_OPS: FrozenSet[BuiltinOp] = frozenset({BuiltinOp.REMAINDER})

SUPPORTED_OPS: set[str] = {op.value for op in BuiltinOp}


def require_all_ops(table: Mapping[BuiltinOp, Any], what: str) -> None:
    """Fail at import when a per-op table does not cover every builtin."""
    missing = sorted(op.value for op in BuiltinOp if op not in table)
    if missing:
        raise NotImplementedError(f"{what} missing for ops: {missing}")


def input_sources_for(stage: EvaluationStage) -> Tuple[InputSource, ...]:
    return tuple(s for s in ALL_INPUT_SOURCES if s.stage is stage)


__all__ = [
    "BuiltinOp",
    "EvaluationStage",
    "InputSource",
    "ALL_INPUT_SOURCES",
    "OP_ARITY",
    "OP_KINDS",
    "MIXED_ARITY_OPS",
    "SUPPORTED_OPS",
    "input_sources_for",
    "require_all_ops",
]
