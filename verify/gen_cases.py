"""
Case generation: sampled operands paired with their expected outcome.

A `Case` carries operand Values, the evaluation stage it was generated for and
either an exact expected Value (integer kinds) or acceptance interval(s)
(float kinds). Cases are immutable and shared across concurrent test runs.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Union

from numerics.fp import (
    Acceptance,
    NumericConfigError,
    NumericKind,
    OperandType,
    Scalar,
    Value,
    Vector,
    format_signature,
    interval_from_json,
    value_from_json,
    value_to_json,
)
from numerics.ops.opset import BuiltinOp, EvaluationStage
from verify.interval_ops import exact_for, expectation_is_finite, interval_for, is_const_legal


Expectation = Union[Value, Acceptance, Tuple[Acceptance, ...]]


@dataclass(frozen=True)
class CaseKey:
    op: BuiltinOp
    signature: Tuple[OperandType, ...]
    stage: EvaluationStage

    @property
    def kind(self) -> NumericKind:
        return self.signature[0].kind

    @property
    def result_type(self) -> OperandType:
        widths = [t.width for t in self.signature if t.width is not None]
        return OperandType(self.kind, widths[0] if widths else None)

    @property
    def name(self) -> str:
        return f"{self.op.value}/{format_signature(self.signature)}/{self.stage.value}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Case:
    inputs: Tuple[Value, ...]
    stage: EvaluationStage
    expected: Expectation

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "inputs": [value_to_json(v) for v in self.inputs],
            "stage": self.stage.value,
            "expected": expectation_to_json(self.expected),
        }

    @classmethod
    def from_json_dict(cls, data: Dict[str, Any]) -> "Case":
        return cls(
            inputs=tuple(value_from_json(v) for v in data["inputs"]),
            stage=EvaluationStage(data["stage"]),
            expected=expectation_from_json(data["expected"]),
        )


def expectation_to_json(expected: Expectation) -> Dict[str, Any]:
    if isinstance(expected, tuple):
        return {"components": [expectation_to_json(e) for e in expected]}
    if isinstance(expected, (Scalar, Vector)):
        return {"value": value_to_json(expected)}
    return {"interval": expected.to_json()}


def expectation_from_json(data: Dict[str, Any]) -> Expectation:
    if "components" in data:
        return tuple(expectation_from_json(e) for e in data["components"])
    if "value" in data:
        return value_from_json(data["value"])
    return interval_from_json(data["interval"])


def _operands_finite(key: CaseKey, operands: Sequence[Any]) -> bool:
    kind = key.kind
    for x in operands:
        comps = x if isinstance(x, tuple) else (x,)
        if not all(kind.is_finite(c) for c in comps):
            return False
    return True


def make_case(key: CaseKey, operands: Sequence[Any]) -> Case | None:
    """
    Build the case for one operand tuple, or None when the tuple is excluded
    for `key.stage`:

    - const: operand orderings that are a compile error (e.g. clamp low > high)
    - const, float kinds: non-finite operands or non-finite acceptance
    """
    kind = key.kind
    const = key.stage is EvaluationStage.CONST
    if const and not is_const_legal(key.op, kind, *operands):
        return None
    if kind.is_integer:
        expected: Expectation = key.result_type.make(exact_for(key.op, kind, *operands))
    else:
        if const and not _operands_finite(key, operands):
            return None
        expected = interval_for(key.op, kind, *operands)
        if const and not expectation_is_finite(expected):
            return None
    inputs = tuple(t.make(x) for t, x in zip(key.signature, operands))
    return Case(inputs=inputs, stage=key.stage, expected=expected)


def generate_cases(key: CaseKey, samples: Sequence[Sequence[Any]]) -> List[Case]:
    """
    Deterministic enumeration of the Cartesian product of per-operand
    samples (first operand outermost), skipping tuples excluded for the stage.
    """
    if len(samples) != len(key.signature):
        raise NumericConfigError(f"{key.name}: expected {len(key.signature)} sample sets, got {len(samples)}")
    cases: List[Case] = []
    for operands in itertools.product(*samples):
        case = make_case(key, operands)
        if case is not None:
            cases.append(case)
    return cases


__all__ = [
    "CaseKey",
    "Case",
    "Expectation",
    "make_case",
    "generate_cases",
    "expectation_to_json",
    "expectation_from_json",
]
