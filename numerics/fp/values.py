"""
Scalar / vector values and operand types.

Values are quantized onto their kind's grid at construction so a Case never
carries an operand the backend could not represent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from numerics.fp.kinds import VECTOR_WIDTHS, NumericConfigError, NumericKind, parse_kind


__all__ = [
    "Scalar",
    "Vector",
    "Value",
    "OperandType",
    "make_value",
    "parse_operand_type",
    "parse_signature",
    "format_signature",
    "value_to_json",
    "value_from_json",
]


def _quantize(kind: NumericKind, x: Any) -> float | int:
    if kind.is_float:
        return kind.round_to_representable(float(x))
    if isinstance(x, float) and not x.is_integer():
        raise NumericConfigError(f"{x!r} is not an integer value for {kind.value}")
    iv = int(x)
    if not kind.is_finite(iv):
        raise NumericConfigError(f"{iv} out of range for {kind.value} [{kind.min_value()}, {kind.max_value()}]")
    return iv


@dataclass(frozen=True)
class Scalar:
    kind: NumericKind
    value: float | int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _quantize(self.kind, self.value))

    @property
    def width(self) -> None:
        return None

    def components(self) -> Tuple[float | int, ...]:
        return (self.value,)

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value!r})"


@dataclass(frozen=True)
class Vector:
    kind: NumericKind
    values: Tuple[float | int, ...]

    def __post_init__(self) -> None:
        comps = tuple(self.values)
        if len(comps) not in VECTOR_WIDTHS:
            raise NumericConfigError(f"vector must have 2, 3 or 4 components, got {len(comps)}")
        object.__setattr__(self, "values", tuple(_quantize(self.kind, c) for c in comps))

    @property
    def width(self) -> int:
        return len(self.values)

    def components(self) -> Tuple[float | int, ...]:
        return self.values

    def __str__(self) -> str:
        inner = ", ".join(repr(c) for c in self.values)
        return f"vec{self.width}<{self.kind.value}>({inner})"


Value = Union[Scalar, Vector]


def make_value(kind: NumericKind, x: Any) -> Value:
    if isinstance(x, (tuple, list)):
        return Vector(kind, tuple(x))
    return Scalar(kind, x)


@dataclass(frozen=True)
class OperandType:
    kind: NumericKind
    width: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width is not None and self.width not in VECTOR_WIDTHS:
            raise NumericConfigError(f"invalid vector width {self.width}; expected one of {VECTOR_WIDTHS}")

    @property
    def is_vector(self) -> bool:
        return self.width is not None

    @property
    def scalar_type(self) -> "OperandType":
        return OperandType(self.kind)

    def make(self, x: Any) -> Value:
        value = make_value(self.kind, x)
        if value.width != self.width:
            raise NumericConfigError(f"value {x!r} does not match operand type {self}")
        return value

    def __str__(self) -> str:
        if self.width is None:
            return self.kind.value
        return f"vec{self.width}<{self.kind.value}>"


_VEC_RE = re.compile(r"^\s*vec([0-9]+)\s*<\s*([A-Za-z0-9_\-]+)\s*>\s*$")


def parse_operand_type(text: str | OperandType) -> OperandType:
    """Parse `f32`, `vec3<f16>`, `abstract-int`, ..."""
    if isinstance(text, OperandType):
        return text
    m = _VEC_RE.match(str(text))
    if m:
        return OperandType(parse_kind(m.group(2)), int(m.group(1)))
    return OperandType(parse_kind(text))


def parse_signature(text: str | Sequence[str | OperandType]) -> Tuple[OperandType, ...]:
    if isinstance(text, str):
        parts = [p for p in re.split(r",(?![^<]*>)", text) if p.strip()]
    else:
        parts = list(text)
    if not parts:
        raise NumericConfigError("empty operand signature")
    return tuple(parse_operand_type(p) for p in parts)


def format_signature(signature: Sequence[OperandType]) -> str:
    return ",".join(str(t) for t in signature)


def value_to_json(value: Value) -> Dict[str, Any]:
    if isinstance(value, Vector):
        return {"kind": value.kind.value, "components": list(value.components())}
    return {"kind": value.kind.value, "value": value.value}


def value_from_json(data: Dict[str, Any]) -> Value:
    kind = parse_kind(data["kind"])
    if "components" in data:
        return Vector(kind, tuple(data["components"]))
    v = data["value"]
    if kind.is_float and isinstance(v, int):
        v = float(v)
    return Scalar(kind, v)
