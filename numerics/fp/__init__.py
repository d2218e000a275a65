from .kinds import (
    NumericConfigError,
    KindTraits,
    NumericKind,
    VECTOR_WIDTHS,
    lift_to_vector,
    parse_kind,
)
from .values import (
    Scalar,
    Vector,
    Value,
    OperandType,
    make_value,
    parse_operand_type,
    parse_signature,
    format_signature,
    value_to_json,
    value_from_json,
)
from .interval import (
    Interval,
    IntervalUnion,
    Acceptance,
    ANY,
    hull,
    union,
    interval_from_json,
)

__all__ = [
    "NumericConfigError",
    "KindTraits",
    "NumericKind",
    "VECTOR_WIDTHS",
    "lift_to_vector",
    "parse_kind",
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
    "Interval",
    "IntervalUnion",
    "Acceptance",
    "ANY",
    "hull",
    "union",
    "interval_from_json",
]
