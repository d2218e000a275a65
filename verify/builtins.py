"""
Case-set builders for each builtin (op -> how to sample and enumerate).

`resolve_key` turns user-facing request parts (enum or string forms) into a
validated `CaseKey` and fails fast on anything the op does not support:
unknown op names, wrong arity, mixed kinds, illegal vector/scalar mixes, or
abstract kinds requested at the runtime stage.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from numerics.diagnostics import Diagnostic, did_you_mean
from numerics.fp import (
    VECTOR_WIDTHS,
    NumericConfigError,
    NumericKind,
    OperandType,
    format_signature,
    parse_signature,
)
from numerics.ops.opset import (
    MIXED_ARITY_OPS,
    OP_ARITY,
    OP_KINDS,
    SUPPORTED_OPS,
    BuiltinOp,
    EvaluationStage,
    require_all_ops,
)
from verify.gen_cases import Case, CaseKey, generate_cases
from verify.sampling import scalar_range, sparse_vector_range


class CaseRequestError(NumericConfigError):
    """Raised when a case table is requested for an unsupported key."""


def _fail(message: str, *, suggestions: Sequence[str] = (), notes: Sequence[str] = ()) -> CaseRequestError:
    diag = Diagnostic(level="error", message=message, suggestions=list(suggestions), notes=list(notes))
    return CaseRequestError(diag.format())


def parse_op(name: str | BuiltinOp) -> BuiltinOp:
    if isinstance(name, BuiltinOp):
        return name
    s = str(name).strip().lower()
    try:
        return BuiltinOp(s)
    except ValueError:
        raise _fail(f"unknown builtin op: {name!r}", suggestions=did_you_mean(s, SUPPORTED_OPS)) from None


def parse_stage(stage: str | EvaluationStage) -> EvaluationStage:
    if isinstance(stage, EvaluationStage):
        return stage
    s = str(stage).strip().lower().replace("-", "_")
    for st in EvaluationStage:
        if s in (st.value, st.name.lower()):
            return st
    raise _fail(
        f"unknown evaluation stage: {stage!r}",
        suggestions=did_you_mean(s, [st.value for st in EvaluationStage]),
    )


def _validate_same_shape(op: BuiltinOp, signature: Tuple[OperandType, ...]) -> None:
    if len(set(signature)) != 1:
        raise _fail(
            f"{op.value} requires all operands to share one type, got ({format_signature(signature)})",
        )


def _validate_mixed(op: BuiltinOp, signature: Tuple[OperandType, ...]) -> None:
    widths = {t.width for t in signature if t.width is not None}
    if len(widths) > 1:
        raise _fail(f"{op.value}: vector operands disagree on width ({format_signature(signature)})")


_SIGNATURE_RULES: Dict[BuiltinOp, Callable[[BuiltinOp, Tuple[OperandType, ...]], None]] = {
    BuiltinOp.CLAMP: _validate_same_shape,
    BuiltinOp.REMAINDER: _validate_mixed,
    BuiltinOp.MIN: _validate_same_shape,
    BuiltinOp.MAX: _validate_same_shape,
}

require_all_ops(_SIGNATURE_RULES, "signature rule")


def validate_key(key: CaseKey) -> None:
    op, signature = key.op, key.signature
    if not isinstance(op, BuiltinOp):
        raise _fail(f"unknown builtin op: {op!r}", suggestions=did_you_mean(str(op), SUPPORTED_OPS))
    if not isinstance(key.stage, EvaluationStage):
        raise _fail(f"unknown evaluation stage: {key.stage!r}")
    if not signature or not all(isinstance(t, OperandType) for t in signature):
        raise _fail(f"invalid operand signature: {signature!r}")
    if len(signature) != OP_ARITY[op]:
        raise _fail(
            f"{op.value} takes {OP_ARITY[op]} operands, got {len(signature)} ({format_signature(signature)})",
        )
    kinds = {t.kind for t in signature}
    if len(kinds) != 1:
        raise _fail(f"{op.value} operands must share one numeric kind, got ({format_signature(signature)})")
    kind = signature[0].kind
    if kind not in OP_KINDS[op]:
        raise _fail(f"{op.value} is not defined for {kind.value}")
    if kind.is_abstract and key.stage is not EvaluationStage.CONST:
        raise _fail(
            f"{kind.value} only exists at shader-creation time; request stage '{EvaluationStage.CONST.value}'",
        )
    _SIGNATURE_RULES[op](op, signature)


def resolve_key(op: str | BuiltinOp, signature: Any, stage: str | EvaluationStage) -> CaseKey:
    """Build and validate a key from enum or string parts (e.g. "vec3<f16>,f16")."""
    try:
        sig = parse_signature(signature)
    except NumericConfigError as e:
        raise _fail(f"invalid operand signature {signature!r}: {e}") from None
    key = CaseKey(op=parse_op(op), signature=sig, stage=parse_stage(stage))
    validate_key(key)
    return key


def samples_for(
    operand: OperandType,
    *,
    seed: Optional[int] = None,
    spread_count: Optional[int] = None,
    vector_count: Optional[int] = None,
) -> Tuple[Any, ...]:
    """Operand sample for one signature slot. Unset parameters come from the engine config."""
    if operand.width is None:
        return scalar_range(operand.kind, seed=seed, spread_count=spread_count)
    return sparse_vector_range(operand.kind, operand.width, seed=seed, count=vector_count, spread_count=spread_count)


def build_cases(
    key: CaseKey,
    *,
    seed: Optional[int] = None,
    spread_count: Optional[int] = None,
    vector_count: Optional[int] = None,
) -> Tuple[Case, ...]:
    validate_key(key)
    samples = [samples_for(t, seed=seed, spread_count=spread_count, vector_count=vector_count) for t in key.signature]
    return tuple(generate_cases(key, samples))


def supported_signatures(op: BuiltinOp, kind: NumericKind) -> List[Tuple[OperandType, ...]]:
    """Signatures `op` accepts for `kind`, scalar first then by width."""
    arity = OP_ARITY[op]
    scalar = OperandType(kind)
    out: List[Tuple[OperandType, ...]] = [(scalar,) * arity]
    for w in VECTOR_WIDTHS:
        vec = OperandType(kind, w)
        out.append((vec,) * arity)
        if op in MIXED_ARITY_OPS:
            out.append((vec, scalar))
            out.append((scalar, vec))
    return out


def _keys(op: BuiltinOp, signatures: Sequence[Tuple[OperandType, ...]], stages: Sequence[EvaluationStage]) -> List[CaseKey]:
    return [CaseKey(op, sig, st) for sig in signatures for st in stages]


def _default_keys() -> List[CaseKey]:
    both = (EvaluationStage.CONST, EvaluationStage.RUNTIME)
    const = (EvaluationStage.CONST,)
    f16 = OperandType(NumericKind.F16)
    keys = _keys(BuiltinOp.REMAINDER, [(f16, f16)], both)
    for w in VECTOR_WIDTHS:
        vec = OperandType(NumericKind.F16, w)
        keys += _keys(BuiltinOp.REMAINDER, [(vec, f16), (f16, vec)], both)
    for kind in (NumericKind.U32, NumericKind.I32, NumericKind.F32, NumericKind.F16):
        keys += _keys(BuiltinOp.CLAMP, [(OperandType(kind),) * 3], both)
    for kind in (NumericKind.ABSTRACT_INT, NumericKind.ABSTRACT_FLOAT):
        keys += _keys(BuiltinOp.CLAMP, [(OperandType(kind),) * 3], const)
    return keys


DEFAULT_KEYS: Tuple[CaseKey, ...] = tuple(_default_keys())


__all__ = [
    "CaseRequestError",
    "parse_op",
    "parse_stage",
    "validate_key",
    "resolve_key",
    "samples_for",
    "build_cases",
    "supported_signatures",
    "DEFAULT_KEYS",
]
