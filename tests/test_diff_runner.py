import math
import threading
import time

import pytest

from numerics.fp import ANY, Interval, NumericConfigError, NumericKind, OperandType, Scalar, Vector
from numerics.ops.opset import BuiltinOp, EvaluationStage, InputSource
from verify.builtins import resolve_key
from verify.diff_runner import CaseStatus, check_case, run_cases, vectorize_cases
from verify.gen_cases import Case, CaseKey, generate_cases


F16 = NumericKind.F16
I32 = NumericKind.I32


def _clamp_i32_key():
    return CaseKey(BuiltinOp.CLAMP, (OperandType(I32),) * 3, EvaluationStage.RUNTIME)


def _clamp_runner(key, case, source):
    e, low, high = (v.value for v in case.inputs)
    return min(max(e, low), high)


def _f16_remainder_runner(key, case, source):
    x, y = (v.value for v in case.inputs)
    if not (math.isfinite(x) and math.isfinite(y)) or y == 0:
        return math.nan
    return F16.round_to_representable(math.fmod(x, y))


def test_integer_table_passes_on_every_runtime_source(cache):
    key = resolve_key("clamp", "u32,u32,u32", "non_const")
    report = run_cases(key, _clamp_runner, cache=cache)
    assert report.ok
    assert report.n_passed == 3 * 6**3
    assert {r.input_source for r in report.results} == {InputSource.UNIFORM, InputSource.STORAGE_R, InputSource.STORAGE_RW}


def test_const_stage_runs_on_the_const_source(cache):
    key = resolve_key("clamp", "i32,i32,i32", "const")
    report = run_cases(key, _clamp_runner, cache=cache, max_workers=2)
    assert report.ok
    assert {r.input_source for r in report.results} == {InputSource.CONST}


def test_float_table_passes_against_a_faithful_backend(cache):
    key = resolve_key("remainder", "f16,f16", "non_const")
    report = run_cases(key, _f16_remainder_runner, cache=cache, input_sources=[InputSource.UNIFORM])
    assert report.ok, report.to_json_dict()["failures"][:3]


def test_diff_runner_reports_failure(cache):
    key = resolve_key("clamp", "i32,i32,i32", "non_const")
    report = run_cases(key, lambda k, c, s: 999, cache=cache, input_sources=[InputSource.STORAGE_R])
    assert not report.ok
    # 999 is never a clamp result over the i32 sample
    assert report.n_failed == len(report.results)
    failure = report.failures()[0]
    assert failure.summary.startswith("mismatch")
    data = report.to_json_dict()
    assert data["key"] == key.name
    assert data["failed"] == report.n_failed
    assert data["failures"][0]["input_source"] == "storage_r"


def test_results_are_ordered_by_source_then_index():
    key = _clamp_i32_key()
    cases = generate_cases(key, [[1, 2, 3, 4], [0], [10]])
    report = run_cases(key, _clamp_runner, cases=cases, max_workers=4)
    order = [(r.input_source, r.index) for r in report.results]
    assert order == [(s, i) for s in (InputSource.UNIFORM, InputSource.STORAGE_R, InputSource.STORAGE_RW) for i in range(4)]


def test_vector_component_failure_is_located():
    case = Case(
        inputs=(Vector(F16, (5.0, 7.0, 3.0)), Scalar(F16, 3.0)),
        stage=EvaluationStage.RUNTIME,
        expected=(Interval.point(2.0), Interval.point(1.0), Interval.point(0.0)),
    )
    assert check_case(case, Vector(F16, (2.0, 1.0, 0.0))).ok
    bad = check_case(case, (2.0, 1.5, 0.0))
    assert not bad.ok
    assert bad.failed_components == (1,)
    short = check_case(case, (2.0, 1.0))
    assert not short.ok and "shape mismatch" in short.summary


def test_nan_only_accepted_where_allowed():
    any_case = Case(inputs=(Scalar(F16, 1.0), Scalar(F16, 0.0)), stage=EvaluationStage.RUNTIME, expected=ANY)
    point_case = Case(inputs=(Scalar(F16, 5.0), Scalar(F16, 3.0)), stage=EvaluationStage.RUNTIME, expected=Interval.point(2.0))
    assert check_case(any_case, math.nan).ok
    assert not check_case(point_case, math.nan).ok
    assert check_case(point_case, Scalar(F16, 2.0)).ok


def test_integer_observations_must_match_exactly():
    case = Case(inputs=(Scalar(I32, 5),), stage=EvaluationStage.RUNTIME, expected=Scalar(I32, 3))
    assert check_case(case, 3).ok
    assert check_case(case, 3.0).ok
    assert not check_case(case, 3.5).ok
    assert not check_case(case, math.nan).ok


def test_runner_error_fails_only_that_case():
    key = _clamp_i32_key()
    cases = generate_cases(key, [[5, -1], [1], [3]])

    def runner(k, case, source):
        if case.inputs[0].value == -1:
            raise ValueError("backend exploded")
        return _clamp_runner(k, case, source)

    report = run_cases(key, runner, cases=cases, input_sources=[InputSource.UNIFORM])
    assert report.n_passed == 1
    assert report.n_failed == 1
    assert report.failures()[0].summary.startswith("runner error: ValueError")
    assert [r.status for r in report.results] == [CaseStatus.PASSED, CaseStatus.FAILED]


def test_cancel_marks_remaining_cases_not_evaluated():
    key = _clamp_i32_key()
    cases = generate_cases(key, [list(range(50)), [0], [100]])
    cancel = threading.Event()

    def runner(k, case, source):
        cancel.set()
        time.sleep(0.01)
        return _clamp_runner(k, case, source)

    report = run_cases(key, runner, cases=cases, input_sources=[InputSource.UNIFORM], max_workers=1, cancel_event=cancel)
    assert len(report.results) == 50
    assert report.n_not_evaluated > 0
    assert report.n_failed == 0
    assert not report.ok


def test_fail_fast_stops_after_first_failure():
    key = _clamp_i32_key()
    cases = generate_cases(key, [list(range(50)), [0], [100]])

    def runner(k, case, source):
        time.sleep(0.01)
        return -1

    report = run_cases(key, runner, cases=cases, input_sources=[InputSource.UNIFORM], max_workers=1, fail_fast=True)
    assert len(report.results) == 50
    assert report.n_failed >= 1
    assert report.n_not_evaluated > 0
    assert report.n_passed == 0


def test_input_source_must_match_stage():
    with pytest.raises(NumericConfigError):
        run_cases(_clamp_i32_key(), _clamp_runner, cases=[], input_sources=[InputSource.CONST])


def test_empty_table_gives_empty_report():
    report = run_cases(_clamp_i32_key(), _clamp_runner, cases=[])
    assert report.results == []
    assert not report.ok


def test_vectorize_cases_packs_and_pads():
    key = _clamp_i32_key()
    cases = generate_cases(key, [[1, 2, 3, 4, 5], [0], [10]])
    packed = vectorize_cases(cases, 2)
    assert len(packed) == 3
    assert packed[0].inputs[0] == Vector(I32, (1, 2))
    assert packed[-1].inputs[0] == Vector(I32, (5, 5))
    assert packed[-1].expected == Vector(I32, (5, 5))
    report = run_cases(
        CaseKey(BuiltinOp.CLAMP, (OperandType(I32, 2),) * 3, EvaluationStage.RUNTIME),
        lambda k, c, s: tuple(min(max(e, lo), hi) for e, lo, hi in zip(*(v.components() for v in c.inputs))),
        cases=packed,
    )
    assert report.ok


def test_vectorize_float_cases_keeps_per_component_acceptance():
    key = CaseKey(BuiltinOp.REMAINDER, (OperandType(F16),) * 2, EvaluationStage.RUNTIME)
    cases = generate_cases(key, [[5.0, 7.0, math.inf], [3.0]])
    packed = vectorize_cases(cases, 4)
    assert len(packed) == 1
    assert packed[0].expected == (Interval.point(2.0), Interval.point(1.0), ANY, ANY)
    with pytest.raises(NumericConfigError):
        vectorize_cases(packed, 2)
    with pytest.raises(NumericConfigError):
        vectorize_cases(cases, 5)
