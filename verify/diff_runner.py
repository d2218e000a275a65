"""
Runs a case table against the backend under test and checks each observed
result against the case's expectation.

The backend is an injected runner `(key, case, input_source) -> observed`.
It may return a `Scalar`/`Vector` or plain numbers / tuples. Mismatches and
runner errors are recorded per case and the run keeps going, so one pass
reports every failing case. Cases that never ran (cancelled, or stopped by
`fail_fast`) are reported as not evaluated.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from numerics.config import get_config
from numerics.fp import NumericConfigError, Scalar, Vector
from numerics.ops.opset import InputSource, input_sources_for
from verify.case_cache import CaseCache, default_cache
from verify.gen_cases import Case, CaseKey


logger = logging.getLogger(__name__)

Runner = Callable[[CaseKey, Case, InputSource], Any]


class CaseStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    NOT_EVALUATED = "not_evaluated"


@dataclass(frozen=True)
class DiffResult:
    ok: bool
    failed_components: Tuple[int, ...]
    summary: str


@dataclass(frozen=True)
class CaseResult:
    index: int
    input_source: InputSource
    status: CaseStatus
    case: Case
    observed: Any = None
    failed_components: Tuple[int, ...] = ()
    summary: str = ""


@dataclass
class RunReport:
    key: CaseKey
    results: List[CaseResult] = field(default_factory=list)
    total_time_sec: float = 0.0

    def count(self, status: CaseStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def n_passed(self) -> int:
        return self.count(CaseStatus.PASSED)

    @property
    def n_failed(self) -> int:
        return self.count(CaseStatus.FAILED)

    @property
    def n_not_evaluated(self) -> int:
        return self.count(CaseStatus.NOT_EVALUATED)

    @property
    def ok(self) -> bool:
        return bool(self.results) and self.n_passed == len(self.results)

    def failures(self) -> List[CaseResult]:
        return [r for r in self.results if r.status is CaseStatus.FAILED]

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key.name,
            "ok": self.ok,
            "passed": self.n_passed,
            "failed": self.n_failed,
            "not_evaluated": self.n_not_evaluated,
            "total_time_sec": float(self.total_time_sec),
            "failures": [
                {
                    "index": r.index,
                    "input_source": r.input_source.value,
                    "inputs": [str(v) for v in r.case.inputs],
                    "observed": repr(r.observed),
                    "failed_components": list(r.failed_components),
                    "summary": r.summary,
                }
                for r in self.failures()
            ],
        }


def _observed_components(observed: Any) -> Tuple[Any, ...]:
    if isinstance(observed, (Scalar, Vector)):
        return tuple(observed.components())
    if isinstance(observed, (tuple, list)):
        return tuple(observed)
    return (observed,)


def _expected_components(case: Case) -> Tuple[Any, ...]:
    expected = case.expected
    if isinstance(expected, (Scalar, Vector)):
        return tuple(expected.components())
    if isinstance(expected, tuple):
        return expected
    return (expected,)


def _component_ok(expected: Any, got: Any) -> bool:
    if hasattr(expected, "contains"):
        try:
            return expected.contains(float(got))
        except (TypeError, ValueError):
            return False
    if isinstance(got, float):
        if math.isnan(got) or not got.is_integer():
            return False
        got = int(got)
    return got == expected


def check_case(case: Case, observed: Any) -> DiffResult:
    """
    Integer kinds must match exactly; float kinds must lie inside the
    acceptance of every component. A single failing component fails the case.
    """
    want = _expected_components(case)
    got = _observed_components(observed)
    if len(got) != len(want):
        return DiffResult(False, (), f"shape mismatch: expected {len(want)} component(s), got {len(got)}")
    bad = tuple(i for i, (w, g) in enumerate(zip(want, got)) if not _component_ok(w, g))
    if bad:
        details = ", ".join(f"[{i}] {got[i]!r} not in {want[i]}" for i in bad)
        return DiffResult(False, bad, f"mismatch: {details}")
    return DiffResult(True, (), "ok")


def vectorize_cases(cases: Sequence[Case], width: int) -> List[Case]:
    """
    Pack consecutive scalar cases into vector cases of `width`, so a scalar
    table can exercise vector code paths. The last group is padded by
    repeating its final case.
    """
    if width not in (2, 3, 4):
        raise NumericConfigError(f"invalid vector width {width}")
    for c in cases:
        if any(isinstance(v, Vector) for v in c.inputs) or isinstance(c.expected, (tuple, Vector)):
            raise NumericConfigError("vectorize_cases() only accepts scalar cases")
    out: List[Case] = []
    for start in range(0, len(cases), width):
        group = list(cases[start:start + width])
        group += [group[-1]] * (width - len(group))
        inputs = tuple(
            Vector(group[0].inputs[i].kind, tuple(c.inputs[i].value for c in group))
            for i in range(len(group[0].inputs))
        )
        first = group[0].expected
        if isinstance(first, Scalar):
            expected: Any = Vector(first.kind, tuple(c.expected.value for c in group))
        else:
            expected = tuple(c.expected for c in group)
        out.append(Case(inputs=inputs, stage=group[0].stage, expected=expected))
    return out


def _run_one(runner: Runner, key: CaseKey, index: int, case: Case, source: InputSource) -> CaseResult:
    observed = runner(key, case, source)
    diff = check_case(case, observed)
    return CaseResult(
        index=index,
        input_source=source,
        status=CaseStatus.PASSED if diff.ok else CaseStatus.FAILED,
        case=case,
        observed=observed,
        failed_components=diff.failed_components,
        summary=diff.summary,
    )


def run_cases(
    key: CaseKey,
    runner: Runner,
    *,
    cases: Optional[Sequence[Case]] = None,
    cache: Optional[CaseCache] = None,
    input_sources: Optional[Sequence[InputSource]] = None,
    max_workers: Optional[int] = None,
    fail_fast: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> RunReport:
    """
    Execute every case of `key` once per input source and check the results.

    Cases default to the memoized table for `key`. Input sources default to
    every source whose stage matches `key.stage`.
    """
    table = tuple(cases) if cases is not None else (cache or default_cache()).get(key)
    sources = tuple(input_sources) if input_sources is not None else input_sources_for(key.stage)
    for s in sources:
        if s.stage is not key.stage:
            raise NumericConfigError(f"input source {s.value} does not evaluate at stage {key.stage.value}")
    workers = max_workers or get_config().max_workers

    work = [(i, case, src) for src in sources for i, case in enumerate(table)]
    report = RunReport(key=key)
    if not work:
        return report

    logger.info("Running %d cases for %s over %d input source(s) with %d workers", len(table), key.name, len(sources), workers)
    start = time.monotonic()
    results: List[CaseResult] = []
    stop = False

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_item = {executor.submit(_run_one, runner, key, i, case, src): (i, case, src) for i, case, src in work}

        for future in as_completed(future_to_item):
            i, case, src = future_to_item[future]
            if not stop and cancel_event is not None and cancel_event.is_set():
                stop = True
            if stop:
                for f in future_to_item:
                    f.cancel()
            try:
                result = future.result()
            except CancelledError:
                result = CaseResult(index=i, input_source=src, status=CaseStatus.NOT_EVALUATED, case=case)
            except Exception as e:
                logger.exception("Runner raised for case %d of %s (%s)", i, key.name, src.value)
                result = CaseResult(
                    index=i,
                    input_source=src,
                    status=CaseStatus.FAILED,
                    case=case,
                    summary=f"runner error: {type(e).__name__}: {e}",
                )
            results.append(result)
            if fail_fast and result.status is CaseStatus.FAILED and not stop:
                logger.warning("Fail-fast triggered by case %d of %s", i, key.name)
                stop = True
                for f in future_to_item:
                    f.cancel()

    order = {s: n for n, s in enumerate(sources)}
    results.sort(key=lambda r: (order[r.input_source], r.index))
    report.results = results
    report.total_time_sec = time.monotonic() - start
    logger.info(
        "%s: %d passed, %d failed, %d not evaluated in %.2f seconds",
        key.name,
        report.n_passed,
        report.n_failed,
        report.n_not_evaluated,
        report.total_time_sec,
    )
    return report


__all__ = [
    "Runner",
    "CaseStatus",
    "DiffResult",
    "CaseResult",
    "RunReport",
    "check_case",
    "vectorize_cases",
    "run_cases",
]
