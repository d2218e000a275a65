import json
import threading
import time

import pytest

from verify.builtins import CaseRequestError, build_cases, resolve_key
from verify.case_cache import CACHE_FORMAT_VERSION, CaseCache, cache_file_name, request_cases


def _counting_builder(calls, delay=0.0):
    lock = threading.Lock()

    def builder(key, **sampling):
        with lock:
            calls.append(key)
        time.sleep(delay)
        return build_cases(key, **sampling)

    return builder


def _refuse(key, **sampling):
    raise AssertionError(f"table for {key.name} should have been loaded from disk")


def test_request_is_idempotent(cache):
    a = request_cases("clamp", "i32,i32,i32", "const", cache=cache)
    b = request_cases("clamp", "i32,i32,i32", "const", cache=cache)
    assert a is b
    assert cache.computed == 1


def test_recomputation_is_deterministic():
    key = resolve_key("remainder", "vec2<f16>,f16", "non_const")
    assert CaseCache().get(key) == CaseCache().get(key)


def test_first_use_computes_once_under_contention():
    calls = []
    cache = CaseCache(builder=_counting_builder(calls, delay=0.05))
    key = resolve_key("min", "u32,u32", "non_const")
    results = []

    def worker():
        results.append(cache.get(key))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)
    assert key in cache
    assert cache.keys() == [key]


def test_distinct_keys_are_cached_separately(cache):
    const = request_cases("min", "i32,i32", "const", cache=cache)
    runtime = request_cases("min", "i32,i32", "non_const", cache=cache)
    assert const is not runtime
    assert cache.computed == 2


def test_tables_persist_across_caches(tmp_path):
    key = resolve_key("remainder", "f16,f16", "non_const")
    first = CaseCache(cache_dir=tmp_path, seed=0)
    table = first.get(key)
    path = first.path_for(key)
    assert path is not None and path.is_file()
    assert path.name == cache_file_name(key)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == CACHE_FORMAT_VERSION
    assert data["key"] == key.name

    second = CaseCache(cache_dir=tmp_path, seed=0, builder=_refuse)
    assert second.get(key) == table
    assert second.loaded == 1
    assert second.computed == 0


def test_file_for_another_seed_is_ignored(tmp_path):
    key = resolve_key("clamp", "u32,u32,u32", "const")
    CaseCache(cache_dir=tmp_path, seed=0).get(key)
    calls = []
    other = CaseCache(cache_dir=tmp_path, seed=99, builder=_counting_builder(calls))
    other.get(key)
    assert len(calls) == 1
    assert other.loaded == 0


def test_seed_is_used_to_build_the_table():
    key = resolve_key("remainder", "f16,f16", "non_const")
    a = CaseCache(seed=0).get(key)
    b = CaseCache(seed=12345).get(key)
    assert a != b
    assert CaseCache(seed=12345).get(key) == b


def test_file_for_another_spread_count_is_ignored(tmp_path, engine_env):
    key = resolve_key("remainder", "f16,f16", "non_const")
    first = CaseCache(cache_dir=tmp_path).get(key)
    data = json.loads(CaseCache(cache_dir=tmp_path).path_for(key).read_text(encoding="utf-8"))
    assert data["spread_count"] == 6
    assert data["vector_count"] == 0

    engine_env(NUMERICS_SPREAD_COUNT="1")
    cache = CaseCache(cache_dir=tmp_path)
    second = cache.get(key)
    assert cache.loaded == 0
    assert cache.computed == 1
    assert len(second) < len(first)


def test_file_for_another_vector_count_is_ignored(tmp_path):
    key = resolve_key("remainder", "vec2<i32>,i32", "non_const")
    assert len(CaseCache(cache_dir=tmp_path, vector_count=0).get(key)) == 8 * 8
    cache = CaseCache(cache_dir=tmp_path, vector_count=3)
    assert len(cache.get(key)) == 3 * 8
    assert cache.loaded == 0


def test_corrupt_file_is_recomputed(tmp_path):
    key = resolve_key("max", "i32,i32", "const")
    cache = CaseCache(cache_dir=tmp_path, seed=0)
    cache.path_for(key).write_text("{not json", encoding="utf-8")
    table = cache.get(key)
    assert len(table) == 64
    assert cache.computed == 1
    assert json.loads(cache.path_for(key).read_text(encoding="utf-8"))["seed"] == 0


def test_unsupported_requests_raise(cache):
    with pytest.raises(CaseRequestError):
        request_cases("clamp", "abstract-float,abstract-float,abstract-float", "non_const", cache=cache)
    with pytest.raises(CaseRequestError):
        request_cases("floor", "f32", "const", cache=cache)
    assert cache.keys() == []
