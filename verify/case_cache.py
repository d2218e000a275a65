"""
Lazily computed, memoized case tables.

Tables are pure functions of their key and the sampling parameters (seed,
spread count, vector count), so they are computed at most once per key for
the life of the process and never evicted.
The first computation of a key is guarded by a per-key lock; concurrent
requests for the same key wait for it instead of duplicating the work.

When a cache directory is configured, tables are also persisted as JSON (one
file per key) and loaded on later runs instead of being recomputed. Files
written with other sampling parameters or another format version are ignored.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from numerics.config import get_config
from numerics.ops.opset import BuiltinOp, EvaluationStage
from verify.builtins import build_cases, resolve_key, validate_key
from verify.gen_cases import Case, CaseKey


logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 2

CaseTable = Tuple[Case, ...]
_Builder = Callable[..., Iterable[Case]]


def cache_file_name(key: CaseKey) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", key.name).strip("_")
    digest = hashlib.sha1(key.name.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}.json"


class CaseCache:
    def __init__(
        self,
        *,
        cache_dir: Optional[Path | str] = None,
        builder: _Builder = build_cases,
        seed: Optional[int] = None,
        spread_count: Optional[int] = None,
        vector_count: Optional[int] = None,
    ) -> None:
        cfg = get_config()
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.seed = cfg.sampling_seed if seed is None else int(seed)
        self.spread_count = cfg.spread_count if spread_count is None else int(spread_count)
        self.vector_count = cfg.vector_count if vector_count is None else int(vector_count)
        self._builder = builder
        self._tables: Dict[CaseKey, CaseTable] = {}
        self._locks: Dict[CaseKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self.computed = 0
        self.loaded = 0

    def __contains__(self, key: CaseKey) -> bool:
        return key in self._tables

    @property
    def sampling(self) -> Dict[str, int]:
        """Parameters the tables of this cache are sampled with."""
        return {"seed": self.seed, "spread_count": self.spread_count, "vector_count": self.vector_count}

    def keys(self) -> List[CaseKey]:
        return list(self._tables)

    def get(self, key: CaseKey) -> CaseTable:
        """Case table for `key`; computed (or loaded) on first request only."""
        table = self._tables.get(key)
        if table is not None:
            return table
        validate_key(key)
        with self._lock_for(key):
            table = self._tables.get(key)
            if table is None:
                table = self._load(key)
                if table is None:
                    table = self._compute(key)
                    self._store(key, table)
                self._tables[key] = table
        return table

    def _lock_for(self, key: CaseKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _compute(self, key: CaseKey) -> CaseTable:
        start = time.monotonic()
        table = tuple(self._builder(key, **self.sampling))
        self.computed += 1
        logger.info("Computed %d cases for %s in %.2f seconds", len(table), key.name, time.monotonic() - start)
        return table

    def path_for(self, key: CaseKey) -> Optional[Path]:
        if self.cache_dir is None:
            return None
        return self.cache_dir / cache_file_name(key)

    def _load(self, key: CaseKey) -> Optional[CaseTable]:
        path = self.path_for(key)
        if path is None or not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable case cache file %s: %s", path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed case cache file %s: not a JSON object", path)
            return None
        if (
            data.get("version") != CACHE_FORMAT_VERSION
            or data.get("key") != key.name
            or any(data.get(name) != value for name, value in self.sampling.items())
        ):
            logger.warning("Ignoring stale case cache file %s", path)
            return None
        try:
            table = tuple(Case.from_json_dict(c) for c in data["cases"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed case cache file %s: %s", path, e)
            return None
        self.loaded += 1
        logger.debug("Loaded %d cases for %s from %s", len(table), key.name, path)
        return table

    def _store(self, key: CaseKey, table: CaseTable) -> None:
        path = self.path_for(key)
        if path is None:
            return
        payload: Dict[str, Any] = {
            "version": CACHE_FORMAT_VERSION,
            "key": key.name,
            **self.sampling,
            "cases": [c.to_json_dict() for c in table],
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(f".{os.getpid()}.{threading.get_ident()}.tmp")
        tmp.write_text(json.dumps(payload), encoding="utf-8")
        tmp.replace(path)
        logger.debug("Wrote %d cases for %s to %s", len(table), key.name, path)


_DEFAULT: Optional[CaseCache] = None
_DEFAULT_GUARD = threading.Lock()


def default_cache() -> CaseCache:
    global _DEFAULT
    with _DEFAULT_GUARD:
        if _DEFAULT is None:
            _DEFAULT = CaseCache(cache_dir=get_config().case_cache_dir)
        return _DEFAULT


def request_cases(
    op: str | BuiltinOp,
    signature: Any,
    stage: str | EvaluationStage,
    *,
    cache: Optional[CaseCache] = None,
) -> CaseTable:
    """
    The case table for (op, operand signature, stage).

    Example: `request_cases("remainder", "vec3<f16>,f16", "const")`.
    """
    key = resolve_key(op, signature, stage)
    return (cache or default_cache()).get(key)


__all__ = [
    "CACHE_FORMAT_VERSION",
    "CaseTable",
    "CaseCache",
    "cache_file_name",
    "default_cache",
    "request_cases",
]
