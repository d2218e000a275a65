"""
Process-wide engine settings, read once from `NUMERICS_*` environment
variables.

Sampling seed and sample sizes are fixed for the life of the process: case
tables are memoized on the assumption that the same key always produces the
same sequence.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from numerics.fp.kinds import NumericConfigError


@dataclass(frozen=True)
class EngineConfig:
    sampling_seed: int = 0
    # Pseudo-random mid-range float values drawn per sign.
    spread_count: int = 6
    # Vectors per sparse vector range; 0 means one per scalar sample value.
    vector_count: int = 0
    case_cache_dir: Optional[Path] = None
    max_workers: int = 8
    log_level: str = "WARNING"


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = int(raw.strip(), 0)
    except ValueError:
        raise NumericConfigError(f"{name} must be an integer, got {raw!r}") from None
    if v < minimum:
        raise NumericConfigError(f"{name} must be >= {minimum}, got {v}")
    return v


def load_config(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if env is None else env
    cache_dir = (env.get("NUMERICS_CASE_CACHE_DIR") or "").strip()
    return EngineConfig(
        sampling_seed=_env_int(env, "NUMERICS_SAMPLING_SEED", 0),
        spread_count=_env_int(env, "NUMERICS_SPREAD_COUNT", 6),
        vector_count=_env_int(env, "NUMERICS_VECTOR_COUNT", 0),
        case_cache_dir=Path(cache_dir) if cache_dir else None,
        max_workers=_env_int(env, "NUMERICS_MAX_WORKERS", 8, minimum=1),
        log_level=(env.get("NUMERICS_LOG_LEVEL") or "WARNING").strip().upper(),
    )


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    return load_config()


__all__ = ["EngineConfig", "load_config", "get_config"]
