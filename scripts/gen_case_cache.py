"""
Inspect, dump or pre-generate builtin case tables.

Examples:
  python scripts/gen_case_cache.py --list
  python scripts/gen_case_cache.py --op clamp --signature i32,i32,i32 --stage const
  python scripts/gen_case_cache.py --op remainder --signature "vec3<f16>,f16" --stage non_const --dump out.json
  python scripts/gen_case_cache.py --all --cache-dir .case_cache
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from numerics.config import get_config
from numerics.fp import NumericConfigError
from verify.builtins import DEFAULT_KEYS, resolve_key
from verify.case_cache import CaseCache


def _summary(name: str, table: Any) -> Dict[str, Any]:
    return {"key": name, "cases": len(table)}


def main(argv: Optional[List[str]] = None) -> int:
    cfg = get_config()
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("--list", action="store_true", help="list the default case-table keys")
    ap.add_argument("--all", action="store_true", help="generate every default case table")
    ap.add_argument("--op", default=None, help="builtin op (clamp, remainder, min, max)")
    ap.add_argument("--signature", default=None, help='operand types, e.g. "f32,f32,f32" or "vec3<f16>,f16"')
    ap.add_argument("--stage", default="non_const", help="const | non_const")
    ap.add_argument("--dump", default=None, help="write the cases of --op/--signature/--stage to this JSON path")
    ap.add_argument("--cache-dir", default=str(cfg.case_cache_dir) if cfg.case_cache_dir else None)
    ap.add_argument("--log-level", default=cfg.log_level)
    args = ap.parse_args(argv)

    logging.basicConfig(level=str(args.log_level).upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.list:
        for key in DEFAULT_KEYS:
            print(key.name)
        return 0

    cache = CaseCache(cache_dir=args.cache_dir)

    if args.all:
        rows = []
        start = time.monotonic()
        for key in DEFAULT_KEYS:
            rows.append(_summary(key.name, cache.get(key)))
        print(json.dumps({"tables": rows, "computed": cache.computed, "loaded": cache.loaded, "seconds": round(time.monotonic() - start, 3)}, indent=2))
        return 0

    if not args.op or not args.signature:
        ap.error("either --list, --all, or both --op and --signature are required")

    try:
        key = resolve_key(args.op, args.signature, args.stage)
    except NumericConfigError as e:
        print(str(e), file=sys.stderr)
        return 2
    table = cache.get(key)

    if args.dump:
        payload = {"key": key.name, **cache.sampling, "cases": [c.to_json_dict() for c in table]}
        Path(args.dump).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(args.dump)
        return 0

    print(json.dumps(_summary(key.name, table)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
