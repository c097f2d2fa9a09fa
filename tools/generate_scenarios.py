#!/usr/bin/env python3
"""
Generate scenario documents into ``scenarios/<namespace>.json``.

Each document gets its own seed drawn from ``--seed`` so a whole batch is
reproducible; the namespace is derived from that seed.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.errors import GenerationStalled
from src.gen import generate_scenario
from src.integration.config import DEFAULT_SCENARIO_DIR, generator_config, generator_env_defaults, scenario_total
from src.scenario.document import save_scenario, validate_references

logger = logging.getLogger("generate_scenarios")


def main(argv: Optional[List[str]] = None) -> int:
    env = generator_env_defaults()
    parser = argparse.ArgumentParser(description="Generate load-test scenario documents")
    parser.add_argument("--steps", type=int, default=env["steps"], help="Tasks per scenario")
    parser.add_argument("--total", type=int, default=scenario_total(), help="Number of scenarios to write")
    parser.add_argument("--seed", type=int, default=env["seed"])
    parser.add_argument("--weights", default=env["weights"], help="YAML file mapping task name -> weight")
    parser.add_argument("--retry-for", type=int, default=None, help="Seconds to keep restarting on submit timeouts")
    parser.add_argument("--out-dir", type=Path, default=DEFAULT_SCENARIO_DIR)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.total < 1:
        print("[generate] error: --total must be at least 1", file=sys.stderr)
        return 2
    try:
        base = generator_config(steps=args.steps, weights=args.weights or None, retry_for=args.retry_for, seed=0)
    except (ValueError, OSError) as exc:
        print(f"[generate] error: {exc}", file=sys.stderr)
        return 2

    rng = random.Random(args.seed)
    for i in range(args.total):
        seed = rng.getrandbits(64)
        try:
            scenario = generate_scenario(replace(base, seed=seed))
        except GenerationStalled as exc:
            print(f"[generate] FAIL: {exc}", file=sys.stderr)
            return 1
        problems = validate_references(scenario)
        if problems:
            for p in problems:
                logger.error("%s", p)
            return 1
        path = save_scenario(args.out_dir / f"{seed:016x}.json", scenario)
        print(f"[generate] {i + 1}/{args.total}: {path} ({len(scenario)} steps)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
