#!/usr/bin/env python3
"""
Run a scenario document against a chain.

Real runs talk to an SDK bridge sidecar (``--rpc tcp://host:port``);
``--dry-run`` uses the in-memory chain instead. Exits 0 iff every step of
every run ended ``success`` or ``noop``.
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

from src.core.errors import RpcError
from src.integration.bridge_client import bridge_sdk
from src.integration.config import CARGO_ENVS, DEFAULT_SCENARIO_DIR, RunnerConfig, runner_config_from_env
from src.integration.mock_chain import MockChain, MockChainConfig
from src.integration.report import RunReport, all_ok
from src.integration.runner import ScenarioRunner
from src.scenario.document import Scenario, load_scenario

logger = logging.getLogger("run_scenario")


def pick_scenario(directory: Path, rng: random.Random) -> Path:
    candidates = sorted(directory.glob("*.json"))
    if not candidates:
        raise FileNotFoundError(f"no scenario documents in {directory}")
    return rng.choice(candidates)


def _run(config: RunnerConfig, scenario: Scenario) -> List[RunReport]:
    if config.dry_run:
        chain = MockChain(MockChainConfig(chain_id=config.chain_id or "mock-chain"))
        runner = ScenarioRunner(chain, seed=config.seed, sleep=chain.sleep)
        return runner.run(scenario, config.runs)
    with bridge_sdk(config.rpc, chain_id=config.chain_id, faucet_sk=config.faucet_sk) as sdk:
        return ScenarioRunner(sdk, seed=config.seed).run(scenario, config.runs)


def main(argv: Optional[List[str]] = None) -> int:
    env = runner_config_from_env()
    parser = argparse.ArgumentParser(description="Run a load-test scenario against a chain")
    parser.add_argument("--rpc", default=env.rpc, help="SDK bridge URL, tcp://host:port")
    parser.add_argument("--chain-id", default=env.chain_id)
    parser.add_argument("--faucet-sk", default=env.faucet_sk, help="Faucet secret key (hex)")
    parser.add_argument(
        "--scenario",
        type=Path,
        default=env.scenario,
        help=f"Scenario document (default: a random *.json from {DEFAULT_SCENARIO_DIR})",
    )
    parser.add_argument("--runs", type=int, default=env.runs)
    parser.add_argument("--cargo-env", choices=CARGO_ENVS, default=env.cargo_env)
    parser.add_argument("--dry-run", action="store_true", default=env.dry_run, help="Use the in-memory chain")
    parser.add_argument("--seed", type=int, default=env.seed, help="Seed for fuzz draws and scenario choice")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--report", type=Path, default=None, help="Write a Markdown (or .json) report here")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = replace(
        env,
        rpc=args.rpc,
        chain_id=args.chain_id,
        faucet_sk=args.faucet_sk,
        scenario=args.scenario,
        runs=args.runs,
        cargo_env=args.cargo_env,
        dry_run=args.dry_run,
        seed=args.seed,
    )
    try:
        config.validate()
        if config.cargo_env == "production" and config.dry_run:
            raise ValueError("--dry-run is not available with --cargo-env production")
        path = config.scenario or pick_scenario(DEFAULT_SCENARIO_DIR, random.Random(config.seed))
        scenario = load_scenario(path)
    except (ValueError, OSError) as exc:
        print(f"[run_scenario] error: {exc}", file=sys.stderr)
        return 2

    logger.info("scenario %s: %d steps, %d run(s), %s", path, len(scenario), config.runs, config.cargo_env)
    try:
        reports = _run(config, scenario)
    except RpcError as exc:
        print(f"[run_scenario] FAIL: {exc}", file=sys.stderr)
        return 1

    for i, report in enumerate(reports, start=1):
        totals = ", ".join(f"{k}={v}" for k, v in report.to_dict()["totals"].items())
        print(f"[run_scenario] run {i}/{len(reports)}: {'ok' if report.ok else 'FAIL'} ({totals})")

    if args.report is not None:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        if args.report.suffix == ".json":
            body = "[\n" + ",\n".join(r.to_json() for r in reports) + "\n]\n"
        else:
            body = "\n".join(
                r.render_markdown(f"{path.name} run {i}/{len(reports)}") for i, r in enumerate(reports, start=1)
            )
        args.report.write_text(body, encoding="utf-8")

    return 0 if all_ok(reports) else 1


if __name__ == "__main__":
    raise SystemExit(main())
