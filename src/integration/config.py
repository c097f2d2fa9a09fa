"""
Runner and generator configuration.

Every CLI option has an environment-variable fallback (``RPC``, ``CHAIN_ID``,
``FAUCET_SK``, ``SCENARIO``, ``RUNS``, ``CARGO_ENV``, ``DRY_RUN``, ``SEED``,
``STEPS``, ``TOTAL``, ``WEIGHTS``). Integers are clamped to a sane range and
fall back to the default when unparsable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..gen import DEFAULT_WEIGHTS, GeneratorConfig, TaskType, parse_weights

CARGO_ENVS = ("development", "production")

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SCENARIO_DIR = REPO_ROOT / "scenarios"


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_opt_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class RunnerConfig:
    rpc: str = ""
    chain_id: str = ""
    faucet_sk: str = ""
    scenario: Optional[Path] = None
    runs: int = 1
    cargo_env: str = "development"
    dry_run: bool = False
    seed: Optional[int] = None

    def validate(self) -> "RunnerConfig":
        if self.runs < 1:
            raise ValueError("runs must be at least 1")
        if self.cargo_env not in CARGO_ENVS:
            raise ValueError(f"cargo_env must be one of {', '.join(CARGO_ENVS)}, got {self.cargo_env!r}")
        if not self.dry_run:
            missing = [name for name in ("rpc", "chain_id", "faucet_sk") if not getattr(self, name)]
            if missing:
                raise ValueError(f"missing required option(s): {', '.join(missing)}")
        return self


def runner_config_from_env() -> RunnerConfig:
    """Defaults for the runner CLI, taken from the environment."""
    scenario = _env_str("SCENARIO", "")
    return RunnerConfig(
        rpc=_env_str("RPC", ""),
        chain_id=_env_str("CHAIN_ID", ""),
        faucet_sk=_env_str("FAUCET_SK", ""),
        scenario=Path(scenario) if scenario else None,
        runs=_env_int("RUNS", 1, lo=1, hi=1_000_000),
        cargo_env=_env_str("CARGO_ENV", "development"),
        dry_run=_env_bool("DRY_RUN", default=False),
        seed=_env_opt_int("SEED"),
    )


def load_weights(path: Union[str, Path, None]) -> Dict[TaskType, int]:
    """Read task weights from a YAML mapping; no path means the built-in defaults."""
    if path is None or not str(path).strip():
        return dict(DEFAULT_WEIGHTS)
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if raw is None:
        raise ValueError(f"weights file {path} is empty")
    if isinstance(raw, Mapping) and "weights" in raw and isinstance(raw["weights"], Mapping):
        raw = raw["weights"]
    return parse_weights(raw)


def generator_config(
    *,
    steps: Optional[int] = None,
    seed: Optional[int] = None,
    weights: Union[str, Path, Mapping[Any, int], None] = None,
    retry_for: Optional[int] = None,
) -> GeneratorConfig:
    """Build a generator config; unset options come from ``STEPS`` / ``SEED`` / ``WEIGHTS``."""
    if steps is None:
        steps = _env_int("STEPS", 100, lo=0, hi=10_000_000)
    if seed is None:
        seed = _env_opt_int("SEED")
    if weights is None:
        weights = _env_str("WEIGHTS", "") or None
    if isinstance(weights, Mapping):
        table = parse_weights({k.value if isinstance(k, TaskType) else str(k): w for k, w in weights.items()})
    else:
        table = load_weights(weights)
    return GeneratorConfig(steps=steps, weights=table, seed=seed, retry_for=retry_for)


def scenario_total() -> int:
    return _env_int("TOTAL", 1, lo=1, hi=100_000)


def generator_env_defaults() -> Dict[str, Any]:
    """``STEPS`` / ``SEED`` / ``WEIGHTS`` as CLI defaults for the generator."""
    return {
        "steps": _env_int("STEPS", 100, lo=0, hi=10_000_000),
        "seed": _env_opt_int("SEED"),
        "weights": _env_str("WEIGHTS", ""),
    }
