"""
Reproducible configuration for RL training and evaluation.

Wraps the simulation settings together with PPO and run options, plus an
``argparse``-based loader so that every run can be reconstructed from a
single JSON file.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from quadhover.params import QuadParams, SimConfig


# ---------------------------------------------------------------------------
# PPO hyper-parameters
# ---------------------------------------------------------------------------

@dataclass
class PPOConfig:
    """Stable-Baselines3 PPO hyper-parameters."""

    policy: str = "MlpPolicy"
    total_timesteps: int = 500_000
    learning_rate: float = 3e-4
    n_steps: int = 2048
    batch_size: int = 64
    n_epochs: int = 10
    gamma: float = 0.99
    gae_lambda: float = 0.95
    clip_range: float = 0.2
    ent_coef: float = 0.01
    vf_coef: float = 0.5
    max_grad_norm: float = 0.5
    policy_kwargs: Dict[str, Any] = field(
        default_factory=lambda: {"net_arch": dict(pi=[64, 64], vf=[64, 64])}
    )

    # Observation pipeline (see quadhover.rl.wrappers)
    normalize_obs: bool = False      # divide by termination limits, clip
    drop_time: bool = False          # hide the clock from the policy

    # Callbacks
    eval_freq: int = 10_000          # steps between eval rounds
    n_eval_episodes: int = 5
    checkpoint_freq: int = 50_000    # steps between checkpoint saves


# ---------------------------------------------------------------------------
# Run meta-configuration
# ---------------------------------------------------------------------------

@dataclass
class RunConfig:
    """Paths, device, parallelism, seed."""

    seed: int = 0
    log_dir: str = "runs"
    model_dir: str = "models"
    results_dir: str = "results_rl"
    device: str = "auto"
    num_envs: int = 1
    run_name: str = ""               # auto-generated if empty
    verbose: int = 1


# ---------------------------------------------------------------------------
# Composite config
# ---------------------------------------------------------------------------

@dataclass
class FullConfig:
    sim: SimConfig = field(default_factory=SimConfig)
    quad: QuadParams = field(default_factory=QuadParams)
    ppo: PPOConfig = field(default_factory=PPOConfig)
    run: RunConfig = field(default_factory=RunConfig)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def config_to_dict(cfg: FullConfig) -> Dict[str, Any]:
    return asdict(cfg)


def config_from_dict(data: Dict[str, Any]) -> FullConfig:
    """Inverse of :func:`config_to_dict`; unknown keys are rejected."""
    quad = dict(data.get("quad", {}))
    if "inertia_diag" in quad:
        quad["inertia_diag"] = tuple(quad["inertia_diag"])
    return FullConfig(
        sim=SimConfig(**data.get("sim", {})),
        quad=QuadParams(**quad),
        ppo=PPOConfig(**data.get("ppo", {})),
        run=RunConfig(**data.get("run", {})),
    )


def save_config(cfg: FullConfig, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config_to_dict(cfg), f, indent=2)


def load_config(path: str | Path) -> FullConfig:
    with open(path) as f:
        return config_from_dict(json.load(f))


# ---------------------------------------------------------------------------
# Argparse loader
# ---------------------------------------------------------------------------

def _add_sim_args(parser: argparse.ArgumentParser) -> None:
    g = parser.add_argument_group("Simulation")
    g.add_argument("--action-range", type=int, default=None,
                   help="levels per motor axis (>= 2)")
    g.add_argument("--dt", type=float, default=None, help="step size [s]")
    g.add_argument("--sim-end", type=float, default=None, help="episode horizon [s]")
    g.add_argument("--initial-radius", type=float, default=None,
                   help="spawn distance from target [m]")
    g.add_argument("--initial-deviation", type=float, default=None,
                   help="initial Euler-rate bound [deg/s]")
    g.add_argument("--max-displacement", type=float, default=None)
    g.add_argument("--max-tilt-deg", type=float, default=None)
    g.add_argument("--max-yaw-deg", type=float, default=None)
    g.add_argument("--config", type=str, default=None,
                   help="JSON file written by save_config (CLI flags override it)")


def _add_ppo_args(parser: argparse.ArgumentParser) -> None:
    g = parser.add_argument_group("PPO")
    g.add_argument("--total-timesteps", type=int, default=None)
    g.add_argument("--learning-rate", type=float, default=None)
    g.add_argument("--n-steps", type=int, default=None)
    g.add_argument("--batch-size", type=int, default=None)
    g.add_argument("--n-epochs", type=int, default=None)
    g.add_argument("--gamma", type=float, default=None)
    g.add_argument("--gae-lambda", type=float, default=None)
    g.add_argument("--clip-range", type=float, default=None)
    g.add_argument("--ent-coef", type=float, default=None)
    g.add_argument("--vf-coef", type=float, default=None)
    g.add_argument("--max-grad-norm", type=float, default=None)
    g.add_argument("--eval-freq", type=int, default=None)
    g.add_argument("--n-eval-episodes", type=int, default=None)
    g.add_argument("--checkpoint-freq", type=int, default=None)
    g.add_argument("--normalize-obs", action="store_const", const=True, default=None,
                   help="scale observations by the termination limits")
    g.add_argument("--drop-time", action="store_const", const=True, default=None,
                   help="remove simulation time from the observation")


def _add_run_args(parser: argparse.ArgumentParser) -> None:
    g = parser.add_argument_group("Run")
    g.add_argument("--seed", type=int, default=None)
    g.add_argument("--log-dir", type=str, default=None)
    g.add_argument("--model-dir", type=str, default=None)
    g.add_argument("--results-dir", type=str, default=None)
    g.add_argument("--device", type=str, default=None)
    g.add_argument("--num-envs", type=int, default=None)
    g.add_argument("--run-name", type=str, default=None)
    g.add_argument("--verbose", type=int, default=None)


def _apply_overrides(dc: object, ns: argparse.Namespace, keys: List[str]) -> None:
    """Apply non-None argparse values to a mutable dataclass."""
    for key in keys:
        arg_key = key.replace("-", "_")
        val = getattr(ns, arg_key, None)
        if val is not None:
            setattr(dc, arg_key, val)


def _overridden_sim(sim: SimConfig, ns: argparse.Namespace) -> SimConfig:
    """Return a new SimConfig with non-None argparse values applied.

    SimConfig is frozen, so overrides go through ``dataclasses.replace``
    and are validated again on construction.
    """
    changes = {}
    for f in fields(SimConfig):
        val = getattr(ns, f.name, None)
        if val is not None:
            changes[f.name] = val
    return replace(sim, **changes)


def build_config(
    args: argparse.Namespace,
    include_ppo: bool = True,
) -> FullConfig:
    """Merge defaults, an optional ``--config`` file and CLI overrides."""
    config_path: Optional[str] = getattr(args, "config", None)
    cfg = load_config(config_path) if config_path else FullConfig()

    cfg.sim = _overridden_sim(cfg.sim, args)

    if include_ppo:
        ppo_keys = [
            "total_timesteps", "learning_rate", "n_steps", "batch_size",
            "n_epochs", "gamma", "gae_lambda", "clip_range", "ent_coef",
            "vf_coef", "max_grad_norm", "eval_freq", "n_eval_episodes",
            "checkpoint_freq", "normalize_obs", "drop_time",
        ]
        _apply_overrides(cfg.ppo, args, ppo_keys)

    run_keys = [
        "seed", "log_dir", "model_dir", "results_dir", "device",
        "num_envs", "run_name", "verbose",
    ]
    _apply_overrides(cfg.run, args, run_keys)

    return cfg


def load_config_from_args(
    description: str = "Quad hover RL",
    include_ppo: bool = True,
    argv: Optional[List[str]] = None,
) -> Tuple[FullConfig, argparse.Namespace]:
    """Build a :class:`FullConfig` from defaults + CLI overrides.

    Returns
    -------
    cfg : FullConfig
    args : argparse.Namespace  (raw, for any extra flags the caller added)
    """
    parser = argparse.ArgumentParser(description=description)
    _add_sim_args(parser)
    if include_ppo:
        _add_ppo_args(parser)
    _add_run_args(parser)
    args = parser.parse_args(argv)

    return build_config(args, include_ppo=include_ppo), args
