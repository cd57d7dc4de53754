"""
Baseline (non-learned) policy evaluation for HoverEnv.

Provides two baselines:
  * **hover**: every motor at the mid-range command (nominal hover thrust)
  * **random**: uniform random choice from the discrete action set

Usage::

    python -m quadhover.rl.baselines --policy hover --episodes 10 --seed 1
    python -m quadhover.rl.baselines --policy random --episodes 10 --initial-radius 0.5
"""

from __future__ import annotations

import collections
import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, List

import gymnasium as gym
import numpy as np

from quadhover.envs.hover_env import HoverEnv
from quadhover.params import QuadParams, SimConfig


POLICIES = ("hover", "random")

_TRACE_TAIL_LEN = 20  # max env steps kept in the tail trace


def _rl(arr) -> list:
    """Convert ndarray to a rounded JSON-friendly list of floats."""
    a = np.asarray(arr, dtype=np.float64).ravel()
    return [round(float(x), 6) for x in a]


def _hover_index(env: gym.Env) -> int:
    """Index of the action closest to all-zero commands."""
    action_set = env.unwrapped.action_set
    idx = action_set.zero_index
    if idx is None:
        idx = int(np.argmin(np.abs(action_set.actions).sum(axis=1)))
    return idx


def make_policy(policy: str, env: gym.Env) -> Callable[[np.ndarray], int]:
    """Return ``obs -> action index`` for a named baseline."""
    if policy == "hover":
        hover_idx = _hover_index(env)
        return lambda obs: hover_idx
    if policy == "random":
        return lambda obs: int(env.action_space.sample())
    raise ValueError(f"Unknown policy '{policy}'. Choose from {list(POLICIES)}")


# ---------------------------------------------------------------------------
# Run a single episode
# ---------------------------------------------------------------------------

def run_episode(
    env: gym.Env,
    select_action: Callable[[np.ndarray], int],
    seed: int,
) -> Dict[str, Any]:
    """Roll out one episode and return its metrics plus a short tail trace.

    ``env`` may be a wrapped HoverEnv; ``select_action`` sees the wrapped
    observation and the metrics come from the unwrapped ``info`` dict.
    """
    obs, info = env.reset(seed=seed)
    env.action_space.seed(seed)
    total_reward = 0.0
    steps = 0
    terminated = False
    truncated = False

    # Ring buffer for compact tail trace (last N env steps)
    trace: collections.deque[Dict[str, Any]] = collections.deque(
        maxlen=_TRACE_TAIL_LEN,
    )

    while True:
        action = select_action(obs)
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += reward
        steps += 1

        trace.append({
            "k": steps,
            "t": round(info["sim_time"], 6),
            "reward": round(float(reward), 6),
            "pos": _rl(info["position"]),
            "action": _rl(info["action"]),
        })

        if terminated or truncated:
            break

    return {
        "seed": seed,
        "steps": steps,
        "total_reward": float(total_reward),
        "terminated": terminated,
        "truncated": truncated,
        "term_reason": info.get("term_reason", "unknown"),
        "sim_time": float(info["sim_time"]),
        "final_pos": _rl(info["position"]),
        "final_dist": round(float(info["dist_to_target"]), 6),
        "trace_tail": list(trace),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def summarize_episodes(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate per-episode dicts from :func:`run_episode`.

    An episode survives when it reaches the horizon (truncated); it
    diverges when the NaN guard ended it.
    """
    n = max(len(results), 1)
    returns = [r["total_reward"] for r in results]
    lengths = [r["steps"] for r in results]
    return {
        "episodes": len(results),
        "return_mean": float(np.mean(returns)) if results else 0.0,
        "return_std": float(np.std(returns)) if results else 0.0,
        "survival_rate": sum(1 for r in results if r["truncated"]) / n,
        "divergence_rate": sum(1 for r in results if r["term_reason"] == "diverged") / n,
        "mean_episode_length": float(np.mean(lengths)) if results else 0.0,
    }


def run_baseline(
    policy_name: str = "hover",
    episodes: int = 10,
    seed: int = 0,
    sim_config: SimConfig | None = None,
    params: QuadParams | None = None,
    results_dir: str | None = "results_rl",
    verbose: bool = True,
) -> Dict[str, Any]:
    """Run *episodes* with the given baseline policy and report statistics.

    Parameters
    ----------
    policy_name : str
        ``"hover"`` or ``"random"``.
    episodes : int
        Number of evaluation episodes.
    seed : int
        Base seed (each episode gets ``seed + i``).
    sim_config : SimConfig, optional
        Simulation settings. Uses defaults if *None*.
    params : QuadParams, optional
        Physical constants. Uses defaults if *None*.
    results_dir : str, optional
        Where to save the JSON summary; *None* skips saving.
    verbose : bool
        Print per-episode + aggregate info.

    Returns
    -------
    dict
        Aggregate statistics and per-episode results.
    """
    sc = sim_config or SimConfig()
    env = HoverEnv(config=sc, params=params)
    select_action = make_policy(policy_name, env)

    results: List[Dict[str, Any]] = []
    t0 = time.monotonic()

    for i in range(episodes):
        ep_seed = seed + i
        res = run_episode(env, select_action, ep_seed)
        results.append(res)
        if verbose:
            print(
                f"  Episode {i + 1:3d}/{episodes}  "
                f"seed={ep_seed}  steps={res['steps']:5d}  "
                f"R={res['total_reward']:+8.2f}  "
                f"reason={res['term_reason']}"
            )

    env.close()
    wall_time = time.monotonic() - t0

    summary: Dict[str, Any] = {
        "policy": policy_name,
        "seed": seed,
        "sim_config": asdict(sc),
        **summarize_episodes(results),
        "wall_time_s": wall_time,
        "per_episode": results,
    }

    if verbose:
        print(f"\n{'=' * 55}")
        print(f"  Baseline: {policy_name}  ({episodes} episodes)")
        print(f"{'=' * 55}")
        print(f"  Return        : {summary['return_mean']:+.2f} ± {summary['return_std']:.2f}")
        print(f"  Survival rate : {summary['survival_rate']:.1%}")
        print(f"  Diverged      : {summary['divergence_rate']:.1%}")
        print(f"  Mean ep length: {summary['mean_episode_length']:.0f} steps")
        print(f"  Wall time     : {wall_time:.2f} s")
        print(f"{'=' * 55}")

    # --- Save ---
    if results_dir is not None:
        out_dir = Path(results_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"baseline_{policy_name}_seed{seed}.json"
        with open(out_path, "w") as f:
            json.dump(summary, f, indent=2)
        if verbose:
            print(f"  Results saved to {out_path}")

    return summary


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main(argv: List[str] | None = None) -> None:
    import argparse

    from quadhover.rl.config import _add_run_args, _add_sim_args, build_config

    parser = argparse.ArgumentParser(description="Baseline policy evaluation")
    parser.add_argument("--policy", type=str, default="hover", choices=list(POLICIES))
    parser.add_argument("--episodes", type=int, default=10)
    _add_sim_args(parser)
    _add_run_args(parser)
    args = parser.parse_args(argv)

    cfg = build_config(args, include_ppo=False)

    run_baseline(
        policy_name=args.policy,
        episodes=args.episodes,
        seed=cfg.run.seed,
        sim_config=cfg.sim,
        params=cfg.quad,
        results_dir=cfg.run.results_dir,
        verbose=True,
    )


if __name__ == "__main__":
    main()
