"""
Smoke test for the HoverEnv.

Run with::

    python -m quadhover.envs.smoke_test

Runs two short episodes:
  1. Hover policy (all motors at mid-range command)
  2. Random-action policy
and prints a summary for each.  No plots, no GUI.
"""

from __future__ import annotations

import sys
import time

import numpy as np


def _run_episode(
    env,
    policy: str = "hover",
    max_steps: int = 400,
) -> dict:
    """Run one episode and return a summary dict."""
    obs, info = env.reset(seed=0)

    total_reward = 0.0
    step = 0
    terminated = False
    truncated = False
    term_reason = ""

    hover_idx = env.action_set.zero_index
    if hover_idx is None:
        # Even action_range has no exact zero level; use the closest one
        hover_idx = int(np.argmin(np.abs(env.action_set.actions).sum(axis=1)))

    for step in range(1, max_steps + 1):
        if policy == "hover":
            action = hover_idx
        elif policy == "random":
            action = env.action_space.sample()
        else:
            raise ValueError(f"Unknown policy: {policy}")

        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += reward

        if terminated or truncated:
            term_reason = info.get("term_reason", "unknown")
            break

    return {
        "policy": policy,
        "steps": step,
        "total_reward": total_reward,
        "terminated": terminated,
        "truncated": truncated,
        "term_reason": term_reason,
        "final_pos": info.get("position", np.zeros(3)),
        "sim_time": info.get("sim_time", 0.0),
    }


def _print_summary(result: dict) -> None:
    print(f"\n{'=' * 55}")
    print(f"  Policy: {result['policy']}")
    print(f"{'=' * 55}")
    print(f"  Env steps       : {result['steps']}")
    print(f"  Sim time        : {result['sim_time']:.2f} s")
    print(f"  Total reward    : {result['total_reward']:+.2f}")
    print(f"  Terminated      : {result['terminated']}")
    print(f"  Truncated       : {result['truncated']}")
    print(f"  Reason          : {result['term_reason'] or 'n/a'}")
    pos = result["final_pos"]
    print(f"  Final position  : ({pos[0]:+.3f}, {pos[1]:+.3f}, {pos[2]:+.3f})")


def main() -> None:
    # Import here so errors give a clear message if gymnasium is missing.
    try:
        import gymnasium  # noqa: F401
    except ImportError:
        print(
            "ERROR: gymnasium is not installed.\n"
            "Install it with:  pip install 'gymnasium>=0.29'",
            file=sys.stderr,
        )
        sys.exit(1)

    from quadhover.envs.hover_env import HoverEnv
    from quadhover.params import SimConfig

    cfg = SimConfig(dt=0.01, sim_end=4.0, action_range=3,
                    initial_radius=0.5, initial_deviation=10.0)
    env = HoverEnv(config=cfg, render_mode="human", render_every=100)

    print("=" * 55)
    print("  HoverEnv Smoke Test")
    print("=" * 55)

    # --- Hover policy ---
    t0 = time.monotonic()
    result_hover = _run_episode(env, policy="hover", max_steps=400)
    wall_hover = time.monotonic() - t0
    _print_summary(result_hover)
    print(f"  Wall-clock time : {wall_hover:.2f} s")

    # --- Random policy ---
    t0 = time.monotonic()
    result_rand = _run_episode(env, policy="random", max_steps=200)
    wall_rand = time.monotonic() - t0
    _print_summary(result_rand)
    print(f"  Wall-clock time : {wall_rand:.2f} s")

    env.close()

    # --- Final verdict ---
    print("\n" + "=" * 55)
    ok = True
    if result_hover["term_reason"] == "diverged":
        print("  [WARN] Hover policy diverged numerically.")
        ok = False
    if result_rand["term_reason"] == "diverged":
        print("  [WARN] Random policy diverged numerically.")
        ok = False

    if ok:
        print("  [OK] Smoke test completed successfully.")
    else:
        print("  [WARN] Smoke test finished with warnings (see above).")
    print("=" * 55)


if __name__ == "__main__":
    main()
