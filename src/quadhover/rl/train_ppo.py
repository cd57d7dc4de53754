"""
PPO training for HoverEnv using Stable-Baselines3.

Usage::

    python -m quadhover.rl.train_ppo --total-timesteps 300000 --seed 1
    python -m quadhover.rl.train_ppo --action-range 5 --initial-radius 0.5 --normalize-obs

Before training, the hover baseline is run on the evaluation seeds to give a
reference return.  After training, the final model is rolled out on the same
seeds and compared against it in ``training_summary.json``.

TensorBoard logs go to ``<log_dir>/<run_name>/`` and models, checkpoints and
the run config to ``<model_dir>/<run_name>/``.
"""

from __future__ import annotations

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np

import gymnasium as gym

from quadhover.envs.hover_env import HoverEnv
from quadhover.params import QuadParams, SimConfig
from quadhover.rl.baselines import run_baseline, run_episode, summarize_episodes
from quadhover.rl.config import FullConfig, load_config_from_args, save_config
from quadhover.rl.wrappers import wrap_env

# Evaluation episodes use seeds disjoint from the training envs
EVAL_SEED_OFFSET = 1000


def make_env(
    rank: int,
    seed: int,
    sim_config: SimConfig,
    params: QuadParams | None = None,
    normalize_obs: bool = False,
    drop_time: bool = False,
) -> Callable[[], gym.Env]:
    """Return a thunk that builds a (wrapped) HoverEnv seeded ``seed + rank``."""

    def _init() -> gym.Env:
        env = HoverEnv(config=sim_config, params=params)
        env = wrap_env(env, drop_time=drop_time, normalize_obs=normalize_obs)
        env.reset(seed=seed + rank)
        return env

    return _init


def run_name(cfg: FullConfig) -> str:
    """Default run name encoding the action grid, spawn radius and seed."""
    sc = cfg.sim
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    obs_tag = ("n" if cfg.ppo.normalize_obs else "") + ("t" if cfg.ppo.drop_time else "")
    tag = f"_{obs_tag}" if obs_tag else ""
    return f"ppo_hover_ar{sc.action_range}_r{sc.initial_radius:g}{tag}_seed{cfg.run.seed}_{ts}"


def evaluate_model(model: Any, cfg: FullConfig, episodes: int) -> Dict[str, Any]:
    """Roll out ``model`` deterministically on the evaluation seeds.

    The env is built with the same observation wrappers used for training,
    so any object with an SB3-style ``predict(obs, deterministic=True)``
    works here.
    """
    env = make_env(
        0, cfg.run.seed + EVAL_SEED_OFFSET, cfg.sim, cfg.quad,
        normalize_obs=cfg.ppo.normalize_obs, drop_time=cfg.ppo.drop_time,
    )()

    def select_action(obs):
        action, _ = model.predict(obs, deterministic=True)
        return int(action)

    results = [
        run_episode(env, select_action, cfg.run.seed + EVAL_SEED_OFFSET + i)
        for i in range(episodes)
    ]
    env.close()
    return summarize_episodes(results)


def _best_eval_reward(log_path: Path) -> float | None:
    """Best mean return recorded by EvalCallback, if it ran."""
    eval_log = log_path / "evaluations.npz"
    if not eval_log.exists():
        return None
    data = np.load(str(eval_log))
    if "results" not in data or data["results"].size == 0:
        return None
    return float(np.max(data["results"].mean(axis=1)))


def train(cfg: FullConfig) -> Path:
    """Run PPO training and return the path to the saved model (``.zip``)."""
    # SB3 is an optional extra; the simulation and env do not need it
    try:
        from stable_baselines3 import PPO
        from stable_baselines3.common.callbacks import (
            CheckpointCallback,
            EvalCallback,
        )
        from stable_baselines3.common.vec_env import DummyVecEnv, VecMonitor
    except ImportError as exc:
        raise ImportError(
            "stable-baselines3 is required for training. Install with:\n"
            '  pip install -e ".[rl]"'
        ) from exc

    sc, pc, rc = cfg.sim, cfg.ppo, cfg.run
    if not rc.run_name:
        rc.run_name = run_name(cfg)

    log_path = Path(rc.log_dir) / rc.run_name
    model_path = Path(rc.model_dir) / rc.run_name
    log_path.mkdir(parents=True, exist_ok=True)
    model_path.mkdir(parents=True, exist_ok=True)
    save_config(cfg, model_path / "config.json")

    # Hover reference on the evaluation seeds
    reference = run_baseline(
        "hover", episodes=pc.n_eval_episodes, seed=rc.seed + EVAL_SEED_OFFSET,
        sim_config=sc, params=cfg.quad, results_dir=None, verbose=False,
    )

    env_kwargs = dict(normalize_obs=pc.normalize_obs, drop_time=pc.drop_time)
    train_envs = VecMonitor(DummyVecEnv(
        [make_env(i, rc.seed, sc, cfg.quad, **env_kwargs) for i in range(rc.num_envs)]
    ))
    eval_envs = VecMonitor(DummyVecEnv(
        [make_env(0, rc.seed + EVAL_SEED_OFFSET, sc, cfg.quad, **env_kwargs)]
    ))

    callbacks = [
        CheckpointCallback(
            save_freq=max(pc.checkpoint_freq // rc.num_envs, 1),
            save_path=str(model_path),
            name_prefix="checkpoint",
            verbose=rc.verbose,
        ),
        EvalCallback(
            eval_envs,
            best_model_save_path=str(model_path),
            log_path=str(log_path),
            eval_freq=max(pc.eval_freq // rc.num_envs, 1),
            n_eval_episodes=pc.n_eval_episodes,
            deterministic=True,
            verbose=rc.verbose,
        ),
    ]

    model = PPO(
        policy=pc.policy,
        env=train_envs,
        learning_rate=pc.learning_rate,
        n_steps=pc.n_steps,
        batch_size=pc.batch_size,
        n_epochs=pc.n_epochs,
        gamma=pc.gamma,
        gae_lambda=pc.gae_lambda,
        clip_range=pc.clip_range,
        ent_coef=pc.ent_coef,
        vf_coef=pc.vf_coef,
        max_grad_norm=pc.max_grad_norm,
        policy_kwargs=pc.policy_kwargs,
        tensorboard_log=str(log_path),
        seed=rc.seed,
        device=rc.device,
        verbose=rc.verbose,
    )

    if rc.verbose >= 1:
        print(f"\n{'=' * 60}")
        print(f"  PPO hover training: {rc.run_name}")
        print(f"{'=' * 60}")
        print(f"  Action set     : {sc.n_actions} ({sc.action_range} levels/motor)")
        print(f"  dt / horizon   : {sc.dt} s / {sc.sim_end} s ({sc.max_steps} steps)")
        print(f"  Reset          : radius={sc.initial_radius} m, "
              f"deviation={sc.initial_deviation} deg/s")
        print(f"  Observation    : normalize={pc.normalize_obs}, drop_time={pc.drop_time}")
        print(f"  Hover reference: R={reference['return_mean']:+.2f}, "
              f"survival={reference['survival_rate']:.0%}")
        print(f"  Envs x steps   : {rc.num_envs} x {pc.total_timesteps:,}")
        print(f"{'=' * 60}\n")

    t0 = time.monotonic()
    model.learn(total_timesteps=pc.total_timesteps, callback=callbacks, progress_bar=False)
    wall_time = time.monotonic() - t0

    final_model_path = model_path / "final_model"
    model.save(str(final_model_path))
    train_envs.close()
    eval_envs.close()

    final = evaluate_model(model, cfg, pc.n_eval_episodes)
    summary = {
        "run_name": rc.run_name,
        "seed": rc.seed,
        "total_timesteps": pc.total_timesteps,
        "wall_time_s": wall_time,
        "n_actions": sc.n_actions,
        "max_steps": sc.max_steps,
        "best_eval_reward": _best_eval_reward(log_path),
        "final": final,
        "hover_reference": {k: v for k, v in reference.items() if k != "per_episode"},
        "return_gain_over_hover": final["return_mean"] - reference["return_mean"],
        "final_model_path": str(final_model_path) + ".zip",
    }
    summary_path = model_path / "training_summary.json"
    with open(summary_path, "w") as f:
        json.dump(summary, f, indent=2)

    if rc.verbose >= 1:
        print(f"\n  Done in {wall_time:.1f} s")
        print(f"  Final model    : R={final['return_mean']:+.2f}, "
              f"survival={final['survival_rate']:.0%}, "
              f"diverged={final['divergence_rate']:.0%}")
        print(f"  vs hover       : {summary['return_gain_over_hover']:+.2f}")
        print(f"  Summary        : {summary_path}")

    return Path(summary["final_model_path"])


def main() -> None:
    cfg, _args = load_config_from_args(
        description="PPO training for HoverEnv",
        include_ppo=True,
    )
    train(cfg)


if __name__ == "__main__":
    main()
