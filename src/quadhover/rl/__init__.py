"""
Reinforcement-learning tooling for the hover Gymnasium environment.

Training requires the optional ``rl`` extras::

    pip install -e ".[rl]"

Submodules
----------
config      – Dataclass configs + argparse loaders
wrappers    – Lightweight Gym wrappers (drop time, normalise)
baselines   – Hover / random policy evaluation
train_ppo   – Stable-Baselines3 PPO training loop
"""
