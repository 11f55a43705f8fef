from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RewardState:
    kills: int
    base_hp: int
    elapsed_ms: float


@dataclass(frozen=True, slots=True)
class RewardConfig:
    kill_weight: float = 1.0
    survival_per_second: float = 0.1
    base_damage_penalty: float = 1.0
    invalid_action_penalty: float = 0.0
    terminal_loss_penalty: float = 100.0


def reward_state_from(state) -> RewardState:
    return RewardState(
        kills=int(getattr(state, "kills", 0)),
        base_hp=int(getattr(state, "base_hp", 0)),
        elapsed_ms=float(getattr(state, "elapsed_ms", 0.0)),
    )


def compute_reward(
    prev_state: RewardState,
    new_state: RewardState,
    *,
    config: RewardConfig,
    invalid_action: bool = False,
    episode_done: bool = False,
) -> float:
    reward = 0.0
    reward += (new_state.kills - prev_state.kills) * config.kill_weight
    reward += (new_state.elapsed_ms - prev_state.elapsed_ms) / 1000.0 * config.survival_per_second
    reward -= max(0, prev_state.base_hp - new_state.base_hp) * config.base_damage_penalty
    if invalid_action:
        reward += config.invalid_action_penalty
    if episode_done:
        reward -= config.terminal_loss_penalty
    return float(reward)
