from __future__ import annotations

from pathlib import Path
import logging
from typing import Any

import gymnasium as gym
import numpy as np

from breakpointtd.core.engine import Engine
from breakpointtd.core.model.config import DEFAULT_CONFIG, GameConfig
from breakpointtd.core.model.map import default_map, load_map_json

from .actions import Action, action_space_spec, apply_action, compute_action_mask, unflatten
from .obs import build_observation, flatten_observation, observation_size
from .rewards import RewardConfig, compute_reward, reward_state_from


logger = logging.getLogger(__name__)


def _resolve_map_path(map_path: str) -> Path:
    p = Path(map_path)
    root = Path(__file__).resolve().parents[3]
    if p.suffix:
        return p if p.is_absolute() else root / p
    if p.parent == Path("."):
        return root / "data/maps" / f"{p.name}.json"
    return root / p.with_suffix(".json")


class BreakpointEnv(gym.Env):
    """
    Discrete-action environment over the engine.

    Each step applies one action and then runs ``frames_per_step`` fixed
    frames. The episode terminates at game over and truncates after
    ``max_steps`` steps.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        *,
        map_path: str | None = None,
        config: GameConfig = DEFAULT_CONFIG,
        frames_per_step: int = 30,
        max_steps: int = 5_000,
        reward_config: RewardConfig | None = None,
        strict_invalid_actions: bool = False,
    ) -> None:
        super().__init__()
        self.map_data = load_map_json(_resolve_map_path(map_path)) if map_path else default_map()
        self.config = config
        self.frames_per_step = max(1, int(frames_per_step))
        self.max_steps = int(max_steps)
        self.reward_config = reward_config or RewardConfig()
        self.strict_invalid_actions = strict_invalid_actions

        self.action_spec = action_space_spec(len(self.map_data.slot_progress))
        self.action_space = gym.spaces.Discrete(self.action_spec.num_actions)
        self.observation_space = gym.spaces.Box(
            low=-np.inf,
            high=np.inf,
            shape=(observation_size(self.action_spec),),
            dtype=np.float32,
        )

        self.engine: Engine | None = None
        self.episode_seed: int | None = None
        self._step_count = 0
        self._last_action_mask: np.ndarray | None = None

    def reset(self, *, seed: int | None = None, options: dict[str, Any] | None = None) -> tuple[np.ndarray, dict]:
        super().reset(seed=seed)
        engine_seed = int(self.np_random.integers(1, 2**31 - 1))
        self.engine = Engine(self.map_data, config=self.config, seed=engine_seed)
        self.episode_seed = engine_seed
        self._step_count = 0
        self._last_action_mask = self._compute_action_mask()
        logger.debug("reset map=%s engine_seed=%s", self.map_data.name, engine_seed)
        info = {"engine_seed": engine_seed, "action_mask": self._last_action_mask}
        return self._observation(), info

    def _observation(self) -> np.ndarray:
        obs_dict = build_observation(self.engine.state, self.action_spec, config=self.config)
        return np.asarray(flatten_observation(obs_dict), dtype=np.float32)

    def _compute_action_mask(self) -> np.ndarray:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        mask = compute_action_mask(self.engine.state, self.action_spec, config=self.config)
        return np.asarray(mask, dtype=bool)

    def action_masks(self) -> np.ndarray:
        if self._last_action_mask is None:
            self._last_action_mask = self._compute_action_mask()
        return self._last_action_mask

    def step(self, action: Action | int) -> tuple[np.ndarray, float, bool, bool, dict[str, Any]]:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        if isinstance(action, (int, np.integer)):
            action = unflatten(int(action), self.action_spec)

        prev = reward_state_from(self.engine.state)
        accepted = apply_action(self.engine, action, self.action_spec)
        if not accepted and self.strict_invalid_actions:
            raise ValueError(f"Invalid action: {action!r}")

        self.engine.advance_frames(self.frames_per_step)
        self._step_count += 1

        state = self.engine.state
        terminated = bool(state.game_over)
        truncated = not terminated and self._step_count >= self.max_steps
        reward = compute_reward(
            prev,
            reward_state_from(state),
            config=self.reward_config,
            invalid_action=not accepted,
            episode_done=terminated,
        )
        self._last_action_mask = self._compute_action_mask()
        info: dict[str, Any] = {
            "action_mask": self._last_action_mask,
            "invalid_action": not accepted,
            "wave": int(state.wave),
            "kills": int(state.kills),
            "base_hp": int(state.base_hp),
            "elapsed_ms": float(state.elapsed_ms),
        }
        if terminated:
            logger.info(
                "episode_done wave=%d kills=%d time=%.1fs",
                state.wave,
                state.kills,
                state.elapsed_ms / 1000.0,
            )
        return self._observation(), reward, terminated, truncated, info

    def render(self) -> None:
        return None
