# src/breakpointtd/core/engine.py
from __future__ import annotations

from functools import lru_cache
import logging
from typing import Any, Callable, Literal

from .model.config import DEFAULT_CONFIG, GameConfig
from .model.entities import TowerSlot
from .model.map import MapData, default_map
from .model.state import GameState
from .rng import seed_state
from .rules.abilities import (
    can_use_ability,
    cooldown_remaining,
    expire_effects,
    use_airdrop,
    use_bomb,
    use_freeze,
)
from .rules.enemy_motion import resolve_breaches, step_enemies
from .rules.placement import (
    can_place_tower,
    can_upgrade_tower,
    can_upgrade_tower_range,
    place_tower as _place_tower,
    upgrade_tower as _upgrade_tower,
    upgrade_tower_range as _upgrade_tower_range,
)
from .rules.time_marker import advance_marker, lock_passed_slots
from .rules.tower_attack import step_towers
from .rules.wave_spawner import plan_wave, step_waves
from .snapshot import Snapshot, build_snapshot


logger = logging.getLogger(__name__)

ActionType = Literal[
    "PLACE_TOWER",
    "UPGRADE_TOWER",
    "UPGRADE_RANGE",
    "BOMB",
    "FREEZE",
    "AIRDROP",
    "PAUSE_TOGGLE",
    "SET_PAUSED",
    "SET_SPEED",
]

__all__ = [
    "Engine",
    "airdrop",
    "bomb",
    "can_place_tower",
    "can_upgrade_tower",
    "can_upgrade_tower_range",
    "can_use_ability",
    "cooldown_remaining",
    "freeze",
    "initialize",
    "place_tower",
    "set_game_speed",
    "set_paused",
    "tick",
    "upgrade_tower",
    "upgrade_tower_range",
]


@lru_cache(maxsize=1)
def _shared_default_map() -> MapData:
    return default_map()


def _resolve_map(map_data: MapData | None) -> MapData:
    return map_data if map_data is not None else _shared_default_map()


# =============================================================================
# Pure command surface: (state, command) -> new state.
# A rejected command returns the input object itself.
# =============================================================================


def initialize(
    map_data: MapData | None = None,
    *,
    config: GameConfig = DEFAULT_CONFIG,
    seed: int | None = None,
) -> GameState:
    map_data = _resolve_map(map_data)
    state = GameState(
        currency=int(config.starting_currency),
        base_hp=int(config.starting_base_hp),
        max_base_hp=int(config.starting_base_hp),
        spawn_interval_ms=float(config.initial_spawn_interval_ms),
    )
    seed_state(state, seed)
    for index, progress in enumerate(map_data.slot_progress):
        x, y = map_data.slot_position(index)
        state.slots.append(TowerSlot(index=index, x=float(x), y=float(y), progress=float(progress)))
    state.spawn_queue = plan_wave(state, 0)
    return state


def tick(
    state: GameState,
    dt_ms: float,
    map_data: MapData | None = None,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> GameState:
    """
    Advances the simulation by ``dt_ms`` of game time.

    Order: time -> effect expiry -> time marker and slot locks -> waves ->
    enemy motion -> base breaches / game over -> towers and projectiles.
    Enemies that reach the base this tick hit it before any tower can shoot them.
    """
    if not state.running or state.paused or state.game_over:
        return state
    if dt_ms <= 0:
        return state

    map_data = _resolve_map(map_data)
    new = state.clone()
    new.elapsed_ms += float(dt_ms)

    expire_effects(new)
    advance_marker(new, dt_ms, config=config)
    lock_passed_slots(new)
    step_waves(new, map_data, dt_ms, config=config)
    step_enemies(new, map_data, dt_ms)
    resolve_breaches(new)
    if new.game_over:
        return new
    step_towers(new, map_data, dt_ms, config=config)
    return new


def place_tower(
    state: GameState,
    slot_index: int,
    tower_kind: str,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> GameState:
    if not can_place_tower(state, slot_index, tower_kind, config=config):
        logger.debug("place_tower rejected slot=%s kind=%s", slot_index, tower_kind)
        return state
    new = state.clone()
    _place_tower(new, slot_index, tower_kind, config=config)
    return new


def upgrade_tower(state: GameState, tower_id: int, *, config: GameConfig = DEFAULT_CONFIG) -> GameState:
    if not can_upgrade_tower(state, state.find_tower(tower_id), config=config):
        logger.debug("upgrade_tower rejected tower=%s", tower_id)
        return state
    new = state.clone()
    _upgrade_tower(new, new.find_tower(tower_id), config=config)
    return new


def upgrade_tower_range(state: GameState, tower_id: int, *, config: GameConfig = DEFAULT_CONFIG) -> GameState:
    if not can_upgrade_tower_range(state, state.find_tower(tower_id), config=config):
        logger.debug("upgrade_tower_range rejected tower=%s", tower_id)
        return state
    new = state.clone()
    _upgrade_tower_range(new, new.find_tower(tower_id), config=config)
    return new


def _use_ability(state: GameState, kind: str, apply: Callable[[GameState], bool]) -> GameState:
    if not can_use_ability(state, kind):
        logger.debug("%s rejected (cooldown %.0fms)", kind, cooldown_remaining(state, kind))
        return state
    new = state.clone()
    apply(new)
    return new


def bomb(state: GameState) -> GameState:
    return _use_ability(state, "bomb", use_bomb)


def freeze(state: GameState) -> GameState:
    return _use_ability(state, "freeze", use_freeze)


def airdrop(state: GameState) -> GameState:
    return _use_ability(state, "airdrop", use_airdrop)


def set_paused(state: GameState, paused: bool) -> GameState:
    if state.game_over or state.paused == bool(paused):
        return state
    new = state.clone()
    new.paused = bool(paused)
    return new


def set_game_speed(state: GameState, speed: int, *, config: GameConfig = DEFAULT_CONFIG) -> GameState:
    if state.game_over or speed not in config.game_speeds or state.game_speed == speed:
        return state
    new = state.clone()
    new.game_speed = int(speed)
    return new


# =============================================================================
# Host wrapper: fixed-step loop over the pure functions.
# =============================================================================


class Engine:
    """
    Deterministic engine host, no GUI dependency.

    step() accumulates real time (scaled by the game speed) and runs fixed
    frames of config.frame_ms. Anything beyond max_catchup_frames frames is
    dropped so a stall never turns into an unbounded catch-up.
    """

    def __init__(
        self,
        map_data: MapData | None = None,
        *,
        config: GameConfig = DEFAULT_CONFIG,
        seed: int | None = None,
        on_game_over: Callable[[Snapshot], None] | None = None,
    ):
        self.map = _resolve_map(map_data)
        self.config = config
        self.seed = seed
        self.on_game_over = on_game_over
        self.state = initialize(self.map, config=self.config, seed=seed)
        self._accum = 0.0
        self._game_over_reported = False

    @property
    def frame_ms(self) -> float:
        return float(self.config.frame_ms)

    def reset(self, seed: int | None = None) -> None:
        if seed is not None:
            self.seed = seed
        self.state = initialize(self.map, config=self.config, seed=self.seed)
        self._accum = 0.0
        self._game_over_reported = False

    def act(self, action_type: ActionType, payload: dict[str, Any] | None = None) -> bool:
        """Applies one command. Returns True when the state changed."""
        before = self.state
        payload = payload or {}
        cfg = self.config

        if action_type == "PAUSE_TOGGLE":
            self.state = set_paused(self.state, not self.state.paused)
        elif action_type == "SET_PAUSED":
            self.state = set_paused(self.state, bool(payload.get("paused", True)))
        elif action_type == "SET_SPEED":
            self.state = set_game_speed(self.state, int(payload.get("speed", 1)), config=cfg)
        elif action_type == "PLACE_TOWER":
            slot = payload.get("slot")
            kind = payload.get("kind")
            if slot is not None and kind is not None:
                self.state = place_tower(self.state, int(slot), str(kind), config=cfg)
        elif action_type == "UPGRADE_TOWER":
            tower_id = payload.get("tower_id")
            if tower_id is not None:
                self.state = upgrade_tower(self.state, int(tower_id), config=cfg)
        elif action_type == "UPGRADE_RANGE":
            tower_id = payload.get("tower_id")
            if tower_id is not None:
                self.state = upgrade_tower_range(self.state, int(tower_id), config=cfg)
        elif action_type == "BOMB":
            self.state = bomb(self.state)
        elif action_type == "FREEZE":
            self.state = freeze(self.state)
        elif action_type == "AIRDROP":
            self.state = airdrop(self.state)
        else:
            raise ValueError(f"Unknown action_type={action_type!r}")

        return self.state is not before

    def advance_frames(self, frames: int) -> str | None:
        """Runs ``frames`` fixed ticks directly, ignoring game speed."""
        for _ in range(max(0, int(frames))):
            if self.state.paused or self.state.game_over:
                break
            self.state = tick(self.state, self.frame_ms, self.map, config=self.config)
        return self._check_game_over()

    def step(self, real_dt_ms: float) -> str | None:
        if self.state.game_over:
            return self._check_game_over()
        if self.state.paused:
            return None

        speed = max(1, int(self.state.game_speed))
        limit = self.frame_ms * self.config.max_catchup_frames * speed
        self._accum = min(limit, self._accum + max(0.0, real_dt_ms) * speed)
        while self._accum >= self.frame_ms:
            self._accum -= self.frame_ms
            self.state = tick(self.state, self.frame_ms, self.map, config=self.config)
            if self.state.game_over:
                self._accum = 0.0
                break
        return self._check_game_over()

    def _check_game_over(self) -> str | None:
        if not self.state.game_over:
            return None
        if not self._game_over_reported:
            self._game_over_reported = True
            if self.on_game_over is not None:
                self.on_game_over(self.snapshot())
        return "game over"

    def snapshot(self) -> Snapshot:
        return build_snapshot(self.state, self.map)

    def observe(self) -> dict[str, Any]:
        return self.snapshot().to_dict()
