# src/breakpointtd/core/rules/wave_spawner.py
from __future__ import annotations

import logging
import math

from ..model.config import DEFAULT_CONFIG, GameConfig
from ..model.enemies import ENEMY_DEFS, MINIBOSS_KIND, get_enemy_def
from ..model.entities import Enemy
from ..rng import shuffle


logger = logging.getLogger(__name__)

# Composition per wave index. Past the end, wave_composition() extrapolates.
WAVES: list[dict[str, int]] = [
    {"fud": 6},
    {"fud": 8},
    {"fud": 8, "rugpull": 1},
    {"fud": 9, "rugpull": 2},
    {"fud": 10, "rugpull": 3},
    {"fud": 10, "rugpull": 4},
    {"fud": 11, "rugpull": 4},
    {"fud": 11, "rugpull": 5},
    {"fud": 12, "rugpull": 6},
    {"fud": 12, "rugpull": 7},
]

EXTRA_SPAWNS_PER_WAVE = 2
MAX_SPAWNS_PER_WAVE = 36
TANK_WEIGHT_PER_WAVE = 3


def wave_composition(wave: int) -> dict[str, int]:
    if wave < 0:
        raise ValueError(f"wave index must be >= 0, got {wave}")
    if wave < len(WAVES):
        return dict(WAVES[wave])

    last = WAVES[-1]
    extra = wave - (len(WAVES) - 1)
    total = min(MAX_SPAWNS_PER_WAVE, sum(last.values()) + EXTRA_SPAWNS_PER_WAVE * extra)

    # Tanks gain weight every wave.
    swarm_weight = ENEMY_DEFS["fud"].spawn_weight
    tank_weight = ENEMY_DEFS["rugpull"].spawn_weight + TANK_WEIGHT_PER_WAVE * wave
    tanks = int(round(total * tank_weight / (swarm_weight + tank_weight)))
    return {"fud": total - tanks, "rugpull": tanks}


def plan_wave(state, wave: int) -> list[str]:
    kinds: list[str] = []
    for kind, count in wave_composition(wave).items():
        kinds.extend([kind] * int(count))
    shuffle(state, kinds)
    return kinds


def step_waves(state, map_data, dt_ms: float, *, config: GameConfig = DEFAULT_CONFIG) -> list[Enemy]:
    """
    Advances the wave clock by one tick and spawns what is due.

    - wave index advances once per wave_duration_ms boundary crossed
    - regular spawns pop the planned queue every spawn_interval_ms, then idle
    - a miniboss is forced every miniboss_interval_ms regardless of waves
    """
    if getattr(state, "paused", False):
        return []
    if getattr(state, "game_over", False):
        return []

    spawned: list[Enemy] = []

    while state.elapsed_ms - state.wave_started_ms >= config.wave_duration_ms:
        start_next_wave(state, config=config)

    if state.spawn_queue:
        state.spawn_timer_ms += max(0.0, dt_ms)
        while state.spawn_queue and state.spawn_timer_ms >= state.spawn_interval_ms:
            state.spawn_timer_ms -= state.spawn_interval_ms
            kind = state.spawn_queue.pop(0)
            spawned.append(spawn_enemy(state, map_data, kind, config=config))
    if not state.spawn_queue:
        # Idle until the boundary; the next wave starts its cadence from zero.
        state.spawn_timer_ms = 0.0

    if state.elapsed_ms - state.last_miniboss_ms >= config.miniboss_interval_ms:
        state.last_miniboss_ms = state.elapsed_ms
        spawned.append(spawn_enemy(state, map_data, MINIBOSS_KIND, config=config))
        logger.info("miniboss spawned at t=%.1fs wave=%s", state.elapsed_ms / 1000.0, state.wave)

    return spawned


def start_next_wave(state, *, config: GameConfig = DEFAULT_CONFIG) -> None:
    state.wave += 1
    state.wave_started_ms += config.wave_duration_ms
    state.spawn_interval_ms = max(
        config.min_spawn_interval_ms,
        state.spawn_interval_ms * config.spawn_interval_decay,
    )
    # Anything not yet spawned carries over ahead of the new wave.
    state.spawn_queue = list(state.spawn_queue) + plan_wave(state, state.wave)
    logger.info(
        "wave=%s queued=%s interval=%.0fms",
        state.wave,
        len(state.spawn_queue),
        state.spawn_interval_ms,
    )


def spawn_enemy(state, map_data, kind: str, *, config: GameConfig = DEFAULT_CONFIG) -> Enemy:
    enemy_def = get_enemy_def(kind)
    wave = int(getattr(state, "wave", 0))
    hp = float(math.floor(enemy_def.hp * config.hp_scale_per_wave ** wave))
    speed = enemy_def.speed * config.speed_scale_per_wave ** wave * config.enemy_speed_multiplier
    x, y = map_data.path.position_at(0.0)

    enemy = Enemy(
        id=state.allocate_id(),
        kind=enemy_def.kind,
        x=float(x),
        y=float(y),
        progress=0.0,
        hp=hp,
        max_hp=hp,
        speed=float(speed),
        reward=int(enemy_def.reward),
        damage=int(enemy_def.damage),
        size=float(enemy_def.size),
    )
    state.enemies.append(enemy)
    return enemy
