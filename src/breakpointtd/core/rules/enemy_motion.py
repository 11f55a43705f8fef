# src/breakpointtd/core/rules/enemy_motion.py
from __future__ import annotations

import logging

from ..model.abilities import get_ability_def


logger = logging.getLogger(__name__)


def speed_multiplier(state) -> float:
    freeze = state.abilities.get("freeze")
    if freeze is not None and freeze.active:
        return get_ability_def("freeze").slow_factor
    return 1.0


def step_enemies(state, map_data, dt_ms: float) -> None:
    """
    Moves every enemy along the path.

    Progress is arc-length based, so speed is in pixels per second whatever
    the segment. Progress is clamped at 1.0 (the base); breaches are handled
    by resolve_breaches().
    """
    if getattr(state, "paused", False):
        return
    if getattr(state, "game_over", False):
        return

    enemies = getattr(state, "enemies", [])
    if not enemies:
        return

    path = map_data.path
    slow = speed_multiplier(state)
    dt = max(0.0, dt_ms)
    for enemy in enemies:
        enemy.progress = min(1.0, enemy.progress + path.progress_per_ms(enemy.speed * slow) * dt)
        enemy.x, enemy.y = path.position_at(enemy.progress)


def resolve_breaches(state) -> int:
    """
    Removes enemies that reached the base and applies their damage once.

    Returns the total base damage applied this call. Sets game_over on the
    same call that drops base HP to zero.
    """
    reached = [e for e in state.enemies if e.progress >= 1.0]
    if not reached:
        return 0

    state.enemies = [e for e in state.enemies if e.progress < 1.0]
    total = sum(int(e.damage) for e in reached)
    state.base_hp = max(0, state.base_hp - total)
    logger.debug("breach: %s enemies, -%s base hp (now %s)", len(reached), total, state.base_hp)

    if state.base_hp <= 0:
        state.game_over = True
        state.running = False
        logger.info(
            "game over at t=%.1fs wave=%s kills=%s",
            state.elapsed_ms / 1000.0,
            state.wave,
            state.kills,
        )
    return total
