# src/breakpointtd/core/rules/time_marker.py
from __future__ import annotations

import logging

from ..model.config import DEFAULT_CONFIG, GameConfig


logger = logging.getLogger(__name__)


def advance_marker(state, dt_ms: float, *, config: GameConfig = DEFAULT_CONFIG) -> None:
    """
    Moves the placement deadline forward along the path.

    The marker only ever moves forward and stops at the base (1.0).
    """
    if getattr(state, "paused", False):
        return
    if getattr(state, "game_over", False):
        return
    step = config.time_marker_speed * max(0.0, dt_ms) / 1000.0
    state.marker_progress = min(1.0, state.marker_progress + step)


def lock_passed_slots(state) -> list[int]:
    """Locks every slot the marker has reached. Locks are never lifted."""
    newly_locked: list[int] = []
    for slot in state.slots:
        if slot.locked:
            continue
        if state.marker_progress >= slot.progress:
            slot.locked = True
            newly_locked.append(slot.index)
    if newly_locked:
        logger.debug("marker=%.3f locked slots %s", state.marker_progress, newly_locked)
    return newly_locked


def marker_position(state, map_data) -> tuple[float, float]:
    return map_data.path.position_at(state.marker_progress)
