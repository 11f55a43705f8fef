from __future__ import annotations

from typing import Any
import math

from breakpointtd.core.model.abilities import get_ability_def
from breakpointtd.core.model.config import DEFAULT_CONFIG, GameConfig
from breakpointtd.core.rules.abilities import cooldown_remaining

from .actions import ActionSpaceSpec


CURRENCY_SCALE = 2_000.0
ENEMY_HP_SCALE = 5_000.0
MAX_WAVE = 40
MAX_ENEMIES = 60

SCALAR_KEYS = (
    "currency_norm",
    "base_hp_norm",
    "wave_norm",
    "marker_progress",
    "enemy_count_norm",
    "lead_enemy_progress",
    "enemy_hp_norm",
    "tower_count_norm",
    "freeze_active",
)


def _log_norm(value: int | float, scale: float) -> float:
    if scale <= 0:
        return 0.0
    return min(1.0, math.log1p(max(0.0, float(value))) / math.log1p(scale))


def slot_feature_names(spec: ActionSpaceSpec) -> list[str]:
    features = ["progress", "locked", "has_tower"]
    features.extend(f"kind_{kind}" for kind in spec.tower_kinds)
    features.extend(["level_norm", "range_level_norm"])
    return features


def build_observation(
    state,
    spec: ActionSpaceSpec,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    enemies = list(getattr(state, "enemies", []))
    max_hp = max(1, int(getattr(state, "max_base_hp", 1)))
    max_towers = max(1, int(config.max_towers))

    obs: dict[str, Any] = {
        "currency_norm": _log_norm(state.currency, CURRENCY_SCALE),
        "base_hp_norm": float(state.base_hp) / max_hp,
        "wave_norm": min(1.0, float(state.wave) / MAX_WAVE),
        "marker_progress": float(state.marker_progress),
        "enemy_count_norm": min(1.0, len(enemies) / MAX_ENEMIES),
        "lead_enemy_progress": max((float(e.progress) for e in enemies), default=0.0),
        "enemy_hp_norm": _log_norm(sum(float(e.hp) for e in enemies), ENEMY_HP_SCALE),
        "tower_count_norm": min(1.0, len(state.towers) / max_towers),
        "freeze_active": 1.0 if state.abilities["freeze"].active else 0.0,
    }
    obs["cooldowns"] = [
        min(1.0, cooldown_remaining(state, kind) / max(1.0, get_ability_def(kind).cooldown_ms))
        for kind in spec.abilities
    ]

    kind_to_idx = {kind: idx for idx, kind in enumerate(spec.tower_kinds)}
    slots: list[list[float]] = []
    for slot_idx in range(spec.num_slots):
        slot = state.slots[slot_idx] if slot_idx < len(state.slots) else None
        if slot is None:
            slots.append([0.0] * len(slot_feature_names(spec)))
            continue
        tower = slot.tower
        kind_onehot = [0.0] * len(spec.tower_kinds)
        level_norm = 0.0
        range_level_norm = 0.0
        if tower is not None:
            kind_idx = kind_to_idx.get(tower.kind, -1)
            if kind_idx >= 0:
                kind_onehot[kind_idx] = 1.0
            level_norm = float(tower.level) / max(1, config.max_tower_level)
            range_level_norm = float(tower.range_level) / max(1, config.max_range_level)
        slots.append(
            [
                float(slot.progress),
                1.0 if slot.locked else 0.0,
                1.0 if tower is not None else 0.0,
                *kind_onehot,
                level_norm,
                range_level_norm,
            ]
        )
    obs["slots"] = slots
    return obs


def observation_size(spec: ActionSpaceSpec) -> int:
    return len(SCALAR_KEYS) + len(spec.abilities) + spec.num_slots * len(slot_feature_names(spec))


def flatten_observation(obs: dict[str, Any]) -> list[float]:
    values: list[float] = [float(obs.get(key, 0.0) or 0.0) for key in SCALAR_KEYS]
    values.extend(float(v) for v in obs.get("cooldowns", []))
    for slot in obs.get("slots", []):
        values.extend(float(v) for v in slot)
    return values
