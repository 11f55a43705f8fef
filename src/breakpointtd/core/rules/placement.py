from __future__ import annotations

from ..model.config import DEFAULT_CONFIG, GameConfig
from ..model.entities import Tower
from ..model.towers import TOWER_DEFS, get_tower_def


def can_place_tower(
    state,
    slot_index: int,
    tower_kind: str,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> bool:
    if getattr(state, "game_over", False):
        return False
    if tower_kind not in TOWER_DEFS:
        return False
    slots = getattr(state, "slots", [])
    if not isinstance(slot_index, int) or slot_index < 0 or slot_index >= len(slots):
        return False
    slot = slots[slot_index]
    if slot.locked or slot.tower is not None:
        return False
    if len(state.towers) >= config.max_towers:
        return False
    return int(state.currency) >= get_tower_def(tower_kind).cost


def place_tower(
    state,
    slot_index: int,
    tower_kind: str,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> Tower | None:
    if not can_place_tower(state, slot_index, tower_kind, config=config):
        return None
    tower_def = get_tower_def(tower_kind)
    slot = state.slots[slot_index]
    state.currency = int(state.currency) - tower_def.cost
    tower = Tower(
        id=state.allocate_id(),
        kind=tower_def.kind,
        x=float(slot.x),
        y=float(slot.y),
        slot_index=slot.index,
        level=1,
        range_level=1,
        # First shot comes one full cooldown after placement.
        last_fired_ms=float(state.elapsed_ms),
        target_id=None,
    )
    slot.tower = tower
    return tower


def damage_upgrade_cost(tower: Tower, *, config: GameConfig = DEFAULT_CONFIG) -> int | None:
    if tower.level >= config.max_tower_level:
        return None
    return get_tower_def(tower.kind).upgrade_cost_at(tower.level)


def range_upgrade_cost(tower: Tower, *, config: GameConfig = DEFAULT_CONFIG) -> int | None:
    if tower.range_level >= config.max_range_level:
        return None
    return get_tower_def(tower.kind).range_upgrade_cost_at(tower.range_level)


def can_upgrade_tower(state, tower: Tower | None, *, config: GameConfig = DEFAULT_CONFIG) -> bool:
    if tower is None or getattr(state, "game_over", False):
        return False
    cost = damage_upgrade_cost(tower, config=config)
    return cost is not None and int(state.currency) >= cost


def can_upgrade_tower_range(state, tower: Tower | None, *, config: GameConfig = DEFAULT_CONFIG) -> bool:
    if tower is None or getattr(state, "game_over", False):
        return False
    cost = range_upgrade_cost(tower, config=config)
    return cost is not None and int(state.currency) >= cost


def upgrade_tower(state, tower: Tower | None, *, config: GameConfig = DEFAULT_CONFIG) -> bool:
    if not can_upgrade_tower(state, tower, config=config):
        return False
    cost = damage_upgrade_cost(tower, config=config)
    tower.level += 1
    state.currency = int(state.currency) - int(cost)
    return True


def upgrade_tower_range(state, tower: Tower | None, *, config: GameConfig = DEFAULT_CONFIG) -> bool:
    if not can_upgrade_tower_range(state, tower, config=config):
        return False
    cost = range_upgrade_cost(tower, config=config)
    tower.range_level += 1
    state.currency = int(state.currency) - int(cost)
    return True
