from __future__ import annotations

from dataclasses import dataclass

from breakpointtd.core.engine import Engine
from breakpointtd.core.model.abilities import ABILITY_DEFS
from breakpointtd.core.model.config import DEFAULT_CONFIG, GameConfig
from breakpointtd.core.model.towers import list_tower_defs
from breakpointtd.core.rules.abilities import can_use_ability
from breakpointtd.core.rules.placement import (
    can_place_tower,
    can_upgrade_tower,
    can_upgrade_tower_range,
)


@dataclass(frozen=True, slots=True)
class Noop:
    pass


@dataclass(frozen=True, slots=True)
class Place:
    tower_type: int
    slot: int


@dataclass(frozen=True, slots=True)
class Upgrade:
    slot: int


@dataclass(frozen=True, slots=True)
class UpgradeRange:
    slot: int


@dataclass(frozen=True, slots=True)
class UseAbility:
    ability: int


Action = Noop | Place | Upgrade | UpgradeRange | UseAbility


@dataclass(frozen=True, slots=True)
class ActionOffsets:
    noop: int
    place: int
    upgrade: int
    upgrade_range: int
    ability: int


@dataclass(frozen=True, slots=True)
class ActionSpaceSpec:
    num_slots: int
    tower_kinds: tuple[str, ...]
    abilities: tuple[str, ...]
    offsets: ActionOffsets
    num_actions: int


def action_space_spec(num_slots: int) -> ActionSpaceSpec:
    tower_kinds = tuple(t.kind for t in list_tower_defs())
    abilities = tuple(ABILITY_DEFS)
    place = 1
    upgrade = place + len(tower_kinds) * num_slots
    upgrade_range = upgrade + num_slots
    ability = upgrade_range + num_slots
    return ActionSpaceSpec(
        num_slots=num_slots,
        tower_kinds=tower_kinds,
        abilities=abilities,
        offsets=ActionOffsets(
            noop=0,
            place=place,
            upgrade=upgrade,
            upgrade_range=upgrade_range,
            ability=ability,
        ),
        num_actions=ability + len(abilities),
    )


def flatten(action: Action, spec: ActionSpaceSpec) -> int:
    off = spec.offsets
    if isinstance(action, Noop):
        return off.noop
    if isinstance(action, Place):
        return off.place + action.tower_type * spec.num_slots + action.slot
    if isinstance(action, Upgrade):
        return off.upgrade + action.slot
    if isinstance(action, UpgradeRange):
        return off.upgrade_range + action.slot
    if isinstance(action, UseAbility):
        return off.ability + action.ability
    raise TypeError(f"Unsupported action {action!r}")


def unflatten(action_id: int, spec: ActionSpaceSpec) -> Action:
    idx = int(action_id)
    off = spec.offsets
    if idx < 0 or idx >= spec.num_actions:
        raise ValueError(f"action id {idx} outside [0, {spec.num_actions})")
    if idx == off.noop:
        return Noop()
    if idx < off.upgrade:
        rel = idx - off.place
        return Place(tower_type=rel // spec.num_slots, slot=rel % spec.num_slots)
    if idx < off.upgrade_range:
        return Upgrade(slot=idx - off.upgrade)
    if idx < off.ability:
        return UpgradeRange(slot=idx - off.upgrade_range)
    return UseAbility(ability=idx - off.ability)


def apply_action(engine: Engine, action: Action, spec: ActionSpaceSpec) -> bool:
    """Sends ``action`` to the engine. Returns False when it was rejected."""
    if isinstance(action, Noop):
        return True
    if isinstance(action, Place):
        kind = spec.tower_kinds[action.tower_type]
        return engine.act("PLACE_TOWER", {"slot": action.slot, "kind": kind})
    if isinstance(action, (Upgrade, UpgradeRange)):
        tower = engine.state.slots[action.slot].tower
        if tower is None:
            return False
        action_type = "UPGRADE_TOWER" if isinstance(action, Upgrade) else "UPGRADE_RANGE"
        return engine.act(action_type, {"tower_id": tower.id})
    if isinstance(action, UseAbility):
        return engine.act(spec.abilities[action.ability].upper())
    raise TypeError(f"Unsupported action {action!r}")


def compute_action_mask(state, spec: ActionSpaceSpec, *, config: GameConfig = DEFAULT_CONFIG) -> list[bool]:
    mask = [False] * spec.num_actions
    mask[spec.offsets.noop] = True
    for type_idx, kind in enumerate(spec.tower_kinds):
        for slot in range(spec.num_slots):
            mask[flatten(Place(type_idx, slot), spec)] = can_place_tower(state, slot, kind, config=config)
    for slot in range(spec.num_slots):
        tower = state.slots[slot].tower if slot < len(state.slots) else None
        mask[flatten(Upgrade(slot), spec)] = can_upgrade_tower(state, tower, config=config)
        mask[flatten(UpgradeRange(slot), spec)] = can_upgrade_tower_range(state, tower, config=config)
    for ability_idx, kind in enumerate(spec.abilities):
        mask[flatten(UseAbility(ability_idx), spec)] = can_use_ability(state, kind)
    return mask
