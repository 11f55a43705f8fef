# src/breakpointtd/core/rules/abilities.py
from __future__ import annotations

import logging

from ..model.abilities import ABILITY_DEFS, get_ability_def
from .tower_attack import damage_enemy, kill_enemy


logger = logging.getLogger(__name__)


def cooldown_remaining(state, kind: str) -> float:
    """Milliseconds until ``kind`` can be used again, floored at zero."""
    ability = state.abilities[kind]
    since = state.elapsed_ms - ability.last_used_ms
    return max(0.0, get_ability_def(kind).cooldown_ms - since)


def can_use_ability(state, kind: str) -> bool:
    if kind not in ABILITY_DEFS:
        return False
    if getattr(state, "paused", False) or getattr(state, "game_over", False):
        return False
    if cooldown_remaining(state, kind) > 0.0:
        return False
    if kind == "freeze" and state.abilities["freeze"].active:
        return False
    return True


def use_bomb(state) -> bool:
    if not can_use_ability(state, "bomb"):
        return False
    ability_def = get_ability_def("bomb")
    targets = list(state.enemies)
    for enemy in targets:
        damage_enemy(state, enemy, ability_def.damage)
    killed = 0
    for enemy in targets:
        if enemy.hp <= 0 and kill_enemy(state, enemy):
            killed += 1
    state.abilities["bomb"].last_used_ms = state.elapsed_ms
    logger.debug("bomb hit=%s killed=%s", len(targets), killed)
    return True


def use_freeze(state) -> bool:
    if not can_use_ability(state, "freeze"):
        return False
    ability_def = get_ability_def("freeze")
    freeze = state.abilities["freeze"]
    freeze.last_used_ms = state.elapsed_ms
    freeze.active = True
    freeze.end_ms = state.elapsed_ms + ability_def.duration_ms
    return True


def use_airdrop(state) -> bool:
    if not can_use_ability(state, "airdrop"):
        return False
    bonus = get_ability_def("airdrop").bonus
    state.currency = int(state.currency) + bonus
    state.currency_earned = int(state.currency_earned) + bonus
    state.abilities["airdrop"].last_used_ms = state.elapsed_ms
    return True


def expire_effects(state) -> None:
    freeze = state.abilities.get("freeze")
    if freeze is not None and freeze.active and state.elapsed_ms >= freeze.end_ms:
        freeze.active = False
