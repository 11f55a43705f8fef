# src/breakpointtd/core/rules/tower_attack.py
from __future__ import annotations

import math

from ..model.config import DEFAULT_CONFIG, GameConfig
from ..model.entities import Enemy, Projectile, Tower
from ..model.towers import TowerDef, get_tower_def
from .path_geometry import distance_sq


def step_towers(
    state,
    map_data,
    dt_ms: float,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> list[Projectile]:
    """
    Tick projectiles -> towers -> target -> fire.

    Projectiles already in flight resolve first; shots fired this tick start
    travelling on the next one. Returns the projectiles fired this tick.
    """
    if getattr(state, "paused", False):
        return []
    if getattr(state, "game_over", False):
        return []

    _step_projectiles(state, dt_ms, config)

    fired: list[Projectile] = []
    for tower in state.towers:
        tower_def = get_tower_def(tower.kind)
        if state.elapsed_ms - tower.last_fired_ms < tower_def.cooldown_ms(tower.level):
            continue

        target = select_target(tower, state.enemies, tower_def)
        if target is None:
            # Nothing in range: hold fire, cooldown keeps its reference point.
            tower.target_id = None
            continue
        tower.target_id = target.id
        fired.append(_fire_tower(state, tower, target, tower_def, config))
    return fired


def tower_range(tower: Tower, tower_def: TowerDef | None = None) -> float:
    tower_def = tower_def or get_tower_def(tower.kind)
    return tower_def.range_at(tower.range_level)


def enemies_in_range(tower: Tower, enemies: list[Enemy], tower_def: TowerDef | None = None) -> list[Enemy]:
    range_sq = tower_range(tower, tower_def) ** 2
    return [
        enemy
        for enemy in enemies
        if enemy.hp > 0 and distance_sq(tower.x, tower.y, enemy.x, enemy.y) <= range_sq
    ]


def select_target(tower: Tower, enemies: list[Enemy], tower_def: TowerDef | None = None) -> Enemy | None:
    """
    Picks a target among enemies in range using the archetype's mode.

    Every mode falls back to the enemy nearest the base (highest progress),
    then to the oldest enemy (lowest id).
    """
    tower_def = tower_def or get_tower_def(tower.kind)
    candidates = enemies_in_range(tower, enemies, tower_def)
    if not candidates:
        return None

    mode = tower_def.target_mode
    if mode == "closest":
        return min(
            candidates,
            key=lambda e: (distance_sq(tower.x, tower.y, e.x, e.y), -e.progress, e.id),
        )
    if mode == "strongest":
        return max(candidates, key=lambda e: (e.hp, e.progress, -e.id))
    return max(candidates, key=lambda e: (e.progress, -e.id))


def _fire_tower(
    state,
    tower: Tower,
    target: Enemy,
    tower_def: TowerDef,
    config: GameConfig,
) -> Projectile:
    tower.last_fired_ms = state.elapsed_ms
    projectile = Projectile(
        id=state.allocate_id(),
        tower_id=tower.id,
        tower_kind=tower.kind,
        x=float(tower.x),
        y=float(tower.y),
        target_id=target.id,
        target_x=float(target.x),
        target_y=float(target.y),
        speed=float(config.projectile_speed),
        damage=float(tower_def.damage_at(tower.level)),
    )
    state.projectiles.append(projectile)
    return projectile


def _step_projectiles(state, dt_ms: float, config: GameConfig) -> None:
    projectiles = getattr(state, "projectiles", [])
    if not projectiles:
        return

    by_id = {enemy.id: enemy for enemy in state.enemies}
    keep: list[Projectile] = []
    for projectile in projectiles:
        target = by_id.get(projectile.target_id)
        if target is None or target.hp <= 0:
            # Target gone before impact: the shot is wasted, never redirected.
            continue

        # Homing: track the target's current position.
        projectile.target_x = float(target.x)
        projectile.target_y = float(target.y)
        if _projectile_hits_target(projectile, dt_ms, config.projectile_hit_radius):
            _resolve_impact(state, projectile, target)
            continue
        keep.append(projectile)

    state.projectiles = keep


def _projectile_hits_target(projectile: Projectile, dt_ms: float, hit_radius: float) -> bool:
    dx = projectile.target_x - projectile.x
    dy = projectile.target_y - projectile.y
    dist = math.hypot(dx, dy)
    if dist <= hit_radius:
        return True
    step = projectile.speed * max(0.0, dt_ms) / 1000.0
    if step <= 0.0:
        return False
    if dist <= step:
        projectile.x = projectile.target_x
        projectile.y = projectile.target_y
        return True
    projectile.x += (dx / dist) * step
    projectile.y += (dy / dist) * step
    return math.hypot(projectile.target_x - projectile.x, projectile.target_y - projectile.y) <= hit_radius


def _resolve_impact(state, projectile: Projectile, target: Enemy) -> None:
    tower_def = get_tower_def(projectile.tower_kind)
    impact_x = float(target.x)
    impact_y = float(target.y)

    hits: list[Enemy] = [target]
    damage_enemy(state, target, projectile.damage)

    if tower_def.special == "chain" and tower_def.chain_count > 0:
        hits.extend(
            _apply_chain(state, target, projectile.damage * tower_def.chain_damage_factor, tower_def)
        )
    elif tower_def.special == "splash" and tower_def.splash_radius > 0:
        hits.extend(
            _apply_splash(
                state,
                target,
                impact_x,
                impact_y,
                projectile.damage * tower_def.splash_damage_factor,
                tower_def.splash_radius,
            )
        )

    for enemy in hits:
        if enemy.hp <= 0:
            kill_enemy(state, enemy)


def _apply_chain(state, origin: Enemy, damage: float, tower_def: TowerDef) -> list[Enemy]:
    radius_sq = tower_def.chain_radius * tower_def.chain_radius
    hit_ids: set[int] = {origin.id}
    last_x = float(origin.x)
    last_y = float(origin.y)
    hits: list[Enemy] = []
    for _ in range(tower_def.chain_count):
        nearest: Enemy | None = None
        nearest_sq = radius_sq
        for enemy in state.enemies:
            if enemy.id in hit_ids or enemy.hp <= 0:
                continue
            d_sq = distance_sq(last_x, last_y, enemy.x, enemy.y)
            if d_sq <= nearest_sq:
                nearest_sq = d_sq
                nearest = enemy
        if nearest is None:
            break
        damage_enemy(state, nearest, damage)
        hit_ids.add(nearest.id)
        hits.append(nearest)
        last_x = float(nearest.x)
        last_y = float(nearest.y)
    return hits


def _apply_splash(
    state,
    origin: Enemy,
    center_x: float,
    center_y: float,
    damage: float,
    radius: float,
) -> list[Enemy]:
    radius_sq = radius * radius
    hits: list[Enemy] = []
    for enemy in state.enemies:
        if enemy.id == origin.id or enemy.hp <= 0:
            continue
        if distance_sq(center_x, center_y, enemy.x, enemy.y) <= radius_sq:
            damage_enemy(state, enemy, damage)
            hits.append(enemy)
    return hits


def damage_enemy(state, enemy: Enemy, amount: float) -> None:
    """Applies damage without removing the enemy; see kill_enemy()."""
    if amount <= 0 or enemy.hp <= 0:
        return
    applied = min(float(amount), float(enemy.hp))
    enemy.hp -= float(amount)
    state.damage_dealt += applied


def kill_enemy(state, enemy: Enemy) -> bool:
    enemies = getattr(state, "enemies", [])
    try:
        enemies.remove(enemy)
    except ValueError:
        return False
    state.kills += 1
    state.currency += int(enemy.reward)
    state.currency_earned += int(enemy.reward)
    return True
