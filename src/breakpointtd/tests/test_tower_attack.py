from dataclasses import replace
from types import SimpleNamespace
import math

import pytest

from breakpointtd.core import engine
from breakpointtd.core.model.entities import Enemy, Projectile, Tower
from breakpointtd.core.model.map import default_map
from breakpointtd.core.model.state import GameState
from breakpointtd.core.model.towers import get_tower_def
from breakpointtd.core.rules.tower_attack import select_target, step_towers


def _make_map():
    return SimpleNamespace(width=1000, height=600)


def _make_enemy(
    state: GameState,
    *,
    x: float,
    y: float,
    progress: float = 0.5,
    hp: float = 100.0,
    reward: int = 10,
) -> Enemy:
    enemy = Enemy(
        id=state.allocate_id(),
        kind="fud",
        x=float(x),
        y=float(y),
        progress=float(progress),
        hp=float(hp),
        max_hp=float(hp),
        speed=0.0,
        reward=reward,
        damage=5,
        size=14.0,
    )
    state.enemies.append(enemy)
    return enemy


def _projectile_on(state: GameState, target: Enemy, *, kind: str, damage: float) -> Projectile:
    projectile = Projectile(
        id=state.allocate_id(),
        tower_id=0,
        tower_kind=kind,
        x=target.x,
        y=target.y,
        target_id=target.id,
        target_x=target.x,
        target_y=target.y,
        speed=400.0,
        damage=damage,
    )
    state.projectiles.append(projectile)
    return projectile


def _tower(kind: str = "validator") -> Tower:
    return Tower(id=1, kind=kind, x=0.0, y=0.0, slot_index=0)


def test_first_mode_prefers_enemy_nearest_the_base() -> None:
    state = GameState()
    behind = _make_enemy(state, x=10, y=0, progress=0.3)
    ahead = _make_enemy(state, x=20, y=0, progress=0.5)
    _make_enemy(state, x=500, y=0, progress=0.9)  # out of range

    target = select_target(_tower(), state.enemies)
    assert target is ahead
    assert target is not behind


def test_equal_progress_breaks_ties_on_lowest_id() -> None:
    state = GameState()
    older = _make_enemy(state, x=30, y=0, progress=0.4)
    _make_enemy(state, x=10, y=0, progress=0.4)
    assert select_target(_tower(), state.enemies) is older


def test_strongest_mode_prefers_highest_hp() -> None:
    state = GameState()
    _make_enemy(state, x=10, y=0, progress=0.6, hp=50)
    tank = _make_enemy(state, x=20, y=0, progress=0.2, hp=300)
    assert select_target(_tower("tensor"), state.enemies) is tank


def test_closest_mode_prefers_nearest_enemy() -> None:
    state = GameState()
    near = _make_enemy(state, x=15, y=0, progress=0.1)
    _make_enemy(state, x=90, y=0, progress=0.9)
    closest_def = replace(get_tower_def("validator"), target_mode="closest")
    assert select_target(_tower(), state.enemies, closest_def) is near


def test_no_target_outside_range() -> None:
    state = GameState()
    _make_enemy(state, x=121, y=0)
    assert select_target(_tower(), state.enemies) is None


def test_fire_count_is_bounded_by_rate_and_elapsed_time() -> None:
    m = default_map()
    state = engine.place_tower(engine.initialize(m), 0, "validator")
    slot = state.slots[0]
    x, y = m.path.position_at(slot.progress)
    _make_enemy(state, x=x, y=y, progress=slot.progress, hp=1e9)

    dt = 1000.0 / 60.0
    fired = 0
    for _ in range(180):
        state.elapsed_ms += dt
        fired += len(step_towers(state, m, dt))

    rate = get_tower_def("validator").fire_rate_at(1)
    assert fired <= math.floor(state.elapsed_ms / 1000.0 * rate)
    assert fired >= 10


def test_projectile_travels_before_hitting() -> None:
    state = GameState()
    target = _make_enemy(state, x=200, y=0, hp=100)
    state.projectiles.append(
        Projectile(
            id=state.allocate_id(),
            tower_id=0,
            tower_kind="validator",
            x=0.0,
            y=0.0,
            target_id=target.id,
            target_x=200.0,
            target_y=0.0,
            speed=400.0,
            damage=8.0,
        )
    )
    step_towers(state, _make_map(), 100.0)
    assert target.hp == 100
    assert state.projectiles[0].x == pytest.approx(40.0)

    for _ in range(5):
        step_towers(state, _make_map(), 100.0)
    assert target.hp == 92
    assert state.projectiles == []


def test_projectile_is_discarded_when_target_died() -> None:
    state = GameState()
    target = _make_enemy(state, x=50, y=0)
    bystander = _make_enemy(state, x=55, y=0)
    _projectile_on(state, target, kind="validator", damage=8.0)
    state.enemies.remove(target)

    step_towers(state, _make_map(), 16.0)
    assert state.projectiles == []
    assert bystander.hp == 100
    assert state.damage_dealt == 0


def test_killing_blow_pays_reward() -> None:
    state = GameState(currency=0)
    target = _make_enemy(state, x=50, y=0, hp=5, reward=30)
    _projectile_on(state, target, kind="validator", damage=8.0)

    step_towers(state, _make_map(), 16.0)
    assert state.enemies == []
    assert state.kills == 1
    assert state.currency == 30
    assert state.currency_earned == 30
    assert state.damage_dealt == pytest.approx(5.0)


def test_chain_hops_to_nearest_enemies_at_half_damage() -> None:
    state = GameState()
    primary = _make_enemy(state, x=100, y=100)
    hop1 = _make_enemy(state, x=150, y=100)
    hop2 = _make_enemy(state, x=210, y=100)
    far = _make_enemy(state, x=400, y=100)
    _projectile_on(state, primary, kind="jupiter", damage=20.0)

    step_towers(state, _make_map(), 16.0)
    assert primary.hp == pytest.approx(80.0)
    assert hop1.hp == pytest.approx(90.0)
    assert hop2.hp == pytest.approx(90.0)
    assert far.hp == pytest.approx(100.0)


def test_chain_stops_without_a_close_enough_enemy() -> None:
    state = GameState()
    primary = _make_enemy(state, x=100, y=100)
    lonely = _make_enemy(state, x=300, y=100)
    _projectile_on(state, primary, kind="jupiter", damage=20.0)

    step_towers(state, _make_map(), 16.0)
    assert primary.hp == pytest.approx(80.0)
    assert lonely.hp == pytest.approx(100.0)


def test_splash_hits_everything_near_impact() -> None:
    state = GameState()
    primary = _make_enemy(state, x=100, y=100)
    near = _make_enemy(state, x=130, y=100)
    also_near = _make_enemy(state, x=100, y=60)
    far = _make_enemy(state, x=200, y=100)
    _projectile_on(state, primary, kind="tensor", damage=40.0)

    step_towers(state, _make_map(), 16.0)
    assert primary.hp == pytest.approx(60.0)
    assert near.hp == pytest.approx(80.0)
    assert also_near.hp == pytest.approx(80.0)
    assert far.hp == pytest.approx(100.0)


def test_splash_kills_are_all_rewarded() -> None:
    state = GameState(currency=0)
    primary = _make_enemy(state, x=100, y=100, hp=10)
    _make_enemy(state, x=120, y=100, hp=10)
    _projectile_on(state, primary, kind="tensor", damage=40.0)

    step_towers(state, _make_map(), 16.0)
    assert state.enemies == []
    assert state.kills == 2
    assert state.currency == 20


def test_paused_state_holds_fire() -> None:
    state = GameState(paused=True)
    target = _make_enemy(state, x=50, y=0)
    _projectile_on(state, target, kind="validator", damage=8.0)
    assert step_towers(state, _make_map(), 16.0) == []
    assert target.hp == 100
    assert len(state.projectiles) == 1
