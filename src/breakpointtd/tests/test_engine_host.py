import pytest

from breakpointtd.core.engine import Engine
from breakpointtd.core.model.config import DEFAULT_CONFIG
from breakpointtd.core.model.entities import Enemy


def _breaching_enemy(engine: Engine, damage: int) -> None:
    state = engine.state
    x, y = engine.map.path.position_at(0.9999)
    state.enemies.append(
        Enemy(
            id=state.allocate_id(),
            kind="congestion",
            x=x,
            y=y,
            progress=0.9999,
            hp=300.0,
            max_hp=300.0,
            speed=500.0,
            reward=100,
            damage=damage,
            size=30.0,
        )
    )


def test_act_rejects_unknown_action_type() -> None:
    engine = Engine(seed=1)
    with pytest.raises(ValueError):
        engine.act("SELL_TOWER", {"tower_id": 1})


def test_act_reports_whether_state_changed() -> None:
    engine = Engine(seed=1)
    assert engine.act("PLACE_TOWER", {"slot": 0, "kind": "validator"})
    assert not engine.act("PLACE_TOWER", {"slot": 0, "kind": "validator"})
    assert not engine.act("PLACE_TOWER", {"slot": 1})
    tower_id = engine.state.slots[0].tower.id
    assert engine.act("UPGRADE_TOWER", {"tower_id": tower_id})
    assert engine.act("UPGRADE_RANGE", {"tower_id": tower_id})


def test_step_runs_fixed_frames() -> None:
    engine = Engine(seed=1)
    engine.step(engine.frame_ms * 3 + 1.0)
    assert engine.state.elapsed_ms == pytest.approx(engine.frame_ms * 3)


def test_step_caps_catch_up_after_a_stall() -> None:
    engine = Engine(seed=1)
    engine.step(10_000.0)
    cap = engine.frame_ms * DEFAULT_CONFIG.max_catchup_frames
    assert engine.state.elapsed_ms <= cap + 1e-6
    assert engine.state.elapsed_ms >= cap - engine.frame_ms - 1e-6


def test_game_speed_scales_frames_per_step() -> None:
    engine = Engine(seed=1)
    assert engine.act("SET_SPEED", {"speed": 2})
    engine.step(engine.frame_ms * 2 + 1.0)
    assert engine.state.elapsed_ms == pytest.approx(engine.frame_ms * 4)


def test_pause_toggle_freezes_time() -> None:
    engine = Engine(seed=1)
    assert engine.act("PAUSE_TOGGLE")
    engine.step(1000.0)
    assert engine.state.elapsed_ms == 0.0
    assert engine.act("SET_PAUSED", {"paused": False})
    engine.step(1000.0)
    assert engine.state.elapsed_ms > 0.0


def test_game_over_callback_fires_once() -> None:
    seen = []
    engine = Engine(seed=1, on_game_over=seen.append)
    engine.state.base_hp = 10
    _breaching_enemy(engine, damage=30)

    assert engine.step(engine.frame_ms * 2) == "game over"
    assert engine.step(engine.frame_ms * 2) == "game over"
    assert len(seen) == 1
    assert seen[0].game_over
    assert seen[0].base_hp == 0


def test_reset_starts_over() -> None:
    engine = Engine(seed=5)
    engine.act("PLACE_TOWER", {"slot": 0, "kind": "validator"})
    engine.advance_frames(60)
    engine.reset()
    assert engine.state.towers == []
    assert engine.state.elapsed_ms == 0.0


def test_same_seed_same_run() -> None:
    a = Engine(seed=42)
    b = Engine(seed=42)
    for eng in (a, b):
        eng.act("PLACE_TOWER", {"slot": 0, "kind": "jupiter"})
        eng.act("PLACE_TOWER", {"slot": 1, "kind": "validator"})
        eng.advance_frames(1200)
    assert a.snapshot() == b.snapshot()


def test_observe_is_plain_data() -> None:
    engine = Engine(seed=1)
    engine.act("PLACE_TOWER", {"slot": 2, "kind": "tensor"})
    obs = engine.observe()
    assert obs["currency"] == 50
    assert obs["towers"][0]["kind"] == "tensor"
    assert obs["slots"][2]["tower_id"] == obs["towers"][0]["id"]
    assert set(obs["cooldowns"]) == {"bomb", "freeze", "airdrop"}
    assert obs["cooldowns"]["bomb"] == 0.0


def test_snapshot_reports_cooldowns_and_marker_position() -> None:
    engine = Engine(seed=1)
    assert engine.act("BOMB")
    snap = engine.snapshot()
    assert snap.cooldown("bomb") == pytest.approx(45_000.0)
    assert snap.cooldown("freeze") == 0.0

    engine.advance_frames(120)
    snap = engine.snapshot()
    x, y = engine.map.path.position_at(snap.marker_progress)
    assert snap.marker_progress > 0.0
    assert (snap.marker_x, snap.marker_y) == pytest.approx((x, y))
    assert engine.observe()["marker_x"] == pytest.approx(x)
