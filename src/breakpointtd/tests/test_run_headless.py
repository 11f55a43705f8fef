import json
import sys

from breakpointtd.app import run_headless
from breakpointtd.core.engine import Engine
from breakpointtd.core.model.entities import Enemy


def test_scripted_turn_builds_towers() -> None:
    engine = Engine(seed=3)
    for _ in range(120):
        run_headless.scripted_turn(engine)
        engine.advance_frames(1)
    assert len(engine.state.towers) >= 2
    assert engine.state.currency >= 0


def test_scripted_turn_reads_state_after_each_command() -> None:
    engine = Engine(seed=3)
    state = engine.state
    for slot in state.slots:
        slot.locked = True
    state.base_hp = 40
    for i in range(10):
        x, y = engine.map.path.position_at(0.1 + i * 0.05)
        state.enemies.append(
            Enemy(
                id=state.allocate_id(),
                kind="fud",
                x=x,
                y=y,
                progress=0.1 + i * 0.05,
                hp=25.0,
                max_hp=25.0,
                speed=0.0,
                reward=10,
                damage=5,
                size=14.0,
            )
        )

    run_headless.scripted_turn(engine)

    # The bomb clears the lane, so there is nothing left to freeze.
    assert engine.state.enemies == []
    assert engine.state.abilities["bomb"].last_used_ms == 0.0
    assert engine.state.abilities["freeze"].last_used_ms == float("-inf")
    assert not engine.state.abilities["freeze"].active
    assert engine.state.currency == 150 + 10 * 10 + 100


def test_main_prints_summary_and_records_run(tmp_path, monkeypatch, capsys) -> None:
    board = tmp_path / "scores.json"
    monkeypatch.setattr(
        sys,
        "argv",
        ["run_headless", "--seconds", "3", "--seed", "2", "--leaderboard", str(board), "--set", "balance.max_towers=2"],
    )
    assert run_headless.main() == 0
    out = capsys.readouterr().out
    assert "wave=0" in out
    assert "towers=2" in out
    assert len(json.loads(board.read_text(encoding="utf-8"))) == 1


def test_main_streams_snapshots(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["run_headless", "--seconds", "1", "--idle", "--stream"])
    assert run_headless.main() == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    assert 2 <= len(lines) <= 5
    assert json.loads(lines[0])["elapsed_ms"] > 0
