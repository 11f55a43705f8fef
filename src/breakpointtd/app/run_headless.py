from __future__ import annotations
from pathlib import Path
import argparse
import json
import logging

from breakpointtd.core.config_loader import load_game_config
from breakpointtd.core.engine import Engine
from breakpointtd.core.model.map import default_map, load_map_json
from breakpointtd.core.model.tiers import get_tier
from breakpointtd.core.rules.placement import can_upgrade_tower
from breakpointtd.live.relay import SnapshotPublisher
from breakpointtd.storage.leaderboard import Leaderboard, run_result_from_state


logger = logging.getLogger(__name__)

BUILD_ORDER = ("validator", "jupiter", "validator", "tensor", "jupiter", "tensor")


def _resolve_map_path(map_arg: str) -> Path:
    p = Path(map_arg)
    if p.suffix:
        return p
    if p.parent == Path("."):
        return Path("data/maps") / f"{p.name}.json"
    return p.with_suffix(".json")


def scripted_turn(engine: Engine) -> None:
    """Simple build order: fill the most advanced open slot, then upgrade, bomb when the base is low."""
    # Every accepted command replaces engine.state, so it is re-read after each act().
    state = engine.state
    if len(state.towers) < len(BUILD_ORDER):
        kind = BUILD_ORDER[len(state.towers)]
        open_slots = [s for s in state.slots if not s.locked and s.tower is None]
        for slot in sorted(open_slots, key=lambda s: s.progress, reverse=True):
            if engine.act("PLACE_TOWER", {"slot": slot.index, "kind": kind}):
                logger.info("t=%.1fs placed %s at slot %d", engine.state.elapsed_ms / 1000.0, kind, slot.index)
                return
    for tower in sorted(state.towers, key=lambda t: t.level):
        if can_upgrade_tower(state, tower, config=engine.config):
            engine.act("UPGRADE_TOWER", {"tower_id": tower.id})
            return
    if state.base_hp * 2 < state.max_base_hp:
        engine.act("BOMB")
    if len(engine.state.enemies) >= 10:
        engine.act("FREEZE")
    engine.act("AIRDROP")


def main() -> int:
    ap = argparse.ArgumentParser(description="Run a Breakpoint Defense session without a GUI.")
    ap.add_argument("--map", default=None, help="Map name (e.g. breakpoint) or path to json")
    ap.add_argument("--config", default=None, help="Balance config JSON")
    ap.add_argument("--set", action="append", default=None, dest="overrides", help="Override, e.g. balance.max_towers=4")
    ap.add_argument("--seconds", type=float, default=120.0)
    ap.add_argument("--seed", type=int, default=123)
    ap.add_argument("--idle", action="store_true", help="Do not build anything")
    ap.add_argument("--stream", action="store_true", help="Print throttled snapshots as JSON lines")
    ap.add_argument("--leaderboard", default=None, help="Leaderboard JSON to record the run in")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(message)s",
    )

    config = load_game_config(args.config, args.overrides)
    map_data = load_map_json(_resolve_map_path(args.map)) if args.map else default_map()
    engine = Engine(map_data, config=config, seed=args.seed)
    publisher = None
    if args.stream:
        publisher = SnapshotPublisher(lambda payload: print(json.dumps(payload)), map_data=map_data)

    frames = int(args.seconds * 1000.0 / engine.frame_ms)
    # Headless runs have no wall clock; each frame stands for frame_ms of host time.
    for frame in range(frames):
        if not args.idle:
            scripted_turn(engine)
        result = engine.advance_frames(1)
        if publisher is not None:
            publisher.publish(engine.state, now_ms=(frame + 1) * engine.frame_ms)
        if result == "game over":
            break

    state = engine.state
    tier = get_tier(state.elapsed_ms / 1000.0)
    print(
        f"time={state.elapsed_ms / 1000.0:.1f}s wave={state.wave} kills={state.kills} "
        f"base_hp={state.base_hp}/{state.max_base_hp} currency={state.currency} "
        f"towers={len(state.towers)} tier={tier.icon} {tier.name} game_over={state.game_over}"
    )

    if args.leaderboard:
        runs = Leaderboard(args.leaderboard).save_run(run_result_from_state(state))
        print(f"leaderboard entries={len(runs)} best={runs[0].survival_time:.1f}s")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
