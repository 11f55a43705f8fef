from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .model.abilities import ABILITY_DEFS
from .model.map import MapData, default_map
from .rules.abilities import cooldown_remaining
from .rules.time_marker import marker_position


@dataclass(frozen=True, slots=True)
class TowerSnapshot:
    id: int
    kind: str
    x: float
    y: float
    slot_index: int
    level: int
    range_level: int


@dataclass(frozen=True, slots=True)
class EnemySnapshot:
    id: int
    kind: str
    x: float
    y: float
    progress: float
    hp: float
    max_hp: float


@dataclass(frozen=True, slots=True)
class ProjectileSnapshot:
    id: int
    kind: str
    x: float
    y: float
    target_x: float
    target_y: float


@dataclass(frozen=True, slots=True)
class SlotSnapshot:
    index: int
    x: float
    y: float
    progress: float
    locked: bool
    tower_id: int | None


@dataclass(frozen=True, slots=True)
class Snapshot:
    time: float                  # elapsed seconds
    elapsed_ms: float
    wave: int
    kills: int
    currency: int
    base_hp: int
    max_base_hp: int
    marker_progress: float
    marker_x: float
    marker_y: float
    towers: tuple[TowerSnapshot, ...]
    enemies: tuple[EnemySnapshot, ...]
    projectiles: tuple[ProjectileSnapshot, ...]
    slots: tuple[SlotSnapshot, ...]
    cooldowns: tuple[tuple[str, float], ...]   # (ability, ms remaining)
    freeze_active: bool
    game_speed: int
    running: bool
    paused: bool
    game_over: bool

    def cooldown(self, kind: str) -> float:
        return dict(self.cooldowns)[kind]

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["cooldowns"] = {kind: remaining for kind, remaining in self.cooldowns}
        payload["towers"] = [asdict(t) for t in self.towers]
        payload["enemies"] = [asdict(e) for e in self.enemies]
        payload["projectiles"] = [asdict(p) for p in self.projectiles]
        payload["slots"] = [asdict(s) for s in self.slots]
        return payload


def build_snapshot(state, map_data: MapData | None = None) -> Snapshot:
    marker_x, marker_y = marker_position(state, map_data if map_data is not None else default_map())
    return Snapshot(
        time=state.elapsed_ms / 1000.0,
        elapsed_ms=float(state.elapsed_ms),
        wave=int(state.wave),
        kills=int(state.kills),
        currency=int(state.currency),
        base_hp=int(state.base_hp),
        max_base_hp=int(state.max_base_hp),
        marker_progress=float(state.marker_progress),
        marker_x=float(marker_x),
        marker_y=float(marker_y),
        towers=tuple(
            TowerSnapshot(
                id=t.id,
                kind=t.kind,
                x=float(t.x),
                y=float(t.y),
                slot_index=t.slot_index,
                level=t.level,
                range_level=t.range_level,
            )
            for t in state.towers
        ),
        enemies=tuple(
            EnemySnapshot(
                id=e.id,
                kind=e.kind,
                x=float(e.x),
                y=float(e.y),
                progress=float(e.progress),
                hp=float(e.hp),
                max_hp=float(e.max_hp),
            )
            for e in state.enemies
        ),
        projectiles=tuple(
            ProjectileSnapshot(
                id=p.id,
                kind=p.tower_kind,
                x=float(p.x),
                y=float(p.y),
                target_x=float(p.target_x),
                target_y=float(p.target_y),
            )
            for p in state.projectiles
        ),
        slots=tuple(
            SlotSnapshot(
                index=s.index,
                x=float(s.x),
                y=float(s.y),
                progress=float(s.progress),
                locked=bool(s.locked),
                tower_id=s.tower.id if s.tower is not None else None,
            )
            for s in state.slots
        ),
        cooldowns=tuple((kind, cooldown_remaining(state, kind)) for kind in ABILITY_DEFS),
        freeze_active=bool(state.abilities["freeze"].active),
        game_speed=int(state.game_speed),
        running=bool(state.running),
        paused=bool(state.paused),
        game_over=bool(state.game_over),
    )
