from __future__ import annotations
from dataclasses import dataclass


@dataclass(slots=True)
class Tower:
    id: int
    kind: str
    x: float
    y: float
    slot_index: int

    level: int = 1               # damage / fire-rate level
    range_level: int = 1         # upgraded separately
    last_fired_ms: float = 0.0
    target_id: int | None = None


@dataclass(slots=True)
class TowerSlot:
    index: int
    x: float
    y: float
    progress: float              # path progress at which the time marker locks the slot
    locked: bool = False
    tower: Tower | None = None


@dataclass(slots=True)
class Enemy:
    id: int
    kind: str

    # Position, derived from progress along the path
    x: float
    y: float
    progress: float

    # Stats
    hp: float
    max_hp: float
    speed: float                 # pixels per second, before freeze
    reward: int
    damage: int
    size: float


@dataclass(slots=True)
class Projectile:
    id: int
    tower_id: int
    tower_kind: str
    x: float
    y: float
    target_id: int
    target_x: float
    target_y: float
    speed: float
    damage: float
