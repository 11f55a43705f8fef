from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
import math
from .entities import Enemy, Projectile, Tower, TowerSlot


@dataclass(slots=True)
class AbilityState:
    last_used_ms: float = -math.inf
    active: bool = False
    end_ms: float = 0.0


def _default_abilities() -> dict[str, AbilityState]:
    return {
        "bomb": AbilityState(),
        "freeze": AbilityState(),
        "airdrop": AbilityState(),
    }


@dataclass(slots=True)
class GameState:
    # Flags
    running: bool = True
    paused: bool = False
    game_over: bool = False

    # Time
    elapsed_ms: float = 0.0
    game_speed: int = 1

    # Waves
    wave: int = 0
    wave_started_ms: float = 0.0
    spawn_timer_ms: float = 0.0
    spawn_interval_ms: float = 1600.0
    last_miniboss_ms: float = 0.0
    spawn_queue: list[str] = field(default_factory=list)

    # Economy / base
    currency: int = 150
    base_hp: int = 100
    max_base_hp: int = 100

    # Time marker (path progress)
    marker_progress: float = 0.0

    # Entities
    slots: list[TowerSlot] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    projectiles: list[Projectile] = field(default_factory=list)

    abilities: dict[str, AbilityState] = field(default_factory=_default_abilities)

    # Stats
    kills: int = 0
    damage_dealt: float = 0.0
    currency_earned: int = 0

    # Entity ids and the seeded LCG live here so the engine has no module-level state.
    next_id: int = 1
    rng_state: int = 1
    rng_calls: int = 0

    @property
    def towers(self) -> list[Tower]:
        return [slot.tower for slot in self.slots if slot.tower is not None]

    def find_tower(self, tower_id: int) -> Tower | None:
        for slot in self.slots:
            if slot.tower is not None and slot.tower.id == tower_id:
                return slot.tower
        return None

    def find_enemy(self, enemy_id: int) -> Enemy | None:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def allocate_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value

    def clone(self) -> GameState:
        return deepcopy(self)
