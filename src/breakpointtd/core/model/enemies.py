from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


Role = Literal["swarm", "tank", "miniboss"]


@dataclass(frozen=True)
class EnemyDef:
    kind: str
    name: str
    role: Role
    hp: float
    speed: float          # pixels per second
    reward: int
    damage: int           # damage dealt to the base on breach
    size: float
    spawn_weight: int


ENEMY_DEFS: dict[str, EnemyDef] = {
    "fud": EnemyDef(
        kind="fud",
        name="FUD",
        role="swarm",
        hp=25.0,
        speed=90.0,
        reward=10,
        damage=5,
        size=14.0,
        spawn_weight=60,
    ),
    "rugpull": EnemyDef(
        kind="rugpull",
        name="Rug Pull",
        role="tank",
        hp=120.0,
        speed=35.0,
        reward=30,
        damage=15,
        size=22.0,
        spawn_weight=25,
    ),
    # Only spawned by the miniboss timer.
    "congestion": EnemyDef(
        kind="congestion",
        name="Network Congestion",
        role="miniboss",
        hp=300.0,
        speed=50.0,
        reward=100,
        damage=30,
        size=30.0,
        spawn_weight=0,
    ),
}

MINIBOSS_KIND = "congestion"


def get_enemy_def(kind: str) -> EnemyDef:
    try:
        return ENEMY_DEFS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown enemy kind: {kind!r}") from exc
