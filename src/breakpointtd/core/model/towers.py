from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


Special = Literal["chain", "splash"] | None
TargetMode = Literal["first", "closest", "strongest"]


@dataclass(frozen=True)
class TowerDef:
    kind: str
    name: str
    short_name: str
    description: str
    cost: int
    damage: tuple[float, ...]
    fire_rate: tuple[float, ...]
    upgrade_cost: tuple[int, ...]
    range: tuple[float, ...]
    range_upgrade_cost: tuple[int, ...]
    special: Special = None
    target_mode: TargetMode = "first"
    chain_count: int = 0
    chain_radius: float = 0.0
    chain_damage_factor: float = 0.0
    splash_radius: float = 0.0
    splash_damage_factor: float = 0.0

    def damage_at(self, level: int) -> float:
        return self.damage[_level_index(level, len(self.damage))]

    def fire_rate_at(self, level: int) -> float:
        return self.fire_rate[_level_index(level, len(self.fire_rate))]

    def range_at(self, range_level: int) -> float:
        return self.range[_level_index(range_level, len(self.range))]

    def cooldown_ms(self, level: int) -> float:
        return 1000.0 / self.fire_rate_at(level)

    def upgrade_cost_at(self, level: int) -> int | None:
        """Cost to go from ``level`` to ``level + 1``, None at the top."""
        if level < 1 or level > len(self.upgrade_cost):
            return None
        return self.upgrade_cost[level - 1]

    def range_upgrade_cost_at(self, range_level: int) -> int | None:
        if range_level < 1 or range_level > len(self.range_upgrade_cost):
            return None
        return self.range_upgrade_cost[range_level - 1]


TOWER_DEFS: dict[str, TowerDef] = {
    "validator": TowerDef(
        kind="validator",
        name="Validator Node",
        short_name="VAL",
        description="High TPS attacks. Fast fire rate, consistent damage.",
        cost=50,
        damage=(8.0, 12.0, 18.0),
        fire_rate=(4.0, 5.0, 6.0),
        upgrade_cost=(40, 80),
        range=(120.0, 140.0, 165.0),
        range_upgrade_cost=(30, 60),
    ),
    "jupiter": TowerDef(
        kind="jupiter",
        name="Jupiter Aggregator",
        short_name="JUP",
        description="Routes damage to multiple targets. Chains to nearby enemies.",
        cost=80,
        damage=(15.0, 22.0, 32.0),
        fire_rate=(1.5, 1.8, 2.2),
        upgrade_cost=(60, 120),
        range=(100.0, 120.0, 140.0),
        range_upgrade_cost=(45, 90),
        special="chain",
        chain_count=2,
        chain_radius=80.0,
        chain_damage_factor=0.5,
    ),
    "tensor": TowerDef(
        kind="tensor",
        name="Tensor Marketplace",
        short_name="TNS",
        description="NFT floor sweeper. Area damage on impact.",
        cost=100,
        damage=(25.0, 40.0, 60.0),
        fire_rate=(0.8, 1.0, 1.2),
        upgrade_cost=(80, 150),
        range=(90.0, 105.0, 125.0),
        range_upgrade_cost=(60, 110),
        special="splash",
        target_mode="strongest",
        splash_radius=50.0,
        splash_damage_factor=0.5,
    ),
}


def get_tower_def(kind: str) -> TowerDef:
    try:
        return TOWER_DEFS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown tower kind: {kind!r}") from exc


def list_tower_defs() -> list[TowerDef]:
    return list(TOWER_DEFS.values())


def _level_index(level: int, size: int) -> int:
    return max(0, min(size - 1, int(level) - 1))
