from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AbilityDef:
    kind: str
    name: str
    description: str
    cooldown_ms: float
    duration_ms: float = 0.0
    damage: float = 0.0
    slow_factor: float = 1.0
    bonus: int = 0


ABILITY_DEFS: dict[str, AbilityDef] = {
    "bomb": AbilityDef(
        kind="bomb",
        name="Purge All",
        description="Instant damage to every enemy on the lane.",
        cooldown_ms=45000.0,
        damage=150.0,
    ),
    "freeze": AbilityDef(
        kind="freeze",
        name="Freeze",
        description="Slows every enemy for a few seconds.",
        cooldown_ms=30000.0,
        duration_ms=5000.0,
        slow_factor=0.3,
    ),
    "airdrop": AbilityDef(
        kind="airdrop",
        name="Airdrop",
        description="+100 SOL.",
        cooldown_ms=60000.0,
        bonus=100,
    ),
}


def get_ability_def(kind: str) -> AbilityDef:
    try:
        return ABILITY_DEFS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown ability: {kind!r}") from exc
