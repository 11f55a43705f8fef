from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Tier:
    name: str
    icon: str
    min_seconds: float
    description: str


TIERS: tuple[Tier, ...] = (
    Tier("Paper Hands", "📄", 0.0, "Just getting started"),
    Tier("Diamond Hands", "💎", 90.0, "Holding strong"),
    Tier("Degen", "🎰", 180.0, "True believer"),
    Tier("Whale", "🐋", 300.0, "Major player"),
    Tier("Satoshi", "👑", 420.0, "Legendary status"),
)


def get_tier(survival_seconds: float) -> Tier:
    for tier in reversed(TIERS):
        if survival_seconds >= tier.min_seconds:
            return tier
    return TIERS[0]
