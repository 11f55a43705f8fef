"""
Leaderboard persistence.

Keeps the best runs as a bounded, sorted JSON list. Ranking is survival time
first, then wave, then kills (all descending). I/O problems are logged and
never raised back into the game.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path
import time
from typing import Any
import uuid

from breakpointtd.core.model.tiers import get_tier


logger = logging.getLogger(__name__)

MAX_ENTRIES = 10


@dataclass(frozen=True, slots=True)
class RunResult:
    id: str
    timestamp: float
    survival_time: float     # seconds
    wave: int
    kills: int
    currency_earned: int
    tier_name: str
    tier_icon: str

    def rank_key(self) -> tuple[float, int, int]:
        return (self.survival_time, self.wave, self.kills)


def run_result_from_summary(
    survival_time: float,
    wave: int,
    kills: int,
    currency_earned: int = 0,
    *,
    timestamp: float | None = None,
    run_id: str | None = None,
) -> RunResult:
    tier = get_tier(survival_time)
    return RunResult(
        id=run_id or uuid.uuid4().hex[:8],
        timestamp=float(timestamp if timestamp is not None else time.time()),
        survival_time=float(survival_time),
        wave=int(wave),
        kills=int(kills),
        currency_earned=int(currency_earned),
        tier_name=tier.name,
        tier_icon=tier.icon,
    )


def run_result_from_state(state, **kwargs: Any) -> RunResult:
    return run_result_from_summary(
        survival_time=float(state.elapsed_ms) / 1000.0,
        wave=int(state.wave),
        kills=int(state.kills),
        currency_earned=int(getattr(state, "currency_earned", 0)),
        **kwargs,
    )


def rank_runs(runs: list[RunResult], max_entries: int = MAX_ENTRIES) -> list[RunResult]:
    ordered = sorted(runs, key=RunResult.rank_key, reverse=True)
    return ordered[:max_entries]


class Leaderboard:
    def __init__(self, path: str | Path, *, max_entries: int = MAX_ENTRIES) -> None:
        self.path = Path(path)
        self.max_entries = int(max_entries)

    def load(self) -> list[RunResult]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Failed to load leaderboard %s: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            logger.error("Leaderboard %s is not a JSON list", self.path)
            return []
        runs: list[RunResult] = []
        for entry in raw:
            run = _run_from_dict(entry)
            if run is None:
                logger.warning("Skipping malformed leaderboard entry: %r", entry)
                continue
            runs.append(run)
        return runs

    def save_run(self, run: RunResult) -> list[RunResult]:
        runs = rank_runs(self.load() + [run], self.max_entries)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = [asdict(r) for r in runs]
            self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save run to %s: %s", self.path, exc)
        return runs

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to clear leaderboard %s: %s", self.path, exc)


def _run_from_dict(entry: Any) -> RunResult | None:
    if not isinstance(entry, dict):
        return None
    try:
        return RunResult(
            id=str(entry["id"]),
            timestamp=float(entry.get("timestamp", 0.0)),
            survival_time=float(entry["survival_time"]),
            wave=int(entry["wave"]),
            kills=int(entry["kills"]),
            currency_earned=int(entry.get("currency_earned", 0)),
            tier_name=str(entry.get("tier_name") or get_tier(float(entry["survival_time"])).name),
            tier_icon=str(entry.get("tier_icon", "")),
        )
    except (KeyError, TypeError, ValueError):
        return None
