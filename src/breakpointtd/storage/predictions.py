"""
Spectator prediction record.

One JSON file holds the running stats and the most recent results (newest
first, bounded). Like the leaderboard, I/O problems are logged and the
caller gets defaults back.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
import json
import logging
from pathlib import Path
import time
from typing import Any


logger = logging.getLogger(__name__)

MAX_HISTORY = 50


@dataclass(frozen=True, slots=True)
class PredictionStats:
    total: int = 0
    correct: int = 0
    current_streak: int = 0
    best_streak: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def record(self, correct: bool) -> PredictionStats:
        if not correct:
            return replace(self, total=self.total + 1, current_streak=0)
        streak = self.current_streak + 1
        return PredictionStats(
            total=self.total + 1,
            correct=self.correct + 1,
            current_streak=streak,
            best_streak=max(self.best_streak, streak),
        )


@dataclass(frozen=True, slots=True)
class PredictionResult:
    session_id: str
    predicted: str
    actual: str
    timestamp: float

    @property
    def correct(self) -> bool:
        return self.predicted == self.actual


def prediction_result(
    session_id: str,
    predicted: str,
    actual: str,
    *,
    timestamp: float | None = None,
) -> PredictionResult:
    return PredictionResult(
        session_id=str(session_id),
        predicted=str(predicted),
        actual=str(actual),
        timestamp=float(timestamp if timestamp is not None else time.time()),
    )


class PredictionStore:
    def __init__(self, path: str | Path, *, max_history: int = MAX_HISTORY) -> None:
        self.path = Path(path)
        self.max_history = int(max_history)

    def load_stats(self) -> PredictionStats:
        raw = self._load().get("stats")
        if not isinstance(raw, dict):
            return PredictionStats()
        try:
            return PredictionStats(
                total=int(raw.get("total", 0)),
                correct=int(raw.get("correct", 0)),
                current_streak=int(raw.get("current_streak", 0)),
                best_streak=int(raw.get("best_streak", 0)),
            )
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed prediction stats in %s", self.path)
            return PredictionStats()

    def load_history(self) -> list[PredictionResult]:
        raw = self._load().get("history")
        if not isinstance(raw, list):
            return []
        history: list[PredictionResult] = []
        for entry in raw:
            result = _result_from_dict(entry)
            if result is None:
                logger.warning("Skipping malformed prediction entry: %r", entry)
                continue
            history.append(result)
        return history

    def save_result(self, result: PredictionResult) -> PredictionStats:
        """Prepends ``result`` to the history and folds it into the stats."""
        stats = self.load_stats().record(result.correct)
        history = ([result] + self.load_history())[: self.max_history]
        payload = {
            "stats": asdict(stats),
            "history": [dict(asdict(r), correct=r.correct) for r in history],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save prediction to %s: %s", self.path, exc)
        return stats

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to clear predictions %s: %s", self.path, exc)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Failed to load predictions %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.error("Predictions file %s is not a JSON object", self.path)
            return {}
        return raw


def _result_from_dict(entry: Any) -> PredictionResult | None:
    if not isinstance(entry, dict):
        return None
    try:
        return PredictionResult(
            session_id=str(entry["session_id"]),
            predicted=str(entry["predicted"]),
            actual=str(entry["actual"]),
            timestamp=float(entry.get("timestamp", 0.0)),
        )
    except (KeyError, TypeError, ValueError):
        return None
