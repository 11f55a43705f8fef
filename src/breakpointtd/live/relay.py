# src/breakpointtd/live/relay.py
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable
import uuid

from breakpointtd.core.model.map import MapData
from breakpointtd.core.model.tiers import TIERS, get_tier
from breakpointtd.core.snapshot import build_snapshot


logger = logging.getLogger(__name__)

MIN_INTERVAL_MS = 200.0
MAX_INTERVAL_MS = 500.0
ENDED_SESSION_TTL_MS = 5 * 60 * 1000.0
PREDICTION_WINDOW_S = 20.0

Message = dict[str, Any]
Viewer = Callable[[Message], None]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SnapshotPublisher:
    """
    Throttles a running session down to one snapshot per interval.

    The interval is measured on the host clock (real milliseconds, not game
    time) and clamped to 200..500 ms, so game speed and pause do not change
    the cadence. The game-over snapshot is always published, once, with the
    final tier.
    """

    def __init__(
        self,
        sink: Callable[[dict[str, Any]], None],
        *,
        interval_ms: float = 250.0,
        clock: Callable[[], float] | None = None,
        map_data: MapData | None = None,
    ):
        self.sink = sink
        self.map = map_data
        self.clock = clock or _monotonic_ms
        self.interval_ms = min(MAX_INTERVAL_MS, max(MIN_INTERVAL_MS, float(interval_ms)))
        self._last_sent_ms: float | None = None
        self._final_sent = False

    def publish(self, state, *, now_ms: float | None = None) -> bool:
        if self._final_sent:
            return False
        if state.game_over:
            payload = build_snapshot(state, self.map).to_dict()
            payload["final_tier"] = get_tier(state.elapsed_ms / 1000.0).name
            self.sink(payload)
            self._final_sent = True
            return True
        now = float(self.clock() if now_ms is None else now_ms)
        if self._last_sent_ms is not None and now - self._last_sent_ms < self.interval_ms:
            return False
        self._last_sent_ms = now
        self.sink(build_snapshot(state, self.map).to_dict())
        return True


@dataclass(slots=True)
class Session:
    id: str
    alias: str
    started_at_ms: float
    last_update_ms: float
    status: str = "live"
    last_snapshot: dict[str, Any] | None = None
    final_tier: str | None = None
    viewers: dict[str, Viewer] = field(default_factory=dict)
    predictions: dict[str, str] = field(default_factory=dict)

    def predictions_summary(self) -> dict[str, int]:
        summary: dict[str, int] = {}
        for tier in self.predictions.values():
            summary[tier] = summary.get(tier, 0) + 1
        return summary

    def info(self) -> dict[str, Any]:
        snap = self.last_snapshot or {}
        return {
            "id": self.id,
            "alias": self.alias,
            "time": snap.get("time", 0.0),
            "wave": snap.get("wave", 0),
            "base_hp": snap.get("base_hp", 0),
            "viewer_count": len(self.viewers),
            "status": self.status,
        }


class SpectateHub:
    """
    In-process session broker.

    Runners push snapshots, spectators receive them verbatim. The hub never
    looks inside a snapshot beyond the summary fields of list_sessions().
    """

    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    def create_session(self, alias: str, *, now_ms: float = 0.0) -> str:
        session_id = uuid.uuid4().hex[:8]
        self.sessions[session_id] = Session(
            id=session_id,
            alias=str(alias) or "anon",
            started_at_ms=now_ms,
            last_update_ms=now_ms,
        )
        logger.info("session %s created alias=%s", session_id, alias)
        return session_id

    def update_snapshot(self, session_id: str, snapshot: dict[str, Any], *, now_ms: float = 0.0) -> bool:
        session = self.sessions.get(session_id)
        if session is None or session.status != "live":
            return False
        session.last_snapshot = snapshot
        session.last_update_ms = now_ms
        self._broadcast(session, {"type": "snapshot_update", "session_id": session_id, "snapshot": snapshot})
        return True

    def end_session(self, session_id: str, final_tier: str | None = None, *, now_ms: float = 0.0) -> bool:
        session = self.sessions.get(session_id)
        if session is None or session.status == "ended":
            return False
        session.status = "ended"
        session.final_tier = final_tier
        session.last_update_ms = now_ms
        self._broadcast(
            session,
            {
                "type": "session_ended",
                "session_id": session_id,
                "final_tier": final_tier,
                "predictions": session.predictions_summary(),
            },
        )
        logger.info("session %s ended tier=%s", session_id, final_tier)
        return True

    def join(self, session_id: str, viewer_id: str, viewer: Viewer) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        session.viewers[viewer_id] = viewer
        if session.last_snapshot is not None:
            message = {"type": "snapshot_update", "session_id": session_id, "snapshot": session.last_snapshot}
            if not self._send(session, viewer_id, message):
                return False
        return self._send(session, viewer_id, self._summary_message(session))

    def submit_prediction(self, session_id: str, viewer_id: str, tier: str) -> bool:
        """
        Records a viewer's guess of the final tier.

        Accepted only while the session is live and its latest snapshot is at
        most PREDICTION_WINDOW_S seconds into the run. A viewer may change its
        guess inside the window; the last one counts.
        """
        session = self.sessions.get(session_id)
        if session is None or session.status != "live":
            return False
        if tier not in {t.name for t in TIERS}:
            return False
        snap = session.last_snapshot or {}
        if float(snap.get("time", 0.0)) > PREDICTION_WINDOW_S:
            logger.debug("prediction from %s rejected, window closed", viewer_id)
            return False
        session.predictions[viewer_id] = tier
        if viewer_id in session.viewers:
            self._send(session, viewer_id, {"type": "prediction_submitted", "session_id": session_id, "tier": tier})
        self._broadcast(session, self._summary_message(session))
        return True

    def leave(self, session_id: str, viewer_id: str) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        return session.viewers.pop(viewer_id, None) is not None

    def list_sessions(self) -> list[dict[str, Any]]:
        live = [s for s in self.sessions.values() if s.status == "live"]
        return [s.info() for s in live]

    def cleanup(self, now_ms: float) -> list[str]:
        expired = [
            sid
            for sid, s in self.sessions.items()
            if s.status == "ended" and now_ms - s.last_update_ms > ENDED_SESSION_TTL_MS
        ]
        for sid in expired:
            del self.sessions[sid]
        return expired

    @staticmethod
    def _summary_message(session: Session) -> Message:
        return {"type": "predictions_summary", "session_id": session.id, "summary": session.predictions_summary()}

    def _send(self, session: Session, viewer_id: str, message: Message) -> bool:
        viewer = session.viewers.get(viewer_id)
        if viewer is None:
            return False
        try:
            viewer(message)
        except Exception:
            logger.exception("viewer %s failed, dropping it", viewer_id)
            session.viewers.pop(viewer_id, None)
            return False
        return True

    def _broadcast(self, session: Session, message: Message) -> None:
        for viewer_id in list(session.viewers):
            self._send(session, viewer_id, message)
