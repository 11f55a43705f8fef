# src/breakpointtd/core/rules/path_geometry.py
from __future__ import annotations

from bisect import bisect_right
import math
from typing import Sequence


class PathGeometry:
    """
    Waypoint path parametrised by arc length.

    progress 0.0 is the first waypoint, 1.0 the last (the base). Each segment
    owns a share of [0, 1] proportional to its length, so advancing progress at
    a constant rate moves at a constant real-world speed.
    """

    __slots__ = ("points", "segment_lengths", "cumulative", "length")

    def __init__(self, waypoints: Sequence[tuple[float, float]]):
        if len(waypoints) < 2:
            raise ValueError("a path needs at least two waypoints")
        self.points: tuple[tuple[float, float], ...] = tuple(
            (float(x), float(y)) for x, y in waypoints
        )
        lengths: list[float] = []
        cumulative: list[float] = [0.0]
        for (x1, y1), (x2, y2) in zip(self.points[:-1], self.points[1:]):
            seg = math.hypot(x2 - x1, y2 - y1)
            lengths.append(seg)
            cumulative.append(cumulative[-1] + seg)
        if cumulative[-1] <= 0.0:
            raise ValueError("path has zero length")
        self.segment_lengths = tuple(lengths)
        self.cumulative = tuple(cumulative)
        self.length = cumulative[-1]

    def _locate(self, progress: float) -> tuple[int, float]:
        p = min(1.0, max(0.0, float(progress)))
        dist = p * self.length
        idx = bisect_right(self.cumulative, dist) - 1
        # Zero-length segments and the end point resolve to the last real segment.
        idx = max(0, min(len(self.segment_lengths) - 1, idx))
        while idx > 0 and self.segment_lengths[idx] == 0.0:
            idx -= 1
        seg = self.segment_lengths[idx]
        t = 0.0 if seg == 0.0 else (dist - self.cumulative[idx]) / seg
        return idx, min(1.0, max(0.0, t))

    def position_at(self, progress: float) -> tuple[float, float]:
        idx, t = self._locate(progress)
        x1, y1 = self.points[idx]
        x2, y2 = self.points[idx + 1]
        return x1 + (x2 - x1) * t, y1 + (y2 - y1) * t

    def normal_at(self, progress: float) -> tuple[float, float]:
        """Unit left-normal of the segment under ``progress``."""
        idx, _ = self._locate(progress)
        x1, y1 = self.points[idx]
        x2, y2 = self.points[idx + 1]
        dx = x2 - x1
        dy = y2 - y1
        dist = math.hypot(dx, dy)
        if dist == 0.0:
            return 0.0, 0.0
        return -dy / dist, dx / dist

    def progress_per_ms(self, speed: float) -> float:
        """Progress covered per millisecond at ``speed`` pixels per second."""
        return speed / 1000.0 / self.length


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def distance_sq(ax: float, ay: float, bx: float, by: float) -> float:
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy
