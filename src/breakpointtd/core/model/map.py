from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import json

from ..rules.path_geometry import PathGeometry


DEFAULT_WIDTH = 1000
DEFAULT_HEIGHT = 600

# S-curve from left to right, as fractions of the lane size.
DEFAULT_WAYPOINTS: tuple[tuple[float, float], ...] = (
    (-0.05, 0.3),
    (0.15, 0.3),
    (0.25, 0.25),
    (0.35, 0.15),
    (0.45, 0.25),
    (0.55, 0.5),
    (0.65, 0.75),
    (0.75, 0.85),
    (0.85, 0.75),
    (0.95, 0.5),
    (1.05, 0.5),
)

# Tower slots beside the path, as path progress (also the slot lock thresholds).
DEFAULT_SLOT_PROGRESS: tuple[float, ...] = (0.12, 0.22, 0.32, 0.42, 0.52, 0.62, 0.72, 0.82, 0.92)
DEFAULT_SLOT_OFFSET = 45.0


@dataclass(slots=True)
class MapData:
    name: str
    width: int
    height: int
    waypoints: list[tuple[float, float]]
    slot_progress: list[float]
    slot_offset: float = DEFAULT_SLOT_OFFSET
    path: PathGeometry = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.path = PathGeometry(self.waypoints)

    def slot_position(self, index: int) -> tuple[float, float]:
        """Slots alternate sides of the lane, offset along the path normal."""
        progress = self.slot_progress[index]
        x, y = self.path.position_at(progress)
        nx, ny = self.path.normal_at(progress)
        side = 1.0 if index % 2 == 0 else -1.0
        return x + nx * self.slot_offset * side, y + ny * self.slot_offset * side


def default_map() -> MapData:
    return MapData(
        name="breakpoint",
        width=DEFAULT_WIDTH,
        height=DEFAULT_HEIGHT,
        waypoints=[(x * DEFAULT_WIDTH, y * DEFAULT_HEIGHT) for x, y in DEFAULT_WAYPOINTS],
        slot_progress=list(DEFAULT_SLOT_PROGRESS),
    )


def load_map_json(path: str | Path) -> MapData:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))

    world = data.get("world", {})
    width = int(world.get("width", DEFAULT_WIDTH))
    height = int(world.get("height", DEFAULT_HEIGHT))

    # Waypoints are fractions of the lane unless "units" says pixels.
    scale_x, scale_y = (width, height) if data.get("units", "fraction") == "fraction" else (1, 1)
    waypoints: list[tuple[float, float]] = []
    for point in data["waypoints"]:
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            raise ValueError(f"Invalid waypoint {point!r} in {p}")
        waypoints.append((float(point[0]) * scale_x, float(point[1]) * scale_y))

    slots = [float(v) for v in data.get("slots", DEFAULT_SLOT_PROGRESS)]
    for value in slots:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Slot progress {value} outside [0, 1] in {p}")

    return MapData(
        name=str(data.get("name", p.stem)),
        width=width,
        height=height,
        waypoints=waypoints,
        slot_progress=sorted(slots),
        slot_offset=float(data.get("slot_offset", DEFAULT_SLOT_OFFSET)),
    )
