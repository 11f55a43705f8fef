import pytest

from breakpointtd.core.model.map import DEFAULT_SLOT_PROGRESS, default_map, load_map_json
from breakpointtd.core.rules.path_geometry import PathGeometry, distance


def _l_path() -> PathGeometry:
    return PathGeometry([(0, 0), (100, 0), (100, 100)])


def test_length_is_sum_of_segments() -> None:
    path = _l_path()
    assert path.length == pytest.approx(200.0)
    assert path.segment_lengths == (100.0, 100.0)


@pytest.mark.parametrize(
    ("progress", "expected"),
    [
        (0.0, (0.0, 0.0)),
        (0.25, (50.0, 0.0)),
        (0.5, (100.0, 0.0)),
        (0.75, (100.0, 50.0)),
        (1.0, (100.0, 100.0)),
    ],
)
def test_position_is_arc_length_based(progress: float, expected: tuple[float, float]) -> None:
    x, y = _l_path().position_at(progress)
    assert (x, y) == pytest.approx(expected)


def test_position_clamps_outside_unit_interval() -> None:
    path = _l_path()
    assert path.position_at(-0.5) == pytest.approx((0.0, 0.0))
    assert path.position_at(3.0) == pytest.approx((100.0, 100.0))


def test_normal_points_left_of_travel() -> None:
    path = _l_path()
    assert path.normal_at(0.25) == pytest.approx((0.0, 1.0))
    assert path.normal_at(0.75) == pytest.approx((-1.0, 0.0))


def test_progress_per_ms_matches_speed() -> None:
    path = _l_path()
    # 200 px/s on a 200 px path covers the whole path in one second.
    assert path.progress_per_ms(200.0) * 1000.0 == pytest.approx(1.0)


def test_zero_length_segments_are_skipped() -> None:
    path = PathGeometry([(0, 0), (50, 0), (50, 0), (100, 0)])
    assert path.position_at(0.5) == pytest.approx((50.0, 0.0))
    assert path.position_at(0.75) == pytest.approx((75.0, 0.0))


@pytest.mark.parametrize("points", [[(0, 0)], [(5, 5), (5, 5)]])
def test_degenerate_paths_are_rejected(points) -> None:
    with pytest.raises(ValueError):
        PathGeometry(points)


def test_default_map_slots_sit_beside_the_path() -> None:
    m = default_map()
    assert len(m.slot_progress) == len(DEFAULT_SLOT_PROGRESS)
    for index, progress in enumerate(m.slot_progress):
        sx, sy = m.slot_position(index)
        px, py = m.path.position_at(progress)
        assert distance(sx, sy, px, py) == pytest.approx(m.slot_offset)


def test_default_map_alternates_slot_sides() -> None:
    m = default_map()
    first = m.slot_position(0)
    second = m.slot_position(1)
    n0 = m.path.normal_at(m.slot_progress[0])
    n1 = m.path.normal_at(m.slot_progress[1])
    p0 = m.path.position_at(m.slot_progress[0])
    p1 = m.path.position_at(m.slot_progress[1])
    side0 = (first[0] - p0[0]) * n0[0] + (first[1] - p0[1]) * n0[1]
    side1 = (second[0] - p1[0]) * n1[0] + (second[1] - p1[1]) * n1[1]
    assert side0 > 0
    assert side1 < 0


def test_map_json_converts_fractions_to_pixels(tmp_path) -> None:
    p = tmp_path / "lane.json"
    p.write_text(
        '{"name": "lane", "world": {"width": 200, "height": 100},'
        ' "waypoints": [[0, 0.5], [1, 0.5]], "slots": [0.5, 0.25]}',
        encoding="utf-8",
    )
    m = load_map_json(p)
    assert m.name == "lane"
    assert m.waypoints == [(0.0, 50.0), (200.0, 50.0)]
    assert m.slot_progress == [0.25, 0.5]
    assert m.path.length == pytest.approx(200.0)


def test_map_json_rejects_slot_outside_path(tmp_path) -> None:
    p = tmp_path / "bad.json"
    p.write_text('{"waypoints": [[0, 0], [1, 1]], "slots": [1.5]}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_map_json(p)


def test_bundled_map_matches_default() -> None:
    from pathlib import Path

    bundled = load_map_json(Path(__file__).resolve().parents[3] / "data/maps/breakpoint.json")
    builtin = default_map()
    assert bundled.slot_progress == builtin.slot_progress
    assert bundled.path.length == pytest.approx(builtin.path.length)
