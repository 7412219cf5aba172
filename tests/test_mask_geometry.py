import logging

import numpy as np
import pytest

from core.data_structures import (
    ClipData,
    EngineConfig,
    MaskData,
    MaskPath,
    PathKeyframe,
    PathTrack,
    PropertyTrack,
)
from core.mask_geometry import (
    PathCommandType,
    build_mask_geometry,
    build_path,
    resolve_mask_path,
    triangulate_polygon,
)

SQUARE = MaskPath(
    vertices=((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)),
    in_tangents=((0.0, 0.0),) * 4,
    out_tangents=((0.0, 0.0),) * 4,
    closed=True,
)


def _kinds(geometry) -> list:
    return [c.kind for c in geometry.commands]


def test_closed_square_is_four_lines() -> None:
    geometry = build_path(SQUARE)
    assert _kinds(geometry) == [
        PathCommandType.MOVE,
        PathCommandType.LINE,
        PathCommandType.LINE,
        PathCommandType.LINE,
        PathCommandType.LINE,
        PathCommandType.CLOSE,
    ]
    assert geometry.segment_count == 4
    assert geometry.commands[-2].points == ((0.0, 0.0),)
    assert not geometry.is_fallback


def test_open_path_has_no_wrap_segment() -> None:
    path = MaskPath(vertices=((0.0, 0.0), (10.0, 0.0), (10.0, 10.0)), closed=False)
    geometry = build_path(path)
    assert _kinds(geometry) == [PathCommandType.MOVE, PathCommandType.LINE, PathCommandType.LINE]
    assert geometry.closed is False


def test_tangents_produce_cubics() -> None:
    path = MaskPath(
        vertices=((0.0, 0.0), (100.0, 0.0)),
        in_tangents=((0.0, -10.0), (0.0, 20.0)),
        out_tangents=((0.0, 30.0), (0.0, -40.0)),
        closed=True,
    )
    geometry = build_path(path)
    assert _kinds(geometry) == [
        PathCommandType.MOVE,
        PathCommandType.CUBIC,
        PathCommandType.CUBIC,
        PathCommandType.CLOSE,
    ]
    forward = geometry.commands[1]
    assert forward.points == ((0.0, 30.0), (100.0, 20.0), (100.0, 0.0))
    wrap = geometry.commands[2]
    assert wrap.points == ((100.0, -40.0), (0.0, -10.0), (0.0, 0.0))


def test_missing_tangents_fall_back_to_lines() -> None:
    path = MaskPath(vertices=((0.0, 0.0), (5.0, 5.0)), closed=False)
    assert _kinds(build_path(path)) == [PathCommandType.MOVE, PathCommandType.LINE]


@pytest.mark.parametrize("path", [None, MaskPath()])
def test_empty_path_uses_fallback_rectangle(path) -> None:
    geometry = build_path(path)
    assert geometry.is_fallback
    assert geometry.commands[0].points == ((0.0, 0.0),)
    polygon = geometry.to_polygon()
    assert polygon.tolist() == [[0.0, 0.0], [100.0, 0.0], [100.0, 100.0], [0.0, 100.0]]


def test_fallback_rectangle_is_configurable() -> None:
    geometry = build_path(None, EngineConfig(fallback_rect=(10.0, 20.0, 30.0, 40.0)))
    assert geometry.to_polygon().tolist() == [[10.0, 20.0], [30.0, 20.0], [30.0, 40.0], [10.0, 40.0]]


def test_polygon_drops_repeated_closing_point() -> None:
    polygon = build_path(SQUARE).to_polygon()
    assert polygon.shape == (4, 2)


def test_cubics_are_sampled() -> None:
    path = MaskPath(
        vertices=((0.0, 0.0), (100.0, 0.0)),
        in_tangents=((0.0, 0.0), (0.0, 50.0)),
        out_tangents=((0.0, 50.0), (0.0, 0.0)),
        closed=False,
    )
    polygon = build_path(path).to_polygon(segments=4)
    assert polygon.shape == (5, 2)
    assert polygon[-1].tolist() == [100.0, 0.0]
    assert polygon[2][1] == pytest.approx(37.5)


def test_square_triangulates_into_two_triangles() -> None:
    vertices, indices = build_path(SQUARE).triangulate()
    assert len(indices) == 6
    assert set(indices) == {0, 1, 2, 3}


def test_concave_polygon_triangulates() -> None:
    l_shape = np.array([(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)], dtype=np.float64)
    indices = triangulate_polygon(l_shape)
    assert len(indices) == 12
    area = 0.0
    for i in range(0, len(indices), 3):
        (x0, y0), (x1, y1), (x2, y2) = l_shape[indices[i:i + 3]]
        area += abs((x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0)) / 2
    assert area == pytest.approx(3.0)


def test_degenerate_polygon_has_no_triangles() -> None:
    assert triangulate_polygon(np.array([(0, 0), (1, 1)], dtype=np.float64)) == []


def _moving_square(start: float, end: float) -> PathTrack:
    def square(size):
        return MaskPath(vertices=((0.0, 0.0), (size, 0.0), (size, size), (0.0, size)))

    return PathTrack(name="Mask Path", keyframes=(PathKeyframe(0.0, square(start)), PathKeyframe(1.0, square(end))))


def test_clip_property_beats_mask_keyframes_and_static_path() -> None:
    mask = MaskData(name="Mask 1", mask_path=SQUARE, path_keyframes=_moving_square(10.0, 20.0))
    clip = ClipData(id="c", properties={'Mask Path': _moving_square(200.0, 400.0)}, masks=[mask])
    assert resolve_mask_path(clip, mask, 0.5).vertices[1] == (300.0, 0.0)


def test_mask_keyframes_beat_static_path() -> None:
    mask = MaskData(name="Mask 1", mask_path=SQUARE, path_keyframes=_moving_square(10.0, 20.0))
    clip = ClipData(id="c", masks=[mask])
    assert resolve_mask_path(clip, mask, 0.5).vertices[1] == (15.0, 0.0)


def test_static_path_is_last_resort() -> None:
    mask = MaskData(name="Mask 1", mask_path=SQUARE)
    clip = ClipData(id="c", masks=[mask])
    assert resolve_mask_path(clip, mask, 0.5) == SQUARE


def test_raw_mask_keyframes_are_linear() -> None:
    mask = MaskData.from_dict({
        'name': "Mask 1",
        'index': 1,
        'keyframes': {
            'maskPath': [
                {'time': 0, 'value': {'vertices': [[0, 0], [0, 0]], 'closed': False}},
                {'time': 2, 'value': {'vertices': [[0, 0], [100, 0]], 'closed': False}},
            ],
        },
    })
    clip = ClipData(id="c", masks=[mask])
    assert resolve_mask_path(clip, mask, 0.5).vertices[1] == (25.0, 0.0)


def test_mask_geometry_carries_mask_attributes(caplog) -> None:
    mask = MaskData(
        name="Cutout",
        inverted=True,
        mask_path=SQUARE,
        opacity=PropertyTrack(name="opacity", value=50.0),
        feather=PropertyTrack(name="feather", value=4.0),
    )
    broken = MaskData(name="Broken", error="Failed to process mask: boom")
    clip = ClipData(id="c", masks=[mask, broken])
    with caplog.at_level(logging.WARNING):
        geometries = build_mask_geometry(clip, 0.0)
    assert [g.name for g in geometries] == ["Cutout", "Broken"]
    assert geometries[0].inverted
    assert geometries[0].opacity == 0.5
    assert geometries[0].feather == 4.0
    assert geometries[1].is_fallback
    assert any("failed to export" in r.getMessage() for r in caplog.records)
