"""
Mask Geometry
Resolves animated mask paths and turns them into curve commands, polygons and triangles
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .data_structures import (
    DEFAULT_CONFIG,
    ClipData,
    EngineConfig,
    MaskData,
    MaskPath,
    PathTrack,
    Vec2,
)
from .track_evaluator import evaluate, evaluate_path

LOG = logging.getLogger(__name__)

MASK_PATH_PROPERTY = "Mask Path"


class PathCommandType(str, Enum):
    MOVE = "moveTo"
    LINE = "lineTo"
    CUBIC = "bezierCurveTo"
    CLOSE = "closePath"


@dataclass(frozen=True)
class PathCommand:
    """
    One drawing command. ``points`` holds the target for MOVE/LINE and
    (control 1, control 2, target) for CUBIC; CLOSE has no points.
    """
    kind: PathCommandType
    points: Tuple[Vec2, ...] = ()


@dataclass
class PathGeometry:
    """Renderable outline of one mask"""
    commands: List[PathCommand] = field(default_factory=list)
    closed: bool = False
    is_fallback: bool = False
    name: str = ""
    inverted: bool = False
    opacity: float = 1.0
    feather: float = 0.0
    expansion: float = 0.0

    @property
    def segment_count(self) -> int:
        return sum(1 for c in self.commands if c.kind in (PathCommandType.LINE, PathCommandType.CUBIC))

    def to_polygon(self, segments: int = DEFAULT_CONFIG.curve_segments) -> np.ndarray:
        """
        Flatten the outline into an (N, 2) array of points.

        Each cubic is sampled ``segments`` times; a closing point that repeats
        the first point is dropped.
        """
        points: List[Vec2] = []
        current: Optional[Vec2] = None
        steps = np.linspace(0.0, 1.0, max(1, segments) + 1)[1:]
        for command in self.commands:
            if command.kind in (PathCommandType.MOVE, PathCommandType.LINE):
                current = command.points[0]
                points.append(current)
            elif command.kind == PathCommandType.CUBIC and current is not None:
                p0 = np.array(current)
                p1, p2, p3 = (np.array(p) for p in command.points)
                u = steps[:, None]
                mu = 1.0 - u
                sampled = mu ** 3 * p0 + 3 * mu ** 2 * u * p1 + 3 * mu * u ** 2 * p2 + u ** 3 * p3
                points.extend((float(x), float(y)) for x, y in sampled)
                current = command.points[2]

        if len(points) > 1 and np.allclose(points[0], points[-1]):
            points.pop()
        return np.array(points, dtype=np.float64).reshape(-1, 2)

    def triangulate(self, segments: int = DEFAULT_CONFIG.curve_segments) -> Tuple[np.ndarray, List[int]]:
        """Return (vertices, triangle indices) for the flattened outline."""
        vertices = self.to_polygon(segments)
        return vertices, triangulate_polygon(vertices)


def _point_in_triangle(px: float, py: float, v0: Vec2, v1: Vec2, v2: Vec2) -> bool:
    """Return True if point lies inside the triangle defined by v0/v1/v2."""
    x0, y0 = v0
    x1, y1 = v1
    x2, y2 = v2
    denom = (y1 - y2) * (x0 - x2) + (x2 - x1) * (y0 - y2)
    if abs(denom) < 1e-8:
        return False
    a = ((y1 - y2) * (px - x2) + (x2 - x1) * (py - y2)) / denom
    b = ((y2 - y0) * (px - x2) + (x0 - x2) * (py - y2)) / denom
    c = 1.0 - a - b
    epsilon = -1e-5
    return (a >= epsilon) and (b >= epsilon) and (c >= epsilon)


def _signed_area(vertices: np.ndarray) -> float:
    x = vertices[:, 0]
    y = vertices[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def triangulate_polygon(vertices: np.ndarray) -> List[int]:
    """
    Ear-clip a simple polygon.

    Returns a flat list of vertex indices, three per triangle, wound
    counter-clockwise. Degenerate input yields fewer triangles rather than
    an error.
    """
    count = len(vertices)
    if count < 3:
        return []

    remaining = list(range(count))
    if _signed_area(vertices) < 0:
        remaining.reverse()

    def cross(a: int, b: int, c: int) -> float:
        ax, ay = vertices[a]
        bx, by = vertices[b]
        cx, cy = vertices[c]
        return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)

    triangles: List[int] = []
    while len(remaining) > 3:
        ear_found = False
        size = len(remaining)
        for i in range(size):
            prev_idx = remaining[i - 1]
            idx = remaining[i]
            next_idx = remaining[(i + 1) % size]
            if cross(prev_idx, idx, next_idx) <= 0:
                continue
            v0, v1, v2 = vertices[prev_idx], vertices[idx], vertices[next_idx]
            blocked = any(
                _point_in_triangle(vertices[other][0], vertices[other][1], v0, v1, v2)
                for other in remaining
                if other not in (prev_idx, idx, next_idx)
            )
            if blocked:
                continue
            triangles.extend((prev_idx, idx, next_idx))
            del remaining[i]
            ear_found = True
            break

        if not ear_found:
            # Self-intersecting or collinear outline; clip anyway to terminate
            triangles.extend((remaining[-1], remaining[0], remaining[1]))
            del remaining[0]

    if len(remaining) == 3 and cross(*remaining) != 0:
        triangles.extend(remaining)
    return triangles


def _has_tangent(tangents: Tuple[Vec2, ...], index: int) -> bool:
    return index < len(tangents)


def _segment(
    start: Vec2,
    end: Vec2,
    out_tangents: Tuple[Vec2, ...],
    in_tangents: Tuple[Vec2, ...],
    start_index: int,
    end_index: int,
) -> PathCommand:
    if _has_tangent(out_tangents, start_index) and _has_tangent(in_tangents, end_index):
        out_t = out_tangents[start_index]
        in_t = in_tangents[end_index]
        # A pair of zero handles is a straight edge
        if any(out_t) or any(in_t):
            return PathCommand(PathCommandType.CUBIC, (
                (start[0] + out_t[0], start[1] + out_t[1]),
                (end[0] + in_t[0], end[1] + in_t[1]),
                end,
            ))
    return PathCommand(PathCommandType.LINE, (end,))


def fallback_path(config: EngineConfig = DEFAULT_CONFIG) -> MaskPath:
    x0, y0, x1, y1 = config.fallback_rect
    return MaskPath(vertices=((x0, y0), (x1, y0), (x1, y1), (x0, y1)), closed=True)


def build_path(path: Optional[MaskPath], config: Optional[EngineConfig] = None) -> PathGeometry:
    """
    Build drawing commands for a path.

    Vertices are walked in order; each edge becomes a cubic when the handle
    pair around it is present and not both zero, otherwise a line. Closed
    paths get the wrap-around edge back to vertex 0 followed by a CLOSE.
    A missing or empty path yields the fallback rectangle.
    """
    config = config or DEFAULT_CONFIG
    is_fallback = False
    if path is None or not path.vertices:
        path = fallback_path(config)
        is_fallback = True

    vertices = path.vertices
    commands = [PathCommand(PathCommandType.MOVE, (vertices[0],))]
    for i in range(1, len(vertices)):
        commands.append(_segment(vertices[i - 1], vertices[i], path.out_tangents, path.in_tangents, i - 1, i))

    if path.closed:
        last = len(vertices) - 1
        if last > 0:
            commands.append(_segment(vertices[last], vertices[0], path.out_tangents, path.in_tangents, last, 0))
        commands.append(PathCommand(PathCommandType.CLOSE))

    return PathGeometry(commands=commands, closed=path.closed, is_fallback=is_fallback)


def resolve_mask_path(
    clip: ClipData,
    mask: MaskData,
    time: float,
    config: Optional[EngineConfig] = None,
) -> Optional[MaskPath]:
    """
    Pick the path a mask shows at ``time``.

    Priority: the clip's eased "Mask Path" property, then the mask's raw path
    keyframes (interpolated linearly), then the mask's static path.
    """
    prop = clip.properties.get(MASK_PATH_PROPERTY)
    if isinstance(prop, PathTrack) and prop.keyframes:
        return evaluate_path(prop, time, config)

    if mask.path_keyframes is not None and mask.path_keyframes.keyframes:
        return evaluate_path(mask.path_keyframes, time, config)

    return mask.mask_path


def build_mask_geometry(
    clip: ClipData,
    time: float,
    config: Optional[EngineConfig] = None,
) -> List[PathGeometry]:
    """Build one geometry per mask of ``clip`` at ``time``."""
    config = config or DEFAULT_CONFIG
    geometries = []
    for mask in clip.masks:
        if mask.error:
            LOG.warning("Mask '%s' of clip '%s' failed to export: %s", mask.name, clip.id, mask.error)
        geometry = build_path(resolve_mask_path(clip, mask, time, config), config)
        geometry.name = mask.name
        geometry.inverted = mask.inverted
        if mask.opacity is not None:
            geometry.opacity = max(0.0, min(1.0, evaluate(mask.opacity, time, config) / 100.0))
        if mask.feather is not None:
            geometry.feather = evaluate(mask.feather, time, config)
        if mask.expansion is not None:
            geometry.expansion = evaluate(mask.expansion, time, config)
        geometries.append(geometry)
    return geometries
