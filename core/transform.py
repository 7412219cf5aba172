"""
Transform matrix utilities and layer transform composition
Provides 4x4 matrix builders and composes clip transforms along parent chains
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .data_structures import (
    DEFAULT_CONFIG,
    ClipData,
    DataIntegrityError,
    EngineConfig,
    Transform,
    Vec3,
)
from .track_evaluator import property_value

LOG = logging.getLogger(__name__)

AXES = ("X", "Y", "Z")


class ParentCycleError(DataIntegrityError):
    """Raised when a clip's parent chain loops back on itself."""


def create_translation_matrix(x: float, y: float, z: float = 0) -> np.ndarray:
    """
    Create a 4x4 translation matrix

    Args:
        x: Translation along X axis
        y: Translation along Y axis
        z: Translation along Z axis (default: 0)

    Returns:
        4x4 numpy array representing the translation matrix
    """
    return np.array([
        [1, 0, 0, x],
        [0, 1, 0, y],
        [0, 0, 1, z],
        [0, 0, 0, 1]
    ], dtype=np.float64)


def create_rotation_matrix(angle_degrees: float, axis: str = "Z") -> np.ndarray:
    """
    Create a 4x4 rotation matrix around a single axis

    Args:
        angle_degrees: Rotation angle in degrees
        axis: "X", "Y" or "Z"

    Returns:
        4x4 numpy array representing the rotation matrix
    """
    angle_rad = math.radians(angle_degrees)
    cos_a = math.cos(angle_rad)
    sin_a = math.sin(angle_rad)
    if axis == "X":
        rows = [
            [1, 0, 0, 0],
            [0, cos_a, -sin_a, 0],
            [0, sin_a, cos_a, 0],
            [0, 0, 0, 1]
        ]
    elif axis == "Y":
        rows = [
            [cos_a, 0, sin_a, 0],
            [0, 1, 0, 0],
            [-sin_a, 0, cos_a, 0],
            [0, 0, 0, 1]
        ]
    elif axis == "Z":
        rows = [
            [cos_a, -sin_a, 0, 0],
            [sin_a, cos_a, 0, 0],
            [0, 0, 1, 0],
            [0, 0, 0, 1]
        ]
    else:
        raise ValueError(f"Unknown rotation axis '{axis}'")
    return np.array(rows, dtype=np.float64)


def create_scale_matrix(sx: float, sy: float, sz: float = 1) -> np.ndarray:
    """
    Create a 4x4 scale matrix

    Args:
        sx: Scale factor along X axis
        sy: Scale factor along Y axis
        sz: Scale factor along Z axis (default: 1)

    Returns:
        4x4 numpy array representing the scale matrix
    """
    return np.array([
        [sx, 0, 0, 0],
        [0, sy, 0, 0],
        [0, 0, sz, 0],
        [0, 0, 0, 1]
    ], dtype=np.float64)


def matrix_multiply(*matrices: np.ndarray) -> np.ndarray:
    """Multiply 4x4 matrices left to right."""
    result = np.identity(4, dtype=np.float64)
    for matrix in matrices:
        result = np.dot(result, matrix)
    return result


def transform_point(matrix: np.ndarray, point: Vec3) -> Vec3:
    """Apply a 4x4 matrix to a 3D point."""
    x, y, z, w = np.dot(matrix, np.array([point[0], point[1], point[2], 1.0]))
    if w not in (0.0, 1.0):
        x, y, z = x / w, y / w, z / w
    return float(x), float(y), float(z)


def get_transform(clip: ClipData, time: float, config: Optional[EngineConfig] = None) -> Transform:
    """
    Evaluate the transform properties of a clip at ``time``.

    Scale and relative scale are authored in percent and returned as unit
    multipliers. Missing properties fall back to the identity transform;
    missing relative properties are 0.
    """
    def vector(base: str, default: float, relative: bool = False) -> Vec3:
        prefix = "Relative " if relative else ""
        return tuple(
            property_value(clip, f"{prefix}{axis} {base}", time, default, config)
            for axis in AXES
        )

    scale = vector("Scale", 100.0)
    relative_scale = vector("Scale", 0.0, relative=True)
    return Transform(
        anchor_point=vector("Anchor Point", 0.0),
        position=vector("Position", 0.0),
        scale=tuple(s / 100.0 for s in scale),
        rotation=vector("Rotation", 0.0),
        relative_position=vector("Position", 0.0, relative=True),
        relative_scale=tuple(s / 100.0 for s in relative_scale),
        relative_rotation=vector("Rotation", 0.0, relative=True),
    )


def build_transform_matrix(transform: Transform) -> np.ndarray:
    """
    Build the local matrix of a layer transform.

    Points are moved so the anchor sits at the origin, scaled, rotated about
    X then Y then Z, and finally translated to the position:
    M = T(position) * Rz * Ry * Rx * S(scale) * T(-anchor)
    """
    anchor = transform.anchor_point
    rx, ry, rz = transform.rotation
    return matrix_multiply(
        create_translation_matrix(*transform.position),
        create_rotation_matrix(rz, "Z"),
        create_rotation_matrix(ry, "Y"),
        create_rotation_matrix(rx, "X"),
        create_scale_matrix(*transform.scale),
        create_translation_matrix(-anchor[0], -anchor[1], -anchor[2]),
    )


@dataclass(frozen=True, eq=False)
class ComposedTransform:
    """Result of composing a clip with its parents"""
    local: Transform
    matrix: np.ndarray
    chain: Tuple[str, ...]

    @property
    def world_position(self) -> Vec3:
        """World-space location of the clip's anchor point."""
        return transform_point(self.matrix, self.local.anchor_point)


def parent_chain(clip: ClipData, clips: Optional[Dict[str, ClipData]]) -> List[ClipData]:
    """
    Walk from ``clip`` up through its transform parents.

    Returns the chain ordered child first. A missing parent ends the chain;
    a repeated clip raises ``ParentCycleError``.
    """
    chain = [clip]
    visited = {clip.id}
    current = clip
    while current.parent_layer_id:
        parent_id = current.parent_layer_id
        if parent_id in visited:
            raise ParentCycleError(
                f"Parent chain of clip '{clip.id}' loops at '{parent_id}': "
                + " -> ".join(c.id for c in chain)
            )
        parent = (clips or {}).get(parent_id)
        if parent is None:
            LOG.warning("Clip '%s' references missing parent '%s'", current.id, parent_id)
            break
        visited.add(parent_id)
        chain.append(parent)
        current = parent
    return chain


def compose(
    clip: ClipData,
    time: float,
    clips: Optional[Dict[str, ClipData]] = None,
    config: Optional[EngineConfig] = None,
) -> ComposedTransform:
    """
    Compose the world transform of a clip at ``time``.

    Args:
        clip: Clip to compose
        time: Time in seconds
        clips: All clips by id, used to resolve parents
        config: Solver settings

    Returns:
        ComposedTransform with the clip's local transform and the world matrix
        ``M_root * ... * M_parent * M_clip``
    """
    config = config or DEFAULT_CONFIG
    chain = parent_chain(clip, clips)
    local = get_transform(clip, time, config)

    matrix = build_transform_matrix(local.effective())
    for parent in chain[1:]:
        parent_matrix = build_transform_matrix(get_transform(parent, time, config).effective())
        matrix = np.dot(parent_matrix, matrix)

    return ComposedTransform(
        local=local,
        matrix=matrix,
        chain=tuple(c.id for c in chain),
    )
