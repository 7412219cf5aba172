"""
Track Evaluator
Locates the bracketing keyframe pair for a time and dispatches to the ease solver
"""

from bisect import bisect_right
from typing import Dict, Optional, Tuple

from .data_structures import (
    ClipData,
    EffectData,
    EngineConfig,
    MaskPath,
    PathTrack,
    PropertyTrack,
    RANGE_SELECTOR_TRACKS,
    RangeSelector,
)
from .easing import resolve_segment_interpolation, solve_ease


def _find_segment(track: PropertyTrack, time: float) -> int:
    """Return i such that keyframes[i].time <= time < keyframes[i + 1].time."""
    if track.is_ordered:
        return bisect_right(track.times, time) - 1

    # Unordered tracks were reported when built; scan for a bracketing pair
    keyframes = track.keyframes
    for i in range(len(keyframes) - 1):
        if keyframes[i].time <= time < keyframes[i + 1].time:
            return i
    # No bracketing pair: use the last keyframe at or before time
    candidates = [i for i, kf in enumerate(keyframes) if kf.time <= time]
    return candidates[-1] if candidates else 0


def evaluate(track: PropertyTrack, time: float, config: Optional[EngineConfig] = None) -> float:
    """
    Evaluate a scalar track at ``time``.

    Args:
        track: Track to evaluate
        time: Time in seconds
        config: Solver settings

    Returns:
        The static value when the track has no keyframes, the first/last
        keyframe value outside the keyframe range, otherwise the eased value
        of the bracketing segment.
    """
    keyframes = track.keyframes
    if not keyframes:
        return track.value

    if track.is_ordered:
        if time < keyframes[0].time:
            return keyframes[0].value
        if time >= keyframes[-1].time:
            return keyframes[-1].value

    index = _find_segment(track, time)
    start = keyframes[index]
    if time == start.time or index + 1 >= len(keyframes):
        return start.value
    end = keyframes[index + 1]

    interpolation = resolve_segment_interpolation(start.easing.out_type, end.easing.in_type)
    return solve_ease(
        start.easing.out_ease,
        end.easing.in_ease,
        start.time,
        end.time,
        start.value,
        end.value,
        time,
        interpolation,
        out_type=start.easing.out_type,
        in_type=end.easing.in_type,
        config=config,
    )


def evaluate_path(track: PathTrack, time: float, config: Optional[EngineConfig] = None) -> Optional[MaskPath]:
    """Evaluate every coordinate of a path track and reassemble the path."""
    if not track.keyframes:
        return track.value

    # ``closed`` cannot be blended; it steps with the keyframe in effect
    active = track.keyframes[0]
    for kf in track.keyframes:
        if kf.time <= time:
            active = kf

    def points(field_name: str) -> Tuple[Tuple[float, float], ...]:
        return tuple(
            (
                evaluate(track.coordinate_tracks[(field_name, i, 0)], time, config),
                evaluate(track.coordinate_tracks[(field_name, i, 1)], time, config),
            )
            for i in range(track.vertex_count)
        )

    return MaskPath(
        vertices=points('vertices'),
        in_tangents=points('in_tangents'),
        out_tangents=points('out_tangents'),
        closed=active.value.closed,
    )


def property_value(
    clip: ClipData,
    name: str,
    time: float,
    default: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> Optional[float]:
    """Evaluate a named scalar property of a clip, or return ``default`` when absent."""
    track = clip.properties.get(name)
    if not isinstance(track, PropertyTrack):
        return default
    return evaluate(track, time, config)


def effect_values(effect: EffectData, time: float, config: Optional[EngineConfig] = None) -> Dict[str, float]:
    """Evaluate every scalar parameter of an effect."""
    return {
        name: evaluate(track, time, config)
        for name, track in effect.parameters.items()
        if isinstance(track, PropertyTrack)
    }


def range_selector_values(
    selector: RangeSelector,
    time: float,
    config: Optional[EngineConfig] = None,
) -> Dict[str, float]:
    """Evaluate the start, end, offset and amount of a text range selector."""
    return {key: evaluate(getattr(selector, key), time, config) for key in RANGE_SELECTOR_TRACKS}
