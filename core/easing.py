"""
Ease Solver
Evaluates one keyframe segment with linear, hold or speed/influence bezier easing
"""

from typing import Optional, Tuple

from .data_structures import DEFAULT_CONFIG, EngineConfig, Interpolation, TemporalEase


def resolve_segment_interpolation(out_type: Interpolation, in_type: Interpolation) -> Interpolation:
    """
    Resolve the behaviour of the segment between two keyframes.

    HOLD on either side wins, then BEZIER (UNKNOWN counts as bezier), and only
    a segment that is LINEAR on both sides interpolates linearly.
    """
    if out_type == Interpolation.HOLD or in_type == Interpolation.HOLD:
        return Interpolation.HOLD
    if out_type == Interpolation.LINEAR and in_type == Interpolation.LINEAR:
        return Interpolation.LINEAR
    return Interpolation.BEZIER


def cubic_bezier(u: float, p0: float, p1: float, p2: float, p3: float) -> float:
    """Evaluate one coordinate of a cubic bezier at parameter u."""
    mu = 1.0 - u
    return mu * mu * mu * p0 + 3 * mu * mu * u * p1 + 3 * mu * u * u * p2 + u * u * u * p3


def cubic_bezier_derivative(u: float, p0: float, p1: float, p2: float, p3: float) -> float:
    mu = 1.0 - u
    return 3 * mu * mu * (p1 - p0) + 6 * mu * u * (p2 - p1) + 3 * u * u * (p3 - p2)


def _influence_fraction(influence: float) -> float:
    return max(0.0, min(1.0, influence / 100.0))


def ease_control_points(
    out_ease: TemporalEase,
    in_ease: TemporalEase,
    start_time: float,
    end_time: float,
    start_value: float,
    end_value: float,
    out_type: Interpolation = Interpolation.BEZIER,
    in_type: Interpolation = Interpolation.BEZIER,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
    """
    Build the four (time, value) control points of a bezier segment.

    The outgoing handle leaves the start keyframe forward in time by
    ``influence`` percent of the segment and rises by ``speed`` per second; the
    incoming handle mirrors that backwards from the end keyframe. A LINEAR side
    of a mixed segment gets a flat handle with a tiny influence.
    """
    duration = end_time - start_time

    if out_type == Interpolation.LINEAR:
        reach = _influence_fraction(config.mixed_linear_influence) * duration
        p1 = (start_time + reach, start_value)
    else:
        reach = _influence_fraction(out_ease.influence) * duration
        p1 = (start_time + reach, start_value + out_ease.speed * reach)

    if in_type == Interpolation.LINEAR:
        reach = _influence_fraction(config.mixed_linear_influence) * duration
        p2 = (end_time - reach, end_value)
    else:
        reach = _influence_fraction(in_ease.influence) * duration
        p2 = (end_time - reach, end_value - in_ease.speed * reach)

    return (start_time, start_value), p1, p2, (end_time, end_value)


def solve_bezier_parameter(
    target: float,
    x0: float,
    x1: float,
    x2: float,
    x3: float,
    tolerance: float,
    max_iterations: int,
) -> float:
    """
    Find u in [0, 1] with x(u) == target.

    Newton-Raphson steps are taken while they stay inside the current bracket;
    otherwise the bracket is bisected.
    """
    lower, upper = 0.0, 1.0
    span = x3 - x0
    u = (target - x0) / span if span else 0.5
    u = max(0.0, min(1.0, u))

    for _ in range(max_iterations):
        x = cubic_bezier(u, x0, x1, x2, x3)
        error = x - target
        if abs(error) <= tolerance:
            return u
        if error < 0:
            lower = u
        else:
            upper = u

        slope = cubic_bezier_derivative(u, x0, x1, x2, x3)
        candidate = u - error / slope if slope else -1.0
        if lower < candidate < upper:
            u = candidate
        else:
            u = (lower + upper) / 2
    return u


def solve_ease(
    out_ease: TemporalEase,
    in_ease: TemporalEase,
    start_time: float,
    end_time: float,
    start_value: float,
    end_value: float,
    query_time: float,
    interpolation: Interpolation,
    *,
    out_type: Optional[Interpolation] = None,
    in_type: Optional[Interpolation] = None,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Evaluate a segment between two keyframes at ``query_time``.

    Args:
        out_ease: Outgoing ease of the start keyframe
        in_ease: Incoming ease of the end keyframe
        start_time, end_time: Segment bounds in seconds
        start_value, end_value: Keyframe values
        query_time: Time to evaluate
        interpolation: Resolved segment interpolation
        out_type, in_type: Per-side interpolation, used to shape mixed segments
        config: Solver settings

    Returns:
        The value at ``query_time``. Both segment ends return the keyframe
        values exactly.
    """
    if end_time <= start_time:
        return start_value
    if query_time <= start_time:
        return start_value
    if query_time >= end_time:
        return end_value

    if interpolation == Interpolation.HOLD:
        return start_value

    if interpolation == Interpolation.LINEAR:
        return start_value + (end_value - start_value) * (query_time - start_time) / (end_time - start_time)

    config = config or DEFAULT_CONFIG
    if out_type is None or out_type == Interpolation.UNKNOWN:
        out_type = Interpolation.BEZIER
    if in_type is None or in_type == Interpolation.UNKNOWN:
        in_type = Interpolation.BEZIER

    p0, p1, p2, p3 = ease_control_points(
        out_ease, in_ease, start_time, end_time, start_value, end_value,
        out_type, in_type, config,
    )
    u = solve_bezier_parameter(
        query_time,
        p0[0], p1[0], p2[0], p3[0],
        config.solver_tolerance * (end_time - start_time),
        config.solver_max_iterations,
    )
    return cubic_bezier(u, p0[1], p1[1], p2[1], p3[1])
