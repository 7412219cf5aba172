"""
Keyframe Extractor
Reads host properties into the Property/Keyframe records the engine evaluates
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from core.data_structures import Interpolation

from .host import (
    INTERP_BEZIER,
    INTERP_HOLD,
    INTERP_LINEAR,
    INDEXED_GROUP,
    NAMED_GROUP,
    PROPERTY,
    TEXT_ANIMATOR_MATCH_NAME,
)

LOG = logging.getLogger(__name__)

MAX_PROPERTY_DEPTH = 50

_INTERPOLATION_CODES = {
    INTERP_LINEAR: Interpolation.LINEAR,
    INTERP_BEZIER: Interpolation.BEZIER,
    INTERP_HOLD: Interpolation.HOLD,
}

AXES = ("X", "Y", "Z")


def interpolation_name(code: Any) -> str:
    """Map a host interpolation constant to LINEAR/BEZIER/HOLD, else UNKNOWN."""
    return _INTERPOLATION_CODES.get(code, Interpolation.UNKNOWN).value


def shape_to_dict(shape: Any) -> Dict[str, Any]:
    """Convert a host path value into the exported MaskPath layout."""
    def points(values):
        return [[float(p[0]), float(p[1])] for p in values or []]

    return {
        'closed': bool(shape.closed),
        'vertices': points(shape.vertices),
        'inTangents': points(shape.in_tangents),
        'outTangents': points(shape.out_tangents),
    }


def plain_value(value: Any) -> Any:
    """Convert a host value into JSON-friendly data."""
    if hasattr(value, 'vertices'):
        return shape_to_dict(value)
    if isinstance(value, (list, tuple)):
        return [plain_value(v) for v in value]
    return value


def _pick_ease(eases: Sequence[Any], value_index: Optional[int]) -> Dict[str, float]:
    # Spatial properties carry one ease; others carry one per dimension
    ease = eases[value_index] if value_index is not None and value_index < len(eases) else eases[0]
    return {'speed': float(ease.speed), 'influence': float(ease.influence)}


def extract_keyframe(prop: Any, k: int, value_index: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """
    Read keyframe ``k`` of a host property.

    Args:
        prop: Host property
        k: 1-based keyframe index
        value_index: Component to keep for multi-dimensional values

    Returns:
        The keyframe record, or None when any field cannot be read
    """
    try:
        value = plain_value(prop.key_value(k))
        if value_index is not None and isinstance(value, list):
            value = value[value_index]
        return {
            'time': float(prop.key_time(k)),
            'value': value,
            'easing': {
                'inType': interpolation_name(prop.key_in_interpolation_type(k)),
                'outType': interpolation_name(prop.key_out_interpolation_type(k)),
                'inEase': _pick_ease(prop.key_in_temporal_ease(k), value_index),
                'outEase': _pick_ease(prop.key_out_temporal_ease(k), value_index),
                'continuous': bool(prop.key_temporal_continuous(k)),
                'autoBezier': bool(prop.key_temporal_auto_bezier(k)),
            },
        }
    except Exception as e:
        LOG.debug("Dropping keyframe %s of '%s': %s", k, getattr(prop, 'name', '?'), e)
        return None


def extract_keyframes(prop: Any, value_index: Optional[int] = None) -> List[Dict[str, Any]]:
    """Read every keyframe of a property, skipping unreadable ones."""
    keyframes = []
    for k in range(1, (getattr(prop, 'num_keys', 0) or 0) + 1):
        keyframe = extract_keyframe(prop, k, value_index)
        if keyframe is not None:
            keyframes.append(keyframe)
    return keyframes


def extract_simple_keyframes(prop: Any) -> List[Dict[str, Any]]:
    """Read (time, value) pairs without easing data."""
    keyframes = []
    for k in range(1, (getattr(prop, 'num_keys', 0) or 0) + 1):
        try:
            keyframes.append({'time': float(prop.key_time(k)), 'value': plain_value(prop.key_value(k))})
        except Exception as e:
            LOG.debug("Skipping keyframe %s of '%s': %s", k, getattr(prop, 'name', '?'), e)
    return keyframes


def extract_property(prop: Any, name: Optional[str] = None, value_index: Optional[int] = None) -> Dict[str, Any]:
    """
    Build the exported record of one property.

    Properties without time variation get an empty keyframe list.
    """
    value = plain_value(prop.value)
    if value_index is not None and isinstance(value, list):
        value = value[value_index] if value_index < len(value) else 0
    keyframes = []
    if getattr(prop, 'is_time_varying', False) and getattr(prop, 'num_keys', 0):
        keyframes = extract_keyframes(prop, value_index)
    return {
        'name': name or prop.name,
        'propertyIndex': getattr(prop, 'property_index', 0),
        'value': value,
        'keyframes': keyframes,
    }


def extract_multi_dimensional(prop: Any, output: Dict[str, Any], base_name: str,
                              property_index: int, include_z: bool) -> None:
    """Split a vector property into one scalar record per axis."""
    value = prop.value
    if not isinstance(value, (list, tuple)) or not value:
        return
    axis_count = 3 if include_z or len(value) > 2 else 2
    for i in range(axis_count):
        name = f"{AXES[i]} {base_name}"
        record = extract_property(prop, name, i)
        record['propertyIndex'] = property_index
        output[name] = record


def extract_transform_properties(group: Any, output: Dict[str, Any]) -> None:
    """
    Read the Transform group.

    Host indices: 1 Anchor Point, 2 Position, 3-5 X/Y/Z Position,
    6 Scale, 7 Orientation, 8-10 X/Y/Z Rotation, 11 Opacity.
    """
    separated = False
    try:
        position = group.property(2)
        separated = bool(position and getattr(position, 'dimensions_separated', False))
    except Exception as e:
        LOG.debug("Position separation check failed: %s", e)

    position_names = ("X Position", "Y Position", "Z Position")
    for index in range(1, 12):
        try:
            prop = group.property(index)
            if not prop:
                continue
            if index == 1:
                extract_multi_dimensional(prop, output, "Anchor Point", 1, True)
            elif index == 2 and not separated:
                extract_multi_dimensional(prop, output, "Position", 2, False)
            elif 3 <= index <= 5 and separated:
                output[position_names[index - 3]] = extract_property(prop, position_names[index - 3])
            elif index == 6:
                extract_multi_dimensional(prop, output, "Scale", 6, False)
            elif index == 7:
                extract_multi_dimensional(prop, output, "Orientation", 7, True)
            elif 8 <= index <= 11:
                # 2D layers name index 10 plain "Rotation"
                name = "Z Rotation" if index == 10 else None
                record = extract_property(prop, name)
                output[record['name']] = record
        except Exception as e:
            LOG.debug("Skipping transform property %d: %s", index, e)


def extract_property_group(group: Any, output: Dict[str, Any], depth: int = 0) -> None:
    """
    Walk a property group and record every time-varying leaf property.

    The Transform group is always recorded in full.
    """
    if depth > MAX_PROPERTY_DEPTH:
        LOG.warning("Max recursion depth reached processing property group: %s", group.name)
        return

    try:
        is_transform = group.name == "Transform"
        is_text = group.name == "Text"
        if is_transform:
            extract_transform_properties(group, output)

        for index in range(1, (getattr(group, 'num_properties', 0) or 0) + 1):
            prop = group.property(index)
            if prop is None:
                continue
            if prop.property_type == PROPERTY:
                if is_transform:
                    continue
                if getattr(prop, 'is_time_varying', False):
                    record = extract_property(prop)
                    output[record['name']] = record
            elif prop.property_type in (INDEXED_GROUP, NAMED_GROUP):
                # Animator properties are recorded under "Text Animators" only
                if is_text and prop.name == "Animators":
                    continue
                extract_property_group(prop, output, depth + 1)

        if is_text:
            extract_text_animators(group, output)
    except Exception as e:
        LOG.error("Error processing property group %s: %s", getattr(group, 'name', '?'), e)


RANGE_SELECTOR_NAME = "Range Selector"
# Range selector properties whose keyframes are exported with easing
RANGE_SELECTOR_ANIMATED = ("Start", "End", "Offset", "Amount")


def extract_range_selector(selector: Any) -> Optional[Dict[str, Any]]:
    """Read the bounds, shape and animated keyframes of a text range selector."""
    try:
        def value(name: str) -> Any:
            prop = selector.property(name)
            return plain_value(prop.value) if prop is not None else None

        data: Dict[str, Any] = {
            'name': RANGE_SELECTOR_NAME,
            'start': value("Start"),
            'end': value("End"),
            'offset': value("Offset"),
            'mode': value("Mode"),
            'amount': value("Amount"),
            'shape': value("Shape"),
            'smoothness': value("Smoothness"),
            'easingProperties': [],
        }
        for name in RANGE_SELECTOR_ANIMATED:
            prop = selector.property(name)
            if prop is None or not getattr(prop, 'num_keys', 0):
                continue
            keyframes = [
                kf for kf in (extract_keyframe(prop, k, 0) for k in range(1, prop.num_keys + 1))
                if kf is not None
            ]
            data['easingProperties'].append({'name': name, 'keyframes': keyframes})
        return data
    except Exception as e:
        LOG.warning("Error processing range selector: %s", e)
        return None


def _children(group: Any, *container_names: str) -> List[Any]:
    """Children of a group, looking through nested groups named in ``container_names``."""
    children = []
    for index in range(1, (getattr(group, 'num_properties', 0) or 0) + 1):
        prop = group.property(index)
        if prop is None:
            continue
        if prop.property_type != PROPERTY and prop.name in container_names:
            children.extend(_children(prop))
        else:
            children.append(prop)
    return children


def extract_text_animator(animator: Any) -> Dict[str, Any]:
    """Read the properties and range selectors of one text animator."""
    animator_data: Dict[str, Any] = {'name': animator.name, 'properties': []}
    for prop in _children(animator, "Properties", "Selectors"):
        if prop.property_type == PROPERTY:
            animator_data['properties'].append(extract_property(prop))
        elif prop.name.startswith(RANGE_SELECTOR_NAME):
            selector = extract_range_selector(prop)
            if selector is not None:
                animator_data['properties'].append(selector)
    return animator_data


def extract_text_animators(group: Any, output: Dict[str, Any]) -> None:
    """Record the animators of a layer's Text group under "Text Animators"."""
    animators = []
    for prop in _children(group, "Animators"):
        if getattr(prop, 'match_name', None) == TEXT_ANIMATOR_MATCH_NAME:
            animators.append(extract_text_animator(prop))
    if animators:
        output["Text Animators"] = {'name': "Text Animators", 'animators': animators}
