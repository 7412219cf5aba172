"""
Effect extraction
Reads a layer's effect parade and its blending mode
"""

import logging
from typing import Any, Dict, List, Optional

from .host import PROPERTY
from .keyframes import extract_keyframes, plain_value

LOG = logging.getLogger(__name__)

# Host blending mode name -> exported mode; modes without a direct
# counterpart map to the closest one
BLEND_MODES = {
    "NORMAL": "normal",
    "MULTIPLY": "multiply",
    "SCREEN": "screen",
    "OVERLAY": "overlay",
    "ADD": "add",
    "DARKEN": "darken",
    "LIGHTEN": "lighten",
    "COLOR_BURN": "darken",
    "LINEAR_BURN": "darken",
    "DARKER_COLOR": "darken",
    "COLOR_DODGE": "lighten",
    "LIGHTER_COLOR": "lighten",
    "LINEAR_DODGE": "add",
    "HARD_LIGHT": "overlay",
    "SOFT_LIGHT": "overlay",
}

DEFAULT_BLEND_MODE = "normal"


def blend_mode_name(mode: Any) -> str:
    """Map a host blending mode (enum member or its name) to an exported mode."""
    key = getattr(mode, 'name', mode)
    if not isinstance(key, str):
        return DEFAULT_BLEND_MODE
    return BLEND_MODES.get(key.upper(), DEFAULT_BLEND_MODE)


def extract_blend_mode(layer: Any) -> Dict[str, Any]:
    """Read ``blendMode`` and the raw ``blendingModeEnum`` of a layer."""
    try:
        mode = getattr(layer, 'blending_mode', None)
        return {
            'blendingModeEnum': getattr(mode, 'value', mode),
            'blendMode': blend_mode_name(mode),
        }
    except Exception as e:
        LOG.debug("Could not read blending mode of '%s': %s", getattr(layer, 'name', '?'), e)
        return {'blendingModeEnum': None, 'blendMode': DEFAULT_BLEND_MODE}


def extract_effect_parameter(param: Any) -> Dict[str, Any]:
    keyframes = extract_keyframes(param) if getattr(param, 'num_keys', 0) else []
    return {
        'name': param.name,
        'matchName': getattr(param, 'match_name', ""),
        'value': plain_value(param.value),
        'keyframes': keyframes,
    }


def extract_effect(effect: Any) -> Dict[str, Any]:
    """Build the exported record of one effect; unreadable parameters are skipped."""
    effect_data: Dict[str, Any] = {
        'name': effect.name,
        'matchName': getattr(effect, 'match_name', ""),
        'enabled': bool(getattr(effect, 'enabled', True)),
        'parameters': [],
    }
    for index in range(1, (getattr(effect, 'num_properties', 0) or 0) + 1):
        try:
            param = effect.property(index)
            if param is None or param.property_type != PROPERTY:
                continue
            effect_data['parameters'].append(extract_effect_parameter(param))
        except Exception as e:
            LOG.debug("Skipping parameter %d of effect '%s': %s", index, effect.name, e)
    return effect_data


def extract_effects(layer: Any) -> List[Dict[str, Any]]:
    """Read every effect applied to ``layer``."""
    parade: Optional[Any] = getattr(layer, 'effects', None)
    if parade is None:
        return []
    effects = []
    for index in range(1, (getattr(parade, 'num_properties', 0) or 0) + 1):
        try:
            effect = parade.property(index)
            if effect is not None:
                effects.append(extract_effect(effect))
        except Exception as e:
            LOG.debug("Skipping effect %d of '%s': %s", index, getattr(layer, 'name', '?'), e)
    return effects
