"""
Mask extraction
Reads layer masks: path, feather, opacity, expansion and their keyframes
"""

import logging
from typing import Any, Dict, List, Optional

from .keyframes import extract_simple_keyframes, plain_value, shape_to_dict

LOG = logging.getLogger(__name__)

# Host property name -> (exported value key, exported keyframe key)
_SCALAR_MASK_PROPERTIES = {
    "Mask Feather": ('maskFeather', 'maskFeather'),
    "Mask Opacity": ('maskOpacity', 'maskOpacity'),
    "Mask Expansion": ('maskExpansion', 'maskExpansion'),
}


def _mask_property(mask: Any, name: str) -> Optional[Any]:
    try:
        return mask.property(name)
    except Exception as e:
        LOG.debug("Mask '%s' has no '%s': %s", getattr(mask, 'name', '?'), name, e)
        return None


def extract_mask(mask: Any, mask_index: int) -> Dict[str, Any]:
    """Build the exported record of one mask."""
    mask_data: Dict[str, Any] = {
        'name': mask.name,
        'index': mask_index,
        'inverted': bool(getattr(mask, 'inverted', False)),
        'maskPath': None,
        'maskFeather': None,
        'maskOpacity': None,
        'maskExpansion': None,
        'keyframes': {},
    }

    path_prop = _mask_property(mask, "Mask Path")
    if path_prop is not None:
        try:
            mask_data['maskPath'] = shape_to_dict(path_prop.value)
        except Exception as e:
            LOG.debug("Mask path of '%s' not readable: %s", mask.name, e)
        if getattr(path_prop, 'num_keys', 0):
            mask_data['keyframes']['maskPath'] = extract_simple_keyframes(path_prop)

    for prop_name, (value_key, keyframe_key) in _SCALAR_MASK_PROPERTIES.items():
        prop = _mask_property(mask, prop_name)
        if prop is None:
            continue
        try:
            mask_data[value_key] = plain_value(prop.value)
        except Exception as e:
            LOG.debug("%s of '%s' not readable: %s", prop_name, mask.name, e)
            continue
        if getattr(prop, 'num_keys', 0):
            mask_data['keyframes'][keyframe_key] = extract_simple_keyframes(prop)

    return mask_data


def extract_masks(layer: Any) -> List[Dict[str, Any]]:
    """Read every mask of a layer; a failing mask becomes an error record."""
    masks = []
    for mask_index, mask in enumerate(getattr(layer, 'masks', None) or [], start=1):
        try:
            masks.append(extract_mask(mask, mask_index))
        except Exception as e:
            LOG.error("Error processing mask %d: %s", mask_index, e)
            masks.append({
                'name': f"Mask {mask_index}",
                'index': mask_index,
                'error': f"Failed to process mask: {e}",
            })
    return masks
