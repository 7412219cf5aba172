"""
Exporter module for the keyframe engine
Authoring-side walk that turns host project objects into the export document
"""

from .keyframes import (
    interpolation_name,
    extract_keyframe,
    extract_keyframes,
    extract_property,
    extract_transform_properties,
    extract_property_group,
    extract_range_selector,
    extract_text_animators,
)
from .effects import blend_mode_name, extract_effect, extract_effects
from .masks import extract_mask, extract_masks
from .project import ExportAccumulator, extract_layer, extract_item, export_project

__all__ = [
    'interpolation_name',
    'extract_keyframe',
    'extract_keyframes',
    'extract_property',
    'extract_transform_properties',
    'extract_property_group',
    'extract_range_selector',
    'extract_text_animators',
    'blend_mode_name',
    'extract_effect',
    'extract_effects',
    'extract_mask',
    'extract_masks',
    'ExportAccumulator',
    'extract_layer',
    'extract_item',
    'export_project',
]
