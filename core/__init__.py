"""
Core module for the keyframe engine
Contains data structures, easing, track evaluation, transforms and mask geometry
"""

from .data_structures import (
    DataIntegrityError,
    Interpolation,
    ValueKind,
    EngineConfig,
    TemporalEase,
    Easing,
    Keyframe,
    MaskPath,
    PropertyTrack,
    PathTrack,
    MaskData,
    EffectData,
    RangeSelector,
    TextAnimator,
    ClipData,
    ProjectData,
    Transform,
)
from .easing import solve_ease, resolve_segment_interpolation
from .track_evaluator import evaluate, evaluate_path, property_value, effect_values, range_selector_values
from .transform import (
    ParentCycleError,
    ComposedTransform,
    create_translation_matrix,
    create_rotation_matrix,
    create_scale_matrix,
    matrix_multiply,
    get_transform,
    build_transform_matrix,
    compose,
)
from .mask_geometry import (
    PathCommandType,
    PathCommand,
    PathGeometry,
    build_path,
    build_mask_geometry,
    resolve_mask_path,
)
from .animation_player import AnimationPlayer

__all__ = [
    'DataIntegrityError',
    'Interpolation',
    'ValueKind',
    'EngineConfig',
    'TemporalEase',
    'Easing',
    'Keyframe',
    'MaskPath',
    'PropertyTrack',
    'PathTrack',
    'MaskData',
    'EffectData',
    'RangeSelector',
    'TextAnimator',
    'ClipData',
    'ProjectData',
    'Transform',
    'solve_ease',
    'resolve_segment_interpolation',
    'evaluate',
    'evaluate_path',
    'property_value',
    'effect_values',
    'range_selector_values',
    'ParentCycleError',
    'ComposedTransform',
    'create_translation_matrix',
    'create_rotation_matrix',
    'create_scale_matrix',
    'matrix_multiply',
    'get_transform',
    'build_transform_matrix',
    'compose',
    'PathCommandType',
    'PathCommand',
    'PathGeometry',
    'build_path',
    'build_mask_geometry',
    'resolve_mask_path',
    'AnimationPlayer',
]
