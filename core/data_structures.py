"""
Data structures for the keyframe engine
Defines the records loaded from an export document and the engine settings
"""

from dataclasses import InitVar, dataclass, field
from enum import Enum
from typing import List, Tuple, Optional, Dict, Any, Union
import logging

LOG = logging.getLogger(__name__)

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

# Authoring tool default for raw keyframes exported without easing data
DEFAULT_INFLUENCE = 16.666666667

# Property names the exporter uses for path-valued tracks
PATH_PROPERTY_NAMES = ("Mask Path", "Path")


class DataIntegrityError(ValueError):
    """Raised when exported data violates a structural invariant."""


class Interpolation(str, Enum):
    """Keyframe interpolation on one side of a keyframe."""
    LINEAR = "LINEAR"
    BEZIER = "BEZIER"
    HOLD = "HOLD"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "Interpolation":
        """Map an exported string to a member; anything unrecognized is UNKNOWN."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


class ValueKind(str, Enum):
    """Tagged union of the value types a track can hold."""
    SCALAR = "scalar"
    PATH = "path"


@dataclass(frozen=True)
class EngineConfig:
    """Numeric settings shared by the evaluators"""
    solver_tolerance: float = 1e-5
    solver_max_iterations: int = 64
    # Influence (percent) given to the linear side of a mixed bezier segment
    mixed_linear_influence: float = 1.0
    curve_segments: int = 64
    fallback_rect: Tuple[float, float, float, float] = (0.0, 0.0, 100.0, 100.0)


DEFAULT_CONFIG = EngineConfig()


@dataclass(frozen=True)
class TemporalEase:
    """Speed (value units per second) and influence (0-100 percent) of a handle"""
    speed: float = 0.0
    influence: float = DEFAULT_INFLUENCE

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "TemporalEase":
        if not data:
            return cls()
        return cls(
            speed=float(data.get('speed', 0.0)),
            influence=float(data.get('influence', DEFAULT_INFLUENCE)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {'speed': self.speed, 'influence': self.influence}


@dataclass(frozen=True)
class Easing:
    """
    Interpolation metadata of a keyframe.

    ``continuous`` and ``auto_bezier`` only describe how the authoring tool
    computed the handles; they are carried along but never read at runtime.
    """
    in_type: Interpolation = Interpolation.LINEAR
    out_type: Interpolation = Interpolation.LINEAR
    in_ease: TemporalEase = field(default_factory=TemporalEase)
    out_ease: TemporalEase = field(default_factory=TemporalEase)
    continuous: bool = False
    auto_bezier: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "Easing":
        if not data:
            return cls()
        return cls(
            in_type=Interpolation.parse(data.get('inType', 'LINEAR')),
            out_type=Interpolation.parse(data.get('outType', 'LINEAR')),
            in_ease=TemporalEase.from_dict(data.get('inEase')),
            out_ease=TemporalEase.from_dict(data.get('outEase')),
            continuous=bool(data.get('continuous', False)),
            auto_bezier=bool(data.get('autoBezier', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'inType': self.in_type.value,
            'outType': self.out_type.value,
            'inEase': self.in_ease.to_dict(),
            'outEase': self.out_ease.to_dict(),
            'continuous': self.continuous,
            'autoBezier': self.auto_bezier,
        }


LINEAR_EASING = Easing()


@dataclass(frozen=True)
class Keyframe:
    """Keyframe on a scalar track"""
    time: float
    value: float
    easing: Easing = LINEAR_EASING

    @classmethod
    def from_dict(cls, data: Dict) -> "Keyframe":
        return cls(
            time=float(data['time']),
            value=float(data['value']),
            easing=Easing.from_dict(data.get('easing')),
        )


@dataclass(frozen=True)
class MaskPath:
    """Vector path; tangents are offsets relative to their vertex"""
    vertices: Tuple[Vec2, ...] = ()
    in_tangents: Tuple[Vec2, ...] = ()
    out_tangents: Tuple[Vec2, ...] = ()
    closed: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["MaskPath"]:
        if not data:
            return None

        def points(key: str) -> Tuple[Vec2, ...]:
            raw = data.get(key) or []
            return tuple((float(p[0]), float(p[1])) for p in raw)

        closed = data.get('closed')
        return cls(
            vertices=points('vertices'),
            in_tangents=points('inTangents'),
            out_tangents=points('outTangents'),
            closed=True if closed is None else bool(closed),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vertices': [list(v) for v in self.vertices],
            'inTangents': [list(t) for t in self.in_tangents],
            'outTangents': [list(t) for t in self.out_tangents],
            'closed': self.closed,
        }


@dataclass(frozen=True)
class PathKeyframe:
    """Keyframe whose value is a whole path"""
    time: float
    value: MaskPath
    easing: Easing = LINEAR_EASING


def _parse_static_path(name: str, raw: Any) -> Optional[MaskPath]:
    """Parse a static path value; an unreadable path is dropped so the fallback shape applies."""
    if not isinstance(raw, dict):
        return None
    try:
        return MaskPath.from_dict(raw)
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        LOG.warning("Ignoring unreadable path of '%s': %s", name, exc)
        return None


def _parse_keyframes(name: str, raw_keyframes: List[Dict], parse) -> list:
    """Parse keyframes one by one, dropping unreadable records."""
    keyframes = []
    for index, raw in enumerate(raw_keyframes or []):
        try:
            keyframes.append(parse(raw))
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            LOG.warning("Dropping keyframe %d of '%s': %s", index, name, exc)
    return keyframes


def _times_ordered(times: List[float]) -> bool:
    # Equal neighbours are tolerated; the later one wins during lookup
    return all(a <= b for a, b in zip(times, times[1:]))


@dataclass(frozen=True)
class PropertyTrack:
    """Scalar animated property"""
    name: str
    value: float = 0.0
    keyframes: Tuple[Keyframe, ...] = ()
    property_index: int = 0
    kind: ValueKind = ValueKind.SCALAR
    times: Tuple[float, ...] = field(init=False, repr=False, compare=False)
    is_ordered: bool = field(init=False, repr=False, compare=False)
    report_order: InitVar[bool] = True

    def __post_init__(self, report_order: bool):
        times = tuple(kf.time for kf in self.keyframes)
        object.__setattr__(self, 'times', times)
        object.__setattr__(self, 'is_ordered', _times_ordered(list(times)))
        if report_order and not self.is_ordered:
            LOG.warning("Keyframes of '%s' are not in time order; evaluating best effort", self.name)

    @property
    def is_animated(self) -> bool:
        return bool(self.keyframes)

    @classmethod
    def from_dict(cls, name: str, data: Dict) -> Union["PropertyTrack", "PathTrack"]:
        """
        Build a track from an exported property record.

        The scalar/path decision is made here once: a property whose value or
        first keyframe value is a path object becomes a ``PathTrack``.
        """
        raw_keyframes = data.get('keyframes') or []
        raw_value = data.get('value')
        sample = raw_keyframes[0].get('value') if raw_keyframes and isinstance(raw_keyframes[0], dict) else raw_value
        if isinstance(sample, dict) or isinstance(raw_value, dict):
            return PathTrack.from_dict(name, data)

        try:
            value = float(raw_value) if raw_value is not None else 0.0
        except (TypeError, ValueError):
            LOG.warning("Property '%s' has a non-scalar value %r; using 0", name, raw_value)
            value = 0.0
        return cls(
            name=data.get('name', name),
            value=value,
            keyframes=tuple(_parse_keyframes(name, raw_keyframes, Keyframe.from_dict)),
            property_index=int(data.get('propertyIndex') or 0),
        )


_PATH_FIELDS = ('vertices', 'in_tangents', 'out_tangents')


@dataclass(frozen=True)
class PathTrack:
    """
    Path-valued property.

    Each coordinate of the path (field x index x axis) is exploded into its
    own scalar ``PropertyTrack`` sharing the source keyframe's easing, so path
    evaluation runs through exactly the same code as any other track.
    """
    name: str
    value: Optional[MaskPath] = None
    keyframes: Tuple[PathKeyframe, ...] = ()
    kind: ValueKind = ValueKind.PATH
    coordinate_tracks: Dict[Tuple[str, int, int], PropertyTrack] = field(
        init=False, repr=False, compare=False
    )
    vertex_count: int = field(init=False, repr=False, compare=False)
    times: Tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        count = max((len(kf.value.vertices) for kf in self.keyframes), default=0)
        tracks: Dict[Tuple[str, int, int], PropertyTrack] = {}
        for field_name in _PATH_FIELDS:
            for index in range(count):
                for axis in (0, 1):
                    keyframes = []
                    for kf in self.keyframes:
                        points = getattr(kf.value, field_name)
                        # Missing points are padded with the origin
                        point = points[index] if index < len(points) else (0.0, 0.0)
                        keyframes.append(Keyframe(kf.time, point[axis], kf.easing))
                    tracks[(field_name, index, axis)] = PropertyTrack(
                        name=f"{self.name}/{field_name}[{index}].{'xy'[axis]}",
                        keyframes=tuple(keyframes),
                        report_order=False,
                    )
        object.__setattr__(self, 'coordinate_tracks', tracks)
        object.__setattr__(self, 'vertex_count', count)
        object.__setattr__(self, 'times', tuple(kf.time for kf in self.keyframes))
        if not _times_ordered(list(self.times)):
            LOG.warning("Keyframes of '%s' are not in time order; evaluating best effort", self.name)

    @property
    def is_animated(self) -> bool:
        return bool(self.keyframes)

    @classmethod
    def from_dict(cls, name: str, data: Dict) -> "PathTrack":
        def parse(raw: Dict) -> PathKeyframe:
            path = MaskPath.from_dict(raw['value'])
            if path is None:
                raise ValueError("empty path value")
            return PathKeyframe(
                time=float(raw['time']),
                value=path,
                easing=Easing.from_dict(raw.get('easing')),
            )

        raw_value = data.get('value')
        return cls(
            name=data.get('name', name),
            value=_parse_static_path(name, raw_value),
            keyframes=tuple(_parse_keyframes(name, data.get('keyframes') or [], parse)),
        )

    @classmethod
    def linear(cls, name: str, raw_keyframes: List[Dict]) -> "PathTrack":
        """Wrap raw path keyframes exported without easing as a linear track."""
        return cls.from_dict(name, {
            'name': name,
            'keyframes': [
                {'time': raw.get('time'), 'value': raw.get('value')}
                for raw in raw_keyframes or [] if isinstance(raw, dict)
            ],
        })


Track = Union[PropertyTrack, PathTrack]


@dataclass(frozen=True)
class MaskData:
    """Mask attached to a clip"""
    name: str
    index: int = 0
    inverted: bool = False
    mask_path: Optional[MaskPath] = None
    path_keyframes: Optional[PathTrack] = None
    feather: Optional[PropertyTrack] = None
    opacity: Optional[PropertyTrack] = None
    expansion: Optional[PropertyTrack] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "MaskData":
        name = data.get('name') or f"Mask {data.get('index', 0)}"
        keyframes = data.get('keyframes') or {}

        def scalar(key: str, keyframe_key: str) -> Optional[PropertyTrack]:
            raw_value = data.get(key)
            raw_keyframes = keyframes.get(keyframe_key) or []
            if raw_value is None and not raw_keyframes:
                return None
            # Feather arrives as a 2D value; the viewer only needs the first axis
            if isinstance(raw_value, (list, tuple)):
                raw_value = raw_value[0] if raw_value else 0.0
            flattened = []
            for raw in raw_keyframes:
                if isinstance(raw, dict) and isinstance(raw.get('value'), (list, tuple)):
                    raw = dict(raw, value=raw['value'][0] if raw['value'] else None)
                flattened.append(raw)
            track = PropertyTrack.from_dict(f"{name}/{key}", {'value': raw_value, 'keyframes': flattened})
            return track if isinstance(track, PropertyTrack) else None

        raw_path_keyframes = keyframes.get('maskPath') or []
        return cls(
            name=name,
            index=int(data.get('index') or 0),
            inverted=bool(data.get('inverted', False)),
            mask_path=_parse_static_path(name, data.get('maskPath')),
            path_keyframes=PathTrack.linear(f"{name}/maskPath", raw_path_keyframes) if raw_path_keyframes else None,
            feather=scalar('maskFeather', 'maskFeather'),
            opacity=scalar('maskOpacity', 'maskOpacity'),
            expansion=scalar('maskExpansion', 'maskExpansion'),
            error=data.get('error'),
        )


@dataclass(frozen=True)
class TrackMatte:
    """Track matte relation; consumed by the renderer only"""
    mode: str
    inverted: bool = False
    matte_layer_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["TrackMatte"]:
        if not data or 'mode' not in data:
            return None
        return cls(
            mode=str(data['mode']),
            inverted=bool(data.get('inverted', False)),
            matte_layer_id=data.get('matteLayerId'),
        )


def _component(raw: Any, index: int) -> Any:
    if isinstance(raw, (list, tuple)):
        return raw[index] if index < len(raw) else None
    return raw


def component_tracks(name: str, data: Dict) -> Dict[str, Track]:
    """
    Build the tracks of an exported property whose value may be a vector.

    Scalars and paths give one track under ``name``; an N-component value
    gives N scalar tracks named ``name[i]``.
    """
    raw_value = data.get('value')
    raw_keyframes = data.get('keyframes') or []
    sample = raw_value
    if not isinstance(sample, (list, tuple)):
        sample = next((kf.get('value') for kf in raw_keyframes if isinstance(kf, dict)), None)
    if not isinstance(sample, (list, tuple)):
        return {name: PropertyTrack.from_dict(name, data)}

    tracks: Dict[str, Track] = {}
    for i in range(len(sample)):
        component_name = f"{name}[{i}]"
        tracks[component_name] = PropertyTrack.from_dict(component_name, {
            'name': component_name,
            'value': _component(raw_value, i),
            'keyframes': [
                dict(kf, value=_component(kf.get('value'), i)) if isinstance(kf, dict) else kf
                for kf in raw_keyframes
            ],
        })
    return tracks


@dataclass(frozen=True)
class EffectData:
    """Effect applied to a clip; parameters are evaluated like any other track"""
    name: str
    match_name: str = ""
    enabled: bool = True
    parameters: Dict[str, Track] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "EffectData":
        name = data.get('name') or data.get('matchName') or "Effect"
        parameters: Dict[str, Track] = {}
        for raw in data.get('parameters') or []:
            if isinstance(raw, dict) and raw.get('name'):
                parameters.update(component_tracks(raw['name'], raw))
        return cls(
            name=name,
            match_name=data.get('matchName', ''),
            enabled=bool(data.get('enabled', True)),
            parameters=parameters,
        )


RANGE_SELECTOR_TRACKS = ('start', 'end', 'offset', 'amount')


@dataclass(frozen=True)
class RangeSelector:
    """Range selector of a text animator"""
    start: PropertyTrack
    end: PropertyTrack
    offset: PropertyTrack
    amount: PropertyTrack
    mode: Any = None
    shape: Any = None
    smoothness: float = 100.0

    @classmethod
    def from_dict(cls, data: Dict) -> "RangeSelector":
        animated = {
            str(entry.get('name', '')).lower(): entry.get('keyframes') or []
            for entry in data.get('easingProperties') or [] if isinstance(entry, dict)
        }
        tracks = {}
        for key in RANGE_SELECTOR_TRACKS:
            track = PropertyTrack.from_dict(f"Range Selector/{key}", {
                'value': data.get(key),
                'keyframes': animated.get(key, []),
            })
            tracks[key] = track if isinstance(track, PropertyTrack) else PropertyTrack(name=track.name)
        try:
            smoothness = float(data.get('smoothness', 100.0))
        except (TypeError, ValueError):
            smoothness = 100.0
        return cls(mode=data.get('mode'), shape=data.get('shape'), smoothness=smoothness, **tracks)


@dataclass(frozen=True)
class TextAnimator:
    """Text animator: animated properties plus the range selectors that scope them"""
    name: str
    properties: Dict[str, Track] = field(default_factory=dict)
    range_selectors: Tuple[RangeSelector, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict) -> "TextAnimator":
        properties: Dict[str, Track] = {}
        selectors = []
        for raw in data.get('properties') or []:
            if not isinstance(raw, dict):
                continue
            if 'easingProperties' in raw:
                selectors.append(RangeSelector.from_dict(raw))
            elif raw.get('name'):
                properties.update(component_tracks(raw['name'], raw))
        return cls(
            name=data.get('name') or "Animator",
            properties=properties,
            range_selectors=tuple(selectors),
        )


TEXT_ANIMATORS_PROPERTY = "Text Animators"


@dataclass
class ClipData:
    """Layer instance inside a composition"""
    id: str
    name: str = ""
    parent_id: Any = None
    parent_layer_id: Optional[str] = None
    index: int = 0
    in_point: float = 0.0
    out_point: float = 0.0
    start_time: float = 0.0
    enabled: bool = True
    is_three_d: bool = False
    layer_type: str = ""
    properties: Dict[str, Track] = field(default_factory=dict)
    masks: List[MaskData] = field(default_factory=list)
    track_matte: Optional[TrackMatte] = None
    blend_mode: str = "normal"
    effects: List[EffectData] = field(default_factory=list)
    text_animators: List[TextAnimator] = field(default_factory=list)

    def property(self, name: str) -> Optional[Track]:
        return self.properties.get(name)

    @classmethod
    def from_dict(cls, clip_id: str, data: Dict) -> "ClipData":
        properties: Dict[str, Track] = {}
        text_animators: List[TextAnimator] = []
        for name, raw in (data.get('properties') or {}).items():
            if not isinstance(raw, dict):
                continue
            if name == TEXT_ANIMATORS_PROPERTY:
                text_animators = [TextAnimator.from_dict(a) for a in raw.get('animators') or [] if isinstance(a, dict)]
                continue
            properties[name] = PropertyTrack.from_dict(name, raw)

        effects = [EffectData.from_dict(e) for e in data.get('effects') or [] if isinstance(e, dict)]

        masks = []
        for raw_mask in data.get('masks') or []:
            if isinstance(raw_mask, dict):
                masks.append(MaskData.from_dict(raw_mask))

        parent_layer_id = data.get('parentLayerId')
        return cls(
            id=str(data.get('id', clip_id)),
            name=data.get('clipName', ''),
            parent_id=data.get('parentId'),
            parent_layer_id=str(parent_layer_id) if parent_layer_id else None,
            index=int(data.get('index') or 0),
            in_point=float(data.get('inPoint') or 0.0),
            out_point=float(data.get('outPoint') or 0.0),
            start_time=float(data.get('startTime') or 0.0),
            enabled=bool(data.get('enabled', True)),
            is_three_d=bool(data.get('isThreeD', False)),
            layer_type=data.get('layerType', ''),
            properties=properties,
            masks=masks,
            track_matte=TrackMatte.from_dict(data.get('trackMatte')),
            blend_mode=data.get('blendMode') or "normal",
            effects=effects,
            text_animators=text_animators,
        )


@dataclass
class ProjectData:
    """Export document"""
    project_name: str = ""
    assets: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    clips: Dict[str, ClipData] = field(default_factory=dict)
    active_comp_id: Any = None

    @classmethod
    def from_dict(cls, data: Dict) -> "ProjectData":
        clips = {}
        for clip_id, raw in (data.get('clips') or {}).items():
            if isinstance(raw, dict):
                clip = ClipData.from_dict(str(clip_id), raw)
                clips[clip.id] = clip
        return cls(
            project_name=data.get('projectName', ''),
            assets={str(k): v for k, v in (data.get('assets') or {}).items()},
            clips=clips,
            active_comp_id=data.get('activeCompId'),
        )

    def composition_clips(self, comp_id: Any) -> List[ClipData]:
        """Return the clips of a composition in layer order."""
        asset = self.assets.get(str(comp_id)) or {}
        ordered = [self.clips[c] for c in asset.get('clipIds', []) if c in self.clips]
        if ordered:
            return ordered
        return sorted(
            (c for c in self.clips.values() if str(c.parent_id) == str(comp_id)),
            key=lambda c: c.index,
        )


@dataclass(frozen=True)
class Transform:
    """
    Evaluated layer transform.

    Scale values are unit multipliers. A relative scale component of 0 means
    no override for that axis.
    """
    anchor_point: Vec3 = (0.0, 0.0, 0.0)
    position: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    relative_position: Vec3 = (0.0, 0.0, 0.0)
    relative_scale: Vec3 = (0.0, 0.0, 0.0)
    relative_rotation: Vec3 = (0.0, 0.0, 0.0)

    def effective(self) -> "Transform":
        """Return the transform with the relative overrides folded in."""
        position = tuple(p + r for p, r in zip(self.position, self.relative_position))
        rotation = tuple(a + r for a, r in zip(self.rotation, self.relative_rotation))
        scale = tuple(s * r if r != 0 else s for s, r in zip(self.scale, self.relative_scale))
        return Transform(
            anchor_point=self.anchor_point,
            position=position,
            scale=scale,
            rotation=rotation,
        )

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        def xyz(v: Vec3) -> Dict[str, float]:
            return {'x': v[0], 'y': v[1], 'z': v[2]}

        return {
            'anchorPoint': xyz(self.anchor_point),
            'position': xyz(self.position),
            'scale': xyz(self.scale),
            'rotation': xyz(self.rotation),
            'relativePosition': xyz(self.relative_position),
            'relativeScale': xyz(self.relative_scale),
            'relativeRotation': xyz(self.relative_rotation),
        }
