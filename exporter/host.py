"""
Host object model
Shape of the authoring-tool objects the exporter reads, as seen from Python
"""

from typing import Any, List, Optional, Protocol, Sequence

# Property types reported by the host
PROPERTY = 1
INDEXED_GROUP = 2
NAMED_GROUP = 3

# Match name of a text animator group
TEXT_ANIMATOR_MATCH_NAME = "ADBE Text Animator"

# Numeric interpolation constants of the host
INTERP_LINEAR = 6612
INTERP_BEZIER = 6613
INTERP_HOLD = 6614


class HostEase(Protocol):
    speed: float
    influence: float


class HostShape(Protocol):
    vertices: Sequence[Sequence[float]]
    in_tangents: Sequence[Sequence[float]]
    out_tangents: Sequence[Sequence[float]]
    closed: bool


class HostProperty(Protocol):
    """Leaf property; keyframe indices are 1-based like the host's."""
    name: str
    match_name: str
    property_index: int
    property_type: int
    value: Any
    num_keys: int
    is_time_varying: bool
    dimensions_separated: bool

    def key_time(self, k: int) -> float: ...
    def key_value(self, k: int) -> Any: ...
    def key_in_interpolation_type(self, k: int) -> int: ...
    def key_out_interpolation_type(self, k: int) -> int: ...
    def key_in_temporal_ease(self, k: int) -> Sequence[HostEase]: ...
    def key_out_temporal_ease(self, k: int) -> Sequence[HostEase]: ...
    def key_temporal_continuous(self, k: int) -> bool: ...
    def key_temporal_auto_bezier(self, k: int) -> bool: ...


class HostPropertyGroup(Protocol):
    name: str
    match_name: str
    property_type: int
    num_properties: int

    def property(self, key: Any) -> Any: ...


class HostMask(Protocol):
    name: str
    inverted: bool

    def property(self, key: str) -> Optional[HostProperty]: ...


class HostLayer(HostPropertyGroup, Protocol):
    index: int
    parent: Optional["HostLayer"]
    in_point: float
    out_point: float
    start_time: float
    enabled: bool
    three_d_layer: bool
    layer_type: str
    source: Any
    masks: List[HostMask]
    track_matte_type: int
    track_matte_layer: Optional["HostLayer"]
    blending_mode: Any  # enum member or its name, e.g. "MULTIPLY"
    effects: Optional[HostPropertyGroup]  # the effect parade; each effect is a group of parameters


class HostItem(Protocol):
    id: Any
    name: str
    item_type: str  # "folder", "composition" or "footage"


class HostProject(Protocol):
    name: str
    items: List[HostItem]
    active_item: Optional[HostItem]
