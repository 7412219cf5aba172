"""
Animation Player
Handles playback timing and per-clip state evaluation for a loaded export
"""

from typing import Optional, Dict, List, Tuple, Any

from .data_structures import DEFAULT_CONFIG, ClipData, EngineConfig, ProjectData, PropertyTrack
from .mask_geometry import PathGeometry, build_mask_geometry
from .track_evaluator import effect_values, evaluate, property_value, range_selector_values
from .transform import compose


class AnimationPlayer:
    """Handles animation playback and clip evaluation"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.project: Optional[ProjectData] = None
        self.config: EngineConfig = config or DEFAULT_CONFIG
        self.current_time: float = 0.0
        self.playing: bool = False
        self.loop: bool = True
        self.duration: float = 0.0
        self.playback_speed: float = 1.0
        # (clip id, mask set identity) -> (time, geometry); only the latest time is kept
        self._geometry_cache: Dict[Tuple[str, int], Tuple[float, List[PathGeometry]]] = {}

    def load_project(self, project: ProjectData):
        """
        Load an export document

        Args:
            project: Parsed project to play
        """
        self.project = project
        self.current_time = 0.0
        self._geometry_cache.clear()
        self.calculate_duration()

    def calculate_duration(self):
        """Use the active composition's duration, or the last keyframe time"""
        if not self.project:
            self.duration = 0.0
            return

        comp = self.project.assets.get(str(self.project.active_comp_id)) or {}
        if comp.get('duration'):
            self.duration = float(comp['duration'])
            return

        max_time = 0.0
        for clip in self.project.clips.values():
            for track in clip.properties.values():
                if track.times:
                    max_time = max(max_time, max(track.times))
        self.duration = max_time

    def update(self, delta_time: float):
        """
        Update playback time

        Args:
            delta_time: Time elapsed since last update (in seconds)
        """
        if not self.playing or not self.project:
            return

        speed = max(0.01, self.playback_speed)
        self.current_time += delta_time * speed

        if self.current_time > self.duration:
            if self.loop:
                self.current_time = 0.0
            else:
                self.current_time = self.duration
                self.playing = False

    def set_playback_speed(self, speed: float):
        """Adjust playback speed multiplier (>0)."""
        if speed <= 0:
            speed = 0.01
        self.playback_speed = speed

    def get_clip(self, clip_id: str) -> ClipData:
        if not self.project or clip_id not in self.project.clips:
            raise KeyError(f"Unknown clip '{clip_id}'")
        return self.project.clips[clip_id]

    def get_mask_geometry(self, clip: ClipData, time: float) -> List[PathGeometry]:
        """
        Return the mask geometry of a clip at ``time``.

        Geometry is rebuilt when the clip, its mask set or the time changes;
        repeated requests for the same time reuse the last build.
        """
        key = (clip.id, id(clip.masks))
        cached = self._geometry_cache.get(key)
        if cached is not None and cached[0] == time:
            return cached[1]
        geometry = build_mask_geometry(clip, time, self.config)
        self._geometry_cache[key] = (time, geometry)
        return geometry

    def invalidate_geometry(self, clip_id: Optional[str] = None):
        """Drop cached mask geometry for one clip, or for all clips."""
        if clip_id is None:
            self._geometry_cache.clear()
            return
        for key in [k for k in self._geometry_cache if k[0] == clip_id]:
            del self._geometry_cache[key]

    def get_clip_state(self, clip_id: str, time: Optional[float] = None) -> Dict[str, Any]:
        """
        Get the evaluated state of a clip

        Args:
            clip_id: Clip to evaluate
            time: Time to evaluate at (defaults to the current playback time)

        Returns:
            Dictionary with the local transform, world matrix, opacity, masks,
            blend mode, effect values and text animator values
        """
        if time is None:
            time = self.current_time
        clip = self.get_clip(clip_id)
        composed = compose(clip, time, self.project.clips, self.config)
        opacity = property_value(clip, 'Opacity', time, 100.0, self.config)
        return {
            'clip_id': clip.id,
            'time': time,
            'transform': composed.local,
            'world_matrix': composed.matrix,
            'world_position': composed.world_position,
            'parent_chain': composed.chain,
            'opacity': max(0.0, min(1.0, opacity / 100.0)),
            'visible': clip.enabled and self.is_clip_active(clip, time),
            'masks': self.get_mask_geometry(clip, time) if clip.masks else [],
            'blend_mode': clip.blend_mode,
            'effects': [
                {
                    'name': effect.name,
                    'enabled': effect.enabled,
                    'values': effect_values(effect, time, self.config),
                }
                for effect in clip.effects
            ],
            'text_animators': [
                {
                    'name': animator.name,
                    'values': {
                        name: evaluate(track, time, self.config)
                        for name, track in animator.properties.items()
                        if isinstance(track, PropertyTrack)
                    },
                    'range_selectors': [
                        range_selector_values(selector, time, self.config)
                        for selector in animator.range_selectors
                    ],
                }
                for animator in clip.text_animators
            ],
        }

    @staticmethod
    def is_clip_active(clip: ClipData, time: float) -> bool:
        """Whether ``time`` falls inside the clip's in/out range"""
        if clip.out_point <= clip.in_point:
            return True
        return clip.in_point <= time < clip.out_point
