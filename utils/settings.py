"""
Settings Manager
Handles persistence of engine settings
"""

from typing import Optional

from PyQt6.QtCore import QSettings

from core.data_structures import DEFAULT_CONFIG, EngineConfig


class SettingsManager:
    """Manages engine settings"""

    def __init__(self, settings: Optional[QSettings] = None):
        self.settings = settings if settings is not None else QSettings('KeyframeEngine', 'Settings')

    def get_last_file(self) -> str:
        """Get the last opened export file"""
        return self.settings.value('last_file', '', type=str)

    def set_last_file(self, filename: str):
        """Save the last opened export file"""
        self.settings.setValue('last_file', filename)

    def get_solver_tolerance(self) -> float:
        """Get the bezier solver tolerance (fraction of segment duration)"""
        return self.settings.value('solver/tolerance', DEFAULT_CONFIG.solver_tolerance, type=float)

    def set_solver_tolerance(self, tolerance: float):
        self.settings.setValue('solver/tolerance', float(tolerance))

    def get_solver_max_iterations(self) -> int:
        return self.settings.value('solver/max_iterations', DEFAULT_CONFIG.solver_max_iterations, type=int)

    def set_solver_max_iterations(self, iterations: int):
        self.settings.setValue('solver/max_iterations', int(iterations))

    def get_curve_segments(self) -> int:
        """Get how many points each mask curve is flattened into"""
        return self.settings.value('geometry/curve_segments', DEFAULT_CONFIG.curve_segments, type=int)

    def set_curve_segments(self, segments: int):
        self.settings.setValue('geometry/curve_segments', int(segments))

    def get_fallback_rect(self) -> tuple:
        """Get the rectangle drawn for masks without a path"""
        raw = self.settings.value('geometry/fallback_rect', '', type=str)
        try:
            values = tuple(float(part) for part in raw.split(','))
        except ValueError:
            return DEFAULT_CONFIG.fallback_rect
        if len(values) != 4:
            return DEFAULT_CONFIG.fallback_rect
        return values

    def set_fallback_rect(self, rect: tuple):
        self.settings.setValue('geometry/fallback_rect', ','.join(str(float(v)) for v in rect))

    def get_engine_config(self) -> EngineConfig:
        """Build the engine configuration from the saved settings"""
        return EngineConfig(
            solver_tolerance=self.get_solver_tolerance(),
            solver_max_iterations=self.get_solver_max_iterations(),
            mixed_linear_influence=DEFAULT_CONFIG.mixed_linear_influence,
            curve_segments=self.get_curve_segments(),
            fallback_rect=self.get_fallback_rect(),
        )

    def set_engine_config(self, config: EngineConfig):
        """Save an engine configuration"""
        self.set_solver_tolerance(config.solver_tolerance)
        self.set_solver_max_iterations(config.solver_max_iterations)
        self.set_curve_segments(config.curve_segments)
        self.set_fallback_rect(config.fallback_rect)
        self.settings.sync()
