"""
Light sources for the ray tracer.

Only point lights take part in shading. Scene loaders may hand over
other kinds of light records; `collect_point_lights` keeps the point
lights and drops everything else, whatever order they arrive in.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List

from .vec3 import Point3, Color


@dataclass(frozen=True)
class PointLight:
    """A point light source.

    Point lights emit light equally in all directions from a single point.
    They produce hard shadows.
    """
    position: Point3
    intensity: float = 1.0
    color: Color = None

    def __post_init__(self):
        if self.color is None:
            object.__setattr__(self, 'color', Color(1.0, 1.0, 1.0))
        if self.intensity < 0:
            raise ValueError(f"light intensity must be >= 0, got {self.intensity}")
        if any(c < 0.0 or c > 1.0 for c in self.color):
            raise ValueError(f"light color components must be in [0, 1], got {self.color}")

    @property
    def radiance(self) -> Color:
        """Color scaled by intensity."""
        return self.color * self.intensity

    def attenuation(self, distance: float) -> float:
        """Inverse-square falloff, offset by one to stay finite at r -> 0."""
        return 1.0 / (1.0 + distance * distance)


def collect_point_lights(lights: Iterable[object]) -> List[PointLight]:
    """Return every point light in `lights`, preserving order."""
    return [light for light in lights if isinstance(light, PointLight)]
