"""
Surface materials for Whitted-style shading.

A material is a plain read-only record shared by any number of
primitives. It carries the coefficients of the Blinn-Phong local model
plus the tints that drive recursive reflection and refraction:

- kd: diffuse color
- ks: specular color (also the mirror-reflection tint)
- ke: emissive color
- kt: transmission color (refraction and shadow tint)
- shininess: Blinn-Phong exponent
- ior: index of refraction (1.0 = air)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .vec3 import Color


def _black() -> Color:
    return Color(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Material:
    """Shading coefficients for a surface."""
    kd: Color = field(default_factory=_black)
    ks: Color = field(default_factory=_black)
    ke: Color = field(default_factory=_black)
    kt: Color = field(default_factory=_black)
    shininess: float = 0.0
    ior: float = 1.0

    def __post_init__(self):
        if self.shininess < 0:
            raise ValueError(f"shininess must be >= 0, got {self.shininess}")
        if self.ior <= 0:
            raise ValueError(f"index of refraction must be > 0, got {self.ior}")

    @property
    def is_reflective(self) -> bool:
        """True when the specular color is non-zero."""
        return self.ks.length() > 0.0

    @property
    def is_transmissive(self) -> bool:
        """True when the material lets any light through."""
        return (self.kt.r + self.kt.g + self.kt.b) > 0.0


def diffuse(color: Color, shininess: float = 0.0) -> Material:
    """Opaque matte material."""
    return Material(kd=color, shininess=shininess)


def mirror(tint: Color = None) -> Material:
    """Perfect mirror with an optional reflection tint."""
    return Material(ks=tint if tint is not None else Color(1.0, 1.0, 1.0))


def glass(ior: float = 1.5, tint: Color = None, reflectance: float = 0.1) -> Material:
    """Clear dielectric with a weak specular reflection."""
    return Material(
        ks=Color(reflectance, reflectance, reflectance),
        kt=tint if tint is not None else Color(0.9, 0.9, 0.9),
        shininess=64.0,
        ior=ior,
    )


def emissive(color: Color) -> Material:
    """Self-lit material that ignores lights."""
    return Material(ke=color)
