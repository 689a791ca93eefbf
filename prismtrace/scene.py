"""
Scene data and the render context passed through a render pass.

`Scene` holds the collected primitives, point lights and ambient color.
`RenderContext` bundles a scene with its camera, settings and the BVH
built over it. Nothing in either is mutated once rendering starts.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .vec3 import Color
from .shapes import Primitive
from .lights import PointLight, collect_point_lights
from .camera import Camera
from .bvh import BVH
from .settings import RenderSettings


class Scene:
    """Primitives, point lights and ambient light of a scene."""

    def __init__(
        self,
        primitives: Optional[Iterable[Primitive]] = None,
        lights: Optional[Iterable[object]] = None,
        ambient: Optional[Color] = None
    ):
        """Create a scene.

        Args:
            primitives: Spheres and triangle meshes
            lights: Light records; anything that is not a PointLight is ignored
            ambient: Ambient light color (black if None)
        """
        self.primitives: Tuple[Primitive, ...] = tuple(primitives or ())
        self.lights: Tuple[PointLight, ...] = tuple(collect_point_lights(lights or ()))
        self.ambient: Color = ambient if ambient is not None else Color(0.0, 0.0, 0.0)

    def __len__(self) -> int:
        return len(self.primitives)

    def __repr__(self) -> str:
        return f"Scene(primitives={len(self.primitives)}, lights={len(self.lights)})"


@dataclass
class RenderContext:
    """Everything a render pass reads: scene, camera, settings and BVH."""
    scene: Scene
    camera: Camera
    settings: RenderSettings = field(default_factory=RenderSettings)
    max_leaf_size: int = 4
    bvh: BVH = field(init=False, repr=False)

    def __post_init__(self):
        if (self.camera.width, self.camera.height) != (self.settings.width, self.settings.height):
            raise ValueError(
                f"camera is {self.camera.width}x{self.camera.height} but settings "
                f"ask for {self.settings.width}x{self.settings.height}"
            )
        self.bvh = BVH(self.scene.primitives, self.max_leaf_size)
