"""Built-in scenes for the command line and for smoke tests."""

from __future__ import annotations
from typing import Tuple

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .materials import Material, diffuse, mirror, glass
from .lights import PointLight
from .shapes import Sphere, quad_mesh
from .scene import Scene
from .settings import DEFAULT_WIDTH, DEFAULT_HEIGHT


def create_demo_scene(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> Tuple[Scene, Camera]:
    """Three spheres (diffuse, mirror, glass) in a floor-and-wall corner."""
    floor_mat = Material(kd=Color(0.7, 0.7, 0.7), ks=Color(0.05, 0.05, 0.05), shininess=8.0)
    wall_mat = diffuse(Color(0.2, 0.35, 0.6))
    red = Material(kd=Color(0.8, 0.1, 0.1), ks=Color(0.2, 0.2, 0.2), shininess=32.0)

    primitives = [
        # Floor at y = 0 facing up, back wall at z = -4 facing the camera
        quad_mesh(Point3(-6, 0, 4), Vec3(12, 0, 0), Vec3(0, 0, -8), floor_mat),
        quad_mesh(Point3(-6, 0, -4), Vec3(12, 0, 0), Vec3(0, 6, 0), wall_mat),
        Sphere(Point3(-2.2, 1, -1), 1.0, red),
        Sphere(Point3(0, 1, -2), 1.0, mirror(Color(0.9, 0.9, 0.9))),
        Sphere(Point3(2.2, 1, 0), 1.0, glass(1.5)),
    ]

    lights = [
        PointLight(Point3(0, 5, 3), intensity=20.0, color=Color(1, 1, 1)),
        PointLight(Point3(-4, 3, 4), intensity=8.0, color=Color(1.0, 0.9, 0.8)),
    ]

    camera = Camera.look_at(
        look_from=Point3(0, 2.5, 8),
        look_at=Point3(0, 1, 0),
        vup=Vec3(0, 1, 0),
        vfov=40,
        width=width,
        height=height,
    )
    return Scene(primitives, lights, ambient=Color(0.05, 0.05, 0.05)), camera


def create_single_sphere_scene(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> Tuple[Scene, Camera]:
    """Red unit sphere at the origin lit from above, camera on +Z."""
    sphere = Sphere(Point3(0, 0, 0), 1.0, Material(kd=Color(1, 0, 0)))
    light = PointLight(Point3(0, 5, 0), intensity=1.0, color=Color(1, 1, 1))
    camera = Camera.look_at(
        look_from=Point3(0, 0, 5),
        look_at=Point3(0, 0, 0),
        vfov=45,
        width=width,
        height=height,
    )
    return Scene([sphere], [light]), camera
