"""
PrismTrace - A Python Whitted-style Ray Tracer

A recursive CPU ray tracer with support for:
- Spheres and transformed triangle meshes
- Bounding Volume Hierarchy (BVH) acceleration
- Blinn-Phong direct lighting from point lights
- Colored shadows through transparent occluders
- Mirror reflection and dielectric refraction
- Multi-threaded row-band rendering with PNG output
"""

__version__ = "0.1.0"
__author__ = "PrismTrace Team"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .materials import Material
from .lights import PointLight, collect_point_lights
from .shapes import (
    AABB, HitRecord, Sphere, TriangleMesh, Primitive, PrimitiveKind, PrimitiveList,
    quad_mesh, transform_matrix
)
from .bvh import BVH, BVHNode, build_bvh
from .camera import Camera, perspective_matrix, look_at_matrix
from .settings import RenderSettings
from .scene import Scene, RenderContext
from .shading import Shader
from .renderer import Renderer, Band, ImageWriteError, render_scene, get_platform_info
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
from .obj_loader import OBJLoader, load_obj
