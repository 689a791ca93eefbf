"""
Geometric primitives for the ray tracer.

A primitive is one of exactly two kinds: a `Sphere` or a `TriangleMesh`.
Both are immutable records resolved once at scene-collection time; a
mesh bakes its object-to-world transform on construction so no matrix
work happens per ray. Every primitive answers the same three questions:
`hit`, `bounding_box` and `centroid`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, List, Optional, Union
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .materials import Material

# Minimum hit distance for secondary rays leaving a surface
EPSILON = 1e-4

# Below this a determinant or direction component counts as zero
_PARALLEL_EPS = 1e-12


class PrimitiveKind(Enum):
    SPHERE = "sphere"
    TRIANGLE_MESH = "triangle_mesh"


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: The outward surface normal (unit length)
        t: Distance along the ray (ray directions are unit length)
        material: The material of the primitive hit
        front_face: True if the ray arrived from outside the surface
    """
    point: Point3
    normal: Vec3
    t: float
    material: Optional[Material] = None
    front_face: bool = True

    @property
    def facing_normal(self) -> Vec3:
        """The normal flipped, if needed, to face the ray's origin side."""
        return self.normal if self.front_face else -self.normal


class AABB:
    """Axis-Aligned Bounding Box for acceleration structures."""

    __slots__ = ('minimum', 'maximum')

    def __init__(self, minimum: Point3, maximum: Point3):
        """Create an AABB from corner points.

        Args:
            minimum: Corner with smallest x, y, z values
            maximum: Corner with largest x, y, z values
        """
        self.minimum = minimum
        self.maximum = maximum

    @classmethod
    def from_points(cls, points: np.ndarray) -> AABB:
        """Smallest box enclosing an (N, 3) array of points."""
        return cls(Vec3.from_array(points.min(axis=0)), Vec3.from_array(points.max(axis=0)))

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Test if ray intersects this AABB using the slab method.

        A ray parallel to a slab hits it only if its origin lies between
        the two planes. Touching a face (t_max == t_min) counts as a hit.
        """
        for i in range(3):
            origin = ray.origin[i]
            direction = ray.direction[i]

            if abs(direction) < _PARALLEL_EPS:
                if origin < self.minimum[i] or origin > self.maximum[i]:
                    return False
                continue

            inv_d = 1.0 / direction
            t0 = (self.minimum[i] - origin) * inv_d
            t1 = (self.maximum[i] - origin) * inv_d

            if inv_d < 0:
                t0, t1 = t1, t0

            t_min = max(t0, t_min)
            t_max = min(t1, t_max)

            if t_max < t_min:
                return False

        return True

    def contains(self, other: AABB, tolerance: float = 1e-9) -> bool:
        """True when `other` lies entirely inside this box."""
        return all(
            self.minimum[i] <= other.minimum[i] + tolerance
            and other.maximum[i] <= self.maximum[i] + tolerance
            for i in range(3)
        )

    def centroid(self) -> Point3:
        return (self.minimum + self.maximum) * 0.5

    def extent(self) -> Vec3:
        return self.maximum - self.minimum

    def longest_axis(self) -> int:
        """Index (0=x, 1=y, 2=z) of the longest box edge."""
        extent = self.extent()
        return int(np.argmax([extent.x, extent.y, extent.z]))

    @staticmethod
    def surrounding_box(box0: AABB, box1: AABB) -> AABB:
        """Return the AABB that contains both input boxes."""
        return AABB(
            box0.minimum.component_min(box1.minimum),
            box0.maximum.component_max(box1.maximum),
        )

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"


@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere defined by center and radius."""
    kind: ClassVar[PrimitiveKind] = PrimitiveKind.SPHERE

    center: Point3
    radius: float
    material: Optional[Material] = None

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        which is the quadratic at² + bt + c = 0.
        """
        if self.radius <= 0:
            return None

        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if root <= t_min or root >= t_max:
            root = (-half_b + sqrtd) / a
            if root <= t_min or root >= t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius

        return HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            material=self.material,
            front_face=ray.direction.dot(outward_normal) < 0,
        )

    def bounding_box(self) -> AABB:
        """Return the AABB containing this sphere."""
        r = abs(self.radius)
        r_vec = Vec3(r, r, r)
        return AABB(self.center - r_vec, self.center + r_vec)

    def centroid(self) -> Point3:
        return self.center

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


@dataclass(frozen=True, eq=False)
class TriangleMesh:
    """An indexed triangle mesh placed in the world by a 4x4 transform.

    Args:
        transform: Object-to-world matrix (4x4)
        triangles: (T, 3) vertex indices, one row per triangle
        vertices: (V, 3) object-space vertex positions
        normals: (V, 3) object-space vertex normals, or None to use
            flat face normals
        material: Material for shading
    """
    kind: ClassVar[PrimitiveKind] = PrimitiveKind.TRIANGLE_MESH

    transform: np.ndarray
    triangles: np.ndarray
    vertices: np.ndarray
    normals: Optional[np.ndarray] = None
    material: Optional[Material] = None

    world_vertices: np.ndarray = field(init=False, repr=False)
    world_normals: Optional[np.ndarray] = field(init=False, repr=False)
    face_normals: np.ndarray = field(init=False, repr=False)
    _v0: np.ndarray = field(init=False, repr=False)
    _e1: np.ndarray = field(init=False, repr=False)
    _e2: np.ndarray = field(init=False, repr=False)
    _bbox: AABB = field(init=False, repr=False)

    def __post_init__(self):
        transform = _readonly(np.asarray(self.transform, dtype=np.float64))
        triangles = _readonly(np.asarray(self.triangles, dtype=np.int64).reshape(-1, 3))
        vertices = _readonly(np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3))

        if transform.shape != (4, 4):
            raise ValueError(f"transform must be 4x4, got {transform.shape}")
        if triangles.size and (triangles.min() < 0 or triangles.max() >= len(vertices)):
            raise ValueError("triangle index out of range")

        normals = None
        if self.normals is not None:
            normals = _readonly(np.asarray(self.normals, dtype=np.float64).reshape(-1, 3))
            if len(normals) != len(vertices):
                raise ValueError(
                    f"expected {len(vertices)} vertex normals, got {len(normals)}"
                )

        # Bake the transform: positions by M, normals by the inverse transpose
        linear = transform[:3, :3]
        world_vertices = vertices @ linear.T + transform[:3, 3]

        world_normals = None
        if normals is not None:
            try:
                normal_matrix = np.linalg.inv(linear).T
            except np.linalg.LinAlgError:
                normal_matrix = None
            if normal_matrix is not None:
                world_normals = _normalize_rows(normals @ normal_matrix.T)

        v0 = world_vertices[triangles[:, 0]]
        e1 = world_vertices[triangles[:, 1]] - v0
        e2 = world_vertices[triangles[:, 2]] - v0
        face_normals = _normalize_rows(np.cross(e1, e2))

        if len(triangles):
            bbox = AABB.from_points(world_vertices[triangles.ravel()])
        else:
            origin = Vec3.from_array(transform[:3, 3])
            bbox = AABB(origin, origin)

        values = {
            'transform': transform,
            'triangles': triangles,
            'vertices': vertices,
            'normals': normals,
            'world_vertices': _readonly(world_vertices),
            'world_normals': _readonly(world_normals) if world_normals is not None else None,
            'face_normals': _readonly(face_normals),
            '_v0': _readonly(v0),
            '_e1': _readonly(e1),
            '_e2': _readonly(e2),
            '_bbox': bbox,
        }
        for name, value in values.items():
            object.__setattr__(self, name, value)

    def __len__(self) -> int:
        return len(self.triangles)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray intersection against every triangle (Möller-Trumbore).

        All triangles are tested at once with numpy; the nearest valid
        one wins.
        """
        if len(self.triangles) == 0:
            return None

        d = ray.direction.to_array()
        o = ray.origin.to_array()

        h = np.cross(d, self._e2)
        a = np.einsum('ij,ij->i', self._e1, h)
        valid = np.abs(a) > _PARALLEL_EPS
        f = np.divide(1.0, a, out=np.zeros_like(a), where=valid)

        s = o - self._v0
        u = f * np.einsum('ij,ij->i', s, h)
        q = np.cross(s, self._e1)
        v = f * (q @ d)
        t = f * np.einsum('ij,ij->i', self._e2, q)

        mask = (
            valid
            & (u >= 0.0) & (u <= 1.0)
            & (v >= 0.0) & (u + v <= 1.0)
            & (t > t_min) & (t < t_max)
        )
        if not mask.any():
            return None

        index = int(np.argmin(np.where(mask, t, np.inf)))
        t_hit = float(t[index])
        normal = self._shading_normal(index, float(u[index]), float(v[index]))

        return HitRecord(
            point=ray.at(t_hit),
            normal=normal,
            t=t_hit,
            material=self.material,
            front_face=float(np.dot(d, normal.to_array())) < 0,
        )

    def _shading_normal(self, index: int, u: float, v: float) -> Vec3:
        """Interpolated vertex normal, or the face normal if unavailable."""
        if self.world_normals is not None:
            i0, i1, i2 = self.triangles[index]
            w = 1.0 - u - v
            n = (
                self.world_normals[i0] * w
                + self.world_normals[i1] * u
                + self.world_normals[i2] * v
            )
            length = np.linalg.norm(n)
            if length > _PARALLEL_EPS:
                return Vec3.from_array(n / length)
        return Vec3.from_array(self.face_normals[index])

    def bounding_box(self) -> AABB:
        """Return the AABB of the transformed triangle vertices."""
        return self._bbox

    def centroid(self) -> Point3:
        return self._bbox.centroid()

    def __repr__(self) -> str:
        return f"TriangleMesh(triangles={len(self.triangles)}, bbox={self._bbox})"


Primitive = Union[Sphere, TriangleMesh]


class PrimitiveList:
    """A flat collection of primitives, intersected by linear scan."""

    def __init__(self, primitives: Optional[Iterable[Primitive]] = None):
        self.primitives: List[Primitive] = list(primitives) if primitives is not None else []

    def add(self, primitive: Primitive) -> None:
        """Add a primitive to the list."""
        self.primitives.append(primitive)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection among all primitives."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for primitive in self.primitives:
            hit_record = primitive.hit(ray, t_min, closest_t)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def bounding_box(self) -> Optional[AABB]:
        """Return the AABB containing all primitives."""
        output_box: Optional[AABB] = None
        for primitive in self.primitives:
            box = primitive.bounding_box()
            output_box = box if output_box is None else AABB.surrounding_box(output_box, box)
        return output_box

    def __len__(self) -> int:
        return len(self.primitives)

    def __iter__(self) -> Iterator[Primitive]:
        return iter(self.primitives)


def quad_mesh(
    corner: Point3,
    edge1: Vec3,
    edge2: Vec3,
    material: Optional[Material] = None,
) -> TriangleMesh:
    """Two-triangle mesh spanning corner, corner+edge1, corner+edge2.

    The face normal is edge1 x edge2.
    """
    c = corner.to_array()
    a = edge1.to_array()
    b = edge2.to_array()
    vertices = np.array([c, c + a, c + a + b, c + b])
    normal = np.cross(a, b)
    normals = np.tile(normal, (4, 1))
    return TriangleMesh(
        transform=np.eye(4),
        triangles=np.array([[0, 1, 2], [0, 2, 3]]),
        vertices=vertices,
        normals=normals,
        material=material,
    )


def transform_matrix(
    translate: Iterable[float] = (0.0, 0.0, 0.0),
    rotate: Iterable[float] = (0.0, 0.0, 0.0),
    scale: Union[float, Iterable[float]] = 1.0,
) -> np.ndarray:
    """Object-to-world matrix T * Ry * Rx * Rz * S.

    Args:
        translate: World position of the object origin
        rotate: Euler angles in degrees about X, Y and Z
        scale: Uniform factor or per-axis factors
    """
    if isinstance(scale, (int, float)):
        scale = (scale, scale, scale)
    ax, ay, az = (math.radians(a) for a in rotate)

    rx = np.array([[1, 0, 0], [0, math.cos(ax), -math.sin(ax)], [0, math.sin(ax), math.cos(ax)]])
    ry = np.array([[math.cos(ay), 0, math.sin(ay)], [0, 1, 0], [-math.sin(ay), 0, math.cos(ay)]])
    rz = np.array([[math.cos(az), -math.sin(az), 0], [math.sin(az), math.cos(az), 0], [0, 0, 1]])

    matrix = np.eye(4)
    matrix[:3, :3] = ry @ rx @ rz @ np.diag(list(scale))
    matrix[:3, 3] = list(translate)
    return matrix


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, copy=True)
    arr.setflags(write=False)
    return arr


def _normalize_rows(arr: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(arr, axis=1, keepdims=True)
    return np.divide(arr, lengths, out=np.zeros_like(arr), where=lengths > _PARALLEL_EPS)
