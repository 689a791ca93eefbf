"""
Camera module for generating primary rays.

The camera is described the way a scene graph hands it over: a
camera-to-world matrix, the inverse of the projection matrix and the
camera's world position. A pixel is mapped to normalized device
coordinates, unprojected into a camera-space direction and carried into
world space.

Convention: camera space looks down -Z with +Y up (OpenGL style), and
pixel (0, 0) is the bottom-left corner of the image.
"""

from __future__ import annotations
import math
import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray


def perspective_matrix(vfov: float, aspect_ratio: float, near: float = 0.3, far: float = 1000.0) -> np.ndarray:
    """OpenGL-style perspective projection matrix.

    Args:
        vfov: Vertical field of view in degrees
        aspect_ratio: Width / Height ratio
        near: Near clip distance
        far: Far clip distance
    """
    f = 1.0 / math.tan(math.radians(vfov) / 2)
    return np.array([
        [f / aspect_ratio, 0.0, 0.0, 0.0],
        [0.0, f, 0.0, 0.0],
        [0.0, 0.0, (far + near) / (near - far), 2 * far * near / (near - far)],
        [0.0, 0.0, -1.0, 0.0],
    ])


def look_at_matrix(look_from: Point3, look_at: Point3, vup: Vec3 = Vec3(0, 1, 0)) -> np.ndarray:
    """Camera-to-world matrix for a camera at `look_from` facing `look_at`.

    Raises:
        ValueError: If the camera sits on its target or `vup` is parallel
            to the view direction
    """
    backward = look_from - look_at
    if backward.near_zero():
        raise ValueError(f"camera position and target coincide at {look_from.to_tuple()}")
    right = vup.cross(backward)
    if right.near_zero():
        raise ValueError(f"up vector {vup.to_tuple()} is parallel to the view direction")

    # Compute orthonormal camera basis
    w = backward.normalize()  # Points backward from camera
    u = right.normalize()     # Points right
    v = w.cross(u)            # Points up

    matrix = np.eye(4)
    matrix[:3, 0] = u.to_array()
    matrix[:3, 1] = v.to_array()
    matrix[:3, 2] = w.to_array()
    matrix[:3, 3] = look_from.to_array()
    return matrix


class Camera:
    """A pinhole camera that maps pixels to world-space rays."""

    def __init__(
        self,
        width: int,
        height: int,
        camera_to_world: np.ndarray,
        inverse_projection: np.ndarray,
        position: Point3
    ):
        """Create a camera.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            camera_to_world: 4x4 camera-to-world matrix
            inverse_projection: 4x4 inverse of the projection matrix
            position: Camera position in world space (ray origin)
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.camera_to_world = _frozen_matrix(camera_to_world)
        self.inverse_projection = _frozen_matrix(inverse_projection)
        self.position = position

    @classmethod
    def look_at(
        cls,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = 60.0,
        width: int = 512,
        height: int = 512
    ) -> Camera:
        """Build a camera from a position, a target and a field of view.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees
            width: Image width in pixels
            height: Image height in pixels
        """
        projection = perspective_matrix(vfov, width / height)
        return cls(
            width,
            height,
            look_at_matrix(look_from, look_at, vup),
            np.linalg.inv(projection),
            look_from,
        )

    def screen_to_world_ray(self, x: float, y: float) -> Ray:
        """Generate the world-space ray through pixel (x, y).

        Args:
            x: Column in [0, width)
            y: Row in [0, height), 0 = bottom

        Returns:
            A ray from the camera position through the pixel center
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")

        ndc_x = (x + 0.5) / self.width * 2.0 - 1.0
        ndc_y = (y + 0.5) / self.height * 2.0 - 1.0

        view = self.inverse_projection @ np.array([ndc_x, ndc_y, 0.0, 1.0])
        direction = self.camera_to_world @ np.array([view[0], view[1], view[2], 0.0])

        return Ray(self.position, Vec3.from_array(direction))

    def __repr__(self) -> str:
        return f"Camera(position={self.position}, size={self.width}x{self.height})"


def _frozen_matrix(matrix: np.ndarray) -> np.ndarray:
    matrix = np.array(matrix, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got {matrix.shape}")
    matrix.setflags(write=False)
    return matrix
