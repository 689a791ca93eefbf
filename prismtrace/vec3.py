"""
Immutable 3-component vectors.

One type serves three roles in the tracer: points, directions and
linear RGB colors. `Point3` and `Color` are aliases, not subclasses,
so the same arithmetic applies everywhere.
"""

from __future__ import annotations
import math
from typing import Optional, Union
import numpy as np


def _operand(other: Union[Vec3, float]):
    """Raw numpy data for a vector operand, or the scalar itself."""
    return other._data if isinstance(other, Vec3) else other


class Vec3:
    """A value-type 3D vector backed by a small numpy array.

    No operation mutates a vector in place; every operator returns a new
    instance, so vectors can be shared freely between threads.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Copy the first three entries of an array or sequence."""
        v = cls.__new__(cls)
        v._data = np.array(arr[:3], dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Channel names when the vector holds a color
    r = x
    g = y
    b = z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    def __hash__(self) -> int:
        return hash(self.to_tuple())

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data + _operand(other))

    __radd__ = __add__

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data - _operand(other))

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        """Scale by a number, or multiply channel by channel."""
        return Vec3.from_array(self._data * _operand(other))

    __rmul__ = __mul__

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data / _operand(other))

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self):
        return iter(self.to_tuple())

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def length_squared(self) -> float:
        return float(self._data @ self._data)

    def normalize(self) -> Vec3:
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length == 0.0:
            return Vec3()
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        return float(self._data @ other._data)

    def cross(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.cross(self._data, other._data))

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this direction about `normal`.

        Equivalent to 2(N·-D)N + D for an incoming direction D.
        """
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: Vec3, eta_ratio: float) -> Optional[Vec3]:
        """Refract this direction through a surface using Snell's law.

        Args:
            normal: Unit surface normal on the incident side (N·-D >= 0)
            eta_ratio: Ratio of refractive indices n1/n2

        Returns:
            The normalized transmitted direction, or None on total
            internal reflection
        """
        cos_i = -self.dot(normal)
        k = 1.0 - eta_ratio * eta_ratio * (1.0 - cos_i * cos_i)
        if k < 0.0:
            return None
        transmitted = normal * (eta_ratio * cos_i - math.sqrt(k)) + self * eta_ratio
        return transmitted.normalize()

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        """Check if vector is close to zero in all dimensions."""
        return bool(np.all(np.abs(self._data) < epsilon))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def clamp(self, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Clamp all components to the given range."""
        return Vec3.from_array(np.clip(self._data, min_val, max_val))

    def component_min(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.minimum(self._data, other._data))

    def component_max(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.maximum(self._data, other._data))


# Convenience type aliases
Point3 = Vec3
Color = Vec3
