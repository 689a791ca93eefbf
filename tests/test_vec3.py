"""Tests for Vec3 class."""

import pytest
import math
import numpy as np

from prismtrace.vec3 import Vec3, Point3, Color


class TestVec3Creation:
    """Test Vec3 construction."""

    def test_default_constructor(self):
        v = Vec3()
        assert v.x == 0.0
        assert v.y == 0.0
        assert v.z == 0.0

    def test_value_constructor(self):
        v = Vec3(1.0, 2.0, 3.0)
        assert v.x == 1.0
        assert v.y == 2.0
        assert v.z == 3.0

    def test_from_array(self):
        arr = np.array([1.0, 2.0, 3.0])
        v = Vec3.from_array(arr)
        assert v.x == 1.0
        assert v.y == 2.0
        assert v.z == 3.0

    def test_from_array_copies(self):
        arr = np.array([1.0, 2.0, 3.0])
        v = Vec3.from_array(arr)
        arr[0] = 99.0
        assert v.x == 1.0

    def test_color_aliases(self):
        c = Color(0.5, 0.6, 0.7)
        assert c.r == 0.5
        assert c.g == 0.6
        assert c.b == 0.7

    def test_no_item_assignment(self):
        v = Vec3(1, 2, 3)
        with pytest.raises(TypeError):
            v[0] = 10


class TestVec3Arithmetic:
    """Test Vec3 arithmetic operations."""

    def test_negation(self):
        neg = -Vec3(1, 2, 3)
        assert neg == Vec3(-1, -2, -3)

    def test_addition(self):
        result = Vec3(1, 2, 3) + Vec3(4, 5, 6)
        assert result == Vec3(5, 7, 9)

    def test_addition_scalar(self):
        result = Vec3(1, 2, 3) + 10
        assert result == Vec3(11, 12, 13)

    def test_subtraction(self):
        result = Vec3(4, 5, 6) - Vec3(1, 2, 3)
        assert result == Vec3(3, 3, 3)

    def test_multiplication(self):
        v = Vec3(1, 2, 3)
        assert v * 2 == Vec3(2, 4, 6)
        assert 2 * v == Vec3(2, 4, 6)

    def test_multiplication_vector(self):
        result = Vec3(1, 2, 3) * Vec3(2, 3, 4)
        assert result == Vec3(2, 6, 12)

    def test_division(self):
        result = Vec3(2, 4, 6) / 2
        assert result == Vec3(1, 2, 3)

    def test_operands_unchanged(self):
        a = Vec3(1, 2, 3)
        b = Vec3(4, 5, 6)
        _ = a + b
        _ = a * b
        assert a == Vec3(1, 2, 3)
        assert b == Vec3(4, 5, 6)


class TestVec3VectorOps:
    """Test Vec3 vector operations."""

    def test_length(self):
        assert Vec3(3, 4, 0).length() == 5.0

    def test_length_squared(self):
        assert Vec3(3, 4, 0).length_squared() == 25.0

    def test_normalize(self):
        n = Vec3(3, 4, 0).normalize()
        assert abs(n.length() - 1.0) < 1e-10

    def test_normalize_zero_vector(self):
        n = Vec3(0, 0, 0).normalize()
        assert n.length() == 0.0

    def test_dot_product(self):
        assert Vec3(1, 0, 0).dot(Vec3(0, 1, 0)) == 0.0
        assert Vec3(1, 2, 3).dot(Vec3(4, 5, 6)) == 32.0  # 1*4 + 2*5 + 3*6

    def test_cross_product(self):
        cross = Vec3(1, 0, 0).cross(Vec3(0, 1, 0))
        assert cross == Vec3(0, 0, 1)

    def test_reflect(self):
        # Ray coming in at 45 degrees
        incoming = Vec3(1, -1, 0).normalize()
        reflected = incoming.reflect(Vec3(0, 1, 0))
        expected = Vec3(1, 1, 0).normalize()
        assert abs(reflected.x - expected.x) < 1e-10
        assert abs(reflected.y - expected.y) < 1e-10

    def test_reflect_matches_mirror_formula(self):
        d = Vec3(0.3, -0.8, 0.2).normalize()
        n = Vec3(0.1, 1, 0.3).normalize()
        # R = 2(N·-D)N + D
        expected = n * (2 * n.dot(-d)) + d
        assert d.reflect(n) == expected


class TestVec3Refract:
    """Test Vec3 refraction."""

    def test_refract_air_to_glass_bends_toward_normal(self):
        incoming = Vec3(1, -1, 0).normalize()
        normal = Vec3(0, 1, 0)
        refracted = incoming.refract(normal, 1.0 / 1.5)
        assert refracted is not None
        # Smaller angle to the inverted normal than the incoming ray
        assert -refracted.y > -incoming.y
        assert abs(refracted.length() - 1.0) < 1e-10

    def test_normal_incidence_does_not_bend(self):
        incoming = Vec3(0, 0, -1)
        normal = Vec3(0, 0, 1)
        refracted = incoming.refract(normal, 1.0 / 1.5)
        assert refracted == incoming

    def test_snell_law(self):
        theta_i = math.radians(30)
        incoming = Vec3(math.sin(theta_i), -math.cos(theta_i), 0)
        refracted = incoming.refract(Vec3(0, 1, 0), 1.0 / 1.5)
        sin_t = refracted.x
        assert abs(math.sin(theta_i) - 1.5 * sin_t) < 1e-10

    def test_total_internal_reflection(self):
        # Leaving glass at a grazing angle
        incoming = Vec3(0.9, -0.1, 0).normalize()
        refracted = incoming.refract(Vec3(0, 1, 0), 1.5)
        assert refracted is None


class TestVec3Utility:
    """Test Vec3 utility methods."""

    def test_near_zero(self):
        assert Vec3(1e-10, 1e-10, 1e-10).near_zero()
        assert not Vec3(1, 0, 0).near_zero()

    def test_clamp(self):
        clamped = Vec3(-0.5, 0.5, 1.5).clamp(0, 1)
        assert clamped.x == 0
        assert clamped.y == 0.5
        assert clamped.z == 1

    def test_component_min_max(self):
        a = Vec3(1, 5, -2)
        b = Vec3(3, 0, -1)
        assert a.component_min(b) == Vec3(1, 0, -2)
        assert a.component_max(b) == Vec3(3, 5, -1)

    def test_to_array(self):
        arr = Vec3(1, 2, 3).to_array()
        assert isinstance(arr, np.ndarray)
        assert list(arr) == [1, 2, 3]

    def test_iteration(self):
        x, y, z = Vec3(1, 2, 3)
        assert (x, y, z) == (1, 2, 3)


class TestVec3Comparison:
    """Test Vec3 comparison operations."""

    def test_equality(self):
        assert Vec3(1, 2, 3) == Vec3(1, 2, 3)

    def test_inequality(self):
        assert Vec3(1, 2, 3) != Vec3(1, 2, 4)

    def test_approximate_equality(self):
        v1 = Vec3(1, 2, 3)
        v2 = Vec3(1 + 1e-12, 2, 3)
        assert v1 == v2  # Should be equal due to allclose

    def test_point_is_vec3(self):
        assert Point3 is Vec3
        assert Color is Vec3
