"""
Recursive Whitted-style shading.

For every ray the shader finds the nearest surface and sums:
- emission and ambient light
- Blinn-Phong diffuse and specular light from each point light,
  scaled by distance falloff and (colored) shadow attenuation
- a mirror-reflection ray tinted by ks
- a refraction ray tinted by kt, unless total internal reflection occurs

Recursion depth is the only state carried between calls; the scene and
BVH are only read, so one shader can serve every render thread.
"""

from __future__ import annotations
import logging

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .materials import Material
from .scene import RenderContext

logger = logging.getLogger(__name__)

AIR_IOR = 1.0

# Used for primitives collected without a material
DEFAULT_MATERIAL = Material(kd=Color(0.5, 0.5, 0.5))


def _black() -> Color:
    return Color(0.0, 0.0, 0.0)


def _white() -> Color:
    return Color(1.0, 1.0, 1.0)


class Shader:
    """Computes the color seen along a ray."""

    def __init__(self, context: RenderContext):
        self.context = context
        self.settings = context.settings
        self.bvh = context.bvh
        self.lights = context.scene.lights
        self.ambient = context.scene.ambient

    def trace_ray(self, ray: Ray, depth: int = 0) -> Color:
        """Compute the color for a ray.

        Args:
            ray: The ray to trace
            depth: Current recursion level (0 for camera rays)

        Returns:
            The unclamped color carried back along this ray
        """
        if depth >= self.settings.max_depth:
            return _black()

        hit = self.bvh.intersect(ray)
        if hit is None:
            return self.settings.background_color

        material = hit.material if hit.material is not None else DEFAULT_MATERIAL
        direction = ray.direction
        normal = hit.normal

        # Assume the ray enters the surface from air
        n1, n2 = AIR_IOR, material.ior
        if direction.dot(normal) > 0.0:
            # Leaving the medium
            normal = -normal
            n1, n2 = n2, n1

        result = material.ke + self.ambient * material.kd
        result = result + self._direct_lighting(hit.point, normal, direction, material)

        if material.is_reflective:
            reflected = direction.reflect(normal)
            result = result + material.ks * self.trace_ray(Ray(hit.point, reflected), depth + 1)

        if material.is_transmissive:
            transmitted = direction.refract(normal, n1 / n2)
            if transmitted is not None:
                result = result + material.kt * self.trace_ray(Ray(hit.point, transmitted), depth + 1)

        return result

    def _direct_lighting(self, point: Point3, normal: Vec3, direction: Vec3, material: Material) -> Color:
        """Sum the Blinn-Phong contribution of every point light."""
        total = _black()
        view = -direction

        for light in self.lights:
            to_light = light.position - point
            distance = to_light.length()
            if distance == 0.0:
                continue
            to_light = to_light / distance
            half_vector = (to_light + view).normalize()

            shadow = self.shadow_attenuation(Ray(point, to_light), distance)
            if shadow.near_zero():
                continue

            diffuse = material.kd * max(0.0, normal.dot(to_light))
            specular = material.ks * max(0.0, normal.dot(half_vector)) ** material.shininess

            total = total + shadow * light.attenuation(distance) * light.radiance * (diffuse + specular)

        return total

    def shadow_attenuation(self, ray: Ray, light_distance: float, depth: int = 0) -> Color:
        """Fraction of light, per channel, that reaches along `ray`.

        Each occluder before the light multiplies in its transmission
        color; the ray then continues from the occluder's far side.

        Args:
            ray: Ray from the shaded point toward the light
            light_distance: Remaining distance to the light
            depth: Number of occluders already crossed

        Returns:
            White if nothing blocks the light, black if fully blocked
        """
        if depth >= self.settings.max_shadow_depth:
            logger.debug("Shadow ray crossed %d occluders, treating as blocked", depth)
            return _black()

        hit = self.bvh.intersect(ray)
        if hit is None or hit.t >= light_distance:
            return _white()

        kt = hit.material.kt if hit.material is not None else DEFAULT_MATERIAL.kt
        if kt.near_zero():
            return _black()

        continued = Ray(hit.point, ray.direction)
        return kt * self.shadow_attenuation(continued, light_distance - hit.t, depth + 1)
