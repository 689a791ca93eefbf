"""
Reads scene descriptions written in YAML or JSON.

A description names a material library, the objects (spheres and
triangle meshes, inline or loaded from OBJ files), point lights, the
ambient color, render settings and a look-at camera. Every section is
optional.

Example scene file:
```yaml
ambient: [0.05, 0.05, 0.05]

camera:
  look_from: [0, 1, 6]
  look_at: [0, 0.5, 0]
  vfov: 45

render:
  width: 512
  height: 512
  max_depth: 3
  bands: 16
  background: "#000000"

materials:
  red:
    kd: [0.8, 0.1, 0.1]
    ks: [0.2, 0.2, 0.2]
    shininess: 32
  glass:
    ks: [0.1, 0.1, 0.1]
    kt: [0.9, 0.9, 0.9]
    ior: 1.5

objects:
  - type: sphere
    center: [0, 1, 0]
    radius: 1
    material: glass

  - type: mesh
    obj: models/floor.obj
    transform:
      translate: [0, -1, 0]
      scale: 10
    material: red

lights:
  - type: point
    position: [0, 10, 0]
    color: [1, 1, 1]
    intensity: 10
```
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import yaml

from .vec3 import Vec3, Color
from .camera import Camera
from .materials import Material
from .lights import PointLight
from .shapes import Primitive, Sphere, TriangleMesh, transform_matrix
from .obj_loader import load_obj
from .scene import Scene
from .settings import DEFAULT_WIDTH, DEFAULT_HEIGHT, RenderSettings

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """Error during scene parsing."""
    pass


class SceneParser:
    """Builds a scene, camera and render settings from a description.

    Materials are parsed first so objects can refer to them by name;
    the render section is parsed before the camera, which takes its
    image size from it. A parser accumulates state and should be used
    for a single scene.
    """

    def __init__(self):
        self.materials: Dict[str, Material] = {}
        self.primitives: List[Primitive] = []
        self.lights: List[PointLight] = []
        self.ambient: Color = Color(0.0, 0.0, 0.0)
        self.camera: Optional[Camera] = None
        self.settings: Optional[RenderSettings] = None
        self._base_dir = Path('.')

    def parse_file(self, filepath: str) -> Tuple[Scene, Camera, RenderSettings]:
        """Read a YAML or JSON scene file.

        Mesh `obj` paths in the file are resolved relative to the file's
        own directory.

        Args:
            filepath: Path to the scene file; a .json suffix selects JSON,
                anything else is read as YAML

        Returns:
            Tuple of (scene, camera, settings)

        Raises:
            SceneParseError: If the file is missing, unreadable or invalid
        """
        path = Path(filepath)
        try:
            content = path.read_text()
        except OSError as exc:
            raise SceneParseError(f"Cannot open scene file {filepath}: {exc}") from exc

        try:
            data = json.loads(content) if path.suffix.lower() == '.json' else yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise SceneParseError(f"Cannot decode scene file {filepath}: {exc}") from exc

        if not isinstance(data, dict):
            raise SceneParseError(f"Top level of {filepath} must be a mapping")

        self._base_dir = path.parent
        logger.debug("Parsing scene %s", path)
        return self.parse_dict(data)

    def parse_dict(self, data: Dict[str, Any]) -> Tuple[Scene, Camera, RenderSettings]:
        """Build the scene from an already decoded description.

        Args:
            data: Scene description dictionary

        Returns:
            Tuple of (scene, camera, settings)
        """
        self._parse_materials(self._expect(data.get('materials') or {}, dict, "'materials'"))
        self._parse_objects(self._expect(data.get('objects') or [], list, "'objects'"))
        self._parse_lights(self._expect(data.get('lights') or [], list, "'lights'"))
        if 'ambient' in data:
            self.ambient = self._parse_color(data['ambient'])

        self._parse_settings(self._expect(data.get('render') or {}, dict, "'render'"))
        self._parse_camera(self._expect(data.get('camera') or {}, dict, "'camera'"))
        scene = Scene(self.primitives, self.lights, self.ambient)
        logger.info(
            "Parsed scene: %d primitives, %d point lights", len(scene), len(scene.lights)
        )
        return scene, self.camera, self.settings

    def _expect(self, data: Any, kind: type, what: str) -> Any:
        """Return `data` if it is a `kind`, otherwise fail naming `what`."""
        if not isinstance(data, kind):
            expected = 'mapping' if kind is dict else 'list'
            raise SceneParseError(f"{what} must be a {expected}, got {data!r}")
        return data

    def _parse_triple(self, data: Any, names: str, what: str) -> Tuple[float, float, float]:
        """Read three floats from a list or from a mapping keyed by `names`."""
        if isinstance(data, dict):
            values = [data.get(name, 0) for name in names]
        elif isinstance(data, (list, tuple)) and len(data) == 3:
            values = list(data)
        else:
            raise SceneParseError(f"Expected a {what} of 3 components, got {data!r}")
        try:
            return tuple(float(v) for v in values)
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Non-numeric {what}: {data!r}") from exc

    def _parse_vec3(self, data: Any) -> Vec3:
        """Vector from [x, y, z] or {x:, y:, z:}."""
        return Vec3(*self._parse_triple(data, 'xyz', 'vector'))

    def _parse_color(self, data: Any) -> Color:
        """Color from [r, g, b], {r:, g:, b:} or a '#rrggbb' string."""
        if isinstance(data, str):
            digits = data[1:] if data.startswith('#') else ''
            if len(digits) != 6:
                raise SceneParseError(f"Color strings must look like #rrggbb, got {data!r}")
            try:
                channels = bytes.fromhex(digits)
            except ValueError as exc:
                raise SceneParseError(f"Invalid hex color {data!r}") from exc
            return Color(*(c / 255.0 for c in channels))
        return Color(*self._parse_triple(data, 'rgb', 'color'))

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        black = [0, 0, 0]
        try:
            return Material(
                kd=self._parse_color(mat_data.get('kd', black)),
                ks=self._parse_color(mat_data.get('ks', black)),
                ke=self._parse_color(mat_data.get('ke', black)),
                kt=self._parse_color(mat_data.get('kt', black)),
                shininess=float(mat_data.get('shininess', 0.0)),
                ior=float(mat_data.get('ior', 1.0)),
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid material: {exc}") from exc

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        for name, mat_data in materials_data.items():
            self.materials[name] = self._parse_material(self._expect(mat_data, dict, f"Material {name!r}"))

    def _resolve_material(self, ref: Any) -> Optional[Material]:
        """A named material from the library, or an inline definition."""
        if ref is None:
            return None
        if isinstance(ref, dict):
            return self._parse_material(ref)
        if isinstance(ref, str) and ref in self.materials:
            return self.materials[ref]
        raise SceneParseError(f"Unknown material: {ref!r}")

    def _parse_transform(self, data: Any) -> np.ndarray:
        """Parse a 4x4 matrix or translate/rotate/scale components."""
        if data is None:
            return np.eye(4)
        if isinstance(data, dict) and 'matrix' in data:
            try:
                matrix = np.array(data['matrix'], dtype=np.float64)
            except (TypeError, ValueError) as exc:
                raise SceneParseError(f"Invalid transform matrix: {exc}") from exc
            if matrix.shape != (4, 4):
                raise SceneParseError(f"Transform matrix must be 4x4, got {matrix.shape}")
            return matrix
        if isinstance(data, dict):
            scale = data.get('scale', 1.0)
            if not isinstance(scale, (int, float)):
                scale = self._parse_vec3(scale).to_tuple()
            return transform_matrix(
                translate=self._parse_vec3(data.get('translate', [0, 0, 0])).to_tuple(),
                rotate=self._parse_vec3(data.get('rotate', [0, 0, 0])).to_tuple(),
                scale=scale,
            )
        raise SceneParseError(f"Invalid transform: {data}")

    def _parse_objects(self, objects_data: List[Dict[str, Any]]) -> None:
        builders = {'sphere': self._parse_sphere, 'mesh': self._parse_mesh}
        for obj_data in objects_data:
            self._expect(obj_data, dict, 'Object entry')
            kind = str(obj_data.get('type', 'sphere')).lower()
            if kind not in builders:
                raise SceneParseError(f"Unknown object type: {kind}")
            material = self._resolve_material(obj_data.get('material'))
            self.primitives.append(builders[kind](obj_data, material))

    def _parse_sphere(self, obj_data: Dict[str, Any], material: Optional[Material]) -> Sphere:
        center = self._parse_vec3(obj_data.get('center', [0, 0, 0]))
        try:
            radius = float(obj_data.get('radius', 1.0))
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Non-numeric sphere radius: {obj_data.get('radius')!r}") from exc
        return Sphere(center, radius, material)

    def _parse_mesh(self, obj_data: Dict[str, Any], material: Optional[Material]) -> TriangleMesh:
        transform = self._parse_transform(obj_data.get('transform'))

        if 'obj' in obj_data:
            try:
                return load_obj(self._base_dir / obj_data['obj'], material, transform)
            except (OSError, ValueError) as exc:
                raise SceneParseError(f"Cannot load mesh {obj_data['obj']}: {exc}") from exc

        if 'vertices' not in obj_data or 'triangles' not in obj_data:
            raise SceneParseError("Mesh needs 'vertices' and 'triangles' or an 'obj' path")

        try:
            return TriangleMesh(
                transform=transform,
                triangles=np.array(obj_data['triangles'], dtype=np.int64),
                vertices=np.array(obj_data['vertices'], dtype=np.float64),
                normals=np.array(obj_data['normals'], dtype=np.float64) if 'normals' in obj_data else None,
                material=material,
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid mesh: {exc}") from exc

    def _parse_lights(self, lights_data: List[Dict[str, Any]]) -> None:
        """Collect point lights; other light types are logged and dropped."""
        for light_data in lights_data:
            self._expect(light_data, dict, 'Light entry')
            kind = str(light_data.get('type', 'point')).lower()
            if kind != 'point':
                logger.warning("Ignoring %s light: only point lights are supported", kind)
                continue
            try:
                light = PointLight(
                    position=self._parse_vec3(light_data.get('position', [0, 5, 0])),
                    intensity=float(light_data.get('intensity', 1.0)),
                    color=self._parse_color(light_data.get('color', [1, 1, 1])),
                )
            except (TypeError, ValueError) as exc:
                raise SceneParseError(f"Invalid point light: {exc}") from exc
            self.lights.append(light)

    def _parse_camera(self, camera_data: Dict[str, Any]) -> None:
        """Parse camera section."""
        look_from = self._parse_vec3(camera_data.get('look_from', [0, 0, 5]))
        look_at = self._parse_vec3(camera_data.get('look_at', [0, 0, 0]))
        vup = self._parse_vec3(camera_data.get('vup', [0, 1, 0]))
        try:
            self.camera = Camera.look_at(
                look_from=look_from,
                look_at=look_at,
                vup=vup,
                vfov=float(camera_data.get('vfov', 60)),
                width=self.settings.width,
                height=self.settings.height,
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid camera: {exc}") from exc

    def _parse_settings(self, settings_data: Dict[str, Any]) -> None:
        """Parse render settings section."""
        try:
            self.settings = RenderSettings(
                width=int(settings_data.get('width', DEFAULT_WIDTH)),
                height=int(settings_data.get('height', DEFAULT_HEIGHT)),
                max_depth=int(settings_data.get('max_depth', 3)),
                num_bands=int(settings_data.get('bands', 16)),
                num_threads=int(settings_data.get('threads', 0)),
                max_shadow_depth=int(settings_data.get('max_shadow_depth', 64)),
                background_color=self._parse_color(settings_data.get('background', [0, 0, 0])),
            )
        except (TypeError, ValueError) as exc:
            raise SceneParseError(f"Invalid render settings: {exc}") from exc


def load_scene(filepath: str) -> Tuple[Scene, Camera, RenderSettings]:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        Tuple of (scene, camera, settings)
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene(data: Dict[str, Any]) -> Tuple[Scene, Camera, RenderSettings]:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary

    Returns:
        Tuple of (scene, camera, settings)
    """
    parser = SceneParser()
    return parser.parse_dict(data)
