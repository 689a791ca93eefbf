"""
OBJ file loader for importing triangle meshes.

Supports:
- Vertices (v)
- Normals (vn)
- Faces (f) with fan triangulation, in v, v/vt, v//vn and v/vt/vn form
- Negative (relative) indices

Texture coordinates, materials and groups are read past and ignored.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from .materials import Material
from .shapes import TriangleMesh

logger = logging.getLogger(__name__)


class OBJLoader:
    """Loader for Wavefront OBJ files."""

    def __init__(self):
        self.positions: List[Tuple[float, float, float]] = []
        self.normals: List[Tuple[float, float, float]] = []
        self.texcoord_count = 0

    def load(
        self,
        filename: Union[str, Path],
        material: Optional[Material] = None,
        transform: Optional[np.ndarray] = None
    ) -> TriangleMesh:
        """Load an OBJ file as a single triangle mesh.

        Every distinct (position, normal) pair referenced by a face
        becomes one mesh vertex. If the file has no normals the mesh
        falls back to flat face normals.

        Args:
            filename: Path to the OBJ file
            material: Material for the mesh
            transform: Object-to-world 4x4 matrix (identity if None)

        Returns:
            TriangleMesh with every face of the file
        """
        path = Path(filename)
        if not path.exists():
            raise FileNotFoundError(f"OBJ file not found: {filename}")

        self.positions = []
        self.normals = []
        self.texcoord_count = 0

        vertex_ids: Dict[Tuple[int, Optional[int]], int] = {}
        vertices: List[Tuple[float, float, float]] = []
        vertex_normals: List[Optional[Tuple[float, float, float]]] = []
        triangles: List[Tuple[int, int, int]] = []

        with open(path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                # Skip empty lines and comments
                if not line or line.startswith('#'):
                    continue

                parts = line.split()
                cmd = parts[0]

                try:
                    if cmd == 'v':
                        self.positions.append((float(parts[1]), float(parts[2]), float(parts[3])))

                    elif cmd == 'vn':
                        self.normals.append((float(parts[1]), float(parts[2]), float(parts[3])))

                    elif cmd == 'vt':
                        self.texcoord_count += 1

                    elif cmd == 'f':
                        corners = []
                        for pos_idx, norm_idx in self._parse_face(parts[1:]):
                            key = (pos_idx, norm_idx)
                            if key not in vertex_ids:
                                vertex_ids[key] = len(vertices)
                                vertices.append(self.positions[pos_idx])
                                vertex_normals.append(
                                    self.normals[norm_idx] if norm_idx is not None else None
                                )
                            corners.append(vertex_ids[key])

                        # Fan triangulation: v0, v1, v2 then v0, v2, v3 etc.
                        for i in range(1, len(corners) - 1):
                            triangles.append((corners[0], corners[i], corners[i + 1]))

                except (ValueError, IndexError):
                    logger.warning("Skipping malformed line %d in %s: %s", line_num, path, line)
                    continue

        normals = None
        if vertices and all(n is not None for n in vertex_normals):
            normals = np.array(vertex_normals, dtype=np.float64)

        logger.debug(
            "Loaded %s: %d vertices, %d triangles, normals=%s",
            path, len(vertices), len(triangles), normals is not None
        )

        return TriangleMesh(
            transform=transform if transform is not None else np.eye(4),
            triangles=np.array(triangles, dtype=np.int64).reshape(-1, 3),
            vertices=np.array(vertices, dtype=np.float64).reshape(-1, 3),
            normals=normals,
            material=material,
        )

    def _parse_face(self, face_parts: List[str]) -> List[Tuple[int, Optional[int]]]:
        """Parse face corners into 0-based (position, normal) indices."""
        corners = []

        for part in face_parts:
            indices = part.split('/')

            pos_idx = self._resolve(int(indices[0]), len(self.positions))

            norm_idx = None
            if len(indices) > 2 and indices[2]:
                norm_idx = self._resolve(int(indices[2]), len(self.normals))

            corners.append((pos_idx, norm_idx))

        if len(corners) < 3:
            raise ValueError("face needs at least 3 vertices")
        return corners

    @staticmethod
    def _resolve(index: int, count: int) -> int:
        """Turn a 1-based or negative OBJ index into a 0-based one."""
        if index < 0:
            index = count + index + 1
        if index < 1 or index > count:
            raise IndexError(f"index {index} out of range")
        return index - 1


def load_obj(
    filename: Union[str, Path],
    material: Optional[Material] = None,
    transform: Optional[np.ndarray] = None
) -> TriangleMesh:
    """Convenience function to load an OBJ file.

    Args:
        filename: Path to the OBJ file
        material: Material to apply
        transform: Object-to-world 4x4 matrix (identity if None)

    Returns:
        TriangleMesh
    """
    return OBJLoader().load(filename, material, transform)
