"""
Bounding Volume Hierarchy (BVH) for accelerating ray-object intersection.

BVH is a tree structure where each node contains an AABB and either:
- Two child nodes (interior node)
- A list of primitive indices (leaf node)

The tree is built once from the full primitive list and is read-only
afterwards, so any number of render threads may query it at once.
"""

from __future__ import annotations
import logging
from typing import Iterator, List, Optional, Sequence, Union

from .vec3 import Vec3
from .ray import Ray
from .shapes import AABB, EPSILON, HitRecord, Primitive, PrimitiveList

logger = logging.getLogger(__name__)


class BVHNode:
    """A node in the Bounding Volume Hierarchy tree.

    Interior nodes have two children; leaf nodes hold primitive indices.
    """

    __slots__ = ('bbox', 'left', 'right', 'indices')

    def __init__(
        self,
        bbox: AABB,
        left: Optional[BVHNode] = None,
        right: Optional[BVHNode] = None,
        indices: Optional[List[int]] = None
    ):
        self.bbox = bbox
        self.left = left
        self.right = right
        self.indices = indices

    @property
    def is_leaf(self) -> bool:
        return self.indices is not None

    def bounding_box(self) -> AABB:
        """Return the bounding box for this node."""
        return self.bbox


class BVH:
    """Bounding Volume Hierarchy acceleration structure.

    Provides O(log n) ray intersection instead of O(n) for n primitives.
    """

    def __init__(self, primitives: Sequence[Primitive], max_leaf_size: int = 4):
        """Build a BVH from a list of primitives.

        Args:
            primitives: Primitives to accelerate (referenced, not copied)
            max_leaf_size: Maximum primitives per leaf node
        """
        if max_leaf_size < 1:
            raise ValueError(f"max_leaf_size must be >= 1, got {max_leaf_size}")

        self.primitives: List[Primitive] = list(primitives)
        self.max_leaf_size = max_leaf_size
        self._boxes = [p.bounding_box() for p in self.primitives]
        self._centroids = [p.centroid() for p in self.primitives]

        if not self.primitives:
            self.root: Optional[BVHNode] = None
        else:
            self.root = self._build(list(range(len(self.primitives))))

        logger.debug(
            "Built BVH over %d primitives (%d leaves, depth %d)",
            len(self.primitives), sum(1 for _ in self.leaves()), self.depth()
        )

    def _build(self, indices: List[int]) -> BVHNode:
        """Recursively partition `indices` into a subtree."""
        bbox = self._union(indices)

        if len(indices) <= self.max_leaf_size:
            return BVHNode(bbox, indices=indices)

        centroid_bounds = AABB(
            _vmin(self._centroids[i] for i in indices),
            _vmax(self._centroids[i] for i in indices),
        )
        axis = centroid_bounds.longest_axis()
        if centroid_bounds.extent()[axis] <= 0.0:
            axis = bbox.longest_axis()

        split = centroid_bounds.centroid()[axis]
        left = [i for i in indices if self._centroids[i][axis] < split]
        right = [i for i in indices if self._centroids[i][axis] >= split]

        if not left or not right:
            # Degenerate partition: split evenly by count instead
            ordered = sorted(indices, key=lambda i: self._centroids[i][axis])
            mid = len(ordered) // 2
            left, right = ordered[:mid], ordered[mid:]

        return BVHNode(bbox, left=self._build(left), right=self._build(right))

    def _union(self, indices: List[int]) -> AABB:
        box = self._boxes[indices[0]]
        for i in indices[1:]:
            box = AABB.surrounding_box(box, self._boxes[i])
        return box

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Return the closest hit with t in (t_min, t_max), or None.

        Depth-first traversal: a node is only opened if the ray meets its
        box before the closest hit found so far.
        """
        if self.root is None:
            return None

        closest: Optional[HitRecord] = None
        closest_t = t_max
        stack = [self.root]

        while stack:
            node = stack.pop()
            if not node.bbox.hit(ray, t_min, closest_t):
                continue

            if node.is_leaf:
                for i in node.indices:
                    hit_record = self.primitives[i].hit(ray, t_min, closest_t)
                    if hit_record is not None:
                        closest = hit_record
                        closest_t = hit_record.t
            else:
                # Push the far child first so the near one is popped first
                near, far = node.left, node.right
                axis = node.bbox.longest_axis()
                if ray.direction[axis] < 0:
                    near, far = far, near
                stack.append(far)
                stack.append(near)

        return closest

    def intersect(self, ray: Ray) -> Optional[HitRecord]:
        """Nearest hit further than EPSILON along the ray, or None."""
        return self.hit(ray, EPSILON, float('inf'))

    def leaves(self) -> Iterator[BVHNode]:
        """Yield every leaf node."""
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield node
            else:
                stack.append(node.right)
                stack.append(node.left)

    def depth(self) -> int:
        """Number of levels in the tree (0 when empty)."""
        def _depth(node: Optional[BVHNode]) -> int:
            if node is None:
                return 0
            if node.is_leaf:
                return 1
            return 1 + max(_depth(node.left), _depth(node.right))
        return _depth(self.root)

    def bounding_box(self) -> Optional[AABB]:
        """Return the bounding box for the entire BVH."""
        if self.root is None:
            return None
        return self.root.bounding_box()

    def __len__(self) -> int:
        """Return the number of primitives in the BVH."""
        return len(self.primitives)


def build_bvh(scene: Union[PrimitiveList, Sequence[Primitive]], max_leaf_size: int = 4) -> BVH:
    """Convenience function to build a BVH from a PrimitiveList or sequence.

    Args:
        scene: The primitives to accelerate
        max_leaf_size: Maximum primitives per leaf node

    Returns:
        A BVH acceleration structure
    """
    if isinstance(scene, PrimitiveList):
        return BVH(scene.primitives, max_leaf_size)
    return BVH(scene, max_leaf_size)


def _vmin(points) -> Vec3:
    points = iter(points)
    result = next(points)
    for p in points:
        result = result.component_min(p)
    return result


def _vmax(points) -> Vec3:
    points = iter(points)
    result = next(points)
    for p in points:
        result = result.component_max(p)
    return result
