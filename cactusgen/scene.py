"""Primitives and groups that make up an assembled cactus."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from trimesh import transformations as tf

from .geometry import GeometryBuffer

logger = logging.getLogger(__name__)


class PrimitiveKind(str, Enum):
    solid_mesh = "solid_mesh"
    line_segments = "line_segments"


def local_matrix(position, rotation) -> np.ndarray:
    """4x4 transform: translate, then rotate with intrinsic X-Y-Z Euler angles."""
    matrix = tf.translation_matrix(position)
    if any(rotation):
        matrix = matrix @ tf.euler_matrix(*rotation, axes='rxyz')
    return matrix


@dataclass
class Primitive:
    """A leaf: one buffer, one material, one local transform."""

    kind: PrimitiveKind
    geometry: GeometryBuffer
    material: str
    name: str = ""
    position: tuple = (0.0, 0.0, 0.0)
    rotation: tuple = (0.0, 0.0, 0.0)

    @property
    def matrix(self) -> np.ndarray:
        return local_matrix(self.position, self.rotation)

    @property
    def segment_count(self) -> int:
        if self.kind is PrimitiveKind.line_segments:
            return self.geometry.vertex_count // 2
        return 0

    def dispose(self):
        self.geometry.dispose()


@dataclass
class Group:
    """Ordered container of primitives and nested groups."""

    name: str = ""
    children: list = field(default_factory=list)
    position: tuple = (0.0, 0.0, 0.0)
    rotation: tuple = (0.0, 0.0, 0.0)
    focus_target: tuple = (0.0, 0.0, 0.0)
    materials: dict = field(default_factory=dict)

    def add(self, node):
        self.children.append(node)
        return node

    def extend(self, nodes):
        self.children.extend(nodes)

    @property
    def matrix(self) -> np.ndarray:
        return local_matrix(self.position, self.rotation)

    @property
    def vertical_offset(self) -> float:
        return self.position[1]

    def walk(self, parent=None):
        """Yield ``(primitive, world_matrix)`` depth-first in child order."""
        world = self.matrix if parent is None else parent @ self.matrix
        for child in self.children:
            if isinstance(child, Group):
                yield from child.walk(world)
            else:
                yield child, world @ child.matrix

    def primitives(self) -> list:
        return [p for p, _ in self.walk()]

    def solid_meshes(self) -> list:
        return [p for p in self.primitives() if p.kind is PrimitiveKind.solid_mesh]

    def line_segments(self) -> list:
        return [p for p in self.primitives() if p.kind is PrimitiveKind.line_segments]

    def world_positions(self):
        """Yield each primitive's positions in the group's parent frame."""
        for primitive, matrix in self.walk():
            yield primitive, tf.transform_points(primitive.geometry.positions, matrix)

    def bounds(self):
        """Axis-aligned (min, max) over every primitive's transformed vertices."""
        lo = np.full(3, np.inf)
        hi = np.full(3, -np.inf)
        for _, points in self.world_positions():
            if len(points):
                lo = np.minimum(lo, points.min(axis=0))
                hi = np.maximum(hi, points.max(axis=0))
        if not np.isfinite(lo).all():
            return np.zeros(3), np.zeros(3)
        return lo, hi

    def dispose(self):
        """Release every buffer in the hierarchy and drop the children."""
        for child in self.children:
            child.dispose()
        self.children = []


@contextmanager
def disposing_on_error(nodes: list):
    """Dispose every node collected in ``nodes`` if the block raises."""
    try:
        yield nodes
    except Exception:
        for node in nodes:
            node.dispose()
        raise
