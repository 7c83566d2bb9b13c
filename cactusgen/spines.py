"""Spine generation: short line segments sprouting from surface vertices."""

import logging
import math

import numpy as np

from .constants import SPINE_ANGLE_VARIATION, SPINES_PER_VERTEX
from .geometry import GeometryBuffer
from .scene import Primitive, PrimitiveKind

logger = logging.getLogger(__name__)


def spine_count(density: float, vertex_count: int) -> int:
    return math.floor((density / 100) * vertex_count * SPINES_PER_VERTEX)


def generate_spines(source: GeometryBuffer, config, rand,
                    name: str = "spines", position=(0.0, 0.0, 0.0)):
    """Sample ``source`` vertices and emit one segment per spine.

    Each spine consumes five draws in a fixed order: vertex index,
    length jitter, then x/y/z of the direction offset.  Returns None
    when the density is zero.
    """
    density = config.spines.density
    if density <= 0:
        return None

    positions = source.positions
    normals = source.normals
    total = len(positions)
    count = spine_count(density, total)
    base_length = config.spines.length / 400

    points = np.empty((2 * count, 3))
    directions = np.empty((2 * count, 3))
    for i in range(count):
        index = math.floor(rand() * total)
        length = base_length * (0.5 + rand())
        offset = np.array([rand() - 0.5, rand() - 0.5, rand() - 0.5])
        direction = normals[index] + offset * SPINE_ANGLE_VARIATION
        norm = np.linalg.norm(direction)
        if norm > 0:
            direction = direction / norm
        start = positions[index]
        points[2 * i] = start
        points[2 * i + 1] = start + direction * length
        directions[2 * i] = directions[2 * i + 1] = direction

    logger.debug(f"{name}: {count} spines from {total} vertices")
    return Primitive(PrimitiveKind.line_segments,
                     GeometryBuffer(points, normals=directions),
                     'spine', name=name, position=position)
