"""Flowers: lumpy, petal-flattened spheres clustered around the crown."""

import logging
import math

import numpy as np

from .constants import (FLOWER_DETAIL, FLOWER_NOISE, FLOWER_PETAL_PUSH,
                        FLOWER_RADIAL_INSET, FLOWER_Y_JITTER, MIN_FLOWER_RADIUS)
from .context import BuildContext
from .geometry import icosahedron
from .scene import Primitive, PrimitiveKind, disposing_on_error

logger = logging.getLogger(__name__)


def _petal_shape(geometry, radius: float, rand):
    """Push the equator outward, then jitter every vertex on all three axes.

    Draws three values per vertex, in vertex order.
    """
    pos = geometry.positions.copy()
    polar = np.arccos(np.clip(pos[:, 1] / radius, -1.0, 1.0))
    pos *= (1.0 + np.sin(polar) * FLOWER_PETAL_PUSH)[:, None]

    noise = radius * FLOWER_NOISE
    jitter = np.array([[rand() - 0.5 for _ in range(3)] for _ in range(len(pos))])
    pos += jitter.reshape(-1, 3) * noise
    geometry.set_positions(pos)


def build_flowers(ctx: BuildContext) -> list:
    """One solid mesh per flower, all drawn from the flower stream."""
    addons = ctx.config.addons
    if addons.flower_count <= 0:
        return []

    rand = ctx.streams.flowers
    base_size = addons.flower_size / 500
    variation = addons.flower_size_variation / 100
    height, width = ctx.height, ctx.width
    body_y = ctx.body_offset[1]
    palette = ctx.flower_palette

    with disposing_on_error([]) as flowers:
        for i in range(addons.flower_count):
            multiplier = 1 + (rand() - 0.5) * 2 * variation
            radius = max(MIN_FLOWER_RADIUS, base_size * multiplier)

            flower = Primitive(PrimitiveKind.solid_mesh,
                               icosahedron(radius, FLOWER_DETAIL),
                               palette[0], name=f"flower_{i}")
            flowers.append(flower)
            _petal_shape(flower.geometry, radius, rand)

            flower.material = palette[math.floor(rand() * len(palette))]

            phi = rand() * math.pi * 2
            y_offset = height / 2 - radius * 1.5 + (rand() - 0.5) * FLOWER_Y_JITTER
            radius_at_y = width * (1 - (y_offset - height / 2) / height)
            flower.position = (
                math.cos(phi) * radius_at_y * FLOWER_RADIAL_INSET,
                y_offset + body_y,
                math.sin(phi) * radius_at_y * FLOWER_RADIAL_INSET,
            )
            flower.rotation = (rand() * math.pi, rand() * math.pi * 2, rand() * math.pi)
    logger.debug(f"Placed {len(flowers)} flowers")
    return flowers
