"""Jointed arms: swept tubes sealed with ribbed sphere caps."""

import logging
import math

import numpy as np

from .constants import CAP_MIN_HEIGHT_SEGMENTS
from .context import BuildContext
from .geometry import apply_ribs, rib_factor, sweep_tube, uv_sphere
from .scene import Primitive, PrimitiveKind, disposing_on_error
from .spines import generate_spines

logger = logging.getLogger(__name__)


def arm_path(angle: float, ctx: BuildContext) -> np.ndarray:
    """Start, elbow, and tip of one arm in body-local coordinates.

    The arm leaves the ribbed surface horizontally for 40% of its length
    and then turns straight up for the remaining 60%.
    """
    arms = ctx.config.arms
    length = (arms.length / 100) * ctx.height * 0.7
    y = (arms.position / 100) * ctx.height - ctx.height / 2

    radius = ctx.width * rib_factor(angle, ctx.rib_count)
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    start = np.array([cos_a * radius, y, sin_a * radius])
    elbow = start + np.array([cos_a, 0.0, sin_a]) * length * 0.4
    tip = elbow + np.array([0.0, length * 0.6, 0.0])
    return np.array([start, elbow, tip])


def _cap(point, thickness: float, ctx: BuildContext, name: str) -> Primitive:
    """Unribbed sphere cap centred on ``point``."""
    geometry = uv_sphere(thickness, ctx.rib_count,
                         max(CAP_MIN_HEIGHT_SEGMENTS, ctx.rib_count // 2))
    offset = np.asarray(ctx.body_offset) + point
    return Primitive(PrimitiveKind.solid_mesh, geometry, 'body', name=name,
                     position=tuple(offset))


def build_arms(ctx: BuildContext) -> list:
    """Primitives for every arm, in order: tube, start cap, end cap, spines.

    Everything built so far is disposed if any step raises.
    """
    arms = ctx.config.arms
    if arms.count <= 0:
        return []

    thickness = (arms.thickness / 100) * ctx.width * 0.8
    placement = ctx.streams.arm_placement
    with disposing_on_error([]) as primitives:
        for i in range(arms.count):
            angle = placement() * math.pi * 2
            path = arm_path(angle, ctx)
            start, _, tip = path

            tube = Primitive(PrimitiveKind.solid_mesh,
                             sweep_tube(path, ctx.segments, thickness, ctx.rib_count),
                             'body', name=f"arm_{i}", position=ctx.body_offset)
            primitives.append(tube)
            apply_ribs(tube.geometry, ctx.rib_count, origin=(start[0], start[2]))

            for point, end in ((start, "start"), (tip, "end")):
                cap = _cap(point, thickness, ctx, f"arm_{i}_{end}_cap")
                primitives.append(cap)
                apply_ribs(cap.geometry, ctx.rib_count)

            spines = generate_spines(tube.geometry, ctx.config, ctx.streams.arm_spines,
                                     name=f"arm_{i}_spines", position=ctx.body_offset)
            if spines is not None:
                primitives.append(spines)

            logger.debug(f"Arm {i}: angle={math.degrees(angle):.1f}°, "
                         f"{tube.geometry.vertex_count} tube vertices")
    return primitives
