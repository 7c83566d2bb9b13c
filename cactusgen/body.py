"""Pot and ribbed main body."""

import logging

from .constants import POT_RADIAL_SEGMENTS
from .context import BuildContext
from .geometry import apply_ribs, cylinder_shell
from .scene import Group, Primitive, PrimitiveKind, disposing_on_error

logger = logging.getLogger(__name__)


def build_pot(ctx: BuildContext) -> Group:
    """Tapered pot body with a wider rim on top, seated under the body.

    The group is positioned so the pot mouth meets the base of the body.
    """
    p = ctx.pot_size
    body_h = ctx.pot_body_height
    rim_h = p * 0.2

    group = Group(name="pot", position=(0.0, -ctx.height / 2, 0.0))
    with disposing_on_error([group]):
        group.add(Primitive(PrimitiveKind.solid_mesh,
                            cylinder_shell(p * 0.9, p * 0.7, body_h, POT_RADIAL_SEGMENTS),
                            'pot', name="pot_body"))
        group.add(Primitive(PrimitiveKind.solid_mesh,
                            cylinder_shell(p, p * 0.95, rim_h, POT_RADIAL_SEGMENTS),
                            'pot', name="pot_rim",
                            position=(0.0, body_h / 2 - rim_h / 2 + 0.01, 0.0)))
    return group


def build_body(ctx: BuildContext) -> Primitive:
    """Cylindrical shell with ``rib_count`` ridges running its full height."""
    body = Primitive(PrimitiveKind.solid_mesh,
                     cylinder_shell(ctx.width, ctx.width, ctx.height,
                                    ctx.rib_count, ctx.segments),
                     'body', name="body", position=ctx.body_offset)
    with disposing_on_error([body]):
        apply_ribs(body.geometry, ctx.rib_count)
    logger.debug(f"Body shell: {body.geometry.vertex_count} vertices, "
                 f"{ctx.rib_count} ribs, {ctx.segments} segments")
    return body
