"""Cactus assembly: runs every feature builder and recentres the result."""

import logging
import time

from .arms import build_arms
from .body import build_body, build_pot
from .context import BuildContext
from .flowers import build_flowers
from .models import CactusConfig
from .scene import Group, disposing_on_error
from .spines import generate_spines

logger = logging.getLogger(__name__)


def recenter(group: Group):
    """Shift the group so its vertical midpoint sits at y = 0.

    The horizontal centre (with y forced to 0) becomes the suggested
    focus target for a viewer.
    """
    lo, hi = group.bounds()
    center = (lo + hi) / 2
    group.position = (0.0, -float(center[1]), 0.0)
    group.focus_target = (float(center[0]), 0.0, float(center[2]))


def generate(config: CactusConfig, progress_callback=None) -> Group:
    """Build a complete cactus group from a config snapshot.

    Pure with respect to ``config``: the same snapshot always produces
    identical buffers.  Child order is pot, body, body spines, then per
    arm the tube, start cap, end cap and arm spines, then flowers.
    """
    def _progress(pct, msg):
        if progress_callback:
            progress_callback(pct, msg)

    ctx = BuildContext.from_config(config.sanitized())
    group = Group(name="cactus", materials=ctx.materials)
    timings = {}

    with disposing_on_error([group]):
        t0 = time.perf_counter()
        _progress(0, "Building pot and body...")
        group.add(build_pot(ctx))
        body = group.add(build_body(ctx))
        timings['1_body'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        _progress(25, "Growing spines...")
        spines = generate_spines(body.geometry, ctx.config, ctx.streams.body_spines,
                                 name="body_spines", position=body.position)
        if spines is not None:
            group.add(spines)
        timings['2_spines'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        _progress(50, "Building arms...")
        group.extend(build_arms(ctx))
        timings['3_arms'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        _progress(75, "Placing flowers...")
        group.extend(build_flowers(ctx))
        timings['4_flowers'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        recenter(group)
        timings['5_recenter'] = time.perf_counter() - t0

    _progress(100, "Done")
    total_verts = sum(p.geometry.vertex_count for p in group.primitives())
    logger.info(f"Generated cactus: {len(group.solid_meshes())} meshes, "
                f"{len(group.line_segments())} spine sets, "
                f"{total_verts} vertices in {sum(timings.values()) * 1000:.1f} ms")
    for label, dur in sorted(timings.items()):
        logger.debug(f"  {label}: {dur * 1000:.2f} ms")
    return group


def summarize(group: Group) -> dict:
    """Counts, bounds and focus data for reporting."""
    lo, hi = group.bounds()
    return {
        'solid_meshes': len(group.solid_meshes()),
        'line_segments': len(group.line_segments()),
        'spines': sum(p.segment_count for p in group.line_segments()),
        'vertices': sum(p.geometry.vertex_count for p in group.primitives()),
        'bounds_min': lo.tolist(),
        'bounds_max': hi.tolist(),
        'vertical_offset': group.vertical_offset,
        'focus_target': list(group.focus_target),
    }


class CactusBuilder:
    """Owns the current cactus group and replaces it on every config change.

    The new group is fully built before it is published; the superseded
    group's buffers are released right after the swap.  A regenerate
    request that arrives while a pass is running (for example from a
    progress callback) is queued and rebuilt once that pass finishes.
    """

    def __init__(self):
        self.group = None
        self.config = None
        self.generation = 0
        self._building = False
        self._pending = None

    def regenerate(self, config: CactusConfig, progress_callback=None) -> Group:
        if self._building:
            logger.debug("Regeneration in progress - queuing latest config")
            self._pending = config
            return self.group

        self._building = True
        try:
            while config is not None:
                new_group = generate(config, progress_callback)
                old_group, self.group = self.group, new_group
                self.config = config
                self.generation += 1
                if old_group is not None:
                    old_group.dispose()
                config, self._pending = self._pending, None
        finally:
            self._building = False
            self._pending = None
        return self.group

    def dispose(self):
        if self.group is not None:
            self.group.dispose()
            self.group = None