"""Shape constants, material table, and output paths."""

import os
import pathlib

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent
OUTPUT_DIR = pathlib.Path(
    os.environ.get("CACTUSGEN_OUTPUT_DIR", "").strip() or BASE_DIR / "output")

# ── Rib deformation ───────────────────────────────────────────────────
RIB_AMPLITUDE = 0.1       # radial scale swings between 0.9 and 1.1

# ── Segmentation ──────────────────────────────────────────────────────
MIN_SEGMENTS = 3          # floor for height / path subdivisions
MIN_RADIAL_SEGMENTS = 3   # floor for rib-driven radial subdivisions
POT_RADIAL_SEGMENTS = 32
CAP_MIN_HEIGHT_SEGMENTS = 4
TANGENT_DELTA = 1e-4      # tangent step along a swept path, fraction of its length
FLOWER_DETAIL = 2         # each icosahedron face split into (2+1)**2 triangles

# ── Spines ────────────────────────────────────────────────────────────
SPINE_ANGLE_VARIATION = 0.4
SPINES_PER_VERTEX = 50
BODY_SPINE_SEED = 99      # fixed so spines survive edits to the seed fields
ARM_SPINE_SEED = 199

# ── Flowers ───────────────────────────────────────────────────────────
FLOWER_PETAL_PUSH = 0.5
FLOWER_NOISE = 0.15       # jitter as a fraction of the flower radius
FLOWER_Y_JITTER = 0.2
FLOWER_RADIAL_INSET = 0.9
MIN_FLOWER_RADIUS = 1e-3

# ── Input floors ──────────────────────────────────────────────────────
MIN_DIMENSION = 1.0       # slider units; keeps every shape non-degenerate

# ── Materials ─────────────────────────────────────────────────────────
# id -> (RGBA 0-1, roughness)
MATERIALS = {
    'pot':      ([0.737, 0.424, 0.145, 1.0], 0.8),   # earthy terracotta
    'body':     ([0.212, 0.325, 0.078, 1.0], 0.8),   # deep cactus green
    'spine':    ([1.000, 0.984, 0.922, 1.0], 1.0),   # pale yellow
    'flower_0': ([0.902, 0.000, 0.451, 1.0], 0.6),   # deep pink
    'flower_1': ([0.612, 0.153, 0.690, 1.0], 0.6),   # purple
    'flower_2': ([0.957, 0.263, 0.212, 1.0], 0.6),   # red
    'flower_3': ([0.678, 0.078, 0.341, 1.0], 0.6),   # cranberry
    'flower_4': ([1.000, 0.251, 0.506, 1.0], 0.6),   # bright pink
}
FLOWER_MATERIALS = tuple(f"flower_{i}" for i in range(5))
