"""Vertex buffers, rib deformation, and parametric shape generation.

All shapes are Y-up and centred on their own origin.  Angles about the
vertical axis follow ``atan2(x, z)``: a vertex at angle θ and radius r
sits at ``(r·sin θ, y, r·cos θ)``.  Faces wind counter-clockwise when
seen from outside, so recomputed vertex normals point outward.
"""

import logging

import numpy as np
import trimesh
from trimesh import transformations as tf

from .constants import MIN_RADIAL_SEGMENTS, RIB_AMPLITUDE, TANGENT_DELTA

logger = logging.getLogger(__name__)


# ── Buffers ─────────────────────────────────────────────────────────────

class GeometryBuffer:
    """Index-aligned vertex positions and normals, plus optional faces.

    Solid meshes carry triangle ``faces``; line buffers carry none and
    store consecutive position pairs as segments.  A buffer is owned by
    exactly one primitive and released with ``dispose()``.
    """

    def __init__(self, positions, normals=None, faces=None):
        self._positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        self._faces = (None if faces is None
                       else np.asarray(faces, dtype=np.int64).reshape(-1, 3))
        if normals is not None:
            self._normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
        elif self._faces is not None:
            self._normals = compute_vertex_normals(self._positions, self._faces)
        else:
            self._normals = np.zeros_like(self._positions)
        if len(self._normals) != len(self._positions):
            raise ValueError(f"{len(self._normals)} normals for "
                             f"{len(self._positions)} positions")
        self.disposed = False

    def _check(self):
        if self.disposed:
            raise RuntimeError("GeometryBuffer used after dispose()")

    @property
    def positions(self) -> np.ndarray:
        self._check()
        return self._positions

    @property
    def normals(self) -> np.ndarray:
        self._check()
        return self._normals

    @property
    def faces(self):
        self._check()
        return self._faces

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    def set_positions(self, positions):
        """Replace positions and recompute normals from the new shape."""
        self._check()
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        if len(positions) != len(self._positions):
            raise ValueError("Vertex count must not change")
        self._positions = positions
        if self._faces is not None:
            self._normals = compute_vertex_normals(positions, self._faces)

    def dispose(self):
        """Release the arrays. Safe to call more than once."""
        self._positions = None
        self._normals = None
        self._faces = None
        self.disposed = True

    def __repr__(self):
        if self.disposed:
            return "GeometryBuffer(disposed)"
        kind = "lines" if self._faces is None else f"{len(self._faces)} faces"
        return f"GeometryBuffer({len(self._positions)} vertices, {kind})"


def compute_vertex_normals(positions, faces) -> np.ndarray:
    """Vertex normals recomputed from the current positions.

    Zero-area faces contribute nothing and isolated vertices get a zero
    normal rather than NaN.
    """
    mesh = trimesh.Trimesh(vertices=positions, faces=faces, process=False)
    normals = np.array(mesh.vertex_normals, dtype=np.float64)
    return np.nan_to_num(normals, nan=0.0, posinf=0.0, neginf=0.0)


# ── Rib deformation ─────────────────────────────────────────────────────

def rib_factor(angle, rib_count: int):
    """Radial scale ``1 - 0.1·cos(θ·R)``; identically 1 when R is 0."""
    angle = np.asarray(angle, dtype=np.float64)
    if rib_count <= 0:
        factor = np.ones_like(angle)
    else:
        factor = 1.0 - RIB_AMPLITUDE * np.cos(angle * rib_count)
    return factor if factor.ndim else float(factor)


def apply_ribs(geometry: GeometryBuffer, rib_count: int,
               origin=(0.0, 0.0)) -> GeometryBuffer:
    """Scale every vertex radially about a vertical axis through ``origin``.

    ``origin`` is the (x, z) point the angle is measured from; the body
    and caps use their own centre, arms use the arm's start point.
    Normals are recomputed afterwards.
    """
    ox, oz = origin
    pos = geometry.positions.copy()
    dx = pos[:, 0] - ox
    dz = pos[:, 2] - oz
    factor = rib_factor(np.arctan2(dx, dz), rib_count)
    pos[:, 0] = ox + dx * factor
    pos[:, 2] = oz + dz * factor
    geometry.set_positions(pos)
    return geometry


# ── Shapes ──────────────────────────────────────────────────────────────

def _grid_faces(rows: int, cols: int) -> np.ndarray:
    """Two triangles per cell of a (rows+1) x (cols+1) vertex grid."""
    r, c = np.meshgrid(np.arange(rows), np.arange(cols), indexing='ij')
    a = (r * (cols + 1) + c).ravel()
    b = a + cols + 1
    d = a + 1
    return np.concatenate([
        np.stack([a, b, d], axis=1),
        np.stack([b, b + 1, d], axis=1),
    ]).reshape(2, -1, 3).transpose(1, 0, 2).reshape(-1, 3)


def cylinder_shell(radius_top: float, radius_bottom: float, height: float,
                   radial_segments: int, height_segments: int = 1,
                   capped: bool = True) -> GeometryBuffer:
    """Frustum with a seam column and optional flat end caps.

    Layout: (height_segments+1) rows of (radial_segments+1) side vertices
    from top to bottom, then for each cap ``radial_segments`` centre
    vertices followed by a ring of ``radial_segments+1``.
    """
    radial = max(MIN_RADIAL_SEGMENTS, int(radial_segments))
    rows = max(1, int(height_segments))
    half = height / 2.0

    theta = np.linspace(0.0, 2.0 * np.pi, radial + 1)
    v = np.linspace(0.0, 1.0, rows + 1)
    radius = v * (radius_bottom - radius_top) + radius_top
    sides = np.stack([
        radius[:, None] * np.sin(theta)[None, :],
        np.repeat((half - v * height)[:, None], radial + 1, axis=1),
        radius[:, None] * np.cos(theta)[None, :],
    ], axis=-1).reshape(-1, 3)

    verts = [sides]
    faces = [_grid_faces(rows, radial)]
    offset = len(sides)

    if capped:
        for top in (True, False):
            y = half if top else -half
            r = radius_top if top else radius_bottom
            centres = np.tile([0.0, y, 0.0], (radial, 1))
            ring = np.stack([r * np.sin(theta), np.full(radial + 1, y),
                             r * np.cos(theta)], axis=1)
            c = offset + np.arange(radial)
            i = offset + radial + np.arange(radial)
            if top:
                faces.append(np.stack([i, i + 1, c], axis=1))
            else:
                faces.append(np.stack([i + 1, i, c], axis=1))
            verts.extend([centres, ring])
            offset += 2 * radial + 1

    return GeometryBuffer(np.concatenate(verts), faces=np.concatenate(faces))


def uv_sphere(radius: float, width_segments: int,
              height_segments: int) -> GeometryBuffer:
    """Latitude/longitude sphere with a single vertex at each pole.

    Column ``k`` sits at ``φ = 2πk/w`` with ``x = -cos φ``, ``z = sin φ``,
    i.e. at rib angle ``φ - π/2``.  Vertex count is
    ``2 + (height_segments - 1) * width_segments``.
    """
    w = max(MIN_RADIAL_SEGMENTS, int(width_segments))
    h = max(2, int(height_segments))

    phi = 2.0 * np.pi * np.arange(w) / w
    theta = np.pi * np.arange(1, h) / h
    rings = radius * np.stack([
        -np.sin(theta)[:, None] * np.cos(phi)[None, :],
        np.repeat(np.cos(theta)[:, None], w, axis=1),
        np.sin(theta)[:, None] * np.sin(phi)[None, :],
    ], axis=-1).reshape(-1, 3)
    top, bottom = 0, len(rings) + 1
    verts = np.concatenate([[[0.0, radius, 0.0]], rings, [[0.0, -radius, 0.0]]])

    j = np.arange(w)
    jn = (j + 1) % w
    faces = [np.stack([1 + j, 1 + jn, np.full(w, top)], axis=1)]
    for i in range(h - 2):
        a = 1 + i * w + j
        b = a + w
        d = 1 + i * w + jn
        c = d + w
        faces.append(np.stack([a, b, d], axis=1))
        faces.append(np.stack([b, c, d], axis=1))
    last = 1 + (h - 2) * w
    faces.append(np.stack([last + j, np.full(w, bottom), last + jn], axis=1))

    return GeometryBuffer(verts, faces=np.concatenate(faces))


_T = (1.0 + np.sqrt(5.0)) / 2.0
_ICOSAHEDRON_VERTICES = np.array([
    [-1, _T, 0], [1, _T, 0], [-1, -_T, 0], [1, -_T, 0],
    [0, -1, _T], [0, 1, _T], [0, -1, -_T], [0, 1, -_T],
    [_T, 0, -1], [_T, 0, 1], [-_T, 0, -1], [-_T, 0, 1],
])
_ICOSAHEDRON_FACES = np.array([
    [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
    [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
    [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
    [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
])


def _subdivide_face(a, b, c, cols: int) -> list:
    """Split one triangle into ``cols**2`` triangles, row by row from ``a``/``b``."""
    grid = []
    for i in range(cols + 1):
        aj = a + (c - a) * (i / cols)
        bj = b + (c - b) * (i / cols)
        rows = cols - i
        if rows == 0:
            grid.append([aj])
        else:
            grid.append([aj + (bj - aj) * (j / rows) for j in range(rows + 1)])

    corners = []
    for i in range(cols):
        for j in range(2 * (cols - i) - 1):
            k = j // 2
            if j % 2 == 0:
                corners.extend([grid[i][k + 1], grid[i + 1][k], grid[i][k]])
            else:
                corners.extend([grid[i][k + 1], grid[i + 1][k + 1], grid[i + 1][k]])
    return corners


def icosahedron(radius: float, detail: int = 0) -> GeometryBuffer:
    """Icosahedron with each face split into ``(detail+1)**2`` triangles.

    Vertices are not shared between triangles: the buffer holds
    ``60 * (detail+1)**2`` corners, three per face in face order, all
    projected onto the sphere of ``radius``.
    """
    cols = max(0, int(detail)) + 1
    corners = []
    for face in _ICOSAHEDRON_FACES:
        a, b, c = _ICOSAHEDRON_VERTICES[face]
        corners.extend(_subdivide_face(a, b, c, cols))
    verts = trimesh.util.unitize(np.array(corners)) * radius
    return GeometryBuffer(verts, faces=np.arange(len(verts)).reshape(-1, 3))


def _initial_normal(tangent) -> np.ndarray:
    """Pick the axis least aligned with ``tangent`` (last one wins ties)."""
    mag = np.abs(tangent)
    axis = np.zeros(3)
    axis[2 - int(np.argmin(mag[::-1]))] = 1.0
    vec = trimesh.util.unitize(np.cross(tangent, axis))
    return np.cross(tangent, vec)


def transport_frames(tangents):
    """Rotation-minimising (normal, binormal) frames along unit tangents."""
    count = len(tangents)
    normals = np.empty((count, 3))
    binormals = np.empty((count, 3))
    normals[0] = _initial_normal(tangents[0])
    binormals[0] = np.cross(tangents[0], normals[0])
    for i in range(1, count):
        n = normals[i - 1]
        axis = np.cross(tangents[i - 1], tangents[i])
        if np.linalg.norm(axis) > 1e-12:
            angle = np.arccos(np.clip(np.dot(tangents[i - 1], tangents[i]), -1.0, 1.0))
            n = tf.rotation_matrix(angle, axis)[:3, :3] @ n
        normals[i] = n
        binormals[i] = np.cross(tangents[i], n)
    return normals, binormals


def _polyline_points(path, s):
    """Points at arc lengths ``s`` along ``path``."""
    legs = np.diff(path, axis=0)
    lengths = np.linalg.norm(legs, axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(lengths)])
    leg = np.clip(np.searchsorted(cumulative[1:], s, side='left'), 0, len(legs) - 1)
    local = (s - cumulative[leg]) / np.where(lengths[leg] > 0, lengths[leg], 1.0)
    return path[leg] + legs[leg] * local[:, None]


def sweep_tube(path, tubular_segments: int, radius: float,
               radial_segments: int) -> GeometryBuffer:
    """Sweep a circle along a polyline, sampled evenly by arc length.

    Tangents are central differences over ``TANGENT_DELTA`` of the path
    length, so a ring that falls on a corner bisects the two legs.  The
    tube is open at both ends. Layout is (tubular_segments+1) rings of
    (radial_segments+1) vertices, the last vertex of each ring
    duplicating the first.
    """
    path = np.asarray(path, dtype=np.float64).reshape(-1, 3)
    tubular = max(1, int(tubular_segments))
    radial = max(MIN_RADIAL_SEGMENTS, int(radial_segments))

    total = np.linalg.norm(np.diff(path, axis=0), axis=1).sum()
    s = np.linspace(0.0, total, tubular + 1)
    centres = _polyline_points(path, s)
    delta = TANGENT_DELTA * total
    ahead = _polyline_points(path, np.minimum(s + delta, total))
    behind = _polyline_points(path, np.maximum(s - delta, 0.0))
    tangents = trimesh.util.unitize(ahead - behind)

    normals, binormals = transport_frames(tangents)
    v = np.linspace(0.0, 2.0 * np.pi, radial + 1)
    ring = (-np.cos(v)[None, :, None] * normals[:, None, :]
            + np.sin(v)[None, :, None] * binormals[:, None, :])
    verts = (centres[:, None, :] + radius * ring).reshape(-1, 3)

    return GeometryBuffer(verts, faces=_grid_faces(tubular, radial))
