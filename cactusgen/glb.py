"""GLB and STL export of an assembled cactus group."""

import logging
import time

import trimesh
from trimesh import transformations as tf

from .models import PathManager
from .scene import Group, PrimitiveKind

logger = logging.getLogger(__name__)

FILE_TYPES = ('glb', 'stl')
_FALLBACK_COLOR = [0.8, 0.8, 0.8, 1.0]


def _material(group: Group, material_id: str):
    color, roughness = group.materials.get(material_id, (_FALLBACK_COLOR, 0.8))
    return trimesh.visual.material.PBRMaterial(
        name=material_id,
        baseColorFactor=color,
        roughnessFactor=roughness,
        metallicFactor=0.0,
        doubleSided=True,
    )


def _baked_mesh(primitive, matrix) -> trimesh.Trimesh:
    """Mesh with the world transform applied to vertices and normals."""
    geometry = primitive.geometry
    vertices = tf.transform_points(geometry.positions, matrix)
    normals = geometry.normals @ matrix[:3, :3].T
    return trimesh.Trimesh(vertices=vertices, faces=geometry.faces,
                           vertex_normals=normals, process=False)


def group_to_scene(group: Group) -> trimesh.Scene:
    """One named node per primitive, world transforms baked in.

    Solid meshes get a PBR material from the group's material table;
    spine sets become line geometry.
    """
    scene = trimesh.Scene()
    for index, (primitive, matrix) in enumerate(group.walk()):
        name = primitive.name or f"{primitive.kind.value}_{index}"
        if primitive.kind is PrimitiveKind.solid_mesh:
            mesh = _baked_mesh(primitive, matrix)
            mesh.visual = trimesh.visual.TextureVisuals(
                material=_material(group, primitive.material))
            scene.add_geometry(mesh, geom_name=name)
        elif primitive.kind is PrimitiveKind.line_segments:
            if primitive.segment_count == 0:
                continue
            points = tf.transform_points(primitive.geometry.positions, matrix)
            path = trimesh.load_path(points.reshape(-1, 2, 3))
            scene.add_geometry(path, geom_name=name)
    return scene


def export_group(group: Group, output_path, file_type: str = 'glb') -> str:
    """Write the group to disk and return the absolute path.

    ``glb`` keeps materials and spines; ``stl`` merges the solid meshes
    into one surface.
    """
    file_type = file_type.lower()
    if file_type not in FILE_TYPES:
        raise ValueError(f"Unsupported file type '{file_type}' "
                         f"(expected one of {', '.join(FILE_TYPES)})")

    output_path = PathManager.get_output_path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    t0 = time.perf_counter()

    if file_type == 'glb':
        scene = group_to_scene(group)
        scene.export(str(output_path), file_type='glb')
    else:
        meshes = [_baked_mesh(p, m) for p, m in group.walk()
                  if p.kind is PrimitiveKind.solid_mesh]
        if not meshes:
            raise ValueError("No solid geometry to export")
        merged = trimesh.util.concatenate(meshes)
        merged.export(str(output_path), file_type='stl')

    size_kb = output_path.stat().st_size / 1024
    logger.info(f"{file_type.upper()} written to {output_path} "
                f"({size_kb:.1f} KB, {time.perf_counter() - t0:.2f}s)")
    return str(output_path)
