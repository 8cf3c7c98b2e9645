# utils/mesh_loader.py
import logging
from typing import NamedTuple, Optional

import numpy as np
import trimesh
from PIL import Image

logger = logging.getLogger(__name__)


class MeshData(NamedTuple):
    vertices: np.ndarray  # (N, 3) float32
    normals: np.ndarray   # (N, 3) float32
    uvs: np.ndarray       # (N, 2) float32, zeros when the model has none
    indices: np.ndarray   # flat uint32 triangle list
    texture: Optional[np.ndarray]  # RGBA rows bottom-up, as OpenGL expects
    floor: float          # lowest y, where the contact shadow sits


def load_mesh_data(path, size=5.0):
    """
    Reads a .glb/.gltf/.obj file into one centred mesh whose largest side is
    `size` units. Returns None when trimesh cannot read it.
    """
    try:
        mesh = trimesh.load(path, force="mesh")
    except (OSError, ValueError) as e:
        logger.error("Could not read 3D model %s: %s", path, e)
        return None
    if len(mesh.faces) == 0:
        logger.error("3D model %s has no triangles", path)
        return None

    mesh.apply_translation(-mesh.bounds.mean(axis=0))
    largest = float(np.max(mesh.extents))
    if largest > 0:
        mesh.apply_scale(size / largest)

    vertices = np.asarray(mesh.vertices, dtype=np.float32)
    uv = getattr(mesh.visual, "uv", None)
    uvs = np.asarray(uv, dtype=np.float32) if uv is not None and len(uv) == len(vertices) \
        else np.zeros((len(vertices), 2), dtype=np.float32)

    logger.info("Loaded 3D model %s: %d vertices, %d faces", path, len(vertices), len(mesh.faces))
    return MeshData(
        vertices=vertices,
        normals=np.asarray(mesh.vertex_normals, dtype=np.float32),
        uvs=uvs,
        indices=np.asarray(mesh.faces, dtype=np.uint32).ravel(),
        texture=_material_texture(mesh.visual),
        floor=float(vertices[:, 1].min()),
    )


def _material_texture(visual):
    material = getattr(visual, "material", None)
    image = getattr(material, "image", None)
    if image is None:
        image = getattr(material, "baseColorTexture", None)
    if image is None:
        return None
    if not isinstance(image, Image.Image):
        image = Image.fromarray(np.asarray(image))
    return np.ascontiguousarray(np.flipud(np.asarray(image.convert("RGBA"))))
