import numpy as np
import pytest
import trimesh

from jewel_tryon.utils.mesh_loader import load_mesh_data


class TestLoadMeshData:
    def test_centred_and_normalised(self, tmp_path):
        path = tmp_path / "band.obj"
        box = trimesh.creation.box(extents=(2.0, 1.0, 0.5))
        box.apply_translation((10.0, 4.0, -3.0))
        box.export(str(path))

        data = load_mesh_data(str(path), size=5.0)
        assert data is not None
        span = data.vertices.max(axis=0) - data.vertices.min(axis=0)
        assert span.max() == pytest.approx(5.0, rel=1e-4)
        np.testing.assert_allclose(data.vertices.max(axis=0) + data.vertices.min(axis=0), 0.0, atol=1e-4)
        assert data.floor == pytest.approx(-1.25, rel=1e-4)

    def test_buffers_line_up(self, tmp_path):
        path = tmp_path / "gem.obj"
        trimesh.creation.icosphere(subdivisions=1).export(str(path))
        data = load_mesh_data(str(path))
        assert data.vertices.dtype == np.float32
        assert data.normals.shape == data.vertices.shape
        assert data.uvs.shape == (len(data.vertices), 2)
        assert data.indices.dtype == np.uint32
        assert len(data.indices) % 3 == 0
        assert data.texture is None

    def test_missing_file(self, tmp_path):
        assert load_mesh_data(str(tmp_path / "missing.glb")) is None
