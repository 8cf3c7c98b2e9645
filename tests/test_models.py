from datetime import datetime

import numpy as np
import pytest

from jewel_tryon.model.models import AssetReference, CaptureResult, Category, ViewerConfig


class TestCategory:
    @pytest.mark.parametrize("label,expected", [
        ("Earrings", Category.EARRINGS),
        ("earring", Category.EARRINGS),
        ("Rings", Category.RING),
        (" ring ", Category.RING),
        ("Necklaces", Category.NECKLACE),
        ("Mangalsutra", Category.NECKLACE),
    ])
    def test_from_label(self, label, expected):
        assert Category.from_label(label) is expected

    def test_face_categories(self):
        assert Category.EARRINGS.is_face
        assert Category.NECKLACE.is_face
        assert not Category.RING.is_face


class TestAssetReference:
    SUFFIXES = (".glb", ".gltf", ".obj", ".usdz")

    def test_model_with_query_string(self, ring):
        assert ring.has_3d_model(self.SUFFIXES)

    def test_no_model(self, earrings):
        assert not earrings.has_3d_model(self.SUFFIXES)

    def test_unsupported_model_format(self):
        asset = AssetReference("x", "X", Category.RING, model_url="https://cdn.example.com/ring.fbx")
        assert not asset.has_3d_model(self.SUFFIXES)


class TestViewerConfig:
    def test_attributes(self):
        cfg = ViewerConfig(
            src="ring.glb", alt="Ring", poster=None, ar_modes=("webxr", "quick-look"),
            camera_controls=True, auto_rotate=False, shadow_intensity=1.0, exposure=0.8,
        )
        attrs = cfg.as_attributes()
        assert attrs["ar"] is True
        assert attrs["ar-modes"] == "webxr quick-look"
        assert attrs["auto-rotate"] is False
        assert "poster" not in attrs


class TestCaptureResult:
    def test_filename_replaces_whitespace(self):
        result = CaptureResult(np.zeros((2, 2, 3), np.uint8), b"", "Diamond  Jhumka Set", datetime(2024, 1, 1))
        assert result.filename == "ar-tryon-Diamond-Jhumka-Set.png"
