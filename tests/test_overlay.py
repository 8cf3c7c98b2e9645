import cv2
import numpy as np

from jewel_tryon.engine.tracking import HIDDEN, FrameResult
from jewel_tryon.graphics.overlay import OverlayRenderer, draw_anchors, load_overlay_image
from jewel_tryon.model.models import Category, Overlay, OverlayTransform
from jewel_tryon.trackers.landmark_mapper import to_pixels

CENTER = Overlay(Category.NECKLACE, None, OverlayTransform(x=200.0, y=200.0, rotation_deg=0.0, scale=1.0))


def red_square(size=20):
    img = np.zeros((size, size, 4), dtype=np.uint8)
    img[:, :] = (0, 0, 255, 255)
    return img


class TestOverlayRenderer:
    def test_hidden_result_leaves_frame(self, frame):
        out = OverlayRenderer(red_square()).compose(frame, HIDDEN)
        assert out is not frame
        np.testing.assert_array_equal(out, frame)

    def test_image_drawn_at_transform(self, frame):
        out = OverlayRenderer(red_square()).compose(frame, FrameResult((CENTER,), 1.0, fresh=True))
        assert out[200, 200].tolist() == [0, 0, 255]
        assert out[50, 50].tolist() == [0, 0, 0]
        assert frame.sum() == 0

    def test_opacity_blends(self, frame):
        out = OverlayRenderer(red_square()).compose(frame, FrameResult((CENTER,), 0.5))
        assert 100 <= out[200, 200, 2] <= 155

    def test_companion_category_gets_placeholder(self, frame):
        earring = Overlay(Category.EARRINGS, "left", CENTER.transform)
        out = OverlayRenderer(red_square(), Category.NECKLACE).compose(frame, FrameResult((earring,), 1.0))
        assert out[200, 200].tolist() != [0, 0, 255]
        assert out.sum() > 0

    def test_placeholder_without_image(self, frame):
        for category in Category:
            overlay = Overlay(category, None, CENTER.transform)
            out = OverlayRenderer().compose(frame, FrameResult((overlay,), 1.0, fresh=True))
            assert out.sum() > 0, category


class TestHelpers:
    def test_load_image_adds_alpha(self, tmp_path):
        path = tmp_path / "pendant.png"
        cv2.imwrite(str(path), np.full((8, 8, 3), 128, dtype=np.uint8))
        img = load_overlay_image(str(path))
        assert img.shape == (8, 8, 4)
        assert img[0, 0, 3] == 255

    def test_no_image_source(self):
        assert load_overlay_image(None) is None

    def test_draw_anchors(self, frame, hand_set):
        anchors = to_pixels(hand_set(), 400, 400, Category.RING)
        draw_anchors(frame, anchors)
        assert frame[120, 200].tolist() == [0, 255, 0]
