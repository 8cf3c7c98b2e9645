from dataclasses import FrozenInstanceError
from datetime import datetime

import cv2
import numpy as np
import pytest

from jewel_tryon.share.capture import capture, save_capture


def composite():
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    img[10:20, 10:20] = (0, 215, 255)
    return img


class TestCapture:
    def test_png_of_the_composite(self):
        frame = composite()
        result = capture(frame, "Gold Ring", clock=lambda: datetime(2024, 5, 1, 12, 0))
        assert result.png.startswith(b"\x89PNG")
        decoded = cv2.imdecode(np.frombuffer(result.png, np.uint8), cv2.IMREAD_COLOR)
        np.testing.assert_array_equal(decoded, frame)
        assert result.timestamp == datetime(2024, 5, 1, 12, 0)
        assert result.product_name == "Gold Ring"

    def test_later_frames_do_not_change_the_capture(self):
        frame = composite()
        result = capture(frame, "Gold Ring")
        frame[:] = 255
        assert result.image[0, 0].tolist() == [0, 0, 0]

    def test_result_is_frozen(self):
        result = capture(composite(), "Gold Ring")
        with pytest.raises(FrozenInstanceError):
            result.product_name = "Other"

    def test_callable_source(self):
        result = capture(composite, "Gold Ring")
        assert result.image.shape == (48, 64, 3)

    def test_nothing_rendered(self):
        with pytest.raises(ValueError):
            capture(lambda: None, "Gold Ring")

    def test_save(self, tmp_path):
        result = capture(composite(), "Diamond Jhumka Set")
        path = save_capture(result, tmp_path / "captures")
        assert path.name == "ar-tryon-Diamond-Jhumka-Set.png"
        assert path.read_bytes() == result.png
