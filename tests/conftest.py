"""Shared fakes: landmark sets, a scripted landmark backend and a camera."""
from dataclasses import replace

import numpy as np
import pytest

from jewel_tryon.model.models import AssetReference, Category, LandmarkSet
from jewel_tryon.trackers.capabilities import PlatformCapabilities
from jewel_tryon.trackers.landmark_provider import reset_landmark_provider
from jewel_tryon.utils.config import AppConfig

FRAME_SIZE = 400

# Normalized positions; on a 400x400 frame the ears are 200 px apart
FACE_POINTS = {
    234: (0.25, 0.40),  # left ear -> (100, 160)
    454: (0.75, 0.40),  # right ear -> (300, 160)
    4: (0.50, 0.50),    # nose -> (200, 200)
    152: (0.50, 0.70),  # chin -> (200, 280)
}
HAND_POINTS = {
    16: (0.50, 0.30),  # ring tip -> (200, 120)
    14: (0.50, 0.40),  # ring PIP joint -> (200, 160)
}


def make_landmarks(points, length, timestamp_ms=0):
    arr = np.full((length, 3), 0.5)
    for idx, (x, y) in points.items():
        arr[idx, :2] = (x, y)
    return LandmarkSet(arr, timestamp_ms)


class FakeRuntime:
    def __init__(self, script):
        self.script = script
        self.calls = []
        self.closed = False

    def detect(self, frame, timestamp_ms):
        """Script items: None (nobody), a LandmarkSet, a list of them, or an exception to raise."""
        self.calls.append(timestamp_ms)
        if not self.script:
            return []
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if item is None:
            return []
        return item if isinstance(item, list) else [item]

    def close(self):
        self.closed = True


class FakeBackend:
    """Stands in for MediaPipe. Every runtime pops results from the same script."""

    def __init__(self, script=None, error=None):
        self.script = list(script or [])
        self.error = error
        self.opened = []
        self.runtimes = []

    def open(self, kind):
        self.opened.append(kind)
        if self.error is not None:
            raise self.error
        runtime = FakeRuntime(self.script)
        self.runtimes.append(runtime)
        return runtime


class FakeCamera:
    def __init__(self, frames=None, fail=None):
        self.frames = list(frames or [])
        self.fail = fail
        self.is_open = False
        self.releases = 0

    def open(self):
        if self.fail is not None:
            raise self.fail
        self.is_open = True
        return self

    def read(self):
        if not self.is_open or not self.frames:
            return None
        return self.frames.pop(0)

    def release(self):
        self.is_open = False
        self.releases += 1


@pytest.fixture
def face_set():
    def factory(timestamp_ms=0, moved=None):
        points = dict(FACE_POINTS)
        points.update(moved or {})
        return make_landmarks(points, 478, timestamp_ms)
    return factory


@pytest.fixture
def hand_set():
    def factory(timestamp_ms=0, moved=None):
        points = dict(HAND_POINTS)
        points.update(moved or {})
        return make_landmarks(points, 21, timestamp_ms)
    return factory


@pytest.fixture
def frame():
    return np.zeros((FRAME_SIZE, FRAME_SIZE, 3), dtype=np.uint8)


@pytest.fixture
def config():
    """Defaults with smoothing off so positions are exact."""
    base = AppConfig()
    return replace(base, tracking=replace(base.tracking, smoothing=False))


@pytest.fixture
def no_ar():
    return PlatformCapabilities(camera=True, ar_modes=())


@pytest.fixture
def earrings():
    return AssetReference("e-1", "Diamond Jhumkas", Category.EARRINGS, image_url=None)


@pytest.fixture
def necklace():
    return AssetReference("n-1", "Kundan Choker", Category.NECKLACE)


@pytest.fixture
def ring():
    return AssetReference("r-1", "Solitaire Ring", Category.RING, model_url="https://cdn.example.com/solitaire.glb?v=2")


@pytest.fixture(autouse=True)
def _clean_provider():
    yield
    reset_landmark_provider()
