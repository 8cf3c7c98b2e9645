# trackers/landmark_provider.py
"""
Face and hand landmark providers.

One provider per process, created lazily by get_landmark_provider().
Each model kind is initialized once and memoized; release_session() frees
the per-session runtime objects but keeps the downloaded model files so a
returning user does not wait for another download.
"""
import asyncio
import logging
import threading
from enum import Enum

from jewel_tryon.errors import CapabilityError
from jewel_tryon.model.models import Category

logger = logging.getLogger(__name__)


class LandmarkerKind(str, Enum):
    FACE = "face"
    HAND = "hand"

    @classmethod
    def for_category(cls, category):
        return cls.FACE if Category(category).is_face else cls.HAND


class LandmarkerHandle:
    """
    Ready landmarker for one model kind.
    The backend runtime is opened on demand and can be released and
    re-opened any number of times.
    """

    def __init__(self, kind, backend):
        self.kind = kind
        self._backend = backend
        self._runtime = None
        self._last_timestamp_ms = -1
        self._lock = threading.Lock()

    @property
    def is_open(self):
        return self._runtime is not None

    def open(self):
        with self._lock:
            self._open_locked()
        return self

    def _open_locked(self):
        if self._runtime is None:
            self._runtime = self._backend.open(self.kind)
            self._last_timestamp_ms = -1

    def detect_all(self, frame, timestamp_ms):
        """One LandmarkSet per detected subject (face or hand), empty when nobody is in the frame."""
        if frame is None:
            return []
        with self._lock:
            self._open_locked()
            # Video mode needs strictly increasing timestamps
            if timestamp_ms <= self._last_timestamp_ms:
                timestamp_ms = self._last_timestamp_ms + 1
            self._last_timestamp_ms = timestamp_ms
            return list(self._runtime.detect(frame, timestamp_ms))

    def detect(self, frame, timestamp_ms):
        """LandmarkSet of the first subject, or None when nobody is in the frame."""
        subjects = self.detect_all(frame, timestamp_ms)
        return subjects[0] if subjects else None

    def release(self):
        with self._lock:
            if self._runtime is not None:
                self._runtime.close()
                self._runtime = None
                logger.info("Released %s landmarker runtime", self.kind.value)


class LandmarkProvider:
    def __init__(self, backend):
        self._backend = backend
        self._handles = {}
        self._init_lock = threading.Lock()

    def initialize_sync(self, kind):
        kind = LandmarkerKind(kind)
        with self._init_lock:
            handle = self._handles.get(kind)
            if handle is not None and handle.is_open:
                return handle

            if handle is None:
                logger.info("Initializing %s landmarker...", kind.value)
                handle = LandmarkerHandle(kind, self._backend)
            try:
                handle.open()
            except CapabilityError:
                raise
            except (OSError, RuntimeError, ValueError) as e:
                raise CapabilityError(f"{kind.value} landmarker unavailable: {e}") from e
            self._handles[kind] = handle
            logger.info("%s landmarker ready", kind.value.capitalize())
            return handle

    async def initialize(self, kind):
        """Loads (once) and returns the handle for a model kind without blocking the caller's loop."""
        return await asyncio.to_thread(self.initialize_sync, kind)

    async def infer(self, handle, frame, timestamp_ms):
        return await asyncio.to_thread(handle.detect, frame, timestamp_ms)

    async def infer_all(self, handle, frame, timestamp_ms):
        return await asyncio.to_thread(handle.detect_all, frame, timestamp_ms)

    def release_session(self):
        for handle in self._handles.values():
            handle.release()

    def close(self):
        self.release_session()
        self._handles.clear()


class UnavailableLandmarkProvider:
    """Stand-in used when the platform cannot track. Every initialize fails the same way."""

    def __init__(self, reason):
        self.reason = reason

    def initialize_sync(self, kind):
        raise CapabilityError(self.reason)

    async def initialize(self, kind):
        return self.initialize_sync(kind)

    async def infer(self, handle, frame, timestamp_ms):
        return None

    async def infer_all(self, handle, frame, timestamp_ms):
        return []

    def release_session(self):
        pass

    def close(self):
        pass


def create_landmark_provider(config, capabilities, backend=None):
    if not capabilities.camera:
        logger.warning("No camera detected, landmark tracking disabled")
        return UnavailableLandmarkProvider("No camera available")
    if backend is None:
        from jewel_tryon.trackers.mediapipe_backend import MediaPipeBackend
        backend = MediaPipeBackend(config.tracking)
    return LandmarkProvider(backend)


_provider = None
_provider_lock = threading.Lock()


def get_landmark_provider(config, capabilities, backend=None):
    """Process-wide provider, created on first use."""
    global _provider
    with _provider_lock:
        if _provider is None:
            _provider = create_landmark_provider(config, capabilities, backend)
        return _provider


def reset_landmark_provider():
    """Teardown hook: closes the shared provider so the next call builds a fresh one."""
    global _provider
    with _provider_lock:
        if _provider is not None:
            _provider.close()
        _provider = None
