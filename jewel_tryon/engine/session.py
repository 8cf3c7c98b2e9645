# engine/session.py
"""
One try-on session: a product, its category and the user's calibration.

    IDLE -> LOADING -> ACTIVE -> STOPPED -> (start again)
         -> NATIVE_AR      3D asset on an AR-capable platform, chosen once
         -> UNAVAILABLE    camera or landmark model missing, terminal

The host calls process_frame() (or tick() to also read the camera) from its
per-frame timer. Nothing here raises inside the frame loop: fatal problems
surface once as the UNAVAILABLE state, tracking gaps as held/faded overlays.
"""
import logging
import time
from enum import Enum

import cv2

from jewel_tryon.engine.calibration import CalibrationController
from jewel_tryon.engine.placement import compute_transforms
from jewel_tryon.engine.tracking import HIDDEN, TrackingHold
from jewel_tryon.errors import CapabilityError
from jewel_tryon.model.models import Category
from jewel_tryon.trackers.landmark_mapper import to_pixels
from jewel_tryon.trackers.landmark_provider import LandmarkerKind
from jewel_tryon.utils.config import AppConfig
from jewel_tryon.utils.smoothing import AnchorSmoother

logger = logging.getLogger(__name__)

# Raised by MediaPipe or OpenCV for a frame they cannot use, the frame is a tracking gap
INFERENCE_ERRORS = (RuntimeError, ValueError, cv2.error)


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    NATIVE_AR = "native_ar"
    UNAVAILABLE = "unavailable"
    STOPPED = "stopped"


class TryOnSession:
    def __init__(self, asset, provider, config=None, native_bridge=None, camera=None, comparison=False):
        self.config = config or AppConfig()
        self.asset = asset
        self.provider = provider
        self.native_bridge = native_bridge
        self.camera = camera
        self.comparison = comparison

        self.state = SessionState.IDLE
        self.error = None
        self.viewer_config = None
        self._handle = None
        self._reset_product_state()

    def _reset_product_state(self):
        tracking = self.config.tracking
        self.calibration = CalibrationController(self.config.calibration)
        self.hold = TrackingHold(tracking.hold_frames)
        self._smoothers = []
        self._busy = False
        self._last_timestamp_ms = None
        self.last_anchors = ()
        self.last_result = HIDDEN

    # --- Properties ---
    @property
    def category(self):
        return Category(self.asset.category)

    @property
    def categories(self):
        """Categories drawn each frame. Comparison mode shows earrings and necklace together."""
        if self.comparison and self.category.is_face:
            return (Category.EARRINGS, Category.NECKLACE)
        return (self.category,)

    @property
    def kind(self):
        return LandmarkerKind.for_category(self.category)

    def set_comparison(self, enabled):
        self.comparison = bool(enabled)

    def _set_state(self, state):
        if state is not self.state:
            logger.info("Session %s: %s -> %s", self.asset.name, self.state.value, state.value)
            self.state = state

    # --- Start ---
    def _begin(self):
        """Picks the mode once. True when the 2D tracking path still has to be loaded."""
        if self.state not in (SessionState.IDLE, SessionState.STOPPED):
            logger.debug("Session already started (%s)", self.state.value)
            return False

        if self.native_bridge is not None and self.native_bridge.is_supported(self.asset):
            if self.camera is not None:
                self.camera.release()
            self.viewer_config = self.native_bridge.render(self.asset)
            self._set_state(SessionState.NATIVE_AR)
            return False

        self._set_state(SessionState.LOADING)
        return True

    def _fail(self, error):
        self.error = str(error)
        logger.error("AR unavailable: %s", error)
        if self.camera is not None:
            self.camera.release()
        self._set_state(SessionState.UNAVAILABLE)

    def _activate(self, handle):
        self._handle = handle
        self._set_state(SessionState.ACTIVE)

    def start(self):
        if self._begin():
            try:
                if self.camera is not None:
                    self.camera.open()
                handle = self.provider.initialize_sync(self.kind)
            except CapabilityError as e:
                self._fail(e)
            else:
                self._activate(handle)
        return self.state

    async def start_async(self):
        if self._begin():
            try:
                if self.camera is not None:
                    self.camera.open()
                handle = await self.provider.initialize(self.kind)
            except CapabilityError as e:
                self._fail(e)
            else:
                self._activate(handle)
        return self.state

    # --- Per-frame ---
    def _accept(self, frame, timestamp_ms):
        if self.state is not SessionState.ACTIVE or frame is None:
            return False
        # Latest frame only: drop ticks while inference runs and repeats of the same frame
        if self._busy or timestamp_ms == self._last_timestamp_ms:
            return False
        return True

    def process_frame(self, frame, timestamp_ms=None):
        if timestamp_ms is None:
            timestamp_ms = int(time.monotonic() * 1000)
        if not self._accept(frame, timestamp_ms):
            return self.last_result if self.state is SessionState.ACTIVE else HIDDEN

        self._busy = True
        try:
            subjects = self._handle.detect_all(frame, timestamp_ms)
        except INFERENCE_ERRORS as e:
            logger.warning("Landmark inference failed, treating frame as a gap: %s", e)
            subjects = []
        finally:
            self._busy = False
        return self._place(subjects, frame, timestamp_ms)

    async def process_frame_async(self, frame, timestamp_ms=None):
        if timestamp_ms is None:
            timestamp_ms = int(time.monotonic() * 1000)
        if not self._accept(frame, timestamp_ms):
            return self.last_result if self.state is SessionState.ACTIVE else HIDDEN

        self._busy = True
        try:
            subjects = await self.provider.infer_all(self._handle, frame, timestamp_ms)
        except INFERENCE_ERRORS as e:
            logger.warning("Landmark inference failed, treating frame as a gap: %s", e)
            subjects = []
        finally:
            self._busy = False

        # Stopped or switched while inference was running
        if self.state is not SessionState.ACTIVE:
            return HIDDEN
        return self._place(subjects, frame, timestamp_ms)

    def tick(self, timestamp_ms=None):
        """One render tick: read the camera and place overlays. Returns (frame, result)."""
        if self.camera is None:
            raise RuntimeError("Session has no camera attached")
        frame = self.camera.read()
        if frame is None:
            return None, self.last_result
        return frame, self.process_frame(frame, timestamp_ms)

    def _anchors(self, subjects, width, height):
        """Anchors per tracked subject: the first face, or every hand (one ring each)."""
        if self.category.is_face:
            subjects = subjects[:1]
        anchors = [to_pixels(lm, width, height, self.category, self.config.landmarks) for lm in subjects]
        anchors = [a for a in anchors if a is not None]
        if not self.category.is_face:
            # Left to right, so each smoother keeps following the same hand
            anchors.sort(key=lambda a: a.fingertip.x)
        return anchors

    def _smooth(self, anchors, t):
        tracking = self.config.tracking
        # Back from a gap, or a hand came or went: snap to the new positions
        if self.hold.missed or len(anchors) != len(self._smoothers):
            self._smoothers = [
                AnchorSmoother(tracking.smoothing_min_cutoff, tracking.smoothing_beta) for _ in anchors
            ]
        return [s.update(a, t) for s, a in zip(self._smoothers, anchors)]

    def _place(self, subjects, frame, timestamp_ms):
        self._last_timestamp_ms = timestamp_ms
        h, w = frame.shape[:2]
        anchors = self._anchors(subjects, w, h)

        if not anchors:
            logger.debug("Tracking gap (%d frames)", self.hold.missed + 1)
            result = self.hold.update(None)
        else:
            if self.config.tracking.smoothing:
                anchors = self._smooth(anchors, timestamp_ms / 1000.0)

            calibration = self.calibration.get()
            overlays = []
            for subject in anchors:
                for category in self.categories:
                    overlays.extend(compute_transforms(subject, category, calibration, self.config.placement))
            result = self.hold.update(overlays)

        self.last_anchors = tuple(anchors)
        self.last_result = result
        return result

    # --- Product switch / teardown ---
    def switch_product(self, asset):
        """New product: calibration, hold and smoothing start over, the mode is chosen again."""
        logger.info("Switching product %s -> %s", self.asset.name, asset.name)
        self.asset = asset
        self._reset_product_state()
        self._handle = None
        self.viewer_config = None

        if self.state in (SessionState.ACTIVE, SessionState.NATIVE_AR, SessionState.LOADING):
            self._set_state(SessionState.IDLE)
            return self.start()
        return self.state

    def stop(self):
        """Leaving the try-on view: frees camera and model runtimes, keeps downloaded weights."""
        if self.camera is not None:
            self.camera.release()
        self.provider.release_session()
        self._handle = None
        self.hold.reset()
        self._smoothers = []
        self.last_anchors = ()
        self.last_result = HIDDEN
        if self.state is not SessionState.UNAVAILABLE:
            self._set_state(SessionState.STOPPED)
        return self.state
