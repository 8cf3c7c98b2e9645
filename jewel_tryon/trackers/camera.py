# trackers/camera.py
import logging

import cv2

from jewel_tryon.errors import CapabilityError

logger = logging.getLogger(__name__)


class CameraStream:
    """Live camera feed. Opening failure is a CapabilityError, not a retry loop."""

    def __init__(self, config):
        self.config = config
        self.cap = cv2.VideoCapture()

    @property
    def is_open(self):
        return self.cap.isOpened()

    def open(self):
        if self.cap.isOpened():
            return self
        self.cap.open(self.config.index)
        if not self.cap.isOpened():
            raise CapabilityError(f"Camera {self.config.index} could not be opened. Try camera index 0/1/2.")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        logger.info("Camera %d opened", self.config.index)
        return self

    def read(self):
        """Latest frame (BGR), mirrored like a selfie preview if configured. None when no frame."""
        if not self.cap.isOpened():
            return None
        ret, frame = self.cap.read()
        if not ret:
            return None
        if self.config.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def release(self):
        if self.cap.isOpened():
            self.cap.release()
            logger.info("Camera %d released", self.config.index)
