# trackers/capabilities.py
import logging
import sys
from dataclasses import dataclass
from typing import Tuple

import cv2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformCapabilities:
    camera: bool
    ar_modes: Tuple[str, ...] = ()

    @property
    def native_ar(self):
        return bool(self.ar_modes)


def probe_camera(index=0):
    cap = cv2.VideoCapture(index)
    try:
        return cap.isOpened()
    finally:
        cap.release()


def platform_ar_modes(ar_config, platform=None):
    """AR viewer modes this host can offer, in configured order."""
    platform = platform or sys.platform
    offered = set(ar_config.host_modes)
    if platform == "darwin" or platform == "ios":
        offered.add("quick-look")
    if platform == "android" or hasattr(sys, "getandroidapilevel"):
        offered.add("scene-viewer")
    return tuple(m for m in ar_config.modes if m in offered)


def detect_capabilities(config, camera_probe=probe_camera, platform=None):
    """One-time detection, done when a try-on session starts."""
    caps = PlatformCapabilities(
        camera=bool(camera_probe(config.camera.index)),
        ar_modes=platform_ar_modes(config.ar, platform),
    )
    logger.info("Platform capabilities: camera=%s ar_modes=%s", caps.camera, ",".join(caps.ar_modes) or "none")
    return caps
