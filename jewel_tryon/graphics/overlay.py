# graphics/overlay.py
import logging

import cv2
import numpy as np

from jewel_tryon.model.models import Category
from jewel_tryon.utils.downloads import local_path
from jewel_tryon.utils.paths import ASSETS_DIR

logger = logging.getLogger(__name__)

GOLD = (55, 175, 212)  # BGR
GOLD_DARK = (39, 162, 201)

# Point of the jewellery image that sits on the anchor, as a fraction of (w, h)
PIVOTS = {
    Category.EARRINGS: (0.5, 0.0),  # hook at the top
    Category.NECKLACE: (0.5, 0.5),
    Category.RING: (0.5, 0.5),
}

# Placeholder sizes in pixels at scale 1.0
EARRING_RADIUS = 60.0
NECKLACE_HALF_WIDTH = 62.5
RING_RADIUS = 16.0


def load_overlay_image(source):
    """Reads a jewellery image (path or http(s) URL) as BGRA. None when there is no source."""
    if not source:
        return None
    image = cv2.imread(str(local_path(source, ASSETS_DIR)), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError(f"Could not read overlay image {source}")

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    elif image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    logger.debug("Loaded overlay image %s (%dx%d)", source, image.shape[1], image.shape[0])
    return image


class OverlayRenderer:
    """
    Draws overlays on a camera frame. The product image is used for its own
    category (any category when none is given), gold placeholder shapes for
    everything else, e.g. the companion piece in comparison mode.
    """

    def __init__(self, image=None, category=None):
        self.image = image
        self.category = category

    def compose(self, frame, result):
        out = frame.copy()
        if not result.visible:
            return out
        for overlay in result.overlays:
            if self.image is not None and self.category in (None, overlay.category):
                self._blit(out, overlay, result.opacity)
            else:
                self._placeholder(out, overlay, result.opacity)
        return out

    def _blit(self, out, overlay, opacity):
        t = overlay.transform
        ih, iw = self.image.shape[:2]
        fx, fy = PIVOTS[overlay.category]
        px, py = iw * fx, ih * fy

        # cv2 angles are counter-clockwise, ours clockwise
        M = cv2.getRotationMatrix2D((px, py), -t.rotation_deg, t.scale)
        M[0, 2] += t.x - px
        M[1, 2] += t.y - py

        H, W = out.shape[:2]
        warped = cv2.warpAffine(
            self.image, M, (W, H),
            flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_CONSTANT, borderValue=(0, 0, 0, 0),
        )
        alpha = warped[:, :, 3:4].astype(np.float32) / 255.0 * opacity
        blended = out.astype(np.float32) * (1.0 - alpha) + warped[:, :, :3].astype(np.float32) * alpha
        out[:] = blended.astype(np.uint8)

    def _placeholder(self, out, overlay, opacity):
        t = overlay.transform
        layer = out.copy()
        center = (int(round(t.x)), int(round(t.y)))

        if overlay.category is Category.EARRINGS:
            r = max(1, int(EARRING_RADIUS * t.scale))
            axes = (r, int(r * 1.2))
            cv2.ellipse(layer, center, axes, t.rotation_deg, 0, 360, GOLD, -1, cv2.LINE_AA)
            cv2.ellipse(layer, center, axes, t.rotation_deg, 0, 360, GOLD_DARK, 2, cv2.LINE_AA)
        elif overlay.category is Category.NECKLACE:
            half = max(1, int(NECKLACE_HALF_WIDTH * t.scale))
            # Lower half of an ellipse hanging from the ear line
            top = (center[0], center[1] - half)
            cv2.ellipse(layer, top, (half, half), t.rotation_deg, 0, 180, GOLD,
                        max(1, int(5 * t.scale)), cv2.LINE_AA)
        else:
            r = max(1, int(RING_RADIUS * t.scale))
            axes = (r, max(1, int(r * 0.6)))
            cv2.ellipse(layer, center, axes, t.rotation_deg, 0, 360, GOLD, -1, cv2.LINE_AA)
            cv2.ellipse(layer, center, axes, t.rotation_deg, 0, 360, GOLD_DARK, 2, cv2.LINE_AA)

        cv2.addWeighted(layer, opacity, out, 1.0 - opacity, 0, out)


def draw_anchors(frame, anchors):
    """Debug view: dots on the anchor points used this frame."""
    if anchors is None:
        return frame
    for p in anchors:
        cv2.circle(frame, (int(p.x), int(p.y)), 4, (0, 255, 0), -1)
    return frame
