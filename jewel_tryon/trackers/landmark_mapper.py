# trackers/landmark_mapper.py
import logging

import numpy as np

from jewel_tryon.model.models import Category, FaceAnchors, HandAnchors, Point
from jewel_tryon.utils.config import LandmarkIndices

logger = logging.getLogger(__name__)

DEFAULT_INDICES = LandmarkIndices()


def required_indices(category, indices=DEFAULT_INDICES):
    """Landmark indices, in anchor field order, needed by a category."""
    if Category(category).is_face:
        return (indices.left_ear, indices.right_ear, indices.nose, indices.chin)
    return (indices.ring_tip, indices.ring_joint)


def minimum_length(category, indices=DEFAULT_INDICES):
    return max(required_indices(category, indices)) + 1


def to_pixels(landmarks, width, height, category, indices=DEFAULT_INDICES):
    """
    Scales normalized landmarks to viewport pixels and picks the anchors
    the category needs.
    Returns None (never a partly filled record) when the set is missing,
    too short, or holds non-finite values.
    """
    if landmarks is None or width <= 0 or height <= 0:
        return None

    category = Category(category)
    idx = required_indices(category, indices)
    if len(landmarks) < max(idx) + 1:
        logger.debug("Landmark set too short for %s: %d < %d", category.value, len(landmarks), max(idx) + 1)
        return None

    pts = landmarks.points[list(idx), :2]
    if not np.all(np.isfinite(pts)):
        return None

    # No lens distortion correction, a plain per-axis scale
    px = pts * np.array([width, height], dtype=np.float64)
    points = [Point(float(x), float(y)) for x, y in px]

    if category.is_face:
        return FaceAnchors(*points)
    return HandAnchors(*points)
