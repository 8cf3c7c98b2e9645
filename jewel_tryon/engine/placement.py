# engine/placement.py
"""
Overlay placement: anchors + category + calibration -> screen transform.

Each category is one pure function from anchors to a base transform.
Calibration is applied afterwards (scale multiplied, then offsets added),
so it nudges the geometric estimate and never replaces it.

Angles are in degrees, clockwise on screen (image y grows downward),
0 meaning the jewellery hangs straight down.
"""
import math

from jewel_tryon.model.models import (
    IDENTITY_CALIBRATION, Category, FaceAnchors, HandAnchors, Overlay, OverlayTransform,
)
from jewel_tryon.utils.config import PlacementConfig

DEFAULT_PLACEMENT = PlacementConfig()

LEFT = "left"
RIGHT = "right"


def _hang_angle(top, bottom):
    """Angle of the top->bottom vector relative to straight down."""
    return math.degrees(math.atan2(-(bottom.x - top.x), bottom.y - top.y))


def _line_angle(a, b):
    """Tilt of the line through a and b relative to horizontal, either direction."""
    if b.x < a.x:
        a, b = b, a
    return math.degrees(math.atan2(b.y - a.y, b.x - a.x))


def _ear_roll(ear, other_ear, chin, mid):
    """Head roll seen from one ear: its ear->chin angle minus that angle on an upright face."""
    side = 1.0 if other_ear.x >= ear.x else -1.0
    half_width = math.hypot(other_ear.x - ear.x, other_ear.y - ear.y) / 2.0
    face_height = math.hypot(chin.x - mid.x, chin.y - mid.y)
    upright = math.degrees(math.atan2(-side * half_width, face_height))
    return _hang_angle(ear, chin) - upright


def _require(anchors, kind, category):
    if not isinstance(anchors, kind):
        raise TypeError(f"{category.value} placement needs {kind.__name__}, got {type(anchors).__name__}")


def _earring(anchors, constants, side):
    _require(anchors, FaceAnchors, Category.EARRINGS)
    d = anchors.ear_distance
    if side == RIGHT:
        ear, other_ear = anchors.right_ear, anchors.left_ear
    else:
        ear, other_ear = anchors.left_ear, anchors.right_ear
    mid = anchors.ear_midpoint

    # |mid - ear| is d/2, so this moves inset*d toward the middle of the face
    pull = 2.0 * constants.earring_inset
    x = ear.x + (mid.x - ear.x) * pull
    y = ear.y + (mid.y - ear.y) * pull + constants.earring_drop * d

    return OverlayTransform(
        x=x,
        y=y,
        rotation_deg=_ear_roll(ear, other_ear, anchors.chin, mid),
        scale=constants.earring_scale * d / constants.reference_ear_distance,
    )


def _necklace(anchors, constants, side):
    _require(anchors, FaceAnchors, Category.NECKLACE)
    d = anchors.ear_distance
    # Neck width is not observed, face width stands in for it
    return OverlayTransform(
        x=anchors.ear_midpoint.x,
        y=anchors.chin.y + constants.necklace_drop * d,
        rotation_deg=_line_angle(anchors.left_ear, anchors.right_ear),
        scale=constants.necklace_scale * d / constants.reference_ear_distance,
    )


def _ring(anchors, constants, side):
    _require(anchors, HandAnchors, Category.RING)
    tip, joint = anchors.fingertip, anchors.joint
    return OverlayTransform(
        x=tip.x + (joint.x - tip.x) * constants.ring_slide,
        y=tip.y + (joint.y - tip.y) * constants.ring_slide,
        rotation_deg=_hang_angle(tip, joint),
        scale=constants.ring_scale * anchors.segment_length / constants.ring_reference_segment,
    )


_PLACEMENTS = {
    Category.EARRINGS: _earring,
    Category.NECKLACE: _necklace,
    Category.RING: _ring,
}


def apply_calibration(transform, calibration):
    return OverlayTransform(
        x=transform.x + calibration.offset_x,
        y=transform.y + calibration.offset_y,
        rotation_deg=transform.rotation_deg,
        scale=transform.scale * calibration.scale,
    )


def compute_transform(anchors, category, calibration=IDENTITY_CALIBRATION, side=LEFT, constants=DEFAULT_PLACEMENT):
    """
    One overlay transform. Earrings are placed per ear, pass side="right"
    for the second one. Returns None when there are no anchors this frame.
    """
    if anchors is None:
        return None
    category = Category(category)
    base = _PLACEMENTS[category](anchors, constants, side)
    return apply_calibration(base, calibration)


def compute_transforms(anchors, category, calibration=IDENTITY_CALIBRATION, constants=DEFAULT_PLACEMENT):
    """Every overlay a category needs this frame: two for earrings, one otherwise."""
    if anchors is None:
        return []
    category = Category(category)
    sides = (LEFT, RIGHT) if category is Category.EARRINGS else (None,)
    return [
        Overlay(category, side, compute_transform(anchors, category, calibration, side or LEFT, constants))
        for side in sides
    ]
