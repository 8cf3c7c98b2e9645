# model/models.py
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np


class Category(str, Enum):
    EARRINGS = "earrings"
    NECKLACE = "necklace"
    RING = "ring"

    @property
    def is_face(self):
        return self is not Category.RING

    @classmethod
    def from_label(cls, label):
        """Maps a catalogue label ("Earrings", "Rings", "Necklaces", ...) to a category."""
        if isinstance(label, Category):
            return label
        key = str(label).strip().lower()
        if key in ("earrings", "earring"):
            return cls.EARRINGS
        if key in ("ring", "rings"):
            return cls.RING
        # Everything else is worn around the neck
        return cls.NECKLACE


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True, eq=False)
class LandmarkSet:
    """
    Normalized (0..1) points from one inference pass.
    Read-only: the array is copied and locked on construction.
    """
    points: np.ndarray
    timestamp_ms: int = 0

    def __post_init__(self):
        pts = np.array(self.points, dtype=np.float64)
        if pts.size == 0:
            pts = pts.reshape(0, 2)
        if pts.ndim != 2 or pts.shape[1] not in (2, 3):
            raise ValueError(f"Landmarks must be (N, 2) or (N, 3), got {pts.shape}")
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)

    def __len__(self):
        return len(self.points)

    @classmethod
    def from_normalized(cls, landmarks, timestamp_ms=0):
        """Builds a set from MediaPipe NormalizedLandmark-like objects (x, y, z)."""
        rows = [[lm.x, lm.y, getattr(lm, "z", 0.0) or 0.0] for lm in landmarks]
        return cls(np.array(rows, dtype=np.float64), timestamp_ms)


class FaceAnchors(NamedTuple):
    left_ear: Point
    right_ear: Point
    nose: Point
    chin: Point

    @property
    def ear_distance(self):
        return math.hypot(self.right_ear.x - self.left_ear.x, self.right_ear.y - self.left_ear.y)

    @property
    def ear_midpoint(self):
        return Point((self.left_ear.x + self.right_ear.x) / 2.0, (self.left_ear.y + self.right_ear.y) / 2.0)


class HandAnchors(NamedTuple):
    fingertip: Point
    joint: Point

    @property
    def segment_length(self):
        return math.hypot(self.joint.x - self.fingertip.x, self.joint.y - self.fingertip.y)


AnchorPoints = Union[FaceAnchors, HandAnchors]


@dataclass(frozen=True)
class Calibration:
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


IDENTITY_CALIBRATION = Calibration()


@dataclass(frozen=True)
class OverlayTransform:
    """Screen-space placement of the jewellery image for one frame."""
    x: float
    y: float
    rotation_deg: float  # clockwise on screen, 0 = upright
    scale: float


class Overlay(NamedTuple):
    category: Category
    side: Optional[str]  # "left"/"right" for earrings, None otherwise
    transform: OverlayTransform


@dataclass(frozen=True)
class AssetReference:
    """Read-only product handle supplied by the catalogue."""
    product_id: str
    name: str
    category: Category
    image_url: Optional[str] = None
    model_url: Optional[str] = None
    poster_url: Optional[str] = None

    def has_3d_model(self, suffixes):
        if not self.model_url:
            return False
        path = self.model_url.split("?", 1)[0].split("#", 1)[0].lower()
        return path.endswith(tuple(s.lower() for s in suffixes))


@dataclass(frozen=True)
class ViewerOptions:
    auto_rotate: bool = True
    camera_controls: bool = True
    shadow_intensity: float = 1.0
    exposure: float = 1.0
    poster: Optional[str] = None


@dataclass(frozen=True)
class ViewerConfig:
    """Everything the native viewer needs to show a 3D asset."""
    src: str
    alt: str
    poster: Optional[str]
    ar_modes: Tuple[str, ...]
    camera_controls: bool
    auto_rotate: bool
    shadow_intensity: float
    exposure: float

    def as_attributes(self):
        attrs = {
            "src": self.src,
            "alt": self.alt,
            "ar": bool(self.ar_modes),
            "ar-modes": " ".join(self.ar_modes),
            "camera-controls": self.camera_controls,
            "auto-rotate": self.auto_rotate,
            "shadow-intensity": self.shadow_intensity,
            "exposure": self.exposure,
        }
        if self.poster:
            attrs["poster"] = self.poster
        return attrs


@dataclass(frozen=True, eq=False)
class CaptureResult:
    image: np.ndarray  # BGR composite
    png: bytes
    product_name: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def filename(self):
        name = re.sub(r"\s+", "-", self.product_name.strip())
        return f"ar-tryon-{name}.png"
