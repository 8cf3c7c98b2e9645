# utils/config.py
"""
JSON configuration for the try-on engine.

Every section is a frozen dataclass with working defaults, so an empty or
missing config file gives a fully usable setup. A file only has to name the
values it wants to change:

    {
        "placement": {"necklace_scale": 1.8},
        "calibration": {"max_scale": 1.4}
    }
"""
import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from jewel_tryon.errors import ConfigError
from jewel_tryon.utils.paths import CONFIG_PATH, MODELS_DIR

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "JEWEL_TRYON_CONFIG"

FACE_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task"
HAND_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"


@dataclass(frozen=True)
class TrackingConfig:
    face_model_url: str = FACE_MODEL_URL
    hand_model_url: str = HAND_MODEL_URL
    model_dir: str = str(MODELS_DIR)
    delegate: str = "CPU"  # "GPU" needs a GL-capable build of mediapipe
    num_faces: int = 1
    num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    # Frames the last overlay is kept (and faded) after tracking drops out
    hold_frames: int = 5
    smoothing: bool = True
    # Jittery when still? lower min_cutoff. Laggy when moving? raise beta.
    smoothing_min_cutoff: float = 1.0
    smoothing_beta: float = 0.05


@dataclass(frozen=True)
class LandmarkIndices:
    # Face mesh (468/478 points)
    left_ear: int = 234
    right_ear: int = 454
    nose: int = 4
    chin: int = 152
    # Hand (21 points): ring finger tip and PIP joint
    ring_tip: int = 16
    ring_joint: int = 14


@dataclass(frozen=True)
class PlacementConfig:
    # Ear distance (px) at which face categories get a base scale of 1.0
    reference_ear_distance: float = 200.0
    earring_scale: float = 0.35
    earring_drop: float = 0.12  # x ear distance, below the ear point
    earring_inset: float = 0.04  # x ear distance, toward the face midpoint
    necklace_scale: float = 1.6
    necklace_drop: float = 0.45  # x ear distance, below the chin
    # Tip-to-joint length (px) at which the ring gets a base scale of 1.0
    ring_reference_segment: float = 40.0
    ring_scale: float = 1.0
    ring_slide: float = 0.0  # 0 = fingertip, 1 = joint


@dataclass(frozen=True)
class CalibrationLimits:
    min_scale: float = 0.5
    max_scale: float = 1.5
    min_offset: float = -50.0
    max_offset: float = 50.0
    scale_step: float = 0.05


@dataclass(frozen=True)
class ShareConfig:
    brand: str = "GrandGold"
    page_url: str = ""
    messaging_url: str = "https://wa.me/?text={text}"
    social_url: str = "https://www.instagram.com/"


@dataclass(frozen=True)
class ARConfig:
    modes: Tuple[str, ...] = ("webxr", "scene-viewer", "quick-look")
    # Modes the host provides on every OS ("webxr" = bundled OpenGL viewer)
    host_modes: Tuple[str, ...] = ("webxr",)
    model_suffixes: Tuple[str, ...] = (".glb", ".gltf", ".obj", ".usdz")
    auto_rotate: bool = True
    camera_controls: bool = True
    shadow_intensity: float = 1.0
    exposure: float = 1.0


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 640
    height: int = 480
    mirror: bool = True
    tick_ms: int = 33


@dataclass(frozen=True)
class AppConfig:
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    landmarks: LandmarkIndices = field(default_factory=LandmarkIndices)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    calibration: CalibrationLimits = field(default_factory=CalibrationLimits)
    share: ShareConfig = field(default_factory=ShareConfig)
    ar: ARConfig = field(default_factory=ARConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)


def load_config(path=None) -> AppConfig:
    """Reads the JSON config, falling back to defaults when there is none."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or CONFIG_PATH
    path = Path(path)

    if not path.exists():
        logger.info("No config at %s, using defaults", path)
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Malformed config {path}: {e}") from e

    config = config_from_dict(raw)
    logger.info("Loaded config from %s", path)
    return config


def config_from_dict(raw: Dict[str, Any]) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a JSON object")

    sections = {}
    section_names = set()
    for f in fields(AppConfig):
        section_names.add(f.name)
        sections[f.name] = _merge_section(f.default_factory(), raw.get(f.name, {}), f.name)

    for key in sorted(set(raw) - section_names):
        logger.warning("Ignoring unknown config section '%s'", key)

    return AppConfig(**sections)


def _merge_section(default, values, section):
    if not isinstance(values, dict):
        raise ConfigError(f"Config section '{section}' must be an object")

    known = {f.name for f in fields(default)}
    updates = {}
    for key, value in values.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s.%s'", section, key)
            continue
        updates[key] = _coerce(getattr(default, key), value, f"{section}.{key}")
    return replace(default, **updates)


def _coerce(current, value, name):
    """Converts a JSON value to the type of the default it replaces."""
    try:
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise TypeError("expected true/false")
            return value
        if isinstance(current, tuple):
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise TypeError("expected a list")
            return tuple(str(v) for v in value)
        if isinstance(current, int):
            if isinstance(value, bool) or int(value) != value:
                raise TypeError("expected an integer")
            return int(value)
        if isinstance(current, float):
            if isinstance(value, bool):
                raise TypeError("expected a number")
            return float(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Bad value for '{name}': {value!r} ({e})") from e
