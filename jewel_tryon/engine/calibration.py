# engine/calibration.py
import logging
import math
from dataclasses import replace

from jewel_tryon.model.models import IDENTITY_CALIBRATION, Calibration
from jewel_tryon.utils.config import CalibrationLimits

logger = logging.getLogger(__name__)

# Host UIs send camelCase keys
_ALIASES = {
    "scale": "scale",
    "offset_x": "offset_x",
    "offset_y": "offset_y",
    "offsetX": "offset_x",
    "offsetY": "offset_y",
}


class CalibrationController:
    """User scale/offset nudges for one try-on session."""

    def __init__(self, limits=None):
        self.limits = limits or CalibrationLimits()
        self._value = IDENTITY_CALIBRATION

    def get(self):
        return self._value

    def set(self, partial=None, **changes):
        """
        Merges a partial update and clamps each field to its range.
        Out-of-range values are clamped, non-finite ones leave the field as is.
        """
        updates = dict(partial or {})
        updates.update(changes)

        merged = {}
        for key, value in updates.items():
            name = _ALIASES.get(key)
            if name is None:
                raise TypeError(f"Unknown calibration field '{key}'")
            value = float(value)
            if not math.isfinite(value):
                logger.debug("Ignoring non-finite calibration %s=%r", name, value)
                continue
            merged[name] = self._clamp(name, value)

        self._value = replace(self._value, **merged)
        return self._value

    def reset(self):
        self._value = IDENTITY_CALIBRATION
        return self._value

    def _clamp(self, name, value):
        lim = self.limits
        if name == "scale":
            lo, hi = lim.min_scale, lim.max_scale
        else:
            lo, hi = lim.min_offset, lim.max_offset
        clamped = min(max(value, lo), hi)
        if clamped != value:
            logger.debug("Clamped calibration %s=%s to %s", name, value, clamped)
        return clamped
