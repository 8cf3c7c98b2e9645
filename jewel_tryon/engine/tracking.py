# engine/tracking.py
from dataclasses import dataclass
from typing import Tuple

from jewel_tryon.model.models import Overlay


@dataclass(frozen=True)
class FrameResult:
    overlays: Tuple[Overlay, ...] = ()
    opacity: float = 0.0
    fresh: bool = False  # computed from this frame's landmarks

    @property
    def visible(self):
        return bool(self.overlays) and self.opacity > 0.0


HIDDEN = FrameResult()


class TrackingHold:
    """
    Keeps the last overlays on screen through short tracking gaps.
    Opacity fades linearly over `hold_frames` missed frames, then the
    overlay is hidden. Fresh overlays always replace the held ones at once.
    """

    def __init__(self, hold_frames=5):
        self.hold_frames = max(0, int(hold_frames))
        self.missed = 0
        self._last = ()

    def update(self, overlays):
        if overlays:
            self._last = tuple(overlays)
            self.missed = 0
            return FrameResult(self._last, 1.0, fresh=True)

        self.missed += 1
        if not self._last or self.missed > self.hold_frames:
            self._last = ()
            return HIDDEN

        opacity = 1.0 - self.missed / (self.hold_frames + 1)
        return FrameResult(self._last, opacity, fresh=False)

    def reset(self):
        self.missed = 0
        self._last = ()
