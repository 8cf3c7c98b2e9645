# utils/smoothing.py
import numpy as np


def _smoothing_factor(cutoff, dt):
    tau = 1.0 / (2.0 * np.pi * cutoff)
    return 1.0 / (1.0 + tau / dt)


class OneEuroFilter:
    """
    One-Euro low-pass filter over a numpy array of any shape.
    Jittery when still? lower min_cutoff. Laggy when moving? raise beta.
    """

    def __init__(self, min_cutoff=1.0, beta=0.0, d_cutoff=1.0):
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff
        self.reset()

    def reset(self):
        self._value = None
        self._speed = None
        self._time = None

    def update(self, x, t):
        x = np.asarray(x, dtype=np.float64)
        if self._value is None:
            self._value, self._speed, self._time = x, np.zeros_like(x), t
            return x

        dt = t - self._time
        if dt <= 0:
            return self._value

        a_d = _smoothing_factor(self.d_cutoff, dt)
        speed = a_d * (x - self._value) / dt + (1.0 - a_d) * self._speed

        a = _smoothing_factor(self.min_cutoff + self.beta * np.abs(speed), dt)
        value = a * x + (1.0 - a) * self._value

        self._value, self._speed, self._time = value, speed, t
        return value


class AnchorSmoother:
    """
    Runs a OneEuroFilter over all anchor points of a frame at once.
    Anchors keep their type (FaceAnchors / HandAnchors).
    """

    def __init__(self, min_cutoff=1.0, beta=0.0):
        self.filter = OneEuroFilter(min_cutoff, beta)
        self._kind = None

    def update(self, anchors, t):
        # Switching face <-> hand starts over
        if type(anchors) is not self._kind:
            self.filter.reset()
            self._kind = type(anchors)

        smoothed = self.filter.update(np.array(anchors, dtype=np.float64), t)
        point_type = type(anchors[0])
        return self._kind(*[point_type(float(x), float(y)) for x, y in smoothed])

    def reset(self):
        self.filter.reset()
        self._kind = None
