# share/capture.py
import logging
import os
from datetime import datetime
from pathlib import Path

import cv2
import numpy as np

from jewel_tryon.model.models import CaptureResult
from jewel_tryon.utils.paths import CAPTURES_DIR

logger = logging.getLogger(__name__)


def capture(composite_source, product_name, clock=datetime.now):
    """
    Snapshot of what is on screen right now.
    `composite_source` is the composited BGR frame, or a callable returning it.
    Only reads: calibration and transforms are left as they are.
    """
    frame = composite_source() if callable(composite_source) else composite_source
    if frame is None:
        raise ValueError("Nothing has been rendered yet, cannot capture")

    image = np.array(frame, copy=True)
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise RuntimeError("PNG encoding of the capture failed")

    return CaptureResult(image=image, png=buf.tobytes(), product_name=product_name, timestamp=clock())


def save_capture(result, directory=CAPTURES_DIR):
    """Writes the capture as ar-tryon-<product>.png and returns the path."""
    directory = Path(directory)
    os.makedirs(directory, exist_ok=True)
    path = directory / result.filename
    path.write_bytes(result.png)
    logger.info("Saved capture to %s", path)
    return path
