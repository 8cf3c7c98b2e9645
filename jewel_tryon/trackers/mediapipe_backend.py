# trackers/mediapipe_backend.py
import logging

import cv2
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from jewel_tryon.model.models import LandmarkSet
from jewel_tryon.trackers.landmark_provider import LandmarkerKind
from jewel_tryon.utils.downloads import download_file

logger = logging.getLogger(__name__)


class MediaPipeRuntime:
    """One open MediaPipe landmarker running in VIDEO mode."""

    def __init__(self, landmarker, result_field):
        self._landmarker = landmarker
        self._field = result_field

    def detect(self, frame_bgr, timestamp_ms):
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(mp_image, int(timestamp_ms))
        return [LandmarkSet.from_normalized(s, timestamp_ms) for s in getattr(result, self._field)]

    def close(self):
        self._landmarker.close()


class MediaPipeBackend:
    """Builds MediaPipe Tasks landmarkers. Model files are fetched once and reused."""

    def __init__(self, config):
        self.config = config
        self._model_paths = {}

    def model_path(self, kind):
        if kind not in self._model_paths:
            url = self.config.face_model_url if kind is LandmarkerKind.FACE else self.config.hand_model_url
            self._model_paths[kind] = download_file(url, self.config.model_dir)
        return self._model_paths[kind]

    def open(self, kind):
        kind = LandmarkerKind(kind)
        logger.info("Creating %s landmarker (delegate=%s)", kind.value, self.config.delegate)
        base_options = python.BaseOptions(
            model_asset_path=str(self.model_path(kind)),
            delegate=self._delegate(),
        )

        if kind is LandmarkerKind.FACE:
            options = vision.FaceLandmarkerOptions(
                base_options=base_options,
                running_mode=vision.RunningMode.VIDEO,
                output_face_blendshapes=False,
                output_facial_transformation_matrixes=False,
                num_faces=self.config.num_faces,
                min_face_detection_confidence=self.config.min_detection_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            return MediaPipeRuntime(vision.FaceLandmarker.create_from_options(options), "face_landmarks")

        options = vision.HandLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.config.num_hands,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        return MediaPipeRuntime(vision.HandLandmarker.create_from_options(options), "hand_landmarks")

    def _delegate(self):
        if self.config.delegate.upper() == "GPU":
            return python.BaseOptions.Delegate.GPU
        return python.BaseOptions.Delegate.CPU
