# ui/tryon_view.py
import logging

import cv2
import numpy as np
from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QImage, QPixmap
from PyQt5.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
                             QLabel, QSlider, QGroupBox, QGridLayout,
                             QCheckBox, QStackedWidget, QMessageBox)

from jewel_tryon.engine.session import SessionState, TryOnSession
from jewel_tryon.graphics.overlay import OverlayRenderer, draw_anchors, load_overlay_image
from jewel_tryon.graphics.renderer import ModelViewerWidget
from jewel_tryon.share.capture import capture, save_capture
from jewel_tryon.share.native_ar import NativeARBridge
from jewel_tryon.share.share import ShareOutcome, default_share_chain
from jewel_tryon.trackers.camera import CameraStream

logger = logging.getLogger(__name__)

SHARE_MESSAGES = {
    ShareOutcome.SUCCEEDED: "Shared via {channel}",
    ShareOutcome.CANCELLED: "Share cancelled",
    ShareOutcome.FAILED: "Sharing failed",
    ShareOutcome.UNAVAILABLE: "No way to share on this device",
}


class TryOnWindow(QWidget):
    def __init__(self, asset, config, capabilities, provider, share_sheet=None):
        super().__init__()
        self.asset = asset
        self.config = config
        self.show_landmarks = False
        self.last_composite = None
        self.sliders = {}

        self.setup_ui()

        # The bridge renders into our own viewer widget
        self.bridge = NativeARBridge(capabilities, config.ar, viewer=self.viewer.apply_config)
        self.session = TryOnSession(
            asset, provider, config,
            native_bridge=self.bridge,
            camera=CameraStream(config.camera),
        )
        self.overlay = OverlayRenderer(load_overlay_image(asset.image_url), asset.category)
        self.share_chain = default_share_chain(config.share, share_sheet)

        self.timer = QTimer()
        self.timer.timeout.connect(self.loop)

    def setup_ui(self):
        layout = QHBoxLayout(self)

        # Left: camera feed or 3D viewer
        self.stack = QStackedWidget()
        self.video = QLabel("Starting camera..."); self.video.setObjectName("CameraView")
        self.video.setAlignment(Qt.AlignCenter); self.video.setMinimumSize(640, 480)
        self.viewer = ModelViewerWidget()
        self.stack.addWidget(self.video); self.stack.addWidget(self.viewer)
        layout.addWidget(self.stack, stretch=3)

        # Right: Controls
        panel = QWidget(); p_lay = QVBoxLayout(panel); layout.addWidget(panel, stretch=1)

        self.status = QLabel(""); self.status.setObjectName("StatusLabel"); self.status.setWordWrap(True)
        p_lay.addWidget(self.status)

        lim = self.config.calibration
        # [Label, Field, Min, Max, Default, Scale]
        params = [
            ("Scale", "scale", int(lim.min_scale * 100), int(lim.max_scale * 100), 100, 0.01),
            ("Position X", "offset_x", int(lim.min_offset), int(lim.max_offset), 0, 1.0),
            ("Position Y", "offset_y", int(lim.min_offset), int(lim.max_offset), 0, 1.0),
        ]
        grid = QGridLayout()
        self.add_sliders(params, grid)
        self.sliders["scale"]["obj"].setSingleStep(max(1, int(round(lim.scale_step * 100))))

        btn_reset = QPushButton("Reset"); btn_reset.setObjectName("ResetButton")
        btn_reset.clicked.connect(self.reset_calibration)
        grid.addWidget(btn_reset, len(params), 0, 1, 2)

        self.grp_adjust = QGroupBox(f"Adjust {self.asset.category.value}"); self.grp_adjust.setLayout(grid)
        p_lay.addWidget(self.grp_adjust)

        self.chk_compare = QCheckBox("Compare earrings + necklace")
        self.chk_compare.setVisible(self.asset.category.is_face)
        self.chk_compare.toggled.connect(lambda c: self.session.set_comparison(c)); p_lay.addWidget(self.chk_compare)

        self.chk_track = QCheckBox("Show Tracking Points")
        self.chk_track.toggled.connect(lambda c: setattr(self, 'show_landmarks', c)); p_lay.addWidget(self.chk_track)

        btn_capture = QPushButton("Capture Photo"); btn_capture.setObjectName("PrimaryButton")
        btn_capture.clicked.connect(self.capture_photo); p_lay.addWidget(btn_capture)

        btn_share = QPushButton("Share")
        btn_share.clicked.connect(self.share_photo); p_lay.addWidget(btn_share)

        p_lay.addStretch()

    def add_sliders(self, params, layout):
        for i, (label, field, min_v, max_v, def_v, scale) in enumerate(params):
            s = QSlider(Qt.Horizontal); s.setRange(min_v, max_v); s.setValue(def_v)
            s.valueChanged.connect(lambda v, f=field, k=scale: self.on_slider(f, v * k))
            self.sliders[field] = {'obj': s, 'scale': scale, 'default': def_v}
            layout.addWidget(QLabel(label), i, 0); layout.addWidget(s, i, 1)

    # --- Session ---
    def start(self):
        state = self.session.start()
        if state is SessionState.NATIVE_AR:
            self.stack.setCurrentWidget(self.viewer)
            self.grp_adjust.setEnabled(False)
            self.set_status(f"Viewing {self.asset.name} in 3D")
        elif state is SessionState.ACTIVE:
            self.stack.setCurrentWidget(self.video)
            self.timer.start(self.config.camera.tick_ms)
            self.set_status("Searching...")
        else:
            # Fall back to the static product picture
            self.show_static_image()
            self.set_status(f"AR unavailable: {self.session.error}", error=True)

    def stop(self):
        self.timer.stop()
        self.session.stop()

    def loop(self):
        frame, result = self.session.tick()
        if frame is None:
            return

        composite = self.overlay.compose(frame, result)
        if self.show_landmarks:
            for anchors in self.session.last_anchors:
                draw_anchors(composite, anchors)
        self.last_composite = composite
        self.show_frame(composite)

        if result.fresh:
            self.set_status("Tracking")
        elif result.visible:
            self.set_status("Holding...")
        else:
            self.set_status("Searching...")

    # --- Calibration ---
    def on_slider(self, field, value):
        self.session.calibration.set({field: value})

    def reset_calibration(self):
        cal = self.session.calibration.reset()
        for field, info in self.sliders.items():
            info['obj'].blockSignals(True)
            info['obj'].setValue(int(round(getattr(cal, field) / info['scale'])))
            info['obj'].blockSignals(False)

    # --- Capture & Share ---
    def grab_composite(self):
        if self.session.state is SessionState.NATIVE_AR:
            return qimage_to_bgr(self.viewer.grabFramebuffer())
        return self.last_composite

    def capture_photo(self):
        try:
            result = capture(self.grab_composite, self.asset.name)
        except ValueError as e:
            QMessageBox.warning(self, "Nothing to capture", str(e))
            return
        path = save_capture(result)
        self.set_status(f"Saved {path.name}")

    def share_photo(self):
        try:
            result = capture(self.grab_composite, self.asset.name)
        except ValueError as e:
            QMessageBox.warning(self, "Nothing to share", str(e))
            return
        report = self.share_chain.share(result, self.asset.name)
        self.set_status(SHARE_MESSAGES[report.outcome].format(channel=report.channel))

    # --- Display helpers ---
    def set_status(self, text, error=False):
        self.status.setText(text)
        self.status.setProperty("error", "true" if error else "false")
        self.status.style().unpolish(self.status); self.status.style().polish(self.status)

    def show_frame(self, frame):
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, _ = rgb.shape
        img = QImage(rgb.data, w, h, 3 * w, QImage.Format_RGB888).copy()
        self.video.setPixmap(QPixmap.fromImage(img).scaled(self.video.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation))

    def show_static_image(self):
        self.stack.setCurrentWidget(self.video)
        image = self.overlay.image
        if image is None:
            self.video.setText(self.asset.name)
            return
        self.show_frame(cv2.cvtColor(image, cv2.COLOR_BGRA2BGR))

    def closeEvent(self, event):
        """Called when the window is being closed."""
        self.stop()
        event.accept()


def qimage_to_bgr(qimg):
    qimg = qimg.convertToFormat(QImage.Format_RGB888)
    w, h = qimg.width(), qimg.height()
    ptr = qimg.bits(); ptr.setsize(qimg.byteCount())
    arr = np.array(ptr, dtype=np.uint8).reshape(h, qimg.bytesPerLine())[:, :w * 3].reshape(h, w, 3)
    return cv2.cvtColor(arr, cv2.COLOR_RGB2BGR)
