# graphics/renderer.py
import ctypes
import logging

import cv2
import numpy as np
from OpenGL.GL import *
from OpenGL.GL.shaders import compileProgram, compileShader
from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtWidgets import QOpenGLWidget

from jewel_tryon.graphics.shaders import PROGRAMS
from jewel_tryon.utils.downloads import local_path
from jewel_tryon.utils.mesh_loader import load_mesh_data
from jewel_tryon.utils.paths import ASSETS_DIR

logger = logging.getLogger(__name__)

SPIN_INTERVAL_MS = 30
SPIN_STEP_DEG = 0.6
GOLD_RGBA = (1.0, 0.84, 0.0, 1.0)

UNIFORMS = {
    "model": ("u_mvp", "u_normal_matrix", "u_albedo", "u_textured", "u_metal_color", "u_light_dir", "u_exposure"),
    "shadow": ("u_mvp", "u_strength"),
    "poster": ("u_poster",),
}


# --- Matrix helpers (row-major, uploaded with transpose=GL_TRUE) ---
def perspective(fov_deg, aspect, near, far):
    f = 1.0 / np.tan(np.radians(fov_deg) / 2.0)
    return np.array([
        [f / aspect, 0, 0, 0],
        [0, f, 0, 0],
        [0, 0, (far + near) / (near - far), 2 * far * near / (near - far)],
        [0, 0, -1, 0],
    ], dtype=np.float32)


def orbit_rotation(yaw_deg, pitch_deg):
    yaw, pitch = np.radians(yaw_deg), np.radians(pitch_deg)
    cy, sy = np.cos(yaw), np.sin(yaw)
    cp, sp = np.cos(pitch), np.sin(pitch)
    around_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    around_x = np.array([[1, 0, 0], [0, cp, -sp], [0, sp, cp]])
    m = np.eye(4, dtype=np.float32)
    m[:3, :3] = around_x @ around_y
    return m


def translation(x, y, z):
    m = np.eye(4, dtype=np.float32)
    m[:3, 3] = (x, y, z)
    return m


def uniform_scale(s):
    m = np.eye(4, dtype=np.float32)
    m[0, 0] = m[1, 1] = m[2, 2] = s
    return m


class ModelViewerWidget(QOpenGLWidget):
    """
    Desktop stand-in for the platform AR viewer ("webxr" mode).
    Shows the product's 3D model with the ViewerConfig hints: poster while
    loading, auto-rotate, drag-to-orbit camera controls, contact shadow
    strength and exposure.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.config = None
        self._pending = None
        self._gl_ready = False

        self.programs = {}
        self.locations = {}
        self.quad_vao = None
        self.mesh = None  # (vao, index count, texture id or None, floor y)
        self.poster_tex = None

        # Camera
        self.yaw = 0.0
        self.pitch = 15.0
        self.distance = 12.0
        self.fov = 40.0
        self.aspect = 4.0 / 3.0
        self.light_dir = (0.3, 0.8, 0.6)
        self._drag_pos = None

        self.spin_timer = QTimer(self)
        self.spin_timer.timeout.connect(self._spin)

    # --- Host entry point ---
    def apply_config(self, config):
        """Viewer callback for NativeARBridge.render()."""
        self.config = config
        if not self._gl_ready:
            # No GL context until initializeGL has run
            self._pending = config
            return

        if config.poster:
            poster = cv2.imread(str(local_path(config.poster, ASSETS_DIR)))
            if poster is None:
                logger.warning("Poster %s could not be read", config.poster)
            else:
                self.show_poster(poster)

        if config.auto_rotate:
            self.spin_timer.start(SPIN_INTERVAL_MS)
        else:
            self.spin_timer.stop()

        self.load_model(str(local_path(config.src, ASSETS_DIR)))

    def _spin(self):
        self.yaw = (self.yaw + SPIN_STEP_DEG) % 360.0
        self.update()

    # --- Camera controls ---
    def _controls_enabled(self):
        return self.config is not None and self.config.camera_controls

    def mousePressEvent(self, event):
        if self._controls_enabled() and event.button() == Qt.LeftButton:
            self._drag_pos = event.pos()
            self.spin_timer.stop()

    def mouseMoveEvent(self, event):
        if self._drag_pos is None:
            return
        delta = event.pos() - self._drag_pos
        self._drag_pos = event.pos()
        self.yaw = (self.yaw + delta.x() * 0.5) % 360.0
        self.pitch = float(np.clip(self.pitch + delta.y() * 0.5, -89.0, 89.0))
        self.update()

    def mouseReleaseEvent(self, event):
        self._drag_pos = None
        if self.config is not None and self.config.auto_rotate:
            self.spin_timer.start(SPIN_INTERVAL_MS)

    def wheelEvent(self, event):
        if self._controls_enabled():
            self.distance = float(np.clip(self.distance - event.angleDelta().y() / 120.0, 4.0, 40.0))
            self.update()

    # --- GL setup ---
    def initializeGL(self):
        glEnable(GL_DEPTH_TEST)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)
        glClearColor(0.95, 0.93, 0.89, 1.0)  # studio backdrop

        for name, (vs, fs) in PROGRAMS.items():
            prog = compileProgram(compileShader(vs, GL_VERTEX_SHADER), compileShader(fs, GL_FRAGMENT_SHADER))
            self.programs[name] = prog
            self.locations[name] = {u: glGetUniformLocation(prog, u) for u in UNIFORMS[name]}
        self.quad_vao = self._make_quad()
        self._gl_ready = True

        if self._pending is not None:
            config, self._pending = self._pending, None
            # makeCurrent() is not allowed from inside initializeGL
            QTimer.singleShot(0, lambda: self.apply_config(config))

    def _make_quad(self):
        """Square -1..1 as a triangle strip, shared by the poster and shadow passes."""
        corners = np.array([-1, -1, 1, -1, -1, 1, 1, 1], dtype=np.float32)
        vao = glGenVertexArrays(1)
        glBindVertexArray(vao)
        glBindBuffer(GL_ARRAY_BUFFER, glGenBuffers(1))
        glBufferData(GL_ARRAY_BUFFER, corners.nbytes, corners, GL_STATIC_DRAW)
        glEnableVertexAttribArray(0)
        glVertexAttribPointer(0, 2, GL_FLOAT, GL_FALSE, 8, ctypes.c_void_p(0))
        glBindVertexArray(0)
        return vao

    def resizeGL(self, w, h):
        glViewport(0, 0, w, h)
        self.aspect = w / h if h > 0 else 1.0

    # --- Drawing ---
    def paintGL(self):
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
        if self.mesh is None:
            if self.poster_tex is not None:
                self._draw_poster()
            return

        rotation = orbit_rotation(self.yaw, self.pitch)
        mvp = perspective(self.fov, self.aspect, 0.1, 1000.0) @ translation(0.0, 0.0, -self.distance) @ rotation

        shadow = self.config.shadow_intensity if self.config else 1.0
        if shadow > 0:
            self._draw_shadow(mvp, shadow)
        self._draw_model(mvp, rotation[:3, :3])

    def _draw_poster(self):
        glDisable(GL_DEPTH_TEST)
        glUseProgram(self.programs["poster"])
        glActiveTexture(GL_TEXTURE0)
        glBindTexture(GL_TEXTURE_2D, self.poster_tex)
        glUniform1i(self.locations["poster"]["u_poster"], 0)
        glBindVertexArray(self.quad_vao)
        glDrawArrays(GL_TRIANGLE_STRIP, 0, 4)
        glEnable(GL_DEPTH_TEST)

    def _draw_shadow(self, mvp, strength):
        floor = self.mesh[3]
        loc = self.locations["shadow"]
        glUseProgram(self.programs["shadow"])
        glUniformMatrix4fv(loc["u_mvp"], 1, GL_TRUE, mvp @ translation(0.0, floor, 0.0) @ uniform_scale(3.0))
        glUniform1f(loc["u_strength"], min(max(strength, 0.0), 1.0))
        glDepthMask(GL_FALSE)
        glBindVertexArray(self.quad_vao)
        glDrawArrays(GL_TRIANGLE_STRIP, 0, 4)
        glDepthMask(GL_TRUE)

    def _draw_model(self, mvp, normal_matrix):
        vao, index_count, texture, _ = self.mesh
        loc = self.locations["model"]
        glUseProgram(self.programs["model"])
        glUniformMatrix4fv(loc["u_mvp"], 1, GL_TRUE, mvp)
        glUniformMatrix3fv(loc["u_normal_matrix"], 1, GL_TRUE, np.ascontiguousarray(normal_matrix))
        glUniform3f(loc["u_light_dir"], *self.light_dir)
        glUniform1f(loc["u_exposure"], self.config.exposure if self.config else 1.0)
        glUniform4f(loc["u_metal_color"], *GOLD_RGBA)
        glUniform1i(loc["u_textured"], 1 if texture else 0)
        if texture:
            glActiveTexture(GL_TEXTURE0)
            glBindTexture(GL_TEXTURE_2D, texture)
            glUniform1i(loc["u_albedo"], 0)
        glBindVertexArray(vao)
        glDrawElements(GL_TRIANGLES, index_count, GL_UNSIGNED_INT, None)

    # --- Uploads ---
    def load_model(self, path):
        """Loads a model file through trimesh and uploads it. Keeps the poster on failure."""
        data = load_mesh_data(path)
        if data is None:
            logger.warning("3D model %s could not be loaded, keeping poster", path)
            return

        self.makeCurrent()
        # Per vertex: position(3) normal(3) texcoord(2)
        vertices = np.hstack((data.vertices, data.normals, data.uvs)).astype(np.float32)
        vao = glGenVertexArrays(1)
        glBindVertexArray(vao)
        glBindBuffer(GL_ARRAY_BUFFER, glGenBuffers(1))
        glBufferData(GL_ARRAY_BUFFER, vertices.nbytes, vertices, GL_STATIC_DRAW)
        glBindBuffer(GL_ELEMENT_ARRAY_BUFFER, glGenBuffers(1))
        glBufferData(GL_ELEMENT_ARRAY_BUFFER, data.indices.nbytes, data.indices, GL_STATIC_DRAW)
        for slot, (size, offset) in enumerate(((3, 0), (3, 12), (2, 24))):
            glEnableVertexAttribArray(slot)
            glVertexAttribPointer(slot, size, GL_FLOAT, GL_FALSE, 32, ctypes.c_void_p(offset))
        glBindVertexArray(0)

        texture = None
        if data.texture is not None:
            texture = self._upload_texture(data.texture, GL_RGBA)
        self.mesh = (vao, len(data.indices), texture, data.floor)
        self.doneCurrent()
        self.update()

    def show_poster(self, image_bgr):
        rgb = np.ascontiguousarray(cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB))
        self.makeCurrent()
        self.poster_tex = self._upload_texture(rgb, GL_RGB, self.poster_tex)
        self.doneCurrent()
        self.update()

    def _upload_texture(self, pixels, fmt, tex_id=None):
        if tex_id is None:
            tex_id = glGenTextures(1)
        glBindTexture(GL_TEXTURE_2D, tex_id)
        glPixelStorei(GL_UNPACK_ALIGNMENT, 1)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_LINEAR)
        h, w = pixels.shape[:2]
        glTexImage2D(GL_TEXTURE_2D, 0, fmt, w, h, 0, fmt, GL_UNSIGNED_BYTE, pixels)
        return tex_id
