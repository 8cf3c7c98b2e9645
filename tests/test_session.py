import asyncio
import logging

import cv2
import pytest

from conftest import FakeBackend, FakeCamera
from jewel_tryon.engine.session import SessionState, TryOnSession
from jewel_tryon.engine.tracking import HIDDEN
from jewel_tryon.errors import CapabilityError
from jewel_tryon.model.models import IDENTITY_CALIBRATION, Category
from jewel_tryon.share.native_ar import NativeARBridge
from jewel_tryon.trackers.capabilities import PlatformCapabilities
from jewel_tryon.trackers.landmark_provider import LandmarkerKind, LandmarkProvider, UnavailableLandmarkProvider


def make_session(asset, config, script=(), **kwargs):
    backend = FakeBackend(script)
    session = TryOnSession(asset, LandmarkProvider(backend), config, **kwargs)
    return session, backend


class TestStart:
    def test_active_after_start(self, necklace, config):
        session, backend = make_session(necklace, config)
        assert session.state is SessionState.IDLE
        assert session.start() is SessionState.ACTIVE
        assert backend.opened == [LandmarkerKind.FACE]

    def test_ring_loads_hand_model(self, ring, config):
        session, backend = make_session(ring, config)
        session.start()
        assert backend.opened == [LandmarkerKind.HAND]

    def test_model_failure_is_unavailable(self, necklace, config):
        camera = FakeCamera()
        session = TryOnSession(
            necklace, LandmarkProvider(FakeBackend(error=OSError("offline"))), config, camera=camera,
        )
        assert session.start() is SessionState.UNAVAILABLE
        assert "offline" in session.error
        assert not camera.is_open

    def test_camera_failure_is_unavailable(self, necklace, config):
        session = TryOnSession(
            necklace, LandmarkProvider(FakeBackend()), config,
            camera=FakeCamera(fail=CapabilityError("Camera 0 could not be opened")),
        )
        assert session.start() is SessionState.UNAVAILABLE

    def test_no_camera_provider(self, necklace, config, frame):
        session = TryOnSession(necklace, UnavailableLandmarkProvider("No camera available"), config)
        assert session.start() is SessionState.UNAVAILABLE
        assert session.process_frame(frame, 1) is HIDDEN

    def test_async_start(self, earrings, config, frame, face_set):
        session, _ = make_session(earrings, config, [face_set()])

        async def run():
            await session.start_async()
            return await session.process_frame_async(frame, 33)

        result = asyncio.run(run())
        assert session.state is SessionState.ACTIVE
        assert len(result.overlays) == 2


class TestNativeAR:
    def test_3d_asset_on_ar_platform(self, ring, config):
        bridge = NativeARBridge(PlatformCapabilities(camera=True, ar_modes=("webxr",)), config.ar)
        camera = FakeCamera()
        session, backend = make_session(ring, config, native_bridge=bridge, camera=camera)
        assert session.start() is SessionState.NATIVE_AR
        assert session.viewer_config.src == ring.model_url
        assert backend.opened == []
        assert not camera.is_open

    def test_no_3d_asset_uses_tracking(self, earrings, config):
        bridge = NativeARBridge(PlatformCapabilities(camera=True, ar_modes=("webxr",)), config.ar)
        session, _ = make_session(earrings, config, native_bridge=bridge)
        assert session.start() is SessionState.ACTIVE
        assert session.viewer_config is None

    def test_no_ar_platform_uses_tracking(self, ring, config, no_ar):
        session, _ = make_session(ring, config, native_bridge=NativeARBridge(no_ar, config.ar))
        assert session.start() is SessionState.ACTIVE


class TestProcessFrame:
    def test_before_start(self, necklace, config, frame):
        session, _ = make_session(necklace, config)
        assert session.process_frame(frame, 1) is HIDDEN

    def test_earrings(self, earrings, config, frame, face_set):
        session, _ = make_session(earrings, config, [face_set()])
        session.start()
        result = session.process_frame(frame, 33)
        assert result.fresh
        assert [o.side for o in result.overlays] == ["left", "right"]

    def test_calibration_moves_overlay(self, necklace, config, frame, face_set):
        session, _ = make_session(necklace, config, [face_set(), face_set()])
        session.start()
        base = session.process_frame(frame, 33).overlays[0].transform
        session.calibration.set(offset_x=10)
        moved = session.process_frame(frame, 66).overlays[0].transform
        assert moved.x == pytest.approx(base.x + 10.0)
        assert moved.y == pytest.approx(base.y)

    def test_comparison_mode(self, earrings, config, frame, face_set):
        session, _ = make_session(earrings, config, [face_set()], comparison=True)
        session.start()
        result = session.process_frame(frame, 33)
        assert [o.category for o in result.overlays] == [Category.EARRINGS, Category.EARRINGS, Category.NECKLACE]

    def test_comparison_ignored_for_rings(self, ring, config):
        session, _ = make_session(ring, config, comparison=True)
        assert session.categories == (Category.RING,)

    def test_same_frame_processed_once(self, necklace, config, frame, face_set):
        session, backend = make_session(necklace, config, [face_set(), face_set()])
        session.start()
        first = session.process_frame(frame, 100)
        second = session.process_frame(frame, 100)
        assert second is first
        assert backend.runtimes[0].calls == [100]

    def test_gap_holds_then_hides(self, necklace, config, frame, face_set):
        session, _ = make_session(necklace, config, [face_set()])
        session.start()
        session.process_frame(frame, 0)
        held = session.process_frame(frame, 33)
        assert held.visible and not held.fresh
        for ts in range(2, 8):
            result = session.process_frame(frame, ts * 33)
        assert not result.visible

    def test_inference_error_is_a_gap(self, necklace, config, frame, face_set):
        session, _ = make_session(necklace, config, [face_set(), RuntimeError("graph error")])
        session.start()
        session.process_frame(frame, 0)
        result = session.process_frame(frame, 33)
        assert result.visible
        assert result.opacity < 1.0

    @pytest.mark.parametrize("error", [
        ValueError("Input timestamp must be monotonically increasing"),
        cv2.error("cvtColor: invalid number of channels"),
    ])
    def test_input_error_is_a_gap(self, necklace, config, frame, face_set, error):
        session, _ = make_session(necklace, config, [face_set(), error])
        session.start()
        session.process_frame(frame, 0)
        result = session.process_frame(frame, 33)
        assert session.state is SessionState.ACTIVE
        assert result.visible and not result.fresh

    def test_async_inference_error_is_a_gap(self, necklace, config, frame, face_set):
        session, _ = make_session(necklace, config, [face_set(), ValueError("bad input")])

        async def run():
            await session.start_async()
            await session.process_frame_async(frame, 0)
            return await session.process_frame_async(frame, 33)

        result = asyncio.run(run())
        assert result.visible and not result.fresh

    def test_ring_on_every_hand(self, ring, config, frame, hand_set):
        left = hand_set(moved={16: (0.20, 0.30), 14: (0.20, 0.40)})
        session, _ = make_session(ring, config, [[hand_set(), left]])
        session.start()
        result = session.process_frame(frame, 33)
        assert [o.category for o in result.overlays] == [Category.RING, Category.RING]
        assert len(session.last_anchors) == 2
        assert session.last_anchors[0].fingertip.x < session.last_anchors[1].fingertip.x

    def test_only_first_face_is_used(self, necklace, config, frame, face_set):
        other = face_set(moved={234: (0.05, 0.40), 454: (0.55, 0.40)})
        session, _ = make_session(necklace, config, [[face_set(), other]])
        session.start()
        result = session.process_frame(frame, 33)
        assert len(result.overlays) == 1
        assert result.overlays[0].transform.x == pytest.approx(200.0)

    def test_wrong_model_output_is_a_gap(self, earrings, config, frame, hand_set):
        session, _ = make_session(earrings, config, [hand_set()])
        session.start()
        assert not session.process_frame(frame, 0).visible
        assert session.last_anchors == ()

    def test_tick_reads_camera(self, ring, config, frame, hand_set):
        camera = FakeCamera([frame])
        session, _ = make_session(ring, config, [hand_set()], camera=camera)
        session.start()
        got, result = session.tick(33)
        assert got is frame
        assert result.fresh
        assert session.tick(66) == (None, result)

    def test_smoothing_on_by_default(self, necklace, frame, face_set):
        session, _ = make_session(necklace, None, [face_set()])
        session.start()
        t = session.process_frame(frame, 33).overlays[0].transform
        assert t.x == pytest.approx(200.0)

    def test_snaps_to_new_position_after_gap(self, necklace, frame, face_set):
        moved = face_set(moved={234: (0.05, 0.40), 454: (0.55, 0.40), 4: (0.30, 0.50), 152: (0.30, 0.70)})
        session, _ = make_session(necklace, None, [face_set(), None, None, None, moved])
        session.start()
        for ts in (33, 66, 99, 132):
            session.process_frame(frame, ts)
        result = session.process_frame(frame, 165)
        assert result.fresh and result.opacity == 1.0
        assert result.overlays[0].transform.x == pytest.approx(120.0)


class TestSwitchAndStop:
    def test_switch_product_resets_calibration(self, earrings, necklace, config):
        session, _ = make_session(earrings, config)
        session.start()
        session.calibration.set(scale=1.3)
        assert session.switch_product(necklace) is SessionState.ACTIVE
        assert session.calibration.get() == IDENTITY_CALIBRATION
        assert session.category is Category.NECKLACE

    def test_switch_product_logs_state_change(self, earrings, necklace, config, caplog):
        session, _ = make_session(earrings, config)
        session.start()
        with caplog.at_level(logging.INFO, logger="jewel_tryon.engine.session"):
            session.switch_product(necklace)
        assert "Kundan Choker: active -> idle" in caplog.text
        assert "Kundan Choker: idle -> loading" in caplog.text

    def test_switch_to_ring_loads_hand_model(self, earrings, ring, config):
        session, backend = make_session(earrings, config)
        session.start()
        session.switch_product(ring)
        assert backend.opened == [LandmarkerKind.FACE, LandmarkerKind.HAND]

    def test_stop_releases_runtimes(self, necklace, config, frame):
        camera = FakeCamera()
        session, backend = make_session(necklace, config, camera=camera)
        session.start()
        assert session.stop() is SessionState.STOPPED
        assert backend.runtimes[0].closed
        assert not camera.is_open
        assert session.process_frame(frame, 1) is HIDDEN

    def test_restart_after_stop(self, necklace, config):
        session, backend = make_session(necklace, config)
        session.start()
        session.stop()
        assert session.start() is SessionState.ACTIVE
        assert len(backend.opened) == 2

    def test_unavailable_is_terminal(self, necklace, config):
        session = TryOnSession(necklace, UnavailableLandmarkProvider("No camera available"), config)
        session.start()
        assert session.stop() is SessionState.UNAVAILABLE
