"""Tests for the scripted/orbit camera state machine."""
import math

import pytest

from configurator.controller.camera import (
    CameraMode, CameraOrchestrator, CameraPose, FocusTarget, pose,
)
from configurator.model.catalog import FocusTargetConfig
from configurator.model.geometry_primitives import Spherical, Vector
from configurator.model.geometry_utils import deg2rad

FRAME = 1.0 / 60.0

OVERVIEW_POSITION = (2.1650635, 2.5, 3.75)


@pytest.fixture
def focus_targets():
    return {
        "overview": FocusTargetConfig(5.0, 60.0, 30.0, (0.0, 0.0, 0.0)),
        "wheels": FocusTargetConfig(2.0, 90.0, 0.0, (1.0, 0.0, 0.0)),
        "interior": FocusTargetConfig(1.5, 45.0, 180.0, (0.0, 1.0, 0.0)),
    }


@pytest.fixture
def camera(focus_targets):
    return CameraOrchestrator(focus_targets, "overview")


def settle(camera, frames=600):
    result = None
    for _ in range(frames):
        result = camera.advance(FRAME)
    return result


def assert_pose(actual, position, target, abs=1e-6):
    assert actual.position.to_tuple() == pytest.approx(position, abs=abs)
    assert actual.target.to_tuple() == pytest.approx(target, abs=abs)


class TestPose:
    def test_pose_is_look_at_plus_offset(self):
        target = FocusTarget(5.0, deg2rad(60), deg2rad(30), Vector(1.0, 2.0, 3.0))
        result = pose(target)
        assert_pose(result, (3.1650635, 4.5, 6.75), (1.0, 2.0, 3.0))

    def test_focus_target_round_trip_through_pose(self):
        cfg = FocusTargetConfig(3.0, 70.0, -40.0, (0.5, 0.0, -1.0))
        back = FocusTarget.from_pose(FocusTarget.from_config(cfg).pose()).to_config()
        assert back.radius == pytest.approx(3.0)
        assert back.polar_deg == pytest.approx(70.0)
        assert back.azimuth_deg == pytest.approx(-40.0)
        assert back.look_at == pytest.approx((0.5, 0.0, -1.0))


class TestScripted:
    def test_initial_pose_matches_focus_target(self, camera):
        assert camera.mode == CameraMode.SCRIPTED
        assert not camera.transition.active
        assert_pose(camera.pose(), OVERVIEW_POSITION, (0.0, 0.0, 0.0))

    def test_same_focus_does_not_start_transition(self, camera):
        assert camera.focus_changed("overview") is False
        assert not camera.transition.active

    def test_transition_eases_spherical_coordinates(self, camera):
        assert camera.focus_changed("wheels") is True
        camera.advance(0.6)
        # Halfway in time, ease-out cubic gives 0.875 of the way
        assert camera.spherical.radius == pytest.approx(5.0 + (2.0 - 5.0) * 0.875)
        assert camera.transition.active

    def test_transition_ends_on_target(self, camera, focus_targets):
        camera.focus_changed("wheels")
        camera.advance(1.0)
        camera.advance(1.0)
        assert not camera.transition.active
        end = FocusTarget.from_config(focus_targets["wheels"]).spherical
        assert camera.spherical.is_close(end)

    def test_finished_transition_is_stable(self, camera):
        camera.focus_changed("wheels")
        settle(camera)
        first = camera.spherical.copy()
        camera.advance(FRAME)
        camera.advance(5.0)
        assert camera.spherical == first

    def test_second_focus_change_restarts_from_live_pose(self, camera, focus_targets):
        camera.focus_changed("wheels")
        camera.focus_changed("interior")
        assert camera.transition.start.is_close(Spherical(5.0, deg2rad(60), deg2rad(30)))
        assert camera.transition.end.is_close(FocusTarget.from_config(focus_targets["interior"]).spherical)

        settle(camera)
        assert camera.spherical.is_close(FocusTarget.from_config(focus_targets["interior"]).spherical)

    def test_mid_flight_change_starts_from_current_spherical(self, camera):
        camera.focus_changed("wheels")
        camera.advance(0.3)
        live = camera.spherical.copy()
        camera.focus_changed("interior")
        assert camera.transition.start == live
        assert camera.transition.progress == 0.0

    def test_look_at_blends_fixed_fraction_per_frame(self, camera):
        camera.focus_changed("wheels")
        camera.advance(0.0)
        assert camera.look_at_current.x == pytest.approx(0.08)
        camera.advance(10.0)
        assert camera.look_at_current.x == pytest.approx(0.08 + 0.92 * 0.08)

    def test_settled_pose_matches_target(self, camera):
        camera.focus_changed("wheels")
        result = settle(camera)
        # radius 2, polar 90, azimuth 0 -> offset along +Z
        assert_pose(result, (1.0, 0.0, 2.0), (1.0, 0.0, 0.0))

    def test_reset_request_restarts_transition(self, camera):
        camera.focus_changed("wheels")
        settle(camera)
        camera.spherical = Spherical(4.0, 1.0, 1.0)
        assert camera.reset_requested() is True
        settle(camera)
        assert_pose(camera.pose(), (1.0, 0.0, 2.0), (1.0, 0.0, 0.0))


class TestOrbit:
    def test_enter_orbit_snapshots_scripted_pose(self, camera):
        snapshot = camera.orbit_entered()
        assert camera.orbit_enabled
        assert_pose(snapshot, OVERVIEW_POSITION, (0.0, 0.0, 0.0))
        assert camera.pre_orbit_state == snapshot

    def test_enter_orbit_with_explicit_snapshot(self, camera):
        given = CameraPose.from_tuples((0, 3, 3), (0, 0, 0))
        assert camera.orbit_entered(given) is given
        assert camera.manual_state is given

    def test_orbit_ignores_focus_changes(self, camera):
        camera.orbit_entered()
        assert camera.focus_changed("wheels") is False
        assert camera.reset_requested() is False
        assert not camera.transition.active
        assert camera.focus_key == "wheels"

    def test_advance_in_orbit_returns_manual_pose(self, camera):
        camera.orbit_entered()
        moved = CameraPose.from_tuples((0.0, 1.0, 6.0), (0.0, 1.0, 0.0))
        camera.orbit_camera_moved(moved.position, moved.target)
        before = camera.spherical.copy()
        assert camera.advance(FRAME) == moved
        assert camera.spherical == before

    def test_moves_outside_orbit_are_ignored(self, camera):
        camera.orbit_camera_moved(Vector(9.0, 9.0, 9.0), Vector(0.0, 0.0, 0.0))
        assert camera.manual_state is None

    def test_reset_from_orbit_returns_to_scripted(self, camera):
        camera.orbit_entered()
        camera.orbit_camera_moved(Vector(0.0, 8.0, 0.5), Vector(0.0, 0.0, 0.0))
        token = camera.reset_token

        camera.reset_from_orbit()
        assert camera.mode == CameraMode.SCRIPTED
        assert camera.reset_token == token + 1
        assert camera.transition.active
        assert camera.manual_state is None
        assert camera.pre_orbit_state is None
        # Restored to the pre-orbit pose, not the manual one
        assert_pose(camera.pose(), OVERVIEW_POSITION, (0.0, 0.0, 0.0))

        result = settle(camera)
        assert_pose(result, OVERVIEW_POSITION, (0.0, 0.0, 0.0))

    def test_reset_from_orbit_follows_focus_changed_during_orbit(self, camera):
        camera.orbit_entered()
        camera.focus_changed("wheels")
        camera.reset_from_orbit()
        result = settle(camera)
        assert_pose(result, (1.0, 0.0, 2.0), (1.0, 0.0, 0.0))

    def test_keep_current_view_outside_orbit(self, camera):
        assert camera.keep_current_view() is None

    def test_keep_current_view_persists_focus_target(self, camera, focus_targets):
        camera.orbit_entered()
        camera.orbit_camera_moved(Vector(1.0, 2.0, 4.0), Vector(1.0, 0.0, 1.0))

        kept = camera.keep_current_view()
        assert focus_targets["overview"] is kept
        assert kept.radius == pytest.approx(math.sqrt(13.0))
        assert kept.polar_deg == pytest.approx(math.degrees(math.acos(2.0 / math.sqrt(13.0))))
        assert kept.azimuth_deg == pytest.approx(0.0)
        assert kept.look_at == pytest.approx((1.0, 0.0, 1.0))

        assert camera.mode == CameraMode.SCRIPTED
        assert_pose(camera.advance(FRAME), (1.0, 2.0, 4.0), (1.0, 0.0, 1.0))

    def test_kept_view_is_reused_on_return(self, camera):
        camera.orbit_entered()
        camera.orbit_camera_moved(Vector(1.0, 2.0, 4.0), Vector(1.0, 0.0, 1.0))
        camera.keep_current_view()

        camera.focus_changed("wheels")
        settle(camera)
        camera.focus_changed("overview")
        result = settle(camera)
        assert_pose(result, (1.0, 2.0, 4.0), (1.0, 0.0, 1.0))

    def test_reentering_orbit_after_reset_uses_scripted_pose(self, camera):
        camera.orbit_entered()
        camera.orbit_camera_moved(Vector(0.0, 8.0, 0.5), Vector(0.0, 0.0, 0.0))
        camera.reset_from_orbit()
        settle(camera)
        snapshot = camera.orbit_entered()
        assert_pose(snapshot, OVERVIEW_POSITION, (0.0, 0.0, 0.0))


class TestMissingFocusTarget:
    def test_falls_back_to_first_target(self, focus_targets):
        camera = CameraOrchestrator(focus_targets, "missing")
        assert_pose(camera.pose(), OVERVIEW_POSITION, (0.0, 0.0, 0.0))

    def test_falls_back_to_default_without_targets(self):
        camera = CameraOrchestrator({}, "overview")
        assert camera.spherical.radius == pytest.approx(5.0)
        assert_pose(camera.pose(), OVERVIEW_POSITION, (0.0, 0.0, 0.0))

    def test_transition_to_missing_key_uses_fallback(self, camera):
        camera.focus_changed("wheels")
        settle(camera)
        assert camera.focus_changed("gone") is True
        result = settle(camera)
        assert_pose(result, OVERVIEW_POSITION, (0.0, 0.0, 0.0))
