"""
Camera Orchestration
====================
A two-state machine producing one camera pose per rendered frame.

States
------
SCRIPTED: the camera follows the focus target of the active chapter via an
    eased tween of its spherical coordinates.
ORBIT: the camera is driven by the user; the orchestrator only records the
    manual snapshot so it can be restored or kept.

The host's render loop calls ``advance(dt)`` once per frame. There are no
timers here; a new transition always overwrites the one in flight, starting
from the live pose.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Dict, Optional

from configurator import config as app_config
from configurator.model.catalog import FocusTargetConfig
from configurator.model.geometry_primitives import Spherical, Vector
from configurator.model.geometry_utils import deg2rad, rad2deg, ease_out_cubic

logger = logging.getLogger(__name__)


class CameraMode(StrEnum):
    SCRIPTED = "scripted"
    ORBIT = "orbit"


@dataclass
class CameraPose:
    """Position and look-at point, ready to be applied to a scene camera."""
    position: Vector
    target: Vector

    @staticmethod
    def from_tuples(position, target) -> CameraPose:
        return CameraPose(Vector.from_iterable(position), Vector.from_iterable(target))


@dataclass
class FocusTarget:
    """A focus target in radians with a vector look-at point."""
    radius: float
    polar: float
    azimuth: float
    look_at: Vector

    @property
    def spherical(self) -> Spherical:
        return Spherical(self.radius, self.polar, self.azimuth)

    def pose(self) -> CameraPose:
        return pose(self)

    @staticmethod
    def from_config(cfg: FocusTargetConfig) -> FocusTarget:
        return FocusTarget(
            radius=cfg.radius,
            polar=deg2rad(cfg.polar_deg),
            azimuth=deg2rad(cfg.azimuth_deg),
            look_at=Vector.from_iterable(cfg.look_at),
        )

    @staticmethod
    def from_pose(camera_pose: CameraPose) -> FocusTarget:
        """Spherical form of ``position`` around ``target``."""
        s = Spherical.from_vector(camera_pose.position - camera_pose.target)
        return FocusTarget(s.radius, s.phi, s.theta, camera_pose.target)

    def to_config(self) -> FocusTargetConfig:
        return FocusTargetConfig(
            radius=self.radius,
            polar_deg=rad2deg(self.polar),
            azimuth_deg=rad2deg(self.azimuth),
            look_at=self.look_at.to_tuple(),
        )


def pose(focus_target: FocusTarget) -> CameraPose:
    """position = lookAt + sphericalToCartesian(radius, polar, azimuth)"""
    return CameraPose(
        position=focus_target.look_at + focus_target.spherical.to_vector(),
        target=focus_target.look_at,
    )


@dataclass
class Transition:
    start: Spherical = field(default_factory=Spherical)
    end: Spherical = field(default_factory=Spherical)
    duration: float = 1.0
    progress: float = 1.0
    active: bool = False


class CameraOrchestrator:
    """
    Owns the camera state of one runtime session.

    ``focus_targets`` is the configuration's own mapping; ``keep_current_view``
    writes into it so a user-tuned pose becomes the chapter's new default.
    """

    def __init__(
        self,
        focus_targets: Dict[str, FocusTargetConfig],
        focus_key: str,
        duration: float = app_config.TRANSITION_DURATION,
        look_at_blend: float = app_config.LOOK_AT_BLEND,
    ) -> None:
        self.focus_targets = focus_targets
        self.duration = duration
        self.look_at_blend = look_at_blend

        self.mode = CameraMode.SCRIPTED
        self.focus_key = focus_key
        self.reset_token = 0

        initial = self.resolve_target(focus_key)
        self.spherical = initial.spherical
        self.look_at_current = Vector(*initial.look_at.to_tuple())
        self.look_at_target = Vector(*initial.look_at.to_tuple())
        self.transition = Transition(duration=duration)

        self.manual_state: Optional[CameraPose] = None
        self.pre_orbit_state: Optional[CameraPose] = None

        # Last (focus key, reset token) a transition was started for
        self._last_focus = focus_key
        self._last_reset = self.reset_token

    @property
    def orbit_enabled(self) -> bool:
        return self.mode == CameraMode.ORBIT

    # --- Focus targets ---

    def resolve_target(self, focus_key: str) -> FocusTarget:
        """
        Focus target for ``focus_key``. A missing key is a configuration error:
        fall back to the first available target, then to the built-in default.
        """
        cfg = self.focus_targets.get(focus_key)
        if cfg is None:
            if self.focus_targets:
                fallback_key = next(iter(self.focus_targets))
                logger.warning(f"No focus target for '{focus_key}', using '{fallback_key}'.")
                cfg = self.focus_targets[fallback_key]
            else:
                logger.warning(f"No focus targets configured, using the default pose for '{focus_key}'.")
                cfg = FocusTargetConfig.default()
        return FocusTarget.from_config(cfg)

    # --- Events ---

    def focus_changed(self, focus_key: str) -> bool:
        """Returns True if a transition was started."""
        self.focus_key = focus_key
        return self._maybe_start_transition()

    def reset_requested(self) -> bool:
        self.reset_token += 1
        return self._maybe_start_transition()

    def orbit_entered(self, snapshot: Optional[CameraPose] = None) -> CameraPose:
        """
        Switch to ORBIT. Without an explicit snapshot the live manual state is
        used, else the current scripted pose. The snapshot becomes both the
        manual state and the pre-orbit reference.
        """
        if snapshot is None:
            snapshot = self.manual_state if self.manual_state is not None else self.pose()
        self.manual_state = snapshot
        self.pre_orbit_state = snapshot
        self.mode = CameraMode.ORBIT
        logger.debug("Camera entered orbit mode.")
        return snapshot

    def orbit_camera_moved(self, position: Vector, target: Vector) -> None:
        if self.mode != CameraMode.ORBIT:
            logger.debug("Ignoring orbit camera movement outside orbit mode.")
            return
        self.manual_state = CameraPose(position, target)

    def reset_from_orbit(self) -> CameraPose:
        """Restore the pre-orbit pose and tween back to the active focus target."""
        snapshot = self.pre_orbit_state
        if snapshot is None:
            snapshot = self.resolve_target(self.focus_key).pose()
        self._snap_to(snapshot)
        self.mode = CameraMode.SCRIPTED
        self.manual_state = None
        self.pre_orbit_state = None
        self.reset_token += 1
        self._maybe_start_transition()
        logger.debug("Camera reset from orbit mode.")
        return snapshot

    def keep_current_view(self) -> Optional[FocusTargetConfig]:
        """
        Persist the live manual pose as the focus target of the active focus
        key and return to SCRIPTED on that pose.

        Returns:
            The stored focus target, or None when there is no manual pose.
        """
        if self.mode != CameraMode.ORBIT or self.manual_state is None:
            logger.debug("Keep current view ignored: no live orbit pose.")
            return None

        kept = FocusTarget.from_pose(self.manual_state).to_config()
        self.focus_targets[self.focus_key] = kept
        logger.info(f"Stored current view as focus target '{self.focus_key}'.")

        self._snap_to(self.manual_state)
        self.mode = CameraMode.SCRIPTED
        self.manual_state = None
        self.pre_orbit_state = None
        self._start_transition()
        return kept

    # --- Frame loop ---

    def advance(self, delta_seconds: float) -> CameraPose:
        """Advance one rendered frame and return the pose to apply."""
        if self.mode == CameraMode.ORBIT:
            return self.manual_state if self.manual_state is not None else self.pose()

        tween = self.transition
        if tween.active:
            tween.progress = min(tween.progress + delta_seconds / tween.duration, 1.0)
            eased = ease_out_cubic(tween.progress)
            self.spherical = tween.start.interpolate(tween.end, eased)
            if tween.progress == 1.0:
                tween.active = False

        # Fixed blend per frame regardless of delta_seconds
        self.look_at_current = self.look_at_current.lerp(self.look_at_target, self.look_at_blend)
        return self.pose()

    def pose(self) -> CameraPose:
        return CameraPose(
            position=self.look_at_current + self.spherical.to_vector(),
            target=Vector(*self.look_at_current.to_tuple()),
        )

    # --- Internals ---

    def _maybe_start_transition(self) -> bool:
        if self.mode == CameraMode.ORBIT:
            return False
        if self.focus_key == self._last_focus and self.reset_token == self._last_reset:
            return False
        self._start_transition()
        return True

    def _start_transition(self) -> None:
        target = self.resolve_target(self.focus_key)
        self.transition = Transition(
            start=self.spherical.copy(),
            end=target.spherical,
            duration=self.duration,
            progress=0.0,
            active=True,
        )
        self.look_at_target = Vector(*target.look_at.to_tuple())
        self._last_focus = self.focus_key
        self._last_reset = self.reset_token
        logger.debug(f"Camera transition to '{self.focus_key}' started.")

    def _snap_to(self, camera_pose: CameraPose) -> None:
        target = camera_pose.target
        self.look_at_current = Vector(*target.to_tuple())
        self.look_at_target = Vector(*target.to_tuple())
        self.spherical = Spherical.from_vector(camera_pose.position - target)
        self.transition.active = False
