from __future__ import annotations

import logging
from typing import Iterable, Optional, Set

from PySide6.QtCore import QObject, Signal

from configurator.controller.camera import CameraMode, CameraOrchestrator, CameraPose
from configurator.controller.focus import ChapterExtent, FocusChange, FocusTracker, ViewportProvider
from configurator.model.catalog import Chapter, Configuration, Group, Option, FocusTargetConfig
from configurator.model.geometry_primitives import Vector
from configurator.model.pricing import PriceSummary, summarize_prices
from configurator.model.selection import SelectionStore
from configurator.model.visibility import resolve_hidden_meshes

logger = logging.getLogger(__name__)


class Store(QObject):
    """
    Runtime session: the single writer of selections and camera state.
    Every change is re-emitted as a signal for views and the scene adapter.
    """
    configuration_changed = Signal(object)
    selections_changed = Signal(object)
    prices_changed = Signal(object)
    hidden_meshes_changed = Signal(object)
    active_chapter_changed = Signal(str)
    focus_changed = Signal(str)
    camera_mode_changed = Signal(str)

    def __init__(
        self,
        configuration: Optional[Configuration] = None,
        viewport: Optional[ViewportProvider] = None,
    ) -> None:
        super().__init__()
        self.selections = SelectionStore()
        self.tracker = FocusTracker(provider=viewport)
        self._hidden_meshes: Set[str] = set()
        self.load(configuration or Configuration())

    # --- Session ---

    def load(self, configuration: Configuration) -> None:
        self.configuration = configuration
        self.selections.initialize(configuration)

        first = configuration.chapters[0] if configuration.chapters else None
        self.active_chapter_id: Optional[str] = first.id if first else None
        self.tracker.reset(self.active_chapter_id, first.focus if first else None)
        self.camera = CameraOrchestrator(
            configuration.scene.focus_targets, configuration.default_focus_key()
        )
        logger.info(f"Session loaded with {len(configuration.chapters)} chapters.")

        self.configuration_changed.emit(self.configuration)
        self.selections_changed.emit(self.selections.snapshot())
        self._refresh()

    def active_chapter(self) -> Optional[Chapter]:
        if self.active_chapter_id is None:
            return None
        for chapter in self.configuration.chapters:
            if chapter.id == self.active_chapter_id:
                return chapter
        return None

    def prices(self) -> PriceSummary:
        return summarize_prices(self.configuration, self.selections)

    def hidden_meshes(self) -> Set[str]:
        return resolve_hidden_meshes(self.configuration.chapters, self.selections, self.active_chapter_id)

    # --- Selections ---

    def select(self, group_id: str, value: str) -> None:
        if self.selections.set(group_id, value):
            self.selections_changed.emit(self.selections.snapshot())
            self._refresh()

    # --- Focus ---

    def update_viewport(
        self,
        extents: Optional[Iterable[ChapterExtent]] = None,
        viewport_height: Optional[float] = None,
    ) -> Optional[FocusChange]:
        """Call on scroll/resize, at most once per frame."""
        change = self.tracker.update(self.configuration.chapters, extents, viewport_height)
        if change is not None:
            self._apply_focus_change(change)
        return change

    def set_active_chapter(self, chapter_id: str) -> None:
        change = self.tracker.activate(self.configuration.find_chapter(chapter_id))
        if change is not None:
            self._apply_focus_change(change)

    def _apply_focus_change(self, change: FocusChange) -> None:
        if change.chapter_changed:
            self.active_chapter_id = change.chapter_id
            self.active_chapter_changed.emit(change.chapter_id)
            self._refresh_visibility()
        if change.focus_changed:
            self.camera.focus_changed(change.focus_key)
            self.focus_changed.emit(change.focus_key)

    # --- Camera ---

    def advance_frame(self, delta_seconds: float) -> CameraPose:
        return self.camera.advance(delta_seconds)

    def enter_orbit(self, snapshot: Optional[CameraPose] = None) -> CameraPose:
        pose = self.camera.orbit_entered(snapshot)
        self.camera_mode_changed.emit(CameraMode.ORBIT.value)
        return pose

    def orbit_moved(self, position: Vector, target: Vector) -> None:
        self.camera.orbit_camera_moved(position, target)

    def reset_camera(self) -> None:
        if self.camera.orbit_enabled:
            self.camera.reset_from_orbit()
            self.camera_mode_changed.emit(CameraMode.SCRIPTED.value)
        else:
            self.camera.reset_requested()

    def keep_current_view(self) -> Optional[FocusTargetConfig]:
        kept = self.camera.keep_current_view()
        if kept is not None:
            self.camera_mode_changed.emit(CameraMode.SCRIPTED.value)
            self.configuration_changed.emit(self.configuration)
        return kept

    # --- Authoring ---

    def add_chapter(self) -> Chapter:
        chapter = self.configuration.add_chapter()
        self.configuration_changed.emit(self.configuration)
        return chapter

    def delete_chapter(self, chapter_id: str) -> None:
        chapter = self.configuration.delete_chapter(chapter_id)
        for group in chapter.groups:
            self.selections.on_group_removed(group.id)

        if chapter_id == self.active_chapter_id:
            self.active_chapter_id = None
            if self.configuration.chapters:
                self.set_active_chapter(self.configuration.chapters[0].id)
            else:
                self.tracker.reset()

        self.configuration_changed.emit(self.configuration)
        self.selections_changed.emit(self.selections.snapshot())
        self._refresh()

    def move_chapter(self, from_index: int, to_index: int) -> None:
        self.configuration.move_chapter(from_index, to_index)
        self.configuration_changed.emit(self.configuration)
        self._refresh()

    def update_chapter_text(self, chapter_id: str, **fields: Optional[str]) -> None:
        self.configuration.update_chapter_text(chapter_id, **fields)
        self.configuration_changed.emit(self.configuration)

    def set_chapter_visibility(self, chapter_id: str, mesh_name: str, visible: bool) -> None:
        self.configuration.set_chapter_visibility(chapter_id, mesh_name, visible)
        self.configuration_changed.emit(self.configuration)
        self._refresh_visibility()

    def add_group(self, chapter_id: str) -> Group:
        group = self.configuration.add_group(chapter_id)
        self.selections.on_group_added(group)
        self.configuration_changed.emit(self.configuration)
        self.selections_changed.emit(self.selections.snapshot())
        self._refresh()
        return group

    def delete_group(self, chapter_id: str, group_id: str) -> None:
        self.configuration.delete_group(chapter_id, group_id)
        self.selections.on_group_removed(group_id)
        self.configuration_changed.emit(self.configuration)
        self.selections_changed.emit(self.selections.snapshot())
        self._refresh()

    def add_option(self, chapter_id: str, group_id: str) -> Option:
        option = self.configuration.add_option(chapter_id, group_id)
        # A group that was empty now has something to select
        if self.selections.repair():
            self.selections_changed.emit(self.selections.snapshot())
        self.configuration_changed.emit(self.configuration)
        self._refresh()
        return option

    def edit_option(self, chapter_id: str, group_id: str, value: str, **fields) -> Option:
        option = self.configuration.edit_option(chapter_id, group_id, value, **fields)
        self.configuration_changed.emit(self.configuration)
        return option

    def delete_option(self, chapter_id: str, group_id: str, value: str) -> None:
        self.configuration.delete_option(chapter_id, group_id, value)
        before = self.selections.get(group_id)
        self.selections.on_option_removed(group_id, value)
        self.configuration_changed.emit(self.configuration)
        if self.selections.get(group_id) != before:
            self.selections_changed.emit(self.selections.snapshot())
        self._refresh()

    def set_option_visibility(
        self, chapter_id: str, group_id: str, value: str, mesh_name: str, visible: bool
    ) -> None:
        self.configuration.set_option_visibility(chapter_id, group_id, value, mesh_name, visible)
        self.configuration_changed.emit(self.configuration)
        self._refresh_visibility()

    def set_price(self, target: str, dependency: str, price: Optional[float]) -> None:
        self.configuration.pricing_rules.set_price(self.configuration, target, dependency, price)
        self.configuration_changed.emit(self.configuration)
        self.prices_changed.emit(self.prices())

    # --- Derived state ---

    def _refresh(self) -> None:
        self.prices_changed.emit(self.prices())
        self._refresh_visibility()

    def _refresh_visibility(self) -> None:
        hidden = self.hidden_meshes()
        if hidden != self._hidden_meshes:
            self._hidden_meshes = hidden
            self.hidden_meshes_changed.emit(set(hidden))
