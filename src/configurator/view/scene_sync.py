"""
Scene Sync (PyVista Adapter)
Applies the engine's outputs to a PyVista scene: the camera pose every frame
and the hidden-mesh set whenever selections or the active chapter change.
Meshes not in the hidden set are left visible.
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Dict, Optional, TYPE_CHECKING

import pyvista as pv

if TYPE_CHECKING:
    from configurator.app.state import Store
    from configurator.controller.camera import CameraPose

logger = logging.getLogger(__name__)


class SceneSync:
    def __init__(self, plotter: pv.Plotter) -> None:
        self.plotter = plotter
        self._actors: Dict[str, pv.Actor] = {}
        self._hidden: frozenset[str] = frozenset()

    @property
    def part_names(self) -> list[str]:
        return sorted(self._actors)

    def add_part(self, name: str, mesh: pv.DataSet, **kwargs) -> pv.Actor:
        """Add a named part; the name is what visibility maps refer to."""
        actor = self.plotter.add_mesh(mesh, name=name, **kwargs)
        self.register_actor(name, actor)
        return actor

    def register_actor(self, name: str, actor: pv.Actor) -> None:
        self._actors[name] = actor
        actor.visibility = name not in self._hidden

    def apply_hidden(self, hidden: AbstractSet[str], render: bool = True) -> None:
        self._hidden = frozenset(hidden)
        unknown = self._hidden.difference(self._actors)
        if unknown:
            logger.debug(f"Hidden meshes not present in the scene: {sorted(unknown)}")
        for name, actor in self._actors.items():
            actor.visibility = name not in self._hidden
        if render:
            self.plotter.render()

    def apply_pose(self, pose: CameraPose, render: bool = True) -> None:
        camera = self.plotter.camera
        camera.focal_point = pose.target.to_tuple()
        camera.position = pose.position.to_tuple()
        camera.up = (0.0, 1.0, 0.0)
        if render:
            self.plotter.render()

    def connect(self, store: Store) -> None:
        """Follow the store's hidden-mesh set from now on."""
        store.hidden_meshes_changed.connect(self.apply_hidden)
        self.apply_hidden(store.hidden_meshes())


def create_plotter(off_screen: bool = False, window_size: Optional[tuple[int, int]] = None) -> pv.Plotter:
    plotter = pv.Plotter(off_screen=off_screen, window_size=list(window_size) if window_size else None)
    plotter.set_background("#0f172a")
    return plotter
