"""
Selection Store
===============
Tracks the one chosen option per group.

Invariant: every key is the id of a group currently in the configuration and
every value is one of that group's current option values, or ``""`` when the
group has no options. The store repairs itself when groups or options are
removed.
"""
from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Dict, Iterator, Optional, TYPE_CHECKING

from configurator.model.errors import SelectionError, UnknownGroupError

if TYPE_CHECKING:
    from configurator.model.catalog import Configuration, Group

logger = logging.getLogger(__name__)


class SelectionStore(Mapping):
    """Read-only mapping ``group id -> option value`` with explicit mutators."""

    def __init__(self, configuration: Optional[Configuration] = None) -> None:
        self._configuration: Optional[Configuration] = None
        self._selections: Dict[str, str] = {}
        if configuration is not None:
            self.initialize(configuration)

    # --- Mapping protocol ---

    def __getitem__(self, group_id: str) -> str:
        return self._selections[group_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._selections)

    def __len__(self) -> int:
        return len(self._selections)

    def get(self, group_id: str, default: str = "") -> str:
        return self._selections.get(group_id, default)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._selections)

    # --- Mutators ---

    def initialize(self, configuration: Configuration) -> None:
        """Select the first option of every group."""
        self._configuration = configuration
        self._selections = {group.id: group.first_value() for _, group in configuration.iter_groups()}
        logger.debug(f"Initialized selections for {len(self._selections)} groups.")

    def set(self, group_id: str, value: str) -> bool:
        """
        Select ``value`` in ``group_id``.

        Returns:
            True if the selection changed.

        Raises:
            UnknownGroupError: the group is not part of the configuration.
            SelectionError: ``value`` is not one of the group's options.
        """
        group = self._group(group_id)
        if value not in group.option_values:
            raise SelectionError(f"'{value}' is not an option of group '{group_id}'.")
        if self._selections.get(group_id) == value:
            return False
        self._selections[group_id] = value
        logger.debug(f"Selected '{value}' in group '{group_id}'.")
        return True

    def on_group_added(self, group: Group) -> None:
        self._selections[group.id] = group.first_value()

    def on_group_removed(self, group_id: str) -> None:
        self._selections.pop(group_id, None)

    def on_option_removed(self, group_id: str, value: str) -> None:
        """Fall back to the group's first remaining option if ``value`` was selected."""
        if self._selections.get(group_id) != value:
            return
        try:
            fallback = self._group(group_id).first_value()
        except UnknownGroupError:
            self._selections.pop(group_id, None)
            return
        self._selections[group_id] = fallback
        logger.debug(f"Selection of group '{group_id}' fell back to '{fallback}'.")

    def repair(self) -> bool:
        """
        Re-establish the invariant against the whole configuration.
        Drops unknown groups, adds missing ones, replaces dangling values.

        Returns:
            True if anything changed.
        """
        if self._configuration is None:
            return False
        repaired: Dict[str, str] = {}
        for _, group in self._configuration.iter_groups():
            current = self._selections.get(group.id)
            repaired[group.id] = current if current in group.option_values else group.first_value()
        changed = repaired != self._selections
        self._selections = repaired
        if changed:
            logger.debug("Selections repaired after configuration change.")
        return changed

    def _group(self, group_id: str) -> Group:
        if self._configuration is None:
            raise UnknownGroupError(f"Group '{group_id}' not found: store is not initialized.")
        return self._configuration.find_group(group_id)
