"""
Configuration Model (Catalog)
=============================
Defines the static/editable data of a configurator: chapters, groups, options,
the pricing matrix and the camera focus targets.

Why is this file needed?
------------------------
1. Structure: It turns the JSON configuration object into typed dataclasses and
   back again (``from_dict``/``to_dict``).
2. Canonical order: Chapters, then groups, then options define the order used
   by pricing precedence and focus tracking. Iteration helpers live here.
3. Authoring: Adding, editing, reordering and deleting chapters, groups and
   options. Selections are repaired by the caller (see ``app.state.Store``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

from configurator import config as app_config
from configurator.model.errors import (
    ConfigurationError, UnknownChapterError, UnknownGroupError, UnknownOptionError
)
from configurator.model.pricing import PricingRules
from configurator.model.visibility import set_mesh_visibility

logger = logging.getLogger(__name__)


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:5]}"


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise ConfigurationError(f"{where} must be an object, got {type(data).__name__}.")
    if key not in data or data[key] in (None, ""):
        raise ConfigurationError(f"{where} is missing required field '{key}'.")
    return data[key]


def _object_from(data: Any, where: str) -> Dict[str, Any]:
    """``None`` reads as an empty object; anything else must be a dict."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{where} must be an object, got {type(data).__name__}.")
    return data


def _list_from(data: Dict[str, Any], key: str, where: str) -> List[Any]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise ConfigurationError(f"{where} '{key}' must be a list, got {type(items).__name__}.")
    return items


def _visibility_from(data: Any, where: str) -> Dict[str, bool]:
    visibility = _object_from(data, f"{where} visibility")
    return {str(mesh): bool(state) for mesh, state in visibility.items()}


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass
class Option:
    """One choice inside a group. ``value`` is unique across the configuration."""
    value: str
    label: str = ""
    description: str = ""
    price: float = 0.0  # legacy flat price, superseded by the pricing matrix
    visibility: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "value": self.value,
            "label": self.label,
            "description": self.description,
            "price": self.price,
        }
        if self.visibility:
            d["visibility"] = dict(self.visibility)
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Option:
        value = str(_require(data, "value", "Option"))
        try:
            price = float(data.get("price") or 0.0)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Option '{value}' has an invalid price: {e}") from e
        return Option(
            value=value,
            label=data.get("label", ""),
            description=data.get("description", ""),
            price=price,
            visibility=_visibility_from(data.get("visibility"), f"Option '{value}'"),
        )


@dataclass
class Group:
    """Mutually exclusive options; at most one of them is selected."""
    id: str
    title: str = ""
    helper: str = ""
    options: List[Option] = field(default_factory=list)

    @property
    def option_values(self) -> List[str]:
        return [o.value for o in self.options]

    def first_value(self) -> str:
        return self.options[0].value if self.options else ""

    def find_option(self, value: str) -> Option:
        for option in self.options:
            if option.value == value:
                return option
        raise UnknownOptionError(f"Option '{value}' not found in group '{self.id}'.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "helper": self.helper,
            "options": [o.to_dict() for o in self.options],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Group:
        group_id = str(_require(data, "id", "Group"))
        return Group(
            id=group_id,
            title=data.get("title", ""),
            helper=data.get("helper", ""),
            options=[Option.from_dict(o) for o in _list_from(data, "options", f"Group '{group_id}'")],
        )


@dataclass
class Chapter:
    """A section of the configurator linked to a camera focus key."""
    id: str
    focus: str
    kicker: str = ""
    title: str = ""
    description: str = ""
    groups: List[Group] = field(default_factory=list)
    visibility: Dict[str, bool] = field(default_factory=dict)

    def find_group(self, group_id: str) -> Group:
        for group in self.groups:
            if group.id == group_id:
                return group
        raise UnknownGroupError(f"Group '{group_id}' not found in chapter '{self.id}'.")

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "focus": self.focus,
            "kicker": self.kicker,
            "title": self.title,
            "description": self.description,
            "groups": [g.to_dict() for g in self.groups],
        }
        if self.visibility:
            d["visibility"] = dict(self.visibility)
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Chapter:
        chapter_id = str(_require(data, "id", "Chapter"))
        where = f"Chapter '{chapter_id}'"
        return Chapter(
            id=chapter_id,
            focus=str(_require(data, "focus", where)),
            kicker=data.get("kicker", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            groups=[Group.from_dict(g) for g in _list_from(data, "groups", where)],
            visibility=_visibility_from(data.get("visibility"), where),
        )


@dataclass
class FocusTargetConfig:
    """Authored camera pose in degrees, as stored in the configuration object."""
    radius: float
    polar_deg: float
    azimuth_deg: float
    look_at: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "radius": self.radius,
            "polarDeg": self.polar_deg,
            "azimuthDeg": self.azimuth_deg,
            "lookAt": list(self.look_at),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> FocusTargetConfig:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid focus target {data!r}: expected an object.")
        try:
            look_at = tuple(float(v) for v in data.get("lookAt", (0.0, 0.0, 0.0)))
            if len(look_at) != 3:
                raise ValueError("lookAt must have three components")
            return FocusTargetConfig(
                radius=float(data["radius"]),
                polar_deg=float(data["polarDeg"]),
                azimuth_deg=float(data["azimuthDeg"]),
                look_at=look_at,  # type: ignore[arg-type]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid focus target {data!r}: {e}") from e

    @staticmethod
    def default() -> FocusTargetConfig:
        return FocusTargetConfig.from_dict(app_config.DEFAULT_FOCUS_TARGET)


@dataclass
class SceneModelConfig:
    """Model placement. Passed through untouched; loading is the host's job."""
    src: str = ""
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation_deg: Optional[Tuple[float, float, float]] = None
    scale: Optional[Tuple[float, float, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"src": self.src, "position": list(self.position)}
        if self.rotation_deg is not None:
            d["rotationDeg"] = list(self.rotation_deg)
        if self.scale is not None:
            d["scale"] = list(self.scale)
        return d

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> SceneModelConfig:
        data = _object_from(data, "Scene model")
        rotation = data.get("rotationDeg")
        scale = data.get("scale")
        try:
            return SceneModelConfig(
                src=data.get("src", ""),
                position=tuple(data.get("position", (0.0, 0.0, 0.0))),  # type: ignore[arg-type]
                rotation_deg=tuple(rotation) if rotation is not None else None,  # type: ignore[arg-type]
                scale=tuple(scale) if scale is not None else None,  # type: ignore[arg-type]
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid scene model {data!r}: {e}") from e


@dataclass
class SceneConfig:
    focus_targets: Dict[str, FocusTargetConfig] = field(default_factory=dict)
    model: SceneModelConfig = field(default_factory=SceneModelConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focusTargets": {k: v.to_dict() for k, v in self.focus_targets.items()},
            "model": self.model.to_dict(),
        }

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> SceneConfig:
        data = _object_from(data, "Scene")
        return SceneConfig(
            focus_targets={
                str(k): FocusTargetConfig.from_dict(v)
                for k, v in _object_from(data.get("focusTargets"), "Scene 'focusTargets'").items()
            },
            model=SceneModelConfig.from_dict(data.get("model")),
        )


@dataclass
class TextBlock:
    """Hero/closing copy around the chapters."""
    kicker: str = ""
    title: str = ""
    paragraphs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"kicker": self.kicker, "title": self.title, "paragraphs": list(self.paragraphs)}

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional[TextBlock]:
        if data is None:
            return None
        data = _object_from(data, "Text block")
        return TextBlock(
            kicker=data.get("kicker", ""),
            title=data.get("title", ""),
            paragraphs=list(data.get("paragraphs", [])),
        )


# ------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------
@dataclass
class Configuration:
    """
    The whole configurator definition, owned by the authoring session.
    The order of ``chapters`` is the canonical order.
    """
    chapters: List[Chapter] = field(default_factory=list)
    pricing_rules: PricingRules = field(default_factory=PricingRules)
    scene: SceneConfig = field(default_factory=SceneConfig)
    hero: Optional[TextBlock] = None
    closing: Optional[TextBlock] = None

    # --- Canonical order ---

    def iter_groups(self) -> Iterator[Tuple[Chapter, Group]]:
        for chapter in self.chapters:
            for group in chapter.groups:
                yield chapter, group

    def iter_options(self) -> Iterator[Tuple[Chapter, Group, Option]]:
        for chapter, group in self.iter_groups():
            for option in group.options:
                yield chapter, group, option

    def option_order(self) -> List[str]:
        """Option values flattened in canonical order."""
        return [option.value for _, _, option in self.iter_options()]

    # --- Lookup ---

    def find_chapter(self, chapter_id: str) -> Chapter:
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        raise UnknownChapterError(f"Chapter '{chapter_id}' not found.")

    def find_group(self, group_id: str) -> Group:
        for _, group in self.iter_groups():
            if group.id == group_id:
                return group
        raise UnknownGroupError(f"Group '{group_id}' not found.")

    def find_option(self, value: str) -> Option:
        for _, _, option in self.iter_options():
            if option.value == value:
                return option
        raise UnknownOptionError(f"Option '{value}' not found.")

    def default_focus_key(self) -> str:
        """First chapter's focus, else the first focus target, else 'overview'."""
        if self.chapters:
            return self.chapters[0].focus
        if self.scene.focus_targets:
            return next(iter(self.scene.focus_targets))
        return app_config.DEFAULT_FOCUS_KEY

    # --- Chapter authoring ---

    def add_chapter(self) -> Chapter:
        chapter_id = _generate_id("chapter")
        chapter = Chapter(
            id=chapter_id,
            focus=chapter_id,
            kicker="New chapter",
            title="Give this a title",
            description="Describe this chapter",
        )
        self.chapters.append(chapter)
        self.scene.focus_targets[chapter.focus] = FocusTargetConfig.default()
        logger.debug(f"Added chapter '{chapter_id}'.")
        return chapter

    def delete_chapter(self, chapter_id: str) -> Chapter:
        chapter = self.find_chapter(chapter_id)
        self.chapters.remove(chapter)
        for group in chapter.groups:
            for option in group.options:
                self.pricing_rules.discard_option(option.value)
        if all(c.focus != chapter.focus for c in self.chapters):
            self.scene.focus_targets.pop(chapter.focus, None)
        logger.debug(f"Deleted chapter '{chapter_id}'.")
        return chapter

    def move_chapter(self, from_index: int, to_index: int) -> None:
        if not (0 <= from_index < len(self.chapters)) or not (0 <= to_index < len(self.chapters)):
            raise IndexError(f"Cannot move chapter {from_index} -> {to_index} "
                             f"with {len(self.chapters)} chapters.")
        chapter = self.chapters.pop(from_index)
        self.chapters.insert(to_index, chapter)

    def update_chapter_text(
        self,
        chapter_id: str,
        kicker: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Chapter:
        chapter = self.find_chapter(chapter_id)
        if kicker is not None:
            chapter.kicker = kicker
        if title is not None:
            chapter.title = title
        if description is not None:
            chapter.description = description
        return chapter

    def set_chapter_visibility(self, chapter_id: str, mesh_name: str, visible: bool) -> None:
        set_mesh_visibility(self.find_chapter(chapter_id).visibility, mesh_name, visible)

    # --- Group / option authoring ---

    def add_group(self, chapter_id: str) -> Group:
        chapter = self.find_chapter(chapter_id)
        group = Group(
            id=_generate_id("group"),
            title="New group",
            helper="Describe this group",
            options=[self._new_option()],
        )
        chapter.groups.append(group)
        return group

    def delete_group(self, chapter_id: str, group_id: str) -> Group:
        chapter = self.find_chapter(chapter_id)
        group = chapter.find_group(group_id)
        chapter.groups.remove(group)
        for option in group.options:
            self.pricing_rules.discard_option(option.value)
        return group

    def add_option(self, chapter_id: str, group_id: str) -> Option:
        group = self.find_chapter(chapter_id).find_group(group_id)
        option = self._new_option()
        group.options.append(option)
        return option

    def edit_option(
        self,
        chapter_id: str,
        group_id: str,
        value: str,
        label: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[float] = None,
    ) -> Option:
        option = self.find_chapter(chapter_id).find_group(group_id).find_option(value)
        if label is not None:
            option.label = label
        if description is not None:
            option.description = description
        if price is not None:
            option.price = float(price)
        return option

    def delete_option(self, chapter_id: str, group_id: str, value: str) -> Option:
        group = self.find_chapter(chapter_id).find_group(group_id)
        option = group.find_option(value)
        group.options.remove(option)
        self.pricing_rules.discard_option(value)
        return option

    def set_option_visibility(
        self, chapter_id: str, group_id: str, value: str, mesh_name: str, visible: bool
    ) -> None:
        option = self.find_chapter(chapter_id).find_group(group_id).find_option(value)
        set_mesh_visibility(option.visibility, mesh_name, visible)

    @staticmethod
    def _new_option() -> Option:
        return Option(
            value=_generate_id("option"),
            label="New option",
            description="Describe this option",
            price=0.0,
        )

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "chapters": [c.to_dict() for c in self.chapters],
            "pricingRules": self.pricing_rules.to_dict(),
            "scene": self.scene.to_dict(),
        }
        if self.hero is not None:
            d["hero"] = self.hero.to_dict()
        if self.closing is not None:
            d["closing"] = self.closing.to_dict()
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Configuration:
        if not isinstance(data, dict) or "chapters" not in data:
            raise ConfigurationError("Configuration is missing required field 'chapters'.")
        chapters_data = data["chapters"]
        if not isinstance(chapters_data, list):
            raise ConfigurationError("Configuration 'chapters' must be a list.")

        configuration = Configuration(
            chapters=[Chapter.from_dict(c) for c in chapters_data],
            pricing_rules=PricingRules.from_dict(data.get("pricingRules")),
            scene=SceneConfig.from_dict(data.get("scene")),
            hero=TextBlock.from_dict(data.get("hero")),
            closing=TextBlock.from_dict(data.get("closing")),
        )
        configuration._check_unique_keys()
        return configuration

    def _check_unique_keys(self) -> None:
        group_ids: set[str] = set()
        values: set[str] = set()
        for _, _, option in self.iter_options():
            if option.value in values:
                raise ConfigurationError(f"Duplicate option value '{option.value}'.")
            values.add(option.value)
        for _, group in self.iter_groups():
            if group.id in group_ids:
                raise ConfigurationError(f"Duplicate group id '{group.id}'.")
            group_ids.add(group.id)
