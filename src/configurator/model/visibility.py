"""
Mesh Visibility
===============
Resolves which named meshes of the product model are hidden.

Every mesh is visible by default. Hide directives come from two sources and
are merged by set union:
1. the active chapter's own visibility map,
2. the visibility map of the selected option of EVERY group in EVERY chapter.

Only explicit ``False`` entries count. There is no "show" directive that can
override a hide coming from another source.
"""
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from configurator.model.catalog import Chapter


def hidden_in(visibility: Optional[Mapping[str, bool]]) -> Set[str]:
    """Mesh names explicitly set to ``False`` in a visibility map."""
    return {mesh for mesh, state in (visibility or {}).items() if state is False}


def resolve_hidden_meshes(
    chapters: Iterable[Chapter],
    selections: Mapping[str, str],
    active_chapter_id: Optional[str],
) -> Set[str]:
    """
    Args:
        chapters: Chapters in canonical order.
        selections: Group id -> selected option value.
        active_chapter_id: Chapter currently in focus, or None.

    Returns:
        A new set of hidden mesh names. Inputs are never modified.
    """
    chapters = list(chapters)
    hidden: Set[str] = set()

    for chapter in chapters:
        if chapter.id == active_chapter_id:
            hidden |= hidden_in(chapter.visibility)
            break

    for chapter in chapters:
        for group in chapter.groups:
            selected = selections.get(group.id, "")
            for option in group.options:
                if option.value == selected:
                    hidden |= hidden_in(option.visibility)
                    break

    return hidden


def referenced_meshes(chapters: Iterable[Chapter]) -> list[str]:
    """Sorted names of every mesh mentioned by a chapter or option visibility map."""
    names: Set[str] = set()
    for chapter in chapters:
        names.update(chapter.visibility)
        for group in chapter.groups:
            for option in group.options:
                names.update(option.visibility)
    return sorted(names)


def set_mesh_visibility(visibility: Dict[str, bool], mesh_name: str, visible: bool) -> None:
    """Hiding stores an explicit False; showing removes the entry (the default)."""
    if visible:
        visibility.pop(mesh_name, None)
    else:
        visibility[mesh_name] = False
