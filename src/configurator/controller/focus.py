"""
Focus Tracker
=============
Maps on-screen chapter positions to the "active chapter".

A fixed marker line sits at 35% of the viewport height. The chapter whose
vertical midpoint is closest to the marker wins; ties go to the chapter that
comes first in canonical order. A change is reported only when the chapter
id or its focus key differs from the previous report.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Mapping, Optional, Protocol, Sequence, TYPE_CHECKING

import numpy as np

from configurator import config as app_config

if TYPE_CHECKING:
    from configurator.model.catalog import Chapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChapterExtent:
    """Vertical extent of a rendered chapter, relative to the viewport top."""
    chapter_id: str
    top: float
    bottom: float

    @property
    def midpoint(self) -> float:
        return (self.top + self.bottom) / 2.0


class ViewportProvider(Protocol):
    """Injected by the host (scroll container, window, test fake)."""

    def viewport_height(self) -> float: ...

    def chapter_extents(self) -> Sequence[ChapterExtent]: ...


@dataclass(frozen=True)
class FocusChange:
    chapter_id: str
    focus_key: str
    chapter_changed: bool
    focus_changed: bool


def pick_active_chapter(
    chapters: Sequence[Chapter],
    extents: Iterable[ChapterExtent],
    viewport_height: float,
    marker_ratio: float = app_config.FOCUS_MARKER_RATIO,
) -> Optional[Chapter]:
    """
    Chapter nearest to the marker line. Chapters without an extent (not
    rendered) are skipped; returns None when nothing is rendered.
    """
    by_id: Mapping[str, ChapterExtent] = {e.chapter_id: e for e in extents}
    candidates = [c for c in chapters if c.id in by_id]
    if not candidates:
        return None

    marker_y = viewport_height * marker_ratio
    midpoints = np.array([by_id[c.id].midpoint for c in candidates], dtype=float)
    # argmin returns the first minimum, i.e. canonical order breaks ties
    index = int(np.argmin(np.abs(midpoints - marker_y)))
    return candidates[index]


class FocusTracker:
    """Remembers the last reported chapter so only changes are emitted."""

    def __init__(
        self,
        provider: Optional[ViewportProvider] = None,
        marker_ratio: float = app_config.FOCUS_MARKER_RATIO,
    ) -> None:
        self.provider = provider
        self.marker_ratio = marker_ratio
        self.active_chapter_id: Optional[str] = None
        self.focus_key: Optional[str] = None

    def reset(self, chapter_id: Optional[str] = None, focus_key: Optional[str] = None) -> None:
        self.active_chapter_id = chapter_id
        self.focus_key = focus_key

    def update(
        self,
        chapters: Sequence[Chapter],
        extents: Optional[Iterable[ChapterExtent]] = None,
        viewport_height: Optional[float] = None,
    ) -> Optional[FocusChange]:
        """
        Re-evaluate the active chapter. Extents and height are polled from the
        provider when not passed in.

        Returns:
            A FocusChange if the chapter or focus key changed, else None.
        """
        if extents is None or viewport_height is None:
            if self.provider is None:
                raise ValueError("FocusTracker.update() needs extents and a height, or a provider.")
            extents = self.provider.chapter_extents() if extents is None else extents
            viewport_height = self.provider.viewport_height() if viewport_height is None else viewport_height

        chapter = pick_active_chapter(chapters, extents, viewport_height, self.marker_ratio)
        if chapter is None:
            return None
        return self.activate(chapter)

    def activate(self, chapter: Chapter) -> Optional[FocusChange]:
        """Report ``chapter`` as active, e.g. when the host jumps to it directly."""
        chapter_changed = chapter.id != self.active_chapter_id
        focus_changed = chapter.focus != self.focus_key
        if not chapter_changed and not focus_changed:
            return None

        self.active_chapter_id = chapter.id
        self.focus_key = chapter.focus
        logger.debug(f"Active chapter '{chapter.id}' (focus '{chapter.focus}').")
        return FocusChange(chapter.id, chapter.focus, chapter_changed, focus_changed)
