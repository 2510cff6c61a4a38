"""Tests for the focus tracker."""
import pytest

from configurator.controller.focus import ChapterExtent, FocusTracker, pick_active_chapter
from configurator.model.catalog import Chapter


@pytest.fixture
def chapters():
    return [
        Chapter(id="a", focus="fa"),
        Chapter(id="b", focus="fb"),
        Chapter(id="c", focus="fb"),
    ]


def extents(*spans):
    return [ChapterExtent(chapter_id, top, bottom) for chapter_id, top, bottom in spans]


class FakeViewport:
    def __init__(self, height, spans):
        self.height = height
        self.spans = spans

    def viewport_height(self):
        return self.height

    def chapter_extents(self):
        return extents(*self.spans)


class TestPickActiveChapter:
    def test_nearest_midpoint_to_marker(self, chapters):
        # Marker at 350 for a 1000 px viewport
        spans = extents(("a", 0, 300), ("b", 300, 500), ("c", 500, 900))
        assert pick_active_chapter(chapters, spans, 1000).id == "b"

    def test_marker_need_not_be_inside_the_chapter(self, chapters):
        spans = extents(("a", 0, 340), ("b", 360, 400))
        assert pick_active_chapter(chapters, spans, 1000).id == "b"

    def test_ties_go_to_canonical_order(self, chapters):
        # Both midpoints are 50 px from the marker; extents given in reverse
        spans = extents(("b", 350, 450), ("a", 250, 350))
        assert pick_active_chapter(chapters, spans, 1000).id == "a"

    def test_unrendered_chapters_are_skipped(self, chapters):
        assert pick_active_chapter(chapters, extents(("c", 2000, 2400)), 1000).id == "c"
        assert pick_active_chapter(chapters, [], 1000) is None

    def test_custom_marker_ratio(self, chapters):
        spans = extents(("a", 0, 300), ("b", 300, 500), ("c", 500, 900))
        assert pick_active_chapter(chapters, spans, 1000, marker_ratio=0.7).id == "c"


class TestFocusTracker:
    def test_reports_only_changes(self, chapters):
        tracker = FocusTracker()
        spans = extents(("a", 0, 300), ("b", 300, 500), ("c", 500, 900))

        change = tracker.update(chapters, spans, 1000)
        assert (change.chapter_id, change.focus_key) == ("b", "fb")
        assert change.chapter_changed and change.focus_changed

        assert tracker.update(chapters, spans, 1000) is None

    def test_chapter_change_with_same_focus(self, chapters):
        tracker = FocusTracker()
        tracker.reset("b", "fb")
        change = tracker.update(chapters, extents(("b", -600, -200), ("c", 200, 600)), 1000)
        assert change.chapter_id == "c"
        assert change.chapter_changed
        assert not change.focus_changed

    def test_focus_change_with_same_chapter(self, chapters):
        tracker = FocusTracker()
        tracker.reset("a", "fa")
        chapters[0].focus = "fz"
        change = tracker.update(chapters, extents(("a", 0, 700)), 1000)
        assert not change.chapter_changed
        assert change.focus_changed
        assert change.focus_key == "fz"

    def test_nothing_rendered(self, chapters):
        tracker = FocusTracker()
        tracker.reset("a", "fa")
        assert tracker.update(chapters, [], 1000) is None
        assert tracker.active_chapter_id == "a"

    def test_polls_provider(self, chapters):
        viewport = FakeViewport(1000, [("a", -500, 0), ("b", 0, 800)])
        tracker = FocusTracker(provider=viewport)
        assert tracker.update(chapters).chapter_id == "b"

        viewport.spans = [("a", 300, 400), ("b", 400, 1200)]
        assert tracker.update(chapters).chapter_id == "a"

    def test_requires_provider_or_inputs(self, chapters):
        with pytest.raises(ValueError):
            FocusTracker().update(chapters)

    def test_activate(self, chapters):
        tracker = FocusTracker()
        change = tracker.activate(chapters[2])
        assert change.chapter_id == "c"
        assert tracker.activate(chapters[2]) is None
