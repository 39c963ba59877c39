"""Tests for geometry helpers, the placement solver and diff merging."""

import math

import pytest

from whiteboard import BoardDiff, BoardSnapshot, Box, Connection, Note, Rect
from whiteboard.constants import BOX_HEIGHT, BOX_WIDTH, NOTE_HEIGHT, NOTE_WIDTH
from whiteboard.geometry import (
    rect_contains,
    rects_overlap_with_gap,
    screen_to_world,
    to_number,
    world_to_screen,
)
from whiteboard.placement import apply_min_gap_to_diff, find_open_spot, occupancy_from


def _box_rect(x, y):
    return Rect(x, y, BOX_WIDTH, BOX_HEIGHT)


class TestGeometry:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (3, 3.0),
            (2.5, 2.5),
            ("7.5", 7.5),
            ("abc", 0.0),
            (None, 0.0),
            (True, 0.0),
            (math.inf, 0.0),
            (math.nan, 0.0),
        ],
    )
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    def test_to_number_fallback(self):
        assert to_number("bad", fallback=5.0) == 5.0

    def test_overlap_within_gap(self):
        a = Rect(0, 0, 100, 100)
        assert rects_overlap_with_gap(a, Rect(120, 0, 100, 100), 40)
        assert not rects_overlap_with_gap(a, Rect(140, 0, 100, 100), 40)
        assert not rects_overlap_with_gap(a, Rect(0, 140, 100, 100), 40)

    def test_rect_contains_edges(self):
        rect = Rect(0, 0, 10, 10)
        assert rect_contains(rect, 10, 10)
        assert not rect_contains(rect, 11, 5)
        assert rect_contains(rect, 11, 5, margin=1)

    def test_screen_world_inverse(self):
        wx, wy = screen_to_world(250, 130, 50, -20, 2.0)
        assert (wx, wy) == (100.0, 75.0)
        assert world_to_screen(wx, wy, 50, -20, 2.0) == (250.0, 130.0)


class TestFindOpenSpot:
    def test_free_position_unchanged(self):
        occupied = [_box_rect(100, 100)]
        assert find_open_spot(600, 600, BOX_WIDTH, BOX_HEIGHT, occupied) == (600, 600)

    def test_empty_board_unchanged(self):
        assert find_open_spot(-5, 7, BOX_WIDTH, BOX_HEIGHT, []) == (-5, 7)

    def test_relocates_next_to_two_boxes(self):
        occupied = [_box_rect(100, 100), _box_rect(350, 100)]
        assert find_open_spot(120, 110, BOX_WIDTH, BOX_HEIGHT, occupied) == (-40, 270)

    def test_result_keeps_gap(self):
        occupied = [_box_rect(0, 0), _box_rect(220, 0), _box_rect(0, 160)]
        x, y = find_open_spot(10, 10, BOX_WIDTH, BOX_HEIGHT, occupied)
        candidate = _box_rect(x, y)
        assert not any(rects_overlap_with_gap(candidate, rect, 40) for rect in occupied)

    def test_is_deterministic(self):
        occupied = [_box_rect(100, 100), _box_rect(350, 100)]
        first = find_open_spot(120, 110, BOX_WIDTH, BOX_HEIGHT, occupied)
        assert find_open_spot(120, 110, BOX_WIDTH, BOX_HEIGHT, occupied) == first

    def test_exhausted_search_keeps_requested_position(self):
        occupied = [Rect(-10000, -10000, 20000, 20000)]
        assert find_open_spot(5, 5, BOX_WIDTH, BOX_HEIGHT, occupied) == (5, 5)

    def test_non_positive_gap_keeps_requested_position(self):
        occupied = [_box_rect(0, 0)]
        assert find_open_spot(10, 10, BOX_WIDTH, BOX_HEIGHT, occupied, gap=0) == (10, 10)


class TestApplyMinGapToDiff:
    def test_later_elements_avoid_earlier_ones(self):
        diff = BoardDiff(
            add_boxes=[Box("a", 0, 0, "A"), Box("b", 0, 0, "B")],
            add_notes=[Note("n", 0, 0, "N")],
        )
        placed = apply_min_gap_to_diff(diff, [], [])
        rects = [_box_rect(b.x, b.y) for b in placed.add_boxes]
        rects.extend(Rect(n.x, n.y, NOTE_WIDTH, NOTE_HEIGHT) for n in placed.add_notes)
        assert (placed.add_boxes[0].x, placed.add_boxes[0].y) == (0, 0)
        for i, first in enumerate(rects):
            for second in rects[i + 1:]:
                assert not rects_overlap_with_gap(first, second, 40)

    def test_does_not_mutate_input(self):
        box = Box("a", 120, 110)
        apply_min_gap_to_diff(BoardDiff(add_boxes=[box]), [Box("x", 100, 100)], [])
        assert (box.x, box.y) == (120, 110)

    def test_connections_resolve_against_board_and_diff(self):
        diff = BoardDiff(
            add_boxes=[Box("new", 800, 800)],
            add_connections=[
                Connection("c1", "old", "new"),
                Connection("c2", "new", "ghost"),
            ],
        )
        placed = apply_min_gap_to_diff(diff, [Box("old", 0, 0)], [])
        assert [c.id for c in placed.add_connections] == ["c1"]

    def test_occupancy_includes_notes(self):
        rects = occupancy_from([Box("a", 0, 0)], [Note("n", 500, 500)])
        assert rects == [_box_rect(0, 0), Rect(500, 500, NOTE_WIDTH, NOTE_HEIGHT)]


class TestBoardApplyDiff:
    def test_apply_diff_places_and_appends(self, default_board):
        calls = []
        default_board.boardChanged.connect(lambda: calls.append(1))
        placed = default_board.applyDiff(BoardDiff(
            add_boxes=[Box("ai-1", 120, 110, "Cache")],
            add_connections=[Connection("ai-c1", "1", "ai-1")],
        ))
        box = default_board.getBox("ai-1")
        assert (box.x, box.y) == (placed.add_boxes[0].x, placed.add_boxes[0].y)
        assert not any(
            rects_overlap_with_gap(_box_rect(box.x, box.y), _box_rect(b["x"], b["y"]), 40)
            for b in default_board.boxes
            if b["id"] != "ai-1"
        )
        assert default_board.getConnection("ai-c1") is not None
        assert len(calls) == 1

    def test_apply_diff_skips_known_ids(self, default_board):
        placed = default_board.applyDiff(BoardDiff(
            add_boxes=[Box("1", 900, 900, "Duplicate"), Box("x", 900, 900), Box("x", 1200, 1200)],
        ))
        assert [b.id for b in placed.add_boxes] == ["x"]
        assert default_board.getBox("1").text == "API Gateway"

    def test_empty_diff_is_a_noop(self, default_board):
        calls = []
        default_board.boardChanged.connect(lambda: calls.append(1))
        assert default_board.applyDiff(BoardDiff()).is_empty()
        assert calls == []

    def test_apply_to_snapshot_board(self, empty_board):
        empty_board.loadSnapshot(BoardSnapshot(boxes=[Box("a", 100, 100), Box("b", 350, 100)]))
        empty_board.applyDiff(BoardDiff(add_boxes=[Box("c", 120, 110)]))
        box = empty_board.getBox("c")
        assert (box.x, box.y) == (-40, 270)
