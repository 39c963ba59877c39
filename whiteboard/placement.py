"""Collision-aware placement of new board elements.

``find_open_spot`` nudges a candidate rectangle to the nearest position that
keeps ``gap`` clearance from everything already on the board, searching
square rings of growing radius around the requested position. The search is
bounded; when it finds nothing the requested position is kept and the new
element is allowed to overlap.

``apply_min_gap_to_diff`` runs the solver over every element of a diff in
list order, so later elements avoid the ones placed before them.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Sequence, Set, Tuple

from .constants import BOX_HEIGHT, BOX_WIDTH, MAX_SEARCH_STEPS, MIN_GAP, NOTE_HEIGHT, NOTE_WIDTH
from .geometry import box_rect, note_rect, rects_overlap_with_gap
from .types import BoardDiff, Box, Connection, Note, Rect


def is_blocked(x: float, y: float, w: float, h: float, occupied: Sequence[Rect], gap: float) -> bool:
    candidate = Rect(x, y, w, h)
    return any(rects_overlap_with_gap(candidate, rect, gap) for rect in occupied)


def find_open_spot(
    x: float,
    y: float,
    w: float,
    h: float,
    occupied: Sequence[Rect],
    gap: float = MIN_GAP,
    max_steps: int = MAX_SEARCH_STEPS,
) -> Tuple[float, float]:
    """Return the first position near ``(x, y)`` that clears ``occupied``.

    Args:
        x: Requested left edge in world coordinates.
        y: Requested top edge in world coordinates.
        w: Width of the rectangle being placed.
        h: Height of the rectangle being placed.
        occupied: Rectangles already on the board.
        gap: Required clearance; also the step between ring candidates.
        max_steps: Number of rings searched before giving up.

    Returns:
        The requested position when it is free, the first free ring
        candidate otherwise, or the requested position again when every
        candidate within ``max_steps`` rings is blocked.
    """
    if not is_blocked(x, y, w, h, occupied, gap):
        return x, y

    step = gap
    if step <= 0:
        return x, y

    for ring in range(1, max_steps + 1):
        for i in range(-ring, ring + 1):
            for j in range(-ring, ring + 1):
                if abs(i) != ring and abs(j) != ring:
                    continue
                nx = x + i * step
                ny = y + j * step
                if not is_blocked(nx, ny, w, h, occupied, gap):
                    return nx, ny

    return x, y


def occupancy_from(boxes: Iterable[Box], notes: Iterable[Note]) -> List[Rect]:
    """Build the occupancy set for the current board."""
    occupied = [box_rect(box) for box in boxes]
    occupied.extend(note_rect(note) for note in notes)
    return occupied


def resolve_connections(connections: Iterable[Connection], box_ids: Set[str]) -> List[Connection]:
    """Drop connections whose endpoints do not name a known box."""
    return [conn for conn in connections if conn.from_id in box_ids and conn.to_id in box_ids]


def apply_min_gap_to_diff(
    diff: BoardDiff,
    boxes: Sequence[Box],
    notes: Sequence[Note],
    gap: float = MIN_GAP,
) -> BoardDiff:
    """Return a copy of ``diff`` with every new element placed clear of the board.

    Boxes are placed first, then notes, each in list order. Every placed
    rectangle joins the occupancy set before the next element is processed.
    Existing overlaps on the board are left alone.
    """
    occupied = occupancy_from(boxes, notes)

    placed_boxes: List[Box] = []
    for box in diff.add_boxes:
        x, y = find_open_spot(box.x, box.y, BOX_WIDTH, BOX_HEIGHT, occupied, gap)
        occupied.append(Rect(x, y, BOX_WIDTH, BOX_HEIGHT))
        placed_boxes.append(replace(box, x=x, y=y))

    placed_notes: List[Note] = []
    for note in diff.add_notes:
        x, y = find_open_spot(note.x, note.y, NOTE_WIDTH, NOTE_HEIGHT, occupied, gap)
        occupied.append(Rect(x, y, NOTE_WIDTH, NOTE_HEIGHT))
        placed_notes.append(replace(note, x=x, y=y))

    known_box_ids = {box.id for box in boxes}
    known_box_ids.update(box.id for box in placed_boxes)

    return BoardDiff(
        add_boxes=placed_boxes,
        add_notes=placed_notes,
        add_connections=resolve_connections(diff.add_connections, known_box_ids),
    )
