"""Placement mixin for BoardModel.

Freshly created elements and externally proposed diffs go through the
placement solver so they land clear of everything already on the board.
Manual dragging bypasses this entirely.
"""

from __future__ import annotations

from typing import Callable, List, Set, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .constants import BOX_HEIGHT, BOX_WIDTH, ELEMENT_PRESETS, MIN_GAP, NOTE_HEIGHT, NOTE_WIDTH
from .placement import apply_min_gap_to_diff, find_open_spot, occupancy_from
from .types import BoardDiff, Box, Connection, Note, Rect

if TYPE_CHECKING:
    from .model import BoardModel


class LayoutMixin:
    """Mixin providing collision-aware insertion and diff merging."""

    # Signals (will be defined in BoardModel)
    boxesChanged: Signal
    notesChanged: Signal
    connectionsChanged: Signal
    boardChanged: Signal

    # Attributes expected from BoardModel
    _boxes: List[Box]
    _notes: List[Note]
    _connections: List[Connection]
    _gap: float
    addBox: Callable[[float, float, str], str]
    addNote: Callable[[float, float, str], str]
    _append_boxes: Callable[[List[Box]], None]

    def occupiedRects(self) -> List[Rect]:
        """Return the occupancy set for the current board."""
        return occupancy_from(self._boxes, self._notes)

    @Slot(float, float, str, result=str)
    def addBoxInOpenSpot(self, x: float, y: float, text: str = "") -> str:
        """Add a box at the nearest position near ``(x, y)`` that keeps the gap."""
        nx, ny = find_open_spot(x, y, BOX_WIDTH, BOX_HEIGHT, self.occupiedRects(), self._gap)
        return self.addBox(nx, ny, text if text else ELEMENT_PRESETS["box"]["text"])

    @Slot(float, float, str, result=str)
    def addNoteInOpenSpot(self, x: float, y: float, content: str = "") -> str:
        """Add a note at the nearest position near ``(x, y)`` that keeps the gap."""
        nx, ny = find_open_spot(x, y, NOTE_WIDTH, NOTE_HEIGHT, self.occupiedRects(), self._gap)
        return self.addNote(nx, ny, content if content else ELEMENT_PRESETS["note"]["text"])

    def _existing_ids(self) -> Set[str]:
        ids = {box.id for box in self._boxes}
        ids.update(note.id for note in self._notes)
        ids.update(conn.id for conn in self._connections)
        return ids

    def _without_known_ids(self, diff: BoardDiff) -> BoardDiff:
        """Drop diff elements whose id is already taken on the board or earlier in the diff."""
        seen = self._existing_ids()
        boxes: List[Box] = []
        for box in diff.add_boxes:
            if box.id not in seen:
                seen.add(box.id)
                boxes.append(box)
        notes: List[Note] = []
        for note in diff.add_notes:
            if note.id not in seen:
                seen.add(note.id)
                notes.append(note)
        connections: List[Connection] = []
        for conn in diff.add_connections:
            if conn.id not in seen:
                seen.add(conn.id)
                connections.append(conn)
        return BoardDiff(add_boxes=boxes, add_notes=notes, add_connections=connections)

    def placeDiff(self, diff: BoardDiff, gap: float = MIN_GAP) -> BoardDiff:
        """Return ``diff`` as it would be merged now, without touching the board."""
        return apply_min_gap_to_diff(self._without_known_ids(diff), self._boxes, self._notes, gap)

    def applyDiff(self, diff: BoardDiff) -> BoardDiff:
        """Merge ``diff`` into the board in a single transition.

        Returns:
            The diff that was actually appended: placed positions, with
            duplicate ids and unresolved connections removed.
        """
        placed = self.placeDiff(diff, self._gap)
        if placed.is_empty():
            return placed

        if placed.add_boxes:
            self._append_boxes(placed.add_boxes)
        self._notes.extend(placed.add_notes)
        self._connections.extend(placed.add_connections)

        if placed.add_boxes:
            self.boxesChanged.emit()
        if placed.add_notes:
            self.notesChanged.emit()
        if placed.add_connections:
            self.connectionsChanged.emit()
        self.boardChanged.emit()
        return placed
