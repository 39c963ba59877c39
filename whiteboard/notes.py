"""Sticky note operations mixin for BoardModel.

Notes are free-floating annotations. They take part in placement but are
never connection endpoints, so removing one has no cascade.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .types import Note

if TYPE_CHECKING:
    from .model import BoardModel


class NotesMixin:
    """Mixin providing note operations.

    Note: the ``notes`` property is defined in BoardModel since it needs
    access to the signals defined there.
    """

    # Signals (will be defined in BoardModel)
    notesChanged: Signal
    boardChanged: Signal

    # Attributes expected from BoardModel
    _notes: List[Note]
    _next_id: Callable[[str], str]

    def _init_notes(self) -> None:
        """Initialize note state. Call from BoardModel.__init__."""
        self._notes = []

    def _notes_changed(self) -> None:
        self.notesChanged.emit()
        self.boardChanged.emit()

    def _get_notes(self) -> List[Dict[str, Any]]:
        return [note.to_dict() for note in self._notes]

    def getNote(self, note_id: str) -> Optional[Note]:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    @Slot(float, float, str, result=str)
    def addNote(self, x: float, y: float, content: str = "") -> str:
        note = Note(id=self._next_id("note"), x=x, y=y, content=content)
        self._notes.append(note)
        self._notes_changed()
        return note.id

    @Slot(str, result=bool)
    def removeNote(self, note_id: str) -> bool:
        for idx, note in enumerate(self._notes):
            if note.id == note_id:
                self._notes.pop(idx)
                self._notes_changed()
                return True
        return False

    @Slot(str, str)
    def setNoteText(self, note_id: str, content: str) -> None:
        note = self.getNote(note_id)
        if note is None or note.content == content:
            return
        note.content = content
        self._notes_changed()

    @Slot(str, float, float)
    def moveNote(self, note_id: str, x: float, y: float) -> None:
        note = self.getNote(note_id)
        if note is None or (note.x == x and note.y == y):
            return
        note.x = x
        note.y = y
        self._notes_changed()
