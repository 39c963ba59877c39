"""Pointer and keyboard interaction for the canvas.

The controller turns raw input from the QML scene into board edits. Its
mode is a single value of one of the state classes below, so combinations
such as dragging while editing cannot be represented. Selection is kept
next to the mode and names at most one element.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from PySide6.QtCore import Property, QObject, Qt, Signal, Slot

from .constants import BOX_HEIGHT, BOX_WIDTH, NOTE_HEIGHT, NOTE_WIDTH
from .model import BoardModel
from .types import ElementKind
from .view import ViewTransform

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int:
    """Qt enums arrive from QML as ints and from Python as enum members."""
    return int(getattr(value, "value", value))


LEFT_BUTTON = _as_int(Qt.LeftButton)
MIDDLE_BUTTON = _as_int(Qt.MiddleButton)

KEY_ESCAPE = _as_int(Qt.Key_Escape)
KEY_DELETE = _as_int(Qt.Key_Delete)
KEY_BACKSPACE = _as_int(Qt.Key_Backspace)
KEY_RETURN = _as_int(Qt.Key_Return)
KEY_ENTER = _as_int(Qt.Key_Enter)
KEY_SPACE = _as_int(Qt.Key_Space)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    element_id: str
    kind: ElementKind
    grab_dx: float
    grab_dy: float


@dataclass(frozen=True)
class Connecting:
    pending_from: Optional[str] = None


@dataclass(frozen=True)
class Panning:
    start_x: float
    start_y: float
    start_offset_x: float
    start_offset_y: float
    # Mode to return to on release, set when a pan interrupts connect mode.
    resume: Optional[Connecting] = None


@dataclass(frozen=True)
class EditingBoxText:
    box_id: str
    buffer: str


@dataclass(frozen=True)
class EditingNoteText:
    note_id: str
    buffer: str


Mode = Union[Idle, Dragging, Connecting, Panning, EditingBoxText, EditingNoteText]


@dataclass(frozen=True)
class Selection:
    kind: ElementKind
    element_id: str


MODE_NAMES = {
    Idle: "idle",
    Dragging: "dragging",
    Connecting: "connecting",
    Panning: "panning",
    EditingBoxText: "editingBox",
    EditingNoteText: "editingNote",
}


class InteractionController(QObject):
    """Routes canvas input to the board model and the view transform.

    All coordinates passed to the slots are screen coordinates relative to
    the canvas. They are mapped to world coordinates through the view, so
    dragging stays under the pointer at any zoom level.
    """

    modeChanged = Signal()
    selectionChanged = Signal()
    editTextChanged = Signal()

    def __init__(self, model: BoardModel, view: ViewTransform, parent: QObject | None = None):
        super().__init__(parent)
        self._model = model
        self._view = view
        self._mode: Mode = Idle()
        self._selection: Optional[Selection] = None
        self._pan_key_held = False
        model.boardChanged.connect(self._prune_missing)

    # --- State access -------------------------------------------------------
    @property
    def state(self) -> Mode:
        return self._mode

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    def _set_mode(self, mode: Mode) -> None:
        if mode == self._mode:
            return
        previous = self._mode
        self._mode = mode
        self.modeChanged.emit()
        if self._edit_buffer(previous) != self._edit_buffer(mode):
            self.editTextChanged.emit()

    def _set_selection(self, selection: Optional[Selection]) -> None:
        if selection == self._selection:
            return
        self._selection = selection
        self.selectionChanged.emit()

    def _select(self, kind: ElementKind, element_id: str) -> None:
        self._set_selection(Selection(kind, element_id))

    @staticmethod
    def _edit_buffer(mode: Mode) -> Optional[str]:
        if isinstance(mode, (EditingBoxText, EditingNoteText)):
            return mode.buffer
        return None

    def _selected_id(self, kind: ElementKind) -> str:
        if self._selection is not None and self._selection.kind is kind:
            return self._selection.element_id
        return ""

    def _editing_id(self) -> str:
        if isinstance(self._mode, EditingBoxText):
            return self._mode.box_id
        if isinstance(self._mode, EditingNoteText):
            return self._mode.note_id
        return ""

    def _prune_missing(self) -> None:
        """Drop references to elements that are no longer on the board."""
        if self._selection is not None and self._model.kindOf(self._selection.element_id) is None:
            self._set_selection(None)

        mode = self._mode
        if isinstance(mode, Dragging) and self._model.kindOf(mode.element_id) is None:
            self._set_mode(Idle())
        elif isinstance(mode, EditingBoxText) and self._model.getBox(mode.box_id) is None:
            self._set_mode(Idle())
        elif isinstance(mode, EditingNoteText) and self._model.getNote(mode.note_id) is None:
            self._set_mode(Idle())
        elif isinstance(mode, Connecting) and mode.pending_from:
            if self._model.getBox(mode.pending_from) is None:
                self._set_mode(Connecting())

    # --- Properties exposed to QML -----------------------------------------
    @Property(str, notify=modeChanged)
    def mode(self) -> str:
        return MODE_NAMES[type(self._mode)]

    @Property(bool, notify=modeChanged)
    def connectMode(self) -> bool:
        if isinstance(self._mode, Panning):
            return self._mode.resume is not None
        return isinstance(self._mode, Connecting)

    @Property(str, notify=modeChanged)
    def connectFrom(self) -> str:
        mode = self._mode
        if isinstance(mode, Panning) and mode.resume is not None:
            mode = mode.resume
        if isinstance(mode, Connecting):
            return mode.pending_from or ""
        return ""

    @Property(str, notify=selectionChanged)
    def selectedBoxId(self) -> str:
        return self._selected_id(ElementKind.BOX)

    @Property(str, notify=selectionChanged)
    def selectedNoteId(self) -> str:
        return self._selected_id(ElementKind.NOTE)

    @Property(str, notify=selectionChanged)
    def selectedConnectionId(self) -> str:
        return self._selected_id(ElementKind.CONNECTION)

    @Property(str, notify=modeChanged)
    def editingBoxId(self) -> str:
        return self._mode.box_id if isinstance(self._mode, EditingBoxText) else ""

    @Property(str, notify=modeChanged)
    def editingNoteId(self) -> str:
        return self._mode.note_id if isinstance(self._mode, EditingNoteText) else ""

    @Property(str, notify=editTextChanged)
    def editText(self) -> str:
        return self._edit_buffer(self._mode) or ""

    @Property(bool, notify=modeChanged)
    def isDragging(self) -> bool:
        return isinstance(self._mode, Dragging)

    @Property(bool, notify=modeChanged)
    def isPanning(self) -> bool:
        return isinstance(self._mode, Panning)

    @Property(str, notify=modeChanged)
    def statusText(self) -> str:
        if self.connectMode:
            if self.connectFrom:
                return "Click another box to connect"
            return "Click a box to start connection"
        if isinstance(self._mode, (EditingBoxText, EditingNoteText)):
            return "Enter to save, Esc to cancel"
        return ""

    # --- Pointer presses ----------------------------------------------------
    def _start_drag(self, kind: ElementKind, element_id: str, sx: float, sy: float) -> None:
        if kind is ElementKind.BOX:
            element = self._model.getBox(element_id)
        else:
            element = self._model.getNote(element_id)
        if element is None:
            return
        wx, wy = self._view.to_world(sx, sy)
        self._set_mode(Dragging(element_id, kind, wx - element.x, wy - element.y))

    def _connect_to(self, box_id: str) -> None:
        assert isinstance(self._mode, Connecting)
        pending = self._mode.pending_from
        if pending is None:
            self._set_mode(Connecting(box_id))
            return
        if pending != box_id:
            conn_id = self._model.addConnection(pending, box_id)
            if conn_id:
                logger.debug("Connected %s -> %s as %s", pending, box_id, conn_id)
        self._set_mode(Idle())

    @Slot(str, float, float, int)
    def pressBox(self, box_id: str, x: float, y: float, button: Any = LEFT_BUTTON) -> None:
        if self._model.getBox(box_id) is None:
            return
        self.commitEdit()
        if isinstance(self._mode, Connecting):
            self._connect_to(box_id)
            return
        self._select(ElementKind.BOX, box_id)
        if _as_int(button) == LEFT_BUTTON:
            self._start_drag(ElementKind.BOX, box_id, x, y)

    @Slot(str, float, float, int)
    def pressNote(self, note_id: str, x: float, y: float, button: Any = LEFT_BUTTON) -> None:
        if self._model.getNote(note_id) is None:
            return
        self.commitEdit()
        self._select(ElementKind.NOTE, note_id)
        if isinstance(self._mode, Connecting):
            return
        if _as_int(button) == LEFT_BUTTON:
            self._start_drag(ElementKind.NOTE, note_id, x, y)

    @Slot(str)
    def pressConnection(self, connection_id: str) -> None:
        if self._model.getConnection(connection_id) is None:
            return
        self.commitEdit()
        if isinstance(self._mode, Connecting):
            return
        self._select(ElementKind.CONNECTION, connection_id)

    @Slot(float, float, int)
    def pressBackground(self, x: float, y: float, button: Any = LEFT_BUTTON) -> None:
        self.commitEdit()
        if _as_int(button) == MIDDLE_BUTTON or self._pan_key_held:
            resume = self._mode if isinstance(self._mode, Connecting) else None
            self._set_mode(Panning(x, y, self._view.offsetX, self._view.offsetY, resume))
            return
        self._set_selection(None)

    @Slot()
    def pressOutside(self) -> None:
        """A press outside the canvas blurs the active text input."""
        self.commitEdit()

    # --- Pointer motion -----------------------------------------------------
    @Slot(float, float)
    def move(self, x: float, y: float) -> None:
        mode = self._mode
        if isinstance(mode, Dragging):
            wx, wy = self._view.to_world(x, y)
            self._model.moveElement(mode.element_id, wx - mode.grab_dx, wy - mode.grab_dy)
        elif isinstance(mode, Panning):
            self._view.setOffset(
                mode.start_offset_x + (x - mode.start_x),
                mode.start_offset_y + (y - mode.start_y),
            )

    @Slot()
    def release(self) -> None:
        mode = self._mode
        if isinstance(mode, Dragging):
            self._set_mode(Idle())
        elif isinstance(mode, Panning):
            self._set_mode(mode.resume if mode.resume is not None else Idle())

    @Slot()
    def leave(self) -> None:
        self.release()

    # --- Text editing -------------------------------------------------------
    @Slot(str)
    def doubleClickBox(self, box_id: str) -> None:
        if isinstance(self._mode, Connecting):
            return
        box = self._model.getBox(box_id)
        if box is None:
            return
        self.commitEdit()
        self._select(ElementKind.BOX, box_id)
        self._set_mode(EditingBoxText(box_id, box.text))

    @Slot(str)
    def doubleClickNote(self, note_id: str) -> None:
        if isinstance(self._mode, Connecting):
            return
        note = self._model.getNote(note_id)
        if note is None:
            return
        self.commitEdit()
        self._select(ElementKind.NOTE, note_id)
        self._set_mode(EditingNoteText(note_id, note.content))

    @Slot(str)
    def setEditText(self, text: str) -> None:
        mode = self._mode
        if isinstance(mode, EditingBoxText):
            self._set_mode(EditingBoxText(mode.box_id, text))
        elif isinstance(mode, EditingNoteText):
            self._set_mode(EditingNoteText(mode.note_id, text))

    @Slot()
    def commitEdit(self) -> None:
        """Write the trimmed buffer back to the element being edited."""
        mode = self._mode
        if isinstance(mode, EditingBoxText):
            self._set_mode(Idle())
            self._model.setBoxText(mode.box_id, mode.buffer.strip())
        elif isinstance(mode, EditingNoteText):
            self._set_mode(Idle())
            self._model.setNoteText(mode.note_id, mode.buffer.strip())

    @Slot()
    def cancelEdit(self) -> None:
        if isinstance(self._mode, (EditingBoxText, EditingNoteText)):
            self._set_mode(Idle())

    # --- Keyboard -----------------------------------------------------------
    @Slot(int)
    def keyPress(self, key: Any) -> None:
        key = _as_int(key)
        editing = isinstance(self._mode, (EditingBoxText, EditingNoteText))

        if key == KEY_ESCAPE:
            if editing:
                self.cancelEdit()
                return
            self._set_selection(None)
            if self.connectMode:
                self._set_mode(Idle())
        elif key in (KEY_RETURN, KEY_ENTER):
            if editing:
                self.commitEdit()
        elif key in (KEY_DELETE, KEY_BACKSPACE):
            self.deleteSelected()
        elif key == KEY_SPACE and not editing:
            self._pan_key_held = True

    @Slot(int)
    def keyRelease(self, key: Any) -> None:
        if _as_int(key) == KEY_SPACE:
            self._pan_key_held = False

    @Slot(result=bool)
    def deleteSelected(self) -> bool:
        """Delete the selected element unless it is being edited."""
        selection = self._selection
        if selection is None:
            return False
        if selection.element_id == self._editing_id():
            return False
        removed = self._model.removeElement(selection.element_id)
        self._set_selection(None)
        return removed

    # --- Wheel and commands -------------------------------------------------
    @Slot(float, float, float, float, bool)
    def wheel(self, x: float, y: float, delta_x: float, delta_y: float, ctrl: bool) -> None:
        self._view.wheel(x, y, delta_x, delta_y, ctrl)

    @Slot()
    def toggleConnectMode(self) -> None:
        self.commitEdit()
        if self.connectMode:
            self._set_mode(Idle())
        else:
            self._set_mode(Connecting())

    @Slot(float, float, result=str)
    def createBox(self, x: float, y: float) -> str:
        """Add a box centered near the screen point, clear of other elements."""
        self.commitEdit()
        wx, wy = self._view.to_world(x, y)
        box_id = self._model.addBoxInOpenSpot(wx - BOX_WIDTH / 2, wy - BOX_HEIGHT / 2, "")
        self._select(ElementKind.BOX, box_id)
        return box_id

    @Slot(float, float, result=str)
    def createNote(self, x: float, y: float) -> str:
        """Add a note centered near the screen point, clear of other elements."""
        self.commitEdit()
        wx, wy = self._view.to_world(x, y)
        note_id = self._model.addNoteInOpenSpot(wx - NOTE_WIDTH / 2, wy - NOTE_HEIGHT / 2, "")
        self._select(ElementKind.NOTE, note_id)
        return note_id

    @Slot()
    def clearCanvas(self) -> None:
        self._set_mode(Idle())
        self._set_selection(None)
        self._model.clear()
