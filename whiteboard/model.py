"""Core BoardModel class for Whiteboard.

This module provides the Qt model holding the boxes, notes and connections
of one board.
"""

from __future__ import annotations

from itertools import count
from typing import Any, Dict, List, Optional, Tuple

from PySide6.QtCore import (
    QAbstractListModel,
    QModelIndex,
    Property,
    Qt,
    Signal,
    Slot,
)

from .constants import BOX_HEIGHT, BOX_WIDTH, DEFAULT_BOARD, MIN_GAP
from .geometry import box_center, box_rect, note_rect, rect_contains
from .layout import LayoutMixin
from .notes import NotesMixin
from .preview import PreviewMixin
from .types import BoardSnapshot, Box, Connection, ElementKind, Note


class BoardModel(
    NotesMixin,
    LayoutMixin,
    PreviewMixin,
    QAbstractListModel,
):
    """Qt model exposing the boxes of a board to QML.

    Notes and connections are exposed as list properties. Every mutation
    emits ``boardChanged`` exactly once, after the collections are updated.
    """

    IdRole = Qt.UserRole + 1
    TextRole = Qt.UserRole + 2
    XRole = Qt.UserRole + 3
    YRole = Qt.UserRole + 4
    WidthRole = Qt.UserRole + 5
    HeightRole = Qt.UserRole + 6

    boxesChanged = Signal()
    notesChanged = Signal()
    connectionsChanged = Signal()
    boardChanged = Signal()
    previewChanged = Signal()

    def __init__(self, gap: float = MIN_GAP):
        super().__init__()
        self._boxes: List[Box] = []
        self._connections: List[Connection] = []
        self._gap = gap
        self._id_source = count()

        # Initialize mixins
        self._init_notes()
        self._init_preview()

    @classmethod
    def with_default_board(cls, gap: float = MIN_GAP) -> "BoardModel":
        """Return a model seeded with the starter architecture diagram."""
        model = cls(gap=gap)
        model.from_dict(DEFAULT_BOARD)
        return model

    def _all_ids(self) -> set:
        ids = {box.id for box in self._boxes}
        ids.update(note.id for note in self._notes)
        ids.update(conn.id for conn in self._connections)
        return ids

    def _next_id(self, prefix: str) -> str:
        taken = self._all_ids()
        while True:
            candidate = f"{prefix}_{next(self._id_source)}"
            if candidate not in taken:
                return candidate

    def _append_boxes(self, boxes: List[Box]) -> None:
        first = len(self._boxes)
        self.beginInsertRows(QModelIndex(), first, first + len(boxes) - 1)
        self._boxes.extend(boxes)
        self.endInsertRows()

    def _boxes_changed(self) -> None:
        self.boxesChanged.emit()
        self.boardChanged.emit()

    def _row_of(self, box_id: str) -> int:
        for row, box in enumerate(self._boxes):
            if box.id == box_id:
                return row
        return -1

    # --- Qt model overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._boxes)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._boxes)):
            return None

        box = self._boxes[index.row()]
        if role == self.IdRole:
            return box.id
        if role in (self.TextRole, Qt.DisplayRole):
            return box.text
        if role == self.XRole:
            return box.x
        if role == self.YRole:
            return box.y
        if role == self.WidthRole:
            return BOX_WIDTH
        if role == self.HeightRole:
            return BOX_HEIGHT
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.IdRole: b"boxId",
            self.TextRole: b"text",
            self.XRole: b"x",
            self.YRole: b"y",
            self.WidthRole: b"width",
            self.HeightRole: b"height",
        }

    # --- Properties exposed to QML -----------------------------------------
    @Property(int, notify=boxesChanged)
    def boxCount(self) -> int:
        return len(self._boxes)

    @Property(list, notify=connectionsChanged)
    def connections(self) -> List[Dict[str, str]]:
        return [conn.to_dict() for conn in self._connections]

    @Property(list, notify=boardChanged)
    def connectionLines(self) -> List[Dict[str, Any]]:
        """Connections whose endpoints both exist, with box-center coordinates."""
        lookup = {box.id: box for box in self._boxes}
        lines = []
        for conn in self._connections:
            from_box = lookup.get(conn.from_id)
            to_box = lookup.get(conn.to_id)
            if from_box is None or to_box is None:
                continue
            x1, y1 = box_center(from_box)
            x2, y2 = box_center(to_box)
            lines.append({"id": conn.id, "x1": x1, "y1": y1, "x2": x2, "y2": y2})
        return lines

    @Property(list, notify=notesChanged)
    def notes(self) -> List[Dict[str, Any]]:
        return self._get_notes()

    @Property(bool, notify=previewChanged)
    def hasPreview(self) -> bool:
        return self._get_has_preview()

    @Property(list, notify=previewChanged)
    def previewBoxes(self) -> List[Dict[str, Any]]:
        return self._get_preview_boxes()

    @Property(list, notify=previewChanged)
    def previewNotes(self) -> List[Dict[str, Any]]:
        return self._get_preview_notes()

    @Property(list, notify=previewChanged)
    def previewConnections(self) -> List[Dict[str, Any]]:
        return self._get_preview_connections()

    # --- Box management -----------------------------------------------------
    @Slot(float, float, str, result=str)
    def addBox(self, x: float, y: float, text: str = "") -> str:
        box = Box(id=self._next_id("box"), x=x, y=y, text=text)
        self._append_boxes([box])
        self._boxes_changed()
        return box.id

    @Slot(str, float, float)
    def moveBox(self, box_id: str, x: float, y: float) -> None:
        row = self._row_of(box_id)
        if row < 0:
            return
        box = self._boxes[row]
        if box.x == x and box.y == y:
            return
        box.x = x
        box.y = y
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, [self.XRole, self.YRole])
        self._boxes_changed()

    @Slot(str, str)
    def setBoxText(self, box_id: str, text: str) -> None:
        row = self._row_of(box_id)
        if row < 0:
            return
        box = self._boxes[row]
        if box.text == text:
            return
        box.text = text
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, [self.TextRole])
        self._boxes_changed()

    @Slot(str, result=bool)
    def removeBox(self, box_id: str) -> bool:
        """Remove a box and every connection that starts or ends at it."""
        row = self._row_of(box_id)
        if row < 0:
            return False

        filtered = [conn for conn in self._connections if conn.from_id != box_id and conn.to_id != box_id]
        edges_removed = len(filtered) != len(self._connections)
        self._connections = filtered

        self.beginRemoveRows(QModelIndex(), row, row)
        self._boxes.pop(row)
        self.endRemoveRows()

        self.boxesChanged.emit()
        if edges_removed:
            self.connectionsChanged.emit()
        self.boardChanged.emit()
        return True

    # --- Connection management ----------------------------------------------
    @Slot(str, str, result=str)
    def addConnection(self, from_id: str, to_id: str) -> str:
        """Connect two boxes. Returns the new id, or "" when nothing was added."""
        if self.getBox(from_id) is None or self.getBox(to_id) is None:
            return ""
        for conn in self._connections:
            if conn.from_id == from_id and conn.to_id == to_id:
                return ""
        conn = Connection(id=self._next_id("conn"), from_id=from_id, to_id=to_id)
        self._connections.append(conn)
        self.connectionsChanged.emit()
        self.boardChanged.emit()
        return conn.id

    @Slot(str, result=bool)
    def removeConnection(self, connection_id: str) -> bool:
        for idx, conn in enumerate(self._connections):
            if conn.id == connection_id:
                self._connections.pop(idx)
                self.connectionsChanged.emit()
                self.boardChanged.emit()
                return True
        return False

    # --- Generic element access ---------------------------------------------
    def kindOf(self, element_id: str) -> Optional[ElementKind]:
        if self.getBox(element_id) is not None:
            return ElementKind.BOX
        if self.getNote(element_id) is not None:
            return ElementKind.NOTE
        if self.getConnection(element_id) is not None:
            return ElementKind.CONNECTION
        return None

    @Slot(str, result=bool)
    def removeElement(self, element_id: str) -> bool:
        kind = self.kindOf(element_id)
        if kind is ElementKind.BOX:
            return self.removeBox(element_id)
        if kind is ElementKind.NOTE:
            return self.removeNote(element_id)
        if kind is ElementKind.CONNECTION:
            return self.removeConnection(element_id)
        return False

    @Slot(str, float, float)
    def moveElement(self, element_id: str, x: float, y: float) -> None:
        kind = self.kindOf(element_id)
        if kind is ElementKind.BOX:
            self.moveBox(element_id, x, y)
        elif kind is ElementKind.NOTE:
            self.moveNote(element_id, x, y)

    @Slot()
    def clear(self) -> None:
        """Remove every box, note and connection."""
        if not (self._boxes or self._notes or self._connections):
            return
        self.beginResetModel()
        self._boxes = []
        self.endResetModel()
        self._notes = []
        self._connections = []
        self.boxesChanged.emit()
        self.notesChanged.emit()
        self.connectionsChanged.emit()
        self.boardChanged.emit()

    # --- Queries ------------------------------------------------------------
    def getBox(self, box_id: str) -> Optional[Box]:
        for box in self._boxes:
            if box.id == box_id:
                return box
        return None

    def getConnection(self, connection_id: str) -> Optional[Connection]:
        for conn in self._connections:
            if conn.id == connection_id:
                return conn
        return None

    def elementAt(self, x: float, y: float) -> Optional[Tuple[ElementKind, str]]:
        """Return the topmost element under a world point.

        Notes render above boxes and later elements above earlier ones.
        """
        for note in reversed(self._notes):
            if rect_contains(note_rect(note), x, y):
                return ElementKind.NOTE, note.id
        for box in reversed(self._boxes):
            if rect_contains(box_rect(box), x, y):
                return ElementKind.BOX, box.id
        return None

    @Slot(float, float, result=str)
    def elementIdAt(self, x: float, y: float) -> str:
        hit = self.elementAt(x, y)
        return hit[1] if hit else ""

    @Property(list, notify=boxesChanged)
    def boxes(self) -> List[Dict[str, Any]]:
        return [box.to_dict() for box in self._boxes]

    # --- Snapshots ----------------------------------------------------------
    def snapshot(self) -> BoardSnapshot:
        """Return a copy of the current board state."""
        return BoardSnapshot(
            boxes=[Box(b.id, b.x, b.y, b.text) for b in self._boxes],
            connections=[Connection(c.id, c.from_id, c.to_id) for c in self._connections],
            notes=[Note(n.id, n.x, n.y, n.content) for n in self._notes],
        )

    def loadSnapshot(self, snapshot: BoardSnapshot) -> None:
        """Replace the whole board with ``snapshot``."""
        self.beginResetModel()
        self._boxes = [Box(b.id, b.x, b.y, b.text) for b in snapshot.boxes]
        self.endResetModel()
        self._notes = [Note(n.id, n.x, n.y, n.content) for n in snapshot.notes]
        self._connections = [Connection(c.id, c.from_id, c.to_id) for c in snapshot.connections]
        self._id_source = count()

        self.boxesChanged.emit()
        self.notesChanged.emit()
        self.connectionsChanged.emit()
        self.boardChanged.emit()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the board to a dictionary for saving."""
        return self.snapshot().to_dict()

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Load the board from a dictionary.

        Raises:
            SnapshotError: If ``data`` does not have the shape of a board.
        """
        from .persistence import snapshot_from_dict

        self.loadSnapshot(snapshot_from_dict(data))
