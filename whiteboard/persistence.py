"""Board persistence for Whiteboard.

A board is stored as one JSON document per board id::

    {"id": ..., "name": ..., "data": {"boxes", "connections", "notes"},
     "updated_at": ...}

``BoardSession`` ties a store to a BoardModel: it loads the board once at
startup and saves it again after every burst of edits.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, TYPE_CHECKING

from PySide6.QtCore import Property, QObject, QTimer, Signal, Slot

from .constants import AUTOSAVE_DELAY_MS, DEFAULT_BOARD_NAME
from .geometry import to_number
from .types import BoardSnapshot, Box, Connection, Note

if TYPE_CHECKING:
    from .model import BoardModel

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """Raised when stored board data does not have the shape of a board."""


class StoreError(Exception):
    """Raised when a board cannot be read from or written to storage."""


def _entries(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"{key} must be a list")
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise SnapshotError(f"{key}[{index}] must be an object")
        if not isinstance(entry.get("id"), str) or not entry["id"]:
            raise SnapshotError(f"{key}[{index}] has no id")
    return value


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def snapshot_from_dict(data: Any) -> BoardSnapshot:
    """Build a snapshot from stored data.

    Positions that are missing or not finite become 0. Boxes saved by
    older versions carry their label under ``title`` instead of ``text``.

    Raises:
        SnapshotError: If ``data`` is not a board.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Board data must be an object")

    boxes = []
    for entry in _entries(data, "boxes"):
        text = entry["text"] if isinstance(entry.get("text"), str) else _text(entry.get("title"))
        boxes.append(Box(entry["id"], to_number(entry.get("x")), to_number(entry.get("y")), text))

    notes = [
        Note(entry["id"], to_number(entry.get("x")), to_number(entry.get("y")), _text(entry.get("content")))
        for entry in _entries(data, "notes")
    ]

    connections = []
    for index, entry in enumerate(_entries(data, "connections")):
        from_id = entry.get("from")
        to_id = entry.get("to")
        if not isinstance(from_id, str) or not isinstance(to_id, str):
            raise SnapshotError(f"connections[{index}] needs string endpoints")
        connections.append(Connection(entry["id"], from_id, to_id))

    return BoardSnapshot(boxes=boxes, connections=connections, notes=notes)


class BoardStore(Protocol):
    """Where boards live between sessions."""

    def load(self, board_id: str) -> Optional[BoardSnapshot]:
        ...

    def save(self, board_id: str, snapshot: BoardSnapshot, updated_at: str) -> None:
        ...


class JsonBoardStore:
    """Stores each board as ``<root>/boards/<board_id>.json``."""

    def __init__(self, root: os.PathLike | str, name: str = DEFAULT_BOARD_NAME):
        self._dir = Path(root) / "boards"
        self._name = name

    def path_for(self, board_id: str) -> Path:
        if not board_id or "/" in board_id or "\\" in board_id or board_id in (".", ".."):
            raise StoreError(f"Invalid board id: {board_id!r}")
        return self._dir / f"{board_id}.json"

    def load(self, board_id: str) -> Optional[BoardSnapshot]:
        """Return the stored snapshot, or None when the board was never saved."""
        path = self.path_for(board_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Board file is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreError(f"Failed to read board: {e}") from e

        if not isinstance(document, dict):
            raise SnapshotError("Board file must contain an object")
        return snapshot_from_dict(document.get("data") or {})

    def save(self, board_id: str, snapshot: BoardSnapshot, updated_at: str) -> None:
        """Insert or replace the stored board."""
        path = self.path_for(board_id)
        document = {
            "id": board_id,
            "name": self._name,
            "data": snapshot.to_dict(),
            "updated_at": updated_at,
        }
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f"Failed to save board: {e}") from e


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class BoardSession(QObject):
    """Loads a board into a model and autosaves it after edits.

    Saves are debounced: each board change restarts a single-shot timer and
    the board is written once the edits have been quiet for ``delay_ms``.
    Nothing is saved until the initial load has finished, and never without
    a board id. Failures are logged and reported via ``errorOccurred``; the
    in-memory board is left as it is.
    """

    saveCompleted = Signal(str)  # Emitted with the board id after a save
    loadCompleted = Signal(str)  # Emitted with the board id after a load
    errorOccurred = Signal(str)  # Emitted with an error message on failure
    loadingChanged = Signal()

    def __init__(
        self,
        store: BoardStore,
        board_id: str,
        model: "BoardModel",
        delay_ms: int = AUTOSAVE_DELAY_MS,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._store = store
        self._board_id = board_id
        self._model = model
        self._loading = False
        self._loaded = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self.save)

        model.boardChanged.connect(self._on_board_changed)

    @Property(bool, notify=loadingChanged)
    def isLoading(self) -> bool:
        return self._loading

    @Property(str, constant=True)
    def boardId(self) -> str:
        return self._board_id

    @property
    def save_pending(self) -> bool:
        return self._timer.isActive()

    def _set_loading(self, value: bool) -> None:
        if self._loading != value:
            self._loading = value
            self.loadingChanged.emit()

    def _on_board_changed(self) -> None:
        if self._loading or not self._loaded or not self._board_id:
            return
        self._timer.start()

    @Slot()
    def load(self) -> None:
        """Replace the model's board with the stored one, if any.

        When nothing is stored the model keeps what it shows, normally the
        default board.
        """
        if not self._board_id:
            self.errorOccurred.emit("No board id specified")
            return

        self._set_loading(True)
        try:
            snapshot = self._store.load(self._board_id)
            if snapshot is not None:
                self._model.loadSnapshot(snapshot)
            self._loaded = True
            logger.info("Loaded board %s", self._board_id)
            self.loadCompleted.emit(self._board_id)
        except (StoreError, SnapshotError) as e:
            error_msg = f"Failed to load board: {e}"
            logger.error(error_msg)
            self.errorOccurred.emit(error_msg)
            # Keep the local board editable; later edits still save.
            self._loaded = True
        finally:
            self._set_loading(False)

    @Slot()
    def save(self) -> None:
        self._timer.stop()
        if not self._loaded or not self._board_id:
            return
        try:
            self._store.save(self._board_id, self._model.snapshot(), utc_timestamp())
            logger.debug("Saved board %s", self._board_id)
            self.saveCompleted.emit(self._board_id)
        except StoreError as e:
            error_msg = f"Failed to save board: {e}"
            logger.error(error_msg)
            self.errorOccurred.emit(error_msg)

    @Slot()
    def flush(self) -> None:
        """Save now if an autosave is pending."""
        if self._timer.isActive():
            self.save()
