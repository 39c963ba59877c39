"""Pending-diff preview mixin for BoardModel.

A preview shows a proposed diff as a ghost overlay. It is kept apart from
the board collections: setting, refreshing or discarding it never mutates
the board and never triggers an autosave.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .geometry import box_center
from .types import BoardDiff, Box

if TYPE_CHECKING:
    from .model import BoardModel


class PreviewMixin:
    """Mixin providing the ghost overlay of a pending diff.

    Note: the preview properties are defined in BoardModel since they need
    access to the signals defined there.
    """

    # Signals (will be defined in BoardModel)
    previewChanged: Signal
    boardChanged: Signal

    # Attributes expected from BoardModel
    _boxes: List[Box]
    _gap: float
    _preview_source: Optional[BoardDiff]
    _preview: Optional[BoardDiff]
    placeDiff: Callable[[BoardDiff, float], BoardDiff]
    applyDiff: Callable[[BoardDiff], BoardDiff]

    def _init_preview(self) -> None:
        """Initialize preview state. Call from BoardModel.__init__."""
        self._preview_source = None
        self._preview = None
        self.boardChanged.connect(self._refresh_preview)

    def _refresh_preview(self) -> None:
        if self._preview_source is None:
            return
        self._preview = self.placeDiff(self._preview_source, self._gap)
        self.previewChanged.emit()

    def setPreviewDiff(self, diff: Optional[BoardDiff]) -> None:
        """Show ``diff`` as a ghost overlay, placed as it would be merged now."""
        if diff is None:
            self.clearPreview()
            return
        self._preview_source = diff
        self._refresh_preview()

    def previewDiff(self) -> Optional[BoardDiff]:
        return self._preview

    def _get_has_preview(self) -> bool:
        return self._preview is not None

    @Slot()
    def clearPreview(self) -> None:
        if self._preview_source is None and self._preview is None:
            return
        self._preview_source = None
        self._preview = None
        self.previewChanged.emit()

    @Slot(result=bool)
    def acceptPreview(self) -> bool:
        """Merge the pending diff into the board and drop the preview."""
        source = self._preview_source
        if source is None:
            return False
        self._preview_source = None
        self._preview = None
        self.applyDiff(source)
        self.previewChanged.emit()
        return True

    def _get_preview_boxes(self) -> List[Dict[str, Any]]:
        if self._preview is None:
            return []
        return [box.to_dict() for box in self._preview.add_boxes]

    def _get_preview_notes(self) -> List[Dict[str, Any]]:
        if self._preview is None:
            return []
        return [note.to_dict() for note in self._preview.add_notes]

    def _get_preview_connections(self) -> List[Dict[str, Any]]:
        """Return preview connections with endpoints resolved to box centers.

        Endpoints are looked up among the preview's own boxes first, then
        among the boxes on the board.
        """
        if self._preview is None:
            return []
        lookup: Dict[str, Box] = {box.id: box for box in self._boxes}
        lookup.update({box.id: box for box in self._preview.add_boxes})

        result = []
        for conn in self._preview.add_connections:
            from_box = lookup.get(conn.from_id)
            to_box = lookup.get(conn.to_id)
            if from_box is None or to_box is None:
                continue
            x1, y1 = box_center(from_box)
            x2, y2 = box_center(to_box)
            result.append({
                "id": conn.id,
                "from": conn.from_id,
                "to": conn.to_id,
                "x1": x1,
                "y1": y1,
                "x2": x2,
                "y2": y2,
            })
        return result
