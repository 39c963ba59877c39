"""Pan and zoom state of the canvas.

The view maps screen pixels to world coordinates with
``world = (screen - offset) / scale``. The offset is unbounded; the scale
is always kept inside ``[MIN_SCALE, MAX_SCALE]``.
"""

from __future__ import annotations

from typing import Tuple

from PySide6.QtCore import Property, QObject, QPointF, Signal, Slot

from .constants import MAX_SCALE, MIN_SCALE, WHEEL_ZOOM_SENSITIVITY
from .geometry import clamp, screen_to_world, world_to_screen


class ViewTransform(QObject):
    """Pan offset and scale factor of the canvas, with zoom-to-cursor."""

    changed = Signal()

    def __init__(
        self,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._min_scale = min_scale
        self._max_scale = max_scale
        self._offset_x = 0.0
        self._offset_y = 0.0
        self._scale = clamp(1.0, min_scale, max_scale)

    # --- Properties exposed to QML -----------------------------------------
    @Property(float, notify=changed)
    def offsetX(self) -> float:
        return self._offset_x

    @Property(float, notify=changed)
    def offsetY(self) -> float:
        return self._offset_y

    @Property(float, notify=changed)
    def scale(self) -> float:
        return self._scale

    @Property(float, constant=True)
    def minScale(self) -> float:
        return self._min_scale

    @Property(float, constant=True)
    def maxScale(self) -> float:
        return self._max_scale

    # --- Coordinate mapping -------------------------------------------------
    def to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return screen_to_world(sx, sy, self._offset_x, self._offset_y, self._scale)

    def to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        return world_to_screen(wx, wy, self._offset_x, self._offset_y, self._scale)

    @Slot(float, float, result=QPointF)
    def toWorld(self, sx: float, sy: float) -> QPointF:
        return QPointF(*self.to_world(sx, sy))

    @Slot(float, float, result=QPointF)
    def toScreen(self, wx: float, wy: float) -> QPointF:
        return QPointF(*self.to_screen(wx, wy))

    # --- Mutation -----------------------------------------------------------
    def _update(self, offset_x: float, offset_y: float, scale: float) -> None:
        if (offset_x, offset_y, scale) == (self._offset_x, self._offset_y, self._scale):
            return
        self._offset_x = offset_x
        self._offset_y = offset_y
        self._scale = scale
        self.changed.emit()

    @Slot(float, float)
    def setOffset(self, x: float, y: float) -> None:
        self._update(x, y, self._scale)

    @Slot(float, float)
    def pan(self, dx: float, dy: float) -> None:
        """Shift the view by a screen-space delta. The scale is unchanged."""
        self._update(self._offset_x + dx, self._offset_y + dy, self._scale)

    @Slot(float, float, float)
    def zoomAt(self, sx: float, sy: float, factor: float) -> None:
        """Scale by ``factor`` keeping the world point under ``(sx, sy)`` fixed."""
        next_scale = clamp(self._scale * factor, self._min_scale, self._max_scale)
        wx, wy = self.to_world(sx, sy)
        self._update(sx - wx * next_scale, sy - wy * next_scale, next_scale)

    @Slot(float, float, float, float, bool)
    def wheel(self, sx: float, sy: float, delta_x: float, delta_y: float, ctrl: bool) -> None:
        """Zoom to the cursor with ctrl held, pan by the wheel deltas otherwise."""
        if ctrl:
            self.zoomAt(sx, sy, 1.0 - delta_y * WHEEL_ZOOM_SENSITIVITY)
            return
        self.pan(-delta_x, -delta_y)

    @Slot()
    def reset(self) -> None:
        self._update(0.0, 0.0, clamp(1.0, self._min_scale, self._max_scale))
