"""Geometry helpers shared by the placement solver and the canvas.

All functions here are pure and total: malformed numbers are coerced,
never raised.
"""

from __future__ import annotations

import math
from typing import Any, Tuple

from .constants import BOX_HEIGHT, BOX_WIDTH, NOTE_HEIGHT, NOTE_WIDTH
from .types import Box, Note, Rect


def to_number(value: Any, fallback: float = 0.0) -> float:
    """Coerce an externally supplied value to a finite float.

    Numbers and numeric strings are accepted. Booleans, ``None``,
    unparsable strings and non-finite values yield ``fallback``.
    """
    if isinstance(value, bool) or value is None:
        return fallback
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return fallback
    return number if math.isfinite(number) else fallback


def rects_overlap_with_gap(a: Rect, b: Rect, gap: float) -> bool:
    """Return True when ``a`` and ``b`` are closer than ``gap`` on both axes."""
    return (
        a.x < b.x + b.w + gap
        and a.x + a.w + gap > b.x
        and a.y < b.y + b.h + gap
        and a.y + a.h + gap > b.y
    )


def rect_contains(rect: Rect, x: float, y: float, margin: float = 0.0) -> bool:
    return (
        rect.x - margin <= x <= rect.x + rect.w + margin
        and rect.y - margin <= y <= rect.y + rect.h + margin
    )


def box_rect(box: Box) -> Rect:
    return Rect(box.x, box.y, BOX_WIDTH, BOX_HEIGHT)


def note_rect(note: Note) -> Rect:
    return Rect(note.x, note.y, NOTE_WIDTH, NOTE_HEIGHT)


def box_center(box: Box) -> Tuple[float, float]:
    """Connection lines are drawn between the visual centers of boxes."""
    return box.x + BOX_WIDTH / 2, box.y + BOX_HEIGHT / 2


def screen_to_world(
    sx: float, sy: float, offset_x: float, offset_y: float, scale: float
) -> Tuple[float, float]:
    """Map a screen point to world space: ``world = (screen - offset) / scale``."""
    return (sx - offset_x) / scale, (sy - offset_y) / scale


def world_to_screen(
    wx: float, wy: float, offset_x: float, offset_y: float, scale: float
) -> Tuple[float, float]:
    return wx * scale + offset_x, wy * scale + offset_y


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(max(value, minimum), maximum)
