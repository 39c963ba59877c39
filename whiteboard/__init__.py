"""Whiteboard canvas engine built with PySide6 and QML.

Boxes, sticky notes and directed connections live in a BoardModel. New
elements and assistant suggestions are placed so they keep a minimum gap
to everything already on the board.
"""

from .constants import DEFAULT_BOARD, ELEMENT_PRESETS, MIN_GAP
from .diff import DiffValidationError, parse_board_diff, parse_board_diff_json
from .interaction import InteractionController
from .model import BoardModel
from .placement import apply_min_gap_to_diff, find_open_spot
from .qml import WHITEBOARD_QML
from .types import BoardDiff, BoardSnapshot, Box, Connection, ElementKind, Note, Rect
from .ui import create_whiteboard_window, main
from .view import ViewTransform

__all__ = [
    "BoardDiff",
    "BoardModel",
    "BoardSnapshot",
    "Box",
    "Connection",
    "DEFAULT_BOARD",
    "DiffValidationError",
    "ELEMENT_PRESETS",
    "ElementKind",
    "InteractionController",
    "MIN_GAP",
    "Note",
    "Rect",
    "ViewTransform",
    "WHITEBOARD_QML",
    "apply_min_gap_to_diff",
    "create_whiteboard_window",
    "find_open_spot",
    "main",
    "parse_board_diff",
    "parse_board_diff_json",
]
