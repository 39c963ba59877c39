"""Constants and presets for Whiteboard boards."""

from typing import Any, Dict, List

from .types import ElementKind


BOX_WIDTH = 180.0
BOX_HEIGHT = 120.0
NOTE_WIDTH = 120.0
NOTE_HEIGHT = 90.0

# Minimum clearance between placed elements; also the ring search step.
MIN_GAP = 40.0
MAX_SEARCH_STEPS = 8

MIN_SCALE = 0.25
MAX_SCALE = 3.0
WHEEL_ZOOM_SENSITIVITY = 0.005

AUTOSAVE_DELAY_MS = 800
DEFAULT_BOARD_NAME = "Default board"
SETTINGS_ORGANIZATION = "SystemDesigner"
SETTINGS_APPLICATION = "Whiteboard"
BOARD_ID_SETTINGS_KEY = "whiteboard-id"

GENERIC_FAILURE_MESSAGE = "Something went wrong. Try again."


ELEMENT_PRESETS: Dict[str, Dict[str, Any]] = {
    "box": {
        "kind": ElementKind.BOX,
        "width": BOX_WIDTH,
        "height": BOX_HEIGHT,
        "text": "New box",
        "placeholder": "Double-click to edit",
    },
    "note": {
        "kind": ElementKind.NOTE,
        "width": NOTE_WIDTH,
        "height": NOTE_HEIGHT,
        "text": "New note",
        "placeholder": "Double-click to edit",
    },
}


def qml_presets() -> Dict[str, Dict[str, Any]]:
    """Return ``ELEMENT_PRESETS`` with plain values for a QML context property."""
    return {
        name: {key: (value.value if isinstance(value, ElementKind) else value) for key, value in preset.items()}
        for name, preset in ELEMENT_PRESETS.items()
    }


DEFAULT_BOARD: Dict[str, List[Dict[str, Any]]] = {
    "boxes": [
        {"id": "1", "text": "API Gateway", "x": 100.0, "y": 100.0},
        {"id": "2", "text": "Auth Service", "x": 350.0, "y": 100.0},
        {"id": "3", "text": "Database", "x": 225.0, "y": 280.0},
    ],
    "connections": [
        {"id": "c1", "from": "1", "to": "2"},
        {"id": "c2", "from": "1", "to": "3"},
        {"id": "c3", "from": "2", "to": "3"},
    ],
    "notes": [],
}
