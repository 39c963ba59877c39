"""Data types for Whiteboard boards.

This module contains the core data structures shared by the board model,
the placement solver and the external collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ElementKind(Enum):
    """Kinds of elements that can be selected on the canvas."""

    BOX = "box"
    NOTE = "note"
    CONNECTION = "connection"


@dataclass
class Box:
    """A fixed-size rectangular node with editable text."""

    id: str
    x: float
    y: float
    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "x": self.x, "y": self.y}


@dataclass
class Note:
    """A free-floating sticky annotation. Notes cannot be connected."""

    id: str
    x: float
    y: float
    content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "x": self.x, "y": self.y}


@dataclass
class Connection:
    """A directed edge between two box identifiers."""

    id: str
    from_id: str
    to_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "from": self.from_id, "to": self.to_id}


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle in world coordinates."""

    x: float
    y: float
    w: float
    h: float


@dataclass
class BoardSnapshot:
    """One consistent state of the board."""

    boxes: List[Box] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "boxes": [box.to_dict() for box in self.boxes],
            "connections": [conn.to_dict() for conn in self.connections],
            "notes": [note.to_dict() for note in self.notes],
        }


@dataclass
class BoardDiff:
    """A batch of proposed additions from the recommendation service."""

    add_boxes: List[Box] = field(default_factory=list)
    add_notes: List[Note] = field(default_factory=list)
    add_connections: List[Connection] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.add_boxes or self.add_notes or self.add_connections)
