"""Validation of diff payloads proposed by the recommendation service.

A diff is accepted only when every required field is present with the
right primitive type. Anything else rejects the whole payload.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List

from pydantic import BaseModel, Field, StrictFloat, StrictStr, ValidationError

from .types import BoardDiff, Box, Connection, Note


class DiffValidationError(Exception):
    """Raised when a diff payload does not match the expected schema."""


SCHEMA_DESCRIPTION = (
    '{ "addBoxes": Array<{ "id": string, "text": string, "x": number, "y": number }>, '
    '"addNotes": Array<{ "id": string, "content": string, "x": number, "y": number }>, '
    '"addConnections": Array<{ "id": string, "from": string, "to": string }> }'
)


class BoxAddition(BaseModel):
    """A box the assistant wants to add."""

    id: StrictStr
    text: StrictStr
    x: StrictFloat
    y: StrictFloat


class NoteAddition(BaseModel):
    """A sticky note the assistant wants to add."""

    id: StrictStr
    content: StrictStr
    x: StrictFloat
    y: StrictFloat


class ConnectionAddition(BaseModel):
    """A directed connection between two box ids."""

    id: StrictStr
    from_id: StrictStr = Field(..., alias="from")
    to_id: StrictStr = Field(..., alias="to")


class BoardDiffPayload(BaseModel):
    add_boxes: List[BoxAddition] = Field(..., alias="addBoxes")
    add_notes: List[NoteAddition] = Field(..., alias="addNotes")
    add_connections: List[ConnectionAddition] = Field(..., alias="addConnections")


_ERROR_MESSAGES = {
    "string_type": "must be a string",
    "float_type": "must be a number",
    "list_type": "must be a list",
    "model_type": "must be an object",
    "dict_type": "must be an object",
}


def _error_path(loc) -> str:
    path = "diff"
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path.replace("diff.", "", 1) if loc else path


def _describe(exc: ValidationError) -> str:
    error = exc.errors()[0]
    path = _error_path(error["loc"])
    if error["type"] == "missing":
        return f"Missing field: {path}"
    message = _ERROR_MESSAGES.get(error["type"], error["msg"])
    return f"{path} {message}"


def _finite(value: float) -> float:
    # Non-finite coordinates are malformed input, not a schema violation.
    return value if math.isfinite(value) else 0.0


def parse_board_diff(data: Any) -> BoardDiff:
    """Validate a decoded diff payload and convert it to a ``BoardDiff``.

    Raises:
        DiffValidationError: If the payload does not match the schema.
    """
    try:
        payload = BoardDiffPayload.model_validate(data)
    except ValidationError as e:
        raise DiffValidationError(_describe(e)) from e

    return BoardDiff(
        add_boxes=[
            Box(id=b.id, text=b.text, x=_finite(b.x), y=_finite(b.y)) for b in payload.add_boxes
        ],
        add_notes=[
            Note(id=n.id, content=n.content, x=_finite(n.x), y=_finite(n.y)) for n in payload.add_notes
        ],
        add_connections=[
            Connection(id=c.id, from_id=c.from_id, to_id=c.to_id) for c in payload.add_connections
        ],
    )


def parse_board_diff_json(text: str) -> BoardDiff:
    """Decode a JSON document and validate it as a diff."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise DiffValidationError(f"Diff is not valid JSON: {exc}") from exc
    return parse_board_diff(data)


def board_diff_to_dict(diff: BoardDiff) -> Dict[str, Any]:
    return {
        "addBoxes": [box.to_dict() for box in diff.add_boxes],
        "addNotes": [note.to_dict() for note in diff.add_notes],
        "addConnections": [conn.to_dict() for conn in diff.add_connections],
    }
