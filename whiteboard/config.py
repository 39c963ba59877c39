from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from PySide6.QtCore import QSettings

from .constants import (
    AUTOSAVE_DELAY_MS,
    BOARD_ID_SETTINGS_KEY,
    SETTINGS_APPLICATION,
    SETTINGS_ORGANIZATION,
)
from .recommend import DEFAULT_API_BASE, DEFAULT_MODEL

logger = logging.getLogger(__name__)


@dataclass
class WhiteboardConfig:
    """Runtime configuration for the application.

    - `data_dir`: Folder holding saved boards and uploaded documents.
    - `api_key`: Key for the assistant service; the assistant is disabled without it.
    - `model`, `api_base`: Chat completions model and endpoint.
    - `autosave_ms`: Quiet period before an edited board is saved.
    - `log_level`: Name of the root logging level.
    """

    data_dir: Path
    api_key: Optional[str]
    model: str
    api_base: str
    autosave_ms: int
    log_level: str


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring %s=%r, expected an integer", name, raw)
        return default


def load_config(env_file: Optional[Path] = None) -> WhiteboardConfig:
    # Values already in the environment win over the .env file
    load_dotenv(env_file or Path.cwd() / ".env")

    data_dir = Path(os.getenv("WHITEBOARD_DATA_DIR") or Path.home() / ".whiteboard").expanduser()
    return WhiteboardConfig(
        data_dir=data_dir,
        api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("WHITEBOARD_MODEL", DEFAULT_MODEL),
        api_base=os.getenv("WHITEBOARD_API_BASE", DEFAULT_API_BASE),
        autosave_ms=_int_env("WHITEBOARD_AUTOSAVE_MS", AUTOSAVE_DELAY_MS),
        log_level=os.getenv("WHITEBOARD_LOG_LEVEL", "INFO").upper(),
    )


def board_id_from_settings(settings: Optional[QSettings] = None) -> str:
    """Return the persistent board id, creating it on first use."""
    settings = settings or QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)
    stored = settings.value(BOARD_ID_SETTINGS_KEY, "")
    if isinstance(stored, str) and stored:
        return stored
    board_id = str(uuid.uuid4())
    settings.setValue(BOARD_ID_SETTINGS_KEY, board_id)
    settings.sync()
    return board_id
