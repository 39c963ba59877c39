"""UI creation functions for Whiteboard."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from PySide6.QtQml import QQmlApplicationEngine

from .config import WhiteboardConfig, board_id_from_settings, load_config
from .constants import qml_presets
from .documents import DocumentsController, DocumentStore
from .interaction import InteractionController
from .model import BoardModel
from .persistence import BoardSession, JsonBoardStore
from .qml import WHITEBOARD_QML
from .recommend import AssistantController, RecommendationClient
from .view import ViewTransform

logger = logging.getLogger(__name__)


def create_whiteboard_window(
    board_model: BoardModel,
    controller: InteractionController,
    view: ViewTransform,
    board_session: Optional[BoardSession] = None,
    assistant: Optional[AssistantController] = None,
    documents: Optional[DocumentsController] = None,
) -> QQmlApplicationEngine:
    """Create and return a QQmlApplicationEngine hosting the Whiteboard UI."""
    engine = QQmlApplicationEngine()
    context = engine.rootContext()
    context.setContextProperty("boardModel", board_model)
    context.setContextProperty("controller", controller)
    context.setContextProperty("viewTransform", view)
    context.setContextProperty("boardSession", board_session)
    context.setContextProperty("assistant", assistant)
    context.setContextProperty("documents", documents)
    context.setContextProperty("elementPresets", qml_presets())
    engine.loadData(WHITEBOARD_QML.encode("utf-8"))
    return engine


def build_assistant(
    config: WhiteboardConfig,
    board_model: BoardModel,
    board_id: str,
    documents: Optional[DocumentStore] = None,
) -> Optional[AssistantController]:
    if not config.api_key:
        logger.info("OPENAI_API_KEY not set, assistant disabled")
        return None
    client = RecommendationClient(config.api_key, model=config.model, base_url=config.api_base)
    return AssistantController(client, board_model, documents=documents, board_id=board_id)


def main() -> int:
    """Main entry point for Whiteboard standalone mode."""
    from PySide6.QtWidgets import QApplication

    smoke_mode = "--smoke" in sys.argv or os.environ.get("WHITEBOARD_SMOKE") == "1"

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)

    board_id = board_id_from_settings()
    board_model = BoardModel.with_default_board()
    view = ViewTransform()
    controller = InteractionController(board_model, view)
    session = BoardSession(
        JsonBoardStore(config.data_dir),
        board_id,
        board_model,
        delay_ms=config.autosave_ms,
    )
    document_store = DocumentStore(config.data_dir)
    documents = DocumentsController(document_store, board_id)
    assistant = build_assistant(config, board_model, board_id, document_store)

    engine = create_whiteboard_window(board_model, controller, view, session, assistant, documents)
    if not engine.rootObjects():
        return 1

    if smoke_mode:
        return 0

    session.load()
    documents.refresh()
    app.aboutToQuit.connect(session.flush)
    return app.exec()
