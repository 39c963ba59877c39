"""Assistant backed by an OpenAI-compatible chat completions API.

``RecommendationClient`` proposes additions to a board as a diff and
answers questions about it. ``AssistantController`` runs the client off the
UI thread and turns a proposed diff into the board preview.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence

import requests
from PySide6.QtCore import Property, QObject, QThreadPool, Signal, Slot

from .constants import GENERIC_FAILURE_MESSAGE
from .diff import SCHEMA_DESCRIPTION, DiffValidationError, parse_board_diff
from .documents import DocumentError, DocumentMeta, DocumentStore
from .model import BoardModel
from .types import BoardDiff, BoardSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_API_BASE = "https://api.openai.com/v1"

SYSTEM_PROMPT = (
    "You are an architecture assistant. Use the provided board and documents as the source of truth. "
    "If information is missing, state assumptions briefly."
)

RECOMMEND_SYSTEM_PROMPT = (
    "You are an architecture assistant. Suggest concrete nodes and connections to improve the diagram. "
    "Keep additions minimal, practical, and consistent with the existing components."
)

RECOMMEND_INSTRUCTION = (
    "You recommend additions to an architecture whiteboard. "
    f"Return ONLY valid JSON that matches this schema: {SCHEMA_DESCRIPTION}. "
    "Use unique IDs (prefix with 'ai-') and ensure connections reference existing or newly added box IDs. "
    "If nothing to add, return empty arrays for addBoxes, addNotes, addConnections. "
    "Do not include any extra text or markdown."
)

MODE_INSTRUCTIONS: Dict[str, str] = {
    "ask": "Answer the user's question using the board and document context. Be concise and practical.",
    "summary": "Summarize the system in 2 short paragraphs and list the main components.",
    "risks": "List the top architectural risks with a short mitigation for each.",
    "decisions": (
        "List key design decisions. For each, include decision, reason, assumptions, "
        "consequences, and open questions."
    ),
}


class RecommendationError(Exception):
    """Raised when the assistant service cannot be reached or answers badly."""


class RecommendationClient:
    """Thin chat completions client."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_API_BASE,
        session: Optional[requests.Session] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        # One request at a time through the shared session.
        self._lock = threading.Lock()

    def _chat(self, messages: List[Dict[str, str]], temperature: float = 0.2) -> str:
        if not self.api_key:
            raise RecommendationError("Missing OPENAI_API_KEY")

        try:
            with self._lock:
                response = self._session.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={"model": self.model, "messages": messages, "temperature": temperature},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
        except requests.RequestException as e:
            raise RecommendationError(f"Assistant request failed: {e}") from e
        except ValueError as e:
            raise RecommendationError(f"Assistant response was not JSON: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise RecommendationError("Assistant response had no message content") from e
        if content is None:
            return ""
        if not isinstance(content, str):
            raise RecommendationError(f"Assistant message content was {type(content).__name__}, not text")
        return content

    def recommend(self, snapshot: BoardSnapshot, prompt: str = "") -> BoardDiff:
        """Ask for additions to ``snapshot``.

        Raises:
            RecommendationError: On transport, HTTP or JSON decoding failures.
            DiffValidationError: When the reply does not match the diff schema.
        """
        messages = [
            {"role": "system", "content": RECOMMEND_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"{RECOMMEND_INSTRUCTION}\n\nBoard:\n{json.dumps(snapshot.to_dict())}"
                    f"\n\nUser prompt:\n{prompt}"
                ),
            },
        ]
        content = self._chat(messages)
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise RecommendationError("AI response was not valid JSON.") from e
        return parse_board_diff(parsed)

    def analyze(
        self,
        mode: str,
        snapshot: BoardSnapshot,
        documents: Sequence[DocumentMeta] = (),
        question: str = "",
    ) -> str:
        """Answer in one of the ``MODE_INSTRUCTIONS`` modes. Unknown modes ask."""
        instruction = MODE_INSTRUCTIONS.get(mode, MODE_INSTRUCTIONS["ask"])
        payload = {
            "mode": mode,
            "board": snapshot.to_dict(),
            "docs": [{"id": doc.id, "filename": doc.filename} for doc in documents],
            "question": question,
        }
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{instruction}\n\nContext:\n{json.dumps(payload)}"},
        ]
        return self._chat(messages)


def _run_in_pool(task: Callable[[], None]) -> None:
    QThreadPool.globalInstance().start(task)


class AssistantController(QObject):
    """Bridges the assistant client to the board.

    Requests run through ``executor``, by default on the global thread pool.
    Results come back through signals, so the board is only touched on the
    thread this object lives in. A received diff is shown as the board's
    preview until it is accepted or dismissed. Analysis answers and errors
    are kept per mode so each assistant tab shows its own last result.
    """

    recommendationReady = Signal(object)
    analysisReady = Signal(str, str)
    analysisFailed = Signal(str, str)
    requestFailed = Signal(str)
    busyChanged = Signal()
    answersChanged = Signal()

    def __init__(
        self,
        client: RecommendationClient,
        model: BoardModel,
        documents: Optional[DocumentStore] = None,
        board_id: str = "",
        executor: Optional[Callable[[Callable[[], None]], None]] = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._client = client
        self._model = model
        self._documents = documents
        self._board_id = board_id
        self._executor = executor or _run_in_pool
        self._pending = 0
        self._answers: Dict[str, str] = {}
        self._errors: Dict[str, str] = {}
        self.recommendationReady.connect(self._on_recommendation)
        self.analysisReady.connect(self._on_analysis)
        self.analysisFailed.connect(self._on_analysis_failed)
        self.requestFailed.connect(self._on_failed)

    @Property(bool, notify=busyChanged)
    def busy(self) -> bool:
        return self._pending > 0

    @Property(list, constant=True)
    def modes(self) -> List[str]:
        return list(MODE_INSTRUCTIONS)

    @Property("QVariantMap", notify=answersChanged)
    def answers(self) -> Dict[str, str]:
        return dict(self._answers)

    @Property("QVariantMap", notify=answersChanged)
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def _started(self) -> None:
        self._pending += 1
        if self._pending == 1:
            self.busyChanged.emit()

    def _finish(self) -> None:
        if self._pending == 0:
            return
        self._pending -= 1
        if self._pending == 0:
            self.busyChanged.emit()

    @Slot(object)
    def _on_recommendation(self, diff: BoardDiff) -> None:
        self._model.setPreviewDiff(diff)
        self._finish()

    @Slot(str, str)
    def _on_analysis(self, mode: str, text: str) -> None:
        self._answers[mode] = text
        self._errors.pop(mode, None)
        self.answersChanged.emit()
        self._finish()

    @Slot(str, str)
    def _on_analysis_failed(self, mode: str, message: str) -> None:
        self._errors[mode] = message
        self.answersChanged.emit()
        self._finish()

    @Slot(str)
    def _on_failed(self, message: str) -> None:
        self._finish()

    def _document_context(self) -> List[DocumentMeta]:
        if self._documents is None or not self._board_id:
            return []
        try:
            return self._documents.list(self._board_id)
        except DocumentError as e:
            logger.warning("Documents unavailable for analysis: %s", e)
            return []

    @Slot(str)
    def requestRecommendation(self, prompt: str) -> None:
        snapshot = self._model.snapshot()
        self._started()

        def task() -> None:
            try:
                diff = self._client.recommend(snapshot, prompt)
            except (RecommendationError, DiffValidationError) as e:
                logger.error("Recommendation failed: %s", e)
                self.requestFailed.emit(GENERIC_FAILURE_MESSAGE)
                return
            except Exception:
                logger.exception("Unexpected error while requesting a recommendation")
                self.requestFailed.emit(GENERIC_FAILURE_MESSAGE)
                return
            self.recommendationReady.emit(diff)

        self._executor(task)

    @Slot(str, str)
    def requestAnalysis(self, mode: str, question: str = "") -> None:
        snapshot = self._model.snapshot()
        documents = self._document_context()
        self._started()

        def task() -> None:
            try:
                text = self._client.analyze(mode, snapshot, documents, question)
            except RecommendationError as e:
                logger.error("Analysis failed: %s", e)
                self.analysisFailed.emit(mode, GENERIC_FAILURE_MESSAGE)
                return
            except Exception:
                logger.exception("Unexpected error while running %s analysis", mode)
                self.analysisFailed.emit(mode, GENERIC_FAILURE_MESSAGE)
                return
            self.analysisReady.emit(mode, text)

        self._executor(task)

    @Slot(result=bool)
    def acceptRecommendation(self) -> bool:
        return self._model.acceptPreview()

    @Slot()
    def dismissRecommendation(self) -> None:
        self._model.clearPreview()
