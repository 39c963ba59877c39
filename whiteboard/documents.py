"""Reference documents attached to a board.

Documents are only context for the assistant; the canvas never reads them.
Files are copied under ``<root>/documents/boards/<board_id>/`` and listed in
``<root>/documents/index.json``.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from PySide6.QtCore import Property, QObject, QUrl, Signal, Slot

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Raised when a document cannot be stored, listed or removed."""


@dataclass
class DocumentMeta:
    id: str
    board_id: str
    filename: str
    storage_path: str
    uploaded_at: str


@dataclass
class UploadResult:
    id: str
    url: str


class DocumentStore:
    """File-system document storage with a JSON index."""

    def __init__(self, root: os.PathLike | str):
        self._root = Path(root) / "documents"
        self._index_path = self._root / "index.json"

    def _read_index(self) -> List[Dict[str, Any]]:
        if not self._index_path.exists():
            return []
        try:
            with open(self._index_path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DocumentError(f"Failed to read document index: {e}") from e
        if not isinstance(entries, list):
            raise DocumentError("Document index must contain a list")
        return [entry for entry in entries if isinstance(entry, dict)]

    def _write_index(self, entries: List[Dict[str, Any]]) -> None:
        tmp_path = self._index_path.with_suffix(".json.tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(entries, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._index_path)
        except OSError as e:
            raise DocumentError(f"Failed to write document index: {e}") from e

    def _resolve(self, storage_path: str) -> Path:
        path = (self._root / storage_path).resolve()
        if self._root.resolve() not in path.parents:
            raise DocumentError(f"Invalid storage path: {storage_path}")
        return path

    def upload(self, board_id: str, file_path: os.PathLike | str) -> UploadResult:
        """Copy ``file_path`` into the board's document folder.

        Returns:
            The new document id and a ``file://`` URL of the stored copy.
        """
        if not board_id:
            raise DocumentError("No board id specified")
        source = Path(file_path)
        if not source.is_file():
            raise DocumentError(f"File not found: {source}")

        doc_id = str(uuid.uuid4())
        storage_path = f"boards/{board_id}/{doc_id}-{source.name}"
        target = self._resolve(storage_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            raise DocumentError(f"Failed to upload {source.name}: {e}") from e

        meta = DocumentMeta(
            id=doc_id,
            board_id=board_id,
            filename=source.name,
            storage_path=storage_path,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )
        entries = self._read_index()
        entries.append(asdict(meta))
        try:
            self._write_index(entries)
        except DocumentError:
            target.unlink(missing_ok=True)
            raise

        logger.info("Uploaded %s to board %s", source.name, board_id)
        return UploadResult(id=doc_id, url=target.as_uri())

    def list(self, board_id: str) -> List[DocumentMeta]:
        """Return the board's documents, newest first."""
        docs = []
        for entry in self._read_index():
            if entry.get("board_id") != board_id:
                continue
            try:
                docs.append(DocumentMeta(**entry))
            except TypeError:
                logger.warning("Skipping malformed document entry %r", entry.get("id"))
        docs.sort(key=lambda doc: doc.uploaded_at, reverse=True)
        return docs

    def delete(self, doc_id: str, storage_path: str) -> None:
        """Remove the stored file and its index entry."""
        target = self._resolve(storage_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise DocumentError(f"Failed to delete document: {e}") from e
        entries = [entry for entry in self._read_index() if entry.get("id") != doc_id]
        self._write_index(entries)


class DocumentsController(QObject):
    """Exposes one board's documents to QML."""

    documentsChanged = Signal()
    uploadCompleted = Signal(str)
    errorOccurred = Signal(str)

    def __init__(self, store: DocumentStore, board_id: str, parent: QObject | None = None):
        super().__init__(parent)
        self._store = store
        self._board_id = board_id
        self._documents: List[DocumentMeta] = []

    @Property(list, notify=documentsChanged)
    def documents(self) -> List[Dict[str, Any]]:
        return [asdict(doc) for doc in self._documents]

    @Slot()
    def refresh(self) -> None:
        try:
            self._documents = self._store.list(self._board_id)
        except DocumentError as e:
            logger.error("Failed to list documents: %s", e)
            self.errorOccurred.emit(str(e))
            return
        self.documentsChanged.emit()

    @Slot(str)
    def upload(self, location: str) -> None:
        """Upload a local path or a ``file://`` URL as picked by a file dialog."""
        path = QUrl(location).toLocalFile() if location.startswith("file:") else location
        try:
            result = self._store.upload(self._board_id, path)
        except DocumentError as e:
            logger.error("Failed to upload document: %s", e)
            self.errorOccurred.emit(str(e))
            return
        self.uploadCompleted.emit(result.url)
        self.refresh()

    @Slot(str)
    def remove(self, doc_id: str) -> None:
        doc = next((d for d in self._documents if d.id == doc_id), None)
        if doc is None:
            return
        try:
            self._store.delete(doc.id, doc.storage_path)
        except DocumentError as e:
            logger.error("Failed to delete document: %s", e)
            self.errorOccurred.emit(str(e))
            return
        self.refresh()
