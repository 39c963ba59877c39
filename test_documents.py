"""Tests for the board document store."""

import json

import pytest

from whiteboard.documents import DocumentError, DocumentsController, DocumentStore


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "input" / "design.md"
    path.parent.mkdir()
    path.write_text("# Design\n", encoding="utf-8")
    return path


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "data")


class TestDocumentStore:
    def test_upload_copies_file(self, store, source_file, tmp_path):
        result = store.upload("board-1", source_file)
        stored = tmp_path / "data" / "documents" / "boards" / "board-1" / f"{result.id}-design.md"
        assert stored.read_text(encoding="utf-8") == "# Design\n"
        assert result.url.startswith("file://")
        assert result.url.endswith("-design.md")

    def test_upload_records_metadata(self, store, source_file):
        result = store.upload("board-1", source_file)
        docs = store.list("board-1")
        assert len(docs) == 1
        assert docs[0].id == result.id
        assert docs[0].filename == "design.md"
        assert docs[0].storage_path == f"boards/board-1/{result.id}-design.md"
        assert docs[0].uploaded_at

    def test_list_is_per_board_and_newest_first(self, store, source_file, tmp_path):
        first = store.upload("board-1", source_file)
        second = store.upload("board-1", source_file)
        store.upload("board-2", source_file)

        index_path = tmp_path / "data" / "documents" / "index.json"
        entries = json.loads(index_path.read_text(encoding="utf-8"))
        for entry in entries:
            if entry["id"] == first.id:
                entry["uploaded_at"] = "2026-01-01T00:00:00+00:00"
            elif entry["id"] == second.id:
                entry["uploaded_at"] = "2026-02-01T00:00:00+00:00"
        index_path.write_text(json.dumps(entries), encoding="utf-8")

        assert [doc.id for doc in store.list("board-1")] == [second.id, first.id]
        assert len(store.list("board-2")) == 1
        assert store.list("board-3") == []

    def test_delete_removes_file_and_entry(self, store, source_file, tmp_path):
        result = store.upload("board-1", source_file)
        meta = store.list("board-1")[0]
        store.delete(result.id, meta.storage_path)
        assert store.list("board-1") == []
        assert not (tmp_path / "data" / "documents" / meta.storage_path).exists()

    def test_upload_requires_board_id(self, store, source_file):
        with pytest.raises(DocumentError):
            store.upload("", source_file)

    def test_upload_missing_file(self, store, tmp_path):
        with pytest.raises(DocumentError):
            store.upload("board-1", tmp_path / "nope.txt")

    def test_delete_rejects_paths_outside_store(self, store):
        with pytest.raises(DocumentError):
            store.delete("x", "../../etc/passwd")

    def test_corrupt_index(self, store, tmp_path):
        index_path = tmp_path / "data" / "documents" / "index.json"
        index_path.parent.mkdir(parents=True)
        index_path.write_text("{broken", encoding="utf-8")
        with pytest.raises(DocumentError):
            store.list("board-1")


class TestDocumentsController:
    @pytest.fixture
    def documents(self, app, store):
        return DocumentsController(store, "board-1")

    def test_upload_from_file_url_refreshes_list(self, documents, source_file):
        uploaded = []
        documents.uploadCompleted.connect(uploaded.append)

        documents.upload(source_file.as_uri())

        assert len(uploaded) == 1
        assert uploaded[0].startswith("file://")
        assert [doc["filename"] for doc in documents.documents] == ["design.md"]
        assert documents.documents[0]["board_id"] == "board-1"

    def test_upload_plain_path(self, documents, source_file):
        documents.upload(str(source_file))
        assert len(documents.documents) == 1

    def test_refresh_reads_existing_documents(self, store, documents, source_file):
        store.upload("board-1", source_file)
        store.upload("board-2", source_file)
        changes = []
        documents.documentsChanged.connect(lambda: changes.append(1))

        documents.refresh()

        assert len(documents.documents) == 1
        assert changes == [1]

    def test_remove_deletes_document(self, documents, source_file):
        documents.upload(str(source_file))
        doc_id = documents.documents[0]["id"]

        documents.remove(doc_id)

        assert documents.documents == []

    def test_remove_unknown_id_is_ignored(self, documents):
        changes = []
        documents.documentsChanged.connect(lambda: changes.append(1))
        documents.remove("missing")
        assert changes == []

    def test_upload_error_is_reported(self, documents, tmp_path):
        errors = []
        documents.errorOccurred.connect(errors.append)

        documents.upload(str(tmp_path / "nope.md"))

        assert len(errors) == 1
        assert "File not found" in errors[0]
        assert documents.documents == []

    def test_corrupt_index_is_reported(self, documents, tmp_path):
        index = tmp_path / "data" / "documents" / "index.json"
        index.parent.mkdir(parents=True)
        index.write_text("{broken", encoding="utf-8")
        errors = []
        documents.errorOccurred.connect(errors.append)

        documents.refresh()

        assert len(errors) == 1
