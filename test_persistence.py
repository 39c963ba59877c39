"""Tests for board storage and the autosave session."""

import json
from unittest.mock import MagicMock

import pytest
from PySide6.QtCore import QSettings
from PySide6.QtTest import QTest

from whiteboard import BoardSnapshot, Box, Connection, Note
from whiteboard.config import board_id_from_settings, load_config
from whiteboard.persistence import (
    BoardSession,
    JsonBoardStore,
    SnapshotError,
    StoreError,
    snapshot_from_dict,
)


def _sample_snapshot():
    return BoardSnapshot(
        boxes=[Box("a", 1.0, 2.0, "A"), Box("b", 300.0, 2.0, "B")],
        connections=[Connection("c", "a", "b")],
        notes=[Note("n", 5.0, 500.0, "note")],
    )


class TestSnapshotFromDict:
    def test_reads_all_collections(self):
        snapshot = snapshot_from_dict(_sample_snapshot().to_dict())
        assert snapshot == _sample_snapshot()

    def test_missing_collections_are_empty(self):
        assert snapshot_from_dict({}) == BoardSnapshot()

    def test_legacy_title_field(self):
        snapshot = snapshot_from_dict({"boxes": [{"id": "a", "title": "Old", "x": 0, "y": 0}]})
        assert snapshot.boxes[0].text == "Old"

    def test_bad_numbers_become_zero(self):
        snapshot = snapshot_from_dict({"notes": [{"id": "n", "content": "x", "x": "inf", "y": "oops"}]})
        assert (snapshot.notes[0].x, snapshot.notes[0].y) == (0.0, 0.0)

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"boxes": {"a": 1}},
            {"boxes": [{"text": "no id"}]},
            {"notes": ["nope"]},
            {"connections": [{"id": "c", "from": "a"}]},
        ],
    )
    def test_wrong_shape_rejected(self, data):
        with pytest.raises(SnapshotError):
            snapshot_from_dict(data)


class TestJsonBoardStore:
    def test_missing_board_loads_none(self, tmp_path):
        assert JsonBoardStore(tmp_path).load("board-1") is None

    def test_save_then_load(self, tmp_path):
        store = JsonBoardStore(tmp_path)
        store.save("board-1", _sample_snapshot(), "2026-01-01T00:00:00+00:00")
        assert store.load("board-1") == _sample_snapshot()

    def test_document_layout(self, tmp_path):
        store = JsonBoardStore(tmp_path)
        store.save("board-1", _sample_snapshot(), "2026-01-01T00:00:00+00:00")
        document = json.loads((tmp_path / "boards" / "board-1.json").read_text(encoding="utf-8"))
        assert document["id"] == "board-1"
        assert document["name"] == "Default board"
        assert document["updated_at"] == "2026-01-01T00:00:00+00:00"
        assert set(document["data"]) == {"boxes", "connections", "notes"}

    def test_save_overwrites(self, tmp_path):
        store = JsonBoardStore(tmp_path)
        store.save("board-1", _sample_snapshot(), "t1")
        store.save("board-1", BoardSnapshot(), "t2")
        assert store.load("board-1") == BoardSnapshot()
        assert not list((tmp_path / "boards").glob("*.tmp"))

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "boards").mkdir()
        (tmp_path / "boards" / "board-1.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonBoardStore(tmp_path).load("board-1")

    @pytest.mark.parametrize("board_id", ["", "../escape", ".."])
    def test_invalid_board_ids(self, tmp_path, board_id):
        with pytest.raises(StoreError):
            JsonBoardStore(tmp_path).save(board_id, BoardSnapshot(), "t")


class TestBoardSession:
    def test_load_applies_stored_board(self, tmp_path, default_board):
        store = JsonBoardStore(tmp_path)
        store.save("board-1", _sample_snapshot(), "t")
        session = BoardSession(store, "board-1", default_board, delay_ms=10)
        loaded = []
        session.loadCompleted.connect(loaded.append)
        session.load()
        assert default_board.snapshot() == _sample_snapshot()
        assert loaded == ["board-1"]
        assert not session.isLoading

    def test_load_does_not_schedule_a_save(self, tmp_path, default_board):
        store = JsonBoardStore(tmp_path)
        store.save("board-1", _sample_snapshot(), "t")
        session = BoardSession(store, "board-1", default_board, delay_ms=10)
        session.load()
        assert not session.save_pending

    def test_missing_board_keeps_default(self, tmp_path, default_board):
        session = BoardSession(JsonBoardStore(tmp_path), "board-1", default_board, delay_ms=10)
        session.load()
        assert default_board.boxCount == 3

    def test_no_save_before_load(self, app, default_board):
        store = MagicMock()
        session = BoardSession(store, "board-1", default_board, delay_ms=10)
        default_board.addBox(900, 900)
        QTest.qWait(50)
        store.save.assert_not_called()
        assert not session.save_pending

    def test_no_board_id_never_saves(self, app, default_board):
        store = MagicMock()
        session = BoardSession(store, "", default_board, delay_ms=10)
        errors = []
        session.errorOccurred.connect(errors.append)
        session.load()
        default_board.addBox(900, 900)
        QTest.qWait(50)
        store.save.assert_not_called()
        assert errors == ["No board id specified"]

    def test_rapid_edits_are_coalesced(self, app, default_board):
        store = MagicMock()
        store.load.return_value = None
        session = BoardSession(store, "board-1", default_board, delay_ms=200)
        session.load()
        for i in range(5):
            default_board.moveBox("1", 100 + i, 100)
            QTest.qWait(5)
        store.save.assert_not_called()
        QTest.qWait(500)
        assert store.save.call_count == 1
        board_id, snapshot, updated_at = store.save.call_args.args
        assert board_id == "board-1"
        assert snapshot.boxes[0].x == 104
        assert updated_at.endswith("+00:00")

    def test_save_failure_keeps_board(self, app, default_board):
        store = MagicMock()
        store.load.return_value = None
        store.save.side_effect = StoreError("disk full")
        session = BoardSession(store, "board-1", default_board, delay_ms=10)
        errors = []
        session.errorOccurred.connect(errors.append)
        session.load()
        default_board.addBox(900, 900, "Kept")
        session.flush()
        assert errors == ["Failed to save board: disk full"]
        assert default_board.boxCount == 4

    def test_load_failure_reports_and_keeps_default(self, app, default_board):
        store = MagicMock()
        store.load.side_effect = StoreError("unreadable")
        session = BoardSession(store, "board-1", default_board, delay_ms=10)
        errors = []
        session.errorOccurred.connect(errors.append)
        session.load()
        assert errors == ["Failed to load board: unreadable"]
        assert default_board.boxCount == 3
        assert not session.isLoading

    def test_flush_saves_pending_changes(self, tmp_path, default_board):
        store = JsonBoardStore(tmp_path)
        session = BoardSession(store, "board-1", default_board, delay_ms=10000)
        saved = []
        session.saveCompleted.connect(saved.append)
        session.load()
        default_board.setBoxText("1", "Edge")
        assert session.save_pending
        session.flush()
        assert saved == ["board-1"]
        assert store.load("board-1").boxes[0].text == "Edge"

    def test_flush_without_pending_does_nothing(self, app, default_board):
        store = MagicMock()
        store.load.return_value = None
        session = BoardSession(store, "board-1", default_board)
        session.load()
        session.flush()
        store.save.assert_not_called()


class TestConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        for name in (
            "WHITEBOARD_DATA_DIR",
            "OPENAI_API_KEY",
            "WHITEBOARD_MODEL",
            "WHITEBOARD_API_BASE",
            "WHITEBOARD_AUTOSAVE_MS",
            "WHITEBOARD_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        config = load_config(tmp_path / "missing.env")
        assert config.api_key is None
        assert config.model == "gpt-4o-mini"
        assert config.autosave_ms == 800
        assert config.log_level == "INFO"
        assert config.data_dir.name == ".whiteboard"

    def test_env_file_values(self, tmp_path, monkeypatch):
        for name in ("WHITEBOARD_DATA_DIR", "WHITEBOARD_AUTOSAVE_MS", "OPENAI_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text(
            f"WHITEBOARD_DATA_DIR={tmp_path / 'data'}\nWHITEBOARD_AUTOSAVE_MS=250\nOPENAI_API_KEY=sk-test\n",
            encoding="utf-8",
        )
        config = load_config(env_file)
        for name in ("WHITEBOARD_DATA_DIR", "WHITEBOARD_AUTOSAVE_MS", "OPENAI_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        assert config.data_dir == tmp_path / "data"
        assert config.autosave_ms == 250
        assert config.api_key == "sk-test"

    def test_bad_autosave_value_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WHITEBOARD_AUTOSAVE_MS", "soon")
        assert load_config(tmp_path / "missing.env").autosave_ms == 800

    def test_board_id_created_once(self, app, tmp_path):
        settings = QSettings(str(tmp_path / "settings.ini"), QSettings.IniFormat)
        first = board_id_from_settings(settings)
        assert first
        assert board_id_from_settings(settings) == first
