"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import json

import pytest

from errors import LedgerWriteError
from ledger_repository import JsonLedgerRepository
from mention import Checkpoint, LedgerDocument
from test_data_factory import NOW, make_record


class TestJsonLedgerRepository:
    def test_missing_file_is_empty(self, tmp_path):
        document = JsonLedgerRepository(str(tmp_path / "db.json")).load()
        assert document.entries == []
        assert document.checkpoints == {}

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonLedgerRepository(str(path)).load().entries == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "scanner" / "db.json"
        repository = JsonLedgerRepository(str(path))
        document = LedgerDocument(
            entries=[make_record("TSLA", "1412345678901234567", NOW)],
            checkpoints={"500": Checkpoint("1412345678901234567", "2025-09-20T12:00:00.000Z")},
        )
        repository.save(document)

        loaded = repository.load()
        assert [e.key for e in loaded.entries] == [("1412345678901234567", "TSLA")]
        assert loaded.checkpoints["500"].last_processed_id == "1412345678901234567"
        assert not (tmp_path / "scanner" / "db.json.tmp").exists()

    def test_ids_stored_as_strings(self, tmp_path):
        path = tmp_path / "db.json"
        repository = JsonLedgerRepository(str(path))
        repository.save(LedgerDocument(entries=[make_record("AAPL", "1412345678901234567", NOW)]))

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored["entries"][0]["messageId"] == "1412345678901234567"
        assert stored["entries"][0]["timestamp"] == "2025-09-20T12:00:00.000Z"

    def test_unwritable_path_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        repository = JsonLedgerRepository(str(blocker / "db.json"))

        with pytest.raises(LedgerWriteError):
            repository.save(LedgerDocument())
