"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import json
import random
from datetime import timedelta

import pytest

from errors import LedgerWriteError
from ledger_repository import JsonLedgerRepository
from mention_ledger import MentionLedger
from test_data_factory import NOW, FlakyRepository, RecordingPublisher, make_record, snowflake_at


@pytest.fixture
def ledger_path(tmp_path):
    return str(tmp_path / "db.json")


class TestMentionLedgerAppend:
    @pytest.mark.asyncio
    async def test_append_is_idempotent(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        records = [make_record("TSLA", "111", NOW), make_record("AAPL", "111", NOW)]

        assert await ledger.append(records) == 2
        assert await ledger.append(records) == 0
        assert ledger.write_count == 1

        document = await ledger.load_snapshot()
        assert len(document.entries) == 2

    @pytest.mark.asyncio
    async def test_duplicates_within_batch(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        record = make_record("TSLA", "111", NOW)

        assert await ledger.append([record, record]) == 1

    @pytest.mark.asyncio
    async def test_same_ticker_different_messages(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        added = await ledger.append([make_record("TSLA", "111", NOW), make_record("TSLA", "112", NOW)])
        assert added == 2

    @pytest.mark.asyncio
    async def test_empty_batch_does_nothing(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        assert await ledger.append([]) == 0
        assert ledger.write_count == 0

    @pytest.mark.asyncio
    async def test_publishes_only_when_added(self, ledger_path):
        publisher = RecordingPublisher()
        ledger = MentionLedger(JsonLedgerRepository(ledger_path), publisher)
        record = make_record("TSLA", "111", NOW)

        await ledger.append([record], publish=True)
        await ledger.append([record], publish=True)
        await ledger.append([make_record("NVDA", "112", NOW)], publish=False)

        assert publisher.paths == [ledger_path]

    @pytest.mark.asyncio
    async def test_concurrent_appends_all_stored(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        results = await asyncio.gather(*(
            ledger.append([make_record("TSLA", str(1000 + i), NOW + timedelta(seconds=i))])
            for i in range(20)
        ))

        assert sum(results) == 20
        document = await ledger.load_snapshot()
        assert len(document.entries) == 20
        assert ledger.write_count == 20

    @pytest.mark.asyncio
    async def test_write_failure_raises_and_queue_keeps_serving(self, ledger_path):
        repository = FlakyRepository(ledger_path, fail_when=lambda doc: any(e.ticker == "NVDA" for e in doc.entries))
        ledger = MentionLedger(repository)

        with pytest.raises(LedgerWriteError):
            await ledger.append([make_record("NVDA", "111", NOW)])

        assert await ledger.append([make_record("TSLA", "112", NOW)]) == 1
        document = await ledger.load_snapshot()
        assert [e.ticker for e in document.entries] == ["TSLA"]
        assert ledger.write_count == 1


class TestMentionLedgerCheckpoints:
    @pytest.mark.asyncio
    async def test_checkpoint_only_moves_forward(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        newer = snowflake_at(NOW, 5)
        older = snowflake_at(NOW, 4)

        assert await ledger.advance_checkpoint("500", newer, NOW)
        assert not await ledger.advance_checkpoint("500", older, NOW)
        assert not await ledger.advance_checkpoint("500", newer, NOW)

        checkpoint = await ledger.get_checkpoint("500")
        assert checkpoint.last_processed_id == newer
        assert checkpoint.last_processed_at == "2025-09-20T12:00:00.000Z"

    @pytest.mark.asyncio
    async def test_checkpoints_are_per_channel(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        await ledger.advance_checkpoint("500", "200", NOW)
        await ledger.advance_checkpoint("501", "100", NOW)

        assert (await ledger.get_checkpoint("500")).last_processed_id == "200"
        assert (await ledger.get_checkpoint("501")).last_processed_id == "100"
        assert await ledger.get_checkpoint("502") is None

    @pytest.mark.asyncio
    async def test_checkpoint_write_counts(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        await ledger.advance_checkpoint("500", "200", "2025-09-20T12:00:00.000Z")
        assert ledger.write_count == 1

    @pytest.mark.asyncio
    async def test_checkpoint_keeps_entries(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        await ledger.append([make_record("TSLA", "111", NOW)])
        await ledger.advance_checkpoint("500", "111", NOW)

        document = await ledger.load_snapshot()
        assert len(document.entries) == 1
        assert document.checkpoints["500"].last_processed_id == "111"

    @pytest.mark.asyncio
    async def test_concurrent_advances_keep_the_largest_id(self, ledger_path):
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))
        base = 10 ** 18
        ids = [str(base + i) for i in range(40)]
        random.Random(7).shuffle(ids)

        await asyncio.gather(*(ledger.advance_checkpoint("500", message_id, NOW) for message_id in ids))

        checkpoint = await ledger.get_checkpoint("500")
        assert checkpoint.last_processed_id == str(base + 39)

    @pytest.mark.asyncio
    async def test_invalid_stored_checkpoint_is_replaced(self, ledger_path):
        with open(ledger_path, "w", encoding="utf-8") as f:
            json.dump({"entries": [], "checkpoints": {"500": {"lastProcessedId": "abc", "lastProcessedAt": "x"}}}, f)
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        assert await ledger.advance_checkpoint("500", "200", NOW)
        assert (await ledger.get_checkpoint("500")).last_processed_id == "200"


class TestMentionLedgerUnparsedEntries:
    @pytest.mark.asyncio
    async def test_append_keeps_entries_it_cannot_parse(self, ledger_path):
        good = make_record("AAPL", "110", NOW).to_json()
        broken = {"ticker": "MSFT", "channelId": "500", "timestamp": "2025-09-20T11:00:00.000Z"}
        with open(ledger_path, "w", encoding="utf-8") as f:
            json.dump({"entries": [good, broken], "checkpoints": {}}, f)
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        assert await ledger.append([make_record("TSLA", "111", NOW)]) == 1
        await ledger.advance_checkpoint("500", "111", NOW)

        with open(ledger_path, encoding="utf-8") as f:
            stored = json.load(f)
        assert sorted(e["ticker"] for e in stored["entries"]) == ["AAPL", "MSFT", "TSLA"]
        assert broken in stored["entries"]

    @pytest.mark.asyncio
    async def test_unparsed_entry_blocks_duplicate(self, ledger_path):
        broken = {"ticker": "tsla", "messageId": "111", "author": "legacy"}
        with open(ledger_path, "w", encoding="utf-8") as f:
            json.dump([broken], f)
        ledger = MentionLedger(JsonLedgerRepository(ledger_path))

        assert await ledger.append([make_record("TSLA", "111", NOW)]) == 0
        assert ledger.write_count == 0
