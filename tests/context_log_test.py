"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import json
import os
from datetime import datetime, timedelta, timezone

import pytest

import constants as const
from context_log import ContextLog, ContextLogRecord, should_log_message
from test_data_factory import NOW, FakeChannelSource, RecordingPublisher, make_message


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def log(tmp_path, publisher):
    return ContextLog(str(tmp_path / "logs"), publisher, tz_name="Asia/Jerusalem")


def read_file(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class TestShouldLogMessage:
    @pytest.mark.parametrize("content", ["", "   ", None, "😀😀", "🔥 <:pepe:123456>", "https://tenor.com/view/cat-123"])
    def test_skipped(self, content):
        assert not should_log_message(content)

    @pytest.mark.parametrize("content", ["TSLA to the moon 🚀", "שלום", "see https://example.com"])
    def test_logged(self, content):
        assert should_log_message(content)


class TestAppend:
    @pytest.mark.asyncio
    async def test_lands_in_local_day_file(self, log, publisher):
        late = datetime(2025, 9, 19, 22, 30, tzinfo=timezone.utc)
        message = make_message(late, "after midnight in Israel", channel_id="700")

        assert await log.append(message)

        path = os.path.join(log.log_dir, "700_2025-09-20.jsonl")
        [stored] = read_file(path)
        assert stored["msgLink"] == message.url
        assert stored["author"] == "alice"
        assert stored["createdAt"] == "2025-09-19T22:30:00.000Z"
        assert stored["refMsgLink"] == ""
        assert publisher.paths == [path]

    @pytest.mark.asyncio
    async def test_filtered_message_not_written(self, log, publisher):
        assert not await log.append(make_message(NOW, "😀"))
        assert publisher.paths == []
        assert not os.path.exists(log.log_dir)

    @pytest.mark.asyncio
    async def test_reply_link_and_attachments(self, log):
        message = make_message(NOW, "look at this chart")
        message.reference_id = "123"
        message.attachments = [{"url": "https://cdn.example/chart.png", "name": "chart.png"}]

        await log.append(message)

        [stored] = read_file(log.path_for("500", NOW))
        assert stored["refMsgLink"] == "https://discord.com/channels/900/500/123"
        assert stored["attachments"] == [{"url": "https://cdn.example/chart.png", "name": "chart.png"}]


class TestReads:
    @pytest.mark.asyncio
    async def test_read_recent_window(self, log):
        await log.append(make_message(NOW - timedelta(minutes=90), "too old"))
        await log.append(make_message(NOW - timedelta(minutes=30), "half an hour ago"))
        await log.append(make_message(NOW - timedelta(minutes=5), "just now"))
        with open(log.path_for("500", NOW), "a", encoding="utf-8") as f:
            f.write("{broken\n")

        records = await log.read_recent("500", minutes=60, now=NOW)

        assert [r.content for r in records] == ["half an hour ago", "just now"]

    @pytest.mark.asyncio
    async def test_read_recent_includes_yesterday_file(self, log):
        # 21:30Z on the 19th is 00:30 on the 20th locally; 20:50Z is still the 19th
        now = datetime(2025, 9, 19, 21, 30, tzinfo=timezone.utc)
        await log.append(make_message(now - timedelta(minutes=40), "yesterday evening"))
        await log.append(make_message(now - timedelta(minutes=10), "after midnight"))

        records = await log.read_recent("500", minutes=60, now=now)

        assert [r.content for r in records] == ["yesterday evening", "after midnight"]

    @pytest.mark.asyncio
    async def test_read_last_n_for_day(self, log):
        for i in range(5):
            await log.append(make_message(NOW - timedelta(minutes=10 - i), f"line {i}"))

        records = await log.read_last_n("500", n=2, day="2025-09-20")

        assert [r.content for r in records] == ["line 3", "line 4"]

    @pytest.mark.asyncio
    async def test_read_last_n_missing_day(self, log):
        assert await log.read_last_n("500", day="2025-01-01") == []

    @pytest.mark.asyncio
    async def test_read_last_n_prefers_recently_modified(self, log):
        await log.append(make_message(NOW, "today"))
        await log.append(make_message(NOW - timedelta(days=1), "yesterday"))
        today_path = log.path_for("500", NOW)
        yesterday_path = log.path_for("500", NOW - timedelta(days=1))
        os.utime(today_path, (1_000_000, 1_000_000))
        os.utime(yesterday_path, (2_000_000, 2_000_000))

        records = await log.read_last_n("500", now=NOW)

        assert [r.content for r in records] == ["yesterday"]


class TestBackfillRecentDays:
    @pytest.mark.asyncio
    async def test_fills_missing_records(self, log, publisher):
        already = make_message(NOW - timedelta(hours=4), "already logged")
        await log.append(already)
        publisher.paths.clear()

        source = FakeChannelSource("500", [
            make_message(NOW - timedelta(days=12), "outside the window"),
            make_message(NOW - timedelta(days=1), "yesterday talk"),
            already,
            make_message(NOW - timedelta(hours=3), "😀"),
            make_message(NOW - timedelta(hours=2), "bot noise", author_is_bot=True),
            make_message(NOW - timedelta(hours=1), "fresh message"),
        ])

        written = await log.backfill_recent_days(source, days=10, page_size=2, now=NOW)

        assert written == 2
        today_path = log.path_for("500", NOW)
        yesterday_path = log.path_for("500", NOW - timedelta(days=1))
        assert [r["content"] for r in read_file(today_path)] == ["already logged", "fresh message"]
        assert [r["content"] for r in read_file(yesterday_path)] == ["yesterday talk"]
        assert publisher.paths == [yesterday_path, today_path]

    @pytest.mark.asyncio
    async def test_second_run_writes_nothing(self, log, publisher):
        source = FakeChannelSource("500", [make_message(NOW - timedelta(hours=1), "fresh message")])
        await log.backfill_recent_days(source, days=10, now=NOW)
        publisher.paths.clear()

        assert await log.backfill_recent_days(source, days=10, now=NOW) == 0
        assert publisher.paths == []


class TestContextLogRecord:
    def test_message_id_from_link(self):
        record = ContextLogRecord(
            msg_link="https://discord.com/channels/900/500/1234",
            author="alice",
            content="x",
            created_at="2025-09-20T12:00:00.000Z",
        )
        assert record.message_id == "1234"
        assert record.created == NOW

    def test_from_json_defaults(self):
        record = ContextLogRecord.from_json({"msgLink": "l", "createdAt": "2025-09-20T12:00:00.000Z"})
        assert record.author == const.ANONYMOUS_AUTHOR
        assert record.content == ""
        assert record.attachments == []
