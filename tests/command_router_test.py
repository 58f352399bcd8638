"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from datetime import datetime, timezone

import pytest

from command_router import Command, clean_command_text, route_command


class TestCleanCommandText:
    def test_strips_mentions_and_alias(self):
        assert clean_command_text("<@999> @SuperPony  טיקרים שלי ") == "טיקרים שלי"

    def test_role_and_nick_mentions(self):
        assert clean_command_text("<@!999> Hello <@&123>") == "hello"

    def test_none(self):
        assert clean_command_text(None) == ""


class TestRouteCommand:
    @pytest.mark.parametrize("text, command", [
        ("טיקרים שלי", Command.MINE),
        ("שלי", Command.MINE),
        ("כל הטיקרים", Command.ALL),
        ("כל טיקרים", Command.ALL),
        ("טיקרים", Command.DASHBOARD),
        ("דיווחים 500", Command.EARNINGS_SP500),
        ("דיווחים", Command.EARNINGS_ALL),
        ("מדווחות", Command.EARNINGS_ALL),
        ("מה דעתכם על tsla?", Command.QUESTION),
        ("", Command.NONE),
    ])
    def test_phrases(self, text, command):
        assert route_command(text).command == command

    def test_mine_with_from_date(self):
        routed = route_command("טיקרים שלי 2025-09-01")
        assert routed.command == Command.MINE
        assert routed.from_date == datetime(2025, 9, 1, tzinfo=timezone.utc)

    def test_invalid_from_date_is_a_question(self):
        assert route_command("טיקרים שלי 2025-02-30").command == Command.QUESTION

    @pytest.mark.parametrize("text", ["טיקרים", "הטיקרים", "של"])
    def test_first_by_user_needs_other_mention(self, text):
        assert route_command(text, other_mentions=True).command == Command.FIRST_BY_USER

    def test_personal_commands_ignored_with_other_mentions(self):
        assert route_command("טיקרים שלי", other_mentions=True).command == Command.QUESTION

    def test_earnings_with_other_mentions(self):
        assert route_command("דיווחים", other_mentions=True).command == Command.EARNINGS_ALL

    def test_question_keeps_text(self):
        assert route_command("what happened today").text == "what happened today"
