#!/usr/bin/env python3
"""
Ticker Room Assistant - Discord Bot

Listens to the graphs channel (ticker mentions into the ledger), the chat
rooms (per-day context log) and the bot room (Hebrew commands and free-text
questions). On startup it catches up on both logs before answering.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

# Standard library imports
import asyncio
import logging

# Third-party imports
import discord

# Local application imports
import constants as const
import ticker_reports as reports
import util
from backfill import run_backfill_once
from channel_source import ChatMessage, DiscordChannelSource
from chat_assistant import ChatAssistant
from command_router import Command, clean_command_text, route_command
from context_log import ContextLog
from dashboard_view import DashboardView
from earnings import EarningsCalendar, format_earnings_chunks, group_by_session
from errors import SymbolUniverseError
from gainers import GainersCalculator
from ledger_repository import JsonLedgerRepository
from mention_ingest import MentionIngestor
from mention_ledger import MentionLedger
from publisher import create_publisher
from ticker_queries import TickerQueries
from ticker_universe import TickerUniverse


# Initialize root logger for the application
util.setup_logger(name=None, level="INFO", console=True)
logger = logging.getLogger(__name__)

MSG_COLLECTING_CONTEXT = "🔵 שומר הודעות מחדר בלה-בלה..."
MSG_SCANNING = "🔵 מבצע סריקה של הטיקרים בחדר גרפים..."
MSG_READY = "🟢 חזרתי לפעילות, אני זמין, שלחו לי הודעה!"
MSG_SHUTDOWN = "🔴 אני יורד לדקה של תחזוקה..."
MSG_REQUEST_ERROR = "❌ קרתה שגיאה בעיבוד הבקשה."
MSG_QUESTION_ERROR = "❌ שגיאה בעיבוד השאלה, אנא נסה שוב."
MSG_NO_EARNINGS = "לא מצאתי דיווחי רווחים להיום."
MSG_EARNINGS_ERROR = "❌ מתנצל, קרתה שגיאה בשליפת דיווחי הרווחים."

COLOR_ALL = 0x57F287
COLOR_MINE = 0x5865F2
COLOR_FIRST_BY_USER = 0xFFC107
COLOR_DASHBOARD = 0x00B7FF


def build_embeds(title: str, lines: list[str], footer: str, color: int) -> list[discord.Embed]:
    """One embed per page, footer 'page i/n - footer'."""
    pages = reports.paginate_lines(lines)
    embeds = []
    for i, page in enumerate(pages, start=1):
        embed = discord.Embed(title=title, description=page or "—", color=color)
        embed.set_footer(text=f"עמוד {i}/{len(pages)} — {footer}")
        embeds.append(embed)
    return embeds


class TickerBot(discord.Client):
    def __init__(self, intents: discord.Intents) -> None:
        super().__init__(intents=intents)

        self.universe: TickerUniverse | None = None
        self.ledger = MentionLedger(
            JsonLedgerRepository(const.LEDGER_PATH),
            publisher=create_publisher(const.PUBLISH_COMMIT_MESSAGE),
        )
        self.ingestor: MentionIngestor | None = None
        self.context_log = ContextLog(const.CONTEXT_LOG_DIR, create_publisher(const.CONTEXT_COMMIT_MESSAGE))
        self.assistant = ChatAssistant(self.context_log, channel_id=const.CONTEXT_CHANNEL_ID)
        self.queries = TickerQueries(self.ledger, GainersCalculator())
        self.earnings = EarningsCalendar()

        self.bot_channel: discord.abc.Messageable | None = None
        self._startup_done = False

    async def setup_hook(self) -> None:
        # A missing reference file is fatal: raise before connecting
        self.universe = TickerUniverse.get_instance(const.ALL_TICKERS_PATH)
        self.ingestor = MentionIngestor(self.ledger, self.universe)
        logger.info(f"Ticker universe ready: {self.universe}")

    async def _announce(self, text: str) -> None:
        if self.bot_channel is None:
            logger.warning(f"Bot channel not found, skipping message: {text}")
            return
        try:
            await self.bot_channel.send(text)
        except discord.HTTPException as e:
            logger.warning(f"Unable to post to bot channel: {e}")

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user}")
        if self._startup_done:
            return
        self._startup_done = True

        try:
            self.bot_channel = self.get_channel(int(const.BOT_CHANNEL_ID)) if const.BOT_CHANNEL_ID else None

            await self._announce(MSG_COLLECTING_CONTEXT)
            await self.backfill_context()

            await self._announce(MSG_SCANNING)
            await self.backfill_mentions()

            logger.info("Backfill done; now listening for new messages.")
            await self._announce(MSG_READY)
        except Exception as e:
            logger.error(f"Error during startup: {e}", exc_info=True)

    async def backfill_context(self) -> None:
        for channel_id in const.CHATROOM_IDS:
            channel = self.get_channel(int(channel_id))
            if channel is None:
                logger.warning(f"Chat room {channel_id} not found, skipping context backfill")
                continue
            try:
                added = await self.context_log.backfill_recent_days(
                    DiscordChannelSource(channel), days=const.CONTEXT_BACKFILL_DAYS
                )
                logger.info(f"Backfilled {added} context message(s) for channel {channel_id}")
            except Exception as e:
                logger.error(f"Context backfill failed for channel {channel_id}: {e}", exc_info=True)

    async def backfill_mentions(self) -> None:
        if not const.GRAPHS_CHANNEL_ID or self.ingestor is None:
            logger.warning("GRAPHS_CHANNEL_ID not configured, skipping mention backfill")
            return
        channel = self.get_channel(int(const.GRAPHS_CHANNEL_ID))
        if channel is None:
            logger.warning(f"Graphs channel {const.GRAPHS_CHANNEL_ID} not found, skipping mention backfill")
            return
        try:
            await run_backfill_once(
                DiscordChannelSource(channel),
                self.ingestor,
                lookback_days=const.BACKFILL_LOOKBACK_DAYS,
                bot_user_id=str(self.user.id) if self.user else None,
            )
        except Exception as e:
            logger.error(f"Mention backfill failed: {e}", exc_info=True)

    async def close(self) -> None:
        """Shut down without draining queued ledger writes"""
        logger.info("Shutting down bot...")
        await super().close()

    async def on_message(self, message: discord.Message) -> None:
        try:
            await self.route_message(message)
        except Exception as e:
            logger.error(f"on_message handler error for {message.id}: {e}", exc_info=True)
            try:
                await message.channel.send(MSG_REQUEST_ERROR)
            except discord.HTTPException:
                logger.warning("Unable to report the error to the channel")

    async def handle_operator_command(self, content: str) -> None:
        """Webhook commands in the log channel: 'shutdown <secret>' and 'reload-tickers <secret>'"""
        if content == f"shutdown {const.SHUTDOWN_SECRET}":
            logger.warning("Shutdown command received via webhook, shutting down...")
            await self._announce(MSG_SHUTDOWN)
            await self.close()
        elif content == f"reload-tickers {const.SHUTDOWN_SECRET}":
            self.reload_universe()

    def reload_universe(self) -> None:
        if self.universe is None or self.ingestor is None:
            logger.warning("Ticker universe not loaded yet, ignoring reload")
            return
        try:
            self.universe = self.universe.reload()
        except SymbolUniverseError as e:
            logger.error(f"Ticker reload failed, keeping {self.universe}: {e}")
            return
        self.ingestor.universe = self.universe
        logger.info(f"Ticker universe reloaded: {self.universe}")

    async def route_message(self, message: discord.Message) -> None:
        channel_id = str(message.channel.id)

        if message.webhook_id:
            if channel_id == const.LOG_CHANNEL_ID and const.SHUTDOWN_SECRET:
                await self.handle_operator_command((message.content or "").strip())
            return

        if message.author.bot:
            return

        if channel_id in const.CHATROOM_IDS:
            try:
                await self.context_log.append(ChatMessage.from_discord_message(message))
            except Exception as e:
                logger.error(f"Failed to log message {message.id}: {e}", exc_info=True)

        if channel_id == const.GRAPHS_CHANNEL_ID:
            if (message.content or "").strip() and self.ingestor is not None:
                await self.ingestor.handle_message(ChatMessage.from_discord_message(message), silent=True)
            return

        if channel_id == const.BOT_CHANNEL_ID:
            await self.handle_bot_room(message)

    def mentions_bot(self, message: discord.Message) -> bool:
        if self.user is not None and any(u.id == self.user.id for u in message.mentions):
            return True
        content = (message.content or "").lower()
        return any(alias in content for alias in const.BOT_NAME_ALIASES)

    async def handle_bot_room(self, message: discord.Message) -> None:
        if not (message.content or "").strip() or not self.mentions_bot(message):
            return

        others = [u for u in message.mentions if self.user is None or u.id != self.user.id]
        routed = route_command(clean_command_text(message.content), other_mentions=bool(others))
        logger.info(f"Bot room: {message.author} -> {routed.command.value} ({routed.text!r})")

        if routed.command == Command.MINE:
            await self.list_my_tickers(message, routed.from_date)
        elif routed.command == Command.ALL:
            await self.list_all_tickers(message.channel)
        elif routed.command == Command.DASHBOARD:
            await self.show_dashboard(message.channel)
        elif routed.command == Command.FIRST_BY_USER:
            await self.list_first_by_user(message.channel, others[0])
        elif routed.command == Command.EARNINGS_SP500:
            await self.send_earnings(message.channel, "sp500")
        elif routed.command == Command.EARNINGS_ALL:
            await self.send_earnings(message.channel, "all")
        elif routed.command == Command.QUESTION:
            await self.answer_question(message.channel, routed.text)

    async def _send_embeds(self, channel, embeds: list[discord.Embed]) -> None:
        for embed in embeds:
            await channel.send(embed=embed)

    async def list_my_tickers(self, message: discord.Message, from_date=None) -> None:
        items = await self.queries.my_tickers(str(message.author.id), from_date)
        if not items:
            await message.channel.send(reports.MSG_NO_MY_TICKERS)
            return
        title = reports.mine_title(from_date.strftime("%Y-%m-%d") if from_date else None)
        embeds = build_embeds(title, reports.my_ticker_lines(items), reports.footer(items), COLOR_MINE)
        await self._send_embeds(message.channel, embeds)

    async def list_all_tickers(self, channel) -> None:
        items, total_entries = await self.queries.all_tickers()
        if not items:
            await channel.send(reports.MSG_NO_TICKERS)
            return
        embeds = build_embeds(
            reports.TITLE_ALL, reports.all_ticker_lines(items), reports.all_footer(items, total_entries), COLOR_ALL
        )
        await self._send_embeds(channel, embeds)

    async def list_first_by_user(self, channel, target: discord.abc.User) -> None:
        items = await self.queries.first_by_user(str(target.id))
        if not items:
            await channel.send(reports.no_first_by_user_message(target.name))
            return
        embeds = build_embeds(
            reports.first_by_user_title(target.name),
            reports.first_by_user_lines(items),
            reports.footer(items),
            COLOR_FIRST_BY_USER,
        )
        await self._send_embeds(channel, embeds)

    async def show_dashboard(self, channel) -> None:
        summary, top_gainers = await self.queries.dashboard()
        embed = discord.Embed(
            title=reports.TITLE_DASHBOARD,
            description="\n".join(reports.dashboard_lines(summary, top_gainers)),
            color=COLOR_DASHBOARD,
        )
        await channel.send(embed=embed, view=DashboardView(self.queries, summary.posters))

    async def send_earnings(self, channel, scope: str) -> None:
        try:
            items = await asyncio.to_thread(self.earnings.todays_earnings, scope)
            if not items:
                await channel.send(MSG_NO_EARNINGS)
                return
            for chunk in format_earnings_chunks(group_by_session(items)):
                await channel.send(chunk)
            await channel.send(f"נמצאו {len(items)} דיווחי רווחים להיום.")
        except Exception as e:
            logger.error(f"Earnings ({scope}) failed: {e}", exc_info=True)
            await channel.send(MSG_EARNINGS_ERROR)

    async def answer_question(self, channel, question: str) -> None:
        async with channel.typing():
            answer = await self.assistant.ask(question)
        logger.info(f"Answer: {len(answer)} chars")
        for chunk in util.smart_split_message(answer or MSG_QUESTION_ERROR, const.DISCORD_MAX_CHAR_COUNT):
            await channel.send(chunk)


def main() -> None:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True

    client = TickerBot(intents=intents)

    if not const.DISCORD_TOKEN:
        logger.error("DISCORD_TOKEN environment variable not set")
        raise ValueError("DISCORD_TOKEN environment variable is required")

    logger.info("Starting Discord bot")
    client.run(const.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
