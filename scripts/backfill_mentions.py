"""
One-shot mention backfill - scan a channel's history into the mention ledger

Resumes from the channel checkpoint when there is one, otherwise scans the
last N days. Safe to run while the bot is stopped; a second run with no new
messages changes nothing.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import sys
sys.path.insert(0, 'src')

import asyncio
import discord

import constants as const
import util
from backfill import run_backfill_once
from channel_source import DiscordChannelSource
from ledger_repository import JsonLedgerRepository
from mention_ingest import MentionIngestor
from mention_ledger import MentionLedger
from publisher import create_publisher
from ticker_universe import TickerUniverse

# Setup logging
util.setup_logger(name=None, level="INFO", console=True, log_file=const.CLI_LOG_FILE)
logger = util.get_logger(__name__)


async def main(channel_id: str, days: int, ledger_path: str):
    """
    Backfill one channel

    Args:
        channel_id: Discord channel to scan
        days: Lookback window when the channel has no checkpoint
        ledger_path: Mention ledger JSON file
    """
    universe = TickerUniverse.get_instance(const.ALL_TICKERS_PATH)
    ledger = MentionLedger(JsonLedgerRepository(ledger_path), create_publisher(const.PUBLISH_COMMIT_MESSAGE))
    ingestor = MentionIngestor(ledger, universe)

    intents = discord.Intents.default()
    intents.message_content = True
    intents.messages = True

    client = discord.Client(intents=intents)

    @client.event
    async def on_ready():
        logger.info(f"Logged in as {client.user}")
        try:
            channel = client.get_channel(int(channel_id))
            if channel is None:
                logger.error(f"Channel {channel_id} not found")
                return

            before = ledger.write_count
            scanned = await run_backfill_once(
                DiscordChannelSource(channel),
                ingestor,
                lookback_days=days,
                bot_user_id=str(client.user.id) if client.user else None,
            )
            logger.info("=" * 80)
            logger.info(f"Backfill complete for #{getattr(channel, 'name', channel_id)}")
            logger.info(f"  Messages scanned: {scanned}")
            logger.info(f"  Ledger writes: {ledger.write_count - before}")
        except Exception as e:
            logger.error(f"Backfill failed: {e}", exc_info=True)
        finally:
            await client.close()

    try:
        if const.DISCORD_TOKEN is None:
            raise ValueError("DISCORD_TOKEN environment variable not set")
        await client.start(const.DISCORD_TOKEN)
    except KeyboardInterrupt:
        logger.info("Backfill interrupted by user")
    finally:
        if not client.is_closed():
            await client.close()
        # Give time for cleanup
        await asyncio.sleep(0.5)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Backfill ticker mentions from a Discord channel")
    parser.add_argument(
        "--channel-id",
        default=const.GRAPHS_CHANNEL_ID,
        help="Channel to scan (default: GRAPHS_CHANNEL_ID)"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=const.BACKFILL_LOOKBACK_DAYS,
        help=f"Lookback when there is no checkpoint (default: {const.BACKFILL_LOOKBACK_DAYS})"
    )
    parser.add_argument(
        "--ledger-path",
        default=const.LEDGER_PATH,
        help="Mention ledger JSON file"
    )

    args = parser.parse_args()

    if not args.channel_id:
        print("Error: --channel-id is required (GRAPHS_CHANNEL_ID not set)")
        sys.exit(1)
    if args.days < 1 or args.days > 365:
        print("Error: Days must be between 1 and 365")
        sys.exit(1)

    asyncio.run(main(args.channel_id, args.days, args.ledger_path))
