#!/usr/bin/env python3
"""
Ticker dashboard view

Buttons (Hot5/Hot10/Hot20/Mine/All), a user select and a metric select under
the month-to-date dashboard embed. Each posted dashboard has its own view
instance, so the chosen metric is remembered per dashboard message.
Answers are ephemeral.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging

import discord

import ticker_reports as reports
from gainers import DEFAULT_METRIC, METRIC_LABELS
from ticker_queries import TickerQueries
from ticker_stats import FirstPoster


logger = logging.getLogger(__name__)

MAX_SELECT_OPTIONS = 25


def user_options(posters: list[FirstPoster]) -> list[discord.SelectOption]:
    return [
        discord.SelectOption(label=f"{p.name or 'Unknown'} ({p.count})"[:100], value=p.user_id)
        for p in posters[:MAX_SELECT_OPTIONS]
    ]


def metric_select_options(current: str) -> list[discord.SelectOption]:
    return [
        discord.SelectOption(label=label, value=value, default=value == current)
        for value, label in METRIC_LABELS.items()
    ]


async def send_paged(interaction: discord.Interaction, title: str, lines: list[str]) -> None:
    """Ephemeral follow-ups: title on the first chunk, each chunk under the reply limit."""
    if not lines:
        await interaction.followup.send("—", ephemeral=True)
        return
    chunks = reports.paginate_lines(lines, reports.MAX_REPLY_CHARS)
    await interaction.followup.send(f"**{title}**\n{chunks[0]}", ephemeral=True)
    for chunk in chunks[1:]:
        await interaction.followup.send(chunk, ephemeral=True)


class UserSelect(discord.ui.Select):
    def __init__(self, options: list[discord.SelectOption]):
        super().__init__(placeholder="Users", options=options, row=1)

    async def callback(self, interaction: discord.Interaction):
        view: DashboardView = self.view  # type: ignore[assignment]
        await view.show_user(interaction, self.values[0] if self.values else None)


class MetricSelect(discord.ui.Select):
    def __init__(self, current: str):
        super().__init__(placeholder="Metric", options=metric_select_options(current), row=2)

    async def callback(self, interaction: discord.Interaction):
        view: DashboardView = self.view  # type: ignore[assignment]
        view.metric = self.values[0] if self.values else DEFAULT_METRIC
        self.options = metric_select_options(view.metric)
        logger.debug(f"Dashboard metric set to {view.metric} by {interaction.user}")
        await interaction.response.defer()


class DashboardView(discord.ui.View):
    def __init__(self, queries: TickerQueries, posters: list[FirstPoster], metric: str = DEFAULT_METRIC):
        super().__init__(timeout=None)
        self.queries = queries
        self.metric = metric
        options = user_options(posters)
        if options:
            self.add_item(UserSelect(options))
        self.add_item(MetricSelect(metric))

    async def _show_hot(self, interaction: discord.Interaction, top_n: int) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            results = await self.queries.rank(await self.queries.month_items(), self.metric)
            await send_paged(interaction, reports.hot_title(top_n), reports.gainer_lines(results[:top_n]))
        except Exception as e:
            logger.error(f"Dashboard hot{top_n} failed: {e}", exc_info=True)
            await interaction.followup.send(reports.MSG_GAINERS_FAILED, ephemeral=True)

    @discord.ui.button(label="Hot5", style=discord.ButtonStyle.primary, row=0)  # type: ignore[arg-type]
    async def hot5(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._show_hot(interaction, 5)

    @discord.ui.button(label="Hot10", style=discord.ButtonStyle.primary, row=0)  # type: ignore[arg-type]
    async def hot10(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._show_hot(interaction, 10)

    @discord.ui.button(label="Hot20", style=discord.ButtonStyle.primary, row=0)  # type: ignore[arg-type]
    async def hot20(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._show_hot(interaction, 20)

    @discord.ui.button(label="Mine", style=discord.ButtonStyle.secondary, row=0)  # type: ignore[arg-type]
    async def mine(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            items = await self.queries.month_first_by_user(str(interaction.user.id))
            if not items:
                await interaction.followup.send(reports.MSG_NO_MONTH_MINE, ephemeral=True)
                return
            results = await self.queries.rank(items, self.metric, limit_tickers=200)
            await send_paged(interaction, reports.TITLE_MONTH_MINE, reports.gainer_lines(results, "you"))
        except Exception as e:
            logger.error(f"Dashboard mine failed: {e}", exc_info=True)
            await interaction.followup.send(reports.MSG_GAINERS_FAILED, ephemeral=True)

    @discord.ui.button(label="All", style=discord.ButtonStyle.secondary, row=0)  # type: ignore[arg-type]
    async def show_all(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.defer(ephemeral=True, thinking=True)
        items = await self.queries.month_items()
        await send_paged(interaction, reports.TITLE_MONTH_ALL, reports.all_ticker_lines(items))

    async def show_user(self, interaction: discord.Interaction, user_id: str | None) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        if not user_id:
            await interaction.followup.send(reports.MSG_NO_USER_SELECTED, ephemeral=True)
            return
        try:
            items = await self.queries.month_first_by_user(user_id)
            if not items:
                await interaction.followup.send(reports.MSG_NO_MONTH_USER, ephemeral=True)
                return
            results = await self.queries.rank(items, self.metric, limit_tickers=200)
            await send_paged(interaction, reports.TITLE_MONTH_USER, reports.gainer_lines(results))
        except Exception as e:
            logger.error(f"Dashboard user select failed: {e}", exc_info=True)
            await interaction.followup.send(reports.MSG_GAINERS_FAILED, ephemeral=True)

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item) -> None:
        logger.error(f"Dashboard interaction error ({item}): {error}", exc_info=error)
