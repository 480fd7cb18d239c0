from __future__ import annotations
import io
import logging
import time
from typing import Iterable, Optional
import discord
from discord import app_commands
from queery.config import Settings
from queery.errors import EmptyInputError
from queery.ingest import Ingestor, exclude_authors
from queery.periods import TimePeriod
from queery.query import ChartService
from queery.schemas import MessageEvent
from queery.storage import CounterStore

logger = logging.getLogger(__name__)

PERIOD_CHOICES = [app_commands.Choice(name=p.label, value=p.value) for p in TimePeriod]

def message_event(message) -> MessageEvent:
    return MessageEvent(
        stream_id=message.channel.id,
        author_id=message.author.id,
        author_is_bot=bool(message.author.bot),
        ts=message.created_at,
    )

def is_admin(admin_ids: Iterable[int], user_id: int) -> bool:
    admin_ids = set(admin_ids)
    return not admin_ids or user_id in admin_ids

class LoggedCommandTree(app_commands.CommandTree):
    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.command is not None:
            logger.info("Executing command %s...", interaction.command.qualified_name)
        return True

    async def on_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        if isinstance(error, app_commands.CheckFailure):
            msg = "You are not allowed to use this command."
        else:
            logger.error("Error while executing command: %s", error, exc_info=error)
            msg = "Something went wrong while running this command."
        if interaction.response.is_done():
            await interaction.followup.send(msg, ephemeral=True)
        else:
            await interaction.response.send_message(msg, ephemeral=True)

class QueeryBot(discord.Client):
    def __init__(self, store: CounterStore, s: Settings):
        super().__init__(intents=discord.Intents.default())
        self.tree = LoggedCommandTree(self)
        self.settings = s
        self.store = store
        self.charts = ChartService(store, s.resolution_seconds)
        self.ingestor: Optional[Ingestor] = None

    async def setup_hook(self) -> None:
        # self.user is populated once setup_hook runs.
        self.ingestor = Ingestor(
            self.store,
            self.settings.resolution_seconds,
            exclude_authors(self.user.id, ignore_bots=self.settings.ignore_bots),
        )
        register_commands(self)
        synced = await self.tree.sync()
        logger.info("Registered %d slash commands", len(synced))

    async def on_ready(self) -> None:
        logger.info("Logged in as %s", self.user)

    async def on_message(self, message: discord.Message) -> None:
        if self.ingestor is None:
            return
        await self.ingestor.handle(message_event(message))

    async def on_app_command_completion(self, interaction: discord.Interaction, command) -> None:
        logger.info("Executed command %s!", command.qualified_name)

def register_commands(bot: QueeryBot) -> None:
    admin_only = app_commands.check(lambda i: is_admin(bot.settings.admin_ids, i.user.id))

    @bot.tree.command(name="logs", description="Chart how many messages were sent in this channel")
    @app_commands.describe(period="How far back to look")
    @app_commands.choices(period=PERIOD_CHOICES)
    @admin_only
    async def logs(interaction: discord.Interaction, period: app_commands.Choice[str]):
        tp = TimePeriod(period.value)
        await interaction.response.defer(thinking=True)
        label = getattr(interaction.channel, "name", None) or str(interaction.channel_id)
        try:
            png = await bot.charts.render_chart(interaction.channel_id, tp, int(time.time()), label)
        except EmptyInputError:
            await interaction.followup.send(f"No messages logged in the last {tp.label.lower()}")
            return
        await interaction.followup.send(file=discord.File(io.BytesIO(png), filename="logs.png"))

    @bot.tree.command(name="ping", description="Measure latency")
    @admin_only
    async def ping(interaction: discord.Interaction):
        before = time.monotonic()
        await interaction.response.send_message("Measuring latency!")
        after = time.monotonic()
        await interaction.edit_original_response(
            content=f"Pong!\nDiscord Latency: {round(bot.latency * 1000)}ms\nBot Latency: {round((after - before) * 1000)}ms"
        )

def run_bot(store: CounterStore, s: Settings) -> None:
    if not s.discord_token:
        raise SystemExit("missing DISCORD_TOKEN")
    QueeryBot(store, s).run(s.discord_token, log_handler=None)
