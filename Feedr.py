"""Feedr — Discord bot entrypoint.

Sets up the Hikari + Lightbulb client, registers commands, opens the tracking
store and starts the YouTube/Twitch reconciliation loops. Configuration is
provided via environment variables loaded from .env when present.
"""

import os
import sys
import asyncio
from typing import Optional

import aiohttp
import hikari
import lightbulb
from dotenv import load_dotenv
from loguru import logger

# Optional: use uvloop on UNIX-like systems for better event loop performance
if os.name != "nt":
	try:
		import uvloop  # type: ignore

		asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
	except ImportError:
		# If uvloop isn't available, continue with default asyncio loop
		pass

from functionality.feedr import (
	FeedMonitor,
	FeedrSettings,
	NotificationDispatcher,
	Platform,
	SubscriptionService,
	TrackingStore,
	TwitchClient,
	TwitchCredentialProvider,
	YouTubeClient,
)
from functionality.feedr.commands import SharedContext, register_commands
from functionality.feedr.http import DEFAULT_TIMEOUT
from functionality.feedr.log import configure_logging
from functionality.feedr.permissions import inspect_target_channel

# Load .env file and read settings (raises ConfigError on missing credentials)
load_dotenv()
settings = FeedrSettings.from_env(sys.argv)
configure_logging(settings.log_level)

PRESENCE_INTERVAL_SECONDS = 60

# Create the Hikari gateway bot
bot = hikari.GatewayBot(
	token=settings.discord_token,
	intents=hikari.Intents.GUILDS | hikari.Intents.GUILD_MESSAGES,
)

# Create the Lightbulb client from the Hikari app (Lightbulb v3 style)
client = lightbulb.client_from_app(bot, default_enabled_guilds=settings.guild_ids)

# Start/stop Lightbulb with the Hikari app lifecycle
bot.subscribe(hikari.StartedEvent, client.start)
bot.subscribe(hikari.StoppingEvent, client.stop)

store = TrackingStore(settings.database_url, prune_orphans=settings.prune_orphans)
youtube = YouTubeClient(settings.youtube_api_key)
twitch = TwitchClient(TwitchCredentialProvider(settings.twitch_client_id, settings.twitch_client_secret))
sources = {Platform.YOUTUBE: youtube, Platform.TWITCH: twitch}


async def _inspect_channel(channel_id: int):
	me = bot.get_me() or await bot.rest.fetch_my_user()
	return await inspect_target_channel(bot.rest, channel_id, int(me.id))


service = SubscriptionService(store=store, sources=sources, channel_inspector=_inspect_channel)
monitor = FeedMonitor(
	store=store,
	sources=sources,
	dispatcher=NotificationDispatcher(bot, send_delay_ms=settings.send_delay_ms),
	intervals={
		Platform.YOUTUBE: settings.youtube_poll_seconds,
		Platform.TWITCH: settings.twitch_poll_seconds,
	},
	continue_on_error=settings.continue_on_chunk_error,
)

# Register commands (kept separate for maintainability)
register_commands(client, SharedContext(service=service))

_http: Optional[aiohttp.ClientSession] = None
_presence_task: Optional[asyncio.Task] = None


def _presence_text() -> str:
	guilds = bot.cache.get_guilds_view()
	members = sum(int(g.member_count or 0) for g in guilds.values())
	return f"Notifying {len(guilds)} servers [{members:,} members]"


async def _presence_loop() -> None:
	while True:
		try:
			await bot.update_presence(
				status=hikari.Status.ONLINE,
				activity=hikari.Activity(name=_presence_text(), type=hikari.ActivityType.CUSTOM),
			)
		except Exception:
			logger.exception("Presence update failed")
		await asyncio.sleep(PRESENCE_INTERVAL_SECONDS)


@bot.listen(hikari.StartedEvent)
async def _on_started(_: hikari.StartedEvent) -> None:
	"""Open the store and HTTP session, then start polling."""
	global _http, _presence_task
	await store.init()
	_http = aiohttp.ClientSession(timeout=DEFAULT_TIMEOUT)
	youtube.session = _http
	twitch.session = _http
	monitor.start()
	_presence_task = asyncio.create_task(_presence_loop(), name="feedr-presence")
	me = bot.get_me()
	logger.info("Ready! Logged in as {}", me.username if me else "unknown")


@bot.listen(hikari.StoppingEvent)
async def _on_stopping(_: hikari.StoppingEvent) -> None:
	"""Stop background work and release resources."""
	global _http, _presence_task
	await monitor.stop()
	if _presence_task:
		_presence_task.cancel()
		try:
			await _presence_task
		except asyncio.CancelledError:
			pass
		_presence_task = None
	if _http:
		await _http.close()
		_http = None
	await store.close()


# Run the bot
if __name__ == "__main__":
	bot.run()
