import hikari
import pytest

from functionality.feedr.models import CanonicalIdentity, LiveState, Platform, VideoState
from functionality.feedr.permissions import REQUIRED_BOT_PERMISSIONS, ChannelCheck
from functionality.feedr.subscriptions import (
	RejectReason,
	SubscriptionService,
	TrackCommand,
	UntrackCommand,
)


pytestmark = pytest.mark.asyncio

GUILD = "100"
TARGET = "555"
CHANNEL = "UC" + "a" * 22
MANAGER = hikari.Permissions.MANAGE_CHANNELS


class Inspector:
	def __init__(self, perms=REQUIRED_BOT_PERMISSIONS, is_text=True, guild_id=int(GUILD)):
		self.check = lambda cid: ChannelCheck(cid, guild_id, "feed", is_text, perms)
		self.calls: list[int] = []

	async def __call__(self, channel_id):
		self.calls.append(channel_id)
		return self.check(channel_id)


def build(store, stub_source, inspector=None):
	youtube = stub_source(Platform.YOUTUBE)
	youtube.identities[CHANNEL] = CanonicalIdentity(Platform.YOUTUBE, CHANNEL, "Creator")
	youtube.initial_states[CHANNEL] = VideoState("abc")
	twitch = stub_source(Platform.TWITCH, batch_size=100)
	twitch.identities["streamer"] = CanonicalIdentity(Platform.TWITCH, "42", "Streamer", "streamer")
	twitch.initial_states["42"] = LiveState(False)
	service = SubscriptionService(
		store=store,
		sources={Platform.YOUTUBE: youtube, Platform.TWITCH: twitch},
		channel_inspector=inspector or Inspector(),
	)
	return service, youtube, twitch


def track(raw=CHANNEL, platform=Platform.YOUTUBE, guild=GUILD, perms=MANAGER, role=None):
	return TrackCommand(guild, platform, raw, TARGET, role, perms)


def untrack(raw=CHANNEL, platform=Platform.YOUTUBE, guild=GUILD, perms=MANAGER):
	return UntrackCommand(guild, platform, raw, perms)


async def test_malformed_id_rejected_before_any_lookup(store, stub_source):
	inspector = Inspector()
	service, youtube, _ = build(store, stub_source, inspector)

	result = await service.execute(track(raw="UX" + "a" * 22))

	assert result.reason is RejectReason.INVALID_FORMAT
	assert youtube.resolve_calls == []
	assert inspector.calls == []


async def test_missing_send_permission_creates_nothing(store, stub_source):
	perms = REQUIRED_BOT_PERMISSIONS & ~hikari.Permissions.SEND_MESSAGES
	service, youtube, _ = build(store, stub_source, Inspector(perms=perms))

	result = await service.execute(track())

	assert result.reason is RejectReason.BOT_PERMISSIONS
	assert "Send Messages" in result.message
	assert not await store.is_tracked(Platform.YOUTUBE, CHANNEL)
	assert youtube.resolve_calls == []


async def test_track_then_untrack_leaves_identity(store, stub_source):
	service, _, _ = build(store, stub_source)

	tracked = await service.execute(track(role="9"))
	assert tracked.ok
	assert tracked.message == f"Started tracking the YouTube channel Creator in <#{TARGET}>!"
	assert tracked.subscription.mention_role_id == "9"
	assert await store.get_state(Platform.YOUTUBE, CHANNEL) == VideoState("abc")

	removed = await service.execute(untrack())
	assert removed.ok
	assert await store.list_subscriptions(Platform.YOUTUBE, CHANNEL) == []
	assert await store.get_state(Platform.YOUTUBE, CHANNEL) == VideoState("abc")


async def test_second_guild_reuses_existing_state(store, stub_source):
	service, youtube, _ = build(store, stub_source)
	await service.execute(track())
	await store.update_state(Platform.YOUTUBE, CHANNEL, VideoState("later"))
	initial_lookups = []

	async def fetch_initial_state(canonical_id):
		initial_lookups.append(canonical_id)
		return VideoState("ignored")

	youtube.fetch_initial_state = fetch_initial_state
	service.channel_inspector = Inspector(guild_id=200)

	result = await service.execute(track(guild="200"))

	assert result.ok, result.message
	assert initial_lookups == []
	assert await store.get_state(Platform.YOUTUBE, CHANNEL) == VideoState("later")


async def test_duplicate_track_rejected(store, stub_source):
	service, _, _ = build(store, stub_source)
	assert (await service.execute(track())).ok
	result = await service.execute(track())
	assert result.reason is RejectReason.ALREADY_TRACKED


async def test_untrack_unknown_rejected(store, stub_source):
	service, _, _ = build(store, stub_source)
	result = await service.execute(untrack())
	assert result.reason is RejectReason.NOT_TRACKED


async def test_dm_and_missing_manage_permission(store, stub_source):
	service, _, _ = build(store, stub_source)
	assert (await service.execute(track(guild=None))).reason is RejectReason.NOT_IN_GUILD
	assert (await service.execute(track(perms=hikari.Permissions.SEND_MESSAGES))).reason is RejectReason.PERMISSION_DENIED
	assert (await service.execute(untrack(perms=None))).reason is RejectReason.PERMISSION_DENIED


async def test_unknown_creator_and_upstream_failure(store, stub_source):
	service, youtube, _ = build(store, stub_source)
	other = "UC" + "z" * 22
	assert (await service.execute(track(raw=other))).reason is RejectReason.NOT_FOUND

	youtube.identities[other] = CanonicalIdentity(Platform.YOUTUBE, other, "Other")
	result = await service.execute(track(raw=other))
	assert result.reason is RejectReason.UPSTREAM_ERROR
	assert not await store.is_tracked(Platform.YOUTUBE, other)


async def test_channel_checks(store, stub_source):
	service, _, _ = build(store, stub_source, Inspector(is_text=False))
	assert (await service.execute(track())).reason is RejectReason.INVALID_CHANNEL
	service, _, _ = build(store, stub_source, Inspector(guild_id=999))
	assert (await service.execute(track())).reason is RejectReason.INVALID_CHANNEL


async def test_twitch_untrack_resolves_login(store, stub_source):
	service, _, twitch = build(store, stub_source)
	assert (await service.execute(track(raw="streamer", platform=Platform.TWITCH))).ok

	result = await service.execute(untrack(raw="streamer", platform=Platform.TWITCH))

	assert result.ok
	assert twitch.resolve_calls == ["streamer", "streamer"]
	assert await store.is_tracked(Platform.TWITCH, "42")
	assert await service.list_tracked(GUILD) == []


async def test_unknown_command_type_raises(store, stub_source):
	service, _, _ = build(store, stub_source)
	with pytest.raises(TypeError):
		await service.execute(object())
