import hikari
import pytest

from functionality.feedr.permissions import (
	REQUIRED_BOT_PERMISSIONS,
	compute_channel_permissions,
	describe_permissions,
	has_manage_authority,
	inspect_target_channel,
	missing_permissions,
)

P = hikari.Permissions
GUILD = 10
BOT = 20
ROLE = 30


def overwrite(target, kind, allow=P.NONE, deny=P.NONE):
	return hikari.PermissionOverwrite(id=target, type=kind, allow=allow, deny=deny)


def test_role_permissions_grant_everything_required():
	perms = compute_channel_permissions(
		guild_id=GUILD,
		owner_id=1,
		member_id=BOT,
		member_role_ids=[ROLE],
		role_permissions={GUILD: P.VIEW_CHANNEL, ROLE: REQUIRED_BOT_PERMISSIONS},
		overwrites=[],
	)
	assert missing_permissions(perms) == P.NONE


def test_everyone_deny_then_member_allow():
	perms = compute_channel_permissions(
		guild_id=GUILD,
		owner_id=1,
		member_id=BOT,
		member_role_ids=[],
		role_permissions={GUILD: REQUIRED_BOT_PERMISSIONS},
		overwrites=[
			overwrite(GUILD, hikari.PermissionOverwriteType.ROLE, deny=P.SEND_MESSAGES | P.EMBED_LINKS),
			overwrite(BOT, hikari.PermissionOverwriteType.MEMBER, allow=P.EMBED_LINKS),
		],
	)
	assert missing_permissions(perms) == P.SEND_MESSAGES
	assert describe_permissions(missing_permissions(perms)) == "Send Messages"


def test_administrator_and_owner_short_circuit():
	admin = compute_channel_permissions(
		guild_id=GUILD,
		owner_id=1,
		member_id=BOT,
		member_role_ids=[ROLE],
		role_permissions={ROLE: P.ADMINISTRATOR},
		overwrites=[overwrite(GUILD, hikari.PermissionOverwriteType.ROLE, deny=P.SEND_MESSAGES)],
	)
	assert admin & P.SEND_MESSAGES
	owner = compute_channel_permissions(
		guild_id=GUILD, owner_id=BOT, member_id=BOT, member_role_ids=[], role_permissions={}, overwrites=[]
	)
	assert missing_permissions(owner) == P.NONE


def test_manage_authority():
	assert has_manage_authority(P.MANAGE_CHANNELS)
	assert has_manage_authority(P.ADMINISTRATOR)
	assert not has_manage_authority(P.SEND_MESSAGES)
	assert not has_manage_authority(None)


class StubChannel:
	def __init__(self, channel_type, guild_id=GUILD, overwrites=None):
		self.type = channel_type
		self.guild_id = guild_id
		self.name = "feed"
		self.permission_overwrites = overwrites or {}


class StubRole:
	def __init__(self, permissions):
		self.permissions = permissions


class StubGuild:
	owner_id = 1
	roles = {GUILD: StubRole(P.VIEW_CHANNEL | P.SEND_MESSAGES)}


class StubMember:
	role_ids = []


class StubRest:
	def __init__(self, channel):
		self.channel = channel
		self.guild_fetches = 0

	async def fetch_channel(self, channel_id):
		return self.channel

	async def fetch_guild(self, guild_id):
		self.guild_fetches += 1
		return StubGuild()

	async def fetch_member(self, guild_id, user_id):
		return StubMember()


@pytest.mark.asyncio
async def test_inspect_text_channel_reports_bot_permissions():
	rest = StubRest(StubChannel(hikari.ChannelType.GUILD_TEXT))
	check = await inspect_target_channel(rest, 99, BOT)
	assert check.is_text
	assert check.guild_id == GUILD
	assert check.bot_permissions == P.VIEW_CHANNEL | P.SEND_MESSAGES
	assert missing_permissions(check.bot_permissions) & P.EMBED_LINKS


@pytest.mark.asyncio
async def test_inspect_voice_channel_skips_permission_lookup():
	rest = StubRest(StubChannel(hikari.ChannelType.GUILD_VOICE))
	check = await inspect_target_channel(rest, 99, BOT)
	assert not check.is_text
	assert rest.guild_fetches == 0
