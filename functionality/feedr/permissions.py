from __future__ import annotations

"""Discord permission checks for subscription commands.

Computes the bot's effective permissions in a target channel from the guild's
roles and the channel's permission overwrites.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import hikari

from .dispatcher import TEXT_CHANNEL_TYPES

REQUIRED_BOT_PERMISSIONS = (
	hikari.Permissions.VIEW_CHANNEL
	| hikari.Permissions.SEND_MESSAGES
	| hikari.Permissions.SEND_MESSAGES_IN_THREADS
	| hikari.Permissions.EMBED_LINKS
	| hikari.Permissions.ATTACH_FILES
	| hikari.Permissions.ADD_REACTIONS
)

MANAGE_PERMISSION = hikari.Permissions.MANAGE_CHANNELS

_PERMISSION_LABELS = (
	("View Channel", hikari.Permissions.VIEW_CHANNEL),
	("Send Messages", hikari.Permissions.SEND_MESSAGES),
	("Send Messages in Threads", hikari.Permissions.SEND_MESSAGES_IN_THREADS),
	("Embed Links", hikari.Permissions.EMBED_LINKS),
	("Attach Files", hikari.Permissions.ATTACH_FILES),
	("Add Reactions", hikari.Permissions.ADD_REACTIONS),
)


def describe_permissions(perms: hikari.Permissions) -> str:
	"""Human-readable list of the bot permissions contained in `perms`."""
	return ", ".join(label for label, flag in _PERMISSION_LABELS if perms & flag)


def missing_permissions(granted: hikari.Permissions, required: hikari.Permissions = REQUIRED_BOT_PERMISSIONS) -> hikari.Permissions:
	"""Return the subset of `required` not present in `granted`."""
	return required & ~granted


def has_manage_authority(member_permissions: Optional[hikari.Permissions]) -> bool:
	if member_permissions is None:
		return False
	if member_permissions & hikari.Permissions.ADMINISTRATOR:
		return True
	return bool(member_permissions & MANAGE_PERMISSION)


def compute_channel_permissions(
	*,
	guild_id: int,
	owner_id: int,
	member_id: int,
	member_role_ids: Iterable[int],
	role_permissions: Mapping[int, hikari.Permissions],
	overwrites: Iterable[hikari.PermissionOverwrite],
) -> hikari.Permissions:
	"""Resolve a member's permissions in a channel.

	Order: @everyone role, member roles, administrator short-circuit, then the
	@everyone overwrite, role overwrites combined, and the member overwrite.
	"""
	if int(member_id) == int(owner_id):
		return hikari.Permissions.all_permissions()

	role_ids = {int(r) for r in member_role_ids}
	perms = role_permissions.get(int(guild_id), hikari.Permissions.NONE)
	for rid in role_ids:
		perms |= role_permissions.get(rid, hikari.Permissions.NONE)
	if perms & hikari.Permissions.ADMINISTRATOR:
		return hikari.Permissions.all_permissions()

	by_id = {int(ow.id): ow for ow in overwrites}
	everyone = by_id.get(int(guild_id))
	if everyone is not None:
		perms = (perms & ~everyone.deny) | everyone.allow

	allow = hikari.Permissions.NONE
	deny = hikari.Permissions.NONE
	for rid in role_ids:
		ow = by_id.get(rid)
		if ow is not None and ow.type == hikari.PermissionOverwriteType.ROLE:
			allow |= ow.allow
			deny |= ow.deny
	perms = (perms & ~deny) | allow

	member_ow = by_id.get(int(member_id))
	if member_ow is not None and member_ow.type == hikari.PermissionOverwriteType.MEMBER:
		perms = (perms & ~member_ow.deny) | member_ow.allow
	return perms


@dataclass(frozen=True)
class ChannelCheck:
	"""What the track command needs to know about a target channel."""

	channel_id: int
	guild_id: Optional[int]
	name: Optional[str]
	is_text: bool
	bot_permissions: hikari.Permissions


async def inspect_target_channel(rest: hikari.api.RESTClient, channel_id: int, bot_user_id: int) -> ChannelCheck:
	"""Fetch a channel and compute the bot's permissions in it via REST."""
	channel = await rest.fetch_channel(channel_id)
	guild_id = getattr(channel, "guild_id", None)
	is_text = getattr(channel, "type", None) in TEXT_CHANNEL_TYPES
	if not is_text or guild_id is None:
		return ChannelCheck(int(channel_id), guild_id, getattr(channel, "name", None), False, hikari.Permissions.NONE)

	guild = await rest.fetch_guild(guild_id)
	member = await rest.fetch_member(guild_id, bot_user_id)
	overwrites = getattr(channel, "permission_overwrites", {}) or {}
	perms = compute_channel_permissions(
		guild_id=int(guild_id),
		owner_id=int(guild.owner_id),
		member_id=int(bot_user_id),
		member_role_ids=member.role_ids,
		role_permissions={int(rid): role.permissions for rid, role in guild.roles.items()},
		overwrites=overwrites.values(),
	)
	return ChannelCheck(int(channel_id), int(guild_id), getattr(channel, "name", None), True, perms)
