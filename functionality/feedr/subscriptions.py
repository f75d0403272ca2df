from __future__ import annotations

"""Track/untrack command handling, independent of the Discord command layer.

Commands are plain dataclasses; SubscriptionService.execute dispatches over
the closed set of command types. Every rejection happens before any state is
written, and track creates the creator and subscription rows atomically.
"""

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

import hikari
from loguru import logger

from .errors import AlreadyTrackedError
from .models import Platform, Subscription
from .permissions import ChannelCheck, describe_permissions, has_manage_authority, missing_permissions
from .resolver import IdentityResolver
from .sources import SourceMap
from .store import TrackingStore

ChannelInspector = Callable[[int], Awaitable[ChannelCheck]]


class RejectReason(str, enum.Enum):
	NOT_IN_GUILD = "not_in_guild"
	PERMISSION_DENIED = "permission_denied"
	INVALID_CHANNEL = "invalid_channel"
	BOT_PERMISSIONS = "bot_permissions"
	INVALID_FORMAT = "invalid_format"
	NOT_FOUND = "not_found"
	ALREADY_TRACKED = "already_tracked"
	NOT_TRACKED = "not_tracked"
	UPSTREAM_ERROR = "upstream_error"


@dataclass(frozen=True)
class TrackCommand:
	destination_id: Optional[str]
	platform: Platform
	raw_identifier: str
	target_channel_id: str
	mention_role_id: Optional[str] = None
	requester_permissions: Optional[hikari.Permissions] = None


@dataclass(frozen=True)
class UntrackCommand:
	destination_id: Optional[str]
	platform: Platform
	raw_identifier: str
	requester_permissions: Optional[hikari.Permissions] = None


SubscriptionCommand = Union[TrackCommand, UntrackCommand]


@dataclass(frozen=True)
class CommandResult:
	ok: bool
	message: str
	reason: Optional[RejectReason] = None
	subscription: Optional[Subscription] = None

	@classmethod
	def reject(cls, reason: RejectReason, message: str) -> "CommandResult":
		return cls(ok=False, message=message, reason=reason)


_FORMAT_HINTS = {
	Platform.YOUTUBE: "Invalid YouTube channel ID! Channel IDs are 24 characters long and start with `UC`.",
	Platform.TWITCH: "Invalid Twitch username! Usernames are up to 25 letters, digits or underscores.",
}


class SubscriptionService:
	"""Validates and applies subscription changes for a guild."""

	def __init__(
		self,
		*,
		store: TrackingStore,
		sources: SourceMap,
		channel_inspector: ChannelInspector,
		resolver: Optional[IdentityResolver] = None,
	) -> None:
		self.store = store
		self.sources = sources
		self.resolver = resolver or IdentityResolver(sources)
		self.channel_inspector = channel_inspector

	async def execute(self, command: SubscriptionCommand) -> CommandResult:
		if isinstance(command, TrackCommand):
			return await self.track(command)
		if isinstance(command, UntrackCommand):
			return await self.untrack(command)
		raise TypeError(f"Unsupported subscription command: {type(command).__name__}")

	def _precheck(self, destination_id: Optional[str], perms: Optional[hikari.Permissions]) -> Optional[CommandResult]:
		if not destination_id:
			return CommandResult.reject(
				RejectReason.NOT_IN_GUILD,
				"This command is not supported in DMs currently!",
			)
		if not has_manage_authority(perms):
			return CommandResult.reject(
				RejectReason.PERMISSION_DENIED,
				"You do not have the permission to manage channels!",
			)
		return None

	async def track(self, command: TrackCommand) -> CommandResult:
		rejected = self._precheck(command.destination_id, command.requester_permissions)
		if rejected is not None:
			return rejected
		platform = command.platform
		raw = (command.raw_identifier or "").strip()
		if not self.resolver.validate_format(platform, raw):
			return CommandResult.reject(RejectReason.INVALID_FORMAT, _FORMAT_HINTS[platform])

		try:
			channel = await self.channel_inspector(int(command.target_channel_id))
		except Exception as exc:
			logger.warning("Could not inspect channel {}: {}", command.target_channel_id, exc)
			return CommandResult.reject(RejectReason.INVALID_CHANNEL, "Could not fetch that channel.")
		if not channel.is_text:
			return CommandResult.reject(RejectReason.INVALID_CHANNEL, "The target channel is not a text channel!")
		if channel.guild_id is not None and str(channel.guild_id) != str(command.destination_id):
			return CommandResult.reject(RejectReason.INVALID_CHANNEL, "That channel is not in this server.")
		missing = missing_permissions(channel.bot_permissions)
		if missing:
			return CommandResult.reject(
				RejectReason.BOT_PERMISSIONS,
				"The bot does not have the required permissions for the target channel! "
				f"Missing: {describe_permissions(missing)}",
			)

		identity = await self.resolver.resolve(platform, raw)
		if identity is None:
			return CommandResult.reject(RejectReason.NOT_FOUND, f"Could not find that {platform.label} channel!")

		canonical_id = identity.canonical_id
		if await self.store.has_subscription(command.destination_id, platform, canonical_id):
			return CommandResult.reject(RejectReason.ALREADY_TRACKED, "This channel is already being tracked!")

		initial_state = None
		if not await self.store.is_tracked(platform, canonical_id):
			initial_state = await self.sources[platform].fetch_initial_state(canonical_id)
			if initial_state is None:
				return CommandResult.reject(
					RejectReason.UPSTREAM_ERROR,
					f"An error occurred while reading the {platform.label} channel's current state. Please try again later!",
				)

		subscription = Subscription(
			destination_id=str(command.destination_id),
			platform=platform,
			canonical_id=canonical_id,
			target_channel_id=str(command.target_channel_id),
			mention_role_id=command.mention_role_id,
		)
		try:
			await self.store.add_subscription(subscription, initial_state)
		except AlreadyTrackedError:
			return CommandResult.reject(RejectReason.ALREADY_TRACKED, "This channel is already being tracked!")

		name = identity.display_name or canonical_id
		return CommandResult(
			ok=True,
			message=f"Started tracking the {platform.label} channel {name} in <#{command.target_channel_id}>!",
			subscription=subscription,
		)

	async def untrack(self, command: UntrackCommand) -> CommandResult:
		rejected = self._precheck(command.destination_id, command.requester_permissions)
		if rejected is not None:
			return rejected
		platform = command.platform
		raw = (command.raw_identifier or "").strip()
		if not self.resolver.validate_format(platform, raw):
			return CommandResult.reject(RejectReason.INVALID_FORMAT, _FORMAT_HINTS[platform])

		if platform is Platform.YOUTUBE:
			canonical_id = raw
		else:
			identity = await self.resolver.resolve(platform, raw)
			if identity is None:
				return CommandResult.reject(RejectReason.NOT_FOUND, f"Could not find that {platform.label} channel!")
			canonical_id = identity.canonical_id

		if not await self.store.remove_subscription(str(command.destination_id), platform, canonical_id):
			return CommandResult.reject(RejectReason.NOT_TRACKED, "This channel is not being tracked in this guild!")
		return CommandResult(ok=True, message="Successfully stopped tracking the channel!")

	async def list_tracked(self, destination_id: str) -> list[Subscription]:
		return await self.store.list_destination_subscriptions(destination_id)
