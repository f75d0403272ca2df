from __future__ import annotations

"""Notification delivery for changed creators.

Resolves each subscription's target channel and posts one message there. A
failed delivery is logged and skipped; it never affects other subscriptions
or the stored state.
"""

import asyncio
from typing import Optional

import hikari
from loguru import logger

from .messages import build_live_message, build_upload_message
from .models import CreatorDetails, LiveState, StateChange, Subscription, VideoState

TEXT_CHANNEL_TYPES = (hikari.ChannelType.GUILD_TEXT, hikari.ChannelType.GUILD_NEWS)


def render_notification(
	subscription: Subscription,
	change: StateChange,
	details: Optional[CreatorDetails],
) -> Optional[str]:
	"""Return the message text for a change, or None if nothing to announce."""
	current = change.current
	display_name = details.display_name if details else None
	if isinstance(current, VideoState):
		if not current.latest_upload_id:
			return None
		return build_upload_message(
			current.latest_upload_id,
			canonical_id=change.canonical_id,
			display_name=display_name,
			role_id=subscription.mention_role_id,
		)
	if isinstance(current, LiveState) and current.is_live:
		return build_live_message(
			canonical_id=change.canonical_id,
			display_name=display_name,
			login=details.handle if details else None,
			role_id=subscription.mention_role_id,
		)
	return None


class NotificationDispatcher:
	"""Sends one message per subscription through the Discord REST client."""

	def __init__(self, app: hikari.RESTAware, *, send_delay_ms: int = 250) -> None:
		"""Accepts any RESTAware app (GatewayBot or RESTBot)."""
		self.app = app
		self.send_delay_ms = max(0, int(send_delay_ms))

	async def notify(
		self,
		subscription: Subscription,
		change: StateChange,
		details: Optional[CreatorDetails] = None,
	) -> bool:
		"""Deliver a notification; returns False when it was not sent."""
		content = render_notification(subscription, change, details)
		if content is None:
			return False
		try:
			channel = await self.app.rest.fetch_channel(int(subscription.target_channel_id))
			if getattr(channel, "type", None) not in TEXT_CHANNEL_TYPES:
				logger.warning(
					"Channel {} for guild {} is not a text channel; skipping",
					subscription.target_channel_id, subscription.destination_id,
				)
				return False
			role_mentions = [int(subscription.mention_role_id)] if subscription.mention_role_id else hikari.UNDEFINED
			await self.app.rest.create_message(
				int(subscription.target_channel_id), content=content, role_mentions=role_mentions)
		except Exception:
			logger.exception(
				"Failed to notify guild {} in channel {} about {} {}",
				subscription.destination_id, subscription.target_channel_id,
				change.platform.label, change.canonical_id,
			)
			return False
		finally:
			if self.send_delay_ms:
				await asyncio.sleep(self.send_delay_ms / 1000)
		return True
