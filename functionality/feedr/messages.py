from __future__ import annotations

"""Text of the notifications Feedr posts to Discord."""

from typing import Optional

from .twitch import channel_url
from .youtube import watch_url


def role_mention(role_id: Optional[str]) -> str:
	return f"<@&{role_id}> " if role_id else ""


def build_upload_message(
	video_id: str,
	*,
	canonical_id: str,
	display_name: Optional[str] = None,
	role_id: Optional[str] = None,
) -> str:
	"""New-upload announcement; the channel id stands in for a missing name."""
	name = display_name or canonical_id
	return f"{role_mention(role_id)}New video uploaded for {name}! {watch_url(video_id)}"


def build_live_message(
	*,
	canonical_id: str,
	display_name: Optional[str] = None,
	login: Optional[str] = None,
	role_id: Optional[str] = None,
) -> str:
	"""Went-live announcement; links the channel when the login is known."""
	name = display_name or login or canonical_id
	text = f"{role_mention(role_id)}{name} is now live on Twitch!"
	if login:
		text += f" {channel_url(login)}"
	return text
