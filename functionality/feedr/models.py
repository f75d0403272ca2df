from __future__ import annotations

"""Data models shared by the Feedr polling, storage and notification layers.

Simple dataclasses describing tracked creators, their last observed state and
the per-guild subscriptions that receive notifications.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Union


class Platform(str, enum.Enum):
	"""External platforms a creator can be tracked on."""

	YOUTUBE = "youtube"
	TWITCH = "twitch"

	@property
	def label(self) -> str:
		return "YouTube" if self is Platform.YOUTUBE else "Twitch"


@dataclass(frozen=True)
class VideoState:
	"""Last observed upload for a video channel."""
	latest_upload_id: Optional[str]


@dataclass(frozen=True)
class LiveState:
	"""Last observed live flag for a streamer."""
	is_live: bool


CreatorState = Union[VideoState, LiveState]


@dataclass(frozen=True)
class TrackedIdentity:
	"""A creator polled globally, independent of who subscribed to it."""
	platform: Platform
	canonical_id: str
	state: CreatorState


@dataclass(frozen=True)
class Subscription:
	"""A guild's binding to a tracked creator plus delivery settings."""
	destination_id: str
	platform: Platform
	canonical_id: str
	target_channel_id: str
	mention_role_id: Optional[str] = None


@dataclass(frozen=True)
class CanonicalIdentity:
	"""Result of resolving a user-supplied identifier on a platform."""
	platform: Platform
	canonical_id: str
	display_name: Optional[str] = None
	login: Optional[str] = None


@dataclass(frozen=True)
class CreatorDetails:
	"""Display metadata used when rendering notifications."""
	canonical_id: str
	display_name: str
	avatar_url: Optional[str] = None
	handle: Optional[str] = None


@dataclass(frozen=True)
class StateChange:
	"""A difference between stored and freshly fetched state."""
	platform: Platform
	canonical_id: str
	previous: CreatorState
	current: CreatorState

	@property
	def should_notify(self) -> bool:
		"""Uploads always notify; live changes only when going live."""
		if isinstance(self.current, LiveState):
			return self.current.is_live
		return self.current.latest_upload_id is not None
