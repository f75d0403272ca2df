from __future__ import annotations

"""YouTube Data API v3 client for Feedr.

Channel validation, display metadata and batched latest-upload lookups. The
latest upload of a channel is read from its implicit "all uploads" playlist
(the channel id with its `UC` prefix replaced by `UU`).
"""

import re
from typing import Any, Dict, Optional, Sequence

import aiohttp
from loguru import logger

from .errors import FetchError
from .http import TRANSIENT_ERRORS, open_session
from .models import CanonicalIdentity, CreatorDetails, Platform, VideoState

API_BASE = "https://www.googleapis.com/youtube/v3"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_CHANNEL_ID_RE = re.compile(r"^UC[A-Za-z0-9_-]{22}$")


def is_valid_channel_id(raw: str) -> bool:
	"""Return True for 24-character ids starting with `UC` (no network)."""
	return bool(_CHANNEL_ID_RE.match(raw or ""))


def uploads_playlist_id(channel_id: str) -> str:
	"""Map a channel id to its uploads playlist id (UC... -> UU...)."""
	return re.sub(r"^UC", "UU", channel_id, count=1)


def watch_url(video_id: str) -> str:
	return WATCH_URL.format(video_id=video_id)


def _video_id_from_playlist(item: Dict[str, Any]) -> Optional[str]:
	"""Extract the newest video id from a playlist's default thumbnail URL.

	Thumbnail URLs look like https://i.ytimg.com/vi/<video_id>/default.jpg.
	Playlists without uploads carry a placeholder such as
	https://i.ytimg.com/img/no_thumbnail.jpg, which yields None.
	"""
	snippet = item.get("snippet") or {}
	url = ((snippet.get("thumbnails") or {}).get("default") or {}).get("url")
	if not isinstance(url, str):
		return None
	parts = url.split("/")
	if len(parts) < 6 or parts[3] != "vi" or not parts[4]:
		return None
	return parts[4]


class YouTubeClient:
	"""Thin async wrapper around the YouTube Data API endpoints Feedr needs."""

	platform = Platform.YOUTUBE
	max_batch_size = 50

	def __init__(self, api_key: str, session: Optional[aiohttp.ClientSession] = None) -> None:
		self.api_key = api_key
		self.session = session

	def validate_format(self, raw: str) -> bool:
		return is_valid_channel_id(raw)

	async def _get(self, path: str, params: Dict[str, Any]) -> tuple[int, str, Any]:
		query = dict(params)
		query["key"] = self.api_key
		async with open_session(self.session) as session:
			async with session.get(f"{API_BASE}/{path}", params=query) as resp:
				if resp.status >= 400:
					return resp.status, str(resp.reason or ""), None
				return resp.status, str(resp.reason or ""), await resp.json()

	async def _channel_snippet(self, channel_id: str) -> Optional[Dict[str, Any]]:
		try:
			status, reason, data = await self._get("channels", {"part": "snippet", "id": channel_id})
		except TRANSIENT_ERRORS as exc:
			logger.warning("YouTube channel lookup for {} failed: {}", channel_id, exc)
			return None
		if data is None:
			logger.debug("YouTube channel lookup for {} returned {} {}", channel_id, status, reason)
			return None
		items = (data.get("items") or []) if isinstance(data, dict) else []
		if not items or not isinstance(items[0], dict):
			return None
		return items[0].get("snippet") or {}

	async def resolve(self, raw: str) -> Optional[CanonicalIdentity]:
		"""Confirm a channel id exists; None when malformed or unknown."""
		if not is_valid_channel_id(raw):
			return None
		snippet = await self._channel_snippet(raw)
		if snippet is None:
			return None
		return CanonicalIdentity(
			platform=Platform.YOUTUBE,
			canonical_id=raw,
			display_name=snippet.get("title") or None,
			login=snippet.get("customUrl") or None,
		)

	async def describe(self, channel_id: str) -> Optional[CreatorDetails]:
		"""Return title, avatar and handle for a channel, or None."""
		snippet = await self._channel_snippet(channel_id)
		if not snippet or not snippet.get("title"):
			return None
		thumbs = snippet.get("thumbnails") or {}
		return CreatorDetails(
			canonical_id=channel_id,
			display_name=str(snippet["title"]),
			avatar_url=(thumbs.get("medium") or {}).get("url"),
			handle=snippet.get("customUrl"),
		)

	async def fetch_states(self, channel_ids: Sequence[str]) -> dict[str, VideoState]:
		"""Fetch the latest upload for up to `max_batch_size` channels.

		Channels missing from the response are absent from the result. Raises
		FetchError on a non-success response.
		"""
		if not channel_ids:
			return {}
		if len(channel_ids) > self.max_batch_size:
			raise ValueError(f"at most {self.max_batch_size} channels per request")
		playlist_ids = ",".join(uploads_playlist_id(cid) for cid in channel_ids)
		try:
			status, reason, data = await self._get(
				"playlists",
				{"part": "snippet", "id": playlist_ids, "maxResults": self.max_batch_size},
			)
		except TRANSIENT_ERRORS as exc:
			raise FetchError(Platform.YOUTUBE, None, str(exc)) from exc
		if data is None:
			raise FetchError(Platform.YOUTUBE, status, reason)
		out: dict[str, VideoState] = {}
		items = data.get("items") if isinstance(data, dict) else None
		for item in items or []:
			if not isinstance(item, dict):
				continue
			channel_id = (item.get("snippet") or {}).get("channelId")
			video_id = _video_id_from_playlist(item)
			if not channel_id or not video_id:
				continue
			out[str(channel_id)] = VideoState(latest_upload_id=video_id)
		return out

	async def fetch_initial_state(self, channel_id: str) -> Optional[VideoState]:
		"""Capture the current latest upload when a channel is first tracked.

		Returns VideoState(None) for channels without uploads and None when the
		request itself fails.
		"""
		try:
			states = await self.fetch_states([channel_id])
		except FetchError as exc:
			logger.warning("Could not capture initial YouTube state for {}: {}", channel_id, exc)
			return None
		return states.get(channel_id, VideoState(latest_upload_id=None))
