from __future__ import annotations

"""Twitch Helix client for Feedr.

App access tokens are minted with the OAuth2 client-credentials grant and held
by a TwitchCredentialProvider, which is shared by every Helix call and
reacquires the token when Twitch rejects it.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import aiohttp
from loguru import logger

from .errors import FetchError
from .http import TRANSIENT_ERRORS, open_session
from .models import CanonicalIdentity, CreatorDetails, LiveState, Platform

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_BASE = "https://api.twitch.tv/helix"
CHANNEL_URL = "https://www.twitch.tv/{login}"

_LOGIN_RE = re.compile(r"^[A-Za-z0-9_]{1,25}$")

Params = Union[Dict[str, Any], List[Tuple[str, Any]]]


def is_valid_login(raw: str) -> bool:
	"""Return True for strings that can be a Twitch login (no network)."""
	return bool(_LOGIN_RE.match(raw or ""))


def channel_url(login: str) -> str:
	return CHANNEL_URL.format(login=login)


class TwitchAuthError(RuntimeError):
	"""Raised when an app access token cannot be obtained."""


_REQUEST_ERRORS = TRANSIENT_ERRORS + (TwitchAuthError,)


class TwitchCredentialProvider:
	"""Holds the process-wide app access token and reacquires it on demand."""

	def __init__(self, client_id: str, client_secret: str) -> None:
		self.client_id = client_id
		self.client_secret = client_secret
		self._token: Optional[str] = None
		self._lock = asyncio.Lock()

	@property
	def token(self) -> Optional[str]:
		return self._token

	def invalidate(self) -> None:
		"""Forget the current token; the next get_token() mints a new one."""
		self._token = None

	async def get_token(self, session: aiohttp.ClientSession) -> str:
		"""Return a token, acquiring one if none is held."""
		if self._token:
			return self._token
		async with self._lock:
			if not self._token:
				self._token = await self._acquire(session)
			return self._token

	async def refresh(self, session: aiohttp.ClientSession) -> str:
		"""Force acquisition of a new token."""
		async with self._lock:
			self._token = await self._acquire(session)
			return self._token

	async def _acquire(self, session: aiohttp.ClientSession) -> str:
		payload = {
			"client_id": self.client_id,
			"client_secret": self.client_secret,
			"grant_type": "client_credentials",
		}
		async with session.post(TOKEN_URL, data=payload) as resp:
			if resp.status >= 400:
				raise TwitchAuthError(f"Error fetching Twitch token: {resp.status} {resp.reason}")
			data = await resp.json()
		token = data.get("access_token") if isinstance(data, dict) else None
		if not token:
			raise TwitchAuthError("Twitch token response did not include an access_token")
		logger.info("Acquired Twitch app access token")
		return str(token)


class TwitchClient:
	"""Async wrapper around the Helix endpoints Feedr needs."""

	platform = Platform.TWITCH
	max_batch_size = 100

	def __init__(
		self,
		credentials: TwitchCredentialProvider,
		session: Optional[aiohttp.ClientSession] = None,
	) -> None:
		self.credentials = credentials
		self.session = session

	def validate_format(self, raw: str) -> bool:
		return is_valid_login(raw)

	async def _helix_get(self, path: str, params: Params) -> tuple[int, str, Any]:
		"""GET a Helix endpoint, retrying once with a fresh token on 401.

		Returns (status, reason, json-or-None); json is None for errors.
		"""
		async with open_session(self.session) as session:
			token = await self.credentials.get_token(session)
			for attempt in range(2):
				headers = {
					"Client-ID": self.credentials.client_id,
					"Authorization": f"Bearer {token}",
				}
				async with session.get(f"{HELIX_BASE}/{path}", params=params, headers=headers) as resp:
					if resp.status == 401 and attempt == 0:
						logger.info("Twitch rejected the app token; reacquiring")
						token = await self.credentials.refresh(session)
						continue
					if resp.status >= 400:
						return resp.status, str(resp.reason or ""), None
					return resp.status, str(resp.reason or ""), await resp.json()
		return 401, "Unauthorized", None

	async def _users(self, params: Params) -> Optional[Dict[str, Any]]:
		try:
			status, reason, data = await self._helix_get("users", params)
		except _REQUEST_ERRORS as exc:
			logger.warning("Twitch user lookup failed: {}", exc)
			return None
		if data is None:
			logger.debug("Twitch user lookup returned {} {}", status, reason)
			return None
		rows = data.get("data") if isinstance(data, dict) else None
		if not rows or not isinstance(rows[0], dict):
			return None
		return rows[0]

	async def resolve(self, raw: str) -> Optional[CanonicalIdentity]:
		"""Resolve a login to the streamer's numeric id; None when unknown."""
		if not is_valid_login(raw):
			return None
		user = await self._users({"login": raw.lower()})
		if not user or not user.get("id"):
			return None
		return CanonicalIdentity(
			platform=Platform.TWITCH,
			canonical_id=str(user["id"]),
			display_name=user.get("display_name") or None,
			login=user.get("login") or None,
		)

	async def describe(self, user_id: str) -> Optional[CreatorDetails]:
		user = await self._users({"id": user_id})
		if not user:
			return None
		name = user.get("display_name") or user.get("login")
		if not name:
			return None
		return CreatorDetails(
			canonical_id=user_id,
			display_name=str(name),
			avatar_url=user.get("profile_image_url"),
			handle=user.get("login"),
		)

	async def fetch_states(self, user_ids: Sequence[str]) -> dict[str, LiveState]:
		"""Return the live flag for up to `max_batch_size` streamers.

		Every requested id is present in the result; ids missing from the
		streams response are offline. Raises FetchError on failure.
		"""
		if not user_ids:
			return {}
		if len(user_ids) > self.max_batch_size:
			raise ValueError(f"at most {self.max_batch_size} streamers per request")
		params: List[Tuple[str, Any]] = [("user_id", uid) for uid in user_ids]
		params.append(("first", self.max_batch_size))
		try:
			status, reason, data = await self._helix_get("streams", params)
		except _REQUEST_ERRORS as exc:
			raise FetchError(Platform.TWITCH, None, str(exc)) from exc
		if data is None:
			raise FetchError(Platform.TWITCH, status, reason)
		rows = data.get("data") if isinstance(data, dict) else None
		live_ids = {
			str(row.get("user_id"))
			for row in rows or []
			if isinstance(row, dict) and row.get("user_id")
		}
		return {uid: LiveState(is_live=uid in live_ids) for uid in user_ids}

	async def fetch_initial_state(self, user_id: str) -> Optional[LiveState]:
		try:
			states = await self.fetch_states([user_id])
		except FetchError as exc:
			logger.warning("Could not capture initial Twitch state for {}: {}", user_id, exc)
			return None
		return states.get(user_id)
