"""aiohttp session helpers shared by the platform clients."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=20)

# ClientTimeout expiry surfaces as asyncio.TimeoutError, not ClientError
TRANSIENT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


@asynccontextmanager
async def open_session(session: Optional[aiohttp.ClientSession]) -> AsyncIterator[aiohttp.ClientSession]:
	"""Yield `session` when given, otherwise a short-lived session closed on exit."""
	if session is not None:
		yield session
		return
	async with aiohttp.ClientSession(timeout=DEFAULT_TIMEOUT) as own:
		yield own
