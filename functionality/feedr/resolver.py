from __future__ import annotations

"""Resolution of user-supplied identifiers into canonical platform ids."""

from typing import Optional

from loguru import logger

from .models import CanonicalIdentity, Platform
from .sources import SourceMap


class IdentityResolver:
	"""Validates and resolves raw identifiers through the platform clients.

	Malformed input is rejected without touching the network. Any failure of
	the lookup itself (HTTP error, empty result) surfaces as None.
	"""

	def __init__(self, sources: SourceMap) -> None:
		self.sources = sources

	def validate_format(self, platform: Platform, raw: str) -> bool:
		return self.sources[platform].validate_format((raw or "").strip())

	async def resolve(self, platform: Platform, raw: str) -> Optional[CanonicalIdentity]:
		raw = (raw or "").strip()
		if not self.validate_format(platform, raw):
			return None
		identity = await self.sources[platform].resolve(raw)
		if identity is None:
			logger.debug("{} identifier {!r} did not resolve", platform.label, raw)
		return identity
