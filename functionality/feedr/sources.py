from __future__ import annotations

"""Interface shared by the YouTube and Twitch clients."""

from typing import Mapping, Optional, Protocol, Sequence

from .models import CanonicalIdentity, CreatorDetails, CreatorState, Platform


class PlatformSource(Protocol):
	platform: Platform
	max_batch_size: int

	def validate_format(self, raw: str) -> bool: ...

	async def resolve(self, raw: str) -> Optional[CanonicalIdentity]: ...

	async def describe(self, canonical_id: str) -> Optional[CreatorDetails]: ...

	async def fetch_states(self, canonical_ids: Sequence[str]) -> Mapping[str, CreatorState]: ...

	async def fetch_initial_state(self, canonical_id: str) -> Optional[CreatorState]: ...


SourceMap = Mapping[Platform, PlatformSource]
