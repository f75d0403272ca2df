from __future__ import annotations

"""Batched state fetching for tracked creators.

Identity lists are split into chunks no larger than the platform's batch limit
and requested one chunk at a time. Each chunk is reported separately so the
caller can apply earlier chunks even when a later one fails.
"""

from dataclasses import dataclass, field
from typing import AsyncIterator, Mapping, Optional, Sequence

from loguru import logger

from .errors import FetchError
from .models import CreatorState, Platform
from .sources import SourceMap


def chunked(items: Sequence[str], size: int) -> list[list[str]]:
	"""Split `items` into consecutive lists of at most `size` elements."""
	if size <= 0:
		raise ValueError("chunk size must be positive")
	return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass
class ChunkResult:
	"""Outcome of a single upstream request."""

	index: int
	canonical_ids: list[str]
	states: Mapping[str, CreatorState] = field(default_factory=dict)
	error: Optional[FetchError] = None

	@property
	def ok(self) -> bool:
		return self.error is None


@dataclass
class BatchResult:
	"""All chunk outcomes of one fetch plus the merged successful states."""

	chunks: list[ChunkResult] = field(default_factory=list)
	states: dict[str, CreatorState] = field(default_factory=dict)
	aborted: bool = False


class StateFetcher:
	"""Fetches current creator state in platform-sized batches."""

	def __init__(self, sources: SourceMap, *, continue_on_error: bool = False) -> None:
		self.sources = sources
		self.continue_on_error = continue_on_error

	async def iter_chunks(self, platform: Platform, canonical_ids: Sequence[str]) -> AsyncIterator[ChunkResult]:
		"""Yield one ChunkResult per request, in order.

		A failed chunk is yielded and, unless continue_on_error is set, ends
		the iteration.
		"""
		source = self.sources[platform]
		for index, chunk in enumerate(chunked(canonical_ids, source.max_batch_size)):
			try:
				states = await source.fetch_states(chunk)
			except FetchError as exc:
				logger.error("{} chunk {} ({} ids) failed: {}", platform.label, index, len(chunk), exc)
				yield ChunkResult(index=index, canonical_ids=chunk, error=exc)
				if not self.continue_on_error:
					return
				continue
			yield ChunkResult(index=index, canonical_ids=chunk, states=states)

	async def fetch_batch(self, platform: Platform, canonical_ids: Sequence[str]) -> BatchResult:
		result = BatchResult()
		async for chunk in self.iter_chunks(platform, canonical_ids):
			result.chunks.append(chunk)
			if chunk.ok:
				result.states.update(chunk.states)
			elif not self.continue_on_error:
				result.aborted = True
		return result
