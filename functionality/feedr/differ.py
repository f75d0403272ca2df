from __future__ import annotations

"""Diffing of stored creator state against freshly fetched state."""

from typing import Mapping

from .models import CreatorState, Platform, StateChange


class StateDiffer:
	"""Compares stored and fetched state maps for one platform."""

	def __init__(self, platform: Platform) -> None:
		self.platform = platform

	def diff(
		self,
		stored: Mapping[str, CreatorState],
		fetched: Mapping[str, CreatorState],
	) -> list[StateChange]:
		"""Return a change for every id whose fetched state differs.

		Ids missing from either side are ignored: creators absent from the
		response keep their stored state.
		"""
		changes: list[StateChange] = []
		for canonical_id, current in fetched.items():
			if canonical_id not in stored:
				continue
			previous = stored[canonical_id]
			if previous != current:
				changes.append(
					StateChange(
						platform=self.platform,
						canonical_id=canonical_id,
						previous=previous,
						current=current,
					)
				)
		return changes
