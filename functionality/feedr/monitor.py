from __future__ import annotations

"""Background reconciliation loops for tracked creators.

One loop per platform: load tracked creators, fetch their current state in
batches, persist whatever changed and notify every subscriber of a change.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Mapping, Optional

from loguru import logger

from .differ import StateDiffer
from .dispatcher import NotificationDispatcher
from .fetcher import StateFetcher
from .models import CreatorDetails, CreatorState, Platform, StateChange
from .sources import PlatformSource
from .store import TrackingStore


class LoopPhase(str, enum.Enum):
	IDLE = "idle"
	FETCHING = "fetching"
	DIFFING = "diffing"
	PERSISTING = "persisting"
	NOTIFYING = "notifying"


@dataclass
class TickReport:
	"""Summary of one reconciliation tick."""

	platform: Platform
	tracked: int = 0
	chunks: int = 0
	failed_chunks: int = 0
	updated: int = 0
	notified: int = 0
	failed_notifications: int = 0
	aborted: bool = False
	skipped: bool = False


class ReconciliationLoop:
	"""Polls one platform on a fixed interval and fans out notifications.

	Ticks never overlap: a tick requested while another is running is skipped
	and reported as such.
	"""

	def __init__(
		self,
		platform: Platform,
		*,
		store: TrackingStore,
		source: PlatformSource,
		dispatcher: NotificationDispatcher,
		fetcher: Optional[StateFetcher] = None,
		interval_seconds: int = 60,
	) -> None:
		self.platform = platform
		self.store = store
		self.source = source
		self.dispatcher = dispatcher
		self.fetcher = fetcher or StateFetcher({platform: source})
		self.differ = StateDiffer(platform)
		self.interval_seconds = max(1, int(interval_seconds))
		self.phase = LoopPhase.IDLE
		self.last_report: Optional[TickReport] = None
		self._busy = False
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._busy

	def start(self) -> None:
		"""Start the polling task if not already running."""
		if self._task is None or self._task.done():
			self._task = asyncio.create_task(self._run_loop(), name=f"feedr-{self.platform.value}")

	async def stop(self) -> None:
		"""Cancel and await the polling task if running."""
		if self._task and not self._task.done():
			self._task.cancel()
			try:
				await self._task
			except asyncio.CancelledError:
				pass
		self._task = None

	async def _run_loop(self) -> None:
		"""Tick immediately, then once per interval."""
		while True:
			try:
				await self.run_once()
			except Exception:
				logger.exception("{} reconciliation tick failed", self.platform.label)
			await asyncio.sleep(self.interval_seconds)

	async def run_once(self) -> TickReport:
		"""Run a single tick: fetch -> diff -> persist -> notify."""
		report = TickReport(platform=self.platform)
		if self._busy:
			logger.warning("{} tick still running; skipping this one", self.platform.label)
			report.skipped = True
			return report
		self._busy = True
		try:
			await self._tick(report)
		finally:
			self.phase = LoopPhase.IDLE
			self._busy = False
		self.last_report = report
		logger.info(
			"{} tick: {} tracked, {} updated, {} notified, {} failed sends{}",
			self.platform.label, report.tracked, report.updated, report.notified,
			report.failed_notifications, " (aborted)" if report.aborted else "",
		)
		return report

	async def _tick(self, report: TickReport) -> None:
		self.phase = LoopPhase.FETCHING
		tracked = await self.store.list_tracked(self.platform)
		report.tracked = len(tracked)
		if not tracked:
			return
		stored: dict[str, CreatorState] = {t.canonical_id: t.state for t in tracked}

		async for chunk in self.fetcher.iter_chunks(self.platform, list(stored)):
			report.chunks += 1
			if not chunk.ok:
				report.failed_chunks += 1
				if not self.fetcher.continue_on_error:
					report.aborted = True
					return
				continue
			self.phase = LoopPhase.DIFFING
			changes = self.differ.diff(stored, chunk.states)
			for change in changes:
				await self._apply(change, report)
				stored[change.canonical_id] = change.current
			self.phase = LoopPhase.FETCHING

	async def _apply(self, change: StateChange, report: TickReport) -> None:
		"""Persist one change, then notify its subscribers if warranted."""
		self.phase = LoopPhase.PERSISTING
		logger.debug(
			"{} {} changed: {} -> {}", self.platform.label, change.canonical_id, change.previous, change.current
		)
		await self.store.update_state(self.platform, change.canonical_id, change.current)
		report.updated += 1
		if not change.should_notify:
			return

		self.phase = LoopPhase.NOTIFYING
		subscriptions = await self.store.list_subscriptions(self.platform, change.canonical_id)
		if not subscriptions:
			return
		details = await self._describe(change.canonical_id)
		for subscription in subscriptions:
			if await self.dispatcher.notify(subscription, change, details):
				report.notified += 1
			else:
				report.failed_notifications += 1

	async def _describe(self, canonical_id: str) -> Optional[CreatorDetails]:
		try:
			return await self.source.describe(canonical_id)
		except Exception:
			logger.exception("{} metadata lookup for {} failed", self.platform.label, canonical_id)
			return None


class FeedMonitor:
	"""Owns one ReconciliationLoop per platform with independent intervals."""

	def __init__(
		self,
		*,
		store: TrackingStore,
		sources: Mapping[Platform, PlatformSource],
		dispatcher: NotificationDispatcher,
		intervals: Mapping[Platform, int],
		continue_on_error: bool = False,
	) -> None:
		self.loops: dict[Platform, ReconciliationLoop] = {}
		for platform, source in sources.items():
			self.loops[platform] = ReconciliationLoop(
				platform,
				store=store,
				source=source,
				dispatcher=dispatcher,
				fetcher=StateFetcher({platform: source}, continue_on_error=continue_on_error),
				interval_seconds=intervals.get(platform, 60),
			)

	def start(self) -> None:
		for loop in self.loops.values():
			loop.start()

	async def stop(self) -> None:
		for loop in self.loops.values():
			await loop.stop()

	async def run_once(self) -> dict[Platform, TickReport]:
		return {platform: await loop.run_once() for platform, loop in self.loops.items()}
