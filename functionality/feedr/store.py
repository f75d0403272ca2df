from __future__ import annotations

"""Relational tracking store for Feedr (SQLAlchemy async + aiosqlite).

Holds the last observed state of every tracked creator and the per-guild
subscriptions pointing at them. Creator rows are shared between guilds:
removing a subscription leaves the creator row in place unless orphan pruning
is enabled.
"""

import os
from typing import Optional

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from .errors import AlreadyTrackedError
from .models import CreatorState, LiveState, Platform, Subscription, TrackedIdentity, VideoState
from .settings import DEFAULT_DATABASE_URL
from .tables import Base, LiveIdentityRow, SubscriptionRow, VideoIdentityRow


def _make_engine(database_url: str) -> AsyncEngine:
	url = make_url(database_url)
	if url.get_backend_name() != "sqlite":
		return create_async_engine(database_url)
	if url.database and url.database != ":memory:":
		os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
	return create_async_engine(
		database_url,
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
	)


def _identity_table(platform: Platform):
	return VideoIdentityRow if platform is Platform.YOUTUBE else LiveIdentityRow


def _row_state(platform: Platform, row) -> CreatorState:
	if platform is Platform.YOUTUBE:
		return VideoState(latest_upload_id=row.latest_upload_id)
	return LiveState(is_live=bool(row.is_live))


def _state_values(state: CreatorState) -> dict:
	if isinstance(state, VideoState):
		return {"latest_upload_id": state.latest_upload_id}
	return {"is_live": bool(state.is_live)}


def _check_state(platform: Platform, state: CreatorState) -> None:
	expected = VideoState if platform is Platform.YOUTUBE else LiveState
	if not isinstance(state, expected):
		raise TypeError(f"{platform.label} state must be {expected.__name__}, got {type(state).__name__}")


def _subscription(row: SubscriptionRow) -> Subscription:
	return Subscription(
		destination_id=row.destination_id,
		platform=Platform(row.platform),
		canonical_id=row.canonical_id,
		target_channel_id=row.target_channel_id,
		mention_role_id=row.mention_role_id,
	)


class TrackingStore:
	"""Async query surface over the video/live identity and subscription tables."""

	def __init__(self, database_url: str = DEFAULT_DATABASE_URL, *, prune_orphans: bool = False) -> None:
		self.database_url = database_url
		self.prune_orphans = prune_orphans
		self._engine = _make_engine(database_url)
		self._sessions = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

	async def init(self) -> None:
		"""Create tables if they do not exist."""
		async with self._engine.begin() as conn:
			await conn.run_sync(Base.metadata.create_all)
		logger.info("Tracking store ready ({})", make_url(self.database_url).render_as_string(hide_password=True))

	async def close(self) -> None:
		await self._engine.dispose()

	# ------------------------------------------------------------------ #
	# Tracked identities
	# ------------------------------------------------------------------ #

	async def list_tracked(self, platform: Platform) -> list[TrackedIdentity]:
		table = _identity_table(platform)
		async with self._sessions() as session:
			rows = (await session.execute(select(table))).scalars().all()
		return [
			TrackedIdentity(platform=platform, canonical_id=row.canonical_id, state=_row_state(platform, row))
			for row in rows
		]

	async def is_tracked(self, platform: Platform, canonical_id: str) -> bool:
		return await self.get_state(platform, canonical_id) is not None

	async def get_state(self, platform: Platform, canonical_id: str) -> Optional[CreatorState]:
		table = _identity_table(platform)
		async with self._sessions() as session:
			row = await session.get(table, canonical_id)
		return _row_state(platform, row) if row is not None else None

	async def update_state(self, platform: Platform, canonical_id: str, state: CreatorState) -> bool:
		"""Overwrite the stored state; returns False if the creator is unknown."""
		_check_state(platform, state)
		table = _identity_table(platform)
		async with self._sessions() as session:
			async with session.begin():
				result = await session.execute(
					update(table).where(table.canonical_id == canonical_id).values(**_state_values(state))
				)
		return bool(result.rowcount)

	# ------------------------------------------------------------------ #
	# Subscriptions
	# ------------------------------------------------------------------ #

	async def list_subscriptions(self, platform: Platform, canonical_id: str) -> list[Subscription]:
		stmt = select(SubscriptionRow).where(
			SubscriptionRow.platform == platform.value,
			SubscriptionRow.canonical_id == canonical_id,
		)
		async with self._sessions() as session:
			rows = (await session.execute(stmt)).scalars().all()
		return [_subscription(r) for r in rows]

	async def list_destination_subscriptions(self, destination_id: str) -> list[Subscription]:
		stmt = (
			select(SubscriptionRow)
			.where(SubscriptionRow.destination_id == destination_id)
			.order_by(SubscriptionRow.platform, SubscriptionRow.id)
		)
		async with self._sessions() as session:
			rows = (await session.execute(stmt)).scalars().all()
		return [_subscription(r) for r in rows]

	async def has_subscription(self, destination_id: str, platform: Platform, canonical_id: str) -> bool:
		stmt = select(func.count()).select_from(SubscriptionRow).where(
			SubscriptionRow.destination_id == destination_id,
			SubscriptionRow.platform == platform.value,
			SubscriptionRow.canonical_id == canonical_id,
		)
		async with self._sessions() as session:
			count = (await session.execute(stmt)).scalar_one()
		return count > 0

	async def add_subscription(self, subscription: Subscription, initial_state: Optional[CreatorState] = None) -> bool:
		"""Create the subscription, and the creator row when it is new.

		Both inserts run in one transaction. `initial_state` is only used for
		a creator seen for the first time. Returns True when a creator row was
		created. Raises AlreadyTrackedError for a duplicate subscription.
		"""
		platform = subscription.platform
		table = _identity_table(platform)
		created = False
		duplicate = AlreadyTrackedError(
			f"{subscription.destination_id} already tracks {platform.label} {subscription.canonical_id}"
		)
		try:
			async with self._sessions() as session:
				async with session.begin():
					existing = await session.execute(
						select(SubscriptionRow.id).where(
							SubscriptionRow.destination_id == subscription.destination_id,
							SubscriptionRow.platform == platform.value,
							SubscriptionRow.canonical_id == subscription.canonical_id,
						)
					)
					if existing.first() is not None:
						raise duplicate
					if await session.get(table, subscription.canonical_id) is None:
						state = initial_state if initial_state is not None else (
							VideoState(latest_upload_id=None) if platform is Platform.YOUTUBE else LiveState(is_live=False)
						)
						_check_state(platform, state)
						session.add(table(canonical_id=subscription.canonical_id, **_state_values(state)))
						created = True
					session.add(
						SubscriptionRow(
							destination_id=subscription.destination_id,
							target_channel_id=subscription.target_channel_id,
							platform=platform.value,
							canonical_id=subscription.canonical_id,
							mention_role_id=subscription.mention_role_id,
						)
					)
		except IntegrityError as exc:
			# Only a concurrent insert of the same subscription maps to a duplicate
			if not await self.has_subscription(subscription.destination_id, platform, subscription.canonical_id):
				raise
			raise duplicate from exc
		logger.info(
			"Guild {} now tracks {} {} (new creator: {})",
			subscription.destination_id, platform.label, subscription.canonical_id, created,
		)
		return created

	async def remove_subscription(self, destination_id: str, platform: Platform, canonical_id: str) -> bool:
		"""Delete a guild's subscription; returns False when none existed."""
		async with self._sessions() as session:
			async with session.begin():
				result = await session.execute(
					delete(SubscriptionRow).where(
						SubscriptionRow.destination_id == destination_id,
						SubscriptionRow.platform == platform.value,
						SubscriptionRow.canonical_id == canonical_id,
					)
				)
				removed = bool(result.rowcount)
				if removed and self.prune_orphans:
					remaining = (
						await session.execute(
							select(func.count()).select_from(SubscriptionRow).where(
								SubscriptionRow.platform == platform.value,
								SubscriptionRow.canonical_id == canonical_id,
							)
						)
					).scalar_one()
					if remaining == 0:
						table = _identity_table(platform)
						await session.execute(delete(table).where(table.canonical_id == canonical_id))
						logger.info("Pruned {} {} (no subscribers left)", platform.label, canonical_id)
		if removed:
			logger.info("Guild {} stopped tracking {} {}", destination_id, platform.label, canonical_id)
		return removed
