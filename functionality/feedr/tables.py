"""SQLAlchemy table definitions for the Feedr tracking store."""

from sqlalchemy import Boolean, Column, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class VideoIdentityRow(Base):
	"""A YouTube channel polled for new uploads."""
	__tablename__ = "video_identity"

	canonical_id = Column(String(255), primary_key=True)
	latest_upload_id = Column(String(255), nullable=True, unique=True)


class LiveIdentityRow(Base):
	"""A Twitch streamer polled for live status."""
	__tablename__ = "live_identity"

	canonical_id = Column(String(255), primary_key=True)
	is_live = Column(Boolean, nullable=False, default=False)


class SubscriptionRow(Base):
	"""A guild's subscription to a tracked creator."""
	__tablename__ = "subscription"
	__table_args__ = (
		UniqueConstraint("destination_id", "platform", "canonical_id", name="uq_subscription_destination"),
		Index("ix_subscription_platform_canonical", "platform", "canonical_id"),
	)

	id = Column(Integer, primary_key=True, autoincrement=True)
	destination_id = Column(String(255), nullable=False, index=True)
	target_channel_id = Column(String(255), nullable=False)
	platform = Column(String(32), nullable=False)
	canonical_id = Column(String(255), nullable=False)
	mention_role_id = Column(String(255), nullable=True)
