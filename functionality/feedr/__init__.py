from .models import (
	CanonicalIdentity,
	CreatorDetails,
	LiveState,
	Platform,
	StateChange,
	Subscription,
	TrackedIdentity,
	VideoState,
)
from .settings import FeedrSettings
from .store import TrackingStore
from .youtube import YouTubeClient
from .twitch import TwitchClient, TwitchCredentialProvider
from .resolver import IdentityResolver
from .fetcher import StateFetcher
from .differ import StateDiffer
from .dispatcher import NotificationDispatcher
from .monitor import FeedMonitor, ReconciliationLoop
from .subscriptions import SubscriptionService, TrackCommand, UntrackCommand

__all__ = [
	"CanonicalIdentity",
	"CreatorDetails",
	"LiveState",
	"Platform",
	"StateChange",
	"Subscription",
	"TrackedIdentity",
	"VideoState",
	"FeedrSettings",
	"TrackingStore",
	"YouTubeClient",
	"TwitchClient",
	"TwitchCredentialProvider",
	"IdentityResolver",
	"StateFetcher",
	"StateDiffer",
	"NotificationDispatcher",
	"FeedMonitor",
	"ReconciliationLoop",
	"SubscriptionService",
	"TrackCommand",
	"UntrackCommand",
]
