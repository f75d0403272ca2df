from __future__ import annotations

"""Shared helpers and context for Feedr slash commands."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

import lightbulb

from ..models import Platform
from ..subscriptions import CommandResult, SubscriptionService

SOURCE_CODE_URL = "https://github.com/GalvinPython/feedr"
BRAND_COLOR = 0xFF4F4F

PLATFORM_CHOICES = [
    lightbulb.Choice("YouTube", Platform.YOUTUBE.value),
    lightbulb.Choice("Twitch", Platform.TWITCH.value),
]


@dataclass
class SharedContext:
    """Holds the services and process facts the commands need."""

    service: SubscriptionService
    source_url: str = SOURCE_CODE_URL
    started_at: float = field(default_factory=time.monotonic)

    def uptime_days(self, now: Optional[float] = None) -> float:
        now = time.monotonic() if now is None else now
        return max(0.0, now - self.started_at) / 86400


def parse_platform(raw: Any) -> Optional[Platform]:
    try:
        return Platform(str(raw).strip().lower())
    except ValueError:
        return None


def snowflake_or_none(value: Any) -> Optional[str]:
    """String id of a hikari object/snowflake, or None."""
    if value is None:
        return None
    return str(int(getattr(value, "id", value)))


async def reply_with_result(ctx: lightbulb.Context, result: CommandResult) -> None:
    await ctx.respond(result.message, ephemeral=True)
