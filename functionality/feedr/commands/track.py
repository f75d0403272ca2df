from __future__ import annotations

import lightbulb
from lightbulb.commands import options as opt
import hikari

from ..subscriptions import TrackCommand
from .common import PLATFORM_CHOICES, SharedContext, parse_platform, reply_with_result, snowflake_or_none


def register(client: lightbulb.Client, shared: SharedContext) -> str:
    @client.register
    class Track(
        lightbulb.SlashCommand,
        name="track",
        description="Track a channel to get notified when they upload or go live!",
    ):
        platform: str = opt.string("platform", "Platform the creator is on", choices=PLATFORM_CHOICES)
        user_id: str = opt.string("user_id", "YouTube channel ID (UC...) or Twitch username")
        updates_channel: hikari.PartialChannel = opt.channel(
            "updates_channel",
            "Channel to receive updates in",
            channel_types=[hikari.ChannelType.GUILD_TEXT, hikari.ChannelType.GUILD_NEWS],
        )
        role: hikari.Role = opt.role("role", "Role to mention (optional)", default=None)

        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            platform = parse_platform(self.platform)
            if platform is None:
                await ctx.respond("Unknown platform.", ephemeral=True)
                return
            # Lookups can be slow; defer so the interaction doesn't time out
            await ctx.defer(ephemeral=True)
            command = TrackCommand(
                destination_id=snowflake_or_none(ctx.guild_id),
                platform=platform,
                raw_identifier=self.user_id,
                target_channel_id=str(int(self.updates_channel.id)),
                mention_role_id=snowflake_or_none(self.role),
                requester_permissions=getattr(ctx.member, "permissions", None),
            )
            result = await shared.service.execute(command)
            await reply_with_result(ctx, result)

    return "track"
