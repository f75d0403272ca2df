from __future__ import annotations

import lightbulb
from lightbulb.commands import options as opt

from ..subscriptions import UntrackCommand
from .common import PLATFORM_CHOICES, SharedContext, parse_platform, reply_with_result, snowflake_or_none


def register(client: lightbulb.Client, shared: SharedContext) -> str:
    @client.register
    class Untrack(
        lightbulb.SlashCommand,
        name="untrack",
        description="Stop a channel from being tracked in this server!",
    ):
        platform: str = opt.string("platform", "Platform the creator is on", choices=PLATFORM_CHOICES)
        user_id: str = opt.string("user_id", "YouTube channel ID (UC...) or Twitch username")

        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            platform = parse_platform(self.platform)
            if platform is None:
                await ctx.respond("Unknown platform.", ephemeral=True)
                return
            await ctx.defer(ephemeral=True)
            command = UntrackCommand(
                destination_id=snowflake_or_none(ctx.guild_id),
                platform=platform,
                raw_identifier=self.user_id,
                requester_permissions=getattr(ctx.member, "permissions", None),
            )
            result = await shared.service.execute(command)
            await reply_with_result(ctx, result)

    return "untrack"
