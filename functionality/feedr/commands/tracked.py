from __future__ import annotations

import hikari
import lightbulb

from ..models import Subscription
from .common import BRAND_COLOR, SharedContext


def format_subscription(sub: Subscription) -> str:
    line = f"• **{sub.platform.label}** `{sub.canonical_id}` → <#{sub.target_channel_id}>"
    if sub.mention_role_id:
        line += f" (pings <@&{sub.mention_role_id}>)"
    return line


def register(client: lightbulb.Client, shared: SharedContext) -> str:
    @client.register
    class Tracked(
        lightbulb.SlashCommand,
        name="tracked",
        description="List the channels this server is tracking",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            if not ctx.guild_id:
                await ctx.respond("This command must be used in a server.", ephemeral=True)
                return
            subs = await shared.service.list_tracked(str(int(ctx.guild_id)))
            if not subs:
                await ctx.respond("This server is not tracking any channels yet. Use `/track` to add one.", ephemeral=True)
                return
            lines = [format_subscription(s) for s in subs]
            description = "\n".join(lines)
            if len(description) > 4000:
                description = description[:3990].rsplit("\n", 1)[0] + "\n…"
            embed = hikari.Embed(title="Tracked channels", description=description, color=BRAND_COLOR)
            await ctx.respond(embeds=[embed], ephemeral=True)

    return "tracked"
