from __future__ import annotations

import hikari
import lightbulb

from .common import BRAND_COLOR, SharedContext


def build_help_embed() -> hikari.Embed:
    embed = hikari.Embed(
        title="Feedr Help",
        description="Feedr posts to your server when tracked YouTube channels upload or Twitch streamers go live.",
        color=BRAND_COLOR,
    )
    embed.add_field(
        name="Tracking",
        value=(
            "- `/track <platform> <user_id> <updates_channel> [role]` — Start notifications for a creator.\n"
            "- `/untrack <platform> <user_id>` — Stop notifications for a creator.\n"
            "- `/tracked` — List what this server tracks.\n"
            "Tracking commands require the Manage Channels permission."
        ),
        inline=False,
    )
    embed.add_field(
        name="Utilities",
        value=(
            "- `/ping` — Gateway latency.\n"
            "- `/uptime` — Time since the bot started.\n"
            "- `/usage` — Memory statistics.\n"
            "- `/sourcecode` — Link to the source.\n"
            "- `/help` — Show this guide."
        ),
        inline=False,
    )
    return embed


def register(client: lightbulb.Client, shared: SharedContext) -> str:
    @client.register
    class Help(
        lightbulb.SlashCommand,
        name="help",
        description="Get help on what each command does!",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            await ctx.respond(embeds=[build_help_embed()], ephemeral=True)

    return "help"
