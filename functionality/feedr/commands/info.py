from __future__ import annotations

"""Informational commands: ping, uptime, usage and sourcecode."""

import gc
import math
import sys

import lightbulb

from .common import SharedContext


def usage_report() -> str:
    return (
        f"Allocated blocks: {sys.getallocatedblocks():,}\n"
        f"Tracked objects: {len(gc.get_objects()):,}\n"
        f"GC collections: {', '.join(str(s['collections']) for s in gc.get_stats())}"
    )


def register(client: lightbulb.Client, shared: SharedContext) -> list[str]:
    @client.register
    class Ping(
        lightbulb.SlashCommand,
        name="ping",
        description="Check the ping of the bot!",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            latency = getattr(ctx.client.app, "heartbeat_latency", float("nan"))
            if math.isnan(latency):
                await ctx.respond("Ping: unknown")
                return
            await ctx.respond(f"Ping: {latency * 1000:.0f}ms")

    @client.register
    class Uptime(
        lightbulb.SlashCommand,
        name="uptime",
        description="Check the uptime of the bot!",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            await ctx.respond(f"Uptime: {shared.uptime_days():.2f} days")

    @client.register
    class Usage(
        lightbulb.SlashCommand,
        name="usage",
        description="Check the memory usage of the bot!",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            await ctx.respond(usage_report()[:2000])

    @client.register
    class SourceCode(
        lightbulb.SlashCommand,
        name="sourcecode",
        description="Get the link of the app's source code.",
    ):
        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            await ctx.respond(f"[Github repository]({shared.source_url})", ephemeral=True)

    return ["ping", "uptime", "usage", "sourcecode"]
