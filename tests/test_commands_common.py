import hikari

from functionality.feedr.commands.common import SharedContext, parse_platform, snowflake_or_none
from functionality.feedr.commands.help import build_help_embed
from functionality.feedr.commands.info import usage_report
from functionality.feedr.commands.tracked import format_subscription
from functionality.feedr.models import Platform, Subscription


class StubService:
	pass


def test_parse_platform_accepts_choice_values():
	assert parse_platform("youtube") is Platform.YOUTUBE
	assert parse_platform(" Twitch ") is Platform.TWITCH
	assert parse_platform("mixer") is None


def test_snowflake_or_none():
	assert snowflake_or_none(None) is None
	assert snowflake_or_none(hikari.Snowflake(123)) == "123"

	class Obj:
		id = hikari.Snowflake(456)

	assert snowflake_or_none(Obj()) == "456"


def test_uptime_days():
	shared = SharedContext(service=StubService(), started_at=0.0)
	assert shared.uptime_days(now=86400 * 1.5) == 1.5
	assert shared.uptime_days(now=-5) == 0.0


def test_format_subscription_with_and_without_role():
	sub = Subscription("1", Platform.TWITCH, "42", "555")
	assert format_subscription(sub) == "• **Twitch** `42` → <#555>"
	with_role = Subscription("1", Platform.YOUTUBE, "UCx", "555", "9")
	assert format_subscription(with_role).endswith("(pings <@&9>)")


def test_help_embed_lists_commands():
	embed = build_help_embed()
	text = "\n".join(f.value for f in embed.fields)
	for name in ("/track", "/untrack", "/tracked", "/ping", "/uptime", "/usage", "/sourcecode"):
		assert name in text


def test_usage_report_has_lines():
	assert len(usage_report().splitlines()) == 3
