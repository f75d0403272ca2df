import pytest

from functionality.feedr.errors import ConfigError
from functionality.feedr.settings import DEFAULT_DATABASE_URL, FeedrSettings


BASE_ENV = {
	"DISCORD_TOKEN": "prod-token",
	"DISCORD_DEV_TOKEN": "dev-token",
	"YOUTUBE_API_KEY": "yt-key",
	"TWITCH_CLIENT_ID": "cid",
	"TWITCH_CLIENT_SECRET": "secret",
}


def test_defaults():
	s = FeedrSettings.from_env([], env=dict(BASE_ENV))
	assert s.discord_token == "prod-token"
	assert s.youtube_poll_seconds == 60
	assert s.twitch_poll_seconds == 60
	assert s.database_url == DEFAULT_DATABASE_URL
	assert s.prune_orphans is False
	assert s.continue_on_chunk_error is False
	assert s.guild_ids == ()


def test_dev_flag_selects_dev_token():
	s = FeedrSettings.from_env(["Feedr.py", "--dev"], env=dict(BASE_ENV))
	assert s.discord_token == "dev-token"


def test_intervals_and_flags_are_parsed():
	env = dict(BASE_ENV)
	env.update(
		{
			"YOUTUBE_POLL_SECONDS": "300",
			"TWITCH_POLL_SECONDS": "0",
			"FEEDR_PRUNE_ORPHANS": "true",
			"GUILD_IDS": "123, 456,",
		}
	)
	s = FeedrSettings.from_env([], env=env)
	assert s.youtube_poll_seconds == 300
	assert s.twitch_poll_seconds == 1
	assert s.prune_orphans is True
	assert s.guild_ids == (123, 456)


@pytest.mark.parametrize("missing", ["YOUTUBE_API_KEY", "TWITCH_CLIENT_ID", "TWITCH_CLIENT_SECRET", "DISCORD_TOKEN"])
def test_missing_credentials_raise(missing):
	env = dict(BASE_ENV)
	del env[missing]
	with pytest.raises(ConfigError):
		FeedrSettings.from_env([], env=env)


def test_placeholder_values_are_rejected():
	env = dict(BASE_ENV, YOUTUBE_API_KEY="YOUR_YOUTUBE_API_KEY")
	with pytest.raises(ConfigError):
		FeedrSettings.from_env([], env=env)


def test_bad_integer_raises():
	env = dict(BASE_ENV, TWITCH_POLL_SECONDS="soon")
	with pytest.raises(ConfigError):
		FeedrSettings.from_env([], env=env)
