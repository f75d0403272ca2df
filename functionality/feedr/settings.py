from __future__ import annotations

"""Process configuration for Feedr.

Values come from environment variables (a .env file is loaded by the
entrypoint via python-dotenv) and are read once at startup.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from .errors import ConfigError

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///data/feedr.db"

# Values shipped in .env.example that mean "not filled in yet"
_PLACEHOLDERS = {
	"DISCORD_TOKEN": "YOUR_DISCORD_TOKEN",
	"DISCORD_DEV_TOKEN": "YOUR_DISCORD_TOKEN",
	"YOUTUBE_API_KEY": "YOUR_YOUTUBE_API_KEY",
	"TWITCH_CLIENT_ID": "YOUR_TWITCH_CLIENT_ID",
	"TWITCH_CLIENT_SECRET": "YOUR_TWITCH_CLIENT_SECRET",
}


def _require(env: Mapping[str, str], name: str) -> str:
	value = (env.get(name) or "").strip()
	if not value or value == _PLACEHOLDERS.get(name):
		raise ConfigError(f"You MUST provide {name} in the environment or .env file!")
	return value


def _int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
	raw = (env.get(name) or "").strip()
	if not raw:
		return default
	try:
		return max(minimum, int(raw))
	except ValueError:
		raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _flag(env: Mapping[str, str], name: str) -> bool:
	return (env.get(name) or "false").strip().lower() in ("1", "true", "yes", "on")


def _guild_ids(raw: str) -> tuple[int, ...]:
	ids: list[int] = []
	for part in raw.split(","):
		part = part.strip()
		if not part:
			continue
		try:
			ids.append(int(part))
		except ValueError:
			raise ConfigError(f"Invalid guild id in GUILD_IDS: {part!r}")
	return tuple(ids)


@dataclass(frozen=True)
class FeedrSettings:
	"""Immutable snapshot of everything Feedr reads from the environment."""

	discord_token: str
	youtube_api_key: str
	twitch_client_id: str
	twitch_client_secret: str
	database_url: str = DEFAULT_DATABASE_URL
	youtube_poll_seconds: int = 60
	twitch_poll_seconds: int = 60
	send_delay_ms: int = 250
	prune_orphans: bool = False
	continue_on_chunk_error: bool = False
	log_level: str = "INFO"
	guild_ids: tuple[int, ...] = field(default_factory=tuple)

	@classmethod
	def from_env(
		cls,
		argv: Sequence[str] = (),
		env: Optional[Mapping[str, str]] = None,
	) -> "FeedrSettings":
		"""Build settings from `env` (defaults to os.environ).

		Passing `--dev` in argv selects DISCORD_DEV_TOKEN instead of
		DISCORD_TOKEN. Raises ConfigError when a credential is missing.
		"""
		env = os.environ if env is None else env
		token_name = "DISCORD_DEV_TOKEN" if "--dev" in argv else "DISCORD_TOKEN"
		return cls(
			discord_token=_require(env, token_name),
			youtube_api_key=_require(env, "YOUTUBE_API_KEY"),
			twitch_client_id=_require(env, "TWITCH_CLIENT_ID"),
			twitch_client_secret=_require(env, "TWITCH_CLIENT_SECRET"),
			database_url=(env.get("FEEDR_DATABASE_URL") or DEFAULT_DATABASE_URL).strip(),
			youtube_poll_seconds=_int(env, "YOUTUBE_POLL_SECONDS", 60, minimum=1),
			twitch_poll_seconds=_int(env, "TWITCH_POLL_SECONDS", 60, minimum=1),
			send_delay_ms=_int(env, "FEEDR_SEND_DELAY_MS", 250),
			prune_orphans=_flag(env, "FEEDR_PRUNE_ORPHANS"),
			continue_on_chunk_error=_flag(env, "FEEDR_CONTINUE_ON_CHUNK_ERROR"),
			log_level=(env.get("FEEDR_LOG_LEVEL") or "INFO").strip(),
			guild_ids=_guild_ids(env.get("GUILD_IDS") or ""),
		)
