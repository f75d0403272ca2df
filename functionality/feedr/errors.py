from __future__ import annotations

"""Exception types raised across Feedr."""

from typing import Optional

from .models import Platform


class FeedrError(RuntimeError):
	"""Base class for Feedr failures."""


class ConfigError(FeedrError):
	"""Raised at startup when required configuration is missing."""


class FetchError(FeedrError):
	"""Raised when a platform polling request does not succeed."""

	def __init__(self, platform: Platform, status: Optional[int], reason: str = "") -> None:
		self.platform = platform
		self.status = status
		self.reason = reason
		super().__init__(f"{platform.label} request failed ({status}): {reason}".rstrip(": "))


class AlreadyTrackedError(FeedrError):
	"""The guild already subscribes to this creator."""
