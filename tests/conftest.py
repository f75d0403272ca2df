import os
import sys


# Ensure project root is on sys.path so `functionality.*` imports work
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
	sys.path.insert(0, ROOT)

import pytest
import pytest_asyncio

from functionality.feedr.errors import FetchError
from functionality.feedr.models import CanonicalIdentity, CreatorDetails, Platform
from functionality.feedr.store import TrackingStore


class FakeResponse:
	def __init__(self, status: int = 200, payload=None, reason: str = "OK"):
		self.status = status
		self.reason = reason
		self._payload = payload

	async def json(self):
		return self._payload

	async def __aenter__(self):
		return self

	async def __aexit__(self, *exc):
		return False


class FakeSession:
	"""Records requests and answers them through `handler(method, url, params)`."""

	def __init__(self, handler):
		self.handler = handler
		self.requests: list[dict] = []

	def _call(self, method, url, params=None, headers=None, data=None):
		self.requests.append(
			{"method": method, "url": url, "params": params, "headers": headers, "data": data}
		)
		return self.handler(method, url, params)

	def get(self, url, *, params=None, headers=None):
		return self._call("GET", url, params=params, headers=headers)

	def post(self, url, *, data=None, headers=None):
		return self._call("POST", url, headers=headers, data=data)


class StubSource:
	"""In-memory stand-in for a platform client."""

	def __init__(self, platform: Platform, states=None, *, batch_size: int = 50, fail_chunks=(), details=None):
		self.platform = platform
		self.max_batch_size = batch_size
		self.states = dict(states or {})
		self.fail_chunks = set(fail_chunks)
		self.details = dict(details or {})
		self.identities: dict[str, CanonicalIdentity] = {}
		self.initial_states: dict = {}
		self.calls: list[list[str]] = []
		self.resolve_calls: list[str] = []

	def validate_format(self, raw):
		if self.platform is Platform.YOUTUBE:
			return len(raw) == 24 and raw.startswith("UC")
		return bool(raw)

	async def resolve(self, raw):
		self.resolve_calls.append(raw)
		return self.identities.get(raw)

	async def describe(self, canonical_id):
		name = self.details.get(canonical_id)
		if name is None:
			return None
		return CreatorDetails(canonical_id=canonical_id, display_name=name, handle=name.lower())

	async def fetch_states(self, canonical_ids):
		index = len(self.calls)
		self.calls.append(list(canonical_ids))
		if index in self.fail_chunks:
			raise FetchError(self.platform, 500, "Internal Server Error")
		return {cid: self.states[cid] for cid in canonical_ids if cid in self.states}

	async def fetch_initial_state(self, canonical_id):
		return self.initial_states.get(canonical_id)


@pytest.fixture()
def fake_session():
	return FakeSession


@pytest.fixture()
def fake_response():
	return FakeResponse


@pytest.fixture()
def stub_source():
	return StubSource


@pytest_asyncio.fixture()
async def store():
	s = TrackingStore("sqlite+aiosqlite:///:memory:")
	await s.init()
	yield s
	await s.close()
