"""
Shared fakes for the test suite: HTTP session, clock, token verifier and
Gemini model. No test touches the network.
"""

from types import SimpleNamespace

import pytest

from cinecast.errors import AuthError


class FakeResponse:
	def __init__(self, status_code=200, payload=None, invalid_json=False):
		self.status_code = status_code
		self._payload = payload
		self._invalid_json = invalid_json

	def json(self):
		if self._invalid_json:
			raise ValueError("No JSON object could be decoded")
		return self._payload


class FakeSession:
	"""
	Routes GET requests by path suffix. A route value may be a FakeResponse,
	an exception instance (raised) or a list consumed one item per call.
	"""

	def __init__(self, routes=None):
		self.routes = dict(routes or {})
		self.calls = []  # (url, params, timeout)

	def get(self, url, params=None, timeout=None):
		self.calls.append((url, dict(params or {}), timeout))
		for suffix, outcome in self.routes.items():
			if url.endswith(suffix):
				if isinstance(outcome, list):
					outcome = outcome.pop(0)
				if isinstance(outcome, Exception):
					raise outcome
				return outcome
		raise AssertionError(f"Unexpected URL {url}")

	def calls_to(self, suffix):
		return [c for c in self.calls if c[0].endswith(suffix)]


class FakeClock:
	def __init__(self, start=1000.0):
		self.now = start

	def __call__(self):
		return self.now

	def advance(self, seconds):
		self.now += seconds


class FakeVerifier:
	"""Accepts exactly one token."""

	VALID_TOKEN = 'good-token'

	def __init__(self):
		self.calls = 0

	def verify(self, token):
		self.calls += 1
		if token != self.VALID_TOKEN:
			raise AuthError('Invalid token')
		return {'uid': 'user-1'}


class FakeModel:
	"""Stands in for genai.GenerativeModel."""

	def __init__(self, text='Try "Inception".', error=None, block_reason=None, finish_reason=None):
		self.text = text
		self.error = error
		self.block_reason = block_reason
		self.finish_reason = finish_reason
		self.prompts = []

	def generate_content(self, prompt):
		self.prompts.append(prompt)
		if self.error is not None:
			raise self.error
		candidate = SimpleNamespace(finish_reason=SimpleNamespace(name=self.finish_reason or 'STOP'))
		return SimpleNamespace(
			text=self.text,
			prompt_feedback=SimpleNamespace(block_reason=self.block_reason),
			candidates=[candidate],
		)


def owm_current(name='London', main='Rain', temp=12.5, country='GB', lat=51.51, lon=-0.13):
	"""OpenWeatherMap current-conditions record."""
	return {
		'name': name,
		'coord': {'lat': lat, 'lon': lon},
		'weather': [{'main': main, 'description': main.lower()}],
		'main': {'temp': temp, 'humidity': 81},
		'wind': {'speed': 4.1},
		'sys': {'country': country},
	}


def owm_find(*records):
	return {'message': 'accurate', 'cod': '200', 'count': len(records), 'list': list(records)}


def tmdb_page(count=8, start_id=100):
	return {
		'page': 1,
		'results': [
			{
				'id': start_id + i,
				'title': f"Movie {i}",
				'overview': f"Overview {i}",
				'poster_path': f"/poster{i}.jpg",
				'release_date': '2020-01-01',
				'vote_average': 7.5,
			}
			for i in range(count)
		],
	}


def opencage_payload(*names):
	return {
		'results': [
			{
				'formatted': name,
				'geometry': {'lat': 10.0 + i, 'lng': 20.0 + i},
				'annotations': {'timezone': {'name': 'Europe/Paris'}},
			}
			for i, name in enumerate(names)
		],
		'status': {'code': 200, 'message': 'OK'},
	}


@pytest.fixture
def clock():
	return FakeClock()
