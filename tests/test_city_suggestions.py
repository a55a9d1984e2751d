"""
Unit tests for the city suggestion cache: TTL hits/misses, key isolation,
no caching of failures, and concurrent misses.
Run: pytest tests/test_city_suggestions.py
"""

import threading
import time

import pytest

from cinecast.city_suggestions import CitySuggestionCache, OpenCageGeocoder
from cinecast.errors import CallerInputError, UpstreamUnavailableError
from cinecast.models import CitySuggestion

from conftest import FakeResponse, FakeSession, opencage_payload

TTL_MS = 3_600_000


class CountingGeocoder:
	def __init__(self, results=None, error=None, delay=0.0):
		self.results = results if results is not None else [CitySuggestion('Paris, France', 48.85, 2.35, 'Europe/Paris')]
		self.error = error
		self.delay = delay
		self.calls = []

	def forward(self, query, country=None, region=None):
		self.calls.append((query, country, region))
		if self.delay:
			time.sleep(self.delay)
		if self.error is not None:
			raise self.error
		return list(self.results)


def test_geocoder_maps_results_and_params():
	session = FakeSession({'/json': FakeResponse(payload=opencage_payload('Paris, France', 'Paris, Texas'))})
	geocoder = OpenCageGeocoder('oc-key', session=session)
	suggestions = geocoder.forward('Paris', country='FR', region='Ile-de-France')

	assert suggestions[0] == CitySuggestion('Paris, France', 10.0, 20.0, 'Europe/Paris')
	params = session.calls[0][1]
	assert params['q'] == 'Paris, Ile-de-France'
	assert params['countrycode'] == 'fr'
	assert params['key'] == 'oc-key'


def test_geocoder_skips_rows_without_geometry():
	payload = opencage_payload('Somewhere')
	payload['results'].append({'formatted': 'Nowhere'})
	session = FakeSession({'/json': FakeResponse(payload=payload)})
	assert [s.display_name for s in OpenCageGeocoder('k', session=session).forward('x')] == ['Somewhere']


def test_second_call_within_ttl_is_cached(clock):
	geocoder = CountingGeocoder()
	cache = CitySuggestionCache(geocoder, ttl_ms=TTL_MS, clock=clock)

	first = cache.lookup('Paris')
	clock.advance(TTL_MS / 1000 - 1)
	second = cache.lookup('Paris')

	assert first == second
	assert len(geocoder.calls) == 1


def test_expired_entry_is_refetched(clock):
	geocoder = CountingGeocoder()
	cache = CitySuggestionCache(geocoder, ttl_ms=TTL_MS, clock=clock)

	cache.lookup('Paris')
	clock.advance(TTL_MS / 1000)
	cache.lookup('Paris')

	assert len(geocoder.calls) == 2


def test_keys_include_country_and_region(clock):
	geocoder = CountingGeocoder()
	cache = CitySuggestionCache(geocoder, clock=clock)

	cache.lookup('Paris')
	cache.lookup('Paris', 'US')
	cache.lookup('Paris', 'US', 'Texas')
	cache.lookup('paris')  # no normalisation

	assert len(geocoder.calls) == 4
	assert len(cache) == 4


def test_failures_are_not_cached(clock):
	geocoder = CountingGeocoder(error=UpstreamUnavailableError('Failed to fetch city suggestions'))
	cache = CitySuggestionCache(geocoder, clock=clock)

	for _ in range(2):
		with pytest.raises(UpstreamUnavailableError):
			cache.lookup('Paris')

	assert len(geocoder.calls) == 2
	assert len(cache) == 0


def test_purge_expired(clock):
	cache = CitySuggestionCache(CountingGeocoder(), ttl_ms=1000, clock=clock)
	cache.lookup('a')
	clock.advance(0.5)
	cache.lookup('b')
	clock.advance(0.6)

	assert cache.purge_expired() == 1
	assert len(cache) == 1


def test_expired_keys_are_swept_on_later_lookups(clock):
	cache = CitySuggestionCache(CountingGeocoder(), ttl_ms=1000, clock=clock)
	for i in range(500):
		cache.lookup(f'city {i}')
	assert len(cache._entries) == 500

	clock.advance(10)
	cache.lookup('one more')

	assert len(cache._entries) == 1
	assert len(cache._key_locks) <= 1


def test_expired_key_drops_its_lock(clock):
	cache = CitySuggestionCache(CountingGeocoder(), ttl_ms=1000, clock=clock)
	cache.lookup('Paris')
	clock.advance(1)

	assert cache._fresh(('Paris', None, None)) is None
	assert ('Paris', None, None) not in cache._key_locks


def test_failed_lookup_lock_is_purged(clock):
	cache = CitySuggestionCache(CountingGeocoder(error=UpstreamUnavailableError()), ttl_ms=1000, clock=clock)
	with pytest.raises(UpstreamUnavailableError):
		cache.lookup('Paris')
	assert len(cache._key_locks) == 1

	cache.purge_expired()

	assert cache._key_locks == {}


def test_returned_list_is_a_copy(clock):
	cache = CitySuggestionCache(CountingGeocoder(), clock=clock)
	first = cache.lookup('Paris')
	first.clear()
	second = cache.lookup('Paris')
	second.append('junk')

	assert [s.display_name for s in cache.lookup('Paris')] == ['Paris, France']


def test_empty_query_rejected():
	cache = CitySuggestionCache(CountingGeocoder())
	with pytest.raises(CallerInputError):
		cache.lookup(' ')


def test_concurrent_misses_share_one_upstream_call():
	geocoder = CountingGeocoder(delay=0.05)
	cache = CitySuggestionCache(geocoder)
	results = []

	threads = [threading.Thread(target=lambda: results.append(cache.lookup('Rome'))) for _ in range(5)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	assert len(results) == 5
	assert len(geocoder.calls) == 1
