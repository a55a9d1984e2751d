"""
City suggestion module.
Forward-geocodes partial city names through OpenCage and caches the
suggestion lists per (query, country, region) for a fixed time window.
"""

import threading  # per-key locks
import time  # default monotonic clock
from typing import Callable, Dict, List, Optional, Tuple  # type hints

import requests  # HTTP session type
from loguru import logger  # console logging
from pydantic import BaseModel, Field  # payload schemas

from .errors import CallerInputError
from .models import CitySuggestion
from .upstream import get_json, parse_payload

DEFAULT_BASE_URL = 'https://api.opencagedata.com/geocode/v1/json'
PROVIDER = 'OpenCage'
DEFAULT_TTL_MS = 3_600_000  # one hour

CacheKey = Tuple[str, Optional[str], Optional[str]]


class OcGeometry(BaseModel):
	lat: float
	lng: float


class OcTimezone(BaseModel):
	name: str = ''


class OcAnnotations(BaseModel):
	timezone: Optional[OcTimezone] = None


class OcResult(BaseModel):
	formatted: str
	geometry: Optional[OcGeometry] = None
	annotations: OcAnnotations = Field(default_factory=OcAnnotations)


class OcResponse(BaseModel):
	results: List[OcResult] = Field(default_factory=list)


class OpenCageGeocoder:
	"""Forward geocoder returning CitySuggestion lists."""

	def __init__(
		self,
		api_key: Optional[str],
		session: Optional[requests.Session] = None,
		base_url: str = DEFAULT_BASE_URL,
		timeout: float = 10.0,
		limit: int = 5,
	):
		self.api_key = api_key
		self.session = session or requests.Session()
		self.base_url = base_url
		self.timeout = timeout
		self.limit = limit

	def forward(self, query: str, country: Optional[str] = None, region: Optional[str] = None) -> List[CitySuggestion]:
		# OpenCage has no region filter; narrowing by region means adding it to the text
		text = f"{query}, {region}" if region else query
		params = {'q': text, 'key': self.api_key, 'limit': self.limit, 'no_annotations': 0}
		if country:
			params['countrycode'] = country.lower()
		data = get_json(
			self.session,
			self.base_url,
			params=params,
			timeout=self.timeout,
			provider=PROVIDER,
			failure_message='Failed to fetch city suggestions',
		)
		response = parse_payload(OcResponse, data, PROVIDER)
		suggestions = []
		for result in response.results:
			if result.geometry is None:  # nothing to point at
				continue
			tz = result.annotations.timezone
			suggestions.append(CitySuggestion(
				display_name=result.formatted,
				lat=result.geometry.lat,
				lng=result.geometry.lng,
				timezone=tz.name if tz else '',
			))
		return suggestions


class CitySuggestionCache:
	"""
	TTL cache in front of a geocoder.
	- Keys are the exact (query, country, region) tuple; no merging across keys.
	- Entries leave only by expiry; failed lookups are never stored.
	- Expired keys and idle locks are swept at most once per TTL.
	- Misses for the same key are serialised so one upstream call fills the entry.
	"""

	def __init__(
		self,
		geocoder: OpenCageGeocoder,
		ttl_ms: int = DEFAULT_TTL_MS,
		clock: Callable[[], float] = time.monotonic,
	):
		self.geocoder = geocoder
		self.ttl_seconds = ttl_ms / 1000.0
		self.clock = clock  # returns seconds
		self._entries: Dict[CacheKey, Tuple[float, List[CitySuggestion]]] = {}  # key -> (expires_at, value)
		self._guard = threading.Lock()  # protects _entries and _key_locks
		self._key_locks: Dict[CacheKey, threading.Lock] = {}
		self._next_sweep = clock() + self.ttl_seconds  # next full purge of expired keys

	def _lock_for(self, key: CacheKey) -> threading.Lock:
		with self._guard:
			lock = self._key_locks.get(key)
			if lock is None:
				lock = self._key_locks[key] = threading.Lock()
			return lock

	def _fresh(self, key: CacheKey) -> Optional[List[CitySuggestion]]:
		with self._guard:
			entry = self._entries.get(key)
			if entry is None:
				return None
			expires_at, value = entry
			if self.clock() >= expires_at:
				del self._entries[key]  # expired
				lock = self._key_locks.get(key)
				if lock is not None and not lock.locked():
					del self._key_locks[key]
				return None
			return value

	def lookup(self, query: str, country: Optional[str] = None, region: Optional[str] = None) -> List[CitySuggestion]:
		"""Return suggestions for the key, from cache when fresh, else from upstream."""
		if not query or not query.strip():
			raise CallerInputError('Query is required')
		key: CacheKey = (query, country, region)

		self._maybe_sweep()
		cached = self._fresh(key)
		if cached is not None:
			logger.debug(f"[Cities] Cache hit for {key}")
			return list(cached)  # callers get their own copy

		with self._lock_for(key):
			# Another request may have filled the entry while we waited
			cached = self._fresh(key)
			if cached is not None:
				logger.debug(f"[Cities] Cache filled while waiting for {key}")
				return list(cached)
			logger.info(f"[Cities] Cache miss for {key}, asking geocoder")
			suggestions = self.geocoder.forward(query, country, region)  # errors propagate, nothing cached
			with self._guard:
				self._entries[key] = (self.clock() + self.ttl_seconds, suggestions)
		return list(suggestions)

	def _maybe_sweep(self) -> None:
		"""Purge every expired key at most once per TTL."""
		with self._guard:
			if self.clock() < self._next_sweep:
				return
			self._next_sweep = self.clock() + self.ttl_seconds
		self.purge_expired()

	def purge_expired(self) -> int:
		"""Drop expired entries and idle locks with no entry; returns how many entries were dropped."""
		now = self.clock()
		with self._guard:
			expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
			for k in expired:
				del self._entries[k]
			# also covers keys whose lookup failed and never stored an entry
			idle = [k for k, lock in self._key_locks.items() if k not in self._entries and not lock.locked()]
			for k in idle:
				del self._key_locks[k]
		if expired:
			logger.debug(f"[Cities] Purged {len(expired)} expired entries")
		return len(expired)

	def __len__(self) -> int:
		with self._guard:
			return len(self._entries)
