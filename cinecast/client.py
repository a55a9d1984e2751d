"""
HTTP client for the CineCast API, used by the Streamlit UI.
Every call returns an ApiResult instead of raising, so the UI decides how to
show errors (banner, inline message, ...).
"""

import re  # quoted-title extraction
from dataclasses import dataclass  # result record
from typing import Any, Dict, Optional  # type hints

import requests  # HTTP client
from loguru import logger  # console logging

DEFAULT_API_URL = "http://localhost:4444"  # default API base URL

# A movie title quoted in a chat reply, e.g. I'd suggest "Inception".
RE_QUOTED_TITLE = re.compile(r'"([^"\n]+)"')


@dataclass
class ApiResult:
	ok: bool  # True when the API answered 2xx
	data: Any = None  # decoded JSON body on success
	error: Optional[str] = None  # error message on failure
	details: Optional[str] = None  # optional extra detail from the error envelope
	status_code: Optional[int] = None  # HTTP status, None for transport failures


def extract_quoted_title(reply: str) -> Optional[str]:
	"""Return the last double-quoted phrase in a chat reply, if any."""
	matches = RE_QUOTED_TITLE.findall(reply or '')
	return matches[-1].strip() if matches else None


class ApiClient:
	"""Calls the CineCast API with a Firebase ID token."""

	def __init__(self, base_url: str = DEFAULT_API_URL, token: Optional[str] = None,
			session: Optional[requests.Session] = None, timeout: float = 30.0):
		self.base_url = base_url.rstrip('/')
		self.token = token
		self.session = session or requests.Session()
		self.timeout = timeout

	def _headers(self) -> Dict[str, str]:
		return {'Authorization': f"Bearer {self.token}"} if self.token else {}

	def _call(self, method: str, path: str, **kwargs) -> ApiResult:
		url = f"{self.base_url}{path}"
		try:
			resp = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
		except requests.RequestException as e:
			logger.warning(f"[Client] {method} {path} failed: {e}")
			return ApiResult(ok=False, error=f"API request failed: {e}")

		try:
			body = resp.json()
		except ValueError:
			body = None

		if 200 <= resp.status_code < 300:
			return ApiResult(ok=True, data=body, status_code=resp.status_code)
		envelope = body if isinstance(body, dict) else {}
		return ApiResult(
			ok=False,
			error=envelope.get('error') or f"HTTP {resp.status_code}",
			details=envelope.get('details'),
			status_code=resp.status_code,
		)

	def health(self) -> ApiResult:
		return self._call('GET', '/health')

	def chat(self, message: str) -> ApiResult:
		return self._call('POST', '/api/chat', json={'message': message})

	def chat_history(self, limit: int = 50) -> ApiResult:
		return self._call('GET', '/api/chat/history', params={'limit': limit})

	def search_movie(self, title: str) -> ApiResult:
		return self._call('GET', '/api/movie', params={'title': title})

	def recommend(self, city: Optional[str] = None, lat: Optional[float] = None,
			lon: Optional[float] = None, limit: Optional[int] = None) -> ApiResult:
		params = {k: v for k, v in {'city': city, 'lat': lat, 'lon': lon, 'limit': limit}.items() if v is not None}
		return self._call('GET', '/api/weather-movie-recommendation', params=params)

	def city_suggestions(self, query: str, country: Optional[str] = None, region: Optional[str] = None) -> ApiResult:
		params = {k: v for k, v in {'query': query, 'country': country, 'region': region}.items() if v}
		return self._call('GET', '/api/city-suggestions', params=params)

	def rate(self, movie_id: int, rating: float) -> ApiResult:
		return self._call('POST', '/api/ratings', json={'movieId': movie_id, 'rating': rating})
