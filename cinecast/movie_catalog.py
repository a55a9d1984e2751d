"""
Movie catalog module.
Wraps The Movie Database (TMDb) v3 API: free-text title search and
genre-filtered discovery sorted by popularity.
"""

from typing import Any, Dict, List, Optional  # type hints

import requests  # HTTP session type
from loguru import logger  # console logging
from pydantic import BaseModel, Field  # payload schemas

from .errors import CallerInputError, UpstreamAuthError
from .models import MovieSummary
from .upstream import get_json, parse_payload

DEFAULT_BASE_URL = 'https://api.themoviedb.org/3'
PROVIDER = 'TMDb'

# TMDb status codes that mean the API key is wrong or expired
INVALID_KEY_STATUS_CODES = {7, 401}

# TMDb genre ids for the genres the recommendation table can produce
GENRE_IDS: Dict[str, int] = {
	'Action': 28,
	'Comedy': 35,
	'Drama': 18,
	'Fantasy': 14,
	'Romance': 10749,
}


class TmdbMovie(BaseModel):
	id: int
	title: str
	overview: Optional[str] = None
	poster_path: Optional[str] = None
	release_date: Optional[str] = None
	vote_average: float = Field(default=0.0, ge=0.0, le=10.0)


class TmdbPage(BaseModel):
	page: int = 1
	results: List[TmdbMovie] = Field(default_factory=list)


def to_summary(movie: TmdbMovie) -> MovieSummary:
	return MovieSummary(
		id=movie.id,
		title=movie.title,
		overview=movie.overview or '',
		poster_path=movie.poster_path,
		release_date=movie.release_date or '',
		vote_average=movie.vote_average,
	)


class MovieCatalog:
	"""
	Thin TMDb client returning MovieSummary lists.
	Key problems surface as UpstreamAuthError("Invalid API key") so callers can
	tell a configuration fix apart from a transient failure.
	"""

	def __init__(
		self,
		api_key: Optional[str],
		session: Optional[requests.Session] = None,
		base_url: str = DEFAULT_BASE_URL,
		timeout: float = 10.0,
	):
		self.api_key = api_key
		self.session = session or requests.Session()
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout

	def _fetch(self, path: str, params: Dict[str, Any], failure_message: str) -> List[MovieSummary]:
		params = dict(params, api_key=self.api_key)
		data = get_json(
			self.session,
			f"{self.base_url}{path}",
			params=params,
			timeout=self.timeout,
			provider=PROVIDER,
			failure_message=failure_message,
		)
		# TMDb sometimes reports a bad key inside a body rather than via HTTP status
		if isinstance(data, dict) and data.get('status_code') in INVALID_KEY_STATUS_CODES:
			logger.error(f"[Catalog] TMDb reported an invalid API key (status_code={data.get('status_code')})")
			raise UpstreamAuthError(details=data.get('status_message'))
		page = parse_payload(TmdbPage, data, PROVIDER)
		return [to_summary(m) for m in page.results]

	def search_by_title(self, text: str) -> List[MovieSummary]:
		"""Search movies whose title matches free text."""
		if not text or not text.strip():
			raise CallerInputError('Title is required')
		logger.info(f"[Catalog] Searching movies for '{text.strip()}'")
		movies = self._fetch('/search/movie', {'query': text.strip()}, 'Failed to search for movie')
		logger.debug(f"[Catalog] Search returned {len(movies)} movies")
		return movies

	def discover_by_genre(self, genre_id: int) -> List[MovieSummary]:
		"""Discover movies of one genre, most popular first."""
		logger.info(f"[Catalog] Discovering movies for genre id {genre_id}")
		movies = self._fetch(
			'/discover/movie',
			{'with_genres': genre_id, 'sort_by': 'popularity.desc'},
			'Failed to fetch movie recommendations',
		)
		logger.debug(f"[Catalog] Discover returned {len(movies)} movies")
		return movies
