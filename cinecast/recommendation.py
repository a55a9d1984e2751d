"""
Recommendation module.
Picks a movie genre from the current weather of a city and asks the catalog
for the most popular movies of that genre.

Pipeline:
1) Weather by coordinates (one result) or by city name (possibly several)
2) Several same-named cities -> hand the candidates back for disambiguation
3) Weather condition -> genre through a fixed table (Comedy when unmapped)
4) Discover movies of that genre by popularity and truncate
"""

from typing import Dict, Optional, Union  # type hints

from loguru import logger  # console logging

from .errors import CallerInputError
from .models import Disambiguation, Recommendation
from .movie_catalog import GENRE_IDS, MovieCatalog
from .weather import WeatherClient

# Weather condition label -> movie genre
GENRE_TABLE: Dict[str, str] = {
	'Clear': 'Comedy',
	'Clouds': 'Drama',
	'Rain': 'Romance',
	'Snow': 'Fantasy',
	'Thunderstorm': 'Action',
}
DEFAULT_GENRE = 'Comedy'


def genre_for_condition(condition: Optional[str]) -> str:
	"""Map a weather condition to a genre; unmapped conditions fall back to Comedy."""
	return GENRE_TABLE.get(condition or '', DEFAULT_GENRE)


class RecommendationAggregator:
	"""
	Combines WeatherClient and MovieCatalog into one recommendation.
	Either the whole Recommendation is returned or an error is raised;
	a weather result is never returned without its movies.
	"""

	def __init__(
		self,
		weather: WeatherClient,
		catalog: MovieCatalog,
		default_limit: int = 5,
		max_limit: int = 10,
	):
		self.weather = weather
		self.catalog = catalog
		self.default_limit = default_limit
		self.max_limit = max_limit

	def _clamp_limit(self, limit: Optional[int]) -> int:
		if limit is None:
			return self.default_limit
		return max(1, min(self.max_limit, limit))

	def recommend(
		self,
		city: Optional[str] = None,
		lat: Optional[float] = None,
		lon: Optional[float] = None,
		limit: Optional[int] = None,
	) -> Union[Recommendation, Disambiguation]:
		has_city = bool(city and city.strip())
		if (lat is None) != (lon is None):
			raise CallerInputError('Both lat and lon are required', details='Coordinates must be given as a pair')
		has_coords = lat is not None and lon is not None
		if not has_city and not has_coords:
			raise CallerInputError('City is required', details='Pass a city name or lat/lon coordinates')

		# 1) Weather: coordinates win because they are unambiguous
		if has_coords:
			snapshot = self.weather.by_coordinates(lat, lon)
		else:
			matches = self.weather.find_by_city(city)
			if len(matches) > 1:
				logger.info(f"[Recommend] '{city}' is ambiguous ({len(matches)} matches); asking caller to choose")
				return Disambiguation(candidates=matches)
			snapshot = matches[0]

		# 2) Genre from the fixed table
		genre = genre_for_condition(snapshot.condition_main)
		logger.info(f"[Recommend] {snapshot.city_name}: {snapshot.condition_main} -> {genre}")

		# 3) Catalog discovery; failures propagate and nothing partial is returned
		movies = self.catalog.discover_by_genre(GENRE_IDS[genre])

		# 4) Truncate
		top = movies[:self._clamp_limit(limit)]
		logger.debug(f"[Recommend] Returning {len(top)} of {len(movies)} {genre} movies")
		return Recommendation(weather=snapshot, movies=top, genre=genre)
