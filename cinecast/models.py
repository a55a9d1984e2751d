"""
Data models for CineCast.
Defines the records passed between the upstream clients, the recommendation
pipeline and the API layer.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import List, Optional  # lists and optional values


@dataclass(frozen=True)
class WeatherSnapshot:
	"""
	Current conditions for one city, as reported by the weather provider.
	Built fresh per request and never persisted.
	"""
	condition_main: str  # weather group, e.g. "Clear", "Rain", "Snow"
	temperature_c: float  # temperature in degrees Celsius
	humidity_pct: float  # relative humidity 0..100
	wind_speed: float  # wind speed in m/s
	city_name: str  # city name as the provider spells it
	country_code: str  # ISO country code, may be empty
	description: str = ''  # finer-grained text, e.g. "light rain"
	lat: Optional[float] = None  # latitude, lets clients disambiguate same-named cities
	lon: Optional[float] = None  # longitude


@dataclass(frozen=True)
class MovieSummary:
	"""
	A movie as returned by the catalog provider.
	"""
	id: int  # catalog id
	title: str  # display title
	overview: str  # synopsis, may be empty
	poster_path: Optional[str]  # relative poster path or None
	release_date: str  # ISO date string, may be empty for unreleased titles
	vote_average: float  # average vote on a 0-10 scale


@dataclass(frozen=True)
class CitySuggestion:
	display_name: str  # formatted place name
	lat: float  # latitude
	lng: float  # longitude
	timezone: str  # IANA timezone name, empty when unknown


@dataclass
class ChatMessage:
	text: str  # message body
	sender: str  # "user" or "bot"
	timestamp: int  # epoch milliseconds


@dataclass
class Rating:
	"""
	Aggregated rating for a movie.
	user_rating holds the last submitted rating, whoever submitted it.
	"""
	movie_id: int  # catalog id of the rated movie
	total_rating: float  # sum of all submitted ratings
	count: int  # number of submitted ratings
	user_rating: float  # last submitted rating

	@property
	def average(self) -> float:
		"""Mean rating, 0.0 when nothing was submitted yet."""
		if not self.count:
			return 0.0
		return self.total_rating / self.count


@dataclass
class Recommendation:
	weather: WeatherSnapshot  # conditions the genre was derived from
	movies: List[MovieSummary]  # truncated catalog results
	genre: str  # genre picked from the weather condition


@dataclass
class Disambiguation:
	"""Several cities share the requested name; the caller has to pick one."""
	candidates: List[WeatherSnapshot] = field(default_factory=list)
