"""
Weather lookup module.
Wraps the OpenWeatherMap current-conditions API and turns its payloads into
WeatherSnapshot records.
"""

from typing import List, Optional  # type hints

import requests  # HTTP session type
from loguru import logger  # console logging
from pydantic import BaseModel, Field  # payload schemas

from .errors import CallerInputError, NotFoundError
from .models import WeatherSnapshot
from .upstream import get_json, parse_payload

DEFAULT_BASE_URL = 'https://api.openweathermap.org/data/2.5'
PROVIDER = 'OpenWeatherMap'


# Payload schemas: only the fields we read, everything else is ignored
class OwmCondition(BaseModel):
	main: str
	description: str = ''


class OwmMain(BaseModel):
	temp: float
	humidity: float = 0.0


class OwmWind(BaseModel):
	speed: float = 0.0


class OwmSys(BaseModel):
	country: str = ''


class OwmCoord(BaseModel):
	lat: float
	lon: float


class OwmCurrent(BaseModel):
	name: str = ''
	coord: Optional[OwmCoord] = None
	weather: List[OwmCondition] = Field(min_length=1)
	main: OwmMain
	wind: OwmWind = Field(default_factory=OwmWind)
	sys: OwmSys = Field(default_factory=OwmSys)


class OwmFind(BaseModel):
	count: int
	items: List[OwmCurrent] = Field(default_factory=list, alias='list')  # provider calls it "list"


def to_snapshot(current: OwmCurrent) -> WeatherSnapshot:
	"""Convert a validated provider record into a WeatherSnapshot."""
	condition = current.weather[0]  # provider lists the primary condition first
	return WeatherSnapshot(
		condition_main=condition.main,
		temperature_c=current.main.temp,
		humidity_pct=current.main.humidity,
		wind_speed=current.wind.speed,
		city_name=current.name,
		country_code=current.sys.country,
		description=condition.description,
		lat=current.coord.lat if current.coord else None,
		lon=current.coord.lon if current.coord else None,
	)


def validate_coordinates(lat: float, lon: float) -> None:
	if not -90.0 <= lat <= 90.0:
		raise CallerInputError('Invalid latitude', details=f"lat must be within [-90, 90], got {lat}")
	if not -180.0 <= lon <= 180.0:
		raise CallerInputError('Invalid longitude', details=f"lon must be within [-180, 180], got {lon}")


class WeatherClient:
	"""
	Resolves a city name, or a coordinate pair, to current conditions.
	Temperatures are requested in metric units.
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

	def _get(self, path: str, **params):
		params.update({'appid': self.api_key, 'units': 'metric'})
		return get_json(
			self.session,
			f"{self.base_url}/{path}",
			params=params,
			timeout=self.timeout,
			provider=PROVIDER,
			failure_message='Failed to fetch weather data',
		)

	def find_by_city(self, city: str) -> List[WeatherSnapshot]:
		"""
		Return every city the provider matches for `city`.
		More than one entry means the name is ambiguous.
		"""
		if not city or not city.strip():
			raise CallerInputError('City is required')
		city = city.strip()
		logger.info(f"[Weather] Fetching weather for city '{city}'")
		found = parse_payload(OwmFind, self._get('find', q=city), PROVIDER)
		if found.count == 0 or not found.items:
			logger.info(f"[Weather] No cities found for '{city}'")
			raise NotFoundError('No cities found', details=f"No weather data for '{city}'")
		snapshots = [to_snapshot(item) for item in found.items]
		logger.debug(f"[Weather] '{city}' matched {len(snapshots)} cities")
		return snapshots

	def by_coordinates(self, lat: float, lon: float) -> WeatherSnapshot:
		"""Return conditions at a coordinate pair; always a single result."""
		validate_coordinates(lat, lon)
		logger.info(f"[Weather] Fetching weather for coordinates lat={lat}, lon={lon}")
		current = parse_payload(OwmCurrent, self._get('weather', lat=lat, lon=lon), PROVIDER)
		return to_snapshot(current)
