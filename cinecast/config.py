"""
Configuration module.
Reads provider keys and service settings from the environment (and an
optional .env file) into a single immutable Settings object.
"""

import os  # environment access
import sys  # stderr sink for loguru
from dataclasses import dataclass  # immutable settings record
from typing import List, Optional  # type hints

from dotenv import load_dotenv  # read .env files into os.environ
from loguru import logger  # console logging


# Provider keys the service cannot work without
REQUIRED_KEYS = (
	'GOOGLE_API_KEY',
	'MOVIEDB_API_KEY',
	'OPENWEATHERMAP_API_KEY',
	'OPENCAGE_API_KEY',
)


@dataclass(frozen=True)
class Settings:
	google_api_key: Optional[str] = None  # Gemini chat model key
	gemini_model: str = 'gemini-pro'  # Gemini model name
	moviedb_api_key: Optional[str] = None  # TMDb key
	openweathermap_api_key: Optional[str] = None  # OpenWeatherMap key
	opencage_api_key: Optional[str] = None  # OpenCage geocoding key
	firebase_credentials: Optional[str] = None  # service account file path or inline JSON
	firebase_database_url: Optional[str] = None  # Realtime Database URL
	client_origin: str = 'http://localhost:3000'  # allowed CORS origin
	port: int = 4444  # port used by `python api.py`
	http_timeout_seconds: float = 10.0  # bound on every outbound call
	city_cache_ttl_ms: int = 3_600_000  # city suggestion time-to-live
	log_level: str = 'INFO'  # loguru level

	@classmethod
	def from_env(cls, env_file: Optional[str] = None) -> 'Settings':
		"""Load .env (if present) and build Settings from os.environ."""
		load_dotenv(env_file)  # no-op when the file is missing
		env = os.environ
		return cls(
			google_api_key=env.get('GOOGLE_API_KEY') or None,
			gemini_model=env.get('GEMINI_MODEL', cls.gemini_model),
			moviedb_api_key=env.get('MOVIEDB_API_KEY') or None,
			openweathermap_api_key=env.get('OPENWEATHERMAP_API_KEY') or None,
			opencage_api_key=env.get('OPENCAGE_API_KEY') or None,
			firebase_credentials=env.get('FIREBASE_CREDENTIALS') or None,
			firebase_database_url=env.get('FIREBASE_DATABASE_URL') or None,
			client_origin=env.get('CLIENT_ORIGIN', cls.client_origin),
			port=int(env.get('PORT', cls.port)),
			http_timeout_seconds=float(env.get('HTTP_TIMEOUT_SECONDS', cls.http_timeout_seconds)),
			city_cache_ttl_ms=int(env.get('CITY_CACHE_TTL_MS', cls.city_cache_ttl_ms)),
			log_level=env.get('LOG_LEVEL', cls.log_level).upper(),
		)

	@property
	def firebase_enabled(self) -> bool:
		"""True when both credentials and a database URL are configured."""
		return bool(self.firebase_credentials and self.firebase_database_url)

	def missing_keys(self) -> List[str]:
		"""Return the names of required provider keys that are not set."""
		values = {
			'GOOGLE_API_KEY': self.google_api_key,
			'MOVIEDB_API_KEY': self.moviedb_api_key,
			'OPENWEATHERMAP_API_KEY': self.openweathermap_api_key,
			'OPENCAGE_API_KEY': self.opencage_api_key,
		}
		return [name for name in REQUIRED_KEYS if not values[name]]


def configure_logging(level: str = 'INFO') -> None:
	"""Replace loguru's default sink with one at the configured level."""
	logger.remove()  # drop the default DEBUG sink
	logger.add(sys.stderr, level=level)
	logger.debug(f"[Config] Logging configured at level {level}")
