"""
Service wiring.
Builds every component once from Settings and hands them to the API as a
single container, so tests can swap any piece for a fake.
"""

import json  # inline service-account JSON
from dataclasses import dataclass  # container record
from typing import Any, Optional  # type hints

import firebase_admin  # Firebase app bootstrap
import requests  # shared HTTP session
from firebase_admin import credentials  # service account loading
from loguru import logger  # console logging

from .auth import FirebaseTokenVerifier
from .chat_log import FirebaseChatLog, InMemoryChatLog
from .chat_responder import ChatResponder
from .city_suggestions import CitySuggestionCache, OpenCageGeocoder
from .config import Settings
from .movie_catalog import MovieCatalog
from .ratings import FirebaseRatingStore, InMemoryRatingStore
from .recommendation import RecommendationAggregator
from .weather import WeatherClient


@dataclass
class Services:
	verifier: Any  # exposes verify(token) -> claims
	chat: ChatResponder
	catalog: MovieCatalog
	weather: WeatherClient
	cities: CitySuggestionCache
	recommender: RecommendationAggregator
	ratings: Any  # InMemoryRatingStore or FirebaseRatingStore
	chat_log: Optional[Any] = None  # None disables transcript logging


def init_firebase(settings: Settings):
	"""Initialise the default Firebase app once; returns None when not configured."""
	if not settings.firebase_credentials:
		logger.warning("[Services] FIREBASE_CREDENTIALS not set; every authenticated route will answer 401")
		return None
	try:
		return firebase_admin.get_app()  # already initialised (e.g. reloads)
	except ValueError:
		pass
	raw = settings.firebase_credentials.strip()
	cert = credentials.Certificate(json.loads(raw) if raw.startswith('{') else raw)
	options = {'databaseURL': settings.firebase_database_url} if settings.firebase_database_url else None
	app = firebase_admin.initialize_app(cert, options)
	logger.info(f"[Services] Firebase initialised (database={'yes' if options else 'no'})")
	return app


def build_services(settings: Settings, session: Optional[requests.Session] = None) -> Services:
	"""Create all components from settings, sharing one HTTP session."""
	missing = settings.missing_keys()
	if missing:
		logger.warning(f"[Services] Missing provider keys: {', '.join(missing)}")

	session = session or requests.Session()
	timeout = settings.http_timeout_seconds
	firebase_app = init_firebase(settings)

	weather = WeatherClient(settings.openweathermap_api_key, session=session, timeout=timeout)
	catalog = MovieCatalog(settings.moviedb_api_key, session=session, timeout=timeout)
	geocoder = OpenCageGeocoder(settings.opencage_api_key, session=session, timeout=timeout)

	if firebase_app is not None and settings.firebase_database_url:
		ratings = FirebaseRatingStore(app=firebase_app)
		chat_log = FirebaseChatLog(app=firebase_app)
	else:
		logger.info("[Services] No Firebase database configured; ratings and chat log kept in memory")
		ratings = InMemoryRatingStore()
		chat_log = InMemoryChatLog()

	return Services(
		verifier=FirebaseTokenVerifier(app=firebase_app),
		chat=ChatResponder.from_api_key(settings.google_api_key, settings.gemini_model),
		catalog=catalog,
		weather=weather,
		cities=CitySuggestionCache(geocoder, ttl_ms=settings.city_cache_ttl_ms),
		recommender=RecommendationAggregator(weather, catalog),
		ratings=ratings,
		chat_log=chat_log,
	)
