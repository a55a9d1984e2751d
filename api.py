"""
FastAPI server exposing the CineCast API.
Endpoints:
- GET /: plain-text liveness message (public)
- GET /health: basic health check (public)
- POST /api/chat: chat with the language model
- GET /api/chat/history: recent shared chat transcript
- GET /api/movie?title=...: search the movie catalog
- GET /api/weather-movie-recommendation?city=...[&lat=..&lon=..]: weather-based picks
- GET /api/city-suggestions?query=...[&country=..][&region=..]: cached city lookup
- POST /api/ratings, GET /api/ratings/{movie_id}: movie ratings

Every /api route requires `Authorization: Bearer <Firebase ID token>`.
Errors are returned as {"error": ..., "details": ...}.

Run: uvicorn api:app --reload --port 4444
"""

# Import standard libraries for timing and typing
import time  # startup timing and message timestamps
from dataclasses import asdict  # dataclass -> dict for response models
from typing import Any, Dict, List, Optional, Union  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request  # FastAPI primitives
from fastapi.exceptions import RequestValidationError  # raised on bad params/bodies
from fastapi.middleware.cors import CORSMiddleware  # browser client access
from fastapi.responses import JSONResponse, PlainTextResponse  # explicit responses
from pydantic import BaseModel, ConfigDict  # schema definitions
from pydantic.alias_generators import to_camel  # camelCase JSON field names
from starlette.exceptions import HTTPException as StarletteHTTPException  # routing errors

# Import our internal modules
from cinecast.auth import bearer_token  # Authorization header parsing
from cinecast.chat_responder import SAFETY_APOLOGY  # reply used when the model refuses
from cinecast.config import Settings, configure_logging  # environment settings
from cinecast.errors import CineCastError, ContentSafetyError, NotFoundError  # error taxonomy
from cinecast.models import ChatMessage, Disambiguation  # domain records
from cinecast.services import Services, build_services  # component container

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger


# Base model: snake_case in Python, camelCase on the wire
class ApiModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeatherOut(ApiModel):
	condition_main: str  # e.g. "Rain"
	temperature_c: float  # degrees Celsius
	humidity_pct: float  # percent
	wind_speed: float  # m/s
	city_name: str  # provider spelling
	country_code: str  # ISO code
	description: str = ''  # e.g. "light rain"
	lat: Optional[float] = None  # lets the client re-query an exact city
	lon: Optional[float] = None


class MovieOut(ApiModel):
	id: int  # catalog id
	title: str  # display title
	overview: str  # synopsis
	poster_path: Optional[str] = None  # relative poster path
	release_date: str  # ISO date
	vote_average: float  # 0..10


class CitySuggestionOut(ApiModel):
	display_name: str
	lat: float
	lng: float
	timezone: str


class RecommendationOut(ApiModel):
	weather: WeatherOut  # conditions used
	movie_recommendations: List[MovieOut]  # truncated picks
	recommended_genre: str  # genre from the weather table


class DisambiguationOut(ApiModel):
	weather: List[WeatherOut]  # same-named city candidates


class ChatIn(ApiModel):
	message: str


class ChatOut(ApiModel):
	response: str  # model reply, or an apology when blocked
	blocked: bool = False  # True when the safety filter refused the message


class ChatMessageOut(ApiModel):
	text: str
	sender: str
	timestamp: int


class RatingIn(ApiModel):
	movie_id: int
	rating: float


class RatingOut(ApiModel):
	movie_id: int
	total_rating: float
	count: int
	user_rating: float
	average: float


def error_response(status_code: int, payload: Dict[str, Any]) -> JSONResponse:
	return JSONResponse(status_code=status_code, content=payload)


def get_services(request: Request) -> Services:
	"""Return the component container attached to the app."""
	services = request.app.state.services
	if services is None:  # startup has not finished
		raise CineCastError('Service not ready')
	return services


def require_user(
	authorization: Optional[str] = Header(default=None),
	services: Services = Depends(get_services),
) -> Dict[str, Any]:
	"""Verify the bearer token before any route logic (or upstream call) runs."""
	token = bearer_token(authorization)
	return services.verifier.verify(token)


def to_rating_out(rating) -> RatingOut:
	return RatingOut(**asdict(rating), average=round(rating.average, 2))


def now_ms() -> int:
	return int(time.time() * 1000)


def build_router() -> APIRouter:
	"""Routes under /api; all of them require a verified user."""
	router = APIRouter(prefix='/api', dependencies=[Depends(require_user)])

	# Handlers that call upstreams are plain `def`: FastAPI runs them in a thread
	# pool so a slow provider never stalls other requests.

	@router.post('/chat', response_model=ChatOut)
	def chat(body: ChatIn, services: Services = Depends(get_services)):
		"""Send one message to the language model."""
		logger.debug(f"[API] /chat message of {len(body.message)} chars")
		# the transcript only records complete exchanges, so the model is asked first
		try:
			reply = services.chat.respond(body.message)
			blocked = False
		except ContentSafetyError:
			logger.info("[API] /chat message refused by safety filter")
			reply, blocked = SAFETY_APOLOGY, True
		if services.chat_log is not None:
			services.chat_log.append(ChatMessage(text=body.message, sender='user', timestamp=now_ms()))
			services.chat_log.append(ChatMessage(text=reply, sender='bot', timestamp=now_ms()))
		return ChatOut(response=reply, blocked=blocked)

	@router.get('/chat/history', response_model=List[ChatMessageOut])
	def chat_history(
		limit: int = Query(50, ge=1, le=200, description="Number of most recent messages"),
		services: Services = Depends(get_services),
	):
		if services.chat_log is None:
			return []
		return [ChatMessageOut(**asdict(m)) for m in services.chat_log.recent(limit)]

	@router.get('/movie', response_model=List[MovieOut])
	def movie(
		title: str = Query(..., description="Movie title to search for"),
		services: Services = Depends(get_services),
	):
		start = time.time()
		movies = services.catalog.search_by_title(title)
		if not movies:
			raise NotFoundError('No movies found', details=f"No match for '{title.strip()}'")
		logger.info(f"[API] /movie served {len(movies)} results in {(time.time() - start) * 1000:.2f} ms")
		return [MovieOut(**asdict(m)) for m in movies]

	@router.get('/weather-movie-recommendation', response_model=Union[RecommendationOut, DisambiguationOut])
	def weather_movie_recommendation(
		city: Optional[str] = Query(None, description="City name"),
		lat: Optional[float] = Query(None, description="Latitude, used with lon to pick an exact city"),
		lon: Optional[float] = Query(None, description="Longitude"),
		limit: Optional[int] = Query(None, description="Maximum number of movies, clamped to 1-10 (default 5)"),
		services: Services = Depends(get_services),
	):
		result = services.recommender.recommend(city=city, lat=lat, lon=lon, limit=limit)
		if isinstance(result, Disambiguation):
			return DisambiguationOut(weather=[WeatherOut(**asdict(w)) for w in result.candidates])
		return RecommendationOut(
			weather=WeatherOut(**asdict(result.weather)),
			movie_recommendations=[MovieOut(**asdict(m)) for m in result.movies],
			recommended_genre=result.genre,
		)

	@router.get('/city-suggestions', response_model=List[CitySuggestionOut])
	def city_suggestions(
		query: str = Query(..., description="Partial city name"),
		country: Optional[str] = Query(None, description="ISO country code filter"),
		region: Optional[str] = Query(None, description="Region or state to narrow results"),
		services: Services = Depends(get_services),
	):
		suggestions = services.cities.lookup(query, country, region)
		return [CitySuggestionOut(**asdict(s)) for s in suggestions]

	@router.post('/ratings', response_model=RatingOut)
	def submit_rating(body: RatingIn, services: Services = Depends(get_services)):
		return to_rating_out(services.ratings.submit(body.movie_id, body.rating))

	@router.get('/ratings/{movie_id}', response_model=RatingOut)
	def get_rating(movie_id: int, services: Services = Depends(get_services)):
		rating = services.ratings.get(movie_id)
		if rating is None:
			raise NotFoundError('No ratings for this movie')
		return to_rating_out(rating)

	return router


def install_error_handlers(app: FastAPI) -> None:
	"""Normalise every failure to the {error, details?} envelope."""

	@app.exception_handler(CineCastError)
	async def handle_cinecast_error(request: Request, exc: CineCastError):
		if exc.status_code >= 500:
			logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message} ({exc.details})")
		else:
			logger.info(f"[API] {request.method} {request.url.path} -> {exc.status_code} {exc.message}")
		return error_response(exc.status_code, exc.to_payload())

	@app.exception_handler(RequestValidationError)
	async def handle_validation_error(request: Request, exc: RequestValidationError):
		first = exc.errors()[0] if exc.errors() else {}
		location = '.'.join(str(part) for part in first.get('loc', ()))
		details = f"{location}: {first.get('msg', 'invalid value')}" if location else None
		logger.info(f"[API] {request.method} {request.url.path} -> 400 {details}")
		payload = {'error': 'Invalid request parameters'}
		if details:
			payload['details'] = details
		return error_response(400, payload)

	@app.exception_handler(StarletteHTTPException)
	async def handle_http_error(request: Request, exc: StarletteHTTPException):
		return error_response(exc.status_code, {'error': str(exc.detail)})

	@app.exception_handler(Exception)
	async def handle_unexpected_error(request: Request, exc: Exception):
		logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
		return error_response(500, {'error': 'Internal server error'})


def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
	"""
	Build the FastAPI application.
	- services: pre-built components (tests); built from settings at startup when None
	- settings: defaults to Settings.from_env()
	"""
	settings = settings or Settings.from_env()
	app = FastAPI(title="CineCast API", version="1.0.0")  # web app
	app.state.services = services
	app.state.startup_seconds = 0.0

	app.add_middleware(
		CORSMiddleware,
		allow_origins=[settings.client_origin],
		allow_credentials=True,
		allow_methods=['*'],
		allow_headers=['*'],
	)
	install_error_handlers(app)

	# FastAPI startup hook to build the components once
	@app.on_event("startup")
	async def startup_event():
		"""Build services from settings unless they were injected."""
		if app.state.services is not None:
			return
		start = time.time()
		configure_logging(settings.log_level)
		logger.info("[API] Startup: building services...")
		app.state.services = build_services(settings)
		app.state.startup_seconds = time.time() - start
		logger.info(f"[API] Startup complete in {app.state.startup_seconds:.2f}s")

	@app.get('/', response_class=PlainTextResponse)
	async def root():
		return 'AI Movie Chatbot API is running'

	@app.get('/health')
	async def health():
		"""Return minimal health info for liveness and readiness checks."""
		return {
			"status": "ok",
			"services_ready": app.state.services is not None,
			"startup_seconds": round(app.state.startup_seconds, 2),
		}

	app.include_router(build_router())
	return app


app = create_app()


if __name__ == '__main__':
	import uvicorn  # ASGI server

	uvicorn.run(app, host='0.0.0.0', port=Settings.from_env().port)
