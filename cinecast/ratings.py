"""
Ratings module.
Accumulates per-movie ratings with an atomic read-modify-write:
count + 1, total + rating, user_rating overwritten by the latest submission.
"""

import threading  # lock for the in-process store
from typing import Any, Dict, Optional  # type hints

from firebase_admin import db as firebase_db  # Realtime Database
from firebase_admin import exceptions as firebase_exceptions  # SDK error base
from loguru import logger  # console logging

from .errors import CallerInputError, UpstreamUnavailableError
from .models import Rating

MIN_RATING = 1.0
MAX_RATING = 10.0


def validate_rating(movie_id: int, rating: float) -> None:
	if isinstance(movie_id, bool) or not isinstance(movie_id, int) or movie_id <= 0:
		raise CallerInputError('Invalid movie id', details='movieId must be a positive integer')
	if isinstance(rating, bool) or not isinstance(rating, (int, float)):
		raise CallerInputError('Invalid rating', details='rating must be a number')
	if not MIN_RATING <= rating <= MAX_RATING:
		raise CallerInputError('Invalid rating', details=f"rating must be within [{MIN_RATING:g}, {MAX_RATING:g}]")


def apply_rating(current: Optional[Dict[str, Any]], rating: float) -> Dict[str, Any]:
	"""Pure update step; `current` is the stored record or None for a new movie."""
	current = current or {}
	return {
		'totalRating': float(current.get('totalRating', 0.0)) + rating,
		'count': int(current.get('count', 0)) + 1,
		'userRating': rating,
	}


def to_rating(movie_id: int, record: Dict[str, Any]) -> Rating:
	return Rating(
		movie_id=movie_id,
		total_rating=float(record.get('totalRating', 0.0)),
		count=int(record.get('count', 0)),
		user_rating=float(record.get('userRating', 0.0)),
	)


class InMemoryRatingStore:
	"""Process-local store; a lock makes each read-modify-write atomic."""

	def __init__(self):
		self._records: Dict[int, Dict[str, Any]] = {}
		self._lock = threading.Lock()

	def submit(self, movie_id: int, rating: float) -> Rating:
		validate_rating(movie_id, rating)
		with self._lock:
			record = apply_rating(self._records.get(movie_id), float(rating))
			self._records[movie_id] = record
		logger.info(f"[Ratings] Movie {movie_id} rated {rating} (count={record['count']})")
		return to_rating(movie_id, record)

	def get(self, movie_id: int) -> Optional[Rating]:
		with self._lock:
			record = self._records.get(movie_id)
		return to_rating(movie_id, record) if record else None


class FirebaseRatingStore:
	"""
	Realtime Database store under /<root>/<movie_id>.
	Reference.transaction retries the update when another writer got there first,
	so concurrent raters never lose updates.
	"""

	def __init__(self, root: str = 'ratings', app=None):
		self.root = root
		self.app = app  # firebase_admin App; None means the default app

	def _ref(self, movie_id: int):
		return firebase_db.reference(f"{self.root}/{movie_id}", app=self.app)

	def submit(self, movie_id: int, rating: float) -> Rating:
		validate_rating(movie_id, rating)
		try:
			record = self._ref(movie_id).transaction(lambda current: apply_rating(current, float(rating)))
		except firebase_db.TransactionAbortedError as e:
			logger.error(f"[Ratings] Transaction for movie {movie_id} aborted after retries")
			raise UpstreamUnavailableError('Failed to save rating', details='Too many concurrent updates') from e
		except firebase_exceptions.FirebaseError as e:
			logger.error(f"[Ratings] Firebase error while rating movie {movie_id}: {e}")
			raise UpstreamUnavailableError('Failed to save rating', details=str(e)) from e
		logger.info(f"[Ratings] Movie {movie_id} rated {rating} (count={record['count']})")
		return to_rating(movie_id, record)

	def get(self, movie_id: int) -> Optional[Rating]:
		try:
			record = self._ref(movie_id).get()
		except firebase_exceptions.FirebaseError as e:
			logger.error(f"[Ratings] Firebase error while reading movie {movie_id}: {e}")
			raise UpstreamUnavailableError('Failed to read rating', details=str(e)) from e
		return to_rating(movie_id, record) if record else None
