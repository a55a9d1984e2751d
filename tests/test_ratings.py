"""
Unit tests for rating aggregation (in-memory and Firebase-backed stores).
Run: pytest tests/test_ratings.py
"""

import threading

import pytest

from cinecast import ratings as ratings_module
from cinecast.errors import CallerInputError
from cinecast.ratings import FirebaseRatingStore, InMemoryRatingStore, apply_rating


def test_ratings_accumulate_and_last_wins():
	store = InMemoryRatingStore()
	store.submit(550, 3)
	rating = store.submit(550, 5)

	assert rating.count == 2
	assert rating.total_rating == 8
	assert rating.user_rating == 5
	assert rating.average == 4.0
	assert store.get(550) == rating


def test_movies_are_independent():
	store = InMemoryRatingStore()
	store.submit(1, 4)
	store.submit(2, 9)
	assert store.get(1).count == 1
	assert store.get(2).total_rating == 9
	assert store.get(3) is None


@pytest.mark.parametrize('movie_id, rating', [(0, 5), (-3, 5), (10, 0), (10, 11), (10, True), ('10', 5)])
def test_invalid_input(movie_id, rating):
	with pytest.raises(CallerInputError):
		InMemoryRatingStore().submit(movie_id, rating)


def test_no_lost_updates_under_concurrency():
	store = InMemoryRatingStore()

	def rate():
		for _ in range(100):
			store.submit(7, 2)

	threads = [threading.Thread(target=rate) for _ in range(8)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	rating = store.get(7)
	assert rating.count == 800
	assert rating.total_rating == 1600


def test_apply_rating_on_empty_record():
	assert apply_rating(None, 6.0) == {'totalRating': 6.0, 'count': 1, 'userRating': 6.0}


class FakeReference:
	"""Mimics firebase_admin.db.Reference.transaction on a shared dict."""

	def __init__(self, data, path):
		self.data = data
		self.path = path

	def transaction(self, update):
		new_value = update(self.data.get(self.path))
		self.data[self.path] = new_value
		return new_value

	def get(self):
		return self.data.get(self.path)


def test_firebase_store_uses_transaction(monkeypatch):
	data = {}
	monkeypatch.setattr(ratings_module.firebase_db, 'reference', lambda path, app=None: FakeReference(data, path))
	store = FirebaseRatingStore()

	store.submit(550, 3)
	rating = store.submit(550, 5)

	assert data['ratings/550'] == {'totalRating': 8.0, 'count': 2, 'userRating': 5.0}
	assert (rating.count, rating.total_rating, rating.user_rating) == (2, 8.0, 5.0)
	assert store.get(550) == rating
	assert store.get(551) is None
