"""
Unit tests for the chat logs.
Run: pytest tests/test_chat_log.py
"""

from types import SimpleNamespace

import pytest
from firebase_admin import exceptions as firebase_exceptions

from cinecast import chat_log as chat_log_module
from cinecast.chat_log import FirebaseChatLog, InMemoryChatLog
from cinecast.errors import UpstreamUnavailableError
from cinecast.models import ChatMessage


def test_recent_keeps_insertion_order():
	log = InMemoryChatLog()
	for i in range(12):
		log.append(ChatMessage(text=f"m{i}", sender='user' if i % 2 == 0 else 'bot', timestamp=i))

	assert [m.text for m in log.recent(3)] == ['m9', 'm10', 'm11']
	assert len(log.recent(50)) == 12
	assert log.recent(0) == []


def test_keys_sort_by_insertion():
	log = InMemoryChatLog()
	keys = [log.append(ChatMessage('x', 'user', 0)) for _ in range(11)]
	assert keys == sorted(keys)


class FakeChatReference:
	"""Mimics push and order_by_key().limit_to_last(n).get() on firebase_admin.db.Reference."""

	def __init__(self, data, path, error=None):
		self.data = data
		self.path = path
		self.error = error
		self.last = None

	def push(self, value):
		if self.error is not None:
			raise self.error
		children = self.data.setdefault(self.path, {})
		key = f"-push{len(children):04d}"
		children[key] = value
		return SimpleNamespace(key=key)

	def order_by_key(self):
		return self

	def limit_to_last(self, n):
		self.last = n
		return self

	def get(self):
		if self.error is not None:
			raise self.error
		children = self.data.get(self.path)
		if not children:
			return None
		keys = sorted(children)[-self.last:]
		return {k: children[k] for k in reversed(keys)}  # dict order is not guaranteed by the server


def use_fake_reference(monkeypatch, data, error=None):
	monkeypatch.setattr(
		chat_log_module.firebase_db, 'reference',
		lambda path, app=None: FakeChatReference(data, path, error),
	)


def test_firebase_log_appends_and_reads_recent(monkeypatch):
	data = {}
	use_fake_reference(monkeypatch, data)
	log = FirebaseChatLog()

	keys = [log.append(ChatMessage(text=f"m{i}", sender='bot' if i % 2 else 'user', timestamp=i)) for i in range(5)]

	assert keys == sorted(keys)
	assert data['chats'][keys[0]] == {'text': 'm0', 'sender': 'user', 'timestamp': 0}
	assert log.recent(3) == [ChatMessage('m2', 'user', 2), ChatMessage('m3', 'bot', 3), ChatMessage('m4', 'user', 4)]
	assert [m.text for m in log.recent(50)] == ['m0', 'm1', 'm2', 'm3', 'm4']
	assert log.recent(0) == []


def test_firebase_log_empty_returns_nothing(monkeypatch):
	use_fake_reference(monkeypatch, {})
	assert FirebaseChatLog(root='other').recent() == []


def test_firebase_errors_become_upstream_errors(monkeypatch):
	use_fake_reference(monkeypatch, {}, error=firebase_exceptions.UnavailableError('down'))
	log = FirebaseChatLog()

	with pytest.raises(UpstreamUnavailableError, match='Failed to save chat message'):
		log.append(ChatMessage('hi', 'user', 0))
	with pytest.raises(UpstreamUnavailableError, match='Failed to read chat history'):
		log.recent()
