"""
Chat log module.
Optional shared transcript of chat messages, ordered by insertion.
"""

import threading
from dataclasses import asdict
from typing import Dict, List

from firebase_admin import db as firebase_db  # Realtime Database
from firebase_admin import exceptions as firebase_exceptions
from loguru import logger

from .errors import UpstreamUnavailableError
from .models import ChatMessage


def to_message(record: Dict) -> ChatMessage:
	return ChatMessage(
		text=str(record.get('text', '')),
		sender=str(record.get('sender', 'user')),
		timestamp=int(record.get('timestamp', 0)),
	)


class InMemoryChatLog:
	def __init__(self):
		self._messages: Dict[str, ChatMessage] = {}
		self._seq = 0
		self._lock = threading.Lock()

	def append(self, message: ChatMessage) -> str:
		with self._lock:
			self._seq += 1
			key = f"{self._seq:012d}"  # zero padding keeps lexical order == insertion order
			self._messages[key] = message
		return key

	def recent(self, limit: int = 50) -> List[ChatMessage]:
		with self._lock:
			keys = sorted(self._messages)[-limit:] if limit > 0 else []
			return [self._messages[k] for k in keys]


class FirebaseChatLog:
	"""Messages live under /<root>/<push id>; push ids sort in insertion order."""

	def __init__(self, root: str = 'chats', app=None):
		self.root = root
		self.app = app

	def _ref(self):
		return firebase_db.reference(self.root, app=self.app)

	def append(self, message: ChatMessage) -> str:
		try:
			return self._ref().push(asdict(message)).key
		except firebase_exceptions.FirebaseError as e:
			logger.error(f"[ChatLog] Failed to append message: {e}")
			raise UpstreamUnavailableError('Failed to save chat message', details=str(e)) from e

	def recent(self, limit: int = 50) -> List[ChatMessage]:
		if limit <= 0:
			return []
		try:
			records = self._ref().order_by_key().limit_to_last(limit).get() or {}
		except firebase_exceptions.FirebaseError as e:
			logger.error(f"[ChatLog] Failed to read messages: {e}")
			raise UpstreamUnavailableError('Failed to read chat history', details=str(e)) from e
		return [to_message(records[k]) for k in sorted(records)]
