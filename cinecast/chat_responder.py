"""
Chat responder module.
Sends a single user message to a Gemini model and returns the reply text.
No conversation state is kept here; each call is independent.
"""

from typing import Any, Optional  # type hints

import google.generativeai as genai  # Gemini SDK
from google.api_core import exceptions as google_exceptions  # transport errors raised by the SDK
from google.generativeai.types import BlockedPromptException, StopCandidateException
from loguru import logger  # console logging

from .errors import (
	CallerInputError,
	ContentSafetyError,
	UpstreamAuthError,
	UpstreamRateLimitError,
	UpstreamSchemaError,
	UpstreamUnavailableError,
)

# Shown to users instead of a reply when the model refuses a message
SAFETY_APOLOGY = (
	"Sorry, I can't help with that message. "
	"Try asking about a movie, an actor or a genre instead."
)


def _is_safety_stop(response: Any) -> bool:
	"""True when the prompt was blocked or the first candidate stopped for safety."""
	feedback = getattr(response, 'prompt_feedback', None)
	if feedback is not None and getattr(feedback, 'block_reason', None):
		return True
	candidates = getattr(response, 'candidates', None) or []
	if candidates:
		reason = getattr(candidates[0], 'finish_reason', None)
		if getattr(reason, 'name', reason) == 'SAFETY':
			return True
	return False


class ChatResponder:
	"""
	Turns a free-text message into a free-text reply.
	`model` is anything exposing generate_content(prompt), normally a
	genai.GenerativeModel.
	"""

	def __init__(self, model: Any):
		self.model = model

	@classmethod
	def from_api_key(cls, api_key: Optional[str], model_name: str = 'gemini-pro') -> 'ChatResponder':
		genai.configure(api_key=api_key)
		logger.info(f"[Chat] Gemini model '{model_name}' configured")
		return cls(genai.GenerativeModel(model_name))

	def respond(self, message: str) -> str:
		if not message or not message.strip():
			raise CallerInputError('Message is required')

		try:
			response = self.model.generate_content(message)
		except (BlockedPromptException, StopCandidateException) as e:
			logger.warning("[Chat] Gemini blocked the message")
			raise ContentSafetyError(details=str(e)) from e
		except google_exceptions.ResourceExhausted as e:
			logger.error("[Chat] Gemini rate limit exceeded")
			raise UpstreamRateLimitError(details=str(e)) from e
		except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
			logger.error(f"[Chat] Gemini rejected the API key: {e}")
			raise UpstreamAuthError(details=str(e)) from e
		except google_exceptions.InvalidArgument as e:
			if 'api key' in str(e).lower():
				logger.error(f"[Chat] Gemini rejected the API key: {e}")
				raise UpstreamAuthError(details=str(e)) from e
			logger.error(f"[Chat] Gemini API error: {e}")
			raise UpstreamUnavailableError('Failed to generate chat response', details=str(e)) from e
		except google_exceptions.GoogleAPIError as e:
			logger.error(f"[Chat] Gemini API error: {e}")
			raise UpstreamUnavailableError('Failed to generate chat response', details=str(e)) from e

		if _is_safety_stop(response):
			logger.warning("[Chat] Gemini response stopped by safety filter")
			raise ContentSafetyError()

		try:
			text = response.text  # raises ValueError when the candidate has no parts
		except ValueError as e:
			raise UpstreamSchemaError(details='Gemini response had no text') from e
		if not text or not text.strip():
			raise UpstreamSchemaError(details='Gemini response had no text')
		logger.debug(f"[Chat] Reply of {len(text)} chars")
		return text.strip()
