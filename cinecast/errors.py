"""
Error taxonomy shared by the upstream clients and the API layer.
Every error carries the HTTP status it maps to and renders to the
{error, details?} envelope returned by the API.
"""

from typing import Any, Dict, Optional


class CineCastError(Exception):
	"""Base class for every error the service reports to callers."""

	status_code = 500
	default_message = 'Internal server error'

	def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
		self.message = message or self.default_message
		self.details = details
		super().__init__(self.message)

	def to_payload(self) -> Dict[str, Any]:
		payload: Dict[str, Any] = {'error': self.message}
		if self.details:
			payload['details'] = self.details
		return payload


class CallerInputError(CineCastError):
	"""Missing or malformed request parameter."""
	status_code = 400
	default_message = 'Invalid request'


class AuthError(CineCastError):
	status_code = 401
	default_message = 'Invalid token'


class NotFoundError(CineCastError):
	status_code = 404
	default_message = 'Not found'


class UpstreamAuthError(CineCastError):
	"""The provider rejected our API key. Needs a configuration fix, not a retry."""
	default_message = 'Invalid API key'


class UpstreamRateLimitError(CineCastError):
	"""The provider is throttling us. Callers may back off and retry."""
	default_message = 'API rate limit exceeded'


class UpstreamUnavailableError(CineCastError):
	default_message = 'Upstream service unavailable'


class UpstreamSchemaError(CineCastError):
	"""The provider answered with a payload we could not parse."""
	default_message = 'Unexpected response from upstream service'


class ContentSafetyError(CineCastError):
	"""The language model refused the message on safety grounds."""
	default_message = 'Message was blocked by the content safety filter'
