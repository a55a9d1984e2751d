"""
Authentication module.
Extracts bearer tokens and verifies Firebase ID tokens.
"""

from typing import Any, Dict, Optional  # type hints

from firebase_admin import auth as firebase_auth  # ID token verification
from loguru import logger  # console logging

from .errors import AuthError, UpstreamUnavailableError


def bearer_token(header: Optional[str]) -> str:
	"""Return the token from an `Authorization: Bearer <token>` header value."""
	if not header:
		raise AuthError('No token provided')
	scheme, _, token = header.strip().partition(' ')
	if scheme.lower() != 'bearer' or not token.strip():
		raise AuthError('No token provided', details='Expected "Authorization: Bearer <token>"')
	return token.strip()


class FirebaseTokenVerifier:
	"""Verifies ID tokens issued by Firebase Authentication."""

	def __init__(self, app=None, check_revoked: bool = False):
		self.app = app  # firebase_admin App; None means the default app
		self.check_revoked = check_revoked

	def verify(self, token: str) -> Dict[str, Any]:
		"""Return the decoded token claims or raise AuthError."""
		try:
			return firebase_auth.verify_id_token(token, app=self.app, check_revoked=self.check_revoked)
		except firebase_auth.CertificateFetchError as e:
			logger.error(f"[Auth] Could not fetch Firebase public keys: {e}")
			raise UpstreamUnavailableError('Failed to verify token', details='Identity provider unreachable') from e
		except firebase_auth.ExpiredIdTokenError as e:
			raise AuthError('Invalid token', details='Token expired') from e
		except (firebase_auth.InvalidIdTokenError, ValueError) as e:
			logger.debug(f"[Auth] Token rejected: {e}")
			raise AuthError('Invalid token') from e
