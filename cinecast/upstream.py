"""
Outbound HTTP helper shared by the provider clients.
Issues a bounded GET, translates transport and status failures into the
error taxonomy, and validates payloads against pydantic schemas.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import requests  # HTTP client
from loguru import logger  # console logging
from pydantic import BaseModel, ValidationError  # payload schemas

from .errors import (
	NotFoundError,
	UpstreamAuthError,
	UpstreamRateLimitError,
	UpstreamSchemaError,
	UpstreamUnavailableError,
)

SchemaT = TypeVar('SchemaT', bound=BaseModel)


def get_json(
	session: requests.Session,
	url: str,
	params: Dict[str, Any],
	timeout: float,
	provider: str,
	failure_message: Optional[str] = None,
) -> Dict[str, Any]:
	"""
	GET `url` and return the decoded JSON body.
	- provider: short name used in logs and error details (never the key)
	- failure_message: message for generic failures; defaults to the error's own
	"""
	try:
		resp = session.get(url, params=params, timeout=timeout)
	except requests.Timeout as e:
		logger.warning(f"[Upstream] {provider} timed out after {timeout}s")
		raise UpstreamUnavailableError(failure_message, details=f"{provider} timed out") from e
	except requests.RequestException as e:
		logger.error(f"[Upstream] {provider} request failed: {e}")
		raise UpstreamUnavailableError(failure_message, details=f"{provider} unreachable") from e

	status = resp.status_code
	if status in (401, 403):
		logger.error(f"[Upstream] {provider} rejected the API key (HTTP {status})")
		raise UpstreamAuthError(details=f"{provider} returned HTTP {status}")
	if status == 429:
		logger.warning(f"[Upstream] {provider} is rate limiting requests")
		raise UpstreamRateLimitError(details=f"{provider} returned HTTP 429")
	if status == 404:
		raise NotFoundError(details=f"{provider} returned HTTP 404")
	if status >= 400:
		logger.error(f"[Upstream] {provider} failed with HTTP {status}")
		raise UpstreamUnavailableError(failure_message, details=f"{provider} returned HTTP {status}")

	try:
		return resp.json()
	except ValueError as e:
		raise UpstreamSchemaError(details=f"{provider} returned a non-JSON body") from e


def parse_payload(schema: Type[SchemaT], data: Any, provider: str) -> SchemaT:
	"""Validate a decoded payload, failing fast with UpstreamSchemaError."""
	try:
		return schema.model_validate(data)
	except ValidationError as e:
		logger.error(f"[Upstream] {provider} payload did not match {schema.__name__}: {e.error_count()} errors")
		raise UpstreamSchemaError(details=f"{provider} payload did not match {schema.__name__}") from e
