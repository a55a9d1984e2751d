"""
Check the service configuration before starting the API.

This script:
1) Loads settings from the environment and .env
2) Lists provider keys that are missing
3) Reports whether Firebase auth and the Realtime Database are configured

Usage:
    python -m scripts.check_config

Exits with status 1 when a required provider key is missing.
"""

import sys  # exit status

from loguru import logger  # console logging

from cinecast.config import Settings  # environment settings


def main() -> int:
	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("CineCast configuration check")
	logger.info("=" * 60)

	settings = Settings.from_env()  # read env + .env

	missing = settings.missing_keys()
	if missing:
		for name in missing:
			logger.error(f"[MISSING] {name}")
	else:
		logger.info("[OK] All provider keys present")

	if settings.firebase_credentials:
		logger.info("[OK] Firebase credentials configured (token verification enabled)")
	else:
		logger.warning("[WARN] FIREBASE_CREDENTIALS not set; /api routes will answer 401")
	if settings.firebase_enabled:
		logger.info("[OK] Realtime Database configured (ratings and chat log persisted)")
	else:
		logger.info("[INFO] No Realtime Database; ratings and chat log stay in memory")

	logger.info(f"Client origin: {settings.client_origin} | port: {settings.port} | timeout: {settings.http_timeout_seconds}s")
	logger.info("=" * 60)
	return 1 if missing else 0


if __name__ == '__main__':
	sys.exit(main())
