"""Shared MongoClient for the process.

The client is created lazily on first use and cached while it answers pings.
A failed connection is not permanent: after RETRY_INTERVAL_SECONDS the next
caller tries again, so the API recovers once MongoDB comes back without a
restart. Callers get None while the database is unreachable and turn that
into a 503.
"""

import os
import logging
import time

from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Driver-level logs are noisy at INFO; keep only warnings and above
logging.getLogger('pymongo').setLevel(logging.WARNING)

DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'accounts')

# Between failed attempts, callers fail fast instead of each waiting out
# serverSelectionTimeoutMS
RETRY_INTERVAL_SECONDS = 5.0

CLIENT_OPTIONS = {
    'serverSelectionTimeoutMS': 5000,
    'connectTimeoutMS': 5000,
    'socketTimeoutMS': 30000,
    'maxPoolSize': 10,
    'minPoolSize': 0,
    'retryWrites': True,
    'retryReads': True,
    # Stored timestamps are UTC; read them back as aware datetimes
    'tz_aware': True,
}

_client: MongoClient | None = None
_last_failure_at: float | None = None
_failing = False


def reset_client():
    """Forget the cached client and any failure state (used by tests)."""
    global _client, _last_failure_at, _failing
    _client = None
    _last_failure_at = None
    _failing = False


def _record_failure(message: str) -> None:
    global _last_failure_at, _failing
    # Log the first failure of an outage loudly, the retries quietly
    if _failing:
        logger.debug(f"[MONGODB] {message}")
    else:
        logger.error(f"[MONGODB] {message}")
    _failing = True
    _last_failure_at = time.monotonic()


def get_mongodb_client() -> MongoClient | None:
    """Return a connected MongoClient, or None if MongoDB is unreachable.

    A cached client is reused while it answers pings. Otherwise a new client
    is opened, unless the last attempt failed less than RETRY_INTERVAL_SECONDS
    ago.
    """
    global _client, _failing

    if _client is not None:
        try:
            _client.admin.command('ping')
            return _client
        except PyMongoError:
            logger.warning("[MONGODB] Cached client failed ping, reconnecting")
            _client = None

    if _last_failure_at is not None and time.monotonic() - _last_failure_at < RETRY_INTERVAL_SECONDS:
        return None

    mongo_url = os.getenv('MONGO_URL')
    if not mongo_url:
        _record_failure("MONGO_URL not configured")
        return None

    try:
        client = MongoClient(mongo_url, **CLIENT_OPTIONS)
        client.admin.command('ping')
    except PyMongoError as e:
        _record_failure(f"Connection failed: {str(e)[:200]}")
        return None

    if _failing:
        logger.info(f"[MONGODB] Reconnected to {DATABASE_NAME}")
    else:
        logger.info(f"[MONGODB] Connected to {DATABASE_NAME}")
    _client = client
    _failing = False
    return client
