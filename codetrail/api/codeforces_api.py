# api/codeforces_api.py

import logging
import time

import requests
from requests.exceptions import RequestException, ConnectionError, Timeout

from codetrail.core.config import settings
from codetrail.core.exceptions import PlatformAPIError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 2


def _get(method, params, attempts=1):
    """
    Call one Codeforces API method and return its `result`. Timeouts are
    retried up to `attempts` times; everything else fails immediately.
    """
    url = f"{settings.CODEFORCES_API_URL}/{method}"

    for attempt in range(attempts):
        try:
            response = requests.get(url, params=params, timeout=settings.HTTP_TIMEOUT)
            # Codeforces answers unknown handles with HTTP 400 and a JSON comment
            if response.status_code == 400:
                data = response.json()
            else:
                response.raise_for_status()
                data = response.json()
        except Timeout:
            logger.warning("⏱️  Codeforces API timeout on %s (attempt %d/%d)", method, attempt + 1, attempts)
            if attempt + 1 < attempts:
                time.sleep(RETRY_DELAY)
            continue
        except ConnectionError as e:
            raise PlatformAPIError("codeforces", f"cannot connect: {e}") from e
        except RequestException as e:
            raise PlatformAPIError("codeforces", str(e)) from e
        except ValueError as e:
            raise PlatformAPIError("codeforces", "invalid JSON response") from e

        if data.get("status") != "OK":
            raise PlatformAPIError("codeforces", data.get("comment", "Unknown error"))
        return data.get("result")

    raise PlatformAPIError("codeforces", f"{method} failed after {attempts} attempts")


def fetch_cf_user_info(handle):
    """
    The Codeforces user object, or None when the handle does not exist.
    Transport failures raise PlatformAPIError.
    """
    try:
        result = _get("user.info", {"handles": handle})
    except PlatformAPIError as e:
        if "not found" in str(e).lower():
            return None
        raise
    return result[0] if result else None


def fetch_cf_submissions(handle, count=None):
    """Most recent submissions first, up to `count`."""
    count = count or settings.CODEFORCES_SYNC_LIMIT
    try:
        submissions = _get(
            "user.status",
            {"handle": handle, "from": 1, "count": count},
            attempts=MAX_ATTEMPTS,
        )
    except PlatformAPIError as e:
        logger.error("❌ Could not fetch Codeforces submissions for %s: %s", handle, e)
        return []

    logger.info("✓ Fetched %d Codeforces submissions for %s", len(submissions or []), handle)
    return submissions or []


def fetch_cf_contests(handle):
    """Rating history, oldest contest first."""
    try:
        return _get("user.rating", {"handle": handle}) or []
    except PlatformAPIError as e:
        logger.error("❌ Could not fetch Codeforces rating history for %s: %s", handle, e)
        return []
