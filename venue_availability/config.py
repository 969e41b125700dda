import logging
import os
from typing import Dict

logger = logging.getLogger(__name__)

# --- File Paths ---
DATA_DIR = os.environ.get("VENUE_DATA_DIR", "data")
BOOKMARKS_FILE = os.path.join(DATA_DIR, "bookmarks.json")
PREFERENCES_FILE = os.path.join(DATA_DIR, "preferences.json")

# --- URLs & API ---
API_BASE_URL = os.environ.get("WORKER_API_BASE_URL", "https://openpandata-worker.openpandata.workers.dev")
REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "10"))

COMMON_HEADERS: Dict[str, str] = {
    "User-Agent": os.environ.get(
        "PROVIDER_USER_AGENT",
        (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/129.0.0.0 Safari/537.36"
        ),
    ),
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": os.environ.get("PROVIDER_ACCEPT_LANGUAGE", "en-HK,en;q=0.9,zh-HK;q=0.8"),
    "Connection": "keep-alive",
}

# --- Freshness ---
DEFAULT_TTL_MINUTES = int(os.environ.get("DATA_CACHE_TTL_MINUTES", "30"))

# --- Matching & filtering ---
DISTRICT_MIN_CONFIDENCE = float(os.environ.get("DISTRICT_MIN_CONFIDENCE", "0.6"))
MIN_QUERY_LENGTH = int(os.environ.get("MIN_QUERY_LENGTH", "2"))

if DEFAULT_TTL_MINUTES <= 0:
    logger.warning(f"DATA_CACHE_TTL_MINUTES={DEFAULT_TTL_MINUTES} makes every fetch stale immediately.")
