import logging
from typing import Dict, List, Optional

import cloudscraper
import requests

from venue_availability import config
from venue_availability.models import RawTimeslotRecord, SportType, parse_payload_records

logger = logging.getLogger(__name__)


def build_url(sport_type: SportType) -> str:
    """Constructs the worker API URL for a sport type."""
    url = f"{config.API_BASE_URL.rstrip('/')}/api/sports/{sport_type.value}"
    logger.debug(f"Built URL: {url}")
    return url


def fetch_payload(sport_type: SportType) -> Optional[Dict]:
    """Fetches the raw JSON payload for a sport type, or None on failure."""
    url = build_url(sport_type)
    logger.info(f"Fetching {sport_type.value} data from {url}")

    try:
        scraper = cloudscraper.create_scraper()
        response = scraper.get(url, headers=config.COMMON_HEADERS, timeout=config.REQUEST_TIMEOUT)
        logger.debug(f"Response status: {response.status_code}")
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Error fetching {sport_type.value} data: {e}")
        return None
    except ValueError as e:
        logger.error(f"Invalid JSON in {sport_type.value} response: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"Unexpected JSON format for {sport_type.value}. Expected an object.")
        return None
    return data


def fetch_sport_venue_data(sport_type: SportType) -> Optional[List[RawTimeslotRecord]]:
    """Fetches and coerces one sport type's availability records.

    Returns None when the fetch fails so callers can keep their previous data.
    """
    data = fetch_payload(sport_type)
    if data is None:
        return None

    if "data" not in data:
        logger.error("Unexpected JSON format. 'data' key missing.")
        logger.debug(f"Response data: {data}")
        return None

    records = parse_payload_records(data["data"], sport_type)
    logger.info(f"Fetched {len(records)} {sport_type.value} records (upstream lastUpdated={data.get('lastUpdated')})")
    return records
