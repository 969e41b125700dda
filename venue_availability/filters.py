import logging
from typing import Iterable, List, Optional

from venue_availability import config, districts
from venue_availability.models import FilterCriteria, FilterResult, RawTimeslotRecord, TimeRange, Venue, format_time_string

logger = logging.getLogger(__name__)


def is_search_active(search_query: str, min_query_length: int) -> bool:
    return len((search_query or "").strip()) >= min_query_length


def has_active_filters(criteria: FilterCriteria, min_query_length: Optional[int] = None) -> bool:
    if min_query_length is None:
        min_query_length = config.MIN_QUERY_LENGTH
    return (
        is_search_active(criteria.search_query, min_query_length)
        or criteria.selected_district_code is not None
        or criteria.time_range.is_set
    )


def _matches_query(fields: Iterable[str], query: str) -> bool:
    return any(query in (field or "").lower() for field in fields)


def record_matches_search(record: RawTimeslotRecord, query: str) -> bool:
    """Case-insensitive substring match over the record's searchable fields, both languages."""
    fields = [
        record.venue_en,
        record.venue_tc,
        record.facility_type_en,
        record.facility_type_tc,
        record.facility_location_en,
        record.facility_location_tc,
        record.district_en,
        record.district_tc,
        record.address_en,
        record.address_tc,
    ]
    return _matches_query(fields, query.lower())


def slot_within_range(start_time: str, end_time: str, time_range: TimeRange) -> bool:
    if time_range.start is not None and format_time_string(start_time) < time_range.start:
        return False
    if time_range.end is not None and format_time_string(end_time) > time_range.end:
        return False
    return True


def apply_filters(
    records: Iterable[RawTimeslotRecord],
    criteria: FilterCriteria,
    min_query_length: Optional[int] = None,
) -> FilterResult:
    """Filters raw records by sport type, search text, canonical district and time range.

    When no filter is active the input comes back unchanged and
    `filtered_count` is None.
    """
    if min_query_length is None:
        min_query_length = config.MIN_QUERY_LENGTH

    filtered: List[RawTimeslotRecord] = list(records)

    if criteria.selected_sport_type is not None:
        filtered = [
            r for r in filtered if r.sport_type is None or r.sport_type == criteria.selected_sport_type
        ]

    active = has_active_filters(criteria, min_query_length)
    if not active:
        return FilterResult(filtered=filtered, has_active_filters=False, filtered_count=None)

    if is_search_active(criteria.search_query, min_query_length):
        query = criteria.search_query.strip()
        filtered = [r for r in filtered if record_matches_search(r, query)]

    if criteria.selected_district_code is not None:
        filtered = [
            r for r in filtered if districts.district_code_for(r.district_en) == criteria.selected_district_code
        ]

    if criteria.time_range.is_set:
        filtered = [
            r
            for r in filtered
            if slot_within_range(r.session_start_time, r.session_end_time, criteria.time_range)
        ]

    logger.debug(f"Filters kept {len(filtered)} records")
    return FilterResult(filtered=filtered, has_active_filters=True, filtered_count=len(filtered))


def venue_matches_search(venue: Venue, query: str) -> bool:
    fields = [venue.name, venue.facility_type, venue.district, venue.address]
    fields.extend(location.name for location in venue.facility_locations)
    return _matches_query(fields, query.lower())


def filter_venues(
    venues: Iterable[Venue],
    criteria: FilterCriteria,
    min_query_length: Optional[int] = None,
) -> FilterResult:
    """Same predicates as `apply_filters`, over aggregated venues.

    A venue passes the time range when at least one of its slots fits it.
    """
    if min_query_length is None:
        min_query_length = config.MIN_QUERY_LENGTH

    filtered: List[Venue] = list(venues)
    if not has_active_filters(criteria, min_query_length):
        return FilterResult(filtered=filtered, has_active_filters=False, filtered_count=None)

    if is_search_active(criteria.search_query, min_query_length):
        query = criteria.search_query.strip()
        filtered = [v for v in filtered if venue_matches_search(v, query)]

    if criteria.selected_district_code is not None:
        filtered = [v for v in filtered if v.district_code == criteria.selected_district_code]

    if criteria.time_range.is_set:
        filtered = [
            v
            for v in filtered
            if any(slot_within_range(s.start_time, s.end_time, criteria.time_range) for s in v.time_slots)
        ]

    return FilterResult(filtered=filtered, has_active_filters=True, filtered_count=len(filtered))
