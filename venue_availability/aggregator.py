import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from venue_availability import districts
from venue_availability.models import (
    AvailabilityLevel,
    Coordinates,
    FacilityLocation,
    RawTimeslotRecord,
    TimeSlot,
    Venue,
    format_time_string,
)

logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 5
MEDIUM_THRESHOLD = 2

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_available_courts(value: Optional[str]) -> int:
    """Parses the upstream court count. Anything unparseable counts as zero."""
    if value is None:
        return 0
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return 0
    return max(0, int(match.group(1)))


def availability_level(available_courts: int) -> AvailabilityLevel:
    if available_courts > HIGH_THRESHOLD:
        return "high"
    if available_courts > MEDIUM_THRESHOLD:
        return "medium"
    if available_courts > 0:
        return "low"
    return "none"


def validate_coordinates(latitude: str, longitude: str) -> Coordinates:
    lat = (latitude or "").strip()
    lng = (longitude or "").strip()
    if not lat or not lng:
        return Coordinates()
    try:
        float(lat)
        float(lng)
    except ValueError:
        logger.debug(f"Ignoring non-numeric coordinates ({lat}, {lng})")
        return Coordinates()
    return Coordinates(latitude=lat, longitude=lng)


def build_time_slot(record: RawTimeslotRecord) -> Optional[TimeSlot]:
    """Builds a slot for one record, or None when it has no available courts."""
    courts = parse_available_courts(record.available_courts)
    if courts <= 0:
        return None

    start_time = format_time_string(record.session_start_time)
    return TimeSlot(
        id=f"{record.venue_id}-{record.available_date}-{start_time}",
        date=record.available_date,
        start_time=start_time,
        end_time=format_time_string(record.session_end_time),
        available_courts=courts,
        availability_level=availability_level(courts),
    )


def build_facility_location(
    name: str, date: str, records: List[RawTimeslotRecord]
) -> Optional[FacilityLocation]:
    slots_by_id: Dict[str, TimeSlot] = {}
    for record in records:
        slot = build_time_slot(record)
        if slot is None:
            continue
        # Same venue/date/start in one facility is a duplicate row; keep the larger count.
        existing = slots_by_id.get(slot.id)
        if existing is None or slot.available_courts > existing.available_courts:
            slots_by_id[slot.id] = slot

    if not slots_by_id:
        return None

    time_slots = sorted(slots_by_id.values(), key=lambda s: (s.start_time, s.end_time))
    return FacilityLocation(
        name=name,
        date=date,
        time_slots=time_slots,
        total_available_courts=sum(s.available_courts for s in time_slots),
        max_courts_per_slot=max(s.available_courts for s in time_slots),
    )


def build_venue(venue_id: str, records: List[RawTimeslotRecord], language: str = "en") -> Venue:
    first = records[0]

    by_date: Dict[str, Dict[str, List[RawTimeslotRecord]]] = defaultdict(lambda: defaultdict(list))
    for record in records:
        by_date[record.available_date][record.localized("facility_location", language)].append(record)

    facility_locations: List[FacilityLocation] = []
    for date in sorted(by_date):
        for name in sorted(by_date[date]):
            location = build_facility_location(name, date, by_date[date][name])
            if location is not None:
                facility_locations.append(location)

    time_slots = [slot for location in facility_locations for slot in location.time_slots]

    return Venue(
        id=venue_id,
        name=first.localized("venue", language),
        address=first.localized("address", language),
        phone=first.phone,
        district=first.localized("district", language),
        district_code=districts.district_code_for(first.district_en),
        coordinates=validate_coordinates(first.latitude, first.longitude),
        facility_type=first.localized("facility_type", language),
        facility_locations=facility_locations,
        total_available_courts=sum(location.total_available_courts for location in facility_locations),
        max_courts_per_slot=max((location.max_courts_per_slot for location in facility_locations), default=0),
        time_slots=time_slots,
    )


def group_by_venue(records: Iterable[RawTimeslotRecord]) -> Dict[str, List[RawTimeslotRecord]]:
    grouped: Dict[str, List[RawTimeslotRecord]] = defaultdict(list)
    for record in records:
        grouped[record.venue_id].append(record)
    return grouped


def aggregate(records: Iterable[RawTimeslotRecord], language: str = "en") -> List[Venue]:
    """Groups flat availability records into venues ordered by venue id.

    Every venue present in the input is returned, even when none of its slots
    has a free court; such a venue simply has no facility locations and zero
    totals. Venue totals cover every date present in `records`.
    """
    grouped = group_by_venue(records)
    venues = [build_venue(venue_id, grouped[venue_id], language) for venue_id in sorted(grouped)]
    logger.debug(f"Aggregated {sum(len(r) for r in grouped.values())} records into {len(venues)} venues")
    return venues


def venue_map(venues: Iterable[Venue]) -> Dict[str, Venue]:
    return {venue.id: venue for venue in venues}
