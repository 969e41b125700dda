import logging
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Tuple, Union

from venue_availability import districts
from venue_availability.aggregator import aggregate
from venue_availability.models import (
    DateSection,
    DateSections,
    DistrictHeader,
    DistrictSection,
    DistrictSections,
    FacilityGrid,
    FacilityLocation,
    RawTimeslotRecord,
    TimeSlot,
    Venue,
)

logger = logging.getLogger(__name__)

DAY_START_HOUR = 6
DAY_END_HOUR = 18

SectionItem = Union[DateSection, FacilityGrid]
DistrictItem = Union[DistrictHeader, Venue]


def build_date_sections(records: Iterable[RawTimeslotRecord], language: str = "en") -> DateSections:
    """Builds the date-ordered schedule for one venue's records.

    Dates are sorted as ISO strings. A date whose available-slot count is zero
    gets no section at all. Sticky header indices are the positions of each
    section header in the flat `[header, grid, ..., header, grid, ...]` list.
    """
    locations_by_date: Dict[str, List[FacilityLocation]] = defaultdict(list)
    for venue in aggregate(records, language):
        for location in venue.facility_locations:
            locations_by_date[location.date].append(location)

    sections: List[DateSection] = []
    sticky_header_indices: List[int] = []
    flat_index = 0

    for date in sorted(locations_by_date):
        grids = _build_grids(date, locations_by_date[date])
        available_slots_count = sum(grid.available_slots for grid in grids)
        if available_slots_count == 0:
            continue

        sticky_header_indices.append(flat_index)
        sections.append(
            DateSection(date=date, available_slots_count=available_slots_count, facility_grids=grids)
        )
        flat_index += 1 + len(grids)

    logger.debug(f"Built {len(sections)} date sections")
    return DateSections(sections=sections, sticky_header_indices=sticky_header_indices)


def _build_grids(date: str, locations: List[FacilityLocation]) -> List[FacilityGrid]:
    # Several venues may share a facility name when records span venues; merge them.
    slots_by_facility: Dict[str, list] = defaultdict(list)
    for location in locations:
        slots_by_facility[location.name].extend(location.time_slots)

    grids = []
    for name in sorted(slots_by_facility):
        time_slots = sorted(slots_by_facility[name], key=lambda s: (s.start_time, s.id))
        available = [slot for slot in time_slots if slot.available_courts > 0]
        if not available:
            continue
        grids.append(
            FacilityGrid(
                id=f"grid-{date}-{name}",
                date=date,
                facility_location=name,
                time_slots=available,
                available_slots=len(available),
            )
        )
    return grids


def flatten_sections(date_sections: DateSections) -> List[SectionItem]:
    """Returns the flat header/grid list that `sticky_header_indices` points into."""
    items: List[SectionItem] = []
    for section in date_sections.sections:
        items.append(section)
        items.extend(section.facility_grids)
    return items


def build_district_sections(
    records: Iterable[RawTimeslotRecord], date: str, language: str = "en"
) -> DistrictSections:
    """Builds one date's venue listing grouped by district.

    Only venues with at least one available slot on `date` are listed,
    sorted by name. Districts are ordered by area code, then name; a district
    left with no venues gets no header. `total_time_slots` counts every
    session on the date, fully booked ones included.
    """
    day_records = [r for r in records if r.available_date == date]
    sessions_per_venue = Counter(r.venue_id for r in day_records)

    venues_by_district: Dict[str, List[Venue]] = defaultdict(list)
    for venue in aggregate(day_records, language):
        if venue.time_slots:
            venues_by_district[venue.district].append(venue)

    headers = []
    for district_name, venues in venues_by_district.items():
        venues.sort(key=lambda v: (v.name, v.id))
        canonical = districts.district_by_code(venues[0].district_code)
        headers.append(
            DistrictHeader(
                id=f"header-{district_name}",
                district_name=district_name,
                area_code=canonical.area_code if canonical else districts.UNKNOWN_CODE,
                total_venues=len(venues),
                total_time_slots=sum(sessions_per_venue[v.id] for v in venues),
                total_available_time_slots=sum(len(v.time_slots) for v in venues),
            )
        )
    headers.sort(key=lambda h: (h.area_code, h.district_name))

    sections: List[DistrictSection] = []
    sticky_header_indices: List[int] = []
    flat_index = 0
    for header in headers:
        venues = venues_by_district[header.district_name]
        sticky_header_indices.append(flat_index)
        sections.append(DistrictSection(header=header, venues=venues))
        flat_index += 1 + len(venues)

    logger.debug(f"Built {len(sections)} district sections for {date}")
    return DistrictSections(
        date=date,
        sections=sections,
        sticky_header_indices=sticky_header_indices,
        total_venues=sum(h.total_venues for h in headers),
        total_time_slots=sum(h.total_time_slots for h in headers),
        total_available_time_slots=sum(h.total_available_time_slots for h in headers),
    )


def flatten_district_sections(district_sections: DistrictSections) -> List[DistrictItem]:
    items: List[DistrictItem] = []
    for section in district_sections.sections:
        items.append(section.header)
        items.extend(section.venues)
    return items


def is_day_time(time_string: str) -> bool:
    """True for slots starting between 06:00 and 17:59. Unparseable times count as day."""
    hour_str, _, _ = (time_string or "").partition(":")
    try:
        hour = int(hour_str)
    except ValueError:
        return True
    if hour < 0 or hour > 23:
        return True
    return DAY_START_HOUR <= hour < DAY_END_HOUR


def split_day_night(time_slots: Iterable[TimeSlot]) -> Tuple[List[TimeSlot], List[TimeSlot]]:
    day: List[TimeSlot] = []
    night: List[TimeSlot] = []
    for slot in time_slots:
        (day if is_day_time(slot.start_time) else night).append(slot)
    return day, night
