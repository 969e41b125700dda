import pytest

from venue_availability import aggregator
from venue_availability.models import Coordinates


@pytest.mark.parametrize(
    "value, expected",
    [("3", 3), ("0", 0), ("", 0), (None, 0), ("abc", 0), ("-2", 0), (" 4 ", 4), ("5 courts", 5)],
)
def test_parse_available_courts(value, expected):
    assert aggregator.parse_available_courts(value) == expected


@pytest.mark.parametrize(
    "courts, level",
    [(0, "none"), (1, "low"), (2, "low"), (3, "medium"), (5, "medium"), (6, "high")],
)
def test_availability_level(courts, level):
    assert aggregator.availability_level(courts) == level


def test_format_time_string():
    assert aggregator.format_time_string("9:00") == "09:00"
    assert aggregator.format_time_string("18:30:00") == "18:30"
    assert aggregator.format_time_string("noon") == "noon"


def test_zero_court_record_contributes_nothing(record):
    """Two records for the same slot window, courts "3" and "0"."""
    records = [
        record(venue_en="Kowloon Park-Badminton Court", session_start_time="10:00", available_courts="3"),
        record(venue_en="Kowloon Park-Badminton Court", session_start_time="11:00", available_courts="0"),
    ]

    venues = aggregator.aggregate(records)

    assert len(venues) == 1
    venue = venues[0]
    assert len(venue.time_slots) == 1
    slot = venue.time_slots[0]
    assert slot.available_courts == 3
    assert slot.availability_level == "medium"
    assert venue.total_available_courts == 3
    assert venue.max_courts_per_slot == 3
    assert venue.facility_locations[0].total_available_courts == 3


def test_venue_id_uses_english_district_and_venue(record):
    venues = aggregator.aggregate([record()], language="zh-HK")
    assert venues[0].id == "Yau Tsim Mong-Kowloon Park Sports Centre"
    assert venues[0].name == "九龍公園體育館"
    assert venues[0].district == "油尖旺區"
    assert venues[0].district_code == "YTM"


def test_venue_id_is_stable_when_display_fields_change(record):
    before = aggregator.aggregate([record(address_en="Old address", phone="1111")])
    after = aggregator.aggregate([record(address_en="New address", phone="2222", available_courts="7")])
    assert before[0].id == after[0].id


def test_grouping_by_date_and_facility(record):
    records = [
        record(available_date="2025-01-11", facility_location_en="Hall B", session_start_time="12:00"),
        record(available_date="2025-01-10", facility_location_en="Hall B", session_start_time="09:00"),
        record(available_date="2025-01-10", facility_location_en="Hall A", session_start_time="15:00"),
        record(available_date="2025-01-10", facility_location_en="Hall A", session_start_time="08:00"),
    ]

    venue = aggregator.aggregate(records)[0]

    assert [(loc.date, loc.name) for loc in venue.facility_locations] == [
        ("2025-01-10", "Hall A"),
        ("2025-01-10", "Hall B"),
        ("2025-01-11", "Hall B"),
    ]
    assert [s.start_time for s in venue.facility_locations[0].time_slots] == ["08:00", "15:00"]
    assert venue.total_available_courts == 12


def test_facility_and_venue_aggregates(record):
    records = [
        record(facility_location_en="Hall A", session_start_time="08:00", available_courts="2"),
        record(facility_location_en="Hall A", session_start_time="09:00", available_courts="6"),
        record(facility_location_en="Hall B", session_start_time="08:00", available_courts="4"),
    ]

    venue = aggregator.aggregate(records)[0]

    hall_a, hall_b = venue.facility_locations
    assert hall_a.total_available_courts == 8
    assert hall_a.max_courts_per_slot == 6
    assert hall_b.total_available_courts == 4
    assert venue.total_available_courts == 12
    assert venue.max_courts_per_slot == 6
    assert [s.availability_level for s in hall_a.time_slots] == ["low", "high"]


def test_fully_booked_venue_is_still_emitted(record):
    venues = aggregator.aggregate([record(available_courts="0"), record(available_courts="n/a")])

    assert len(venues) == 1
    assert venues[0].facility_locations == []
    assert venues[0].time_slots == []
    assert venues[0].total_available_courts == 0
    assert venues[0].max_courts_per_slot == 0


def test_slot_ids_unique_within_venue_date(record):
    records = [
        record(session_start_time="10:00"),
        record(session_start_time="11:00"),
        record(session_start_time="10:00", available_courts="5"),
    ]

    venue = aggregator.aggregate(records)[0]

    ids = [s.id for s in venue.time_slots]
    assert len(ids) == len(set(ids))
    assert venue.time_slots[0].available_courts == 5


def test_venues_are_ordered_by_id(record):
    records = [
        record(district_en="Sha Tin", venue_en="Yuen Wo Road Sports Centre"),
        record(district_en="Eastern", venue_en="Island East Sports Centre"),
    ]
    ids = [v.id for v in aggregator.aggregate(records)]
    assert ids == ["Eastern-Island East Sports Centre", "Sha Tin-Yuen Wo Road Sports Centre"]


def test_aggregate_is_deterministic(record):
    records = [
        record(available_date="2025-01-11", session_start_time="12:00", available_courts="4"),
        record(district_en="Sha Tin", venue_en="Yuen Wo Road Sports Centre", available_courts="1"),
        record(available_date="2025-01-10", session_start_time="09:00", available_courts="abc"),
    ]
    assert aggregator.aggregate(records) == aggregator.aggregate(records)
    assert aggregator.aggregate(list(reversed(records))) == aggregator.aggregate(records)


def test_invalid_coordinates_are_blanked():
    assert aggregator.validate_coordinates("22.3", "114.1") == Coordinates(latitude="22.3", longitude="114.1")
    assert aggregator.validate_coordinates("", "114.1") == Coordinates()
    assert aggregator.validate_coordinates("north", "east") == Coordinates()


def test_empty_input():
    assert aggregator.aggregate([]) == []


def test_venue_map(record):
    venues = aggregator.aggregate([record()])
    mapping = aggregator.venue_map(venues)
    assert list(mapping) == [venues[0].id]
