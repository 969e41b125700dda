from venue_availability import sections
from venue_availability.aggregator import aggregate
from venue_availability.models import DateSection, DistrictHeader, FacilityGrid, Venue


def test_sections_sorted_by_date(record):
    records = [
        record(available_date="2025-01-12"),
        record(available_date="2025-01-10"),
        record(available_date="2025-01-11"),
    ]

    result = sections.build_date_sections(records)

    assert [s.date for s in result.sections] == ["2025-01-10", "2025-01-11", "2025-01-12"]


def test_zero_availability_date_is_omitted(record):
    records = [
        record(available_date="2025-01-10", available_courts="2"),
        record(available_date="2025-01-11", available_courts="0"),
        record(available_date="2025-01-11", session_start_time="12:00", available_courts="broken"),
        record(available_date="2025-01-12", available_courts="1"),
    ]

    result = sections.build_date_sections(records)

    assert [s.date for s in result.sections] == ["2025-01-10", "2025-01-12"]
    assert all(s.available_slots_count > 0 for s in result.sections)


def test_available_slots_count_and_grids(record):
    records = [
        record(facility_location_en="Hall B", session_start_time="14:00", available_courts="1"),
        record(facility_location_en="Hall A", session_start_time="16:00", available_courts="2"),
        record(facility_location_en="Hall A", session_start_time="09:00", available_courts="4"),
        record(facility_location_en="Hall A", session_start_time="11:00", available_courts="0"),
    ]

    result = sections.build_date_sections(records)

    assert len(result.sections) == 1
    section = result.sections[0]
    assert section.available_slots_count == 3
    assert [g.facility_location for g in section.facility_grids] == ["Hall A", "Hall B"]
    hall_a = section.facility_grids[0]
    assert [s.start_time for s in hall_a.time_slots] == ["09:00", "16:00"]
    assert hall_a.available_slots == 2
    assert hall_a.id == "grid-2025-01-10-Hall A"


def test_sticky_header_indices_point_at_headers(record):
    records = [
        record(available_date="2025-01-10", facility_location_en="Hall A"),
        record(available_date="2025-01-10", facility_location_en="Hall B"),
        record(available_date="2025-01-11", facility_location_en="Hall A"),
        record(available_date="2025-01-12", facility_location_en="Hall A", available_courts="0"),
        record(available_date="2025-01-13", facility_location_en="Hall C"),
    ]

    result = sections.build_date_sections(records)
    flat = sections.flatten_sections(result)

    assert result.sticky_header_indices == [0, 3, 5]
    assert all(isinstance(flat[i], DateSection) for i in result.sticky_header_indices)
    assert sum(isinstance(item, FacilityGrid) for item in flat) == 4


def test_no_records():
    result = sections.build_date_sections([])
    assert result.sections == []
    assert result.sticky_header_indices == []


def test_all_dates_fully_booked(record):
    result = sections.build_date_sections([record(available_courts="0"), record(available_date="2025-01-11", available_courts="")])
    assert result.sections == []
    assert result.sticky_header_indices == []


def _district_records(record):
    return [
        record(),
        record(session_start_time="11:00", session_end_time="12:00", available_courts="0"),
        record(district_en="Sha Tin", venue_en="Yuen Wo Road Sports Centre", available_courts="2"),
        record(district_en="Sha Tin", venue_en="Ma On Shan Sports Centre", available_courts="1"),
        record(district_en="Sha Tin", venue_en="Yuen Wo Road Sports Centre", available_date="2025-01-11"),
        record(district_en="Wong Tai Sin", venue_en="Morse Park Sports Centre", available_courts="1"),
        record(district_en="Eastern", venue_en="Island East Sports Centre", available_courts="0"),
        record(district_en="Atlantis", venue_en="Lost Court"),
    ]


def test_district_sections_grouped_and_ordered(record):
    result = sections.build_district_sections(_district_records(record), "2025-01-10")

    assert [s.header.district_name for s in result.sections] == ["Wong Tai Sin", "Yau Tsim Mong", "Sha Tin", "Atlantis"]
    assert [s.header.area_code for s in result.sections] == ["KLN", "KLN", "NT", "UNKNOWN"]
    assert [v.name for v in result.sections[2].venues] == ["Ma On Shan Sports Centre", "Yuen Wo Road Sports Centre"]


def test_district_sections_skip_fully_booked_venues(record):
    result = sections.build_district_sections(_district_records(record), "2025-01-10")

    names = [v.name for s in result.sections for v in s.venues]
    assert "Island East Sports Centre" not in names
    assert "Eastern" not in [s.header.district_name for s in result.sections]


def test_district_header_totals(record):
    result = sections.build_district_sections(_district_records(record), "2025-01-10")
    yau_tsim_mong = result.sections[1].header

    assert yau_tsim_mong.id == "header-Yau Tsim Mong"
    assert yau_tsim_mong.total_venues == 1
    assert yau_tsim_mong.total_time_slots == 2
    assert yau_tsim_mong.total_available_time_slots == 1
    assert result.total_venues == 5
    assert result.total_time_slots == 6
    assert result.total_available_time_slots == 5


def test_district_sticky_header_indices(record):
    result = sections.build_district_sections(_district_records(record), "2025-01-10")
    flat = sections.flatten_district_sections(result)

    assert result.sticky_header_indices == [0, 2, 4, 7]
    assert all(isinstance(flat[i], DistrictHeader) for i in result.sticky_header_indices)
    assert sum(isinstance(item, Venue) for item in flat) == 5


def test_district_sections_for_date_without_data(record):
    result = sections.build_district_sections(_district_records(record), "2025-02-01")
    assert result.sections == []
    assert result.sticky_header_indices == []
    assert result.total_venues == 0


def test_is_day_time():
    assert sections.is_day_time("06:00") is True
    assert sections.is_day_time("17:59") is True
    assert sections.is_day_time("18:00") is False
    assert sections.is_day_time("05:30") is False
    assert sections.is_day_time("noon") is True
    assert sections.is_day_time("25:00") is True


def test_split_day_night(record):
    venue = aggregate(
        [
            record(session_start_time="07:00", session_end_time="08:00"),
            record(session_start_time="19:00", session_end_time="20:00"),
            record(session_start_time="22:00", session_end_time="23:00"),
        ]
    )[0]

    day, night = sections.split_day_night(venue.time_slots)

    assert [s.start_time for s in day] == ["07:00"]
    assert [s.start_time for s in night] == ["19:00", "22:00"]
