import pytest
from pydantic import ValidationError

from venue_availability.models import RawTimeslotRecord, SportType, parse_payload_records


def test_from_payload_coerces_values():
    record = RawTimeslotRecord.from_payload(
        {
            "District_Name_EN": " Eastern ",
            "Venue_Name_EN": "Island East Sports Centre",
            "Available_Courts": 3,
            "Venue_Latitude": None,
        },
        SportType.VOLLEYBALL,
    )

    assert record.district_en == "Eastern"
    assert record.available_courts == "3"
    assert record.latitude == ""
    assert record.session_start_time == ""
    assert record.sport_type == SportType.VOLLEYBALL
    assert record.venue_id == "Eastern-Island East Sports Centre"


def test_localized_falls_back_to_english(record):
    assert record().localized("venue", "zh-HK") == "九龍公園體育館"
    assert record(venue_tc="").localized("venue", "zh-HK") == "Kowloon Park Sports Centre"
    assert record().localized("venue", "en") == "Kowloon Park Sports Centre"


def test_records_are_immutable(record):
    with pytest.raises(ValidationError):
        record().available_courts = "9"


def test_parse_payload_records_rejects_non_list():
    assert parse_payload_records({"not": "a list"}) == []
    assert parse_payload_records(None) == []
