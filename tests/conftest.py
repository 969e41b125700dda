import pytest

from venue_availability.models import RawTimeslotRecord, SportType


def make_record(**overrides) -> RawTimeslotRecord:
    values = dict(
        district_en="Yau Tsim Mong",
        district_tc="油尖旺區",
        venue_en="Kowloon Park Sports Centre",
        venue_tc="九龍公園體育館",
        address_en="22 Austin Road, Tsim Sha Tsui",
        address_tc="尖沙咀柯士甸道22號",
        phone="2724 3120",
        latitude="22.3014",
        longitude="114.1698",
        facility_type_en="Badminton Court",
        facility_type_tc="羽毛球場",
        facility_location_en="Arena",
        facility_location_tc="主場",
        available_date="2025-01-10",
        session_start_time="10:00",
        session_end_time="11:00",
        available_courts="3",
        sport_type=SportType.BADMINTON,
    )
    values.update(overrides)
    return RawTimeslotRecord(**values)


@pytest.fixture
def record():
    return make_record
