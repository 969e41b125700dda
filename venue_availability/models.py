import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

AvailabilityLevel = Literal["none", "low", "medium", "high"]


def format_time_string(value: str) -> str:
    """Zero-pads an H:MM / HH:MM string. Unparseable input is returned as-is."""
    hour_str, _, minute_str = value.strip().partition(":")
    try:
        hour = int(hour_str)
        minute = int(minute_str[:2] or "0")
    except ValueError:
        return value
    return f"{hour:02d}:{minute:02d}"


class SportType(str, Enum):
    BADMINTON = "badminton"
    BASKETBALL = "basketball"
    VOLLEYBALL = "volleyball"
    TURF_SOCCER_PITCH = "turfSoccerPitch"
    TENNIS = "tennis"


# Upstream LCSD column names -> RawTimeslotRecord fields
PAYLOAD_FIELDS: Dict[str, str] = {
    "District_Name_EN": "district_en",
    "District_Name_TC": "district_tc",
    "Venue_Name_EN": "venue_en",
    "Venue_Name_TC": "venue_tc",
    "Venue_Address_EN": "address_en",
    "Venue_Address_TC": "address_tc",
    "Venue_Phone_No.": "phone",
    "Venue_Longitude": "longitude",
    "Venue_Latitude": "latitude",
    "Facility_Type_Name_EN": "facility_type_en",
    "Facility_Type_Name_TC": "facility_type_tc",
    "Facility_Location_Name_EN": "facility_location_en",
    "Facility_Location_Name_TC": "facility_location_tc",
    "Available_Date": "available_date",
    "Session_Start_Time": "session_start_time",
    "Session_End_Time": "session_end_time",
    "Available_Courts": "available_courts",
}


class RawTimeslotRecord(BaseModel):
    """One row of the upstream availability feed, kept as received."""

    model_config = ConfigDict(frozen=True)

    district_en: str = ""
    district_tc: str = ""
    venue_en: str = ""
    venue_tc: str = ""
    address_en: str = ""
    address_tc: str = ""
    phone: str = ""
    latitude: str = ""
    longitude: str = ""
    facility_type_en: str = ""
    facility_type_tc: str = ""
    facility_location_en: str = ""
    facility_location_tc: str = ""
    available_date: str = ""  # ISO format YYYY-MM-DD
    session_start_time: str = ""  # HH:MM
    session_end_time: str = ""  # HH:MM
    available_courts: str = ""  # numeric string, may be malformed
    sport_type: Optional[SportType] = None

    @property
    def venue_id(self) -> str:
        return f"{self.district_en}-{self.venue_en}"

    def localized(self, field: str, language: str = "en") -> str:
        """Returns the display value of a bilingual field, falling back to English."""
        if language != "en":
            value = getattr(self, f"{field}_tc")
            if value:
                return value
        return getattr(self, f"{field}_en")

    @classmethod
    def from_payload(cls, item: Dict[str, Any], sport_type: Optional[SportType] = None) -> "RawTimeslotRecord":
        """Coerces a loosely-typed upstream row into a record.

        Missing keys become empty strings and non-string scalars are
        stringified, so nothing downstream has to deal with None or numbers.
        """
        values: Dict[str, Any] = {}
        for source_key, field in PAYLOAD_FIELDS.items():
            raw = item.get(source_key)
            if raw is None:
                values[field] = ""
            elif isinstance(raw, str):
                values[field] = raw.strip()
            else:
                values[field] = str(raw)
        return cls(sport_type=sport_type, **values)


def parse_payload_records(items: Any, sport_type: Optional[SportType] = None) -> List[RawTimeslotRecord]:
    """Parses the `data` array of an upstream response, skipping unusable rows."""
    if not isinstance(items, list):
        logger.error(f"Unexpected payload format. Expected a list, got {type(items).__name__}.")
        return []

    records = []
    skipped = 0
    for item in items:
        if not isinstance(item, dict):
            skipped += 1
            continue
        records.append(RawTimeslotRecord.from_payload(item, sport_type))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed rows in {sport_type.value if sport_type else 'payload'}.")
    return records


class CanonicalDistrict(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    area_code: str
    name_en: str
    name_zh: str


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: str = ""
    longitude: str = ""


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    start_time: str
    end_time: str
    available_courts: int
    availability_level: AvailabilityLevel


class FacilityLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    date: str
    time_slots: List[TimeSlot]
    total_available_courts: int
    max_courts_per_slot: int


class Venue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str
    phone: str
    district: str
    district_code: str
    coordinates: Coordinates
    facility_type: str
    facility_locations: List[FacilityLocation]
    total_available_courts: int
    max_courts_per_slot: int
    time_slots: List[TimeSlot]


class FacilityGrid(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    facility_location: str
    time_slots: List[TimeSlot]
    available_slots: int


class DateSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    available_slots_count: int
    facility_grids: List[FacilityGrid]


class DateSections(BaseModel):
    model_config = ConfigDict(frozen=True)

    sections: List[DateSection]
    sticky_header_indices: List[int]


class DistrictHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    district_name: str
    area_code: str
    total_venues: int
    total_time_slots: int
    total_available_time_slots: int


class DistrictSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: DistrictHeader
    venues: List[Venue]


class DistrictSections(BaseModel):
    """One date's venue listing, grouped under sticky district headers."""

    model_config = ConfigDict(frozen=True)

    date: str
    sections: List[DistrictSection]
    sticky_header_indices: List[int]
    total_venues: int = 0
    total_time_slots: int = 0
    total_available_time_slots: int = 0


class BookmarkRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue_id: str
    sport_type: SportType
    added_at: datetime


class HydratedBookmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue_id: str
    sport_type: SportType
    added_at: datetime
    venue_data: Optional[Venue] = None


class AreaGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    area_code: str
    bookmarks: List[HydratedBookmark]


class FreshnessRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    sport_type: SportType
    last_fetched_at: datetime
    ttl: timedelta


class FetchTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    sport_type: SportType
    started_at: datetime


class TimeRange(BaseModel):
    """Selected time window. Either bound may be None, meaning "any time"."""

    model_config = ConfigDict(frozen=True)

    start: Optional[str] = None  # HH:MM
    end: Optional[str] = None  # HH:MM

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value):
        if isinstance(value, str):
            return format_time_string(value)
        return value

    @property
    def is_set(self) -> bool:
        return self.start is not None or self.end is not None

    def select_start(self, time: Optional[str]) -> "TimeRange":
        if time is not None:
            time = format_time_string(time)
        end = self.end
        if time is not None and end is not None and time >= end:
            end = None
        return TimeRange(start=time, end=end)

    def select_end(self, time: Optional[str]) -> "TimeRange":
        if time is not None:
            time = format_time_string(time)
        start = self.start
        if time is not None and start is not None and time <= start:
            start = None
        return TimeRange(start=start, end=time)


class FilterCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_query: str = ""
    selected_district_code: Optional[str] = None
    selected_sport_type: Optional[SportType] = None
    time_range: TimeRange = TimeRange()


class FilterResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    filtered: List[Any]
    has_active_filters: bool
    filtered_count: Optional[int] = None


class Preferences(BaseModel):
    language: Literal["en", "zh-HK"] = "en"
    theme: Literal["light", "dark", "auto"] = "auto"
