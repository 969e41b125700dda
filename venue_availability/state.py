import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from venue_availability import aggregator, bookmarks, filters, provider, sections
from venue_availability.freshness import FreshnessTracker, utc_now
from venue_availability.models import (
    AreaGroup,
    DateSections,
    DistrictSections,
    FetchTag,
    FilterCriteria,
    FilterResult,
    RawTimeslotRecord,
    SportType,
    Venue,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[SportType], Optional[List[RawTimeslotRecord]]]


class VenueDataState:
    """Per-sport raw records, their aggregates and freshness, for one process or test.

    Raw records are replaced wholesale on every accepted commit and the venue
    aggregates are rebuilt from them; nothing is merged incrementally. Each
    fetch is tagged with its start time, and a commit whose tag is older than
    the sport's last accepted fetch is discarded.
    """

    def __init__(
        self,
        fetcher: Fetcher = provider.fetch_sport_venue_data,
        tracker: Optional[FreshnessTracker] = None,
        bookmark_store: Optional[bookmarks.BookmarkStore] = None,
        language: str = "en",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.fetcher = fetcher
        self.clock = clock
        self.tracker = tracker or FreshnessTracker(clock=clock)
        self.bookmark_store = bookmark_store
        self.language = language
        self._records: Dict[SportType, List[RawTimeslotRecord]] = {}
        self._venues: Dict[SportType, Dict[str, Venue]] = {}

    def reset(self):
        """Drops all cached data and freshness. Bookmarks live in the store and are kept."""
        self._records.clear()
        self._venues.clear()
        self.tracker.reset()

    def set_language(self, language: str):
        if language == self.language:
            return
        self.language = language
        for sport_type, records in self._records.items():
            self._venues[sport_type] = aggregator.venue_map(aggregator.aggregate(records, language))

    # --- Fetch lifecycle ---

    def begin_fetch(self, sport_type: SportType) -> FetchTag:
        return FetchTag(sport_type=sport_type, started_at=self.clock())

    def commit(self, tag: FetchTag, records: List[RawTimeslotRecord]) -> bool:
        """Stores a fetch result unless a newer fetch for the same sport already landed."""
        if not self.tracker.record_fetch(tag.sport_type, tag.started_at):
            logger.warning(
                f"Discarding stale {tag.sport_type.value} commit started at {tag.started_at.isoformat()}"
            )
            return False

        records = list(records)
        self._records[tag.sport_type] = records
        self._venues[tag.sport_type] = aggregator.venue_map(aggregator.aggregate(records, self.language))
        logger.info(
            f"Committed {len(records)} {tag.sport_type.value} records "
            f"({len(self._venues[tag.sport_type])} venues)"
        )
        return True

    def refresh(self, sport_type: SportType, force: bool = False) -> bool:
        """Fetches a sport type if its data is stale (or `force`) and commits the result.

        A failed fetch leaves the previous records and freshness untouched.
        """
        if not force and not self.tracker.is_stale(sport_type):
            logger.info(f"{sport_type.value} data is fresh; next refresh {self.next_refresh_eta(sport_type)}")
            return False

        tag = self.begin_fetch(sport_type)
        records = self.fetcher(sport_type)
        if records is None:
            logger.warning(f"Fetch for {sport_type.value} failed; keeping previous data")
            return False
        return self.commit(tag, records)

    # --- Queries ---

    def records(self, sport_type: SportType) -> List[RawTimeslotRecord]:
        return list(self._records.get(sport_type, []))

    def venue_map(self, sport_type: SportType) -> Dict[str, Venue]:
        return dict(self._venues.get(sport_type, {}))

    def venues(self, sport_type: SportType) -> List[Venue]:
        return list(self._venues.get(sport_type, {}).values())

    def is_stale(self, sport_type: SportType) -> bool:
        return self.tracker.is_stale(sport_type)

    def next_refresh_eta(self, sport_type: SportType) -> str:
        return self.tracker.next_refresh_eta(sport_type)

    def filtered_records(self, sport_type: SportType, criteria: FilterCriteria) -> FilterResult:
        return filters.apply_filters(self.records(sport_type), criteria)

    def filtered_venues(self, sport_type: SportType, criteria: FilterCriteria) -> FilterResult:
        return filters.filter_venues(self.venues(sport_type), criteria)

    def date_sections(self, sport_type: SportType, venue_id: str) -> DateSections:
        venue_records = [r for r in self._records.get(sport_type, []) if r.venue_id == venue_id]
        return sections.build_date_sections(venue_records, self.language)

    def district_sections(self, sport_type: SportType, date: str) -> DistrictSections:
        return sections.build_district_sections(self._records.get(sport_type, []), date, self.language)

    def hydrated_bookmarks(self, sport_type: Optional[SportType] = None) -> List[AreaGroup]:
        if self.bookmark_store is None:
            return []
        refs = self.bookmark_store.list_bookmarks(sport_type)
        return bookmarks.hydrate_bookmarks(refs, self._venues)
