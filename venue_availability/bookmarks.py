import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from venue_availability import districts
from venue_availability.models import AreaGroup, BookmarkRef, HydratedBookmark, SportType, Venue

logger = logging.getLogger(__name__)

BOOKMARKS_KEY = "bookmarks"

VenueMapBySport = Mapping[SportType, Mapping[str, Venue]]


def split_venue_id(venue_id: str):
    """Splits "<district>-<venue>" into its two parts."""
    district, _, venue = venue_id.partition("-")
    return district, venue


def bookmark_area_code(venue_id: str) -> str:
    # Derived from the id, not the live record, so grouping survives a venue dropping out of a fetch.
    district, _ = split_venue_id(venue_id)
    return districts.area_code_for(district)


def area_sort_key(area_code: str):
    if area_code in districts.AREA_ORDER:
        return (0, districts.AREA_ORDER.index(area_code), "")
    if area_code == districts.UNKNOWN_CODE:
        return (2, 0, "")
    return (1, 0, area_code)


def display_name(bookmark: HydratedBookmark) -> str:
    if bookmark.venue_data is not None:
        return bookmark.venue_data.name
    _, venue = split_venue_id(bookmark.venue_id)
    return venue or bookmark.venue_id


def hydrate_bookmarks(refs: List[BookmarkRef], venue_map_by_sport: VenueMapBySport) -> List[AreaGroup]:
    """Joins bookmark references with the latest venues and groups them by area.

    A reference whose venue is missing from the latest fetch is still returned,
    with `venue_data` set to None. Areas come out as HKI, KLN, NT, then any
    other code alphabetically, with unmatched districts last.
    """
    if refs is None:
        raise TypeError("refs must be a list of BookmarkRef, not None")
    if venue_map_by_sport is None:
        raise TypeError("venue_map_by_sport must be a mapping, not None")

    grouped: Dict[str, List[HydratedBookmark]] = defaultdict(list)
    for ref in refs:
        venue = venue_map_by_sport.get(ref.sport_type, {}).get(ref.venue_id)
        hydrated = HydratedBookmark(
            venue_id=ref.venue_id,
            sport_type=ref.sport_type,
            added_at=ref.added_at,
            venue_data=venue,
        )
        grouped[bookmark_area_code(ref.venue_id)].append(hydrated)

    orphaned = sum(1 for group in grouped.values() for b in group if b.venue_data is None)
    if orphaned:
        logger.debug(f"{orphaned} bookmarks have no venue in the latest fetch")

    return [
        AreaGroup(
            area_code=area_code,
            bookmarks=sorted(grouped[area_code], key=lambda b: (display_name(b).lower(), b.venue_id)),
        )
        for area_code in sorted(grouped, key=area_sort_key)
    ]


def visible_bookmarks(groups: List[AreaGroup]) -> List[AreaGroup]:
    """Drops orphaned bookmarks and empty areas for display. Storage is untouched."""
    visible = []
    for group in groups:
        bookmarks = [b for b in group.bookmarks if b.venue_data is not None]
        if bookmarks:
            visible.append(AreaGroup(area_code=group.area_code, bookmarks=bookmarks))
    return visible


class BookmarkStore:
    """Bookmark references persisted in a key-value store, keyed by venue id."""

    def __init__(self, store, clock=None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        # An immediate re-add of the same venue and sport restores this ref
        self._last_removed: Optional[BookmarkRef] = None

    def _load(self) -> Dict[str, BookmarkRef]:
        bookmarks: Dict[str, BookmarkRef] = {}
        for item in self.store.get(BOOKMARKS_KEY) or []:
            try:
                ref = BookmarkRef.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored bookmark {item!r}: {e}")
                continue
            bookmarks[ref.venue_id] = ref
        return bookmarks

    def _save(self, bookmarks: Dict[str, BookmarkRef]):
        self.store.set(BOOKMARKS_KEY, [ref.model_dump(mode="json") for ref in bookmarks.values()])

    def add(self, venue_id: str, sport_type: SportType) -> BookmarkRef:
        bookmarks = self._load()
        existing = bookmarks.get(venue_id)
        if existing is not None:
            return existing
        last_removed, self._last_removed = self._last_removed, None
        if last_removed is not None and (last_removed.venue_id, last_removed.sport_type) == (venue_id, sport_type):
            ref = last_removed
        else:
            ref = BookmarkRef(venue_id=venue_id, sport_type=sport_type, added_at=self.clock())
        bookmarks[venue_id] = ref
        self._save(bookmarks)
        logger.info(f"Bookmarked {venue_id} ({sport_type.value})")
        return ref

    def remove(self, venue_id: str) -> bool:
        bookmarks = self._load()
        removed = bookmarks.pop(venue_id, None)
        if removed is None:
            return False
        self._last_removed = removed
        self._save(bookmarks)
        logger.info(f"Removed bookmark {venue_id}")
        return True

    def toggle(self, venue_id: str, sport_type: SportType) -> bool:
        """Flips the bookmark and returns whether the venue is now bookmarked."""
        if self.is_bookmarked(venue_id):
            self.remove(venue_id)
            return False
        self.add(venue_id, sport_type)
        return True

    def is_bookmarked(self, venue_id: str) -> bool:
        return venue_id in self._load()

    def list_bookmarks(self, sport_type: Optional[SportType] = None) -> List[BookmarkRef]:
        """Returns bookmarks newest first, optionally for one sport type."""
        refs = [
            ref for ref in self._load().values() if sport_type is None or ref.sport_type == sport_type
        ]
        return sorted(refs, key=lambda ref: (ref.added_at, ref.venue_id), reverse=True)

    def clear(self):
        self._last_removed = None
        self.store.delete(BOOKMARKS_KEY)
        logger.info("Cleared all bookmarks")
