import argparse
import logging
import sys
import time
from typing import List

from venue_availability import config, persist, sections
from venue_availability.bookmarks import BookmarkStore, visible_bookmarks
from venue_availability.models import AreaGroup, DateSections, DistrictSections, FilterCriteria, SportType, TimeRange, Venue
from venue_availability.state import VenueDataState

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Show Hong Kong sports venue availability.")
    parser.add_argument(
        "--sport",
        type=SportType,
        choices=list(SportType),
        default=SportType.BADMINTON,
        help="Sport type to fetch. Defaults to badminton.",
    )
    parser.add_argument("--venue", type=str, help="Venue id to show the date schedule for.")
    parser.add_argument("--date", type=str, help="Date (YYYY-MM-DD) to list venues by district for.")
    parser.add_argument("--search", type=str, default="", help="Free-text search over venue fields.")
    parser.add_argument("--district", type=str, help="Canonical district code, e.g. WTS.")
    parser.add_argument("--start", type=str, help="Earliest session start time (HH:MM).")
    parser.add_argument("--end", type=str, help="Latest session end time (HH:MM).")
    parser.add_argument("--bookmarks", action="store_true", help="Show bookmarked venues instead.")
    parser.add_argument("--language", choices=["en", "zh-HK"], help="Display language. Defaults to the saved preference.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def build_criteria(args) -> FilterCriteria:
    time_range = TimeRange()
    if args.start:
        time_range = time_range.select_start(args.start)
    if args.end:
        time_range = time_range.select_end(args.end)
    return FilterCriteria(
        search_query=args.search or "",
        selected_district_code=args.district,
        selected_sport_type=args.sport,
        time_range=time_range,
    )


def print_venue_summary(venues: List[Venue]):
    """Prints one line per venue with its headline court count."""
    print(f"\n--- {len(venues)} venues ---")
    for venue in venues:
        print(f"[{venue.district_code:>7}] {venue.name}: {venue.total_available_courts} courts free ({venue.id})")


def print_date_sections(venue_id: str, date_sections: DateSections):
    """Prints a venue's schedule, one block per date."""
    print(f"\n--- Schedule for {venue_id} ---")
    if not date_sections.sections:
        print("No available time slots.")
        return
    for section in date_sections.sections:
        print(f"\n{section.date} ({section.available_slots_count} slots)")
        for grid in section.facility_grids:
            day, night = sections.split_day_night(grid.time_slots)
            for label, slots in (("day", day), ("night", night)):
                if slots:
                    text = ", ".join(f"{s.start_time}-{s.end_time} x{s.available_courts}" for s in slots)
                    print(f"  {grid.facility_location} ({label}): {text}")


def print_district_sections(district_sections: DistrictSections):
    """Prints one date's venues under their district headers."""
    print(
        f"\n--- {district_sections.date}: {district_sections.total_venues} venues, "
        f"{district_sections.total_available_time_slots}/{district_sections.total_time_slots} slots free ---"
    )
    for section in district_sections.sections:
        header = section.header
        print(f"\n[{header.area_code}] {header.district_name} ({header.total_venues} venues)")
        for venue in section.venues:
            print(f"  {venue.name}: {venue.total_available_courts} courts free ({venue.id})")


def print_bookmarks(groups: List[AreaGroup]):
    """Prints bookmarked venues grouped by area."""
    if not groups:
        print("\nNo bookmarked venues with current data.")
        return
    for group in groups:
        print(f"\n--- {group.area_code} ---")
        for bookmark in group.bookmarks:
            print(f"  {bookmark.venue_data.name}: {bookmark.venue_data.total_available_courts} courts free")


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    preferences_store = persist.JsonFileStore(config.PREFERENCES_FILE)
    preferences = persist.load_preferences(preferences_store)

    state = VenueDataState(
        bookmark_store=BookmarkStore(persist.JsonFileStore(config.BOOKMARKS_FILE)),
        language=args.language or preferences.language,
    )
    state.refresh(args.sport)
    print(f"Data for {args.sport.value}: next refresh {state.next_refresh_eta(args.sport)}")

    if args.bookmarks:
        print_bookmarks(visible_bookmarks(state.hydrated_bookmarks(args.sport)))
    elif args.venue:
        print_date_sections(args.venue, state.date_sections(args.sport, args.venue))
    elif args.date:
        print_district_sections(state.district_sections(args.sport, args.date))
    else:
        result = state.filtered_venues(args.sport, build_criteria(args))
        print_venue_summary(result.filtered)


if __name__ == "__main__":
    main()
