import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Mapping, Optional

from venue_availability import config
from venue_availability.models import FreshnessRecord, SportType

logger = logging.getLogger(__name__)

REFRESHING = "refreshing"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FreshnessTracker:
    """Tracks the last successful fetch per sport type and how stale it is."""

    def __init__(
        self,
        default_ttl: Optional[timedelta] = None,
        ttl_overrides: Optional[Mapping[SportType, timedelta]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.default_ttl = default_ttl if default_ttl is not None else timedelta(minutes=config.DEFAULT_TTL_MINUTES)
        self.ttl_overrides: Dict[SportType, timedelta] = dict(ttl_overrides or {})
        self.clock = clock
        self._records: Dict[SportType, FreshnessRecord] = {}

    def ttl_for(self, sport_type: SportType) -> timedelta:
        return self.ttl_overrides.get(sport_type, self.default_ttl)

    def get(self, sport_type: SportType) -> Optional[FreshnessRecord]:
        return self._records.get(sport_type)

    def last_fetched_at(self, sport_type: SportType) -> Optional[datetime]:
        record = self._records.get(sport_type)
        return record.last_fetched_at if record else None

    def record_fetch(self, sport_type: SportType, fetched_at: datetime) -> bool:
        """Stores a successful fetch time. Older times than the stored one are ignored."""
        current = self._records.get(sport_type)
        if current is not None and fetched_at < current.last_fetched_at:
            logger.info(
                f"Ignoring out-of-order fetch for {sport_type.value}: "
                f"{fetched_at.isoformat()} < {current.last_fetched_at.isoformat()}"
            )
            return False
        self._records[sport_type] = FreshnessRecord(
            sport_type=sport_type, last_fetched_at=fetched_at, ttl=self.ttl_for(sport_type)
        )
        return True

    def remaining(self, sport_type: SportType, now: Optional[datetime] = None) -> Optional[timedelta]:
        record = self._records.get(sport_type)
        if record is None:
            return None
        now = now or self.clock()
        return record.last_fetched_at + record.ttl - now

    def is_stale(self, sport_type: SportType, now: Optional[datetime] = None) -> bool:
        """True once more than the TTL has passed. Never-fetched data is stale."""
        remaining = self.remaining(sport_type, now)
        if remaining is None:
            return True
        return remaining < timedelta(0)

    def next_refresh_eta(self, sport_type: SportType, now: Optional[datetime] = None) -> str:
        remaining = self.remaining(sport_type, now)
        if remaining is None or remaining < timedelta(0):
            return REFRESHING
        return f"in {format_duration(remaining)}"

    def format_last_updated(self, sport_type: SportType, now: Optional[datetime] = None) -> Optional[str]:
        last = self.last_fetched_at(sport_type)
        if last is None:
            return None
        return format_relative_past(last, now or self.clock())

    def reset(self):
        self._records.clear()


def format_duration(delta: timedelta) -> str:
    minutes = int(delta.total_seconds() // 60)
    if minutes < 1:
        return "less than a minute"
    hours, minutes = divmod(minutes, 60)
    if hours == 0:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    text = f"{hours} hour{'s' if hours != 1 else ''}"
    if minutes:
        text += f" {minutes} minute{'s' if minutes != 1 else ''}"
    return text


def format_relative_past(moment: datetime, now: datetime) -> str:
    elapsed = now - moment
    if elapsed < timedelta(minutes=1):
        return "just now"
    if elapsed < timedelta(hours=24):
        return f"{format_duration(elapsed)} ago"
    return moment.strftime("%Y-%m-%d %H:%M")
