"""Event normalizer converting raw timetable records into canonical events."""
import logging
from datetime import date, datetime, time, timezone
from typing import Iterable, List
from zoneinfo import ZoneInfo

from dateutil import tz

from processor.group_range import parse_group_range
from processor.identity import compute_identity
from processor.models import CanonicalEvent, RawTimetableRecord

logger = logging.getLogger(__name__)


class DateTimeParseError(ValueError):
    """Raised when a record's date or time cannot be resolved to an instant."""


class EventNormalizer:
    """Normalizer for raw timetable records."""

    DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'
    TIME_FORMAT = '%H:%M'
    DEFAULT_TIMEZONE = 'Europe/London'

    def __init__(self, timezone_name: str = DEFAULT_TIMEZONE):
        """
        Initialize the normalizer.

        Args:
            timezone_name: IANA zone the feed's local times are expressed in
                (default: Europe/London)

        Raises:
            zoneinfo.ZoneInfoNotFoundError: If the zone is unknown
        """
        self.timezone_name = timezone_name
        self.zone = ZoneInfo(timezone_name)

    def normalize_all(self, records: Iterable[RawTimetableRecord]) -> List[CanonicalEvent]:
        """
        Normalize a batch of records.

        The first record that fails to normalize aborts the batch.

        Args:
            records: Raw records from the feed

        Returns:
            Canonical events in feed order

        Raises:
            DateTimeParseError: If any record has an invalid date or time
        """
        events = [self.normalize(record) for record in records]
        logger.info(f"Normalized {len(events)} timetable records")
        return events

    def normalize(self, record: RawTimetableRecord) -> CanonicalEvent:
        """
        Normalize a single record.

        Args:
            record: Raw record from the feed

        Returns:
            CanonicalEvent with UTC instants and a content-derived identity

        Raises:
            DateTimeParseError: If the date or a time is malformed, or a local
                time does not exist in the configured zone
        """
        day = self._parse_date(record.date)
        start_time = self._parse_time(record.start_time, 'start time')
        end_time = self._parse_time(record.end_time, 'end time')

        # Ambiguous wall times resolve outwards so events spanning a DST fold
        # are never shortened.
        start = self._resolve(day, start_time, earliest=True)
        end = self._resolve(day, end_time, earliest=False)

        groups = parse_group_range(record.groups)

        identity = compute_identity(
            start=start,
            end=end,
            code=record.code,
            groups=groups,
            groups_raw=record.groups,
            title=record.title,
            event_type=record.event_type,
            staff=record.staff,
            room=record.room,
            campus=record.campus
        )
        logger.debug(f"Normalized record {record.code} on {record.date} as {identity}")

        return CanonicalEvent(
            identity=identity,
            start=start,
            end=end,
            code=record.code,
            groups=groups,
            groups_raw=record.groups,
            title=record.title,
            event_type=record.event_type,
            staff=record.staff,
            room=record.room,
            campus=record.campus
        )

    def _parse_date(self, date_str: str) -> date:
        """Parse the feed date; its time-of-day part is discarded."""
        try:
            return datetime.strptime(date_str, self.DATE_FORMAT).date()
        except (TypeError, ValueError) as e:
            raise DateTimeParseError(f"Invalid date {date_str!r}: {e}") from e

    def _parse_time(self, time_str: str, field_name: str) -> time:
        try:
            return datetime.strptime(time_str, self.TIME_FORMAT).time()
        except (TypeError, ValueError) as e:
            raise DateTimeParseError(f"Invalid {field_name} {time_str!r}: {e}") from e

    def _resolve(self, day: date, wall_time: time, earliest: bool) -> datetime:
        """
        Resolve a local wall time to an absolute UTC instant.

        Args:
            day: Local calendar date
            wall_time: Local time of day
            earliest: Pick the earlier instant for an ambiguous wall time,
                otherwise the later one

        Returns:
            Timezone-aware datetime in UTC

        Raises:
            DateTimeParseError: If the wall time falls in a DST gap
        """
        local = datetime.combine(day, wall_time, tzinfo=self.zone)
        if not tz.datetime_exists(local):
            raise DateTimeParseError(
                f"Local time {local.replace(tzinfo=None).isoformat()} does not "
                f"exist in {self.timezone_name}"
            )
        if tz.datetime_ambiguous(local):
            local = tz.enfold(local, fold=0 if earliest else 1)
        return local.astimezone(timezone.utc)
