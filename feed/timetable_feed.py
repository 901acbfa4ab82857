"""Decoder for the timetable feed's JSON payload."""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from processor.models import RawTimetableRecord

logger = logging.getLogger(__name__)


class FeedFormatError(ValueError):
    """Raised when the feed payload does not match the expected schema."""


class TimetableFeedParser:
    """Parser turning abbreviated feed entries into raw timetable records."""

    REQUIRED_FIELDS = {
        'C': 'code',
        'Date': 'date',
        'ST': 'start_time',
        'ET': 'end_time'
    }
    OPTIONAL_FIELDS = {
        'G': 'groups',
        'N': 'title',
        'T': 'event_type',
        'S': 'staff',
        'R': 'room',
        'CP': 'campus'
    }

    def parse_records(self, payload: Union[str, bytes, List[Any]]) -> List[RawTimetableRecord]:
        """
        Parse a feed payload into raw records.

        Args:
            payload: JSON text, or the already decoded list of feed entries

        Returns:
            List of RawTimetableRecord objects in feed order

        Raises:
            FeedFormatError: If the payload or any entry is malformed
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise FeedFormatError(f"Feed payload is not valid JSON: {e}") from e

        if not isinstance(payload, list):
            raise FeedFormatError(
                f"Feed payload must be a list, got {type(payload).__name__}"
            )

        records = [
            self._parse_entry(entry, index) for index, entry in enumerate(payload)
        ]
        logger.info(f"Parsed {len(records)} timetable records from feed")
        return records

    def _parse_entry(self, entry: Any, index: int) -> RawTimetableRecord:
        """
        Parse a single feed entry. Keys not in the schema are ignored.

        Args:
            entry: Decoded JSON object
            index: Position in the feed, used in error messages

        Returns:
            RawTimetableRecord
        """
        if not isinstance(entry, dict):
            raise FeedFormatError(
                f"Feed entry {index} must be an object, got {type(entry).__name__}"
            )

        fields: Dict[str, Optional[str]] = {}
        for key, name in self.REQUIRED_FIELDS.items():
            if entry.get(key) is None:
                raise FeedFormatError(f"Feed entry {index} missing required field: {key}")
            fields[name] = self._text(entry, key, index)

        for key, name in self.OPTIONAL_FIELDS.items():
            fields[name] = self._text(entry, key, index) if entry.get(key) is not None else None

        return RawTimetableRecord(**fields)

    def _text(self, entry: Dict[str, Any], key: str, index: int) -> str:
        value = entry[key]
        if not isinstance(value, str):
            raise FeedFormatError(
                f"Feed entry {index} field {key} must be a string, "
                f"got {type(value).__name__}"
            )
        return value
