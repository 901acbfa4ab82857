"""Diff engine computing calendar create/delete operations."""
import logging
from typing import Dict, List, Optional

from processor.event_processor import EventNormalizer
from processor.models import CanonicalEvent, SyncRequest, SyncResult
from processor.presenter import present

logger = logging.getLogger(__name__)


class CalendarDiffEngine:
    """Computes the operations that bring a calendar in line with the feed."""

    def __init__(self, normalizer: Optional[EventNormalizer] = None):
        """
        Initialize the diff engine.

        Args:
            normalizer: Normalizer for feed records (default: Europe/London)
        """
        self.normalizer = normalizer or EventNormalizer()

    def compute_sync(self, request: SyncRequest) -> SyncResult:
        """
        Compare freshly fetched records with the identities already in the
        calendar.

        Events whose identity already exists are left alone, so repeated runs
        over an unchanged feed produce no operations.

        Args:
            request: Existing identities, feed records and filters

        Returns:
            SyncResult with events to create and identities to delete

        Raises:
            DateTimeParseError: If any record fails to normalize
            ValueError: If time_min is a naive datetime
        """
        if request.time_min is not None and request.time_min.tzinfo is None:
            raise ValueError(
                f"time_min must be timezone-aware, got {request.time_min.isoformat()}"
            )

        logger.info(
            f"Starting sync computation with {len(request.records)} records "
            f"and {len(request.existing)} existing events for group {request.group}"
        )

        events = self.normalizer.normalize_all(request.records)
        relevant_events = self._filter_events(events, request)

        # Keyed by identity in feed order; identical records collapse
        new_events: Dict[str, CanonicalEvent] = {}
        for event in relevant_events:
            new_events.setdefault(event.identity, event)

        existing_ids = dict.fromkeys(request.existing)

        events_to_create = [
            present(event) for identity, event in new_events.items()
            if identity not in existing_ids
        ]
        ids_to_delete = [
            identity for identity in existing_ids
            if identity not in new_events
        ]
        unchanged = len(new_events) - len(events_to_create)

        logger.info(
            f"Sync plan: {len(events_to_create)} to create, "
            f"{len(ids_to_delete)} to delete, {unchanged} unchanged"
        )

        return SyncResult(created=events_to_create, deleted=ids_to_delete)

    def _filter_events(
        self,
        events: List[CanonicalEvent],
        request: SyncRequest
    ) -> List[CanonicalEvent]:
        """
        Keep events for the requested group that end after the time bound.

        Args:
            events: Normalized events
            request: Request carrying the group and optional time bound

        Returns:
            Events relevant to the request
        """
        relevant = [
            event for event in events
            if event.has_group(request.group) and (
                request.time_min is None or event.ends_after(request.time_min)
            )
        ]
        logger.debug(
            f"Kept {len(relevant)} of {len(events)} events for group {request.group}"
        )
        return relevant


def compute_sync(
    request: SyncRequest,
    timezone_name: str = EventNormalizer.DEFAULT_TIMEZONE
) -> SyncResult:
    """
    Compute the sync operations for a request with a fresh engine.

    Args:
        request: Sync request
        timezone_name: Zone the feed's local times are expressed in

    Returns:
        SyncResult for the request
    """
    engine = CalendarDiffEngine(EventNormalizer(timezone_name))
    return engine.compute_sync(request)
