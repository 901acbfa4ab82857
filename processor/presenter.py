"""Projection of canonical events into the calendar API representation."""
from typing import Iterable, Optional

from processor.models import CanonicalEvent, PresentationEvent


def _join_present(values: Iterable[Optional[str]], separator: str) -> str:
    return separator.join(value for value in values if value)


def present(event: CanonicalEvent) -> PresentationEvent:
    """
    Build the calendar-facing view of an event.

    Args:
        event: Canonical event

    Returns:
        PresentationEvent carrying the event's identity as its id
    """
    return PresentationEvent(
        id=event.identity,
        start=event.start.isoformat(),
        end=event.end.isoformat(),
        summary=_join_present(
            [event.title if event.title is not None else event.code, event.groups_raw], ', '
        ),
        description=_join_present([event.code, event.staff, event.event_type], '\n'),
        location=_join_present([event.room, event.campus], ', ')
    )
