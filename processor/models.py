"""Data models for timetable event processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RawTimetableRecord:
    """Raw timetable entry as decoded from the feed."""
    code: str
    date: str
    start_time: str
    end_time: str
    groups: Optional[str] = None
    title: Optional[str] = None
    event_type: Optional[str] = None
    staff: Optional[str] = None
    room: Optional[str] = None
    campus: Optional[str] = None


@dataclass(frozen=True)
class CanonicalEvent:
    """Normalized, content-addressed timetable event."""
    identity: str
    start: datetime
    end: datetime
    code: str
    groups: Tuple[int, ...]
    groups_raw: Optional[str]
    title: Optional[str]
    event_type: Optional[str]
    staff: Optional[str]
    room: Optional[str]
    campus: Optional[str]

    def has_group(self, group: int) -> bool:
        return group in self.groups

    def ends_after(self, instant: datetime) -> bool:
        return self.end > instant


@dataclass(frozen=True)
class PresentationEvent:
    """Event shaped for the external calendar API."""
    id: str
    start: str
    end: str
    summary: str
    description: str
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'start': {'dateTime': self.start},
            'end': {'dateTime': self.end},
            'summary': self.summary,
            'description': self.description,
            'location': self.location
        }


@dataclass(frozen=True)
class SyncRequest:
    """Input of a sync computation."""
    existing: Tuple[str, ...]
    records: Tuple[RawTimetableRecord, ...]
    group: int
    time_min: Optional[datetime] = None


@dataclass
class SyncResult:
    """Result of a sync computation."""
    created: List[PresentationEvent] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created': [event.to_dict() for event in self.created],
            'deleted': list(self.deleted)
        }
