"""AWS Lambda handler for timetable calendar sync computations."""
import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil import parser as date_parser

from feed.timetable_feed import FeedFormatError, TimetableFeedParser
from processor.event_processor import DateTimeParseError, EventNormalizer
from processor.models import SyncRequest
from sync.diff_engine import CalendarDiffEngine


class RequestFormatError(ValueError):
    """Raised when the sync request payload is malformed."""


# Attributes every LogRecord carries; anything else was passed via extra=
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord('', logging.INFO, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _error_response(
    status_code: int,
    message: str,
    error: Exception,
    start_time: float
) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': status_code,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def _parse_time_min(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        time_min = date_parser.isoparse(value)
    except (TypeError, ValueError) as e:
        raise RequestFormatError(f"Invalid time_min {value!r}: {e}") from e
    if time_min.tzinfo is None:
        raise RequestFormatError(f"time_min {value!r} must include a UTC offset")
    return time_min


def parse_sync_request(
    payload: Dict[str, Any],
    feed_parser: TimetableFeedParser
) -> SyncRequest:
    """
    Build a SyncRequest from a decoded JSON payload.

    Args:
        payload: Object with existing, new, group and optional time_min keys
        feed_parser: Parser for the feed records under ``new``

    Returns:
        SyncRequest

    Raises:
        RequestFormatError: If a key is missing or has the wrong type
        FeedFormatError: If the feed records are malformed
    """
    if 'body' in payload and isinstance(payload['body'], str):
        try:
            payload = json.loads(payload['body'])
        except ValueError as e:
            raise RequestFormatError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise RequestFormatError("Request must be a JSON object")

    for key in ('existing', 'new', 'group'):
        if key not in payload:
            raise RequestFormatError(f"Request missing required field: {key}")

    existing = payload['existing']
    if not isinstance(existing, list) or not all(isinstance(i, str) for i in existing):
        raise RequestFormatError("existing must be a list of event ids")

    group = payload['group']
    if isinstance(group, bool) or not isinstance(group, int) or group < 0:
        raise RequestFormatError(f"group must be a non-negative integer, got {group!r}")

    return SyncRequest(
        existing=tuple(existing),
        records=tuple(feed_parser.parse_records(payload['new'])),
        group=group,
        time_min=_parse_time_min(payload.get('time_min'))
    )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler computing a calendar sync.

    Args:
        event: Sync request payload, or an envelope with a JSON ``body``
        context: Lambda context object

    Returns:
        Response dict with statusCode and a JSON body holding the events to
        create and the ids to delete
    """
    # Read configuration from environment variables
    timezone_name = os.environ.get('TIMEZONE', EventNormalizer.DEFAULT_TIMEZONE)
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={'timezone': timezone_name}
    )

    try:
        feed_parser = TimetableFeedParser()
        engine = CalendarDiffEngine(EventNormalizer(timezone_name))

        try:
            request = parse_sync_request(event, feed_parser)
        except (RequestFormatError, FeedFormatError) as e:
            logger.error(
                f"Rejected malformed sync request: {str(e)}",
                extra={'error_type': type(e).__name__}
            )
            return _error_response(400, 'Invalid sync request', e, start_time)

        try:
            result = engine.compute_sync(request)
        except DateTimeParseError as e:
            logger.error(
                f"Failed to normalize timetable records: {str(e)}",
                extra={'error_type': type(e).__name__}
            )
            return _error_response(
                422, 'Failed to normalize timetable records', e, start_time
            )

        duration = time.time() - start_time

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_created': len(result.created),
                'events_deleted': len(result.deleted)
            }
        )

        body = result.to_dict()
        body['message'] = 'Sync computed successfully'
        body['statistics'] = {
            'records_received': len(request.records),
            'existing_events': len(request.existing),
            'events_created': len(result.created),
            'events_deleted': len(result.deleted),
            'duration_seconds': round(duration, 2)
        }
        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _error_response(500, 'Sync failed', e, start_time)
