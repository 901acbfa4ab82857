"""Parser for the compact group range notation used by the timetable feed.

A range specification looks like ``"201-289"``, ``"0, 7-10"`` or
``"121 123 - 125 121"``: parts separated by a comma (optionally padded with
whitespace) or by a single space, where each part is either a single group
number or an inclusive ``start-end`` range.

Anything that does not parse completely falls back to the whole default
cohort, 200 to 299.
"""
import logging
from typing import List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_GROUP = 2 ** 32 - 1
WHITESPACE = ' \t\r\n'
DIGITS = '0123456789'


class GroupRange(NamedTuple):
    """Inclusive range of group numbers; a single group has start == end."""
    start: int
    end: int


DEFAULT_RANGE = GroupRange(200, 299)


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in WHITESPACE:
        pos += 1
    return pos


def _single(text: str, pos: int) -> Optional[Tuple[int, int]]:
    end = pos
    while end < len(text) and text[end] in DIGITS:
        end += 1
    if end == pos:
        return None
    value = int(text[pos:end])
    if value > MAX_GROUP:
        return None
    return value, end


def _range(text: str, pos: int) -> Optional[Tuple[GroupRange, int]]:
    start = _single(text, pos)
    if start is None:
        return None
    low, pos = start
    pos = _skip_whitespace(text, pos)
    if not text.startswith('-', pos):
        return None
    pos = _skip_whitespace(text, pos + 1)
    end = _single(text, pos)
    if end is None:
        return None
    high, pos = end
    return GroupRange(low, high), pos


def _part(text: str, pos: int) -> Optional[Tuple[GroupRange, int]]:
    parsed = _range(text, pos)
    if parsed is not None:
        return parsed
    single = _single(text, pos)
    if single is None:
        return None
    value, pos = single
    return GroupRange(value, value), pos


def _delimiter(text: str, pos: int) -> Optional[int]:
    padded = _skip_whitespace(text, pos)
    if text.startswith(',', padded):
        return _skip_whitespace(text, padded + 1)
    if text.startswith(' ', pos):
        return pos + 1
    return None


def _parts(text: str) -> Optional[Tuple[List[GroupRange], int]]:
    """Parse a non-empty delimited list of parts, returning parts and end offset.

    A delimiter that is not followed by a valid part is left unconsumed.
    """
    first = _part(text, 0)
    if first is None:
        return None
    part, pos = first
    parts = [part]
    while True:
        after_delimiter = _delimiter(text, pos)
        if after_delimiter is None:
            break
        following = _part(text, after_delimiter)
        if following is None:
            break
        part, pos = following
        parts.append(part)
    return parts, pos


def parse_parts(text: Optional[str]) -> List[GroupRange]:
    """
    Parse a range specification into its parts.

    Args:
        text: Raw group range text from the feed, possibly None

    Returns:
        Parsed parts, or ``[DEFAULT_RANGE]`` if the text is empty or does not
        parse in full
    """
    if not text:
        return [DEFAULT_RANGE]

    trimmed = text.strip()
    parsed = _parts(trimmed)
    if parsed is None or parsed[1] != len(trimmed):
        logger.debug(f"Unparseable group range {text!r}, using default")
        return [DEFAULT_RANGE]
    return parsed[0]


def parse_group_range(text: Optional[str]) -> Tuple[int, ...]:
    """
    Expand a range specification into a sorted, deduplicated membership set.

    Args:
        text: Raw group range text, e.g. "0, 7-10"

    Returns:
        Tuple of group numbers in ascending order
    """
    groups = set()
    for part in parse_parts(text):
        groups.update(range(part.start, part.end + 1))
    return tuple(sorted(groups))
