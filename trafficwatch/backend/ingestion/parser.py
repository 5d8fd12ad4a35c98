"""
ingestion/parser.py

Converts one raw input line into a typed Record.

Line format:
    <timestamp> <source_id> <metric>
Fields are separated by whitespace and/or commas, e.g.
    07:15:00 TL-3 42
    2024-05-01T07:15:00,TL-3,42
    2024-05-01 07:15:00 TL-3 42

Timestamp forms (all become float seconds on one timeline):
    1714547700 / 1714547700.5   → Unix epoch seconds
    HH:MM or HH:MM:SS           → seconds since the first midnight of the input
    ISO-8601 datetime           → epoch seconds (naive values taken as UTC);
                                  'T' or a single space between date and time

Time-of-day readings carry no date, so RecordParser places each one on
the day (previous, same or next) that keeps it within twelve hours of the
reading before it. 23:50 followed by 00:10 moves to the next day; 00:01
followed by 23:59 is a late reading from the day before. Gaps of more than
twelve hours between time-of-day readings cannot be told apart from a
rollover.

Returns None for blank lines and '#' comments so the caller can skip them
without counting an error. Everything else that does not fit raises
ParseError.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone

from ..errors import ParseError
from ..models import Record

logger = logging.getLogger(__name__)

_FIELD_SPLIT = re.compile(r"[\s,]+")
_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}(?:\.\d+)?))?$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_SECONDS_PER_DAY = 86_400


def parse_timestamp(text: str) -> float:
    """
    Parse a timestamp field into float seconds.

    Time-of-day values come back as seconds since midnight; day tracking is
    RecordParser's job.

    Raises:
        ParseError: the text is not a recognised timestamp.
    """
    try:
        value = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(value):
            raise ParseError(f"non-finite timestamp: {text!r}")
        return value

    m = _TIME_OF_DAY.match(text)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        seconds = float(m.group(3) or 0)
        if hours > 23 or minutes > 59 or seconds >= 60:
            raise ParseError(f"time of day out of range: {text!r}")
        return hours * 3600 + minutes * 60 + seconds

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ParseError(f"unparsable timestamp: {text!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class RecordParser:
    """
    Line → Record converter.

    One instance per input stream: it remembers the last time-of-day value
    so that readings after midnight land on the next day.
    """

    def __init__(self) -> None:
        self._last_timestamp: float | None = None

    def parse(self, line: str) -> Record | None:
        """
        Parse a single line.

        Returns:
            Record on success, None for blank lines and comments.

        Raises:
            ParseError: missing field, non-numeric or negative metric,
                        or unparsable timestamp.
        """
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return None

        fields = [f for f in _FIELD_SPLIT.split(stripped) if f]
        if len(fields) == 4 and _ISO_DATE.match(fields[0]):
            # '2024-05-01 07:15:00': date and time split on the space
            fields = [f"{fields[0]} {fields[1]}", fields[2], fields[3]]
        if len(fields) != 3:
            raise ParseError(f"expected 3 fields, got {len(fields)}", line=line)

        ts_text, source_id, metric_text = fields

        try:
            timestamp = parse_timestamp(ts_text)
        except ParseError as exc:
            raise ParseError(str(exc), line=line) from None

        try:
            metric = int(metric_text)
        except ValueError:
            raise ParseError(f"non-numeric metric: {metric_text!r}", line=line) from None
        if metric < 0:
            raise ParseError(f"negative metric: {metric}", line=line)

        if _TIME_OF_DAY.match(ts_text):
            timestamp = self._place_on_timeline(timestamp)

        return Record(timestamp=timestamp, source_id=source_id, metric=metric)

    def __call__(self, line: str) -> Record | None:
        return self.parse(line)

    def _place_on_timeline(self, time_of_day: float) -> float:
        """Put a time-of-day reading on the day that keeps it nearest the previous one."""
        last = self._last_timestamp
        if last is None:
            placed = time_of_day
        else:
            day = last - last % _SECONDS_PER_DAY
            candidates = [
                start + time_of_day
                for start in (day - _SECONDS_PER_DAY, day, day + _SECONDS_PER_DAY)
                if start >= 0
            ]
            placed = min(candidates, key=lambda ts: abs(ts - last))
            if placed // _SECONDS_PER_DAY > last // _SECONDS_PER_DAY:
                logger.debug("Midnight rollover: now on day %d", placed // _SECONDS_PER_DAY)
        self._last_timestamp = placed
        return placed
