"""
Date parsing strategies.

Every strategy returns a canonical UTC ISO timestamp plus a precision tag.
When only a calendar date is known the timestamp is pinned to 12:00:00 UTC,
which keeps the day stable under any timezone conversion done by clients.
"""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import NamedTuple, Optional

from .errors import DateParseError, StrategyError

DATE_ONLY = "DateOnly"
DATE_TIME = "DateTime"


class ParsedDate(NamedTuple):
    iso_string: str
    precision: str
    date_only: str


def to_iso_utc(value: datetime) -> str:
    """ISO string in UTC with millisecond precision; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + ".%03dZ" % (value.microsecond // 1000)


def noon_utc(day: date) -> ParsedDate:
    return ParsedDate(
        iso_string=f"{day.isoformat()}T12:00:00.000Z",
        precision=DATE_ONLY,
        date_only=day.isoformat(),
    )


def date_time(value: datetime) -> ParsedDate:
    iso = to_iso_utc(value)
    return ParsedDate(iso_string=iso, precision=DATE_TIME, date_only=iso[:10])


def _calendar_date(raw: str, expected: str, year: str, month: str, day: str) -> date:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise DateParseError(raw, expected)


def _require_value(raw: Optional[str]) -> str:
    value = (raw or "").strip()
    if not value:
        raise StrategyError("Date is required", field="transactionDate")
    return value


class DateParsingStrategy(ABC):
    name = ""
    expected_format = ""

    @abstractmethod
    def parse(self, raw: str) -> ParsedDate:
        """Parse a raw cell value, raising DateParseError when it does not fit."""


class DefaultDateParsing(DateParsingStrategy):
    """
    Multi-format parser used when no bank-specific format is known.

    ISO 8601 is tried first; a value with a time component keeps its time.
    Otherwise YYYY-MM-DD, DD/MM/YYYY, DD.MM.YYYY and textual month forms
    are accepted as date-only values. Slash and dot forms are day-first.
    """

    name = "default"
    expected_format = "YYYY-MM-DD, DD/MM/YYYY, DD.MM.YYYY or an ISO 8601 date-time"

    ISO_PATTERN = re.compile(
        r"^\d{4}-\d{2}-\d{2}"
        r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?)?"
        r"(?:Z|[+-]\d{2}:?\d{2})?$"
    )
    TIME_COMPONENT = re.compile(r"\d{2}:\d{2}")
    DAY_FIRST_PATTERN = re.compile(
        r"^(\d{1,2})[/.](\d{1,2})[/.](\d{4})(?:[ T](\d{2}):(\d{2})(?::(\d{2}))?)?$"
    )
    TEXTUAL_FORMATS = ("%d %b %Y", "%d %B %Y", "%b %d, %Y", "%B %d, %Y", "%d-%b-%Y")

    def parse(self, raw):
        value = _require_value(raw)

        if self.ISO_PATTERN.match(value):
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                raise DateParseError(value, self.expected_format)
            if self.TIME_COMPONENT.search(value):
                return date_time(parsed)
            return noon_utc(parsed.date())

        match = self.DAY_FIRST_PATTERN.match(value)
        if match:
            day, month, year, hour, minute, second = match.groups()
            calendar_day = _calendar_date(value, self.expected_format, year, month, day)
            if hour is None:
                return noon_utc(calendar_day)
            try:
                moment = datetime(
                    calendar_day.year,
                    calendar_day.month,
                    calendar_day.day,
                    int(hour),
                    int(minute),
                    int(second or 0),
                )
            except ValueError:
                raise DateParseError(value, self.expected_format)
            return date_time(moment)

        for fmt in self.TEXTUAL_FORMATS:
            try:
                return noon_utc(datetime.strptime(value, fmt).date())
            except ValueError:
                continue

        raise DateParseError(value, self.expected_format)


class YyyymmddDateParsing(DateParsingStrategy):
    """Compact 8-digit dates such as ``20251210``."""

    name = "yyyymmdd"
    expected_format = "YYYYMMDD format (e.g., 20251210)"
    PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})$")

    def parse(self, raw):
        value = _require_value(raw)
        match = self.PATTERN.match(value)
        if not match:
            raise DateParseError(value, self.expected_format)
        year, month, day = match.groups()
        return noon_utc(_calendar_date(value, self.expected_format, year, month, day))


class MonthDayYearDateParsing(DateParsingStrategy):
    """US card statements: ``06/30/2025``."""

    name = "mm-dd-yyyy"
    expected_format = "MM/DD/YYYY format (e.g., 06/30/2025)"
    PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")

    def parse(self, raw):
        value = _require_value(raw)
        match = self.PATTERN.match(value)
        if not match:
            raise DateParseError(value, self.expected_format)
        month, day, year = match.groups()
        return noon_utc(_calendar_date(value, self.expected_format, year, month, day))
