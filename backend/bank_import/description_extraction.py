"""
Description extraction strategies.

The default strategy passes the mapped name/description columns through.
The notifications strategy mines the dense "Notifications" blob some banks
export (ING) for a readable description and for more precise dates than the
booking date column.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, NamedTuple, Optional, Tuple

from .date_parsing import to_iso_utc
from .models import FieldMapping, RawRow


class ExtractedDescription(NamedTuple):
    name: str
    description: Optional[str]
    date_time: Optional[str]  # precise, includes time
    value_date: Optional[str]  # coarse, date only


class DescriptionExtractionStrategy(ABC):
    name = ""
    label = ""
    supports_date_extraction = False

    @abstractmethod
    def extract(
        self, row: RawRow, mapping: FieldMapping, bank_id: Optional[str] = None
    ) -> ExtractedDescription:
        pass


class DefaultDescriptionExtraction(DescriptionExtractionStrategy):
    name = "default"
    label = "Default"

    def extract(self, row, mapping, bank_id=None):
        return ExtractedDescription(
            name=mapping.value(row, "name"),
            description=mapping.value(row, "description") or None,
            date_time=None,
            value_date=None,
        )


# Notification blob matchers. Each takes the blob and returns a description
# or None; the first non-empty result wins.

_TERMINATOR = r"IBAN:|Date/time:|Value date:"

STRUCTURED_DESCRIPTION = re.compile(
    r"Description:\s*((?:(?!\s+(?:" + _TERMINATOR + r"))[^\n])+?)(?:\s+(?:" + _TERMINATOR + r")|$)",
    re.IGNORECASE,
)
NAME_AND_DESCRIPTION = re.compile(
    r"Name:\s*[^\n]+\s+Description:\s*((?:(?!\s+(?:" + _TERMINATOR + r"))[^\n])+?)(?:\s+(?:" + _TERMINATOR + r")|$)",
    re.IGNORECASE,
)
BARE_DESCRIPTION = re.compile(r"Description:\s*([^\n]+)", re.IGNORECASE)
TERMINATOR_SPLIT = re.compile(r"\s+(?:" + _TERMINATOR + r")", re.IGNORECASE)
CARD_MARKER = re.compile(r"(?:Card sequence no\.:|Transaction:|Term:)\s*([^\n]+)", re.IGNORECASE)
CARD_TRANSACTION_CODE = re.compile(r"Transaction:\s*([A-Z0-9]+)", re.IGNORECASE)

NOTIFICATION_DATE_TIME = re.compile(
    r"Date/time:\s*(\d{2})-(\d{2})-(\d{4})\s+(\d{2}):(\d{2}):(\d{2})", re.IGNORECASE
)
NOTIFICATION_VALUE_DATE = re.compile(r"Value date:\s*(\d{2})/(\d{2})/(\d{4})", re.IGNORECASE)

HONORIFIC_NAME = re.compile(r"^(Hr|Mw|Mr|Mrs|Ms|Dr)\.?\s+[A-Z]")
CAPITALIZED_NAME = re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+(\s+[A-Z][a-z]+)*$")
SHORT_DESCRIPTION_LIMIT = 50


def match_structured_description(text: str) -> Optional[str]:
    match = STRUCTURED_DESCRIPTION.search(text)
    return match.group(1).strip() if match else None


def match_name_and_description(text: str) -> Optional[str]:
    match = NAME_AND_DESCRIPTION.search(text)
    return match.group(1).strip() if match else None


def match_bare_description(text: str) -> Optional[str]:
    match = BARE_DESCRIPTION.search(text)
    if not match:
        return None
    return TERMINATOR_SPLIT.split(match.group(1).strip())[0].strip()


def match_card_transaction(text: str) -> Optional[str]:
    """Card payments: "... Transaction: P00247 Term: BS178250 Apple Pay"."""
    if not CARD_MARKER.search(text):
        return None
    parts = []
    if "Apple Pay" in text:
        parts.append("Apple Pay")
    code = CARD_TRANSACTION_CODE.search(text)
    if code:
        parts.append(f"TX: {code.group(1)}")
    return " - ".join(parts) or None


def match_savings_transfer(text: str) -> Optional[str]:
    """Round-up transfers: "To Oranje spaarrekening X95055042 Afronding"."""
    if "To " in text and "Afronding" in text:
        return "Savings transfer"
    return None


DESCRIPTION_MATCHERS: Tuple[Callable[[str], Optional[str]], ...] = (
    match_structured_description,
    match_name_and_description,
    match_bare_description,
    match_card_transaction,
    match_savings_transfer,
)


def extract_notification_description(text: str) -> Optional[str]:
    if not text:
        return None
    for matcher in DESCRIPTION_MATCHERS:
        result = matcher(text)
        if result:
            return result
    return None


def extract_notification_dates(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (date_time, value_date) ISO strings found in a notification blob."""
    if not text:
        return None, None

    date_time = None
    match = NOTIFICATION_DATE_TIME.search(text)
    if match:
        day, month, year, hour, minute, second = (int(g) for g in match.groups())
        try:
            date_time = to_iso_utc(datetime(year, month, day, hour, minute, second))
        except ValueError:
            date_time = None

    value_date = None
    match = NOTIFICATION_VALUE_DATE.search(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            value_date = to_iso_utc(datetime(year, month, day))
        except ValueError:
            value_date = None

    return date_time, value_date


def is_person_name(name: str) -> bool:
    return bool(HONORIFIC_NAME.match(name) or CAPITALIZED_NAME.match(name))


def enhance_name(name: str, description: Optional[str]) -> str:
    """Append a short description to names that look like a person ("Hr X | Rent")."""
    if not description or not is_person_name(name):
        return name
    short = re.split(r"[,;]", description)[0].strip()
    if len(short) < SHORT_DESCRIPTION_LIMIT:
        return f"{name} | {short}"
    return name


class NotificationDescriptionExtraction(DescriptionExtractionStrategy):
    name = "notifications"
    label = "Notifications field"
    supports_date_extraction = True

    def extract(self, row, mapping, bank_id=None):
        name = mapping.value(row, "name")
        notifications = mapping.value(row, "description")

        description = extract_notification_description(notifications)
        date_time, value_date = extract_notification_dates(notifications)

        return ExtractedDescription(
            name=enhance_name(name, description),
            description=description,
            date_time=date_time,
            value_date=value_date,
        )
