"""
Column auto-mapping.

Suggests which CSV header feeds each semantic transaction field, using the
selected bank's column hints first and a generic pattern table for anything
left over.
"""

import logging
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Set

from .banks import BankProfile
from .errors import MappingError
from .models import FIELD_NAMES, FieldMapping, wire_name
from .type_detection import TypeDetectionStrategy

logger = logging.getLogger(__name__)

# Generic header patterns per field, used after bank hints. primary_tag_id is
# listed before tags so a lone "Tag" column becomes the primary tag.
GENERIC_PATTERNS: Dict[str, List[str]] = {
    "primary_tag_id": [
        "tag",
        "category",
        "primary_tag",
        "primary tag",
        "primarytag",
        "budget_tag",
        "budget tag",
        "main_tag",
        "main tag",
    ],
    "type": ["type", "transaction_type", "kind"],
    "amount": ["amount", "value", "betrag", "sum", "total", "price", "cost"],
    "currency": ["currency", "curr", "ccy", "währung"],
    "transaction_date": [
        "date",
        "transaction_date",
        "booking date",
        "datum",
        "occurred_at",
        "timestamp",
        "time",
    ],
    "name": ["name", "title", "description", "memo", "payee", "merchant", "vendor"],
    "description": ["description", "desc", "details", "note", "memo"],
    "notes": ["notes", "note", "remarks", "comments"],
    "external_id": ["external_id", "externalid", "id", "reference", "ref"],
    "payment_method": [
        "payment_method",
        "paymentmethod",
        "payment",
        "method",
        "payment_type",
        "paymenttype",
        "pay_method",
        "paymethod",
    ],
    "tags": ["tags", "categories"],
}

# Fields every transaction needs a column for (payment method falls back to
# the bank default, so it is not listed)
REQUIRED_MAPPING_FIELDS = ("type", "amount", "currency", "transaction_date", "name")


def normalize_column_name(value: str) -> str:
    return re.sub(r"[_\s-]+", "_", value.strip().lower())


class _ColumnPool:
    """Headers still available for assignment."""

    def __init__(self, headers: Iterable[str]):
        self.columns = [(header, normalize_column_name(header)) for header in headers]
        self.used: Set[int] = set()

    def take_exact(self, candidates: List[str]) -> Optional[str]:
        for candidate in candidates:
            for index, (original, normalized) in enumerate(self.columns):
                if index not in self.used and normalized == candidate:
                    self.used.add(index)
                    return original
        return None

    def take_substring(self, candidates: List[str]) -> Optional[str]:
        """First unused header that contains a candidate or is contained in one."""
        for candidate in candidates:
            for index, (original, normalized) in enumerate(self.columns):
                if index in self.used or not normalized:
                    continue
                if candidate in normalized or normalized in candidate:
                    self.used.add(index)
                    return original
        return None


def auto_map(headers: List[str], profile: Optional[BankProfile] = None) -> FieldMapping:
    """
    Best-effort mapping from semantic field to header.

    Args:
        headers: Parsed CSV headers
        profile: Selected bank profile, if any

    Returns:
        FieldMapping with unmatched fields left as None
    """
    pool = _ColumnPool(headers)
    assigned: Dict[str, str] = {}

    if profile:
        for field, hints in profile.column_hints.items():
            if field in assigned or not hints:
                continue
            normalized_hints = [normalize_column_name(hint) for hint in hints]
            column = pool.take_exact(normalized_hints) or pool.take_substring(normalized_hints)
            if column:
                assigned[field] = column

    for field, patterns in GENERIC_PATTERNS.items():
        if field in assigned:
            continue
        normalized_patterns = [normalize_column_name(pattern) for pattern in patterns]
        column = pool.take_exact(normalized_patterns) or pool.take_substring(normalized_patterns)
        if column:
            assigned[field] = column

    logger.debug(
        "Auto-mapped %d of %d fields (bank=%s)",
        len(assigned),
        len(FIELD_NAMES),
        profile.bank_id if profile else None,
    )
    return FieldMapping(**assigned)


class MappingValidation(NamedTuple):
    valid: bool
    missing_fields: List[str]


def validate_mapping(
    mapping: FieldMapping,
    profile: Optional[BankProfile] = None,
    type_strategy: Optional[TypeDetectionStrategy] = None,
    has_default_currency: bool = False,
) -> MappingValidation:
    """
    Check that every field the selected bank and strategies need has a column.

    The type column is only needed when the bank requires it or the active
    type strategy reads it; currency is optional when a default currency is
    supplied.
    """
    bank_required = set(profile.required_fields) if profile else set()
    needs_type = "type" in bank_required or bool(type_strategy and type_strategy.uses_type_column)

    missing: List[str] = []
    for field in REQUIRED_MAPPING_FIELDS:
        if field == "type" and not needs_type:
            continue
        if field == "currency" and has_default_currency:
            continue
        if not mapping.column_for(field):
            missing.append(wire_name(field))

    for field in sorted(bank_required - set(REQUIRED_MAPPING_FIELDS)):
        if not mapping.column_for(field):
            missing.append(wire_name(field))

    return MappingValidation(valid=not missing, missing_fields=missing)


def require_complete_mapping(
    mapping: FieldMapping,
    profile: Optional[BankProfile] = None,
    type_strategy: Optional[TypeDetectionStrategy] = None,
    has_default_currency: bool = False,
) -> None:
    result = validate_mapping(mapping, profile, type_strategy, has_default_currency)
    if not result.valid:
        raise MappingError(result.missing_fields)
