"""
Bank profiles for known export formats.

A profile bundles the column-name hints per semantic field (in priority
order), the fields the bank requires to be mapped explicitly, the default
payment method and the strategies used to read its exports. The registry is
built once at startup and never mutated afterwards.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .config import DEFAULT_PAYMENT_METHOD

ColumnHints = Mapping[str, Tuple[str, ...]]


@dataclass(frozen=True)
class BankProfile:
    bank_id: str
    label: str
    column_hints: ColumnHints
    required_fields: Tuple[str, ...] = ()
    default_payment_method: str = DEFAULT_PAYMENT_METHOD
    type_strategy: str = "sign-based"
    date_strategy: str = "default"
    description_strategy: str = "default"
    filename_pattern: Optional[str] = field(default=None, compare=False)

    def matches_filename(self, filename: str) -> bool:
        if not self.filename_pattern or not filename:
            return False
        return re.search(self.filename_pattern, filename, re.IGNORECASE) is not None


def _hints(**fields: List[str]) -> ColumnHints:
    return MappingProxyType({name: tuple(values) for name, values in fields.items()})


DEFAULT_PROFILE = BankProfile(
    bank_id="DEFAULT",
    label="Default",
    # Exact column names of the structured import template
    column_hints=_hints(
        type=["Type"],
        amount=["Amount"],
        currency=["Currency"],
        transaction_date=["Transaction Date"],
        name=["Name"],
        payment_method=["Payment Method"],
        description=["Description"],
        notes=["Notes"],
        external_id=["External ID"],
        tags=["Tags"],
        primary_tag_id=["Primary Tag"],
    ),
)

AMERICAN_EXPRESS_PROFILE = BankProfile(
    bank_id="AMERICAN_EXPRESS",
    label="American Express",
    column_hints=_hints(
        transaction_date=["Date", "Date & Time", "Transaction Date"],
        name=["Description", "Merchant", "Card Member"],
        amount=["Amount", "Amount (USD)", "Amount (Original)"],
        currency=["Currency", "Currency Code"],
        type=["Type"],
        external_id=["Reference", "Reference Number"],
    ),
    default_payment_method="CREDIT_CARD",
    # Charges are positive, credits negative
    type_strategy="inverted-sign",
    date_strategy="mm-dd-yyyy",
    filename_pattern=r"amex|american[\s_-]?express",
)

ING_PROFILE = BankProfile(
    bank_id="ING",
    label="ING",
    column_hints=_hints(
        transaction_date=["Date", "Datum", "Boekingsdatum"],
        name=["Name / Description", "Naam/Omschrijving", "Naam", "Omschrijving"],
        amount=["Amount (EUR)", "Bedrag (EUR)", "Bedrag", "Amount"],
        currency=["Munt", "Valuta", "Currency"],
        type=["Debit/credit", "Af Bij", "Type"],
        description=["Notifications", "Mededelingen", "Omschrijving"],
    ),
    # Amounts are unsigned, the Debit/credit column carries the direction
    required_fields=("type",),
    type_strategy="column-based",
    date_strategy="yyyymmdd",
    description_strategy="notifications",
    filename_pattern=r"NL\d{2}INGB|(^|[^a-z])ing([^a-z]|$)",
)

N26_PROFILE = BankProfile(
    bank_id="N26",
    label="N26",
    column_hints=_hints(
        transaction_date=["Date", "Booking date"],
        name=["Payee", "Transaction Description"],
        amount=["Amount (EUR)", "Amount"],
        currency=["Currency"],
        type=["Transaction Type", "Type"],
        notes=["Reference", "Notes"],
    ),
    filename_pattern=r"n26",
)


class BankProfileRegistry:
    """Read-only lookup of bank profiles keyed by bank id."""

    def __init__(self, profiles: List[BankProfile]):
        self._profiles: Mapping[str, BankProfile] = MappingProxyType(
            {profile.bank_id: profile for profile in profiles}
        )

    def get(self, bank_id: Optional[str]) -> Optional[BankProfile]:
        """Profile for ``bank_id``; None when no bank is selected or it is unknown."""
        if not bank_id:
            return None
        return self._profiles.get(bank_id)

    def __contains__(self, bank_id: object) -> bool:
        return bank_id in self._profiles

    def list(self) -> List[BankProfile]:
        return list(self._profiles.values())

    def required_fields(self, bank_id: Optional[str]) -> Tuple[str, ...]:
        profile = self.get(bank_id)
        return profile.required_fields if profile else ()

    def default_payment_method(self, bank_id: Optional[str]) -> str:
        profile = self.get(bank_id)
        return profile.default_payment_method if profile else DEFAULT_PAYMENT_METHOD

    def detect_by_filename(self, filename: Optional[str]) -> Optional[str]:
        """Guess the bank from an export filename (never returns DEFAULT)."""
        if not filename:
            return None
        for bank_id, profile in self._profiles.items():
            if bank_id == DEFAULT_PROFILE.bank_id:
                continue
            if profile.matches_filename(filename):
                return bank_id
        return None

    def summaries(self) -> List[Dict[str, object]]:
        return [
            {
                "id": profile.bank_id,
                "label": profile.label,
                "required_fields": list(profile.required_fields),
                "default_payment_method": profile.default_payment_method,
                "type_strategy": profile.type_strategy,
                "date_strategy": profile.date_strategy,
                "description_strategy": profile.description_strategy,
            }
            for profile in self._profiles.values()
        ]


def default_registry() -> BankProfileRegistry:
    return BankProfileRegistry(
        [DEFAULT_PROFILE, AMERICAN_EXPRESS_PROFILE, ING_PROFILE, N26_PROFILE]
    )
