"""
Transaction type detection strategies.

Each strategy decides EXPENSE vs INCOME for one row. Which strategy is used
depends only on the selected bank or an explicit override, never on the
contents of a row.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Optional

from .errors import StrategyError
from .models import FieldMapping, RawRow

EXPENSE = "EXPENSE"
INCOME = "INCOME"

# Bank-flavoured names still sent by older clients
TYPE_STRATEGY_ALIASES = {
    "default": "sign-based",
    "amex": "inverted-sign",
    "ing": "column-based",
}


def reads_type_column(strategy_name: Optional[str]) -> bool:
    """True for strategies that take the type from a column rather than the sign."""
    return TYPE_STRATEGY_ALIASES.get(strategy_name, strategy_name) == ColumnTypeDetection.name


def _as_decimal(amount: str) -> Decimal:
    try:
        return Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise StrategyError(
            f"Cannot determine transaction type from amount '{amount}'", field="amount"
        )


class TypeDetectionStrategy(ABC):
    name = ""
    label = ""
    description = ""
    # True when the strategy reads the mapped "type" column instead of the sign
    uses_type_column = False

    @abstractmethod
    def detect(self, amount: str, raw_amount: str, row: RawRow, mapping: FieldMapping) -> str:
        """Return EXPENSE or INCOME, raising StrategyError on unusable input."""


class SignBasedTypeDetection(TypeDetectionStrategy):
    name = "sign-based"
    label = "Sign-based (Default)"
    description = "Negative amounts are expenses, positive amounts are income"

    def detect(self, amount, raw_amount, row, mapping):
        return EXPENSE if _as_decimal(amount) < 0 else INCOME


class InvertedSignTypeDetection(TypeDetectionStrategy):
    name = "inverted-sign"
    label = "Inverted sign"
    description = "Negative amounts are income (credits), positive amounts are expenses (charges)"

    def detect(self, amount, raw_amount, row, mapping):
        return INCOME if _as_decimal(amount) < 0 else EXPENSE


class ColumnTypeDetection(TypeDetectionStrategy):
    name = "column-based"
    label = "Debit/credit column"
    description = "Reads the mapped type column (Debit/Credit, Af/Bij)"
    uses_type_column = True

    EXPENSE_VALUES = frozenset({"debit", "af"})
    INCOME_VALUES = frozenset({"credit", "bij"})

    def detect(self, amount, raw_amount, row, mapping):
        column = mapping.type
        if not column:
            raise StrategyError(
                "Type column must be mapped for this bank; the amount sign cannot be used",
                field="type",
            )
        value = re.sub(r"\s+", " ", (row.get(column) or "").strip().lower())
        if value in self.EXPENSE_VALUES:
            return EXPENSE
        if value in self.INCOME_VALUES:
            return INCOME
        raise StrategyError(
            f"Unrecognized transaction type '{row.get(column, '')}' in column '{column}'. "
            "Expected Debit/Credit or Af/Bij",
            field="type",
        )
