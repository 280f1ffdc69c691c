# Data models for the bank import service
import re
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import PAYMENT_METHODS, SUPPORTED_CURRENCIES

TransactionType = Literal["EXPENSE", "INCOME"]
Currency = Literal[SUPPORTED_CURRENCIES]
PaymentMethod = Literal[PAYMENT_METHODS]
TimePrecision = Literal["DateOnly", "DateTime"]
CandidateStatus = Literal["valid", "invalid", "warning"]

RawRow = Dict[str, str]

# Semantic transaction fields a CSV column can be mapped to
FIELD_NAMES = (
    "type",
    "amount",
    "currency",
    "transaction_date",
    "name",
    "description",
    "notes",
    "external_id",
    "tags",
    "primary_tag_id",
    "payment_method",
)

DECIMAL_PATTERN = r"^-?\d+\.?\d*$"


def wire_name(field: str) -> str:
    """Name of a semantic field as it appears in API payloads and errors."""
    return to_camel(field)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class FieldMapping(CamelModel):
    """Semantic field -> CSV header. Frozen; edits produce a new mapping."""

    model_config = ConfigDict(
        populate_by_name=True, alias_generator=to_camel, frozen=True
    )

    type: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    transaction_date: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    external_id: Optional[str] = None
    tags: Optional[str] = None
    primary_tag_id: Optional[str] = None
    payment_method: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def check_columns_unique(self):
        seen: Dict[str, str] = {}
        for field in FIELD_NAMES:
            column = getattr(self, field)
            if column is None:
                continue
            if column in seen:
                raise ValueError(
                    f"Column '{column}' is mapped to both {wire_name(seen[column])} "
                    f"and {wire_name(field)}"
                )
            seen[column] = field
        return self

    def column_for(self, field: str) -> Optional[str]:
        return getattr(self, field)

    def value(self, row: RawRow, field: str) -> str:
        """Trimmed raw value of the column mapped to ``field`` ("" if unmapped)."""
        column = self.column_for(field)
        if not column:
            return ""
        return (row.get(column) or "").strip()

    def mapped_fields(self) -> List[str]:
        return [field for field in FIELD_NAMES if getattr(self, field)]


class TransactionDraft(CamelModel):
    """Partially populated transaction built from one CSV row."""

    type: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    transaction_date: Optional[str] = None
    time_precision: Optional[TimePrecision] = None
    name: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    external_id: Optional[str] = None
    payment_method: Optional[str] = None
    tag_ids: List[str] = Field(default_factory=list)
    primary_tag_id: Optional[str] = None


class TransactionInput(CamelModel):
    """Structural schema a transaction must satisfy before it is persisted."""

    type: TransactionType
    amount: str
    currency: Currency
    transaction_date: str
    time_precision: TimePrecision = "DateTime"
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=2000)
    external_id: Optional[str] = Field(default=None, max_length=200)
    payment_method: PaymentMethod
    tag_ids: List[str] = Field(default_factory=list)
    primary_tag_id: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def check_amount(cls, value: str) -> str:
        if not re.match(DECIMAL_PATTERN, value):
            raise ValueError("Must be a valid decimal number")
        return value

    @field_validator("transaction_date")
    @classmethod
    def check_transaction_date(cls, value: str) -> str:
        if "T" not in value:
            raise ValueError("Must be an ISO 8601 date-time")
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Must be an ISO 8601 date-time")
        return value


class FieldError(CamelModel):
    field: str
    message: str
    severity: Literal["error", "warning"] = "error"


class CandidateTransaction(CamelModel):
    row_index: int = Field(ge=0)
    status: CandidateStatus
    data: TransactionDraft
    raw_values: RawRow
    errors: List[FieldError] = Field(default_factory=list)


class Tag(CamelModel):
    id: str
    owner_id: str
    name: str
    transaction_type: Optional[TransactionType] = None
    color: Optional[str] = None
    created_at: str


class Transaction(CamelModel):
    id: str
    owner_id: str
    type: TransactionType
    amount: str
    currency: Currency
    transaction_date: str
    time_precision: TimePrecision = "DateTime"
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    external_id: Optional[str] = None
    payment_method: PaymentMethod
    tag_ids: List[str] = Field(default_factory=list)
    primary_tag_id: Optional[str] = None
    created_at: str
    updated_at: str


class BatchItemError(CamelModel):
    index: int = Field(ge=0)
    message: str


class ImportBatchResult(CamelModel):
    created: List[Transaction] = Field(default_factory=list)
    errors: List[BatchItemError] = Field(default_factory=list)


class TransformResult(CamelModel):
    candidates: List[CandidateTransaction]
    total: int
    total_valid: int
    total_invalid: int
    total_warning: int = 0


# Request / response payloads


class UploadResponse(CamelModel):
    columns: List[str]
    rows: List[RawRow]
    total_rows: int
    detected_bank: Optional[str] = None


class MappingRequest(CamelModel):
    columns: List[str] = Field(min_length=1)
    bank: Optional[str] = None


class MappingValidationRequest(CamelModel):
    mapping: FieldMapping
    bank: Optional[str] = None
    type_detection_strategy: Optional[str] = None
    default_currency: Optional[Currency] = None


class MappingValidationResponse(CamelModel):
    valid: bool
    missing_fields: List[str]


class TransformRequest(CamelModel):
    rows: List[RawRow]
    mapping: FieldMapping
    bank: Optional[str] = None
    type_detection_strategy: Optional[str] = None
    default_currency: Optional[Currency] = None


class ImportRequest(CamelModel):
    # Items stay loosely typed so each one is validated and reported on its own
    transactions: List[Dict[str, Any]] = Field(min_length=1)


class ImportResponse(CamelModel):
    success_count: int
    failure_count: int
    created: List[Transaction]
    errors: List[BatchItemError]


class BankSummary(CamelModel):
    id: str
    label: str
    required_fields: List[str]
    default_payment_method: str
    type_strategy: str
    date_strategy: str
    description_strategy: str
