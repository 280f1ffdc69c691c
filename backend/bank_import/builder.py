"""
Candidate transaction construction.

Turns each RawRow into a CandidateTransaction using the active strategies.
A failure while building one row never affects the other rows: the row is
reported as an invalid candidate carrying the failure message.
"""

import logging
from typing import List, Optional

from . import config
from .csv_parser import check_row_count
from .date_parsing import DATE_ONLY, DATE_TIME
from .description_extraction import ExtractedDescription
from .errors import ImportPipelineError
from .models import (
    CandidateTransaction,
    FieldError,
    FieldMapping,
    RawRow,
    TransactionDraft,
    TransformResult,
)
from .normalizers import parse_amount, parse_currency, parse_payment_method, parse_tag_names
from .strategies import ActiveStrategies
from .tags import TagResolver
from .validation import candidate_status, validate_candidate

logger = logging.getLogger(__name__)

# Body used for rows that could not be built at all. Fixed values keep the
# transform output deterministic.
PLACEHOLDER_TRANSACTION = {
    "type": "EXPENSE",
    "amount": "0",
    "currency": config.FALLBACK_CURRENCY,
    "transaction_date": "1970-01-01T12:00:00.000Z",
    "time_precision": DATE_ONLY,
    "name": "Invalid transaction",
    "payment_method": "OTHER",
}


class CandidateBuilder:
    """
    Builds candidates for one transform request.

    Args:
        mapping: Column mapping, fixed for the whole request
        strategies: Type/date/description strategies selected for the bank
        tag_resolver: Collaborator that turns tag names into tag ids
        default_currency: When given, always used instead of the currency column
    """

    def __init__(
        self,
        mapping: FieldMapping,
        strategies: ActiveStrategies,
        tag_resolver: TagResolver,
        default_currency: Optional[str] = None,
    ):
        self.mapping = mapping
        self.strategies = strategies
        self.tag_resolver = tag_resolver
        self.default_currency = default_currency

    def build(self, row_index: int, row: RawRow) -> CandidateTransaction:
        try:
            draft, warnings = self._build_draft(row)
            errors = validate_candidate(draft, self.strategies.type_strategy_name) + warnings
            return CandidateTransaction(
                row_index=row_index,
                status=candidate_status(errors),
                data=draft,
                raw_values=dict(row),
                errors=errors,
            )
        except ImportPipelineError as e:
            logger.debug("Row %d could not be built: %s", row_index, e.message)
            return self._failed(row_index, row, e.field or "general", e.message)
        except Exception as e:
            logger.exception("Unexpected error while building row %d", row_index)
            return self._failed(row_index, row, "general", str(e) or "Unknown error occurred")

    def _failed(self, row_index: int, row: RawRow, field: str, message: str) -> CandidateTransaction:
        return CandidateTransaction(
            row_index=row_index,
            status="invalid",
            data=TransactionDraft(**PLACEHOLDER_TRANSACTION),
            raw_values=dict(row),
            errors=[FieldError(field=field, message=message)],
        )

    def _build_draft(self, row: RawRow):
        mapping = self.mapping
        draft = TransactionDraft()
        warnings: List[FieldError] = []

        if self.default_currency:
            draft.currency = self.default_currency

        # Amount first: type detection needs the numeric value
        raw_amount = mapping.value(row, "amount")
        amount = parse_amount(raw_amount) if raw_amount else None
        if amount:
            draft.type = self.strategies.type_strategy.detect(amount, raw_amount, row, mapping)

        extracted = self.strategies.description_strategy.extract(
            row, mapping, self.strategies.bank_id
        )

        for field in mapping.mapped_fields():
            raw_value = mapping.value(row, field)

            if field == "amount":
                draft.amount = amount
            elif field == "currency":
                if not self.default_currency:
                    draft.currency = parse_currency(raw_value)
            elif field == "transaction_date":
                self._apply_date(draft, raw_value, extracted)
            elif field == "name":
                draft.name = extracted.name or raw_value or None
            elif field == "description":
                draft.description = extracted.description or None
            elif field == "notes":
                draft.notes = raw_value or None
            elif field == "external_id":
                draft.external_id = raw_value or None
            elif field == "payment_method":
                draft.payment_method = parse_payment_method(raw_value)

        if not draft.payment_method:
            draft.payment_method = self.strategies.default_payment_method

        # Tags last, their type follows the detected transaction type
        tag_type = draft.type or "EXPENSE"
        if mapping.tags:
            resolved = self.tag_resolver.resolve_many(
                parse_tag_names(mapping.value(row, "tags")), tag_type
            )
            draft.tag_ids = resolved.tag_ids
            for name in resolved.skipped:
                warnings.append(
                    FieldError(
                        field="tags",
                        message=f"Tag '{name}' could not be resolved and was skipped",
                        severity="warning",
                    )
                )
        if mapping.primary_tag_id:
            primary_name = mapping.value(row, "primary_tag_id")
            if primary_name:
                draft.primary_tag_id = self.tag_resolver.resolve(
                    primary_name, tag_type, match_type=True
                )
                if draft.primary_tag_id is None:
                    warnings.append(
                        FieldError(
                            field="primaryTagId",
                            message=f"Primary tag '{primary_name}' could not be resolved and was skipped",
                            severity="warning",
                        )
                    )

        return draft, warnings

    def _apply_date(self, draft: TransactionDraft, raw_value: str, extracted: ExtractedDescription) -> None:
        if extracted.date_time:
            draft.transaction_date = extracted.date_time
            draft.time_precision = DATE_TIME
        elif extracted.value_date:
            draft.transaction_date = f"{extracted.value_date[:10]}T12:00:00.000Z"
            draft.time_precision = DATE_ONLY
        else:
            parsed = self.strategies.date_strategy.parse(raw_value)
            draft.transaction_date = parsed.iso_string
            draft.time_precision = parsed.precision


def transform_rows(
    rows: List[RawRow],
    mapping: FieldMapping,
    strategies: ActiveStrategies,
    tag_resolver: TagResolver,
    default_currency: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> TransformResult:
    """
    Build a candidate for every row, in order, and count the outcomes.

    Raises:
        TooManyRowsError: If there are more rows than allowed; nothing is built
    """
    check_row_count(rows, max_rows)
    builder = CandidateBuilder(mapping, strategies, tag_resolver, default_currency)
    candidates = [builder.build(index, row) for index, row in enumerate(rows)]

    result = TransformResult(
        candidates=candidates,
        total=len(rows),
        total_valid=sum(1 for c in candidates if c.status == "valid"),
        total_invalid=sum(1 for c in candidates if c.status == "invalid"),
        total_warning=sum(1 for c in candidates if c.status == "warning"),
    )
    logger.info(
        "Transformed %d rows (%d valid, %d invalid, %d warnings) with %s/%s/%s",
        result.total,
        result.total_valid,
        result.total_invalid,
        result.total_warning,
        strategies.type_strategy.name,
        strategies.date_strategy.name,
        strategies.description_strategy.name,
    )
    return result
