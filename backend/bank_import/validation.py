"""Validation of candidate transactions before review and before persisting."""

from typing import List, Optional

from pydantic import ValidationError

from .models import FieldError, TransactionDraft, TransactionInput, wire_name
from .type_detection import reads_type_column

REQUIRED_FIELDS = ("type", "amount", "currency", "transaction_date", "name", "payment_method")


def _schema_message(error: dict) -> str:
    message = error.get("msg") or "Validation error"
    return message.replace("Value error, ", "", 1)


def schema_errors(payload: dict) -> List[FieldError]:
    """Structural violations of ``payload`` against the transaction schema."""
    try:
        TransactionInput.model_validate(payload)
    except ValidationError as e:
        return [
            FieldError(
                field=".".join(str(part) for part in error["loc"]) or "general",
                message=_schema_message(error),
            )
            for error in e.errors()
        ]
    return []


def validate_candidate(
    draft: TransactionDraft, type_strategy_name: Optional[str] = None
) -> List[FieldError]:
    """
    Required-field and schema validation for one candidate.

    While a sign-based strategy is active an unresolved type is not reported,
    since detection fills it in; a column-based strategy cannot do that, so
    there the type is required like any other field.
    """
    errors: List[FieldError] = []
    reported = set()
    relax_type = (
        bool(type_strategy_name)
        and not reads_type_column(type_strategy_name)
        and not draft.type
    )

    for field in REQUIRED_FIELDS:
        name = wire_name(field)
        if field == "type" and relax_type:
            reported.add(name)
            continue
        if not getattr(draft, field):
            errors.append(FieldError(field=name, message=f"Required field {name} is missing"))
            reported.add(name)

    payload = draft.model_dump(by_alias=True, exclude_none=True)
    for error in schema_errors(payload):
        if error.field.split(".")[0] in reported:
            continue
        errors.append(error)

    return errors


def candidate_status(errors: List[FieldError]) -> str:
    if any(error.severity == "error" for error in errors):
        return "invalid"
    if errors:
        return "warning"
    return "valid"
