"""
Review-step helpers: row selection, local edits and the import payload.

Candidates are never persisted; only the payload built from the selected
ones is sent to the bulk importer.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from . import config
from .models import CandidateTransaction, FieldError, TransactionDraft
from .validation import candidate_status, validate_candidate


def select_all_valid(candidates: Iterable[CandidateTransaction]) -> Set[int]:
    """Select exactly the rows whose status is valid."""
    return {c.row_index for c in candidates if c.status == "valid"}


def exclude_all_invalid(candidates: Iterable[CandidateTransaction], selected: Set[int]) -> Set[int]:
    """
    Drop invalid rows from the current selection.

    Unlike select_all_valid this keeps the user's other choices: valid rows
    they deselected stay deselected.
    """
    invalid = {c.row_index for c in candidates if c.status == "invalid"}
    return {row_index for row_index in selected if row_index not in invalid}


def apply_edit(
    candidate: CandidateTransaction,
    changes: Dict[str, Any],
    type_strategy_name: Optional[str] = None,
) -> CandidateTransaction:
    """
    Return a re-validated copy of ``candidate`` with ``changes`` applied to its data.

    ``changes`` may use wire (camelCase) or field (snake_case) names.
    """
    patch = TransactionDraft.model_validate(changes)
    draft = candidate.data.model_copy(
        update=patch.model_dump(include=patch.model_fields_set)
    )
    warnings: List[FieldError] = [e for e in candidate.errors if e.severity == "warning"]
    errors = validate_candidate(draft, type_strategy_name) + warnings
    return candidate.model_copy(
        update={"data": draft, "errors": errors, "status": candidate_status(errors)}
    )


def build_import_payload(
    candidates: Iterable[CandidateTransaction],
    selected: Set[int],
    default_currency: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Transactions to submit, in row order, skipping rows without core fields."""
    payload: List[Dict[str, Any]] = []
    for candidate in sorted(candidates, key=lambda c: c.row_index):
        if candidate.row_index not in selected:
            continue
        data = candidate.data
        if not (data.type and data.amount and data.transaction_date and data.name):
            continue
        item = data.model_dump(by_alias=True, exclude_none=True)
        item["currency"] = data.currency or default_currency or config.FALLBACK_CURRENCY
        item["tagIds"] = list(data.tag_ids or [])
        payload.append(item)
    return payload
