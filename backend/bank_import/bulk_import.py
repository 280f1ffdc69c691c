"""
Bulk import of reviewed transactions with partial success.

Items are validated and checked one by one. A failing item is reported with
its index in the submitted batch and the loop moves on. Accepted items are
written in chunks; a chunk that cannot be written is reported on each of its
items, and chunks already written stay written.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from . import config
from .errors import ImportPipelineError, PersistenceError, TransactionValidationError
from .models import BatchItemError, ImportBatchResult, TransactionInput
from .validation import schema_errors

logger = logging.getLogger(__name__)


def _validation_message(payload: Dict[str, Any]) -> str:
    return "; ".join(f"{e.field}: {e.message}" for e in schema_errors(payload)) or "Invalid transaction"


class BulkImportExecutor:
    def __init__(self, store, chunk_size: Optional[int] = None):
        self.store = store
        self.chunk_size = max(1, chunk_size or config.IMPORT_CHUNK_SIZE)

    def import_transactions(
        self, owner_id: str, items: List[Union[Dict[str, Any], TransactionInput]]
    ) -> ImportBatchResult:
        result = ImportBatchResult()
        pending: List[Tuple[int, TransactionInput]] = []
        for index, item in enumerate(items):
            try:
                validated = self._validate(item)
                self._check_tags(owner_id, validated)
                pending.append((index, validated))
            except ImportPipelineError as e:
                result.errors.append(BatchItemError(index=index, message=e.message))
            except Exception as e:
                logger.exception("Unexpected error importing item %d", index)
                result.errors.append(
                    BatchItemError(index=index, message=str(e) or "Unknown error occurred")
                )
            if len(pending) >= self.chunk_size:
                self._write(owner_id, pending, result)
                pending = []
        self._write(owner_id, pending, result)
        result.errors.sort(key=lambda e: e.index)

        logger.info(
            "Imported %d of %d transactions for owner %s (%d failed)",
            len(result.created),
            len(items),
            owner_id,
            len(result.errors),
        )
        return result

    def _write(
        self, owner_id: str, pending: List[Tuple[int, TransactionInput]], result: ImportBatchResult
    ) -> None:
        if not pending:
            return
        try:
            result.created.extend(
                self.store.create_transactions(owner_id, [item for _, item in pending])
            )
        except ImportPipelineError as e:
            logger.error("Could not store %d transactions: %s", len(pending), e.message)
            result.errors.extend(BatchItemError(index=i, message=e.message) for i, _ in pending)
        except Exception as e:
            logger.exception("Unexpected error storing %d transactions", len(pending))
            message = str(e) or "Unknown error occurred"
            result.errors.extend(BatchItemError(index=i, message=message) for i, _ in pending)

    def _validate(self, item: Union[Dict[str, Any], TransactionInput]) -> TransactionInput:
        if isinstance(item, TransactionInput):
            return item
        try:
            return TransactionInput.model_validate(item)
        except ValidationError:
            raise TransactionValidationError(_validation_message(item))

    def _check_tags(self, owner_id: str, item: TransactionInput) -> None:
        if item.tag_ids:
            unique_ids = set(item.tag_ids)
            if self.store.count_owned_tags(owner_id, unique_ids) != len(unique_ids):
                raise PersistenceError("One or more tags not found", field="tagIds")

        if item.primary_tag_id:
            primary = self.store.get_tag(owner_id, item.primary_tag_id)
            if primary is None:
                raise PersistenceError("Primary tag not found", field="primaryTagId")
            if primary.transaction_type is not None and primary.transaction_type != item.type:
                raise TransactionValidationError(
                    "Primary tag transaction type does not match transaction type",
                    field="primaryTagId",
                )


def batch_status_code(result: ImportBatchResult) -> int:
    """201 full success, 400 nothing created, 207 partial success."""
    if not result.errors:
        return 201
    if not result.created:
        return 400
    return 207
