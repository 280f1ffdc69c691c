"""
JSON file persistence for tags and transactions.

The store is one JSON document. It is read from disk once and kept in
memory; every write goes through a lock, is applied to the in-memory copy
and rewritten atomically (temp file + rename). A damaged file is reported,
never replaced. Bulk imports write transactions in chunks.
"""

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import PersistenceError, TagConflictError
from .models import Tag, Transaction, TransactionInput

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data: Optional[Dict[str, List[Dict]]] = None

    def load(self) -> Dict[str, List[Dict]]:
        """Load the store from file (only the first time)"""
        with self._lock:
            if self._data is None:
                self._data = self._read()
            return self._data

    def _read(self) -> Dict[str, List[Dict]]:
        if not self.path.exists():
            return {"tags": [], "transactions": []}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            # Never start over on top of a damaged file; it would be overwritten
            logger.error("Store file %s is not valid JSON: %s", self.path, e)
            raise PersistenceError(f"Store file is corrupt: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Could not read store: {e}") from e
        data.setdefault("tags", [])
        data.setdefault("transactions", [])
        return data

    def save(self, data: Dict[str, List[Dict]]) -> None:
        """Save the store to file"""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write store: {e}") from e

    def _extend(self, collection: str, records: List[Dict]) -> None:
        """Add records with a single write; the in-memory copy is rolled back if it fails."""
        with self._lock:
            data = self.load()
            data[collection].extend(records)
            try:
                self.save(data)
            except PersistenceError:
                del data[collection][len(data[collection]) - len(records):]
                raise

    # Tags

    def list_tags(self, owner_id: str) -> List[Tag]:
        with self._lock:
            return [Tag(**t) for t in self.load()["tags"] if t["owner_id"] == owner_id]

    def find_tag(self, owner_id: str, name: str, transaction_type: Optional[str] = None) -> Optional[Tag]:
        with self._lock:
            for tag in self.load()["tags"]:
                if tag["owner_id"] != owner_id or tag["name"] != name:
                    continue
                if transaction_type is not None and tag["transaction_type"] != transaction_type:
                    continue
                return Tag(**tag)
        return None

    def get_tag(self, owner_id: str, tag_id: str) -> Optional[Tag]:
        with self._lock:
            for tag in self.load()["tags"]:
                if tag["owner_id"] == owner_id and tag["id"] == tag_id:
                    return Tag(**tag)
        return None

    def count_owned_tags(self, owner_id: str, tag_ids: Iterable[str]) -> int:
        wanted = set(tag_ids)
        with self._lock:
            return sum(
                1 for t in self.load()["tags"] if t["owner_id"] == owner_id and t["id"] in wanted
            )

    def create_tag(
        self,
        owner_id: str,
        name: str,
        transaction_type: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Tag:
        with self._lock:
            for existing in self.load()["tags"]:
                if existing["owner_id"] == owner_id and existing["name"] == name:
                    raise TagConflictError(f"Tag '{name}' already exists", field="tags")
            tag = Tag(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                name=name,
                transaction_type=transaction_type,
                color=color,
                created_at=_now(),
            )
            self._extend("tags", [tag.model_dump()])
        logger.info("Created tag %r for owner %s", name, owner_id)
        return tag

    # Transactions

    def list_transactions(self, owner_id: str) -> List[Transaction]:
        with self._lock:
            return [
                Transaction(**t) for t in self.load()["transactions"] if t["owner_id"] == owner_id
            ]

    def create_transactions(self, owner_id: str, items: List[TransactionInput]) -> List[Transaction]:
        """Persist ``items`` with one write; either all of them are stored or none."""
        timestamp = _now()
        transactions = [
            Transaction(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                created_at=timestamp,
                updated_at=timestamp,
                **item.model_dump(),
            )
            for item in items
        ]
        if transactions:
            self._extend("transactions", [t.model_dump() for t in transactions])
        return transactions

    def create_transaction(self, owner_id: str, item: TransactionInput) -> Transaction:
        return self.create_transactions(owner_id, [item])[0]
