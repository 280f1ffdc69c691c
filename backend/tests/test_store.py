"""Tests for the JSON store and tag resolution."""

import json
import threading

import pytest

from bank_import.errors import PersistenceError, TagConflictError
from bank_import.models import TransactionInput
from bank_import.store import JsonStore
from bank_import.tags import TagResolver


def _salary():
    return TransactionInput.model_validate(
        {
            "type": "INCOME",
            "amount": "100",
            "currency": "EUR",
            "transactionDate": "2025-01-01T12:00:00.000Z",
            "name": "Salary",
            "paymentMethod": "BANK_TRANSFER",
        }
    )


def test_empty_store(temp_store):
    assert temp_store.list_tags("owner-1") == []
    assert temp_store.list_transactions("owner-1") == []


def test_create_and_find_tag(temp_store):
    tag = temp_store.create_tag("owner-1", "food", "EXPENSE")
    assert temp_store.find_tag("owner-1", "food").id == tag.id
    assert temp_store.find_tag("owner-1", "food", "EXPENSE").id == tag.id
    assert temp_store.find_tag("owner-1", "food", "INCOME") is None
    assert temp_store.find_tag("owner-2", "food") is None


def test_duplicate_tag_name_conflicts(temp_store):
    temp_store.create_tag("owner-1", "food")
    with pytest.raises(TagConflictError):
        temp_store.create_tag("owner-1", "food")
    temp_store.create_tag("owner-2", "food")


def test_create_transaction_is_persisted(temp_store):
    created = temp_store.create_transaction("owner-1", _salary())

    reloaded = JsonStore(temp_store.path).list_transactions("owner-1")
    assert [t.id for t in reloaded] == [created.id]
    assert reloaded[0].time_precision == "DateTime"
    with open(temp_store.path) as f:
        assert json.load(f)["transactions"][0]["owner_id"] == "owner-1"


def test_corrupt_file_is_reported_and_preserved(tmp_path):
    path = tmp_path / "store.json"
    path.write_text('{"tags": [], "transactions": [{"id": "1"')
    store = JsonStore(path)
    with pytest.raises(PersistenceError):
        store.list_tags("owner-1")
    with pytest.raises(PersistenceError):
        store.create_transaction("owner-1", _salary())
    assert path.read_text() == '{"tags": [], "transactions": [{"id": "1"'


def test_concurrent_writers_keep_every_transaction(temp_store):
    def worker(owner_id):
        for _ in range(25):
            temp_store.create_transaction(owner_id, _salary())

    threads = [threading.Thread(target=worker, args=("owner-1",)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(temp_store.list_transactions("owner-1")) == 100
    assert len(JsonStore(temp_store.path).list_transactions("owner-1")) == 100


def test_create_transactions_single_write(temp_store, monkeypatch):
    saves = []
    original_save = temp_store.save

    def counting_save(data):
        saves.append(len(data["transactions"]))
        original_save(data)

    monkeypatch.setattr(temp_store, "save", counting_save)
    created = temp_store.create_transactions("owner-1", [_salary() for _ in range(10)])
    assert len(created) == 10
    assert saves == [10]


def test_failed_write_is_rolled_back(temp_store, monkeypatch):
    temp_store.create_transaction("owner-1", _salary())

    def failing_save(data):
        raise PersistenceError("Could not write store: disk full")

    monkeypatch.setattr(temp_store, "save", failing_save)
    with pytest.raises(PersistenceError):
        temp_store.create_transactions("owner-1", [_salary(), _salary()])
    assert len(temp_store.list_transactions("owner-1")) == 1


def test_unwritable_store(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    store = JsonStore(blocker / "store.json")
    with pytest.raises(PersistenceError):
        store.create_tag("owner-1", "food")


class TestTagResolver:
    def test_find_or_create(self, temp_store):
        resolver = TagResolver(temp_store, "owner-1")
        first = resolver.resolve("food", "EXPENSE")
        assert resolver.resolve("food", "EXPENSE") == first
        assert len(temp_store.list_tags("owner-1")) == 1

    def test_type_match_for_primary_tag(self, temp_store):
        resolver = TagResolver(temp_store, "owner-1")
        income = temp_store.create_tag("owner-1", "refund", "INCOME")
        # A name clash across types falls back to the existing tag
        assert resolver.resolve("refund", "EXPENSE", match_type=True) == income.id

    def test_resolve_many_dedupes(self, temp_store):
        resolver = TagResolver(temp_store, "owner-1")
        resolved = resolver.resolve_many(["a", "b", "a"], "EXPENSE")
        assert len(resolved.tag_ids) == 2
        assert resolved.skipped == []
