"""Tests for column auto-mapping and mapping validation."""

import pytest
from pydantic import ValidationError

from bank_import.errors import MappingError
from bank_import.mapping import (
    auto_map,
    normalize_column_name,
    require_complete_mapping,
    validate_mapping,
)
from bank_import.models import FieldMapping
from bank_import.type_detection import ColumnTypeDetection, SignBasedTypeDetection

ING_HEADERS = [
    "Date",
    "Name / Description",
    "Account",
    "Counterparty",
    "Code",
    "Debit/credit",
    "Amount (EUR)",
    "Transaction type",
    "Notifications",
]


def test_normalize_column_name():
    assert normalize_column_name("  Transaction  Date ") == "transaction_date"
    assert normalize_column_name("Payment-Method") == "payment_method"


class TestAutoMap:
    def test_generic_headers(self):
        mapping = auto_map(["Date", "Description", "Amount", "Currency", "Reference"])
        assert mapping.transaction_date == "Date"
        assert mapping.name == "Description"
        assert mapping.amount == "Amount"
        assert mapping.currency == "Currency"
        assert mapping.external_id == "Reference"
        assert mapping.type is None

    def test_structured_template(self, banks):
        headers = [
            "Type",
            "Amount",
            "Currency",
            "Transaction Date",
            "Name",
            "Payment Method",
            "Description",
            "Notes",
            "External ID",
            "Tags",
            "Primary Tag",
        ]
        mapping = auto_map(headers, banks.get("DEFAULT"))
        assert mapping.type == "Type"
        assert mapping.transaction_date == "Transaction Date"
        assert mapping.payment_method == "Payment Method"
        assert mapping.description == "Description"
        assert mapping.external_id == "External ID"
        assert mapping.tags == "Tags"
        assert mapping.primary_tag_id == "Primary Tag"

    def test_ing_hints(self, banks):
        mapping = auto_map(ING_HEADERS, banks.get("ING"))
        assert mapping.transaction_date == "Date"
        assert mapping.name == "Name / Description"
        assert mapping.amount == "Amount (EUR)"
        assert mapping.type == "Debit/credit"
        assert mapping.description == "Notifications"

    def test_amex_hints(self, banks):
        mapping = auto_map(["Date", "Description", "Amount", "Reference"], banks.get("AMERICAN_EXPRESS"))
        assert mapping.transaction_date == "Date"
        assert mapping.name == "Description"
        assert mapping.amount == "Amount"
        assert mapping.external_id == "Reference"

    def test_single_tag_column_becomes_primary_tag(self):
        mapping = auto_map(["Date", "Amount", "Category"])
        assert mapping.primary_tag_id == "Category"
        assert mapping.tags is None

    def test_substring_matches_both_ways(self):
        # header containing a pattern, and a short header contained in one
        mapping = auto_map(["Amount (EUR)", "Cur", "Payee Name"])
        assert mapping.amount == "Amount (EUR)"
        assert mapping.currency == "Cur"
        assert mapping.name == "Payee Name"

    def test_each_column_used_once(self):
        mapping = auto_map(["Description", "Memo"])
        assert mapping.name == "Description"
        assert mapping.description == "Memo"

    def test_no_headers(self):
        assert auto_map([]).mapped_fields() == []


class TestValidateMapping:
    def test_type_required_for_ing(self, banks):
        mapping = FieldMapping(amount="Amount (EUR)", transaction_date="Date", name="Name / Description")
        result = validate_mapping(mapping, banks.get("ING"), ColumnTypeDetection(), has_default_currency=True)
        assert result.valid is False
        assert result.missing_fields == ["type"]

    def test_type_required_for_column_strategy_without_bank(self):
        mapping = FieldMapping(amount="A", transaction_date="D", name="N", currency="C")
        result = validate_mapping(mapping, None, ColumnTypeDetection())
        assert result.missing_fields == ["type"]

    def test_sign_based_does_not_need_type(self):
        mapping = FieldMapping(amount="A", transaction_date="D", name="N", currency="C")
        assert validate_mapping(mapping, None, SignBasedTypeDetection()).valid

    def test_currency_missing_without_default(self):
        mapping = FieldMapping(amount="A", transaction_date="D", name="N")
        result = validate_mapping(mapping, None, SignBasedTypeDetection())
        assert result.missing_fields == ["currency"]

    def test_missing_fields_use_wire_names(self):
        result = validate_mapping(FieldMapping(), None, SignBasedTypeDetection())
        assert result.missing_fields == ["amount", "currency", "transactionDate", "name"]

    def test_require_complete_mapping(self):
        with pytest.raises(MappingError) as exc:
            require_complete_mapping(FieldMapping(amount="A"), None, SignBasedTypeDetection())
        assert exc.value.missing_fields == ["currency", "transactionDate", "name"]


class TestFieldMapping:
    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValidationError):
            FieldMapping(name="Description", description="Description")

    def test_blank_columns_are_unmapped(self):
        mapping = FieldMapping.model_validate({"amount": "  ", "name": "Payee"})
        assert mapping.amount is None
        assert mapping.mapped_fields() == ["name"]

    def test_accepts_camel_case(self):
        mapping = FieldMapping.model_validate({"transactionDate": "Date", "primaryTagId": "Tag"})
        assert mapping.transaction_date == "Date"
        assert mapping.primary_tag_id == "Tag"

    def test_value_is_trimmed(self):
        mapping = FieldMapping(name="Payee")
        assert mapping.value({"Payee": "  Shop "}, "name") == "Shop"
        assert mapping.value({"Payee": "Shop"}, "notes") == ""

    def test_frozen(self):
        mapping = FieldMapping(name="Payee")
        with pytest.raises(ValidationError):
            mapping.name = "Other"
