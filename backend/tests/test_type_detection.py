"""Tests for transaction type detection strategies."""

import pytest

from bank_import.errors import StrategyError
from bank_import.models import FieldMapping
from bank_import.type_detection import (
    ColumnTypeDetection,
    InvertedSignTypeDetection,
    SignBasedTypeDetection,
    reads_type_column,
)

MAPPING = FieldMapping(amount="Amount", type="Debit/credit")


@pytest.mark.parametrize(
    "amount, expected",
    [("-10.00", "EXPENSE"), ("10.00", "INCOME"), ("0", "INCOME")],
)
def test_sign_based(amount, expected):
    assert SignBasedTypeDetection().detect(amount, amount, {}, MAPPING) == expected


@pytest.mark.parametrize(
    "amount, expected",
    [("-10.00", "INCOME"), ("10.00", "EXPENSE")],
)
def test_inverted_sign(amount, expected):
    assert InvertedSignTypeDetection().detect(amount, amount, {}, MAPPING) == expected


def test_sign_based_rejects_non_numeric():
    with pytest.raises(StrategyError) as exc:
        SignBasedTypeDetection().detect("abc", "abc", {}, MAPPING)
    assert exc.value.field == "amount"


class TestColumnTypeDetection:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Debit", "EXPENSE"),
            ("Credit", "INCOME"),
            ("Af", "EXPENSE"),
            ("Bij", "INCOME"),
            ("  DEBIT ", "EXPENSE"),
        ],
    )
    def test_recognized_values(self, value, expected):
        row = {"Debit/credit": value}
        assert ColumnTypeDetection().detect("12.50", "12,50", row, MAPPING) == expected

    def test_ignores_amount_sign(self):
        row = {"Debit/credit": "Credit"}
        assert ColumnTypeDetection().detect("-12.50", "-12,50", row, MAPPING) == "INCOME"

    def test_unrecognized_value(self):
        with pytest.raises(StrategyError) as exc:
            ColumnTypeDetection().detect("1", "1", {"Debit/credit": "Maybe"}, MAPPING)
        assert exc.value.field == "type"

    def test_unmapped_type_column(self):
        with pytest.raises(StrategyError) as exc:
            ColumnTypeDetection().detect("1", "1", {}, FieldMapping(amount="Amount"))
        assert exc.value.field == "type"


def test_reads_type_column():
    assert reads_type_column("column-based")
    assert reads_type_column("ing")
    assert not reads_type_column("sign-based")
    assert not reads_type_column(None)
