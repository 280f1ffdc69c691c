"""Tests for cell value normalization."""

import pytest

from bank_import.normalizers import (
    parse_amount,
    parse_currency,
    parse_payment_method,
    parse_tag_names,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.50", "12.50"),
        ("-12.50", "-12.50"),
        ("12,50", "12.50"),
        ("1.234,56", "1234.56"),
        ("1,234.56", "1234.56"),
        ("-1.234,56", "-1234.56"),
        ("(12.00)", "-12.00"),
        ("€ 5,00", "5.00"),
        ("$1,000.00", "1000.00"),
        ("abc", ""),
        ("", ""),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("eur", "EUR"), (" usd ", "USD"), ("€", "EUR"), ("£", "GBP"), ("xyz", "XYZ"), ("", None)],
)
def test_parse_currency(raw, expected):
    assert parse_currency(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("credit card", "CREDIT_CARD"),
        ("Debit", "DEBIT_CARD"),
        ("bank-transfer", "BANK_TRANSFER"),
        ("SEPA", "BANK_TRANSFER"),
        ("PayPal", "DIGITAL_WALLET"),
        ("Apple Pay", "DIGITAL_WALLET"),
        ("cash", "CASH"),
        ("barter", "OTHER"),
        ("", "OTHER"),
    ],
)
def test_parse_payment_method(raw, expected):
    assert parse_payment_method(raw) == expected


def test_parse_tag_names():
    assert parse_tag_names(" food, weekly ,,food ") == ["food", "weekly"]
    assert parse_tag_names("") == []
