"""Pytest configuration and fixtures for testing the Bank Import API."""
import pytest
import tempfile
import shutil
from pathlib import Path
from fastapi.testclient import TestClient
from bank_import.main import app
from bank_import.banks import default_registry
from bank_import.store import JsonStore
from bank_import.strategies import default_strategy_sets, select_strategies
from bank_import.tags import TagResolver


@pytest.fixture
def temp_store():
    """Create a store backed by a temporary directory and point the app at it."""
    temp_dir = tempfile.mkdtemp()
    store = JsonStore(Path(temp_dir) / "transactions.json")

    # Patch the store in the main module
    import bank_import.main as main_module
    original_store = main_module.store
    main_module.store = store

    yield store

    # Cleanup: restore original store and remove temp directory
    main_module.store = original_store
    shutil.rmtree(temp_dir)


@pytest.fixture
def client(temp_store):
    """Create a test client for the FastAPI application."""
    return TestClient(app)


@pytest.fixture
def banks():
    return default_registry()


@pytest.fixture
def strategy_sets():
    return default_strategy_sets()


@pytest.fixture
def default_strategies(strategy_sets, banks):
    return select_strategies(strategy_sets, banks)


@pytest.fixture
def ing_strategies(strategy_sets, banks):
    return select_strategies(strategy_sets, banks, "ING")


@pytest.fixture
def amex_strategies(strategy_sets, banks):
    return select_strategies(strategy_sets, banks, "AMERICAN_EXPRESS")


@pytest.fixture
def tag_resolver(temp_store):
    return TagResolver(temp_store, "owner-1")


@pytest.fixture
def sample_csv_content():
    """Generic export with signed amounts."""
    return """Date,Description,Amount,Currency
2024-01-01,Grocery Store,-50.00,EUR
2024-01-02,Salary,2500.00,EUR
2024-01-03,Restaurant,-25.00,EUR"""


@pytest.fixture
def ing_csv_content():
    """ING export: semicolons, unsigned amounts, Af/Bij direction column."""
    return (
        'Date;Name / Description;Account;Counterparty;Code;Debit/credit;'
        'Amount (EUR);Transaction type;Notifications\n'
        '20251210;Albert Heijn 1234;NL01INGB0001234567;;BA;Debit;12,50;Payment terminal;'
        '"Card sequence no.: 001 10/12/2025 14:03 Transaction: P00247 Term: BS178250 Apple Pay '
        'Value date: 10/12/2025"\n'
        '20251211;Hr J Jansen;NL01INGB0001234567;NL02RABO0123456789;OV;Credit;800,00;Transfer;'
        '"Name: Hr J Jansen Description: Rent December IBAN: NL02RABO0123456789 '
        'Value date: 11/12/2025"\n'
    )


@pytest.fixture
def sample_csv_file(sample_csv_content, tmp_path):
    """Create a temporary CSV file for testing."""
    csv_file = tmp_path / "test.csv"
    csv_file.write_text(sample_csv_content)
    return csv_file
