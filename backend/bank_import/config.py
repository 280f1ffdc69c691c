"""
Configuration settings for the bank import service.
Centralized location for all configurable values; each one can be
overridden through an environment variable.
"""

import os
from pathlib import Path

# Upload limits
MAX_FILE_SIZE = int(os.getenv("BANK_IMPORT_MAX_FILE_SIZE", 10 * 1024 * 1024))  # 10MB
MAX_ROWS = int(os.getenv("BANK_IMPORT_MAX_ROWS", 10000))
# Transactions written to the store per write during a bulk import
IMPORT_CHUNK_SIZE = int(os.getenv("BANK_IMPORT_CHUNK_SIZE", 500))

# Storage
DATA_DIR = Path(
    os.getenv("BANK_IMPORT_DATA_DIR", Path(__file__).parent.parent.parent / "data")
)
STORE_FILE = DATA_DIR / "transactions.json"

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("BANK_IMPORT_CORS_ORIGINS", "http://localhost:13030").split(",")
    if origin.strip()
]
DEFAULT_OWNER_ID = os.getenv("BANK_IMPORT_DEFAULT_OWNER", "local")

# Logging
LOG_LEVEL = os.getenv("BANK_IMPORT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Transaction domain
SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "CAD", "AUD", "JPY")
PAYMENT_METHODS = (
    "CASH",
    "CREDIT_CARD",
    "DEBIT_CARD",
    "BANK_TRANSFER",
    "CHECK",
    "DIGITAL_WALLET",
    "CRYPTOCURRENCY",
    "GIFT_CARD",
    "OTHER",
)
DEFAULT_PAYMENT_METHOD = "DEBIT_CARD"
FALLBACK_CURRENCY = "EUR"  # Used when building the import payload without any currency
